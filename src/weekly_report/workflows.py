# src/weekly_report/workflows.py

"""
Request-level operations over AppState.

Each function is one user-visible action (list members, preview a report,
submit, toggle leave, sync leave placeholders, append the team summary).
They compose the core components and surface failures as WeeklyReportError
subclasses; nothing here retries.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import Sequence

from .core.members import Member, find_member
from .core.periods import previous_week_range
from .core.state import AppState
from .docsync.region import (
    LEAVE_PLACEHOLDER,
    ReplaceResult,
    find_document,
    find_or_create_document,
    replace_region,
)
from .docsync.summary import MemberTasks, append_team_summary
from .errors import ExternalCallError, NotFoundError, ValidationError
from .ledger.ledger import MemberStatus
from .ledger.ledger_models import Submission
from .report.blocks import paragraph
from .report.generator import GeneratedReport, generate_report
from .report.parser import parse_report
from .report.renderer import HEADING_MARKER, NONE_PLACEHOLDER, SECTION_INFO, count_sections, item_label
from .tasks.classifier import fetch_member_tasks
from .tasks.task_models import TaskBuckets

logger = logging.getLogger(__name__)

_LABELLED_LINE_RE = re.compile(r"^[a-z]\.\s*")


@dataclass(frozen=True, slots=True)
class MemberRow:
    id: str
    name: str
    submitted: bool
    submitted_at: str | None
    on_leave: bool


@dataclass(frozen=True, slots=True)
class MembersView:
    period_key: str
    week_range: str
    members: list[MemberRow]


@dataclass(frozen=True, slots=True)
class SubmitResult:
    member: Member
    document_id: str
    document_created: bool
    replaced: ReplaceResult
    submission: Submission


@dataclass(slots=True)
class LeaveSyncResult:
    # None when there was nobody to sync and the document was left alone.
    document_id: str | None
    document_created: bool
    synced: list[str] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class SummaryResult:
    document_id: str
    appended: int
    failures: dict[str, str] = field(default_factory=dict)


def resolve_member(state: AppState, key: str | None) -> Member:
    if not key or not key.strip():
        raise ValidationError("member is required")
    member = find_member(state.members, key)
    if member is None:
        raise NotFoundError(f"Unknown member: {key!r}")
    return member


def _roster_layout(state: AppState, extra_leaves: Sequence[str] = ()) -> list[tuple[str, bool]]:
    leaves = state.ledger.leaves()
    extra = set(extra_leaves)
    return [(m.name, bool(leaves.get(m.id)) or m.id in extra) for m in state.members]


def list_members(state: AppState) -> MembersView:
    record = state.ledger.read()
    rows: list[MemberRow] = []
    for m in state.members:
        sub = record.submissions.get(m.id)
        rows.append(
            MemberRow(
                id=m.id,
                name=m.name,
                submitted=bool(sub and sub.submitted),
                submitted_at=sub.submitted_at if sub else None,
                on_leave=bool(record.leaves.get(m.id, False)),
            )
        )
    return MembersView(
        period_key=record.period_key,
        week_range=previous_week_range(state.clock.now()),
        members=rows,
    )


def fetch_tasks(state: AppState, member_key: str) -> TaskBuckets:
    member = resolve_member(state, member_key)
    workers = int(getattr(state.settings, "fetch_workers", 8) or 8)
    return fetch_member_tasks(state.task_source, member.name, state.clock.now(), workers=workers)


def generate(state: AppState, member_key: str) -> GeneratedReport:
    member = resolve_member(state, member_key)
    buckets = fetch_tasks(state, member.id)
    report = generate_report(buckets, member.name, state.rewriter)
    logger.info("Report generated member=%s fallback=%s", member.id, report.used_fallback)
    return report


def append_info_section(content: str, extra_info: str | None) -> str:
    """Add the info-sharing section, numbered after the last section in `content`."""
    n = count_sections(content) + 1
    lines = [line.strip() for line in (extra_info or "").splitlines() if line.strip()]
    if not lines:
        lines = [NONE_PLACEHOLDER]

    out = [content.rstrip("\n"), "", f"{HEADING_MARKER}{n}. {SECTION_INFO}", ""]
    for i, line in enumerate(lines):
        out.append(f"{item_label(i)}. {_LABELLED_LINE_RE.sub('', line, count=1)}")
    out.append("")
    return "\n".join(out)


def submit_report(
    state: AppState,
    member_key: str,
    content: str,
    extra_info: str | None = None,
) -> SubmitResult:
    """
    Publish one member's report into the period document and record it.

    Order: validate -> reject duplicates -> ensure document -> replace region ->
    record submission. A duplicate is refused before the document is touched.
    """
    member = resolve_member(state, member_key)
    if not content or not content.strip():
        raise ValidationError("report content is required")

    state.ledger.ensure_not_submitted(member.id)

    text = append_info_section(content, extra_info)
    blocks = parse_report(text)

    period = state.ledger.current_key()
    doc_id, created = find_or_create_document(state.doc_store, period, _roster_layout(state))
    replaced = replace_region(state.doc_store, doc_id, member.name, blocks)
    submission = state.ledger.mark_submitted(member.id, document_id=doc_id)

    logger.info("Report submitted member=%s period=%s document=%s", member.id, period, doc_id)
    return SubmitResult(
        member=member,
        document_id=doc_id,
        document_created=created,
        replaced=replaced,
        submission=submission,
    )


def set_leave(state: AppState, member_key: str, on_leave: bool) -> MemberStatus:
    member = resolve_member(state, member_key)
    return state.ledger.set_leave(member.id, on_leave)


def sync_leave(state: AppState, member_keys: Sequence[str] | None = None) -> LeaveSyncResult:
    """
    Write the leave placeholder into each listed member's region.

    Without `member_keys` the members flagged on leave in the ledger are used.
    Members who already submitted are skipped; per-member failures are
    collected instead of aborting the rest.
    """
    if member_keys is None:
        leaves = state.ledger.leaves()
        targets = [m for m in state.members if leaves.get(m.id)]
    else:
        targets = [resolve_member(state, k) for k in member_keys]

    record = state.ledger.read()
    pending: list[Member] = []
    skipped: list[str] = []
    for m in targets:
        sub = record.submissions.get(m.id)
        if sub is not None and sub.submitted:
            skipped.append(m.id)
        else:
            pending.append(m)

    if not pending:
        logger.info("Leave sync: nothing to write (skipped=%d).", len(skipped))
        return LeaveSyncResult(document_id=None, document_created=False, skipped=skipped)

    period = state.ledger.current_key()
    doc_id, created = find_or_create_document(
        state.doc_store, period, _roster_layout(state, [m.id for m in pending])
    )
    result = LeaveSyncResult(document_id=doc_id, document_created=created, skipped=skipped)

    if created:
        # A fresh page already carries the leave placeholders.
        result.synced = [m.id for m in pending]
        state.ledger.remember_document(doc_id)
        return result

    for m in pending:
        try:
            replace_region(state.doc_store, doc_id, m.name, [paragraph(LEAVE_PLACEHOLDER)])
        except (NotFoundError, ExternalCallError) as e:
            logger.warning("Leave sync failed member=%s: %s", m.id, e)
            result.failures[m.id] = str(e)
            continue
        result.synced.append(m.id)

    logger.info(
        "Leave sync done period=%s synced=%d skipped=%d failed=%d",
        period,
        len(result.synced),
        len(result.skipped),
        len(result.failures),
    )
    return result


def team_summary(state: AppState) -> SummaryResult:
    """
    Fetch every member's tasks and append the overview to the period document.

    The document must already exist; a missing one is NotFoundError and
    nothing is fetched or written.
    """
    period = state.ledger.current_key()
    doc_id = find_document(state.doc_store, period)
    if doc_id is None:
        raise NotFoundError(f"No weekly document for {period}; submit a report or sync leave first.")

    now = state.clock.now()
    workers = int(getattr(state.settings, "fetch_workers", 8) or 8)

    collected: list[MemberTasks] = []
    failures: dict[str, str] = {}
    for m in state.members:
        try:
            buckets = fetch_member_tasks(state.task_source, m.name, now, workers=workers)
        except ExternalCallError as e:
            logger.warning("Task fetch failed for summary member=%s: %s", m.id, e)
            failures[m.id] = str(e)
            continue
        collected.append(MemberTasks(member=m.name, tasks=buckets.all()))

    if state.members and not collected:
        raise ExternalCallError("Task fetch failed for every member.", operation="query_tasks")

    appended = append_team_summary(state.doc_store, doc_id, collected)
    return SummaryResult(document_id=doc_id, appended=appended, failures=failures)

