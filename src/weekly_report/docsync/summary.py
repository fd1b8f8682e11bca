# src/weekly_report/docsync/summary.py

"""
Team overview appended to the bottom of the period document.

Status distribution over every fetched task (current + recently done), then a
risk section listing overdue and near-deadline current tasks per member.
"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from ..core.ports import DocumentStore
from ..errors import ExternalCallError
from ..report.blocks import Block, bullet, callout, divider, heading, paragraph
from ..report.renderer import is_near_deadline
from ..tasks.progress import progress_bar, round_half_up
from ..tasks.task_models import Task, TaskStatus

logger = logging.getLogger(__name__)

OVERVIEW_TITLE = "📊 Team task overview"
RISK_TITLE = "🚨 Risk alerts"

_STATUS_ROWS: tuple[tuple[TaskStatus, str], ...] = (
    (TaskStatus.DONE, "✅ Done"),
    (TaskStatus.IN_PROGRESS, "🔄 In progress"),
    (TaskStatus.NEXT_UP, "📋 Next up"),
    (TaskStatus.REVIEW, "👀 In review"),
)


@dataclass(slots=True)
class MemberTasks:
    member: str
    tasks: list[Task] = field(default_factory=list)


def _pct(n: int, total: int) -> int:
    return round_half_up(100.0 * n / total) if total else 0


def build_team_summary(members: Sequence[MemberTasks]) -> list[Block]:
    counts: Counter[TaskStatus] = Counter()
    overdue: list[tuple[str, Task]] = []
    urgent: list[tuple[str, Task]] = []

    for entry in members:
        for task in entry.tasks:
            counts[task.status] += 1
            if task.status == TaskStatus.DONE:
                continue
            if task.is_overdue:
                overdue.append((entry.member, task))
            elif is_near_deadline(task):
                urgent.append((entry.member, task))

    total = sum(counts.values())
    blocks: list[Block] = [divider(), heading(OVERVIEW_TITLE)]
    for status, label in _STATUS_ROWS:
        n = counts[status]
        pct = _pct(n, total)
        blocks.append(paragraph(f"{label}  {progress_bar(pct)} {n} ({pct}%)"))

    if overdue or urgent:
        blocks.append(paragraph(""))
        blocks.append(heading(RISK_TITLE))

    if overdue:
        blocks.append(callout(f"Overdue tasks ({len(overdue)})", icon="🔴", color="red_background", bold=True))
        for member, task in overdue:
            blocks.append(bullet(f"{task.title} — {member} — overdue by {task.days_overdue} day(s)"))

    if urgent:
        blocks.append(callout(f"Due soon ({len(urgent)})", icon="⚠️", color="yellow_background", bold=True))
        for member, task in urgent:
            blocks.append(bullet(f"{task.title} — {member} — {task.days_remaining} day(s) left"))

    return blocks


def append_team_summary(store: DocumentStore, document_id: str, members: Sequence[MemberTasks]) -> int:
    blocks = build_team_summary(members)
    try:
        store.append_nodes(document_id, None, blocks)
    except ExternalCallError as e:
        raise ExternalCallError("Appending the team summary failed.", operation="append_nodes") from e
    logger.info("Team summary appended document=%s blocks=%d", document_id, len(blocks))
    return len(blocks)
