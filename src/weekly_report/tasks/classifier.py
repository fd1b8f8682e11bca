# src/weekly_report/tasks/classifier.py

"""
Task classifier & enricher.

Pipeline for one member:
1. accumulate every page of the status-filtered task query,
2. keep records assigned to the member (exact or case-insensitive name match),
3. fetch each kept task's content lines concurrently (one call per task),
4. enrich with schedule flags against the injected "now",
5. split into `current` and `recently_done` buckets.
"""

from __future__ import annotations

import logging
import math
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import date, datetime, timedelta
from typing import Iterable, Sequence

from ..core.ports import TaskSource
from ..errors import ExternalCallError
from .progress import DONE_MARKER, is_complete, round_half_up
from .task_models import (
    ALL_STATUSES,
    CURRENT_STATUSES,
    RawLine,
    RawTask,
    Task,
    TaskBuckets,
    TaskStatus,
)

logger = logging.getLogger(__name__)

RECENTLY_DONE_WINDOW = timedelta(days=7)

CONTENT_LINE_KINDS = frozenset({"to_do", "bulleted_list_item", "numbered_list_item", "paragraph"})

_SECONDS_PER_DAY = 86400.0


def matches_member(assignees: Iterable[str], member_name: str) -> bool:
    target = (member_name or "").strip()
    if not target:
        return False
    lowered = target.lower()
    return any(a == target or a.lower() == lowered for a in assignees if a)


def normalize_lines(lines: Iterable[RawLine]) -> tuple[str, ...]:
    """
    Keep list/paragraph lines only and make completion visible in the text.

    A checked to-do without a visible marker gets DONE_MARKER appended, so later
    stages only ever look at the text.
    """
    out: list[str] = []
    for line in lines:
        if line.kind not in CONTENT_LINE_KINDS:
            continue
        text = line.text or ""
        if not text.strip():
            continue
        if line.checked and not is_complete(text):
            text = f"{text} {DONE_MARKER}"
        out.append(text)
    return tuple(out)


def parse_when(value: str | None, now: datetime) -> datetime | None:
    """
    Parse an ISO date/datetime from the task source so it compares with `now`.

    Date-only values mean midnight in now's timezone.
    """
    if not value or not value.strip():
        return None
    s = value.strip()
    try:
        if len(s) == 10:
            d = date.fromisoformat(s)
            return datetime(d.year, d.month, d.day, tzinfo=now.tzinfo)
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        logger.debug("Unparseable date value: %r", value)
        return None

    if now.tzinfo is None and dt.tzinfo is not None:
        return dt.astimezone().replace(tzinfo=None)
    if now.tzinfo is not None and dt.tzinfo is None:
        return dt.replace(tzinfo=now.tzinfo)
    return dt


def _time_progress(start: datetime, end: datetime, now: datetime) -> int:
    span = (end - start).total_seconds()
    if span <= 0:
        return 100 if now >= end else 0
    pct = round_half_up(100.0 * (now - start).total_seconds() / span)
    return max(0, min(100, pct))


def enrich(raw: RawTask, subtasks: tuple[str, ...], *, member_name: str, now: datetime) -> Task | None:
    """Build the immutable Task for one record; None when the status is not tracked."""
    status = TaskStatus.from_source(raw.status)
    if status is None:
        return None

    start = parse_when(raw.start, now)
    # A single-day range comes through as start only.
    end = parse_when(raw.end, now) or start

    is_overdue = False
    days_overdue = 0
    days_remaining = 0
    time_progress = 0

    if end is not None:
        days_remaining = math.ceil((end - now).total_seconds() / _SECONDS_PER_DAY)
        if status != TaskStatus.DONE and days_remaining < 0:
            is_overdue = True
            days_overdue = abs(days_remaining)
        if start is not None:
            time_progress = _time_progress(start, end, now)

    modified = parse_when(raw.last_modified_at, now)
    if modified is None:
        modified = datetime.fromtimestamp(0, tz=now.tzinfo) if now.tzinfo else datetime.fromtimestamp(0)

    return Task(
        id=raw.id,
        title=raw.title,
        status=status,
        assignee=member_name,
        project=raw.project,
        last_modified_at=modified,
        subtasks=subtasks,
        start_date=start,
        end_date=end,
        is_overdue=is_overdue,
        days_overdue=days_overdue,
        days_remaining=days_remaining,
        time_progress=time_progress,
    )


def classify(tasks: Iterable[Task], now: datetime) -> TaskBuckets:
    buckets = TaskBuckets()
    cutoff = now - RECENTLY_DONE_WINDOW
    for task in tasks:
        if task.status in CURRENT_STATUSES:
            buckets.current.append(task)
        elif task.status == TaskStatus.DONE and task.last_modified_at >= cutoff:
            buckets.recently_done.append(task)
    return buckets


def collect_records(source: TaskSource, statuses: Sequence[str]) -> list[RawTask]:
    """Accumulate every page of the query before anything is classified."""
    records: list[RawTask] = []
    cursor: str | None = None
    seen_cursors: set[str] = set()
    while True:
        page = source.query_tasks(statuses, cursor)
        records.extend(page.records)
        cursor = page.next_cursor
        if not cursor or cursor in seen_cursors:
            break
        seen_cursors.add(cursor)
    return records


def fetch_contents(source: TaskSource, task_ids: Sequence[str], *, workers: int = 8) -> dict[str, tuple[str, ...]]:
    """
    Fetch and normalize content for every task id in parallel.

    A failed fetch only costs that task its subtask list.
    """
    out: dict[str, tuple[str, ...]] = {}
    if not task_ids:
        return out

    with ThreadPoolExecutor(max_workers=max(1, min(workers, len(task_ids)))) as pool:
        futures = {pool.submit(source.fetch_content, tid): tid for tid in task_ids}
        for fut in as_completed(futures):
            tid = futures[fut]
            try:
                out[tid] = normalize_lines(fut.result())
            except Exception:
                logger.warning("Content fetch failed task_id=%s; using no subtasks.", tid, exc_info=True)
                out[tid] = ()
    return out


def fetch_member_tasks(
    source: TaskSource,
    member_name: str,
    now: datetime,
    *,
    workers: int = 8,
) -> TaskBuckets:
    statuses = [s.value for s in ALL_STATUSES]
    try:
        records = collect_records(source, statuses)
    except ExternalCallError as e:
        raise ExternalCallError("Task query failed.", operation=e.operation or "query_tasks", member=member_name) from e

    mine = [r for r in records if matches_member(r.assignees, member_name)]
    logger.info("Tasks queried total=%d member=%s matched=%d", len(records), member_name, len(mine))

    contents = fetch_contents(source, [r.id for r in mine], workers=workers)

    tasks: list[Task] = []
    for raw in mine:
        task = enrich(raw, contents.get(raw.id, ()), member_name=member_name, now=now)
        if task is not None:
            tasks.append(task)

    buckets = classify(tasks, now)
    logger.info(
        "Tasks classified member=%s current=%d recently_done=%d",
        member_name,
        len(buckets.current),
        len(buckets.recently_done),
    )
    return buckets
