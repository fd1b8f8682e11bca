# src/weekly_report/tasks/progress.py

"""
Progress math for a task's subtask lines.

Quantity tokens:
- "1pd", "0.5 pd", "3天"        -> person-days
- "4h", "2 hrs", "6小时"         -> hours, converted with HOURS_PER_DAY

A number glued to a word or version ("v2pd", "1.2.3h") is not a quantity.

A line is complete when it carries a completion marker. With any quantity in
play the percentage is work-weighted; otherwise it is a plain count over
enumerable lines (quantity-bearing, or numbered like "1. " or "2、").
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass
from typing import Iterable

from .task_models import Task, TaskStatus

DONE_MARKER = "✅"
COMPLETION_MARKERS: tuple[str, ...] = (DONE_MARKER, "✓", "✔")

HOURS_PER_DAY = 8

# A task is behind schedule when completion trails elapsed time by more than this.
BEHIND_SCHEDULE_SLACK = 10

BAR_CELLS = 10
BAR_FILLED = "█"
BAR_EMPTY = "░"

_DAY_RE = re.compile(r"(?<![A-Za-z0-9_.])(\d+(?:\.\d+)?)\s*(?:pd|天)(?![a-z])", re.IGNORECASE)
_HOUR_RE = re.compile(r"(?<![A-Za-z0-9_.])(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h|小时)(?![a-z])", re.IGNORECASE)
_NUMBERED_RE = re.compile(r"^\s*\d+\s*(?:[.)](?=\s|$)|、)")


@dataclass(frozen=True, slots=True)
class Progress:
    percent: int
    quantity_based: bool = False
    completed_qty: float = 0.0
    total_qty: float = 0.0
    completed_count: int = 0
    total_count: int = 0


def round_half_up(x: float) -> int:
    return int(math.floor(x + 0.5))


def is_complete(line: str) -> bool:
    return any(m in line for m in COMPLETION_MARKERS)


def parse_quantity(line: str) -> float:
    """Work size of a line in person-days, 0.0 when it carries no quantity token."""
    m = _DAY_RE.search(line)
    if m:
        return float(m.group(1))
    m = _HOUR_RE.search(line)
    if m:
        return float(m.group(1)) / HOURS_PER_DAY
    return 0.0


def _percent(done: float, total: float) -> int:
    pct = round_half_up(100.0 * done / total)
    pct = max(0, min(100, pct))
    # Never show 100% while some work is still open.
    if pct == 100 and done < total:
        pct = 99
    return pct


def calculate_progress(lines: Iterable[str]) -> Progress:
    lines = list(lines)

    total_qty = 0.0
    done_qty = 0.0
    total_count = 0
    done_count = 0

    for line in lines:
        qty = parse_quantity(line)
        complete = is_complete(line)
        if qty > 0:
            total_qty += qty
            if complete:
                done_qty += qty
        if qty > 0 or _NUMBERED_RE.match(line):
            total_count += 1
            if complete:
                done_count += 1

    if total_qty > 0:
        return Progress(
            percent=_percent(done_qty, total_qty),
            quantity_based=True,
            completed_qty=done_qty,
            total_qty=total_qty,
            completed_count=done_count,
            total_count=total_count,
        )

    if total_count > 0:
        return Progress(
            percent=_percent(done_count, total_count),
            completed_count=done_count,
            total_count=total_count,
        )

    return Progress(percent=0)


def progress_bar(percent: int) -> str:
    filled = max(0, min(BAR_CELLS, round_half_up(percent / 10)))
    return BAR_FILLED * filled + BAR_EMPTY * (BAR_CELLS - filled)


def is_behind_schedule(task: Task, progress: Progress) -> bool:
    if task.status == TaskStatus.DONE:
        return False
    return progress.percent < task.time_progress - BEHIND_SCHEDULE_SLACK


def format_quantity(value: float) -> str:
    """1.0 -> "1", 0.5 -> "0.5", 1/3 -> "0.33"."""
    text = f"{value:.2f}".rstrip("0").rstrip(".")
    return text or "0"
