# src/weekly_report/report/renderer.py

"""
Report renderer (deterministic, no LLM).

Grammar produced here and accepted by report.parser:

    ### 1. Completed last week

    a. <title> ✅

    ### 2. This week's plan

    a. [glyph ]<title> — <bar> <pct>%[ (<done>/<total>pd)]
       i. <subtask line verbatim>

    ### 3. Schedule notes            (only when some task is flagged)

    - <title>: <condition>

The renderer reads no clock: all time-dependent values are already on the
enriched Tasks, so identical inputs always give byte-identical text.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from ..tasks.progress import (
    DONE_MARKER,
    Progress,
    calculate_progress,
    format_quantity,
    is_behind_schedule,
    progress_bar,
)
from ..tasks.task_models import Task, TaskBuckets

HEADING_MARKER = "### "
SUBITEM_INDENT = "   "
NOTE_BULLET = "- "
TITLE_SEPARATOR = " — "

SECTION_DONE = "Completed last week"
SECTION_PLAN = "This week's plan"
SECTION_NOTES = "Schedule notes"
SECTION_INFO = "Info sync / issues / learnings"

NONE_PLACEHOLDER = "None"
NO_PLAN_PLACEHOLDER = "No planned tasks"

# A current task is near its deadline when 0 < days_remaining <= NEAR_DEADLINE_DAYS.
NEAR_DEADLINE_DAYS = 2

_ROMAN = ("i", "ii", "iii", "iv", "v", "vi", "vii", "viii", "ix", "x")


class Flag(StrEnum):
    OVERDUE = "overdue"
    BEHIND_SCHEDULE = "behind_schedule"
    NEAR_DEADLINE = "near_deadline"


# Highest priority first; a task shows at most one glyph.
FLAG_GLYPHS: dict[Flag, str] = {
    Flag.OVERDUE: "🔴",
    Flag.BEHIND_SCHEDULE: "🟠",
    Flag.NEAR_DEADLINE: "⏳",
}


@dataclass(slots=True)
class ReportItem:
    text: str
    subitems: list[str] = field(default_factory=list)


@dataclass(slots=True)
class ReportSection:
    title: str
    items: list[ReportItem] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)  # placeholders / notes, no item label


@dataclass(slots=True)
class ReportDocument:
    sections: list[ReportSection] = field(default_factory=list)


def item_label(index: int) -> str:
    """a, b, ... z, then wraps; labels stay single letters."""
    return chr(ord("a") + index % 26)


def subitem_label(index: int) -> str:
    return _ROMAN[index] if index < len(_ROMAN) else str(index + 1)


def _one_line(text: str) -> str:
    return " ".join((text or "").splitlines()).strip()


def is_near_deadline(task: Task) -> bool:
    return task.end_date is not None and 0 < task.days_remaining <= NEAR_DEADLINE_DAYS


def task_flag(task: Task, progress: Progress) -> Flag | None:
    if task.is_overdue:
        return Flag.OVERDUE
    if is_behind_schedule(task, progress):
        return Flag.BEHIND_SCHEDULE
    if is_near_deadline(task):
        return Flag.NEAR_DEADLINE
    return None


def _deadline(task: Task) -> str:
    return task.end_date.strftime("%Y-%m-%d") if task.end_date else "?"


def flag_note(task: Task, progress: Progress, flag: Flag) -> str:
    title = _one_line(task.title)
    if flag == Flag.OVERDUE:
        return f"{title}: deadline {_deadline(task)}, overdue by {task.days_overdue} day(s)"
    if flag == Flag.BEHIND_SCHEDULE:
        gap = task.time_progress - progress.percent
        return (
            f"{title}: {task.time_progress}% of schedule elapsed, "
            f"{progress.percent}% complete ({gap} points behind)"
        )
    return f"{title}: due {_deadline(task)}, {task.days_remaining} day(s) remaining"


def plan_item_text(task: Task, progress: Progress, flag: Flag | None) -> str:
    glyph = f"{FLAG_GLYPHS[flag]} " if flag is not None else ""
    text = f"{glyph}{_one_line(task.title)}{TITLE_SEPARATOR}{progress_bar(progress.percent)} {progress.percent}%"
    if progress.quantity_based:
        text += f" ({format_quantity(progress.completed_qty)}/{format_quantity(progress.total_qty)}pd)"
    return text


def build_report(buckets: TaskBuckets) -> ReportDocument:
    done = ReportSection(title=SECTION_DONE)
    for task in buckets.recently_done:
        done.items.append(ReportItem(text=f"{_one_line(task.title)} {DONE_MARKER}"))
    if not done.items:
        done.lines.append(NONE_PLACEHOLDER)

    plan = ReportSection(title=SECTION_PLAN)
    notes = ReportSection(title=SECTION_NOTES)
    for task in buckets.current:
        progress = calculate_progress(task.subtasks)
        flag = task_flag(task, progress)
        plan.items.append(
            ReportItem(
                text=plan_item_text(task, progress, flag),
                subitems=[_one_line(s) for s in task.subtasks],
            )
        )
        if flag is not None:
            notes.lines.append(flag_note(task, progress, flag))
    if not plan.items:
        plan.lines.append(NO_PLAN_PLACEHOLDER)

    doc = ReportDocument(sections=[done, plan])
    if notes.lines:
        doc.sections.append(notes)
    return doc


def render_text(doc: ReportDocument) -> str:
    out: list[str] = []
    for n, section in enumerate(doc.sections, start=1):
        out.append(f"{HEADING_MARKER}{n}. {section.title}")
        out.append("")
        for i, item in enumerate(section.items):
            out.append(f"{item_label(i)}. {item.text}")
            for j, sub in enumerate(item.subitems):
                out.append(f"{SUBITEM_INDENT}{subitem_label(j)}. {sub}")
            if item.subitems:
                out.append("")
        for line in section.lines:
            out.append(f"{NOTE_BULLET}{line}" if section.title == SECTION_NOTES else line)
        if out[-1] != "":
            out.append("")
    return "\n".join(out)


def render_fallback(buckets: TaskBuckets) -> str:
    """The non-generative report: always available, always the same for the same tasks."""
    return render_text(build_report(buckets))


def count_sections(text: str) -> int:
    return sum(1 for line in text.splitlines() if line.startswith(HEADING_MARKER))
