# src/weekly_report/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class TaskStatus(StrEnum):
    """
    Board column of a task in the work tracker.

    Values are the exact select-option names used by the task database.
    """

    NEXT_UP = "Next Up"
    IN_PROGRESS = "In Progress"
    REVIEW = "Review"
    DONE = "Done"

    @classmethod
    def from_source(cls, raw: str | None) -> TaskStatus | None:
        if not raw:
            return None
        try:
            return cls(raw.strip())
        except ValueError:
            return None


CURRENT_STATUSES: tuple[TaskStatus, ...] = (
    TaskStatus.NEXT_UP,
    TaskStatus.IN_PROGRESS,
    TaskStatus.REVIEW,
)
ALL_STATUSES: tuple[TaskStatus, ...] = (*CURRENT_STATUSES, TaskStatus.DONE)


@dataclass(frozen=True, slots=True)
class RawTask:
    """A task record as returned by the task source, before enrichment."""

    id: str
    title: str
    status: str
    assignees: tuple[str, ...]
    project: str
    last_modified_at: str
    start: str | None = None
    end: str | None = None


@dataclass(frozen=True, slots=True)
class RawLine:
    """One content line of a task page (kind is the source block type)."""

    kind: str
    text: str
    checked: bool | None = None


@dataclass(frozen=True, slots=True)
class TaskPage:
    records: list[RawTask]
    next_cursor: str | None = None


@dataclass(frozen=True, slots=True)
class Task:
    id: str
    title: str
    status: TaskStatus
    assignee: str
    project: str
    last_modified_at: datetime
    subtasks: tuple[str, ...]

    start_date: datetime | None = None
    end_date: datetime | None = None

    is_overdue: bool = False
    days_overdue: int = 0
    days_remaining: int = 0
    time_progress: int = 0


@dataclass(slots=True)
class TaskBuckets:
    current: list[Task] = field(default_factory=list)
    recently_done: list[Task] = field(default_factory=list)

    def all(self) -> list[Task]:
        return [*self.current, *self.recently_done]
