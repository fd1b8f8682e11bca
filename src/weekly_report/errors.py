# src/weekly_report/errors.py

"""
Error taxonomy shared by every component.

- ValidationError: a required input is missing or malformed; nothing was attempted.
- NotFoundError: the member region or the period document does not exist.
- ExternalCallError: a task-source, document-store or rewrite call failed.
- PartialReplaceError: region clearing stopped halfway; the region is partially empty.
- ConflictError: the ledger refused a state change (e.g. a second submit).
"""

from __future__ import annotations


class WeeklyReportError(Exception):
    """Base class for errors surfaced to callers (CLI, workflows)."""


class ValidationError(WeeklyReportError):
    pass


class NotFoundError(WeeklyReportError):
    pass


class ConflictError(WeeklyReportError):
    pass


class ExternalCallError(WeeklyReportError):
    """
    A blocking call to an external collaborator failed.

    `operation` names the call (e.g. "delete_node"), `member` the region owner
    when the call was made on behalf of one member.
    """

    def __init__(self, message: str, *, operation: str = "", member: str | None = None) -> None:
        self.operation = operation
        self.member = member
        parts = [message]
        if operation:
            parts.append(f"operation={operation}")
        if member:
            parts.append(f"member={member}")
        super().__init__(" ".join(parts) if len(parts) > 1 else message)


class PartialReplaceError(ExternalCallError):
    """Deleting the old region content failed after `removed` nodes; `remaining` are still there."""

    def __init__(self, *, member: str, removed: int, remaining: int, operation: str = "delete_node") -> None:
        self.removed = removed
        self.remaining = remaining
        super().__init__(
            f"Region clear stopped: removed {removed} node(s), {remaining} remaining.",
            operation=operation,
            member=member,
        )
