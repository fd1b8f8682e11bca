# src/weekly_report/cli/commands.py

from __future__ import annotations

import contextlib
import inspect
import logging
from collections.abc import Callable
from typing import cast

from .. import workflows
from ..core.state import AppState
from ..errors import WeeklyReportError
from ..tasks.progress import calculate_progress, progress_bar
from ..tasks.task_models import Task

CommandEmitter = Callable[[str], None]
CommandHandler2 = Callable[[AppState, list[str]], str]
CommandHandler3 = Callable[[AppState, list[str], CommandEmitter | None], str]
CommandHandler = CommandHandler2 | CommandHandler3

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console and one-shot runs (/help, /submit, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            nparams = len(inspect.signature(handler).parameters)
        except Exception:
            nparams = 3

        try:
            if nparams >= 3:
                h3 = cast(CommandHandler3, handler)
                return h3(state, args, emit)
            h2 = cast(CommandHandler2, handler)
            return h2(state, args)
        except WeeklyReportError as e:
            logger.info("Command /%s failed: %s", name, e)
            return f"[{e.__class__.__name__}] {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


def _say(emit: CommandEmitter | None, text: str) -> None:
    if emit:
        with contextlib.suppress(Exception):
            emit(text)


def cmd_help(state: AppState, args: list[str]) -> str:
    return registry.build_help()


def cmd_status(state: AppState, args: list[str]) -> str:
    s = state.settings
    models = ", ".join(list(getattr(s, "llm_models", []) or []))
    rewrite = f"ON ({models})" if state.rewriter is not None else "OFF (deterministic renderer only)"
    return (
        "Status:\n"
        f"  Period: {state.ledger.current_key()}\n"
        f"  Members: {len(state.members)}\n"
        f"  Ledger: {getattr(s, 'ledger_backend', 'sqlite')}\n"
        f"  Rewrite: {rewrite}"
    )


def cmd_members(state: AppState, args: list[str]) -> str:
    view = workflows.list_members(state)
    if not view.members:
        return "No members configured."
    lines = [f"Week of {view.period_key} (reporting on {view.week_range}):"]
    for row in view.members:
        if row.submitted:
            mark = f"submitted {row.submitted_at}"
        elif row.on_leave:
            mark = "on leave"
        else:
            mark = "pending"
        lines.append(f"  {row.id} ({row.name}): {mark}")
    return "\n".join(lines)


def _task_line(task: Task) -> str:
    pct = calculate_progress(task.subtasks).percent
    due = task.end_date.strftime("%Y-%m-%d") if task.end_date else "-"
    flag = " OVERDUE" if task.is_overdue else ""
    return f"  [{task.status}] {task.title}  {progress_bar(pct)} {pct}%  due {due}{flag}"


def cmd_tasks(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /tasks <member>  -> current and recently finished tasks
    """
    if not args:
        return "Usage: /tasks <member>"
    _say(emit, f"Fetching tasks for {args[0]}...")
    buckets = workflows.fetch_tasks(state, args[0])
    lines = [f"Current ({len(buckets.current)}):"]
    lines.extend(_task_line(t) for t in buckets.current)
    lines.append(f"Done in the last 7 days ({len(buckets.recently_done)}):")
    lines.extend(_task_line(t) for t in buckets.recently_done)
    return "\n".join(lines)


def cmd_report(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /report <member>  -> preview the generated report (nothing is published)
    """
    if not args:
        return "Usage: /report <member>"
    _say(emit, f"Generating report for {args[0]}...")
    report = workflows.generate(state, args[0])
    source = "draft" if report.used_fallback else "rewritten"
    return f"({source})\n{report.text}"


def cmd_submit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /submit <member> [extra info...]  -> generate, then publish into this week's page
    """
    if not args:
        return "Usage: /submit <member> [extra info]"
    member = workflows.resolve_member(state, args[0])
    state.ledger.ensure_not_submitted(member.id)

    _say(emit, f"Generating report for {member.name}...")
    report = workflows.generate(state, member.id)
    extra = " ".join(args[1:]) or None

    _say(emit, "Publishing...")
    result = workflows.submit_report(state, member.id, report.text, extra)
    created = " (new page)" if result.document_created else ""
    return (
        f"Submitted {member.name} at {result.submission.submitted_at}{created}. "
        f"Region: removed {result.replaced.removed}, inserted {result.replaced.inserted}."
    )


def cmd_leave(state: AppState, args: list[str]) -> str:
    """
    /leave <member>         -> show leave flag
    /leave <member> on|off  -> set it
    """
    if not args:
        return "Usage: /leave <member> on|off"
    member = workflows.resolve_member(state, args[0])
    if len(args) == 1:
        on = state.ledger.status(member.id).on_leave
        return f"{member.name} is {'on leave' if on else 'not on leave'}."

    arg = args[1].lower()
    if arg in ("on", "1", "true", "yes"):
        workflows.set_leave(state, member.id, True)
        return f"{member.name} marked on leave."
    if arg in ("off", "0", "false", "no"):
        workflows.set_leave(state, member.id, False)
        return f"{member.name} no longer on leave."
    return "Usage: /leave <member> on|off"


def cmd_sync_leave(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    """
    /sync-leave             -> write "(on leave)" for everyone flagged in the ledger
    /sync-leave <m1> <m2>   -> for the listed members
    """
    _say(emit, "Syncing leave placeholders...")
    result = workflows.sync_leave(state, args or None)
    lines = [f"Leave sync: {len(result.synced)} synced, {len(result.skipped)} skipped."]
    if result.document_created:
        lines.append("  Created this week's page.")
    for member_id in result.skipped:
        lines.append(f"  skipped {member_id} (already submitted)")
    for member_id, err in result.failures.items():
        lines.append(f"  failed {member_id}: {err}")
    return "\n".join(lines)


def cmd_summary(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    _say(emit, "Collecting tasks for every member...")
    result = workflows.team_summary(state)
    lines = [f"Team summary appended ({result.appended} blocks)."]
    for member_id, err in result.failures.items():
        lines.append(f"  no tasks for {member_id}: {err}")
    return "\n".join(lines)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show period, roster size, ledger and rewrite mode.")
registry.register("members", cmd_members, help_text="Roster with this week's submission/leave state.")
registry.register("tasks", cmd_tasks, help_text="Show a member's tasks: /tasks <member>.")
registry.register("report", cmd_report, help_text="Preview a member's report: /report <member>.")
registry.register("submit", cmd_submit, help_text="Generate and publish: /submit <member> [extra info].")
registry.register("leave", cmd_leave, help_text="Leave flag: /leave <member> on|off.")
registry.register(
    "sync-leave", cmd_sync_leave, help_text="Write leave placeholders: /sync-leave [member ...]."
)
registry.register("summary", cmd_summary, help_text="Append the team task overview to this week's page.")
