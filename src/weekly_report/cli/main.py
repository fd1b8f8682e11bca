# src/weekly_report/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then either runs one slash command
given on the command line or starts the console REPL.

    weekly-report /submit alice "Need review on PR 42"
    weekly-report
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime

from ..cli.bootstrap import create_initial_state
from ..cli.commands import registry as command_registry
from ..config import get_settings
from ..core.state import AppState
from ..errors import WeeklyReportError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _emit(text: str) -> None:
    # Immediate user-visible feedback for long operations (fetches, publishing).
    print(f"[{_ts_local()}] {text}", flush=True)


def run_console_loop(state: AppState) -> None:
    logger.info("Console started (members=%d).", len(state.members))
    _emit("Type a command. Use /help for commands. Use /exit to quit.\n")

    while True:
        try:
            line = input(">>> ").strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not line:
            continue

        if line.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = command_registry.handle(state, line, emit=_emit)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Commands start with '/'. Use /help to list them."
        print(f"[{_ts_local()}] {reply}\n")

    logger.info("Console finished.")


def run_once(state: AppState, argv: list[str]) -> int:
    line = " ".join(argv)
    if not line.startswith("/"):
        line = "/" + line
    reply = command_registry.handle(state, line, emit=_emit)
    print(reply if reply is not None else "Not a command.")
    failed = reply is None or reply.split(" ", 1)[0].endswith("Error]")
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    argv = list(sys.argv[1:] if argv is None else argv)
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/weekly")
    log_file = setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s (log file %s)...", getattr(settings, "app_name", "weekly-report"), log_file)

    try:
        state = create_initial_state(settings=settings)
    except (ValueError, WeeklyReportError) as e:
        logger.error("Startup failed: %s", e)
        print(f"Startup failed: {e}", file=sys.stderr)
        return 2

    if argv:
        return run_once(state, argv)

    run_console_loop(state)
    logger.info("Bye.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
