# src/weekly_report/logging_setup.py

"""
Process-wide logging for the CLI.

Two handlers on the root logger:
- stderr, filtered by origin (see ConsoleFilter)
- weekly.log under the data dir, everything from DEBUG

Command replies go to stdout and log lines to stderr.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

LOG_FILE_NAME = "weekly.log"

APP_LOGGER_PREFIX = "weekly_report."
NOTION_LOGGER_PREFIX = "weekly_report.notion."

# Transport and SDK loggers that narrate each request.
QUIET_LIBRARIES: tuple[str, ...] = ("httpx", "httpcore", "openai")

_FORMAT = "%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class ConsoleFilter(logging.Filter):
    """Per-origin minimum level for the console handler."""

    def __init__(self, notion_level: int = logging.WARNING, foreign_level: int = logging.ERROR) -> None:
        super().__init__()
        self.notion_level = notion_level
        self.foreign_level = foreign_level

    def filter(self, record: logging.LogRecord) -> bool:
        name = record.name
        if name.startswith(NOTION_LOGGER_PREFIX):
            return record.levelno >= self.notion_level
        if name.startswith(APP_LOGGER_PREFIX):
            return True
        # py.warnings and third-party libraries
        return record.levelno >= self.foreign_level


def setup_logging(
    *,
    log_dir: str | Path = ".local/weekly",
    console_level: int = logging.INFO,
    file_level: int = logging.DEBUG,
) -> Path:
    """
    Install the console and file handlers, replacing any already on the root logger.

    Returns the path of the log file.
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / LOG_FILE_NAME

    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()

    fmt = logging.Formatter(fmt=_FORMAT, datefmt=_DATE_FORMAT)

    console = logging.StreamHandler(sys.stderr)
    console.setLevel(console_level)
    console.setFormatter(fmt)
    console.addFilter(ConsoleFilter())
    root.addHandler(console)

    file_handler = logging.FileHandler(str(log_file), encoding="utf-8")
    file_handler.setLevel(file_level)
    file_handler.setFormatter(fmt)
    root.addHandler(file_handler)

    for name in QUIET_LIBRARIES:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.captureWarnings(True)
    return log_file
