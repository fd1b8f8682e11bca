# tests/test_logging_setup.py

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from weekly_report.logging_setup import LOG_FILE_NAME, QUIET_LIBRARIES, ConsoleFilter, setup_logging


def _record(name: str, level: int) -> logging.LogRecord:
    return logging.LogRecord(name, level, __file__, 1, "msg", None, None)


def test_console_filter_by_origin() -> None:
    f = ConsoleFilter()

    assert f.filter(_record("weekly_report.workflows", logging.DEBUG)) is True
    assert f.filter(_record("weekly_report.notion.client", logging.INFO)) is False
    assert f.filter(_record("weekly_report.notion.client", logging.WARNING)) is True
    assert f.filter(_record("httpx", logging.WARNING)) is False
    assert f.filter(_record("py.warnings", logging.WARNING)) is False
    assert f.filter(_record("openai", logging.ERROR)) is True


@pytest.fixture()
def restore_root_logging():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    library_levels = {name: logging.getLogger(name).level for name in QUIET_LIBRARIES}
    yield
    for h in list(root.handlers):
        root.removeHandler(h)
        h.close()
    for h in handlers:
        root.addHandler(h)
    root.setLevel(level)
    for name, lvl in library_levels.items():
        logging.getLogger(name).setLevel(lvl)
    logging.captureWarnings(False)


def test_setup_logging_writes_file_and_quiets_libraries(tmp_path: Path, restore_root_logging) -> None:
    log_file = setup_logging(log_dir=tmp_path / "logs")

    assert log_file == tmp_path / "logs" / LOG_FILE_NAME
    logging.getLogger("weekly_report.notion.client").debug("walked page p-1")
    for h in logging.getLogger().handlers:
        h.flush()

    assert "walked page p-1" in log_file.read_text("utf-8")
    assert all(logging.getLogger(name).level == logging.WARNING for name in QUIET_LIBRARIES)
