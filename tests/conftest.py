# tests/conftest.py

from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from types import SimpleNamespace

import pytest

from weekly_report.core.clock import FixedClock
from weekly_report.core.members import Member
from weekly_report.core.state import AppState
from weekly_report.ledger.ledger import SubmissionLedger
from weekly_report.ledger.ledger_store import InMemoryLedgerBackend

from .fakes import FakeTaskSource, InMemoryDocumentStore

# Monday of the week whose period key is 2025-12-22.
NOW = datetime(2025, 12, 22, 10, 0, tzinfo=timezone.utc)


@pytest.fixture()
def clock() -> FixedClock:
    return FixedClock(NOW)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and workflows.

    A SimpleNamespace rather than the real config keeps unit tests isolated
    from the developer's environment and .env.
    """
    return SimpleNamespace(
        app_name="weekly-test",
        data_dir=tmp_path,
        ledger_backend="memory",
        ledger_db_path=tmp_path / "ledger.sqlite3",
        llm_models=[],
        fetch_workers=4,
        fixed_now=NOW,
    )


@pytest.fixture()
def members() -> list[Member]:
    return [
        Member(id="alice", name="Alice"),
        Member(id="bob", name="Bob"),
        Member(id="chen", name="Chen Wei"),
    ]


@pytest.fixture()
def task_source() -> FakeTaskSource:
    return FakeTaskSource()


@pytest.fixture()
def doc_store() -> InMemoryDocumentStore:
    return InMemoryDocumentStore()


@pytest.fixture()
def state(settings, clock, members, task_source, doc_store) -> AppState:
    """AppState wired with deterministic fakes and an in-memory ledger."""
    return AppState(
        settings=settings,
        clock=clock,
        task_source=task_source,
        doc_store=doc_store,
        ledger=SubmissionLedger(InMemoryLedgerBackend(), clock),
        rewriter=None,
        members=members,
    )
