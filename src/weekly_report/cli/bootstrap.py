# src/weekly_report/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- reads the member roster,
- wires concrete implementations into AppState (clock/Notion/LLM/ledger).
"""

from __future__ import annotations

import logging

from ..config import get_settings, load_members
from ..core.clock import FixedClock, SystemClock
from ..core.ports import Clock, LedgerBackend, RewriteClient
from ..core.state import AppState
from ..ledger.ledger import SubmissionLedger
from ..ledger.ledger_store import InMemoryLedgerBackend, SqliteLedgerBackend
from ..llm.client import OpenRouterRewriteClient
from ..notion.client import NotionClient, NotionDocumentStore, NotionTaskSource

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.ledger_db_path.parent.mkdir(parents=True, exist_ok=True)


def build_clock(settings) -> Clock:
    fixed = getattr(settings, "fixed_now", None)
    if fixed is not None:
        logger.info("Using fixed clock: %s", fixed.isoformat())
        return FixedClock(fixed)
    return SystemClock()


def build_ledger_backend(settings) -> LedgerBackend:
    kind = str(getattr(settings, "ledger_backend", "sqlite")).lower()
    if kind == "memory":
        return InMemoryLedgerBackend()
    if kind != "sqlite":
        logger.warning("Unknown ledger backend %r, using sqlite.", kind)
    return SqliteLedgerBackend(settings.ledger_db_path)


def build_rewriter(settings) -> RewriteClient | None:
    try:
        return OpenRouterRewriteClient(settings)
    except ValueError as e:
        # Reports are still produced by the deterministic renderer.
        logger.info("Rewrite disabled: %s", e)
        return None


def create_initial_state(*, settings=None) -> AppState:
    """
    Create AppState from the provided settings.

    If settings is None, falls back to get_settings(). Missing Notion
    configuration is an error here: nothing useful can run without it.
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    notion = NotionClient(
        settings.notion_api_key or "",
        base_url=settings.notion_base_url,
        notion_version=settings.notion_version,
    )
    clock = build_clock(settings)

    state = AppState(
        settings=settings,
        clock=clock,
        task_source=NotionTaskSource(notion, settings.notion_task_database_id),
        doc_store=NotionDocumentStore(notion, settings.notion_report_database_id),
        ledger=SubmissionLedger(build_ledger_backend(settings), clock),
        rewriter=build_rewriter(settings),
        members=load_members(settings.members_path),
    )
    logger.info(
        "State ready: members=%d ledger=%s rewrite=%s",
        len(state.members),
        getattr(settings, "ledger_backend", "sqlite"),
        "on" if state.rewriter is not None else "off",
    )
    return state
