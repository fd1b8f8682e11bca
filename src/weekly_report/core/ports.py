# src/weekly_report/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the work tracker, document store, LLM provider and ledger storage
swappable and makes testing easier. Every call is blocking from the caller's
side; implementations raise ExternalCallError when the remote side fails.
"""

from datetime import datetime
from typing import Protocol, Sequence

from ..ledger.ledger_models import LedgerRecord
from ..report.blocks import Block, DocumentNode
from ..tasks.task_models import RawLine, TaskPage


class Clock(Protocol):
    def now(self) -> datetime: ...


class TaskSource(Protocol):
    """Work tracker: paginated task query + per-task content lines."""

    def query_tasks(self, statuses: Sequence[str], cursor: str | None = None) -> TaskPage: ...

    def fetch_content(self, task_id: str) -> list[RawLine]: ...


class RewriteClient(Protocol):
    """Generative rewrite step. Returns report text or raises ExternalCallError."""

    def rewrite(self, prompt: str) -> str: ...


class DocumentStore(Protocol):
    """Shared hierarchical document store (one document per period)."""

    def find_document(self, period_key: str) -> str | None: ...

    def create_document(self, period_key: str, children: list[Block]) -> str: ...

    def list_top_level_nodes(self, document_id: str) -> list[DocumentNode]: ...

    def delete_node(self, node_id: str) -> None: ...

    def append_nodes(self, document_id: str, anchor_node_id: str | None, nodes: list[Block]) -> None:
        """Insert `nodes` right after `anchor_node_id`, or at the end when it is None."""
        ...


class LedgerBackend(Protocol):
    """Load/save contract for the single ledger record."""

    def load(self) -> LedgerRecord | None: ...

    def save(self, record: LedgerRecord) -> None: ...
