# src/weekly_report/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..ledger.ledger import SubmissionLedger
from .members import Member
from .ports import Clock, DocumentStore, RewriteClient, TaskSource


@dataclass
class AppState:
    # Settings travel with the state so workflows never read config globals.
    settings: Any

    clock: Clock
    task_source: TaskSource
    doc_store: DocumentStore
    ledger: SubmissionLedger
    rewriter: RewriteClient | None = None

    members: list[Member] = field(default_factory=list)
