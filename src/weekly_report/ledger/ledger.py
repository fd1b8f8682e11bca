# src/weekly_report/ledger/ledger.py

"""
Submission ledger.

Per-period record of who submitted (write-once) and who is on leave.
Reads that find a record for an older period see an empty one instead; the old
record stays in storage until the next write replaces it.

Concurrency: every mutation is load -> change one member -> save. Without a
compare-and-swap in the backend, two simultaneous submits for the same member
can both see "not submitted" before either saves. The duplicate check is a
best-effort guard, not a transaction.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.periods import period_key
from ..core.ports import Clock, LedgerBackend
from ..errors import ConflictError, ValidationError
from .ledger_models import LedgerRecord, Submission

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class MemberStatus:
    member_id: str
    submitted: bool
    submitted_at: str | None
    on_leave: bool


class SubmissionLedger:
    def __init__(self, backend: LedgerBackend, clock: Clock) -> None:
        self._backend = backend
        self._clock = clock

    def current_key(self) -> str:
        return period_key(self._clock.now())

    def read(self) -> LedgerRecord:
        key = self.current_key()
        stored = self._backend.load()
        if stored is None or stored.period_key != key:
            if stored is not None:
                logger.debug("Ledger record is stale (stored=%s current=%s).", stored.period_key, key)
            return LedgerRecord(period_key=key)
        return stored

    def status(self, member_id: str) -> MemberStatus:
        record = self.read()
        sub = record.submissions.get(member_id)
        return MemberStatus(
            member_id=member_id,
            submitted=bool(sub and sub.submitted),
            submitted_at=sub.submitted_at if sub else None,
            on_leave=bool(record.leaves.get(member_id, False)),
        )

    def ensure_not_submitted(self, member_id: str) -> None:
        if self.status(member_id).submitted:
            raise ConflictError(f"{member_id} has already submitted for {self.current_key()}.")

    def mark_submitted(self, member_id: str, *, document_id: str | None = None) -> Submission:
        if not member_id:
            raise ValidationError("member id is required")

        record = self.read()
        existing = record.submissions.get(member_id)
        if existing is not None and existing.submitted:
            raise ConflictError(f"{member_id} has already submitted for {record.period_key}.")

        entry = Submission(submitted=True, submitted_at=self._clock.now().isoformat(timespec="seconds"))
        record.submissions[member_id] = entry
        if document_id:
            record.document_id = document_id
        self._backend.save(record)
        logger.info("Submission recorded member=%s period=%s", member_id, record.period_key)
        return entry

    def set_leave(self, member_id: str, on_leave: bool) -> MemberStatus:
        """
        Toggle the leave flag.

        A member who already submitted cannot be marked on leave. Persistence
        failures propagate to the caller; nothing is retried or queued.
        """
        if not member_id:
            raise ValidationError("member id is required")

        record = self.read()
        sub = record.submissions.get(member_id)
        if on_leave and sub is not None and sub.submitted:
            raise ConflictError(f"{member_id} already submitted; cannot mark as on leave.")

        record.leaves[member_id] = bool(on_leave)
        self._backend.save(record)
        logger.info("Leave flag set member=%s on_leave=%s period=%s", member_id, on_leave, record.period_key)
        return MemberStatus(
            member_id=member_id,
            submitted=bool(sub and sub.submitted),
            submitted_at=sub.submitted_at if sub else None,
            on_leave=bool(on_leave),
        )

    def leaves(self) -> dict[str, bool]:
        return dict(self.read().leaves)

    def remember_document(self, document_id: str) -> None:
        record = self.read()
        if record.document_id == document_id:
            return
        record.document_id = document_id
        self._backend.save(record)
