# src/weekly_report/ledger/ledger_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True, slots=True)
class Submission:
    submitted: bool
    submitted_at: str  # ISO-8601, set once


@dataclass(slots=True)
class LedgerRecord:
    """
    Submission/leave state for one reporting period.

    Only one record is stored at a time; a record for an older period is
    replaced wholesale by the first write of the new period.
    """

    period_key: str
    submissions: dict[str, Submission] = field(default_factory=dict)
    leaves: dict[str, bool] = field(default_factory=dict)
    document_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "period_key": self.period_key,
            "document_id": self.document_id,
            "submissions": {
                k: {"submitted": v.submitted, "submitted_at": v.submitted_at}
                for k, v in self.submissions.items()
            },
            "leaves": dict(self.leaves),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> LedgerRecord:
        subs_raw = data.get("submissions") or {}
        submissions: dict[str, Submission] = {}
        if isinstance(subs_raw, dict):
            for k, v in subs_raw.items():
                if not isinstance(v, dict):
                    continue
                submissions[str(k)] = Submission(
                    submitted=bool(v.get("submitted", False)),
                    submitted_at=str(v.get("submitted_at") or ""),
                )
        leaves_raw = data.get("leaves") or {}
        leaves = {str(k): bool(v) for k, v in leaves_raw.items()} if isinstance(leaves_raw, dict) else {}
        doc_id = data.get("document_id")
        return cls(
            period_key=str(data.get("period_key") or ""),
            submissions=submissions,
            leaves=leaves,
            document_id=str(doc_id) if doc_id else None,
        )
