# src/weekly_report/ledger/ledger_store.py

from __future__ import annotations

import contextlib
import json
import logging
import sqlite3
import time
from pathlib import Path

from ..errors import ExternalCallError
from .ledger_models import LedgerRecord

logger = logging.getLogger(__name__)


class SqliteLedgerBackend:
    """
    SQLite ledger backend: one row holds the whole current-period record.

    The schema is intentionally simple and migration-safe:
    - create table if missing
    - use PRAGMA table_info to detect missing columns
    - add columns with ALTER TABLE only when needed

    Thread-safety:
    - each method opens its own SQLite connection
    """

    def __init__(self, db_path: str | Path = "ledger.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        logger.info("Ledger backend ready db=%s", self._db_path)

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        conn.row_factory = sqlite3.Row
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            cur = conn.cursor()
            cur.execute(
                """
                CREATE TABLE IF NOT EXISTS ledger (
                    slot INTEGER PRIMARY KEY CHECK (slot = 1),
                    period_key TEXT NOT NULL,
                    document_id TEXT,
                    payload TEXT NOT NULL DEFAULT '{}',
                    updated_at REAL NOT NULL DEFAULT 0
                )
                """
            )

            cur.execute("PRAGMA table_info(ledger)")
            cols = {row["name"] for row in cur.fetchall()}

            def add_col(name: str, decl: str) -> None:
                if name in cols:
                    return
                cur.execute(f"ALTER TABLE ledger ADD COLUMN {name} {decl}")
                logger.info("Ledger migration: added column %s", name)

            add_col("document_id", "TEXT")
            add_col("payload", "TEXT NOT NULL DEFAULT '{}'")
            add_col("updated_at", "REAL NOT NULL DEFAULT 0")

            conn.commit()
        finally:
            conn.close()

    # ---- LedgerBackend ----

    def load(self) -> LedgerRecord | None:
        try:
            conn = self._get_conn()
            try:
                row = conn.execute(
                    "SELECT period_key, document_id, payload FROM ledger WHERE slot = 1"
                ).fetchone()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise ExternalCallError(f"Ledger read failed: {e}", operation="ledger_load") from e

        if row is None:
            return None

        # A corrupt record is an error, never an empty record.
        try:
            payload = json.loads(row["payload"] or "{}")
        except json.JSONDecodeError as e:
            logger.error("Ledger payload is not valid JSON period=%s", row["period_key"])
            raise ExternalCallError("Ledger record is corrupt.", operation="ledger_load") from e
        if not isinstance(payload, dict):
            logger.error("Ledger payload is not an object period=%s", row["period_key"])
            raise ExternalCallError("Ledger record is corrupt.", operation="ledger_load")

        payload["period_key"] = row["period_key"]
        payload["document_id"] = row["document_id"]
        return LedgerRecord.from_dict(payload)

    def save(self, record: LedgerRecord) -> None:
        data = record.to_dict()
        payload = json.dumps(
            {"submissions": data["submissions"], "leaves": data["leaves"]},
            ensure_ascii=False,
            sort_keys=True,
        )
        try:
            conn = self._get_conn()
            try:
                conn.execute(
                    """
                    INSERT INTO ledger(slot, period_key, document_id, payload, updated_at)
                    VALUES (1, ?, ?, ?, ?)
                    ON CONFLICT(slot) DO UPDATE SET
                        period_key = excluded.period_key,
                        document_id = excluded.document_id,
                        payload = excluded.payload,
                        updated_at = excluded.updated_at
                    """,
                    (record.period_key, record.document_id, payload, time.time()),
                )
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error as e:
            raise ExternalCallError(f"Ledger write failed: {e}", operation="ledger_save") from e
        logger.debug("Ledger saved period=%s", record.period_key)


class InMemoryLedgerBackend:
    """Process-memory backend; state is lost on restart."""

    def __init__(self) -> None:
        self._data: dict | None = None

    def load(self) -> LedgerRecord | None:
        if self._data is None:
            return None
        # Hand out a copy so callers never mutate stored state in place.
        return LedgerRecord.from_dict(json.loads(json.dumps(self._data)))

    def save(self, record: LedgerRecord) -> None:
        self._data = json.loads(json.dumps(record.to_dict()))
