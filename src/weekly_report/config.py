# src/weekly_report/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- The member roster lives in a small JSON file next to the data dir.
"""

from __future__ import annotations

import json
import os
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from .core.members import Member
from .errors import ValidationError

ENV_PREFIX = "WEEKLY"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    parts = [p.strip() for p in raw.replace(",", " ").split() if p.strip()]
    return parts


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_datetime(name: str) -> Optional[datetime]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return datetime.fromisoformat(raw.strip().replace("Z", "+00:00"))
    except ValueError:
        return None


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths ----
    data_dir: Path
    members_path: Path
    ledger_backend: str
    ledger_db_path: Path

    # ---- Notion ----
    notion_api_key: Optional[str]
    notion_base_url: str
    notion_version: str
    notion_task_database_id: str
    notion_report_database_id: str

    # ---- LLM / OpenRouter ----
    openrouter_api_key: Optional[str]
    openrouter_base_url: str
    llm_models: List[str]
    extra_headers: Dict[str, str]

    # ---- Tuning ----
    fetch_workers: int

    # Pinned "now" for demos and dry runs; None means wall-clock time.
    fixed_now: Optional[datetime]

    @staticmethod
    def from_env() -> "Settings":
        app_name = _first_env(_k("APP_NAME"), default="weekly-report") or "weekly-report"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/weekly"))
        members_path = _env_path(_k("MEMBERS_PATH"), Path("config/members.json"))
        ledger_backend = _env(_k("LEDGER_BACKEND"), "sqlite").strip().lower() or "sqlite"
        ledger_db_path = _env_path(_k("LEDGER_DB_PATH"), data_dir / "ledger.sqlite3")

        notion_api_key = _first_env(_k("NOTION_API_KEY"), "NOTION_API_KEY", default=None)
        notion_base_url = _env(_k("NOTION_BASE_URL"), "https://api.notion.com/v1")
        notion_version = _env(_k("NOTION_VERSION"), "2022-06-28")
        notion_task_database_id = (
            _first_env(_k("NOTION_DATABASE_ID"), "NOTION_DATABASE_ID", default="") or ""
        ).strip()
        notion_report_database_id = (
            _first_env(_k("NOTION_REPORT_DATABASE_ID"), "NOTION_REPORT_DATABASE_ID", default="") or ""
        ).strip()

        openrouter_api_key = _first_env(_k("OPENROUTER_API_KEY"), "OPENROUTER_API_KEY", default=None)
        openrouter_base_url = _env(_k("OPENROUTER_BASE_URL"), "https://openrouter.ai/api/v1")
        llm_models = _env_list(
            _k("LLM_MODELS"),
            [
                "anthropic/claude-3.5-sonnet",
                "openai/gpt-4o-mini",
            ],
        )

        http_referer = _env(_k("HTTP_REFERER"), "https://example.com")
        extra_headers = {
            "HTTP-Referer": http_referer,
            "X-Title": app_name,
        }

        fetch_workers = max(1, _env_int(_k("FETCH_WORKERS"), 8))
        fixed_now = _env_datetime(_k("FIXED_NOW"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            members_path=members_path,
            ledger_backend=ledger_backend,
            ledger_db_path=ledger_db_path,
            notion_api_key=notion_api_key,
            notion_base_url=notion_base_url,
            notion_version=notion_version,
            notion_task_database_id=notion_task_database_id,
            notion_report_database_id=notion_report_database_id,
            openrouter_api_key=openrouter_api_key,
            openrouter_base_url=openrouter_base_url,
            llm_models=llm_models,
            extra_headers=extra_headers,
            fetch_workers=fetch_workers,
            fixed_now=fixed_now,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS


def load_members(path: str | Path) -> list[Member]:
    """
    Read the member roster.

    Expected shape: {"members": [{"id": "alice", "name": "Alice"}, ...]}.
    Order is preserved; it decides the order of regions on a new page.
    """
    p = Path(path)
    try:
        data = json.loads(p.read_text("utf-8"))
    except FileNotFoundError as e:
        raise ValidationError(f"Member roster not found: {p}") from e
    except json.JSONDecodeError as e:
        raise ValidationError(f"Member roster is not valid JSON: {p} ({e})") from e

    raw = data.get("members") if isinstance(data, dict) else None
    if not isinstance(raw, list):
        raise ValidationError(f"Member roster must contain a 'members' list: {p}")

    out: list[Member] = []
    seen: set[str] = set()
    for item in raw:
        if not isinstance(item, dict):
            continue
        member_id = str(item.get("id") or "").strip()
        name = str(item.get("name") or member_id).strip()
        if not member_id or member_id in seen:
            continue
        seen.add(member_id)
        out.append(Member(id=member_id, name=name))
    return out
