# src/weekly_report/core/periods.py

from __future__ import annotations

from datetime import date, datetime, timedelta


def week_monday(now: datetime) -> date:
    """Monday of the week containing `now`; a Sunday belongs to the week before it."""
    d = now.date()
    return d - timedelta(days=d.weekday())


def period_key(now: datetime) -> str:
    """Canonical period key: ISO date of the current week's Monday."""
    return week_monday(now).isoformat()


def previous_week_range(now: datetime) -> str:
    """Human label for the week being reported on, e.g. "12/15 ~ 12/21"."""
    last_monday = week_monday(now) - timedelta(days=7)
    last_sunday = last_monday + timedelta(days=6)
    return f"{last_monday.month}/{last_monday.day} ~ {last_sunday.month}/{last_sunday.day}"
