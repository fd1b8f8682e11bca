# src/weekly_report/core/clock.py

"""
Reference clock.

Every date computation (schedule flags, "recently done" window, period key,
submission timestamps) reads the current moment from one injected Clock.
"""

from __future__ import annotations

from datetime import datetime


class SystemClock:
    """Wall-clock time in the local timezone."""

    def now(self) -> datetime:
        return datetime.now().astimezone()


class FixedClock:
    """A clock pinned to one instant (tests, dry runs, WEEKLY_FIXED_NOW)."""

    def __init__(self, instant: datetime) -> None:
        self._instant = instant

    def now(self) -> datetime:
        return self._instant

    def set(self, instant: datetime) -> None:
        self._instant = instant
