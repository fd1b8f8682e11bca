# src/weekly_report/core/members.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable


@dataclass(frozen=True, slots=True)
class Member:
    id: str
    name: str  # region heading label + assignee name in the task source


def find_member(members: Iterable[Member], key: str) -> Member | None:
    """Look a member up by id first, then by display name."""
    key = (key or "").strip()
    if not key:
        return None
    members = list(members)
    for m in members:
        if m.id == key:
            return m
    for m in members:
        if m.name == key or m.name.lower() == key.lower():
            return m
    return None
