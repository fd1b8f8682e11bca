# src/weekly_report/report/parser.py

"""
Report text -> block tree.

Single pass over non-empty lines with an explicit state machine:

    AWAITING_SECTION --"### N. Title"--> IN_SECTION --"x. text"--> IN_ITEM
          ^                                  ^                       |
          +------------- (never) ------------+----"### ..."----------+

- "### N. Title"        opens a grouping (bold numbered item, "N." stripped)
- "x. text" (column 0)  opens an item (bullet) inside the grouping
- "ii." / "2." sub-labels (any indent) and other indented lines become
  leaf bullets of the open item, label stripped; a column-0 single letter
  such as "i." always opens a new item
- any other line in a grouping with no open item becomes a leaf of the grouping

Groupings and items only close when the next marker arrives or input ends.
"""

from __future__ import annotations

import logging
import re
from enum import StrEnum

from .blocks import Block, bullet, numbered, paragraph
from .renderer import NOTE_BULLET

logger = logging.getLogger(__name__)

_SECTION_RE = re.compile(r"^###\s+(.+)$")
_SECTION_NUMBER_RE = re.compile(r"^\d+\.\s*")
_ITEM_RE = re.compile(r"^([a-z])\.\s*(.+)$")
_SUBITEM_RE = re.compile(r"^(?:\s+[ivx]+|\s*(?:[ivx]{2,}|\d+))\.\s*(.+)$")
_INDENTED_RE = re.compile(r"^\s{3,}(.+)$")


class ParserState(StrEnum):
    AWAITING_SECTION = "awaiting_section"
    IN_SECTION = "in_section"
    IN_ITEM = "in_item"


def _strip_note_bullet(text: str) -> str:
    return text[len(NOTE_BULLET):].strip() if text.startswith(NOTE_BULLET) else text


def parse_report(text: str) -> list[Block]:
    lines = [line.rstrip() for line in (text or "").splitlines() if line.strip()]
    if not lines:
        return []

    # Short states such as "(on leave)" are kept as one opaque paragraph.
    if len(lines) == 1 and not _SECTION_RE.match(lines[0]):
        return [paragraph(lines[0].strip())]

    # Free text with no section at all: one paragraph per line rather than nothing.
    if not any(_SECTION_RE.match(line) for line in lines):
        return [paragraph(line.strip()) for line in lines]

    blocks: list[Block] = []
    state = ParserState.AWAITING_SECTION
    section: Block | None = None
    item: Block | None = None
    skipped = 0

    for line in lines:
        m = _SECTION_RE.match(line)
        if m:
            title = _SECTION_NUMBER_RE.sub("", m.group(1).strip(), count=1)
            section = numbered(title, bold=True)
            blocks.append(section)
            item = None
            state = ParserState.IN_SECTION
            continue

        if state == ParserState.AWAITING_SECTION or section is None:
            skipped += 1
            continue

        m = _ITEM_RE.match(line)
        if m:
            item = bullet(m.group(2).strip())
            section.children.append(item)
            state = ParserState.IN_ITEM
            continue

        if state == ParserState.IN_ITEM and item is not None:
            sub = _SUBITEM_RE.match(line) or _INDENTED_RE.match(line)
            leaf = sub.group(1).strip() if sub else _strip_note_bullet(line.strip())
            item.children.append(bullet(leaf))
            continue

        section.children.append(bullet(_strip_note_bullet(line.strip())))

    if skipped:
        logger.debug("Report parser ignored %d line(s) before the first section.", skipped)
    return blocks
