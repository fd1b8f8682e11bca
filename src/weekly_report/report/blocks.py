# src/weekly_report/report/blocks.py

"""
Block tree: the hierarchical shape of a shared-document fragment.

Blocks are built locally (parser, page layout, team summary) and only ever
leave the process through DocumentStore.append_nodes/create_document.
DocumentNode is the flat, read-side view of an existing top-level node.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum


class BlockKind(StrEnum):
    HEADING = "heading"
    NUMBERED_ITEM = "numbered_item"
    BULLET_ITEM = "bullet_item"
    PARAGRAPH = "paragraph"
    DIVIDER = "divider"
    CALLOUT = "callout"
    OTHER = "other"  # read-side only: node types we never create


@dataclass(slots=True)
class Block:
    kind: BlockKind
    text: str = ""
    children: list[Block] = field(default_factory=list)

    # Rendering hints; stores may ignore them.
    bold: bool = False
    icon: str | None = None
    color: str | None = None


@dataclass(frozen=True, slots=True)
class DocumentNode:
    id: str
    kind: BlockKind
    text: str


def heading(text: str) -> Block:
    return Block(BlockKind.HEADING, text)


def paragraph(text: str = "") -> Block:
    return Block(BlockKind.PARAGRAPH, text)


def bullet(text: str, children: list[Block] | None = None) -> Block:
    return Block(BlockKind.BULLET_ITEM, text, list(children or []))


def numbered(text: str, children: list[Block] | None = None, *, bold: bool = False) -> Block:
    return Block(BlockKind.NUMBERED_ITEM, text, list(children or []), bold=bold)


def divider() -> Block:
    return Block(BlockKind.DIVIDER)


def callout(text: str, *, icon: str | None = None, color: str | None = None, bold: bool = False) -> Block:
    return Block(BlockKind.CALLOUT, text, bold=bold, icon=icon, color=color)
