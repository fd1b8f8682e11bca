# src/weekly_report/docsync/region.py

"""
Member regions inside the shared period document.

The page is a flat list of top-level nodes. A member's region is every node
strictly between the heading whose text equals the member's label and the next
heading or divider. RegionMap makes that implicit layout explicit:

    label -> NodeRange(anchor_id, anchor_index, end_exclusive)

Only nodes inside one range are ever deleted; everything else on the page is
left as it was.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Sequence

from ..core.ports import DocumentStore
from ..errors import ExternalCallError, NotFoundError, PartialReplaceError
from ..report.blocks import (
    Block,
    BlockKind,
    DocumentNode,
    bullet,
    callout,
    divider,
    heading,
    numbered,
    paragraph,
)

logger = logging.getLogger(__name__)

REMINDER_TEXT = "Did you update your OKR progress and last meeting's to-dos?"
REMINDER_ICON = "💡"

AGENDA_OKR = "OKR / project progress sync"
AGENDA_WORK = "Work progress & info sync / discussion"
AGENDA_WORK_TOPICS = ("Last week's progress", "This week's plan", "Info sync / issues / learnings")

PENDING_PLACEHOLDER = "(pending)"
LEAVE_PLACEHOLDER = "(on leave)"

_REGION_END_KINDS = frozenset({BlockKind.HEADING, BlockKind.DIVIDER})


@dataclass(frozen=True, slots=True)
class NodeRange:
    anchor_id: str
    anchor_index: int
    end_exclusive: int

    @property
    def size(self) -> int:
        return self.end_exclusive - self.anchor_index - 1


@dataclass(frozen=True, slots=True)
class ReplaceResult:
    document_id: str
    removed: int
    inserted: int


class RegionMap:
    """Heading label -> node range, built from one snapshot of the page."""

    def __init__(self, nodes: Iterable[DocumentNode]) -> None:
        self.nodes: list[DocumentNode] = list(nodes)
        self._ranges: dict[str, NodeRange] = {}

        for i, node in enumerate(self.nodes):
            if node.kind != BlockKind.HEADING:
                continue
            end = len(self.nodes)
            for j in range(i + 1, len(self.nodes)):
                if self.nodes[j].kind in _REGION_END_KINDS:
                    end = j
                    break
            # First heading with a given label wins.
            self._ranges.setdefault(node.text, NodeRange(node.id, i, end))

    def labels(self) -> list[str]:
        return list(self._ranges)

    def get(self, label: str) -> NodeRange | None:
        return self._ranges.get(label)

    def region_nodes(self, label: str) -> list[DocumentNode]:
        rng = self._ranges.get(label)
        if rng is None:
            return []
        return self.nodes[rng.anchor_index + 1 : rng.end_exclusive]


def replace_region(
    store: DocumentStore,
    document_id: str,
    label: str,
    fragment: Sequence[Block],
) -> ReplaceResult:
    """
    Swap the content of one member's region for `fragment` (+ one empty spacer).

    Raises NotFoundError before touching anything when the heading is missing.
    Deletes run one node at a time; if one fails, PartialReplaceError reports
    how far it got. Nothing is retried here.
    """
    try:
        nodes = store.list_top_level_nodes(document_id)
    except ExternalCallError as e:
        raise ExternalCallError(
            "Listing document nodes failed.", operation="list_top_level_nodes", member=label
        ) from e

    regions = RegionMap(nodes)
    rng = regions.get(label)
    if rng is None:
        raise NotFoundError(f"No region headed {label!r} in document {document_id}.")

    doomed = regions.region_nodes(label)
    removed = 0
    for node in doomed:
        try:
            store.delete_node(node.id)
        except Exception as e:
            logger.error(
                "Region clear failed member=%s removed=%d remaining=%d node=%s",
                label,
                removed,
                len(doomed) - removed,
                node.id,
            )
            raise PartialReplaceError(member=label, removed=removed, remaining=len(doomed) - removed) from e
        removed += 1

    payload = [*fragment, paragraph("")]
    try:
        store.append_nodes(document_id, rng.anchor_id, payload)
    except Exception as e:
        raise ExternalCallError(
            f"Inserting region content failed after clearing {removed} node(s).",
            operation="append_nodes",
            member=label,
        ) from e

    logger.info("Region replaced member=%s removed=%d inserted=%d", label, removed, len(payload))
    return ReplaceResult(document_id=document_id, removed=removed, inserted=len(payload))


def initial_page_blocks(members: Sequence[tuple[str, bool]]) -> list[Block]:
    """
    Layout of a fresh period document.

    `members` is (label, on_leave) in roster order.
    """
    blocks: list[Block] = [
        callout(REMINDER_TEXT, icon=REMINDER_ICON, color="gray_background", bold=True),
        numbered(AGENDA_OKR, [bullet("None")], bold=True),
        numbered(AGENDA_WORK, [bullet(t) for t in AGENDA_WORK_TOPICS], bold=True),
        divider(),
    ]
    for label, on_leave in members:
        blocks.append(heading(label))
        blocks.append(paragraph(LEAVE_PLACEHOLDER if on_leave else PENDING_PLACEHOLDER))
        blocks.append(divider())
    return blocks


def find_document(store: DocumentStore, period_key: str) -> str | None:
    try:
        return store.find_document(period_key)
    except ExternalCallError as e:
        raise ExternalCallError(f"Document lookup failed for {period_key}.", operation="find_document") from e


def find_or_create_document(
    store: DocumentStore,
    period_key: str,
    members: Sequence[tuple[str, bool]],
) -> tuple[str, bool]:
    """Return (document_id, created)."""
    doc_id = find_document(store, period_key)
    if doc_id:
        return doc_id, False

    try:
        doc_id = store.create_document(period_key, initial_page_blocks(members))
    except ExternalCallError as e:
        raise ExternalCallError(
            f"Creating the document for {period_key} failed.", operation="create_document"
        ) from e
    logger.info("Period document created period=%s id=%s members=%d", period_key, doc_id, len(members))
    return doc_id, True
