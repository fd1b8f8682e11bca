# tests/test_region_sync.py

from __future__ import annotations

import pytest

from weekly_report.docsync.region import (
    LEAVE_PLACEHOLDER,
    PENDING_PLACEHOLDER,
    RegionMap,
    find_or_create_document,
    initial_page_blocks,
    replace_region,
)
from weekly_report.errors import ExternalCallError, NotFoundError, PartialReplaceError
from weekly_report.report.blocks import BlockKind, DocumentNode, bullet, numbered, paragraph

from .fakes import InMemoryDocumentStore

ROSTER = [("A", False), ("B", False), ("C", False)]


@pytest.fixture()
def doc(doc_store: InMemoryDocumentStore) -> str:
    return doc_store.create_document("2025-12-22", initial_page_blocks(ROSTER))


def _region(store: InMemoryDocumentStore, doc_id: str, label: str) -> list[DocumentNode]:
    return RegionMap(store.list_top_level_nodes(doc_id)).region_nodes(label)


def test_initial_layout(doc_store: InMemoryDocumentStore, doc: str) -> None:
    nodes = doc_store.list_top_level_nodes(doc)
    assert nodes[0].kind == BlockKind.CALLOUT
    assert [n.kind for n in nodes[1:4]] == [BlockKind.NUMBERED_ITEM, BlockKind.NUMBERED_ITEM, BlockKind.DIVIDER]
    assert RegionMap(nodes).labels() == ["A", "B", "C"]
    assert doc_store.region_texts(doc, "B") == [PENDING_PLACEHOLDER]


def test_replace_touches_only_the_target_region(doc_store: InMemoryDocumentStore, doc: str) -> None:
    before_a = _region(doc_store, doc, "A")
    before_c = _region(doc_store, doc, "C")

    result = replace_region(doc_store, doc, "B", [numbered("Plan", [bullet("x")], bold=True)])

    assert (result.removed, result.inserted) == (1, 2)
    assert doc_store.region_texts(doc, "B") == ["Plan", ""]
    assert _region(doc_store, doc, "A") == before_a
    assert _region(doc_store, doc, "C") == before_c

    labels = [n.text for n in doc_store.list_top_level_nodes(doc) if n.kind == BlockKind.HEADING]
    assert labels == ["A", "B", "C"]


def test_replace_twice_leaves_no_leftovers(doc_store: InMemoryDocumentStore, doc: str) -> None:
    replace_region(doc_store, doc, "B", [paragraph("one"), paragraph("two")])
    result = replace_region(doc_store, doc, "B", [paragraph(LEAVE_PLACEHOLDER)])
    assert result.removed == 3
    assert doc_store.region_texts(doc, "B") == [LEAVE_PLACEHOLDER, ""]


def test_missing_label_fails_before_any_mutation(doc_store: InMemoryDocumentStore, doc: str) -> None:
    before = doc_store.texts(doc)
    with pytest.raises(NotFoundError):
        replace_region(doc_store, doc, "Zed", [paragraph("x")])
    assert doc_store.deleted == []
    assert doc_store.appends == []
    assert doc_store.texts(doc) == before


def test_partial_delete_reports_progress(doc_store: InMemoryDocumentStore, doc: str) -> None:
    replace_region(doc_store, doc, "B", [paragraph("p1"), paragraph("p2")])
    appends_before = len(doc_store.appends)
    doc_store.fail_delete_after = len(doc_store.deleted) + 1

    with pytest.raises(PartialReplaceError) as ei:
        replace_region(doc_store, doc, "B", [paragraph("new")])

    err = ei.value
    assert (err.removed, err.remaining) == (1, 2)
    assert err.member == "B"
    assert err.operation == "delete_node"
    assert len(doc_store.appends) == appends_before
    assert doc_store.region_texts(doc, "B") == ["p2", ""]


def test_append_failure_is_reported(doc_store: InMemoryDocumentStore, doc: str) -> None:
    doc_store.fail_append = True
    with pytest.raises(ExternalCallError) as ei:
        replace_region(doc_store, doc, "A", [paragraph("x")])
    assert not isinstance(ei.value, PartialReplaceError)
    assert ei.value.operation == "append_nodes"
    assert ei.value.member == "A"


def test_region_map_boundaries() -> None:
    nodes = [
        DocumentNode("h1", BlockKind.HEADING, "A"),
        DocumentNode("p1", BlockKind.PARAGRAPH, "a1"),
        DocumentNode("h2", BlockKind.HEADING, "B"),
        DocumentNode("p2", BlockKind.PARAGRAPH, "b1"),
        DocumentNode("o1", BlockKind.OTHER, ""),
        DocumentNode("h3", BlockKind.HEADING, "A"),
        DocumentNode("p3", BlockKind.PARAGRAPH, "a2"),
    ]
    regions = RegionMap(nodes)

    # A region ends at the next heading even without a divider.
    assert [n.id for n in regions.region_nodes("A")] == ["p1"]
    # Node kinds we never create stay inside a region.
    assert [n.id for n in regions.region_nodes("B")] == ["p2", "o1"]
    # First heading with a label wins.
    assert regions.get("A").anchor_id == "h1"

    tail = RegionMap(nodes[5:])
    assert [n.id for n in tail.region_nodes("A")] == ["p3"]
    assert regions.region_nodes("missing") == []


def test_find_or_create_document(doc_store: InMemoryDocumentStore) -> None:
    doc_id, created = find_or_create_document(doc_store, "2025-12-22", [("A", False), ("B", True)])
    assert created is True
    assert doc_store.region_texts(doc_id, "B") == [LEAVE_PLACEHOLDER]

    again, created_again = find_or_create_document(doc_store, "2025-12-22", [("A", False)])
    assert (again, created_again) == (doc_id, False)


def test_lookup_failure_is_wrapped(doc_store: InMemoryDocumentStore) -> None:
    doc_store.fail_find = True
    with pytest.raises(ExternalCallError) as ei:
        find_or_create_document(doc_store, "2025-12-22", ROSTER)
    assert ei.value.operation == "find_document"
