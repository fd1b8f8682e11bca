# tests/test_notion_codec.py

from __future__ import annotations

import pytest

from weekly_report.notion.codec import (
    UNTITLED_TASK,
    block_to_notion,
    line_from_notion,
    node_from_notion,
    page_title,
    task_from_page,
)
from weekly_report.report.blocks import Block, BlockKind, bullet, callout, divider, heading, numbered, paragraph


def _rt(text: str) -> list[dict]:
    return [{"type": "text", "plain_text": text, "text": {"content": text}}]


def test_numbered_with_children() -> None:
    obj = block_to_notion(numbered("Plan", [bullet("a", [bullet("i")])], bold=True))

    assert obj["type"] == "numbered_list_item"
    body = obj["numbered_list_item"]
    assert body["rich_text"] == [{"type": "text", "text": {"content": "Plan"}, "annotations": {"bold": True}}]
    child = body["children"][0]
    assert child["type"] == "bulleted_list_item"
    assert child["bulleted_list_item"]["children"][0]["bulleted_list_item"]["rich_text"][0]["text"]["content"] == "i"


def test_simple_blocks() -> None:
    assert block_to_notion(divider()) == {"object": "block", "type": "divider", "divider": {}}
    assert block_to_notion(heading("Alice"))["type"] == "heading_2"
    assert block_to_notion(paragraph(""))["paragraph"]["rich_text"] == []

    c = block_to_notion(callout("Tip", icon="💡", color="gray_background"))
    assert c["callout"]["icon"] == {"type": "emoji", "emoji": "💡"}
    assert c["callout"]["color"] == "gray_background"


def test_other_kind_cannot_be_created() -> None:
    with pytest.raises(ValueError):
        block_to_notion(Block(BlockKind.OTHER, "x"))


def test_nodes_from_notion() -> None:
    h = node_from_notion({"id": "b1", "type": "heading_3", "heading_3": {"rich_text": _rt("Bob")}})
    assert (h.id, h.kind, h.text) == ("b1", BlockKind.HEADING, "Bob")

    img = node_from_notion({"id": "b2", "type": "image", "image": {"file": {}}})
    assert (img.kind, img.text) == (BlockKind.OTHER, "")


def test_line_from_notion_keeps_checked_flag() -> None:
    line = line_from_notion({"type": "to_do", "to_do": {"rich_text": _rt("write 1pd"), "checked": True}})
    assert (line.kind, line.text, line.checked) == ("to_do", "write 1pd", True)

    para = line_from_notion({"type": "paragraph", "paragraph": {"rich_text": _rt("note")}})
    assert para.checked is None


def test_task_from_page_people_and_date() -> None:
    page = {
        "id": "p1",
        "last_edited_time": "2025-12-21T09:00:00.000Z",
        "properties": {
            "Name": {"type": "title", "title": _rt("Search API")},
            "Status": {"type": "select", "select": {"name": "In Progress"}},
            "Project": {"type": "select", "select": {"name": "Core"}},
            "Assignee": {"type": "people", "people": [{"name": "Alice"}, {"person": {"email": "bob@x.io"}}]},
            "Date": {"type": "date", "date": {"start": "2025-12-20", "end": "2025-12-24"}},
        },
    }
    task = task_from_page(page)

    assert task.id == "p1"
    assert task.title == "Search API"
    assert task.status == "In Progress"
    assert task.project == "Core"
    assert task.assignees == ("Alice", "bob@x.io")
    assert (task.start, task.end) == ("2025-12-20", "2025-12-24")


def test_task_from_page_alternate_properties() -> None:
    page = {
        "id": "p2",
        "properties": {
            "名称": {"type": "title", "title": []},
            "Status": {"type": "status", "status": {"name": "Done"}},
            "负责人": {"type": "multi_select", "multi_select": [{"name": "Chen Wei"}]},
            "Deadline": {"type": "date", "date": {"start": "2025-12-26", "end": None}},
        },
    }
    task = task_from_page(page)

    assert task.title == UNTITLED_TASK
    assert task.status == "Done"
    assert task.assignees == ("Chen Wei",)
    assert (task.start, task.end) == ("2025-12-26", None)


def test_page_title_falls_back_to_any_title_property() -> None:
    page = {"properties": {"Week": {"type": "title", "title": _rt("2025-12-22")}}}
    assert page_title(page) == "2025-12-22"
