# src/weekly_report/notion/codec.py

"""
Translation between Notion JSON objects and the local types.

Pages of the task database -> RawTask
Child blocks of a task page -> RawLine
Top-level blocks of a report page -> DocumentNode
Block (local tree) -> Notion block JSON for create/append
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from ..report.blocks import Block, BlockKind, DocumentNode
from ..tasks.task_models import RawLine, RawTask

UNTITLED_TASK = "Untitled task"

TITLE_PROPERTIES = ("Name", "名称")
STATUS_PROPERTY = "Status"
PROJECT_PROPERTY = "Project"
ASSIGNEE_PROPERTIES = ("Assignee", "负责人", "assignee")
DATE_PROPERTIES = ("Date", "日期", "Deadline")

_KIND_TO_TYPE: Dict[BlockKind, str] = {
    BlockKind.HEADING: "heading_2",
    BlockKind.NUMBERED_ITEM: "numbered_list_item",
    BlockKind.BULLET_ITEM: "bulleted_list_item",
    BlockKind.PARAGRAPH: "paragraph",
    BlockKind.DIVIDER: "divider",
    BlockKind.CALLOUT: "callout",
}

_TYPE_TO_KIND: Dict[str, BlockKind] = {
    "heading_1": BlockKind.HEADING,
    "heading_2": BlockKind.HEADING,
    "heading_3": BlockKind.HEADING,
    "numbered_list_item": BlockKind.NUMBERED_ITEM,
    "bulleted_list_item": BlockKind.BULLET_ITEM,
    "paragraph": BlockKind.PARAGRAPH,
    "divider": BlockKind.DIVIDER,
    "callout": BlockKind.CALLOUT,
}


def plain_text(rich: Optional[List[Dict[str, Any]]]) -> str:
    return "".join(t.get("plain_text") or (t.get("text") or {}).get("content", "") for t in rich or [])


def rich_text(text: str, *, bold: bool = False) -> List[Dict[str, Any]]:
    if not text:
        return []
    item: Dict[str, Any] = {"type": "text", "text": {"content": text}}
    if bold:
        item["annotations"] = {"bold": True}
    return [item]


def block_to_notion(block: Block) -> Dict[str, Any]:
    block_type = _KIND_TO_TYPE.get(block.kind)
    if block_type is None:
        raise ValueError(f"Cannot create a block of kind {block.kind!s}")

    if block.kind == BlockKind.DIVIDER:
        return {"object": "block", "type": "divider", "divider": {}}

    body: Dict[str, Any] = {"rich_text": rich_text(block.text, bold=block.bold)}
    if block.kind == BlockKind.CALLOUT:
        if block.icon:
            body["icon"] = {"type": "emoji", "emoji": block.icon}
        if block.color:
            body["color"] = block.color
    if block.children:
        body["children"] = [block_to_notion(c) for c in block.children]

    return {"object": "block", "type": block_type, block_type: body}


def node_from_notion(obj: Dict[str, Any]) -> DocumentNode:
    block_type = str(obj.get("type") or "")
    kind = _TYPE_TO_KIND.get(block_type, BlockKind.OTHER)
    body = obj.get(block_type) or {}
    text = plain_text(body.get("rich_text")) if isinstance(body, dict) else ""
    return DocumentNode(id=str(obj.get("id") or ""), kind=kind, text=text)


def line_from_notion(obj: Dict[str, Any]) -> RawLine:
    block_type = str(obj.get("type") or "")
    body = obj.get(block_type) or {}
    if not isinstance(body, dict):
        body = {}
    checked = body.get("checked") if block_type == "to_do" else None
    return RawLine(kind=block_type, text=plain_text(body.get("rich_text")), checked=checked)


def _first_property(props: Dict[str, Any], names: tuple[str, ...]) -> Dict[str, Any]:
    for name in names:
        prop = props.get(name)
        if isinstance(prop, dict):
            return prop
    return {}


def page_title(page: Dict[str, Any]) -> str:
    props = page.get("properties") or {}
    for name in TITLE_PROPERTIES:
        prop = props.get(name) or {}
        if prop.get("type") == "title" or "title" in prop:
            text = plain_text(prop.get("title"))
            if text:
                return text
    for prop in props.values():
        if isinstance(prop, dict) and prop.get("type") == "title":
            return plain_text(prop.get("title"))
    return ""


def _assignee_names(prop: Dict[str, Any]) -> tuple[str, ...]:
    names: list[str] = []
    if prop.get("people"):
        for person in prop["people"]:
            name = person.get("name") or (person.get("person") or {}).get("email") or ""
            if name:
                names.append(name)
    elif prop.get("select"):
        name = prop["select"].get("name") or ""
        if name:
            names.append(name)
    elif prop.get("multi_select"):
        names.extend(s.get("name") or "" for s in prop["multi_select"] if s.get("name"))
    return tuple(names)


def task_from_page(page: Dict[str, Any]) -> RawTask:
    props = page.get("properties") or {}

    status_prop = props.get(STATUS_PROPERTY) or {}
    status = (status_prop.get("select") or status_prop.get("status") or {}).get("name") or ""

    project = ((props.get(PROJECT_PROPERTY) or {}).get("select") or {}).get("name") or ""

    date_value = _first_property(props, DATE_PROPERTIES).get("date") or {}

    return RawTask(
        id=str(page.get("id") or ""),
        title=page_title(page) or UNTITLED_TASK,
        status=status,
        assignees=_assignee_names(_first_property(props, ASSIGNEE_PROPERTIES)),
        project=project,
        last_modified_at=str(page.get("last_edited_time") or ""),
        start=date_value.get("start"),
        end=date_value.get("end"),
    )
