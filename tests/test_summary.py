# tests/test_summary.py

from __future__ import annotations

from datetime import datetime, timezone

from weekly_report.docsync.region import initial_page_blocks
from weekly_report.docsync.summary import (
    OVERVIEW_TITLE,
    RISK_TITLE,
    MemberTasks,
    append_team_summary,
    build_team_summary,
)
from weekly_report.report.blocks import BlockKind
from weekly_report.tasks.task_models import TaskStatus

from .fakes import InMemoryDocumentStore, make_task


def _team() -> list[MemberTasks]:
    return [
        MemberTasks(
            "Alice",
            [
                make_task("Ship login", TaskStatus.DONE),
                make_task("Migrate DB", is_overdue=True, days_overdue=2, days_remaining=-2),
            ],
        ),
        MemberTasks(
            "Bob",
            [
                make_task(
                    "Demo",
                    TaskStatus.NEXT_UP,
                    end_date=datetime(2025, 12, 23, tzinfo=timezone.utc),
                    days_remaining=1,
                )
            ],
        ),
    ]


def test_summary_with_risks() -> None:
    blocks = build_team_summary(_team())

    assert blocks[0].kind == BlockKind.DIVIDER
    assert (blocks[1].kind, blocks[1].text) == (BlockKind.HEADING, OVERVIEW_TITLE)
    assert [b.text for b in blocks[2:6]] == [
        "✅ Done  ███░░░░░░░ 1 (33%)",
        "🔄 In progress  ███░░░░░░░ 1 (33%)",
        "📋 Next up  ███░░░░░░░ 1 (33%)",
        "👀 In review  ░░░░░░░░░░ 0 (0%)",
    ]
    assert blocks[7].text == RISK_TITLE

    callouts = [b for b in blocks if b.kind == BlockKind.CALLOUT]
    assert [c.text for c in callouts] == ["Overdue tasks (1)", "Due soon (1)"]
    assert [c.color for c in callouts] == ["red_background", "yellow_background"]

    bullets = [b.text for b in blocks if b.kind == BlockKind.BULLET_ITEM]
    assert bullets == [
        "Migrate DB — Alice — overdue by 2 day(s)",
        "Demo — Bob — 1 day(s) left",
    ]


def test_summary_without_risks_has_no_risk_section() -> None:
    blocks = build_team_summary([MemberTasks("Alice", [make_task("Calm")])])
    assert len(blocks) == 6
    assert all(b.text != RISK_TITLE for b in blocks)


def test_empty_team_still_renders_overview() -> None:
    blocks = build_team_summary([])
    assert blocks[2].text == "✅ Done  ░░░░░░░░░░ 0 (0%)"


def test_append_goes_to_document_end() -> None:
    store = InMemoryDocumentStore()
    doc_id = store.create_document("2025-12-22", initial_page_blocks([("Alice", False)]))

    n = append_team_summary(store, doc_id, _team())

    assert store.appends[-1] == (doc_id, None, n)
    assert store.texts(doc_id)[-1] == "Demo — Bob — 1 day(s) left"
