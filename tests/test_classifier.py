# tests/test_classifier.py

from __future__ import annotations

from datetime import timedelta

import pytest

from weekly_report.errors import ExternalCallError
from weekly_report.tasks.classifier import (
    classify,
    enrich,
    fetch_member_tasks,
    matches_member,
    normalize_lines,
)
from weekly_report.tasks.task_models import RawLine, TaskStatus

from .conftest import NOW
from .fakes import FakeTaskSource, make_task, raw_task


def test_overdue_by_two_days() -> None:
    task = enrich(raw_task("t1", "Migrate DB", end="2025-12-20"), (), member_name="Alice", now=NOW)
    assert task is not None
    assert task.days_remaining == -2
    assert task.is_overdue is True
    assert task.days_overdue == 2


def test_done_task_is_never_overdue() -> None:
    task = enrich(raw_task("t1", "Old", "Done", end="2025-12-20"), (), member_name="Alice", now=NOW)
    assert task is not None
    assert task.is_overdue is False
    assert task.days_overdue == 0
    assert task.days_remaining == -2


def test_single_day_range_uses_start_as_end() -> None:
    task = enrich(raw_task("t1", "Demo", start="2025-12-24"), (), member_name="Alice", now=NOW)
    assert task is not None
    assert task.end_date == task.start_date
    assert task.days_remaining == 2


def test_time_progress_is_elapsed_share_of_range() -> None:
    task = enrich(
        raw_task("t1", "Search", start="2025-12-20", end="2025-12-24"), (), member_name="Alice", now=NOW
    )
    assert task is not None
    assert task.time_progress == 60


def test_no_dates_means_no_schedule_flags() -> None:
    task = enrich(raw_task("t1", "Backlog"), (), member_name="Alice", now=NOW)
    assert task is not None
    assert (task.is_overdue, task.days_remaining, task.time_progress) == (False, 0, 0)


def test_unknown_status_is_dropped() -> None:
    assert enrich(raw_task("t1", "X", "Icebox"), (), member_name="Alice", now=NOW) is None


def test_matches_member_exact_or_case_insensitive() -> None:
    assert matches_member(["alice"], "Alice")
    assert matches_member(["Bob", "Alice"], "Alice")
    assert not matches_member(["Bob"], "Alice")
    assert not matches_member(["Alice"], "")


def test_normalize_lines_marks_checked_todos() -> None:
    lines = [
        RawLine("to_do", "write docs", checked=True),
        RawLine("to_do", "review ✅", checked=True),
        RawLine("to_do", "deploy", checked=False),
        RawLine("heading_2", "Notes"),
        RawLine("paragraph", "   "),
        RawLine("bulleted_list_item", "1pd cleanup"),
    ]
    assert normalize_lines(lines) == ("write docs ✅", "review ✅", "deploy", "1pd cleanup")


def test_classify_buckets_by_status_and_recency() -> None:
    current = make_task("Current", TaskStatus.REVIEW)
    recent = make_task("Recent", TaskStatus.DONE, last_modified_at=NOW - timedelta(days=3))
    old = make_task("Old", TaskStatus.DONE, last_modified_at=NOW - timedelta(days=10))

    buckets = classify([current, recent, old], NOW)

    assert [t.title for t in buckets.current] == ["Current"]
    assert [t.title for t in buckets.recently_done] == ["Recent"]


def test_fetch_member_tasks_reads_every_page_and_filters_member() -> None:
    source = FakeTaskSource(
        [
            raw_task("t1", "Mine 1"),
            raw_task("t2", "Theirs", assignees=("Bob",)),
            raw_task("t3", "Mine done", "Done", modified="2025-12-20T08:00:00.000Z"),
            raw_task("t4", "Mine next", "Next Up", assignees=("alice",)),
        ],
        {"t1": [RawLine("to_do", "a 1pd", checked=True), RawLine("to_do", "b 1pd", checked=False)]},
        page_size=1,
    )

    buckets = fetch_member_tasks(source, "Alice", NOW, workers=2)

    assert len(source.queries) == 4
    assert sorted(source.content_calls) == ["t1", "t3", "t4"]
    assert [t.title for t in buckets.current] == ["Mine 1", "Mine next"]
    assert [t.title for t in buckets.recently_done] == ["Mine done"]
    assert buckets.current[0].subtasks == ("a 1pd ✅", "b 1pd")


def test_failed_content_fetch_degrades_to_no_subtasks(caplog: pytest.LogCaptureFixture) -> None:
    source = FakeTaskSource(
        [raw_task("t1", "Flaky"), raw_task("t2", "Fine")],
        {"t2": [RawLine("to_do", "x 1pd", checked=False)]},
    )
    source.failing_content.add("t1")

    buckets = fetch_member_tasks(source, "Alice", NOW)

    by_id = {t.id: t for t in buckets.current}
    assert by_id["t1"].subtasks == ()
    assert by_id["t2"].subtasks == ("x 1pd",)
    assert any("Content fetch failed" in r.getMessage() for r in caplog.records)


def test_query_failure_names_member() -> None:
    source = FakeTaskSource()
    source.fail_query = True
    with pytest.raises(ExternalCallError) as ei:
        fetch_member_tasks(source, "Alice", NOW)
    assert ei.value.member == "Alice"
    assert ei.value.operation == "query_tasks"
