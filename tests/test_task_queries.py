"""Tests for TaskQueryService: time windows, ordering, filters, stats and dashboard."""

import sqlite3
from datetime import datetime, timedelta

import pytest
from sqlalchemy.exc import OperationalError

from app.core.errors import QueryTimeoutError, ValidationError
from app.db.models.tasks import TaskPriority, TaskStatus
from app.db.repositories.tasks import TaskFilters
from app.features.tasks.schemas import TaskCreateIn, TaskFromMemoIn

NOW = datetime(2026, 10, 19, 12, 0, 0)
WEEK = timedelta(days=7)


def _task(services, user, title, **fields):
    return services.tasks.create(TaskCreateIn(title=title, **fields), user_id=user.id)


@pytest.fixture
def timeline(services, alice):
    """One task on each side of every window boundary."""
    tasks = {
        "late": _task(services, alice, "late", due_date=NOW - timedelta(hours=1), priority=TaskPriority.HIGH),
        "due_now": _task(services, alice, "due now", due_date=NOW),
        "end_of_window": _task(services, alice, "end of window", due_date=NOW + WEEK - timedelta(seconds=1)),
        "after_window": _task(services, alice, "after window", due_date=NOW + WEEK),
        "no_due": _task(services, alice, "no due date", priority=TaskPriority.LOW),
        "done_late": _task(services, alice, "done late", due_date=NOW - timedelta(days=2)),
    }
    services.tasks.complete(tasks["done_late"].id, user_id=alice.id)
    return {key: task.id for key, task in tasks.items()}


def _ids(tasks):
    return [t.id for t in tasks]


class TestTimeWindows:
    def test_overdue_excludes_completed_and_boundary(self, services, alice, timeline) -> None:
        overdue = services.queries.overdue(alice.id, now=NOW)

        assert _ids(overdue) == [timeline["late"]]

    def test_upcoming_is_half_open(self, services, alice, timeline) -> None:
        upcoming = services.queries.upcoming(alice.id, window=WEEK, now=NOW)

        assert _ids(upcoming) == [timeline["due_now"], timeline["end_of_window"]]

    def test_overdue_and_upcoming_never_overlap(self, services, alice, timeline) -> None:
        for window in (timedelta(0), timedelta(hours=1), WEEK, timedelta(days=30)):
            overdue = set(_ids(services.queries.overdue(alice.id, now=NOW)))
            upcoming = set(_ids(services.queries.upcoming(alice.id, window=window, now=NOW)))
            assert overdue.isdisjoint(upcoming)

    def test_zero_window_is_empty(self, services, alice, timeline) -> None:
        assert services.queries.upcoming(alice.id, window=timedelta(0), now=NOW) == []

    def test_negative_window_is_rejected(self, services, alice) -> None:
        with pytest.raises(ValidationError):
            services.queries.upcoming(alice.id, window=timedelta(days=-1), now=NOW)
        with pytest.raises(ValidationError):
            services.queries.dashboard(alice.id, window=timedelta(days=-1), now=NOW)

    def test_window_beyond_ten_years_is_rejected(self, services, alice) -> None:
        with pytest.raises(ValidationError):
            services.queries.upcoming(alice.id, window=timedelta(days=4000), now=NOW)
        with pytest.raises(ValidationError):
            services.queries.dashboard(alice.id, window=timedelta(days=3651), now=NOW)

        assert services.queries.upcoming(alice.id, window=timedelta(days=3650), now=NOW) == []


class TestList:
    def test_order_is_due_date_then_newest_with_nulls_last(self, services, alice) -> None:
        first_undated = _task(services, alice, "undated 1")
        later = _task(services, alice, "later", due_date=NOW + timedelta(days=3))
        sooner = _task(services, alice, "sooner", due_date=NOW + timedelta(days=1))
        second_undated = _task(services, alice, "undated 2")

        page = services.queries.list(alice.id)

        assert _ids(page["items"]) == [sooner.id, later.id, second_undated.id, first_undated.id]
        assert page["total"] == 4

    def test_pagination_keeps_total(self, services, alice) -> None:
        for i in range(5):
            _task(services, alice, f"task {i}")

        page = services.queries.list(alice.id, offset=2, limit=2)

        assert len(page["items"]) == 2
        assert page["total"] == 5

    def test_filters_combine(self, services, alice, timeline) -> None:
        page = services.queries.list(
            alice.id,
            TaskFilters(status=TaskStatus.PENDING, due_from=NOW, due_to=NOW + WEEK),
        )

        assert _ids(page["items"]) == [timeline["due_now"], timeline["end_of_window"]]

    def test_inverted_due_range_is_rejected(self, services, alice) -> None:
        with pytest.raises(ValidationError):
            services.queries.list(alice.id, TaskFilters(due_from=NOW, due_to=NOW - WEEK))

    def test_tag_filter_goes_through_source_memo(self, services, alice, alice_memo) -> None:
        linked = services.linker.create_from_memo(alice_memo.id, TaskFromMemoIn(), user_id=alice.id)
        _task(services, alice, "unrelated")

        page = services.queries.list(alice.id, TaskFilters(tag="python"))

        assert _ids(page["items"]) == [linked.id]

    def test_lists_are_scoped_to_owner(self, services, alice, bob) -> None:
        _task(services, alice, "mine")
        _task(services, bob, "not mine", due_date=NOW - timedelta(days=1))

        assert services.queries.list(alice.id)["total"] == 1
        assert services.queries.overdue(alice.id, now=NOW) == []


class TestSearch:
    def test_case_insensitive_over_title_and_description(self, services, alice) -> None:
        by_title = _task(services, alice, "Buy MILK")
        by_description = _task(services, alice, "Groceries", description="oat milk, bread")
        _task(services, alice, "Call mom")

        page = services.queries.search(alice.id, "milk")

        assert sorted(_ids(page["items"])) == sorted([by_title.id, by_description.id])

    def test_blank_query_is_rejected(self, services, alice) -> None:
        with pytest.raises(ValidationError):
            services.queries.search(alice.id, "   ")


class TestStats:
    def test_counts_by_status_and_priority(self, services, alice, timeline) -> None:
        services.tasks.complete(timeline["after_window"], user_id=alice.id)

        stats = services.queries.stats(alice.id, now=NOW)

        assert stats.total == 6
        assert stats.counts.model_dump() == {"pending": 4, "in_progress": 0, "completed": 2}
        assert stats.priorities.model_dump() == {"low": 1, "medium": 4, "high": 1}
        assert stats.overdue_count == 1

    def test_completing_overdue_task_moves_counters(self, services, alice) -> None:
        task = _task(services, alice, "Buy milk", priority=TaskPriority.LOW, due_date=NOW - timedelta(days=1))
        before = services.queries.stats(alice.id, now=NOW)
        assert _ids(services.queries.overdue(alice.id, now=NOW)) == [task.id]

        services.tasks.complete(task.id, user_id=alice.id)

        after = services.queries.stats(alice.id, now=NOW)
        assert services.queries.overdue(alice.id, now=NOW) == []
        assert after.counts.completed == before.counts.completed + 1
        assert after.overdue_count == 0

    def test_timeout_is_reported_as_query_timeout(self, services, alice, monkeypatch) -> None:
        def interrupted(user_id):
            raise OperationalError("SELECT ...", {}, sqlite3.OperationalError("interrupted"))

        monkeypatch.setattr(services.queries.repo, "snapshot_for_user", interrupted)

        with pytest.raises(QueryTimeoutError) as excinfo:
            services.queries.stats(alice.id, now=NOW)
        assert excinfo.value.details["retry_after"] >= 1


class TestDashboard:
    def test_sections_share_one_snapshot(self, services, alice, timeline) -> None:
        dashboard = services.queries.dashboard(alice.id, window=WEEK, now=NOW)

        assert dashboard.stats.overdue_count == len(dashboard.overdue)
        assert dashboard.stats.overdue_count == len(services.queries.overdue(alice.id, now=NOW))
        assert [t.id for t in dashboard.overdue] == [timeline["late"]]
        assert [t.id for t in dashboard.upcoming] == [timeline["due_now"], timeline["end_of_window"]]
        assert dashboard.generated_at == NOW
        assert dashboard.window_days == 7

    def test_recent_is_newest_first_and_limited(self, services, alice) -> None:
        created = [_task(services, alice, f"task {i}").id for i in range(7)]

        dashboard = services.queries.dashboard(alice.id, now=NOW)

        assert [t.id for t in dashboard.recent] == list(reversed(created))[:5]
        assert dashboard.stats.total == 7

    def test_empty_user(self, services, bob) -> None:
        dashboard = services.queries.dashboard(bob.id, now=NOW)

        assert dashboard.overdue == []
        assert dashboard.upcoming == []
        assert dashboard.recent == []
        assert dashboard.stats.total == 0
