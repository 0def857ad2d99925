"""Tests for dashboard analytics."""

from __future__ import annotations

import time
from datetime import UTC, date, datetime, timedelta, timezone

import pytest

from optix_flow.models import ImportanceLevel, Project, Subtask, Task
from optix_flow.services.analytics_service import (
    UNASSIGNED_COLOR,
    UNASSIGNED_NAME,
    AnalyticsService,
)

NOW = datetime(2025, 3, 14, 12, 0, tzinfo=UTC)


@pytest.fixture()
def local_tz(monkeypatch):
    """Switch the process timezone for one test."""

    def switch(spec):
        monkeypatch.setenv("TZ", spec)
        time.tzset()

    yield switch
    monkeypatch.undo()
    time.tzset()


@pytest.fixture()
def analytics(store):
    store.reset(
        [
            Task(
                id="t1",
                title="Ship release",
                project_id="p1",
                estimated_time=30,
                is_completed=True,
                completed_at=datetime(2025, 3, 14, 9, 0, tzinfo=UTC),
            ),
            Task(
                id="t2",
                title="Container",
                project_id="gone",
                estimated_time=120,
                subtasks=[
                    Subtask(
                        id="s1",
                        title="a",
                        estimated_time=15,
                        is_completed=True,
                        completed_at=datetime(2025, 3, 13, 18, 0, tzinfo=UTC),
                    ),
                    Subtask(id="s2", title="b", estimated_time=20),
                ],
            ),
            Task(
                id="t3",
                title="Old",
                estimated_time=10,
                is_completed=True,
                completed_at=datetime(2025, 3, 1, tzinfo=UTC),
            ),
            Task(id="t4", title="Fire", importance_level=ImportanceLevel.HIGH, is_urgent=True),
        ],
        [Project(id="p1", name="Work", color="#22c55e"), Project(id="p3", name="Empty")],
    )
    return AnalyticsService(store)


class TestActivity:
    def test_weekly_activity_covers_seven_days(self, analytics):
        days = analytics.weekly_activity(NOW)

        assert [d.day for d in days] == [date(2025, 3, 8) + timedelta(days=i) for i in range(7)]
        assert days[-1].label == "Fri"
        assert days[-1].minutes == 30
        assert days[-2].minutes == 15
        assert sum(d.minutes for d in days) == 45

    def test_container_is_credited_per_subtask(self, analytics):
        # The container's own 120 minutes never count.
        assert analytics.focus_minutes(NOW) == 45
        assert analytics.velocity_per_day(NOW) == pytest.approx(45 / 7)

    def test_future_completions_are_ignored(self, analytics):
        assert analytics.focus_minutes(datetime(2025, 3, 14, 8, 0, tzinfo=UTC)) == 15

    def test_days_follow_the_local_timezone(self, analytics):
        # 18:00 UTC on the 13th is already the 14th in UTC+8
        now = NOW.astimezone(timezone(timedelta(hours=8)))
        days = analytics.weekly_activity(now)
        assert days[-1].day == date(2025, 3, 14)
        assert days[-1].minutes == 45

    @pytest.mark.skipif(not hasattr(time, "tzset"), reason="needs time.tzset")
    def test_naive_now_is_local_wall_time(self, analytics, local_tz):
        local_tz("SGT-8")
        # 12:00 wall time in UTC+8 is 04:00 UTC: only s1 (18:00 UTC on the 13th) is done
        now = datetime(2025, 3, 14, 12, 0)
        days = analytics.weekly_activity(now)
        assert days[-1].day == date(2025, 3, 14)
        assert days[-1].minutes == 15


class TestCompletion:
    def test_rate_counts_units(self, analytics):
        # units: t1 done, s1 done, s2 open, t3 done, t4 open
        assert analytics.completion_rate() == 60

    def test_rate_without_tasks(self, store):
        assert AnalyticsService(store).completion_rate() == 0


class TestAllocation:
    def test_dangling_project_counts_as_unassigned(self, analytics):
        shares = {s.name: s for s in analytics.project_allocation(NOW)}

        assert shares["Work"].minutes == 30
        assert shares["Work"].color == "#22c55e"
        assert shares[UNASSIGNED_NAME].minutes == 15
        assert shares[UNASSIGNED_NAME].project_id is None
        assert shares[UNASSIGNED_NAME].color == UNASSIGNED_COLOR
        assert "Empty" not in shares


class TestMatrix:
    def test_open_tasks_by_quadrant(self, analytics):
        grid = analytics.matrix()

        assert len(grid) == 6
        assert [t.id for t in grid[(ImportanceLevel.HIGH, True)]] == ["t4"]
        assert [t.id for t in grid[(ImportanceLevel.MID, False)]] == ["t2"]
        assert sum(len(tasks) for tasks in grid.values()) == 2

    def test_explicit_task_list(self, analytics):
        grid = analytics.matrix([Task(id="x", title="x", importance_level=ImportanceLevel.LOW)])
        assert [t.id for t in grid[(ImportanceLevel.LOW, False)]] == ["x"]


class TestProjectProgress:
    def test_progress_per_project(self, analytics, store):
        store.set_tasks(
            [
                *store.tasks,
                Task(id="t5", title="Next", project_id="p1", estimated_time=25),
                Task(
                    id="t6",
                    title="Split",
                    project_id="p1",
                    subtasks=[
                        Subtask(id="s3", title="x", estimated_time=10, is_completed=True),
                        Subtask(id="s4", title="y", estimated_time=5),
                    ],
                ),
            ]
        )

        progress = {p.project.id: p for p in analytics.project_progress()}

        work = progress["p1"]
        assert (work.total, work.completed) == (3, 1)
        assert work.remaining_minutes == 30
        assert progress["p3"].total == 0
