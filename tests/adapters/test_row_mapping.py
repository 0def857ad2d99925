"""Tests for the backend row mapper."""

from __future__ import annotations

from datetime import UTC, datetime

import pytest

from optix_flow.adapters import row_mapper
from optix_flow.models import ImportanceLevel, Project, Subtask, Task
from optix_flow.models.exceptions import RowDecodeError

TASK_ROW = {
    "id": "t1",
    "title": "Write report",
    "importance": 3,
    "is_urgent": True,
    "estimated_time": 45,
    "is_completed": False,
    "completed_at": None,
    "project_id": "p1",
    "created_at": "2025-03-01T10:00:00+00:00",
    "user_id": "user-1",
    "subtasks": [
        {
            "id": "s1",
            "task_id": "t1",
            "title": "Outline",
            "is_completed": True,
            "completed_at": "2025-03-02T08:00:00+00:00",
            "estimated_time": None,
            "importance_level": None,
            "is_urgent": None,
        }
    ],
}


class TestDecode:
    def test_task_row_maps_importance_column(self):
        task = row_mapper.task_from_row(TASK_ROW)

        assert task.id == "t1"
        assert task.importance_level is ImportanceLevel.HIGH
        assert task.project_id == "p1"
        assert task.created_at == datetime(2025, 3, 1, 10, tzinfo=UTC)

    def test_null_subtask_columns_get_defaults(self):
        subtask = row_mapper.task_from_row(TASK_ROW).subtasks[0]

        assert subtask.estimated_time == 5
        assert subtask.importance_level is ImportanceLevel.MID
        assert subtask.is_urgent is False
        assert subtask.is_completed is True

    def test_task_without_joined_subtasks(self):
        row = {k: v for k, v in TASK_ROW.items() if k != "subtasks"}
        assert row_mapper.task_from_row(row).subtasks == []

    def test_missing_column_raises(self):
        row = {k: v for k, v in TASK_ROW.items() if k != "importance"}
        with pytest.raises(RowDecodeError) as exc:
            row_mapper.task_from_row(row)
        assert exc.value.entity == "task"
        assert "importance" in exc.value.reason

    def test_non_object_row_raises(self):
        with pytest.raises(RowDecodeError):
            row_mapper.project_from_row(["p1", "Work"])

    def test_project_null_color_becomes_empty(self):
        project = row_mapper.project_from_row({"id": "p1", "name": "Work", "color": None})
        assert project == Project(id="p1", name="Work", color="")


class TestEncode:
    def test_task_row_excludes_subtasks_and_renames_importance(self):
        task = Task(
            id="t1",
            title="x",
            importance_level=ImportanceLevel.LOW,
            subtasks=[Subtask(id="s1", title="y")],
        )
        row = row_mapper.task_to_row(task, "user-1")

        assert row["importance"] == 1
        assert "importance_level" not in row
        assert "subtasks" not in row
        assert row["user_id"] == "user-1"
        assert row["id"] == "t1"

    def test_insert_row_can_omit_id(self):
        row = row_mapper.task_to_row(Task(id="tmp", title="x"), "user-1", include_id=False)
        assert "id" not in row

    def test_subtask_row_carries_parent_and_all_fields(self):
        subtask = Subtask(
            id="s1",
            title="y",
            estimated_time=20,
            importance_level=ImportanceLevel.HIGH,
            is_urgent=True,
        )
        row = row_mapper.subtask_to_row(subtask, "t1")

        assert row == {
            "id": "s1",
            "task_id": "t1",
            "title": "y",
            "is_completed": False,
            "completed_at": None,
            "estimated_time": 20,
            "importance_level": 3,
            "is_urgent": True,
        }

    def test_sparse_update_drops_unmapped_fields(self):
        values = row_mapper.task_update_to_row(
            {"title": "New", "importance_level": ImportanceLevel.MID, "subtasks": []}
        )
        assert values == {"title": "New", "importance": 2}

    def test_sparse_update_of_subtasks_only_is_empty(self):
        assert row_mapper.task_update_to_row({"subtasks": []}) == {}

    def test_completion_row_clears_timestamp_when_reopened(self):
        now = datetime(2025, 3, 14, tzinfo=UTC)
        assert row_mapper.completion_to_row(True, now) == {
            "is_completed": True,
            "completed_at": now.isoformat(),
        }
        assert row_mapper.completion_to_row(False, now) == {
            "is_completed": False,
            "completed_at": None,
        }
