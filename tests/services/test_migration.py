"""Tests for the guest-to-account migration."""

from __future__ import annotations

import pytest

from optix_flow.models import Project, Subtask, Task
from optix_flow.models.exceptions import BackendError
from optix_flow.services.migration_service import GuestMigrationService


@pytest.fixture()
def seeded_guest(guest_store):
    guest_store.save(
        [
            Task(
                id="t1",
                title="T1",
                project_id="p1",
                subtasks=[Subtask(id="s1", title="S1"), Subtask(id="s2", title="S2")],
            )
        ],
        [Project(id="p1", name="P1", color="#22c55e")],
    )
    return guest_store


@pytest.fixture()
def order(task_repo, subtask_repo, project_repo):
    calls = []
    project_repo.upsert_many.side_effect = lambda rows, uid: calls.append("projects") or len(rows)
    task_repo.upsert_many.side_effect = lambda rows, uid: calls.append("tasks") or len(rows)
    subtask_repo.upsert_many.side_effect = lambda pairs: calls.append("subtasks") or len(pairs)
    return calls


class TestGuestMigration:
    @pytest.mark.asyncio
    async def test_missing_record_is_a_no_op(
        self, guest_store, user, remote_strategy, project_repo
    ):
        result = await GuestMigrationService(guest_store).migrate(user, remote_strategy)

        assert result.attempted is False
        project_repo.upsert_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_empty_record_is_a_no_op(self, guest_store, user, remote_strategy, task_repo):
        guest_store.save([], [])

        result = await GuestMigrationService(guest_store).migrate(user, remote_strategy)

        assert result.attempted is False
        task_repo.upsert_many.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uploads_in_dependency_order(
        self, seeded_guest, user, remote_strategy, order, task_repo, subtask_repo
    ):
        result = await GuestMigrationService(seeded_guest).migrate(user, remote_strategy)

        assert order == ["projects", "tasks", "subtasks"]
        tasks, owner = task_repo.upsert_many.call_args.args
        assert owner == "user-1"
        assert [t.id for t in tasks] == ["t1"]
        pairs = subtask_repo.upsert_many.call_args.args[0]
        assert [(task_id, s.id) for task_id, s in pairs] == [("t1", "s1"), ("t1", "s2")]
        assert result.success
        assert (result.projects_uploaded, result.tasks_uploaded, result.subtasks_uploaded) == (
            1,
            1,
            2,
        )
        assert result.guest_record_cleared
        assert not seeded_guest.exists()

    @pytest.mark.asyncio
    async def test_project_failure_does_not_stop_tasks(
        self, seeded_guest, user, remote_strategy, order, project_repo
    ):
        project_repo.upsert_many.side_effect = BackendError("denied", status=403)

        result = await GuestMigrationService(seeded_guest).migrate(user, remote_strategy)

        assert order == ["tasks", "subtasks"]
        assert len(result.errors) == 1
        assert result.errors[0].startswith("projects:")

    @pytest.mark.asyncio
    async def test_task_failure_skips_subtasks(
        self, seeded_guest, user, remote_strategy, task_repo, subtask_repo
    ):
        task_repo.upsert_many.side_effect = BackendError("fk violation", code="23503")

        result = await GuestMigrationService(seeded_guest).migrate(user, remote_strategy)

        subtask_repo.upsert_many.assert_not_awaited()
        assert [e.split(":")[0] for e in result.errors] == ["tasks", "subtasks"]

    @pytest.mark.asyncio
    async def test_partial_failure_clears_record_by_default(
        self, seeded_guest, user, remote_strategy, task_repo
    ):
        task_repo.upsert_many.side_effect = BackendError("boom", status=500)

        result = await GuestMigrationService(seeded_guest).migrate(user, remote_strategy)

        assert not result.success
        assert result.guest_record_cleared
        assert not seeded_guest.exists()

    @pytest.mark.asyncio
    async def test_partial_failure_can_keep_record_for_retry(
        self, seeded_guest, user, remote_strategy, task_repo
    ):
        task_repo.upsert_many.side_effect = BackendError("boom", status=500)
        service = GuestMigrationService(seeded_guest, clear_on_partial_failure=False)

        result = await service.migrate(user, remote_strategy)

        assert not result.guest_record_cleared
        assert seeded_guest.exists()

        task_repo.upsert_many.side_effect = None
        task_repo.upsert_many.return_value = 1
        retry = await service.migrate(user, remote_strategy)
        assert retry.success
        assert not seeded_guest.exists()

    @pytest.mark.asyncio
    async def test_unexpected_errors_propagate(
        self, seeded_guest, user, remote_strategy, project_repo
    ):
        project_repo.upsert_many.side_effect = KeyError("bug")

        with pytest.raises(KeyError):
            await GuestMigrationService(seeded_guest).migrate(user, remote_strategy)
        assert seeded_guest.exists()
