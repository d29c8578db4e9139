"""Tests for the deletion coordinator."""

import asyncio
import logging
from dataclasses import replace
from datetime import timedelta
from unittest.mock import patch

import pytest

from src.core.models import Decision, TaskState
from src.deletion.confirmation import ConfirmationProtocol
from src.deletion.coordinator import DeletionCoordinator
from src.deletion.errors import (
    BatchTooLarge,
    NotInRecycleBin,
    StorageFailure,
    TaskNotFound,
)
from src.deletion.events import EventKind
from src.deletion.recycle_bin import RecycleBin


async def settle() -> None:
    for _ in range(5):
        await asyncio.sleep(0)


@pytest.fixture
def events(coordinator):
    """Every event published by the coordinator, in order."""
    received = []
    coordinator.notifier.subscribe(received.append)
    return received


class TestSoftDelete:
    """Tests for moving tasks to the recycle bin."""

    @pytest.mark.asyncio
    async def test_soft_delete_creates_record(self, coordinator, store, tasks, clock, events):
        task = tasks[0]

        record = await coordinator.soft_delete(task.id)

        assert record.task.title == task.title
        assert record.deleted_at == clock.now
        assert record.expires_at == clock.now + timedelta(days=30)
        assert record.deleted_by == "user"
        assert coordinator.recycle_bin.get(task.id) == record
        assert not (await store.find_task(task.id)).is_live
        assert await coordinator.state_of(task.id) is TaskState.SOFT_DELETED
        assert [e.kind for e in events] == [EventKind.TASK_DELETED]
        assert events[0].recycle_record == record

    @pytest.mark.asyncio
    async def test_soft_delete_unknown_task_raises(self, coordinator):
        with pytest.raises(TaskNotFound):
            await coordinator.soft_delete("missing")

    @pytest.mark.asyncio
    async def test_soft_delete_twice_raises(self, coordinator, tasks):
        await coordinator.soft_delete(tasks[0].id)

        with pytest.raises(TaskNotFound):
            await coordinator.soft_delete(tasks[0].id)

    @pytest.mark.asyncio
    async def test_duplicate_request_while_in_flight_is_noop(self, coordinator, tasks, events):
        """A second request for an in-flight id has no observable effect."""
        gate = asyncio.Event()

        async def hold(task_id):
            await gate.wait()

        coordinator.set_exit_animation(hold)
        task_id = tasks[0].id

        first = asyncio.create_task(coordinator.soft_delete(task_id))
        await settle()

        assert coordinator.is_in_flight(task_id)
        assert await coordinator.state_of(task_id) is TaskState.DELETING
        assert await coordinator.soft_delete(task_id) is None
        assert await coordinator.permanent_delete(task_id) is False

        gate.set()
        assert await first is not None
        assert not coordinator.is_in_flight(task_id)
        assert len(events) == 1
        assert len(coordinator.history_for(task_id)) == 1

    @pytest.mark.asyncio
    async def test_animation_failure_does_not_block_delete(self, coordinator, tasks):
        async def broken(task_id):
            raise RuntimeError("animation crashed")

        coordinator.set_exit_animation(broken)

        assert await coordinator.soft_delete(tasks[0].id) is not None

    @pytest.mark.asyncio
    async def test_storage_failure_leaves_task_live(self, coordinator, store, tasks):
        task_id = tasks[0].id

        with patch.object(store, "soft_delete_task", side_effect=OSError("disk full")):
            with pytest.raises(StorageFailure) as exc_info:
                await coordinator.soft_delete(task_id)

        assert exc_info.value.operation == "soft_delete"
        assert task_id not in coordinator.recycle_bin
        assert not coordinator.is_in_flight(task_id)
        assert await coordinator.state_of(task_id) is TaskState.LIVE

    @pytest.mark.asyncio
    async def test_failed_restore_rolls_back_to_bin(self, coordinator, store, tasks, caplog):
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)

        with caplog.at_level(logging.INFO, logger="src.deletion.coordinator"):
            with patch.object(store, "restore_task", side_effect=OSError("disk full")):
                with pytest.raises(StorageFailure):
                    await coordinator.restore(task_id)

        assert f"Task {task_id} rolled back to soft_deleted" in caplog.text
        assert await coordinator.state_of(task_id) is TaskState.SOFT_DELETED
        assert task_id in coordinator.recycle_bin

    @pytest.mark.asyncio
    async def test_failed_purge_rolls_back_to_bin(self, coordinator, store, tasks, caplog):
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)

        with caplog.at_level(logging.INFO, logger="src.deletion.coordinator"):
            with patch.object(store, "hard_delete_task", side_effect=OSError("disk full")):
                with pytest.raises(StorageFailure):
                    await coordinator.permanent_delete(task_id)

        assert f"Task {task_id} rolled back to soft_deleted" in caplog.text
        assert task_id in coordinator.recycle_bin


class TestRestore:
    """Tests for restoring from the recycle bin."""

    @pytest.mark.asyncio
    async def test_delete_then_restore(self, coordinator, store, tasks, events):
        """Scenario: delete, restore, and exactly one restored event."""
        task = tasks[0]
        await coordinator.soft_delete(task.id)

        restored = await coordinator.restore(task.id)

        assert restored.title == task.title
        assert (await store.find_task(task.id)).is_live
        assert task.id not in coordinator.recycle_bin
        assert [e.kind for e in events].count(EventKind.TASK_RESTORED) == 1

        history = coordinator.history_for(task.id)
        assert [(h.from_state, h.to_state) for h in history] == [
            (TaskState.LIVE, TaskState.SOFT_DELETED),
            (TaskState.SOFT_DELETED, TaskState.LIVE),
        ]

    @pytest.mark.asyncio
    async def test_restore_without_record_raises(self, coordinator, tasks):
        with pytest.raises(NotInRecycleBin):
            await coordinator.restore(tasks[0].id)

    @pytest.mark.asyncio
    async def test_second_restore_raises(self, coordinator, tasks):
        await coordinator.soft_delete(tasks[0].id)
        await coordinator.restore(tasks[0].id)

        with pytest.raises(NotInRecycleBin):
            await coordinator.restore(tasks[0].id)

    @pytest.mark.asyncio
    async def test_restore_during_permanent_delete_is_noop(self, coordinator, store, tasks):
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)
        gate = asyncio.Event()
        real_hard_delete = store.hard_delete_task

        async def slow_hard_delete(tid):
            await gate.wait()
            await real_hard_delete(tid)

        with patch.object(store, "hard_delete_task", side_effect=slow_hard_delete):
            purge = asyncio.create_task(coordinator.permanent_delete(task_id))
            await settle()

            assert await coordinator.restore(task_id) is None

            gate.set()
            assert await purge is True

        assert await store.find_task(task_id) is None


class TestPermanentDelete:
    """Tests for irreversible deletion."""

    @pytest.mark.asyncio
    async def test_soft_then_permanent_then_restore_fails(self, coordinator, store, tasks, events):
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)

        assert await coordinator.permanent_delete(task_id) is True

        assert await store.find_task(task_id) is None
        assert task_id not in coordinator.recycle_bin
        assert await coordinator.state_of(task_id) is TaskState.GONE
        assert events[-1].kind is EventKind.TASK_PERMANENTLY_DELETED
        assert events[-1].is_permanent
        assert coordinator.history_for(task_id)[-1].permanent
        with pytest.raises(NotInRecycleBin):
            await coordinator.restore(task_id)

    @pytest.mark.asyncio
    async def test_permanent_delete_of_live_task(self, coordinator, store, tasks):
        task_id = tasks[0].id

        assert await coordinator.permanent_delete(task_id) is True

        assert await store.find_task(task_id) is None
        entry = coordinator.history_for(task_id)[-1]
        assert entry.from_state is TaskState.LIVE
        assert entry.to_state is TaskState.GONE

    @pytest.mark.asyncio
    async def test_unknown_task_raises(self, coordinator):
        with pytest.raises(TaskNotFound):
            await coordinator.permanent_delete("missing")

    @pytest.mark.asyncio
    async def test_record_without_stored_task_is_dropped(self, coordinator, store, tasks):
        """A binned task already gone from the store still leaves the bin."""
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)
        await store.hard_delete_task(task_id)

        assert await coordinator.permanent_delete(task_id) is True
        assert task_id not in coordinator.recycle_bin

    @pytest.mark.asyncio
    async def test_storage_failure_keeps_record(self, coordinator, store, tasks):
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)

        with patch.object(store, "hard_delete_task", side_effect=OSError("locked")):
            with pytest.raises(StorageFailure):
                await coordinator.permanent_delete(task_id)

        assert task_id in coordinator.recycle_bin


class TestBatches:
    """Tests for multi-task requests."""

    @pytest.mark.asyncio
    async def test_one_invalid_id_fails_alone(self, coordinator, tasks):
        ids = [t.id for t in tasks] + ["missing"]

        result = await coordinator.request_delete(ids)

        assert sorted(result.succeeded) == sorted(t.id for t in tasks)
        assert result.failed == ["missing"]
        assert isinstance(result.errors[0], TaskNotFound)
        assert not result.success
        assert len(coordinator.recycle_bin) == 3

    @pytest.mark.asyncio
    async def test_oversize_batch_deletes_nothing(self, coordinator, store, tasks):
        extra = [store.add_task(f"extra {n}") for n in range(3)]
        ids = [t.id for t in tasks + extra]

        with pytest.raises(BatchTooLarge) as exc_info:
            await coordinator.request_delete(ids)

        assert exc_info.value.size == 6
        assert exc_info.value.limit == 5
        assert len(coordinator.recycle_bin) == 0
        assert len(store.list_tasks()) == 6

    @pytest.mark.asyncio
    async def test_limit_counts_repeated_ids(self, coordinator, tasks):
        ids = [tasks[0].id] * 5 + [tasks[1].id]

        with pytest.raises(BatchTooLarge) as exc_info:
            await coordinator.request_delete(ids)

        assert exc_info.value.size == 6
        assert len(coordinator.recycle_bin) == 0

    @pytest.mark.asyncio
    async def test_duplicate_ids_are_collapsed(self, coordinator, tasks):
        result = await coordinator.request_delete([tasks[0].id, tasks[0].id])

        assert result.succeeded == [tasks[0].id]
        assert result.failed == []

    @pytest.mark.asyncio
    async def test_empty_request(self, coordinator):
        result = await coordinator.request_delete([])

        assert result.total == 0
        assert not result.cancelled

    @pytest.mark.asyncio
    async def test_permanent_batch(self, coordinator, store, tasks):
        result = await coordinator.request_delete([t.id for t in tasks], permanent=True)

        assert result.permanent
        assert len(result.succeeded) == 3
        assert store.list_tasks(include_deleted=True) == []

    @pytest.mark.asyncio
    async def test_empty_recycle_bin(self, coordinator, store, tasks):
        await coordinator.soft_delete_many([t.id for t in tasks[:2]])

        result = await coordinator.empty_recycle_bin()

        assert len(result.succeeded) == 2
        assert len(coordinator.recycle_bin) == 0
        assert [t.id for t in store.list_tasks(include_deleted=True)] == [tasks[2].id]


class TestConfirmationFlow:
    """Tests for requests that go through the prompt."""

    @pytest.fixture
    def confirming(self, store, recycle_bin, settings, clock):
        protocol = ConfirmationProtocol(default_timeout_ms=0)
        return DeletionCoordinator(
            store,
            recycle_bin,
            settings=replace(settings, confirm_before_delete=True),
            confirmation=protocol,
            clock=clock,
        )

    @pytest.mark.asyncio
    async def test_cancelled_prompt_deletes_nothing(self, confirming, store, tasks):
        request = asyncio.create_task(confirming.request_delete([tasks[0].id]))
        await settle()

        assert confirming.confirmation.cancel_active()
        result = await request

        assert result.cancelled
        assert result.total == 0
        assert (await store.find_task(tasks[0].id)).is_live

    @pytest.mark.asyncio
    async def test_confirmed_prompt_deletes(self, confirming, tasks):
        request = asyncio.create_task(confirming.request_delete([tasks[0].id], permanent=True))
        await settle()

        pending = confirming.confirmation.active
        assert pending.request.is_permanent
        assert pending.confirm()
        assert pending.decision is Decision.CONFIRMED

        result = await request
        assert result.succeeded == [tasks[0].id]

    @pytest.mark.asyncio
    async def test_skip_confirmation(self, confirming, tasks):
        result = await confirming.request_delete([tasks[0].id], skip_confirmation=True)

        assert result.succeeded == [tasks[0].id]
        assert confirming.confirmation.active is None


class TestExpiry:
    """Tests for the expiry sweep."""

    @pytest.mark.asyncio
    async def test_sweep_hard_deletes_exactly_once(self, coordinator, store, tasks, clock, events):
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)

        clock.advance(days=29)
        assert await coordinator.sweep_expired() == []

        clock.advance(days=1)
        assert await coordinator.sweep_expired() == [task_id]
        assert await coordinator.sweep_expired() == []

        assert await store.find_task(task_id) is None
        purges = [e for e in events if e.kind is EventKind.TASK_PERMANENTLY_DELETED]
        assert len(purges) == 1

    @pytest.mark.asyncio
    async def test_sweep_failure_keeps_record_for_next_sweep(self, coordinator, store, tasks, clock):
        task_id = tasks[0].id
        await coordinator.soft_delete(task_id)
        clock.advance(days=31)

        with patch.object(store, "hard_delete_task", side_effect=OSError("busy")):
            assert await coordinator.sweep_expired() == []

        assert task_id in coordinator.recycle_bin
        assert await coordinator.sweep_expired() == [task_id]

    @pytest.mark.asyncio
    async def test_start_loads_and_sweeps(self, coordinator, store, storage, tasks, clock, settings):
        await coordinator.soft_delete(tasks[0].id)
        await coordinator.soft_delete(tasks[1].id)
        clock.advance(days=30)
        await coordinator.restore(tasks[1].id)
        await coordinator.soft_delete(tasks[1].id)

        fresh = DeletionCoordinator(
            store, RecycleBin(storage), settings=settings, clock=clock
        )
        swept = await fresh.start()

        assert swept == [tasks[0].id]
        assert tasks[1].id in fresh.recycle_bin


class TestHistory:
    """Tests for the per-task history cap."""

    @pytest.mark.asyncio
    async def test_history_cap_evicts_oldest(self, coordinator, tasks):
        task_id = tasks[0].id
        for _ in range(6):
            await coordinator.soft_delete(task_id)
            await coordinator.restore(task_id)

        history = coordinator.history_for(task_id)
        assert len(history) == 10
        assert history[0].to_state is TaskState.SOFT_DELETED
        assert history[-1].to_state is TaskState.LIVE
