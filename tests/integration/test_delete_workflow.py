"""End-to-end deletion workflow across restarts.

Uses real JSON storage in a temp directory, a fake clock, and a fresh
coordinator per "session" to verify that the recycle bin and the task store
stay consistent across process restarts.
"""

from datetime import timedelta

import pytest

from src.core.constants import RECYCLE_BIN_KEY
from src.core.models import TaskState
from src.deletion.coordinator import DeletionCoordinator
from src.deletion.errors import NotInRecycleBin
from src.deletion.recycle_bin import RecycleBin
from src.storage.task_store import JsonTaskStore


def new_session(storage, settings, clock):
    """Simulate an application start against existing storage."""
    return DeletionCoordinator(
        JsonTaskStore(storage),
        RecycleBin(storage),
        settings=settings,
        clock=clock,
    )


class TestRestartPersistence:
    """The recycle bin survives a restart."""

    @pytest.mark.asyncio
    async def test_soft_deleted_task_restorable_after_restart(self, storage, settings, clock):
        first = new_session(storage, settings, clock)
        await first.start()
        task = first.store.add_task("Survive restart")
        await first.request_delete([task.id])

        second = new_session(storage, settings, clock)
        assert await second.start() == []
        assert await second.state_of(task.id) is TaskState.SOFT_DELETED

        restored = await second.restore(task.id)
        assert restored.title == "Survive restart"

        third = new_session(storage, settings, clock)
        await third.start()
        assert len(third.recycle_bin) == 0
        assert [t.id for t in third.store.list_tasks()] == [task.id]

    @pytest.mark.asyncio
    async def test_expired_tasks_swept_on_next_start(self, storage, settings, clock):
        first = new_session(storage, settings, clock)
        await first.start()
        old = first.store.add_task("Old")
        await first.request_delete([old.id])

        clock.advance(days=settings.recycle_bin_retention_days, seconds=1)
        second = new_session(storage, settings, clock)

        assert await second.start() == [old.id]
        assert await second.state_of(old.id) is TaskState.GONE
        with pytest.raises(NotInRecycleBin):
            await second.restore(old.id)


class TestCorruptStorage:
    """Unreadable recycle bin data never blocks startup."""

    @pytest.mark.asyncio
    async def test_corrupt_bin_readopts_deleted_tasks(self, storage, settings, clock):
        first = new_session(storage, settings, clock)
        task = first.store.add_task("Orphaned")
        await first.request_delete([task.id])
        clock.now = (await first.store.find_task(task.id)).deleted_at
        (storage.root / f"{RECYCLE_BIN_KEY}.json").write_text("not json at all")

        second = new_session(storage, settings, clock)

        assert await second.start() == []
        assert [r.task_id for r in second.recycle_bin.records()] == [task.id]
        restored = await second.restore(task.id)
        assert restored.title == "Orphaned"
        assert restored.is_live

    @pytest.mark.asyncio
    async def test_readopted_task_expires_from_original_delete_time(
        self, storage, settings, clock
    ):
        first = new_session(storage, settings, clock)
        task = first.store.add_task("Lost record")
        await first.request_delete([task.id])
        deleted_at = (await first.store.find_task(task.id)).deleted_at
        storage.delete(RECYCLE_BIN_KEY)

        clock.now = deleted_at + timedelta(days=settings.recycle_bin_retention_days, seconds=1)
        second = new_session(storage, settings, clock)

        assert await second.start() == [task.id]
        assert await second.store.find_task(task.id) is None
        assert len(second.recycle_bin) == 0

    @pytest.mark.asyncio
    async def test_new_deletes_work_after_corruption(self, storage, settings, clock):
        storage.set(RECYCLE_BIN_KEY, "unexpected")
        session = new_session(storage, settings, clock)
        await session.start()
        task = session.store.add_task("Still works")

        result = await session.request_delete([task.id])

        assert result.succeeded == [task.id]
        assert session.recycle_bin.get(task.id).expires_at == clock.now + timedelta(days=30)
