"""Tests for lifecycle event notification."""

from src.core.models import Task
from src.deletion.events import DeletionEvent, EventKind, EventNotifier


def make_event(kind=EventKind.TASK_DELETED):
    task = Task(title="Evented")
    return DeletionEvent(kind=kind, task_id=task.id, task=task)


class TestEventNotifier:
    """Tests for EventNotifier."""

    def test_event_names(self):
        assert EventKind.TASK_DELETED.value == "taskDeleted"
        assert EventKind.TASK_PERMANENTLY_DELETED.value == "taskPermanentlyDeleted"
        assert EventKind.TASK_RESTORED.value == "taskRestored"

    def test_subscriber_receives_all_kinds(self):
        notifier = EventNotifier()
        received = []
        notifier.subscribe(received.append)

        notifier.publish(make_event(EventKind.TASK_DELETED))
        notifier.publish(make_event(EventKind.TASK_RESTORED))

        assert [e.kind for e in received] == [EventKind.TASK_DELETED, EventKind.TASK_RESTORED]

    def test_kind_filter(self):
        notifier = EventNotifier()
        restored = []
        notifier.subscribe(restored.append, kind=EventKind.TASK_RESTORED)

        notifier.publish(make_event(EventKind.TASK_DELETED))
        notifier.publish(make_event(EventKind.TASK_RESTORED))

        assert len(restored) == 1

    def test_failing_subscriber_does_not_block_others(self, caplog):
        notifier = EventNotifier()
        received = []

        def broken(event):
            raise RuntimeError("boom")

        notifier.subscribe(broken)
        notifier.subscribe(received.append)

        delivered = notifier.publish(make_event())

        assert delivered == 1
        assert len(received) == 1
        assert "boom" in caplog.text

    def test_unsubscribe(self):
        notifier = EventNotifier()
        received = []
        unsubscribe = notifier.subscribe(received.append)

        unsubscribe()
        unsubscribe()
        notifier.publish(make_event())

        assert received == []
