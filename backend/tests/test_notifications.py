"""
Tests for fire-and-forget notification dispatch and the arq delivery job.
"""

import logging
import uuid

import pytest

from conftest import RecordingNotifier
from tasknest import worker
from tasknest.services.notifications import (
    ArqNotifier,
    NotificationEvent,
    NotificationKind,
    deliver_notification,
    dispatch,
)


def event(recipients, actor="alice", kind=NotificationKind.ASSIGNED):
    return NotificationEvent(
        kind=kind,
        task_id=uuid.uuid4(),
        task_title="Plan the trip",
        actor_id=actor,
        recipients=recipients,
    )


class FailingNotifier:
    async def notify(self, event):
        raise ConnectionError("redis is down")


class TestDispatch:

    @pytest.mark.asyncio
    async def test_dedupes_and_drops_actor(self):
        notifier = RecordingNotifier()

        dispatch(notifier, event(["bob", "alice", "bob", "carol"]))
        await notifier.settle()

        [delivered] = notifier.events
        assert delivered.recipients == ["bob", "carol"]

    @pytest.mark.asyncio
    async def test_nothing_left_nothing_sent(self):
        notifier = RecordingNotifier()

        dispatch(notifier, event(["alice"]))
        await notifier.settle()

        assert notifier.events == []

    @pytest.mark.asyncio
    async def test_failure_is_logged_not_raised(self, caplog):
        caplog.set_level(logging.ERROR, logger="tasknest.services.notifications")

        dispatch(FailingNotifier(), event(["bob"]))
        await RecordingNotifier().settle()

        assert "Failed to dispatch assigned notification" in caplog.text

    @pytest.mark.asyncio
    async def test_arq_notifier_enqueues_json(self, monkeypatch):
        enqueued = []

        async def fake_enqueue(payload):
            enqueued.append(payload)

        monkeypatch.setattr(worker, "enqueue_notification", fake_enqueue)
        sent = event(["bob"], kind=NotificationKind.SHARED)

        await ArqNotifier().notify(sent)

        assert enqueued[0]["kind"] == "shared"
        assert enqueued[0]["task_id"] == str(sent.task_id)


class TestDeliveryJob:

    @pytest.mark.asyncio
    async def test_deliver_notification(self, caplog):
        caplog.set_level(logging.INFO, logger="tasknest.services.notifications")
        payload = event(["bob", "carol"], kind=NotificationKind.COMPLETED).model_dump(mode="json")

        result = await deliver_notification({}, payload)

        assert result == "Delivered completed to 2 recipients"
        assert "Notify bob" in caplog.text
        assert "Notify carol" in caplog.text

    def test_worker_registers_job(self):
        assert deliver_notification in worker.WorkerSettings.functions
        assert worker.WorkerSettings.max_tries == 1
