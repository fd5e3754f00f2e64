"""
Fire-and-forget notifications.

The lifecycle services queue events on the request's database session.
They are only dispatched once that session commits; a rollback drops them,
so nobody hears about a change that never took effect.

Dispatch runs as a background asyncio task: the caller never waits for it,
nothing is retried, and a failing notifier is only logged. The production
notifier enqueues a ``deliver_notification`` job on the arq worker (see
``tasknest.worker``).
"""

import asyncio
import uuid
from enum import StrEnum
from typing import Any, Protocol

from pydantic import BaseModel, Field
from sqlalchemy import event as sa_event
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import Session

from tasknest.logging_config import get_logger

logger = get_logger(__name__)


class NotificationKind(StrEnum):
    ASSIGNED = "assigned"
    SHARED = "shared"
    MENTIONED = "mentioned"
    COMPLETED = "completed"
    STATUS_CHANGED = "status-changed"


class NotificationEvent(BaseModel):
    kind: NotificationKind
    task_id: uuid.UUID
    task_title: str
    actor_id: str
    recipients: list[str]
    detail: dict[str, Any] = Field(default_factory=dict)


class Notifier(Protocol):
    async def notify(self, event: NotificationEvent) -> None: ...


class NullNotifier:
    """Used when notifications are disabled."""

    async def notify(self, event: NotificationEvent) -> None:
        logger.debug(f"Notifications disabled, dropping {event.kind} for task {event.task_id}")


class ArqNotifier:
    """Enqueues each event as a ``deliver_notification`` job."""

    async def notify(self, event: NotificationEvent) -> None:
        from tasknest.worker import enqueue_notification

        await enqueue_notification(event.model_dump(mode="json"))


_pending: set[asyncio.Task] = set()


def dispatch(notifier: Notifier, event: NotificationEvent) -> None:
    """Schedule ``notifier.notify(event)`` without awaiting it."""
    recipients = [r for r in dict.fromkeys(event.recipients) if r and r != event.actor_id]
    if not recipients:
        return
    event = event.model_copy(update={"recipients": recipients})
    background = asyncio.get_running_loop().create_task(_deliver(notifier, event))
    _pending.add(background)
    background.add_done_callback(_pending.discard)


async def _deliver(notifier: Notifier, event: NotificationEvent) -> None:
    try:
        await notifier.notify(event)
    except Exception:
        logger.exception(f"Failed to dispatch {event.kind} notification for task {event.task_id}")


_OUTBOX_KEY = "tasknest.notification_outbox"


def dispatch_after_commit(session: AsyncSession, notifier: Notifier, event: NotificationEvent) -> None:
    """Hold ``event`` until ``session`` commits; a rollback discards it."""
    sync_session = session.sync_session
    outbox = sync_session.info.get(_OUTBOX_KEY)
    if outbox is None:
        outbox = sync_session.info[_OUTBOX_KEY] = []
        sa_event.listen(sync_session, "after_commit", _release_outbox)
        sa_event.listen(sync_session, "after_rollback", _discard_outbox)
    outbox.append((notifier, event))


def _release_outbox(session: Session) -> None:
    outbox = session.info.get(_OUTBOX_KEY, [])
    queued = list(outbox)
    outbox.clear()
    for notifier, event in queued:
        dispatch(notifier, event)


def _discard_outbox(session: Session) -> None:
    outbox = session.info.get(_OUTBOX_KEY, [])
    if outbox:
        logger.info(f"Transaction rolled back, dropping {len(outbox)} queued notifications")
        outbox.clear()


async def deliver_notification(ctx: dict, event: dict) -> str:
    """
    ARQ job: deliver one notification event to its recipients.

    Outbound email is handled outside this service; the job records each
    delivery so the worker log is the audit trail.
    """
    parsed = NotificationEvent.model_validate(event)
    for recipient in parsed.recipients:
        logger.info(
            f"Notify {recipient}: {parsed.kind} on '{parsed.task_title}' "
            f"({parsed.task_id}) by {parsed.actor_id}"
        )
    return f"Delivered {parsed.kind} to {len(parsed.recipients)} recipients"
