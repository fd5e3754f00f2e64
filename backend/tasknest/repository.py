"""
Document-store access for task documents.

Each task is read and written as a whole document (see ``TaskRecord``).
Saves are flushed inside the caller's session; the request-scoped session in
``database.get_session`` commits once at the end, so one request is one
atomic write. Concurrent writers to the same task are not coordinated: the
last commit wins.
"""

import uuid
from collections.abc import Callable, Iterable
from typing import Any

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import select

from tasknest.exceptions import InternalFailure
from tasknest.logging_config import get_logger
from tasknest.models import TaskRecord
from tasknest.schemas import Task
from tasknest.timeutils import utcnow

logger = get_logger(__name__)


def live_for(owner_id: str) -> list[Any]:
    """Criteria selecting an owner's tasks that are not soft-deleted."""
    return [TaskRecord.owner_id == owner_id, TaskRecord.is_deleted.is_(False)]


class TaskRepository:
    """Persistence collaborator for task documents."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get(self, task_id: uuid.UUID, include_deleted: bool = False) -> Task | None:
        """Load one task document; soft-deleted tasks only when asked for."""
        record = await self._get_record(task_id)
        if record is None or (record.is_deleted and not include_deleted):
            return None
        return record.to_task()

    async def find(self, *criteria: Any, order_by: Iterable[Any] = ()) -> list[Task]:
        query = select(TaskRecord).where(*criteria).order_by(*order_by)
        result = await self._execute(query)
        return [record.to_task() for record in result.scalars().all()]

    async def count(self, *criteria: Any) -> int:
        query = select(func.count()).select_from(TaskRecord).where(*criteria)
        result = await self._execute(query)
        return int(result.scalar_one())

    async def distinct_tags(self, *criteria: Any) -> list[str]:
        """Sorted set of every tag used by the matching tasks."""
        result = await self._execute(select(TaskRecord.tags).where(*criteria))
        tags: set[str] = set()
        for row_tags in result.scalars().all():
            tags.update(row_tags or [])
        return sorted(tags)

    async def add(self, task: Task) -> Task:
        self.session.add(TaskRecord.from_task(task))
        await self._flush(f"insert task {task.id}")
        return task

    async def save(self, task: Task) -> Task:
        """Write the whole document back, replacing whatever was stored."""
        task.updated_at = utcnow()
        record = await self._get_record(task.id)
        if record is None:
            return await self.add(task)
        record.apply(task)
        await self._flush(f"save task {task.id}")
        return task

    async def owned_ids(self, task_ids: Iterable[uuid.UUID], owner_id: str) -> set[uuid.UUID]:
        """Subset of ``task_ids`` that exist, are live and belong to ``owner_id``."""
        ids = list(set(task_ids))
        if not ids:
            return set()
        query = select(TaskRecord.id).where(TaskRecord.id.in_(ids), *live_for(owner_id))
        result = await self._execute(query)
        return set(result.scalars().all())

    async def update_many(
        self,
        task_ids: Iterable[uuid.UUID],
        owner_id: str,
        mutate: Callable[[Task], bool],
    ) -> int:
        """
        Apply ``mutate`` to every live task of ``owner_id`` among ``task_ids``.

        ``mutate`` returns whether it changed the task; only changed tasks are
        written and counted. The ownership/existence predicate is evaluated
        again here, so the count can be lower than the number of ids requested.
        """
        ids = list(set(task_ids))
        if not ids:
            return 0
        query = select(TaskRecord).where(TaskRecord.id.in_(ids), *live_for(owner_id))
        result = await self._execute(query)
        modified = 0
        for record in result.scalars().all():
            task = record.to_task()
            if not mutate(task):
                continue
            task.updated_at = utcnow()
            record.apply(task)
            modified += 1
        await self._flush(f"update {modified} tasks")
        return modified

    # ---- low-level helpers ----

    async def _get_record(self, task_id: uuid.UUID) -> TaskRecord | None:
        try:
            return await self.session.get(TaskRecord, task_id)
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to load task {task_id}")
            raise InternalFailure() from exc

    async def _execute(self, query):
        try:
            return await self.session.execute(query)
        except SQLAlchemyError as exc:
            logger.exception(f"Query failed: {exc}")
            raise InternalFailure() from exc

    async def _flush(self, what: str) -> None:
        try:
            await self.session.flush()
        except SQLAlchemyError as exc:
            logger.exception(f"Failed to {what}")
            raise InternalFailure() from exc
