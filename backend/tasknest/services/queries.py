"""
Read-only task listings and statistics.

Every query is scoped to one owner and skips soft-deleted tasks. Listings
return whole task documents; filtering and sorting run on the mirrored
columns of ``TaskRecord``.
"""

from enum import StrEnum

from sqlalchemy import or_

from tasknest.exceptions import ValidationError
from tasknest.logging_config import get_logger
from tasknest.models import TaskRecord
from tasknest.models.task import tag_token
from tasknest.repository import TaskRepository, live_for
from tasknest.schemas import Task, TaskPriority, TaskStats, TaskStatus
from tasknest.schemas.common import percentage
from tasknest.timeutils import local_day_bounds, utcnow

logger = get_logger(__name__)

MIN_SEARCH_LENGTH = 2


class TaskSort(StrEnum):
    CREATED = "created"  # newest first
    DUE_DATE = "due_date"  # soonest first, undated last
    PRIORITY = "priority"  # urgent first


_ORDERING = {
    TaskSort.CREATED: (TaskRecord.created_at.desc(),),
    TaskSort.DUE_DATE: (TaskRecord.due_date.is_(None), TaskRecord.due_date.asc(), TaskRecord.created_at.desc()),
    TaskSort.PRIORITY: (TaskRecord.priority_rank.desc(), TaskRecord.created_at.desc()),
}


class TaskQueries:
    """Owner-scoped listings over the task repository."""

    def __init__(self, repo: TaskRepository):
        self.repo = repo

    async def list_tasks(
        self,
        owner_id: str,
        status: TaskStatus | None = None,
        priority: TaskPriority | None = None,
        category: str | None = None,
        sort: TaskSort = TaskSort.CREATED,
        include_archived: bool = False,
    ) -> list[Task]:
        """Top-level tasks (no parent task), optionally filtered."""
        criteria = [*live_for(owner_id), TaskRecord.parent_id.is_(None)]
        if status is not None:
            criteria.append(TaskRecord.status == status.value)
        if priority is not None:
            criteria.append(TaskRecord.priority == priority.value)
        if category is not None:
            criteria.append(TaskRecord.category == category)
        if not include_archived:
            criteria.append(TaskRecord.is_archived.is_(False))

        tasks = await self.repo.find(*criteria, order_by=_ORDERING[sort])
        logger.debug(f"Listed {len(tasks)} tasks for {owner_id} (sort={sort.value})")
        return tasks

    async def by_status(self, owner_id: str, status: TaskStatus) -> list[Task]:
        return await self.repo.find(
            *live_for(owner_id),
            TaskRecord.status == status.value,
            order_by=_ORDERING[TaskSort.CREATED],
        )

    async def by_priority(self, owner_id: str, priority: TaskPriority) -> list[Task]:
        return await self.repo.find(
            *live_for(owner_id),
            TaskRecord.priority == priority.value,
            order_by=_ORDERING[TaskSort.CREATED],
        )

    async def by_tag(self, owner_id: str, tag: str) -> list[Task]:
        """Tasks carrying exactly ``tag`` (case-sensitive membership)."""
        return await self.repo.find(
            *live_for(owner_id),
            TaskRecord.tags_text.contains(tag_token(tag), autoescape=True),
            order_by=_ORDERING[TaskSort.CREATED],
        )

    async def search(self, owner_id: str, query: str) -> list[Task]:
        """Case-insensitive substring match over title, description and tags."""
        term = query.strip()
        if len(term) < MIN_SEARCH_LENGTH:
            raise ValidationError.for_field(
                "query",
                f"Search query must be at least {MIN_SEARCH_LENGTH} characters",
                "string_too_short",
            )

        matches = or_(
            TaskRecord.title.icontains(term, autoescape=True),
            TaskRecord.description.icontains(term, autoescape=True),
            TaskRecord.tags_text.icontains(term, autoescape=True),
        )
        tasks = await self.repo.find(*live_for(owner_id), matches, order_by=_ORDERING[TaskSort.CREATED])
        logger.debug(f"Search '{term}' for {owner_id}: {len(tasks)} hits")
        return tasks

    async def overdue(self, owner_id: str) -> list[Task]:
        return await self.repo.find(
            *live_for(owner_id),
            TaskRecord.due_date < utcnow(),
            TaskRecord.completed.is_(False),
            order_by=_ORDERING[TaskSort.DUE_DATE],
        )

    async def due_today(self, owner_id: str) -> list[Task]:
        """Tasks due within the server's current local calendar day."""
        start, end = local_day_bounds()
        return await self.repo.find(
            *live_for(owner_id),
            TaskRecord.due_date >= start,
            TaskRecord.due_date <= end,
            order_by=_ORDERING[TaskSort.DUE_DATE],
        )

    async def archived(self, owner_id: str) -> list[Task]:
        return await self.repo.find(
            *live_for(owner_id),
            TaskRecord.is_archived.is_(True),
            order_by=(TaskRecord.updated_at.desc(),),
        )

    async def all_tags(self, owner_id: str) -> list[str]:
        return await self.repo.distinct_tags(*live_for(owner_id))

    async def stats(self, owner_id: str) -> TaskStats:
        """Counts per status plus overdue, urgent-and-open and completion rate."""
        live = live_for(owner_id)

        per_status = {}
        for status in TaskStatus:
            per_status[status] = await self.repo.count(*live, TaskRecord.status == status.value)
        total = sum(per_status.values())

        overdue = await self.repo.count(*live, TaskRecord.due_date < utcnow(), TaskRecord.completed.is_(False))
        urgent = await self.repo.count(
            *live,
            TaskRecord.priority == TaskPriority.URGENT.value,
            TaskRecord.completed.is_(False),
        )
        completed = per_status[TaskStatus.COMPLETED]

        return TaskStats(
            total=total,
            todo=per_status[TaskStatus.TODO],
            in_progress=per_status[TaskStatus.IN_PROGRESS],
            completed=completed,
            blocked=per_status[TaskStatus.BLOCKED],
            on_hold=per_status[TaskStatus.ON_HOLD],
            overdue=overdue,
            urgent=urgent,
            completion_percentage=percentage(completed, total),
        )
