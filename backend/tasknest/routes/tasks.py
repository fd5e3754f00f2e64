"""
Task routes for the Tasknest API.

Static paths (stats, overdue, bulk, ...) are declared before ``/{task_id}``
so they are not captured by it.
"""

import uuid

from fastapi import APIRouter, Depends, Response, status

from tasknest.dependencies import get_actor, get_queries, get_task_service
from tasknest.logging_config import get_logger
from tasknest.schemas import (
    ActivityEntry,
    BulkDeleteRequest,
    BulkDeleteResult,
    BulkUpdateRequest,
    BulkUpdateResult,
    Task,
    TaskCreate,
    TaskPriority,
    TaskRead,
    TaskStats,
    TaskStatus,
    TaskUpdate,
    TimeLogRequest,
)
from tasknest.services.lifecycle import TaskService
from tasknest.services.queries import TaskQueries, TaskSort

logger = get_logger(__name__)

router = APIRouter()


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def create_task(
    task_in: TaskCreate,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    """Create a new task owned by the caller."""
    return await service.create(actor_id, task_in)


@router.get("/", response_model=list[TaskRead])
async def list_tasks(
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    category: str | None = None,
    sort: TaskSort = TaskSort.CREATED,
    include_archived: bool = False,
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    """
    List the caller's top-level tasks.

    Optionally filter by status, priority and category. Archived tasks are
    left out unless ``include_archived`` is set; ``GET /tasks/archived``
    lists only them.
    """
    return await queries.list_tasks(
        actor_id,
        status=status,
        priority=priority,
        category=category,
        sort=sort,
        include_archived=include_archived,
    )


# =============================================================================
# Listings and statistics
# =============================================================================

@router.get("/stats", response_model=TaskStats)
async def task_stats(
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> TaskStats:
    return await queries.stats(actor_id)


@router.get("/overdue", response_model=list[TaskRead])
async def overdue_tasks(
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    return await queries.overdue(actor_id)


@router.get("/today", response_model=list[TaskRead])
async def tasks_due_today(
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    return await queries.due_today(actor_id)


@router.get("/archived", response_model=list[TaskRead])
async def archived_tasks(
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    return await queries.archived(actor_id)


@router.get("/tags", response_model=list[str])
async def all_tags(
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[str]:
    return await queries.all_tags(actor_id)


@router.get("/status/{task_status}", response_model=list[TaskRead])
async def tasks_by_status(
    task_status: TaskStatus,
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    return await queries.by_status(actor_id, task_status)


@router.get("/priority/{priority}", response_model=list[TaskRead])
async def tasks_by_priority(
    priority: TaskPriority,
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    return await queries.by_priority(actor_id, priority)


@router.get("/tag/{tag}", response_model=list[TaskRead])
async def tasks_by_tag(
    tag: str,
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    return await queries.by_tag(actor_id, tag)


@router.get("/search/{query}", response_model=list[TaskRead])
async def search_tasks(
    query: str,
    actor_id: str = Depends(get_actor),
    queries: TaskQueries = Depends(get_queries),
) -> list[Task]:
    """Case-insensitive search over title, description and tags."""
    return await queries.search(actor_id, query)


# =============================================================================
# Bulk operations
# =============================================================================

@router.patch("/bulk/update", response_model=BulkUpdateResult)
async def bulk_update_tasks(
    request: BulkUpdateRequest,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> BulkUpdateResult:
    """
    Apply the same updates to several tasks.

    All tasks must belong to the caller; otherwise nothing is changed.
    """
    modified = await service.bulk_update(actor_id, request.task_ids, request.updates)
    return BulkUpdateResult(modified_count=modified)


@router.post("/bulk/delete", response_model=BulkDeleteResult)
async def bulk_delete_tasks(
    request: BulkDeleteRequest,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> BulkDeleteResult:
    deleted = await service.bulk_delete(actor_id, request.task_ids)
    return BulkDeleteResult(deleted_count=deleted)


# =============================================================================
# Single task
# =============================================================================

@router.get("/{task_id}", response_model=TaskRead)
async def get_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    """Get a task by ID."""
    return await service.get(task_id, actor_id)


@router.patch("/{task_id}", response_model=TaskRead)
async def update_task(
    task_id: uuid.UUID,
    task_in: TaskUpdate,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    """
    Update a task.

    Only the fields present in the body are applied; all changes are
    recorded as one activity entry.
    """
    return await service.update(task_id, actor_id, task_in)


@router.delete("/{task_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Response:
    """Soft-delete a task. It stays readable by ID but leaves every listing."""
    await service.soft_delete(task_id, actor_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.patch("/{task_id}/complete", response_model=TaskRead)
async def complete_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.complete(task_id, actor_id)


@router.patch("/{task_id}/incomplete", response_model=TaskRead)
async def reopen_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.incomplete(task_id, actor_id)


@router.patch("/{task_id}/archive", response_model=TaskRead)
async def archive_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.archive(task_id, actor_id)


@router.patch("/{task_id}/unarchive", response_model=TaskRead)
async def unarchive_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.unarchive(task_id, actor_id)


@router.post("/{task_id}/time-tracking", response_model=TaskRead)
async def log_time(
    task_id: uuid.UUID,
    body: TimeLogRequest,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    """Add minutes spent to the task's actual time (1 to 1440 per entry)."""
    return await service.log_time(task_id, actor_id, body.minutes)


@router.post("/{task_id}/duplicate", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def duplicate_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.duplicate(task_id, actor_id)


@router.get("/{task_id}/activity", response_model=list[ActivityEntry])
async def task_activity(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> list[ActivityEntry]:
    return await service.activity_log(task_id, actor_id)
