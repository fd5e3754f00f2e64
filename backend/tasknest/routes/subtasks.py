"""
Subtask routes, nested under ``/tasks/{task_id}/subtasks``.

Every route returns the whole parent task so clients get the updated tree
and checklist progress in one response.
"""

import uuid

from fastapi import APIRouter, Depends, status

from tasknest.dependencies import get_actor, get_task_service
from tasknest.schemas import SubtaskCreate, SubtaskUpdate, Task, TaskRead
from tasknest.services.lifecycle import TaskService

router = APIRouter()


@router.post("/", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def add_subtask(
    task_id: uuid.UUID,
    subtask_in: SubtaskCreate,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    """Add a subtask at the root of the tree, or under ``parent_id`` when given."""
    return await service.add_subtask(task_id, actor_id, subtask_in)


@router.patch("/{subtask_id}", response_model=TaskRead)
async def update_subtask(
    task_id: uuid.UUID,
    subtask_id: uuid.UUID,
    subtask_in: SubtaskUpdate,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    return await service.update_subtask(task_id, subtask_id, actor_id, subtask_in)


@router.delete("/{subtask_id}", response_model=TaskRead)
async def delete_subtask(
    task_id: uuid.UUID,
    subtask_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: TaskService = Depends(get_task_service),
) -> Task:
    """Remove a subtask together with everything nested under it."""
    return await service.delete_subtask(task_id, subtask_id, actor_id)
