"""
Collaboration routes, nested under ``/tasks/{task_id}``: comments,
attachments, sharing, watchers and assignment.
"""

import uuid

from fastapi import APIRouter, Depends, status

from tasknest.dependencies import get_actor, get_collaboration_service
from tasknest.schemas import (
    AssignRequest,
    AttachmentCreate,
    CommentCreate,
    CommentUpdate,
    ShareCreate,
    Task,
    TaskRead,
    WatcherCreate,
)
from tasknest.services.collaboration import CollaborationService

router = APIRouter()


# ---- comments ----

@router.post("/comments", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def add_comment(
    task_id: uuid.UUID,
    comment_in: CommentCreate,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    """Comment on a task. Mentioned users are notified."""
    return await service.add_comment(task_id, actor_id, comment_in)


@router.patch("/comments/{comment_id}", response_model=TaskRead)
async def update_comment(
    task_id: uuid.UUID,
    comment_id: uuid.UUID,
    comment_in: CommentUpdate,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.update_comment(task_id, comment_id, actor_id, comment_in)


@router.delete("/comments/{comment_id}", response_model=TaskRead)
async def delete_comment(
    task_id: uuid.UUID,
    comment_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.delete_comment(task_id, comment_id, actor_id)


# ---- attachments ----

@router.post("/attachments", response_model=TaskRead, status_code=status.HTTP_201_CREATED)
async def add_attachment(
    task_id: uuid.UUID,
    attachment_in: AttachmentCreate,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    """Attach a file reference (the file itself is stored elsewhere)."""
    return await service.add_attachment(task_id, actor_id, attachment_in)


@router.delete("/attachments/{attachment_id}", response_model=TaskRead)
async def delete_attachment(
    task_id: uuid.UUID,
    attachment_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.delete_attachment(task_id, attachment_id, actor_id)


# ---- sharing ----

@router.post("/share", response_model=TaskRead)
async def share_task(
    task_id: uuid.UUID,
    share_in: ShareCreate,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.share(task_id, actor_id, share_in.user_id, share_in.permission)


@router.delete("/share/{user_id}", response_model=TaskRead)
async def revoke_share(
    task_id: uuid.UUID,
    user_id: str,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.revoke_share(task_id, actor_id, user_id)


# ---- watchers ----

@router.post("/watchers", response_model=TaskRead)
async def add_watcher(
    task_id: uuid.UUID,
    watcher_in: WatcherCreate,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.add_watcher(task_id, actor_id, watcher_in.watcher_id)


@router.delete("/watchers/{watcher_id}", response_model=TaskRead)
async def remove_watcher(
    task_id: uuid.UUID,
    watcher_id: str,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.remove_watcher(task_id, actor_id, watcher_id)


# ---- assignment ----

@router.patch("/assign", response_model=TaskRead)
async def assign_task(
    task_id: uuid.UUID,
    assign_in: AssignRequest,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.assign(task_id, actor_id, assign_in.assignee_id)


@router.patch("/unassign", response_model=TaskRead)
async def unassign_task(
    task_id: uuid.UUID,
    actor_id: str = Depends(get_actor),
    service: CollaborationService = Depends(get_collaboration_service),
) -> Task:
    return await service.unassign(task_id, actor_id)
