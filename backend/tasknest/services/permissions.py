"""
Access checks for tasks.

Two kinds of checks exist side by side:
- share-aware: the owner, or a user whose share grants at least the
  required level (view < edit < admin)
- owner-only: destructive operations (delete, reassign, archive, sharing)
  ignore shares entirely

Comments and attachments add a third, independent rule: only their author
may edit or delete them.
"""

from tasknest.exceptions import ForbiddenError
from tasknest.logging_config import get_logger
from tasknest.schemas import AccessLevel, SharePermission, Task

logger = get_logger(__name__)

_GRANT_RANK = {
    SharePermission.VIEW: 1,
    SharePermission.EDIT: 2,
    SharePermission.ADMIN: 3,
}

_REQUIRED_RANK = {
    AccessLevel.VIEW: 1,
    AccessLevel.EDIT: 2,
    AccessLevel.ADMIN: 3,
}


def is_owner(task: Task, actor_id: str) -> bool:
    return task.owner_id == actor_id


def can_access(task: Task, actor_id: str, required: AccessLevel) -> bool:
    """Whether ``actor_id`` may perform an operation needing ``required``."""
    if is_owner(task, actor_id):
        return True
    if required == AccessLevel.OWNER:
        return False
    share = task.share_for(actor_id)
    if share is None:
        return False
    return _GRANT_RANK[share.permission] >= _REQUIRED_RANK[required]


def require_access(task: Task, actor_id: str, required: AccessLevel) -> None:
    if not can_access(task, actor_id, required):
        logger.warning(f"Denied {required.value} access to task {task.id} for user {actor_id}")
        raise ForbiddenError()


def require_owner(task: Task, actor_id: str) -> None:
    if not is_owner(task, actor_id):
        logger.warning(f"Denied owner-only operation on task {task.id} for user {actor_id}")
        raise ForbiddenError("Only the task owner can do this")


def require_author(author_id: str, actor_id: str, resource: str) -> None:
    """Only the author of a comment/uploader of an attachment may change it."""
    if author_id != actor_id:
        raise ForbiddenError(f"You can only modify your own {resource.lower()}s")


def is_participant(task: Task, user_id: str) -> bool:
    """Owner, any sharee, a watcher or the assignee: the people a task may talk to."""
    return (
        is_owner(task, user_id)
        or task.share_for(user_id) is not None
        or user_id in task.watchers
        or user_id == task.assignee_id
    )
