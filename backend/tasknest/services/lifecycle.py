"""
Task lifecycle: creation, field updates, completion, time tracking,
archival, soft deletion, duplication, subtasks and bulk operations.

Every mutation follows the same read-modify-write cycle:
1. Load the live task document (missing or soft-deleted -> NotFoundError)
2. Check permissions (ForbiddenError)
3. Apply the change in memory, through the subtask tree engine when the
   tree is involved
4. Recompute checklist progress and append one activity entry
5. Save the whole document
Notifications are queued last, sent only once the session commits, and
never affect the outcome.
"""

import uuid
from collections.abc import Iterable

from tasknest.config import Settings, get_settings
from tasknest.exceptions import ForbiddenError, NotFoundError, ValidationError
from tasknest.logging_config import get_logger
from tasknest.repository import TaskRepository
from tasknest.schemas import (
    AccessLevel,
    ActivityAction,
    ActivityEntry,
    BulkTaskUpdate,
    SubtaskCreate,
    SubtaskUpdate,
    Task,
    TaskCreate,
    TaskStatus,
    TaskUpdate,
)
from tasknest.services import activity, permissions, subtask_tree
from tasknest.services.checklist import refresh_progress
from tasknest.services.notifications import (
    NotificationEvent,
    NotificationKind,
    Notifier,
    NullNotifier,
    dispatch_after_commit,
)
from tasknest.services.users import UserDirectory
from tasknest.timeutils import utcnow

logger = get_logger(__name__)

MAX_MINUTES_PER_LOG = 1440
COPY_SUFFIX = " (Copy)"
MAX_TITLE_LENGTH = 200


def apply_status(target: Task, status: TaskStatus) -> dict:
    """
    Set ``status`` and bring ``completed``/``completed_at`` in line with it.

    Returns the ``{"completed": {old, new}}`` change when completion flipped.
    """
    was_completed = target.completed
    target.status = status
    subtask_tree.set_completion(target, status == TaskStatus.COMPLETED)
    if target.completed != was_completed:
        return {"completed": activity.field_change(was_completed, target.completed)}
    return {}


def copy_title(title: str) -> str:
    return title[: MAX_TITLE_LENGTH - len(COPY_SUFFIX)] + COPY_SUFFIX


class TaskServiceBase:
    """Loading, permission and notification plumbing shared by the task services."""

    def __init__(
        self,
        repo: TaskRepository,
        users: UserDirectory,
        notifier: Notifier | None = None,
        settings: Settings | None = None,
    ):
        self.repo = repo
        self.users = users
        self.notifier = notifier or NullNotifier()
        self.settings = settings or get_settings()

    async def _load(self, task_id: uuid.UUID) -> Task:
        task = await self.repo.get(task_id)
        if task is None:
            raise NotFoundError("Task", task_id)
        return task

    async def _load_for(self, task_id: uuid.UUID, actor_id: str, required: AccessLevel) -> Task:
        task = await self._load(task_id)
        permissions.require_access(task, actor_id, required)
        return task

    async def _load_owned(self, task_id: uuid.UUID, actor_id: str) -> Task:
        task = await self._load(task_id)
        permissions.require_owner(task, actor_id)
        return task

    async def _require_user(self, user_id: str, resource: str = "User") -> None:
        if not await self.users.exists(user_id):
            raise NotFoundError(resource, user_id)

    def _notify(
        self,
        kind: NotificationKind,
        task: Task,
        actor_id: str,
        recipients: Iterable[str | None],
        **detail,
    ) -> None:
        event = NotificationEvent(
            kind=kind,
            task_id=task.id,
            task_title=task.title,
            actor_id=actor_id,
            recipients=[r for r in recipients if r],
            detail=detail,
        )
        dispatch_after_commit(self.repo.session, self.notifier, event)

    def _notify_status(self, task: Task, actor_id: str) -> None:
        if not task.notification_settings.notify_on_status_change:
            return
        kind = NotificationKind.COMPLETED if task.completed else NotificationKind.STATUS_CHANGED
        audience = [task.assignee_id, *task.watchers]
        self._notify(kind, task, actor_id, audience, status=task.status.value)


class TaskService(TaskServiceBase):
    """Lifecycle operations on a single task and bulk operations across tasks."""

    # ---- create / read ----

    async def create(self, owner_id: str, data: TaskCreate) -> Task:
        """Create a task owned by ``owner_id`` with a single ``created`` entry."""
        task = Task(owner_id=owner_id, status=TaskStatus.TODO, **data.model_dump())
        activity.record(task, ActivityAction.CREATED, owner_id)
        await self.repo.add(task)

        logger.info(f"Created task: id={task.id} title='{task.title}' owner={owner_id}")
        return task

    async def get(self, task_id: uuid.UUID, actor_id: str) -> Task:
        """Read one task; soft-deleted tasks stay readable by id."""
        task = await self.repo.get(task_id, include_deleted=True)
        if task is None:
            raise NotFoundError("Task", task_id)
        permissions.require_access(task, actor_id, AccessLevel.VIEW)
        return task

    async def activity_log(self, task_id: uuid.UUID, actor_id: str) -> list[ActivityEntry]:
        task = await self.repo.get(task_id, include_deleted=True)
        if task is None:
            raise NotFoundError("Task", task_id)
        permissions.require_access(task, actor_id, AccessLevel.ADMIN)
        return task.activity_log

    # ---- field updates ----

    async def update(self, task_id: uuid.UUID, actor_id: str, patch: TaskUpdate) -> Task:
        """
        Apply the fields set on ``patch``.

        All changed fields go into one ``updated`` entry as ``{field: {old, new}}``.
        Fields set to their current value are ignored; if nothing changes,
        nothing is written.
        """
        task = await self._load_for(task_id, actor_id, AccessLevel.EDIT)

        values = patch.changes()
        changes = activity.diff_fields(task, values)
        if not changes:
            logger.debug(f"Update of task {task_id} changed nothing")
            return task

        status = changes.pop("status", None)
        for field, change in changes.items():
            setattr(task, field, change["new"])
        if status is not None:
            changes["status"] = status
            changes.update(apply_status(task, status["new"]))

        activity.record(task, ActivityAction.UPDATED, actor_id, changes)
        await self.repo.save(task)

        logger.info(f"Updated task {task_id}: {sorted(changes)}")
        if status is not None:
            self._notify_status(task, actor_id)
        return task

    async def complete(self, task_id: uuid.UUID, actor_id: str) -> Task:
        task = await self._load_owned(task_id, actor_id)

        apply_status(task, TaskStatus.COMPLETED)
        activity.record(task, ActivityAction.COMPLETED, actor_id)
        await self.repo.save(task)

        logger.info(f"Completed task {task_id}")
        self._notify_status(task, actor_id)
        return task

    async def incomplete(self, task_id: uuid.UUID, actor_id: str) -> Task:
        task = await self._load_owned(task_id, actor_id)

        was_completed = task.completed
        apply_status(task, TaskStatus.TODO)
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"completed": activity.field_change(was_completed, False)},
        )
        await self.repo.save(task)

        logger.info(f"Reopened task {task_id}")
        return task

    async def log_time(self, task_id: uuid.UUID, actor_id: str, minutes: int) -> Task:
        """Add ``minutes`` (1..1440) to the task's actual time."""
        if isinstance(minutes, bool) or not isinstance(minutes, int):
            raise ValidationError.for_field("minutes", "Time spent must be a whole number of minutes", "int_type")
        if not 0 < minutes <= MAX_MINUTES_PER_LOG:
            raise ValidationError.for_field(
                "minutes",
                f"Time spent must be between 1 and {MAX_MINUTES_PER_LOG} minutes",
                "range",
            )

        task = await self._load_owned(task_id, actor_id)
        task.actual_time += minutes
        activity.record(task, ActivityAction.UPDATED, actor_id, {"time_logged": minutes})
        await self.repo.save(task)

        logger.info(f"Logged {minutes} min on task {task_id} (total {task.actual_time})")
        return task

    # ---- archive / delete / duplicate ----

    async def archive(self, task_id: uuid.UUID, actor_id: str) -> Task:
        return await self._set_archived(task_id, actor_id, True)

    async def unarchive(self, task_id: uuid.UUID, actor_id: str) -> Task:
        return await self._set_archived(task_id, actor_id, False)

    async def _set_archived(self, task_id: uuid.UUID, actor_id: str, archived: bool) -> Task:
        # Archive toggles are not written to the activity log.
        task = await self._load_owned(task_id, actor_id)
        task.is_archived = archived
        await self.repo.save(task)

        logger.info(f"{'Archived' if archived else 'Unarchived'} task {task_id}")
        return task

    async def soft_delete(self, task_id: uuid.UUID, actor_id: str) -> Task:
        """Hide the task from every listing; the document itself is kept."""
        task = await self._load_owned(task_id, actor_id)
        task.is_deleted = True
        task.deleted_at = utcnow()
        await self.repo.save(task)

        logger.info(f"Soft-deleted task {task_id}: '{task.title}'")
        return task

    async def duplicate(self, task_id: uuid.UUID, actor_id: str) -> Task:
        """
        Copy content and the subtask tree into a new task.

        Sharing, comments, attachments and history are not copied; the copy
        starts with its own ``created`` entry.
        """
        original = await self._load_owned(task_id, actor_id)

        copy = Task(
            owner_id=actor_id,
            title=copy_title(original.title),
            description=original.description,
            priority=original.priority,
            category=original.category,
            tags=list(original.tags),
            estimated_time=original.estimated_time,
            subtasks=subtask_tree.copy_tree(original.subtasks),
        )
        refresh_progress(copy)
        activity.record(copy, ActivityAction.CREATED, actor_id)
        await self.repo.add(copy)

        logger.info(f"Duplicated task {task_id} as {copy.id}")
        return copy

    # ---- subtasks ----

    async def add_subtask(self, task_id: uuid.UUID, actor_id: str, data: SubtaskCreate) -> Task:
        """Insert a new subtask at the root of the tree or under ``data.parent_id``."""
        task = await self._load_for(task_id, actor_id, AccessLevel.EDIT)

        node = subtask_tree.insert(
            task.subtasks,
            data.parent_id,
            data.to_node(),
            self.settings.max_subtask_depth,
        )
        refresh_progress(task)
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"added": "subtask", "subtask_id": str(node.id)},
        )
        await self.repo.save(task)

        logger.info(f"Added subtask {node.id} to task {task_id} (parent={data.parent_id})")
        return task

    async def update_subtask(
        self,
        task_id: uuid.UUID,
        subtask_id: uuid.UUID,
        actor_id: str,
        patch: SubtaskUpdate,
    ) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.EDIT)

        if not subtask_tree.update(task.subtasks, subtask_id, patch):
            raise NotFoundError("Subtask", subtask_id)
        refresh_progress(task)
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"updated": "subtask", "subtask_id": str(subtask_id), "fields": sorted(patch.model_fields_set)},
        )
        await self.repo.save(task)

        logger.info(f"Updated subtask {subtask_id} of task {task_id}")
        return task

    async def delete_subtask(self, task_id: uuid.UUID, subtask_id: uuid.UUID, actor_id: str) -> Task:
        """Remove a subtask and everything nested under it (owner only)."""
        task = await self._load_owned(task_id, actor_id)

        if not subtask_tree.remove(task.subtasks, subtask_id):
            raise NotFoundError("Subtask", subtask_id)
        refresh_progress(task)
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"removed": "subtask", "subtask_id": str(subtask_id)},
        )
        await self.repo.save(task)

        logger.info(f"Removed subtask {subtask_id} from task {task_id}")
        return task

    # ---- bulk ----

    async def _verify_owned(self, actor_id: str, task_ids: list[uuid.UUID]) -> set[uuid.UUID]:
        requested = set(task_ids)
        owned = await self.repo.owned_ids(requested, actor_id)
        if owned != requested:
            logger.warning(
                f"Bulk operation by {actor_id} rejected: {len(requested - owned)} of "
                f"{len(requested)} tasks not owned"
            )
            raise ForbiddenError("Some tasks do not belong to you")
        return owned

    async def bulk_update(self, actor_id: str, task_ids: list[uuid.UUID], updates: BulkTaskUpdate) -> int:
        """
        Apply the same field values to many owned tasks.

        Every id is verified as owned and live before anything is written;
        one foreign or missing id rejects the whole batch. Returns the number
        of tasks that actually changed.
        """
        values = updates.changes()
        if not values:
            raise ValidationError.for_field("updates", "Updates must set at least one field", "missing")

        owned = await self._verify_owned(actor_id, task_ids)

        def mutate(task: Task) -> bool:
            changes = activity.diff_fields(task, values)
            if not changes:
                return False
            status = changes.pop("status", None)
            for field, change in changes.items():
                setattr(task, field, change["new"])
            if status is not None:
                changes["status"] = status
                changes.update(apply_status(task, status["new"]))
            activity.record(task, ActivityAction.UPDATED, actor_id, changes)
            return True

        modified = await self.repo.update_many(owned, actor_id, mutate)
        logger.info(f"Bulk updated {modified}/{len(owned)} tasks for {actor_id}: {sorted(values)}")
        return modified

    async def bulk_delete(self, actor_id: str, task_ids: list[uuid.UUID]) -> int:
        owned = await self._verify_owned(actor_id, task_ids)
        deleted_at = utcnow()

        def mutate(task: Task) -> bool:
            task.is_deleted = True
            task.deleted_at = deleted_at
            return True

        deleted = await self.repo.update_many(owned, actor_id, mutate)
        logger.info(f"Bulk soft-deleted {deleted}/{len(owned)} tasks for {actor_id}")
        return deleted
