"""
Collaboration on a task: sharing, watchers, assignment, comments and
attachments.

These operations run through the same load/check/mutate/record/save cycle
as ``TaskService``. Each one notifies the users it concerns; the acting user
never notifies themself.
"""

import uuid

from tasknest.exceptions import ConflictError, NotFoundError, ValidationError
from tasknest.logging_config import get_logger
from tasknest.schemas import (
    AccessLevel,
    ActivityAction,
    Attachment,
    AttachmentCreate,
    Comment,
    CommentCreate,
    CommentUpdate,
    SharePermission,
    ShareEntry,
    Task,
)
from tasknest.services import activity, permissions
from tasknest.services.lifecycle import TaskServiceBase
from tasknest.services.notifications import NotificationKind
from tasknest.timeutils import utcnow

logger = get_logger(__name__)


class CollaborationService(TaskServiceBase):

    # ---- sharing ----

    async def share(
        self,
        task_id: uuid.UUID,
        actor_id: str,
        user_id: str,
        permission: SharePermission = SharePermission.VIEW,
    ) -> Task:
        """
        Grant ``user_id`` access to the task at ``permission`` level.

        Raises:
            ValidationError: user_id is the owner
            NotFoundError: user_id is not a registered user
            ConflictError: the task is already shared with user_id
        """
        task = await self._load_owned(task_id, actor_id)

        if user_id == task.owner_id:
            raise ValidationError.for_field("user_id", "Cannot share a task with its owner", "owner")
        await self._require_user(user_id)
        if task.share_for(user_id) is not None:
            raise ConflictError("Task already shared with this user")

        task.shared_with.append(ShareEntry(user_id=user_id, permission=permission))
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"shared_with": user_id, "permission": permission.value},
        )
        await self.repo.save(task)

        logger.info(f"Shared task {task_id} with {user_id} ({permission.value})")
        self._notify(NotificationKind.SHARED, task, actor_id, [user_id], permission=permission.value)
        return task

    async def revoke_share(self, task_id: uuid.UUID, actor_id: str, user_id: str) -> Task:
        task = await self._load_owned(task_id, actor_id)

        share = task.share_for(user_id)
        if share is None:
            raise NotFoundError("Share", user_id)
        task.shared_with.remove(share)
        activity.record(task, ActivityAction.UPDATED, actor_id, {"unshared": user_id})
        await self.repo.save(task)

        logger.info(f"Revoked share of task {task_id} for {user_id}")
        return task

    # ---- watchers ----

    async def add_watcher(self, task_id: uuid.UUID, actor_id: str, watcher_id: str) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.VIEW)

        await self._require_user(watcher_id)
        if watcher_id in task.watchers:
            raise ConflictError("User is already watching this task")

        task.watchers.append(watcher_id)
        activity.record(task, ActivityAction.UPDATED, actor_id, {"watcher_added": watcher_id})
        await self.repo.save(task)

        logger.info(f"Added watcher {watcher_id} to task {task_id}")
        return task

    async def remove_watcher(self, task_id: uuid.UUID, actor_id: str, watcher_id: str) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.VIEW)

        if watcher_id not in task.watchers:
            raise NotFoundError("Watcher", watcher_id)
        task.watchers.remove(watcher_id)
        activity.record(task, ActivityAction.UPDATED, actor_id, {"watcher_removed": watcher_id})
        await self.repo.save(task)

        logger.info(f"Removed watcher {watcher_id} from task {task_id}")
        return task

    # ---- assignment ----

    async def assign(self, task_id: uuid.UUID, actor_id: str, assignee_id: str) -> Task:
        task = await self._load_owned(task_id, actor_id)
        await self._require_user(assignee_id)

        previous = task.assignee_id
        task.assignee_id = assignee_id
        activity.record(task, ActivityAction.ASSIGNED, actor_id, {"from": previous, "to": assignee_id})
        await self.repo.save(task)

        logger.info(f"Assigned task {task_id} to {assignee_id} (was {previous})")
        self._notify(NotificationKind.ASSIGNED, task, actor_id, [assignee_id])
        return task

    async def unassign(self, task_id: uuid.UUID, actor_id: str) -> Task:
        task = await self._load_owned(task_id, actor_id)

        previous = task.assignee_id
        task.assignee_id = None
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"assignee": activity.field_change(previous, None)},
        )
        await self.repo.save(task)

        logger.info(f"Unassigned task {task_id} (was {previous})")
        return task

    # ---- comments ----

    def _comment(self, task: Task, comment_id: uuid.UUID) -> Comment:
        comment = next((c for c in task.comments if c.id == comment_id), None)
        if comment is None:
            raise NotFoundError("Comment", comment_id)
        return comment

    async def add_comment(self, task_id: uuid.UUID, actor_id: str, data: CommentCreate) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.VIEW)

        mentions = list(dict.fromkeys(data.mentions))
        comment = Comment(author_id=actor_id, text=data.text, mentions=mentions)
        task.comments.append(comment)
        activity.record(task, ActivityAction.COMMENTED, actor_id, {"comment_id": str(comment.id)})
        await self.repo.save(task)

        logger.info(f"Comment {comment.id} added to task {task_id} by {actor_id}")
        # Only people already involved in the task hear about mentions
        audience = [m for m in mentions if permissions.is_participant(task, m)]
        if audience and task.notification_settings.notify_on_comment:
            self._notify(NotificationKind.MENTIONED, task, actor_id, audience, comment_id=str(comment.id))
        return task

    async def update_comment(
        self,
        task_id: uuid.UUID,
        comment_id: uuid.UUID,
        actor_id: str,
        data: CommentUpdate,
    ) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.VIEW)
        comment = self._comment(task, comment_id)
        permissions.require_author(comment.author_id, actor_id, "Comment")

        comment.text = data.text
        comment.updated_at = utcnow()
        activity.record(task, ActivityAction.UPDATED, actor_id, {"updated": "comment", "comment_id": str(comment_id)})
        await self.repo.save(task)

        logger.info(f"Comment {comment_id} on task {task_id} edited")
        return task

    async def delete_comment(self, task_id: uuid.UUID, comment_id: uuid.UUID, actor_id: str) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.VIEW)
        comment = self._comment(task, comment_id)
        permissions.require_author(comment.author_id, actor_id, "Comment")

        task.comments.remove(comment)
        activity.record(task, ActivityAction.UPDATED, actor_id, {"removed": "comment", "comment_id": str(comment_id)})
        await self.repo.save(task)

        logger.info(f"Comment {comment_id} removed from task {task_id}")
        return task

    # ---- attachments ----

    async def add_attachment(self, task_id: uuid.UUID, actor_id: str, data: AttachmentCreate) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.EDIT)

        attachment = Attachment(uploaded_by=actor_id, **data.model_dump())
        task.attachments.append(attachment)
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"added": "attachment", "attachment_id": str(attachment.id), "file_name": attachment.file_name},
        )
        await self.repo.save(task)

        logger.info(f"Attachment {attachment.file_name} ({attachment.file_size} bytes) added to task {task_id}")
        return task

    async def delete_attachment(self, task_id: uuid.UUID, attachment_id: uuid.UUID, actor_id: str) -> Task:
        task = await self._load_for(task_id, actor_id, AccessLevel.EDIT)

        attachment = next((a for a in task.attachments if a.id == attachment_id), None)
        if attachment is None:
            raise NotFoundError("Attachment", attachment_id)
        permissions.require_author(attachment.uploaded_by, actor_id, "Attachment")

        task.attachments.remove(attachment)
        activity.record(
            task,
            ActivityAction.UPDATED,
            actor_id,
            {"removed": "attachment", "attachment_id": str(attachment_id)},
        )
        await self.repo.save(task)

        logger.info(f"Attachment {attachment_id} removed from task {task_id}")
        return task
