import math
import uuid
from datetime import datetime
from typing import Annotated, ClassVar

from pydantic import BaseModel, Field, StringConstraints, computed_field, model_validator

from tasknest.schemas.activity import ActivityEntry, ChecklistProgress
from tasknest.schemas.collaboration import Attachment, Comment, NotificationSettings, ShareEntry
from tasknest.schemas.common import Category, Minutes, PatchModel, TagList, Timestamp, Title, percentage
from tasknest.schemas.enums import Label, TaskPriority, TaskStatus
from tasknest.schemas.subtask import Subtask
from tasknest.timeutils import utcnow


Description = Annotated[str, StringConstraints(strip_whitespace=True, max_length=2000)]


class Task(BaseModel):
    """
    The task document as stored.

    The whole document (subtask tree, comments, attachments, sharing list and
    activity log included) is loaded, mutated and written back as one unit.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    owner_id: str

    title: str
    description: str = ""
    category: str = "general"
    tags: list[str] = Field(default_factory=list)
    label: Label | None = None

    status: TaskStatus = TaskStatus.TODO
    completed: bool = False
    completed_at: datetime | None = None
    priority: TaskPriority = TaskPriority.MEDIUM

    due_date: datetime | None = None
    start_date: datetime | None = None
    reminder: datetime | None = None
    estimated_time: int = 0
    actual_time: int = 0

    assignee_id: str | None = None
    watchers: list[str] = Field(default_factory=list)
    shared_with: list[ShareEntry] = Field(default_factory=list)

    subtasks: list[Subtask] = Field(default_factory=list)
    comments: list[Comment] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    checklist_progress: ChecklistProgress = Field(default_factory=ChecklistProgress)
    activity_log: list[ActivityEntry] = Field(default_factory=list)

    parent_id: uuid.UUID | None = None
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)

    is_public: bool = False
    is_archived: bool = False
    is_deleted: bool = False
    deleted_at: datetime | None = None

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    def share_for(self, user_id: str) -> ShareEntry | None:
        return next((s for s in self.shared_with if s.user_id == user_id), None)


class TaskRead(Task):
    """Task document plus values derived at read time."""

    @computed_field
    @property
    def completion_percentage(self) -> int:
        return percentage(self.checklist_progress.completed, self.checklist_progress.total)

    @computed_field
    @property
    def is_overdue(self) -> bool:
        return self.due_date is not None and self.due_date < utcnow() and not self.completed

    @computed_field
    @property
    def days_until_due(self) -> int | None:
        """Whole days until the due date, rounded up; negative once overdue."""
        if self.due_date is None:
            return None
        return math.ceil((self.due_date - utcnow()).total_seconds() / 86400)

    @computed_field
    @property
    def total_subtasks(self) -> int:
        return self.checklist_progress.total


class TaskCreate(BaseModel):
    """Schema for creating a new task."""
    title: Title
    description: Description = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    category: Category = "general"
    tags: TagList = Field(default_factory=list)
    label: Label | None = None
    due_date: Timestamp | None = None
    start_date: Timestamp | None = None
    reminder: Timestamp | None = None
    estimated_time: Minutes = 0
    is_public: bool = False
    parent_id: uuid.UUID | None = None
    notification_settings: NotificationSettings = Field(default_factory=NotificationSettings)


class TaskUpdate(PatchModel):
    """
    Schema for updating a task.

    One optional slot per field an update may touch; completion itself is
    changed through the complete/incomplete operations or a status change.
    """

    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset(
        {"title", "description", "status", "priority", "category", "tags", "estimated_time", "is_public"}
    )

    title: Title | None = None
    description: Description | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: Category | None = None
    tags: TagList | None = None
    label: Label | None = None
    due_date: Timestamp | None = None
    start_date: Timestamp | None = None
    reminder: Timestamp | None = None
    estimated_time: Minutes | None = None
    is_public: bool | None = None


class TimeLogRequest(BaseModel):
    minutes: int


class BulkTaskUpdate(PatchModel):
    """Fields a bulk update may set on every selected task."""

    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset({"status", "priority", "category", "tags"})

    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    category: Category | None = None
    label: Label | None = None
    due_date: Timestamp | None = None
    tags: TagList | None = None


class BulkUpdateRequest(BaseModel):
    task_ids: list[uuid.UUID] = Field(min_length=1)
    updates: BulkTaskUpdate

    @model_validator(mode="after")
    def _require_updates(self):
        if not self.updates.model_fields_set:
            raise ValueError("updates must set at least one field")
        return self


class BulkDeleteRequest(BaseModel):
    task_ids: list[uuid.UUID] = Field(min_length=1)


class BulkUpdateResult(BaseModel):
    modified_count: int


class BulkDeleteResult(BaseModel):
    deleted_count: int


class TaskStats(BaseModel):
    """Per-owner counts over live (not soft-deleted) tasks."""
    total: int
    todo: int
    in_progress: int
    completed: int
    blocked: int
    on_hold: int
    overdue: int
    urgent: int
    completion_percentage: int
