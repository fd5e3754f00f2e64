import uuid
from datetime import datetime
from typing import Annotated, ClassVar

from pydantic import BaseModel, Field, StringConstraints

from tasknest.schemas.collaboration import Attachment, Comment
from tasknest.schemas.common import Minutes, PatchModel, TagList, Timestamp, Title
from tasknest.schemas.enums import TaskPriority, TaskStatus
from tasknest.timeutils import utcnow


SubtaskDescription = Annotated[str, StringConstraints(strip_whitespace=True, max_length=1000)]


class Subtask(BaseModel):
    """
    A node of a task's subtask tree.

    Nodes nest without a fixed depth; ``id`` is unique across the whole tree
    of the owning task, not just among siblings.
    """

    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    title: str
    description: str = ""
    status: TaskStatus = TaskStatus.TODO
    priority: TaskPriority = TaskPriority.MEDIUM
    completed: bool = False
    completed_at: datetime | None = None
    due_date: datetime | None = None
    reminder: datetime | None = None
    estimated_time: int = 0
    actual_time: int = 0
    tags: list[str] = Field(default_factory=list)
    assignee_id: str | None = None
    comments: list[Comment] = Field(default_factory=list)
    attachments: list[Attachment] = Field(default_factory=list)
    subtasks: list["Subtask"] = Field(default_factory=list)
    is_archived: bool = False
    order: int = 0
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class SubtaskCreate(BaseModel):
    """Schema for adding a subtask; ``parent_id`` nests it under another node."""
    title: Title
    description: SubtaskDescription = ""
    priority: TaskPriority = TaskPriority.MEDIUM
    due_date: Timestamp | None = None
    estimated_time: Minutes = 0
    tags: TagList = Field(default_factory=list)
    parent_id: uuid.UUID | None = None

    def to_node(self) -> Subtask:
        return Subtask(**self.model_dump(exclude={"parent_id"}))


class SubtaskUpdate(PatchModel):
    """Fields a subtask patch may change."""

    NON_NULLABLE: ClassVar[frozenset[str]] = frozenset(
        {"title", "description", "status", "priority", "completed"}
    )

    title: Title | None = None
    description: SubtaskDescription | None = None
    status: TaskStatus | None = None
    priority: TaskPriority | None = None
    due_date: Timestamp | None = None
    completed: bool | None = None
