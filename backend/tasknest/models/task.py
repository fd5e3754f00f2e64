import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import JSON, Column, DateTime
from sqlmodel import Field, SQLModel

from tasknest.schemas.task import Task
from tasknest.timeutils import utcnow


TAG_SEPARATOR = "\x1f"


def tag_token(tag: str) -> str:
    """Wrap a tag in separators so exact membership is a plain substring match."""
    return f"{TAG_SEPARATOR}{tag}{TAG_SEPARATOR}"


class TaskRecord(SQLModel, table=True):
    """
    Stored form of a task document.

    ``document`` holds the full task (subtask tree, comments, activity log,
    sharing list, ...). The scalar columns mirror the fields listings filter
    and sort on and are rewritten from the document on every save.

    Key columns:
    - tags_text: tags joined between separators, for exact and substring matches
    - is_deleted: soft-delete flag; rows are never physically removed

    Timestamps are naive UTC, so every datetime column is a plain
    ``DateTime`` without timezone.
    """

    __tablename__ = "tasks"

    id: uuid.UUID = Field(primary_key=True)
    owner_id: str = Field(index=True)

    title: str = Field(index=True)
    description: str = Field(default="")
    category: str = Field(default="general")
    tags: list[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    tags_text: str = Field(default="")

    status: str = Field(default="todo", index=True)
    priority: str = Field(default="medium", index=True)
    priority_rank: int = Field(default=1)
    completed: bool = Field(default=False, index=True)
    due_date: datetime | None = Field(default=None, index=True, sa_type=DateTime)

    assignee_id: str | None = Field(default=None, index=True)
    parent_id: uuid.UUID | None = Field(default=None, index=True)

    is_archived: bool = Field(default=False, index=True)
    is_deleted: bool = Field(default=False, index=True)
    deleted_at: datetime | None = Field(default=None, sa_type=DateTime)

    document: dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    # Timestamps
    created_at: datetime = Field(default_factory=utcnow, index=True, sa_type=DateTime)
    updated_at: datetime = Field(default_factory=utcnow, sa_type=DateTime)

    @classmethod
    def from_task(cls, task: Task) -> "TaskRecord":
        record = cls(id=task.id, owner_id=task.owner_id, title=task.title)
        record.apply(task)
        return record

    def apply(self, task: Task) -> None:
        """Overwrite this row with the task document and its mirrored columns."""
        self.owner_id = task.owner_id
        self.title = task.title
        self.description = task.description
        self.category = task.category
        self.tags = list(task.tags)
        self.tags_text = "".join(tag_token(t) for t in task.tags)
        self.status = task.status.value
        self.priority = task.priority.value
        self.priority_rank = task.priority.rank
        self.completed = task.completed
        self.due_date = task.due_date
        self.assignee_id = task.assignee_id
        self.parent_id = task.parent_id
        self.is_archived = task.is_archived
        self.is_deleted = task.is_deleted
        self.deleted_at = task.deleted_at
        self.created_at = task.created_at
        self.updated_at = task.updated_at
        self.document = task.model_dump(mode="json")

    def to_task(self) -> Task:
        return Task.model_validate(self.document)
