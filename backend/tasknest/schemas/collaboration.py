"""
Comments, attachments, sharing and watcher schemas.
"""

import uuid
from datetime import datetime
from typing import Annotated

from pydantic import BaseModel, Field, StringConstraints

from tasknest.schemas.common import MAX_ATTACHMENT_BYTES
from tasknest.schemas.enums import SharePermission
from tasknest.timeutils import utcnow


CommentText = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=1000)]
UserId = Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=128)]


class Comment(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    author_id: str
    text: str
    mentions: list[str] = Field(default_factory=list)
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime | None = None


class Attachment(BaseModel):
    id: uuid.UUID = Field(default_factory=uuid.uuid4)
    url: str
    file_name: str
    file_type: str = "file"
    file_size: int = 0  # bytes
    uploaded_by: str
    uploaded_at: datetime = Field(default_factory=utcnow)


class ShareEntry(BaseModel):
    user_id: str
    permission: SharePermission = SharePermission.VIEW
    shared_at: datetime = Field(default_factory=utcnow)


class NotificationSettings(BaseModel):
    notify_on_due_date: bool = True
    notify_on_status_change: bool = True
    notify_on_comment: bool = True


# =============================================================================
# Request bodies
# =============================================================================

class CommentCreate(BaseModel):
    text: CommentText
    mentions: list[UserId] = Field(default_factory=list)


class CommentUpdate(BaseModel):
    text: CommentText


class AttachmentCreate(BaseModel):
    url: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=2048)]
    file_name: Annotated[str, StringConstraints(strip_whitespace=True, min_length=1, max_length=255)]
    file_type: str = "file"
    file_size: int = Field(default=0, ge=0, le=MAX_ATTACHMENT_BYTES)


class ShareCreate(BaseModel):
    user_id: UserId
    permission: SharePermission = SharePermission.VIEW


class WatcherCreate(BaseModel):
    watcher_id: UserId


class AssignRequest(BaseModel):
    assignee_id: UserId
