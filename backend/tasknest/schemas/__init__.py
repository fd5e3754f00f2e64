from tasknest.schemas.activity import ActivityEntry, ChecklistProgress
from tasknest.schemas.collaboration import (
    AssignRequest,
    Attachment,
    AttachmentCreate,
    Comment,
    CommentCreate,
    CommentUpdate,
    NotificationSettings,
    ShareCreate,
    ShareEntry,
    WatcherCreate,
)
from tasknest.schemas.enums import (
    AccessLevel,
    ActivityAction,
    Label,
    SharePermission,
    TaskPriority,
    TaskStatus,
)
from tasknest.schemas.subtask import Subtask, SubtaskCreate, SubtaskUpdate
from tasknest.schemas.task import (
    BulkDeleteRequest,
    BulkDeleteResult,
    BulkTaskUpdate,
    BulkUpdateRequest,
    BulkUpdateResult,
    Task,
    TaskCreate,
    TaskRead,
    TaskStats,
    TaskUpdate,
    TimeLogRequest,
)

__all__ = [
    "AccessLevel",
    "ActivityAction",
    "ActivityEntry",
    "AssignRequest",
    "Attachment",
    "AttachmentCreate",
    "BulkDeleteRequest",
    "BulkDeleteResult",
    "BulkTaskUpdate",
    "BulkUpdateRequest",
    "BulkUpdateResult",
    "ChecklistProgress",
    "Comment",
    "CommentCreate",
    "CommentUpdate",
    "Label",
    "NotificationSettings",
    "ShareCreate",
    "ShareEntry",
    "SharePermission",
    "Subtask",
    "SubtaskCreate",
    "SubtaskUpdate",
    "Task",
    "TaskCreate",
    "TaskPriority",
    "TaskRead",
    "TaskStats",
    "TaskStatus",
    "TaskUpdate",
    "TimeLogRequest",
    "WatcherCreate",
]
