from enum import StrEnum


class TaskStatus(StrEnum):
    TODO = "todo"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"
    BLOCKED = "blocked"
    ON_HOLD = "on-hold"


class TaskPriority(StrEnum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"

    @property
    def rank(self) -> int:
        return list(TaskPriority).index(self)


class Label(StrEnum):
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    YELLOW = "yellow"
    PURPLE = "purple"
    ORANGE = "orange"
    PINK = "pink"
    GRAY = "gray"


class SharePermission(StrEnum):
    """Grants a task owner can hand out, weakest first."""

    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"


class AccessLevel(StrEnum):
    """Levels an operation can require; OWNER is never granted by a share."""

    VIEW = "view"
    EDIT = "edit"
    ADMIN = "admin"
    OWNER = "owner"


class ActivityAction(StrEnum):
    CREATED = "created"
    UPDATED = "updated"
    COMMENTED = "commented"
    COMPLETED = "completed"
    STATUS_CHANGED = "status-changed"
    ASSIGNED = "assigned"
    PRIORITY_CHANGED = "priority-changed"
