from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from tasknest.schemas.enums import ActivityAction
from tasknest.timeutils import utcnow


class ActivityEntry(BaseModel):
    """One immutable audit-trail record on a task."""

    model_config = ConfigDict(frozen=True)

    action: ActivityAction
    actor_id: str
    changes: dict[str, Any] | None = None
    timestamp: datetime = Field(default_factory=utcnow)


class ChecklistProgress(BaseModel):
    """Derived counts over every node of a task's subtask tree."""

    total: int = 0
    completed: int = 0
