"""
Activity log recording.

The lifecycle services call ``record`` exactly once per logical operation;
entries are frozen and only ever appended.
"""

from typing import Any

from tasknest.schemas import ActivityAction, ActivityEntry, Task


def record(
    task: Task,
    action: ActivityAction,
    actor_id: str,
    changes: dict[str, Any] | None = None,
) -> ActivityEntry:
    entry = ActivityEntry(action=action, actor_id=actor_id, changes=changes)
    task.activity_log.append(entry)
    return entry


def field_change(old: Any, new: Any) -> dict[str, Any]:
    return {"old": old, "new": new}


def diff_fields(target: Any, values: dict[str, Any]) -> dict[str, dict[str, Any]]:
    """
    Map each field whose value would change to its ``{old, new}`` pair.

    Fields whose new value equals the current one are left out.
    """
    changes = {}
    for field, new in values.items():
        old = getattr(target, field)
        if old != new:
            changes[field] = field_change(old, new)
    return changes
