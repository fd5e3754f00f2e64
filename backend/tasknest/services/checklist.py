"""
Checklist progress over a task's subtask tree.

Every node at every depth counts once toward ``total`` and once more toward
``completed`` when its ``completed`` flag is set. The task itself is never
counted.
"""

from tasknest.schemas import ChecklistProgress, Subtask, Task
from tasknest.schemas.common import percentage
from tasknest.services.subtask_tree import iter_nodes

__all__ = ["percentage", "recompute", "refresh_progress"]


def recompute(tree: list[Subtask]) -> ChecklistProgress:
    """Count nodes and completed nodes; pure, the tree is not modified."""
    total = 0
    completed = 0
    for node, _, _, _ in iter_nodes(tree):
        total += 1
        if node.completed:
            completed += 1
    return ChecklistProgress(total=total, completed=completed)


def refresh_progress(task: Task) -> ChecklistProgress:
    """Recompute and store the task's checklist progress."""
    task.checklist_progress = recompute(task.subtasks)
    return task.checklist_progress
