"""
Subtask tree operations.

A task's subtasks form an ordered tree of ``Subtask`` nodes with no fixed
depth. Every operation here walks the tree with an explicit stack instead of
recursion, so a deep (or hostile) tree cannot exhaust the call stack.

Traversal order is pre-order depth-first: a node, then its children, then
its next sibling. Ids are expected to be unique across the whole tree; if
they are not, the first node in traversal order wins.
"""

import uuid
from collections.abc import Iterator

from tasknest.exceptions import NotFoundError, ValidationError
from tasknest.schemas import Subtask, SubtaskUpdate, TaskStatus
from tasknest.timeutils import utcnow


def iter_nodes(tree: list[Subtask]) -> Iterator[tuple[Subtask, list[Subtask], int, int]]:
    """
    Yield ``(node, siblings, index, depth)`` for every node in pre-order.

    ``siblings[index] is node``; root-level nodes have depth 1.
    """
    stack = [(tree, i, 1) for i in reversed(range(len(tree)))]
    while stack:
        siblings, index, depth = stack.pop()
        node = siblings[index]
        yield node, siblings, index, depth
        children = node.subtasks
        stack.extend((children, i, depth + 1) for i in reversed(range(len(children))))


def locate(tree: list[Subtask], node_id: uuid.UUID) -> tuple[Subtask, list[Subtask], int, int] | None:
    for entry in iter_nodes(tree):
        if entry[0].id == node_id:
            return entry
    return None


def find(tree: list[Subtask], node_id: uuid.UUID) -> Subtask | None:
    """Return the first node with ``node_id``, or None."""
    entry = locate(tree, node_id)
    return entry[0] if entry else None


def set_completion(node: Subtask, completed: bool) -> None:
    """Flip a node's completion, keeping status and completed_at in step."""
    if completed:
        if not node.completed:
            node.completed_at = utcnow()
        node.completed = True
        node.status = TaskStatus.COMPLETED
    else:
        node.completed = False
        node.completed_at = None
        if node.status == TaskStatus.COMPLETED:
            node.status = TaskStatus.TODO


def update(tree: list[Subtask], node_id: uuid.UUID, patch: SubtaskUpdate) -> bool:
    """
    Apply the fields set on ``patch`` to the node with ``node_id``.

    Returns False (tree untouched) when no node matches. A patch that sets
    both ``status`` and ``completed`` must agree with itself.
    """
    changes = patch.changes()
    status = changes.pop("status", None)
    completed = changes.pop("completed", None)
    if status is not None and completed is not None and completed != (status == TaskStatus.COMPLETED):
        raise ValidationError.for_field(
            "completed", "completed must be true exactly when status is completed", "inconsistent_status"
        )

    node = find(tree, node_id)
    if node is None:
        return False

    for field, value in changes.items():
        setattr(node, field, value)

    if status is not None:
        node.status = status
        set_completion(node, status == TaskStatus.COMPLETED)
    elif completed is not None:
        set_completion(node, completed)

    node.updated_at = utcnow()
    return True


def remove(tree: list[Subtask], node_id: uuid.UUID) -> bool:
    """Detach the node with ``node_id`` and its whole subtree."""
    entry = locate(tree, node_id)
    if entry is None:
        return False
    _, siblings, index, _ = entry
    del siblings[index]
    return True


def insert(
    tree: list[Subtask],
    parent_id: uuid.UUID | None,
    node: Subtask,
    max_depth: int,
) -> Subtask:
    """
    Append ``node`` at the root (``parent_id`` None) or under ``parent_id``.

    The node always starts as an open leaf: status todo, not completed, no
    children.

    Raises:
        NotFoundError: parent_id does not resolve
        ValidationError: the node would sit deeper than max_depth
    """
    if parent_id is None:
        siblings, depth = tree, 1
    else:
        entry = locate(tree, parent_id)
        if entry is None:
            raise NotFoundError("Subtask", parent_id)
        parent, _, _, parent_depth = entry
        siblings, depth = parent.subtasks, parent_depth + 1

    if depth > max_depth:
        raise ValidationError.for_field(
            "parent_id", f"Subtasks cannot be nested deeper than {max_depth} levels", "max_depth"
        )

    node.status = TaskStatus.TODO
    node.completed = False
    node.completed_at = None
    node.subtasks = []
    node.order = len(siblings)
    siblings.append(node)
    return node


def copy_tree(tree: list[Subtask]) -> list[Subtask]:
    """
    Deep structural copy of ``tree`` with a fresh id on every node.

    Comments and attachments carried by the nodes get fresh ids as well, so
    nothing in the copy is addressable through the original's ids.
    """
    copied: list[Subtask] = []
    stack = [(node, copied) for node in reversed(tree)]
    while stack:
        source, target_siblings = stack.pop()
        clone = source.model_copy(
            update={
                "id": uuid.uuid4(),
                "subtasks": [],
                "comments": [c.model_copy(update={"id": uuid.uuid4()}, deep=True) for c in source.comments],
                "attachments": [a.model_copy(update={"id": uuid.uuid4()}, deep=True) for a in source.attachments],
                "tags": list(source.tags),
            }
        )
        target_siblings.append(clone)
        stack.extend((child, clone.subtasks) for child in reversed(source.subtasks))
    return copied


def tree_depth(tree: list[Subtask]) -> int:
    """Deepest level in the tree (0 for an empty tree)."""
    return max((d for _, _, _, d in iter_nodes(tree)), default=0)
