"""
Tests for the subtask tree engine: traversal, lookup, insertion depth
limits, patching, removal and deep copies.
"""

import uuid

import pytest

from tasknest.exceptions import NotFoundError, ValidationError
from tasknest.schemas import Attachment, Comment, Subtask, SubtaskUpdate, TaskStatus
from tasknest.services import subtask_tree


def node(title, *children, **fields):
    return Subtask(title=title, subtasks=list(children), **fields)


@pytest.fixture
def tree():
    """
    A
    ├── A1
    │   └── A1a
    └── A2
    B
    """
    return [
        node("A", node("A1", node("A1a")), node("A2")),
        node("B"),
    ]


class TestTraversal:
    """Pre-order walk over the whole tree."""

    def test_pre_order_with_depths(self, tree):
        walked = [(n.title, depth) for n, _, _, depth in subtask_tree.iter_nodes(tree)]
        assert walked == [("A", 1), ("A1", 2), ("A1a", 3), ("A2", 2), ("B", 1)]

    def test_siblings_and_index_point_at_node(self, tree):
        for n, siblings, index, _ in subtask_tree.iter_nodes(tree):
            assert siblings[index] is n

    def test_empty_tree(self):
        assert list(subtask_tree.iter_nodes([])) == []
        assert subtask_tree.tree_depth([]) == 0

    def test_find_at_any_depth(self, tree):
        deep = tree[0].subtasks[0].subtasks[0]
        assert subtask_tree.find(tree, deep.id) is deep
        assert subtask_tree.find(tree, uuid.uuid4()) is None

    def test_duplicate_ids_resolve_to_first_in_pre_order(self, tree):
        """
        Scenario: A2 and B share an id
        Expected: lookup returns A2, which comes first in pre-order
        """
        shared = uuid.uuid4()
        tree[0].subtasks[1].id = shared
        tree[1].id = shared

        assert subtask_tree.find(tree, shared).title == "A2"

    def test_very_deep_tree_does_not_recurse(self):
        """A chain far deeper than Python's recursion limit is still walkable."""
        root = node("level 1")
        current = root
        for level in range(2, 3001):
            child = node(f"level {level}")
            current.subtasks.append(child)
            current = child

        assert subtask_tree.tree_depth([root]) == 3000
        assert subtask_tree.find([root], current.id) is current


class TestInsert:
    """Adding nodes at the root or under a parent."""

    def test_insert_at_root(self, tree):
        new = subtask_tree.insert(tree, None, node("C"), max_depth=5)

        assert tree[-1] is new
        assert new.order == 2

    def test_insert_under_nested_parent(self, tree):
        parent = tree[0].subtasks[0]
        new = subtask_tree.insert(tree, parent.id, node("A1b"), max_depth=5)

        assert parent.subtasks[-1] is new
        assert new.order == 1

    def test_inserted_node_starts_open_and_empty(self, tree):
        incoming = node("C", node("smuggled"), status=TaskStatus.COMPLETED, completed=True)
        new = subtask_tree.insert(tree, None, incoming, max_depth=5)

        assert new.status == TaskStatus.TODO
        assert new.completed is False
        assert new.completed_at is None
        assert new.subtasks == []

    def test_missing_parent(self, tree):
        with pytest.raises(NotFoundError):
            subtask_tree.insert(tree, uuid.uuid4(), node("orphan"), max_depth=5)

    def test_depth_limit(self, tree):
        """
        Scenario: A1a sits at depth 3, max depth is 3
        Expected: a child of A1a (depth 4) is rejected, the tree is unchanged
        """
        parent = tree[0].subtasks[0].subtasks[0]

        with pytest.raises(ValidationError) as exc_info:
            subtask_tree.insert(tree, parent.id, node("too deep"), max_depth=3)

        assert exc_info.value.fields == ["parent_id"]
        assert parent.subtasks == []


class TestUpdate:
    """Patching a single node."""

    def test_only_sent_fields_change(self, tree):
        target = tree[0].subtasks[1]
        subtask_tree.update(tree, target.id, SubtaskUpdate(title="Renamed"))

        assert target.title == "Renamed"
        assert target.description == ""
        assert target.status == TaskStatus.TODO

    def test_completing_stamps_and_syncs_status(self, tree):
        target = tree[1]
        subtask_tree.update(tree, target.id, SubtaskUpdate(completed=True))

        assert target.completed is True
        assert target.status == TaskStatus.COMPLETED
        assert target.completed_at is not None

    def test_status_completed_sets_completed_flag(self, tree):
        target = tree[1]
        subtask_tree.update(tree, target.id, SubtaskUpdate(status=TaskStatus.COMPLETED))

        assert target.completed is True
        assert target.completed_at is not None

    def test_reopening_clears_timestamp(self, tree):
        target = tree[1]
        subtask_tree.update(tree, target.id, SubtaskUpdate(completed=True))
        subtask_tree.update(tree, target.id, SubtaskUpdate(completed=False))

        assert target.completed is False
        assert target.completed_at is None
        assert target.status == TaskStatus.TODO

    def test_moving_away_from_completed_status(self, tree):
        target = tree[1]
        subtask_tree.update(tree, target.id, SubtaskUpdate(completed=True))
        subtask_tree.update(tree, target.id, SubtaskUpdate(status=TaskStatus.BLOCKED))

        assert target.status == TaskStatus.BLOCKED
        assert target.completed is False
        assert target.completed_at is None

    def test_inconsistent_patch_rejected(self, tree):
        with pytest.raises(ValidationError):
            subtask_tree.update(
                tree,
                tree[1].id,
                SubtaskUpdate(status=TaskStatus.IN_PROGRESS, completed=True),
            )
        assert tree[1].completed is False

    def test_missing_id_leaves_tree_untouched(self, tree):
        before = [n.model_dump() for n in tree]

        assert subtask_tree.update(tree, uuid.uuid4(), SubtaskUpdate(title="Nope")) is False
        assert [n.model_dump() for n in tree] == before


class TestRemove:

    def test_removes_whole_subtree(self, tree):
        a1 = tree[0].subtasks[0]
        deep_id = a1.subtasks[0].id

        assert subtask_tree.remove(tree, a1.id) is True
        assert [n.title for n in tree[0].subtasks] == ["A2"]
        assert subtask_tree.find(tree, deep_id) is None

    def test_missing_id(self, tree):
        assert subtask_tree.remove(tree, uuid.uuid4()) is False
        assert len(list(subtask_tree.iter_nodes(tree))) == 5


class TestCopyTree:
    """Deep copies used when duplicating a task."""

    def test_same_shape_new_ids(self, tree):
        copy = subtask_tree.copy_tree(tree)

        original = [(n.title, d) for n, _, _, d in subtask_tree.iter_nodes(tree)]
        copied = [(n.title, d) for n, _, _, d in subtask_tree.iter_nodes(copy)]
        assert copied == original

        original_ids = {n.id for n, _, _, _ in subtask_tree.iter_nodes(tree)}
        copied_ids = {n.id for n, _, _, _ in subtask_tree.iter_nodes(copy)}
        assert original_ids.isdisjoint(copied_ids)

    def test_copy_is_independent(self, tree):
        copy = subtask_tree.copy_tree(tree)

        copy[0].subtasks[0].title = "Changed"
        copy[0].subtasks[0].subtasks.append(node("Extra"))

        assert tree[0].subtasks[0].title == "A1"
        assert len(tree[0].subtasks[0].subtasks) == 1

    def test_comments_and_attachments_get_new_ids(self):
        comment = Comment(author_id="alice", text="note")
        attachment = Attachment(url="https://files.example/a.pdf", file_name="a.pdf", uploaded_by="alice")
        tree = [node("With extras", comments=[comment], attachments=[attachment])]

        copy = subtask_tree.copy_tree(tree)

        assert copy[0].comments[0].text == "note"
        assert copy[0].comments[0].id != comment.id
        assert copy[0].attachments[0].id != attachment.id
