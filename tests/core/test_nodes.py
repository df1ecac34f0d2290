"""Tests for the arena Tree and Node handles.

Verifies:
- Node identity is (tree, index), not label equality
- Structural edits bump Tree.version, relabels do not
- replace_children copies nodes that are already placed elsewhere
- Detached nodes stay valid handles but leave the reachable tree
"""

from __future__ import annotations

import pytest

from treesurgeon.core.nodes import Node, Tree
from treesurgeon.core.penn import read_tree, to_string


def _tree() -> Tree:
    return read_tree("(S (NP (DT the) (NN dog)) (VP (VBD barked)))")


class TestIdentity:
    """Handles compare by position, never by label."""

    def test_equal_labels_are_distinct_nodes(self) -> None:
        """Two NN nodes with the same label are not the same node."""
        tree = read_tree("(NP (NN a) (NN a))")
        first, second = tree.root.children()
        assert first.label == second.label
        assert first != second

    def test_handles_to_same_node_are_equal(self) -> None:
        """Handles fetched twice compare and hash equal."""
        tree = _tree()
        assert tree.root.child(0) == tree.root.first_child()
        assert len({tree.root.child(0), tree.root.first_child()}) == 1

    def test_repr_shows_label_and_index(self) -> None:
        tree = Tree("S")
        assert repr(tree.root) == "Node('S'#0)"


class TestNavigation:
    """Read-only accessors."""

    def test_parent_and_index_in_parent(self) -> None:
        tree = _tree()
        vp = tree.root.child(1)
        assert vp.parent() == tree.root
        assert vp.index_in_parent() == 1
        assert tree.root.parent() is None
        assert tree.root.index_in_parent() is None

    def test_leaf_and_preterminal(self) -> None:
        tree = _tree()
        dt = tree.root.child(0).child(0)
        assert dt.is_preterminal()
        assert not dt.is_leaf()
        assert dt.child(0).is_leaf()
        assert not tree.root.is_preterminal()

    def test_dominates_is_proper(self) -> None:
        """A node does not dominate itself."""
        tree = _tree()
        np_ = tree.root.child(0)
        assert tree.root.dominates(np_)
        assert tree.root.dominates(np_.child(1).child(0))
        assert not np_.dominates(np_)
        assert not np_.dominates(tree.root)

    def test_preorder_and_leaves(self) -> None:
        tree = _tree()
        assert [n.label for n in tree.root.preorder()][:4] == ["S", "NP", "DT", "the"]
        assert [n.label for n in tree.root.leaves()] == ["the", "dog", "barked"]
        assert len(tree) == 9

    def test_negative_child_position(self) -> None:
        tree = _tree()
        assert tree.root.child(-1).label == "VP"
        assert tree.root.last_child().label == "VP"

    def test_empty_tree(self) -> None:
        tree = Tree()
        assert tree.is_empty
        assert tree.root is None
        assert list(tree) == []
        assert str(tree) == ""


class TestVersion:
    """Tree.version tracks structure only."""

    def test_relabel_keeps_version(self) -> None:
        tree = _tree()
        before = tree.version
        tree.root.child(0).set_label("NP-SBJ")
        assert tree.version == before
        assert tree.root.child(0).label == "NP-SBJ"

    def test_structural_edit_bumps_version(self) -> None:
        tree = _tree()
        before = tree.version
        tree.root.child(1).detach()
        assert tree.version > before


class TestEdits:
    """replace_children, insert_child, detach and copy."""

    def test_detach_keeps_handle_valid(self) -> None:
        tree = _tree()
        vp = tree.root.child(1)
        vp.detach()
        assert vp.label == "VP"
        assert vp.parent() is None
        assert not vp.in_tree()
        assert to_string(tree.root) == "(S (NP (DT the) (NN dog)))"

    def test_detach_root_empties_tree(self) -> None:
        tree = _tree()
        tree.root.detach()
        assert tree.is_empty

    def test_placed_node_is_copied_not_moved(self) -> None:
        """Inserting a node that has a parent elsewhere inserts a copy."""
        tree = _tree()
        np_, vp = tree.root.children()
        inserted = vp.insert_child(0, np_.child(0))
        assert inserted != np_.child(0)
        assert inserted.label == "DT"
        assert np_.num_children == 2
        assert to_string(vp) == "(VP (DT the) (VBD barked))"

    def test_repeat_in_sequence_is_copied(self) -> None:
        tree = Tree("X")
        leaf = tree.new_node("a")
        tree.root.replace_children([leaf, leaf])
        first, second = tree.root.children()
        assert first == leaf
        assert second != leaf
        assert second.label == "a"

    def test_ancestor_as_child_is_copied(self) -> None:
        """Making a node its own descendant never creates a cycle."""
        tree = _tree()
        np_ = tree.root.child(0)
        added = np_.insert_child(2, tree.root)
        assert added != tree.root
        assert tree.root.is_root()
        assert not added.dominates(tree.root)

    def test_foreign_node_is_copied_in(self) -> None:
        other = read_tree("(ADVP (RB now))")
        tree = _tree()
        added = tree.root.insert_child(2, other.root)
        assert added.tree is tree
        assert other.root.tree is other
        assert to_string(added) == "(ADVP (RB now))"

    def test_dropped_children_become_detached(self) -> None:
        tree = _tree()
        np_, vp = tree.root.children()
        tree.root.replace_children([vp])
        assert np_.parent() is None
        assert not np_.in_tree()
        assert vp.in_tree()

    def test_insert_child_out_of_range(self) -> None:
        tree = _tree()
        with pytest.raises(IndexError):
            tree.root.insert_child(5, tree.new_node("X"))

    def test_copy_has_fresh_identities(self) -> None:
        tree = _tree()
        clone = tree.root.child(0).copy()
        assert clone != tree.root.child(0)
        assert clone.parent() is None
        assert to_string(clone) == to_string(tree.root.child(0))

    def test_tree_copy_is_independent(self) -> None:
        tree = _tree()
        clone = tree.copy()
        clone.root.set_label("ROOT")
        assert tree.root.label == "S"
        assert str(clone) == "(ROOT (NP (DT the) (NN dog)) (VP (VBD barked)))"

    def test_set_root_copies_attached_node(self) -> None:
        tree = _tree()
        vp = tree.root.child(1)
        new_root = tree.set_root(vp)
        assert new_root != vp
        assert str(tree) == "(VP (VBD barked))"

    def test_new_node_with_children(self) -> None:
        tree = Tree()
        node = tree.new_node("NP", [tree.new_node("NN")])
        assert isinstance(node, Node)
        assert node.num_children == 1
        assert tree.is_empty


class TestDeepCopy:

    def test_copy_of_a_deep_chain(self) -> None:
        depth = 5000
        text = "(X " * depth + "leaf" + ")" * depth
        tree = read_tree(text)
        clone = tree.copy()
        assert str(clone) == text
        assert clone.root != tree.root
