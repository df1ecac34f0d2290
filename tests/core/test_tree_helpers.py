"""Tests for traversal helpers shared by relations and surgery."""

from __future__ import annotations

import pytest

from treesurgeon.core.penn import read_tree
from treesurgeon.core.tree import (
    ancestors,
    following,
    get_root,
    index_by_label,
    left_edge,
    left_sibling,
    preceding,
    right_edge,
    right_sibling,
    walk_tree,
)

TEXT = "(S (NP (DT the) (NN dog)) (VP (VBD saw) (NP (PRP it))))"


def _labels(nodes) -> list[str]:
    return [n.label for n in nodes]


class TestSiblings:

    def test_left_and_right(self) -> None:
        tree = read_tree(TEXT)
        np_, vp = tree.root.children()
        assert right_sibling(np_) == vp
        assert left_sibling(vp) == np_
        assert left_sibling(np_) is None
        assert right_sibling(vp) is None

    def test_root_has_no_siblings(self) -> None:
        tree = read_tree(TEXT)
        assert left_sibling(tree.root) is None
        assert right_sibling(tree.root) is None


class TestAncestors:

    def test_up_to_root(self) -> None:
        tree = read_tree(TEXT)
        it = tree.root.child(1).child(1).child(0).child(0)
        assert _labels(ancestors(it)) == ["PRP", "NP", "VP", "S"]
        assert get_root(it) == tree.root

    def test_max_depth(self) -> None:
        tree = read_tree(TEXT)
        it = tree.root.child(1).child(1).child(0).child(0)
        assert _labels(ancestors(it, max_depth=2)) == ["PRP", "NP"]


class TestWalkTree:

    def test_orders(self) -> None:
        tree = read_tree("(A (B b) (C c))")
        assert _labels(walk_tree(tree.root)) == ["A", "B", "b", "C", "c"]
        assert _labels(walk_tree(tree.root, "post")) == ["b", "B", "c", "C", "A"]
        assert _labels(walk_tree(tree.root, "bfs")) == ["A", "B", "C", "b", "c"]

    def test_unknown_order(self) -> None:
        tree = read_tree("(A a)")
        with pytest.raises(ValueError):
            list(walk_tree(tree.root, "sideways"))


class TestDocumentOrder:
    """following/preceding yield nodes entirely to one side, in document order."""

    def test_following(self) -> None:
        tree = read_tree(TEXT)
        dog = tree.root.child(0).child(1)
        assert _labels(following(dog)) == ["VP", "VBD", "saw", "NP", "PRP", "it"]

    def test_preceding(self) -> None:
        tree = read_tree(TEXT)
        saw = tree.root.child(1).child(0)
        assert _labels(preceding(saw)) == ["NP", "DT", "the", "NN", "dog"]

    def test_ancestors_are_neither(self) -> None:
        tree = read_tree(TEXT)
        vp = tree.root.child(1)
        assert tree.root not in list(following(vp))
        assert tree.root not in list(preceding(vp))


class TestEdgesAndIndex:

    def test_edges(self) -> None:
        tree = read_tree(TEXT)
        assert _labels(left_edge(tree.root)) == ["NP", "DT", "the"]
        assert _labels(right_edge(tree.root)) == ["VP", "NP", "PRP", "it"]
        assert list(left_edge(tree.root.child(0).child(0).child(0))) == []

    def test_index_by_label(self) -> None:
        tree = read_tree(TEXT)
        index = index_by_label(tree.root)
        assert [n.parent().label for n in index["NP"]] == ["S", "VP"]
        assert len(index["S"]) == 1

    def test_index_excludes_subtree(self) -> None:
        tree = read_tree(TEXT)
        index = index_by_label(tree.root, exclude_subtree=tree.root.child(1))
        assert len(index["NP"]) == 1
        assert "VP" not in index
        assert "it" not in index


class TestDeepWalk:

    def test_post_order_of_a_deep_chain(self) -> None:
        depth = 5000
        tree = read_tree("(X " * depth + "leaf" + ")" * depth)
        labels = _labels(walk_tree(tree.root, "post"))
        assert labels[0] == "leaf"
        assert len(labels) == depth + 1
