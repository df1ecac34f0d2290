"""
Arena-backed trees and node handles.

A Tree owns every node it ever allocated in parallel arrays (labels,
child index lists, parent indices). A Node is a small (tree, index)
handle, so node identity is positional identity: two nodes with equal
labels are still different nodes, and a handle stays valid after its
node has been detached from the tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Iterator


class Tree:
    """
    An arena of labeled nodes with at most one root.

    Nodes removed by an edit stay in the arena as detached nodes. Only the
    nodes reachable from the root form the tree proper; iteration, length
    and printing all look at that part only.
    """

    def __init__(self, label: str | None = None):
        """
        Args:
            label: If given, allocate a root node with this label
        """
        self._labels: list[str] = []
        self._children: list[list[int]] = []
        self._parents: list[int | None] = []
        self._root: int | None = None
        # Bumped on every structural edit; relabeling leaves it alone.
        self.version = 0

        if label is not None:
            self._root = self._allocate(label)

    def _allocate(self, label: str) -> int:
        self._labels.append(label)
        self._children.append([])
        self._parents.append(None)
        return len(self._labels) - 1

    @property
    def root(self) -> Node | None:
        if self._root is None:
            return None
        return Node(self, self._root)

    @property
    def is_empty(self) -> bool:
        return self._root is None

    def set_root(self, node: Node | None) -> Node | None:
        """
        Make node the root of this tree (None empties the tree).

        A node from another arena, or one that still has a parent, is
        copied first. Returns the node that actually became the root.
        """
        if node is None:
            self._root = None
        else:
            if node.tree is not self or self._parents[node.index] is not None:
                node = node.copy(into=self)
            self._root = node.index
        self.version += 1
        return self.root

    def new_node(self, label: str, children: Iterable[Node] = ()) -> Node:
        """Allocate a detached node, optionally adopting children."""
        node = Node(self, self._allocate(label))
        children = list(children)
        if children:
            node.replace_children(children)
        return node

    def copy(self) -> Tree:
        """Deep copy of the reachable tree into a fresh, compact arena."""
        clone = Tree()
        if self._root is not None:
            clone._root = Node(self, self._root).copy(into=clone).index
        return clone

    def __iter__(self) -> Iterator[Node]:
        if self._root is None:
            return iter(())
        return Node(self, self._root).preorder()

    def __len__(self) -> int:
        return sum(1 for _ in self)

    def __str__(self) -> str:
        from treesurgeon.core.penn import to_string
        return to_string(self.root)

    def __repr__(self) -> str:
        return f"Tree({str(self)!r})"


@dataclass(frozen=True, repr=False)
class Node:
    """
    Handle on one node of a Tree.

    Handles compare and hash by (tree, index), which is exactly node
    identity. All state lives in the arena.
    """
    tree: Tree
    index: int

    @property
    def label(self) -> str:
        return self.tree._labels[self.index]

    def set_label(self, label: str) -> None:
        self.tree._labels[self.index] = label

    def children(self) -> tuple[Node, ...]:
        tree = self.tree
        return tuple(Node(tree, i) for i in tree._children[self.index])

    @property
    def num_children(self) -> int:
        return len(self.tree._children[self.index])

    def child(self, position: int) -> Node:
        """The child at position (negative positions count from the end)."""
        return Node(self.tree, self.tree._children[self.index][position])

    def first_child(self) -> Node | None:
        kids = self.tree._children[self.index]
        return Node(self.tree, kids[0]) if kids else None

    def last_child(self) -> Node | None:
        kids = self.tree._children[self.index]
        return Node(self.tree, kids[-1]) if kids else None

    def parent(self) -> Node | None:
        parent = self.tree._parents[self.index]
        return None if parent is None else Node(self.tree, parent)

    def index_in_parent(self) -> int | None:
        parent = self.tree._parents[self.index]
        if parent is None:
            return None
        return self.tree._children[parent].index(self.index)

    def is_leaf(self) -> bool:
        return not self.tree._children[self.index]

    def is_preterminal(self) -> bool:
        """True for a node whose only child is a leaf."""
        kids = self.tree._children[self.index]
        return len(kids) == 1 and not self.tree._children[kids[0]]

    def is_root(self) -> bool:
        return self.tree._root == self.index

    def in_tree(self) -> bool:
        """True if this node is reachable from its tree's root."""
        parents = self.tree._parents
        current = self.index
        while parents[current] is not None:
            current = parents[current]
        return current == self.tree._root

    def dominates(self, other: Node) -> bool:
        """True if other is a proper descendant of this node."""
        if other.tree is not self.tree:
            return False
        parents = self.tree._parents
        current = parents[other.index]
        while current is not None:
            if current == self.index:
                return True
            current = parents[current]
        return False

    def preorder(self) -> Iterator[Node]:
        """Yield this node and its descendants in pre-order."""
        tree = self.tree
        stack = [self.index]
        while stack:
            index = stack.pop()
            yield Node(tree, index)
            stack.extend(reversed(tree._children[index]))

    def leaves(self) -> Iterator[Node]:
        for node in self.preorder():
            if node.is_leaf():
                yield node

    def replace_children(self, nodes: Iterable[Node]) -> None:
        """
        Replace this node's children wholesale.

        A node that is already placed somewhere else is copied instead of
        moved: one with a different parent, the root, this node or one of
        its ancestors, a node from another tree, or a repeat within nodes.
        Children that are dropped become detached.
        """
        tree = self.tree
        indices: list[int] = []
        taken: set[int] = set()

        for node in nodes:
            if self._must_copy(node, taken):
                node = node.copy(into=tree)
            indices.append(node.index)
            taken.add(node.index)

        for old in tree._children[self.index]:
            if old not in taken:
                tree._parents[old] = None
        for index in indices:
            tree._parents[index] = self.index
        tree._children[self.index] = indices
        tree.version += 1

    def _must_copy(self, node: Node, taken: set[int]) -> bool:
        if node.tree is not self.tree or node.index in taken:
            return True
        parent = self.tree._parents[node.index]
        if parent is not None:
            return parent != self.index
        if node.index == self.tree._root:
            return True
        return node == self or node.dominates(self)

    def insert_child(self, position: int, node: Node) -> Node:
        """
        Insert node so that it ends up at position (0..num_children).

        Returns the inserted node, which is a copy if node was placed
        elsewhere.
        """
        if not 0 <= position <= self.num_children:
            raise IndexError(f"Child position {position} out of range for {self!r}")
        kids = list(self.children())
        kids.insert(position, node)
        self.replace_children(kids)
        return self.child(position)

    def detach(self) -> Node:
        """Remove this node (and its subtree) from wherever it sits."""
        parent = self.parent()
        if parent is not None:
            parent.replace_children(c for c in parent.children() if c != self)
        elif self.is_root():
            self.tree._root = None
            self.tree.version += 1
        return self

    def copy(self, into: Tree | None = None) -> Node:
        """
        Deep copy of this subtree with fresh identities.

        Args:
            into: Arena for the copy (defaults to this node's own tree)

        Returns:
            The detached copy
        """
        target = into if into is not None else self.tree
        source = self.tree

        top = target._allocate(source._labels[self.index])
        stack = [(self.index, top)]
        while stack:
            old, new = stack.pop()
            kids = []
            for child in source._children[old]:
                kid = target._allocate(source._labels[child])
                target._parents[kid] = new
                kids.append(kid)
                stack.append((child, kid))
            target._children[new] = kids
        return Node(target, top)

    def __str__(self) -> str:
        from treesurgeon.core.penn import to_string
        return to_string(self)

    def __repr__(self) -> str:
        return f"Node({self.label!r}#{self.index})"
