"""
Tree traversal helpers.

Thin functions over Node handles that the relation search and the
surgery executor share.
"""

from __future__ import annotations

from collections import deque
from typing import Iterator

from treesurgeon.core.nodes import Node


def get_root(node: Node) -> Node:
    """Walk up to the topmost ancestor of a node."""
    parent = node.parent()
    while parent is not None:
        node = parent
        parent = node.parent()
    return node


def left_sibling(node: Node) -> Node | None:
    """Get the left sibling of a node, or None if it's the first child."""
    parent = node.parent()
    if parent is None:
        return None
    idx = node.index_in_parent()
    return parent.child(idx - 1) if idx > 0 else None


def right_sibling(node: Node) -> Node | None:
    """Get the right sibling of a node, or None if it's the last child."""
    parent = node.parent()
    if parent is None:
        return None
    idx = node.index_in_parent()
    return parent.child(idx + 1) if idx < parent.num_children - 1 else None


def ancestors(node: Node, max_depth: int | None = None) -> Iterator[Node]:
    """Yield ancestors from parent up to root (or up to max_depth levels)."""
    current = node.parent()
    depth = 0
    while current is not None:
        if max_depth is not None and depth >= max_depth:
            break
        yield current
        current = current.parent()
        depth += 1


def walk_tree(node: Node, order: str = "pre") -> Iterator[Node]:
    """
    Walk tree nodes in specified order.

    Args:
        node: Root node to start from
        order: "pre" for pre-order, "post" for post-order, "bfs" for breadth-first
    """
    if order == "pre":
        yield from node.preorder()
    elif order == "post":
        stack = [(node, False)]
        while stack:
            current, expanded = stack.pop()
            if expanded:
                yield current
                continue
            stack.append((current, True))
            stack.extend((child, False) for child in reversed(current.children()))
    elif order == "bfs":
        queue = deque([node])
        while queue:
            current = queue.popleft()
            yield current
            queue.extend(current.children())
    else:
        raise ValueError(f"Unknown order: {order}")


def following(node: Node) -> Iterator[Node]:
    """Yield every node entirely to the right of node, in document order."""
    current = node
    parent = current.parent()
    while parent is not None:
        kids = parent.children()
        for sibling in kids[kids.index(current) + 1:]:
            yield from sibling.preorder()
        current, parent = parent, parent.parent()


def preceding(node: Node) -> Iterator[Node]:
    """Yield every node entirely to the left of node, in document order."""
    levels = []
    current = node
    parent = current.parent()
    while parent is not None:
        levels.append((parent, current))
        current, parent = parent, parent.parent()

    for parent, current in reversed(levels):
        kids = parent.children()
        for sibling in kids[:kids.index(current)]:
            yield from sibling.preorder()


def left_edge(node: Node) -> Iterator[Node]:
    """Yield the first child, its first child, and so on down to a leaf."""
    current = node.first_child()
    while current is not None:
        yield current
        current = current.first_child()


def right_edge(node: Node) -> Iterator[Node]:
    """Yield the last child, its last child, and so on down to a leaf."""
    current = node.last_child()
    while current is not None:
        yield current
        current = current.last_child()


def index_by_label(node: Node, exclude_subtree: Node | None = None) -> dict[str, list[Node]]:
    """
    Build an index of nodes by their label.

    Args:
        node: Root node to index from
        exclude_subtree: Subtree to exclude from indexing (optional)

    Returns:
        Dict mapping labels to lists of nodes, each list in pre-order
    """
    index: dict[str, list[Node]] = {}
    for n in walk_tree(node):
        if exclude_subtree is not None and (n == exclude_subtree or exclude_subtree.dominates(n)):
            continue
        index.setdefault(n.label, []).append(n)
    return index
