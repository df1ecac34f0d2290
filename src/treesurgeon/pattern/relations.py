"""
Relation search.

For a relation R and a node A, ``search(R, A, root)`` yields every node B
with ``A R B``, in a fixed order. The matcher only ever enumerates
candidates this way, so a relation's order here is its order in match
results.
"""

from __future__ import annotations

from typing import Callable, Iterator

from treesurgeon.core.nodes import Node
from treesurgeon.core.tree import (
    ancestors,
    following,
    left_edge,
    left_sibling,
    preceding,
    right_edge,
    right_sibling,
)
from treesurgeon.pattern.expr import Relation, RelationKind

Searcher = Callable[[Node, Node, Relation], Iterator[Node]]

# Surface tokens for relations that take no argument.
RELATION_TOKENS: dict[str, RelationKind] = {
    "<<": RelationKind.DOMINATES,
    ">>": RelationKind.DOMINATED_BY,
    "<": RelationKind.PARENT_OF,
    ">": RelationKind.CHILD_OF,
    "<:": RelationKind.HAS_ONLY_CHILD,
    ">:": RelationKind.ONLY_CHILD_OF,
    "<<,": RelationKind.HAS_LEFTMOST_DESCENDANT,
    "<<-": RelationKind.HAS_RIGHTMOST_DESCENDANT,
    "<<`": RelationKind.HAS_RIGHTMOST_DESCENDANT,
    ">>,": RelationKind.LEFTMOST_DESCENDANT_OF,
    ">>-": RelationKind.RIGHTMOST_DESCENDANT_OF,
    ">>`": RelationKind.RIGHTMOST_DESCENDANT_OF,
    "<<:": RelationKind.UNARY_PATH_ANCESTOR_OF,
    ">>:": RelationKind.UNARY_PATH_DESCENDANT_OF,
    "..": RelationKind.PRECEDES,
    ",,": RelationKind.FOLLOWS,
    ".": RelationKind.IMMEDIATELY_PRECEDES,
    ",": RelationKind.IMMEDIATELY_FOLLOWS,
    "$": RelationKind.SISTER_OF,
    "$++": RelationKind.LEFT_SISTER_OF,
    "$..": RelationKind.LEFT_SISTER_OF,
    "$--": RelationKind.RIGHT_SISTER_OF,
    "$,,": RelationKind.RIGHT_SISTER_OF,
    "$+": RelationKind.IMMEDIATE_LEFT_SISTER_OF,
    "$.": RelationKind.IMMEDIATE_LEFT_SISTER_OF,
    "$-": RelationKind.IMMEDIATE_RIGHT_SISTER_OF,
    "$,": RelationKind.IMMEDIATE_RIGHT_SISTER_OF,
    "==": RelationKind.EQUALS,
}

# First/last child shorthands for the ith-child relations.
CHILD_SHORTHANDS: dict[str, tuple[RelationKind, int]] = {
    "<,": (RelationKind.HAS_ITH_CHILD, 1),
    "<-": (RelationKind.HAS_ITH_CHILD, -1),
    "<`": (RelationKind.HAS_ITH_CHILD, -1),
    ">,": (RelationKind.ITH_CHILD_OF, 1),
    ">-": (RelationKind.ITH_CHILD_OF, -1),
    ">`": (RelationKind.ITH_CHILD_OF, -1),
}

UNBROKEN_TOKENS: dict[str, RelationKind] = {
    "<+": RelationKind.UNBROKEN_DOMINATES,
    ">+": RelationKind.UNBROKEN_DOMINATED_BY,
    ".+": RelationKind.UNBROKEN_PRECEDES,
    ",+": RelationKind.UNBROKEN_FOLLOWS,
}


def search(relation: Relation, node: Node, root: Node) -> Iterator[Node]:
    """
    Yield every node that stands in relation to node.

    Args:
        relation: The relation, with its argument if it takes one
        node: The left-hand node (A in ``A R B``)
        root: Root of the tree being searched

    Returns:
        Iterator over the right-hand candidates B
    """
    return _SEARCHERS[relation.kind](node, root, relation)


def holds(relation: Relation, a: Node, b: Node, root: Node) -> bool:
    """True if ``a relation b``."""
    return any(candidate == b for candidate in search(relation, a, root))


def _child_position(count: int, index: int) -> int | None:
    position = index - 1 if index > 0 else count + index
    return position if 0 <= position < count else None


def _dominates(node, root, relation):
    descendants = node.preorder()
    next(descendants)
    yield from descendants


def _dominated_by(node, root, relation):
    yield from ancestors(node)


def _parent_of(node, root, relation):
    yield from node.children()


def _child_of(node, root, relation):
    parent = node.parent()
    if parent is not None:
        yield parent


def _has_ith_child(node, root, relation):
    position = _child_position(node.num_children, relation.index)
    if position is not None:
        yield node.child(position)


def _ith_child_of(node, root, relation):
    parent = node.parent()
    if parent is None:
        return
    position = _child_position(parent.num_children, relation.index)
    if position is not None and parent.child(position) == node:
        yield parent


def _has_only_child(node, root, relation):
    if node.num_children == 1:
        yield node.child(0)


def _only_child_of(node, root, relation):
    parent = node.parent()
    if parent is not None and parent.num_children == 1:
        yield parent


def _has_leftmost_descendant(node, root, relation):
    yield from left_edge(node)


def _has_rightmost_descendant(node, root, relation):
    yield from right_edge(node)


def _leftmost_descendant_of(node, root, relation):
    current = node
    parent = current.parent()
    while parent is not None and parent.first_child() == current:
        yield parent
        current, parent = parent, parent.parent()


def _rightmost_descendant_of(node, root, relation):
    current = node
    parent = current.parent()
    while parent is not None and parent.last_child() == current:
        yield parent
        current, parent = parent, parent.parent()


def _unary_path_ancestor_of(node, root, relation):
    current = node
    while current.num_children == 1:
        current = current.child(0)
        yield current


def _unary_path_descendant_of(node, root, relation):
    parent = node.parent()
    while parent is not None and parent.num_children == 1:
        yield parent
        parent = parent.parent()


def _precedes(node, root, relation):
    yield from following(node)


def _follows(node, root, relation):
    yield from preceding(node)


def _immediately_precedes(node, root, relation):
    # Next sister at the lowest level that has one, then its left edge down.
    current = node
    sibling = right_sibling(current)
    while sibling is None:
        current = current.parent()
        if current is None:
            return
        sibling = right_sibling(current)
    while sibling is not None:
        yield sibling
        sibling = sibling.first_child()


def _immediately_follows(node, root, relation):
    current = node
    sibling = left_sibling(current)
    while sibling is None:
        current = current.parent()
        if current is None:
            return
        sibling = left_sibling(current)
    while sibling is not None:
        yield sibling
        sibling = sibling.last_child()


def _sister_of(node, root, relation):
    parent = node.parent()
    if parent is None:
        return
    for sister in parent.children():
        if sister != node:
            yield sister


def _left_sister_of(node, root, relation):
    # Sisters to the right of node, scanned from the far end inwards.
    parent = node.parent()
    if parent is None:
        return
    for sister in reversed(parent.children()):
        if sister == node:
            return
        yield sister


def _right_sister_of(node, root, relation):
    parent = node.parent()
    if parent is None:
        return
    for sister in parent.children():
        if sister == node:
            return
        yield sister


def _immediate_left_sister_of(node, root, relation):
    sister = right_sibling(node)
    if sister is not None:
        yield sister


def _immediate_right_sister_of(node, root, relation):
    sister = left_sibling(node)
    if sister is not None:
        yield sister


def _equals(node, root, relation):
    yield node


def _unbroken_dominates(node, root, relation):
    accepts = relation.category.accepts_label
    stack = list(reversed(node.children()))
    while stack:
        current = stack.pop()
        yield current
        if accepts(current.label):
            stack.extend(reversed(current.children()))


def _unbroken_dominated_by(node, root, relation):
    accepts = relation.category.accepts_label
    current = node.parent()
    while current is not None:
        yield current
        if not accepts(current.label):
            return
        current = current.parent()


def _unbroken_chain(step: Searcher) -> Searcher:
    def chain(node, root, relation):
        accepts = relation.category.accepts_label
        seen = set()
        stack = list(step(node, root, relation))
        while stack:
            current = stack.pop()
            if current in seen:
                continue
            seen.add(current)
            yield current
            if accepts(current.label):
                stack.extend(step(current, root, relation))
    return chain


_SEARCHERS: dict[RelationKind, Searcher] = {
    RelationKind.DOMINATES: _dominates,
    RelationKind.DOMINATED_BY: _dominated_by,
    RelationKind.PARENT_OF: _parent_of,
    RelationKind.CHILD_OF: _child_of,
    RelationKind.HAS_ITH_CHILD: _has_ith_child,
    RelationKind.ITH_CHILD_OF: _ith_child_of,
    RelationKind.HAS_ONLY_CHILD: _has_only_child,
    RelationKind.ONLY_CHILD_OF: _only_child_of,
    RelationKind.HAS_LEFTMOST_DESCENDANT: _has_leftmost_descendant,
    RelationKind.HAS_RIGHTMOST_DESCENDANT: _has_rightmost_descendant,
    RelationKind.LEFTMOST_DESCENDANT_OF: _leftmost_descendant_of,
    RelationKind.RIGHTMOST_DESCENDANT_OF: _rightmost_descendant_of,
    RelationKind.UNARY_PATH_ANCESTOR_OF: _unary_path_ancestor_of,
    RelationKind.UNARY_PATH_DESCENDANT_OF: _unary_path_descendant_of,
    RelationKind.PRECEDES: _precedes,
    RelationKind.FOLLOWS: _follows,
    RelationKind.IMMEDIATELY_PRECEDES: _immediately_precedes,
    RelationKind.IMMEDIATELY_FOLLOWS: _immediately_follows,
    RelationKind.SISTER_OF: _sister_of,
    RelationKind.LEFT_SISTER_OF: _left_sister_of,
    RelationKind.RIGHT_SISTER_OF: _right_sister_of,
    RelationKind.IMMEDIATE_LEFT_SISTER_OF: _immediate_left_sister_of,
    RelationKind.IMMEDIATE_RIGHT_SISTER_OF: _immediate_right_sister_of,
    RelationKind.EQUALS: _equals,
    RelationKind.UNBROKEN_DOMINATES: _unbroken_dominates,
    RelationKind.UNBROKEN_DOMINATED_BY: _unbroken_dominated_by,
    RelationKind.UNBROKEN_PRECEDES: _unbroken_chain(_immediately_precedes),
    RelationKind.UNBROKEN_FOLLOWS: _unbroken_chain(_immediately_follows),
}
