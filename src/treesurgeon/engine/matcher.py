"""
Backtracking matcher.

Candidate match roots are visited in pre-order. At each candidate the
pattern is solved depth-first: descriptions, then relation clauses and
disjunction branches in source order, each relation offering its
candidates in its own fixed order. Every solver step is a generator over
binding states, so backtracking is just resuming the enclosing loop.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Iterator, Mapping

from treesurgeon.core.nodes import Node, Tree
from treesurgeon.errors import StaleMatchError
from treesurgeon.pattern.expr import (
    Conjunction,
    Constraint,
    DescriptionKind,
    Disjunction,
    Negation,
    NodeDescription,
    Optional,
    Pattern,
    PatternNode,
    Predicate,
    RelationClause,
)
from treesurgeon.pattern.relations import search

logger = logging.getLogger(__name__)

# (node bindings, string variable bindings); never mutated once built.
State = tuple[dict[str, Node], dict[str, str]]


class Match:
    """One solution: the match root plus the names it bound."""

    __slots__ = ("pattern", "tree", "_root", "_nodes", "_variables")

    def __init__(
        self,
        pattern: Pattern,
        tree: Tree,
        root: Node,
        nodes: Mapping[str, Node],
        variables: Mapping[str, str],
    ):
        self.pattern = pattern
        self.tree = tree
        self._root = root
        self._nodes = dict(nodes)
        self._variables = dict(variables)

    def root(self) -> Node:
        """The node the whole pattern matched at."""
        return self._root

    def node(self, name: str) -> Node | None:
        """The node bound to name, or None if this match did not bind it."""
        return self._nodes.get(name)

    def names(self) -> tuple[str, ...]:
        """Bound names, in the order they were bound."""
        return tuple(self._nodes)

    def variable(self, name: str) -> str | None:
        return self._variables.get(name)

    @property
    def bindings(self) -> Mapping[str, Node]:
        return MappingProxyType(self._nodes)

    def __repr__(self) -> str:
        bound = ", ".join(f"{name}={node!r}" for name, node in self._nodes.items())
        return f"Match(root={self._root!r}, {bound})"


class TreeMatcher:
    """
    All matches of one pattern over one tree.

    Iterating starts a fresh enumeration every time, so the matcher can be
    re-run after the tree has been edited. An enumeration that is resumed
    after a structural edit raises StaleMatchError instead of walking a
    tree that no longer looks the way its state assumes.
    """

    def __init__(self, pattern: Pattern, tree: Tree, one_per_root: bool = False):
        """
        Args:
            pattern: Compiled pattern
            tree: Tree to search
            one_per_root: Yield only the first solution at each match root
                instead of every distinct binding set
        """
        if tree is None:
            raise ValueError("A tree is required for matching")
        self.pattern = pattern
        self.tree = tree
        self.one_per_root = one_per_root

    def __iter__(self) -> Iterator[Match]:
        return self._enumerate()

    def first(self) -> Match | None:
        return next(iter(self), None)

    def count(self) -> int:
        return sum(1 for _ in self)

    def _enumerate(self) -> Iterator[Match]:
        root = self.tree.root
        if root is None:
            return
        version = self.tree.version
        solver = _Solver(root)

        for candidate in root.preorder():
            self._check(version)
            seen = set()
            for nodes, variables in solver.segments(self.pattern.segments, candidate, ({}, {})):
                key = (frozenset(nodes.items()), frozenset(variables.items()))
                if key in seen:
                    continue
                seen.add(key)
                yield Match(self.pattern, self.tree, candidate, nodes, variables)
                self._check(version)
                if self.one_per_root:
                    break

    def _check(self, version: int):
        if self.tree.version != version:
            raise StaleMatchError(
                f"Tree changed structure while matching {self.pattern.source!r}; restart the match"
            )


def match(pattern: Pattern, tree: Tree, one_per_root: bool = False) -> TreeMatcher:
    """
    Enumerate the matches of pattern over tree.

    Returns a TreeMatcher: iterate it (any number of times) to get Match
    objects in a fixed order.

    Every distinct binding set is a match of its own, so one node can be
    the root of several matches. NP < (NP=inner $ CC) over
    (NP (NP John) (CC and) (NP Mary)) gives two matches at the outer NP,
    inner bound to John and then to Mary; exactly one of them binds inner
    to John. Pass one_per_root=True to keep only the first match at each
    root.
    """
    return TreeMatcher(pattern, tree, one_per_root=one_per_root)


class _Solver:
    """Depth-first constraint search over one tree."""

    def __init__(self, root: Node):
        self.root = root

    def segments(self, segments: tuple[PatternNode, ...], node: Node, state: State) -> Iterator[State]:
        head, rest = segments[0], segments[1:]
        for solved in self.node(head, node, state):
            if not rest:
                yield solved
                continue
            for other in self.root.preorder():
                yield from self.segments(rest, other, solved)

    def node(self, pnode: PatternNode, node: Node, state: State) -> Iterator[State]:
        for described in self.describe(pnode.description, node, state):
            if pnode.constraint is None:
                yield described
            else:
                yield from self.satisfy(pnode.constraint, node, described)

    def satisfy(self, constraint: Constraint, node: Node, state: State) -> Iterator[State]:
        if isinstance(constraint, RelationClause):
            for candidate in search(constraint.relation, node, self.root):
                yield from self.node(constraint.child, candidate, state)
        elif isinstance(constraint, Conjunction):
            yield from self._all(constraint.items, 0, node, state)
        elif isinstance(constraint, Disjunction):
            for item in constraint.items:
                yield from self.satisfy(item, node, state)
        elif isinstance(constraint, Negation):
            # Any solution refutes the negation; its bindings are dropped.
            if next(self.satisfy(constraint.inner, node, state), None) is None:
                yield state
        elif isinstance(constraint, Optional):
            yield next(self.satisfy(constraint.inner, node, state), state)
        else:
            raise TypeError(f"Unknown constraint: {constraint!r}")

    def _all(self, items: tuple[Constraint, ...], position: int, node: Node, state: State) -> Iterator[State]:
        if position == len(items):
            yield state
            return
        for solved in self.satisfy(items[position], node, state):
            yield from self._all(items, position + 1, node, solved)

    def describe(self, desc: NodeDescription, node: Node, state: State) -> Iterator[State]:
        """Yield state extended for node if node fits desc (at most once)."""
        nodes, variables = state

        if desc.kind is DescriptionKind.IDENTITY_REF:
            if nodes.get(desc.ref) != node:
                return
        elif desc.kind is DescriptionKind.LABEL_REF:
            bound = nodes.get(desc.ref)
            if bound is None or bound.label != node.label:
                return
        elif desc.kind is DescriptionKind.REGEX and desc.variable_groups and not desc.negated:
            found = desc.regex.search(desc.comparable(node.label))
            if found is None:
                return
            variables = self._bind_variables(desc, found, variables)
            if variables is None:
                return
        elif not desc.accepts_label(node.label):
            return

        if desc.predicates and not self._predicates_hold(desc.predicates, node):
            return

        if desc.name is not None:
            bound = nodes.get(desc.name)
            if bound is not None:
                if bound != node:
                    return
            else:
                nodes = {**nodes, desc.name: node}

        yield nodes, variables

    def _bind_variables(self, desc: NodeDescription, found, variables: dict[str, str]) -> dict[str, str] | None:
        for group, variable in desc.variable_groups:
            value = found.group(group) or ""
            if variable in variables:
                if variables[variable] != value:
                    return None
            else:
                variables = {**variables, variable: value}
        return variables

    def _predicates_hold(self, predicates: Predicate, node: Node) -> bool:
        if Predicate.LEAF in predicates and not node.is_leaf():
            return False
        if Predicate.PRETERMINAL in predicates and not node.is_preterminal():
            return False
        if Predicate.ROOT in predicates and node != self.root:
            return False
        return True
