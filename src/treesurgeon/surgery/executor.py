"""
Surgery executor.

Applies a compiled script to one match. Every application gets its own
SurgeryContext holding the nodes created so far and the diagnostics
raised so far; nothing is shared between applications. Problems that
only show up at run time (a name bound to nothing, an edit that makes no
sense on this particular tree) skip the step, are recorded on the result
and logged, and the rest of the script still runs.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Callable

from treesurgeon.core.labels import max_coindex, with_coindex
from treesurgeon.core.nodes import Node, Tree
from treesurgeon.core.tree import walk_tree
from treesurgeon.errors import (
    InvalidEditWarning,
    RegexMismatch,
    SurgeryWarning,
    UnresolvedNodeWarning,
)
from treesurgeon.surgery.auxtree import Instance
from treesurgeon.surgery.ops import (
    Fetch,
    Hold,
    Operand,
    Operation,
    OperationKind,
    Position,
    PositionKind,
    SurgeryScript,
)

if TYPE_CHECKING:
    from treesurgeon.engine.matcher import Match

logger = logging.getLogger(__name__)


@dataclass
class SurgeryContext:
    """State for one application of one script to one match."""
    match: Match
    tree: Tree
    new_nodes: dict[str, Node] = field(default_factory=dict)
    diagnostics: list[SurgeryWarning] = field(default_factory=list)
    version: int = 0

    def warn(self, warning: SurgeryWarning):
        self.diagnostics.append(warning)
        where = f" in '{warning.operation}'" if warning.operation is not None else ""
        if isinstance(warning, RegexMismatch):
            logger.debug(f"{warning.message}{where}")
        else:
            logger.warning(f"{warning.message}{where}")

    def resolve(self, name: str) -> Node | None:
        """New nodes from this application first, then the match."""
        if name in self.new_nodes:
            return self.new_nodes[name]
        return self.match.node(name)


@dataclass
class SurgeryResult:
    """Outcome of applying a script to one match."""
    root: Node | None
    structural: bool = False
    diagnostics: list[SurgeryWarning] = field(default_factory=list)
    new_nodes: dict[str, Node] = field(default_factory=dict)

    @property
    def is_clean(self) -> bool:
        return not self.diagnostics

    def unresolved(self) -> list[UnresolvedNodeWarning]:
        return [d for d in self.diagnostics if isinstance(d, UnresolvedNodeWarning)]


class SurgeryExecutor:
    """Evaluates operations against a match, one dispatch per kind."""

    def __init__(self):
        self._handlers: dict[OperationKind, Callable[[Operation, SurgeryContext], None]] = {
            OperationKind.RELABEL: self._relabel,
            OperationKind.INSERT: self._insert,
            OperationKind.DELETE: self._delete,
            OperationKind.PRUNE: self._prune,
            OperationKind.EXCISE: self._excise,
            OperationKind.MOVE: self._move,
            OperationKind.REPLACE: self._replace,
            OperationKind.ADJOIN: self._adjoin,
            OperationKind.CREATE_SUBTREE: self._create_subtree,
            OperationKind.COINDEX: self._coindex,
        }

    def execute(self, script: SurgeryScript, match: Match) -> SurgeryResult:
        """
        Apply every operation of script, in order, to match's tree.

        Args:
            script: Compiled surgery script
            match: The match whose bindings the script reads

        Returns:
            SurgeryResult with the (possibly new) root, whether the tree's
            structure changed, and the diagnostics recorded on the way
        """
        tree = match.tree
        context = SurgeryContext(match=match, tree=tree, version=tree.version)
        for operation in script:
            self.apply_operation(operation, context)
        return SurgeryResult(
            root=tree.root,
            structural=tree.version != context.version,
            diagnostics=context.diagnostics,
            new_nodes=context.new_nodes,
        )

    def apply_operation(self, operation: Operation, context: SurgeryContext):
        self._handlers[operation.kind](operation, context)

    # Operand evaluation

    def _fetch(self, fetch: Fetch, operation: Operation, context: SurgeryContext) -> Node | None:
        node = context.resolve(fetch.name)
        if node is None:
            context.warn(UnresolvedNodeWarning(fetch.name, operation))
        return node

    def _evaluate(self, operand: Operand, operation: Operation, context: SurgeryContext) -> Node | None:
        """Fetch a node, or instantiate a fresh copy of a held template."""
        if isinstance(operand, Fetch):
            return self._fetch(operand, operation, context)
        return self._instantiate(operand, operation, context).root

    def _instantiate(self, held: Hold, operation: Operation, context: SurgeryContext) -> Instance:
        """Fresh copy of a template; its names become fetchable right away."""
        instance = held.template.instantiate(context.tree, context.resolve)
        for name in instance.unresolved:
            context.warn(UnresolvedNodeWarning(name, operation))
        context.new_nodes.update(instance.names)
        return instance

    def _fetch_all(self, operation: Operation, context: SurgeryContext) -> list[Node] | None:
        """All fetch operands, or None if any of them is unbound."""
        nodes = [self._fetch(op, operation, context) for op in operation.operands if isinstance(op, Fetch)]
        if any(node is None for node in nodes):
            return None
        return nodes

    # Shared edits

    def _attached(self, node: Node, operation: Operation, context: SurgeryContext) -> bool:
        if node.in_tree():
            return True
        context.warn(InvalidEditWarning(f"{node!r} is no longer in the tree", operation))
        return False

    def _swap(self, old: Node, new: Node, context: SurgeryContext) -> Node:
        """Put new where old is; old ends up detached. Returns the placed node."""
        parent = old.parent()
        if parent is None:
            return context.tree.set_root(new)
        position = old.index_in_parent()
        kids = list(parent.children())
        kids[position] = new
        parent.replace_children(kids)
        return parent.child(position)

    def _remove(self, node: Node, context: SurgeryContext):
        if node.parent() is None and not node.is_root():
            return
        node.detach()

    def _locate(self, position: Position, operation: Operation, context: SurgeryContext) -> tuple[Node, int] | None:
        """
        Parent and child slot that position names, checked against the
        current tree. Nothing is edited here, so a None result leaves the
        tree as it was.
        """
        target = self._fetch(position.target, operation, context)
        if target is None:
            return None

        if position.kind is PositionKind.CHILD:
            count = target.num_children
            slot = position.index - 1 if position.index > 0 else count + 1 + position.index
            if not 0 <= slot <= count:
                context.warn(InvalidEditWarning(
                    f"{target!r} has no child position {position.index}", operation))
                return None
            return target, slot

        parent = target.parent()
        if parent is None:
            context.warn(InvalidEditWarning(f"{target!r} has no parent to take a sister", operation))
            return None
        slot = target.index_in_parent()
        if position.kind is PositionKind.RIGHT_SISTER:
            slot += 1
        return parent, slot

    # Operations

    def _relabel(self, operation: Operation, context: SurgeryContext):
        node = self._fetch(operation.operands[0], operation, context)
        if node is None:
            return
        if operation.label_regex is None:
            node.set_label(operation.new_label)
            return
        found = operation.label_regex.search(node.label)
        if found is None:
            context.warn(RegexMismatch(node.label, operation.label_regex.pattern, operation))
            return
        node.set_label(found.group(operation.group) or "")

    def _delete(self, operation: Operation, context: SurgeryContext):
        for node in self._each(operation, context):
            self._remove(node, context)

    def _prune(self, operation: Operation, context: SurgeryContext):
        for node in self._each(operation, context):
            parent = node.parent()
            self._remove(node, context)
            while parent is not None and parent.is_leaf():
                node, parent = parent, parent.parent()
                self._remove(node, context)

    def _each(self, operation: Operation, context: SurgeryContext):
        for operand in operation.operands:
            node = self._fetch(operand, operation, context)
            if node is not None:
                yield node

    def _excise(self, operation: Operation, context: SurgeryContext):
        nodes = self._fetch_all(operation, context)
        if nodes is None:
            return
        top, bottom = nodes
        if top != bottom and not top.dominates(bottom):
            context.warn(InvalidEditWarning(f"{top!r} does not dominate {bottom!r}", operation))
            return

        kids = list(bottom.children())
        parent = top.parent()
        if parent is None and len(kids) != 1:
            context.warn(InvalidEditWarning(
                f"Excising the root needs exactly one child to promote, got {len(kids)}", operation))
            return

        bottom.replace_children(())
        if parent is None:
            context.tree.set_root(kids[0])
            return
        position = top.index_in_parent()
        siblings = list(parent.children())
        parent.replace_children(siblings[:position] + kids + siblings[position + 1:])

    def _insert(self, operation: Operation, context: SurgeryContext):
        operand = operation.operands[0]
        node = None
        if isinstance(operand, Fetch):
            node = self._fetch(operand, operation, context)
            if node is None:
                return
        location = self._locate(operation.position, operation, context)
        if location is None:
            return
        # Instantiating a template bumps the tree version, so it waits for a valid position.
        if node is None:
            node = self._instantiate(operand, operation, context).root
        parent, slot = location
        parent.insert_child(slot, node)

    def _move(self, operation: Operation, context: SurgeryContext):
        node = self._fetch(operation.operands[0], operation, context)
        if node is None:
            return
        location = self._locate(operation.position, operation, context)
        if location is None:
            return
        target = context.resolve(operation.position.target.name)
        if target == node or node.dominates(target):
            context.warn(InvalidEditWarning(f"Cannot move {node!r} inside itself", operation))
            return

        parent, slot = location
        if node.parent() == parent and node.index_in_parent() < slot:
            slot -= 1
        self._remove(node, context)
        parent.insert_child(slot, node)

    def _replace(self, operation: Operation, context: SurgeryContext):
        old = self._fetch(operation.operands[0], operation, context)
        if old is None or not self._attached(old, operation, context):
            return
        new = self._evaluate(operation.operands[1], operation, context)
        if new is not None:
            self._swap(old, new, context)

    def _adjoin(self, operation: Operation, context: SurgeryContext):
        held, target_operand = operation.operands
        target = self._fetch(target_operand, operation, context)
        if target is None or not self._attached(target, operation, context):
            return
        instance = self._instantiate(held, operation, context)

        kids = list(target.children())
        target.replace_children(())
        instance.foot.replace_children(kids)
        self._swap(target, instance.root, context)

    def _create_subtree(self, operation: Operation, context: SurgeryContext):
        nodes = self._fetch_all(operation, context)
        if nodes is None:
            return
        first, last = nodes[0], nodes[-1]
        parent = first.parent()
        if parent is None or last.parent() != parent:
            context.warn(InvalidEditWarning(f"{first!r} and {last!r} are not sisters", operation))
            return

        start, end = sorted((first.index_in_parent(), last.index_in_parent()))
        instance = self._instantiate(operation.operands[0], operation, context)

        siblings = list(parent.children())
        parent.replace_children(siblings[:start] + [instance.root] + siblings[end + 1:])
        instance.foot.replace_children(siblings[start:end + 1])

    def _coindex(self, operation: Operation, context: SurgeryContext):
        nodes = self._fetch_all(operation, context)
        if nodes is None:
            return
        root = context.tree.root
        labels = (node.label for node in walk_tree(root)) if root is not None else ()
        index = max_coindex(labels) + 1
        for node in nodes:
            node.set_label(with_coindex(node.label, index))


_DEFAULT_EXECUTOR = SurgeryExecutor()


def execute(script: SurgeryScript, match: Match) -> SurgeryResult:
    """Apply script to match and report what happened."""
    return _DEFAULT_EXECUTOR.execute(script, match)


def apply(script: SurgeryScript, match: Match) -> Node | None:
    """Apply script to match and return the tree's (possibly new) root."""
    return execute(script, match).root
