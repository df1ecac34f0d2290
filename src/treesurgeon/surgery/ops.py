"""
Compiled surgery operations.

An operation is an immutable record: a kind plus operands. Operands are
either fetches of named nodes or held auxiliary-tree templates. The
executor evaluates every kind through one dispatch table.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum, auto

from treesurgeon.surgery.auxtree import AuxiliaryTree


class OperationKind(Enum):
    RELABEL = "relabel"
    INSERT = "insert"
    DELETE = "delete"
    PRUNE = "prune"
    EXCISE = "excise"
    MOVE = "move"
    REPLACE = "replace"
    ADJOIN = "adjoin"
    CREATE_SUBTREE = "createSubtree"
    COINDEX = "coindex"


class PositionKind(Enum):
    LEFT_SISTER = auto()   # $+ t: immediately left of t
    RIGHT_SISTER = auto()  # $- t: immediately right of t
    CHILD = auto()         # >i t: ith child of t (negative counts from the end)


@dataclass(frozen=True)
class Fetch:
    """Resolve a name against new nodes first, then the match."""
    name: str

    def __str__(self) -> str:
        return self.name


@dataclass(frozen=True)
class Hold:
    """Instantiate a fresh copy of a template."""
    template: AuxiliaryTree

    def __str__(self) -> str:
        return str(self.template)


Operand = Fetch | Hold


@dataclass(frozen=True)
class Position:
    kind: PositionKind
    target: Fetch
    index: int = 0

    def __str__(self) -> str:
        if self.kind is PositionKind.LEFT_SISTER:
            return f"$+ {self.target}"
        if self.kind is PositionKind.RIGHT_SISTER:
            return f"$- {self.target}"
        return f">{self.index} {self.target}"


@dataclass(frozen=True)
class Operation:
    """
    One step of a surgery script.

    Which fields are meaningful depends on kind: relabel uses new_label
    or label_regex/group, insert and move use position, everything else
    reads its operands in order.
    """
    kind: OperationKind
    operands: tuple[Operand, ...] = ()
    position: Position | None = None
    new_label: str | None = None
    label_regex: re.Pattern | None = None
    group: int = 0
    source: str = ""

    def names(self) -> tuple[str, ...]:
        """Every name this operation fetches, in order."""
        names = [op.name for op in self.operands if isinstance(op, Fetch)]
        for op in self.operands:
            if isinstance(op, Hold):
                names.extend(op.template.placeholders())
        if self.position is not None:
            names.append(self.position.target.name)
        return tuple(names)

    def declared_names(self) -> tuple[str, ...]:
        """Names that templates in this operation introduce."""
        names = []
        for op in self.operands:
            if isinstance(op, Hold):
                names.extend(op.template.names())
        return tuple(names)

    def __str__(self) -> str:
        return self.source or self.kind.value


@dataclass(frozen=True)
class SurgeryScript:
    """An ordered list of operations compiled from one script text."""
    source: str
    operations: tuple[Operation, ...]

    def __iter__(self):
        return iter(self.operations)

    def __len__(self) -> int:
        return len(self.operations)

    def names(self) -> frozenset[str]:
        """Every name the script fetches."""
        return frozenset(name for op in self.operations for name in op.names())
