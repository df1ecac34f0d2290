"""
Compiled pattern expressions.

A compiled pattern is an immutable tree of the dataclasses below. Node
descriptions test a single node; relations say how a child description
must sit relative to its parent description; constraints combine
relation clauses with and/or/not/optional.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum, Flag, auto

from treesurgeon.core.labels import DEFAULT_ANNOTATION_CHARS, basic_category


class DescriptionKind(Enum):
    """How a node description tests a node."""
    LITERAL = auto()       # label equals one of the alternatives
    REGEX = auto()         # regex search on the label
    WILDCARD = auto()      # __, anything
    IDENTITY_REF = auto()  # =name, the very node bound to name
    LABEL_REF = auto()     # ~name / %name, same label as the node bound to name


class Predicate(Flag):
    """Structural tests attached to a description with {...}."""
    NONE = 0
    LEAF = auto()
    PRETERMINAL = auto()
    ROOT = auto()


@dataclass(frozen=True)
class NodeDescription:
    """
    Test for a single node.

    negated and basic_category apply to the label test only; predicates
    and the capture name are checked on top of it.
    """
    kind: DescriptionKind
    text: str = ""
    alternatives: frozenset[str] = frozenset()
    regex: re.Pattern | None = None
    negated: bool = False
    basic_category: bool = False
    predicates: Predicate = Predicate.NONE
    name: str | None = None                          # =name capture
    ref: str | None = None                           # backreference target
    variable_groups: tuple[tuple[int, str], ...] = ()  # (group, variable)
    annotation_chars: str = DEFAULT_ANNOTATION_CHARS
    position: int = field(default=0, compare=False)

    def comparable(self, label: str) -> str:
        """The part of label this description compares against."""
        if self.basic_category:
            return basic_category(label, self.annotation_chars)
        return label

    def accepts_label(self, label: str) -> bool:
        """
        Label test alone, with negation applied.

        Backreferences can't be decided from a label, so they never
        accept here; the matcher handles them against its bindings.
        """
        value = self.comparable(label)
        if self.kind is DescriptionKind.WILDCARD:
            hit = True
        elif self.kind is DescriptionKind.LITERAL:
            hit = value in self.alternatives
        elif self.kind is DescriptionKind.REGEX:
            hit = self.regex.search(value) is not None
        else:
            return False
        return hit != self.negated

    def __str__(self) -> str:
        return self.text


class RelationKind(Enum):
    """Every supported relation; values are the canonical symbols."""
    DOMINATES = "<<"
    DOMINATED_BY = ">>"
    PARENT_OF = "<"
    CHILD_OF = ">"
    HAS_ITH_CHILD = "<i"
    ITH_CHILD_OF = ">i"
    HAS_ONLY_CHILD = "<:"
    ONLY_CHILD_OF = ">:"
    HAS_LEFTMOST_DESCENDANT = "<<,"
    HAS_RIGHTMOST_DESCENDANT = "<<-"
    LEFTMOST_DESCENDANT_OF = ">>,"
    RIGHTMOST_DESCENDANT_OF = ">>-"
    UNARY_PATH_ANCESTOR_OF = "<<:"
    UNARY_PATH_DESCENDANT_OF = ">>:"
    PRECEDES = ".."
    FOLLOWS = ",,"
    IMMEDIATELY_PRECEDES = "."
    IMMEDIATELY_FOLLOWS = ","
    SISTER_OF = "$"
    LEFT_SISTER_OF = "$++"
    RIGHT_SISTER_OF = "$--"
    IMMEDIATE_LEFT_SISTER_OF = "$+"
    IMMEDIATE_RIGHT_SISTER_OF = "$-"
    EQUALS = "=="
    UNBROKEN_DOMINATES = "<+"
    UNBROKEN_DOMINATED_BY = ">+"
    UNBROKEN_PRECEDES = ".+"
    UNBROKEN_FOLLOWS = ",+"


@dataclass(frozen=True)
class Relation:
    """A relation kind plus its argument, if the kind takes one."""
    kind: RelationKind
    index: int | None = None                   # ith-child relations, 1-based, negative from the end
    category: NodeDescription | None = None    # unbroken-chain relations

    def __str__(self) -> str:
        if self.index is not None:
            return f"{self.kind.value[0]}{self.index}"
        if self.category is not None:
            return f"{self.kind.value}({self.category})"
        return self.kind.value


@dataclass(frozen=True)
class PatternNode:
    """A node description and the constraint on its surroundings."""
    description: NodeDescription
    constraint: Constraint | None = None


@dataclass(frozen=True)
class RelationClause:
    relation: Relation
    child: PatternNode


@dataclass(frozen=True)
class Conjunction:
    items: tuple[Constraint, ...]


@dataclass(frozen=True)
class Disjunction:
    items: tuple[Constraint, ...]


@dataclass(frozen=True)
class Negation:
    """Holds only if inner has no solution; never binds names."""
    inner: Constraint


@dataclass(frozen=True)
class Optional:
    """Binds names from the first solution of inner, if there is one."""
    inner: Constraint


Constraint = RelationClause | Conjunction | Disjunction | Negation | Optional


@dataclass(frozen=True)
class Pattern:
    """
    A compiled pattern.

    segments holds the ``:``-separated parts; the first one is anchored at
    the match root and the rest may match anywhere in the same tree.
    """
    source: str
    segments: tuple[PatternNode, ...]
    capture_names: frozenset[str] = frozenset()
    variable_names: frozenset[str] = frozenset()

    @property
    def head(self) -> PatternNode:
        return self.segments[0]

    def __str__(self) -> str:
        return self.source
