"""
Pattern language: grammar, compiler, expressions and relation search.
"""

from treesurgeon.pattern.expr import (
    DescriptionKind,
    Predicate,
    NodeDescription,
    RelationKind,
    Relation,
    PatternNode,
    RelationClause,
    Conjunction,
    Disjunction,
    Negation,
    Optional,
    Pattern,
)
from treesurgeon.pattern.compiler import compile_pattern
from treesurgeon.pattern.relations import search, holds

__all__ = [
    # expr
    "DescriptionKind",
    "Predicate",
    "NodeDescription",
    "RelationKind",
    "Relation",
    "PatternNode",
    "RelationClause",
    "Conjunction",
    "Disjunction",
    "Negation",
    "Optional",
    "Pattern",
    # compiler
    "compile_pattern",
    # relations
    "search",
    "holds",
]
