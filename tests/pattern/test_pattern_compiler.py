"""Tests for compiling pattern text.

Verifies:
- Well-formed patterns compile to the expected expression shapes
- Captures inside negations are not reported as match names
- Malformed patterns raise PatternSyntaxError pointing at the problem
"""

from __future__ import annotations

import pytest

from treesurgeon.errors import PatternSyntaxError
from treesurgeon.pattern.compiler import compile_pattern
from treesurgeon.pattern.expr import (
    Conjunction,
    DescriptionKind,
    Disjunction,
    Negation,
    Optional,
    Predicate,
    RelationClause,
    RelationKind,
)


class TestDescriptions:
    """Node description forms."""

    def test_literal(self) -> None:
        pattern = compile_pattern("NP")
        desc = pattern.head.description
        assert desc.kind is DescriptionKind.LITERAL
        assert desc.alternatives == frozenset({"NP"})
        assert pattern.head.constraint is None

    def test_alternatives(self) -> None:
        desc = compile_pattern("NP|VP|S").head.description
        assert desc.alternatives == frozenset({"NP", "VP", "S"})
        assert desc.accepts_label("VP")
        assert not desc.accepts_label("PP")

    def test_quoted_alternative(self) -> None:
        desc = compile_pattern('"a b"|"c\\"d"').head.description
        assert desc.alternatives == frozenset({"a b", 'c"d'})

    def test_wildcard(self) -> None:
        desc = compile_pattern("__").head.description
        assert desc.kind is DescriptionKind.WILDCARD
        assert desc.accepts_label("anything")

    def test_regex_with_flag(self) -> None:
        desc = compile_pattern("/^np/i").head.description
        assert desc.kind is DescriptionKind.REGEX
        assert desc.accepts_label("NP-SBJ")

    def test_negated_and_basic(self) -> None:
        desc = compile_pattern("!@NP").head.description
        assert desc.negated
        assert desc.basic_category
        assert not desc.accepts_label("NP-SBJ")
        assert desc.accepts_label("VP")

    def test_predicates(self) -> None:
        desc = compile_pattern("__{leaf}{root}").head.description
        assert Predicate.LEAF in desc.predicates
        assert Predicate.ROOT in desc.predicates
        assert Predicate.PRETERMINAL not in desc.predicates

    def test_variable_groups(self) -> None:
        pattern = compile_pattern("/^NP-(.*)$/#1%tag")
        assert pattern.head.description.variable_groups == ((1, "tag"),)
        assert pattern.variable_names == frozenset({"tag"})


class TestRelations:
    """Relation clauses and their combinations."""

    def test_single_clause(self) -> None:
        constraint = compile_pattern("NP < NN").head.constraint
        assert isinstance(constraint, RelationClause)
        assert constraint.relation.kind is RelationKind.PARENT_OF
        assert constraint.child.description.alternatives == frozenset({"NN"})

    def test_adjacent_clauses_are_a_conjunction(self) -> None:
        for text in ("NP < DT < NN", "NP < DT & < NN"):
            constraint = compile_pattern(text).head.constraint
            assert isinstance(constraint, Conjunction)
            assert len(constraint.items) == 2

    def test_disjunction(self) -> None:
        constraint = compile_pattern("NP < DT | < PRP").head.constraint
        assert isinstance(constraint, Disjunction)

    def test_negation_and_optional(self) -> None:
        assert isinstance(compile_pattern("NP !< DT").head.constraint, Negation)
        assert isinstance(compile_pattern("NP ?< DT").head.constraint, Optional)

    def test_bracketed_group(self) -> None:
        constraint = compile_pattern("NP ![< DT | < PRP]").head.constraint
        assert isinstance(constraint, Negation)
        assert isinstance(constraint.inner, Disjunction)

    def test_ith_child(self) -> None:
        relation = compile_pattern("S <2 VP").head.constraint.relation
        assert relation.kind is RelationKind.HAS_ITH_CHILD
        assert relation.index == 2
        relation = compile_pattern("NN >-1 NP").head.constraint.relation
        assert relation.kind is RelationKind.ITH_CHILD_OF
        assert relation.index == -1

    def test_child_shorthands(self) -> None:
        relation = compile_pattern("NP <, DT").head.constraint.relation
        assert relation.kind is RelationKind.HAS_ITH_CHILD
        assert relation.index == 1
        relation = compile_pattern("NP <- NN").head.constraint.relation
        assert relation.index == -1

    def test_symbol_aliases(self) -> None:
        assert compile_pattern("A $.. B").head.constraint.relation.kind is RelationKind.LEFT_SISTER_OF
        assert compile_pattern("A $++ B").head.constraint.relation.kind is RelationKind.LEFT_SISTER_OF
        assert compile_pattern("A <<` B").head.constraint.relation.kind is RelationKind.HAS_RIGHTMOST_DESCENDANT

    def test_unbroken_chain(self) -> None:
        relation = compile_pattern("VP <+(VP) VB").head.constraint.relation
        assert relation.kind is RelationKind.UNBROKEN_DOMINATES
        assert relation.category.accepts_label("VP")
        assert not relation.category.accepts_label("NP")

    def test_nested_nodes(self) -> None:
        pattern = compile_pattern("NP < (NP=inner $ CC)")
        child = pattern.head.constraint.child
        assert child.description.name == "inner"
        assert child.constraint.relation.kind is RelationKind.SISTER_OF


class TestNames:
    """Captures, backreferences and their scopes."""

    def test_capture_names(self) -> None:
        pattern = compile_pattern("S < NP=subj < (VP < NP=obj)")
        assert pattern.capture_names == frozenset({"subj", "obj"})

    def test_negated_capture_is_not_a_match_name(self) -> None:
        pattern = compile_pattern("NP=np !< DT=det")
        assert pattern.capture_names == frozenset({"np"})

    def test_optional_capture_is_a_match_name(self) -> None:
        pattern = compile_pattern("NP=np ?< DT=det")
        assert pattern.capture_names == frozenset({"np", "det"})

    def test_backreference_to_earlier_name(self) -> None:
        pattern = compile_pattern("NP=a : NP=b !== =a")
        assert pattern.capture_names == frozenset({"a", "b"})
        assert len(pattern.segments) == 2

    def test_label_backreference(self) -> None:
        pattern = compile_pattern("NP < (NN=x $ ~x)")
        assert pattern.head.constraint.child.constraint.child.description.kind is DescriptionKind.LABEL_REF

    def test_backreference_to_unknown_name(self) -> None:
        with pytest.raises(PatternSyntaxError, match="unknown name 'x'"):
            compile_pattern("NP < =x")

    def test_name_bound_inside_negation_stays_inside(self) -> None:
        with pytest.raises(PatternSyntaxError):
            compile_pattern("NP !< DT=d < =d")

    def test_name_from_one_branch_is_unknown_in_the_next(self) -> None:
        with pytest.raises(PatternSyntaxError, match="unknown name 'x'"):
            compile_pattern("A [< B=x | < =x]")

    def test_name_from_a_branch_is_visible_after_the_disjunction(self) -> None:
        pattern = compile_pattern("NP [< DT=d | < PRP=d] < =d")
        assert pattern.capture_names == frozenset({"d"})


class TestSyntaxErrors:
    """Malformed patterns."""

    def test_missing_child(self) -> None:
        with pytest.raises(PatternSyntaxError) as info:
            compile_pattern("NP <")
        assert "end of input" in str(info.value)

    def test_doubled_relation(self) -> None:
        with pytest.raises(PatternSyntaxError) as info:
            compile_pattern("NP < < VP")
        assert info.value.position == 5

    def test_unbalanced_parenthesis(self) -> None:
        with pytest.raises(PatternSyntaxError):
            compile_pattern("NP < (VP < VB")

    def test_invalid_regex(self) -> None:
        with pytest.raises(PatternSyntaxError, match="Invalid regex"):
            compile_pattern("/(/")

    def test_missing_regex_group(self) -> None:
        with pytest.raises(PatternSyntaxError, match="no group 2"):
            compile_pattern("/^(NP)$/#2%x")

    def test_zero_child_position(self) -> None:
        with pytest.raises(PatternSyntaxError, match="start at 1"):
            compile_pattern("S <0 NP")

    def test_unknown_predicate(self) -> None:
        with pytest.raises(PatternSyntaxError, match="Unknown predicate"):
            compile_pattern("NP{shiny}")

    def test_negated_optional(self) -> None:
        with pytest.raises(PatternSyntaxError, match="both negated and optional"):
            compile_pattern("NP !?< DT")

    def test_empty_pattern(self) -> None:
        with pytest.raises(PatternSyntaxError):
            compile_pattern("")
