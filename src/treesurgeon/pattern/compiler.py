"""
Pattern compiler.

Turns pattern text into an immutable Pattern: lark parses, a Transformer
builds the expression, and a scope pass checks that every backreference
points at a name captured earlier outside any negation.
"""

from __future__ import annotations

import logging
import re

from lark import Token, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from treesurgeon.core.labels import DEFAULT_ANNOTATION_CHARS
from treesurgeon.errors import PatternSyntaxError
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
    Relation,
    RelationClause,
    RelationKind,
)
from treesurgeon.pattern.grammar import pattern_parser
from treesurgeon.pattern.relations import CHILD_SHORTHANDS, RELATION_TOKENS, UNBROKEN_TOKENS

logger = logging.getLogger(__name__)

WILDCARD = "__"

_ALTERNATIVE = re.compile(r'"((?:[^"\\]|\\.)*)"|([^|"]+)')
_ITH_CHILD = re.compile(r"^([<>])(-?[0-9]+)$")
_PREDICATES = {
    "leaf": Predicate.LEAF,
    "preterminal": Predicate.PRETERMINAL,
    "root": Predicate.ROOT,
}


def compile_pattern(text: str, annotation_chars: str = DEFAULT_ANNOTATION_CHARS) -> Pattern:
    """
    Compile pattern text.

    Args:
        text: Pattern source, e.g. ``NP < (NP=inner $ CC)``
        annotation_chars: Characters that start an annotation, used by
            ``@`` basic-category descriptions

    Returns:
        The compiled Pattern

    Raises:
        PatternSyntaxError: If the text is not a valid pattern
    """
    try:
        tree = pattern_parser().parse(text)
    except UnexpectedInput as e:
        raise _syntax_error(e, text) from None

    try:
        segments = _PatternBuilder(text, annotation_chars).transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, PatternSyntaxError):
            raise e.orig_exc from None
        raise

    captures, variables = _check_scopes(segments, text)
    logger.debug(f"Compiled pattern {text!r} capturing {sorted(captures)}")
    return Pattern(
        source=text,
        segments=segments,
        capture_names=frozenset(captures),
        variable_names=frozenset(variables),
    )


def _syntax_error(e: UnexpectedInput, text: str) -> PatternSyntaxError:
    if isinstance(e, UnexpectedCharacters):
        return PatternSyntaxError(f"Unexpected character {text[e.pos_in_stream]!r}", text, e.pos_in_stream)
    if isinstance(e, UnexpectedToken) and e.token.type != "$END":
        position = e.token.start_pos if e.token.start_pos is not None else len(text)
        return PatternSyntaxError(f"Unexpected {e.token.value!r}", text, position)
    return PatternSyntaxError("Unexpected end of pattern", text, len(text))


class _Capture(str):
    """Marker for a parsed ``=name`` suffix."""


class _Test:
    """A parsed label test, before flags and names are attached."""

    def __init__(self, kind, text, position, alternatives=frozenset(), regex=None, groups=()):
        self.kind = kind
        self.text = text
        self.position = position
        self.alternatives = alternatives
        self.regex = regex
        self.groups = groups


class _PatternBuilder(Transformer):
    """Builds expression objects bottom-up from the lark parse tree."""

    def __init__(self, text: str, annotation_chars: str):
        super().__init__()
        self.text = text
        self.annotation_chars = annotation_chars

    def _error(self, message: str, token: Token | None) -> PatternSyntaxError:
        position = token.start_pos if token is not None else None
        return PatternSyntaxError(message, self.text, position)

    # Nodes

    def pattern(self, children):
        return tuple(children)

    def node(self, children):
        constraint = children[1] if len(children) > 1 else None
        return PatternNode(children[0], constraint)

    def grouped(self, children):
        return children[0]

    def bare_node(self, children):
        return PatternNode(children[0])

    # Descriptions

    def literal(self, children):
        token = children[0]
        alternatives = []
        for quoted, bare in _ALTERNATIVE.findall(token.value):
            if bare:
                alternatives.append(bare)
            else:
                alternatives.append(re.sub(r"\\(.)", r"\1", quoted))
        if WILDCARD in alternatives:
            return _Test(DescriptionKind.WILDCARD, token.value, token.start_pos)
        return _Test(DescriptionKind.LITERAL, token.value, token.start_pos, alternatives=frozenset(alternatives))

    def regex(self, children):
        token, groups = children[0], children[1:]
        body, _, flags = token.value[1:].rpartition("/")
        try:
            compiled = re.compile(body, re.IGNORECASE if "i" in flags else 0)
        except re.error as e:
            raise self._error(f"Invalid regex /{body}/: {e}", token)
        for group, _variable in groups:
            if group > compiled.groups:
                raise self._error(f"Regex /{body}/ has no group {group}", token)
        text = token.value + "".join(f"#{g}%{v}" for g, v in groups)
        return _Test(DescriptionKind.REGEX, text, token.start_pos, regex=compiled, groups=tuple(groups))

    def var_group(self, children):
        return int(children[0]), str(children[1])

    def predicate(self, children):
        token = children[0]
        if token.value not in _PREDICATES:
            raise self._error(f"Unknown predicate {{{token.value}}}", token)
        return _PREDICATES[token.value]

    def capture(self, children):
        return _Capture(children[0])

    def described(self, children):
        negated = basic = False
        predicates = Predicate.NONE
        name = None
        test = None
        for child in children:
            if isinstance(child, Token) and child.type == "NOT":
                negated = True
            elif isinstance(child, Token) and child.type == "BASIC":
                basic = True
            elif isinstance(child, _Test):
                test = child
            elif isinstance(child, Predicate):
                predicates |= child
            elif isinstance(child, _Capture):
                name = str(child)
        prefix = ("!" if negated else "") + ("@" if basic else "")
        return NodeDescription(
            kind=test.kind,
            text=prefix + test.text,
            alternatives=test.alternatives,
            regex=test.regex,
            negated=negated,
            basic_category=basic,
            predicates=predicates,
            name=name,
            variable_groups=test.groups,
            annotation_chars=self.annotation_chars,
            position=test.position,
        )

    def identity_ref(self, children):
        token = children[0]
        predicates = Predicate.NONE
        for child in children[1:]:
            predicates |= child
        return NodeDescription(
            kind=DescriptionKind.IDENTITY_REF,
            text=f"={token.value}",
            ref=token.value,
            predicates=predicates,
            annotation_chars=self.annotation_chars,
            position=token.start_pos,
        )

    def label_ref(self, children):
        token = children[0]
        predicates = Predicate.NONE
        name = None
        for child in children[1:]:
            if isinstance(child, _Capture):
                name = str(child)
            else:
                predicates |= child
        return NodeDescription(
            kind=DescriptionKind.LABEL_REF,
            text=f"~{token.value}",
            ref=token.value,
            predicates=predicates,
            name=name,
            annotation_chars=self.annotation_chars,
            position=token.start_pos,
        )

    def category(self, children):
        negated = len(children) == 2
        token = children[-1]
        test = self.literal([token]) if token.type == "DESC" else self.regex([token])
        return NodeDescription(
            kind=test.kind,
            text=("!" if negated else "") + test.text,
            alternatives=test.alternatives,
            regex=test.regex,
            negated=negated,
            annotation_chars=self.annotation_chars,
            position=test.position,
        )

    # Relations

    def rel_or(self, children):
        return children[0] if len(children) == 1 else Disjunction(tuple(children))

    def rel_and(self, children):
        return children[0] if len(children) == 1 else Conjunction(tuple(children))

    def rel_clause(self, children):
        token = children[-2]
        clause = RelationClause(self._relation(token), children[-1])
        return self._modify(clause, children[:-2])

    def unbroken_clause(self, children):
        token, category, child = children[-3:]
        relation = Relation(UNBROKEN_TOKENS[token.value[:2]], category=category)
        return self._modify(RelationClause(relation, child), children[:-3])

    def rel_group(self, children):
        return self._modify(children[-1], children[:-1])

    def _relation(self, token: Token) -> Relation:
        symbol = token.value
        if symbol in RELATION_TOKENS:
            return Relation(RELATION_TOKENS[symbol])
        if symbol in CHILD_SHORTHANDS:
            kind, index = CHILD_SHORTHANDS[symbol]
            return Relation(kind, index=index)
        match = _ITH_CHILD.match(symbol)
        if match is None:
            raise self._error(f"Unknown relation {symbol!r}", token)
        index = int(match.group(2))
        if index == 0:
            raise self._error("Child positions start at 1", token)
        if match.group(1) == "<":
            return Relation(RelationKind.HAS_ITH_CHILD, index=index)
        return Relation(RelationKind.ITH_CHILD_OF, index=index)

    def _modify(self, constraint: Constraint, modifiers: list[Token]) -> Constraint:
        types = {token.type for token in modifiers}
        if types == {"NOT", "OPTIONAL"}:
            raise self._error("A relation cannot be both negated and optional", modifiers[0])
        if "OPTIONAL" in types:
            return Optional(constraint)
        if "NOT" in types:
            return Negation(constraint)
        return constraint


def _check_scopes(segments: tuple[PatternNode, ...], text: str) -> tuple[set[str], set[str]]:
    """
    Walk the pattern in match order and check backreferences.

    Returns the names that can appear in a match (captures outside any
    negation) and the regex variables likewise.
    """
    bound: set[str] = set()
    captures: set[str] = set()
    variables: set[str] = set()

    def visit_node(pnode: PatternNode, bound: set[str], negated: bool):
        desc = pnode.description
        if desc.ref is not None and desc.ref not in bound:
            raise PatternSyntaxError(f"Backreference to unknown name {desc.ref!r}", text, desc.position)
        if desc.name is not None:
            bound.add(desc.name)
            if not negated:
                captures.add(desc.name)
        if not negated:
            variables.update(variable for _, variable in desc.variable_groups)
        if pnode.constraint is not None:
            visit(pnode.constraint, bound, negated)

    def visit(constraint: Constraint, bound: set[str], negated: bool):
        if isinstance(constraint, RelationClause):
            visit_node(constraint.child, bound, negated)
        elif isinstance(constraint, Conjunction):
            for item in constraint.items:
                visit(item, bound, negated)
        elif isinstance(constraint, Disjunction):
            # Each branch sees only the names bound before the disjunction.
            reachable = set(bound)
            for item in constraint.items:
                branch = set(reachable)
                visit(item, branch, negated)
                bound.update(branch)
        elif isinstance(constraint, Negation):
            # Names bound inside a negation are visible only inside it.
            visit(constraint.inner, set(bound), True)
        elif isinstance(constraint, Optional):
            visit(constraint.inner, bound, negated)

    for segment in segments:
        visit_node(segment, bound, False)
    return captures, variables
