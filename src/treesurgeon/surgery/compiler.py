"""
Surgery compiler.

Parses surgery text into a SurgeryScript. One operation per line (or
separated by ``;``), ``%`` starts a comment:

    relabel inner VP
    insert (CC or) $- inner
    adjoin (VP (ADVP (RB never)) VP@) vp
    relabel np /^(NP)-.*$/ 1

Names are checked against the pattern's captures when a pattern is
given, and against template names declared by earlier operations.
"""

from __future__ import annotations

import logging
import re
from functools import lru_cache

from lark import Lark, Token, Transformer
from lark.exceptions import UnexpectedCharacters, UnexpectedInput, UnexpectedToken, VisitError

from treesurgeon.errors import SurgerySyntaxError, UnresolvedNodeError
from treesurgeon.pattern.expr import Pattern
from treesurgeon.surgery.auxtree import AuxiliaryTree, TemplateNode, parse_template_label
from treesurgeon.surgery.ops import (
    Fetch,
    Hold,
    Operation,
    OperationKind,
    Position,
    PositionKind,
    SurgeryScript,
)

logger = logging.getLogger(__name__)

SURGERY_GRAMMAR = r"""
start: _NL? operation (_NL operation)* _NL?

?operation: relabel
          | delete
          | prune
          | excise
          | move
          | insert
          | replace
          | adjoin
          | create_subtree
          | coindex

relabel: "relabel" NAME new_label
delete: "delete" NAME+
prune: "prune" NAME+
excise: "excise" NAME NAME
move: "move" NAME position
insert: "insert" operand position
replace: "replace" NAME operand
adjoin: "adjoin" auxtree NAME
create_subtree: "createSubtree" (auxtree | LABEL) NAME NAME?
coindex: "coindex" NAME NAME+

new_label: LABEL                -> fixed_label
         | QUOTED_LABEL         -> quoted_label
         | REGEX INT?           -> regex_label

operand: NAME                   -> fetch
       | auxtree                -> hold

position: POSITION NAME

auxtree: "(" AUXLABEL (auxtree | AUXLABEL)* ")"

POSITION: /\$\+|\$-|>-?[0-9]+/
NAME: /[A-Za-z_][A-Za-z0-9_]*/
LABEL: /[^\s()|\/;%][^\s();%]*/
QUOTED_LABEL: /\|[^|\n]*\|/
REGEX: /\/(?:[^\/\\\n]|\\.)+\//
AUXLABEL: /[^\s()%;]+/
INT: /[0-9]+/

_NL: /([ \t\f]*(%[^\n]*)?(\r?\n|;))+/
COMMENT: /%[^\n]*/
%ignore /[ \t\f]+/
%ignore COMMENT
"""


@lru_cache(maxsize=1)
def surgery_parser() -> Lark:
    """Build (once) the LALR parser for surgery text."""
    return Lark(SURGERY_GRAMMAR, start="start", parser="lalr", lexer="contextual")


def compile_script(text: str, pattern: Pattern | None = None) -> SurgeryScript:
    """
    Compile surgery text.

    Args:
        text: Script source
        pattern: The pattern the script will run against; when given,
            every fetched name must be one of its captures or a template
            name declared by an earlier operation

    Returns:
        The compiled SurgeryScript

    Raises:
        SurgerySyntaxError: If the text is malformed
        UnresolvedNodeError: If a name can never be bound
    """
    try:
        tree = surgery_parser().parse(text)
    except UnexpectedInput as e:
        raise _syntax_error(e, text) from None

    try:
        operations = _ScriptBuilder(text).transform(tree)
    except VisitError as e:
        if isinstance(e.orig_exc, SurgerySyntaxError):
            raise e.orig_exc from None
        raise

    script = SurgeryScript(source=text, operations=tuple(operations))
    _check_names(script, pattern)
    logger.debug(f"Compiled surgery script with {len(script)} operation(s)")
    return script


def _syntax_error(e: UnexpectedInput, text: str) -> SurgerySyntaxError:
    if isinstance(e, UnexpectedCharacters):
        return SurgerySyntaxError(f"Unexpected character {text[e.pos_in_stream]!r}", text, e.pos_in_stream)
    if isinstance(e, UnexpectedToken) and e.token.type != "$END":
        position = e.token.start_pos if e.token.start_pos is not None else len(text)
        return SurgerySyntaxError(f"Unexpected {e.token.value.strip() or 'line break'!r}", text, position)
    return SurgerySyntaxError("Unexpected end of script", text, len(text))


def _check_names(script: SurgeryScript, pattern: Pattern | None):
    declared: set[str] = set()
    available = set(pattern.capture_names) if pattern is not None else None
    for operation in script:
        for name in operation.names():
            if name in declared:
                continue
            if available is not None and name not in available:
                raise UnresolvedNodeError(name, available | declared)
        declared.update(operation.declared_names())


class _ScriptBuilder(Transformer):
    """Builds Operation records from the lark parse tree."""

    def __init__(self, text: str):
        super().__init__()
        self.text = text

    def _error(self, message: str, token: Token | None) -> SurgerySyntaxError:
        position = token.start_pos if token is not None else None
        return SurgerySyntaxError(message, self.text, position)

    def _source(self, keyword: str, parts) -> str:
        return " ".join([keyword, *(str(part) for part in parts)])

    def start(self, children):
        return list(children)

    # Operations

    def relabel(self, children):
        name, (new_label, regex, group) = children
        return Operation(
            kind=OperationKind.RELABEL,
            operands=(Fetch(str(name)),),
            new_label=new_label,
            label_regex=regex,
            group=group,
            source=f"relabel {name} {regex.pattern if regex else new_label}",
        )

    def delete(self, children):
        return self._fetching(OperationKind.DELETE, children)

    def prune(self, children):
        return self._fetching(OperationKind.PRUNE, children)

    def excise(self, children):
        return self._fetching(OperationKind.EXCISE, children)

    def coindex(self, children):
        return self._fetching(OperationKind.COINDEX, children)

    def _fetching(self, kind: OperationKind, names) -> Operation:
        return Operation(
            kind=kind,
            operands=tuple(Fetch(str(name)) for name in names),
            source=self._source(kind.value, names),
        )

    def move(self, children):
        name, position = children
        return Operation(
            kind=OperationKind.MOVE,
            operands=(Fetch(str(name)),),
            position=position,
            source=self._source("move", [name, position]),
        )

    def insert(self, children):
        operand, position = children
        return Operation(
            kind=OperationKind.INSERT,
            operands=(operand,),
            position=position,
            source=self._source("insert", [operand, position]),
        )

    def replace(self, children):
        name, operand = children
        return Operation(
            kind=OperationKind.REPLACE,
            operands=(Fetch(str(name)), operand),
            source=self._source("replace", [name, operand]),
        )

    def adjoin(self, children):
        template, name = children
        self._require_foot(template, "adjoin")
        return Operation(
            kind=OperationKind.ADJOIN,
            operands=(Hold(template), Fetch(str(name))),
            source=self._source("adjoin", [template, name]),
        )

    def create_subtree(self, children):
        template, names = children[0], children[1:]
        if isinstance(template, Token):
            template = AuxiliaryTree.from_label(str(template))
        self._require_foot(template, "createSubtree")
        return Operation(
            kind=OperationKind.CREATE_SUBTREE,
            operands=(Hold(template), *(Fetch(str(name)) for name in names)),
            source=self._source("createSubtree", [template, *names]),
        )

    def _require_foot(self, template: AuxiliaryTree, keyword: str):
        if template.foot_count != 1:
            raise SurgerySyntaxError(
                f"{keyword} needs a template with exactly one foot node (marked with @), got {template}",
                self.text,
                None,
            )

    # Labels

    def fixed_label(self, children):
        return str(children[0]), None, 0

    def quoted_label(self, children):
        return children[0][1:-1], None, 0

    def regex_label(self, children):
        token = children[0]
        body = token.value[1:-1]
        try:
            regex = re.compile(body)
        except re.error as e:
            raise self._error(f"Invalid regex /{body}/: {e}", token)
        group = int(children[1]) if len(children) > 1 else (1 if regex.groups else 0)
        if group > regex.groups:
            raise self._error(f"Regex /{body}/ has no group {group}", token)
        return None, regex, group

    # Operands

    def fetch(self, children):
        return Fetch(str(children[0]))

    def hold(self, children):
        return Hold(children[0])

    def position(self, children):
        token, name = children
        symbol = token.value
        if symbol == "$+":
            return Position(PositionKind.LEFT_SISTER, Fetch(str(name)))
        if symbol == "$-":
            return Position(PositionKind.RIGHT_SISTER, Fetch(str(name)))
        index = int(symbol[1:])
        if index == 0:
            raise self._error("Child positions start at 1", token)
        return Position(PositionKind.CHILD, Fetch(str(name)), index)

    def auxtree(self, children):
        head_token = children[0]
        if head_token.startswith("="):
            raise self._error("A template node needs a label", head_token)
        head = parse_template_label(str(head_token))
        kids = []
        for child in children[1:]:
            if isinstance(child, AuxiliaryTree):
                kids.append(child.root)
            elif child.startswith("="):
                kids.append(TemplateNode(placeholder=child[1:]))
            else:
                kids.append(parse_template_label(str(child)))
        root = TemplateNode(
            label=head.label,
            children=tuple(kids),
            name=head.name,
            foot=head.foot,
        )
        return AuxiliaryTree(root=root, source=str(root))
