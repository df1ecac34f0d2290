"""
Lark grammar for the pattern language.

Parsed with LALR and the contextual lexer, so a token like ``<`` is only
a relation where a relation may appear, and ``NP|VP`` is one
description wherever a description may appear.
"""

from __future__ import annotations

from functools import lru_cache

from lark import Lark

PATTERN_GRAMMAR = r"""
pattern: node (":" node)*

node: described rel_or?
    | "(" node ")"                                  -> grouped

child: described                                    -> bare_node
     | "(" node ")"                                 -> grouped

described: NOT? BASIC? description predicate* capture?
         | "=" NAME predicate*                      -> identity_ref
         | ("~" | "%") NAME predicate* capture?     -> label_ref

description: DESC                                   -> literal
           | REGEX var_group*                       -> regex

var_group: "#" INT "%" NAME
predicate: "{" NAME "}"
capture: "=" NAME

rel_or: rel_and ("|" rel_and)*
rel_and: rel_item ("&"? rel_item)*

rel_item: NOT? OPTIONAL? RELATION child              -> rel_clause
        | NOT? OPTIONAL? UNBROKEN category ")" child -> unbroken_clause
        | NOT? OPTIONAL? "[" rel_or "]"              -> rel_group

category: NOT? DESC
        | NOT? REGEX

NOT: "!"
BASIC: "@"
OPTIONAL: "?"

RELATION.2: /<<[,`:\-]?|>>[,`:\-]?|<-?[0-9]+|>-?[0-9]+|<[,`:\-]?|>[,`:\-]?|\$\+\+|\$--|\$\.\.|\$,,|\$[+\-.,]?|\.\.|,,|==|\.|,/
UNBROKEN.3: /[<>.,]\+\(/
REGEX: /\/(?:[^\/\\\n]|\\.)+\/i?/
DESC: /(?:[^\s()\[\]{}=<>$.,!@&|:;~%#"\/?`]+|"(?:[^"\\]|\\.)*")(?:\|(?:[^\s()\[\]{}=<>$.,!@&|:;~%#"\/?`]+|"(?:[^"\\]|\\.)*"))*/
NAME: /[A-Za-z_][A-Za-z0-9_]*/
INT: /[0-9]+/

%import common.WS
%ignore WS
"""


@lru_cache(maxsize=1)
def pattern_parser() -> Lark:
    """Build (once) the LALR parser for pattern text."""
    return Lark(PATTERN_GRAMMAR, start="pattern", parser="lalr", lexer="contextual")
