"""
Bracketed (Penn Treebank) text notation.

    (ROOT (S (NP (NNP John)) (VP (VBD slept))))

Leaves are bare tokens. A bracket with no label, as in the ``( (S ...))``
wrapper of the Wall Street Journal files, becomes a node with an empty
label and is written back the same way.
"""

from __future__ import annotations

import re
from typing import Iterator

from treesurgeon.core.nodes import Node, Tree
from treesurgeon.errors import TreeSyntaxError

_TOKEN = re.compile(r"\(|\)|[^\s()]+")


def read_trees(text: str) -> Iterator[Tree]:
    """Yield every tree in text, in order."""
    tokens = [(m.group(), m.start()) for m in _TOKEN.finditer(text)]
    position = 0
    while position < len(tokens):
        token, offset = tokens[position]
        if token == ")":
            raise TreeSyntaxError("Unbalanced ')'", text, offset)
        if token != "(":
            yield Tree(token)
            position += 1
            continue
        tree, position = _read_bracketed(tokens, position, text)
        yield tree


def read_tree(text: str) -> Tree:
    """Read exactly one tree from text."""
    trees = list(read_trees(text))
    if len(trees) != 1:
        raise TreeSyntaxError(f"Expected exactly one tree, found {len(trees)}", text)
    return trees[0]


def _read_bracketed(tokens: list[tuple[str, int]], position: int, text: str) -> tuple[Tree, int]:
    tree = Tree()
    stack: list[tuple[Node, list[Node], int]] = []

    while position < len(tokens):
        token, offset = tokens[position]
        if token == "(":
            label = ""
            if position + 1 < len(tokens) and tokens[position + 1][0] not in ("(", ")"):
                label = tokens[position + 1][0]
                position += 1
            stack.append((tree.new_node(label), [], offset))
        elif token == ")":
            node, kids, start = stack.pop()
            if not kids:
                raise TreeSyntaxError("Bracket with no children", text, start)
            node.replace_children(kids)
            if not stack:
                tree.set_root(node)
                return tree, position + 1
            stack[-1][1].append(node)
        else:
            stack[-1][1].append(tree.new_node(token))
        position += 1

    raise TreeSyntaxError("Unbalanced '('", text, len(text))


def to_string(node: Node | None) -> str:
    """One-line bracketed form of the subtree under node."""
    if node is None:
        return ""
    parts: list[str] = []
    # Entries are (node, text before it); a None node closes a bracket.
    stack: list[tuple[Node | None, str]] = [(node, "")]
    while stack:
        current, before = stack.pop()
        if current is None:
            parts.append(")")
        elif current.is_leaf():
            parts.append(before + current.label)
        else:
            parts.append(f"{before}({current.label}")
            stack.append((None, ""))
            stack.extend((child, " ") for child in reversed(current.children()))
    return "".join(parts)


def pretty(node: Node | None, indent: str = "  ") -> str:
    """
    Multi-line bracketed form, one phrase per line.

    Nodes whose children are all leaves or preterminals stay on one line.
    """
    if node is None:
        return ""
    return _pretty(node, 0, indent)


def _pretty(node: Node, depth: int, indent: str) -> str:
    parts: list[str] = []
    stack: list[tuple[Node | None, int]] = [(node, depth)]
    while stack:
        current, level = stack.pop()
        if current is None:
            parts.append(")")
            continue
        pad = "\n" + indent * level if level > depth else ""
        kids = current.children()
        if all(kid.is_leaf() or kid.is_preterminal() for kid in kids):
            parts.append(pad + to_string(current))
            continue
        parts.append(f"{pad}({current.label}")
        stack.append((None, level))
        stack.extend((kid, level + 1) for kid in reversed(kids))
    return "".join(parts)
