"""
Auxiliary-tree templates.

A template is a tree fragment parsed once from surgery text:

    (VP (ADVP (RB never)) VP@)
    (NP=new (DT the) =noun)

``LABEL=name`` names a node so later operations can fetch the copy made
for the current application, ``LABEL@`` marks the foot that adjoin and
createSubtree hang existing nodes under, and a bare ``=name`` leaf is a
placeholder for a fresh copy of the node bound to name.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable

from treesurgeon.core.nodes import Node, Tree

_NAMED = re.compile(r"^(?P<label>.*?)=(?P<name>[A-Za-z_][A-Za-z0-9_]*)$")


@dataclass(frozen=True)
class TemplateNode:
    label: str = ""
    children: tuple[TemplateNode, ...] = ()
    name: str | None = None
    foot: bool = False
    placeholder: str | None = None

    def walk(self):
        yield self
        for child in self.children:
            yield from child.walk()

    def __str__(self) -> str:
        if self.placeholder is not None:
            return f"={self.placeholder}"
        head = self.label + (f"={self.name}" if self.name else "") + ("@" if self.foot else "")
        if not self.children:
            return head
        return f"({head} {' '.join(str(child) for child in self.children)})"


def parse_template_label(text: str) -> TemplateNode:
    """
    Split a template token into label, name and foot marker.

    Accepts ``VP``, ``VP@``, ``NP=new``, ``NP=new@`` and ``NP@=new``.
    """
    foot = False
    if text.endswith("@"):
        foot, text = True, text[:-1]
    match = _NAMED.match(text)
    name = None
    if match is not None:
        text, name = match.group("label"), match.group("name")
    if text.endswith("@"):
        foot, text = True, text[:-1]
    return TemplateNode(label=text, name=name, foot=foot)


@dataclass
class Instance:
    """A fresh copy of a template inside some tree."""
    root: Node
    foot: Node | None = None
    names: dict[str, Node] = field(default_factory=dict)
    unresolved: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class AuxiliaryTree:
    """A parsed template; instantiate() makes a new copy every call."""
    root: TemplateNode
    source: str = ""

    @classmethod
    def from_label(cls, label: str) -> AuxiliaryTree:
        """A single-node template whose only node is also its foot."""
        return cls(TemplateNode(label=label, foot=True), source=label)

    def names(self) -> tuple[str, ...]:
        return tuple(n.name for n in self.root.walk() if n.name is not None)

    def placeholders(self) -> tuple[str, ...]:
        return tuple(n.placeholder for n in self.root.walk() if n.placeholder is not None)

    @property
    def foot_count(self) -> int:
        return sum(1 for n in self.root.walk() if n.foot)

    def instantiate(self, tree: Tree, resolve: Callable[[str], Node | None]) -> Instance:
        """
        Build a detached copy of the template in tree.

        Args:
            tree: Arena to build the copy in
            resolve: Looks up the node a placeholder name refers to

        Returns:
            Instance with the new root, its foot, the template names mapped
            to new nodes, and any placeholder names that did not resolve
            (those leaves are left out)
        """
        instance_names: dict[str, Node] = {}
        unresolved: list[str] = []
        foot: list[Node] = []

        def build(template: TemplateNode) -> Node | None:
            if template.placeholder is not None:
                bound = resolve(template.placeholder)
                if bound is None:
                    unresolved.append(template.placeholder)
                    return None
                return bound.copy(into=tree)
            node = tree.new_node(template.label)
            kids = [kid for kid in (build(child) for child in template.children) if kid is not None]
            if kids:
                node.replace_children(kids)
            if template.name is not None:
                instance_names[template.name] = node
            if template.foot:
                foot.append(node)
            return node

        root = build(self.root)
        return Instance(
            root=root,
            foot=foot[0] if foot else None,
            names=instance_names,
            unresolved=unresolved,
        )

    def __str__(self) -> str:
        return self.source or str(self.root)
