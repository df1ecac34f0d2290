"""
Core primitives: arena trees, traversal helpers, labels and text notation.
"""

from treesurgeon.core.nodes import Node, Tree
from treesurgeon.core.tree import (
    get_root,
    left_sibling,
    right_sibling,
    ancestors,
    walk_tree,
    following,
    preceding,
    left_edge,
    right_edge,
    index_by_label,
)
from treesurgeon.core.labels import (
    DEFAULT_ANNOTATION_CHARS,
    LabelParts,
    basic_category,
    coindex,
    with_coindex,
    max_coindex,
    split_label,
)
from treesurgeon.core.penn import read_tree, read_trees, to_string, pretty

__all__ = [
    # nodes
    "Node",
    "Tree",
    # tree
    "get_root",
    "left_sibling",
    "right_sibling",
    "ancestors",
    "walk_tree",
    "following",
    "preceding",
    "left_edge",
    "right_edge",
    "index_by_label",
    # labels
    "DEFAULT_ANNOTATION_CHARS",
    "LabelParts",
    "basic_category",
    "coindex",
    "with_coindex",
    "max_coindex",
    "split_label",
    # text notation
    "read_tree",
    "read_trees",
    "to_string",
    "pretty",
]
