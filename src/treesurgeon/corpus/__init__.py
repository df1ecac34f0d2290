"""
Treebank files on disk.
"""

from treesurgeon.corpus.store import Treebank, TreebankFile, format_trees, write_trees

__all__ = [
    "Treebank",
    "TreebankFile",
    "format_trees",
    "write_trees",
]
