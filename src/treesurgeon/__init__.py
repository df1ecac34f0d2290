"""
Treesurgeon: tree patterns and tree surgery for syntax trees.

    >>> from treesurgeon import compile_pattern, compile_script, match, apply, read_tree
    >>> tree = read_tree("(S (NP (NNP John)) (VP (VBD slept)))")
    >>> pattern = compile_pattern("NP=np < NNP")
    >>> script = compile_script("relabel np SUBJ", pattern)
    >>> for found in match(pattern, tree):
    ...     apply(script, found)
"""

from treesurgeon.errors import (
    TreeSurgeonError,
    PatternSyntaxError,
    SurgerySyntaxError,
    TreeSyntaxError,
    UnresolvedNodeError,
    StaleMatchError,
    ConfigError,
    SurgeryWarning,
    UnresolvedNodeWarning,
    InvalidEditWarning,
    RegexMismatch,
)
from treesurgeon.core import Node, Tree, read_tree, read_trees, to_string, pretty
from treesurgeon.pattern import Pattern, compile_pattern
from treesurgeon.engine import Match, TreeMatcher, match, Rewriter, RewriteConfig, RewriteResult
from treesurgeon.surgery import (
    SurgeryScript,
    SurgeryResult,
    Rule,
    compile_script,
    compile_rule,
    load_rules,
    execute,
    apply,
)

__version__ = "0.1.0"

__all__ = [
    # errors
    "TreeSurgeonError",
    "PatternSyntaxError",
    "SurgerySyntaxError",
    "TreeSyntaxError",
    "UnresolvedNodeError",
    "StaleMatchError",
    "ConfigError",
    "SurgeryWarning",
    "UnresolvedNodeWarning",
    "InvalidEditWarning",
    "RegexMismatch",
    # trees
    "Node",
    "Tree",
    "read_tree",
    "read_trees",
    "to_string",
    "pretty",
    # patterns
    "Pattern",
    "compile_pattern",
    "Match",
    "TreeMatcher",
    "match",
    # surgery
    "SurgeryScript",
    "SurgeryResult",
    "Rule",
    "compile_script",
    "compile_rule",
    "load_rules",
    "execute",
    "apply",
    # rewriting
    "Rewriter",
    "RewriteConfig",
    "RewriteResult",
]
