"""
Matching engine and rewrite driver.
"""

from treesurgeon.engine.matcher import Match, TreeMatcher, match
from treesurgeon.engine.rewriter import Rewriter, RewriteConfig, RewriteResult

__all__ = [
    "Match",
    "TreeMatcher",
    "match",
    "Rewriter",
    "RewriteConfig",
    "RewriteResult",
]
