"""
Rewrite driver.

Runs pattern/script rules over trees. All operations for one match are
applied before the next match is pulled. When an application changes the
tree's structure, matching restarts from scratch on the edited tree;
after pure relabels the running enumeration simply continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator

from treesurgeon.core.nodes import Node, Tree
from treesurgeon.engine.matcher import match
from treesurgeon.errors import SurgeryWarning
from treesurgeon.surgery.executor import SurgeryExecutor
from treesurgeon.surgery.rules import Rule

logger = logging.getLogger(__name__)


@dataclass
class RewriteConfig:
    """Configuration for the rewriter."""

    # Applications of one rule to one tree before giving up on it
    max_applications: int = 1000

    # Log progress every this many trees
    log_every: int = 100


@dataclass
class RewriteResult:
    """What happened to one tree."""
    tree: Tree
    applications: dict[str, int] = field(default_factory=dict)
    diagnostics: list[SurgeryWarning] = field(default_factory=list)
    exhausted: list[str] = field(default_factory=list)  # rules that hit max_applications

    @property
    def root(self) -> Node | None:
        return self.tree.root

    @property
    def changed(self) -> bool:
        return any(self.applications.values())


class Rewriter:
    """
    Applies a list of rules, in order, to trees.

    Each rule runs to a fixed point on a tree before the next rule starts.
    """

    def __init__(
        self,
        rules: Iterable[Rule],
        config: RewriteConfig | None = None,
        executor: SurgeryExecutor | None = None,
    ):
        """
        Args:
            rules: Rules to apply, in order
            config: Rewriter configuration
            executor: Executor used for every application
        """
        self.rules = list(rules)
        self.config = config or RewriteConfig()
        self.executor = executor or SurgeryExecutor()

        self._stats = {
            "trees": 0,
            "changed": 0,
            "applications": 0,
            "diagnostics": 0,
            "exhausted": 0,
        }

    def rewrite(self, tree: Tree) -> RewriteResult:
        """Apply every rule to tree, in place."""
        result = RewriteResult(tree=tree)
        for rule in self.rules:
            count = self._apply_rule(rule, tree, result)
            result.applications[rule.label] = count

        self._stats["trees"] += 1
        self._stats["changed"] += int(result.changed)
        self._stats["applications"] += sum(result.applications.values())
        self._stats["diagnostics"] += len(result.diagnostics)
        self._stats["exhausted"] += len(result.exhausted)

        if self._stats["trees"] % self.config.log_every == 0:
            logger.info(f"Rewrote {self._stats['trees']} trees ({self._stats['changed']} changed)")
        return result

    def rewrite_all(self, trees: Iterable[Tree]) -> Iterator[RewriteResult]:
        for tree in trees:
            yield self.rewrite(tree)

    def _apply_rule(self, rule: Rule, tree: Tree, result: RewriteResult) -> int:
        applications = 0
        limit = self.config.max_applications

        while not tree.is_empty:
            restarted = False
            for found in match(rule.pattern, tree):
                if applications >= limit:
                    logger.warning(
                        f"Rule {rule.label!r} reached {limit} applications on one tree; stopping it"
                    )
                    result.exhausted.append(rule.label)
                    return applications

                outcome = self.executor.execute(rule.script, found)
                applications += 1
                result.diagnostics.extend(outcome.diagnostics)
                if outcome.structural:
                    restarted = True
                    break
            if not restarted:
                break

        logger.debug(f"Rule {rule.label!r} applied {applications} time(s)")
        return applications

    def stats(self) -> dict[str, int]:
        """Counters accumulated over every tree rewritten so far."""
        return dict(self._stats)
