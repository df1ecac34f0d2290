"""
Rules and rule files.

A rule pairs a pattern with the surgery script to run at its matches.
Rule files use the classic layout: a pattern block, a blank line, an
operations block, a blank line, the next pattern, and so on. Lines whose
first character is ``%`` are comments.

    % drop determiners under NP
    NP < DT=det

    delete det
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path

from treesurgeon.core.labels import DEFAULT_ANNOTATION_CHARS
from treesurgeon.errors import ConfigError
from treesurgeon.pattern.compiler import compile_pattern
from treesurgeon.pattern.expr import Pattern
from treesurgeon.surgery.compiler import compile_script
from treesurgeon.surgery.ops import SurgeryScript

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Rule:
    """A compiled pattern and the script to apply at each of its matches."""
    pattern: Pattern
    script: SurgeryScript
    name: str = ""

    @property
    def label(self) -> str:
        return self.name or self.pattern.source


def compile_rule(
    pattern: str,
    surgery: str,
    name: str = "",
    annotation_chars: str = DEFAULT_ANNOTATION_CHARS,
) -> Rule:
    """Compile a pattern and a script, checking the script's names against the pattern."""
    compiled = compile_pattern(pattern, annotation_chars=annotation_chars)
    return Rule(pattern=compiled, script=compile_script(surgery, compiled), name=name)


def parse_rules(text: str, annotation_chars: str = DEFAULT_ANNOTATION_CHARS) -> list[Rule]:
    """Compile every rule in rule-file text."""
    blocks: list[list[str]] = []
    current: list[str] = []
    for line in text.splitlines():
        stripped = line.strip()
        if stripped.startswith("%"):
            continue
        if not stripped:
            if current:
                blocks.append(current)
                current = []
            continue
        current.append(stripped)
    if current:
        blocks.append(current)

    if len(blocks) % 2:
        raise ConfigError(f"Pattern without operations: {' '.join(blocks[-1])!r}")

    rules = []
    for number, start in enumerate(range(0, len(blocks), 2), start=1):
        pattern = " ".join(blocks[start])
        surgery = "\n".join(blocks[start + 1])
        rules.append(compile_rule(pattern, surgery, name=f"rule {number}", annotation_chars=annotation_chars))
    return rules


def load_rules(path: Path | str, annotation_chars: str = DEFAULT_ANNOTATION_CHARS) -> list[Rule]:
    """
    Load and compile a rule file.

    Args:
        path: Rule file
        annotation_chars: Passed to the pattern compiler

    Returns:
        The compiled rules, in file order
    """
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"Rule file not found: {path}")
    rules = parse_rules(path.read_text(encoding="utf-8"), annotation_chars=annotation_chars)
    logger.info(f"Loaded {len(rules)} rule(s) from {path}")
    return rules
