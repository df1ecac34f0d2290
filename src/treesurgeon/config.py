"""
Run configuration.

Everything a corpus run needs besides the input files: how labels are
compared, how hard to try before giving up on a rule, how to print
trees, and (optionally) the rules themselves.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from treesurgeon.core.labels import DEFAULT_ANNOTATION_CHARS
from treesurgeon.engine.rewriter import RewriteConfig
from treesurgeon.errors import ConfigError
from treesurgeon.surgery.rules import Rule, compile_rule, load_rules

logger = logging.getLogger(__name__)


@dataclass
class RuleSource:
    """Uncompiled rule text, as written in a config or rule file."""
    pattern: str
    surgery: str
    name: str = ""


@dataclass
class SurgeonConfig:
    """Configuration for a treesurgeon run."""

    # Matching
    annotation_chars: str = DEFAULT_ANNOTATION_CHARS

    # Rewriting
    max_applications: int = 1000

    # Output
    pretty: bool = False

    # Corpus
    extension: str = ".mrg"

    # Rules given inline, then rule files
    rules: list[RuleSource] = field(default_factory=list)
    rule_files: list[Path] = field(default_factory=list)

    def rewrite_config(self) -> RewriteConfig:
        return RewriteConfig(max_applications=self.max_applications)

    def compile_rules(self) -> list[Rule]:
        """Compile inline rules, then every rule file, in that order."""
        compiled = [
            compile_rule(source.pattern, source.surgery, name=source.name,
                         annotation_chars=self.annotation_chars)
            for source in self.rules
        ]
        for path in self.rule_files:
            compiled.extend(load_rules(path, annotation_chars=self.annotation_chars))
        return compiled

    @classmethod
    def from_config_file(cls, config_path: Path | str) -> SurgeonConfig:
        """
        Load configuration from a TOML file.

        Expected format:
```toml
        [matching]
        annotation_chars = "-=|#^~_"

        [rewrite]
        max_applications = 1000
        rule_files = ["np.rules"]

        [output]
        pretty = false

        [corpus]
        extension = ".mrg"

        [[rules]]
        name = "drop determiners"
        pattern = "NP < DT=det"
        surgery = "delete det"
```
        """
        import tomllib

        config_path = Path(config_path)
        try:
            with open(config_path, "rb") as f:
                data = tomllib.load(f)
        except FileNotFoundError:
            raise ConfigError(f"Config file not found: {config_path}") from None
        except tomllib.TOMLDecodeError as e:
            raise ConfigError(f"Invalid TOML in {config_path}: {e}") from None

        config = cls()

        # Matching
        if "matching" in data:
            config.annotation_chars = data["matching"].get("annotation_chars", config.annotation_chars)

        # Rewriting
        if "rewrite" in data:
            rewrite = data["rewrite"]
            config.max_applications = rewrite.get("max_applications", config.max_applications)
            config.rule_files = [config_path.parent / p for p in rewrite.get("rule_files", [])]

        # Output
        if "output" in data:
            config.pretty = data["output"].get("pretty", config.pretty)

        # Corpus
        if "corpus" in data:
            config.extension = data["corpus"].get("extension", config.extension)

        # Rules
        for number, entry in enumerate(data.get("rules", []), start=1):
            if "pattern" not in entry or "surgery" not in entry:
                raise ConfigError(f"Rule {number} in {config_path} needs both 'pattern' and 'surgery'")
            config.rules.append(RuleSource(
                pattern=entry["pattern"],
                surgery=entry["surgery"],
                name=entry.get("name", f"rule {number}"),
            ))

        if config.max_applications < 1:
            raise ConfigError(f"max_applications must be positive, got {config.max_applications}")

        logger.debug(f"Loaded config from {config_path}: {len(config.rules)} inline rule(s)")
        return config
