"""
Parallel worker for corpus rewriting.
"""

from __future__ import annotations

from pathlib import Path


def build_rewriter(rule_file: str | None, config_path: str | None):
    """Rewriter and run configuration for a rule file and/or a TOML config."""
    from treesurgeon.config import SurgeonConfig
    from treesurgeon.engine.rewriter import Rewriter

    config = SurgeonConfig.from_config_file(config_path) if config_path else SurgeonConfig()
    if rule_file:
        config.rule_files.append(Path(rule_file))
    return Rewriter(config.compile_rules(), config.rewrite_config()), config


def rewrite_worker(args):
    """
    Worker function for parallel rewriting of one treebank file.

    Args is a tuple of all necessary parameters since multiprocessing
    requires a single argument.

    Returns:
        (output text, trees read, trees changed, rule applications)
    """
    (
        input_path,
        output_path,
        rule_file,
        config_path,
        pretty_print,
    ) = args

    # Import here to avoid issues with multiprocessing
    from treesurgeon.corpus.store import TreebankFile, format_trees, write_trees

    # Each worker compiles its own rules
    rewriter, config = build_rewriter(rule_file, config_path)
    pretty_print = pretty_print or config.pretty

    trees = TreebankFile(path=Path(input_path)).load_trees()
    results = list(rewriter.rewrite_all(trees))

    if output_path:
        write_trees(output_path, trees, pretty_print)
        text = ""
    else:
        text = format_trees(trees, pretty_print)

    changed = sum(1 for r in results if r.changed)
    applications = sum(sum(r.applications.values()) for r in results)
    return text, len(trees), changed, applications
