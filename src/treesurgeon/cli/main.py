"""
Main CLI entry point.
"""

import click
import logging

__version__ = "0.1.0"


def _setup_logging(verbose: bool):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(message)s",
    )


@click.group()
@click.version_option(version=__version__)
def main():
    """Treesurgeon: search and rewrite syntax trees with tree patterns."""
    pass


@main.command()
@click.argument("pattern")
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--name", "-n", "names", multiple=True, help="Print the node bound to NAME instead of the match root")
@click.option("--count", is_flag=True, help="Only print the number of matches")
@click.option("--filename", is_flag=True, help="Prefix each match with file and tree index")
@click.option("--unique", "-u", is_flag=True, help="At most one match per matching node")
@click.option("--extension", "-e", default=".mrg", help="Treebank file extension inside directories")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def search(pattern, paths, names, count, filename, unique, extension, verbose):
    """Print every match of PATTERN in the trees under PATHS."""
    from treesurgeon.core.penn import to_string
    from treesurgeon.corpus.store import Treebank
    from treesurgeon.engine.matcher import match
    from treesurgeon.errors import TreeSurgeonError
    from treesurgeon.pattern.compiler import compile_pattern

    _setup_logging(verbose)
    logger = logging.getLogger(__name__)

    try:
        compiled = compile_pattern(pattern)
    except TreeSurgeonError as e:
        raise click.ClickException(str(e)) from None

    unknown = [n for n in names if n not in compiled.capture_names]
    if unknown:
        raise click.ClickException(f"Pattern does not capture: {', '.join(unknown)}")

    total = 0
    trees = 0
    try:
        for path, index, tree in Treebank.load(paths, extension=extension).trees():
            trees += 1
            for found in match(compiled, tree, one_per_root=unique):
                total += 1
                if count:
                    continue
                prefix = f"{path}:{index}: " if filename else ""
                shown = [found.node(n) for n in names] if names else [found.root()]
                for node in shown:
                    click.echo(f"{prefix}{to_string(node)}")
    except TreeSurgeonError as e:
        raise click.ClickException(str(e)) from None

    if count:
        click.echo(total)
    logger.info(f"{total} match(es) in {trees} tree(s)")


@main.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True))
@click.option("--script", "-s", type=click.Path(exists=True), help="Rule file (pattern / operations blocks)")
@click.option("--config", "-c", type=click.Path(exists=True), help="TOML configuration with [[rules]]")
@click.option("--output", "-o", type=click.Path(), help="Output directory (default: stdout)")
@click.option("--extension", "-e", help="Treebank file extension inside directories")
@click.option("--pretty", is_flag=True, help="Pretty-print output trees")
@click.option("--jobs", "-j", default=1, type=int, help="Number of parallel workers (0 = auto)")
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def apply(paths, script, config, output, extension, pretty, jobs, verbose):
    """Rewrite the trees under PATHS with a rule file or configured rules."""
    import time
    from pathlib import Path
    from multiprocessing import Pool, cpu_count

    from treesurgeon.corpus.store import Treebank
    from treesurgeon.engine.worker import build_rewriter, rewrite_worker
    from treesurgeon.errors import TreeSurgeonError

    _setup_logging(verbose)
    logger = logging.getLogger(__name__)

    if not script and not config:
        raise click.UsageError("Give a rule file (--script) or a configuration (--config)")

    # Compile once up front so bad rules fail before any work starts
    try:
        rewriter, run_config = build_rewriter(script, config)
    except TreeSurgeonError as e:
        raise click.ClickException(str(e)) from None
    logger.info(f"Loaded {len(rewriter.rules)} rule(s)")

    # Auto-detect jobs
    if jobs <= 0:
        jobs = cpu_count()

    # Pair every input file with its output file
    extension = extension or run_config.extension
    worker_args = []
    for root in map(Path, paths):
        for treebank_file in Treebank.load([root], extension=extension):
            target = None
            if output:
                relative = treebank_file.path.relative_to(root) if root.is_dir() else treebank_file.path.name
                target = str(Path(output) / relative)
            worker_args.append((str(treebank_file.path), target, script, config, pretty))

    start_time = time.time()

    try:
        if jobs == 1 or len(worker_args) <= 1:
            results = [rewrite_worker(args) for args in worker_args]
        else:
            logger.info(f"Rewriting {len(worker_args)} files with {jobs} workers...")
            with Pool(processes=jobs) as pool:
                results = pool.map(rewrite_worker, worker_args)
    except TreeSurgeonError as e:
        raise click.ClickException(str(e)) from None

    for text, _, _, _ in results:
        if text:
            click.echo(text, nl=False)

    trees = sum(r[1] for r in results)
    changed = sum(r[2] for r in results)
    applications = sum(r[3] for r in results)
    elapsed = time.time() - start_time
    logger.info(
        f"Rewrote {trees} tree(s) in {len(results)} file(s): {changed} changed, "
        f"{applications} application(s) in {elapsed:.2f}s"
    )


@main.command()
@click.argument("rule_file", type=click.Path(exists=True))
@click.option("-v", "--verbose", is_flag=True, help="Verbose output")
def check(rule_file, verbose):
    """Compile RULE_FILE and report problems without touching any trees."""
    from treesurgeon.errors import TreeSurgeonError
    from treesurgeon.surgery.rules import load_rules

    _setup_logging(verbose)

    try:
        rules = load_rules(rule_file)
    except TreeSurgeonError as e:
        raise click.ClickException(str(e)) from None

    for rule in rules:
        click.echo(f"{rule.label}: {rule.pattern.source} ({len(rule.script)} operation(s))")
    click.echo(f"OK: {len(rules)} rule(s)")


if __name__ == "__main__":
    main()
