"""
Treebank file storage.

Handles locating treebank files on disk, reading the trees they hold and
writing rewritten trees back out.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator

from treesurgeon.core.nodes import Tree
from treesurgeon.core.penn import pretty, read_trees, to_string

logger = logging.getLogger(__name__)


@dataclass
class TreebankFile:
    """A single treebank file."""
    path: Path
    trees: list[Tree] | None = None  # Parsed trees (lazy loaded)

    def load_trees(self) -> list[Tree]:
        """Read the trees from disk if not already read."""
        if self.trees is None:
            self.trees = list(read_trees(self.path.read_text(encoding="utf-8")))
        return self.trees

    def __len__(self) -> int:
        return len(self.load_trees())


def format_trees(trees: Iterable[Tree], pretty_print: bool = False) -> str:
    """Bracketed text for trees, one per line (or block), ending in a newline."""
    render = pretty if pretty_print else to_string
    parts = [render(tree.root) for tree in trees if not tree.is_empty]
    return "".join(f"{part}\n" for part in parts)


@dataclass
class Treebank:
    """
    A set of treebank files.

    Files are given explicitly or found under directories by extension.
    Trees are read lazily, one file at a time.
    """

    files: list[TreebankFile] = field(default_factory=list)

    @classmethod
    def load(cls, paths: Iterable[Path | str], extension: str = ".mrg") -> Treebank:
        """
        Collect treebank files.

        Args:
            paths: Files, or directories to search recursively
            extension: File extension to look for inside directories

        Returns:
            Populated Treebank, files in sorted order per directory
        """
        bank = cls()
        for path in map(Path, paths):
            if path.is_dir():
                found = sorted(p for p in path.rglob(f"*{extension}") if p.is_file())
                if not found:
                    logger.warning(f"No *{extension} files under {path}")
                bank.files.extend(TreebankFile(path=p) for p in found)
            elif path.exists():
                bank.files.append(TreebankFile(path=path))
            else:
                logger.warning(f"Treebank path does not exist: {path}")

        logger.info(f"Found {len(bank.files)} treebank file(s)")
        return bank

    def __len__(self) -> int:
        return len(self.files)

    def __iter__(self) -> Iterator[TreebankFile]:
        return iter(self.files)

    def trees(self) -> Iterator[tuple[Path, int, Tree]]:
        """Yield (path, index in file, tree) for every tree in every file."""
        for treebank_file in self.files:
            for index, tree in enumerate(treebank_file.load_trees()):
                yield treebank_file.path, index, tree
            # Trees are only needed once
            treebank_file.trees = None

    def stats(self) -> dict:
        """Return statistics about the treebank."""
        total_size = sum(f.path.stat().st_size for f in self.files if f.path.exists())
        return {
            "files": len(self.files),
            "total_size_bytes": total_size,
        }


def write_trees(path: Path | str, trees: Iterable[Tree], pretty_print: bool = False) -> Path:
    """Write trees to path, creating parent directories as needed."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(format_trees(trees, pretty_print), encoding="utf-8")
    logger.debug(f"Wrote {path}")
    return path
