"""
Label helpers.

Labels are plain strings in the Penn Treebank convention: a category,
optional functional tags and an optional numeric co-index, all joined
by annotation characters (``NP-SBJ-1``).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable

# Characters that start an annotation on a Penn Treebank category.
DEFAULT_ANNOTATION_CHARS = "-=|#^~_"

_COINDEX = re.compile(r"^(?P<base>.+?)-(?P<index>[0-9]+)$")


@dataclass(frozen=True)
class LabelParts:
    """A label split into its Penn Treebank pieces."""
    category: str
    functional_tags: tuple[str, ...] = ()
    coindex: int | None = None


def basic_category(label: str, annotation_chars: str = DEFAULT_ANNOTATION_CHARS) -> str:
    """
    Strip annotations from a category (``NP-SBJ-1`` -> ``NP``).

    A label that starts with an annotation character keeps everything up
    to the matching closing character, so ``-NONE-`` and ``-LRB-`` survive
    intact.
    """
    opened = ""
    for position, char in enumerate(label):
        if char not in annotation_chars:
            continue
        if position == 0:
            opened = char
        elif opened and char == opened:
            opened = ""
        else:
            return label[:position]
    return label


def coindex(label: str) -> int | None:
    """The trailing ``-N`` co-index of a label, if any."""
    match = _COINDEX.match(label)
    return int(match.group("index")) if match else None


def with_coindex(label: str, index: int) -> str:
    return f"{label}-{index}"


def max_coindex(labels: Iterable[str]) -> int:
    """Largest co-index among labels (0 when there is none)."""
    return max((coindex(label) or 0 for label in labels), default=0)


def split_label(label: str, annotation_chars: str = DEFAULT_ANNOTATION_CHARS) -> LabelParts:
    """
    Split a label into category, functional tags and co-index.

    Examples:
        NP-SBJ-1 -> LabelParts("NP", ("SBJ",), 1)
        -NONE-   -> LabelParts("-NONE-")
    """
    index = coindex(label)
    rest = _COINDEX.match(label).group("base") if index is not None else label
    category = basic_category(rest, annotation_chars)
    tail = rest[len(category) + 1:]
    tags = tuple(tag for tag in tail.split("-") if tag) if tail else ()
    return LabelParts(category=category, functional_tags=tags, coindex=index)
