"""
Exceptions and diagnostics.

Exceptions are raised for problems found while compiling patterns and
scripts or reading input. Diagnostics are collected on surgery results
(and logged) instead of being raised, since a failed edit on one match
should not abort a whole corpus run.
"""

from __future__ import annotations


class TreeSurgeonError(Exception):
    """Base class for all treesurgeon errors."""


class _PositionedError(TreeSurgeonError):
    """An error that points at an offset in some source text."""

    def __init__(self, message: str, text: str = "", position: int | None = None):
        self.message = message
        self.text = text
        self.position = position
        super().__init__(self._format())

    @property
    def fragment(self) -> str:
        """The offending substring (up to the next whitespace)."""
        if self.position is None or self.position >= len(self.text):
            return ""
        rest = self.text[self.position:]
        return rest.split(None, 1)[0] if rest.strip() else ""

    def _format(self) -> str:
        if self.position is None:
            return self.message
        if self.position >= len(self.text):
            return f"{self.message} at end of input"
        return f"{self.message} at position {self.position}: {self.fragment!r}"


class PatternSyntaxError(_PositionedError):
    """Pattern text could not be compiled."""


class SurgerySyntaxError(_PositionedError):
    """Surgery text could not be compiled."""


class TreeSyntaxError(_PositionedError):
    """Bracketed tree text is malformed."""


class UnresolvedNodeError(TreeSurgeonError):
    """A surgery script references a name the pattern never captures."""

    def __init__(self, name: str, available: frozenset[str] | set[str] = frozenset()):
        self.name = name
        self.available = frozenset(available)
        known = ", ".join(sorted(self.available)) or "none"
        super().__init__(f"Unknown node name {name!r} (captured names: {known})")


class StaleMatchError(TreeSurgeonError, RuntimeError):
    """A match enumeration was resumed after its tree changed structure."""


class ConfigError(TreeSurgeonError):
    """A configuration or rule file is invalid."""


class SurgeryWarning(UserWarning):
    """Base class for diagnostics recorded while applying a script."""

    def __init__(self, message: str, operation=None):
        self.message = message
        self.operation = operation
        super().__init__(message)


class UnresolvedNodeWarning(SurgeryWarning):
    """A name resolved to no node at run time; the step was skipped."""

    def __init__(self, name: str, operation=None):
        self.name = name
        super().__init__(f"Name {name!r} is not bound to a node", operation)


class InvalidEditWarning(SurgeryWarning):
    """An edit could not be performed on this tree; the step was skipped."""


class RegexMismatch(SurgeryWarning):
    """A relabel regex did not match; the label was left unchanged."""

    def __init__(self, label: str, pattern: str, operation=None):
        self.label = label
        self.pattern = pattern
        super().__init__(f"Label {label!r} does not match /{pattern}/", operation)
