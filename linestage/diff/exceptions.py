"""Diff-related exception classes.

Contains:
- MalformedDiff: Raised when diff text cannot be parsed into a consistent model
- EmptyPatch: Raised by the patch builders when a selection produces no patch
"""


class MalformedDiff(ValueError):
    """Raised when a diff is structurally invalid (e.g. hunk counts do not match)."""

    pass


class EmptyPatch(Exception):
    """Signal that a selection contains no changes; nothing has to be applied."""

    pass
