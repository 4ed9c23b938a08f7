"""Diff model and patch synthesis for linestage.

This package provides:
- models: LineKind, FileStatus, DiffLine, Hunk, FileDiff
- parser: parse_unified_diff
- patch: build_patch, invert_patch, format_hunk_header
- exceptions: MalformedDiff, EmptyPatch
"""

# Models
from linestage.diff.models import (
    DiffLine,
    FileDiff,
    FileStatus,
    Hunk,
    LineKind,
)

# Exceptions
from linestage.diff.exceptions import (
    EmptyPatch,
    MalformedDiff,
)

# Parser
from linestage.diff.parser import (
    parse_unified_diff,
)

# Patch builders
from linestage.diff.patch import (
    build_patch,
    format_hunk_header,
    invert_patch,
)


__all__ = [
    # Models
    "DiffLine",
    "FileDiff",
    "FileStatus",
    "Hunk",
    "LineKind",
    # Exceptions
    "EmptyPatch",
    "MalformedDiff",
    # Parser
    "parse_unified_diff",
    # Patch
    "build_patch",
    "format_hunk_header",
    "invert_patch",
]
