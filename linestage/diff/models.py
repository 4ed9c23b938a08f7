"""Data models for the linestage diff module.

Contains:
- LineKind: Marker of a single diff line (context, addition, deletion)
- FileStatus: Change status shown next to each file
- DiffLine: One line inside a hunk
- Hunk: A contiguous changed region with its header counts
- FileDiff: Diff for a single file containing multiple hunks
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional


class LineKind(str, Enum):
    """Leading marker of a line inside a hunk."""

    CONTEXT = " "
    ADDITION = "+"
    DELETION = "-"


class FileStatus(str, Enum):
    """Single-letter change status of a file."""

    MODIFIED = "M"
    ADDED = "A"
    DELETED = "D"
    RENAMED = "R"
    TYPECHANGE = "T"
    UNTRACKED = "?"


NO_NEWLINE_MARKER = "\\ No newline at end of file"


@dataclass
class DiffLine:
    """One line of a hunk.

    ``staged`` is the only mutable part and is owned by the selection state.
    """

    kind: LineKind
    text: str
    staged: bool = False
    no_newline: bool = False  # followed by "\ No newline at end of file"

    @property
    def is_change(self) -> bool:
        return self.kind is not LineKind.CONTEXT

    def raw(self) -> str:
        """Return the line as it appears in a unified diff."""
        return f"{self.kind.value}{self.text}"


@dataclass
class Hunk:
    """A single @@ hunk of a file diff."""

    header: str  # The @@ ... @@ line
    old_start: int
    old_len: int
    new_start: int
    new_len: int
    lines: list[DiffLine] = field(default_factory=list)
    section: str = ""  # Text after the closing @@ (function context)

    def changes(self) -> list[int]:
        """Indexes of the addition/deletion lines in this hunk."""
        return [i for i, line in enumerate(self.lines) if line.is_change]

    def count(self, kind: LineKind) -> int:
        return sum(1 for line in self.lines if line.kind is kind)


@dataclass
class FileDiff:
    """Diff for a single file containing multiple hunks."""

    old_path: str
    new_path: str
    diff_header_lines: list[str]  # From 'diff --git' up to first @@
    hunks: list[Hunk] = field(default_factory=list)
    is_binary: bool = False
    is_new_file: bool = False
    is_deleted_file: bool = False
    old_mode: Optional[str] = None  # Only set on a mode change
    new_mode: Optional[str] = None
    is_untracked: bool = False  # not in the index yet; shown as a new file

    @property
    def path(self) -> str:
        """Path used to identify the file across refreshes."""
        return self.old_path if self.is_deleted_file else self.new_path

    @property
    def is_renamed(self) -> bool:
        return self.old_path != self.new_path

    @property
    def has_mode_change(self) -> bool:
        return self.old_mode is not None and self.new_mode is not None

    @property
    def status(self) -> FileStatus:
        if self.is_untracked:
            return FileStatus.UNTRACKED
        if self.is_new_file:
            return FileStatus.ADDED
        if self.is_deleted_file:
            return FileStatus.DELETED
        if self.is_renamed:
            return FileStatus.RENAMED
        if self.has_mode_change and not self.hunks:
            return FileStatus.TYPECHANGE
        return FileStatus.MODIFIED

    def display_name(self) -> str:
        """Status letter and path, with both sides for renames."""
        if self.is_renamed:
            name = f"{self.status.value} {self.old_path} -> {self.new_path}"
        else:
            name = f"{self.status.value} {self.path}"
        if self.is_binary:
            name += " (binary)"
        elif self.has_mode_change:
            name += f" ({self.old_mode} -> {self.new_mode})"
        return name

    def change_count(self) -> int:
        return sum(len(hunk.changes()) for hunk in self.hunks)
