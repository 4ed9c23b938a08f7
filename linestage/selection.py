"""Selection state over a parsed diff.

Tracks which addition/deletion lines are marked as staged. Lines are always
addressed by position (file index, hunk index, line index) into the model
currently held; after a refresh the marks are carried over to the new model
by path and line content with rebase().
"""

from collections import Counter
from dataclasses import dataclass
from typing import Iterable, Optional

from linestage.diff.models import DiffLine, FileDiff, LineKind


Position = tuple[int, int, int]


class NotToggleable(Exception):
    """Raised when a toggle targets something without additions or deletions."""

    pass


@dataclass(frozen=True)
class LineKey:
    """Content identity of a change line, stable across refreshes."""

    path: str
    kind: LineKind
    text: str
    occurrence: int  # n-th line with this kind and text in the file


def _line_keys(file_diff: FileDiff) -> list[tuple[LineKey, int, int]]:
    seen: Counter = Counter()
    keys = []
    for hunk_idx, hunk in enumerate(file_diff.hunks):
        for line_idx in hunk.changes():
            line = hunk.lines[line_idx]
            seen[(line.kind, line.text)] += 1
            key = LineKey(file_diff.path, line.kind, line.text, seen[(line.kind, line.text)])
            keys.append((key, hunk_idx, line_idx))
    return keys


class SelectionState:
    """Staged marks for one diff model snapshot."""

    def __init__(self, files: Optional[list[FileDiff]] = None):
        self._files: list[FileDiff] = files if files is not None else []

    @property
    def files(self) -> list[FileDiff]:
        return self._files

    def _change_line(self, file_idx: int, hunk_idx: int, line_idx: int) -> DiffLine:
        line = self._files[file_idx].hunks[hunk_idx].lines[line_idx]
        if not line.is_change:
            raise NotToggleable("Context lines cannot be staged on their own")
        return line

    def _change_lines(self, file_idx: int, hunk_idx: Optional[int] = None) -> list[DiffLine]:
        file_diff = self._files[file_idx]
        hunks = file_diff.hunks if hunk_idx is None else [file_diff.hunks[hunk_idx]]
        lines = [line for hunk in hunks for line in hunk.lines if line.is_change]
        if not lines:
            raise NotToggleable(f"{file_diff.path} has no line changes to stage")
        return lines

    @staticmethod
    def _flip_all(lines: list[DiffLine]) -> bool:
        # Stage everything unless everything is already staged
        value = not all(line.staged for line in lines)
        for line in lines:
            line.staged = value
        return value

    def toggle_line(self, file_idx: int, hunk_idx: int, line_idx: int) -> bool:
        """Flip the staged mark of one change line and return the new value.

        Raises:
            NotToggleable: If the line is a context line.
        """
        line = self._change_line(file_idx, hunk_idx, line_idx)
        line.staged = not line.staged
        return line.staged

    def toggle_hunk(self, file_idx: int, hunk_idx: int) -> bool:
        """Set every change line of a hunk to the opposite of its dominant state."""
        return self._flip_all(self._change_lines(file_idx, hunk_idx))

    def toggle_file(self, file_idx: int) -> bool:
        """Same as toggle_hunk, over all hunks of a file at once."""
        return self._flip_all(self._change_lines(file_idx))

    def current_selection(self, file_idx: int) -> list[tuple[int, int]]:
        """Return the staged (hunk index, line index) pairs of a file, in diff order.

        Positions outside the live model yield an empty selection.
        """
        if not 0 <= file_idx < len(self._files):
            return []
        return [
            (hunk_idx, line_idx)
            for hunk_idx, hunk in enumerate(self._files[file_idx].hunks)
            for line_idx, line in enumerate(hunk.lines)
            if line.is_change and line.staged
        ]

    def staged_count(self, file_idx: int, hunk_idx: Optional[int] = None) -> tuple[int, int]:
        """Return (staged, total) change line counts of a file or hunk."""
        file_diff = self._files[file_idx]
        hunks = file_diff.hunks if hunk_idx is None else [file_diff.hunks[hunk_idx]]
        changes = [line for hunk in hunks for line in hunk.lines if line.is_change]
        return sum(1 for line in changes if line.staged), len(changes)

    def snapshot(self) -> frozenset[Position]:
        """Positions of all staged lines, for restore()."""
        return frozenset(
            (file_idx, hunk_idx, line_idx)
            for file_idx in range(len(self._files))
            for hunk_idx, line_idx in self.current_selection(file_idx)
        )

    def restore(self, snapshot: Iterable[Position]) -> None:
        """Reset the marks to a snapshot, skipping positions no longer in the model."""
        self.clear()
        for file_idx, hunk_idx, line_idx in snapshot:
            try:
                line = self._files[file_idx].hunks[hunk_idx].lines[line_idx]
            except IndexError:
                continue
            if line.is_change:
                line.staged = True

    def clear(self) -> None:
        for file_diff in self._files:
            for hunk in file_diff.hunks:
                for line in hunk.lines:
                    line.staged = False

    def rebase(self, files: list[FileDiff]) -> None:
        """Switch to a freshly parsed model, carrying marks over by path and content."""
        marked = {
            key
            for file_diff in self._files
            for key, hunk_idx, line_idx in _line_keys(file_diff)
            if file_diff.hunks[hunk_idx].lines[line_idx].staged
        }
        self._files = files
        for file_diff in files:
            for key, hunk_idx, line_idx in _line_keys(file_diff):
                file_diff.hunks[hunk_idx].lines[line_idx].staged = key in marked
