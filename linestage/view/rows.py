"""Flattening of the diff model into renderable rows.

Rows only hold positions into the model (file, hunk and line index), never
the model objects themselves, so a refreshed model can be re-flattened and
the cursor re-located by path.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Optional

from linestage.diff.models import FileDiff


class RowKind(str, Enum):
    FILE = "file"
    HUNK = "hunk"
    LINE = "line"


@dataclass(frozen=True)
class Row:
    """One renderable row: a file header, a hunk header or a diff line."""

    kind: RowKind
    file_index: int
    hunk_index: int = -1
    line_index: int = -1


# (path, hunk index, line index); headers use -1 for the missing parts
RowRef = tuple[str, int, int]


def row_text(files: list[FileDiff], row: Row) -> str:
    """Plain text of a row, as shown on screen and matched by search."""
    file_diff = files[row.file_index]
    if row.kind is RowKind.FILE:
        return file_diff.display_name()
    hunk = file_diff.hunks[row.hunk_index]
    if row.kind is RowKind.HUNK:
        return hunk.header
    return hunk.lines[row.line_index].raw()


def row_ref(files: list[FileDiff], row: Row) -> RowRef:
    return (files[row.file_index].path, row.hunk_index, row.line_index)


def build_rows(
    files: list[FileDiff], folded: Iterable[str] = (), query: str = ""
) -> list[Row]:
    """Flatten files into rows.

    Args:
        files: The parsed diff
        folded: Paths whose hunks are hidden
        query: Case-insensitive filter; when set only matching rows are kept
            and folding is ignored

    Returns:
        Rows in display order
    """
    folded = set(folded)
    needle = query.lower()
    rows: list[Row] = []

    for file_idx, file_diff in enumerate(files):
        candidates = [Row(RowKind.FILE, file_idx)]
        if needle or file_diff.path not in folded:
            for hunk_idx, hunk in enumerate(file_diff.hunks):
                candidates.append(Row(RowKind.HUNK, file_idx, hunk_idx))
                candidates.extend(
                    Row(RowKind.LINE, file_idx, hunk_idx, line_idx)
                    for line_idx in range(len(hunk.lines))
                )
        if needle:
            candidates = [r for r in candidates if needle in row_text(files, r).lower()]
        rows.extend(candidates)

    return rows


def restore_cursor(
    previous: Optional[RowRef],
    previous_paths: list[str],
    files: list[FileDiff],
    rows: list[Row],
) -> int:
    """Find where the cursor goes after the rows were rebuilt.

    Stays on the same path at the same (hunk, line) position, or the next
    row of that file, or the file's last row. If the path is gone, lands on
    the header of the nearest preceding file that survived. Falls back to 0.
    """
    if not rows or previous is None:
        return 0

    path, hunk_idx, line_idx = previous
    file_rows = [i for i, row in enumerate(rows) if files[row.file_index].path == path]
    if file_rows:
        for i in file_rows:
            if (rows[i].hunk_index, rows[i].line_index) >= (hunk_idx, line_idx):
                return i
        return file_rows[-1]

    if path in previous_paths:
        surviving = {files[row.file_index].path: i for i, row in reversed(list(enumerate(rows)))}
        for earlier in reversed(previous_paths[: previous_paths.index(path)]):
            if earlier in surviving:
                return surviving[earlier]
    return 0
