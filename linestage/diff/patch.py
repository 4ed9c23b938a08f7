"""Patch synthesis for the linestage diff module.

Contains:
- build_patch: Build a patch staging only the selected lines of a file
- invert_patch: Build a patch that, applied in reverse, removes the selected lines
- format_hunk_header: Render an @@ header from its four counts

Both builders work purely from the parsed FileDiff. Every hunk they emit has
counts recomputed from the lines it actually contains, so the result is
self-consistent whatever the selection.
"""

from typing import Iterable

from linestage.diff.exceptions import EmptyPatch
from linestage.diff.models import NO_NEWLINE_MARKER, DiffLine, FileDiff, Hunk, LineKind
from linestage.diff.paths import quote_path


def format_hunk_header(
    old_start: int, old_len: int, new_start: int, new_len: int, section: str = ""
) -> str:
    """Render a hunk header the way git does (a count of 1 is omitted)."""

    def _range(start: int, length: int) -> str:
        return str(start) if length == 1 else f"{start},{length}"

    header = f"@@ -{_range(old_start, old_len)} +{_range(new_start, new_len)} @@"
    if section:
        header += f" {section}"
    return header


def build_patch(file_diff: FileDiff, selected: Iterable[tuple[int, int]]) -> str:
    """Build a patch for a single file containing only the selected changes.

    Unselected deletions are kept as context and unselected additions are
    dropped, so the patch applies to the old side (the index for a working
    tree diff).

    Args:
        file_diff: The parsed file diff
        selected: (hunk index, line index) pairs to include

    Returns:
        Patch content as string

    Raises:
        EmptyPatch: If no addition/deletion of the file is selected.
    """
    return _synthesize(file_diff, selected, reverse=False)


def invert_patch(file_diff: FileDiff, selected: Iterable[tuple[int, int]]) -> str:
    """Build a patch for a single file meant to be applied with ``--reverse``.

    Roles are swapped relative to build_patch: unselected additions are kept
    as context and unselected deletions are dropped, so the patch anchors on
    the new side (the index for a staged diff, the working tree for a working
    tree diff).

    Raises:
        EmptyPatch: If no addition/deletion of the file is selected.
    """
    return _synthesize(file_diff, selected, reverse=True)


def _synthesize(
    file_diff: FileDiff, selected: Iterable[tuple[int, int]], reverse: bool
) -> str:
    chosen = set(selected)
    body: list[str] = []
    complete = True
    # Running difference between the new and old side of emitted hunks
    offset = 0

    for hunk_idx, hunk in enumerate(file_diff.hunks):
        changes = hunk.changes()
        picked = {i for i in changes if (hunk_idx, i) in chosen}
        if not picked:
            complete = complete and not changes
            continue
        if len(picked) != len(changes):
            complete = False

        lines = _place_eof_markers(_select_lines(hunk, picked, reverse))
        old_len = sum(1 for line in lines if line.kind is not LineKind.ADDITION)
        new_len = sum(1 for line in lines if line.kind is not LineKind.DELETION)

        # Positions are 1-based first lines; an empty side points one line earlier
        if reverse:
            new_pos = hunk.new_start if hunk.new_len else hunk.new_start + 1
            old_pos = new_pos - offset
        else:
            old_pos = hunk.old_start if hunk.old_len else hunk.old_start + 1
            new_pos = old_pos + offset
        offset += new_len - old_len

        body.append(
            format_hunk_header(
                old_pos if old_len else old_pos - 1,
                old_len,
                new_pos if new_len else new_pos - 1,
                new_len,
                hunk.section,
            )
        )
        for line in lines:
            body.append(line.raw())
            if line.no_newline:
                body.append(NO_NEWLINE_MARKER)

    if not body:
        raise EmptyPatch(f"No changes selected in {file_diff.path}")

    # git apply requires the patch to end with a newline
    return "\n".join(_file_header(file_diff, complete, reverse) + body) + "\n"


def _select_lines(hunk: Hunk, picked: set[int], reverse: bool) -> list[DiffLine]:
    """Rebuild the lines of a hunk keeping only the picked changes."""
    # Forward: the old side must stay intact, so unselected deletions turn
    # into context. Reverse: the same holds for additions on the new side.
    as_context = LineKind.ADDITION if reverse else LineKind.DELETION

    lines: list[DiffLine] = []
    for i, line in enumerate(hunk.lines):
        if line.kind is LineKind.CONTEXT or i in picked:
            lines.append(line)
        elif line.kind is as_context:
            lines.append(
                DiffLine(kind=LineKind.CONTEXT, text=line.text, no_newline=line.no_newline)
            )
    return lines


def _place_eof_markers(lines: list[DiffLine]) -> list[DiffLine]:
    """Keep "No newline at end of file" only on the last line of each side.

    A line turned into context can end one side while the other side goes on
    after it. It is then written as a deletion without its newline followed by
    an addition with one. A change line that is no longer last on its side
    gets its newline back.
    """
    last_old = max((i for i, line in enumerate(lines) if line.kind is not LineKind.ADDITION), default=-1)
    last_new = max((i for i, line in enumerate(lines) if line.kind is not LineKind.DELETION), default=-1)

    placed: list[DiffLine] = []
    for i, line in enumerate(lines):
        ends_old = i == last_old
        ends_new = i == last_new
        if not line.no_newline:
            placed.append(line)
        elif line.kind is LineKind.CONTEXT and ends_old != ends_new:
            placed.append(DiffLine(kind=LineKind.DELETION, text=line.text, no_newline=ends_old))
            placed.append(DiffLine(kind=LineKind.ADDITION, text=line.text, no_newline=ends_new))
        elif (
            (line.kind is LineKind.CONTEXT and not ends_old)
            or (line.kind is LineKind.DELETION and not ends_old)
            or (line.kind is LineKind.ADDITION and not ends_new)
        ):
            placed.append(DiffLine(kind=line.kind, text=line.text))
        else:
            placed.append(line)
    return placed


# Header lines that describe the whole-file change; a partial patch drops them
_WHOLE_FILE_HEADERS = (
    "index ",
    "similarity index ",
    "dissimilarity index ",
    "rename from ",
    "rename to ",
    "copy from ",
    "copy to ",
    "new file mode ",
    "deleted file mode ",
)


def _file_header(file_diff: FileDiff, complete: bool, reverse: bool) -> list[str]:
    """Header lines for the patch of a file.

    A partial patch leaves the file where it is, so it is written as a plain
    modification of the one path it is anchored on: the new path for a
    reverse patch, the old path otherwise. Created, deleted and renamed files
    lose their whole-file header lines. An untracked file is the exception
    when staging: the index has nothing to modify, so it is still created.
    """
    if complete:
        return list(file_diff.diff_header_lines)

    path = file_diff.new_path if reverse else file_diff.old_path
    creates = file_diff.is_untracked and not reverse

    header = [f"diff --git {quote_path('a/' + path)} {quote_path('b/' + path)}"]
    for line in file_diff.diff_header_lines[1:]:
        if line.startswith(_WHOLE_FILE_HEADERS):
            if creates and line.startswith("new file mode "):
                header.append(line)
            continue
        if line.startswith("--- "):
            line = "--- /dev/null" if creates else f"--- {quote_path('a/' + path)}"
        elif line.startswith("+++ "):
            line = f"+++ {quote_path('b/' + path)}"
        header.append(line)
    return header
