"""Diff parser for the linestage diff module.

Contains functions for parsing unified diff output:
- parse_unified_diff: Parse unified diff output from git diff
- _parse_file_block: Parse a single file block from the diff
- _parse_hunks: Split the hunk portion of a file block on @@ headers
- _create_hunk: Create a Hunk from its header and body, checking the counts
"""

import re
from typing import Optional

from linestage.diff.exceptions import MalformedDiff
from linestage.diff.models import NO_NEWLINE_MARKER, DiffLine, FileDiff, Hunk, LineKind
from linestage.diff.paths import unquote_path


HUNK_HEADER_RE = re.compile(
    r"^@@ -(?P<old_start>\d+)(?:,(?P<old_len>\d+))?"
    r" \+(?P<new_start>\d+)(?:,(?P<new_len>\d+))? @@ ?(?P<section>.*)$"
)

# Either side may be C-quoted by git; unquoted paths may contain spaces
_QUOTED_PATH = r'"(?:[^"\\]|\\.)*"'
_DIFF_GIT_RE = re.compile(
    rf"^diff --git (?P<old>{_QUOTED_PATH}|a/.*?) (?P<new>{_QUOTED_PATH}|b/.*)$"
)

_LINE_KINDS = {kind.value: kind for kind in LineKind}


def parse_unified_diff(diff_output: str) -> list[FileDiff]:
    """Parse unified diff output from 'git diff'.

    Args:
        diff_output: Raw output from git diff

    Returns:
        List of FileDiff objects in diff order

    Raises:
        MalformedDiff: If a file header is unreadable or a hunk header does not
            match the lines that follow it.
    """
    files: list[FileDiff] = []

    if not diff_output.strip():
        return files

    # Each file starts with 'diff --git a/... b/...'
    file_blocks = re.split(r"(?=^diff --git )", diff_output, flags=re.MULTILINE)

    for block in file_blocks:
        if not block.startswith("diff --git"):
            continue

        lines = block.split("\n")
        if lines and lines[-1] == "":
            lines.pop()
        files.append(_parse_file_block(lines))

    return files


def _strip_prefix(path: str, prefix: str) -> str:
    if path.startswith('"'):
        path = unquote_path(path)
    else:
        # git appends a tab to ---/+++ paths containing spaces
        path = path.split("\t", 1)[0]
    return path[len(prefix):] if path.startswith(prefix) else path


def _parse_file_block(lines: list[str]) -> FileDiff:
    """Parse a single file block from the diff.

    Args:
        lines: Lines of the file block, starting with 'diff --git'

    Returns:
        FileDiff object

    Raises:
        MalformedDiff: If the 'diff --git' line cannot be read.
    """
    match = _DIFF_GIT_RE.match(lines[0])
    if not match:
        raise MalformedDiff(f"unreadable file header {lines[0]!r}")

    file_diff = FileDiff(
        old_path=_strip_prefix(match.group("old"), "a/"),
        new_path=_strip_prefix(match.group("new"), "b/"),
        diff_header_lines=[],
    )

    hunk_start_idx = len(lines)
    for i, line in enumerate(lines):
        if line.startswith("@@"):
            hunk_start_idx = i
            break
        file_diff.diff_header_lines.append(line)

        if line.startswith("new file mode"):
            file_diff.is_new_file = True
        elif line.startswith("deleted file mode"):
            file_diff.is_deleted_file = True
        elif line.startswith("old mode "):
            file_diff.old_mode = line[len("old mode "):]
        elif line.startswith("new mode "):
            file_diff.new_mode = line[len("new mode "):]
        elif line.startswith("rename from "):
            file_diff.old_path = unquote_path(line[len("rename from "):])
        elif line.startswith("rename to "):
            file_diff.new_path = unquote_path(line[len("rename to "):])
        elif line.startswith("--- ") and line != "--- /dev/null":
            file_diff.old_path = _strip_prefix(line[4:], "a/")
        elif line.startswith("+++ ") and line != "+++ /dev/null":
            file_diff.new_path = _strip_prefix(line[4:], "b/")
        elif line.startswith("Binary files ") or line == "GIT binary patch":
            # No line-level staging is offered for binary content
            file_diff.is_binary = True
            return file_diff

    file_diff.hunks = _parse_hunks(lines[hunk_start_idx:], file_diff.path)
    return file_diff


def _parse_hunks(lines: list[str], file_path: str) -> list[Hunk]:
    """Parse hunks from the hunk portion of a file diff.

    Args:
        lines: Lines starting from first @@
        file_path: Path to the file, used in error messages

    Returns:
        List of Hunk objects
    """
    hunks: list[Hunk] = []
    current_header: Optional[str] = None
    current_body: list[str] = []

    for line in lines:
        if line.startswith("@@"):
            if current_header is not None:
                hunks.append(_create_hunk(file_path, current_header, current_body))
            current_header = line
            current_body = []
        elif current_header is not None:
            current_body.append(line)

    if current_header is not None:
        hunks.append(_create_hunk(file_path, current_header, current_body))

    return hunks


def _create_hunk(file_path: str, header: str, body: list[str]) -> Hunk:
    """Create a Hunk from parsed hunk data.

    Args:
        file_path: Path to the file
        header: The @@ header line
        body: Lines following the header up to the next header or end of file

    Returns:
        Hunk object

    Raises:
        MalformedDiff: If the header is unreadable or its counts do not match the body.
    """
    match = HUNK_HEADER_RE.match(header)
    if not match:
        raise MalformedDiff(f"{file_path}: invalid hunk header {header!r}")

    old_len = int(match.group("old_len")) if match.group("old_len") is not None else 1
    new_len = int(match.group("new_len")) if match.group("new_len") is not None else 1
    hunk = Hunk(
        header=header,
        old_start=int(match.group("old_start")),
        old_len=old_len,
        new_start=int(match.group("new_start")),
        new_len=new_len,
        section=match.group("section"),
    )

    old_seen = 0
    new_seen = 0
    for raw in body:
        if raw.startswith("\\"):
            if not hunk.lines:
                raise MalformedDiff(f"{file_path}: {NO_NEWLINE_MARKER!r} outside a hunk line")
            hunk.lines[-1].no_newline = True
            continue

        complete = old_seen >= old_len and new_seen >= new_len
        if raw == "":
            # Editors and mail clients strip the lone space of empty context lines
            if complete:
                continue
            raw = " "
        elif complete:
            raise MalformedDiff(
                f"{file_path}: hunk {header!r} has more lines than its header declares"
            )

        kind = _LINE_KINDS.get(raw[0])
        if kind is None:
            raise MalformedDiff(f"{file_path}: unexpected line in hunk {header!r}: {raw!r}")
        if kind is not LineKind.ADDITION:
            old_seen += 1
        if kind is not LineKind.DELETION:
            new_seen += 1
        hunk.lines.append(DiffLine(kind=kind, text=raw[1:]))

    if old_seen != old_len or new_seen != new_len:
        raise MalformedDiff(
            f"{file_path}: hunk {header!r} declares {old_len} old / {new_len} new lines "
            f"but contains {old_seen} old / {new_seen} new"
        )

    return hunk
