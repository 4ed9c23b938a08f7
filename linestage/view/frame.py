"""Renderable frame handed to the terminal.

A Frame is plain data: the terminal maps each Style to colors and writes
the rows into its screen buffer.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from linestage.diff.models import FileStatus, LineKind


class Style(str, Enum):
    TITLE = "title"
    FILE_MODIFIED = "file_modified"
    FILE_ADDED = "file_added"
    FILE_DELETED = "file_deleted"
    FILE_RENAMED = "file_renamed"
    HUNK = "hunk"
    CONTEXT = "context"
    ADDITION = "addition"
    DELETION = "deletion"
    PLACEHOLDER = "placeholder"
    ERROR = "error"
    STATUS = "status"


FILE_STYLES = {
    FileStatus.MODIFIED: Style.FILE_MODIFIED,
    FileStatus.TYPECHANGE: Style.FILE_MODIFIED,
    FileStatus.ADDED: Style.FILE_ADDED,
    FileStatus.UNTRACKED: Style.FILE_ADDED,
    FileStatus.DELETED: Style.FILE_DELETED,
    FileStatus.RENAMED: Style.FILE_RENAMED,
}

LINE_STYLES = {
    LineKind.CONTEXT: Style.CONTEXT,
    LineKind.ADDITION: Style.ADDITION,
    LineKind.DELETION: Style.DELETION,
}


@dataclass
class FrameRow:
    text: str
    style: Style
    cursor: bool = False
    marked: bool = False  # change line currently marked as staged


@dataclass
class Frame:
    """Everything the terminal needs to draw one screen."""

    title: str
    rows: list[FrameRow] = field(default_factory=list)
    status: str = ""
    message: Optional[str] = None
    error: Optional[str] = None
    prompt: Optional[str] = None  # text input line (search, commit message, y/n)

    def bottom_line(self) -> tuple[str, Style]:
        """The single line shown under the rows, most urgent first."""
        if self.prompt is not None:
            return self.prompt, Style.STATUS
        if self.error:
            return self.error, Style.ERROR
        if self.message:
            return self.message, Style.STATUS
        return self.status, Style.STATUS
