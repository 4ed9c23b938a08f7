"""Top-level staging session.

Contains:
- Pane: Which diff is being browsed (working tree or staged)
- Session: Owns the diff model of one refresh cycle and talks to the gateway
"""

from enum import Enum
from typing import Optional

import structlog

from linestage.diff import (
    FileDiff,
    MalformedDiff,
    build_patch,
    invert_patch,
    parse_unified_diff,
)
from linestage.git import GitGateway, RepositoryState
from linestage.selection import SelectionState


log = structlog.get_logger(__name__)


class Pane(str, Enum):
    WORKING = "working"
    STAGED = "staged"


class Session:
    """The diff being browsed, its selection and the gateway behind it."""

    def __init__(self, gateway: GitGateway, pane: Pane = Pane.WORKING):
        self.gateway = gateway
        self.pane = pane
        self.selection = SelectionState()
        self.parse_error: Optional[str] = None
        self.repo_state: Optional[RepositoryState] = None
        self._untracked: set[str] = set()

    @property
    def files(self) -> list[FileDiff]:
        return self.selection.files

    def read_diff(self) -> str:
        """Raw diff of the current pane; untracked files are appended to the working tree diff."""
        if self.pane is not Pane.WORKING:
            self._untracked = set()
            return self.gateway.get_staged_diff()
        working = self.gateway.get_working_diff()
        untracked = self.gateway.get_untracked_files()
        self._untracked = set(untracked)
        if not untracked:
            return working
        return working + self.gateway.get_untracked_diff(untracked)

    def refresh(self) -> None:
        """Re-read and re-parse the diff of the current pane.

        Raises:
            MalformedDiff: If git's output cannot be parsed; the model is emptied.
            GitError: If the diff cannot be read; the model is left as it was.
        """
        raw = self.read_diff()
        try:
            files = parse_unified_diff(raw)
        except MalformedDiff as e:
            log.error("diff_parse_failed", pane=self.pane.value, error=str(e))
            self.parse_error = str(e)
            self.selection.rebase([])
            raise
        for file_diff in files:
            file_diff.is_untracked = file_diff.path in self._untracked
        self.parse_error = None
        self.selection.rebase(files)
        self.repo_state = self.gateway.repository_state()
        log.debug("refreshed", pane=self.pane.value, files=len(files))

    def switch_pane(self, pane: Pane) -> None:
        """Show another pane; marks do not carry over between panes."""
        self.pane = pane
        self.selection.rebase([])
        self.refresh()

    def apply_selection(self, file_idx: int) -> int:
        """Stage (working pane) or unstage (staged pane) the marked lines of a file.

        Returns:
            Number of lines applied.

        Raises:
            EmptyPatch: If nothing in the file is marked.
            GitError: If the gateway rejects the patch; marks are left untouched.
        """
        file_diff = self.files[file_idx]
        selected = self.selection.current_selection(file_idx)
        if self.pane is Pane.WORKING:
            self.gateway.apply_to_index(build_patch(file_diff, selected))
        else:
            self.gateway.apply_to_index_reverse(invert_patch(file_diff, selected))
        # Applied lines leave this pane, so their marks must not match leftovers
        self.selection.clear()
        log.info("selection_applied", pane=self.pane.value, path=file_diff.path, lines=len(selected))
        return len(selected)

    def toggle_path(self, file_idx: int) -> None:
        """Stage or unstage a whole file that has no line changes (binary, mode only)."""
        path = self.files[file_idx].path
        if self.pane is Pane.WORKING:
            self.gateway.stage_path(path)
        else:
            self.gateway.unstage_path(path)

    def discard(self, file_idx: int, selected: list[tuple[int, int]]) -> None:
        """Drop the given working tree lines of a file.

        Raises:
            EmptyPatch: If the selection contains no changes.
            GitError: If the patch does not apply to the working tree.
        """
        if self.pane is not Pane.WORKING:
            raise ValueError("Only working tree changes can be discarded")
        file_diff = self.files[file_idx]
        self.gateway.discard_from_worktree(invert_patch(file_diff, selected))
        log.info("changes_discarded", path=file_diff.path, lines=len(selected))

    def has_staged_changes(self) -> bool:
        return bool(self.gateway.get_staged_diff().strip())

    def commit(self, message: str) -> str:
        return self.gateway.commit(message)
