"""Navigation and selection controller.

Translates key presses into cursor moves, selection toggles and gateway
calls, and builds the Frame the terminal draws. Everything runs on the
caller's thread: each key is handled to completion before the next one.
"""

from typing import Callable, Optional

import structlog

from linestage.diff import EmptyPatch, MalformedDiff
from linestage.git import GitError
from linestage.selection import NotToggleable
from linestage.session import Pane, Session
from linestage.view.frame import FILE_STYLES, LINE_STYLES, Frame, FrameRow, Style
from linestage.view.intents import (
    DEFAULT_KEYMAP,
    NAVIGATION_INTENTS,
    TOGGLE_INTENTS,
    Intent,
)
from linestage.view.rows import Row, RowKind, RowRef, build_rows, restore_cursor, row_ref
from linestage.view.states import (
    Browsing,
    ConfirmingCommit,
    ConfirmingDiscard,
    ControllerState,
    Quit,
    Searching,
)


log = structlog.get_logger(__name__)

PANE_LABELS = {
    Pane.WORKING: "Unstaged changes",
    Pane.STAGED: "Staged changes",
}

PANE_HINTS = {
    Pane.WORKING: "space:stage line  h:hunk  f:file  r:discard  /:search  c:commit  tab:staged  q:quit",
    Pane.STAGED: "space:unstage line  h:hunk  f:file  /:search  c:commit  tab:unstaged  q:quit",
}

# Keys that still move the cursor while typing a search
_SEARCH_NAVIGATION = {
    "up": Intent.MOVE_UP,
    "down": Intent.MOVE_DOWN,
    "pageup": Intent.PAGE_UP,
    "pagedown": Intent.PAGE_DOWN,
}


def _edit_text(text: str, key: str) -> Optional[str]:
    """Apply a key to a text field; None if the key is not text input."""
    if key == "backspace":
        return text[:-1]
    if key == "space":
        return text + " "
    if len(key) == 1 and key.isprintable():
        return text + key
    return None


def _plural(count: int, word: str) -> str:
    return f"{count} {word}" if count == 1 else f"{count} {word}s"


class Controller:
    """State machine between the terminal and the staging session."""

    def __init__(
        self,
        session: Session,
        keymap: Optional[dict[str, Intent]] = None,
        confirm_discard: bool = True,
    ):
        self.session = session
        self.keymap = keymap if keymap is not None else dict(DEFAULT_KEYMAP)
        self.confirm_discard = confirm_discard
        self.state: ControllerState = Browsing()
        self.cursor = 0
        self.scroll = 0
        self.height = 20
        self.folded: set[str] = set()
        self.query = ""
        self.message: Optional[str] = None
        self.error: Optional[str] = None
        self._rows: Optional[list[Row]] = None
        self._handlers: dict[type, Callable[[str], None]] = {
            Browsing: self._handle_browsing,
            Searching: self._handle_searching,
            ConfirmingCommit: self._handle_commit,
            ConfirmingDiscard: self._handle_discard,
            Quit: self._handle_quit,
        }

    # ------------------------------------------------------------------
    # Rows and cursor
    # ------------------------------------------------------------------

    @property
    def finished(self) -> bool:
        return isinstance(self.state, Quit)

    @property
    def exit_code(self) -> int:
        return self.state.exit_code if isinstance(self.state, Quit) else 0

    @property
    def rows(self) -> list[Row]:
        if self._rows is None:
            self._rows = build_rows(self.session.files, self.folded, self.query)
        return self._rows

    def _invalidate_rows(self) -> None:
        self._rows = None

    def current_row(self) -> Optional[Row]:
        rows = self.rows
        if 0 <= self.cursor < len(rows):
            return rows[self.cursor]
        return None

    def _current_ref(self) -> Optional[RowRef]:
        row = self.current_row()
        return row_ref(self.session.files, row) if row else None

    def resize(self, height: int) -> None:
        """Set the number of rows the terminal can show."""
        self.height = max(1, height)
        self._scroll_into_view()

    def _move_to(self, index: int) -> None:
        rows = self.rows
        self.cursor = max(0, min(index, len(rows) - 1)) if rows else 0
        self._scroll_into_view()

    def _scroll_into_view(self) -> None:
        if self.cursor < self.scroll:
            self.scroll = self.cursor
        elif self.cursor >= self.scroll + self.height:
            self.scroll = self.cursor - self.height + 1
        self.scroll = max(0, min(self.scroll, len(self.rows) - self.height))

    def _rebuild(self, ref: Optional[RowRef], previous_paths: list[str]) -> None:
        self._invalidate_rows()
        self.cursor = restore_cursor(ref, previous_paths, self.session.files, self.rows)
        self._scroll_into_view()

    def _reload(self, action: Callable[[], None]) -> None:
        """Run a session call that replaces the model, then put the cursor back."""
        ref = self._current_ref()
        previous_paths = [f.path for f in self.session.files]
        try:
            action()
        except MalformedDiff as e:
            self.error = f"Could not parse diff: {e}"
        except GitError as e:
            self.error = str(e)
        self._rebuild(ref, previous_paths)

    def refresh(self) -> None:
        """Re-read the diff, revalidate the selection and clamp the cursor."""
        self._reload(self.session.refresh)

    # ------------------------------------------------------------------
    # Event handling
    # ------------------------------------------------------------------

    def handle(self, key: str) -> None:
        """Process one key press to completion."""
        if key == "ctrl-c":
            self.state = Quit()
            return
        handler = self._handlers.get(type(self.state))
        if handler is None:
            raise TypeError(f"Unhandled controller state: {self.state!r}")
        handler(key)

    def _handle_browsing(self, key: str) -> None:
        intent = self.keymap.get(key)
        if intent is None:
            return

        self.message = None
        self.error = None

        if intent in NAVIGATION_INTENTS:
            self._navigate(intent)
        elif intent in TOGGLE_INTENTS:
            self._toggle(intent)
        elif intent is Intent.TOGGLE_FOLD:
            self._toggle_fold()
        elif intent in (Intent.SWITCH_PANE, Intent.SHOW_WORKING, Intent.SHOW_STAGED):
            self._switch_pane(intent)
        elif intent is Intent.ENTER_SEARCH:
            self.state = Searching(self.query)
        elif intent is Intent.CLEAR_FILTER:
            self._set_query("")
        elif intent is Intent.COMMIT:
            self._start_commit()
        elif intent is Intent.DISCARD:
            self._start_discard()
        elif intent is Intent.REFRESH:
            self.refresh()
        elif intent is Intent.QUIT:
            self.state = Quit()

    def _handle_searching(self, key: str) -> None:
        if key == "escape":
            self.state = Browsing()
            self._set_query("")
            return
        if key == "enter":
            self.state = Browsing()
            return
        if key in _SEARCH_NAVIGATION:
            self._navigate(_SEARCH_NAVIGATION[key])
            return

        query = _edit_text(self.state.query, key)
        if query is None:
            return
        self.state = Searching(query)
        self.query = query
        self._invalidate_rows()
        self._move_to(0)

    def _handle_commit(self, key: str) -> None:
        if key == "escape":
            self.state = Browsing()
            self.error = None
            self.message = "Commit cancelled"
            return
        if key == "enter":
            self._commit(self.state.message.strip())
            return

        text = _edit_text(self.state.message, key)
        if text is not None:
            self.state = ConfirmingCommit(text)
            self.error = None

    def _handle_discard(self, key: str) -> None:
        if key in ("y", "Y"):
            pending = self.state
            self.state = Browsing()
            self._discard(pending.file_index, list(pending.selected), pending.label)
        elif key in ("n", "N", "escape"):
            self.state = Browsing()
            self.message = "Discard cancelled"

    def _handle_quit(self, key: str) -> None:
        pass

    # ------------------------------------------------------------------
    # Browsing actions
    # ------------------------------------------------------------------

    def _navigate(self, intent: Intent) -> None:
        last = len(self.rows) - 1
        if intent is Intent.MOVE_UP:
            self._move_to(self.cursor - 1)
        elif intent is Intent.MOVE_DOWN:
            self._move_to(self.cursor + 1)
        elif intent is Intent.PAGE_UP:
            self._move_to(self.cursor - self.height)
        elif intent is Intent.PAGE_DOWN:
            self._move_to(self.cursor + self.height)
        elif intent is Intent.TOP:
            self._move_to(0)
        elif intent is Intent.BOTTOM:
            self._move_to(last)
        elif intent is Intent.NEXT_HUNK:
            for i in range(self.cursor + 1, last + 1):
                if self.rows[i].kind is RowKind.HUNK:
                    self._move_to(i)
                    break
        elif intent is Intent.PREV_HUNK:
            for i in range(self.cursor - 1, -1, -1):
                if self.rows[i].kind is RowKind.HUNK:
                    self._move_to(i)
                    break

    def _verb(self) -> str:
        return "Staged" if self.session.pane is Pane.WORKING else "Unstaged"

    def _toggle(self, intent: Intent) -> None:
        row = self.current_row()
        if row is None:
            return
        file_idx = row.file_index
        file_diff = self.session.files[file_idx]
        if not file_diff.hunks:
            self._toggle_path(file_idx)
            return

        selection = self.session.selection
        before = selection.snapshot()
        try:
            if intent is Intent.TOGGLE_FILE or row.kind is RowKind.FILE:
                selection.toggle_file(file_idx)
            elif intent is Intent.TOGGLE_HUNK or row.kind is RowKind.HUNK:
                selection.toggle_hunk(file_idx, row.hunk_index)
            else:
                selection.toggle_line(file_idx, row.hunk_index, row.line_index)
        except NotToggleable:
            return

        try:
            count = self.session.apply_selection(file_idx)
        except EmptyPatch:
            self.message = f"Nothing selected in {file_diff.path}"
            return
        except GitError as e:
            # Keep the marks in line with what the index really holds
            selection.restore(before)
            self.error = str(e)
            log.warning("toggle_failed", path=file_diff.path, error=str(e))
            return

        self.refresh()
        if self.error is None:
            self.message = f"{self._verb()} {_plural(count, 'line')} in {file_diff.path}"

    def _toggle_path(self, file_idx: int) -> None:
        path = self.session.files[file_idx].path
        try:
            self.session.toggle_path(file_idx)
        except GitError as e:
            self.error = str(e)
            return
        self.refresh()
        if self.error is None:
            self.message = f"{self._verb()} {path}"

    def _toggle_fold(self) -> None:
        row = self.current_row()
        if row is None or self.query:
            return
        path = self.session.files[row.file_index].path
        if path in self.folded:
            self.folded.discard(path)
        else:
            self.folded.add(path)
        self._rebuild((path, -1, -1), [f.path for f in self.session.files])

    def _set_query(self, query: str) -> None:
        if query == self.query:
            return
        ref = self._current_ref()
        self.query = query
        self._rebuild(ref, [f.path for f in self.session.files])

    def _switch_pane(self, intent: Intent) -> None:
        current = self.session.pane
        if intent is Intent.SHOW_WORKING:
            target = Pane.WORKING
        elif intent is Intent.SHOW_STAGED:
            target = Pane.STAGED
        else:
            target = Pane.STAGED if current is Pane.WORKING else Pane.WORKING
        if target is current:
            return
        self._reload(lambda: self.session.switch_pane(target))

    def _start_commit(self) -> None:
        try:
            staged = self.session.has_staged_changes()
        except GitError as e:
            self.error = str(e)
            return
        if not staged:
            self.message = "Nothing staged to commit"
            return
        self.state = ConfirmingCommit()

    def _commit(self, message: str) -> None:
        if not message:
            self.error = "Commit message is empty"
            return
        self.state = Browsing()
        try:
            output = self.session.commit(message)
        except GitError as e:
            self.error = str(e)
            return
        self.refresh()
        if self.error is None:
            self.message = output.splitlines()[0] if output else "Committed"

    def _start_discard(self) -> None:
        if self.session.pane is not Pane.WORKING:
            self.message = "Only unstaged changes can be discarded"
            return
        row = self.current_row()
        if row is None:
            return
        file_diff = self.session.files[row.file_index]
        if not file_diff.hunks:
            self.message = f"{file_diff.path} has no line changes to discard"
            return

        if row.kind is RowKind.LINE:
            line = file_diff.hunks[row.hunk_index].lines[row.line_index]
            if not line.is_change:
                return
            selected = [(row.hunk_index, row.line_index)]
            label = f"1 line in {file_diff.path}"
        elif row.kind is RowKind.HUNK:
            hunk = file_diff.hunks[row.hunk_index]
            selected = [(row.hunk_index, i) for i in hunk.changes()]
            label = f"hunk {hunk.header} in {file_diff.path}"
        else:
            selected = [
                (hunk_idx, i)
                for hunk_idx, hunk in enumerate(file_diff.hunks)
                for i in hunk.changes()
            ]
            label = f"all changes in {file_diff.path}"

        if self.confirm_discard:
            self.state = ConfirmingDiscard(row.file_index, tuple(selected), label)
        else:
            self._discard(row.file_index, selected, label)

    def _discard(self, file_idx: int, selected: list[tuple[int, int]], label: str) -> None:
        try:
            self.session.discard(file_idx, selected)
        except EmptyPatch:
            self.message = "Nothing to discard"
            return
        except GitError as e:
            self.error = str(e)
            return
        self.refresh()
        if self.error is None:
            self.message = f"Discarded {label}"

    # ------------------------------------------------------------------
    # Rendering
    # ------------------------------------------------------------------

    def _frame_row(self, row: Row, cursor: bool) -> FrameRow:
        file_diff = self.session.files[row.file_index]
        if row.kind is RowKind.FILE:
            text = file_diff.display_name()
            if file_diff.path in self.folded and not self.query:
                text += f"  [{_plural(len(file_diff.hunks), 'hunk')} folded]"
            return FrameRow(text, FILE_STYLES[file_diff.status], cursor=cursor)
        hunk = file_diff.hunks[row.hunk_index]
        if row.kind is RowKind.HUNK:
            return FrameRow(hunk.header, Style.HUNK, cursor=cursor)
        line = hunk.lines[row.line_index]
        return FrameRow(line.raw(), LINE_STYLES[line.kind], cursor=cursor, marked=line.staged)

    def _title(self) -> str:
        title = f"linestage: {self.session.gateway.repo_root.name} | {PANE_LABELS[self.session.pane]}"
        if self.session.repo_state is not None:
            title += f" [{self.session.repo_state.value}]"
        if self.query:
            title += f" | filter: {self.query}"
        return title

    def _prompt(self) -> Optional[str]:
        state = self.state
        if isinstance(state, Searching):
            return f"/{state.query}"
        if isinstance(state, ConfirmingCommit):
            return f"Commit message (enter to commit, esc to cancel): {state.message}"
        if isinstance(state, ConfirmingDiscard):
            return f"Discard {state.label}? (y/n)"
        return None

    def frame(self) -> Frame:
        """Build the frame for the current state."""
        if self.session.parse_error:
            rows = [
                FrameRow("Could not parse the diff:", Style.ERROR),
                FrameRow(self.session.parse_error, Style.ERROR),
            ]
        elif not self.rows:
            if self.query:
                placeholder = f"No rows match {self.query!r}"
            else:
                placeholder = f"No {PANE_LABELS[self.session.pane].lower()}"
            rows = [FrameRow(placeholder, Style.PLACEHOLDER)]
        else:
            visible = self.rows[self.scroll:self.scroll + self.height]
            rows = [
                self._frame_row(row, self.scroll + i == self.cursor)
                for i, row in enumerate(visible)
            ]

        return Frame(
            title=self._title(),
            rows=rows,
            status=PANE_HINTS[self.session.pane],
            message=self.message,
            error=self.error,
            prompt=self._prompt(),
        )
