"""Tests for the session and the navigation controller."""

import pytest

from linestage.diff import EmptyPatch, FileStatus, MalformedDiff
from linestage.session import Pane, Session
from linestage.view import (
    Browsing,
    ConfirmingCommit,
    ConfirmingDiscard,
    Quit,
    RowKind,
    Searching,
    Style,
    build_keymap,
)
from linestage.view.controller import Controller


APP_ONLY_DIFF = """diff --git a/app.py b/app.py
index 1111111..2222222 100644
--- a/app.py
+++ b/app.py
@@ -1,3 +1,3 @@
 import os
-x = 1
+x = 2
 print(x)
"""

LIB_ONLY_DIFF = """diff --git a/lib.py b/lib.py
index 3333333..4444444 100644
--- a/lib.py
+++ b/lib.py
@@ -5,2 +5,3 @@ def f():
     a = 1
+    b = 2
     return a
"""

BINARY_DIFF = """diff --git a/logo.png b/logo.png
index 1111111..2222222 100644
Binary files a/logo.png and b/logo.png differ
"""

UNTRACKED_DIFF = """diff --git a/new.txt b/new.txt
new file mode 100644
index 0000000..5555555
--- /dev/null
+++ b/new.txt
@@ -0,0 +1,2 @@
+x
+y
"""

MALFORMED_DIFF = """diff --git a/a.txt b/a.txt
index 1111111..2222222 100644
--- a/a.txt
+++ b/a.txt
@@ -1,3 +1,3 @@
 a
-b
+c
"""


@pytest.fixture
def session(fake_gateway):
    return Session(fake_gateway)


@pytest.fixture
def controller(session):
    ctrl = Controller(session)
    ctrl.refresh()
    return ctrl


def press(controller, *keys):
    for key in keys:
        controller.handle(key)


# ============================================================
# Session
# ============================================================


class TestSession:
    """Tests for Session."""

    def test_refresh_parses_current_pane(self, session):
        session.refresh()

        assert [f.path for f in session.files] == ["app.py", "lib.py"]
        assert session.parse_error is None

    def test_refresh_malformed(self, session, fake_gateway):
        fake_gateway.working_diff = MALFORMED_DIFF

        with pytest.raises(MalformedDiff):
            session.refresh()

        assert session.parse_error
        assert session.files == []

    def test_apply_without_marks(self, session):
        session.refresh()

        with pytest.raises(EmptyPatch):
            session.apply_selection(0)

    def test_apply_clears_marks(self, session, fake_gateway):
        session.refresh()
        session.selection.toggle_line(0, 0, 2)

        assert session.apply_selection(0) == 1
        assert fake_gateway.calls[0][0] == "apply_to_index"
        assert session.selection.snapshot() == frozenset()

    def test_switch_pane_drops_marks(self, session, fake_gateway, working_diff):
        fake_gateway.staged_diff = working_diff
        session.refresh()
        session.selection.toggle_file(0)

        session.switch_pane(Pane.STAGED)

        assert session.pane is Pane.STAGED
        assert session.selection.snapshot() == frozenset()

    def test_untracked_files_listed_in_working_pane(self, session, fake_gateway):
        fake_gateway.untracked = ["new.txt"]
        fake_gateway.untracked_diff = UNTRACKED_DIFF

        session.refresh()

        assert [f.path for f in session.files] == ["app.py", "lib.py", "new.txt"]
        assert session.files[2].is_untracked
        assert session.files[2].status is FileStatus.UNTRACKED
        assert not session.files[0].is_untracked

    def test_partial_untracked_file_is_created_in_index(self, session, fake_gateway):
        fake_gateway.untracked = ["new.txt"]
        fake_gateway.untracked_diff = UNTRACKED_DIFF
        session.refresh()
        session.selection.toggle_line(2, 0, 0)

        session.apply_selection(2)

        assert fake_gateway.calls[0] == (
            "apply_to_index",
            "diff --git a/new.txt b/new.txt\n"
            "new file mode 100644\n"
            "--- /dev/null\n"
            "+++ b/new.txt\n"
            "@@ -0,0 +1 @@\n"
            "+x\n",
        )

    def test_untracked_files_not_listed_in_staged_pane(self, session, fake_gateway):
        fake_gateway.untracked = ["new.txt"]
        fake_gateway.untracked_diff = UNTRACKED_DIFF
        session.pane = Pane.STAGED

        session.refresh()

        assert session.files == []

    def test_discard_only_in_working_pane(self, session):
        session.pane = Pane.STAGED
        session.refresh()

        with pytest.raises(ValueError):
            session.discard(0, [(0, 1)])


# ============================================================
# Navigation
# ============================================================


class TestNavigation:
    """Tests for cursor movement and rendering."""

    def test_initial_frame(self, controller):
        frame = controller.frame()

        assert len(controller.rows) == 11
        assert controller.cursor == 0
        assert frame.title == "linestage: repo | Unstaged changes [dirty]"
        assert frame.rows[0].text == "M app.py"
        assert frame.rows[0].cursor
        assert frame.rows[3].text == "-x = 1"
        assert frame.rows[3].style is Style.DELETION
        assert frame.bottom_line()[0].startswith("space:stage line")

    def test_move_and_clamp(self, controller):
        press(controller, "k")
        assert controller.cursor == 0

        press(controller, "j", "j", "down")
        assert controller.cursor == 3

        press(controller, "G")
        assert controller.cursor == 10
        press(controller, "j")
        assert controller.cursor == 10

        press(controller, "g")
        assert controller.cursor == 0

    def test_hunk_jumps(self, controller):
        press(controller, "n")
        assert controller.cursor == 1
        press(controller, "n")
        assert controller.cursor == 7
        press(controller, "n")
        assert controller.cursor == 7
        press(controller, "N")
        assert controller.cursor == 1

    def test_paging_scrolls(self, controller):
        controller.resize(3)

        press(controller, "pagedown", "pagedown")

        assert controller.cursor == 6
        assert controller.scroll == 4
        frame = controller.frame()
        assert len(frame.rows) == 3
        assert frame.rows[2].cursor

    def test_unbound_keys(self, controller):
        press(controller, "F12", "ctrl+x")
        assert isinstance(controller.state, Browsing)
        assert controller.cursor == 0

    def test_fold(self, controller):
        press(controller, "z")

        assert len(controller.rows) == 6
        assert controller.frame().rows[0].text == "M app.py  [1 hunk folded]"

        press(controller, "z")
        assert len(controller.rows) == 11

    def test_unknown_state(self, controller):
        controller.state = object()

        with pytest.raises(TypeError):
            controller.handle("j")


# ============================================================
# Toggles
# ============================================================


class TestToggles:
    """Tests for staging and unstaging from the controller."""

    def test_stage_single_line(self, controller, fake_gateway):
        press(controller, "j", "j", "j", "j", "space")

        name, patch = fake_gateway.calls[0]
        assert name == "apply_to_index"
        assert patch.endswith("@@ -1,3 +1,4 @@\n import os\n x = 1\n+x = 2\n print(x)\n")
        assert controller.message == "Staged 1 line in app.py"
        assert controller.cursor == 4

    def test_context_line_is_a_noop(self, controller, fake_gateway):
        press(controller, "j", "j", "space")

        assert fake_gateway.calls == []
        assert controller.message is None
        assert controller.error is None

    def test_hunk_row_toggles_hunk(self, controller, fake_gateway):
        press(controller, "j", "space")

        patch = fake_gateway.calls[0][1]
        assert "-x = 1\n+x = 2\n" in patch
        assert controller.message == "Staged 2 lines in app.py"

    def test_toggle_file_from_line(self, controller, fake_gateway):
        press(controller, "G", "f")

        patch = fake_gateway.calls[0][1]
        assert patch.startswith("diff --git a/lib.py b/lib.py")
        assert controller.message == "Staged 1 line in lib.py"

    def test_rejected_apply_rolls_back(self, controller, fake_gateway, apply_rejected):
        fake_gateway.error = apply_rejected

        press(controller, "j", "j", "j", "j", "space")

        assert controller.session.selection.snapshot() == frozenset()
        assert controller.error == str(apply_rejected)
        assert controller.frame().bottom_line() == (str(apply_rejected), Style.ERROR)

        # the next key clears the error
        press(controller, "k")
        assert controller.error is None

    def test_binary_file_staged_by_path(self, controller, fake_gateway):
        fake_gateway.working_diff = BINARY_DIFF
        controller.refresh()

        press(controller, "space")

        assert fake_gateway.calls == [("stage_path", "logo.png")]
        assert controller.message == "Staged logo.png"

    def test_unstage_in_staged_pane(self, controller, fake_gateway, working_diff):
        fake_gateway.staged_diff = working_diff

        press(controller, "tab")
        assert controller.session.pane is Pane.STAGED
        assert "Staged changes" in controller.frame().title

        press(controller, "j", "j", "j", "j", "space")

        name, patch = fake_gateway.calls[0]
        assert name == "apply_to_index_reverse"
        assert patch.endswith("@@ -1,2 +1,3 @@\n import os\n+x = 2\n print(x)\n")
        assert controller.message == "Unstaged 1 line in app.py"

    def test_empty_staged_pane(self, controller):
        press(controller, "2")

        assert controller.rows == []
        assert controller.frame().rows[0].text == "No staged changes"

        press(controller, "space")
        assert controller.message is None


# ============================================================
# Refresh and cursor restoration
# ============================================================


class TestRefresh:
    """Tests for rebuilding rows after the diff changes."""

    def test_cursor_stays_on_surviving_file(self, controller, fake_gateway):
        press(controller, "G")
        fake_gateway.working_diff = LIB_ONLY_DIFF

        press(controller, "R")

        assert len(controller.rows) == 5
        assert controller.cursor == 4

    def test_cursor_moves_to_preceding_file(self, controller, fake_gateway):
        press(controller, "G")
        fake_gateway.working_diff = APP_ONLY_DIFF

        press(controller, "R")

        assert len(controller.rows) == 6
        assert controller.cursor == 0
        assert controller.current_row().kind is RowKind.FILE

    def test_everything_staged(self, controller, fake_gateway):
        press(controller, "G")
        fake_gateway.working_diff = ""

        press(controller, "R")

        assert controller.rows == []
        assert controller.cursor == 0
        assert controller.frame().rows[0].text == "No unstaged changes"

    def test_malformed_diff_shows_error_pane(self, controller, fake_gateway):
        fake_gateway.working_diff = MALFORMED_DIFF

        press(controller, "R")

        frame = controller.frame()
        assert frame.rows[0].text == "Could not parse the diff:"
        assert frame.rows[0].style is Style.ERROR
        assert controller.error.startswith("Could not parse diff:")


# ============================================================
# Search
# ============================================================


class TestSearch:
    """Tests for the search filter."""

    def test_filter_rows(self, controller):
        press(controller, "/", "x")

        assert controller.state == Searching("x")
        assert len(controller.rows) == 3
        assert controller.frame().prompt == "/x"

    def test_enter_keeps_filter(self, controller):
        press(controller, "/", "x", "enter")

        assert isinstance(controller.state, Browsing)
        assert len(controller.rows) == 3
        assert controller.frame().title.endswith("| filter: x")

        press(controller, "escape")
        assert len(controller.rows) == 11

    def test_escape_clears_filter(self, controller):
        press(controller, "/", "x", "escape")

        assert isinstance(controller.state, Browsing)
        assert controller.query == ""
        assert len(controller.rows) == 11

    def test_letters_are_text_while_searching(self, controller):
        press(controller, "/", "q")

        assert not controller.finished
        assert controller.query == "q"

    def test_backspace(self, controller):
        press(controller, "/", "x", "y", "backspace")
        assert controller.query == "x"

    def test_no_match(self, controller):
        press(controller, "/", "z", "z", "z")

        assert controller.rows == []
        assert controller.frame().rows[0].text == "No rows match 'zzz'"


# ============================================================
# Commit, discard and quit
# ============================================================


class TestCommit:
    """Tests for the commit prompt."""

    def test_nothing_staged(self, controller):
        press(controller, "c")

        assert isinstance(controller.state, Browsing)
        assert controller.message == "Nothing staged to commit"

    def test_commit_flow(self, controller, fake_gateway, working_diff):
        fake_gateway.staged_diff = working_diff

        press(controller, "c")
        assert controller.state == ConfirmingCommit("")

        press(controller, "f", "i", "x", "space", "q")
        assert controller.state == ConfirmingCommit("fix q")
        assert controller.frame().prompt.endswith(": fix q")

        press(controller, "enter")
        assert isinstance(controller.state, Browsing)
        assert fake_gateway.calls == [("commit", "fix q")]
        assert controller.message == "[main 1a2b3c4] fix q"

    def test_empty_message_rejected(self, controller, fake_gateway, working_diff):
        fake_gateway.staged_diff = working_diff

        press(controller, "c", "space", "enter")

        assert isinstance(controller.state, ConfirmingCommit)
        assert controller.error == "Commit message is empty"
        assert fake_gateway.calls == []

    def test_cancel(self, controller, fake_gateway, working_diff):
        fake_gateway.staged_diff = working_diff

        press(controller, "c", "a", "escape")

        assert isinstance(controller.state, Browsing)
        assert controller.message == "Commit cancelled"


class TestDiscard:
    """Tests for discarding working tree changes."""

    def test_confirm(self, controller, fake_gateway):
        press(controller, "j", "j", "j", "j", "r")

        assert controller.state == ConfirmingDiscard(0, ((0, 2),), "1 line in app.py")
        assert controller.frame().prompt == "Discard 1 line in app.py? (y/n)"

        press(controller, "y")

        name, patch = fake_gateway.calls[0]
        assert name == "discard_from_worktree"
        assert "+x = 2\n" in patch
        assert controller.message == "Discarded 1 line in app.py"

    def test_decline(self, controller, fake_gateway):
        press(controller, "j", "r", "n")

        assert isinstance(controller.state, Browsing)
        assert fake_gateway.calls == []
        assert controller.message == "Discard cancelled"

    def test_without_confirmation(self, session, fake_gateway):
        controller = Controller(session, confirm_discard=False)
        controller.refresh()

        press(controller, "r")

        assert fake_gateway.calls[0][0] == "discard_from_worktree"
        assert controller.message == "Discarded all changes in app.py"

    def test_not_in_staged_pane(self, controller, fake_gateway, working_diff):
        fake_gateway.staged_diff = working_diff

        press(controller, "tab", "r")

        assert fake_gateway.calls == []
        assert controller.message == "Only unstaged changes can be discarded"


class TestQuit:
    """Tests for leaving the controller."""

    def test_quit_key(self, controller):
        press(controller, "q")

        assert controller.finished
        assert controller.state == Quit()
        assert controller.exit_code == 0

    def test_ctrl_c_from_any_state(self, controller):
        press(controller, "/", "a", "ctrl-c")
        assert controller.finished

    def test_custom_keymap(self, session):
        controller = Controller(session, build_keymap({"x": "quit"}))
        controller.refresh()

        press(controller, "x")

        assert controller.finished
