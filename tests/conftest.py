"""Shared test fixtures and configuration."""

import subprocess
import tempfile
from pathlib import Path

import pytest

from linestage.git import ApplyRejected, RepositoryState


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def temp_repo(tmp_path):
    """Create a temporary git repository with one committed file."""
    repo_dir = tmp_path / "test_repo"
    repo_dir.mkdir()

    def git(*args):
        subprocess.run(["git", *args], cwd=repo_dir, capture_output=True, check=True)

    git("init")
    git("config", "user.email", "test@example.com")
    git("config", "user.name", "Test User")
    git("config", "commit.gpgsign", "false")

    (repo_dir / "notes.txt").write_text("one\ntwo\nthree\n")
    git("add", "notes.txt")
    git("commit", "-m", "Initial commit")

    return repo_dir


@pytest.fixture
def sample_diff():
    """Working tree diff with two files, the first with two hunks."""
    return """diff --git a/src/main.py b/src/main.py
index 1234567..abcdefg 100644
--- a/src/main.py
+++ b/src/main.py
@@ -10,2 +10,4 @@ def main():
     print("Hello")
+    print("World")
+    print("!")
     return 0
@@ -20,3 +22,3 @@ def helper():
     x = 1
-    return x
+    return x + 1
     # end
diff --git a/tests/test_main.py b/tests/test_main.py
new file mode 100644
index 0000000..1234567
--- /dev/null
+++ b/tests/test_main.py
@@ -0,0 +1,3 @@
+import pytest
+def test_main():
+    assert True
"""


@pytest.fixture
def scenario_diff():
    """Single hunk with lines -a +b +c d."""
    return """diff --git a/f.txt b/f.txt
index 1111111..2222222 100644
--- a/f.txt
+++ b/f.txt
@@ -1,2 +1,3 @@
-a
+b
+c
 d
"""


@pytest.fixture
def working_diff():
    """Working tree diff used by controller tests (11 rows when expanded)."""
    return """diff --git a/app.py b/app.py
index 1111111..2222222 100644
--- a/app.py
+++ b/app.py
@@ -1,3 +1,3 @@
 import os
-x = 1
+x = 2
 print(x)
diff --git a/lib.py b/lib.py
index 3333333..4444444 100644
--- a/lib.py
+++ b/lib.py
@@ -5,2 +5,3 @@ def f():
     a = 1
+    b = 2
     return a
"""


class FakeGateway:
    """In-memory stand-in for GitGateway recording every call."""

    def __init__(self, working_diff="", staged_diff="", repo_root=Path("/tmp/repo")):
        self.repo_root = repo_root
        self.working_diff = working_diff
        self.staged_diff = staged_diff
        self.untracked: list[str] = []
        self.untracked_diff = ""
        self.calls: list[tuple[str, str]] = []
        self.error = None  # raised by the next write call when set
        self.on_write = None  # callable(gateway) run after a successful write

    def get_working_diff(self):
        return self.working_diff

    def get_staged_diff(self):
        return self.staged_diff

    def get_untracked_files(self):
        return list(self.untracked)

    def get_untracked_diff(self, paths):
        return self.untracked_diff

    def repository_state(self):
        return RepositoryState.DIRTY

    def _write(self, name, payload):
        if self.error is not None:
            raise self.error
        self.calls.append((name, payload))
        if self.on_write is not None:
            self.on_write(self)

    def apply_to_index(self, patch):
        self._write("apply_to_index", patch)

    def apply_to_index_reverse(self, patch):
        self._write("apply_to_index_reverse", patch)

    def discard_from_worktree(self, patch):
        self._write("discard_from_worktree", patch)

    def stage_path(self, path):
        self._write("stage_path", path)

    def unstage_path(self, path):
        self._write("unstage_path", path)

    def commit(self, message):
        self._write("commit", message)
        return "[main 1a2b3c4] " + message.splitlines()[0]


@pytest.fixture
def fake_gateway(working_diff):
    return FakeGateway(working_diff=working_diff)


@pytest.fixture
def apply_rejected():
    return ApplyRejected("Patch does not apply: error: patch failed: app.py:1")
