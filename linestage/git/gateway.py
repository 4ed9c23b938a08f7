"""Repository gateway: the only code that touches the repository.

Contains:
- RepositoryState: clean / dirty / locked
- GitGateway: Reads diffs, applies patches to the index or working tree, commits
"""

import time
from enum import Enum
from pathlib import Path
from typing import Optional

import structlog

from linestage.git.exceptions import ApplyRejected, CommitFailed, GitError, IndexLocked
from linestage.git.runner import _run_git_command, get_repo_root


log = structlog.get_logger(__name__)


class RepositoryState(str, Enum):
    """Coarse repository state shown in the title bar."""

    CLEAN = "clean"
    DIRTY = "dirty"
    LOCKED = "locked"


class GitGateway:
    """Adapter over the git command line for one repository."""

    def __init__(
        self,
        repo_root: Path,
        context_lines: int = 3,
        detect_renames: bool = True,
        show_untracked: bool = True,
    ):
        self.repo_root = Path(repo_root)
        self.context_lines = context_lines
        self.detect_renames = detect_renames
        self.show_untracked = show_untracked
        self._git_dir: Optional[Path] = None

    @classmethod
    def discover(cls, cwd: Optional[Path] = None, **options) -> "GitGateway":
        """Create a gateway for the repository containing ``cwd``.

        Raises:
            NotARepositoryError: If ``cwd`` is not inside a repository.
        """
        return cls(get_repo_root(cwd), **options)

    def _git(
        self,
        args: list[str],
        stdin: Optional[str] = None,
        strip: bool = True,
        ok_returncodes: tuple[int, ...] = (0,),
    ) -> str:
        return _run_git_command(
            args, cwd=self.repo_root, stdin=stdin, strip=strip, ok_returncodes=ok_returncodes
        )

    @property
    def git_dir(self) -> Path:
        if self._git_dir is None:
            self._git_dir = Path(self._git(["rev-parse", "--absolute-git-dir"]))
        return self._git_dir

    def _index_lock(self) -> Path:
        return self.git_dir / "index.lock"

    def _ensure_unlocked(self) -> None:
        if self._index_lock().exists():
            raise IndexLocked(
                f"The index is locked by another git process ({self._index_lock()}). "
                "Retry once it has finished."
            )

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------

    def _diff_args(self) -> list[str]:
        return [
            "-c", "core.quotePath=false",
            "diff",
            "--no-color",
            "--no-ext-diff",
            "--src-prefix=a/",
            "--dst-prefix=b/",
            f"-U{self.context_lines}",
        ]

    def _diff(self, *extra: str) -> str:
        args = self._diff_args()
        if self.detect_renames:
            args.append("-M")
        started = time.perf_counter()
        output = self._git(args + list(extra), strip=False)
        log.debug(
            "diff_read",
            staged="--cached" in extra,
            chars=len(output),
            elapsed_ms=round((time.perf_counter() - started) * 1000, 1),
        )
        return output

    def get_working_diff(self) -> str:
        """Diff of the working tree against the index."""
        return self._diff()

    def get_staged_diff(self) -> str:
        """Diff of the index against HEAD."""
        return self._diff("--cached")

    def get_untracked_files(self) -> list[str]:
        """Untracked paths not ignored by .gitignore; empty when untracked files are hidden."""
        if not self.show_untracked:
            return []
        output = self._git(
            ["-c", "core.quotePath=false", "ls-files", "--others", "--exclude-standard", "-z"],
            strip=False,
        )
        return [path for path in output.split("\0") if path]

    def get_untracked_diff(self, paths: list[str]) -> str:
        """Diff creating each untracked path from nothing, in git's own format."""
        chunks = []
        for path in paths:
            # --no-index exits with 1 when the two sides differ
            chunks.append(
                self._git(
                    self._diff_args() + ["--no-index", "--", "/dev/null", path],
                    strip=False,
                    ok_returncodes=(0, 1),
                )
            )
        return "".join(chunks)

    def repository_state(self) -> RepositoryState:
        if self._index_lock().exists():
            return RepositoryState.LOCKED
        status = self._git(["status", "--porcelain=v1", "--untracked-files=no"])
        return RepositoryState.DIRTY if status else RepositoryState.CLEAN

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def _apply(self, patch: str, *flags: str) -> None:
        self._ensure_unlocked()
        args = ["apply", "--whitespace=nowarn", *flags]
        if self.context_lines == 0:
            args.append("--unidiff-zero")
        try:
            self._git(args + ["-"], stdin=patch)
        except GitError as e:
            if "index.lock" in e.stderr:
                raise IndexLocked(str(e), stderr=e.stderr)
            log.warning("apply_rejected", flags=list(flags), error=e.stderr)
            raise ApplyRejected(f"Patch does not apply: {e.stderr or e}", stderr=e.stderr)
        log.info("patch_applied", flags=list(flags), lines=patch.count("\n"))

    def apply_to_index(self, patch: str) -> None:
        """Apply a patch to the index only.

        Raises:
            IndexLocked: If another process holds the index lock.
            ApplyRejected: If git reports the patch does not apply.
        """
        self._apply(patch, "--cached")

    def apply_to_index_reverse(self, patch: str) -> None:
        """Apply a patch in reverse to the index only, leaving the working tree alone."""
        self._apply(patch, "--cached", "--reverse")

    def discard_from_worktree(self, patch: str) -> None:
        """Apply a patch in reverse to the working tree, dropping those changes."""
        self._apply(patch, "--reverse")

    def _path_command(self, args: list[str], path: str) -> None:
        self._ensure_unlocked()
        try:
            self._git(args + ["--", path])
        except GitError as e:
            if "index.lock" in e.stderr:
                raise IndexLocked(str(e), stderr=e.stderr)
            raise ApplyRejected(f"Could not update {path}: {e.stderr or e}", stderr=e.stderr)
        log.info("path_updated", command=args[0], path=path)

    def stage_path(self, path: str) -> None:
        """Stage a whole path (used for binary and mode-only changes)."""
        self._path_command(["add"], path)

    def unstage_path(self, path: str) -> None:
        """Unstage a whole path."""
        self._path_command(["reset", "-q"], path)

    def commit(self, message: str) -> str:
        """Commit the index with the given message.

        Returns:
            git's summary output.

        Raises:
            IndexLocked: If another process holds the index lock.
            CommitFailed: If git refuses to commit.
        """
        self._ensure_unlocked()
        try:
            output = self._git(["commit", "-F", "-"], stdin=message)
        except GitError as e:
            log.warning("commit_failed", error=e.stderr)
            raise CommitFailed(f"Commit failed: {e.stderr or e}", stderr=e.stderr)
        log.info("commit_created", summary=output.splitlines()[0] if output else "")
        return output
