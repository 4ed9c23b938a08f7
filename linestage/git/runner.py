"""Git command runner and repository utilities.

Contains:
- _run_git_command: Run a git command and return its output
- get_repo_root: Get the root directory of the git repository containing a path
"""

import subprocess
from pathlib import Path
from typing import Optional

import structlog

from linestage.git.exceptions import GitError, NotARepositoryError


log = structlog.get_logger(__name__)


def _run_git_command(
    args: list[str],
    cwd: Optional[Path] = None,
    stdin: Optional[str] = None,
    strip: bool = True,
    ok_returncodes: tuple[int, ...] = (0,),
) -> str:
    """Run a git command and return its output.

    Args:
        args: List of arguments to pass to git.
        cwd: Directory to run git in (defaults to the current directory).
        stdin: Text fed to the command's standard input.
        strip: Strip surrounding whitespace from the output. Diff text must
            be kept intact, so callers reading diffs pass False.
        ok_returncodes: Exit codes that count as success (git diff --no-index
            exits with 1 when the inputs differ).

    Returns:
        The stdout of the git command.

    Raises:
        GitError: If the command fails.
    """
    log.debug("git_command", args=args, cwd=str(cwd) if cwd else None)
    try:
        result = subprocess.run(
            ["git"] + args,
            capture_output=True,
            text=True,
            check=True,
            cwd=cwd,
            input=stdin,
        )
    except subprocess.CalledProcessError as e:
        if e.returncode in ok_returncodes:
            return e.stdout.strip() if strip else e.stdout
        stderr = (e.stderr or "").strip()
        log.debug("git_command_failed", args=args, returncode=e.returncode, stderr=stderr)
        raise GitError(f"Git command failed: git {' '.join(args)}\n{stderr}", stderr=stderr)
    except FileNotFoundError:
        raise GitError("Git is not installed or not in PATH.")
    return result.stdout.strip() if strip else result.stdout


def get_repo_root(cwd: Optional[Path] = None) -> Path:
    """Get the root directory of the git repository.

    Args:
        cwd: Directory to start from (defaults to the current directory).

    Returns:
        Path to the repository root.

    Raises:
        NotARepositoryError: If not in a git repository.
    """
    try:
        root = _run_git_command(["rev-parse", "--show-toplevel"], cwd=cwd)
    except GitError as e:
        raise NotARepositoryError(
            "Not in a git repository. Please run this command from within a git repo.",
            stderr=e.stderr,
        )
    return Path(root)
