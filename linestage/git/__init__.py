"""Repository gateway for linestage.

This package provides:
- exceptions: GitError, NotARepositoryError, IndexLocked, ApplyRejected, CommitFailed
- runner: _run_git_command, get_repo_root
- gateway: GitGateway, RepositoryState
"""

# Exceptions
from linestage.git.exceptions import (
    ApplyRejected,
    CommitFailed,
    GitError,
    IndexLocked,
    NotARepositoryError,
)

# Runner utilities
from linestage.git.runner import (
    _run_git_command,
    get_repo_root,
)

# Gateway
from linestage.git.gateway import (
    GitGateway,
    RepositoryState,
)


__all__ = [
    # Exceptions
    "ApplyRejected",
    "CommitFailed",
    "GitError",
    "IndexLocked",
    "NotARepositoryError",
    # Runner
    "_run_git_command",
    "get_repo_root",
    # Gateway
    "GitGateway",
    "RepositoryState",
]
