"""Git-related exception classes.

Contains all exception classes for repository operations:
- GitError: Base exception for git-related errors
- NotARepositoryError: Raised when the working directory is not inside a repository
- IndexLocked: Raised when another process holds the index lock
- ApplyRejected: Raised when git refuses to apply a synthesized patch
- CommitFailed: Raised when git refuses to create the commit
"""

from typing import Optional


class GitError(Exception):
    """Custom exception for git-related errors."""

    def __init__(self, message: str, stderr: Optional[str] = None):
        super().__init__(message)
        self.stderr = stderr or ""


class NotARepositoryError(GitError):
    """Raised when not inside a git repository."""

    pass


class IndexLocked(GitError):
    """Raised when the index lock file is held by another process."""

    pass


class ApplyRejected(GitError):
    """Raised when a patch does not apply cleanly."""

    pass


class CommitFailed(GitError):
    """Raised when the commit could not be created."""

    pass
