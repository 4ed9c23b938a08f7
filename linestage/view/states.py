"""Controller states.

Each state is its own immutable type, so a state carries exactly the data it
needs (the search query, the commit message being typed, the pending discard).
"""

from dataclasses import dataclass
from typing import Union


@dataclass(frozen=True)
class Browsing:
    """Navigating the diff; toggles are applied immediately."""


@dataclass(frozen=True)
class Searching:
    """Typing a filter; rows narrow as the query changes."""

    query: str = ""


@dataclass(frozen=True)
class ConfirmingCommit:
    """Typing the commit message; Enter commits, Escape cancels."""

    message: str = ""


@dataclass(frozen=True)
class ConfirmingDiscard:
    """Waiting for y/n before dropping working tree changes."""

    file_index: int
    selected: tuple[tuple[int, int], ...]
    label: str


@dataclass(frozen=True)
class Quit:
    """Terminal state; the loop exits with ``exit_code``."""

    exit_code: int = 0


ControllerState = Union[Browsing, Searching, ConfirmingCommit, ConfirmingDiscard, Quit]
