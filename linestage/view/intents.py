"""User intents and the key bindings that produce them."""

from enum import Enum
from typing import Optional


class Intent(str, Enum):
    """What a key press asks the controller to do while browsing."""

    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    TOP = "top"
    BOTTOM = "bottom"
    NEXT_HUNK = "next_hunk"
    PREV_HUNK = "prev_hunk"
    TOGGLE_LINE = "toggle_line"
    TOGGLE_HUNK = "toggle_hunk"
    TOGGLE_FILE = "toggle_file"
    TOGGLE_FOLD = "toggle_fold"
    SWITCH_PANE = "switch_pane"
    SHOW_WORKING = "show_working"
    SHOW_STAGED = "show_staged"
    ENTER_SEARCH = "enter_search"
    CLEAR_FILTER = "clear_filter"
    COMMIT = "commit"
    DISCARD = "discard"
    REFRESH = "refresh"
    QUIT = "quit"


NAVIGATION_INTENTS = frozenset({
    Intent.MOVE_UP,
    Intent.MOVE_DOWN,
    Intent.PAGE_UP,
    Intent.PAGE_DOWN,
    Intent.TOP,
    Intent.BOTTOM,
    Intent.NEXT_HUNK,
    Intent.PREV_HUNK,
})

TOGGLE_INTENTS = frozenset({Intent.TOGGLE_LINE, Intent.TOGGLE_HUNK, Intent.TOGGLE_FILE})


DEFAULT_KEYMAP: dict[str, Intent] = {
    "up": Intent.MOVE_UP,
    "k": Intent.MOVE_UP,
    "down": Intent.MOVE_DOWN,
    "j": Intent.MOVE_DOWN,
    "pageup": Intent.PAGE_UP,
    "pagedown": Intent.PAGE_DOWN,
    "home": Intent.TOP,
    "g": Intent.TOP,
    "end": Intent.BOTTOM,
    "G": Intent.BOTTOM,
    "n": Intent.NEXT_HUNK,
    "N": Intent.PREV_HUNK,
    "space": Intent.TOGGLE_LINE,
    "s": Intent.TOGGLE_LINE,
    "h": Intent.TOGGLE_HUNK,
    "f": Intent.TOGGLE_FILE,
    "enter": Intent.TOGGLE_FOLD,
    "z": Intent.TOGGLE_FOLD,
    "tab": Intent.SWITCH_PANE,
    "t": Intent.SWITCH_PANE,
    "1": Intent.SHOW_WORKING,
    "2": Intent.SHOW_STAGED,
    "/": Intent.ENTER_SEARCH,
    "escape": Intent.CLEAR_FILTER,
    "c": Intent.COMMIT,
    "r": Intent.DISCARD,
    "R": Intent.REFRESH,
    "q": Intent.QUIT,
}


def parse_intent(name: str) -> Optional[Intent]:
    """Look up an intent by its configuration name (e.g. ``toggle_hunk``)."""
    try:
        return Intent(name.strip().lower().replace("-", "_"))
    except ValueError:
        return None


def build_keymap(overrides: Optional[dict[str, str]] = None) -> dict[str, Intent]:
    """Return the default keymap updated with ``key -> intent name`` overrides.

    Raises:
        ValueError: If an override names an unknown intent.
    """
    keymap = dict(DEFAULT_KEYMAP)
    for key, name in (overrides or {}).items():
        intent = parse_intent(name)
        if intent is None:
            raise ValueError(f"Unknown action {name!r} bound to key {key!r}")
        keymap[key] = intent
    return keymap
