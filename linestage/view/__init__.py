"""View and navigation layer for linestage.

This package provides:
- intents: Intent, DEFAULT_KEYMAP, build_keymap, parse_intent
- states: Browsing, Searching, ConfirmingCommit, ConfirmingDiscard, Quit
- rows: Row, RowKind, build_rows, restore_cursor
- frame: Frame, FrameRow, Style
- controller: Controller (import from linestage.view.controller)
"""

from linestage.view.intents import (
    DEFAULT_KEYMAP,
    Intent,
    build_keymap,
    parse_intent,
)
from linestage.view.states import (
    Browsing,
    ConfirmingCommit,
    ConfirmingDiscard,
    ControllerState,
    Quit,
    Searching,
)
from linestage.view.rows import (
    Row,
    RowKind,
    build_rows,
    restore_cursor,
)
from linestage.view.frame import (
    Frame,
    FrameRow,
    Style,
)


__all__ = [
    # Intents
    "DEFAULT_KEYMAP",
    "Intent",
    "build_keymap",
    "parse_intent",
    # States
    "Browsing",
    "ConfirmingCommit",
    "ConfirmingDiscard",
    "ControllerState",
    "Quit",
    "Searching",
    # Rows
    "Row",
    "RowKind",
    "build_rows",
    "restore_cursor",
    # Frame
    "Frame",
    "FrameRow",
    "Style",
]
