"""Textual terminal shell.

Hands key presses to the controller as key names and draws the controller's
Frame: a title line, the diff rows and one status line. Every key is handled
to completion before the next frame is drawn.
"""

from typing import Optional

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.widgets import Static

from linestage.view.frame import Frame, FrameRow, Style


# Textual key names of the non-printable keys the controller understands
_SPECIAL_KEYS = {
    "up": "up",
    "down": "down",
    "left": "left",
    "right": "right",
    "pageup": "pageup",
    "pagedown": "pagedown",
    "home": "home",
    "end": "end",
    "enter": "enter",
    "tab": "tab",
    "escape": "escape",
    "backspace": "backspace",
    "delete": "delete",
    "space": "space",
    "ctrl+c": "ctrl-c",
}

_STYLES = {
    Style.ADDITION: "green",
    Style.FILE_ADDED: "bold green",
    Style.DELETION: "red",
    Style.FILE_DELETED: "bold red",
    Style.ERROR: "bold red",
    Style.FILE_MODIFIED: "bold yellow",
    Style.HUNK: "cyan",
    Style.FILE_RENAMED: "bold cyan",
    Style.TITLE: "bold white on blue",
    Style.PLACEHOLDER: "dim",
}


def decode_key(key: str, character: Optional[str] = None) -> Optional[str]:
    """Translate a textual key event into a controller key name.

    Returns:
        "up", "enter", "space", "ctrl-c", ... for special keys, the character
        itself for printable input, None for anything else.
    """
    if key in _SPECIAL_KEYS:
        return _SPECIAL_KEYS[key]
    if character is not None and len(character) == 1 and character.isprintable():
        return character
    return None


def _style(style: Style) -> str:
    return _STYLES.get(style, "")


def render_rows(rows: list[FrameRow]) -> Text:
    """Render frame rows, one per line, the cursor row in reverse video."""
    text = Text(no_wrap=True, overflow="crop")
    for i, row in enumerate(rows):
        if i:
            text.append("\n")
        marker = "*" if row.marked else " "
        style = _style(row.style)
        if row.cursor:
            style = f"{style} reverse".strip()
        text.append(f"{marker}{row.text}".replace("\t", "    "), style=style)
    return text


class LinestageApp(App):
    """Full screen view driven by a Controller."""

    CSS = """
App {
    overflow: hidden;
}
#title {
    height: 1;
    width: 100%;
}
#rows {
    height: 1fr;
}
#status {
    height: 1;
    width: 100%;
}
"""

    ENABLE_COMMAND_PALETTE = False

    def __init__(self, controller, **kwargs) -> None:
        super().__init__(**kwargs)
        self.controller = controller
        self._widgets_composed = False

    def compose(self) -> ComposeResult:
        yield Static(id="title")
        yield Static(id="rows")
        yield Static(id="status")

    def on_mount(self) -> None:
        self._widgets_composed = True
        self._draw()

    def on_resize(self, event: events.Resize) -> None:
        # The first resize can arrive before the widgets exist
        if self._widgets_composed:
            self._draw()

    def on_key(self, event: events.Key) -> None:
        event.prevent_default()
        event.stop()
        key = decode_key(event.key, event.character)
        if key is not None:
            self.controller.handle(key)
        self._draw()

    # ctrl+c and ctrl+q arrive as app bindings rather than key events
    def action_quit(self) -> None:
        self.controller.handle("ctrl-c")
        self._draw()

    def action_help_quit(self) -> None:
        self.action_quit()

    def _draw(self) -> None:
        if self.controller.finished:
            self.exit(self.controller.exit_code)
            return
        # Title and status line take one row each
        self.controller.resize(self.size.height - 2)
        frame: Frame = self.controller.frame()
        self.query_one("#title", Static).update(Text(frame.title, style=_style(Style.TITLE)))
        self.query_one("#rows", Static).update(render_rows(frame.rows))
        text, style = frame.bottom_line()
        self.query_one("#status", Static).update(Text(text, style=_style(style)))


def run_terminal(controller) -> int:
    """Run the interactive view until the controller reaches its Quit state.

    Returns:
        The controller's exit code.
    """
    exit_code = LinestageApp(controller).run()
    return controller.exit_code if exit_code is None else exit_code
