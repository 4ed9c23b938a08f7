"""Path quoting as used in git diff headers.

git wraps a path in double quotes and escapes it C-style when it contains a
double quote, a backslash, a tab, a newline or another control character.
Non-ASCII bytes are left alone with core.quotePath=false, and written as
octal escapes otherwise.
"""

from linestage.diff.exceptions import MalformedDiff


_ESCAPES = {
    "a": 0x07,
    "b": 0x08,
    "t": 0x09,
    "n": 0x0A,
    "v": 0x0B,
    "f": 0x0C,
    "r": 0x0D,
    '"': 0x22,
    "\\": 0x5C,
}

_QUOTED = {chr(code): name for name, code in _ESCAPES.items()}


def unquote_path(path: str) -> str:
    """Undo git's C-style quoting; unquoted paths are returned unchanged.

    Raises:
        MalformedDiff: If a quoted path is not terminated or has a bad escape.
    """
    if not path.startswith('"'):
        return path
    if len(path) < 2 or not path.endswith('"'):
        raise MalformedDiff(f"unterminated quoted path {path!r}")

    body = path[1:-1]
    out = bytearray()
    i = 0
    while i < len(body):
        char = body[i]
        if char != "\\":
            out.extend(char.encode("utf-8"))
            i += 1
            continue
        escape = body[i + 1:i + 2]
        if escape in _ESCAPES:
            out.append(_ESCAPES[escape])
            i += 2
        elif escape.isdigit() and len(body[i + 1:i + 4]) == 3:
            out.append(int(body[i + 1:i + 4], 8) & 0xFF)
            i += 4
        else:
            raise MalformedDiff(f"invalid escape in quoted path {path!r}")
    return out.decode("utf-8", errors="surrogateescape")


def quote_path(path: str) -> str:
    """Quote a path the way git does when writing a diff header."""
    if not any(char in _QUOTED or ord(char) < 0x20 or ord(char) == 0x7F for char in path):
        return path
    parts = []
    for char in path:
        if char in _QUOTED:
            parts.append("\\" + _QUOTED[char])
        elif ord(char) < 0x20 or ord(char) == 0x7F:
            parts.append(f"\\{ord(char):03o}")
        else:
            parts.append(char)
    return '"' + "".join(parts) + '"'
