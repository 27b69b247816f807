"""Interchange properties in java.util.Properties text form.

store_properties() writes the same escaping as ``Properties.store`` so that the
mapping engine can load the blob unchanged. The timestamp comment that
``Properties.store`` adds is left out and keys are sorted, which keeps archives
byte-identical between runs.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

_SPECIAL = {
    "\\": "\\\\",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
    "\f": "\\f",
    "=": "\\=",
    ":": "\\:",
    "#": "\\#",
    "!": "\\!",
}
_UNESCAPE = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def _unicode_escape(ch: str) -> str:
    code = ord(ch)
    if code > 0xFFFF:
        # UTF-16 サロゲートペアで出力（Java と同じ）
        code -= 0x10000
        return f"\\u{0xD800 + (code >> 10):04X}\\u{0xDC00 + (code & 0x3FF):04X}"
    return f"\\u{code:04X}"


def _escape(text: str, *, is_key: bool) -> str:
    out: list[str] = []
    for i, ch in enumerate(text):
        if ch == " ":
            out.append("\\ " if is_key or i == 0 else " ")
        elif ch in _SPECIAL:
            out.append(_SPECIAL[ch])
        elif ord(ch) < 0x20 or ord(ch) > 0x7E:
            out.append(_unicode_escape(ch))
        else:
            out.append(ch)
    return "".join(out)


def _comment_lines(comment: str) -> list[str]:
    lines = []
    for line in comment.splitlines() or [""]:
        escaped = "".join(ch if 0x20 <= ord(ch) <= 0x7E else _unicode_escape(ch) for ch in line)
        lines.append(f"#{escaped}")
    return lines


def store_properties(properties: Mapping[str, str], comment: str | None = None) -> bytes:
    """Render properties as ``key=value`` lines (ISO-8859-1, escaped).

    Args:
        properties: Property map
        comment: Optional header comment

    Returns:
        Encoded properties text
    """
    lines: list[str] = []
    if comment is not None:
        lines.extend(_comment_lines(comment))
    for key in sorted(properties):
        lines.append(f"{_escape(str(key), is_key=True)}={_escape(str(properties[key]), is_key=False)}")
    return ("\n".join(lines) + "\n").encode("latin-1")


def _logical_lines(text: str) -> list[str]:
    result: list[str] = []
    pending = ""
    for raw in _LINE_BREAK.split(text):
        line = raw.lstrip(" \t\f")
        if not pending and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2 == 1:
            pending += line[:-1]
            continue
        result.append(pending + line)
        pending = ""
    if pending:
        result.append(pending)
    return result


def _unescape(text: str) -> str:
    out: list[str] = []
    i = 0
    while i < len(text):
        ch = text[i]
        if ch != "\\" or i + 1 >= len(text):
            out.append(ch)
            i += 1
            continue
        nxt = text[i + 1]
        if nxt == "u":
            out.append(chr(int(text[i + 2 : i + 6], 16)))
            i += 6
            continue
        out.append(_UNESCAPE.get(nxt, nxt))
        i += 2
    # \uD800\uDC00 のように分割されたサロゲートペアを結合する
    return "".join(out).encode("utf-16-le", "surrogatepass").decode("utf-16-le")


def load_properties(data: bytes | str) -> dict[str, str]:
    """Parse properties text produced by store_properties() (or Java)."""
    text = data.decode("latin-1") if isinstance(data, bytes) else data
    properties: dict[str, str] = {}
    for line in _logical_lines(text):
        i = 0
        while i < len(line):
            ch = line[i]
            if ch == "\\":
                i += 2
                continue
            if ch in "=: \t\f":
                break
            i += 1
        key = line[:i]
        rest = line[i:].lstrip(" \t\f")
        if rest[:1] in ("=", ":"):
            rest = rest[1:].lstrip(" \t\f")
        properties[_unescape(key)] = _unescape(rest)
    return properties
