"""Line-oriented option edits for workflows the YAML parser cannot handle.

The scanner only understands indentation and list markers.  It tracks two
nested blocks, the target input and its ``options:`` key, each anchored to
the indentation of the line that opened it:

* the input opens on the first line whose trimmed text starts with
  ``"<name>:"`` and closes on a non-blank, non-list line indented no deeper
  than that line;
* the options block opens on a trimmed ``options:`` line inside the input
  and closes on a non-blank, non-list line indented no deeper than it.

List items inside the options block are the option values.  Replacing them
rewrites only the item lines; every other line keeps its exact bytes.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import List, Sequence, Tuple

from ..notices import NoticeLevel
from .base import EditStrategy, OptionEditor

__all__ = ["FallbackScanner", "extract", "render_item", "replace"]

_INLINE_COMMENT = re.compile(r"\s#")
_OPTIONS_KEY = re.compile(r"^options:(?:\s+#.*)?$")
_PLAIN_UNSAFE_START = set("-?:,[]{}#&*!|>'\"%@`")

# Single-character escapes allowed inside double-quoted YAML scalars.
_ESCAPES = {
    "0": "\0",
    "a": "\a",
    "b": "\b",
    "t": "\t",
    "\t": "\t",
    "n": "\n",
    "v": "\v",
    "f": "\f",
    "r": "\r",
    "e": "\x1b",
    " ": " ",
    '"': '"',
    "/": "/",
    "\\": "\\",
    "N": "\x85",
    "_": "\xa0",
    "L": "\u2028",
    "P": "\u2029",
}
_HEX_ESCAPES = {"x": 2, "u": 4, "U": 8}
_ENCODE = {
    "\\": "\\\\",
    '"': '\\"',
    "\0": "\\0",
    "\a": "\\a",
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\v": "\\v",
    "\f": "\\f",
    "\r": "\\r",
    "\x1b": "\\e",
}


@dataclass(slots=True)
class _OptionsBlock:
    key_index: int
    indent: int
    stop: int = -1
    items: List[Tuple[int, str]] = field(default_factory=list)


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip())


def _is_list_item(stripped: str) -> bool:
    return stripped == "-" or stripped.startswith("- ")


def _line_ending(line: str) -> str:
    if line.endswith("\r\n"):
        return "\r\n"
    if line.endswith(("\n", "\r")):
        return line[-1]
    return ""


def _unquote(content: str) -> str | None:
    """Return the value of a leading quoted scalar, or ``None`` if it is unterminated or malformed."""

    quote = content[0]
    chars: List[str] = []
    index = 1
    while index < len(content):
        char = content[index]
        if quote == "'" and char == "'":
            if content[index + 1 : index + 2] == "'":
                chars.append("'")
                index += 2
                continue
            return "".join(chars)
        if quote == '"' and char == "\\" and index + 1 < len(content):
            code = content[index + 1]
            width = _HEX_ESCAPES.get(code)
            if width is not None:
                digits = content[index + 2 : index + 2 + width]
                if len(digits) != width:
                    return None
                try:
                    chars.append(chr(int(digits, 16)))
                except ValueError:
                    return None
                index += 2 + width
                continue
            if code not in _ESCAPES:
                return None
            chars.append(_ESCAPES[code])
            index += 2
            continue
        if quote == '"' and char == '"':
            return "".join(chars)
        chars.append(char)
        index += 1
    return None


def _parse_item(stripped: str) -> str:
    content = stripped[1:].strip()
    if content[:1] in ("'", '"'):
        value = _unquote(content)
        if value is not None:
            return value
    match = _INLINE_COMMENT.search(content)
    if match:
        content = content[: match.start()]
    return content.rstrip()


def render_item(value: str) -> str:
    """Render ``value`` as a list-item scalar, quoting when plain would not survive."""

    plain = (
        bool(value)
        and value == value.strip()
        and value[0] not in _PLAIN_UNSAFE_START
        and ": " not in value
        and not value.endswith(":")
        and _INLINE_COMMENT.search(value) is None
        and "\n" not in value
        and "\r" not in value
    )
    if plain:
        return value
    if any(_needs_escape(char) for char in value):
        return '"' + "".join(_ENCODE.get(char) or _hex_escape(char) for char in value) + '"'
    return "'" + value.replace("'", "''") + "'"


def _needs_escape(char: str) -> bool:
    return ord(char) < 0x20 or char in "\x7f\x85\u2028\u2029"


def _hex_escape(char: str) -> str:
    if not _needs_escape(char):
        return char
    code = ord(char)
    return f"\\x{code:02x}" if code <= 0xFF else f"\\u{code:04x}"


def _scan(lines: Sequence[str], input_name: str) -> _OptionsBlock | None:
    marker = f"{input_name}:"
    input_indent: int | None = None
    block: _OptionsBlock | None = None

    for index, line in enumerate(lines):
        stripped = line.strip()
        indent = _indent_of(line)

        if input_indent is None:
            if stripped.startswith(marker):
                input_indent = indent
            continue

        if block is None:
            if stripped and indent <= input_indent and not _is_list_item(stripped):
                return None
            if _OPTIONS_KEY.match(stripped):
                block = _OptionsBlock(key_index=index, indent=indent)
            continue

        if _is_list_item(stripped):
            block.items.append((index, _parse_item(stripped)))
            continue
        if stripped and indent <= block.indent:
            block.stop = index
            return block

    if block is not None:
        block.stop = len(lines)
    return block


def extract(lines: Sequence[str], input_name: str) -> List[str]:
    """Return the options of ``input_name``; empty when they cannot be located."""

    block = _scan(lines, input_name)
    if block is None:
        return []
    return [value for _, value in block.items]


def replace(lines: Sequence[str], input_name: str, options: Sequence[str]) -> List[str]:
    """Return ``lines`` with the option items of ``input_name`` replaced."""

    block = _scan(lines, input_name)
    if block is None:
        return list(lines)

    key_line = lines[block.key_index]
    newline = _line_ending(key_line) or "\n"
    if not _line_ending(key_line):
        key_line += newline

    if block.items:
        first, last = block.items[0][0], block.items[-1][0]
    else:
        first = last = block.key_index

    prefix = " " * (block.indent + 2)
    rendered = [f"{prefix}- {render_item(value)}{newline}" for value in options]

    return [
        *lines[: block.key_index],
        key_line,
        *lines[block.key_index + 1 : first],
        *rendered,
        *lines[last + 1 :],
    ]


def _is_flow_mapping_input(lines: Sequence[str], input_name: str) -> bool:
    marker = f"{input_name}:"
    for line in lines:
        stripped = line.strip()
        if stripped.startswith(marker):
            return stripped[len(marker) :].lstrip().startswith("{")
    return False


class FallbackScanner(OptionEditor):
    """Edit option lists by indentation scanning, touching only item lines."""

    strategy = EditStrategy.FALLBACK

    def read_options(self, text: str, input_name: str) -> List[str] | None:
        lines = text.splitlines(keepends=True)
        options = extract(lines, input_name)
        if not options and _is_flow_mapping_input(lines, input_name):
            self.notices.notify(
                NoticeLevel.WARNING,
                f'Input "{input_name}" is written as a flow mapping ({{...}}); '
                "line-based editing only handles block-style inputs, leaving workflow unchanged",
            )
            return None
        if not options:
            self.notices.notify(
                NoticeLevel.WARNING,
                f'Could not locate options for input "{input_name}"; leaving workflow unchanged',
            )
            return None
        return options

    def splice(self, text: str, input_name: str, options: Sequence[str]) -> str:
        rendered = "".join(replace(text.splitlines(keepends=True), input_name, options))
        if text and not _line_ending(text) and _line_ending(rendered):
            rendered = rendered[: -len(_line_ending(rendered))]
        return rendered
