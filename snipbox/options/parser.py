"""
Parser for the ``key=value`` run options DSL.

Options are whitespace-separated pairs::

    version=3.8 bundle=none
    flags="-O2 -march=native" note="say \\"hi\\""

Keys are identifiers (a letter or underscore followed by letters, digits or
underscores). Values are either a double-quoted string, where only ``\\\\``
and ``\\"`` are recognised escapes, or a non-empty run of characters that are
neither a space nor a double quote.
"""

from __future__ import annotations

import re
from collections.abc import Mapping

from ..core.exceptions import OptionsParseError

Options = dict[str, str]

_IDENTIFIER = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")
_BARE_VALUE = re.compile(r'[^ "]+')
_SEPARATOR = re.compile(r"[ \t\r\n]+")
_ESCAPES = {"\\": "\\", '"': '"'}


class _Scanner:
    """Cursor over the options text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    @property
    def done(self) -> bool:
        return self.pos >= len(self.text)

    def match(self, pattern: re.Pattern[str]) -> str | None:
        m = pattern.match(self.text, self.pos)
        if m is None:
            return None
        self.pos = m.end()
        return m.group()

    def peek(self) -> str:
        return self.text[self.pos] if not self.done else ""

    def error(self, message: str, offset: int | None = None) -> OptionsParseError:
        return OptionsParseError(message, self.pos if offset is None else offset)


def _quoted_value(scanner: _Scanner) -> str:
    start = scanner.pos
    scanner.pos += 1  # opening quote
    chars: list[str] = []
    while not scanner.done:
        ch = scanner.peek()
        if ch == '"':
            scanner.pos += 1
            return "".join(chars)
        if ch == "\\":
            escaped = scanner.text[scanner.pos + 1 : scanner.pos + 2]
            if escaped not in _ESCAPES:
                raise scanner.error(f"invalid escape sequence \\{escaped}")
            chars.append(_ESCAPES[escaped])
            scanner.pos += 2
            continue
        chars.append(ch)
        scanner.pos += 1
    raise scanner.error("unterminated quoted value", start)


def _pair(scanner: _Scanner) -> tuple[str, str] | None:
    """Parse one ``key=value`` pair, or return None if no pair starts here."""
    start = scanner.pos
    key = scanner.match(_IDENTIFIER)
    if key is None or scanner.peek() != "=":
        scanner.pos = start
        return None
    scanner.pos += 1

    if scanner.peek() == '"':
        return key, _quoted_value(scanner)

    value = scanner.match(_BARE_VALUE)
    if value is None:
        raise scanner.error(f"missing value for {key!r}")
    return key, value


def parse_options(text: str) -> Options:
    """
    Parse an options string into a mapping.

    Args:
        text: Raw options text. The empty string is valid.

    Returns:
        Mapping of option key to decoded value

    Raises:
        OptionsParseError: on malformed input, duplicate keys, or trailing input
    """
    scanner = _Scanner(text)
    options: Options = {}

    pair = _pair(scanner)
    while pair is not None:
        key, value = pair
        if key in options:
            raise OptionsParseError(f"duplicate key {key!r}", scanner.pos)
        options[key] = value

        before_separator = scanner.pos
        if scanner.match(_SEPARATOR) is None:
            break
        pair = _pair(scanner)
        if pair is None:
            # Trailing whitespace is allowed; anything after it is not.
            scanner.pos = before_separator
            break

    scanner.match(_SEPARATOR)
    if not scanner.done:
        raise scanner.error(f"did not consume entire input: {scanner.text[scanner.pos:]!r}")
    return options


def _needs_quotes(value: str) -> bool:
    return not value or _BARE_VALUE.fullmatch(value) is None


def format_options(options: Mapping[str, str]) -> str:
    """Render a mapping back into options text that parses to an equal mapping."""
    parts = []
    for key, value in options.items():
        if _IDENTIFIER.fullmatch(key) is None:
            raise ValueError(f"not a valid option key: {key!r}")
        if _needs_quotes(value):
            escaped = value.replace("\\", "\\\\").replace('"', '\\"')
            value = f'"{escaped}"'
        parts.append(f"{key}={value}")
    return " ".join(parts)
