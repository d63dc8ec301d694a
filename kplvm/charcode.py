"""Character classes used by the scanner."""

from __future__ import annotations

import enum


class CharCode(enum.Enum):
    """The lexical class of a single input character."""

    SPACE = enum.auto()
    LETTER = enum.auto()
    DIGIT = enum.auto()
    PLUS = enum.auto()
    MINUS = enum.auto()
    TIMES = enum.auto()
    SLASH = enum.auto()
    LT = enum.auto()
    GT = enum.auto()
    EXCLAMATION = enum.auto()
    EQ = enum.auto()
    COMMA = enum.auto()
    PERIOD = enum.auto()
    COLON = enum.auto()
    SEMICOLON = enum.auto()
    SINGLEQUOTE = enum.auto()
    LPAR = enum.auto()
    RPAR = enum.auto()
    UNKNOWN = enum.auto()
    QUESTION = enum.auto()
    MODULE = enum.auto()


_SYMBOLS = {
    " ": CharCode.SPACE,
    "!": CharCode.EXCLAMATION,
    "%": CharCode.MODULE,
    "'": CharCode.SINGLEQUOTE,
    "(": CharCode.LPAR,
    ")": CharCode.RPAR,
    "*": CharCode.TIMES,
    "+": CharCode.PLUS,
    ",": CharCode.COMMA,
    "-": CharCode.MINUS,
    ".": CharCode.PERIOD,
    "/": CharCode.SLASH,
    ":": CharCode.COLON,
    ";": CharCode.SEMICOLON,
    "<": CharCode.LT,
    "=": CharCode.EQ,
    ">": CharCode.GT,
    "?": CharCode.QUESTION,
}


def _build_table() -> tuple[CharCode, ...]:
    table = [CharCode.UNKNOWN] * 256
    for code in range(9, 14):  # tab, line feed, vertical tab, form feed, carriage return
        table[code] = CharCode.SPACE
    for ch, cls in _SYMBOLS.items():
        table[ord(ch)] = cls
    for code in range(ord("0"), ord("9") + 1):
        table[code] = CharCode.DIGIT
    for code in range(ord("A"), ord("Z") + 1):
        table[code] = CharCode.LETTER
        table[code + 32] = CharCode.LETTER
    return tuple(table)


_TABLE = _build_table()


def char_code(ch: str | int) -> CharCode:
    """Return the class of a character given as a one-character string or a code point."""
    if isinstance(ch, str):
        if len(ch) != 1:
            raise ValueError(f"expected a single character, got {ch!r}")
        code = ord(ch)
    elif isinstance(ch, int):
        code = ch
    else:
        raise TypeError(f"expected str or int, got {type(ch).__name__}")
    if 0 <= code < len(_TABLE):
        return _TABLE[code]
    return CharCode.UNKNOWN