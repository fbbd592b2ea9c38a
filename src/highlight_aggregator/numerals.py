"""Numeral extraction for chapter and page fields.

Headings mix free text with the numeral they carry ("Chapter 12", "xiii",
"1. Romans", "IX. Romans"). This module pulls a single integer out of such
a string.

Match order:
  arabic — first maximal digit run, optionally signed: "  -3 " -> -3
  roman  — first letter-delimited token in canonical Roman grammar,
           case-insensitive: "ab XIV" -> 14

``parse_flexible`` tries arabic first and falls back to roman. A bare
single-letter token ("c", "i") is accepted as roman; that is a match-order
heuristic, not semantic disambiguation.
"""

from __future__ import annotations

import re

# ---------------------------------------------------------------------------
# Roman numeral utilities
# ---------------------------------------------------------------------------

ROMAN_CHAR_VALUES: dict[str, int] = {
    "i": 1, "v": 5, "x": 10, "l": 50, "c": 100, "d": 500, "m": 1000,
}


class NumeralNotFoundError(ValueError):
    """Raised when neither an arabic nor a roman numeral is present."""


def roman_char_value(ch: str) -> int:
    """Value of a single roman symbol, 0 for anything else."""
    return ROMAN_CHAR_VALUES.get(ch.lower(), 0)


def roman_to_int(s: str) -> int:
    """Convert a roman numeral string to int using subtractive pairs.

    Every character is visited; non-roman characters count as 0, so
    ``" xiiI "`` is 13 and a string without roman letters is 0. Digits are
    never roman symbols and contribute nothing.
    """
    result = 0
    i = 0
    n = len(s)
    while i < n:
        s1 = roman_char_value(s[i])
        if i + 1 < n:
            s2 = roman_char_value(s[i + 1])
            if s1 >= s2:
                result += s1
            else:
                result += s2 - s1
                i += 1
        else:
            result += s1
        i += 1
    return result


# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------

_ARABIC_RE = re.compile(r"(-?\d+)")

# Lookahead forbids the empty match; letter guards keep "Fred" or
# "Chapter" from yielding a roman value out of a single embedded letter.
_ROMAN_RE = re.compile(
    r"(?<![a-z])"
    r"((?=[mdclxvi])m*(?:c[md]|d?c{0,3})(?:x[cl]|l?x{0,3})(?:i[xv]|v?i{0,3}))"
    r"(?![a-z])",
    re.IGNORECASE,
)


def matches_arabic(s: str) -> bool:
    """True if ``s`` contains at least one digit."""
    return _ARABIC_RE.search(s) is not None


def matches_roman(s: str) -> bool:
    """True if ``s`` contains a roman numeral token."""
    return _ROMAN_RE.search(s) is not None


def parse_arabic(s: str) -> int | None:
    """Return the first signed digit run in ``s``, or None."""
    m = _ARABIC_RE.search(s)
    if m is None:
        return None
    return int(m.group(1))


def parse_roman(s: str) -> int | None:
    """Return the value of the first roman numeral token in ``s``, or None."""
    m = _ROMAN_RE.search(s)
    if m is None:
        return None
    return roman_to_int(m.group(1))


def parse_flexible(s: str) -> int:
    """Extract an integer from ``s``: arabic first, then roman.

    Raises:
        NumeralNotFoundError: if ``s`` holds neither form.
    """
    val = parse_arabic(s)
    if val is None:
        val = parse_roman(s)
    if val is None:
        raise NumeralNotFoundError(f"No integer found in {s!r}")
    return val
