"""Location value types for annotation headings.

A Location pins an annotation to its type and chapter/page/location triple.
Chapter and page keep their raw text (roman styling such as "IX" or "xiii"
survives for display) alongside the integer used for ordering.

Type hierarchy:
  AnnotationType — Highlight (author text) or Note (reader text)
  LocationField  — {raw, value} pair; value is always derived from raw
  Location       — (type, chapter, page, location), totally ordered

Ordering and equality use ``(type, chapter.value, page.value, location)``;
raw strings never take part.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Self

from highlight_aggregator.numerals import NumeralNotFoundError, parse_flexible

logger = logging.getLogger(__name__)


class InvalidLocationError(ValueError):
    """Raised when a location field would be negative or a run is missing."""


class AnnotationType(IntEnum):
    """Annotation kind; the int value is the ordering rank."""

    HIGHLIGHT = 0
    NOTE = 1

    @property
    def label(self) -> str:
        return self.name.title()


# ---------------------------------------------------------------------------
# LocationField — raw text plus derived value
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True, order=True)
class LocationField:
    """A chapter or page field: raw text for display, value for comparison.

    An empty ``raw`` means the field was absent in the source; its value
    is 0.

    Invariants (enforced in __post_init__):
        - raw is a str (never None)
        - value >= 0
    """
    raw: str = field(compare=False)
    value: int

    def __post_init__(self) -> None:
        if not isinstance(self.raw, str):
            raise InvalidLocationError(
                f"raw field text must be a string, got {self.raw!r}"
            )
        if self.value < 0:
            raise InvalidLocationError(
                f"field value must be non-negative, got {self.value} "
                f"(raw={self.raw!r})"
            )

    @classmethod
    def parse(cls, raw: str, *, lenient: bool = False) -> Self:
        """Build a field from raw heading text.

        Args:
            raw: Trimmed field text, possibly empty.
            lenient: If True, a missing numeral or a negative one yields 0
                instead of an error. Used for chapters, which are often
                plain titles ("Prologue").

        Raises:
            NumeralNotFoundError: non-lenient and no numeral in ``raw``.
            InvalidLocationError: non-lenient and the numeral is negative.
        """
        if not raw:
            return cls(raw, 0)
        try:
            value = parse_flexible(raw)
        except NumeralNotFoundError:
            if not lenient:
                raise
            logger.debug("No numeral in %r, using 0", raw)
            return cls(raw, 0)
        if lenient and value < 0:
            value = 0
        return cls(raw, value)

    @classmethod
    def from_int(cls, value: int) -> Self:
        return cls(str(value), value)


# ---------------------------------------------------------------------------
# Location
# ---------------------------------------------------------------------------

_FORMAT_CODES = frozenset("tcpl")


@dataclass(frozen=True, slots=True, order=True)
class Location:
    """Type and chapter/page/location of one annotation.

    Usage::

        loc = Location.from_parts(AnnotationType.NOTE, "I", "11", 116)
        str(loc)          # "cI,p11,l116"
        loc.format("lp")  # "l116,p11"
    """
    type: AnnotationType
    chapter: LocationField
    page: LocationField
    location: int

    def __post_init__(self) -> None:
        if self.location < 0:
            raise InvalidLocationError(
                f"location must be non-negative, got {self.location}"
            )

    @classmethod
    def from_parts(
        cls,
        type: AnnotationType,
        chapter_raw: str,
        page_raw: str,
        location: int,
    ) -> Self:
        """Build a Location from trimmed heading substrings.

        Chapters without a number (or with a negative one) fall back to 0.
        Pages must carry a numeral when present.
        """
        return cls(
            type,
            LocationField.parse(chapter_raw, lenient=True),
            LocationField.parse(page_raw),
            location,
        )

    @classmethod
    def from_ints(
        cls, type: AnnotationType, chapter: int, page: int, location: int,
    ) -> Self:
        return cls(
            type,
            LocationField.from_int(chapter),
            LocationField.from_int(page),
            location,
        )

    @property
    def chapter_raw(self) -> str:
        return self.chapter.raw

    @property
    def page_raw(self) -> str:
        return self.page.raw

    def with_chapter(self, chapter: int) -> Location:
        """Copy with a numeric chapter replacing this one."""
        return Location(
            self.type, LocationField.from_int(chapter), self.page, self.location,
        )

    def __str__(self) -> str:
        if self.chapter.raw:
            return f"c{self.chapter.raw},p{self.page.raw},l{self.location}"
        return f"p{self.page.raw},l{self.location}"

    def format(self, fields: str) -> str:
        """Render only the requested fields, in order, comma-joined.

        Codes: t (type), c (chapter), p (page), l (location).
        For example ``"lp"`` produces ``"l141,p15"``.
        """
        parts: list[str] = []
        for code in fields:
            if code not in _FORMAT_CODES:
                raise ValueError(f"Unknown location field code {code!r}")
            if code == "t":
                parts.append(self.type.label)
            elif code == "c":
                parts.append(f"c{self.chapter.raw}")
            elif code == "p":
                parts.append(f"p{self.page.raw}")
            else:
                parts.append(f"l{self.location}")
        return ",".join(parts)

    @staticmethod
    def range(start: Location, end: Location) -> str:
        """Compact interval between two locations.

        ``cI,p12,l150`` .. ``cII,p24,l200`` renders ``cI-II,p12-24,l150-200``.
        The chapter segment appears only when both ends have one.
        """
        parts: list[str] = []
        if start.chapter.raw and end.chapter.raw:
            parts.append("c" + _span(start.chapter.raw, end.chapter.raw))
        parts.append("p" + _span(start.page.raw, end.page.raw))
        parts.append("l" + _span(str(start.location), str(end.location)))
        return ",".join(parts)


def _span(first: str, last: str) -> str:
    return first if first == last else f"{first}-{last}"


def compare(a: Location | None, b: Location | None) -> int:
    """Three-way compare; None sorts before any location."""
    if a is None:
        return 0 if b is None else -1
    if b is None:
        return 1
    if a == b:
        return 0
    return -1 if a < b else 1
