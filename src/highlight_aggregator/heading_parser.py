"""Parse Kindle notebook headings into Locations.

Heading grammar (punctuation varies between books)::

    <Kind> [- <chapter>] [> ]Page <page> · Location <loc>

Examples::

    "Note - I > Page 11 · Location 116"
    "Highlight (yellow) - XIX > Page xiii · Location 144"
    "Highlight - Page xiii · Location 144"      # no chapter
    "Highlight (yellow) - The Days of Empire, 1870–1918 > Page 2 · Location 238"
    "Page 7"                                    # minimal export, no location

The location value is always arabic; no roman fallback is attempted.
"""

from __future__ import annotations

import re

from highlight_aggregator.location import AnnotationType, Location

CHAPTER_OPEN = "- "
CHAPTER_CLOSE = ">"
PAGE_TOKEN = "Page"
PAGE_CLOSE = "·"
LOCATION_TOKEN = "Location"

_LOCATION_VALUE_RE = re.compile(r"-?\d+")


class MalformedHeadingError(ValueError):
    """Raised when a heading's location value is not an arabic integer."""


def parse_kind(heading: str) -> AnnotationType:
    """Note if the heading starts with "Note", otherwise Highlight."""
    if heading.startswith("Note"):
        return AnnotationType.NOTE
    return AnnotationType.HIGHLIGHT


def split_heading(heading: str) -> tuple[str, str, str | None]:
    """Return trimmed (chapter, page, location) substrings.

    Chapter and page are "" when absent; location is None when the
    heading has no location token at all.
    """
    chapter = ""
    page_search_from = 0
    dash_pos = heading.find(CHAPTER_OPEN)
    if dash_pos != -1:
        gt_pos = heading.find(CHAPTER_CLOSE, dash_pos)
        if gt_pos != -1:
            chapter = heading[dash_pos + 1:gt_pos].strip()
            page_search_from = gt_pos

    loc_pos = heading.rfind(LOCATION_TOKEN)

    page = ""
    page_pos = heading.find(PAGE_TOKEN, page_search_from)
    if page_pos != -1:
        start = page_pos + len(PAGE_TOKEN)
        end = heading.find(PAGE_CLOSE, start)
        if end == -1:
            end = loc_pos if loc_pos > start else len(heading)
        page = heading[start:end].strip()

    location: str | None = None
    if loc_pos != -1:
        location = heading[loc_pos + len(LOCATION_TOKEN):].strip()
    return chapter, page, location


def parse_location_value(heading: str, value: str | None) -> int:
    if value is None:
        return 0
    if not _LOCATION_VALUE_RE.fullmatch(value):
        raise MalformedHeadingError(
            f"Location value {value!r} is not an integer in heading {heading!r}"
        )
    return int(value)


def parse_heading(heading: str) -> Location:
    """Parse one heading string into a Location.

    Raises:
        MalformedHeadingError: location value present but not an integer.
        NumeralNotFoundError: page text carries no numeral.
        InvalidLocationError: a numeric field is negative.
    """
    heading = heading.strip()
    chapter, page, location = split_heading(heading)
    return Location.from_parts(
        parse_kind(heading),
        chapter,
        page,
        parse_location_value(heading, location),
    )
