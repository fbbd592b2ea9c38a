"""Tests for highlight_aggregator.heading_parser — headings from several books."""
from __future__ import annotations

import pytest

from highlight_aggregator.heading_parser import (
    MalformedHeadingError,
    parse_heading,
    parse_kind,
    split_heading,
)
from highlight_aggregator.location import AnnotationType, InvalidLocationError, Location
from highlight_aggregator.numerals import NumeralNotFoundError

H = AnnotationType.HIGHLIGHT
N = AnnotationType.NOTE


class TestParseKind:
    def test_note(self) -> None:
        assert parse_kind("Note - I > Page 11 · Location 116") is N

    def test_highlight(self) -> None:
        assert parse_kind("Highlight (yellow) - Page 3 · Location 9") is H

    def test_unknown_prefix_defaults_to_highlight(self) -> None:
        assert parse_kind("Bookmark - Page 3 · Location 9") is H
        assert parse_kind("Page 7") is H


class TestSplitHeading:
    def test_full(self) -> None:
        assert split_heading("Note - I > Page 11 · Location 116") == ("I", "11", "116")

    def test_no_chapter_delimiter(self) -> None:
        assert split_heading("Highlight - Page xiii · Location 144") == ("", "xiii", "144")

    def test_minimal(self) -> None:
        assert split_heading("Page 7") == ("", "7", None)

    def test_chapter_with_en_dash(self) -> None:
        chapter, page, loc = split_heading(
            "Highlight (yellow) - The Days of Empire, 1870–1918 > Page 2 · Location 238"
        )
        assert chapter == "The Days of Empire, 1870–1918"
        assert page == "2"
        assert loc == "238"


class TestParseHeading:
    def test_note_roman_chapter(self) -> None:
        loc = parse_heading("Note - I > Page 11 · Location 116")
        assert loc.type is N
        assert loc.chapter_raw == "I"
        assert loc.chapter.value == 1
        assert loc.page.value == 11
        assert loc.location == 116

    def test_roman_page(self) -> None:
        assert parse_heading("Note - 23 > Page xiii · Location 144") == Location.from_ints(N, 23, 13, 144)
        assert parse_heading("Highlight - XIX > Page xiii · Location 144") == Location.from_ints(H, 19, 13, 144)

    def test_no_chapter(self) -> None:
        loc = parse_heading("Highlight - Page xiii · Location 144")
        assert loc.chapter_raw == ""
        assert loc.chapter.value == 0
        assert loc.page.value == 13
        assert loc.location == 144

    def test_chapter_with_title(self) -> None:
        loc = parse_heading("Highlight - 1. Romans > Page 3 · Location 210")
        assert loc.chapter_raw == "1. Romans"
        assert loc.chapter.value == 1
        loc = parse_heading("Note - IX. Romans > Page 3 · Location 210")
        assert loc.chapter_raw == "IX. Romans"
        assert loc.chapter.value == 9

    def test_textual_chapter_is_zero(self) -> None:
        loc = parse_heading("Highlight (yellow) - Prologue > Page 1 · Location 12")
        assert loc.chapter_raw == "Prologue"
        assert loc.chapter.value == 0

    def test_styled_kind(self) -> None:
        loc = parse_heading("Highlight (yellow) - I > Page 13 · Location 144")
        assert loc.type is H
        assert str(loc) == "cI,p13,l144"

    def test_minimal_page_only(self) -> None:
        loc = parse_heading("Page 7")
        assert loc == Location.from_parts(H, "", "7", 0)
        assert loc.chapter_raw == ""
        assert loc.location == 0

    def test_non_numeric_location(self) -> None:
        with pytest.raises(MalformedHeadingError, match="not an integer"):
            parse_heading("Highlight - Page 3 · Location xiv")

    def test_empty_location_value(self) -> None:
        with pytest.raises(MalformedHeadingError):
            parse_heading("Highlight - Page 3 · Location")

    def test_negative_location(self) -> None:
        with pytest.raises(InvalidLocationError):
            parse_heading("Highlight - Page 3 · Location -4")

    def test_page_without_numeral(self) -> None:
        with pytest.raises(NumeralNotFoundError):
            parse_heading("Highlight - Page Fred · Location 4")
