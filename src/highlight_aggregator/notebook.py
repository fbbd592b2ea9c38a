"""Kindle notebook export reading: detection, markup repair, extraction.

A notebook export pairs every heading with the text that follows it::

    <h3 class='noteHeading'>Note - I &gt; Page 11 &middot; Location 116</div><div class='noteText'>This is a note</h3>

The end tags are crossed, so lines are repaired before parsing. Headings
are located with a CSS selector (default ``h3.noteHeading``); the next
sibling element with class ``noteText`` is the companion text.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import TypeAlias

from bs4 import BeautifulSoup
from bs4.element import Tag

from highlight_aggregator.aggregator import Annotation
from highlight_aggregator.heading_parser import parse_heading
from highlight_aggregator.text_cleanup import clean_note_text

logger = logging.getLogger(__name__)

DEFAULT_SELECTOR = "h3.noteHeading"
NOTE_TEXT_CLASS = "noteText"

# ---------------------------------------------------------------------------
# Line repair
# ---------------------------------------------------------------------------

# (predicate, replacement); a None replacement deletes the line.
LineEdit: TypeAlias = tuple[Callable[[str], bool], str | None]

LINE_EDITS: list[LineEdit] = [
    (lambda line: "<?xml version=" in line, None),
    (
        lambda line: line.startswith("<!DOCTYPE html PUBLIC "),
        "<!DOCTYPE html>",
    ),
    (lambda line: line.startswith("<html xmlns="), '<html lang="en">'),
    (
        lambda line: line.startswith("<meta http-equiv="),
        '<meta http-equiv="Content-Type" content="text/html; charset=UTF-8">',
    ),
]

_SWAP_PLACEHOLDER = "\x00"


def swap(line: str, first: str, second: str) -> str:
    """Exchange every ``first`` with ``second`` when the line has both."""
    if first not in line or second not in line:
        return line
    line = line.replace(first, _SWAP_PLACEHOLDER)
    line = line.replace(second, first)
    return line.replace(_SWAP_PLACEHOLDER, second)


def repair_lines(lines: Iterable[str]) -> Iterator[str]:
    """Apply LINE_EDITS then uncross ``</h3>`` / ``</div>`` end tags."""
    for line in lines:
        edited: str | None = line
        for matches, replacement in LINE_EDITS:
            if matches(line):
                edited = replacement
                break
        if edited is not None:
            yield swap(edited, "</h3>", "</div>")


def repair_markup(html: str) -> str:
    return "\n".join(repair_lines(html.splitlines()))


# ---------------------------------------------------------------------------
# Detection and extraction
# ---------------------------------------------------------------------------

@dataclass(slots=True)
class Notebook:
    """Annotations extracted from one notebook export."""
    title: str
    annotations: list[Annotation] = field(default_factory=list[Annotation])


def read_file(fpath: Path) -> str:
    """Read a text file with encoding fallback: UTF-8 -> CP1252 -> replace."""
    try:
        return fpath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        try:
            return fpath.read_text(encoding="cp1252")
        except UnicodeDecodeError:
            return fpath.read_text(encoding="utf-8", errors="replace")


def is_kindle_notebook(html: str) -> bool:
    """True if the first style block carries the Kindle notebook classes."""
    soup = BeautifulSoup(html, "html.parser")
    style = soup.find("style")
    if style is None:
        return False
    css = style.get_text()
    return "bookTitle" in css and "bodyContainer" in css


def _collapse(text: str) -> str:
    return " ".join(text.split())


def _companion_text(heading: Tag) -> str | None:
    sibling = heading.find_next_sibling()
    if sibling is None:
        logger.debug("Heading %r has no next element", _collapse(heading.get_text()))
        return None
    classes = sibling.get("class") or []
    if NOTE_TEXT_CLASS not in classes:
        logger.debug(
            "Expected %s after heading %r, found class %s",
            NOTE_TEXT_CLASS, _collapse(heading.get_text()), classes,
        )
        return None
    return clean_note_text(_collapse(sibling.get_text()))


def parse_notebook(html: str, selector: str = DEFAULT_SELECTOR) -> Notebook:
    """Extract (heading, text) annotations from repaired notebook markup.

    Raises the heading parser's errors unchanged; one bad heading aborts
    the document.
    """
    soup = BeautifulSoup(html, "html.parser")
    title_el = soup.select_one("div.bookTitle")
    notebook = Notebook(title=_collapse(title_el.get_text()) if title_el else "")
    for index, heading in enumerate(soup.select(selector)):
        location = parse_heading(_collapse(heading.get_text()))
        notebook.annotations.append(
            Annotation(index, location, _companion_text(heading)),
        )
    logger.debug("Extracted %d annotations from %r", len(notebook.annotations), notebook.title)
    return notebook


def load_notebook(path: Path, selector: str = DEFAULT_SELECTOR) -> Notebook:
    """Read, repair and extract one notebook export file."""
    return parse_notebook(repair_markup(read_file(path)), selector)
