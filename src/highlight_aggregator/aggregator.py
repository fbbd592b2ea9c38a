"""Proximity-based aggregation of annotation runs.

Consumes annotations in document order and merges consecutive ones whose
chapter, page and location stay within a configured proximity of the
previous annotation. Each run becomes one OutputBlock tagged with the
location range and element-index range it covers.

State machine, single pass:
  Empty        — no run open (before the first annotation with text)
  Accumulating — a run is open; each boundary flushes it and opens the next
  end of input — one final flush

``step`` is a pure transition over AggregatorState; ``aggregate`` drives it
over a whole document.

Boundary predicates, each independent (any one flushes)::

    prev.chapter  + config.chapter  < curr.chapter
    prev.page     + config.page     < curr.page
    prev.location + config.location < curr.location

A proximity of 0 splits on any increase. Equal locations never split.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Self

from highlight_aggregator.io_utils import load_json
from highlight_aggregator.location import (
    AnnotationType,
    InvalidLocationError,
    Location,
)

logger = logging.getLogger(__name__)

NOTE_PREFIX = "(Note: "
NOTE_SUFFIX = ")"
CHAPTER_PREFIX = "Chapter"


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ProximityConfig:
    """Per-axis tolerance before consecutive annotations split.

    Defaults split on any chapter or page change and tolerate a location
    drift of up to 5.
    """
    chapter: int = 0
    page: int = 0
    location: int = 5

    def __post_init__(self) -> None:
        for name in ("chapter", "page", "location"):
            value = getattr(self, name)
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValueError(f"{name} proximity must be an int, got {value!r}")
            if value < 0:
                raise ValueError(
                    f"{name} proximity must be non-negative, got {value}"
                )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Self:
        unknown = set(data) - {"chapter", "page", "location"}
        if unknown:
            raise ValueError(f"Unknown proximity keys: {sorted(unknown)}")
        return cls(**data)

    def to_dict(self) -> dict[str, int]:
        return {
            "chapter": self.chapter,
            "page": self.page,
            "location": self.location,
        }


def load_proximity_config(path: Path) -> ProximityConfig:
    """Load a ProximityConfig from a JSON object file."""
    data = load_json(path)
    if not isinstance(data, dict):
        raise ValueError(f"Proximity config {path} must be a JSON object")
    return ProximityConfig.from_dict(data)


# ---------------------------------------------------------------------------
# Input / output records
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class Annotation:
    """One heading and its companion text at ``index`` in the document.

    ``text`` is None when the heading had no following text record.
    """
    index: int
    location: Location
    text: str | None


@dataclass(frozen=True, slots=True)
class MissingCompanionText:
    """A heading skipped because no text record followed it."""
    index: int
    location: Location

    def to_dict(self) -> dict[str, Any]:
        return {"index": self.index, "location": str(self.location)}


@dataclass(frozen=True, slots=True)
class OutputBlock:
    """A finalized run: merged text plus the ranges it replaces."""
    text: str
    start_location: Location
    end_location: Location
    start_index: int
    end_index: int
    chapter_label: str | None = None

    @property
    def range(self) -> str:
        return Location.range(self.start_location, self.end_location)

    @property
    def element_range(self) -> str:
        if self.start_index == self.end_index:
            return f"e{self.start_index}"
        return f"e{self.start_index}-{self.end_index}"

    def describe(self) -> str:
        """Range annotation as appended after the text: ``(e0-4,cI,p11,l116-140)``."""
        return f"({self.element_range},{self.range})"

    def to_dict(self) -> dict[str, Any]:
        return {
            "text": self.text,
            "range": self.range,
            "start_index": self.start_index,
            "end_index": self.end_index,
            "chapter_label": self.chapter_label,
        }


@dataclass(slots=True)
class AggregationResult:
    """Blocks in the order their runs were opened, plus skipped headings."""
    blocks: list[OutputBlock] = field(default_factory=list[OutputBlock])
    skipped: list[MissingCompanionText] = field(
        default_factory=list[MissingCompanionText],
    )

    def items(self) -> Iterator[str | OutputBlock]:
        """Chapter labels, each immediately before the block it begins."""
        for block in self.blocks:
            if block.chapter_label is not None:
                yield block.chapter_label
            yield block


# ---------------------------------------------------------------------------
# Accumulator and pass state
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class AggregationAccumulator:
    """The open run: buffered text, first and last merged annotation."""
    text: str
    start_location: Location
    start_index: int
    last_location: Location
    last_index: int
    chapter_label: str | None = None

    @classmethod
    def open(
        cls, annotation: Annotation, text: str, chapter_label: str | None = None,
    ) -> Self:
        return cls(
            text=text,
            start_location=annotation.location,
            start_index=annotation.index,
            last_location=annotation.location,
            last_index=annotation.index,
            chapter_label=chapter_label,
        )

    def merge(self, annotation: Annotation, text: str) -> AggregationAccumulator:
        merged = f"{self.text} {text}" if self.text and text else self.text or text
        return replace(
            self,
            text=merged,
            last_location=annotation.location,
            last_index=annotation.index,
        )


@dataclass(frozen=True, slots=True)
class AggregatorState:
    """Threaded through ``step``: the open run and the previous location.

    ``previous`` advances on every annotation, including skipped ones.
    """
    accumulator: AggregationAccumulator | None = None
    previous: Location | None = None


@dataclass(frozen=True, slots=True)
class Boundaries:
    chapter: bool
    page: bool
    location: bool

    def __bool__(self) -> bool:
        return self.chapter or self.page or self.location


def boundaries(
    previous: Location, current: Location, config: ProximityConfig,
) -> Boundaries:
    """Evaluate the three per-axis split predicates."""
    return Boundaries(
        chapter=previous.chapter.value + config.chapter < current.chapter.value,
        page=previous.page.value + config.page < current.page.value,
        location=previous.location + config.location < current.location,
    )


def chapter_label(location: Location) -> str | None:
    """Heading text for a new chapter, or None when the book has none."""
    raw = location.chapter.raw
    if not raw:
        return None
    if raw.startswith(CHAPTER_PREFIX):
        return raw
    return f"{CHAPTER_PREFIX} {raw}"


def annotation_text(annotation: Annotation) -> str:
    """Text as it enters the buffer; notes are wrapped once per annotation."""
    text = annotation.text or ""
    if annotation.location.type == AnnotationType.NOTE:
        return f"{NOTE_PREFIX}{text}{NOTE_SUFFIX}"
    return text


# ---------------------------------------------------------------------------
# Transitions
# ---------------------------------------------------------------------------

def flush(accumulator: AggregationAccumulator | None) -> OutputBlock:
    """Finalize the open run.

    Raises:
        InvalidLocationError: no run is open.
    """
    if accumulator is None:
        raise InvalidLocationError("No open aggregation run to flush")
    block = OutputBlock(
        text=accumulator.text,
        start_location=accumulator.start_location,
        end_location=accumulator.last_location,
        start_index=accumulator.start_index,
        end_index=accumulator.last_index,
        chapter_label=accumulator.chapter_label,
    )
    logger.debug("Flush %s %s", block.describe(), block.text)
    return block


def step(
    state: AggregatorState,
    annotation: Annotation,
    config: ProximityConfig,
) -> tuple[AggregatorState, OutputBlock | None]:
    """Consume one annotation; return the new state and any flushed block.

    An annotation without text only advances ``previous``.
    """
    current = annotation.location
    previous = state.previous
    if state.accumulator is None or previous is None:
        # Opening run: a lower prior chapter forces a chapter boundary.
        previous = current.with_chapter(max(current.chapter.value - 1, 0))

    if annotation.text is None:
        logger.warning(
            "Heading at e%d (%s) has no following note text, skipping",
            annotation.index, current,
        )
        return replace(state, previous=current), None

    text = annotation_text(annotation)
    split = boundaries(previous, current, config)
    acc = state.accumulator

    if acc is not None and not split:
        return AggregatorState(acc.merge(annotation, text), current), None

    emitted = flush(acc) if acc is not None else None
    label = chapter_label(current) if split.chapter else None
    if label is not None:
        logger.info("%s", label)
    opened = AggregationAccumulator.open(annotation, text, label)
    return AggregatorState(opened, current), emitted


def aggregate(
    annotations: Iterable[Annotation],
    config: ProximityConfig | None = None,
) -> AggregationResult:
    """Merge proximal annotations of one document into OutputBlocks."""
    config = config or ProximityConfig()
    result = AggregationResult()
    state = AggregatorState()
    count = 0
    for annotation in annotations:
        count += 1
        if annotation.text is None:
            result.skipped.append(
                MissingCompanionText(annotation.index, annotation.location),
            )
        state, block = step(state, annotation, config)
        if block is not None:
            result.blocks.append(block)
    if state.accumulator is not None:
        result.blocks.append(flush(state.accumulator))
    logger.info(
        "Aggregated %d annotations into %d blocks (%d skipped)",
        count, len(result.blocks), len(result.skipped),
    )
    return result


class ProximityAggregator:
    """Holds a ProximityConfig and aggregates one document per call."""

    def __init__(self, config: ProximityConfig | None = None) -> None:
        self.config = config or ProximityConfig()

    def run(self, annotations: Iterable[Annotation]) -> AggregationResult:
        return aggregate(annotations, self.config)
