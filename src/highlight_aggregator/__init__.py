"""Kindle highlight aggregation: location parsing and proximity merging."""

from highlight_aggregator.aggregator import (
    AggregationAccumulator,
    AggregationResult,
    AggregatorState,
    Annotation,
    MissingCompanionText,
    OutputBlock,
    ProximityAggregator,
    ProximityConfig,
    aggregate,
    flush,
    load_proximity_config,
    step,
)
from highlight_aggregator.heading_parser import MalformedHeadingError, parse_heading
from highlight_aggregator.location import (
    AnnotationType,
    InvalidLocationError,
    Location,
    LocationField,
    compare,
)
from highlight_aggregator.numerals import NumeralNotFoundError, parse_flexible

__all__ = [
    "AggregationAccumulator",
    "AggregationResult",
    "AggregatorState",
    "Annotation",
    "AnnotationType",
    "InvalidLocationError",
    "Location",
    "LocationField",
    "MalformedHeadingError",
    "MissingCompanionText",
    "NumeralNotFoundError",
    "OutputBlock",
    "ProximityAggregator",
    "ProximityConfig",
    "aggregate",
    "compare",
    "flush",
    "load_proximity_config",
    "parse_flexible",
    "parse_heading",
    "step",
]
