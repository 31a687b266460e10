"""
Shared building blocks.

- Interaction records and grouping helpers
- Error taxonomy (input errors vs. precondition errors)
- Unavailable results and isolated-failure helpers
- Schema base class for configuration
"""

from .errors import (
    DuplicateCellError,
    EmptyInputError,
    LabelMismatchError,
    MissingWeightError,
    NetworkInputError,
    NonCountWeightError,
    NonIntegerWeightError,
    PreconditionError,
)
from .outcome import MetricValue, Unavailable, is_available, quietly, safely
from .records import InteractionRecord, aggregate_records, group_records
from .schema_utils import SchemaClass

__all__ = [
    "DuplicateCellError",
    "EmptyInputError",
    "InteractionRecord",
    "LabelMismatchError",
    "MetricValue",
    "MissingWeightError",
    "NetworkInputError",
    "NonCountWeightError",
    "NonIntegerWeightError",
    "PreconditionError",
    "SchemaClass",
    "Unavailable",
    "aggregate_records",
    "group_records",
    "is_available",
    "quietly",
    "safely",
]
