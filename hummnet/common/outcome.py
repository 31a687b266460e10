"""
Unavailable results and isolated-failure helpers.

A metric that cannot be computed for one network (or one species in a
network) is represented by an ``Unavailable`` value carrying a reason
tag, so that sibling results in the same batch survive.
"""

from __future__ import annotations

import logging
import warnings
from dataclasses import dataclass
from typing import Any, Callable, List, Tuple, Union

import numpy as np

logger = logging.getLogger(__name__)

# Reason tags
TOO_SMALL = "network too small"
COMPUTATION_ERROR = "computation-error"
BUILD_FAILED = "build-failed"
NO_SHARED_SPECIES = "no shared species"
EMPTY_NETWORKS = "empty networks"
NO_OBSERVED = "no observed interactions"
MISSING_PAIR = "missing paired period"
MISSING_RAW_COUNTS = "missing raw counts"


@dataclass(frozen=True)
class Unavailable:
    """
    Marker for a value that is undefined for this network.

    Attributes:
        reason: One of the reason tags defined in this module
        detail: Free-text explanation (exception message, warning text)
    """

    reason: str
    detail: str = ""

    def __bool__(self) -> bool:
        return False

    def __str__(self) -> str:
        if self.detail:
            return f"{self.reason}: {self.detail}"
        return self.reason


MetricValue = Union[float, Unavailable]


def is_available(value: Any) -> bool:
    return not isinstance(value, Unavailable)


def split_value(value: MetricValue) -> Tuple[float | None, str | None]:
    """Split a metric value into the (value, unavailable_reason) table columns."""
    if isinstance(value, Unavailable):
        return None, value.reason
    return float(value), None


def safely(fn: Callable[..., float], *args, **kwargs) -> MetricValue:
    """
    Run a numeric computation, converting failures into ``Unavailable``.

    Floating point problems (division by zero, invalid operations) are
    raised rather than silently producing inf/nan, then captured.
    """
    try:
        with np.errstate(divide="raise", invalid="raise", over="raise"):
            result = fn(*args, **kwargs)
    except ArithmeticError as exc:
        logger.debug("%s failed: %s", getattr(fn, "__name__", fn), exc)
        return Unavailable(COMPUTATION_ERROR, str(exc) or type(exc).__name__)

    if isinstance(result, Unavailable):
        return result
    if not np.isfinite(result):
        return Unavailable(COMPUTATION_ERROR, f"non-finite result {result}")
    return float(result)


def quietly(fn: Callable[..., Any], *args, **kwargs) -> Tuple[Any, List[str]]:
    """Run ``fn`` and return its result together with any warnings it emitted."""
    with warnings.catch_warnings(record=True) as caught:
        warnings.simplefilter("always")
        result = fn(*args, **kwargs)
    return result, [str(w.message) for w in caught]
