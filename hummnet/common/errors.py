"""
Error taxonomy.

Input errors are raised while building a matrix and are fatal only to
the work item that produced them. Precondition errors mean the calling
code is wired incorrectly and always propagate.

Conditions that merely make a metric undefined (too-small networks, no
shared species, ...) are not exceptions; see ``hummnet.common.outcome``.
"""

from __future__ import annotations


class NetworkInputError(ValueError):
    """Records cannot be turned into an interaction matrix."""


class EmptyInputError(NetworkInputError):
    """No records were supplied, so no rows or columns can be derived."""


class DuplicateCellError(NetworkInputError):
    """Two records address the same (row, column) cell."""

    def __init__(self, row: str, column: str):
        super().__init__(
            f"Duplicate records for cell ({row!r}, {column!r}); "
            "aggregate records before building the matrix"
        )
        self.row = row
        self.column = column


class MissingWeightError(NetworkInputError):
    """A record lacks the weight field requested for the matrix."""


class NonIntegerWeightError(NetworkInputError):
    """An integer-only computation received fractional weights."""


class PreconditionError(ValueError):
    """A function was called with arguments its caller should have prepared."""


class NonCountWeightError(PreconditionError):
    """The completeness estimator received weights that are not raw counts."""


class LabelMismatchError(PreconditionError):
    """Two matrices were compared without being aligned first."""
