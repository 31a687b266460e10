"""
Bipartite interaction matrices.

Rows are plants (or pollen morphotypes), columns are hummingbird species.
Labels are always sorted lexicographically so that matrices built from
the same records are identical regardless of record order, and pollen
and camera matrices of the same replicate line up.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import Dict, Tuple

import numpy as np

from hummnet.common.errors import (
    DuplicateCellError,
    EmptyInputError,
    MissingWeightError,
)
from hummnet.common.records import WEIGHT_FIELDS, InteractionRecord


class InteractionMatrix:
    """
    Immutable weighted bipartite matrix with named rows and columns.

    The underlying array is read-only; operations that change shape or
    weighting return a new matrix.
    """

    def __init__(
        self,
        values: np.ndarray,
        rows: Sequence[str],
        columns: Sequence[str],
    ):
        """
        Initialize matrix.

        Args:
            values: Array of shape (len(rows), len(columns))
            rows: Ordered, duplicate-free row labels
            columns: Ordered, duplicate-free column labels
        """
        array = np.array(values, dtype=float)
        if array.size == 0:
            array = array.reshape(len(rows), len(columns))

        if array.ndim != 2:
            raise ValueError(f"Matrix must be 2-dimensional, got {array.ndim}")
        if array.shape != (len(rows), len(columns)):
            raise ValueError(
                f"Matrix shape {array.shape} does not match "
                f"{len(rows)} row labels and {len(columns)} column labels"
            )
        if len(set(rows)) != len(rows) or len(set(columns)) != len(columns):
            raise ValueError("Row and column labels must be unique")
        if np.any(~np.isfinite(array)) or np.any(array < 0):
            raise ValueError("Matrix weights must be finite and non-negative")

        array.setflags(write=False)
        self._values = array
        self._rows = tuple(rows)
        self._columns = tuple(columns)

    @classmethod
    def empty(cls) -> "InteractionMatrix":
        """Matrix with no rows and no columns (sampling type absent)."""
        return cls(np.zeros((0, 0)), (), ())

    @property
    def values(self) -> np.ndarray:
        return self._values

    @property
    def rows(self) -> Tuple[str, ...]:
        return self._rows

    @property
    def columns(self) -> Tuple[str, ...]:
        return self._columns

    @property
    def shape(self) -> Tuple[int, int]:
        return self._values.shape

    @property
    def n_rows(self) -> int:
        return len(self._rows)

    @property
    def n_columns(self) -> int:
        return len(self._columns)

    @property
    def is_degenerate(self) -> bool:
        """True when the matrix lacks the 2x2 structure most indices need."""
        return self.n_rows < 2 or self.n_columns < 2

    @property
    def row_totals(self) -> np.ndarray:
        return self._values.sum(axis=1)

    @property
    def column_totals(self) -> np.ndarray:
        return self._values.sum(axis=0)

    @property
    def total(self) -> float:
        return float(self._values.sum())

    @property
    def n_links(self) -> int:
        """Number of non-zero cells."""
        return int(np.count_nonzero(self._values))

    def is_integer(self) -> bool:
        return bool(np.all(self._values == np.rint(self._values)))

    def value(self, row: str, column: str) -> float:
        return float(self._values[self._rows.index(row), self._columns.index(column)])

    def binary(self) -> "InteractionMatrix":
        """Presence/absence version of this matrix."""
        return InteractionMatrix(
            (self._values > 0).astype(float), self._rows, self._columns
        )

    def reindex(
        self, rows: Sequence[str], columns: Sequence[str]
    ) -> "InteractionMatrix":
        """
        Re-express the matrix on a label superset, padding with zeros.

        Only used to align two periods; every existing label must be kept.
        """
        missing_rows = set(self._rows) - set(rows)
        missing_columns = set(self._columns) - set(columns)
        if missing_rows or missing_columns:
            raise ValueError(
                "reindex would drop labels: "
                f"rows={sorted(missing_rows)}, columns={sorted(missing_columns)}"
            )

        out = np.zeros((len(rows), len(columns)))
        row_pos = [list(rows).index(r) for r in self._rows]
        col_pos = [list(columns).index(c) for c in self._columns]
        if row_pos and col_pos:
            out[np.ix_(row_pos, col_pos)] = self._values
        return InteractionMatrix(out, rows, columns)

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        """Nested {row: {column: weight}} mapping of the non-zero cells."""
        result: Dict[str, Dict[str, float]] = {}
        for i, j in zip(*np.nonzero(self._values)):
            result.setdefault(self._rows[i], {})[self._columns[j]] = float(
                self._values[i, j]
            )
        return result

    def __eq__(self, other) -> bool:
        if not isinstance(other, InteractionMatrix):
            return NotImplemented
        return (
            self._rows == other._rows
            and self._columns == other._columns
            and np.array_equal(self._values, other._values)
        )

    __hash__ = None

    def __reduce__(self):
        return (InteractionMatrix, (np.array(self._values), self._rows, self._columns))

    def __repr__(self) -> str:
        return (
            f"InteractionMatrix({self.n_rows}x{self.n_columns}, "
            f"links={self.n_links}, total={self.total:g})"
        )


def build_matrix(
    records: Iterable[InteractionRecord], weight_field: str = "weight"
) -> InteractionMatrix:
    """
    Build the interaction matrix of one network from its records.

    Labels are exactly the distinct entities present in ``records``,
    sorted lexicographically. Cells without a record are zero.

    Args:
        records: Pre-aggregated records of a single network
        weight_field: "weight" for the analysis matrix, "raw_count" for
            the completeness matrix

    Returns:
        InteractionMatrix

    Raises:
        EmptyInputError: If ``records`` is empty
        DuplicateCellError: If two records address the same cell
        MissingWeightError: If a record has no value for ``weight_field``
    """
    if weight_field not in WEIGHT_FIELDS:
        raise ValueError(
            f"Unknown weight field {weight_field!r}, expected one of {WEIGHT_FIELDS}"
        )

    cells: Dict[Tuple[str, str], float] = {}
    for record in records:
        if record.cell in cells:
            raise DuplicateCellError(*record.cell)
        weight = getattr(record, weight_field)
        if weight is None:
            raise MissingWeightError(
                f"Record for cell {record.cell} has no {weight_field}"
            )
        cells[record.cell] = weight

    if not cells:
        raise EmptyInputError("Cannot build an interaction matrix from no records")

    rows = sorted({row for row, _ in cells})
    columns = sorted({column for _, column in cells})
    row_index = {label: i for i, label in enumerate(rows)}
    column_index = {label: j for j, label in enumerate(columns)}

    values = np.zeros((len(rows), len(columns)))
    for (row, column), weight in cells.items():
        values[row_index[row], column_index[column]] = weight

    return InteractionMatrix(values, rows, columns)
