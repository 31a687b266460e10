"""
Interaction records.

One record is one (plant, hummingbird) cell of one replicate/period/
sampling-method network, after upstream filtering and renaming.
"""

from __future__ import annotations

import math
from collections import defaultdict
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

WEIGHT_FIELDS = ("weight", "raw_count")

# (sampling_method, replicate_id, period)
ItemKey = Tuple[str, str, str]


@dataclass(frozen=True)
class InteractionRecord:
    """
    A single weighted plant–hummingbird interaction.

    Attributes:
        replicate_id: Patch + year combination
        period: "pre" or "post" relative to the manipulation
        sampling_method: "pollen" or "camera"
        row_entity: Plant species or pollen morphotype
        column_entity: Hummingbird species
        weight: Interaction weight (possibly a rate)
        raw_count: Raw number of observations, used for completeness
    """

    replicate_id: str
    period: str
    sampling_method: str
    row_entity: str
    column_entity: str
    weight: float
    raw_count: Optional[float] = None

    def __post_init__(self):
        for name in WEIGHT_FIELDS:
            value = getattr(self, name)
            if value is None:
                continue
            if not math.isfinite(value) or value < 0:
                raise ValueError(
                    f"{name} must be a finite non-negative number, got {value!r}"
                )

    @property
    def key(self) -> ItemKey:
        return (self.sampling_method, self.replicate_id, self.period)

    @property
    def cell(self) -> Tuple[str, str]:
        return (self.row_entity, self.column_entity)

    @classmethod
    def from_row(cls, row: Mapping) -> "InteractionRecord":
        """
        Build a record from one row of the interaction table.

        The replicate is taken from a ``replicate_id`` column when present,
        otherwise from ``year`` and ``patch``.
        """
        if row.get("replicate_id") is not None:
            replicate_id = str(row["replicate_id"])
        else:
            replicate_id = f"{row['year']}_{row['patch']}"

        raw_count = row.get("raw_count")
        return cls(
            replicate_id=replicate_id,
            period=str(row["period"]),
            sampling_method=str(row["sampling_method"]),
            row_entity=str(row["row_entity"]),
            column_entity=str(row["column_entity"]),
            weight=float(row["weight"]),
            raw_count=None if raw_count is None else float(raw_count),
        )


def aggregate_records(
    records: Iterable[InteractionRecord],
) -> List[InteractionRecord]:
    """
    Sum records sharing the same cell of the same network.

    ``raw_count`` is summed only when every contributing record has one;
    otherwise the aggregate has no raw count. Output is sorted by key and
    cell so aggregation is order independent.
    """
    weights: Dict[tuple, float] = defaultdict(float)
    counts: Dict[tuple, Optional[float]] = {}

    for record in records:
        full_key = record.key + record.cell
        weights[full_key] += record.weight
        if full_key not in counts:
            counts[full_key] = record.raw_count
        elif counts[full_key] is None or record.raw_count is None:
            counts[full_key] = None
        else:
            counts[full_key] += record.raw_count

    aggregated = []
    for full_key in sorted(weights):
        method, replicate_id, period, row, column = full_key
        aggregated.append(
            InteractionRecord(
                replicate_id=replicate_id,
                period=period,
                sampling_method=method,
                row_entity=row,
                column_entity=column,
                weight=weights[full_key],
                raw_count=counts[full_key],
            )
        )
    return aggregated


def group_records(
    records: Iterable[InteractionRecord],
) -> Dict[ItemKey, List[InteractionRecord]]:
    """Index records by (sampling_method, replicate_id, period)."""
    groups: Dict[ItemKey, List[InteractionRecord]] = defaultdict(list)
    for record in records:
        groups[record.key].append(record)
    return dict(groups)


def distinct(records: Sequence[InteractionRecord], attribute: str) -> List[str]:
    """Sorted distinct values of one record attribute."""
    return sorted({getattr(record, attribute) for record in records})
