"""
Output tables of a batch run.

Each table is a list of frozen row dataclasses. Undefined values are
kept as rows with ``value=None`` (or NaN) and a reason tag rather than
being dropped, so absence and failure are never confused downstream.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Callable, Sequence
from dataclasses import asdict, dataclass, field, replace
from typing import Dict, List, Optional, Set, Tuple, TypeVar

from .log import RunLog


@dataclass(frozen=True)
class ItemStatusRow:
    replicate_id: str
    period: str
    sampling_method: str
    state: str
    history: str
    n_rows: int = 0
    n_columns: int = 0
    n_unavailable: int = 0
    n_warnings: int = 0
    error: Optional[str] = None


@dataclass(frozen=True)
class NetworkMetricRow:
    replicate_id: str
    period: str
    sampling_method: str
    metric: str
    value: Optional[float]
    unavailable_reason: Optional[str] = None
    unpaired: bool = False

    @property
    def defined(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class SpeciesMetricRow:
    replicate_id: str
    period: str
    sampling_method: str
    entity: str
    metric: str
    value: Optional[float]
    unavailable_reason: Optional[str] = None
    unpaired: bool = False

    @property
    def defined(self) -> bool:
        return self.value is not None


@dataclass(frozen=True)
class DissimilarityRow:
    replicate_id: str
    sampling_method: str
    binary: bool
    wn: float
    st: float
    os: float
    st_rows: float
    st_columns: float
    st_both: float
    s: float
    os_reason: Optional[str] = None
    unavailable_reason: Optional[str] = None


@dataclass(frozen=True)
class CompletenessRow:
    replicate_id: str
    period: str
    sampling_method: str
    observed_richness: Optional[int]
    estimated_richness: Optional[float]
    completeness_ratio: Optional[float]
    unavailable_reason: Optional[str] = None
    unpaired: bool = False

    @property
    def defined(self) -> bool:
        return self.unavailable_reason is None


Row = TypeVar("Row")


def flag_unpaired(
    rows: Sequence[Row],
    group_fields: Tuple[str, ...],
    periods: Sequence[str] = ("pre", "post"),
    defined: Callable[[Row], bool] = lambda row: row.defined,
) -> List[Row]:
    """
    Set ``unpaired`` on every row of a metric table.

    Rows are grouped by ``group_fields`` (which must not include the
    period). A group is unpaired when exactly one of the two periods has
    a defined value; groups with zero or two defined periods are not.
    """
    wanted = set(periods)
    defined_periods: Dict[tuple, Set[str]] = defaultdict(set)
    for row in rows:
        if row.period in wanted and defined(row):
            group = tuple(getattr(row, name) for name in group_fields)
            defined_periods[group].add(row.period)

    flagged = []
    for row in rows:
        group = tuple(getattr(row, name) for name in group_fields)
        flagged.append(replace(row, unpaired=len(defined_periods[group]) == 1))
    return flagged


@dataclass
class BatchReport:
    """All tables produced by one batch run, plus its log."""

    config_id: str
    items: List[ItemStatusRow] = field(default_factory=list)
    network_metrics: List[NetworkMetricRow] = field(default_factory=list)
    species_metrics: List[SpeciesMetricRow] = field(default_factory=list)
    dissimilarity: List[DissimilarityRow] = field(default_factory=list)
    completeness: List[CompletenessRow] = field(default_factory=list)
    log: RunLog = field(default_factory=RunLog)

    TABLES = (
        "items",
        "network_metrics",
        "species_metrics",
        "dissimilarity",
        "completeness",
    )

    def as_dicts(self, table: str) -> List[dict]:
        """Flatten one table to plain dicts, e.g. for a CSV writer."""
        if table not in self.TABLES:
            raise ValueError(f"Unknown table {table!r}, expected one of {self.TABLES}")
        return [asdict(row) for row in getattr(self, table)]

    def build_failures(self) -> List[ItemStatusRow]:
        return [row for row in self.items if row.state == "build-failed"]

    def summary(self) -> dict:
        states: Dict[str, int] = defaultdict(int)
        for row in self.items:
            states[row.state] += 1
        return {
            "config_id": self.config_id,
            "items": len(self.items),
            "states": dict(states),
            "warnings": len(self.log.warnings),
            "errors": len(self.log.errors),
            **{table: len(getattr(self, table)) for table in self.TABLES[1:]},
        }
