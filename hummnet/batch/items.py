"""
Work items: one (sampling method, replicate, period) network each.

    PENDING -> MATRIX_BUILT -> METRICS_COMPUTED | PARTIAL -> EXPORTED
    PENDING -> BUILD_FAILED -> EXPORTED

``process_item`` is a pure function of its arguments and returns an
immutable ItemResult, so items can run in any order or in worker
processes.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Dict, List, Optional, Sequence, Tuple

from hummnet.common.errors import (
    NetworkInputError,
    NonIntegerWeightError,
    PreconditionError,
)
from hummnet.common.outcome import (
    COMPUTATION_ERROR,
    MetricValue,
    Unavailable,
    quietly,
)
from hummnet.common.records import InteractionRecord, ItemKey
from hummnet.metrics import network_level, species_level
from hummnet.networks import InteractionMatrix, build_matrix

from .config import BatchConfig


class ItemState(str, Enum):
    PENDING = "pending"
    MATRIX_BUILT = "matrix-built"
    BUILD_FAILED = "build-failed"
    METRICS_COMPUTED = "metrics-computed"
    PARTIAL = "partial"
    EXPORTED = "exported"


TRANSITIONS: Dict[ItemState, Tuple[ItemState, ...]] = {
    ItemState.PENDING: (ItemState.MATRIX_BUILT, ItemState.BUILD_FAILED),
    ItemState.MATRIX_BUILT: (ItemState.METRICS_COMPUTED, ItemState.PARTIAL),
    ItemState.BUILD_FAILED: (ItemState.EXPORTED,),
    ItemState.METRICS_COMPUTED: (ItemState.EXPORTED,),
    ItemState.PARTIAL: (ItemState.EXPORTED,),
    ItemState.EXPORTED: (),
}


def check_transition(current: ItemState, new: ItemState) -> None:
    if new not in TRANSITIONS[current]:
        raise RuntimeError(f"Invalid work item transition {current.value} -> {new.value}")


@dataclass
class WorkItem:
    """Mutable progress tracker used while a single item is processed."""

    key: ItemKey
    state: ItemState = ItemState.PENDING
    history: List[ItemState] = field(default_factory=lambda: [ItemState.PENDING])

    def advance(self, new_state: ItemState) -> None:
        check_transition(self.state, new_state)
        self.state = new_state
        self.history.append(new_state)


@dataclass(frozen=True)
class ItemResult:
    """
    Everything computed for one work item.

    Attributes:
        key: (sampling_method, replicate_id, period)
        state: Final state reached
        history: States visited, in order
        matrix: Weight matrix, None if the build failed
        count_matrix: Raw-count matrix, None if it could not be built
        count_error: Why the raw-count matrix could not be built
        network: Network-level index -> value or Unavailable
        species: Column entity -> species index -> value or Unavailable
        error: Build or computation error message
        warnings: Warnings captured while computing
    """

    key: ItemKey
    state: ItemState
    history: Tuple[ItemState, ...]
    matrix: Optional[InteractionMatrix] = None
    count_matrix: Optional[InteractionMatrix] = None
    count_error: Optional[str] = None
    network: Dict[str, MetricValue] = field(default_factory=dict)
    species: Dict[str, Dict[str, MetricValue]] = field(default_factory=dict)
    error: Optional[str] = None
    warnings: Tuple[str, ...] = ()

    @property
    def sampling_method(self) -> str:
        return self.key[0]

    @property
    def replicate_id(self) -> str:
        return self.key[1]

    @property
    def period(self) -> str:
        return self.key[2]

    @property
    def has_matrix(self) -> bool:
        return self.matrix is not None

    def unavailable(self) -> List[Tuple[str, Optional[str], Unavailable]]:
        """(index, entity, Unavailable) for every undefined value."""
        found = [
            (name, None, value)
            for name, value in self.network.items()
            if isinstance(value, Unavailable)
        ]
        for entity, values in self.species.items():
            found.extend(
                (name, entity, value)
                for name, value in values.items()
                if isinstance(value, Unavailable)
            )
        return found

    def exported(self) -> "ItemResult":
        check_transition(self.state, ItemState.EXPORTED)
        return replace(
            self,
            state=ItemState.EXPORTED,
            history=self.history + (ItemState.EXPORTED,),
        )


def _describe(exc: Exception) -> str:
    return f"{type(exc).__name__}: {exc}"


def _compute_metrics(matrix: InteractionMatrix, config: BatchConfig):
    network = network_level(matrix, config.network_indices)
    species = {}
    if not config.species_indices:
        return network, species

    try:
        species = species_level(
            matrix, config.species_indices, fractional=config.fractional_weights
        )
    except NonIntegerWeightError as exc:
        # only d' needs integer counts; the other indices keep their values
        others = [name for name in config.species_indices if name != "d_prime"]
        species = species_level(matrix, others)
        failed = Unavailable(COMPUTATION_ERROR, _describe(exc))
        for values in species.values():
            values["d_prime"] = failed
    return network, species


def process_item(
    key: ItemKey, records: Sequence[InteractionRecord], config: BatchConfig
) -> ItemResult:
    """
    Build the matrices of one work item and compute its metrics.

    Input errors end the item in BUILD_FAILED; any other failure while
    computing metrics marks all of the item's metrics unavailable. Only
    PreconditionError escapes.
    """
    item = WorkItem(key)

    try:
        matrix, captured = quietly(build_matrix, records, "weight")
    except NetworkInputError as exc:
        item.advance(ItemState.BUILD_FAILED)
        return ItemResult(
            key=key,
            state=item.state,
            history=tuple(item.history),
            error=_describe(exc),
        )
    item.advance(ItemState.MATRIX_BUILT)

    count_matrix, count_error = None, None
    try:
        count_matrix = build_matrix(records, "raw_count")
    except NetworkInputError as exc:
        count_error = _describe(exc)

    error = None
    try:
        (network, species), metric_warnings = quietly(_compute_metrics, matrix, config)
        captured = captured + metric_warnings
    except PreconditionError:
        raise
    except Exception as exc:
        error = _describe(exc)
        failed = Unavailable(COMPUTATION_ERROR, error)
        network = {name: failed for name in config.network_indices}
        species = {
            entity: {name: failed for name in config.species_indices}
            for entity in matrix.columns
        }

    result = ItemResult(
        key=key,
        state=item.state,
        history=tuple(item.history),
        matrix=matrix,
        count_matrix=count_matrix,
        count_error=count_error,
        network=network,
        species=species,
        error=error,
        warnings=tuple(captured),
    )

    if result.unavailable() or error is not None:
        item.advance(ItemState.PARTIAL)
    else:
        item.advance(ItemState.METRICS_COMPUTED)
    return replace(result, state=item.state, history=tuple(item.history))
