"""
Batch run configuration.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from hummnet.common import SchemaClass
from hummnet.metrics.network_level import NETWORK_INDICES
from hummnet.metrics.species_level import FRACTIONAL_POLICIES, SPECIES_INDICES
from hummnet.turnover import DISSIMILARITY_INDICES


@dataclass
class BatchConfig(SchemaClass):
    """
    Parameters of one batch run.

    The content hash (``get_id``) identifies the run in the RunLog.
    """

    network_indices: list[str] = field(default_factory=lambda: ["H2"])
    species_indices: list[str] = field(
        default_factory=lambda: ["d_prime", "species_specificity_index"]
    )
    periods: list[str] = field(default_factory=lambda: ["pre", "post"])
    binary_modes: list[bool] = field(default_factory=lambda: [True, False])
    dissimilarity_index: str = "bray"
    proportions: Optional[bool] = None  # None = proportions for quantitative only
    fractional_weights: str = "round"  # d' policy: "round" or "raise"

    # None = every value present in the records
    sampling_methods: Optional[list[str]] = None
    replicates: Optional[list[str]] = None

    n_workers: int = 1

    def __post_init__(self):
        self.validate()

    def validate(self) -> None:
        unknown = set(self.network_indices) - set(NETWORK_INDICES)
        if unknown:
            raise ValueError(f"Unknown network indices: {sorted(unknown)}")
        unknown = set(self.species_indices) - set(SPECIES_INDICES)
        if unknown:
            raise ValueError(f"Unknown species indices: {sorted(unknown)}")
        if len(self.periods) != 2 or len(set(self.periods)) != 2:
            raise ValueError(
                f"Exactly two distinct periods are required, got {self.periods}"
            )
        if self.dissimilarity_index not in DISSIMILARITY_INDICES:
            raise ValueError(
                f"Unknown dissimilarity index {self.dissimilarity_index!r}"
            )
        if self.fractional_weights not in FRACTIONAL_POLICIES:
            raise ValueError(
                f"Unknown fractional weight policy {self.fractional_weights!r}"
            )
        if self.n_workers < 1:
            raise ValueError("n_workers must be at least 1")
