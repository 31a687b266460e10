"""
Sampling completeness of interaction networks.

Completeness is the share of interactions (non-zero cells) observed out
of the Chao1 estimate of all interactions that would be found with
exhaustive sampling.

PRECONDITION: the matrix must hold raw observation counts, not rates or
otherwise rescaled weights. Chao1 is driven by how many cells were seen
exactly once or twice, which is meaningless for rescaled weights. Build
the matrix with ``build_matrix(records, weight_field="raw_count")``;
non-integer weights raise NonCountWeightError.
"""

from __future__ import annotations

import math
from dataclasses import asdict, dataclass
from typing import Optional

import numpy as np

from hummnet.common.errors import NonCountWeightError
from hummnet.common.outcome import NO_OBSERVED
from hummnet.networks import InteractionMatrix


@dataclass(frozen=True)
class CompletenessEstimate:
    """
    Chao1-based completeness of one network.

    Attributes:
        observed_richness: Number of distinct interactions observed
        estimated_richness: Chao1 estimate of interaction richness
        completeness_ratio: observed / estimated, in (0, 1]; NaN when undefined
        singletons: Cells observed exactly once (f1)
        doubletons: Cells observed exactly twice (f2)
        unavailable_reason: Reason tag when the ratio is undefined
    """

    observed_richness: int
    estimated_richness: float
    completeness_ratio: float
    singletons: int
    doubletons: int
    unavailable_reason: Optional[str] = None

    @property
    def is_available(self) -> bool:
        return self.unavailable_reason is None

    def to_dict(self) -> dict:
        return asdict(self)


def chao1(observed: int, singletons: int, doubletons: int) -> float:
    """
    Chao1 richness estimate.

    Uses f1²/(2·f2) when doubletons exist and the bias-corrected
    f1(f1-1)/(2(f2+1)) otherwise.
    """
    if doubletons > 0:
        return observed + singletons**2 / (2 * doubletons)
    return observed + singletons * (singletons - 1) / (2 * (doubletons + 1))


def estimate_completeness(matrix: InteractionMatrix) -> CompletenessEstimate:
    """
    Estimate sampling completeness from a raw-count matrix.

    Args:
        matrix: Interaction matrix built from raw counts

    Returns:
        CompletenessEstimate

    Raises:
        NonCountWeightError: If any weight is not a whole number
    """
    counts = matrix.values
    if not matrix.is_integer():
        raise NonCountWeightError(
            "Completeness needs raw interaction counts; got fractional weights "
            "(build the matrix from raw_count, not from rates)"
        )

    observed = int(np.count_nonzero(counts))
    f1 = int(np.count_nonzero(counts == 1))
    f2 = int(np.count_nonzero(counts == 2))

    if observed == 0:
        return CompletenessEstimate(
            observed_richness=0,
            estimated_richness=0.0,
            completeness_ratio=math.nan,
            singletons=0,
            doubletons=0,
            unavailable_reason=NO_OBSERVED,
        )

    estimated = chao1(observed, f1, f2)
    return CompletenessEstimate(
        observed_richness=observed,
        estimated_richness=float(estimated),
        completeness_ratio=min(1.0, observed / estimated),
        singletons=f1,
        doubletons=f2,
    )
