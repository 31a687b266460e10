"""
Species-level specialization of hummingbirds (matrix columns).

d' (Blüthgen et al. 2006) is the Kullback–Leibler divergence between a
bird's use of plants and the plants' overall availability (row totals),
standardised between the smallest and largest divergence attainable
with the same number of interactions:

    d_j  = Σ_i p'_ij ln(p'_ij / q_i),   p'_ij = a_ij / A_j,  q_i = R_i / m
    d'_j = (d_j - d_min) / (d_max - d_min)

d_min and d_max are found over integer allocations of A_j interactions,
so d' needs count weights. The species specificity index (Julliard et
al. 2006) is the coefficient of variation of a bird's interactions over
all plants divided by sqrt(n), which bounds it to [0, 1].
"""

from __future__ import annotations

import logging
import warnings
from collections.abc import Iterable
from typing import Dict

import numpy as np

from hummnet.common.errors import NonIntegerWeightError
from hummnet.common.outcome import (
    COMPUTATION_ERROR,
    TOO_SMALL,
    MetricValue,
    Unavailable,
    safely,
)
from hummnet.networks import InteractionMatrix

logger = logging.getLogger(__name__)

SPECIES_INDICES = (
    "d_prime",
    "species_specificity_index",
    "degree",
    "normalised_degree",
)

FRACTIONAL_POLICIES = ("round", "raise")

_EPS = 1e-12


def integer_weights(web: np.ndarray, policy: str = "round") -> np.ndarray:
    """
    Return ``web`` as integer counts according to ``policy``.

    "round" rounds half to even and emits a UserWarning; "raise" raises
    NonIntegerWeightError. Integer webs are returned unchanged.
    """
    if policy not in FRACTIONAL_POLICIES:
        raise ValueError(
            f"Unknown fractional weight policy {policy!r}, "
            f"expected one of {FRACTIONAL_POLICIES}"
        )

    rounded = np.rint(web)
    if np.array_equal(rounded, web):
        return web
    if policy == "raise":
        raise NonIntegerWeightError("d' requires integer interaction counts")

    warnings.warn(
        "Fractional interaction weights rounded to integers for d'",
        UserWarning,
        stacklevel=2,
    )
    return rounded


def _divergence(allocation: np.ndarray, q: np.ndarray) -> float:
    used = allocation > 0
    p = allocation[used] / allocation.sum()
    return float(np.sum(p * np.log(p / q[used])))


def _min_divergence_allocation(
    total: int, q: np.ndarray, caps: np.ndarray
) -> np.ndarray:
    """Integer allocation of ``total`` interactions as close to ``q`` as possible."""
    allocation = np.minimum(np.floor(q * total), caps)
    for _ in range(int(total - allocation.sum())):
        best_k, best_d = -1, np.inf
        for k in np.flatnonzero((q > 0) & (allocation < caps)):
            allocation[k] += 1
            d = _divergence(allocation, q)
            allocation[k] -= 1
            if d < best_d:
                best_k, best_d = k, d
        allocation[best_k] += 1
    return allocation


def _max_divergence_allocation(
    total: int, q: np.ndarray, caps: np.ndarray
) -> np.ndarray:
    """Integer allocation of ``total`` interactions onto the rarest partners."""
    allocation = np.zeros_like(q)
    rest = total
    for k in np.argsort(q, kind="stable"):
        if rest <= 0:
            break
        if q[k] <= 0:
            continue
        allocation[k] = min(rest, caps[k])
        rest -= allocation[k]
    return allocation


def d_prime(counts: np.ndarray, column: int) -> MetricValue:
    """
    Standardised specialization d' of one column species.

    Args:
        counts: Integer interaction counts, rows x columns
        column: Column index of the species

    Returns:
        d' in [0, 1], or Unavailable when it is undefined
    """
    partner_totals = counts.sum(axis=1)
    q = partner_totals / partner_totals.sum()
    interactions = counts[:, column]
    total = int(interactions.sum())

    if total == 0:
        return Unavailable(COMPUTATION_ERROR, "species has no interactions")

    observed = _divergence(interactions, q)
    lower = _divergence(_min_divergence_allocation(total, q, partner_totals), q)
    upper = _divergence(_max_divergence_allocation(total, q, partner_totals), q)

    if upper - lower <= _EPS:
        return Unavailable(
            COMPUTATION_ERROR, "d' undefined: minimum and maximum divergence coincide"
        )
    return float(np.clip((observed - lower) / (upper - lower), 0.0, 1.0))


def species_specificity_index(web: np.ndarray, column: int) -> float:
    """Coefficient of variation of one column over all rows, scaled to [0, 1]."""
    interactions = web[:, column]
    n = interactions.size
    cv = interactions.std(ddof=1) / interactions.mean()
    return float(cv / np.sqrt(n))


def degree(web: np.ndarray, column: int) -> float:
    return float(np.count_nonzero(web[:, column]))


def normalised_degree(web: np.ndarray, column: int) -> float:
    return degree(web, column) / web.shape[0]


def species_level(
    matrix: InteractionMatrix,
    indices: Iterable[str] = ("d_prime", "species_specificity_index"),
    fractional: str = "round",
) -> Dict[str, Dict[str, MetricValue]]:
    """
    Compute species-level indices for every column entity.

    Each (species, index) value is computed in isolation: a numerical
    failure for one bird becomes an Unavailable entry for that bird only.

    Args:
        matrix: Interaction matrix of one network
        indices: Names from ``SPECIES_INDICES``
        fractional: Policy for fractional weights in d' ("round" or "raise")

    Returns:
        Mapping column entity -> index name -> value or Unavailable

    Raises:
        NonIntegerWeightError: If d' is requested, weights are fractional
            and ``fractional`` is "raise"
    """
    indices = sorted(set(indices))
    unknown = [name for name in indices if name not in SPECIES_INDICES]
    if unknown:
        raise ValueError(
            f"Unknown species indices {unknown}; available: {list(SPECIES_INDICES)}"
        )

    if matrix.is_degenerate:
        detail = f"{matrix.n_rows} rows x {matrix.n_columns} columns"
        return {
            species: {name: Unavailable(TOO_SMALL, detail) for name in indices}
            for species in matrix.columns
        }

    web = matrix.values
    counts = integer_weights(web, fractional) if "d_prime" in indices else web
    functions = {
        "d_prime": lambda j: d_prime(counts, j),
        "species_specificity_index": lambda j: species_specificity_index(web, j),
        "degree": lambda j: degree(web, j),
        "normalised_degree": lambda j: normalised_degree(web, j),
    }

    results: Dict[str, Dict[str, MetricValue]] = {}
    for j, species in enumerate(matrix.columns):
        results[species] = {name: safely(functions[name], j) for name in indices}
        for name, value in results[species].items():
            if isinstance(value, Unavailable):
                logger.debug("%s unavailable for %s: %s", name, species, value)
    return results
