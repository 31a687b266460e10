"""
Network-level specialization.

H2' (Blüthgen et al. 2006) compares the two-dimensional Shannon entropy
of the observed interaction matrix against the entropy range attainable
with the same marginal totals:

    H2  = -Σ_ij p_ij ln p_ij,            p_ij = a_ij / m
    H2' = (H2max - H2) / (H2max - H2min)

H2max is the entropy of the matrix closest to independence
(a_ij ≈ r_i c_j / m) and H2min the entropy of the most concentrated
matrix with the same row and column totals. H2' is 0 for a maximally
generalised network and 1 for a perfectly specialised one.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import Callable, Dict

import numpy as np
from scipy.special import xlogy

from hummnet.common.outcome import (
    COMPUTATION_ERROR,
    TOO_SMALL,
    MetricValue,
    Unavailable,
    safely,
)
from hummnet.networks import InteractionMatrix

logger = logging.getLogger(__name__)

_EPS = 1e-12


def shannon_entropy(web: np.ndarray) -> float:
    """Shannon entropy of all cells of ``web`` taken as one distribution."""
    p = web / web.sum()
    return float(-np.sum(xlogy(p, p)))


def h2_max(web: np.ndarray, integer: bool = True) -> float:
    """
    Maximum H2 given the marginal totals of ``web``.

    For integer webs the independence expectation is floored and then
    filled one interaction at a time into the cell furthest below its
    expectation whose row and column still have room. For non-integer
    webs the expectation matrix itself is used.
    """
    row_totals = web.sum(axis=1)
    col_totals = web.sum(axis=0)
    total = web.sum()
    expected = np.outer(row_totals, col_totals) / total

    if not integer:
        return shannon_entropy(expected)

    filled = np.floor(expected)
    remaining = int(round(total - filled.sum()))
    for _ in range(remaining):
        gap = expected - filled
        gap[filled.sum(axis=1) >= row_totals, :] = -np.inf
        gap[:, filled.sum(axis=0) >= col_totals] = -np.inf
        i, j = np.unravel_index(np.argmax(gap), gap.shape)
        filled[i, j] += 1

    return shannon_entropy(filled)


def h2_min(web: np.ndarray) -> float:
    """
    Minimum H2 given the marginal totals of ``web``.

    Greedy fill: the largest remaining row total is matched with the
    largest remaining column total until all interactions are placed.
    """
    row_rest = web.sum(axis=1).astype(float)
    col_rest = web.sum(axis=0).astype(float)
    filled = np.zeros_like(web, dtype=float)

    while row_rest.max() > _EPS and col_rest.max() > _EPS:
        i = int(np.argmax(row_rest))
        j = int(np.argmax(col_rest))
        amount = min(row_rest[i], col_rest[j])
        filled[i, j] += amount
        row_rest[i] -= amount
        col_rest[j] -= amount

    return shannon_entropy(filled)


def h2_prime(web: np.ndarray) -> MetricValue:
    """
    Standardised two-dimensional entropy H2' in [0, 1].

    Args:
        web: Non-negative weights, rows x columns

    Returns:
        H2', or Unavailable when H2max equals H2min
    """
    integer = bool(np.all(web == np.rint(web)))
    observed = shannon_entropy(web)
    upper = h2_max(web, integer=integer)
    lower = h2_min(web)

    if upper - lower <= _EPS:
        return Unavailable(
            COMPUTATION_ERROR, "H2 undefined: maximum and minimum entropy coincide"
        )

    # the integer H2max search is heuristic and can undershoot the observed H2
    return float(np.clip((upper - observed) / (upper - lower), 0.0, 1.0))


def connectance(web: np.ndarray) -> float:
    """Realised links over possible links."""
    return float(np.count_nonzero(web) / web.size)


NETWORK_INDICES: Dict[str, Callable[[np.ndarray], MetricValue]] = {
    "H2": h2_prime,
    "connectance": connectance,
}


def network_level(
    matrix: InteractionMatrix, indices: Iterable[str] = ("H2",)
) -> Dict[str, MetricValue]:
    """
    Compute network-level indices for one interaction matrix.

    A matrix with fewer than two rows or columns is not an error: every
    requested index comes back as ``Unavailable("network too small")``.
    Numerical failures of one index do not affect the others.

    Args:
        matrix: Interaction matrix of one network
        indices: Names from ``NETWORK_INDICES``

    Returns:
        Mapping index name -> value or Unavailable
    """
    indices = sorted(set(indices))
    unknown = [name for name in indices if name not in NETWORK_INDICES]
    if unknown:
        raise ValueError(
            f"Unknown network indices {unknown}; "
            f"available: {sorted(NETWORK_INDICES)}"
        )

    if matrix.is_degenerate:
        detail = f"{matrix.n_rows} rows x {matrix.n_columns} columns"
        logger.debug("Skipping network-level indices: %s", detail)
        return {name: Unavailable(TOO_SMALL, detail) for name in indices}

    return {name: safely(NETWORK_INDICES[name], matrix.values) for name in indices}
