"""
Interaction turnover between two periods of the same network.

Whole-network dissimilarity (WN) is computed over the union of
interaction cells of both periods and split additively, with a common
denominator, into

- ST: change in links involving a plant or bird present in only one
  period (species turnover), further split into links where only the
  plant, only the bird, or both turned over;
- OS: change in links among plants and birds present in both periods
  (rewiring).

For the Bray-Curtis family (Sørensen when binary), with
a = Σ min(x, y), b = Σ (x - min), c = Σ (y - min) over cells:

    WN = (b + c) / (2a + b + c)
    ST = (b_st + c_st) / (2a + b + c)
    OS = (b_os + c_os) / (2a + b + c)

so WN = ST + OS exactly. The Jaccard family uses a + b + c instead.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Optional, Tuple

import numpy as np

from hummnet.common.errors import LabelMismatchError
from hummnet.common.outcome import EMPTY_NETWORKS, NO_SHARED_SPECIES
from hummnet.networks import InteractionMatrix

logger = logging.getLogger(__name__)

DISSIMILARITY_INDICES = ("bray", "jaccard")


@dataclass(frozen=True)
class DissimilarityResult:
    """
    Additively partitioned dissimilarity between two networks.

    Attributes:
        wn: Whole-network dissimilarity
        st: Species-turnover component (st_rows + st_columns + st_both)
        os: Rewiring component among shared species; NaN when undefined
        st_rows: Part of ST where only the row entity turned over
        st_columns: Part of ST where only the column entity turned over
        st_both: Part of ST where both entities turned over
        s: Dissimilarity of species composition (rows and columns pooled)
        binary: Whether weights were reduced to presence/absence
        index: "bray" or "jaccard"
        os_reason: Reason tag when OS is undefined
        unavailable_reason: Reason tag when nothing is defined
    """

    wn: float
    st: float
    os: float
    st_rows: float
    st_columns: float
    st_both: float
    s: float
    binary: bool
    index: str = "bray"
    os_reason: Optional[str] = None
    unavailable_reason: Optional[str] = None

    @property
    def os_defined(self) -> bool:
        return not math.isnan(self.os)

    def is_additive(self, rel_tol: float = 1e-9) -> bool:
        """Check WN = ST + OS (WN = ST when OS is undefined)."""
        if self.unavailable_reason is not None:
            return False
        rewiring = self.os if self.os_defined else 0.0
        return math.isclose(self.wn, self.st + rewiring, rel_tol=rel_tol, abs_tol=1e-12)

    def to_dict(self) -> dict:
        return asdict(self)


def align_matrices(
    before: InteractionMatrix, after: InteractionMatrix
) -> Tuple[InteractionMatrix, InteractionMatrix]:
    """Re-express both matrices on the union of their row and column labels."""
    rows = sorted(set(before.rows) | set(after.rows))
    columns = sorted(set(before.columns) | set(after.columns))
    return before.reindex(rows, columns), after.reindex(rows, columns)


def _denominator(a: float, b: float, c: float, index: str) -> float:
    if index == "bray":
        return 2 * a + b + c
    return a + b + c


def _prepare(web: np.ndarray, binary: bool, proportions: bool) -> np.ndarray:
    if binary:
        return (web > 0).astype(float)
    if proportions and web.sum() > 0:
        return web / web.sum()
    return web


def species_dissimilarity(x: np.ndarray, y: np.ndarray, binary: bool, index: str) -> float:
    """
    Dissimilarity of pooled row and column species between two aligned webs.

    Species are weighted by their marginal totals, or by presence when
    ``binary``.
    """
    u = np.concatenate([x.sum(axis=1), x.sum(axis=0)])
    v = np.concatenate([y.sum(axis=1), y.sum(axis=0)])
    if binary:
        u, v = (u > 0).astype(float), (v > 0).astype(float)

    shared = np.minimum(u, v)
    a, b, c = shared.sum(), (u - shared).sum(), (v - shared).sum()
    denominator = _denominator(a, b, c, index)
    if denominator == 0:
        return math.nan
    return float((b + c) / denominator)


def partition_links(
    before: InteractionMatrix,
    after: InteractionMatrix,
    binary: bool,
    index: str = "bray",
    proportions: Optional[bool] = None,
) -> DissimilarityResult:
    """
    Partition the dissimilarity of two already-aligned matrices.

    Args:
        before: Matrix of the first period
        after: Matrix of the second period, same labels as ``before``
        binary: Reduce weights to presence/absence first
        index: "bray" or "jaccard"
        proportions: Scale each matrix to total 1 first (quantitative
            mode only); defaults to ``not binary``

    Raises:
        LabelMismatchError: If the matrices have different labels
    """
    if index not in DISSIMILARITY_INDICES:
        raise ValueError(
            f"Unknown dissimilarity index {index!r}, expected one of {DISSIMILARITY_INDICES}"
        )
    if before.rows != after.rows or before.columns != after.columns:
        raise LabelMismatchError(
            "Matrices must share row and column labels; call align_matrices first"
        )
    if proportions is None:
        proportions = not binary

    x = _prepare(before.values, binary, proportions)
    y = _prepare(after.values, binary, proportions)

    shared = np.minimum(x, y)
    lost = x - shared
    gained = y - shared
    a = shared.sum()
    denominator = _denominator(a, lost.sum(), gained.sum(), index)

    if denominator == 0:
        logger.debug("Both networks are empty; dissimilarity undefined")
        return DissimilarityResult(
            wn=math.nan,
            st=math.nan,
            os=math.nan,
            st_rows=math.nan,
            st_columns=math.nan,
            st_both=math.nan,
            s=math.nan,
            binary=binary,
            index=index,
            os_reason=EMPTY_NETWORKS,
            unavailable_reason=EMPTY_NETWORKS,
        )

    shared_rows = (x.sum(axis=1) > 0) & (y.sum(axis=1) > 0)
    shared_columns = (x.sum(axis=0) > 0) & (y.sum(axis=0) > 0)
    changed = lost + gained

    def component(row_mask: np.ndarray, column_mask: np.ndarray) -> float:
        return float(changed[np.ix_(row_mask, column_mask)].sum() / denominator)

    st_rows = component(~shared_rows, shared_columns)
    st_columns = component(shared_rows, ~shared_columns)
    st_both = component(~shared_rows, ~shared_columns)

    if shared_rows.any() and shared_columns.any():
        rewiring, os_reason = component(shared_rows, shared_columns), None
    else:
        rewiring, os_reason = math.nan, NO_SHARED_SPECIES

    return DissimilarityResult(
        wn=float(changed.sum() / denominator),
        st=st_rows + st_columns + st_both,
        os=rewiring,
        st_rows=st_rows,
        st_columns=st_columns,
        st_both=st_both,
        s=species_dissimilarity(x, y, binary, index),
        binary=binary,
        index=index,
        os_reason=os_reason,
    )


def compare(
    before: InteractionMatrix,
    after: InteractionMatrix,
    binary: bool,
    index: str = "bray",
    proportions: Optional[bool] = None,
) -> DissimilarityResult:
    """
    Align two networks of the same replicate and partition their dissimilarity.

    Either matrix may be empty (sampling type absent in that period):
    WN and ST are then 1 and OS is NaN with ``os_reason`` set.
    """
    aligned_before, aligned_after = align_matrices(before, after)
    return partition_links(
        aligned_before, aligned_after, binary, index=index, proportions=proportions
    )
