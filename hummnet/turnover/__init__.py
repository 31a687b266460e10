"""
Pairwise network dissimilarity partitioned into turnover and rewiring.
"""

from .dissimilarity import (
    DISSIMILARITY_INDICES,
    DissimilarityResult,
    align_matrices,
    compare,
    partition_links,
    species_dissimilarity,
)

__all__ = [
    "DISSIMILARITY_INDICES",
    "DissimilarityResult",
    "align_matrices",
    "compare",
    "partition_links",
    "species_dissimilarity",
]
