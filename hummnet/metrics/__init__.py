"""
Specialization and completeness metrics for single networks.
"""

from .completeness import CompletenessEstimate, chao1, estimate_completeness
from .network_level import NETWORK_INDICES, h2_prime, network_level
from .species_level import SPECIES_INDICES, d_prime, species_level

__all__ = [
    "CompletenessEstimate",
    "NETWORK_INDICES",
    "SPECIES_INDICES",
    "chao1",
    "d_prime",
    "estimate_completeness",
    "h2_prime",
    "network_level",
    "species_level",
]
