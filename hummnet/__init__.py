"""
Hummnet: plant–hummingbird interaction networks

Builds bipartite interaction matrices from camera and pollen-load
records, computes specialization (H2', d', species specificity),
partitions pre/post network dissimilarity into species turnover and
rewiring, and estimates sampling completeness, for every replicate of
a field experiment.
"""

__version__ = "0.1.0"

# Core types
from .common import (
    InteractionRecord,
    Unavailable,
    aggregate_records,
)

# Errors
from .common import (
    DuplicateCellError,
    EmptyInputError,
    LabelMismatchError,
    NetworkInputError,
    NonCountWeightError,
    NonIntegerWeightError,
    PreconditionError,
)

# Matrices
from .networks import InteractionMatrix, build_matrix

# Metrics
from .metrics import (
    CompletenessEstimate,
    estimate_completeness,
    network_level,
    species_level,
)

# Turnover
from .turnover import DissimilarityResult, compare

# Batch
from .batch import BatchConfig, BatchReport, RunLog, run_batch

__all__ = [
    # Core types
    "InteractionRecord",
    "Unavailable",
    "aggregate_records",
    # Errors
    "DuplicateCellError",
    "EmptyInputError",
    "LabelMismatchError",
    "NetworkInputError",
    "NonCountWeightError",
    "NonIntegerWeightError",
    "PreconditionError",
    # Matrices
    "InteractionMatrix",
    "build_matrix",
    # Metrics
    "CompletenessEstimate",
    "estimate_completeness",
    "network_level",
    "species_level",
    # Turnover
    "DissimilarityResult",
    "compare",
    # Batch
    "BatchConfig",
    "BatchReport",
    "RunLog",
    "run_batch",
]
