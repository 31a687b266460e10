"""
Batch processing of all networks of a study.

Enumerates sampling method x replicate x period work items, computes
their metrics with per-item fault isolation, pairs periods for
dissimilarity and completeness, and assembles the output tables.
"""

from .config import BatchConfig
from .items import ItemResult, ItemState, WorkItem, process_item
from .log import LogEntry, RunLog
from .orchestrator import enumerate_items, run_batch
from .tables import (
    BatchReport,
    CompletenessRow,
    DissimilarityRow,
    ItemStatusRow,
    NetworkMetricRow,
    SpeciesMetricRow,
    flag_unpaired,
)

__all__ = [
    "BatchConfig",
    "BatchReport",
    "CompletenessRow",
    "DissimilarityRow",
    "ItemResult",
    "ItemState",
    "ItemStatusRow",
    "LogEntry",
    "NetworkMetricRow",
    "RunLog",
    "SpeciesMetricRow",
    "WorkItem",
    "enumerate_items",
    "flag_unpaired",
    "process_item",
    "run_batch",
]
