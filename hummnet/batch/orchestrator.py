"""
Batch orchestration over sampling method x replicate x period.

Every work item is processed in isolation (see ``items.process_item``);
results are merged in sorted key order at the end, so the report does
not depend on execution order or on the number of workers.
"""

from __future__ import annotations

import logging
import math
import multiprocessing as mp
from collections.abc import Iterable
from concurrent.futures import ProcessPoolExecutor
from itertools import repeat
from typing import Dict, List, Optional, Tuple

from hummnet.common.errors import PreconditionError
from hummnet.common.outcome import (
    BUILD_FAILED,
    COMPUTATION_ERROR,
    MISSING_PAIR,
    MISSING_RAW_COUNTS,
    split_value,
)
from hummnet.common.records import InteractionRecord, ItemKey, distinct, group_records
from hummnet.metrics import estimate_completeness
from hummnet.turnover import compare

from .config import BatchConfig
from .items import ItemResult, ItemState, process_item
from .log import RunLog
from .tables import (
    BatchReport,
    CompletenessRow,
    DissimilarityRow,
    ItemStatusRow,
    NetworkMetricRow,
    SpeciesMetricRow,
    flag_unpaired,
)

logger = logging.getLogger(__name__)

# Use spawn so workers never inherit parent state
_mp_ctx = mp.get_context("spawn")


def enumerate_items(
    records: List[InteractionRecord], config: BatchConfig
) -> List[ItemKey]:
    """All (sampling_method, replicate_id, period) combinations to process."""
    methods = config.sampling_methods or distinct(records, "sampling_method")
    replicates = config.replicates or distinct(records, "replicate_id")
    return [
        (method, replicate, period)
        for method in sorted(methods)
        for replicate in sorted(replicates)
        for period in config.periods
    ]


def _run_items(
    keys: List[ItemKey],
    grouped: Dict[ItemKey, List[InteractionRecord]],
    config: BatchConfig,
) -> List[ItemResult]:
    batches = [grouped.get(key, []) for key in keys]
    if config.n_workers == 1:
        return [process_item(key, batch, config) for key, batch in zip(keys, batches)]

    with ProcessPoolExecutor(max_workers=config.n_workers, mp_context=_mp_ctx) as pool:
        return list(pool.map(process_item, keys, batches, repeat(config)))


def _log_item(result: ItemResult, log: RunLog) -> None:
    if result.state == ItemState.BUILD_FAILED:
        log.error(f"Matrix build failed: {result.error}", result.key)
        return
    if result.error is not None:
        log.error(f"Metric computation failed: {result.error}", result.key)
    if result.count_error is not None:
        log.warning(f"No raw-count matrix: {result.count_error}", result.key)
    for message in result.warnings:
        log.warning(message, result.key)
    for name, entity, value in result.unavailable():
        target = f"{name} ({entity})" if entity else name
        log.warning(f"{target} unavailable: {value}", result.key)


def _status_row(result: ItemResult) -> ItemStatusRow:
    method, replicate, period = result.key
    n_rows, n_columns = result.matrix.shape if result.has_matrix else (0, 0)
    outcome = [s for s in result.history if s != ItemState.EXPORTED][-1]
    return ItemStatusRow(
        replicate_id=replicate,
        period=period,
        sampling_method=method,
        state=outcome.value,
        history=">".join(state.value for state in result.history),
        n_rows=n_rows,
        n_columns=n_columns,
        n_unavailable=len(result.unavailable()),
        n_warnings=len(result.warnings),
        error=result.error,
    )


def _metric_rows(
    result: ItemResult, config: BatchConfig
) -> Tuple[List[NetworkMetricRow], List[SpeciesMetricRow]]:
    method, replicate, period = result.key

    if result.state == ItemState.BUILD_FAILED:
        network = [
            NetworkMetricRow(replicate, period, method, name, None, BUILD_FAILED)
            for name in sorted(config.network_indices)
        ]
        return network, []

    network = []
    for name, metric_value in sorted(result.network.items()):
        value, reason = split_value(metric_value)
        network.append(NetworkMetricRow(replicate, period, method, name, value, reason))

    species = []
    for entity in sorted(result.species):
        for name, metric_value in sorted(result.species[entity].items()):
            value, reason = split_value(metric_value)
            species.append(
                SpeciesMetricRow(replicate, period, method, entity, name, value, reason)
            )
    return network, species


def _undefined_dissimilarity(
    replicate: str, method: str, binary: bool, reason: str
) -> DissimilarityRow:
    nan = math.nan
    return DissimilarityRow(
        replicate, method, binary, nan, nan, nan, nan, nan, nan, nan,
        os_reason=reason, unavailable_reason=reason,
    )


def _dissimilarity_rows(
    replicate: str,
    method: str,
    pair: Optional[Tuple[ItemResult, ItemResult]],
    config: BatchConfig,
    log: RunLog,
) -> List[DissimilarityRow]:
    rows = []
    for binary in config.binary_modes:
        if pair is None:
            rows.append(_undefined_dissimilarity(replicate, method, binary, MISSING_PAIR))
            continue

        before, after = pair
        try:
            result = compare(
                before.matrix,
                after.matrix,
                binary=binary,
                index=config.dissimilarity_index,
                proportions=config.proportions,
            )
        except PreconditionError:
            raise
        except Exception as exc:
            log.error(f"Dissimilarity failed (binary={binary}): {exc}", before.key)
            rows.append(
                _undefined_dissimilarity(replicate, method, binary, COMPUTATION_ERROR)
            )
            continue

        rows.append(
            DissimilarityRow(
                replicate_id=replicate,
                sampling_method=method,
                binary=binary,
                wn=result.wn,
                st=result.st,
                os=result.os,
                st_rows=result.st_rows,
                st_columns=result.st_columns,
                st_both=result.st_both,
                s=result.s,
                os_reason=result.os_reason,
                unavailable_reason=result.unavailable_reason,
            )
        )
    return rows


def _completeness_row(
    result: ItemResult, paired: bool, log: RunLog
) -> CompletenessRow:
    method, replicate, period = result.key
    if not result.has_matrix:
        reason = BUILD_FAILED
    elif not paired:
        reason = MISSING_PAIR
    elif result.count_matrix is None:
        reason = MISSING_RAW_COUNTS
    else:
        reason = None
    if reason is not None:
        return CompletenessRow(replicate, period, method, None, None, None, reason)

    # raises NonCountWeightError for non-count weights
    estimate = estimate_completeness(result.count_matrix)
    if not estimate.is_available:
        log.warning(f"Completeness unavailable: {estimate.unavailable_reason}", result.key)
        return CompletenessRow(
            replicate, period, method, estimate.observed_richness, None, None,
            estimate.unavailable_reason,
        )
    return CompletenessRow(
        replicate_id=replicate,
        period=period,
        sampling_method=method,
        observed_richness=estimate.observed_richness,
        estimated_richness=estimate.estimated_richness,
        completeness_ratio=estimate.completeness_ratio,
    )


def run_batch(
    records: Iterable[InteractionRecord],
    config: Optional[BatchConfig] = None,
    log: Optional[RunLog] = None,
) -> BatchReport:
    """
    Compute every table for a set of filtered, pre-aggregated records.

    One failing work item never stops the run: it appears in the item
    table as build-failed (or partial) and its metric rows carry reason
    tags. Dissimilarity and completeness only run for replicates whose
    two periods both produced a matrix.

    Args:
        records: Interaction records of all replicates, periods and methods
        config: Run parameters (defaults to BatchConfig())
        log: RunLog to append to (a new one is created if omitted)

    Returns:
        BatchReport with all tables and the run log
    """
    config = config or BatchConfig()
    log = log if log is not None else RunLog(run_id=config.short_id)
    records = list(records)

    keys = enumerate_items(records, config)
    grouped = group_records(records)
    ignored = set(grouped) - set(keys)
    if ignored:
        log.warning(f"Ignoring records of {len(ignored)} networks outside the requested items")
    log.info(f"Processing {len(keys)} work items with {config.n_workers} worker(s)")

    results = sorted(_run_items(keys, grouped, config), key=lambda r: r.key)

    report = BatchReport(config_id=config.get_id(), log=log)
    for result in results:
        _log_item(result, log)
        network, species = _metric_rows(result, config)
        report.network_metrics.extend(network)
        report.species_metrics.extend(species)

    by_key = {result.key: result for result in results}
    first, second = config.periods
    pairs = sorted({(method, replicate) for method, replicate, _ in keys})
    for method, replicate in pairs:
        before = by_key[(method, replicate, first)]
        after = by_key[(method, replicate, second)]
        paired = before.has_matrix and after.has_matrix
        report.dissimilarity.extend(
            _dissimilarity_rows(
                replicate, method, (before, after) if paired else None, config, log
            )
        )
        for result in (before, after):
            report.completeness.append(_completeness_row(result, paired, log))

    report.network_metrics = flag_unpaired(
        report.network_metrics, ("replicate_id", "sampling_method", "metric"), config.periods
    )
    report.species_metrics = flag_unpaired(
        report.species_metrics,
        ("replicate_id", "sampling_method", "metric", "entity"),
        config.periods,
    )
    report.completeness = flag_unpaired(
        report.completeness, ("replicate_id", "sampling_method"), config.periods
    )

    report.items = [_status_row(result.exported()) for result in results]
    log.info(f"Finished: {report.summary()['states']}")
    return report
