"""
Tests for output tables and unpaired flagging.

Tests for hummnet/batch/tables.py
"""

from __future__ import annotations

import pytest

from hummnet.batch import (
    BatchReport,
    CompletenessRow,
    ItemStatusRow,
    NetworkMetricRow,
    RunLog,
    flag_unpaired,
)
from hummnet.common.outcome import NO_OBSERVED

GROUP = ("replicate_id", "sampling_method", "metric")


def h2_row(replicate, period, value, reason=None):
    return NetworkMetricRow(replicate, period, "camera", "H2", value, reason)


class TestFlagUnpaired:
    """Test flag_unpaired."""

    def test_only_pre_defined(self):
        """Test a group defined in one period only is unpaired."""
        rows = flag_unpaired(
            [h2_row("A", "pre", 0.4), h2_row("A", "post", None, "network too small")],
            GROUP,
        )
        assert [row.unpaired for row in rows] == [True, True]

    def test_both_defined(self):
        """Test a group defined in both periods is paired."""
        rows = flag_unpaired([h2_row("A", "pre", 0.4), h2_row("A", "post", 0.6)], GROUP)
        assert not any(row.unpaired for row in rows)

    def test_neither_defined(self):
        """Test a group undefined in both periods is not unpaired."""
        rows = flag_unpaired(
            [
                h2_row("A", "pre", None, "build-failed"),
                h2_row("A", "post", None, "build-failed"),
            ],
            GROUP,
        )
        assert not any(row.unpaired for row in rows)

    def test_absent_period_row(self):
        """Test a group with only one row at all is unpaired when defined."""
        rows = flag_unpaired([h2_row("A", "pre", 0.4)], GROUP)
        assert rows[0].unpaired

    def test_groups_independent(self):
        """Test replicates are flagged separately."""
        rows = flag_unpaired(
            [h2_row("A", "pre", 0.4), h2_row("B", "pre", 0.4), h2_row("B", "post", 0.5)],
            GROUP,
        )
        assert [row.unpaired for row in rows] == [True, False, False]

    def test_custom_periods(self):
        """Test period labels come from the caller."""
        rows = [
            NetworkMetricRow("A", "wet", "camera", "H2", 0.4),
            NetworkMetricRow("A", "dry", "camera", "H2", 0.5),
        ]
        assert not any(r.unpaired for r in flag_unpaired(rows, GROUP, ("wet", "dry")))
        assert all(r.unpaired is False for r in flag_unpaired(rows, GROUP, ("pre", "post")))

    def test_completeness_rows(self):
        """Test completeness rows are defined by their reason tag."""
        rows = flag_unpaired(
            [
                CompletenessRow("A", "pre", "camera", 3, 3.5, 6 / 7),
                CompletenessRow("A", "post", "camera", 0, None, None, NO_OBSERVED),
            ],
            ("replicate_id", "sampling_method"),
        )
        assert [row.unpaired for row in rows] == [True, True]


class TestBatchReport:
    """Test BatchReport helpers."""

    @pytest.fixture
    def report(self):
        log = RunLog("abc")
        log.warning("w")
        return BatchReport(
            config_id="abc",
            items=[
                ItemStatusRow(
                    "A", "pre", "camera", "partial", "pending>matrix-built>partial>exported"
                ),
                ItemStatusRow(
                    "A", "post", "camera", "build-failed", "pending>build-failed>exported"
                ),
            ],
            network_metrics=[h2_row("A", "pre", 0.4)],
            log=log,
        )

    def test_as_dicts(self, report):
        """Test rows flatten to dicts with every column."""
        rows = report.as_dicts("network_metrics")
        assert rows == [
            {
                "replicate_id": "A",
                "period": "pre",
                "sampling_method": "camera",
                "metric": "H2",
                "value": 0.4,
                "unavailable_reason": None,
                "unpaired": False,
            }
        ]

    def test_unknown_table(self, report):
        """Test unknown table names are rejected."""
        with pytest.raises(ValueError):
            report.as_dicts("log")

    def test_build_failures(self, report):
        """Test build failures are listed."""
        assert [row.period for row in report.build_failures()] == ["post"]

    def test_summary(self, report):
        """Test the summary counts states, tables and log entries."""
        summary = report.summary()
        assert summary["items"] == 2
        assert summary["states"] == {"partial": 1, "build-failed": 1}
        assert summary["network_metrics"] == 1
        assert summary["dissimilarity"] == 0
        assert summary["warnings"] == 1
