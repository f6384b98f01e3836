"""
Error handling and edge case tests.
"""

import asyncio

import pytest

from sql_rightsizing.cli import SizingRecommendationApp
from sql_rightsizing.engine.orchestrator import AnalysisOrchestrator
from sql_rightsizing.models import (
    MetricBundle,
    MetricKind,
    RecommendationStatus,
    WorkloadClass,
)
from sql_rightsizing.services.ingestion import DataIngestionService
from sql_rightsizing.services.statistics import build_statistics

METRIC_HEADER = "server_name,database_name,timestamp,value_percent,nominal_value\n"


class TestMalformedInputs:
    """Bad input files degrade per database or per metric, never per run."""

    def test_header_only_inventory(self, sample_config_dir, sample_data_dir):
        """An inventory without rows yields no report."""
        inventory = sample_data_dir / "inventory.csv"
        inventory.write_text("server_name,database_name,edition,sku,capacity\n")
        app = SizingRecommendationApp(str(sample_config_dir), str(sample_data_dir))

        report = asyncio.run(app.run_analysis(inventory_file=str(inventory)))
        assert report is None

    def test_missing_inventory_is_fatal(self, sample_config_dir, sample_data_dir):
        app = SizingRecommendationApp(str(sample_config_dir), str(sample_data_dir))

        with pytest.raises(FileNotFoundError):
            asyncio.run(app.run_analysis(inventory_file=str(sample_data_dir / "nope.csv")))

    def test_unreadable_metric_file_is_empty(self, sample_data_dir):
        """A metric file without the key columns is skipped, the rest still load."""
        metrics_dir = sample_data_dir / "metrics"
        metrics_dir.mkdir()
        (metrics_dir / "dtu.csv").write_text("when,how_much\n2024-01-01,5\n")
        (metrics_dir / "sessions.csv").write_text(
            METRIC_HEADER + "srv1,db1,2024-01-01 00:00:00,12,0\n"
        )

        series = DataIngestionService(str(sample_data_dir)).ingest_metrics_data(
            str(metrics_dir)
        )

        assert MetricKind.DTU not in series[("srv1", "db1")]
        assert len(series[("srv1", "db1")][MetricKind.SESSIONS]) == 1

    def test_rows_without_values_dropped(self, sample_data_dir):
        metric_file = sample_data_dir / "cpu.csv"
        metric_file.write_text(
            METRIC_HEADER
            + "srv1,db1,2024-01-01 00:00:00,,\n"
            + "srv1,db1,2024-01-01 01:00:00,abc,\n"
            + "srv1,db1,2024-01-01 02:00:00,7,\n"
        )

        grouped = DataIngestionService(str(sample_data_dir)).ingest_metric_file(metric_file)

        assert [s.value_percent for s in grouped[("srv1", "db1")]] == [7.0]

    def test_orphaned_metrics_ignored(self, sample_data_dir, profile_factory, samples):
        profile = profile_factory()
        series = {
            ("sql-test", "db-test"): {MetricKind.DTU: samples([10.0])},
            ("sql-other", "db-gone"): {MetricKind.DTU: samples([10.0])},
        }

        bundles = DataIngestionService(str(sample_data_dir)).build_bundles([profile], series)

        assert list(bundles) == ["sql-test/db-test"]


class TestDegenerateSeries:
    """Empty and flat series keep every statistic neutral."""

    def test_empty_bundle_statistics(self, analysis_config, profile_factory):
        stats = build_statistics(
            profile_factory(),
            MetricBundle(),
            analysis_config,
            MetricKind.DTU,
            profile_factory().billing_model,
            100.0,
        )

        assert stats.sample_count == 0
        assert stats.p95_percent == 0.0
        assert stats.coefficient_of_variation == 0.0
        assert stats.growth_percent_per_month == 0.0
        assert stats.months_until_storage_full == 0.0
        assert stats.is_bimodal is False

    def test_database_without_compute_data(self, analysis_config, profile_factory, samples):
        bundle = MetricBundle.from_series({MetricKind.SESSIONS: samples([10.0] * 500)})
        record = AnalysisOrchestrator(analysis_config).analyze_database(
            profile_factory(), bundle
        )

        assert record.workload_class == WorkloadClass.INSUFFICIENT_DATA
        assert record.status == RecommendationStatus.REVIEW

    def test_all_zero_utilization(self, analysis_config, profile_factory, bundle_factory):
        record = AnalysisOrchestrator(analysis_config).analyze_database(
            profile_factory(), bundle_factory([0.0] * 200)
        )

        assert record.workload_class == WorkloadClass.SPARSE
        assert record.statistics.idle_percent == 100.0
        assert record.status == RecommendationStatus.REVIEW

    def test_zero_max_size_skips_storage_runway(
        self, analysis_config, profile_factory, samples
    ):
        n = 24 * 10
        bundle = MetricBundle.from_series(
            {
                MetricKind.DTU: samples([55.0] * n),
                MetricKind.STORAGE: samples(
                    [0.0] * n, nominal=[1024.0 * (10 + h) for h in range(n)]
                ),
            }
        )
        record = AnalysisOrchestrator(analysis_config).analyze_database(
            profile_factory(max_size_gb=0.0), bundle
        )

        assert record.statistics.storage_growth_mb_per_month > 0
        assert record.statistics.months_until_storage_full == 0.0
        assert record.decision.decided_by != "storage_runway"

    def test_unknown_sku_has_no_price(self, analysis_config, profile_factory, bundle_factory):
        record = AnalysisOrchestrator(analysis_config).analyze_database(
            profile_factory(sku="S99"), bundle_factory([55.0] * 50)
        )

        assert record.cost.current_monthly_cost == 0.0
        assert record.cost.monthly_savings == 0.0
