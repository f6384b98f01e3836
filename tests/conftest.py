"""
Pytest configuration and shared fixtures for the SQL Rightsizing System.
"""

import tempfile
from datetime import datetime, timedelta
from pathlib import Path
from typing import List, Optional, Sequence

import pytest

from sql_rightsizing.models import (
    AnalysisConfig,
    BillingModel,
    DatabaseProfile,
    MetricBundle,
    MetricKind,
    Sample,
    WorkloadStatistics,
)

# Monday, so weekday/weekend partitions line up with whole days
START = datetime(2024, 1, 1)


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end workflow tests")
    config.addinivalue_line("markers", "functional: command line and export tests")


def build_samples(
    values: Sequence[float],
    start: datetime = START,
    nominal: Optional[Sequence[float]] = None,
) -> List[Sample]:
    """One hourly sample per value"""
    return [
        Sample(
            timestamp=start + timedelta(hours=i),
            value_percent=value,
            nominal_value=nominal[i] if nominal is not None else 0.0,
        )
        for i, value in enumerate(values)
    ]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_config_dir(temp_dir):
    """Empty configuration directory; defaults are written on first load."""
    config_dir = temp_dir / "config"
    config_dir.mkdir(parents=True, exist_ok=True)
    return config_dir


@pytest.fixture
def sample_data_dir(temp_dir):
    data_dir = temp_dir / "data"
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


@pytest.fixture
def analysis_config():
    return AnalysisConfig()


@pytest.fixture
def samples():
    """Factory for hourly sample series."""
    return build_samples


@pytest.fixture
def profile_factory():
    """Factory for database profiles, Standard S3 by default."""

    def _build(**overrides) -> DatabaseProfile:
        fields = dict(
            server_name="sql-test",
            database_name="db-test",
            edition="Standard",
            sku="S3",
            capacity=100,
            max_size_gb=250.0,
        )
        fields.update(overrides)
        return DatabaseProfile.from_inventory(**fields)

    return _build


@pytest.fixture
def stats_factory():
    """Factory for workload statistics of a healthy, steady DTU database."""

    def _build(**overrides) -> WorkloadStatistics:
        fields = dict(
            compute_metric=MetricKind.DTU,
            billing_model=BillingModel.DTU,
            effective_capacity=100.0,
            sample_count=720,
            days_of_data=30.0,
            avg_percent=40.0,
            p95_percent=55.0,
            max_percent=70.0,
            coefficient_of_variation=30.0,
            idle_percent=0.0,
            autocorrelation_24h=0.2,
            weekly_variance_percent=10.0,
            growth_percent_per_month=0.0,
            is_bimodal=False,
            sessions_peak_percent=20.0,
            workers_peak_percent=20.0,
            storage_percent=40.0,
            storage_used_gb=100.0,
            storage_growth_mb_per_month=0.0,
            months_until_storage_full=0.0,
            avg_connections_per_hour=50.0,
            log_write_p95_percent=10.0,
        )
        fields.update(overrides)

        # Absolute compute follows percent and capacity unless given
        if fields["billing_model"] == BillingModel.DTU:
            scale = fields["effective_capacity"] / 100.0
        else:
            scale = fields["effective_capacity"]
        fields.setdefault("p95_absolute", fields["p95_percent"] * scale)
        fields.setdefault("max_absolute", fields["max_percent"] * scale)
        return WorkloadStatistics(**fields)

    return _build


@pytest.fixture
def bundle_factory():
    """Factory for metric bundles of `hours` samples with flat side metrics."""

    def _build(
        compute: Sequence[float],
        kind: MetricKind = MetricKind.DTU,
        sessions: float = 10.0,
        workers: float = 10.0,
        storage_percent: float = 40.0,
        storage_mb: float = 100 * 1024.0,
        connections: float = 50.0,
        log_write: float = 10.0,
        start: datetime = START,
    ) -> MetricBundle:
        n = len(compute)
        return MetricBundle.from_series(
            {
                kind: build_samples(compute, start),
                MetricKind.SESSIONS: build_samples([sessions] * n, start),
                MetricKind.WORKERS: build_samples([workers] * n, start),
                MetricKind.STORAGE: build_samples(
                    [storage_percent] * n, start, nominal=[storage_mb] * n
                ),
                MetricKind.CONNECTIONS: build_samples(
                    [0.0] * n, start, nominal=[connections] * n
                ),
                MetricKind.LOG_WRITE: build_samples([log_write] * n, start),
            }
        )

    return _build
