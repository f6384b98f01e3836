"""
Unit tests for the statistics primitives and statistics derivation.
"""

import math
from datetime import datetime

import numpy as np
import pytest

from sql_rightsizing.models import (
    AnalysisConfig,
    AnalysisThresholds,
    BillingModel,
    MetricBundle,
    MetricKind,
)
from sql_rightsizing.services.statistics import (
    autocorrelation,
    build_statistics,
    coefficient_of_variation,
    daily_averages,
    daily_last,
    idle_percent,
    is_bimodal,
    linear_slope,
    linear_trend,
    percentile,
    weekly_variance,
)


class TestPercentile:
    def test_nearest_rank(self):
        values = list(range(1, 11))
        assert percentile(values, 95) == 10
        assert percentile(values, 50) == 5
        assert percentile(values, 25) == 3

    def test_unsorted_input(self):
        assert percentile([9, 1, 5, 3, 7], 50) == 5

    def test_clamped_rank(self):
        assert percentile([4.0], 0) == 4.0
        assert percentile([1, 2, 3], 100) == 3

    def test_empty_is_zero(self):
        assert percentile([], 95) == 0.0

    def test_does_not_mutate_input(self):
        values = [3, 1, 2]
        percentile(values, 50)
        assert values == [3, 1, 2]


class TestVariability:
    def test_coefficient_of_variation(self):
        # mean 20, population stdev 10
        assert coefficient_of_variation([10, 30]) == pytest.approx(50.0)

    def test_constant_series_has_no_variation(self):
        assert coefficient_of_variation([10, 10, 10]) == 0.0

    def test_degenerate_inputs(self):
        assert coefficient_of_variation([]) == 0.0
        assert coefficient_of_variation([0, 0, 0]) == 0.0

    def test_idle_percent(self):
        assert idle_percent([0, 1, 10, 20]) == 50.0
        assert idle_percent([5, 6]) == 0.0
        assert idle_percent([]) == 0.0


class TestTrend:
    def test_linear_slope(self):
        assert linear_slope([0, 2, 4, 6]) == pytest.approx(2.0)
        assert linear_slope([5, 5, 5]) == 0.0

    def test_linear_trend_is_percent_per_30_steps(self):
        # slope 2, mean 4
        assert linear_trend([2, 4, 6]) == pytest.approx(1500.0)

    def test_declining_trend_is_negative(self):
        assert linear_trend([60, 50, 40, 30]) < 0

    def test_least_squares_fit_through_noise(self):
        values = [2.0 * i + (1.0 if i % 2 else -1.0) for i in range(10)]
        assert linear_slope(values) == pytest.approx(2.0, abs=0.2)

    def test_accepts_numpy_arrays(self):
        slope = linear_slope(np.array([0.0, 2.0, 4.0, 6.0]))

        assert type(slope) is float
        assert slope == pytest.approx(2.0)
        assert type(coefficient_of_variation(np.array([10.0, 30.0]))) is float
        assert type(percentile(np.array([3.0, 1.0, 2.0]), 50)) is float

    def test_degenerate_inputs(self):
        assert linear_trend([]) == 0.0
        assert linear_trend([5]) == 0.0
        assert linear_trend([-1, 1]) == 0.0
        assert linear_slope([3]) == 0.0


class TestAutocorrelation:
    def test_daily_cycle_is_strongly_periodic(self):
        day = [50 + 40 * math.sin(2 * math.pi * h / 24) for h in range(24)]
        assert autocorrelation(day * 7, lag=24) > 0.7

    def test_requires_two_full_lags(self):
        day = [float(h) for h in range(24)]
        assert autocorrelation(day + day[:23], lag=24) == 0.0

    def test_constant_series(self):
        assert autocorrelation([7.0] * 100) == 0.0

    def test_bounded(self):
        values = [(-1) ** i * 10.0 for i in range(200)]
        assert -1.0 <= autocorrelation(values, lag=1) <= 1.0


class TestBimodality:
    def test_too_few_samples(self):
        assert is_bimodal([0] * 5 + [100] * 5) is False

    def test_zero_iqr(self):
        assert is_bimodal([10.0] * 50) is False

    def test_two_clusters_with_narrow_window(self):
        values = [0.0] * 15 + [50.0] * 2 + [100.0] * 15
        assert is_bimodal(values, window_iqr=0.1) is True

    def test_default_window_covers_quartile_band(self):
        values = [0.0] * 15 + [50.0] * 2 + [100.0] * 15
        assert is_bimodal(values) is False


class TestCalendarAggregation:
    def test_weekly_variance(self, samples):
        # 120 weekday hours at 80, then 48 weekend hours at 20
        series = samples([80.0] * 120 + [20.0] * 48)
        assert weekly_variance(series) == pytest.approx(75.0)

    def test_weekly_variance_needs_a_week(self, samples):
        assert weekly_variance(samples([80.0] * 100)) == 0.0

    def test_weekly_variance_zero_activity(self, samples):
        assert weekly_variance(samples([0.0] * 168)) == 0.0

    def test_daily_averages(self, samples):
        series = samples([10.0] * 24 + [20.0] * 24)
        assert daily_averages(series) == [10.0, 20.0]

    def test_daily_last_uses_nominal_values(self, samples):
        series = samples([0.0] * 48, nominal=list(range(48)))
        assert daily_last(series) == [23.0, 47.0]


class TestBuildStatistics:
    def test_dtu_frame(self, profile_factory, bundle_factory):
        profile = profile_factory()
        bundle = bundle_factory([50.0] * 168)
        stats = build_statistics(
            profile, bundle, AnalysisConfig(), MetricKind.DTU, BillingModel.DTU, 100.0
        )

        assert stats.sample_count == 168
        assert stats.days_of_data == pytest.approx(7.0)
        assert stats.p95_percent == 50.0
        assert stats.p95_absolute == pytest.approx(50.0)
        assert stats.coefficient_of_variation == 0.0
        assert stats.idle_percent == 0.0
        assert stats.sessions_peak_percent == 10.0
        assert stats.storage_percent == 40.0
        assert stats.avg_connections_per_hour == 50.0
        assert stats.log_write_p95_percent == 10.0

    def test_vcore_absolute_units(self, profile_factory, bundle_factory):
        profile = profile_factory(edition="GeneralPurpose", sku="GP_Gen5_4", capacity=4)
        bundle = bundle_factory([50.0] * 168, kind=MetricKind.CPU)
        stats = build_statistics(
            profile, bundle, AnalysisConfig(), MetricKind.CPU, BillingModel.VCORE, 4.0
        )

        # vCore x 100: half of 4 vCores
        assert stats.p95_absolute == pytest.approx(200.0)
        assert stats.max_absolute == pytest.approx(200.0)

    def test_storage_percent_from_used_space(self, profile_factory, bundle_factory):
        profile = profile_factory(max_size_gb=100.0)
        bundle = bundle_factory([50.0] * 168, storage_percent=0.0, storage_mb=50 * 1024.0)
        stats = build_statistics(
            profile, bundle, AnalysisConfig(), MetricKind.DTU, BillingModel.DTU, 100.0
        )

        assert stats.storage_used_gb == pytest.approx(50.0)
        assert stats.storage_percent == pytest.approx(50.0)

    def test_storage_growth_and_runway(self, profile_factory, samples):
        profile = profile_factory(max_size_gb=100.0)
        hours = 24 * 30
        # 10 MB per hour is 240 MB per day
        storage_mb = [80 * 1024.0 + 10 * h for h in range(hours)]
        bundle = MetricBundle.from_series(
            {
                MetricKind.DTU: samples([40.0] * hours),
                MetricKind.STORAGE: samples([0.0] * hours, nominal=storage_mb),
            }
        )
        stats = build_statistics(
            profile, bundle, AnalysisConfig(), MetricKind.DTU, BillingModel.DTU, 100.0
        )

        assert stats.storage_growth_mb_per_month == pytest.approx(7200.0)
        expected_months = (100.0 - storage_mb[-1] / 1024.0) * 1024.0 / 7200.0
        assert stats.months_until_storage_full == pytest.approx(expected_months)

    def test_session_peak_from_nominal_counts(self, profile_factory, samples):
        profile = profile_factory()
        bundle = MetricBundle.from_series(
            {
                MetricKind.DTU: samples([40.0] * 168),
                # S3 allows 2400 sessions
                MetricKind.SESSIONS: samples([0.0] * 168, nominal=[1200.0] * 168),
            }
        )
        stats = build_statistics(
            profile, bundle, AnalysisConfig(), MetricKind.DTU, BillingModel.DTU, 100.0
        )

        assert stats.sessions_peak_percent == pytest.approx(50.0)

    def test_empty_bundle_is_neutral(self, profile_factory):
        stats = build_statistics(
            profile_factory(),
            MetricBundle(),
            AnalysisConfig(),
            MetricKind.DTU,
            BillingModel.DTU,
            100.0,
        )

        assert stats.sample_count == 0
        assert stats.p95_percent == 0.0
        assert stats.growth_percent_per_month == 0.0
        assert stats.months_until_storage_full == 0.0

    def test_weekly_gap_ignores_sufficiency_override(self, profile_factory, samples):
        # Saturday start: 48 weekend hours at 20, then 52 weekday hours at 80
        series = samples([20.0] * 48 + [80.0] * 52, start=datetime(2024, 1, 6))
        config = AnalysisConfig(thresholds=AnalysisThresholds(min_samples=24))
        stats = build_statistics(
            profile_factory(),
            MetricBundle.from_series({MetricKind.DTU: series}),
            config,
            MetricKind.DTU,
            BillingModel.DTU,
            100.0,
        )

        assert weekly_variance(series, min_samples=24) == pytest.approx(75.0)
        assert stats.weekly_variance_percent == 0.0
