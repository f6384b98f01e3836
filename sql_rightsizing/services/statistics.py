"""
Statistics primitives over metric samples.

Every function is pure and total: degenerate input (empty, constant, too
short, zero mean) yields a neutral value instead of raising.
"""

import math
from typing import Dict, List, Optional, Sequence

import numpy as np

from ..models import (
    AnalysisConfig,
    BillingModel,
    DatabaseProfile,
    MetricBundle,
    MetricKind,
    Sample,
    WorkloadStatistics,
)

HOURS_PER_DAY = 24
HOURS_PER_WEEK = 7 * HOURS_PER_DAY
DAYS_PER_MONTH = 30


def _as_array(values: Sequence[float]) -> np.ndarray:
    return np.asarray(values, dtype=float)


def _is_flat(arr: np.ndarray) -> bool:
    return arr.size == 0 or np.ptp(arr) == 0


def mean(values: Sequence[float]) -> float:
    if len(values) == 0:
        return 0.0
    return float(np.mean(_as_array(values)))


def percentile(values: Sequence[float], p: float) -> float:
    """Nearest-rank percentile; empty input gives 0"""
    if len(values) == 0:
        return 0.0
    ordered = np.sort(_as_array(values))
    index = math.ceil(p / 100.0 * ordered.size) - 1
    index = min(max(index, 0), ordered.size - 1)
    return float(ordered[index])


def coefficient_of_variation(values: Sequence[float]) -> float:
    """Population standard deviation as a percentage of the mean"""
    arr = _as_array(values)
    if _is_flat(arr):
        return 0.0
    avg = np.mean(arr)
    if avg == 0:
        return 0.0
    return float(np.std(arr) / avg * 100.0)


def linear_slope(series: Sequence[float]) -> float:
    """Ordinary least-squares slope of value against index 0..n-1"""
    y = _as_array(series)
    if y.size < 2 or _is_flat(y):
        return 0.0
    return float(np.polyfit(np.arange(y.size), y, 1)[0])


def linear_trend(series: Sequence[float]) -> float:
    """Slope expressed as % change per 30 steps relative to the series mean"""
    if len(series) < 2:
        return 0.0
    avg = mean(series)
    if avg == 0:
        return 0.0
    return linear_slope(series) * DAYS_PER_MONTH / avg * 100.0


def autocorrelation(values: Sequence[float], lag: int = HOURS_PER_DAY) -> float:
    """Autocovariance at `lag` normalized by variance, within [-1, 1]"""
    arr = _as_array(values)
    if lag <= 0 or arr.size < 2 * lag or _is_flat(arr):
        return 0.0
    deviations = arr - arr.mean()
    variance = np.dot(deviations, deviations)
    covariance = np.dot(deviations[:-lag], deviations[lag:])
    return float(np.clip(covariance / variance, -1.0, 1.0))


def is_bimodal(
    values: Sequence[float],
    window_iqr: float = 0.5,
    max_central_fraction: float = 0.2,
    min_samples: int = 20,
) -> bool:
    """Dip heuristic: too few samples near the median relative to the IQR"""
    arr = _as_array(values)
    if arr.size < min_samples:
        return False
    q1 = percentile(arr, 25)
    median = percentile(arr, 50)
    q3 = percentile(arr, 75)
    iqr = q3 - q1
    if iqr <= 0:
        return False
    central = np.count_nonzero(np.abs(arr - median) <= window_iqr * iqr)
    return bool(central < max_central_fraction * arr.size)


def weekly_variance(samples: Sequence[Sample], min_samples: int = HOURS_PER_WEEK) -> float:
    """Weekday vs weekend average gap as a percentage of the larger average"""
    if len(samples) < min_samples:
        return 0.0
    weekday = [s.value_percent for s in samples if s.timestamp.weekday() < 5]
    weekend = [s.value_percent for s in samples if s.timestamp.weekday() >= 5]
    if not weekday or not weekend:
        return 0.0
    weekday_avg, weekend_avg = mean(weekday), mean(weekend)
    peak = max(weekday_avg, weekend_avg)
    if peak == 0:
        return 0.0
    return abs(weekday_avg - weekend_avg) / peak * 100.0


def idle_percent(values: Sequence[float], threshold: float = 5.0) -> float:
    """Share of samples below `threshold`, in percent"""
    arr = _as_array(values)
    if arr.size == 0:
        return 0.0
    return float(np.count_nonzero(arr < threshold) / arr.size * 100.0)


def daily_averages(samples: Sequence[Sample], nominal: bool = False) -> List[float]:
    """Calendar-day averages, in day order"""
    days: Dict[object, List[float]] = {}
    for sample in samples:
        value = sample.nominal_value if nominal else sample.value_percent
        days.setdefault(sample.timestamp.date(), []).append(value)
    return [mean(days[day]) for day in sorted(days)]


def daily_last(samples: Sequence[Sample], nominal: bool = True) -> List[float]:
    """Last observation of each calendar day, in day order"""
    days: Dict[object, float] = {}
    for sample in sorted(samples, key=lambda s: s.timestamp):
        days[sample.timestamp.date()] = (
            sample.nominal_value if nominal else sample.value_percent
        )
    return [days[day] for day in sorted(days)]


def _peak_percent(samples: Sequence[Sample], limit: Optional[float]) -> float:
    """Peak percent of limit, derived from nominal values when percent is absent"""
    if not samples:
        return 0.0
    peak = max(s.value_percent for s in samples)
    if peak > 0 or not limit:
        return peak
    return max(s.nominal_value for s in samples) / limit * 100.0


def _session_worker_limits(profile: DatabaseProfile, config: AnalysisConfig):
    if profile.billing_model == BillingModel.DTU:
        tier = config.limits.dtu_tiers.get(profile.sku)
        if tier:
            return tier.max_sessions, tier.max_workers
        return None, None
    family = config.limits.family_for_edition(profile.edition)
    if family:
        return family.max_sessions, family.workers_per_vcore * max(profile.capacity, 1)
    return None, None


def build_statistics(
    profile: DatabaseProfile,
    bundle: MetricBundle,
    config: AnalysisConfig,
    compute_metric: MetricKind,
    billing_model: BillingModel,
    effective_capacity: float,
) -> WorkloadStatistics:
    """Derive the aggregate statistics of one database"""
    thresholds = config.thresholds
    compute = bundle.series(compute_metric)
    values = [s.value_percent for s in compute]

    # Absolute compute: DTU units, or vCore x 100 for the vCore frame
    if billing_model == BillingModel.DTU:
        scale = effective_capacity / 100.0
    else:
        scale = effective_capacity
    p95 = percentile(values, 95)
    peak = max(values) if values else 0.0

    max_sessions, max_workers = _session_worker_limits(profile, config)

    storage = bundle.storage
    storage_used_mb = storage[-1].nominal_value if storage else 0.0
    storage_used_gb = storage_used_mb / 1024.0
    storage_percent = storage[-1].value_percent if storage else 0.0
    if storage and storage_percent == 0 and profile.max_size_gb > 0:
        storage_percent = storage_used_gb / profile.max_size_gb * 100.0
    storage_growth = linear_slope(daily_last(storage)) * DAYS_PER_MONTH
    months_until_full = 0.0
    if storage_growth > 0 and profile.max_size_gb > 0:
        months_until_full = (
            (profile.max_size_gb - storage_used_gb) * 1024.0 / storage_growth
        )

    return WorkloadStatistics(
        compute_metric=compute_metric,
        billing_model=billing_model,
        effective_capacity=effective_capacity,
        sample_count=len(values),
        days_of_data=len(values) / float(HOURS_PER_DAY),
        avg_percent=mean(values),
        p95_percent=p95,
        max_percent=peak,
        p95_absolute=p95 * scale,
        max_absolute=peak * scale,
        coefficient_of_variation=coefficient_of_variation(values),
        idle_percent=idle_percent(values, thresholds.idle_threshold_percent),
        autocorrelation_24h=autocorrelation(values, thresholds.autocorrelation_lag),
        weekly_variance_percent=weekly_variance(compute),
        growth_percent_per_month=linear_trend(daily_averages(compute)),
        is_bimodal=is_bimodal(values),
        sessions_peak_percent=_peak_percent(bundle.sessions, max_sessions),
        workers_peak_percent=_peak_percent(bundle.workers, max_workers),
        storage_percent=storage_percent,
        storage_used_gb=storage_used_gb,
        storage_growth_mb_per_month=storage_growth,
        months_until_storage_full=months_until_full,
        avg_connections_per_hour=mean([s.nominal_value for s in bundle.connections]),
        log_write_p95_percent=percentile(
            [s.value_percent for s in bundle.log_write], 95
        ),
    )
