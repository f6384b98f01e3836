"""
Metric sample, bundle and derived statistics models.
"""

from datetime import datetime
from typing import Dict, List, Tuple

from pydantic import BaseModel, ConfigDict, Field

from .types import BillingModel, MetricKind


class Sample(BaseModel):
    """Single hourly observation of a metric"""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    value_percent: float = 0.0
    nominal_value: float = 0.0


class MetricBundle(BaseModel):
    """All metric series collected for one database, time-ordered"""

    model_config = ConfigDict(frozen=True)

    dtu: Tuple[Sample, ...] = ()
    cpu: Tuple[Sample, ...] = ()
    sessions: Tuple[Sample, ...] = ()
    workers: Tuple[Sample, ...] = ()
    storage: Tuple[Sample, ...] = ()
    connections: Tuple[Sample, ...] = ()
    log_write: Tuple[Sample, ...] = ()

    @classmethod
    def from_series(cls, series: Dict[MetricKind, List[Sample]]) -> "MetricBundle":
        """Build a bundle, sorting every series by timestamp"""
        return cls(
            **{
                kind.value: tuple(sorted(samples, key=lambda s: s.timestamp))
                for kind, samples in series.items()
            }
        )

    def series(self, kind: MetricKind) -> Tuple[Sample, ...]:
        return getattr(self, kind.value)

    def missing_kinds(self) -> List[MetricKind]:
        return [kind for kind in MetricKind if not self.series(kind)]


class WorkloadStatistics(BaseModel):
    """Aggregate statistics for one database, computed once per run"""

    model_config = ConfigDict(frozen=True)

    # Which compute series was used and in which billing frame
    compute_metric: MetricKind
    billing_model: BillingModel
    effective_capacity: float = Field(
        description="DTU count, or vCore count for vCore-framed analysis"
    )
    sample_count: int = 0
    days_of_data: float = 0.0

    # Compute, percent of limit
    avg_percent: float = 0.0
    p95_percent: float = 0.0
    max_percent: float = 0.0

    # Compute, absolute (DTU units or vCore x 100)
    p95_absolute: float = 0.0
    max_absolute: float = 0.0

    # Shape
    coefficient_of_variation: float = 0.0
    idle_percent: float = 0.0
    autocorrelation_24h: float = 0.0
    weekly_variance_percent: float = 0.0
    growth_percent_per_month: float = 0.0
    is_bimodal: bool = False

    # Resource pressure
    sessions_peak_percent: float = 0.0
    workers_peak_percent: float = 0.0
    storage_percent: float = 0.0
    storage_used_gb: float = 0.0
    storage_growth_mb_per_month: float = 0.0
    months_until_storage_full: float = 0.0

    # Serverless viability inputs
    avg_connections_per_hour: float = 0.0
    log_write_p95_percent: float = 0.0
