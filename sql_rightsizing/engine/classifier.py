"""
Workload classifier (Tier 3).

Rules are an ordered list of (guard, class) pairs evaluated top to bottom;
the first matching guard wins, so the order is part of the semantics.
"""

from typing import Callable, List, Optional, Tuple

from ..models import (
    AnalysisThresholds,
    Classification,
    DatabaseProfile,
    WorkloadClass,
    WorkloadStatistics,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)

Guard = Callable[[WorkloadStatistics, AnalysisThresholds], bool]


def _periodic_or_chaotic(stats: WorkloadStatistics, t: AnalysisThresholds) -> WorkloadClass:
    if stats.autocorrelation_24h > t.weak_periodic_autocorrelation:
        return WorkloadClass.PERIODIC
    return WorkloadClass.CHAOTIC


CLASSIFICATION_RULES: List[Tuple[str, Guard, Callable]] = [
    (
        "bimodal utilization",
        lambda s, t: s.is_bimodal,
        lambda s, t: WorkloadClass.BATCH_HEAVY,
    ),
    (
        "weekday/weekend gap",
        lambda s, t: s.weekly_variance_percent > t.weekly_variance_percent,
        lambda s, t: WorkloadClass.WEEKEND_WEEKDAY,
    ),
    (
        "low variability, mostly idle",
        lambda s, t: s.coefficient_of_variation < t.low_cv
        and s.idle_percent > t.sparse_idle_percent,
        lambda s, t: WorkloadClass.SPARSE,
    ),
    (
        "low variability",
        lambda s, t: s.coefficient_of_variation < t.low_cv
        and s.idle_percent <= t.sparse_idle_percent,
        lambda s, t: WorkloadClass.STEADY,
    ),
    (
        "moderate variability, strong daily cycle",
        lambda s, t: t.low_cv <= s.coefficient_of_variation < t.high_cv
        and s.autocorrelation_24h > t.periodic_autocorrelation,
        lambda s, t: WorkloadClass.PERIODIC,
    ),
    (
        "high variability, mostly idle",
        lambda s, t: s.coefficient_of_variation >= t.high_cv
        and s.idle_percent > t.bursty_idle_percent,
        lambda s, t: WorkloadClass.BURSTY,
    ),
    (
        "high variability, rarely idle",
        lambda s, t: s.coefficient_of_variation >= t.low_cv
        and s.idle_percent < t.chaotic_idle_percent,
        lambda s, t: WorkloadClass.CHAOTIC,
    ),
    (
        "high variability, partly idle",
        lambda s, t: s.coefficient_of_variation >= t.low_cv
        and t.chaotic_idle_percent <= s.idle_percent <= t.bursty_idle_percent,
        _periodic_or_chaotic,
    ),
]


def classify_statistics(
    stats: WorkloadStatistics, thresholds: AnalysisThresholds
) -> Tuple[WorkloadClass, str]:
    """First matching rule wins; no match is UNCLASSIFIED"""
    for name, guard, outcome in CLASSIFICATION_RULES:
        if guard(stats, thresholds):
            return outcome(stats, thresholds), name
    return WorkloadClass.UNCLASSIFIED, "no rule matched"


def serverless_blockers(
    stats: WorkloadStatistics, thresholds: AnalysisThresholds
) -> List[str]:
    """Reasons a provisioned database cannot move to serverless"""
    blockers = []
    if stats.avg_connections_per_hour > thresholds.serverless_max_connections_per_hour:
        blockers.append(
            f"{stats.avg_connections_per_hour:.1f} connections/hour keep the database awake"
        )
    if stats.log_write_p95_percent > thresholds.serverless_max_log_write_percent:
        blockers.append(
            f"log write P95 {stats.log_write_p95_percent:.1f}% exceeds "
            f"{thresholds.serverless_max_log_write_percent:.0f}%"
        )
    return blockers


class WorkloadClassifier:
    """Classifies a database's workload from its aggregate statistics"""

    def __init__(self, thresholds: AnalysisThresholds):
        self.thresholds = thresholds

    def classify(
        self, profile: DatabaseProfile, stats: WorkloadStatistics
    ) -> Classification:
        workload_class, rule = classify_statistics(stats, self.thresholds)
        reasons = [rule]
        policy_override: Optional[WorkloadClass] = None

        if workload_class == WorkloadClass.BURSTY and not profile.is_serverless:
            blockers = serverless_blockers(stats, self.thresholds)
            if blockers:
                policy_override = WorkloadClass.BURSTY_PROVISIONED
                reasons.extend(blockers)

        logger.debug(
            "Workload classified",
            database=profile.key,
            workload_class=workload_class.value,
            policy_override=policy_override.value if policy_override else None,
            cv=round(stats.coefficient_of_variation, 1),
            idle_percent=round(stats.idle_percent, 1),
        )

        return Classification(
            workload_class=workload_class,
            policy_override=policy_override,
            reasons=reasons,
        )
