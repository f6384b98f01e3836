"""
Constraint triage (Tier 1) and the elastic pool member check.
"""

from typing import List, Optional

from ..models import (
    AnalysisConfig,
    BillingModel,
    Confidence,
    DatabaseProfile,
    Decision,
    Priority,
    RecommendationStatus,
    ResourceLimits,
    WorkloadClass,
    WorkloadStatistics,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


def next_dtu_tier(sku: str, limits: ResourceLimits) -> str:
    """One step up the ladder, clamped at the top; off-ladder SKUs start at the bottom"""
    index = limits.ladder_index(sku)
    if index < 0:
        return limits.dtu_ladder[0]
    return limits.dtu_ladder[min(index + 1, len(limits.dtu_ladder) - 1)]


def constraint_breaches(
    stats: WorkloadStatistics, config: AnalysisConfig
) -> List[str]:
    """Breach reasons, in evaluation order"""
    t = config.thresholds
    reasons = []
    if stats.sessions_peak_percent > t.sessions_peak_percent:
        reasons.append(f"sessions peak {stats.sessions_peak_percent:.1f}%")
    if stats.workers_peak_percent > t.workers_peak_percent:
        reasons.append(f"workers peak {stats.workers_peak_percent:.1f}%")
    if stats.storage_percent > t.storage_percent:
        reasons.append(f"storage {stats.storage_percent:.1f}%")
    return reasons


def triage_constraints(
    profile: DatabaseProfile, stats: WorkloadStatistics, config: AnalysisConfig
) -> Optional[Decision]:
    """UPGRADE a database that is hitting a resource limit"""
    reasons = constraint_breaches(stats, config)
    if not reasons:
        return None

    logger.info("Resource limit breached", database=profile.key, reasons=reasons)
    summary = "; ".join(reasons)

    if stats.billing_model == BillingModel.DTU:
        target = next_dtu_tier(profile.sku, config.limits)
        return Decision(
            status=RecommendationStatus.UPGRADE,
            workload_class=WorkloadClass.CONSTRAINED,
            action=f"Resource limits breached ({summary}): upgrade {profile.sku} to {target}",
            confidence=Confidence.HIGH,
            priority=Priority.HIGH,
            decided_by="constraint_triage",
            target_tier=target,
            target_capacity=config.limits.tier_capacity(target),
        )

    return Decision(
        status=RecommendationStatus.UPGRADE,
        workload_class=WorkloadClass.CONSTRAINED,
        action=(
            f"Resource limits breached ({summary}): add vCores or switch to "
            f"BusinessCritical; size manually"
        ),
        confidence=Confidence.HIGH,
        priority=Priority.HIGH,
        decided_by="constraint_triage",
        manual_sizing_required=True,
    )


def check_pool_member(
    profile: DatabaseProfile, stats: WorkloadStatistics, config: AnalysisConfig
) -> Optional[Decision]:
    """Pool members only get a pool-level pressure check, never classification"""
    if not profile.in_elastic_pool:
        return None

    limit = config.thresholds.pool_constraint_percent
    pressure = {
        "compute": stats.max_percent,
        "sessions": stats.sessions_peak_percent,
        "workers": stats.workers_peak_percent,
    }
    breached = [
        f"{name} peak {value:.1f}%" for name, value in pressure.items() if value > limit
    ]

    if breached:
        return Decision(
            status=RecommendationStatus.REVIEW,
            workload_class=WorkloadClass.IN_POOL_CONSTRAINED,
            action=(
                f"Elastic pool '{profile.elastic_pool}' under pressure "
                f"({'; '.join(breached)}): review pool sizing"
            ),
            confidence=Confidence.MEDIUM,
            priority=Priority.HIGH,
            decided_by="pool_check",
        )

    return Decision(
        status=RecommendationStatus.OK,
        workload_class=WorkloadClass.IN_POOL,
        action=f"Member of elastic pool '{profile.elastic_pool}'; sized at pool level",
        confidence=Confidence.MEDIUM,
        priority=Priority.LOW,
        decided_by="pool_check",
    )
