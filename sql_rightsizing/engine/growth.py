"""
Growth and decline analysis (Tier 2).
"""

from typing import Optional

from ..models import (
    AnalysisConfig,
    BillingModel,
    Confidence,
    DatabaseProfile,
    Decision,
    Priority,
    RecommendationStatus,
    WorkloadClass,
    WorkloadStatistics,
)
from ..utils.logging import get_logger
from .triage import next_dtu_tier

logger = get_logger(__name__)


def check_storage_runway(
    profile: DatabaseProfile, stats: WorkloadStatistics, config: AnalysisConfig
) -> Optional[Decision]:
    """UPGRADE when storage fills up within the runway window"""
    # Hyperscale storage grows automatically
    if profile.is_hyperscale:
        return None
    if stats.storage_growth_mb_per_month <= 0 or profile.max_size_gb <= 0:
        return None

    months = stats.months_until_storage_full
    if not 0 < months < config.thresholds.storage_runway_months:
        return None

    logger.info(
        "Storage runway short",
        database=profile.key,
        months_until_full=round(months, 2),
        growth_mb_per_month=round(stats.storage_growth_mb_per_month, 1),
    )

    return Decision(
        status=RecommendationStatus.UPGRADE,
        workload_class=WorkloadClass.GROWING,
        action=(
            f"Storage full in {months:.1f} months at "
            f"{stats.storage_growth_mb_per_month:.0f} MB/month: "
            f"raise max size above {profile.max_size_gb:.0f} GB"
        ),
        confidence=Confidence.HIGH,
        priority=Priority.IMMEDIATE if months < 1 else Priority.HIGH,
        decided_by="storage_runway",
    )


def check_compute_trend(
    profile: DatabaseProfile, stats: WorkloadStatistics, config: AnalysisConfig
) -> Optional[Decision]:
    """UPGRADE fast-growing databases, REVIEW fast-declining ones"""
    t = config.thresholds
    growth = stats.growth_percent_per_month

    if growth > t.growth_percent_per_month:
        target = None
        if stats.billing_model == BillingModel.DTU:
            target = next_dtu_tier(profile.sku, config.limits)
            action = f"Compute growing {growth:.1f}%/month: plan upgrade to {target}"
        else:
            action = f"Compute growing {growth:.1f}%/month: plan additional vCores"
        return Decision(
            status=RecommendationStatus.UPGRADE,
            workload_class=WorkloadClass.GROWING,
            action=action,
            confidence=Confidence.MEDIUM,
            priority=Priority.HIGH,
            decided_by="compute_trend",
            target_tier=target,
            target_capacity=config.limits.tier_capacity(target) if target else None,
        )

    if growth < t.decline_percent_per_month:
        if growth < t.urgent_decline_percent_per_month:
            priority = Priority.IMMEDIATE
            action = (
                f"Compute declining {growth:.1f}%/month: urgent decommission "
                f"candidate, confirm with the owner"
            )
        else:
            priority = Priority.MEDIUM
            action = f"Compute declining {growth:.1f}%/month: flag for review"
        return Decision(
            status=RecommendationStatus.REVIEW,
            workload_class=WorkloadClass.DECLINING,
            action=action,
            confidence=Confidence.HIGH,
            priority=priority,
            decided_by="compute_trend",
        )

    return None
