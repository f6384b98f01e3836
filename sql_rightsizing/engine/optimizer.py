"""
Classification-specific optimization policies (Tier 4).

Each policy maps a classified database to exactly one Decision. Absolute
compute is in DTU units for DTU-framed analysis and in vCore x 100 units for
vCore-framed analysis, so ``absolute / 100`` reads as vCores in both frames.
"""

import math
from typing import Callable, Dict, Optional, Tuple

from ..models import (
    AnalysisConfig,
    BillingModel,
    Classification,
    Confidence,
    DatabaseProfile,
    Decision,
    Priority,
    RecommendationStatus,
    WorkloadClass,
    WorkloadStatistics,
)
from ..utils.logging import get_logger
from .classifier import serverless_blockers

logger = get_logger(__name__)

GENERAL_PURPOSE = "GeneralPurpose"
HYPERSCALE = "Hyperscale"


def vcore_edition(profile: DatabaseProfile, stats: WorkloadStatistics) -> str:
    """Edition a vCore-framed target is priced in"""
    if profile.is_hyperscale:
        return HYPERSCALE
    if profile.billing_model == BillingModel.DTU:
        # DTU database analysed from CPU: targets land in General Purpose
        return GENERAL_PURPOSE
    return profile.edition


def in_band(percent: float, low: float, high: float) -> bool:
    return low <= percent <= high


class RecommendationEngine:
    """Dispatches a classified database to its optimization policy"""

    def __init__(self, config: AnalysisConfig):
        self.config = config
        self.thresholds = config.thresholds
        self.limits = config.limits

        self._policies: Dict[WorkloadClass, Callable[..., Decision]] = {
            WorkloadClass.BURSTY: self._bursty,
            WorkloadClass.BURSTY_PROVISIONED: self._bursty_provisioned,
            WorkloadClass.SPARSE: self._sparse,
            WorkloadClass.PERIODIC: self._pool_candidate,
            WorkloadClass.WEEKEND_WEEKDAY: self._pool_candidate,
            WorkloadClass.BATCH_HEAVY: self._batch_heavy,
            WorkloadClass.CHAOTIC: self._chaotic,
            WorkloadClass.UNCLASSIFIED: self._unclassified,
        }

    def recommend(
        self,
        profile: DatabaseProfile,
        stats: WorkloadStatistics,
        classification: Classification,
    ) -> Decision:
        """Apply the policy of the classification (default policy when none)"""
        policy = self._policies.get(classification.policy, self._default)
        decision = policy(profile, stats, classification)

        logger.debug(
            "Optimization policy applied",
            database=profile.key,
            policy=classification.policy.value,
            status=decision.status.value,
            target_tier=decision.target_tier,
            target_capacity=decision.target_capacity,
        )
        return decision

    def _decision(
        self, classification: Classification, decided_by: str, **fields
    ) -> Decision:
        return Decision(
            workload_class=classification.workload_class,
            policy=classification.policy,
            decided_by=decided_by,
            **fields,
        )

    # Serverless sizing

    def _serverless_range(
        self, stats: WorkloadStatistics, min_headroom: float = 1.0
    ) -> Tuple[float, float]:
        t = self.thresholds
        min_vcores = max(
            t.serverless_min_vcores,
            math.ceil(stats.p95_absolute / 100.0 * min_headroom),
        )
        max_vcores = max(
            min_vcores,
            math.ceil(stats.max_absolute / 100.0 * t.serverless_max_headroom),
        )
        return float(min_vcores), float(max_vcores)

    def _narrow_serverless(
        self,
        profile: DatabaseProfile,
        classification: Classification,
        min_vcores: float,
        max_vcores: float,
        confidence: Confidence,
    ) -> Decision:
        if max_vcores < profile.capacity:
            return self._decision(
                classification,
                "serverless_narrowing",
                status=RecommendationStatus.OPTIMIZE,
                action=(
                    f"Narrow serverless range from max {profile.capacity} vCores "
                    f"to {min_vcores:g}-{max_vcores:g} vCores"
                ),
                confidence=confidence,
                priority=Priority.MEDIUM,
                serverless_min_vcores=min_vcores,
                serverless_max_vcores=max_vcores,
                serverless_candidate=True,
            )
        return self._decision(
            classification,
            "serverless_narrowing",
            status=RecommendationStatus.OK,
            action=f"Serverless range fits the workload (max {profile.capacity} vCores)",
            confidence=confidence,
            priority=Priority.LOW,
        )

    def _migrate_to_serverless(
        self,
        profile: DatabaseProfile,
        classification: Classification,
        min_vcores: float,
        max_vcores: float,
        reason: str,
    ) -> Decision:
        return self._decision(
            classification,
            "serverless_migration",
            status=RecommendationStatus.OPTIMIZE,
            action=(
                f"{reason}: migrate {profile.sku} to General Purpose serverless "
                f"{min_vcores:g}-{max_vcores:g} vCores"
            ),
            confidence=Confidence.MEDIUM,
            priority=Priority.MEDIUM,
            target_edition=GENERAL_PURPOSE,
            serverless_min_vcores=min_vcores,
            serverless_max_vcores=max_vcores,
            serverless_candidate=True,
        )

    # Policies

    def _bursty(self, profile, stats, classification) -> Decision:
        if profile.is_serverless:
            min_vcores, max_vcores = self._serverless_range(
                stats, self.thresholds.serverless_min_headroom
            )
            return self._narrow_serverless(
                profile, classification, min_vcores, max_vcores, Confidence.MEDIUM
            )

        min_vcores, max_vcores = self._serverless_range(stats)
        return self._migrate_to_serverless(
            profile,
            classification,
            min_vcores,
            max_vcores,
            "Bursty workload idles most of the time",
        )

    def _bursty_provisioned(self, profile, stats, classification) -> Decision:
        decision = self._default(profile, stats, classification)
        blockers = "; ".join(serverless_blockers(stats, self.thresholds))
        return decision.model_copy(
            update={"action": f"{decision.action} (serverless blocked: {blockers})"}
        )

    def _sparse(self, profile, stats, classification) -> Decision:
        t = self.thresholds
        if profile.is_serverless:
            min_vcores = t.serverless_min_vcores
            max_vcores = float(
                max(
                    t.serverless_min_vcores,
                    math.ceil(stats.max_absolute / 100.0 * t.serverless_max_headroom),
                )
            )
            return self._narrow_serverless(
                profile, classification, min_vcores, max_vcores, Confidence.MEDIUM
            )

        if stats.avg_connections_per_hour < t.sparse_max_connections_per_hour:
            return self._migrate_to_serverless(
                profile,
                classification,
                t.serverless_min_vcores,
                t.sparse_serverless_max_vcores,
                "Mostly idle with almost no connections",
            )

        return self._decision(
            classification,
            "sparse_review",
            status=RecommendationStatus.REVIEW,
            action=(
                f"Mostly idle but {stats.avg_connections_per_hour:.1f} connections/hour "
                f"would keep serverless awake: review for decommission"
            ),
            confidence=Confidence.MEDIUM,
            priority=Priority.MEDIUM,
        )

    def _pool_candidate(self, profile, stats, classification) -> Decision:
        return self._decision(
            classification,
            "pool_candidate",
            status=RecommendationStatus.OPTIMIZE,
            action=(
                f"{classification.workload_class.value} pattern: consolidate into an "
                f"elastic pool with complementary databases; pool sizing across the "
                f"member databases must be done externally"
            ),
            confidence=Confidence.MEDIUM,
            priority=Priority.MEDIUM,
            elastic_pool_candidate=True,
            manual_sizing_required=True,
        )

    def _batch_heavy(self, profile, stats, classification) -> Decision:
        return self._decision(
            classification,
            "batch_split",
            status=RecommendationStatus.OPTIMIZE,
            action=(
                "Bimodal utilization: split OLTP and batch workloads onto "
                "separately sized databases"
            ),
            confidence=Confidence.LOW,
            priority=Priority.MEDIUM,
            manual_sizing_required=True,
        )

    def _chaotic(self, profile, stats, classification) -> Decision:
        t = self.thresholds
        target = stats.p95_absolute * t.chaotic_safety_margin

        if profile.is_hyperscale:
            return self._decision(
                classification,
                "chaotic_sizing",
                status=RecommendationStatus.OK,
                action="Erratic workload on Hyperscale: no downgrade, query optimization advised",
                confidence=Confidence.LOW,
                priority=Priority.LOW,
            )

        if stats.billing_model == BillingModel.DTU:
            current = stats.effective_capacity
        else:
            current = stats.effective_capacity * 100.0

        if current > 0 and target < current * t.chaotic_downgrade_ratio:
            fields = self._chaotic_target(profile, stats, target)
            if fields is not None:
                return self._decision(
                    classification,
                    "chaotic_sizing",
                    status=RecommendationStatus.OPTIMIZE,
                    confidence=Confidence.LOW,
                    priority=Priority.MEDIUM,
                    **fields,
                )

        return self._decision(
            classification,
            "chaotic_sizing",
            status=RecommendationStatus.OK,
            action=(
                f"Erratic workload, P95 x {t.chaotic_safety_margin:g} needs "
                f"{target:.0f} of {current:.0f}: query optimization advised"
            ),
            confidence=Confidence.LOW,
            priority=Priority.LOW,
        )

    def _chaotic_target(
        self, profile: DatabaseProfile, stats: WorkloadStatistics, target: float
    ) -> Optional[Dict[str, object]]:
        if stats.billing_model == BillingModel.DTU:
            for sku, capacity in self.config.ladder_capacities():
                if capacity >= target:
                    if capacity >= stats.effective_capacity:
                        return None
                    return {
                        "action": (
                            f"Erratic workload with ample headroom: downgrade "
                            f"{profile.sku} to {sku} ({capacity} DTU)"
                        ),
                        "target_tier": sku,
                        "target_capacity": float(capacity),
                    }
            return None

        vcores = max(1, math.ceil(target / 100.0))
        if vcores >= stats.effective_capacity:
            return None
        return {
            "action": (
                f"Erratic workload with ample headroom: reduce to {vcores} vCores"
            ),
            "target_edition": vcore_edition(profile, stats),
            "target_capacity": float(vcores),
        }

    def _unclassified(self, profile, stats, classification) -> Decision:
        return self._decision(
            classification,
            "unclassified",
            status=RecommendationStatus.OK,
            action="Workload pattern unclear: no change recommended, revisit manually",
            confidence=Confidence.LOW,
            priority=Priority.LOW,
        )

    def _default(self, profile, stats, classification) -> Decision:
        if stats.billing_model == BillingModel.DTU:
            return self._default_dtu(profile, stats, classification)
        return self._default_vcore(profile, stats, classification)

    def _default_dtu(self, profile, stats, classification) -> Decision:
        t = self.thresholds
        target = stats.p95_absolute * t.sizing_headroom

        found = None
        for sku, capacity in self.config.ladder_capacities():
            if capacity * t.tier_fill_factor >= target:
                found = sku
                break

        if in_band(stats.p95_percent, t.target_band_low_percent, t.target_band_high_percent):
            return self._decision(
                classification,
                "band_sizing",
                status=RecommendationStatus.OK,
                action=f"P95 {stats.p95_percent:.1f}% is within the target band on {profile.sku}",
                confidence=Confidence.HIGH,
                priority=Priority.LOW,
            )

        if found is None:
            return self._decision(
                classification,
                "band_sizing",
                status=RecommendationStatus.REVIEW,
                action=(
                    f"No DTU tier fits {target:.0f} DTU at "
                    f"{t.tier_fill_factor:.0%} fill: consider migrating to vCore"
                ),
                confidence=Confidence.MEDIUM,
                priority=Priority.MEDIUM,
            )

        current_index = self.limits.ladder_index(profile.sku)
        found_index = self.limits.ladder_index(found)
        if current_index >= 0 and found_index < current_index:
            return self._decision(
                classification,
                "band_sizing",
                status=RecommendationStatus.OPTIMIZE,
                action=(
                    f"P95 {stats.p95_percent:.1f}% is below the target band: "
                    f"downgrade {profile.sku} to {found}"
                ),
                confidence=Confidence.HIGH,
                priority=Priority.MEDIUM,
                target_tier=found,
                target_capacity=float(self.limits.tier_capacity(found)),
            )

        return self._decision(
            classification,
            "band_sizing",
            status=RecommendationStatus.OK,
            action=f"{profile.sku} is the smallest tier that fits P95 {stats.p95_percent:.1f}%",
            confidence=Confidence.HIGH,
            priority=Priority.LOW,
        )

    def _default_vcore(self, profile, stats, classification) -> Decision:
        t = self.thresholds
        optimal = max(
            t.min_provisioned_vcores,
            math.ceil(stats.p95_absolute / 100.0 * t.sizing_headroom),
        )

        if in_band(stats.p95_percent, t.target_band_low_percent, t.target_band_high_percent):
            return self._decision(
                classification,
                "band_sizing",
                status=RecommendationStatus.OK,
                action=(
                    f"P95 {stats.p95_percent:.1f}% is within the target band on "
                    f"{stats.effective_capacity:g} vCores"
                ),
                confidence=Confidence.HIGH,
                priority=Priority.LOW,
            )

        if optimal < stats.effective_capacity:
            edition = vcore_edition(profile, stats)
            return self._decision(
                classification,
                "band_sizing",
                status=RecommendationStatus.OPTIMIZE,
                action=(
                    f"P95 {stats.p95_percent:.1f}% is below the target band: reduce "
                    f"{edition} from {stats.effective_capacity:g} to {optimal} vCores"
                ),
                confidence=Confidence.HIGH,
                priority=Priority.MEDIUM,
                target_edition=edition,
                target_capacity=float(optimal),
            )

        return self._decision(
            classification,
            "band_sizing",
            status=RecommendationStatus.OK,
            action=(
                f"{stats.effective_capacity:g} vCores is the smallest size that fits "
                f"P95 {stats.p95_percent:.1f}%"
            ),
            confidence=Confidence.HIGH,
            priority=Priority.LOW,
        )
