"""
Monthly cost evaluation and minimum-savings validation (Tier 5).
"""

from typing import Optional, Tuple

from ..models import (
    AnalysisConfig,
    BillingModel,
    CostEstimate,
    DatabaseProfile,
    Decision,
    Priority,
    RecommendationStatus,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)

SERVERLESS_RATE_KEY = "Serverless"


class CostEvaluator:
    """
    Converts current and recommended configurations into monthly cost and
    suppresses OPTIMIZE decisions whose savings do not justify a migration.
    """

    def __init__(self, config: AnalysisConfig):
        self.pricing = config.pricing
        self.thresholds = config.thresholds

    def current_monthly_cost(self, profile: DatabaseProfile) -> float:
        """Price of the database as currently provisioned"""
        if profile.billing_model == BillingModel.DTU:
            price = self.pricing.dtu_tiers.get(profile.sku)
            if price is None:
                logger.warning(
                    "No price for DTU tier", database=profile.key, sku=profile.sku
                )
                return 0.0
            return price

        if profile.is_serverless:
            rate = self.pricing.vcore_rate(SERVERLESS_RATE_KEY)
        elif profile.is_hyperscale:
            rate = self.pricing.vcore_rate("Hyperscale")
        else:
            rate = self.pricing.vcore_rate(profile.edition)

        if rate is None:
            logger.warning(
                "No vCore rate for edition",
                database=profile.key,
                edition=profile.edition,
            )
            return 0.0
        return round(profile.capacity * rate, 2)

    def recommended_monthly_cost(self, decision: Decision) -> Optional[float]:
        """Price of the decision's target, None when it has no priced target"""
        if decision.target_tier and decision.target_tier in self.pricing.dtu_tiers:
            return self.pricing.dtu_tiers[decision.target_tier]

        if decision.serverless_max_vcores is not None:
            rate = self.pricing.vcore_rate(SERVERLESS_RATE_KEY)
            if rate is not None:
                return round(decision.serverless_max_vcores * rate, 2)

        if decision.target_edition and decision.target_capacity is not None:
            rate = self.pricing.vcore_rate(decision.target_edition)
            if rate is not None:
                return round(decision.target_capacity * rate, 2)

        return None

    def evaluate(
        self, profile: DatabaseProfile, decision: Decision
    ) -> Tuple[Decision, CostEstimate]:
        """Attach costs and apply the minimum-savings suppression rule"""
        current = self.current_monthly_cost(profile)
        recommended = self.recommended_monthly_cost(decision)

        savings = 0.0
        savings_percent = 0.0
        if recommended is not None:
            savings = round(current - recommended, 2)
            savings_percent = round(savings / current * 100.0, 2) if current > 0 else 0.0

        if (
            decision.status == RecommendationStatus.OPTIMIZE
            and recommended is not None
            and savings < self.thresholds.min_monthly_savings_eur
            and savings_percent < self.thresholds.min_savings_percent
        ):
            logger.debug(
                "Suppressing low-value recommendation",
                database=profile.key,
                monthly_savings=savings,
                savings_percent=savings_percent,
            )
            decision = decision.model_copy(
                update={
                    "status": RecommendationStatus.OK,
                    "priority": Priority.LOW,
                    "cost_suppressed": True,
                    "action": (
                        f"Savings too small to justify migration "
                        f"({savings:.2f} {self.pricing.currency}/month, "
                        f"{savings_percent:.1f}%). Was: {decision.action}"
                    ),
                }
            )

        cost = CostEstimate(
            currency=self.pricing.currency,
            current_monthly_cost=current,
            recommended_monthly_cost=recommended,
            monthly_savings=savings,
            savings_percent=savings_percent,
        )
        return decision, cost
