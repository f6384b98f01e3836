"""
Per-database analysis cascade.

The cascade is an ordered tuple of stages. Each stage either returns a
terminal Decision or None to hand over to the next stage; the first decision
wins and is then priced by the cost evaluator. The final stage always decides.
"""

from typing import Callable, NamedTuple, Optional, Tuple

from ..models import (
    AnalysisConfig,
    Confidence,
    DatabaseProfile,
    Decision,
    MetricBundle,
    Priority,
    Recommendation,
    RecommendationStatus,
    WorkloadClass,
    WorkloadStatistics,
)
from ..services.data_validation import DataQualityAssessment, DataQualityValidator
from ..services.pricing import CostEvaluator
from ..services.statistics import build_statistics
from ..utils.logging import get_logger
from .classifier import WorkloadClassifier
from .growth import check_compute_trend, check_storage_runway
from .optimizer import RecommendationEngine
from .triage import check_pool_member, triage_constraints

logger = get_logger(__name__)

RETRY_AFTER_DAYS = 30


class AnalysisContext(NamedTuple):
    """Everything a stage may look at for one database"""

    profile: DatabaseProfile
    assessment: DataQualityAssessment
    stats: WorkloadStatistics


Stage = Callable[[AnalysisContext], Optional[Decision]]


class AnalysisOrchestrator:
    """Runs one database through the cascade and emits exactly one record"""

    def __init__(self, config: AnalysisConfig):
        self.config = config
        self.validator = DataQualityValidator(config)
        self.classifier = WorkloadClassifier(config.thresholds)
        self.engine = RecommendationEngine(config)
        self.cost_evaluator = CostEvaluator(config)

        self.stages: Tuple[Stage, ...] = (
            self._check_sufficiency,
            self._check_pool,
            self._triage,
            self._storage_runway,
            self._compute_trend,
            self._classify_and_optimize,
        )

    def analyze_database(
        self, profile: DatabaseProfile, bundle: MetricBundle
    ) -> Recommendation:
        """Analyse one database; pure in (profile, bundle, config)"""
        assessment = self.validator.assess(profile, bundle)
        stats = build_statistics(
            profile,
            bundle,
            self.config,
            compute_metric=assessment.compute_metric,
            billing_model=assessment.billing_model,
            effective_capacity=assessment.effective_capacity,
        )
        context = AnalysisContext(profile=profile, assessment=assessment, stats=stats)

        decision = self._run_stages(context)
        decision, cost = self.cost_evaluator.evaluate(profile, decision)

        logger.debug(
            "Database analysed",
            database=profile.key,
            status=decision.status.value,
            workload_class=decision.workload_class.value,
            decided_by=decision.decided_by,
            monthly_savings=cost.monthly_savings,
        )

        return Recommendation(
            server_name=profile.server_name,
            database_name=profile.database_name,
            edition=profile.edition,
            sku=profile.sku,
            capacity=profile.capacity,
            billing_model=profile.billing_model,
            elastic_pool=profile.elastic_pool,
            is_serverless=profile.is_serverless,
            is_hyperscale=profile.is_hyperscale,
            dtu_fallback=assessment.dtu_fallback,
            decision=decision,
            statistics=stats,
            cost=cost,
            missing_metrics=assessment.missing_metrics,
        )

    def _run_stages(self, context: AnalysisContext) -> Decision:
        for stage in self.stages:
            decision = stage(context)
            if decision is not None:
                return decision
        raise RuntimeError(f"No cascade stage decided for {context.profile.key}")

    # Stages

    def _check_sufficiency(self, context: AnalysisContext) -> Optional[Decision]:
        assessment = context.assessment
        if assessment.sufficient:
            return None

        logger.info(
            "Insufficient data for analysis",
            database=context.profile.key,
            samples=assessment.sample_count,
            required=self.config.thresholds.min_samples,
        )
        return Decision(
            status=RecommendationStatus.REVIEW,
            workload_class=WorkloadClass.INSUFFICIENT_DATA,
            action=(
                f"Only {assessment.sample_count} hourly samples "
                f"(need {self.config.thresholds.min_samples}): "
                f"retry after {RETRY_AFTER_DAYS} days"
            ),
            confidence=Confidence.LOW,
            priority=Priority.LOW,
            decided_by="data_sufficiency",
        )

    def _check_pool(self, context: AnalysisContext) -> Optional[Decision]:
        return check_pool_member(context.profile, context.stats, self.config)

    def _triage(self, context: AnalysisContext) -> Optional[Decision]:
        return triage_constraints(context.profile, context.stats, self.config)

    def _storage_runway(self, context: AnalysisContext) -> Optional[Decision]:
        return check_storage_runway(context.profile, context.stats, self.config)

    def _compute_trend(self, context: AnalysisContext) -> Optional[Decision]:
        return check_compute_trend(context.profile, context.stats, self.config)

    def _classify_and_optimize(self, context: AnalysisContext) -> Decision:
        classification = self.classifier.classify(context.profile, context.stats)
        return self.engine.recommend(context.profile, context.stats, classification)
