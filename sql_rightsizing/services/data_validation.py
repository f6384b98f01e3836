"""
Data quality checks run before a database enters the analysis cascade.
"""

import math
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from ..models import (
    AnalysisConfig,
    BillingModel,
    DatabaseProfile,
    MetricBundle,
    MetricKind,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)


class DataQualityAssessment(BaseModel):
    """Which compute series to analyse, in which billing frame, and is it enough"""

    model_config = ConfigDict(frozen=True)

    compute_metric: MetricKind
    billing_model: BillingModel
    effective_capacity: float
    dtu_fallback: bool = False
    sample_count: int = 0
    sufficient: bool = False
    missing_metrics: List[str] = Field(default_factory=list)


class DataQualityValidator:
    """Validates metric availability and sufficiency for one database"""

    def __init__(self, config: AnalysisConfig):
        self.config = config

    def assess(
        self, profile: DatabaseProfile, bundle: MetricBundle
    ) -> DataQualityAssessment:
        """Pick the compute frame and check the sample count"""
        compute_metric = MetricKind.CPU
        billing_model = profile.billing_model
        effective_capacity = float(profile.capacity)
        dtu_fallback = False

        if profile.billing_model == BillingModel.DTU:
            if bundle.dtu:
                compute_metric = MetricKind.DTU
            elif bundle.cpu:
                # No DTU data: analyse as a vCore database from CPU
                dtu_fallback = True
                billing_model = BillingModel.VCORE
                effective_capacity = float(max(1, math.ceil(profile.capacity / 100.0)))
                logger.warning(
                    "DTU metrics missing, falling back to CPU/vCore analysis",
                    database=profile.key,
                    sku=profile.sku,
                    equivalent_vcores=effective_capacity,
                )
            else:
                compute_metric = MetricKind.DTU

        sample_count = len(bundle.series(compute_metric))
        sufficient = sample_count >= self.config.thresholds.min_samples

        missing = [kind.value for kind in bundle.missing_kinds()]
        # The unused compute series is never required
        unused = MetricKind.CPU if compute_metric == MetricKind.DTU else MetricKind.DTU
        missing = [kind for kind in missing if kind != unused.value]

        if missing:
            logger.debug(
                "Metric series missing",
                database=profile.key,
                missing=missing,
            )

        return DataQualityAssessment(
            compute_metric=compute_metric,
            billing_model=billing_model,
            effective_capacity=effective_capacity,
            dtu_fallback=dtu_fallback,
            sample_count=sample_count,
            sufficient=sufficient,
            missing_metrics=missing,
        )
