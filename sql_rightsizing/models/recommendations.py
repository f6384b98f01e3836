"""
Classification, decision and recommendation models and reports.
"""

from datetime import datetime
from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .metrics import WorkloadStatistics
from .types import (
    BillingModel,
    Confidence,
    Priority,
    RecommendationStatus,
    WorkloadClass,
)


class Classification(BaseModel):
    """Primary workload class plus an optional optimization policy override"""

    model_config = ConfigDict(frozen=True)

    workload_class: WorkloadClass
    policy_override: Optional[WorkloadClass] = None
    reasons: List[str] = Field(default_factory=list)

    @property
    def policy(self) -> WorkloadClass:
        return self.policy_override or self.workload_class


class Decision(BaseModel):
    """Terminal outcome of one cascade stage"""

    model_config = ConfigDict(frozen=True)

    status: RecommendationStatus
    workload_class: WorkloadClass
    policy: Optional[WorkloadClass] = None
    action: str
    confidence: Confidence
    priority: Priority
    decided_by: str = Field(description="Cascade stage that produced the decision")

    # Target
    target_tier: Optional[str] = None
    target_edition: Optional[str] = None
    target_capacity: Optional[float] = None
    serverless_min_vcores: Optional[float] = None
    serverless_max_vcores: Optional[float] = None

    # Decision flags
    elastic_pool_candidate: bool = False
    serverless_candidate: bool = False
    manual_sizing_required: bool = False
    cost_suppressed: bool = False


class CostEstimate(BaseModel):
    """Monthly cost figures of a recommendation"""

    model_config = ConfigDict(frozen=True)

    currency: str = "EUR"
    current_monthly_cost: float = 0.0
    recommended_monthly_cost: Optional[float] = None
    monthly_savings: float = 0.0
    savings_percent: float = 0.0

    @property
    def annual_savings(self) -> float:
        return round(self.monthly_savings * 12, 2)


class Recommendation(BaseModel):
    """Output record, one per database per run"""

    model_config = ConfigDict(frozen=True)

    # Identity and current state
    server_name: str
    database_name: str
    edition: str
    sku: str
    capacity: int
    billing_model: BillingModel
    elastic_pool: Optional[str] = None
    is_serverless: bool = False
    is_hyperscale: bool = False
    dtu_fallback: bool = False

    decision: Decision
    statistics: WorkloadStatistics
    cost: CostEstimate
    missing_metrics: List[str] = Field(default_factory=list)

    @property
    def key(self) -> str:
        return f"{self.server_name}/{self.database_name}"

    @property
    def status(self) -> RecommendationStatus:
        return self.decision.status

    @property
    def workload_class(self) -> WorkloadClass:
        return self.decision.workload_class

    def to_row(self) -> Dict[str, object]:
        """Flatten into a single export row"""
        stats = self.statistics
        decision = self.decision
        return {
            "server_name": self.server_name,
            "database_name": self.database_name,
            "edition": self.edition,
            "sku": self.sku,
            "capacity": self.capacity,
            "billing_model": self.billing_model.value,
            "elastic_pool": self.elastic_pool or "",
            "is_serverless": self.is_serverless,
            "is_hyperscale": self.is_hyperscale,
            "status": decision.status.value,
            "workload_class": decision.workload_class.value,
            "policy": decision.policy.value if decision.policy else "",
            "action": decision.action,
            "target_tier": decision.target_tier or "",
            "target_capacity": decision.target_capacity,
            "serverless_min_vcores": decision.serverless_min_vcores,
            "serverless_max_vcores": decision.serverless_max_vcores,
            "confidence": decision.confidence.value,
            "priority": decision.priority.value,
            "decided_by": decision.decided_by,
            "avg_percent": round(stats.avg_percent, 2),
            "p95_percent": round(stats.p95_percent, 2),
            "max_percent": round(stats.max_percent, 2),
            "coefficient_of_variation": round(stats.coefficient_of_variation, 2),
            "idle_percent": round(stats.idle_percent, 2),
            "autocorrelation_24h": round(stats.autocorrelation_24h, 3),
            "weekly_variance_percent": round(stats.weekly_variance_percent, 2),
            "growth_percent_per_month": round(stats.growth_percent_per_month, 2),
            "is_bimodal": stats.is_bimodal,
            "days_of_data": round(stats.days_of_data, 1),
            "sessions_peak_percent": round(stats.sessions_peak_percent, 2),
            "workers_peak_percent": round(stats.workers_peak_percent, 2),
            "storage_percent": round(stats.storage_percent, 2),
            "storage_used_gb": round(stats.storage_used_gb, 2),
            "months_until_storage_full": round(stats.months_until_storage_full, 1),
            "avg_connections_per_hour": round(stats.avg_connections_per_hour, 2),
            "log_write_p95_percent": round(stats.log_write_p95_percent, 2),
            "elastic_pool_candidate": decision.elastic_pool_candidate,
            "serverless_candidate": decision.serverless_candidate,
            "manual_sizing_required": decision.manual_sizing_required,
            "cost_suppressed": decision.cost_suppressed,
            "dtu_fallback": self.dtu_fallback,
            "current_monthly_cost": self.cost.current_monthly_cost,
            "recommended_monthly_cost": self.cost.recommended_monthly_cost,
            "monthly_savings": self.cost.monthly_savings,
            "savings_percent": self.cost.savings_percent,
            "annual_savings": self.cost.annual_savings,
        }


class AnalysisReport(BaseModel):
    """Complete result of one analysis run"""

    id: str
    generated_at: datetime = Field(default_factory=datetime.now)

    total_databases: int
    recommendations: List[Recommendation]

    # Distributions
    status_counts: Dict[str, int] = Field(default_factory=dict)
    class_counts: Dict[str, int] = Field(default_factory=dict)
    priority_counts: Dict[str, int] = Field(default_factory=dict)

    # Savings over OPTIMIZE records only
    total_monthly_savings: float = 0.0
    total_annual_savings: float = 0.0
    currency: str = "EUR"

    # Databases whose analysis raised
    analysis_errors: List[Dict[str, str]] = Field(default_factory=list)
    analysis_metadata: Dict[str, object] = Field(default_factory=dict)
