"""
Report Generator - builds the batch summary from per-database recommendations.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models import (
    AnalysisReport,
    Priority,
    Recommendation,
    RecommendationStatus,
    WorkloadClass,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)

# BURSTY_PROVISIONED is a policy, never a record class
EMITTED_CLASSES = [c for c in WorkloadClass if c != WorkloadClass.BURSTY_PROVISIONED]


class ReportGenerator:
    """Aggregates recommendations into an AnalysisReport"""

    def generate_report(
        self,
        recommendations: List[Recommendation],
        start_time: datetime,
        analysis_errors: Optional[List[Dict[str, str]]] = None,
        currency: str = "EUR",
    ) -> AnalysisReport:
        """Generate the batch report"""
        analysis_errors = analysis_errors or []
        logger.info(
            "Generating analysis report",
            recommendations_count=len(recommendations),
            errors=len(analysis_errors),
        )

        savings = self._calculate_savings(recommendations)

        report = AnalysisReport(
            id=f"report_{int(datetime.now().timestamp())}",
            generated_at=datetime.now(),
            total_databases=len(recommendations) + len(analysis_errors),
            recommendations=recommendations,
            status_counts=self._count(
                recommendations, lambda r: r.status.value, RecommendationStatus
            ),
            class_counts=self._count(
                recommendations, lambda r: r.workload_class.value, EMITTED_CLASSES
            ),
            priority_counts=self._count(
                recommendations, lambda r: r.decision.priority.value, Priority
            ),
            total_monthly_savings=savings["total_monthly_savings"],
            total_annual_savings=savings["total_annual_savings"],
            currency=currency,
            analysis_errors=analysis_errors,
            analysis_metadata=self._generate_analysis_metadata(
                recommendations, start_time
            ),
        )

        logger.info(
            "Report generation completed",
            report_id=report.id,
            total_savings=report.total_monthly_savings,
            databases=report.total_databases,
        )
        return report

    def _count(self, recommendations, key, members) -> Dict[str, int]:
        """Counts per member, zero-filled, in declaration order"""
        counts = Counter(key(rec) for rec in recommendations)
        return {member.value: counts.get(member.value, 0) for member in members}

    def _calculate_savings(self, recommendations: List[Recommendation]) -> Dict[str, float]:
        """Savings totals over OPTIMIZE records only"""
        optimized = [r for r in recommendations if r.status == RecommendationStatus.OPTIMIZE]
        total_monthly = round(sum(max(r.cost.monthly_savings, 0.0) for r in optimized), 2)
        return {
            "total_monthly_savings": total_monthly,
            "total_annual_savings": round(total_monthly * 12, 2),
        }

    def _generate_analysis_metadata(
        self, recommendations: List[Recommendation], start_time: datetime
    ) -> Dict[str, Any]:
        end_time = datetime.now(timezone.utc)
        return {
            "analysis_started_at": start_time.isoformat(),
            "analysis_duration_seconds": round((end_time - start_time).total_seconds(), 3),
            "dtu_fallback_count": sum(1 for r in recommendations if r.dtu_fallback),
            "cost_suppressed_count": sum(
                1 for r in recommendations if r.decision.cost_suppressed
            ),
            "manual_sizing_count": sum(
                1 for r in recommendations if r.decision.manual_sizing_required
            ),
            "databases_with_missing_metrics": sum(
                1 for r in recommendations if r.missing_metrics
            ),
        }

    def top_savings(
        self, report: AnalysisReport, limit: int = 5
    ) -> List[Recommendation]:
        """Largest OPTIMIZE savings first"""
        optimized = [
            r for r in report.recommendations if r.status == RecommendationStatus.OPTIMIZE
        ]
        return sorted(optimized, key=lambda r: r.cost.monthly_savings, reverse=True)[:limit]
