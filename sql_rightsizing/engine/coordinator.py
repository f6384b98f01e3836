"""
Batch coordinator - fans databases out over the analysis cascade and builds the report.
"""

import asyncio
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..models import (
    AnalysisConfig,
    AnalysisReport,
    DatabaseProfile,
    MetricBundle,
    Recommendation,
)
from ..utils.logging import get_logger
from .orchestrator import AnalysisOrchestrator
from .report_generator import ReportGenerator

logger = get_logger(__name__)


class SizingCoordinator:
    """Runs the cascade for every database and collects one record each"""

    def __init__(self, config: AnalysisConfig, max_workers: int = 4):
        self.config = config
        self.max_workers = max(1, max_workers)
        self.orchestrator = AnalysisOrchestrator(config)
        self.report_generator = ReportGenerator()

        logger.info("Sizing coordinator initialized", max_workers=self.max_workers)

    async def analyze_databases_and_generate_report(
        self,
        profiles: List[DatabaseProfile],
        bundles: Dict[str, MetricBundle],
    ) -> AnalysisReport:
        """Analyse all databases and build the batch report"""
        logger.info(
            "Starting database analysis",
            total_databases=len(profiles),
            max_workers=self.max_workers,
        )
        start_time = datetime.now(timezone.utc)

        if self.max_workers > 1 and len(profiles) > 1:
            outcomes = await self._analyze_parallel(profiles, bundles)
        else:
            outcomes = [self._analyze_one(p, bundles.get(p.key)) for p in profiles]

        recommendations: List[Recommendation] = []
        errors: List[Dict[str, str]] = []
        for profile, outcome in zip(profiles, outcomes):
            if isinstance(outcome, Exception):
                logger.error(
                    "Database analysis failed",
                    database=profile.key,
                    error=str(outcome),
                    error_type=type(outcome).__name__,
                )
                errors.append(
                    {
                        "database": profile.key,
                        "error_type": type(outcome).__name__,
                        "error": str(outcome),
                    }
                )
                continue
            recommendations.append(outcome)

        report = self.report_generator.generate_report(
            recommendations=recommendations,
            start_time=start_time,
            analysis_errors=errors,
            currency=self.config.pricing.currency,
        )

        analysis_duration = (datetime.now(timezone.utc) - start_time).total_seconds()
        logger.info(
            "Analysis completed",
            report_id=report.id,
            analysed=len(recommendations),
            failed=len(errors),
            total_monthly_savings=report.total_monthly_savings,
            analysis_time_seconds=round(analysis_duration, 3),
        )
        return report

    async def _analyze_parallel(
        self,
        profiles: List[DatabaseProfile],
        bundles: Dict[str, MetricBundle],
    ) -> List[Any]:
        loop = asyncio.get_running_loop()
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            tasks = [
                loop.run_in_executor(
                    executor,
                    self.orchestrator.analyze_database,
                    p,
                    bundles.get(p.key, MetricBundle()),
                )
                for p in profiles
            ]
            # gather preserves input order
            return await asyncio.gather(*tasks, return_exceptions=True)

    def _analyze_one(
        self, profile: DatabaseProfile, bundle: Optional[MetricBundle]
    ):
        try:
            return self.orchestrator.analyze_database(profile, bundle or MetricBundle())
        except Exception as e:
            return e

    def get_status(self) -> Dict[str, Any]:
        """Summary of the coordinator's setup"""
        return {
            "max_workers": self.max_workers,
            "stages": [stage.__name__.lstrip("_") for stage in self.orchestrator.stages],
            "currency": self.config.pricing.currency,
        }
