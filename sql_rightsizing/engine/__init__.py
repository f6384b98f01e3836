"""
Analysis engine: the decision cascade and the batch coordinator.
"""

from .classifier import WorkloadClassifier, classify_statistics, serverless_blockers
from .coordinator import SizingCoordinator
from .optimizer import RecommendationEngine
from .orchestrator import AnalysisOrchestrator
from .report_generator import ReportGenerator

__all__ = [
    "WorkloadClassifier",
    "classify_statistics",
    "serverless_blockers",
    "RecommendationEngine",
    "AnalysisOrchestrator",
    "SizingCoordinator",
    "ReportGenerator",
]
