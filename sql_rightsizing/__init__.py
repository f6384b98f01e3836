"""
SQL Rightsizing

Workload characterization and cascading sizing recommendations for Azure SQL databases.
"""

from .cli import SizingRecommendationApp
from .services.config import ConfigManager
from .services.ingestion import DataIngestionService
from .engine.coordinator import SizingCoordinator
from .engine.orchestrator import AnalysisOrchestrator

__version__ = "1.0.0"

__all__ = [
    "SizingRecommendationApp",
    "ConfigManager",
    "DataIngestionService",
    "SizingCoordinator",
    "AnalysisOrchestrator",
]
