"""
Services package for the SQL rightsizing system.
"""

from .config import ConfigManager
from .ingestion import DataIngestionService
from .pricing import CostEvaluator
from .data_validation import DataQualityValidator

__all__ = [
    "ConfigManager",
    "DataIngestionService",
    "CostEvaluator",
    "DataQualityValidator",
]
