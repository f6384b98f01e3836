"""
Core data models for the SQL rightsizing system.

This module provides a centralized import point for all model classes:

- types: Core enums
- databases: Inventory profiles
- metrics: Samples, metric bundles and derived statistics
- config: Tier limits, price table and thresholds
- recommendations: Classifications, decisions, output records and reports
"""

from .types import (
    BillingModel,
    MetricKind,
    WorkloadClass,
    RecommendationStatus,
    Confidence,
    Priority,
)

from .databases import DatabaseProfile

from .metrics import Sample, MetricBundle, WorkloadStatistics

from .config import (
    DtuTierLimits,
    VCoreFamilyLimits,
    ResourceLimits,
    PricingTable,
    AnalysisThresholds,
    AnalysisConfig,
)

from .recommendations import (
    Classification,
    Decision,
    CostEstimate,
    Recommendation,
    AnalysisReport,
)

__all__ = [
    # Types
    "BillingModel",
    "MetricKind",
    "WorkloadClass",
    "RecommendationStatus",
    "Confidence",
    "Priority",

    # Inventory
    "DatabaseProfile",

    # Metrics
    "Sample",
    "MetricBundle",
    "WorkloadStatistics",

    # Configuration
    "DtuTierLimits",
    "VCoreFamilyLimits",
    "ResourceLimits",
    "PricingTable",
    "AnalysisThresholds",
    "AnalysisConfig",

    # Recommendations
    "Classification",
    "Decision",
    "CostEstimate",
    "Recommendation",
    "AnalysisReport",
]
