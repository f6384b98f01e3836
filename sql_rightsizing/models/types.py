"""
Core types and enums for the SQL rightsizing system.
"""

from enum import Enum


class BillingModel(str, Enum):
    """Purchasing models for a single database"""
    DTU = "DTU"
    VCORE = "vCore"


class MetricKind(str, Enum):
    """Hourly metric series collected per database"""
    DTU = "dtu"
    CPU = "cpu"
    SESSIONS = "sessions"
    WORKERS = "workers"
    STORAGE = "storage"
    CONNECTIONS = "connections"
    LOG_WRITE = "log_write"


class WorkloadClass(str, Enum):
    """Workload characterization emitted once per database"""
    STEADY = "STEADY"
    SPARSE = "SPARSE"
    BURSTY = "BURSTY"
    PERIODIC = "PERIODIC"
    CHAOTIC = "CHAOTIC"
    BATCH_HEAVY = "BATCH_HEAVY"
    WEEKEND_WEEKDAY = "WEEKEND_WEEKDAY"
    DECLINING = "DECLINING"
    CONSTRAINED = "CONSTRAINED"
    GROWING = "GROWING"
    UNCLASSIFIED = "UNCLASSIFIED"
    INSUFFICIENT_DATA = "INSUFFICIENT_DATA"
    IN_POOL = "IN_POOL"
    IN_POOL_CONSTRAINED = "IN_POOL_CONSTRAINED"

    # Policy-only tag, never emitted as the workload class of a record
    BURSTY_PROVISIONED = "BURSTY_PROVISIONED"


class RecommendationStatus(str, Enum):
    """Verdict of the analysis cascade"""
    OK = "OK"
    OPTIMIZE = "OPTIMIZE"
    UPGRADE = "UPGRADE"
    REVIEW = "REVIEW"


class Confidence(str, Enum):
    """Confidence in a verdict"""
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"


class Priority(str, Enum):
    """Urgency of acting on a verdict"""
    IMMEDIATE = "Immediate"
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @property
    def rank(self) -> int:
        """Sort key, most urgent first"""
        return [Priority.IMMEDIATE, Priority.HIGH, Priority.MEDIUM, Priority.LOW].index(
            self
        )
