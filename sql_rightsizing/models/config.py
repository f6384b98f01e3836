"""
Static configuration data: tier limits, price table and analysis thresholds.

All models are frozen and passed explicitly into the engine.
"""

from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator


class DtuTierLimits(BaseModel):
    """Resource caps of one DTU service objective"""

    model_config = ConfigDict(frozen=True)

    dtu: int = Field(gt=0)
    max_sessions: int = Field(gt=0)
    max_workers: int = Field(gt=0)


class VCoreFamilyLimits(BaseModel):
    """Per-vCore resource caps of one vCore edition"""

    model_config = ConfigDict(frozen=True)

    workers_per_vcore: int = Field(gt=0)
    max_sessions: int = Field(gt=0)


def _default_dtu_tiers() -> Dict[str, DtuTierLimits]:
    return {
        "Basic": DtuTierLimits(dtu=5, max_sessions=300, max_workers=30),
        "S0": DtuTierLimits(dtu=10, max_sessions=600, max_workers=60),
        "S1": DtuTierLimits(dtu=20, max_sessions=900, max_workers=90),
        "S2": DtuTierLimits(dtu=50, max_sessions=1200, max_workers=120),
        "S3": DtuTierLimits(dtu=100, max_sessions=2400, max_workers=200),
        "S4": DtuTierLimits(dtu=200, max_sessions=4800, max_workers=400),
        "S6": DtuTierLimits(dtu=400, max_sessions=9600, max_workers=800),
        "S7": DtuTierLimits(dtu=800, max_sessions=19200, max_workers=1600),
        "S9": DtuTierLimits(dtu=1600, max_sessions=30000, max_workers=3200),
        "S12": DtuTierLimits(dtu=3000, max_sessions=30000, max_workers=6000),
        "P1": DtuTierLimits(dtu=125, max_sessions=30000, max_workers=200),
        "P2": DtuTierLimits(dtu=250, max_sessions=30000, max_workers=400),
        "P4": DtuTierLimits(dtu=500, max_sessions=30000, max_workers=800),
        "P6": DtuTierLimits(dtu=1000, max_sessions=30000, max_workers=1600),
        "P11": DtuTierLimits(dtu=1750, max_sessions=30000, max_workers=2800),
        "P15": DtuTierLimits(dtu=4000, max_sessions=30000, max_workers=6400),
    }


class ResourceLimits(BaseModel):
    """DTU tier ladder plus per-vCore family limits"""

    model_config = ConfigDict(frozen=True)

    # Ordered: Standard ladder first, then Premium
    dtu_ladder: Tuple[str, ...] = (
        "S0", "S1", "S2", "S3", "S4", "S6", "S7", "S9", "S12",
        "P1", "P2", "P4", "P6", "P11", "P15",
    )
    dtu_tiers: Dict[str, DtuTierLimits] = Field(default_factory=_default_dtu_tiers)
    vcore_families: Dict[str, VCoreFamilyLimits] = Field(
        default_factory=lambda: {
            "GeneralPurpose": VCoreFamilyLimits(workers_per_vcore=105, max_sessions=30000),
            "BusinessCritical": VCoreFamilyLimits(workers_per_vcore=105, max_sessions=30000),
            "Hyperscale": VCoreFamilyLimits(workers_per_vcore=105, max_sessions=30000),
        }
    )

    @model_validator(mode="after")
    def ladder_tiers_are_known(self):
        unknown = [tier for tier in self.dtu_ladder if tier not in self.dtu_tiers]
        if unknown:
            raise ValueError(f"DTU ladder references unknown tiers: {unknown}")
        return self

    def ladder_index(self, sku: str) -> int:
        """Position of a SKU on the ladder, -1 when off-ladder (e.g. Basic)"""
        try:
            return self.dtu_ladder.index(sku)
        except ValueError:
            return -1

    def tier_capacity(self, sku: str) -> Optional[int]:
        tier = self.dtu_tiers.get(sku)
        return tier.dtu if tier else None

    def family_for_edition(self, edition: str) -> Optional[VCoreFamilyLimits]:
        for name, family in self.vcore_families.items():
            if name.lower() == (edition or "").replace(" ", "").lower():
                return family
        return None


class PricingTable(BaseModel):
    """Monthly EUR prices"""

    model_config = ConfigDict(frozen=True)

    currency: str = "EUR"
    dtu_tiers: Dict[str, float] = Field(
        default_factory=lambda: {
            "Basic": 4.50,
            "S0": 13.70,
            "S1": 27.40,
            "S2": 68.50,
            "S3": 137.00,
            "S4": 274.00,
            "S6": 548.00,
            "S7": 1096.00,
            "S9": 2192.00,
            "S12": 4110.00,
            "P1": 423.00,
            "P2": 846.00,
            "P4": 1692.00,
            "P6": 3384.00,
            "P11": 6368.00,
            "P15": 14552.00,
        }
    )
    # Per vCore per month; Serverless already carries a flat ~50% pause discount
    vcore_rates: Dict[str, float] = Field(
        default_factory=lambda: {
            "GeneralPurpose": 160.00,
            "BusinessCritical": 430.00,
            "Hyperscale": 175.00,
            "Serverless": 80.00,
        }
    )

    def vcore_rate(self, edition: str) -> Optional[float]:
        for name, rate in self.vcore_rates.items():
            if name.lower() == (edition or "").replace(" ", "").lower():
                return rate
        return None


class AnalysisThresholds(BaseModel):
    """Decision thresholds of the analysis cascade"""

    model_config = ConfigDict(frozen=True)

    # Data sufficiency
    min_samples: int = Field(default=168, ge=1)
    idle_threshold_percent: float = 5.0
    autocorrelation_lag: int = 24

    # Tier 1: constraint triage
    sessions_peak_percent: float = 80.0
    workers_peak_percent: float = 80.0
    storage_percent: float = 90.0
    pool_constraint_percent: float = 90.0

    # Tier 2: growth / decline
    storage_runway_months: float = 6.0
    growth_percent_per_month: float = 20.0
    decline_percent_per_month: float = -20.0
    urgent_decline_percent_per_month: float = -50.0

    # Tier 3: classification
    weekly_variance_percent: float = 50.0
    low_cv: float = 50.0
    high_cv: float = 100.0
    sparse_idle_percent: float = 70.0
    bursty_idle_percent: float = 50.0
    chaotic_idle_percent: float = 30.0
    periodic_autocorrelation: float = 0.7
    weak_periodic_autocorrelation: float = 0.4

    # Tier 4: optimization
    serverless_max_connections_per_hour: float = 12.0
    serverless_max_log_write_percent: float = 40.0
    sparse_max_connections_per_hour: float = 2.0
    serverless_min_vcores: float = 0.5
    sparse_serverless_max_vcores: float = 1.0
    serverless_min_headroom: float = 0.8
    serverless_max_headroom: float = 1.2
    target_band_low_percent: float = 60.0
    target_band_high_percent: float = 80.0
    sizing_headroom: float = 1.2
    tier_fill_factor: float = 0.75
    chaotic_safety_margin: float = 1.5
    chaotic_downgrade_ratio: float = 0.7
    min_provisioned_vcores: int = Field(default=1, ge=1)

    # Tier 5: cost validation
    min_monthly_savings_eur: float = 50.0
    min_savings_percent: float = 30.0

    @model_validator(mode="after")
    def ordered_bands(self):
        if self.target_band_low_percent >= self.target_band_high_percent:
            raise ValueError("target_band_low_percent must be below target_band_high_percent")
        if self.low_cv >= self.high_cv:
            raise ValueError("low_cv must be below high_cv")
        return self


class AnalysisConfig(BaseModel):
    """Everything the engine needs besides a database's own data"""

    model_config = ConfigDict(frozen=True)

    limits: ResourceLimits = Field(default_factory=ResourceLimits)
    pricing: PricingTable = Field(default_factory=PricingTable)
    thresholds: AnalysisThresholds = Field(default_factory=AnalysisThresholds)

    def ladder_capacities(self) -> List[Tuple[str, int]]:
        return [(sku, self.limits.dtu_tiers[sku].dtu) for sku in self.limits.dtu_ladder]
