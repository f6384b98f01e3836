"""
Configuration management for the SQL rightsizing system.
"""

import os
from pathlib import Path
from typing import Any, Dict

import yaml
from dotenv import load_dotenv

from ..models import (
    AnalysisConfig,
    AnalysisThresholds,
    PricingTable,
    ResourceLimits,
)
from ..utils.logging import get_logger

logger = get_logger(__name__)

ENV_OVERRIDES = {
    "SQL_RIGHTSIZING_MIN_SAVINGS_EUR": ("min_monthly_savings_eur", float),
    "SQL_RIGHTSIZING_MIN_SAVINGS_PERCENT": ("min_savings_percent", float),
    "SQL_RIGHTSIZING_MIN_SAMPLES": ("min_samples", int),
}


class ConfigManager:
    """Loads the static tier-limit, pricing and threshold tables"""

    PRICING_FILE = "pricing.yaml"
    LIMITS_FILE = "tier_limits.yaml"
    THRESHOLDS_FILE = "thresholds.yaml"

    def __init__(self, config_dir: str = "config"):
        self.config_dir = Path(config_dir)
        self.config_dir.mkdir(parents=True, exist_ok=True)

        # Load environment variables
        load_dotenv()

        self.pricing = PricingTable(**self._load_yaml(self.PRICING_FILE, PricingTable()))
        self.limits = ResourceLimits(**self._load_yaml(self.LIMITS_FILE, ResourceLimits()))
        self.thresholds = self._load_thresholds()

        self.analysis_config = AnalysisConfig(
            limits=self.limits,
            pricing=self.pricing,
            thresholds=self.thresholds,
        )

        logger.debug(
            "Configuration loaded",
            config_dir=str(self.config_dir),
            dtu_tiers=len(self.limits.dtu_tiers),
            priced_tiers=len(self.pricing.dtu_tiers),
        )

    def _load_yaml(self, file_name: str, default_model) -> Dict[str, Any]:
        """Read a config file, writing the built-in defaults when it is missing"""
        config_file = self.config_dir / file_name

        if not config_file.exists():
            default_config = default_model.model_dump(mode="json")

            with open(config_file, "w") as f:
                yaml.dump(default_config, f, default_flow_style=False, sort_keys=False)

            logger.info("Default configuration written", file=str(config_file))
            return default_config

        with open(config_file, "r") as f:
            config_data = yaml.safe_load(f) or {}

        if not isinstance(config_data, dict):
            raise ValueError(f"Configuration file {config_file} must contain a mapping")

        return config_data

    def _load_thresholds(self) -> AnalysisThresholds:
        config_data = self._load_yaml(self.THRESHOLDS_FILE, AnalysisThresholds())

        for env_name, (field_name, cast) in ENV_OVERRIDES.items():
            raw = os.getenv(env_name)
            if raw is None or raw == "":
                continue
            try:
                config_data[field_name] = cast(raw)
            except ValueError:
                logger.warning(
                    "Ignoring invalid environment override", variable=env_name, value=raw
                )
                continue
            logger.info("Threshold overridden from environment", field=field_name, value=raw)

        return AnalysisThresholds(**config_data)

    def get_status(self) -> Dict[str, Any]:
        """Summary of the effective configuration"""
        return {
            "config_dir": str(self.config_dir),
            "currency": self.pricing.currency,
            "dtu_ladder": list(self.limits.dtu_ladder),
            "vcore_rates": dict(self.pricing.vcore_rates),
            "thresholds": self.thresholds.model_dump(),
        }
