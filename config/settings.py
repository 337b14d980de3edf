"""Pricing engine configuration settings.

Loads configuration from environment variables with sensible defaults.

Settings are read only at the outer edge (the recompute coordinator factory,
the quote script). The calculation functions never import this module;
everything they need is passed in explicitly.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

from models.costs import PricingConfig
from models.rates import (
    DEFAULT_COMMISSION_PERCENT,
    DEFAULT_COMMISSION_STRUCTURE,
    DEFAULT_OVERHEAD_PERCENT,
    CommissionStructure,
    RateDefaults,
)

# Load .env file for non-secret configuration (emulator hosts, company rates, etc.)
load_dotenv()


def _env_float(name: str, default: float) -> float:
    return float(os.getenv(name, str(default)))


def _env_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: _env_bool("USE_FIREBASE_EMULATORS"))
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # Company pricing configuration
    company_overhead_percent: float = field(
        default_factory=lambda: _env_float("COMPANY_OVERHEAD_PERCENT", DEFAULT_OVERHEAD_PERCENT)
    )
    target_margin_percent: float = field(default_factory=lambda: _env_float("TARGET_MARGIN_PERCENT", 30.0))
    waste_factor_percent: float = field(default_factory=lambda: _env_float("WASTE_FACTOR_PERCENT", 10.0))
    contingency_percent: float = field(default_factory=lambda: _env_float("CONTINGENCY_PERCENT", 5.0))

    # Representative rate fallbacks
    default_commission_percent: float = field(
        default_factory=lambda: _env_float("DEFAULT_COMMISSION_PERCENT", DEFAULT_COMMISSION_PERCENT)
    )
    default_commission_structure: str = field(
        default_factory=lambda: os.getenv("DEFAULT_COMMISSION_STRUCTURE", DEFAULT_COMMISSION_STRUCTURE.value)
    )
    strict_rate_resolution: bool = field(default_factory=lambda: _env_bool("STRICT_RATE_RESOLUTION"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    def validate(self) -> None:
        """Validate settings values.

        Raises:
            ValueError: If a setting is out of range.
        """
        for name in (
            "company_overhead_percent",
            "target_margin_percent",
            "waste_factor_percent",
            "contingency_percent",
            "default_commission_percent",
        ):
            if getattr(self, name) < 0:
                raise ValueError(f"{name.upper()} cannot be negative")
        if self.company_overhead_percent + self.target_margin_percent >= 100:
            raise ValueError("COMPANY_OVERHEAD_PERCENT + TARGET_MARGIN_PERCENT must be below 100")
        CommissionStructure(self.default_commission_structure)

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators

    def pricing_config(self) -> PricingConfig:
        """Company pricing configuration options."""
        return PricingConfig(
            overhead_percent=self.company_overhead_percent,
            target_margin_percent=self.target_margin_percent,
            waste_factor_percent=self.waste_factor_percent,
            contingency_percent=self.contingency_percent,
        )

    def rate_defaults(self) -> RateDefaults:
        """Rate fallbacks for reps with incomplete profiles."""
        if self.strict_rate_resolution:
            return RateDefaults.strict()
        return RateDefaults(
            overhead_percent=self.company_overhead_percent,
            commission_percent=self.default_commission_percent,
            commission_structure=CommissionStructure(self.default_commission_structure),
        )


# Singleton settings instance
settings = Settings()
