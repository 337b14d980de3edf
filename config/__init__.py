"""Pricing engine configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
"""

from config.settings import settings
from config.errors import (
    PricingError,
    EngineError,
    MarginConfigurationError,
    SplitConfigurationError,
    IneligibleSplitError,
    MissingRateConfigError,
    StoreError,
)

__all__ = [
    "settings",
    "PricingError",
    "EngineError",
    "MarginConfigurationError",
    "SplitConfigurationError",
    "IneligibleSplitError",
    "MissingRateConfigError",
    "StoreError",
]
