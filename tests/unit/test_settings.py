"""Unit tests for environment settings."""

import pytest

from config.settings import Settings
from models.rates import CommissionStructure


class TestSettings:
    """Tests for Settings."""

    def test_defaults(self, monkeypatch):
        for name in (
            "COMPANY_OVERHEAD_PERCENT",
            "DEFAULT_COMMISSION_PERCENT",
            "DEFAULT_COMMISSION_STRUCTURE",
            "STRICT_RATE_RESOLUTION",
        ):
            monkeypatch.delenv(name, raising=False)

        settings = Settings()
        defaults = settings.rate_defaults()

        assert defaults.overhead_percent == 10.0
        assert defaults.commission_percent == 50.0
        assert defaults.commission_structure == CommissionStructure.PROFIT_SPLIT

    def test_pricing_config_from_env(self, monkeypatch):
        monkeypatch.setenv("COMPANY_OVERHEAD_PERCENT", "12.5")
        monkeypatch.setenv("TARGET_MARGIN_PERCENT", "25")
        monkeypatch.setenv("WASTE_FACTOR_PERCENT", "8")
        monkeypatch.setenv("CONTINGENCY_PERCENT", "4")

        config = Settings().pricing_config()

        assert config.overhead_percent == 12.5
        assert config.target_margin_percent == 25.0
        assert config.waste_factor_percent == 8.0
        assert config.contingency_percent == 4.0

    def test_strict_rate_resolution(self, monkeypatch):
        monkeypatch.setenv("STRICT_RATE_RESOLUTION", "true")

        defaults = Settings().rate_defaults()

        assert defaults.overhead_percent is None
        assert defaults.commission_percent is None
        assert defaults.commission_structure is None

    def test_sales_percentage_fallback(self, monkeypatch):
        monkeypatch.setenv("STRICT_RATE_RESOLUTION", "false")
        monkeypatch.setenv("DEFAULT_COMMISSION_STRUCTURE", "sales_percentage")
        monkeypatch.setenv("DEFAULT_COMMISSION_PERCENT", "6")

        defaults = Settings().rate_defaults()

        assert defaults.commission_structure == CommissionStructure.SALES_PERCENTAGE
        assert defaults.commission_percent == 6.0

    def test_validate_rejects_full_allocation(self, monkeypatch):
        monkeypatch.setenv("COMPANY_OVERHEAD_PERCENT", "40")
        monkeypatch.setenv("TARGET_MARGIN_PERCENT", "60")

        with pytest.raises(ValueError):
            Settings().validate()

    def test_validate_rejects_unknown_structure(self, monkeypatch):
        monkeypatch.setenv("COMPANY_OVERHEAD_PERCENT", "10")
        monkeypatch.setenv("TARGET_MARGIN_PERCENT", "30")
        monkeypatch.setenv("DEFAULT_COMMISSION_STRUCTURE", "flat_fee")

        with pytest.raises(ValueError):
            Settings().validate()

    def test_emulator_mode(self, monkeypatch):
        monkeypatch.setenv("USE_FIREBASE_EMULATORS", "true")

        assert Settings().is_emulator_mode
