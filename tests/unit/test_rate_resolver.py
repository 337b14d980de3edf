"""Unit tests for representative rate resolution."""

import pytest

from config.errors import MissingRateConfigError
from models.costs import PricingConfig
from models.rates import (
    DEFAULT_COMMISSION_PERCENT,
    DEFAULT_OVERHEAD_PERCENT,
    CommissionStructure,
    RateDefaults,
    RawRepProfile,
)
from services.rate_resolver import effective_overhead_percent, rate_defaults_for, resolve_rates
from tests.fixtures.mock_pricing_data import sample_profile


class TestOverheadPrecedence:
    """Personal overhead wins only when present and positive."""

    def test_personal_override_wins(self):
        assert effective_overhead_percent(10.0, 5.0) == 5.0

    def test_missing_personal_uses_company(self):
        assert effective_overhead_percent(10.0, None) == 10.0

    def test_zero_personal_uses_company(self):
        assert effective_overhead_percent(10.0, 0.0) == 10.0

    def test_personal_may_exceed_company(self):
        assert effective_overhead_percent(10.0, 12.5) == 12.5


class TestResolveRates:
    """Tests for resolve_rates."""

    def test_complete_profile(self):
        """Test resolving a fully specified profile."""
        rates = resolve_rates(sample_profile("rep-alice"), RateDefaults())

        assert rates.rep_id == "rep-alice"
        assert rates.display_name == "Alice Moreno"
        assert rates.overhead_percent == 10.0
        assert rates.personal_overhead_percent == 5.0
        assert rates.effective_overhead_percent == 5.0
        assert rates.commission_percent == 50.0
        assert rates.commission_structure == CommissionStructure.PROFIT_SPLIT
        assert rates.is_profit_split

    def test_sales_percentage_profile(self):
        rates = resolve_rates(sample_profile("rep-dan"), RateDefaults())

        assert rates.commission_structure == CommissionStructure.SALES_PERCENTAGE
        assert rates.effective_overhead_percent == 10.0
        assert not rates.is_profit_split

    def test_incomplete_profile_uses_documented_defaults(self):
        """Absent fields fall back to the documented constants."""
        rates = resolve_rates(sample_profile("rep-eve"), RateDefaults())

        assert rates.overhead_percent == DEFAULT_OVERHEAD_PERCENT
        assert rates.effective_overhead_percent == DEFAULT_OVERHEAD_PERCENT
        assert rates.commission_percent == DEFAULT_COMMISSION_PERCENT
        assert rates.commission_structure == CommissionStructure.PROFIT_SPLIT

    def test_defaults_are_passed_explicitly(self):
        defaults = RateDefaults(
            overhead_percent=12.0,
            commission_percent=7.0,
            commission_structure=CommissionStructure.SALES_PERCENTAGE,
        )
        rates = resolve_rates(sample_profile("rep-eve"), defaults)

        assert rates.effective_overhead_percent == 12.0
        assert rates.commission_percent == 7.0
        assert rates.commission_structure == CommissionStructure.SALES_PERCENTAGE

    def test_missing_profile_reported(self):
        """A rep with no profile at all is never silently defaulted."""
        with pytest.raises(MissingRateConfigError) as exc_info:
            resolve_rates(None, RateDefaults(), rep_id="rep-ghost")

        assert exc_info.value.code == "MISSING_RATE_CONFIG"
        assert exc_info.value.rep_id == "rep-ghost"

    def test_strict_defaults_report_missing_field(self):
        with pytest.raises(MissingRateConfigError) as exc_info:
            resolve_rates(sample_profile("rep-eve"), RateDefaults.strict())

        assert exc_info.value.field == "overhead_percent"
        assert exc_info.value.details["rep_id"] == "rep-eve"

    def test_strict_defaults_report_missing_commission(self):
        profile = RawRepProfile(rep_id="rep-x", overhead_percent=10.0)

        with pytest.raises(MissingRateConfigError) as exc_info:
            resolve_rates(profile, RateDefaults.strict())

        assert exc_info.value.field == "commission_percent"

    def test_negative_rate_rejected(self):
        profile = RawRepProfile(
            rep_id="rep-x",
            overhead_percent=10.0,
            commission_percent=-5.0,
            commission_structure=CommissionStructure.PROFIT_SPLIT,
        )

        with pytest.raises(MissingRateConfigError) as exc_info:
            resolve_rates(profile, RateDefaults())

        assert exc_info.value.field == "commission_percent"

    def test_profile_parses_camel_case(self):
        profile = RawRepProfile.model_validate({
            "repId": "rep-y",
            "overheadPercent": 9,
            "personalOverheadPercent": 0,
            "commissionPercent": 6,
            "commissionStructure": "sales_percentage",
        })
        rates = resolve_rates(profile, RateDefaults.strict())

        assert rates.effective_overhead_percent == 9
        assert rates.commission_structure == CommissionStructure.SALES_PERCENTAGE


class TestRateDefaultsFor:
    """Company overhead from the pricing configuration becomes the fallback."""

    def test_overhead_fallback_from_config(self):
        config = PricingConfig(
            overhead_percent=14.0,
            target_margin_percent=30.0,
            waste_factor_percent=10.0,
            contingency_percent=5.0,
        )
        defaults = rate_defaults_for(config)

        assert defaults.overhead_percent == 14.0
        assert defaults.commission_percent == DEFAULT_COMMISSION_PERCENT

    def test_strict_stays_strict(self):
        config = PricingConfig(
            overhead_percent=14.0,
            target_margin_percent=30.0,
            waste_factor_percent=10.0,
            contingency_percent=5.0,
        )
        defaults = rate_defaults_for(config, RateDefaults.strict())

        assert defaults.overhead_percent is None
        assert defaults.commission_percent is None
