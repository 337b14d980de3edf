"""Representative rate resolution.

The only place the overhead precedence rule lives: a personal overhead
override wins when it is present and greater than zero, otherwise the
company overhead applies. Every caller that needs a rep's rates goes
through resolve_rates; nothing re-derives the hierarchy inline.

Pure functions over a profile snapshot. Caching profiles is the caller's
business.
"""

from typing import Optional

import structlog

from config.errors import MissingRateConfigError
from models.costs import PricingConfig
from models.rates import RateConfig, RateDefaults, RawRepProfile

logger = structlog.get_logger()


def effective_overhead_percent(
    overhead_percent: float,
    personal_overhead_percent: Optional[float],
) -> float:
    """Apply the personal-over-company overhead precedence."""
    if personal_overhead_percent is not None and personal_overhead_percent > 0:
        return personal_overhead_percent
    return overhead_percent


def rate_defaults_for(config: PricingConfig, base: Optional[RateDefaults] = None) -> RateDefaults:
    """RateDefaults whose overhead fallback is the configured company overhead.

    Commission fallbacks are taken from ``base`` (the documented constants
    when omitted). Strict defaults stay strict.
    """
    base = base or RateDefaults()
    if base.overhead_percent is None:
        return base
    return base.model_copy(update={"overhead_percent": config.overhead_percent})


def _require(value, fallback, rep_id: Optional[str], field: str):
    if value is not None:
        return value
    if fallback is not None:
        return fallback
    raise MissingRateConfigError(
        message=f"Representative {rep_id} has no {field} and no default is configured",
        rep_id=rep_id,
        field=field,
    )


def _non_negative(value: float, rep_id: str, field: str) -> float:
    if value < 0:
        raise MissingRateConfigError(
            message=f"Representative {rep_id} has a negative {field}: {value}",
            rep_id=rep_id,
            field=field,
        )
    return value


def resolve_rates(
    profile: Optional[RawRepProfile],
    defaults: RateDefaults,
    rep_id: Optional[str] = None,
) -> RateConfig:
    """Resolve the effective rates for one representative.

    Args:
        profile: Profile snapshot, or None when the rep could not be loaded.
        defaults: Fallbacks for absent fields. Always passed explicitly.
        rep_id: Rep ID to report when the profile itself is missing.

    Returns:
        RateConfig with exactly one effective overhead and one commission
        percentage/structure.

    Raises:
        MissingRateConfigError: If the profile is missing, a field is absent
            without a fallback, or a rate is negative.
    """
    if profile is None:
        raise MissingRateConfigError(
            message=f"No rate profile found for representative {rep_id}",
            rep_id=rep_id,
        )

    overhead = _non_negative(
        _require(profile.overhead_percent, defaults.overhead_percent, profile.rep_id, "overhead_percent"),
        profile.rep_id,
        "overhead_percent",
    )
    commission = _non_negative(
        _require(profile.commission_percent, defaults.commission_percent, profile.rep_id, "commission_percent"),
        profile.rep_id,
        "commission_percent",
    )
    structure = _require(
        profile.commission_structure,
        defaults.commission_structure,
        profile.rep_id,
        "commission_structure",
    )
    personal = profile.personal_overhead_percent
    if personal is not None:
        _non_negative(personal, profile.rep_id, "personal_overhead_percent")

    effective = effective_overhead_percent(overhead, personal)

    logger.debug(
        "rates_resolved",
        rep_id=profile.rep_id,
        effective_overhead=effective,
        personal_overhead=personal,
        base_overhead=overhead,
        commission_rate=commission,
        commission_structure=structure.value,
    )

    return RateConfig(
        rep_id=profile.rep_id,
        display_name=profile.display_name,
        overhead_percent=overhead,
        personal_overhead_percent=personal,
        effective_overhead_percent=effective,
        commission_percent=commission,
        commission_structure=structure,
    )
