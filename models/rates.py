"""Representative rate models.

Pydantic models for the raw representative rate profile read from the
profile store and the resolved rate configuration the calculation
pipeline runs on.
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


# Documented fallback constants. Applied identically by every caller through
# RateDefaults; nothing else in the engine may assume a default rate.
DEFAULT_OVERHEAD_PERCENT = 10.0
DEFAULT_COMMISSION_PERCENT = 50.0


class CommissionStructure(str, Enum):
    """How a representative's commission is computed."""

    PROFIT_SPLIT = "profit_split"           # % of profit remaining after overhead
    SALES_PERCENTAGE = "sales_percentage"   # % of the total selling price


DEFAULT_COMMISSION_STRUCTURE = CommissionStructure.PROFIT_SPLIT


class RawRepProfile(BaseModel):
    """Representative rate profile as stored on the user profile.

    Any rate field may be missing; RateResolver decides what that means.
    """

    rep_id: str = Field(
        alias="repId",
        description="Representative (user) ID"
    )
    display_name: Optional[str] = Field(
        default=None,
        alias="displayName",
        description="Name shown on commission lines"
    )
    overhead_percent: Optional[float] = Field(
        default=None,
        alias="overheadPercent",
        description="Company overhead % assigned to the rep"
    )
    personal_overhead_percent: Optional[float] = Field(
        default=None,
        alias="personalOverheadPercent",
        description="Personal overhead override %; wins when > 0"
    )
    commission_percent: Optional[float] = Field(
        default=None,
        alias="commissionPercent",
        description="Commission rate %"
    )
    commission_structure: Optional[CommissionStructure] = Field(
        default=None,
        alias="commissionStructure",
        description="profit_split or sales_percentage"
    )

    class Config:
        populate_by_name = True


class RateDefaults(BaseModel):
    """Fallback values for absent profile fields.

    A field set to None means "no fallback": a profile missing that field
    cannot be resolved and yields MissingRateConfigError.
    """

    overhead_percent: Optional[float] = Field(
        default=DEFAULT_OVERHEAD_PERCENT,
        ge=0,
        description="Company-wide overhead fallback %"
    )
    commission_percent: Optional[float] = Field(
        default=DEFAULT_COMMISSION_PERCENT,
        ge=0,
        description="Commission rate fallback %"
    )
    commission_structure: Optional[CommissionStructure] = Field(
        default=DEFAULT_COMMISSION_STRUCTURE,
        description="Commission structure fallback"
    )

    class Config:
        frozen = True

    @classmethod
    def strict(cls) -> "RateDefaults":
        """Defaults that refuse to fill any missing field."""
        return cls(overhead_percent=None, commission_percent=None, commission_structure=None)


class RateConfig(BaseModel):
    """Resolved rates for one representative.

    Produced only by RateResolver; effective_overhead_percent already has
    the personal-over-company precedence applied.
    """

    rep_id: str = Field(description="Representative (user) ID")
    display_name: Optional[str] = Field(default=None, description="Name shown on commission lines")
    overhead_percent: float = Field(ge=0, description="Company overhead %")
    personal_overhead_percent: Optional[float] = Field(
        default=None,
        ge=0,
        description="Personal overhead override %"
    )
    effective_overhead_percent: float = Field(ge=0, description="Overhead % actually applied")
    commission_percent: float = Field(ge=0, description="Commission rate %")
    commission_structure: CommissionStructure = Field(description="Commission structure")

    class Config:
        frozen = True

    @property
    def is_profit_split(self) -> bool:
        return self.commission_structure == CommissionStructure.PROFIT_SPLIT
