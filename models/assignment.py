"""Representative assignment models.

An estimate is sold by one primary representative and at most one
secondary. The assignment is a tagged variant so split percentages only
exist on the variant that is allowed to split profit:

- SingleRepAssignment: primary only
- SalesPercentageAssignment: secondary paid a % of the selling price
- UnsplitSecondaryAssignment: profit-split secondary not eligible to share
  the pool (different effective overhead); no split requested, secondary
  earns nothing
- ProfitSplitAssignment: both reps share one profit-split pool

Build instances with services.commission_allocator.build_assignment, which
enforces split eligibility before a ProfitSplitAssignment can exist.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from models.rates import RateConfig


class SplitPercentages(BaseModel):
    """Requested division of a shared profit-split pool."""

    primary_percent: float = Field(
        ge=0,
        le=100,
        alias="primaryPercent",
        description="Primary rep share of the pool (%)"
    )
    secondary_percent: float = Field(
        ge=0,
        le=100,
        alias="secondaryPercent",
        description="Secondary rep share of the pool (%)"
    )

    class Config:
        populate_by_name = True
        frozen = True


class SingleRepAssignment(BaseModel):
    """Only a primary representative on the deal."""

    kind: Literal["single"] = "single"
    primary: RateConfig

    class Config:
        frozen = True

    @property
    def secondary(self) -> Optional[RateConfig]:
        return None


class SalesPercentageAssignment(BaseModel):
    """Secondary paid on contract value, deducted before the primary's share."""

    kind: Literal["secondary_sales_percentage"] = "secondary_sales_percentage"
    primary: RateConfig
    secondary: RateConfig

    class Config:
        frozen = True


class UnsplitSecondaryAssignment(BaseModel):
    """Profit-split secondary whose effective overhead differs from the primary's.

    Without a split request the pool is not shared: the primary is paid as a
    single rep and the secondary receives no commission.
    """

    kind: Literal["secondary_unsplit"] = "secondary_unsplit"
    primary: RateConfig
    secondary: RateConfig

    class Config:
        frozen = True


class ProfitSplitAssignment(BaseModel):
    """Both reps profit-split with equal effective overhead; one shared pool."""

    kind: Literal["profit_split"] = "profit_split"
    primary: RateConfig
    secondary: RateConfig
    primary_split_percent: float = Field(ge=0, le=100)
    secondary_split_percent: float = Field(ge=0, le=100)

    class Config:
        frozen = True


RepAssignment = Annotated[
    Union[
        SingleRepAssignment,
        SalesPercentageAssignment,
        UnsplitSecondaryAssignment,
        ProfitSplitAssignment,
    ],
    Field(discriminator="kind"),
]
