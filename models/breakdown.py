"""Estimate breakdown models.

Intermediate results of each pipeline stage and the final
EstimateBreakdown that gets persisted. All of them are frozen: a recompute
produces a new breakdown, it never patches an existing one.
"""

from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from pydantic import BaseModel, Field


class MarginSolution(BaseModel):
    """Output of the margin solver."""

    selling_price: float = Field(ge=0)
    overhead_amount: float = Field(ge=0)
    adjusted_material: float = Field(ge=0, description="Material incl. waste")
    adjusted_labor: float = Field(ge=0, description="Labor incl. contingency")
    fixed_costs: float = Field(ge=0)
    base_cost_adjusted: float = Field(ge=0, description="Material + labor + fixed costs")

    class Config:
        frozen = True


class CommissionAllocation(BaseModel):
    """Output of the commission allocator."""

    gross_profit: float
    profit_after_secondary: float
    primary_commission_amount: float
    secondary_commission_amount: float
    company_net: float

    class Config:
        frozen = True

    @property
    def commission_amounts(self) -> Tuple[float, float]:
        return (self.primary_commission_amount, self.secondary_commission_amount)


class MarkupDistribution(BaseModel):
    """Selling price distributed back over material and labor."""

    material_total: float
    labor_total: float
    material_markup_percent: float
    labor_markup_percent: float

    class Config:
        frozen = True


class LineItemCategory(str, Enum):
    """Display line item category."""

    MATERIAL = "material"
    LABOR = "labor"
    OVERHEAD = "overhead"
    COMMISSION = "commission"
    PROFIT = "profit"
    FIXED = "fixed"


class BreakdownLineItem(BaseModel):
    """One display line of the breakdown. Totals sum to the selling price."""

    category: LineItemCategory
    name: str
    base_cost: Optional[float] = Field(default=None, alias="baseCost")
    total: float
    markup_percent: Optional[float] = Field(default=None, alias="markupPercent")

    class Config:
        populate_by_name = True
        use_enum_values = True
        frozen = True


class EstimateBreakdown(BaseModel):
    """Complete priced breakdown of one estimate.

    Stored on /estimates/{id} as the ``breakdown`` field. Fields are
    mutually dependent, so the whole record is replaced on every recompute.
    """

    selling_price: float = Field(alias="sellingPrice")
    material_total: float = Field(alias="materialTotal")
    labor_total: float = Field(alias="laborTotal")
    overhead_amount: float = Field(alias="overheadAmount")
    primary_commission_amount: float = Field(alias="primaryCommissionAmount")
    secondary_commission_amount: float = Field(alias="secondaryCommissionAmount")
    target_profit_amount: float = Field(alias="targetProfitAmount")
    company_net: float = Field(alias="companyNet")
    price_per_unit_area: Optional[float] = Field(default=None, alias="pricePerUnitArea")

    # Supporting figures
    fixed_costs: float = Field(alias="fixedCosts")
    material_cost: float = Field(alias="materialCost", description="Material incl. waste")
    labor_cost: float = Field(alias="laborCost", description="Labor incl. contingency")
    material_markup_percent: float = Field(alias="materialMarkupPercent")
    labor_markup_percent: float = Field(alias="laborMarkupPercent")
    overhead_percent: float = Field(alias="overheadPercent")
    commission_percent: float = Field(alias="commissionPercent", description="Commission share of price")
    target_margin_percent: float = Field(alias="targetMarginPercent")
    assignment_kind: str = Field(alias="assignmentKind")
    primary_rep_id: str = Field(alias="primaryRepId")
    secondary_rep_id: Optional[str] = Field(default=None, alias="secondaryRepId")
    line_items: List[BreakdownLineItem] = Field(default_factory=list, alias="lineItems")

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def total_commission_amount(self) -> float:
        return self.primary_commission_amount + self.secondary_commission_amount

    def component_sum(self) -> float:
        """Sum of every allocated component; equals selling_price."""
        return (
            self.material_total
            + self.labor_total
            + self.overhead_amount
            + self.total_commission_amount
            + self.target_profit_amount
            + self.fixed_costs
        )

    def to_firestore_dict(self) -> Dict[str, Any]:
        """Convert to Firestore-compatible dict with money rounded to cents.

        The labor total absorbs the rounding residual so the persisted
        components still add up to the persisted selling price.
        """
        data = self.model_dump(by_alias=True, exclude_none=True)
        money_fields = (
            "sellingPrice",
            "materialTotal",
            "overheadAmount",
            "primaryCommissionAmount",
            "secondaryCommissionAmount",
            "targetProfitAmount",
            "companyNet",
            "pricePerUnitArea",
            "fixedCosts",
            "materialCost",
            "laborCost",
        )
        for key in money_fields:
            if key in data:
                data[key] = round(data[key], 2)
        data["laborTotal"] = round(
            data["sellingPrice"]
            - data["materialTotal"]
            - data["overheadAmount"]
            - data["primaryCommissionAmount"]
            - data["secondaryCommissionAmount"]
            - data["targetProfitAmount"]
            - data["fixedCosts"],
            2,
        )
        for item in data.get("lineItems", []):
            if item["category"] == LineItemCategory.LABOR.value:
                item["total"] = data["laborTotal"]
            else:
                item["total"] = round(item["total"], 2)
            if item.get("baseCost") is not None:
                item["baseCost"] = round(item["baseCost"], 2)
        return data
