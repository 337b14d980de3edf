"""Estimate document models for the pricing engine.

Pydantic models for the estimate inputs stored in Firestore, the events
that make a stored breakdown stale, and the recompute state machine.
"""

from enum import Enum
from typing import Any, Dict, Optional
from datetime import datetime
from pydantic import BaseModel, Field

from models.assignment import SplitPercentages
from models.costs import CostInputs, PricingConfig


class EstimateState(str, Enum):
    """Freshness of an estimate's stored breakdown."""

    STALE = "stale"
    RECOMPUTING = "recomputing"
    CURRENT = "current"


class RecomputeTrigger(str, Enum):
    """Event that invalidated the breakdown."""

    REP_REASSIGNMENT = "rep_reassignment"
    RATE_CHANGE = "rate_change"
    MANUAL_OVERRIDE = "manual_override"


class EstimateInputs(BaseModel):
    """Everything needed to price one estimate.

    Stored in /estimates/{id} under ``pricingInputs``.
    """

    estimate_id: str = Field(
        alias="estimateId",
        description="Estimate document ID"
    )
    costs: CostInputs = Field(
        description="Base costs with waste and contingency"
    )
    pricing: PricingConfig = Field(
        description="Pricing configuration options"
    )
    primary_rep_id: str = Field(
        alias="primaryRepId",
        description="Primary representative ID"
    )
    secondary_rep_id: Optional[str] = Field(
        default=None,
        alias="secondaryRepId",
        description="Secondary representative ID"
    )
    split: Optional[SplitPercentages] = Field(
        default=None,
        description="Requested profit-split division"
    )

    class Config:
        populate_by_name = True

    def to_firestore_dict(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True, mode="json")


class RepAssignmentChanged(BaseModel):
    """A new primary/secondary representative was assigned to an estimate."""

    estimate_id: str = Field(alias="estimateId")
    primary_rep_id: str = Field(alias="primaryRepId")
    secondary_rep_id: Optional[str] = Field(default=None, alias="secondaryRepId")
    split: Optional[SplitPercentages] = Field(default=None)
    occurred_at: Optional[datetime] = Field(default=None, alias="occurredAt")

    class Config:
        populate_by_name = True


class ManualOverride(BaseModel):
    """User-submitted edits to an estimate's pricing inputs.

    Unset fields keep their stored value.
    """

    estimate_id: str = Field(alias="estimateId")
    material_base_cost: Optional[float] = Field(default=None, ge=0, alias="materialBaseCost")
    labor_base_cost: Optional[float] = Field(default=None, ge=0, alias="laborBaseCost")
    fixed_costs: Optional[float] = Field(default=None, ge=0, alias="fixedCosts")
    target_margin_percent: Optional[float] = Field(default=None, ge=0, alias="targetMarginPercent")
    split: Optional[SplitPercentages] = Field(default=None)

    class Config:
        populate_by_name = True

    def apply(self, inputs: EstimateInputs) -> EstimateInputs:
        """Return new inputs with this override applied."""
        cost_updates = {
            key: value
            for key, value in {
                "material_base_cost": self.material_base_cost,
                "labor_base_cost": self.labor_base_cost,
                "fixed_costs": self.fixed_costs,
            }.items()
            if value is not None
        }
        costs = inputs.costs.model_copy(update=cost_updates)
        pricing = inputs.pricing
        if self.target_margin_percent is not None:
            pricing = pricing.model_copy(update={"target_margin_percent": self.target_margin_percent})
        update: Dict[str, Any] = {"costs": costs, "pricing": pricing}
        if self.split is not None:
            update["split"] = self.split
        return inputs.model_copy(update=update)
