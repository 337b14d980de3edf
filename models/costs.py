"""Cost and pricing input models.

These are the explicit inputs of the calculation pipeline. Every value is
passed in; nothing is read from ambient configuration.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field, model_validator


# Permits and inspections when a template does not carry its own figure.
DEFAULT_FIXED_COSTS = 500.0


class CostInputs(BaseModel):
    """Base costs of a job before any selling-price percentages."""

    material_base_cost: float = Field(ge=0, alias="materialBaseCost", description="Material cost before waste")
    labor_base_cost: float = Field(ge=0, alias="laborBaseCost", description="Labor cost before contingency")
    waste_factor_percent: float = Field(ge=0, alias="wasteFactorPercent", description="Material waste buffer %")
    contingency_percent: float = Field(ge=0, alias="contingencyPercent", description="Labor contingency buffer %")
    fixed_costs: float = Field(default=0.0, ge=0, alias="fixedCosts", description="Permits and other fixed costs")
    area_sq_ft: Optional[float] = Field(
        default=None,
        gt=0,
        alias="areaSqFt",
        description="Job area used for price per unit area"
    )

    class Config:
        populate_by_name = True
        frozen = True

    @property
    def adjusted_material(self) -> float:
        """Material cost including waste factor."""
        return self.material_base_cost * (1 + self.waste_factor_percent / 100)

    @property
    def adjusted_labor(self) -> float:
        """Labor cost including contingency."""
        return self.labor_base_cost * (1 + self.contingency_percent / 100)

    @property
    def total_base_cost(self) -> float:
        return self.adjusted_material + self.adjusted_labor + self.fixed_costs


class TargetPercentages(BaseModel):
    """Allocations expressed as percentages of the final selling price.

    commission_percent is assembled by the caller from the rep assignment
    (see services.breakdown_service.assemble_commission_percent).
    """

    overhead_percent: float = Field(ge=0, description="Overhead % of selling price")
    target_margin_percent: float = Field(ge=0, description="Guaranteed net margin %")
    commission_percent: float = Field(default=0.0, ge=0, description="Commission % of selling price")

    class Config:
        frozen = True

    @property
    def total_percent(self) -> float:
        return self.overhead_percent + self.target_margin_percent + self.commission_percent


class PricingConfig(BaseModel):
    """The recognized pricing configuration options. All are required."""

    overhead_percent: float = Field(
        ge=0,
        alias="overheadPercent",
        description="Company-wide overhead fallback %"
    )
    target_margin_percent: float = Field(
        ge=0,
        alias="targetMarginPercent",
        description="Guaranteed net margin %"
    )
    waste_factor_percent: float = Field(
        ge=0,
        alias="wasteFactorPercent",
        description="Material waste buffer %"
    )
    contingency_percent: float = Field(
        ge=0,
        alias="contingencyPercent",
        description="Labor contingency buffer %"
    )

    class Config:
        populate_by_name = True
        frozen = True


class CostTemplate(BaseModel):
    """Per-unit cost template supplied by the catalog.

    Multiplier tables are keyed by complexity level, season and location
    zone. Unknown keys price at 1.0.
    """

    template_id: Optional[str] = Field(default=None, alias="templateId")
    material_base_cost_per_unit: float = Field(
        ge=0,
        alias="materialBaseCostPerUnit",
        description="Material cost per sq ft"
    )
    labor_base_cost_per_unit: float = Field(
        ge=0,
        alias="laborBaseCostPerUnit",
        description="Labor cost per sq ft"
    )
    complexity_multipliers: Dict[str, float] = Field(
        default_factory=dict,
        alias="complexityMultipliers"
    )
    seasonal_multipliers: Dict[str, float] = Field(
        default_factory=dict,
        alias="seasonalMultipliers"
    )
    location_multipliers: Dict[str, float] = Field(
        default_factory=dict,
        alias="locationMultipliers"
    )
    waste_factor_percent: Optional[float] = Field(
        default=None,
        ge=0,
        alias="wasteFactorPercent",
        description="Template default waste %"
    )
    contingency_percent: Optional[float] = Field(
        default=None,
        ge=0,
        alias="contingencyPercent",
        description="Template default contingency %"
    )
    fixed_costs: float = Field(
        default=DEFAULT_FIXED_COSTS,
        ge=0,
        alias="fixedCosts",
        description="Permits and inspections"
    )

    class Config:
        populate_by_name = True

    @model_validator(mode="after")
    def validate_multipliers(self) -> "CostTemplate":
        """Multipliers must be positive."""
        for table_name in ("complexity_multipliers", "seasonal_multipliers", "location_multipliers"):
            for key, value in getattr(self, table_name).items():
                if value <= 0:
                    raise ValueError(f"{table_name}[{key!r}] must be positive, got {value}")
        return self


class JobDetails(BaseModel):
    """Job properties that select template multipliers."""

    area_sq_ft: float = Field(gt=0, alias="areaSqFt", description="Job area in sq ft")
    complexity_level: Optional[str] = Field(default=None, alias="complexityLevel")
    season: Optional[str] = Field(default=None)
    location_zone: Optional[str] = Field(default=None, alias="locationZone")

    class Config:
        populate_by_name = True
