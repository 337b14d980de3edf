"""Estimate breakdown pipeline.

Runs RateResolver -> MarginSolver -> CommissionAllocator ->
LineItemMarkupDistributor and assembles the EstimateBreakdown.

compute_breakdown is the pipeline boundary: component errors are returned
as typed results, never raised to the caller. It depends on nothing but its
arguments, so the same inputs always give the same breakdown.
"""

from typing import List, Optional, Union

import structlog

from config.errors import EngineError, MarginConfigurationError
from models.assignment import (
    ProfitSplitAssignment,
    RepAssignment,
    SalesPercentageAssignment,
    SplitPercentages,
)
from models.breakdown import (
    BreakdownLineItem,
    CommissionAllocation,
    EstimateBreakdown,
    LineItemCategory,
    MarginSolution,
    MarkupDistribution,
)
from models.costs import CostInputs, CostTemplate, JobDetails, PricingConfig, TargetPercentages
from models.rates import CommissionStructure, RateDefaults, RawRepProfile
from services.commission_allocator import allocate_commissions, build_assignment
from services.margin_solver import solve_margin
from services.markup_distributor import distribute_markup
from services.rate_resolver import rate_defaults_for, resolve_rates

logger = structlog.get_logger()

BreakdownResult = Union[EstimateBreakdown, EngineError]


# =============================================================================
# INPUT ASSEMBLY
# =============================================================================


def assemble_commission_percent(assignment: RepAssignment, target_margin_percent: float) -> float:
    """Commission share of the selling price for the margin solver.

    Sales-percentage commissions are a fixed share of price. A profit-split
    commission at fraction k takes k of whatever profit is left, so keeping
    the target margin m for the company costs an extra m * k / (1 - k).

    Raises:
        MarginConfigurationError: If a profit-split rate of 100% or more
            leaves nothing for a positive target margin.
    """
    sales_percent = 0.0
    profit_fraction = 0.0

    primary = assignment.primary
    if isinstance(assignment, ProfitSplitAssignment):
        # The shared pool is sized by the primary's rate whatever its structure.
        profit_fraction = primary.commission_percent / 100
    elif primary.commission_structure == CommissionStructure.PROFIT_SPLIT:
        profit_fraction = primary.commission_percent / 100
    else:
        sales_percent += primary.commission_percent

    if isinstance(assignment, SalesPercentageAssignment):
        sales_percent += assignment.secondary.commission_percent

    if target_margin_percent == 0 or profit_fraction == 0:
        return sales_percent
    if profit_fraction >= 1.0:
        raise MarginConfigurationError(
            message=(
                f"A {primary.commission_percent:g}% profit split leaves no profit "
                f"for a {target_margin_percent:g}% target margin"
            ),
            total_percent=primary.commission_percent,
            details={"primary_rep_id": primary.rep_id},
        )
    return sales_percent + target_margin_percent * profit_fraction / (1 - profit_fraction)


def _multiplier(table, key: Optional[str]) -> float:
    if key is None:
        return 1.0
    return table.get(key, 1.0)


def build_cost_inputs(template: CostTemplate, job: JobDetails, config: PricingConfig) -> CostInputs:
    """Expand a per-unit cost template into base costs for one job.

    Material picks up complexity, season and location multipliers; labor
    only complexity.
    """
    complexity = _multiplier(template.complexity_multipliers, job.complexity_level)
    season = _multiplier(template.seasonal_multipliers, job.season)
    location = _multiplier(template.location_multipliers, job.location_zone)

    material = template.material_base_cost_per_unit * job.area_sq_ft * complexity * season * location
    labor = template.labor_base_cost_per_unit * job.area_sq_ft * complexity

    waste = template.waste_factor_percent
    if waste is None:
        waste = config.waste_factor_percent
    contingency = template.contingency_percent
    if contingency is None:
        contingency = config.contingency_percent

    return CostInputs(
        material_base_cost=material,
        labor_base_cost=labor,
        waste_factor_percent=waste,
        contingency_percent=contingency,
        fixed_costs=template.fixed_costs,
        area_sq_ft=job.area_sq_ft,
    )


# =============================================================================
# BREAKDOWN
# =============================================================================


def _rep_label(rep) -> str:
    return rep.display_name or rep.rep_id


def _line_items(
    costs: CostInputs,
    percentages: TargetPercentages,
    assignment: RepAssignment,
    solution: MarginSolution,
    allocation: CommissionAllocation,
    distribution: MarkupDistribution,
    target_profit_amount: float,
) -> List[BreakdownLineItem]:
    items = [
        BreakdownLineItem(
            category=LineItemCategory.MATERIAL,
            name=f"Materials (incl. {costs.waste_factor_percent:g}% waste)",
            base_cost=solution.adjusted_material,
            total=distribution.material_total,
            markup_percent=distribution.material_markup_percent,
        ),
        BreakdownLineItem(
            category=LineItemCategory.LABOR,
            name=f"Installation Labor (incl. {costs.contingency_percent:g}% contingency)",
            base_cost=solution.adjusted_labor,
            total=distribution.labor_total,
            markup_percent=distribution.labor_markup_percent,
        ),
        BreakdownLineItem(
            category=LineItemCategory.OVERHEAD,
            name=f"Overhead & Administrative ({percentages.overhead_percent:g}% of selling price)",
            total=solution.overhead_amount,
        ),
        BreakdownLineItem(
            category=LineItemCategory.COMMISSION,
            name=f"Sales Commission - {_rep_label(assignment.primary)}",
            total=allocation.primary_commission_amount,
        ),
    ]
    if assignment.secondary is not None:
        items.append(
            BreakdownLineItem(
                category=LineItemCategory.COMMISSION,
                name=f"Sales Commission - {_rep_label(assignment.secondary)}",
                total=allocation.secondary_commission_amount,
            )
        )
    items.append(
        BreakdownLineItem(
            category=LineItemCategory.PROFIT,
            name=f"Guaranteed Profit ({percentages.target_margin_percent:g}% margin)",
            total=target_profit_amount,
        )
    )
    if solution.fixed_costs > 0:
        items.append(
            BreakdownLineItem(
                category=LineItemCategory.FIXED,
                name="Permits & Inspections",
                base_cost=solution.fixed_costs,
                total=solution.fixed_costs,
            )
        )
    return items


def _compute(costs: CostInputs, config: PricingConfig, assignment: RepAssignment) -> EstimateBreakdown:
    percentages = TargetPercentages(
        overhead_percent=assignment.primary.effective_overhead_percent,
        target_margin_percent=config.target_margin_percent,
        commission_percent=assemble_commission_percent(assignment, config.target_margin_percent),
    )
    solution = solve_margin(costs, percentages)
    selling_price = solution.selling_price

    allocation = allocate_commissions(
        selling_price,
        solution.overhead_amount,
        solution.base_cost_adjusted,
        assignment,
    )
    target_profit_amount = selling_price * percentages.target_margin_percent / 100

    distribution = distribute_markup(
        selling_price,
        solution.overhead_amount,
        allocation.commission_amounts,
        target_profit_amount,
        solution.adjusted_material,
        solution.adjusted_labor,
        fixed_costs=solution.fixed_costs,
    )

    price_per_unit_area = None
    if costs.area_sq_ft:
        price_per_unit_area = selling_price / costs.area_sq_ft

    secondary = assignment.secondary
    return EstimateBreakdown(
        selling_price=selling_price,
        material_total=distribution.material_total,
        labor_total=distribution.labor_total,
        overhead_amount=solution.overhead_amount,
        primary_commission_amount=allocation.primary_commission_amount,
        secondary_commission_amount=allocation.secondary_commission_amount,
        target_profit_amount=target_profit_amount,
        company_net=allocation.company_net,
        price_per_unit_area=price_per_unit_area,
        fixed_costs=solution.fixed_costs,
        material_cost=solution.adjusted_material,
        labor_cost=solution.adjusted_labor,
        material_markup_percent=distribution.material_markup_percent,
        labor_markup_percent=distribution.labor_markup_percent,
        overhead_percent=percentages.overhead_percent,
        commission_percent=percentages.commission_percent,
        target_margin_percent=percentages.target_margin_percent,
        assignment_kind=assignment.kind,
        primary_rep_id=assignment.primary.rep_id,
        secondary_rep_id=secondary.rep_id if secondary is not None else None,
        line_items=_line_items(
            costs, percentages, assignment, solution, allocation, distribution, target_profit_amount
        ),
    )


def compute_breakdown(
    costs: CostInputs,
    config: PricingConfig,
    assignment: RepAssignment,
) -> BreakdownResult:
    """Price an estimate and allocate its profit.

    Overhead is the primary rep's effective overhead (config.overhead_percent
    is the company fallback, already applied when the rates were resolved);
    the target margin comes from config; waste and contingency from costs.

    Args:
        costs: Base costs of the job.
        config: Pricing configuration options.
        assignment: Rep assignment variant.

    Returns:
        EstimateBreakdown, or the EngineError that prevented one.
    """
    try:
        breakdown = _compute(costs, config, assignment)
    except EngineError as e:
        logger.warning("breakdown_rejected", code=e.code, error=e.message, details=e.details)
        return e

    logger.info(
        "breakdown_computed",
        assignment_kind=breakdown.assignment_kind,
        primary_rep_id=breakdown.primary_rep_id,
        selling_price=round(breakdown.selling_price, 2),
        company_net=round(breakdown.company_net, 2),
    )
    return breakdown


def compute_breakdown_for_reps(
    costs: CostInputs,
    config: PricingConfig,
    primary_profile: Optional[RawRepProfile],
    secondary_profile: Optional[RawRepProfile] = None,
    split: Optional[SplitPercentages] = None,
    defaults: Optional[RateDefaults] = None,
    primary_rep_id: Optional[str] = None,
    secondary_rep_id: Optional[str] = None,
) -> BreakdownResult:
    """Resolve rep rates, build the assignment and compute the breakdown.

    Rates are fully resolved before any calculation runs. ``defaults``
    supplies commission fallbacks; its overhead fallback is replaced by
    config.overhead_percent.

    Args:
        costs: Base costs of the job.
        config: Pricing configuration options.
        primary_profile: Primary rep profile (None reports a missing rep).
        secondary_profile: Secondary rep profile, if a secondary is assigned.
        split: Requested pool division for two profit-split reps.
        defaults: Commission fallbacks.
        primary_rep_id: Rep ID reported if the primary profile is missing.
        secondary_rep_id: Secondary rep ID; when set, a missing secondary
            profile is an error rather than "no secondary".

    Returns:
        EstimateBreakdown, or the EngineError that prevented one.
    """
    rate_defaults = rate_defaults_for(config, defaults)
    try:
        primary = resolve_rates(primary_profile, rate_defaults, rep_id=primary_rep_id)
        secondary = None
        if secondary_profile is not None or secondary_rep_id is not None:
            secondary = resolve_rates(secondary_profile, rate_defaults, rep_id=secondary_rep_id)
        assignment = build_assignment(primary, secondary, split)
    except EngineError as e:
        logger.warning("breakdown_rejected", code=e.code, error=e.message, details=e.details)
        return e
    return compute_breakdown(costs, config, assignment)
