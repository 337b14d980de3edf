"""Commission allocation between representatives and the company.

Order of operations is a business rule, not an implementation detail:

1. gross profit = selling price - material/labor/fixed cost - overhead
2. a sales-percentage secondary is paid on the selling price and deducted
   from gross profit before anything else
3. the primary is paid on what remains (profit split) or on the selling
   price (sales percentage)
4. two profit-split reps with equal effective overhead share one pool,
   divided by the requested split; with unequal overhead and no split
   request the secondary is paid nothing
5. the company keeps the rest
"""

from typing import Optional

import structlog
from pydantic import ValidationError as PydanticValidationError

from config.errors import IneligibleSplitError, SplitConfigurationError
from models.assignment import (
    ProfitSplitAssignment,
    RepAssignment,
    SalesPercentageAssignment,
    SingleRepAssignment,
    SplitPercentages,
    UnsplitSecondaryAssignment,
)
from models.breakdown import CommissionAllocation
from models.rates import CommissionStructure, RateConfig

logger = structlog.get_logger()

# Two profit-split reps with no explicit split share the pool evenly.
DEFAULT_SPLIT = SplitPercentages(primary_percent=50.0, secondary_percent=50.0)

SPLIT_TOTAL_TOLERANCE = 1e-9


def build_assignment(
    primary: RateConfig,
    secondary: Optional[RateConfig] = None,
    split: Optional[SplitPercentages] = None,
) -> RepAssignment:
    """Build the assignment variant for a primary and optional secondary rep.

    Args:
        primary: Resolved rates of the primary rep.
        secondary: Resolved rates of the secondary rep, if any.
        split: Requested pool division. Only valid for a profit-split
            secondary; defaults to DEFAULT_SPLIT when the reps are eligible.
            Without a request, reps with unequal effective overhead do not
            share a pool.

    Returns:
        SingleRepAssignment, SalesPercentageAssignment,
        UnsplitSecondaryAssignment or ProfitSplitAssignment.

    Raises:
        SplitConfigurationError: If split percentages do not sum to 100.
        IneligibleSplitError: If a split is requested for reps that cannot
            share a pool (no secondary, sales-percentage secondary, or
            unequal effective overhead).
    """
    if secondary is None:
        if split is not None:
            raise IneligibleSplitError(
                message="Profit split requested but no secondary representative is assigned",
                primary_rep_id=primary.rep_id,
                secondary_rep_id=None,
            )
        return SingleRepAssignment(primary=primary)

    if secondary.commission_structure == CommissionStructure.SALES_PERCENTAGE:
        if split is not None:
            raise IneligibleSplitError(
                message=(
                    "Profit split requested but secondary representative "
                    f"{secondary.rep_id} is paid a percentage of sales"
                ),
                primary_rep_id=primary.rep_id,
                secondary_rep_id=secondary.rep_id,
            )
        return SalesPercentageAssignment(primary=primary, secondary=secondary)

    # Reps that cannot share a pool and asked for no split are paid separately.
    if split is None and primary.effective_overhead_percent != secondary.effective_overhead_percent:
        logger.info(
            "profit_split_not_eligible",
            primary_rep_id=primary.rep_id,
            secondary_rep_id=secondary.rep_id,
            primary_overhead_percent=primary.effective_overhead_percent,
            secondary_overhead_percent=secondary.effective_overhead_percent,
        )
        return UnsplitSecondaryAssignment(primary=primary, secondary=secondary)

    split = split or DEFAULT_SPLIT
    total = split.primary_percent + split.secondary_percent
    if abs(total - 100.0) > SPLIT_TOTAL_TOLERANCE:
        raise SplitConfigurationError(split.primary_percent, split.secondary_percent)

    # Exact equality of the resolved rates, not the raw profile values.
    if primary.effective_overhead_percent != secondary.effective_overhead_percent:
        raise IneligibleSplitError(
            message=(
                "Profit split requires equal effective overhead, got "
                f"{primary.effective_overhead_percent:g}% and "
                f"{secondary.effective_overhead_percent:g}%"
            ),
            primary_rep_id=primary.rep_id,
            secondary_rep_id=secondary.rep_id,
            details={
                "primary_overhead_percent": primary.effective_overhead_percent,
                "secondary_overhead_percent": secondary.effective_overhead_percent,
            },
        )

    try:
        return ProfitSplitAssignment(
            primary=primary,
            secondary=secondary,
            primary_split_percent=split.primary_percent,
            secondary_split_percent=split.secondary_percent,
        )
    except PydanticValidationError:
        raise SplitConfigurationError(split.primary_percent, split.secondary_percent)


def _primary_commission(selling_price: float, profit_pool: float, primary: RateConfig) -> float:
    if primary.commission_structure == CommissionStructure.PROFIT_SPLIT:
        return max(0.0, profit_pool * primary.commission_percent / 100)
    return selling_price * primary.commission_percent / 100


def allocate_commissions(
    selling_price: float,
    overhead_amount: float,
    material_and_labor_cost: float,
    assignment: RepAssignment,
) -> CommissionAllocation:
    """Compute each rep's commission and the company net.

    Args:
        selling_price: Solved selling price.
        overhead_amount: Overhead taken from the selling price.
        material_and_labor_cost: Direct job cost (material, labor, fixed).
        assignment: Rep assignment variant from build_assignment.

    Returns:
        CommissionAllocation with both commission amounts and company net.
    """
    gross_profit = selling_price - material_and_labor_cost - overhead_amount

    if isinstance(assignment, SalesPercentageAssignment):
        secondary_amount = selling_price * assignment.secondary.commission_percent / 100
        profit_after_secondary = gross_profit - secondary_amount
    else:
        secondary_amount = 0.0
        profit_after_secondary = gross_profit

    if isinstance(assignment, ProfitSplitAssignment):
        pool = profit_after_secondary * assignment.primary.commission_percent / 100
        primary_amount = pool * assignment.primary_split_percent / 100
        secondary_amount = pool * assignment.secondary_split_percent / 100
    else:
        primary_amount = _primary_commission(selling_price, profit_after_secondary, assignment.primary)

    # A sales-percentage secondary already left profit_after_secondary, so
    # net is taken from gross profit to deduct it exactly once.
    company_net = gross_profit - primary_amount - secondary_amount

    logger.debug(
        "commissions_allocated",
        assignment_kind=assignment.kind,
        gross_profit=gross_profit,
        primary_commission=primary_amount,
        secondary_commission=secondary_amount,
        company_net=company_net,
    )

    return CommissionAllocation(
        gross_profit=gross_profit,
        profit_after_secondary=profit_after_secondary,
        primary_commission_amount=primary_amount,
        secondary_commission_amount=secondary_amount,
        company_net=company_net,
    )


def allocate(
    selling_price: float,
    overhead_amount: float,
    material_and_labor_cost: float,
    primary: RateConfig,
    secondary: Optional[RateConfig] = None,
    split: Optional[SplitPercentages] = None,
) -> CommissionAllocation:
    """Build the assignment and allocate in one call.

    Raises:
        SplitConfigurationError: See build_assignment.
        IneligibleSplitError: See build_assignment.
    """
    assignment = build_assignment(primary, secondary, split)
    return allocate_commissions(selling_price, overhead_amount, material_and_labor_cost, assignment)
