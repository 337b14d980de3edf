"""Guaranteed-margin selling price solver.

Every allocation (overhead, commission, target margin) is a percentage of
the final selling price, so the price is solved algebraically:

    selling_price = total_base_cost / (1 - sum_of_percentages)

rather than built up by stacking markups on cost.
"""

import structlog

from config.errors import MarginConfigurationError
from models.breakdown import MarginSolution
from models.costs import CostInputs, TargetPercentages

logger = structlog.get_logger()


def solve_margin(costs: CostInputs, percentages: TargetPercentages) -> MarginSolution:
    """Solve for the selling price that makes every percentage hold exactly.

    Args:
        costs: Base costs, waste and contingency.
        percentages: Overhead, target margin and the assembled commission
            share, all as % of selling price.

    Returns:
        MarginSolution with selling price, overhead amount and adjusted costs.

    Raises:
        MarginConfigurationError: If the percentages add up to 100% or more.
    """
    sum_pct = percentages.total_percent / 100
    if sum_pct >= 1.0:
        raise MarginConfigurationError(
            message=(
                "Total percentages (overhead + commission + margin) must be "
                f"below 100%, got {percentages.total_percent:g}%"
            ),
            total_percent=percentages.total_percent,
            details={
                "overhead_percent": percentages.overhead_percent,
                "target_margin_percent": percentages.target_margin_percent,
                "commission_percent": percentages.commission_percent,
            },
        )

    adjusted_material = costs.adjusted_material
    adjusted_labor = costs.adjusted_labor
    total_base_cost = costs.total_base_cost

    selling_price = total_base_cost / (1 - sum_pct)
    overhead_amount = selling_price * percentages.overhead_percent / 100

    logger.debug(
        "margin_solved",
        total_base_cost=total_base_cost,
        total_percent=percentages.total_percent,
        selling_price=selling_price,
    )

    return MarginSolution(
        selling_price=selling_price,
        overhead_amount=overhead_amount,
        adjusted_material=adjusted_material,
        adjusted_labor=adjusted_labor,
        fixed_costs=costs.fixed_costs,
        base_cost_adjusted=total_base_cost,
    )
