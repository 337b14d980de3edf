"""Line item markup distribution.

Spreads what is left of the selling price, after overhead, commissions,
target profit and fixed costs, over material and labor in proportion to
their adjusted base costs. Labor takes the residual so the distributed
totals always add back up to the selling price.
"""

from typing import Iterable

from models.breakdown import MarkupDistribution


def _markup_percent(total: float, base: float) -> float:
    if base <= 0:
        return 0.0
    return (total - base) / base * 100


def distribute_markup(
    selling_price: float,
    overhead_amount: float,
    commission_amounts: Iterable[float],
    target_profit_amount: float,
    adjusted_material: float,
    adjusted_labor: float,
    fixed_costs: float = 0.0,
) -> MarkupDistribution:
    """Distribute the selling price back across material and labor.

    Args:
        selling_price: Solved selling price.
        overhead_amount: Overhead amount.
        commission_amounts: Every rep's commission amount.
        target_profit_amount: Guaranteed profit amount.
        adjusted_material: Material cost incl. waste.
        adjusted_labor: Labor cost incl. contingency.
        fixed_costs: Permits and other fixed costs.

    Returns:
        MarkupDistribution with material/labor totals and effective markups.
    """
    available = (
        selling_price
        - overhead_amount
        - sum(commission_amounts)
        - target_profit_amount
        - fixed_costs
    )

    weight_total = adjusted_material + adjusted_labor
    if weight_total > 0:
        material_total = available * adjusted_material / weight_total
    else:
        material_total = 0.0
    labor_total = available - material_total

    return MarkupDistribution(
        material_total=material_total,
        labor_total=labor_total,
        material_markup_percent=_markup_percent(material_total, adjusted_material),
        labor_markup_percent=_markup_percent(labor_total, adjusted_labor),
    )
