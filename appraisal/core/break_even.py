"""Break-even analysis."""

from __future__ import annotations

from ..models.results import BreakEvenResult
from .validator import require_non_negative, require_positive

NON_POSITIVE_MARGIN_MESSAGE = "Negative or zero contribution margin"


def calculate_break_even(
    fixed_costs: float,
    variable_cost_per_unit: float,
    price_per_unit: float,
) -> BreakEvenResult:
    """Units and revenue at which contribution margin covers fixed costs."""
    fixed = require_non_negative("fixed_costs", fixed_costs)
    variable = require_non_negative("variable_cost_per_unit", variable_cost_per_unit)
    price = require_positive("price_per_unit", price_per_unit)

    margin = price - variable
    margin_ratio = margin / price

    if margin <= 0:
        return BreakEvenResult(
            break_even_units=None,
            break_even_revenue=None,
            contribution_margin=margin,
            contribution_margin_ratio=margin_ratio,
            error=NON_POSITIVE_MARGIN_MESSAGE,
        )

    units = fixed / margin
    return BreakEvenResult(
        break_even_units=units,
        break_even_revenue=units * price,
        contribution_margin=margin,
        contribution_margin_ratio=margin_ratio,
    )


__all__ = ["calculate_break_even", "NON_POSITIVE_MARGIN_MESSAGE"]
