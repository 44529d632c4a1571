"""Geometric cash flow projection with optional discounting."""

from __future__ import annotations

from typing import Optional

import numpy as np

from ..models.results import ProjectionResult
from .validator import require_positive, require_positive_int, validate_discount_rate


def growing_perpetuity(final_cash_flow: float, growth_rate: float, discount_rate: float) -> Optional[float]:
    """Value at the horizon of a perpetuity growing at ``growth_rate``; None when undefined."""
    if discount_rate <= growth_rate:
        return None
    return final_cash_flow * (1.0 + growth_rate) / (discount_rate - growth_rate)


def project_cash_flows(
    base_cash_flow: float,
    growth_rate: float,
    periods: int,
    discount_rate: float = 0.0,
) -> ProjectionResult:
    """
    Project ``base_cash_flow * (1 + growth_rate) ** t`` for ``t = 1 .. periods``.

    Each projected flow is discounted at ``discount_rate`` for ``t`` periods.
    The terminal value uses the growing-perpetuity formula and is ``None``
    when ``growth_rate >= discount_rate``.
    """
    base = require_positive("base_cash_flow", base_cash_flow)
    growth = validate_discount_rate(growth_rate, name="growth_rate")
    count = require_positive_int("periods", periods)
    rate = validate_discount_rate(discount_rate)

    t = np.arange(1, count + 1, dtype=float)
    projected = base * np.power(1.0 + growth, t)
    discounted = projected / np.power(1.0 + rate, t)

    return ProjectionResult(
        projected_cash_flows=[float(value) for value in projected],
        present_values=[float(value) for value in discounted],
        total_pv=float(np.sum(discounted)),
        terminal_value=growing_perpetuity(float(projected[-1]), growth, rate),
    )


__all__ = ["project_cash_flows", "growing_perpetuity"]
