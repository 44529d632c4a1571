"""Payback period calculation."""

from __future__ import annotations

from typing import Iterable

import numpy as np

from ..models.results import PaybackResult
from .validator import require_positive, validate_cash_flows


def calculate_payback_period(cash_flows: Iterable[float], initial_investment: float) -> PaybackResult:
    """
    Return the (fractional) number of periods needed to recover ``initial_investment``.

    The crossing period is linearly interpolated. ``cumulative_cash_flows``
    holds the running total net of the investment for every period.
    """
    flows = validate_cash_flows(cash_flows)
    investment = require_positive("initial_investment", initial_investment)

    cumulative = np.cumsum(np.asarray(flows, dtype=float)) - investment
    series = [float(value) for value in cumulative]

    for period, net in enumerate(series):
        if net >= 0:
            previous = net - flows[period]
            payback = period + (-previous / flows[period])
            return PaybackResult(
                payback_period=float(payback),
                is_within_project_life=True,
                cumulative_cash_flows=series,
            )

    return PaybackResult(
        payback_period=None,
        is_within_project_life=False,
        cumulative_cash_flows=series,
    )


__all__ = ["calculate_payback_period"]
