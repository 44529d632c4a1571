"""Net present value calculations."""

from __future__ import annotations

from typing import Iterable, List, Sequence, Tuple

import numpy as np

from ..models.results import NPVResult
from .validator import ensure_finite, validate_cash_flows, validate_discount_rate


def discount_factors(rate: float, periods: int, *, start: int = 1) -> np.ndarray:
    """Return ``1 / (1 + rate) ** t`` for ``t = start .. start + periods - 1``."""
    exponents = np.arange(start, start + periods, dtype=float)
    return np.power(1.0 + rate, -exponents)


def present_values(cash_flows: Sequence[float], rate: float, *, start: int = 1) -> np.ndarray:
    """Discount each cash flow; the first flow is discounted by ``start`` periods."""
    flows = np.asarray(cash_flows, dtype=float)
    return flows * discount_factors(rate, flows.size, start=start)


def npv_and_derivative(cash_flows: Sequence[float], rate: float) -> Tuple[float, float]:
    """
    Return NPV and dNPV/drate with the first flow undiscounted (t = 0).

    This is the convention used for IRR, where the initial outlay is folded
    into ``cash_flows[0]``.
    """
    flows = np.asarray(cash_flows, dtype=float)
    t = np.arange(flows.size, dtype=float)
    factors = np.power(1.0 + rate, -t)
    value = float(np.sum(flows * factors))
    derivative = float(np.sum(-t * flows * factors / (1.0 + rate)))
    return value, derivative


def calculate_npv(
    cash_flows: Iterable[float],
    discount_rate: float,
    initial_investment: float = 0.0,
) -> NPVResult:
    """
    Compute the NPV of a cash-flow series.

    Parameters
    ----------
    cash_flows:
        Periodic cash flows; index 0 is received at the end of period 1.
    discount_rate:
        Per-period discount rate in decimal form (0.10 for 10%).
    initial_investment:
        Outlay at t = 0, subtracted undiscounted.

    The profitability index is ``None`` when there is no initial investment.
    """
    flows = validate_cash_flows(cash_flows)
    rate = validate_discount_rate(discount_rate)
    investment = ensure_finite("initial_investment", initial_investment)

    pvs = present_values(flows, rate)
    npv = -investment + float(np.sum(pvs))

    profitability_index = None
    if investment != 0:
        profitability_index = (npv + investment) / investment

    return NPVResult(
        npv=npv,
        profitability_index=profitability_index,
        present_values=[float(value) for value in pvs],
    )


def npv_profile(cash_flows: Sequence[float], rates: Iterable[float]) -> List[Tuple[float, float]]:
    """Return ``(rate, npv)`` pairs with the first flow at t = 0."""
    flows = validate_cash_flows(cash_flows)
    profile: List[Tuple[float, float]] = []
    for rate in rates:
        rate = validate_discount_rate(rate)
        profile.append((rate, npv_and_derivative(flows, rate)[0]))
    return profile


__all__ = [
    "calculate_npv",
    "discount_factors",
    "present_values",
    "npv_and_derivative",
    "npv_profile",
]
