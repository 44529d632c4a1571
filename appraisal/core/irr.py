"""Internal rate of return via Newton-Raphson with a bracketed fallback."""

from __future__ import annotations

import logging
import math
from typing import Iterable, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import brentq

from ..models.results import IRRResult
from .npv import npv_and_derivative, npv_profile
from .validator import validate_cash_flows, validate_discount_rate

LOGGER = logging.getLogger(__name__)

MAX_ITERATIONS = 50
TOLERANCE = 1e-6
MIN_RATE = -0.99
MAX_RATE = 10.0
NON_CONVERGENCE_MESSAGE = "IRR calculation did not converge"

# Rates scanned when Newton-Raphson fails to settle.
_BRACKET_GRID = np.concatenate(
    [np.linspace(MIN_RATE, 1.0, 200, endpoint=False), np.linspace(1.0, MAX_RATE, 91)]
)


def _has_sign_change(flows: Sequence[float]) -> bool:
    return any(cf > 0 for cf in flows) and any(cf < 0 for cf in flows)


def _within_tolerance(value: float, flows: Sequence[float]) -> bool:
    # Large flows cannot be resolved below float precision; allow a relative floor.
    scale = float(np.sum(np.abs(flows)))
    return abs(value) < max(TOLERANCE, scale * 1e-12)


def _newton(flows: Sequence[float], guess: float) -> Tuple[Optional[float], int]:
    rate = guess
    for iteration in range(MAX_ITERATIONS):
        value, derivative = npv_and_derivative(flows, rate)
        if not math.isfinite(value):
            return None, iteration
        if _within_tolerance(value, flows):
            return rate, iteration
        if derivative == 0 or not math.isfinite(derivative):
            return None, iteration
        rate = min(max(rate - value / derivative, MIN_RATE), MAX_RATE)
    return None, MAX_ITERATIONS


def _bracketed(flows: Sequence[float]) -> Tuple[Optional[float], int]:
    profile = npv_profile(flows, _BRACKET_GRID)
    for (low, f_low), (high, f_high) in zip(profile, profile[1:]):
        if not (math.isfinite(f_low) and math.isfinite(f_high)):
            continue
        if f_low == 0:
            return low, 0
        if f_low * f_high < 0:
            root, info = brentq(
                lambda r: npv_and_derivative(flows, r)[0],
                low,
                high,
                xtol=1e-14,
                maxiter=100,
                full_output=True,
                disp=False,
            )
            if info.converged:
                return float(root), int(info.iterations)
            return None, int(info.iterations)
    return None, 0


def calculate_irr(cash_flows: Iterable[float], guess: float = 0.1) -> IRRResult:
    """
    Find the discount rate at which the NPV of ``cash_flows`` is zero.

    ``cash_flows[0]`` is the undiscounted outlay (conventionally negative).
    Non-convergence is reported through ``is_valid=False`` rather than raised.
    """
    flows = validate_cash_flows(cash_flows, min_length=2)
    guess = validate_discount_rate(guess, name="guess")

    if not _has_sign_change(flows):
        return IRRResult(irr=None, is_valid=False, error=NON_CONVERGENCE_MESSAGE)

    rate, iterations = _newton(flows, guess)
    if rate is None:
        LOGGER.debug("Newton-Raphson did not settle after %d iterations; bracketing", iterations)
        rate, extra = _bracketed(flows)
        iterations += extra

    if rate is None or not _within_tolerance(npv_and_derivative(flows, rate)[0], flows):
        return IRRResult(irr=None, is_valid=False, error=NON_CONVERGENCE_MESSAGE)
    return IRRResult(irr=rate, is_valid=True, iterations=iterations)


__all__ = ["calculate_irr", "MAX_ITERATIONS", "TOLERANCE", "NON_CONVERGENCE_MESSAGE"]
