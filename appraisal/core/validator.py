"""Input validation utilities."""

from __future__ import annotations

import math
from typing import Iterable, List


class ValidationError(Exception):
    """Custom error for validation related issues."""


class InvalidCashFlows(ValidationError):
    """Raised when a cash-flow series is empty, malformed or non-finite."""


class InvalidParameters(ValidationError):
    """Raised when scalar calculation inputs are outside their valid domain."""


def ensure_finite(name: str, value: float) -> float:
    """Return ``value`` as a float, rejecting NaN, infinities and non-numbers."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise InvalidParameters(f"{name} must be a number, got {type(value).__name__}")
    value = float(value)
    if not math.isfinite(value):
        raise InvalidParameters(f"{name} must be finite, got {value!r}")
    return value


def validate_cash_flows(cash_flows: Iterable[float], *, min_length: int = 1) -> List[float]:
    """Validate a cash-flow series and return it as a list of floats."""
    if cash_flows is None or isinstance(cash_flows, (str, bytes)):
        raise InvalidCashFlows("Cash flows must be a sequence of numbers")
    try:
        values = list(cash_flows)
    except TypeError as exc:
        raise InvalidCashFlows("Cash flows must be a sequence of numbers") from exc
    if not values:
        raise InvalidCashFlows("Cash flows must be a non-empty array")
    if len(values) < min_length:
        raise InvalidCashFlows(f"Cash flows must be an array with at least {min_length} periods")

    cleaned: List[float] = []
    for idx, value in enumerate(values):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise InvalidCashFlows(f"Cash flow at period {idx} is not a number: {value!r}")
        value = float(value)
        if not math.isfinite(value):
            raise InvalidCashFlows(f"Cash flow at period {idx} is not finite: {value!r}")
        cleaned.append(value)
    return cleaned


def validate_discount_rate(rate: float, *, name: str = "discount_rate") -> float:
    """Discount rates must be finite and strictly greater than -100%."""
    rate = ensure_finite(name, rate)
    if rate <= -1.0:
        raise InvalidParameters(f"{name} must be a valid number greater than -100%")
    return rate


def require_positive(name: str, value: float) -> float:
    value = ensure_finite(name, value)
    if value <= 0:
        raise InvalidParameters(f"{name} must be a positive number")
    return value


def require_non_negative(name: str, value: float) -> float:
    value = ensure_finite(name, value)
    if value < 0:
        raise InvalidParameters(f"{name} must be a non-negative number")
    return value


def require_positive_int(name: str, value: int) -> int:
    """Accept ints (or integral floats) strictly greater than zero."""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, bool) or not isinstance(value, int):
        raise InvalidParameters(f"{name} must be a positive integer")
    if value <= 0:
        raise InvalidParameters(f"{name} must be a positive integer")
    return value


__all__ = [
    "ValidationError",
    "InvalidCashFlows",
    "InvalidParameters",
    "ensure_finite",
    "validate_cash_flows",
    "validate_discount_rate",
    "require_positive",
    "require_non_negative",
    "require_positive_int",
]
