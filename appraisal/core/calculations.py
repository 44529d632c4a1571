"""Map calculation kinds onto the pure algorithm library."""

from __future__ import annotations

from typing import Any, Callable, Dict

from pydantic import BaseModel

from ..models.requests import (
    BreakEvenParameters,
    CalculationKind,
    IRRParameters,
    NPVParameters,
    PaybackParameters,
    ProjectionParameters,
    build_parameters,
)
from .break_even import calculate_break_even
from .cashflow_projector import project_cash_flows
from .irr import calculate_irr
from .npv import calculate_npv
from .payback import calculate_payback_period


def _npv(params: NPVParameters) -> BaseModel:
    return calculate_npv(params.cash_flows, params.discount_rate, params.initial_investment)


def _irr(params: IRRParameters) -> BaseModel:
    return calculate_irr(params.cash_flows, params.guess)


def _payback(params: PaybackParameters) -> BaseModel:
    return calculate_payback_period(params.cash_flows, params.initial_investment)


def _break_even(params: BreakEvenParameters) -> BaseModel:
    return calculate_break_even(params.fixed_costs, params.variable_cost_per_unit, params.price_per_unit)


def _projection(params: ProjectionParameters) -> BaseModel:
    return project_cash_flows(params.base_cash_flow, params.growth_rate, params.periods, params.discount_rate)


def _sensitivity(params) -> BaseModel:
    from .sensitivity import perform_sensitivity_analysis

    return perform_sensitivity_analysis(params)


HANDLERS: Dict[CalculationKind, Callable[[Any], BaseModel]] = {
    CalculationKind.NPV: _npv,
    CalculationKind.IRR: _irr,
    CalculationKind.PAYBACK: _payback,
    CalculationKind.BREAKEVEN: _break_even,
    CalculationKind.PROJECTION: _projection,
    CalculationKind.SENSITIVITY: _sensitivity,
}


def run_calculation(params: BaseModel) -> BaseModel:
    """Run the algorithm matching a typed parameter record."""
    handler = HANDLERS.get(params.kind)
    if handler is None:
        raise ValueError(f"Unknown calculation type: {params.kind}")
    return handler(params)


def execute(kind: str, payload: Dict[str, Any]) -> Dict[str, Any]:
    """Validate a raw payload, run it and return the result as plain data."""
    params = build_parameters(kind, payload)
    return run_calculation(params).model_dump()


__all__ = ["HANDLERS", "run_calculation", "execute"]
