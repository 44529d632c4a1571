"""One-at-a-time sensitivity analysis over a closed set of metrics."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from ..models.requests import SensitivityParameters
from ..models.results import SensitivityPoint, SensitivityResult
from .calculations import run_calculation
from .validator import ValidationError


def _percent_change(value: Optional[float], base: Optional[float]) -> Optional[float]:
    if value is None or base is None or base == 0:
        return None
    return (value - base) / base * 100.0


def _metric_value(metric: str, params: BaseModel) -> Optional[float]:
    result = run_calculation(params)
    return getattr(result, metric)


def perform_sensitivity_analysis(params: SensitivityParameters) -> SensitivityResult:
    """
    Re-evaluate ``params.metric`` for every listed value of every variable.

    Each run changes a single input of the base case. A value that makes the
    case invalid yields a point with ``result=None`` instead of failing the
    whole analysis.
    """
    base_case = params.base_case
    base_metric = _metric_value(params.metric, base_case)
    base_inputs = base_case.model_dump()

    variables = {}
    for name, values in params.variables.items():
        base_input = base_inputs[name]
        points = []
        for value in values:
            try:
                scenario = type(base_case).model_validate({**base_inputs, name: value})
                result = _metric_value(params.metric, scenario)
            except (ValidationError, PydanticValidationError):
                result = None
            points.append(
                SensitivityPoint(
                    value=value,
                    result=result,
                    percentage_change=_percent_change(value, base_input),
                    impact=_percent_change(result, base_metric),
                )
            )
        variables[name] = points

    return SensitivityResult(metric=params.metric, base_value=base_metric, variables=variables)


__all__ = ["perform_sensitivity_analysis"]
