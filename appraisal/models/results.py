"""Result data models returned by the calculation library and engine."""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Union

import pandas as pd
from pydantic import BaseModel, ConfigDict, Field


class _ResultModel(BaseModel):
    model_config = ConfigDict(frozen=True)


class NPVResult(_ResultModel):
    """Net present value with its per-period discounted terms."""

    npv: float = Field(..., description="Sum of discounted flows minus the initial investment")
    profitability_index: Optional[float] = Field(
        None, description="(npv + investment) / investment; None without an investment"
    )
    present_values: List[float] = Field(default_factory=list)


class IRRResult(_ResultModel):
    """Internal rate of return, or the reason one could not be found."""

    irr: Optional[float] = Field(None, description="Rate in decimal form (0.12 for 12%)")
    is_valid: bool
    iterations: Optional[int] = None
    error: Optional[str] = None


class PaybackResult(_ResultModel):
    payback_period: Optional[float] = None
    is_within_project_life: bool
    cumulative_cash_flows: List[float] = Field(
        default_factory=list, description="Running total of cash flows net of the investment"
    )


class BreakEvenResult(_ResultModel):
    """Break-even volume; unit and revenue figures are None for a non-positive margin."""

    break_even_units: Optional[float] = None
    break_even_revenue: Optional[float] = None
    contribution_margin: float
    contribution_margin_ratio: float
    error: Optional[str] = None

    def margin_of_safety(self, target_revenue: float) -> Optional[float]:
        """Share of ``target_revenue`` above break-even revenue."""
        if self.break_even_revenue is None or not target_revenue:
            return None
        return (target_revenue - self.break_even_revenue) / target_revenue


class ProjectionResult(_ResultModel):
    projected_cash_flows: List[float]
    present_values: List[float]
    total_pv: float
    terminal_value: Optional[float] = None


class SensitivityPoint(_ResultModel):
    value: float
    result: Optional[float] = None
    percentage_change: Optional[float] = Field(None, description="Input change vs base, in percent")
    impact: Optional[float] = Field(None, description="Metric change vs base, in percent")


class SensitivityResult(_ResultModel):
    """Metric response to one-at-a-time changes of base-case inputs."""

    metric: str
    base_value: Optional[float] = None
    variables: Dict[str, List[SensitivityPoint]] = Field(default_factory=dict)

    def to_frame(self) -> pd.DataFrame:
        rows = [
            {"variable": name, **point.model_dump()}
            for name, points in self.variables.items()
            for point in points
        ]
        return pd.DataFrame(rows, columns=["variable", "value", "result", "percentage_change", "impact"])


class BatchItemResult(_ResultModel):
    """Outcome of a single element of a batch calculation."""

    kind: str
    success: bool
    result: Optional[Any] = None
    error: Optional[str] = None
    error_type: Optional[str] = None


class CalculationFailure(_ResultModel):
    """Error outcome standing in for a result, e.g. a failed scenario."""

    error: str
    error_type: Optional[str] = None


class EngineStatus(_ResultModel):
    """Observability snapshot; never used for control flow."""

    is_initialized: bool
    pending_calculations: int
    total_calculations: int
    cache_size: int = 0


def scenario_summary_frame(
    results: Dict[str, Union[NPVResult, CalculationFailure]],
    base_scenario: Optional[str] = None,
) -> pd.DataFrame:
    """Tabulate scenario NPVs with deltas against ``base_scenario``."""
    if not results:
        return pd.DataFrame()
    base_npv = None
    if base_scenario and isinstance(results.get(base_scenario), NPVResult):
        base_npv = results[base_scenario].npv

    rows = []
    for name, result in results.items():
        if isinstance(result, CalculationFailure):
            rows.append(
                {"scenario": name, "npv": None, "vs_base": None, "vs_base_pct": None, "error": result.error}
            )
            continue
        delta = None
        delta_pct = None
        if base_npv is not None:
            delta = result.npv - base_npv
            delta_pct = delta / base_npv if base_npv else None
        rows.append(
            {"scenario": name, "npv": result.npv, "vs_base": delta, "vs_base_pct": delta_pct, "error": None}
        )
    return pd.DataFrame(rows)


__all__ = [
    "NPVResult",
    "IRRResult",
    "PaybackResult",
    "BreakEvenResult",
    "ProjectionResult",
    "SensitivityPoint",
    "SensitivityResult",
    "BatchItemResult",
    "CalculationFailure",
    "EngineStatus",
    "scenario_summary_frame",
]
