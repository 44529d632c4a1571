"""Monte Carlo simulation inputs and summary outputs."""

from __future__ import annotations

from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from ..core.validator import InvalidParameters
from .requests import NPVParameters


class DistributionSpec(BaseModel):
    """Sampling distribution for one simulated input."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    distribution: Literal["uniform", "normal"] = "uniform"
    min_value: float = Field(..., alias="min")
    max_value: float = Field(..., alias="max")

    @model_validator(mode="after")
    def _check_bounds(self) -> "DistributionSpec":
        if self.max_value < self.min_value:
            raise InvalidParameters(
                f"Distribution max ({self.max_value}) must not be below min ({self.min_value})"
            )
        return self

    @property
    def mean(self) -> float:
        return (self.min_value + self.max_value) / 2.0

    @property
    def std_dev(self) -> float:
        # Six standard deviations span the range, so ~99.7% of normal draws land inside it.
        return (self.max_value - self.min_value) / 6.0


class SimulationParameters(BaseModel):
    """Base NPV case plus the inputs to randomise around it."""

    model_config = ConfigDict(frozen=True)

    base_case: NPVParameters
    variables: Dict[str, DistributionSpec] = Field(default_factory=dict)
    iterations: int = Field(1000, gt=0)
    confidence_level: float = Field(0.95, gt=0.0, lt=1.0)
    seed: Optional[int] = None

    @field_validator("variables")
    @classmethod
    def _check_variable_names(cls, value: Dict[str, DistributionSpec]) -> Dict[str, DistributionSpec]:
        allowed = [name for name in NPVParameters.model_fields if name not in ("kind", "cash_flows")]
        unknown = [name for name in value if name not in allowed]
        if unknown:
            raise InvalidParameters(
                f"Cannot simulate {', '.join(sorted(unknown))}; expected one of {', '.join(allowed)}"
            )
        return value


class ConfidenceInterval(BaseModel):
    model_config = ConfigDict(frozen=True)

    level: float
    lower: Optional[float] = None
    upper: Optional[float] = None


class Percentiles(BaseModel):
    model_config = ConfigDict(frozen=True)

    p5: Optional[float] = None
    p25: Optional[float] = None
    p75: Optional[float] = None
    p95: Optional[float] = None


class SimulationResult(BaseModel):
    """
    Descriptive statistics of simulated NPVs.

    Every statistic is ``None`` when no iteration succeeded; callers detect
    that case through ``successful_iterations == 0``.
    """

    model_config = ConfigDict(frozen=True)

    iterations: int
    successful_iterations: int
    mean: Optional[float] = None
    median: Optional[float] = None
    standard_deviation: Optional[float] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    confidence_interval: ConfidenceInterval
    percentiles: Percentiles = Field(default_factory=Percentiles)
    probability_of_success: Optional[float] = None
    npv_values: List[float] = Field(default_factory=list, repr=False, description="Sorted successful NPVs")


__all__ = [
    "DistributionSpec",
    "SimulationParameters",
    "ConfidenceInterval",
    "Percentiles",
    "SimulationResult",
]
