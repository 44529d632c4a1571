"""Calculation request records and the dispatcher/worker message envelopes."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationInfo,
    field_validator,
    model_validator,
)
from pydantic import ValidationError as PydanticValidationError

from ..core.validator import (
    InvalidParameters,
    ensure_finite,
    require_non_negative,
    require_positive,
    require_positive_int,
    validate_cash_flows,
    validate_discount_rate,
)


class CalculationKind(str, Enum):
    """Operation tags understood by the execution context."""

    NPV = "NPV"
    IRR = "IRR"
    PAYBACK = "PAYBACK"
    BREAKEVEN = "BREAKEVEN"
    PROJECTION = "PROJECTION"
    SENSITIVITY = "SENSITIVITY"
    CLEANUP = "CLEANUP"


class _Parameters(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    def numeric_fields(self) -> List[str]:
        """Scalar inputs that sensitivity and simulation runs may vary."""
        return [
            name
            for name, info in type(self).model_fields.items()
            if name != "kind" and info.annotation in (float, int)
        ]


class NPVParameters(_Parameters):
    kind: Literal[CalculationKind.NPV] = CalculationKind.NPV
    cash_flows: List[float]
    discount_rate: float
    initial_investment: float = 0.0

    @field_validator("cash_flows", mode="before")
    @classmethod
    def _check_flows(cls, value: Any) -> List[float]:
        return validate_cash_flows(value)

    @field_validator("discount_rate", mode="before")
    @classmethod
    def _check_rate(cls, value: Any) -> float:
        return validate_discount_rate(value)

    @field_validator("initial_investment", mode="before")
    @classmethod
    def _check_investment(cls, value: Any) -> float:
        return ensure_finite("initial_investment", value)


class IRRParameters(_Parameters):
    kind: Literal[CalculationKind.IRR] = CalculationKind.IRR
    cash_flows: List[float]
    guess: float = 0.1

    @field_validator("cash_flows", mode="before")
    @classmethod
    def _check_flows(cls, value: Any) -> List[float]:
        return validate_cash_flows(value, min_length=2)

    @field_validator("guess", mode="before")
    @classmethod
    def _check_guess(cls, value: Any) -> float:
        return validate_discount_rate(value, name="guess")


class PaybackParameters(_Parameters):
    kind: Literal[CalculationKind.PAYBACK] = CalculationKind.PAYBACK
    cash_flows: List[float]
    initial_investment: float

    @field_validator("cash_flows", mode="before")
    @classmethod
    def _check_flows(cls, value: Any) -> List[float]:
        return validate_cash_flows(value)

    @field_validator("initial_investment", mode="before")
    @classmethod
    def _check_investment(cls, value: Any) -> float:
        return require_positive("initial_investment", value)


class BreakEvenParameters(_Parameters):
    kind: Literal[CalculationKind.BREAKEVEN] = CalculationKind.BREAKEVEN
    fixed_costs: float
    variable_cost_per_unit: float
    price_per_unit: float

    @field_validator("fixed_costs", "variable_cost_per_unit", mode="before")
    @classmethod
    def _check_costs(cls, value: Any, info: ValidationInfo) -> float:
        return require_non_negative(info.field_name, value)

    @field_validator("price_per_unit", mode="before")
    @classmethod
    def _check_price(cls, value: Any) -> float:
        return require_positive("price_per_unit", value)


class ProjectionParameters(_Parameters):
    kind: Literal[CalculationKind.PROJECTION] = CalculationKind.PROJECTION
    base_cash_flow: float
    growth_rate: float
    periods: int
    discount_rate: float = 0.0

    @field_validator("base_cash_flow", mode="before")
    @classmethod
    def _check_base(cls, value: Any) -> float:
        return require_positive("base_cash_flow", value)

    @field_validator("growth_rate", "discount_rate", mode="before")
    @classmethod
    def _check_rates(cls, value: Any, info: ValidationInfo) -> float:
        return validate_discount_rate(value, name=info.field_name)

    @field_validator("periods", mode="before")
    @classmethod
    def _check_periods(cls, value: Any) -> int:
        return require_positive_int("periods", value)


MetricParameters = Annotated[
    Union[NPVParameters, IRRParameters, PaybackParameters, BreakEvenParameters, ProjectionParameters],
    Field(discriminator="kind"),
]

SENSITIVITY_METRICS: Dict[str, CalculationKind] = {
    "npv": CalculationKind.NPV,
    "irr": CalculationKind.IRR,
    "payback_period": CalculationKind.PAYBACK,
    "break_even_units": CalculationKind.BREAKEVEN,
    "total_pv": CalculationKind.PROJECTION,
}


class SensitivityParameters(_Parameters):
    """One-at-a-time sensitivity of a named metric to base-case inputs."""

    kind: Literal[CalculationKind.SENSITIVITY] = CalculationKind.SENSITIVITY
    metric: Literal["npv", "irr", "payback_period", "break_even_units", "total_pv"]
    base_case: MetricParameters
    variables: Dict[str, List[float]]

    @model_validator(mode="before")
    @classmethod
    def _tag_base_case(cls, values: Any) -> Any:
        if isinstance(values, dict):
            base_case = values.get("base_case")
            metric = values.get("metric")
            if isinstance(base_case, dict) and "kind" not in base_case and metric in SENSITIVITY_METRICS:
                values = dict(values)
                values["base_case"] = {**base_case, "kind": SENSITIVITY_METRICS[metric]}
        return values

    @model_validator(mode="after")
    def _check_variables(self) -> "SensitivityParameters":
        if self.base_case.kind != SENSITIVITY_METRICS[self.metric]:
            raise InvalidParameters(
                f"Metric {self.metric!r} requires a {SENSITIVITY_METRICS[self.metric].value} base case"
            )
        allowed = self.base_case.numeric_fields()
        for name, values in self.variables.items():
            if name not in allowed:
                raise InvalidParameters(
                    f"Unknown sensitivity variable {name!r}; expected one of {', '.join(allowed)}"
                )
            for value in values:
                ensure_finite(name, value)
        return self


class CleanupParameters(_Parameters):
    kind: Literal[CalculationKind.CLEANUP] = CalculationKind.CLEANUP


CalculationParameters = Annotated[
    Union[
        NPVParameters,
        IRRParameters,
        PaybackParameters,
        BreakEvenParameters,
        ProjectionParameters,
        SensitivityParameters,
        CleanupParameters,
    ],
    Field(discriminator="kind"),
]

_PARAMETERS_ADAPTER: TypeAdapter = TypeAdapter(CalculationParameters)


def build_parameters(kind: Union[CalculationKind, str], payload: Optional[Mapping[str, Any]] = None):
    """
    Validate ``payload`` into the typed parameter record for ``kind``.

    Pydantic type errors are re-raised as :class:`InvalidParameters`.
    """
    try:
        kind = CalculationKind(kind)
    except ValueError as exc:
        raise InvalidParameters(f"Unknown calculation type: {kind}") from exc
    if payload is not None and not isinstance(payload, Mapping):
        raise InvalidParameters(f"{kind.value} parameters must be an object, got {type(payload).__name__}")
    data = dict(payload or {})
    data["kind"] = kind
    try:
        return _PARAMETERS_ADAPTER.validate_python(data)
    except PydanticValidationError as exc:
        raise InvalidParameters(f"Invalid {kind.value} parameters: {exc}") from exc


@dataclass(frozen=True)
class CalculationRequest:
    """Envelope sent from the dispatcher to the execution context."""

    correlation_id: str
    kind: CalculationKind
    parameters: Dict[str, Any]

    def to_message(self) -> Dict[str, Any]:
        return {"id": self.correlation_id, "kind": self.kind.value, "parameters": self.parameters}

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "CalculationRequest":
        return cls(
            correlation_id=str(message["id"]),
            kind=CalculationKind(message["kind"]),
            parameters=dict(message.get("parameters") or {}),
        )


@dataclass(frozen=True)
class CalculationResult:
    """Envelope produced exactly once per request by the execution context."""

    correlation_id: str
    success: bool
    payload: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    def to_message(self) -> Dict[str, Any]:
        message: Dict[str, Any] = {"id": self.correlation_id, "success": self.success}
        if self.success:
            message["payload"] = self.payload
        else:
            message["error"] = self.error
            message["error_type"] = self.error_type
        return message

    @classmethod
    def from_message(cls, message: Dict[str, Any]) -> "CalculationResult":
        return cls(
            correlation_id=str(message["id"]),
            success=bool(message["success"]),
            payload=message.get("payload"),
            error=message.get("error"),
            error_type=message.get("error_type"),
        )


__all__ = [
    "CalculationKind",
    "NPVParameters",
    "IRRParameters",
    "PaybackParameters",
    "BreakEvenParameters",
    "ProjectionParameters",
    "SensitivityParameters",
    "CleanupParameters",
    "CalculationParameters",
    "MetricParameters",
    "SENSITIVITY_METRICS",
    "build_parameters",
    "CalculationRequest",
    "CalculationResult",
]
