"""Typed requests, parameters and results exchanged with the calculation engine."""

from .requests import (
    BreakEvenParameters,
    CalculationKind,
    CalculationParameters,
    CalculationRequest,
    CalculationResult,
    IRRParameters,
    NPVParameters,
    PaybackParameters,
    ProjectionParameters,
    SensitivityParameters,
    build_parameters,
)
from .results import (
    BatchItemResult,
    BreakEvenResult,
    CalculationFailure,
    EngineStatus,
    IRRResult,
    NPVResult,
    PaybackResult,
    ProjectionResult,
    SensitivityPoint,
    SensitivityResult,
)
from .simulation import DistributionSpec, SimulationParameters, SimulationResult

__all__ = [
    "BreakEvenParameters",
    "CalculationKind",
    "CalculationParameters",
    "CalculationRequest",
    "CalculationResult",
    "IRRParameters",
    "NPVParameters",
    "PaybackParameters",
    "ProjectionParameters",
    "SensitivityParameters",
    "build_parameters",
    "BatchItemResult",
    "BreakEvenResult",
    "CalculationFailure",
    "EngineStatus",
    "IRRResult",
    "NPVResult",
    "PaybackResult",
    "ProjectionResult",
    "SensitivityPoint",
    "SensitivityResult",
    "DistributionSpec",
    "SimulationParameters",
    "SimulationResult",
]
