"""Asynchronous investment appraisal engine."""

from .config import EngineSettings
from .core.validator import InvalidCashFlows, InvalidParameters, ValidationError
from .engine import AppraisalEngine
from .models import (
    BatchItemResult,
    BreakEvenResult,
    CalculationFailure,
    CalculationKind,
    DistributionSpec,
    EngineStatus,
    IRRResult,
    NPVResult,
    PaybackResult,
    ProjectionResult,
    SensitivityResult,
    SimulationParameters,
    SimulationResult,
)
from .runtime import (
    CalculationDispatcher,
    CalculationError,
    CalculationTimeout,
    EngineError,
    EngineShutdown,
    ExecutionContextCrashed,
    ExecutionContextUnavailable,
)

__version__ = "0.1.0"

__all__ = [
    "AppraisalEngine",
    "EngineSettings",
    "CalculationDispatcher",
    "CalculationKind",
    "ValidationError",
    "InvalidCashFlows",
    "InvalidParameters",
    "EngineError",
    "CalculationError",
    "CalculationTimeout",
    "EngineShutdown",
    "ExecutionContextCrashed",
    "ExecutionContextUnavailable",
    "BatchItemResult",
    "BreakEvenResult",
    "CalculationFailure",
    "DistributionSpec",
    "EngineStatus",
    "IRRResult",
    "NPVResult",
    "PaybackResult",
    "ProjectionResult",
    "SensitivityResult",
    "SimulationParameters",
    "SimulationResult",
]
