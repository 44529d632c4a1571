"""Execution context, dispatch layer and result caching."""

from .cache import ResultCache
from .dispatcher import CalculationDispatcher, DispatcherStatus
from .errors import (
    CalculationError,
    CalculationTimeout,
    EngineError,
    EngineShutdown,
    ExecutionContextCrashed,
    ExecutionContextUnavailable,
)
from .worker import ProcessExecutionContext

__all__ = [
    "ResultCache",
    "CalculationDispatcher",
    "DispatcherStatus",
    "CalculationError",
    "CalculationTimeout",
    "EngineError",
    "EngineShutdown",
    "ExecutionContextCrashed",
    "ExecutionContextUnavailable",
    "ProcessExecutionContext",
]
