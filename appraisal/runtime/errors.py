"""Transport and infrastructure faults raised by the dispatch layer."""

from __future__ import annotations

from typing import Optional


class EngineError(Exception):
    """Base class for faults outside the numeric library."""


class CalculationError(EngineError):
    """The execution context answered a request with a failure result."""

    def __init__(self, message: str, error_type: Optional[str] = None) -> None:
        super().__init__(message)
        self.error_type = error_type


class CalculationTimeout(EngineError):
    """No result arrived for a request before its timeout elapsed."""

    def __init__(self, correlation_id: str, timeout: float) -> None:
        super().__init__(f"Calculation timed out after {timeout:g}s")
        self.correlation_id = correlation_id
        self.timeout = timeout


class ExecutionContextUnavailable(EngineError):
    """The execution context could not be created."""


class ExecutionContextCrashed(EngineError):
    """The execution context died while requests were outstanding."""


class EngineShutdown(EngineError):
    """The engine was shut down before the request completed."""


__all__ = [
    "EngineError",
    "CalculationError",
    "CalculationTimeout",
    "ExecutionContextUnavailable",
    "ExecutionContextCrashed",
    "EngineShutdown",
]
