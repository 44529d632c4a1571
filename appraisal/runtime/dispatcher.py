"""Correlation-id based dispatch of calculation requests to the execution context."""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Protocol, Set, Union

from pydantic import BaseModel

from ..config import EngineSettings
from ..models.requests import CalculationKind, CalculationRequest, CalculationResult, build_parameters
from .errors import (
    CalculationError,
    CalculationTimeout,
    EngineShutdown,
    EngineError,
    ExecutionContextCrashed,
    ExecutionContextUnavailable,
)
from .worker import ProcessExecutionContext

LOGGER = logging.getLogger(__name__)


class ExecutionContext(Protocol):
    """Isolated calculation unit reachable only through messages."""

    @property
    def alive(self) -> bool: ...

    def start(
        self,
        on_message: Callable[[Dict[str, Any]], None],
        on_fault: Callable[[BaseException], None],
    ) -> None: ...

    def post(self, message: Dict[str, Any]) -> None: ...

    def terminate(self, timeout: float = 1.0) -> None: ...


@dataclass
class PendingRequest:
    correlation_id: str
    kind: CalculationKind
    future: "asyncio.Future[Any]"
    created_at: float


@dataclass(frozen=True)
class DispatcherStatus:
    started: bool
    pending_count: int
    total_requests_issued: int


class CalculationDispatcher:
    """
    Owns the execution context and the table of outstanding requests.

    Every mutation of the pending table happens on the event loop thread:
    results and faults raised on the context's I/O threads are marshalled
    back with ``call_soon_threadsafe``. Results are routed purely by
    correlation id, so completion order does not matter.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        context_factory: Optional[Callable[[], ExecutionContext]] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self._context_factory = context_factory or (
            lambda: ProcessExecutionContext(start_method=self.settings.start_method)
        )
        self._context: Optional[ExecutionContext] = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._pending: Dict[str, PendingRequest] = {}
        self._issued = 0
        self._shutting_down = False
        self._reapers: Set["asyncio.Future[None]"] = set()

    # ------------------------------------------------------------------ status
    @property
    def started(self) -> bool:
        return self._context is not None

    def status(self) -> DispatcherStatus:
        return DispatcherStatus(
            started=self.started,
            pending_count=len(self._pending),
            total_requests_issued=self._issued,
        )

    # --------------------------------------------------------------- lifecycle
    async def start(self) -> None:
        """Create the execution context if it is not running yet."""
        if self._context is not None:
            return
        loop = asyncio.get_running_loop()
        context = self._context_factory()
        try:
            context.start(
                on_message=lambda message: self._from_thread(loop, self._route_result, context, message),
                on_fault=lambda exc: self._from_thread(loop, self._handle_fault, context, exc),
            )
        except Exception as exc:
            LOGGER.error("Failed to start execution context: %s", exc)
            raise ExecutionContextUnavailable(f"Failed to start execution context: {exc}") from exc
        self._context = context
        self._loop = loop

    async def shutdown(self) -> None:
        """Send the cleanup signal, stop the context and reject anything left outstanding."""
        if self._reapers:
            await asyncio.gather(*self._reapers, return_exceptions=True)
        context = self._context
        if context is None:
            return
        try:
            await self.send(CalculationKind.CLEANUP, {}, timeout=self.settings.shutdown_timeout)
        except EngineError as exc:
            LOGGER.warning("Execution context did not acknowledge cleanup: %s", exc)

        self._shutting_down = True
        try:
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(None, context.terminate, self.settings.shutdown_timeout)
            self._reject_all(EngineShutdown("Calculation engine was shut down"))
            self._context = None
            self._loop = None
        finally:
            self._shutting_down = False
        LOGGER.info("Execution context stopped")

    # ---------------------------------------------------------------- requests
    async def send(
        self,
        kind: Union[CalculationKind, str],
        parameters: Union[BaseModel, Dict[str, Any], None] = None,
        *,
        timeout: Optional[float] = None,
    ) -> Any:
        """
        Send one request and wait for its payload.

        Raises :class:`CalculationError` for a failure result and
        :class:`CalculationTimeout` when nothing arrives within ``timeout``
        seconds (``settings.request_timeout`` by default).
        """
        if isinstance(parameters, BaseModel):
            record = parameters
        else:
            record = build_parameters(kind, parameters)
        kind = CalculationKind(record.kind)
        timeout = self.settings.request_timeout if timeout is None else timeout

        await self.start()
        loop = asyncio.get_running_loop()
        if loop is not self._loop:
            raise RuntimeError("CalculationDispatcher is bound to a different event loop")

        self._issued += 1
        correlation_id = uuid.uuid4().hex
        future: "asyncio.Future[Any]" = loop.create_future()
        self._pending[correlation_id] = PendingRequest(
            correlation_id=correlation_id,
            kind=kind,
            future=future,
            created_at=time.monotonic(),
        )
        request = CalculationRequest(correlation_id, kind, record.model_dump(exclude={"kind"}))
        LOGGER.debug("Dispatching %s request %s", kind.value, correlation_id)

        context = self._context
        try:
            context.post(request.to_message())
        except Exception as exc:
            self._handle_fault(context, exc)

        try:
            return await asyncio.wait_for(future, timeout)
        except asyncio.TimeoutError:
            LOGGER.warning("%s request %s timed out after %gs", kind.value, correlation_id, timeout)
            raise CalculationTimeout(correlation_id, timeout) from None
        finally:
            self._pending.pop(correlation_id, None)

    # ------------------------------------------------------------------ routing
    @staticmethod
    def _from_thread(loop: asyncio.AbstractEventLoop, callback: Callable[..., None], *args: Any) -> None:
        try:
            loop.call_soon_threadsafe(callback, *args)
        except RuntimeError:
            LOGGER.debug("Event loop closed; dropping execution context event")

    def _route_result(self, context: ExecutionContext, message: Dict[str, Any]) -> None:
        if context is not self._context:
            return
        try:
            result = CalculationResult.from_message(message)
        except (KeyError, TypeError, ValueError) as exc:
            LOGGER.warning("Discarding malformed result message: %s", exc)
            return

        pending = self._pending.pop(result.correlation_id, None)
        if pending is None:
            LOGGER.debug("Ignoring result for unknown or expired request %s", result.correlation_id)
            return
        if pending.future.done():
            return
        if result.success:
            pending.future.set_result(result.payload)
        else:
            pending.future.set_exception(CalculationError(result.error or "Calculation failed", result.error_type))

    def _handle_fault(self, context: ExecutionContext, exc: BaseException) -> None:
        if context is not self._context or self._shutting_down:
            return
        LOGGER.error("Execution context failed with %d pending request(s): %s", len(self._pending), exc)
        loop = self._loop
        self._context = None
        self._loop = None
        if isinstance(exc, EngineError):
            fault = exc
        else:
            fault = ExecutionContextCrashed(str(exc))
            fault.__cause__ = exc
        self._reject_all(fault)
        self._reap(loop, context)

    def _reap(self, loop: asyncio.AbstractEventLoop, context: ExecutionContext) -> None:
        """Terminate a failed context on an executor thread."""
        reaper = loop.run_in_executor(None, context.terminate, 0.5)
        self._reapers.add(reaper)
        reaper.add_done_callback(self._reaped)

    def _reaped(self, reaper: "asyncio.Future[None]") -> None:
        self._reapers.discard(reaper)
        if not reaper.cancelled() and reaper.exception() is not None:
            LOGGER.warning("Failed to terminate execution context: %s", reaper.exception())

    def _reject_all(self, exc: BaseException) -> None:
        pending = list(self._pending.values())
        self._pending.clear()
        for entry in pending:
            if not entry.future.done():
                entry.future.set_exception(exc)


__all__ = ["CalculationDispatcher", "DispatcherStatus", "ExecutionContext", "PendingRequest"]
