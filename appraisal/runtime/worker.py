"""Execution context: a spawned worker process serving calculation requests."""

from __future__ import annotations

import logging
import threading
from multiprocessing import get_context
from multiprocessing.connection import Connection
from queue import Queue
from typing import Any, Callable, Dict, Optional

from ..core.calculations import execute
from ..models.requests import CalculationKind, CalculationRequest, CalculationResult
from .errors import ExecutionContextCrashed

LOGGER = logging.getLogger(__name__)

MessageHandler = Callable[[Dict[str, Any]], None]
FaultHandler = Callable[[BaseException], None]

_STOP = object()


def handle_request(message: Dict[str, Any]) -> CalculationResult:
    """Run one request message and wrap the outcome in a result envelope."""
    correlation_id = str(message.get("id", ""))
    try:
        request = CalculationRequest.from_message(message)
        if request.kind is CalculationKind.CLEANUP:
            return CalculationResult(correlation_id, True, {"message": "Resources cleaned up"})
        payload = execute(request.kind, request.parameters)
        return CalculationResult(correlation_id, True, payload)
    except Exception as exc:
        LOGGER.debug("Calculation %s failed: %s", correlation_id, exc)
        return CalculationResult(correlation_id, False, error=str(exc), error_type=type(exc).__name__)


def _worker_entry(conn: Connection) -> None:
    """Serve requests one at a time until cleanup or until the parent goes away."""
    try:
        while True:
            try:
                message = conn.recv()
            except EOFError:
                return
            result = handle_request(message)
            conn.send(result.to_message())
            if message.get("kind") == CalculationKind.CLEANUP.value:
                return
    finally:
        conn.close()


class ProcessExecutionContext:
    """
    Worker process reachable only through a pipe.

    Messages are written by a writer thread and read by a reader thread so
    that neither direction blocks the caller. Incoming results and faults are
    handed to the callbacks supplied to :meth:`start`, from the reader thread.
    """

    def __init__(self, *, start_method: str = "spawn") -> None:
        self.start_method = start_method
        self._process = None
        self._conn: Optional[Connection] = None
        self._outbox: "Queue[Any]" = Queue()
        self._closing = threading.Event()
        self._fault_reported = threading.Event()
        self._on_fault: Optional[FaultHandler] = None

    # ------------------------------------------------------------------ status
    @property
    def alive(self) -> bool:
        return self._process is not None and self._process.is_alive() and not self._closing.is_set()

    @property
    def pid(self) -> Optional[int]:
        return self._process.pid if self._process is not None else None

    # ------------------------------------------------------------------ control
    def start(self, on_message: MessageHandler, on_fault: FaultHandler) -> None:
        ctx = get_context(self.start_method)
        parent_conn, child_conn = ctx.Pipe(duplex=True)
        process = ctx.Process(
            target=_worker_entry,
            args=(child_conn,),
            daemon=True,
            name="appraisal-worker",
        )
        process.start()
        child_conn.close()

        self._process = process
        self._conn = parent_conn
        self._on_fault = on_fault
        threading.Thread(
            target=self._read_loop, args=(on_message,), name="appraisal-reader", daemon=True
        ).start()
        threading.Thread(target=self._write_loop, name="appraisal-writer", daemon=True).start()
        LOGGER.info("Execution context started (pid %s)", process.pid)

    def post(self, message: Dict[str, Any]) -> None:
        if self._conn is None or self._closing.is_set():
            raise ExecutionContextCrashed("Execution context is not running")
        self._outbox.put(message)

    def terminate(self, timeout: float = 1.0) -> None:
        """Stop the worker process and release the pipe; safe to call twice."""
        self._closing.set()
        self._outbox.put(_STOP)
        process = self._process
        if process is not None:
            process.join(timeout)
            if process.is_alive():
                process.kill()
                process.join(timeout)
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    def kill(self) -> None:
        """Kill the worker without cleanup; the reader reports the fault."""
        if self._process is not None:
            self._process.kill()

    # ------------------------------------------------------------------ threads
    def _report_fault(self, exc: BaseException) -> None:
        if self._closing.is_set() or self._fault_reported.is_set():
            return
        self._fault_reported.set()
        if self._on_fault is not None:
            self._on_fault(exc)

    def _exit_description(self) -> str:
        process = self._process
        if process is None:
            return "Execution context exited"
        process.join(0.5)
        return f"Execution context exited unexpectedly (exit code {process.exitcode})"

    def _read_loop(self, on_message: MessageHandler) -> None:
        conn = self._conn
        while conn is not None:
            try:
                message = conn.recv()
            except (EOFError, OSError) as exc:
                crash = ExecutionContextCrashed(self._exit_description())
                crash.__cause__ = exc
                self._report_fault(crash)
                return
            on_message(message)

    def _write_loop(self) -> None:
        while True:
            message = self._outbox.get()
            if message is _STOP:
                return
            conn = self._conn
            if conn is None:
                return
            try:
                conn.send(message)
            except (OSError, ValueError) as exc:
                crash = ExecutionContextCrashed(f"Unable to reach execution context: {exc}")
                crash.__cause__ = exc
                self._report_fault(crash)
                return


__all__ = ["ProcessExecutionContext", "handle_request"]
