"""High-level orchestration for the investment appraisal engine."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from .config import EngineSettings
from .core.monte_carlo import draw_scenarios, summarize_npv_distribution
from .core.validator import InvalidParameters, ValidationError
from .models.requests import CalculationKind, NPVParameters, build_parameters
from .models.results import (
    BatchItemResult,
    BreakEvenResult,
    CalculationFailure,
    EngineStatus,
    IRRResult,
    NPVResult,
    PaybackResult,
    ProjectionResult,
    SensitivityResult,
)
from .models.simulation import SimulationParameters, SimulationResult
from .runtime.cache import ResultCache, cache_key
from .runtime.dispatcher import CalculationDispatcher
from .runtime.errors import CalculationError, EngineError

LOGGER = logging.getLogger(__name__)

RESULT_MODELS = {
    CalculationKind.NPV: NPVResult,
    CalculationKind.IRR: IRRResult,
    CalculationKind.PAYBACK: PaybackResult,
    CalculationKind.BREAKEVEN: BreakEvenResult,
    CalculationKind.PROJECTION: ProjectionResult,
    CalculationKind.SENSITIVITY: SensitivityResult,
}

BatchRequest = Union[BaseModel, Tuple[Any, Any], Mapping[str, Any]]


def _unpack_batch_request(request: BatchRequest) -> Tuple[CalculationKind, BaseModel]:
    """Accept a typed record, a ``(kind, parameters)`` pair or a ``{"kind", "parameters"}`` mapping."""
    if isinstance(request, BaseModel):
        kind, parameters = getattr(request, "kind", None), request
    elif isinstance(request, tuple) and len(request) == 2:
        kind, parameters = request
    elif isinstance(request, Mapping):
        kind, parameters = request.get("kind"), request.get("parameters")
    else:
        raise InvalidParameters(f"Unsupported batch request: {request!r}")
    record = parameters if isinstance(parameters, BaseModel) else build_parameters(kind, parameters)
    return _calculable(record.kind), record


def _calculable(kind: Union[CalculationKind, str]) -> CalculationKind:
    try:
        kind = CalculationKind(kind)
    except ValueError as exc:
        raise InvalidParameters(f"Unknown calculation type: {kind}") from exc
    if kind not in RESULT_MODELS:
        raise InvalidParameters(f"{kind.value} is not a calculation")
    return kind


def _request_label(request: Any) -> str:
    if isinstance(request, BaseModel):
        kind = getattr(request, "kind", None)
    elif isinstance(request, tuple) and request:
        kind = request[0]
    elif isinstance(request, Mapping):
        kind = request.get("kind")
    else:
        kind = None
    return str(getattr(kind, "value", kind))


def _failure_details(exc: Exception) -> Tuple[str, str]:
    if isinstance(exc, CalculationError) and exc.error_type:
        return str(exc), exc.error_type
    return str(exc), type(exc).__name__


class AppraisalEngine:
    """
    Primary entry point for running investment appraisal calculations.

    Calculations run in an isolated worker process owned by the engine's
    :class:`CalculationDispatcher`. The engine is created by the application
    and passed around explicitly; ``async with AppraisalEngine() as engine``
    guarantees the worker is stopped afterwards.
    """

    def __init__(
        self,
        settings: Optional[EngineSettings] = None,
        *,
        dispatcher: Optional[CalculationDispatcher] = None,
    ) -> None:
        self.settings = settings or EngineSettings()
        self.dispatcher = dispatcher or CalculationDispatcher(self.settings)
        self._cache: ResultCache[BaseModel] = ResultCache(self.settings.cache_size, self.settings.cache_ttl)

    async def __aenter__(self) -> "AppraisalEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.cleanup()

    # ---------------------------------------------------------------- lifecycle
    async def start(self) -> None:
        await self.dispatcher.start()

    async def cleanup(self) -> None:
        """Stop the worker and drop cached results; safe to call repeatedly."""
        await self.dispatcher.shutdown()
        self._cache.clear()

    def get_status(self) -> EngineStatus:
        status = self.dispatcher.status()
        return EngineStatus(
            is_initialized=status.started,
            pending_calculations=status.pending_count,
            total_calculations=status.total_requests_issued,
            cache_size=len(self._cache),
        )

    # ------------------------------------------------------------- single runs
    async def _dispatch(self, kind: CalculationKind, record: BaseModel, timeout: Optional[float] = None) -> BaseModel:
        payload = await self.dispatcher.send(kind, record, timeout=timeout)
        return RESULT_MODELS[kind].model_validate(payload)

    async def calculate(
        self,
        kind: Union[CalculationKind, str],
        parameters: Union[BaseModel, Dict[str, Any]],
        *,
        timeout: Optional[float] = None,
    ) -> BaseModel:
        """Run a single calculation, serving repeated identical requests from the cache."""
        kind = _calculable(kind)
        record = parameters if isinstance(parameters, BaseModel) else build_parameters(kind, parameters)
        key = cache_key(kind, record)
        cached = self._cache.get(key)
        if cached is not None:
            return cached
        result = await self._dispatch(kind, record, timeout)
        self._cache.set(key, result)
        return result

    async def calculate_npv(
        self,
        cash_flows: Sequence[float],
        discount_rate: float,
        initial_investment: float = 0.0,
    ) -> NPVResult:
        return await self.calculate(
            CalculationKind.NPV,
            {"cash_flows": cash_flows, "discount_rate": discount_rate, "initial_investment": initial_investment},
        )

    async def calculate_irr(self, cash_flows: Sequence[float], guess: float = 0.1) -> IRRResult:
        return await self.calculate(CalculationKind.IRR, {"cash_flows": cash_flows, "guess": guess})

    async def calculate_payback_period(self, cash_flows: Sequence[float], initial_investment: float) -> PaybackResult:
        return await self.calculate(
            CalculationKind.PAYBACK,
            {"cash_flows": cash_flows, "initial_investment": initial_investment},
        )

    async def calculate_break_even(
        self,
        fixed_costs: float,
        variable_cost_per_unit: float,
        price_per_unit: float,
    ) -> BreakEvenResult:
        return await self.calculate(
            CalculationKind.BREAKEVEN,
            {
                "fixed_costs": fixed_costs,
                "variable_cost_per_unit": variable_cost_per_unit,
                "price_per_unit": price_per_unit,
            },
        )

    async def project_cash_flows(
        self,
        base_cash_flow: float,
        growth_rate: float,
        periods: int,
        discount_rate: float = 0.0,
    ) -> ProjectionResult:
        return await self.calculate(
            CalculationKind.PROJECTION,
            {
                "base_cash_flow": base_cash_flow,
                "growth_rate": growth_rate,
                "periods": periods,
                "discount_rate": discount_rate,
            },
        )

    async def sensitivity_analysis(
        self,
        metric: str,
        base_case: Union[BaseModel, Dict[str, Any]],
        variables: Mapping[str, Iterable[float]],
    ) -> SensitivityResult:
        """Evaluate ``metric`` while varying one base-case input at a time."""
        if isinstance(base_case, BaseModel):
            base_case = base_case.model_dump()
        return await self.calculate(
            CalculationKind.SENSITIVITY,
            {
                "metric": metric,
                "base_case": base_case,
                "variables": {name: list(values) for name, values in variables.items()},
            },
        )

    # ------------------------------------------------------------------ batches
    async def _run_batch_item(self, request: BatchRequest) -> BatchItemResult:
        label = _request_label(request)
        try:
            kind, record = _unpack_batch_request(request)
            result = await self._dispatch(kind, record)
        except (ValidationError, EngineError) as exc:
            message, error_type = _failure_details(exc)
            return BatchItemResult(kind=label, success=False, error=message, error_type=error_type)
        return BatchItemResult(kind=kind.value, success=True, result=result)

    async def batch_calculate(self, requests: Iterable[BatchRequest]) -> List[BatchItemResult]:
        """
        Run every request concurrently; the output keeps the input order.

        A failing element is reported in place and never fails the batch.
        """
        return list(await asyncio.gather(*(self._run_batch_item(request) for request in requests)))

    async def calculate_scenario_npv(
        self,
        scenarios: Mapping[str, Union[NPVParameters, Dict[str, Any]]],
    ) -> Dict[str, Union[NPVResult, CalculationFailure]]:
        """NPV for each named scenario, with failures reported per scenario."""
        names = list(scenarios)
        outcomes = await self.batch_calculate([(CalculationKind.NPV, scenarios[name]) for name in names])
        return {
            name: outcome.result
            if outcome.success
            else CalculationFailure(error=outcome.error or "Calculation failed", error_type=outcome.error_type)
            for name, outcome in zip(names, outcomes)
        }

    # --------------------------------------------------------------- simulation
    async def monte_carlo_simulation(
        self,
        parameters: Union[SimulationParameters, Dict[str, Any]],
    ) -> SimulationResult:
        """
        Price randomised variants of an NPV base case and summarise the outcomes.

        Draws that fail (for example a sampled discount rate at or below
        -100%) are left out of the statistics but still count towards
        ``iterations``.
        """
        if not isinstance(parameters, SimulationParameters):
            try:
                parameters = SimulationParameters.model_validate(parameters)
            except PydanticValidationError as exc:
                raise InvalidParameters(f"Invalid simulation parameters: {exc}") from exc

        seed = parameters.seed if parameters.seed is not None else self.settings.random_seed
        rng = np.random.default_rng(seed)
        scenarios = draw_scenarios(parameters, rng)

        outcomes = await self.batch_calculate([(CalculationKind.NPV, scenario) for scenario in scenarios])
        npv_values = [outcome.result.npv for outcome in outcomes if outcome.success]
        failed = len(outcomes) - len(npv_values)
        if failed:
            LOGGER.info("Monte Carlo: %d of %d draws failed and were excluded", failed, len(outcomes))

        return summarize_npv_distribution(
            npv_values,
            iterations=parameters.iterations,
            confidence_level=parameters.confidence_level,
        )


__all__ = ["AppraisalEngine", "RESULT_MODELS"]
