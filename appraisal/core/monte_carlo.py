"""Monte Carlo sampling and distribution summary utilities."""

from __future__ import annotations

import math
from typing import Any, Dict, Iterable, List, Sequence

import numpy as np
import pandas as pd

from ..models.simulation import (
    ConfidenceInterval,
    DistributionSpec,
    Percentiles,
    SimulationParameters,
    SimulationResult,
)

PERCENTILE_FRACTIONS = {"p5": 0.05, "p25": 0.25, "p75": 0.75, "p95": 0.95}


def sample_uniform(rng: np.random.Generator, low: float, high: float) -> float:
    return low + float(rng.random()) * (high - low)


def sample_normal(rng: np.random.Generator, mean: float, std_dev: float) -> float:
    """Box-Muller transform driven by the generator's uniform stream."""
    u1 = 1.0 - float(rng.random())  # (0, 1] keeps log() finite
    u2 = float(rng.random())
    z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
    return mean + z0 * std_dev


def sample_variable(spec: DistributionSpec, rng: np.random.Generator) -> float:
    if spec.distribution == "normal":
        return sample_normal(rng, spec.mean, spec.std_dev)
    return sample_uniform(rng, spec.min_value, spec.max_value)


def draw_scenarios(params: SimulationParameters, rng: np.random.Generator) -> List[Dict[str, Any]]:
    """Return one NPV payload per iteration with every variable re-sampled."""
    base = params.base_case.model_dump(exclude={"kind"})
    scenarios: List[Dict[str, Any]] = []
    for _ in range(params.iterations):
        scenario = dict(base)
        for name, spec in params.variables.items():
            scenario[name] = sample_variable(spec, rng)
        scenarios.append(scenario)
    return scenarios


def _index_value(values: Sequence[float], fraction: float) -> float:
    index = min(int(math.floor(fraction * len(values))), len(values) - 1)
    return values[index]


def _median(values: Sequence[float]) -> float:
    count = len(values)
    middle = count // 2
    if count % 2:
        return values[middle]
    return (values[middle - 1] + values[middle]) / 2.0


def summarize_npv_distribution(
    npv_values: Iterable[float],
    *,
    iterations: int,
    confidence_level: float,
) -> SimulationResult:
    """
    Reduce simulated NPVs into descriptive statistics.

    Percentiles and the confidence interval use the index of
    ``floor(fraction * n)`` into the ascending values.
    """
    values = sorted(float(v) for v in npv_values)
    count = len(values)
    if count == 0:
        return SimulationResult(
            iterations=iterations,
            successful_iterations=0,
            confidence_interval=ConfidenceInterval(level=confidence_level),
        )

    array = np.asarray(values, dtype=float)
    tail = (1.0 - confidence_level) / 2.0
    return SimulationResult(
        iterations=iterations,
        successful_iterations=count,
        mean=float(np.mean(array)),
        median=_median(values),
        standard_deviation=float(np.std(array, ddof=0)),
        minimum=values[0],
        maximum=values[-1],
        confidence_interval=ConfidenceInterval(
            level=confidence_level,
            lower=_index_value(values, tail),
            upper=_index_value(values, 1.0 - tail),
        ),
        percentiles=Percentiles(
            **{key: _index_value(values, fraction) for key, fraction in PERCENTILE_FRACTIONS.items()}
        ),
        probability_of_success=float(np.count_nonzero(array > 0)) / count,
        npv_values=values,
    )


def build_percentile_table(
    values: Sequence[float],
    *,
    percentiles: Iterable[int] = range(1, 100, 1),
) -> pd.DataFrame:
    """Return a percentile ladder as a dataframe."""
    series = pd.Series(values, dtype=float)
    ladder = [{"percentile": p, "npv": float(series.quantile(p / 100.0))} for p in percentiles]
    return pd.DataFrame(ladder)


__all__ = [
    "sample_uniform",
    "sample_normal",
    "sample_variable",
    "draw_scenarios",
    "summarize_npv_distribution",
    "build_percentile_table",
]
