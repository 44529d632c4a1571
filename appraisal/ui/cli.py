"""Typer-based command line interface for the appraisal engine."""

from __future__ import annotations

import asyncio
import json
import logging
import math
from pathlib import Path
from typing import Any, Awaitable, Callable, List, Optional, Sequence

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from ..config import LOG_LEVEL, EngineSettings
from ..core.monte_carlo import build_percentile_table
from ..core.validator import ValidationError
from ..engine import AppraisalEngine
from ..models.results import CalculationFailure, scenario_summary_frame
from ..runtime.errors import CalculationTimeout, EngineError

app = typer.Typer(help="Investment appraisal calculations: NPV, IRR, payback, break-even and risk simulation")
console = Console()


def _configure_logging(level: str) -> None:
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.callback()
def _main(verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging")) -> None:
    _configure_logging("DEBUG" if verbose else LOG_LEVEL)


def _parse_flows(raw: str) -> List[float]:
    try:
        return [float(part) for part in raw.replace(";", ",").split(",") if part.strip()]
    except ValueError as exc:
        raise typer.BadParameter(f"Cash flows must be comma separated numbers: {exc}") from exc


def _load_json(path: Path) -> Any:
    try:
        with path.open("r", encoding="utf-8") as fh:
            return json.load(fh)
    except (OSError, json.JSONDecodeError) as exc:
        raise typer.BadParameter(f"Unable to read {path}: {exc}") from exc


def _missing(value: Optional[float]) -> bool:
    return value is None or math.isnan(value)


def _fmt(value: Optional[float], digits: int = 2, suffix: str = "") -> str:
    if _missing(value):
        return "n/a"
    return f"{value:,.{digits}f}{suffix}"


def _pct(value: Optional[float]) -> str:
    return "n/a" if _missing(value) else f"{value * 100:.2f}%"


def _run(task: Callable[[AppraisalEngine], Awaitable[Any]]) -> Any:
    """Run ``task`` against a fresh engine and translate failures into exit codes."""

    async def _invoke() -> Any:
        async with AppraisalEngine(EngineSettings.from_env()) as engine:
            return await task(engine)

    try:
        return asyncio.run(_invoke())
    except ValidationError as exc:
        console.print(f"[red]Invalid input:[/red] {exc}")
        raise typer.Exit(code=2)
    except CalculationTimeout:
        console.print("[red]Calculation timed out.[/red]")
        raise typer.Exit(code=1)
    except EngineError as exc:
        console.print(f"[red]Calculation failed:[/red] {exc}")
        raise typer.Exit(code=1)


def _key_value_table(title: str, rows: Sequence[tuple]) -> Table:
    table = Table(title=title, show_header=False)
    table.add_column("Metric", style="bold")
    table.add_column("Value", justify="right")
    for label, value in rows:
        table.add_row(label, value)
    return table


def _series_table(title: str, columns: Sequence[str], *series: Sequence[float]) -> Table:
    table = Table(title=title)
    table.add_column("Period", justify="right")
    for column in columns:
        table.add_column(column, justify="right")
    for idx, values in enumerate(zip(*series), start=1):
        table.add_row(str(idx), *[_fmt(value) for value in values])
    return table


@app.command()
def npv(
    cash_flows: str = typer.Argument(..., help="Comma separated cash flows, first is end of period 1"),
    rate: float = typer.Option(..., "--rate", "-r", help="Discount rate per period (decimal)"),
    investment: float = typer.Option(0.0, "--investment", "-i", help="Initial investment at t=0"),
) -> None:
    """Net present value and profitability index."""
    flows = _parse_flows(cash_flows)
    result = _run(lambda engine: engine.calculate_npv(flows, rate, investment))
    console.print(
        _key_value_table(
            "Net Present Value",
            [("NPV", _fmt(result.npv)), ("Profitability index", _fmt(result.profitability_index, 4))],
        )
    )
    console.print(_series_table("Discounted cash flows", ["Cash flow", "Present value"], flows, result.present_values))


@app.command()
def irr(
    cash_flows: str = typer.Argument(..., help="Comma separated cash flows, first is the t=0 outlay"),
    guess: float = typer.Option(0.1, help="Starting rate for the root finder"),
) -> None:
    """Internal rate of return."""
    flows = _parse_flows(cash_flows)
    result = _run(lambda engine: engine.calculate_irr(flows, guess))
    if not result.is_valid:
        console.print(f"[yellow]{result.error}[/yellow]")
        return
    console.print(
        _key_value_table("Internal Rate of Return", [("IRR", _pct(result.irr)), ("Iterations", str(result.iterations))])
    )


@app.command()
def payback(
    cash_flows: str = typer.Argument(..., help="Comma separated cash flows"),
    investment: float = typer.Option(..., "--investment", "-i", help="Initial investment to recover"),
) -> None:
    """Payback period with the cumulative cash position."""
    flows = _parse_flows(cash_flows)
    result = _run(lambda engine: engine.calculate_payback_period(flows, investment))
    if result.is_within_project_life:
        console.print(_key_value_table("Payback", [("Payback period", _fmt(result.payback_period, 2, " periods"))]))
    else:
        console.print("[yellow]Investment is not recovered within the projected periods.[/yellow]")
    console.print(_series_table("Cumulative cash flow", ["Cash flow", "Cumulative"], flows, result.cumulative_cash_flows))


@app.command("break-even")
def break_even(
    fixed_costs: float = typer.Argument(..., help="Total fixed costs"),
    variable_cost: float = typer.Argument(..., help="Variable cost per unit"),
    price: float = typer.Argument(..., help="Selling price per unit"),
    target_revenue: Optional[float] = typer.Option(None, help="Revenue target for the margin of safety"),
) -> None:
    """Break-even units and revenue."""
    result = _run(lambda engine: engine.calculate_break_even(fixed_costs, variable_cost, price))
    rows = [
        ("Contribution margin", _fmt(result.contribution_margin)),
        ("Contribution margin ratio", _pct(result.contribution_margin_ratio)),
        ("Break-even units", _fmt(result.break_even_units)),
        ("Break-even revenue", _fmt(result.break_even_revenue)),
    ]
    if target_revenue is not None:
        rows.append(("Margin of safety", _pct(result.margin_of_safety(target_revenue))))
    console.print(_key_value_table("Break-even Analysis", rows))
    if result.error:
        console.print(f"[yellow]{result.error}[/yellow]")


@app.command()
def project(
    base_cash_flow: float = typer.Argument(..., help="Cash flow the growth is applied to"),
    growth_rate: float = typer.Argument(..., help="Growth per period (decimal)"),
    periods: int = typer.Argument(..., help="Number of periods to project"),
    discount_rate: float = typer.Option(0.0, "--discount-rate", "-d", help="Discount rate per period (decimal)"),
) -> None:
    """Project growing cash flows and their present value."""
    result = _run(lambda engine: engine.project_cash_flows(base_cash_flow, growth_rate, periods, discount_rate))
    console.print(
        _series_table("Projection", ["Cash flow", "Present value"], result.projected_cash_flows, result.present_values)
    )
    console.print(
        _key_value_table(
            "Totals", [("Total PV", _fmt(result.total_pv)), ("Terminal value", _fmt(result.terminal_value))]
        )
    )


@app.command()
def scenarios(
    file_path: Path = typer.Argument(..., help="JSON object mapping scenario names to NPV inputs"),
    base: Optional[str] = typer.Option(None, help="Scenario used for the delta columns"),
) -> None:
    """Compare the NPV of named scenarios."""
    payload = _load_json(file_path)
    if not isinstance(payload, dict):
        raise typer.BadParameter("Scenario file must contain a JSON object")
    results = _run(lambda engine: engine.calculate_scenario_npv(payload))
    frame = scenario_summary_frame(results, base_scenario=base)

    table = Table(title="Scenario NPV")
    for column in ("Scenario", "NPV", "vs base", "vs base %"):
        table.add_column(column, justify="right" if column != "Scenario" else "left")
    for row in frame.itertuples(index=False):
        if row.error:
            table.add_row(row.scenario, f"[red]{row.error}[/red]", "", "")
            continue
        table.add_row(row.scenario, _fmt(row.npv), _fmt(row.vs_base), _pct(row.vs_base_pct))
    console.print(table)
    if any(isinstance(result, CalculationFailure) for result in results.values()):
        raise typer.Exit(code=1)


@app.command()
def simulate(
    file_path: Path = typer.Argument(..., help="JSON file with base_case, variables, iterations, confidence_level"),
    ladder: bool = typer.Option(False, help="Print the full percentile ladder"),
) -> None:
    """Monte Carlo simulation of NPV."""
    payload = _load_json(file_path)
    result = _run(lambda engine: engine.monte_carlo_simulation(payload))
    if result.successful_iterations == 0:
        console.print("[red]No simulation draw produced a valid NPV.[/red]")
        raise typer.Exit(code=1)

    interval = result.confidence_interval
    console.print(
        _key_value_table(
            "Monte Carlo NPV",
            [
                ("Iterations", f"{result.successful_iterations} / {result.iterations}"),
                ("Mean", _fmt(result.mean)),
                ("Median", _fmt(result.median)),
                ("Std deviation", _fmt(result.standard_deviation)),
                ("Minimum", _fmt(result.minimum)),
                ("Maximum", _fmt(result.maximum)),
                (f"{interval.level:.0%} interval", f"{_fmt(interval.lower)} .. {_fmt(interval.upper)}"),
                ("P5 / P25", f"{_fmt(result.percentiles.p5)} / {_fmt(result.percentiles.p25)}"),
                ("P75 / P95", f"{_fmt(result.percentiles.p75)} / {_fmt(result.percentiles.p95)}"),
                ("P(NPV > 0)", _pct(result.probability_of_success)),
            ],
        )
    )
    if ladder:
        table = Table(title="Percentile ladder")
        table.add_column("Percentile", justify="right")
        table.add_column("NPV", justify="right")
        for row in build_percentile_table(result.npv_values, percentiles=range(5, 100, 5)).itertuples(index=False):
            table.add_row(f"P{row.percentile}", _fmt(row.npv))
        console.print(table)


def main() -> None:
    """Entry point for CLI execution."""
    app()


if __name__ == "__main__":
    main()
