from __future__ import annotations

import contextlib
import dataclasses
import json
import logging
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.progress import BarColumn, Progress, SpinnerColumn, TextColumn
from rich.table import Table

from retire_core.domain.errors import SimulationError
from retire_core.domain.models import AssetAllocation, ScenarioComparison, SimulationConfig, SimulationReport, UserFinancialProfile
from retire_core.io import config as config_io
from retire_core.io import report as report_io
from retire_core.services import pipeline
from retire_core.services.runner import SimulationBatchRunner

app = typer.Typer(help="Retirement readiness Monte Carlo CLI.")

err_console = Console(stderr=True)

# Reported as a one-line message with exit code 1 instead of a traceback.
_INPUT_ERRORS = (SimulationError, FileNotFoundError, json.JSONDecodeError)

_PROFILE_FLAGS = {
    "current_savings": "--current-savings",
    "monthly_contribution": "--monthly-contribution",
    "years_to_retirement": "--years-to-retirement",
    "target_retirement_income": "--target-income",
}


@contextlib.contextmanager
def _cli_logging(verbose: bool) -> Iterator[None]:
    """Send retire_core log records through rich for the length of one command."""
    logger = logging.getLogger("retire_core")
    handler = RichHandler(console=err_console, show_path=False)
    handler.setFormatter(logging.Formatter("%(message)s"))
    level, propagate = logger.level, logger.propagate
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    try:
        yield
    finally:
        logger.removeHandler(handler)
        logger.setLevel(level)
        logger.propagate = propagate


def _build_config(
    config: Optional[Path],
    current_savings: Optional[float],
    monthly_contribution: Optional[float],
    years_to_retirement: Optional[float],
    target_income: Optional[float],
    stocks: Optional[float],
    bonds: Optional[float],
    simulations: Optional[int],
    batch_size: Optional[int],
    workers: Optional[int],
    seed: Optional[int],
) -> SimulationConfig:
    """
    Start from the config file when given, then let explicit options win.
    Without a file every profile option is required.
    """
    profile_opts = {
        "current_savings": current_savings,
        "monthly_contribution": monthly_contribution,
        "years_to_retirement": years_to_retirement,
        "target_retirement_income": target_income,
    }
    if config:
        sim_config = config_io.load_simulation_config(config)
        profile = dataclasses.replace(
            sim_config.user_data, **{k: v for k, v in profile_opts.items() if v is not None}
        )
    else:
        missing = [k for k, v in profile_opts.items() if v is None]
        if missing:
            flags = ", ".join(_PROFILE_FLAGS[k] for k in missing)
            raise typer.BadParameter(f"Provide --config or all profile options (missing {flags})")
        profile = UserFinancialProfile(**profile_opts)
        sim_config = SimulationConfig(user_data=profile)

    if stocks is not None or bonds is not None:
        stock_weight = stocks if stocks is not None else 1.0 - bonds
        bond_weight = bonds if bonds is not None else 1.0 - stocks
        profile = dataclasses.replace(profile, asset_allocation=AssetAllocation(stocks=stock_weight, bonds=bond_weight))

    overrides = {
        "simulations": simulations,
        "batch_size": batch_size,
        "max_workers": workers,
        "seed": seed,
    }
    return dataclasses.replace(
        sim_config,
        user_data=profile,
        **{k: v for k, v in overrides.items() if v is not None},
    )


def _percent(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{value:.1f}%"


def _render_summary(console: Console, report: SimulationReport) -> None:
    stats = report.statistics
    bands = report.confidence_intervals
    risk = report.risk_assessment

    table = Table(title=f"Retirement readiness ({report.total_simulations:,} simulations)")
    table.add_column("Metric")
    table.add_column("Mean", justify="right")
    table.add_column("Median", justify="right")
    table.add_column("P5", justify="right")
    table.add_column("P95", justify="right")
    table.add_row(
        "Readiness score",
        f"{stats.readiness_score.mean:.1f}",
        f"{stats.readiness_score.median:.1f}",
        f"{bands.readiness_score.p5:.1f}",
        f"{bands.readiness_score.p95:.1f}",
    )
    table.add_row(
        "Total savings",
        f"{stats.total_savings.mean:,.0f}",
        f"{stats.total_savings.median:,.0f}",
        f"{bands.total_savings.p5:,.0f}",
        f"{bands.total_savings.p95:,.0f}",
    )
    console.print(table)

    console.print(
        f"Risk: [bold]{risk.overall_risk}[/bold] | success rate {_percent(risk.success_rate)} "
        f"(empirical {_percent(risk.empirical_success_rate)})"
    )
    if report.excluded_simulations:
        console.print(f"[yellow]{report.excluded_simulations} scenarios excluded after numeric failures.[/yellow]")
    for insight in report.insights:
        console.print(f"- [bold]{insight.title}[/bold]: {insight.message}")


def _render_comparison(console: Console, comparison: ScenarioComparison) -> None:
    table = Table(title="Scenario comparison vs. base")
    table.add_column("Scenario")
    table.add_column("Mean readiness", justify="right")
    table.add_column("Δ readiness", justify="right")
    table.add_column("Δ median savings", justify="right")
    table.add_column("Δ success rate", justify="right")
    table.add_row("base", f"{comparison.base.statistics.readiness_score.mean:.1f}", "-", "-", "-")
    for name, report in comparison.scenarios.items():
        delta = comparison.delta[name]
        table.add_row(
            name,
            f"{report.statistics.readiness_score.mean:.1f}",
            f"{delta['readinessScoreMean']:+.1f}",
            f"{delta['totalSavingsMedian']:+,.0f}",
            f"{delta['successRate']:+.1f}",
        )
    console.print(table)


@app.command()
def simulate(
    config: Optional[Path] = typer.Option(None, help="Simulation config JSON (userData, marketParams, ...)"),
    current_savings: Optional[float] = typer.Option(None, help="Current retirement savings"),
    monthly_contribution: Optional[float] = typer.Option(None, help="Monthly contribution"),
    years_to_retirement: Optional[float] = typer.Option(None, help="Years until retirement"),
    target_income: Optional[float] = typer.Option(None, help="Target annual retirement income (today's money)"),
    stocks: Optional[float] = typer.Option(None, help="Equity weight, 0..1"),
    bonds: Optional[float] = typer.Option(None, help="Bond weight, 0..1"),
    simulations: Optional[int] = typer.Option(None, help="Number of scenarios (clamped to 1..50000)"),
    batch_size: Optional[int] = typer.Option(None, help="Scenarios per batch"),
    workers: Optional[int] = typer.Option(None, help="Worker threads (1 runs in-line)"),
    seed: Optional[int] = typer.Option(None, help="Random seed"),
    out: Optional[Path] = typer.Option(None, help="Output path for report JSON"),
    outcomes_csv: Optional[Path] = typer.Option(None, help="Also write per-scenario outcomes to this CSV"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Run the Monte Carlo retirement simulation."""
    with _cli_logging(verbose):
        try:
            sim_config = _build_config(
                config,
                current_savings,
                monthly_contribution,
                years_to_retirement,
                target_income,
                stocks,
                bonds,
                simulations,
                batch_size,
                workers,
                seed,
            )
            with Progress(
                SpinnerColumn(),
                TextColumn("[progress.description]{task.description}"),
                BarColumn(),
                console=err_console,
                transient=True,
            ) as progress:
                task = progress.add_task("Running simulation...", total=None)
                runner = SimulationBatchRunner(
                    progress=lambda done, total: progress.update(task, completed=done, total=total),
                )
                run = runner.run(sim_config)
                report = pipeline.summarize_run(run)
        except _INPUT_ERRORS as exc:
            err_console.print(f"[red]Simulation failed:[/red] {exc}")
            raise typer.Exit(code=1) from exc

    if outcomes_csv:
        report_io.save_outcomes_csv(outcomes_csv, run.outcomes)
        typer.echo(f"Scenario outcomes written to {outcomes_csv}")

    payload = report.to_dict()
    if out:
        report_io.save_json(out, payload)
        _render_summary(Console(), report)
        typer.echo(f"Simulation report written to {out}")
    else:
        typer.echo(json.dumps(payload, indent=2))


@app.command()
def compare(
    config: Path = typer.Option(..., help="Base simulation config JSON"),
    scenarios: Path = typer.Option(..., help="Scenario overrides JSON: {name: {userData, marketParams, simulations}}"),
    seed: Optional[int] = typer.Option(None, help="Random seed shared by every run"),
    out: Optional[Path] = typer.Option(None, help="Output path for comparison JSON"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging"),
):
    """Run the base config and each scenario variant, then report the differences."""
    with _cli_logging(verbose):
        try:
            base = config_io.load_simulation_config(config)
            if seed is not None:
                base = dataclasses.replace(base, seed=seed)
            variants = config_io.load_scenarios(scenarios)
            with Progress(SpinnerColumn(), TextColumn("[progress.description]{task.description}"), console=err_console, transient=True) as progress:
                progress.add_task(f"Running base + {len(variants)} scenarios...", total=None)
                comparison = pipeline.compare_scenarios(base, variants)
        except _INPUT_ERRORS as exc:
            err_console.print(f"[red]Comparison failed:[/red] {exc}")
            raise typer.Exit(code=1) from exc

    payload = comparison.to_dict()
    if out:
        report_io.save_json(out, payload)
        _render_comparison(Console(), comparison)
        typer.echo(f"Scenario comparison written to {out}")
    else:
        typer.echo(json.dumps(payload, indent=2))


if __name__ == "__main__":
    app()
