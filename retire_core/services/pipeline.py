from __future__ import annotations

import logging
import threading
from typing import Dict, Mapping, Optional, Union

import numpy as np

from retire_core.domain.models import ScenarioComparison, ScenarioOverrides, SimulationConfig, SimulationReport
from retire_core.services import risk as risk_service
from retire_core.services import report as report_builder
from retire_core.services import scenario as scenario_service
from retire_core.services import statistics as stats_service
from retire_core.services.random_variates import RandomVariateGenerator
from retire_core.services.runner import BatchRunResult, ProgressCallback, SimulationBatchRunner

logger = logging.getLogger(__name__)


def run_simulation(
    config: SimulationConfig,
    *,
    rng: Union[RandomVariateGenerator, np.random.Generator, None] = None,
    cancel_event: Optional[threading.Event] = None,
    progress: Optional[ProgressCallback] = None,
) -> SimulationReport:
    """
    Run the Monte Carlo simulation described by config and summarize it.

    Raises ValidationError / ConfigurationError before any scenario runs,
    CancelledError if cancel_event is set mid-run, and ComputationError if no
    scenario produced a usable outcome.
    """
    runner = SimulationBatchRunner(rng=rng, cancel_event=cancel_event, progress=progress)
    return summarize_run(runner.run(config))


def summarize_run(run: BatchRunResult) -> SimulationReport:
    """Aggregate a completed batch run into a fresh report."""
    statistics = stats_service.summarize(run.outcomes)
    intervals = stats_service.confidence_intervals(run.outcomes)
    risk = risk_service.assess_risk(statistics, run.outcomes)

    report = report_builder.build_report(
        run.outcomes,
        statistics,
        intervals,
        risk,
        total_simulations=run.requested,
        excluded=run.excluded,
        market_params=run.market_params,
    )
    logger.info(
        "Simulation finished: mean readiness %.1f, risk %s, success %.1f%%",
        statistics.readiness_score.mean,
        risk.overall_risk,
        risk.success_rate,
    )
    return report


def _delta(base: SimulationReport, other: SimulationReport) -> Dict[str, float]:
    return {
        "readinessScoreMean": other.statistics.readiness_score.mean - base.statistics.readiness_score.mean,
        "totalSavingsMedian": other.statistics.total_savings.median - base.statistics.total_savings.median,
        "successRate": other.risk_assessment.success_rate - base.risk_assessment.success_rate,
    }


def compare_scenarios(
    base_config: SimulationConfig,
    scenarios: Mapping[str, ScenarioOverrides],
    *,
    cancel_event: Optional[threading.Event] = None,
) -> ScenarioComparison:
    """
    Runs the base config and each named variant. With a seed on the base config
    every run reuses the same random streams, so deltas reflect the overrides only.
    """
    baseline = run_simulation(base_config, cancel_event=cancel_event)

    reports: Dict[str, SimulationReport] = {}
    deltas: Dict[str, Dict[str, float]] = {}
    for name, overrides in scenarios.items():
        logger.info("Running scenario %r", name)
        scenario_config = scenario_service.apply_scenario(base_config, overrides)
        reports[name] = run_simulation(scenario_config, cancel_event=cancel_event)
        deltas[name] = _delta(baseline, reports[name])

    return ScenarioComparison(base=baseline, scenarios=reports, delta=deltas)
