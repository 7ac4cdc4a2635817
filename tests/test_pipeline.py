import dataclasses
import math
import threading
from pathlib import Path

import pytest

from retire_core.domain.errors import CancelledError, ValidationError
from retire_core.domain.models import AssetAllocation, ScenarioOverrides, SimulationConfig, UserFinancialProfile
from retire_core.io.config import load_scenarios, load_simulation_config
from retire_core.services import compare_scenarios, run_simulation
from retire_core.services.scenario import apply_scenario

DATA = Path(__file__).parent / "data"


def _profile(stocks: float = 0.7, bonds: float = 0.3) -> UserFinancialProfile:
    return UserFinancialProfile(
        current_savings=100000.0,
        monthly_contribution=1000.0,
        years_to_retirement=20,
        target_retirement_income=50000.0,
        asset_allocation=AssetAllocation(stocks=stocks, bonds=bonds),
    )


def test_typical_profile_report():
    report = run_simulation(SimulationConfig(user_data=_profile(), simulations=5000, seed=2024))
    stats = report.statistics
    assert report.total_simulations == 5000
    assert stats.count == 5000
    assert 30 <= stats.readiness_score.mean <= 70
    assert 0.0 <= stats.readiness_score.min <= stats.readiness_score.max <= 100.0
    assert report.confidence_intervals.readiness_score.p50 == pytest.approx(stats.readiness_score.median)
    # returns are held for the whole horizon, so outcomes spread widely
    assert report.risk_assessment.overall_risk == "High"
    assert 0.0 <= report.risk_assessment.success_rate <= 100.0
    assert report.risk_assessment.empirical_success_rate is not None
    assert report.market_params.correlation == 0.3


def test_seeded_runs_produce_identical_reports():
    config = SimulationConfig(user_data=_profile(), simulations=1500, batch_size=400, seed=5)
    first = run_simulation(config)
    second = run_simulation(config)
    assert first.to_dict() == second.to_dict()


def test_negative_count_runs_one_scenario():
    report = run_simulation(SimulationConfig(user_data=_profile(), simulations=-5, seed=1))
    assert report.total_simulations == 1
    assert report.statistics.readiness_score.std_dev == 0.0
    assert report.risk_assessment.success_rate in (0.0, 100.0)
    assert report.scenario_analysis.best_case.simulation_id == report.scenario_analysis.worst_case.simulation_id


def test_bad_allocation_is_rejected():
    with pytest.raises(ValidationError):
        run_simulation(SimulationConfig(user_data=_profile(stocks=0.5, bonds=0.4), simulations=100))


@pytest.mark.parametrize(
    "changes",
    [
        {"years_to_retirement": -1},
        {"years_to_retirement": math.nan},
        {"target_retirement_income": 0},
        {"target_retirement_income": -5},
        {"current_savings": -1},
        {"monthly_contribution": -1},
        {"asset_allocation": AssetAllocation(stocks=1.2, bonds=-0.2)},
    ],
)
def test_invalid_profile_is_rejected(changes):
    profile = dataclasses.replace(_profile(), **changes)
    with pytest.raises(ValidationError):
        run_simulation(SimulationConfig(user_data=profile, simulations=100))


def test_cancelled_run_produces_no_report():
    event = threading.Event()
    event.set()
    with pytest.raises(CancelledError):
        run_simulation(SimulationConfig(user_data=_profile(), simulations=100), cancel_event=event)


def test_apply_scenario_merges_overrides():
    base = load_simulation_config(DATA / "profile.json")
    overrides = ScenarioOverrides(
        profile={"monthly_contribution": 2500.0},
        market_params={"stockReturn": {"mean": 0.02}},
        simulations=50,
    )
    config = apply_scenario(base, overrides)
    assert config.user_data.monthly_contribution == 2500.0
    assert config.user_data.current_savings == base.user_data.current_savings
    assert config.simulations == 50
    assert config.market_params.equity_return.mean == 0.02
    assert config.market_params.equity_return.std_dev == 0.15
    # base inflation override survives the scenario merge
    assert config.market_params.inflation.mean == 0.03


def test_apply_scenario_rejects_unknown_fields():
    base = load_simulation_config(DATA / "profile.json")
    with pytest.raises(ValidationError):
        apply_scenario(base, ScenarioOverrides(profile={"salary": 1.0}))


def test_compare_scenarios_reports_deltas():
    base = load_simulation_config(DATA / "profile.json")
    comparison = compare_scenarios(base, load_scenarios(DATA / "scenarios.json"))
    assert set(comparison.scenarios) == {"save_more", "bear_market", "conservative"}
    assert comparison.delta["save_more"]["readinessScoreMean"] > 0
    assert comparison.delta["save_more"]["totalSavingsMedian"] > 0
    assert comparison.delta["bear_market"]["readinessScoreMean"] < 0
    payload = comparison.to_dict()
    assert payload["base"]["totalSimulations"] == 500
    assert set(payload["delta"]["conservative"]) == {"readinessScoreMean", "totalSavingsMedian", "successRate"}
