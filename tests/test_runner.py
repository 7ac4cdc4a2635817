import threading

import numpy as np
import pytest

from retire_core.domain.errors import CancelledError, ComputationError, ConfigurationError, ValidationError
from retire_core.domain.models import MAX_SIMULATIONS, AssetAllocation, SimulationConfig, UserFinancialProfile
from retire_core.services import runner as runner_module
from retire_core.services.runner import SimulationBatchRunner, batch_bounds
from retire_core.services.validation import clamp_simulations


def _profile(stocks: float = 0.7, bonds: float = 0.3) -> UserFinancialProfile:
    return UserFinancialProfile(
        current_savings=100000.0,
        monthly_contribution=1000.0,
        years_to_retirement=20,
        target_retirement_income=50000.0,
        asset_allocation=AssetAllocation(stocks=stocks, bonds=bonds),
    )


def _config(**overrides) -> SimulationConfig:
    base = dict(user_data=_profile(), simulations=1000, batch_size=250, seed=7)
    base.update(overrides)
    return SimulationConfig(**base)


def _scores(result):
    return [o.readiness_score for o in result.outcomes]


def test_batch_bounds_cover_count_with_short_tail():
    assert batch_bounds(2500, 1000) == [(0, 1000), (1000, 2000), (2000, 2500)]
    assert batch_bounds(1, 1000) == [(0, 1)]


def test_clamp_simulations_bounds():
    assert clamp_simulations(-5, MAX_SIMULATIONS) == 1
    assert clamp_simulations(0, MAX_SIMULATIONS) == 1
    assert clamp_simulations(60000, MAX_SIMULATIONS) == MAX_SIMULATIONS
    assert clamp_simulations(1234, MAX_SIMULATIONS) == 1234
    with pytest.raises(ConfigurationError):
        clamp_simulations("many", MAX_SIMULATIONS)
    with pytest.raises(ConfigurationError):
        clamp_simulations(True, MAX_SIMULATIONS)


def test_run_clamps_negative_count_to_single_scenario():
    result = SimulationBatchRunner().run(_config(simulations=-5))
    assert result.requested == 1
    assert result.executed == 1
    assert result.outcomes[0].simulation_id == 1


def test_run_respects_configured_ceiling():
    result = SimulationBatchRunner().run(_config(simulations=500, max_simulations=100))
    assert result.requested == 100
    assert len(result.outcomes) == 100


def test_outcomes_are_numbered_in_order():
    result = SimulationBatchRunner().run(_config(simulations=600))
    assert [o.simulation_id for o in result.outcomes] == list(range(1, 601))
    assert all(0.0 <= s <= 100.0 for s in _scores(result))


def test_invalid_allocation_fails_before_any_batch():
    calls = []
    runner = SimulationBatchRunner(progress=lambda done, total: calls.append(done))
    with pytest.raises(ValidationError):
        runner.run(_config(user_data=_profile(stocks=0.5, bonds=0.4)))
    assert calls == []


def test_non_positive_volatility_is_a_configuration_error():
    with pytest.raises(ConfigurationError):
        SimulationBatchRunner().run(_config(market_params={"stockReturn": {"mean": 0.07, "stdDev": 0.0}}))
    with pytest.raises(ConfigurationError):
        SimulationBatchRunner().run(_config(market_params={"inflation": {"stdDev": -0.01}}))


def test_bad_run_settings_are_configuration_errors():
    with pytest.raises(ConfigurationError):
        SimulationBatchRunner().run(_config(batch_size=0))
    with pytest.raises(ConfigurationError):
        SimulationBatchRunner().run(_config(max_workers=0))
    with pytest.raises(ConfigurationError):
        SimulationBatchRunner().run(_config(seed=-1))


def test_seeded_run_is_identical_across_worker_counts():
    inline = SimulationBatchRunner().run(_config(simulations=2500, batch_size=500, max_workers=1))
    pooled = SimulationBatchRunner().run(_config(simulations=2500, batch_size=500, max_workers=4))
    assert _scores(inline) == _scores(pooled)
    assert [o.simulation_id for o in pooled.outcomes] == list(range(1, 2501))


def test_injected_generator_makes_runs_reproducible():
    first = SimulationBatchRunner(rng=np.random.default_rng(99)).run(_config(seed=None))
    second = SimulationBatchRunner(rng=np.random.default_rng(99)).run(_config(seed=None))
    assert _scores(first) == _scores(second)


def test_different_seeds_give_different_outcomes():
    first = SimulationBatchRunner().run(_config(seed=1))
    second = SimulationBatchRunner().run(_config(seed=2))
    assert _scores(first) != _scores(second)


def test_progress_reports_each_batch():
    calls = []
    SimulationBatchRunner(progress=lambda done, total: calls.append((done, total))).run(_config())
    assert calls == [(250, 1000), (500, 1000), (750, 1000), (1000, 1000)]


def test_cancel_before_start_raises():
    event = threading.Event()
    event.set()
    with pytest.raises(CancelledError) as info:
        SimulationBatchRunner(cancel_event=event).run(_config())
    assert info.value.completed == 0
    assert info.value.requested == 1000


def test_cancel_mid_run_stops_at_batch_boundary():
    event = threading.Event()

    def on_progress(done, total):
        if done >= 500:
            event.set()

    with pytest.raises(CancelledError) as info:
        SimulationBatchRunner(cancel_event=event, progress=on_progress).run(_config(batch_size=500, simulations=2000))
    assert info.value.completed == 500


def test_cancel_on_pool_raises():
    event = threading.Event()
    event.set()
    with pytest.raises(CancelledError):
        SimulationBatchRunner(cancel_event=event).run(_config(max_workers=3))


def test_failing_scenarios_are_excluded_and_counted(monkeypatch):
    real_project = runner_module.project

    def flaky_project(draw, profile, simulation_id=0):
        if simulation_id % 10 == 0:
            raise ComputationError("boom")
        return real_project(draw, profile, simulation_id=simulation_id)

    monkeypatch.setattr(runner_module, "project", flaky_project)
    result = SimulationBatchRunner().run(_config(simulations=100, batch_size=30))
    assert result.excluded == 10
    assert result.executed == 90
    assert result.requested == 100


def test_all_scenarios_failing_raises(monkeypatch):
    def broken_project(draw, profile, simulation_id=0):
        raise ComputationError("boom")

    monkeypatch.setattr(runner_module, "project", broken_project)
    with pytest.raises(ComputationError):
        SimulationBatchRunner().run(_config(simulations=50))
