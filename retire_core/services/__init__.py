from retire_core.services.pipeline import compare_scenarios, run_simulation, summarize_run  # noqa: F401
from retire_core.services.random_variates import RandomVariateGenerator  # noqa: F401
from retire_core.services.runner import BatchRunResult, SimulationBatchRunner  # noqa: F401
from retire_core.services.scenario import apply_scenario  # noqa: F401

__all__ = [
    "BatchRunResult",
    "RandomVariateGenerator",
    "SimulationBatchRunner",
    "apply_scenario",
    "compare_scenarios",
    "run_simulation",
    "summarize_run",
]
