from retire_core.io.config import (  # noqa: F401
    load_scenarios,
    load_simulation_config,
    simulation_config_from_dict,
)
from retire_core.io.report import outcomes_to_frame, save_json, save_outcomes_csv  # noqa: F401

__all__ = [
    "load_scenarios",
    "load_simulation_config",
    "simulation_config_from_dict",
    "outcomes_to_frame",
    "save_json",
    "save_outcomes_csv",
]
