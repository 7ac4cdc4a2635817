from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Mapping

from retire_core.domain.errors import ConfigurationError, ValidationError
from retire_core.domain.models import (
    DEFAULT_BATCH_SIZE,
    DEFAULT_SIMULATIONS,
    MAX_SIMULATIONS,
    AssetAllocation,
    ScenarioOverrides,
    SimulationConfig,
    UserFinancialProfile,
)

# snake_case field -> camelCase key used by the JSON files
_PROFILE_KEYS = {
    "current_savings": "currentSavings",
    "monthly_contribution": "monthlyContribution",
    "years_to_retirement": "yearsToRetirement",
    "target_retirement_income": "targetRetirementIncome",
}


def _pick(data: Mapping[str, Any], snake: str, camel: str, default: Any = None) -> Any:
    if camel in data:
        return data[camel]
    return data.get(snake, default)


def _number(name: str, value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{name} must be a number, got {value!r}") from exc


def _integer(name: str, value: Any) -> int:
    # int() would truncate 2.7 to 2
    if isinstance(value, bool) or (isinstance(value, float) and not value.is_integer()):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}") from exc


def allocation_from_dict(data: Mapping[str, Any]) -> AssetAllocation:
    return AssetAllocation(
        stocks=_number("assetAllocation.stocks", data.get("stocks", 0.0)),
        bonds=_number("assetAllocation.bonds", data.get("bonds", 0.0)),
    )


def profile_from_dict(data: Mapping[str, Any]) -> UserFinancialProfile:
    values: Dict[str, float] = {}
    for snake, camel in _PROFILE_KEYS.items():
        raw = _pick(data, snake, camel)
        if raw is None:
            raise ValidationError(f"userData.{camel} is required")
        values[snake] = _number(camel, raw)

    allocation = _pick(data, "asset_allocation", "assetAllocation")
    if allocation is None:
        return UserFinancialProfile(**values)
    return UserFinancialProfile(asset_allocation=allocation_from_dict(allocation), **values)


def simulation_config_from_dict(data: Mapping[str, Any]) -> SimulationConfig:
    user_data = _pick(data, "user_data", "userData")
    if user_data is None:
        raise ValidationError("userData section is required")
    return SimulationConfig(
        user_data=profile_from_dict(user_data),
        simulations=_integer("simulations", data.get("simulations", DEFAULT_SIMULATIONS)),
        market_params=_pick(data, "market_params", "marketParams"),
        batch_size=_integer("batchSize", _pick(data, "batch_size", "batchSize", DEFAULT_BATCH_SIZE)),
        max_simulations=_integer("maxSimulations", _pick(data, "max_simulations", "maxSimulations", MAX_SIMULATIONS)),
        max_workers=_integer("maxWorkers", _pick(data, "max_workers", "maxWorkers", 1)),
        seed=data.get("seed"),
    )


def scenario_overrides_from_dict(data: Mapping[str, Any]) -> ScenarioOverrides:
    user_data = _pick(data, "user_data", "userData", {}) or {}
    profile = {
        snake: _number(camel, _pick(user_data, snake, camel))
        for snake, camel in _PROFILE_KEYS.items()
        if _pick(user_data, snake, camel) is not None
    }
    allocation = _pick(user_data, "asset_allocation", "assetAllocation")
    simulations = data.get("simulations")
    return ScenarioOverrides(
        profile=profile,
        asset_allocation=allocation_from_dict(allocation) if allocation is not None else None,
        market_params=_pick(data, "market_params", "marketParams"),
        simulations=_integer("simulations", simulations) if simulations is not None else None,
    )


def load_simulation_config(path: str | Path) -> SimulationConfig:
    return simulation_config_from_dict(_read_json(path))


def load_scenarios(path: str | Path) -> Dict[str, ScenarioOverrides]:
    data = _read_json(path)
    return {name: scenario_overrides_from_dict(body or {}) for name, body in data.items()}


def _read_json(path: str | Path) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)
