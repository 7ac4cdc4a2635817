from __future__ import annotations

import math
import numbers
from typing import Any, Mapping, Optional

from retire_core.domain.errors import ConfigurationError, ValidationError
from retire_core.domain.models import (
    MarketParameters,
    MarketOverrides,
    ReturnParams,
    SimulationConfig,
    UserFinancialProfile,
)

ALLOCATION_TOLERANCE = 1e-6

# Accepted spellings for each asset class in partial market overrides.
_MARKET_KEYS = {
    "equity_return": ("stockReturn", "marketReturn", "equityReturn", "stock_return", "equity_return"),
    "bond_return": ("bondReturn", "bond_return"),
    "inflation": ("inflation",),
}


def _is_number(value: Any) -> bool:
    return isinstance(value, numbers.Real) and not isinstance(value, bool) and math.isfinite(value)


def validate_profile(profile: UserFinancialProfile) -> UserFinancialProfile:
    """Raise ValidationError unless the profile can be projected."""
    fields = {
        "current_savings": profile.current_savings,
        "monthly_contribution": profile.monthly_contribution,
        "years_to_retirement": profile.years_to_retirement,
        "target_retirement_income": profile.target_retirement_income,
    }
    for name, value in fields.items():
        if not _is_number(value):
            raise ValidationError(f"{name} must be a finite number, got {value!r}")

    if profile.years_to_retirement < 0:
        raise ValidationError(f"years_to_retirement cannot be negative ({profile.years_to_retirement})")
    if profile.target_retirement_income <= 0:
        raise ValidationError("target_retirement_income must be greater than zero")
    if profile.current_savings < 0:
        raise ValidationError("current_savings cannot be negative")
    if profile.monthly_contribution < 0:
        raise ValidationError("monthly_contribution cannot be negative")

    allocation = profile.asset_allocation
    if not (_is_number(allocation.stocks) and _is_number(allocation.bonds)):
        raise ValidationError("asset_allocation weights must be finite numbers")
    if allocation.stocks < 0 or allocation.bonds < 0:
        raise ValidationError("asset_allocation weights cannot be negative")
    total = allocation.stocks + allocation.bonds
    if abs(total - 1.0) > ALLOCATION_TOLERANCE:
        raise ValidationError(f"asset_allocation weights must sum to 1.0, got {total:.4f}")
    return profile


def _merge_return_params(default: ReturnParams, override: Any) -> ReturnParams:
    if override is None:
        return default
    if isinstance(override, ReturnParams):
        return override
    if not isinstance(override, Mapping):
        raise ConfigurationError(f"Expected a mapping with mean/stdDev, got {override!r}")
    mean = override.get("mean", default.mean)
    std_dev = override.get("stdDev", override.get("std_dev", default.std_dev))
    return ReturnParams(mean=mean, std_dev=std_dev)


def validate_market_params(params: MarketParameters) -> MarketParameters:
    for name in ("equity_return", "bond_return", "inflation"):
        leg: ReturnParams = getattr(params, name)
        if not _is_number(leg.mean):
            raise ConfigurationError(f"{name}.mean must be a finite number, got {leg.mean!r}")
        if not _is_number(leg.std_dev) or leg.std_dev <= 0:
            raise ConfigurationError(f"{name}.std_dev must be positive, got {leg.std_dev!r}")
    if not _is_number(params.correlation) or not -1.0 <= params.correlation <= 1.0:
        raise ConfigurationError(f"correlation must lie in [-1, 1], got {params.correlation!r}")
    return params


def resolve_market_params(
    overrides: MarketOverrides = None,
    base: Optional[MarketParameters] = None,
) -> MarketParameters:
    """
    Fill defaults (or the given base) for anything the caller left out, then validate.
    Overrides merge per asset class and per field, so {"inflation": {"mean": 0.03}}
    keeps the default inflation std dev.
    """
    defaults = base if base is not None else MarketParameters()
    if overrides is None:
        return validate_market_params(defaults)
    if isinstance(overrides, MarketParameters):
        return validate_market_params(overrides)
    if not isinstance(overrides, Mapping):
        raise ConfigurationError(f"market_params must be a mapping or MarketParameters, got {type(overrides).__name__}")

    merged = {}
    for field_name, aliases in _MARKET_KEYS.items():
        override = next((overrides[key] for key in aliases if key in overrides), None)
        merged[field_name] = _merge_return_params(getattr(defaults, field_name), override)
    correlation = overrides.get("correlation", defaults.correlation)
    return validate_market_params(MarketParameters(correlation=correlation, **merged))


def clamp_simulations(requested: Any, max_simulations: int) -> int:
    """Clamp a requested scenario count to [1, max_simulations]."""
    if isinstance(requested, bool) or not isinstance(requested, numbers.Integral):
        raise ConfigurationError(f"simulations must be an integer, got {requested!r}")
    return max(1, min(int(requested), max_simulations))


def validate_run_settings(config: SimulationConfig) -> None:
    for name in ("batch_size", "max_simulations", "max_workers"):
        value = getattr(config, name)
        if isinstance(value, bool) or not isinstance(value, numbers.Integral) or value <= 0:
            raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    seed: Optional[int] = config.seed
    if seed is not None and (isinstance(seed, bool) or not isinstance(seed, numbers.Integral) or seed < 0):
        raise ConfigurationError(f"seed must be a non-negative integer, got {seed!r}")
