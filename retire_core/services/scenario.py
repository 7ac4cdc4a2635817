from __future__ import annotations

import dataclasses

from retire_core.domain.errors import ValidationError
from retire_core.domain.models import ScenarioOverrides, SimulationConfig, UserFinancialProfile
from retire_core.services.validation import resolve_market_params

_PROFILE_FIELDS = {f.name for f in dataclasses.fields(UserFinancialProfile)} - {"asset_allocation"}


def apply_scenario(config: SimulationConfig, overrides: ScenarioOverrides) -> SimulationConfig:
    """
    Applies profile, allocation, market and count overrides to a base config.
    Market overrides merge over the base config's (already defaulted) parameters.
    """
    unknown = set(overrides.profile) - _PROFILE_FIELDS
    if unknown:
        raise ValidationError(f"Unknown profile fields in scenario: {sorted(unknown)}")

    profile = dataclasses.replace(config.user_data, **overrides.profile)
    if overrides.asset_allocation is not None:
        profile = dataclasses.replace(profile, asset_allocation=overrides.asset_allocation)

    market_params = config.market_params
    if overrides.market_params:
        base_market = resolve_market_params(config.market_params)
        market_params = resolve_market_params(overrides.market_params, base=base_market)

    return dataclasses.replace(
        config,
        user_data=profile,
        market_params=market_params,
        simulations=overrides.simulations if overrides.simulations is not None else config.simulations,
    )
