from __future__ import annotations

import math

from retire_core.domain.errors import ComputationError
from retire_core.domain.models import MarketParameters, ScenarioDraw, ScenarioOutcome, UserFinancialProfile
from retire_core.services.random_variates import RandomVariateGenerator

TARGET_YEARS = 25.0
SURPLUS_BONUS = 20.0
LATE_START_YEARS = 10
LATE_START_RATIO = 0.5
LATE_START_PENALTY = 0.8


def draw_scenario(params: MarketParameters, rng: RandomVariateGenerator) -> ScenarioDraw:
    """One market realization: correlated equity/bond returns plus independent inflation."""
    stock_return, bond_return = rng.correlated_pair(params.equity_return, params.bond_return, params.correlation)
    inflation = rng.normal(params.inflation.mean, params.inflation.std_dev)
    return ScenarioDraw(
        stock_return=stock_return,
        bond_return=bond_return,
        inflation=inflation,
        real_return=stock_return - inflation,
        bond_real_return=bond_return - inflation,
    )


def readiness_score(years_of_income_covered: float, years_to_retirement: float) -> float:
    coverage_ratio = years_of_income_covered / TARGET_YEARS
    score = min(coverage_ratio * 100.0, 100.0)

    if coverage_ratio > 1:
        score = min(score + (coverage_ratio - 1) * SURPLUS_BONUS, 100.0)

    if years_to_retirement < LATE_START_YEARS and coverage_ratio < LATE_START_RATIO:
        score *= LATE_START_PENALTY

    return max(0.0, min(100.0, score))


def _future_value_of_contributions(monthly_contribution: float, portfolio_return: float, years: float) -> float:
    monthly_rate = portfolio_return / 12
    total_months = years * 12
    if abs(monthly_rate) < 1e-12:
        return monthly_contribution * total_months
    return monthly_contribution * ((math.pow(1 + monthly_rate, total_months) - 1) / monthly_rate)


def project(draw: ScenarioDraw, profile: UserFinancialProfile, simulation_id: int = 0) -> ScenarioOutcome:
    """
    Compound the profile's savings and contributions through one scenario.

    Raises ComputationError when the draw produces a non-finite result, e.g. a
    portfolio return at or below -100% over a fractional horizon.
    """
    allocation = profile.asset_allocation
    years = profile.years_to_retirement
    portfolio_return = allocation.stocks * draw.stock_return + allocation.bonds * draw.bond_return

    try:
        future_value_of_current = profile.current_savings * math.pow(1 + portfolio_return, years)
        future_value_of_contributions = _future_value_of_contributions(
            profile.monthly_contribution, portfolio_return, years
        )
        total_savings = future_value_of_current + future_value_of_contributions
        inflation_adjusted_income = profile.target_retirement_income * math.pow(1 + draw.inflation, years)
        years_covered = total_savings / inflation_adjusted_income
    except (ValueError, OverflowError, ZeroDivisionError) as exc:
        raise ComputationError(f"Scenario {simulation_id}: {exc}") from exc

    values = (total_savings, inflation_adjusted_income, years_covered, portfolio_return)
    if not all(math.isfinite(v) for v in values):
        raise ComputationError(f"Scenario {simulation_id}: non-finite projection {values}")

    return ScenarioOutcome(
        simulation_id=simulation_id,
        total_retirement_savings=total_savings,
        inflation_adjusted_income=inflation_adjusted_income,
        years_of_income_covered=years_covered,
        readiness_score=readiness_score(years_covered, years),
        portfolio_return=portfolio_return,
        real_return=portfolio_return - draw.inflation,
        draw=draw,
    )
