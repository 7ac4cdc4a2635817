from __future__ import annotations

from typing import List, Optional, Sequence

from retire_core.domain.errors import ComputationError
from retire_core.domain.models import (
    CaseSummary,
    ConfidenceIntervals,
    Insight,
    MarketParameters,
    RiskAssessment,
    ScenarioAnalysis,
    ScenarioCounts,
    ScenarioOutcome,
    SimulationReport,
    Statistics,
)


def count_buckets(outcomes: Sequence[ScenarioOutcome]) -> ScenarioCounts:
    excellent = good = moderate = poor = 0
    for outcome in outcomes:
        score = outcome.readiness_score
        if score >= 80:
            excellent += 1
        elif score >= 60:
            good += 1
        elif score >= 40:
            moderate += 1
        else:
            poor += 1
    return ScenarioCounts(excellent=excellent, good=good, moderate=moderate, poor=poor)


def analyze_scenarios(outcomes: Sequence[ScenarioOutcome]) -> ScenarioAnalysis:
    """Best and worst case by readiness score (first seen wins ties) plus score buckets."""
    if not outcomes:
        raise ComputationError("No scenario outcomes to analyze")
    best = worst = outcomes[0]
    for outcome in outcomes[1:]:
        if outcome.readiness_score > best.readiness_score:
            best = outcome
        if outcome.readiness_score < worst.readiness_score:
            worst = outcome
    return ScenarioAnalysis(
        best_case=CaseSummary.from_outcome(best),
        worst_case=CaseSummary.from_outcome(worst),
        scenario_counts=count_buckets(outcomes),
    )


def generate_insights(
    statistics: Statistics,
    risk: RiskAssessment,
    total_simulations: int,
    excluded: int = 0,
) -> List[Insight]:
    insights: List[Insight] = []

    avg = statistics.readiness_score.mean
    if avg >= 80:
        insights.append(
            Insight(
                kind="success",
                title="Strong Retirement Outlook",
                message=f"On average, your retirement readiness score is {avg:.1f}%, indicating strong preparation.",
                action="Consider increasing contributions to retire early or enhance retirement lifestyle.",
            )
        )
    elif avg >= 60:
        insights.append(
            Insight(
                kind="warning",
                title="Moderate Retirement Risk",
                message=f"Your average retirement readiness score is {avg:.1f}%, showing moderate risk.",
                action="Consider increasing contributions or adjusting retirement timeline.",
            )
        )
    else:
        insights.append(
            Insight(
                kind="danger",
                title="High Retirement Risk",
                message=f"Your average retirement readiness score is {avg:.1f}%, indicating significant risk.",
                action="Immediate action required: increase contributions significantly or extend working years.",
            )
        )

    volatility = statistics.readiness_score.std_dev
    if volatility > 20:
        insights.append(
            Insight(
                kind="warning",
                title="High Outcome Variability",
                message=f"Your retirement outcomes show high variability ({volatility:.1f}% standard deviation).",
                action="Consider more conservative investment strategies or increase savings buffer.",
            )
        )

    rate = risk.success_rate
    insights.append(
        Insight(
            kind="info",
            title="Success Probability",
            message=f"Based on {total_simulations:,} simulations, you have a {rate:.1f}% chance of meeting your retirement goals.",
            action=(
                "Consider increasing contributions or adjusting goals."
                if rate < 70
                else "You're on track to meet your retirement goals."
            ),
        )
    )

    if excluded:
        insights.append(
            Insight(
                kind="warning",
                title="Excluded Scenarios",
                message=f"{excluded:,} of {total_simulations:,} scenarios hit a numeric failure and were left out of these figures.",
                action="Check market assumptions for extreme means or volatilities.",
            )
        )
    return insights


def build_report(
    outcomes: Sequence[ScenarioOutcome],
    statistics: Statistics,
    intervals: ConfidenceIntervals,
    risk: RiskAssessment,
    total_simulations: int,
    excluded: int = 0,
    market_params: Optional[MarketParameters] = None,
) -> SimulationReport:
    return SimulationReport(
        total_simulations=total_simulations,
        statistics=statistics,
        confidence_intervals=intervals,
        risk_assessment=risk,
        scenario_analysis=analyze_scenarios(outcomes),
        insights=tuple(generate_insights(statistics, risk, total_simulations, excluded)),
        excluded_simulations=excluded,
        market_params=market_params,
    )
