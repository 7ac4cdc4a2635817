from __future__ import annotations

import math
from typing import List, Optional, Sequence

from retire_core.domain.models import RiskAssessment, ScenarioOutcome, Statistics

SUCCESS_THRESHOLD = 70.0

# Abramowitz & Stegun 7.1.26, |error| <= 1.5e-7
_A1 = 0.254829592
_A2 = -0.284496736
_A3 = 1.421413741
_A4 = -1.453152027
_A5 = 1.061405429
_P = 0.3275911


def erf(x: float) -> float:
    sign = 1.0 if x >= 0 else -1.0
    x = abs(x)
    t = 1.0 / (1.0 + _P * x)
    y = 1.0 - (((((_A5 * t + _A4) * t) + _A3) * t + _A2) * t + _A1) * t * math.exp(-x * x)
    return sign * y


def normal_cdf(z: float) -> float:
    return 0.5 * (1.0 + erf(z / math.sqrt(2.0)))


def success_rate(stats: Statistics, threshold: float = SUCCESS_THRESHOLD) -> float:
    """
    Percent chance of a readiness score at or above the threshold, treating the
    scores as Normal(mean, std). This is a parametric estimate and drifts from the
    empirical rate when the score distribution is skewed or piled up at 0 or 100.
    """
    mean = stats.readiness_score.mean
    std_dev = stats.readiness_score.std_dev
    if std_dev <= 0:
        return 100.0 if mean >= threshold else 0.0
    rate = (1.0 - normal_cdf((threshold - mean) / std_dev)) * 100.0
    return max(0.0, min(100.0, rate))


def empirical_success_rate(outcomes: Sequence[ScenarioOutcome], threshold: float = SUCCESS_THRESHOLD) -> float:
    if not outcomes:
        return 0.0
    hits = sum(1 for o in outcomes if o.readiness_score >= threshold)
    return hits / len(outcomes) * 100.0


def overall_risk(mean: float, std_dev: float) -> str:
    if mean < 50 or std_dev > 25:
        return "High"
    if mean < 70 or std_dev > 15:
        return "Medium"
    return "Low"


def _tier(value: float, high: float, medium: float, higher_is_riskier: bool) -> str:
    if higher_is_riskier:
        return "High" if value > high else "Medium" if value > medium else "Low"
    return "High" if value < high else "Medium" if value < medium else "Low"


def recommendations(risk: str, std_dev: float) -> List[str]:
    if risk == "High":
        recs = [
            "Significantly increase retirement contributions",
            "Consider extending working years",
            "Review and potentially reduce retirement income expectations",
        ]
    elif risk == "Medium":
        recs = [
            "Moderately increase retirement contributions",
            "Consider more conservative investment strategies",
            "Regularly review and adjust retirement plan",
        ]
    else:
        recs = [
            "Maintain current contribution levels",
            "Consider early retirement options",
            "Explore ways to enhance retirement lifestyle",
        ]

    if std_dev > 15:
        recs.append("Diversify investment portfolio to reduce volatility")
        recs.append("Consider adding more bonds to portfolio")
    return recs


def assess_risk(stats: Statistics, outcomes: Optional[Sequence[ScenarioOutcome]] = None) -> RiskAssessment:
    mean = stats.readiness_score.mean
    std_dev = stats.readiness_score.std_dev
    tier = overall_risk(mean, std_dev)
    return RiskAssessment(
        overall_risk=tier,
        readiness_risk=_tier(mean, high=70, medium=80, higher_is_riskier=False),
        volatility_risk=_tier(std_dev, high=20, medium=10, higher_is_riskier=True),
        success_rate=success_rate(stats),
        recommendations=tuple(recommendations(tier, std_dev)),
        empirical_success_rate=empirical_success_rate(outcomes) if outcomes is not None else None,
    )
