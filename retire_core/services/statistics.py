from __future__ import annotations

from typing import Dict, Iterable, Sequence

import numpy as np

from retire_core.domain.errors import ComputationError
from retire_core.domain.models import (
    PERCENTILE_LABELS,
    ConfidenceIntervals,
    MetricSummary,
    PercentileBand,
    ScenarioOutcome,
    Statistics,
)

# Report metric name -> ScenarioOutcome attribute.
METRICS = {
    "readiness_score": "readiness_score",
    "total_savings": "total_retirement_savings",
    "portfolio_return": "portfolio_return",
}

REQUIRED_PERCENTILES = tuple(p for p, _ in PERCENTILE_LABELS)


def metric_values(outcomes: Sequence[ScenarioOutcome], metric: str) -> np.ndarray:
    try:
        attr = METRICS[metric]
    except KeyError:
        raise ValueError(f"Unknown metric {metric!r}; expected one of {sorted(METRICS)}") from None
    if not outcomes:
        raise ComputationError("No scenario outcomes to aggregate")
    return np.array([getattr(o, attr) for o in outcomes], dtype=float)


def describe(values: np.ndarray) -> MetricSummary:
    """Mean, population std dev, median, min and max of a non-empty sample."""
    if values.size == 0:
        raise ComputationError("Cannot describe an empty sample")
    return MetricSummary(
        mean=float(np.mean(values)),
        median=float(np.median(values)),
        std_dev=float(np.std(values)),
        min=float(np.min(values)),
        max=float(np.max(values)),
    )


def summarize(outcomes: Sequence[ScenarioOutcome]) -> Statistics:
    return Statistics(
        readiness_score=describe(metric_values(outcomes, "readiness_score")),
        total_savings=describe(metric_values(outcomes, "total_savings")),
        portfolio_return=describe(metric_values(outcomes, "portfolio_return")),
        count=len(outcomes),
    )


def percentile(values: np.ndarray, p: float) -> float:
    """
    Linear interpolation between the two nearest ranks at index p/100 * (n - 1).
    """
    if values.size == 0:
        raise ComputationError("Cannot take a percentile of an empty sample")
    if not 0 <= p <= 100:
        raise ValueError(f"Percentile must be within [0, 100], got {p}")
    return float(np.percentile(values, p, method="linear"))


def percentiles(
    outcomes: Sequence[ScenarioOutcome],
    metric: str,
    ps: Iterable[float] = REQUIRED_PERCENTILES,
) -> Dict[float, float]:
    values = np.sort(metric_values(outcomes, metric))
    return {p: percentile(values, p) for p in ps}


def confidence_intervals(outcomes: Sequence[ScenarioOutcome]) -> ConfidenceIntervals:
    return ConfidenceIntervals(
        readiness_score=PercentileBand.from_mapping(percentiles(outcomes, "readiness_score")),
        total_savings=PercentileBand.from_mapping(percentiles(outcomes, "total_savings")),
    )
