from __future__ import annotations

import dataclasses
from typing import Any, Dict, Mapping, Optional, Tuple, Union

DEFAULT_SIMULATIONS = 10_000
MAX_SIMULATIONS = 50_000
DEFAULT_BATCH_SIZE = 1_000

PERCENTILE_LABELS: Tuple[Tuple[int, str], ...] = (
    (5, "5th"),
    (25, "25th"),
    (50, "50th"),
    (75, "75th"),
    (95, "95th"),
)


@dataclasses.dataclass(frozen=True)
class ReturnParams:
    mean: float
    std_dev: float

    def to_dict(self) -> Dict[str, float]:
        return {"mean": self.mean, "stdDev": self.std_dev}


@dataclasses.dataclass(frozen=True)
class MarketParameters:
    equity_return: ReturnParams = dataclasses.field(default_factory=lambda: ReturnParams(0.07, 0.15))
    bond_return: ReturnParams = dataclasses.field(default_factory=lambda: ReturnParams(0.04, 0.05))
    inflation: ReturnParams = dataclasses.field(default_factory=lambda: ReturnParams(0.025, 0.01))
    correlation: float = 0.3

    def to_dict(self) -> Dict[str, Any]:
        return {
            "stockReturn": self.equity_return.to_dict(),
            "bondReturn": self.bond_return.to_dict(),
            "inflation": self.inflation.to_dict(),
            "correlation": self.correlation,
        }


@dataclasses.dataclass(frozen=True)
class AssetAllocation:
    stocks: float = 0.7
    bonds: float = 0.3


@dataclasses.dataclass(frozen=True)
class UserFinancialProfile:
    current_savings: float
    monthly_contribution: float
    years_to_retirement: float
    target_retirement_income: float
    asset_allocation: AssetAllocation = dataclasses.field(default_factory=AssetAllocation)


@dataclasses.dataclass(frozen=True)
class ScenarioDraw:
    stock_return: float
    bond_return: float
    inflation: float
    real_return: float
    bond_real_return: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "stockReturn": self.stock_return,
            "bondReturn": self.bond_return,
            "inflation": self.inflation,
            "realReturn": self.real_return,
            "bondRealReturn": self.bond_real_return,
        }


@dataclasses.dataclass(frozen=True)
class ScenarioOutcome:
    simulation_id: int
    total_retirement_savings: float
    inflation_adjusted_income: float
    years_of_income_covered: float
    readiness_score: float
    portfolio_return: float
    real_return: float
    draw: Optional[ScenarioDraw] = None


MarketOverrides = Union[MarketParameters, Mapping[str, Any], None]


@dataclasses.dataclass(frozen=True)
class SimulationConfig:
    user_data: UserFinancialProfile
    simulations: int = DEFAULT_SIMULATIONS
    market_params: MarketOverrides = None
    batch_size: int = DEFAULT_BATCH_SIZE
    max_simulations: int = MAX_SIMULATIONS
    max_workers: int = 1
    seed: Optional[int] = None


@dataclasses.dataclass(frozen=True)
class ScenarioOverrides:
    """Changes applied on top of a base SimulationConfig for a what-if run."""

    profile: Dict[str, float] = dataclasses.field(default_factory=dict)  # UserFinancialProfile field names
    asset_allocation: Optional[AssetAllocation] = None
    market_params: Optional[Mapping[str, Any]] = None
    simulations: Optional[int] = None


@dataclasses.dataclass(frozen=True)
class MetricSummary:
    mean: float
    median: float
    std_dev: float
    min: float
    max: float

    def to_dict(self) -> Dict[str, float]:
        return {
            "mean": self.mean,
            "median": self.median,
            "stdDev": self.std_dev,
            "min": self.min,
            "max": self.max,
        }


@dataclasses.dataclass(frozen=True)
class Statistics:
    readiness_score: MetricSummary
    total_savings: MetricSummary
    portfolio_return: MetricSummary
    count: int

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            "readinessScore": self.readiness_score.to_dict(),
            "totalSavings": self.total_savings.to_dict(),
            "portfolioReturn": self.portfolio_return.to_dict(),
        }


@dataclasses.dataclass(frozen=True)
class PercentileBand:
    p5: float
    p25: float
    p50: float
    p75: float
    p95: float

    @classmethod
    def from_mapping(cls, values: Mapping[float, float]) -> "PercentileBand":
        return cls(
            p5=values[5],
            p25=values[25],
            p50=values[50],
            p75=values[75],
            p95=values[95],
        )

    def to_dict(self) -> Dict[str, float]:
        return {label: getattr(self, f"p{p}") for p, label in PERCENTILE_LABELS}


@dataclasses.dataclass(frozen=True)
class ConfidenceIntervals:
    readiness_score: PercentileBand
    total_savings: PercentileBand

    def to_dict(self) -> Dict[str, Dict[str, float]]:
        return {
            "readinessScore": self.readiness_score.to_dict(),
            "totalSavings": self.total_savings.to_dict(),
        }


@dataclasses.dataclass(frozen=True)
class RiskAssessment:
    overall_risk: str
    readiness_risk: str
    volatility_risk: str
    success_rate: float
    recommendations: Tuple[str, ...]
    empirical_success_rate: Optional[float] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "overallRisk": self.overall_risk,
            "readinessRisk": self.readiness_risk,
            "volatilityRisk": self.volatility_risk,
            "successRate": self.success_rate,
            "empiricalSuccessRate": self.empirical_success_rate,
            "recommendations": list(self.recommendations),
        }


@dataclasses.dataclass(frozen=True)
class CaseSummary:
    simulation_id: int
    readiness_score: float
    total_savings: float
    portfolio_return: float
    scenario: Optional[ScenarioDraw]

    @classmethod
    def from_outcome(cls, outcome: ScenarioOutcome) -> "CaseSummary":
        return cls(
            simulation_id=outcome.simulation_id,
            readiness_score=outcome.readiness_score,
            total_savings=outcome.total_retirement_savings,
            portfolio_return=outcome.portfolio_return,
            scenario=outcome.draw,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "simulationId": self.simulation_id,
            "readinessScore": self.readiness_score,
            "totalSavings": self.total_savings,
            "portfolioReturn": self.portfolio_return,
            "scenario": self.scenario.to_dict() if self.scenario else None,
        }


@dataclasses.dataclass(frozen=True)
class ScenarioCounts:
    excellent: int
    good: int
    moderate: int
    poor: int

    def to_dict(self) -> Dict[str, int]:
        return dataclasses.asdict(self)


@dataclasses.dataclass(frozen=True)
class ScenarioAnalysis:
    best_case: CaseSummary
    worst_case: CaseSummary
    scenario_counts: ScenarioCounts

    def to_dict(self) -> Dict[str, Any]:
        return {
            "bestCase": self.best_case.to_dict(),
            "worstCase": self.worst_case.to_dict(),
            "scenarioCounts": self.scenario_counts.to_dict(),
        }


@dataclasses.dataclass(frozen=True)
class Insight:
    kind: str  # "success", "warning", "danger" or "info"
    title: str
    message: str
    action: str

    def to_dict(self) -> Dict[str, str]:
        return {"type": self.kind, "title": self.title, "message": self.message, "action": self.action}


@dataclasses.dataclass(frozen=True)
class SimulationReport:
    total_simulations: int
    statistics: Statistics
    confidence_intervals: ConfidenceIntervals
    risk_assessment: RiskAssessment
    scenario_analysis: ScenarioAnalysis
    insights: Tuple[Insight, ...]
    excluded_simulations: int = 0
    market_params: Optional[MarketParameters] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalSimulations": self.total_simulations,
            "excludedSimulations": self.excluded_simulations,
            "statistics": self.statistics.to_dict(),
            "confidenceIntervals": self.confidence_intervals.to_dict(),
            "riskAssessment": self.risk_assessment.to_dict(),
            "scenarioAnalysis": self.scenario_analysis.to_dict(),
            "insights": [i.to_dict() for i in self.insights],
            "marketParams": self.market_params.to_dict() if self.market_params else None,
        }


@dataclasses.dataclass(frozen=True)
class ScenarioComparison:
    base: SimulationReport
    scenarios: Dict[str, SimulationReport]
    delta: Dict[str, Dict[str, float]]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "base": self.base.to_dict(),
            "scenarios": {name: r.to_dict() for name, r in self.scenarios.items()},
            "delta": self.delta,
        }


