from retire_core.domain.errors import (  # noqa: F401
    CancelledError,
    ComputationError,
    ConfigurationError,
    SimulationError,
    ValidationError,
)
from retire_core.domain.models import (  # noqa: F401
    AssetAllocation,
    CaseSummary,
    ConfidenceIntervals,
    Insight,
    MarketParameters,
    MetricSummary,
    PercentileBand,
    ReturnParams,
    RiskAssessment,
    ScenarioAnalysis,
    ScenarioComparison,
    ScenarioCounts,
    ScenarioDraw,
    ScenarioOutcome,
    ScenarioOverrides,
    SimulationConfig,
    SimulationReport,
    Statistics,
    UserFinancialProfile,
)

__all__ = [
    "AssetAllocation",
    "CancelledError",
    "CaseSummary",
    "ComputationError",
    "ConfidenceIntervals",
    "ConfigurationError",
    "Insight",
    "MarketParameters",
    "MetricSummary",
    "PercentileBand",
    "ReturnParams",
    "RiskAssessment",
    "ScenarioAnalysis",
    "ScenarioComparison",
    "ScenarioCounts",
    "ScenarioDraw",
    "ScenarioOutcome",
    "ScenarioOverrides",
    "SimulationConfig",
    "SimulationError",
    "SimulationReport",
    "Statistics",
    "UserFinancialProfile",
    "ValidationError",
]
