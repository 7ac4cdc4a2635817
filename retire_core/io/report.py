from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Dict, Sequence

import pandas as pd

from retire_core.domain.models import ScenarioOutcome

OUTCOME_COLUMNS = [
    "simulation_id",
    "total_retirement_savings",
    "inflation_adjusted_income",
    "years_of_income_covered",
    "readiness_score",
    "portfolio_return",
    "real_return",
    "stock_return",
    "bond_return",
    "inflation",
]


def save_json(path: Path, payload: Dict[str, Any]) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)
    return path


def outcomes_to_frame(outcomes: Sequence[ScenarioOutcome]) -> pd.DataFrame:
    """One row per scenario, including the market draw that produced it."""
    rows = []
    for o in outcomes:
        rows.append(
            {
                "simulation_id": o.simulation_id,
                "total_retirement_savings": o.total_retirement_savings,
                "inflation_adjusted_income": o.inflation_adjusted_income,
                "years_of_income_covered": o.years_of_income_covered,
                "readiness_score": o.readiness_score,
                "portfolio_return": o.portfolio_return,
                "real_return": o.real_return,
                "stock_return": o.draw.stock_return if o.draw else None,
                "bond_return": o.draw.bond_return if o.draw else None,
                "inflation": o.draw.inflation if o.draw else None,
            }
        )
    return pd.DataFrame(rows, columns=OUTCOME_COLUMNS)


def save_outcomes_csv(path: str | Path, outcomes: Sequence[ScenarioOutcome]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    outcomes_to_frame(outcomes).to_csv(path, index=False)
    return path
