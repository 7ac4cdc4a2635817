import json
import logging
from pathlib import Path

import pandas as pd
from typer.testing import CliRunner

from retire_core.cli import app


runner = CliRunner()

DATA = Path(__file__).parent / "data"


def test_cli_simulate_from_config(tmp_path: Path):
    report_path = tmp_path / "report.json"
    csv_path = tmp_path / "outcomes.csv"

    result = runner.invoke(
        app,
        [
            "simulate",
            "--config",
            str(DATA / "profile.json"),
            "--simulations",
            "200",
            "--workers",
            "2",
            "--out",
            str(report_path),
            "--outcomes-csv",
            str(csv_path),
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert report_path.exists()

    payload = json.loads(report_path.read_text())
    assert payload["totalSimulations"] == 200
    assert "riskAssessment" in payload
    assert payload["riskAssessment"]["overallRisk"] in {"Low", "Medium", "High"}
    assert set(payload["confidenceIntervals"]["readinessScore"]) == {"5th", "25th", "50th", "75th", "95th"}

    frame = pd.read_csv(csv_path)
    assert len(frame) == 200


def test_cli_simulate_from_options(tmp_path: Path):
    report_path = tmp_path / "report.json"
    result = runner.invoke(
        app,
        [
            "simulate",
            "--current-savings",
            "50000",
            "--monthly-contribution",
            "500",
            "--years-to-retirement",
            "25",
            "--target-income",
            "40000",
            "--stocks",
            "0.6",
            "--simulations",
            "100",
            "--seed",
            "3",
            "--out",
            str(report_path),
        ],
    )
    assert result.exit_code == 0, result.stdout
    assert f"Simulation report written to {report_path}" in result.stdout
    payload = json.loads(report_path.read_text())
    assert payload["totalSimulations"] == 100
    assert payload["marketParams"]["correlation"] == 0.3


def test_cli_simulate_requires_profile():
    result = runner.invoke(app, ["simulate", "--current-savings", "1000"])
    assert result.exit_code != 0


def test_cli_simulate_rejects_bad_allocation():
    result = runner.invoke(
        app,
        ["simulate", "--config", str(DATA / "profile.json"), "--stocks", "0.5", "--bonds", "0.4"],
    )
    assert result.exit_code == 1


def test_cli_compare_writes_deltas(tmp_path: Path):
    out_path = tmp_path / "comparison.json"
    result = runner.invoke(
        app,
        [
            "compare",
            "--config",
            str(DATA / "profile.json"),
            "--scenarios",
            str(DATA / "scenarios.json"),
            "--out",
            str(out_path),
        ],
    )
    assert result.exit_code == 0, result.stdout
    payload = json.loads(out_path.read_text())
    assert set(payload["scenarios"]) == {"save_more", "bear_market", "conservative"}
    assert payload["delta"]["save_more"]["readinessScoreMean"] > 0


def test_cli_leaves_logging_as_it_found_it():
    root_handlers = list(logging.getLogger().handlers)
    package_logger = logging.getLogger("retire_core")

    result = runner.invoke(
        app,
        ["simulate", "--config", str(DATA / "profile.json"), "--simulations", "50", "--verbose"],
    )
    assert result.exit_code == 0, result.stdout
    assert logging.getLogger().handlers == root_handlers
    assert package_logger.handlers == []
    assert package_logger.propagate is True


def test_cli_missing_config_file_exits_cleanly(tmp_path: Path):
    result = runner.invoke(app, ["simulate", "--config", str(tmp_path / "nope.json")])
    assert result.exit_code == 1
    assert not isinstance(result.exception, FileNotFoundError)


def test_cli_malformed_config_file_exits_cleanly(tmp_path: Path):
    broken = tmp_path / "broken.json"
    broken.write_text("{not json")
    result = runner.invoke(
        app,
        ["compare", "--config", str(broken), "--scenarios", str(DATA / "scenarios.json")],
    )
    assert result.exit_code == 1
    assert not isinstance(result.exception, json.JSONDecodeError)
