import json
from pathlib import Path

import pytest

from lp_tableau.schemas import Problem
from lp_tableau.server import (
    diagnose_infeasibility,
    parse_natural_language,
    render_trace,
    solve_linear_program,
    verify_with_highs,
)


def load_example(name: str) -> Problem:
    data = json.loads(Path(__file__).parent.parent.joinpath("examples", name).read_text())
    return Problem.model_validate(data)


def test_solve_tool_returns_json_payload():
    payload = solve_linear_program(load_example("diet_min.json"), method="big_m")

    assert payload["status"] == "optimal"
    assert payload["objective_value"] == pytest.approx(9.6, rel=1e-6)
    assert payload["steps"][-1]["kind"] == "optimal"
    json.dumps(payload)


def test_parse_tool_reports_errors():
    assert parse_natural_language("maximize 3x1 subject to x1 <= 4")["objective"] == [3.0]
    assert "error" in parse_natural_language("nonsense")


def test_diagnose_tool():
    report = diagnose_infeasibility(load_example("infeasible.json"))
    assert report["conflicting_constraints"] == ["lower", "upper"]
    assert "error" in diagnose_infeasibility(load_example("infeasible.json"), method="simplex")


def test_verify_tool_agrees_with_highs():
    report = verify_with_highs(load_example("mixed_relations.json"))

    assert report["agrees"]
    assert "steps" not in report["result"]


def test_render_tool():
    text = render_trace(load_example("classic_max.json"))
    assert "Z = 36" in text
