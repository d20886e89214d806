import json
from pathlib import Path

import pytest

from lp_tableau.schemas import Constraint, Problem, SolveOptions
from lp_tableau.lp.simplex import GENERIC_ERROR, solve, solve_values


def load_example(name: str) -> Problem:
    data = json.loads(Path(__file__).parent.parent.joinpath("examples", name).read_text())
    return Problem.model_validate(data)


def make_unbounded() -> Problem:
    return Problem(
        direction="max",
        objective=[1.0],
        constraints=[Constraint(id="c1", coefficients=[1.0], relation=">=", rhs=0.0)],
    )


def test_standard_simplex_solves_classic_problem():
    solution = solve(load_example("classic_max.json"), "simplex")

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(36.0, rel=1e-9)
    assert solution.values["x1"] == pytest.approx(2.0, rel=1e-9)
    assert solution.values["x2"] == pytest.approx(6.0, rel=1e-9)
    assert solution.values["s1"] == pytest.approx(2.0, rel=1e-9)
    assert solution.values["s2"] == 0.0
    assert solution.values["s3"] == 0.0
    assert solution.iterations == 2


def test_classic_trace_names_pivots():
    solution = solve(load_example("classic_max.json"), "simplex")

    assert [step.kind for step in solution.steps] == ["iteration", "iteration", "optimal"]
    first = solution.steps[0]
    assert first.entering_var == "x2"
    assert first.leaving_var == "s2"
    assert (first.pivot_row, first.pivot_col) == (2, 2)
    assert first.basic_vars == ["s1", "s2", "s3"]
    assert first.rows[0].basic_var == "Z"
    assert solution.steps[1].entering_var == "x1"
    assert solution.steps[1].leaving_var == "s3"
    assert "Optimal" in solution.steps[-1].description
    assert [step.step_index for step in solution.steps] == [1, 2, 3]


@pytest.mark.parametrize("method", ["big_m", "two_phase"])
def test_artificial_methods_solve_min_problem(method):
    solution = solve(load_example("diet_min.json"), method)

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(9.6, rel=1e-6)
    assert solution.values["x1"] == pytest.approx(0.8, rel=1e-6)
    assert solution.values["x2"] == pytest.approx(3.6, rel=1e-6)


@pytest.mark.parametrize("method", ["big_m", "two_phase"])
def test_mixed_relations(method):
    solution = solve(load_example("mixed_relations.json"), method)

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(50.0, rel=1e-6)
    assert solution.values["x1"] == pytest.approx(10.0, abs=1e-6)
    assert solution.values["x2"] == pytest.approx(5.0, abs=1e-6)
    assert solution.values["x3"] == pytest.approx(15.0, abs=1e-6)


def test_big_m_and_two_phase_agree_on_equalities():
    problem = Problem(
        direction="min",
        objective=[1.0, 1.0],
        constraints=[
            Constraint(id="balance", coefficients=[1.0, 1.0], relation="=", rhs=4.0),
            Constraint(id="symmetry", coefficients=[1.0, -1.0], relation="=", rhs=0.0),
        ],
    )
    big_m = solve(problem, "big_m")
    two_phase = solve(problem, "two_phase")

    assert big_m.status == two_phase.status == "optimal"
    assert big_m.objective_value == pytest.approx(two_phase.objective_value, abs=1e-6)
    assert two_phase.values["x1"] == pytest.approx(2.0, abs=1e-6)
    assert two_phase.values["x2"] == pytest.approx(2.0, abs=1e-6)


def test_two_phase_trace_spans_both_phases():
    solution = solve(load_example("diet_min.json"), "two_phase")

    phases = [step.phase for step in solution.steps]
    assert phases[0] == 1
    assert phases[-1] == 2
    assert phases == sorted(phases)
    assert solution.steps[0].rows[0].basic_var == "W"
    assert solution.steps[0].is_phase1
    assert solution.steps[-1].rows[0].basic_var == "Z"
    assert [s.step_index for s in solution.steps] == list(range(1, len(solution.steps) + 1))
    terminals = [s for s in solution.steps if s.is_terminal]
    assert [s.phase for s in terminals] == [1, 2]


def test_min_equals_negated_max():
    base = load_example("diet_min.json")
    flipped = base.model_copy(update={"direction": "max", "objective": [-c for c in base.objective]})

    for method in ("big_m", "two_phase"):
        z_min = solve(base, method).objective_value
        z_max = solve(flipped, method).objective_value
        assert z_min == pytest.approx(-z_max, abs=1e-9)


def test_min_with_standard_simplex():
    problem = Problem(
        direction="min",
        objective=[-1.0, -2.0],
        constraints=[Constraint(id="c1", coefficients=[1.0, 1.0], relation="<=", rhs=4.0)],
    )
    solution = solve(problem, "simplex")

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(-8.0)
    assert solution.values["x2"] == pytest.approx(4.0)


@pytest.mark.parametrize("method", ["big_m", "two_phase"])
def test_infeasible_system(method):
    solution = solve(load_example("infeasible.json"), method)

    assert solution.status == "infeasible"
    assert solution.values == {}
    assert solution.objective_value is None
    assert solution.steps
    assert "infeasible" in solution.message.lower()


@pytest.mark.parametrize("method", ["simplex", "big_m", "two_phase"])
def test_unbounded_system(method):
    solution = solve(make_unbounded(), method)

    assert solution.status == "unbounded"
    last = solution.steps[-1]
    assert last.kind == "unbounded"
    assert last.entering_var == "e1"
    assert "unbounded" in last.description.lower()


def test_unbounded_le_system():
    problem = Problem(
        direction="max",
        objective=[1.0, 1.0],
        constraints=[Constraint(id="c1", coefficients=[1.0, -1.0], relation="<=", rhs=1.0)],
    )
    solution = solve(problem, "simplex")

    assert solution.status == "unbounded"
    assert solution.steps[-1].entering_var == "x2"


def test_iteration_limit_is_reported_as_unbounded():
    solution = solve(load_example("classic_max.json"), "simplex", SolveOptions(max_iters=1))

    assert solution.status == "unbounded"
    assert "iteration limit" in solution.message.lower()
    assert [step.kind for step in solution.steps] == ["iteration", "iteration_limit"]
    assert "unbounded" in solution.steps[-1].description.lower()


def test_solve_is_deterministic():
    problem = load_example("mixed_relations.json")
    first = solve(problem, "two_phase")
    second = solve(problem, "two_phase")

    assert first.status == second.status
    assert len(first.steps) == len(second.steps)
    assert first.values == second.values
    assert first.model_dump() == second.model_dump()


def test_malformed_problem_becomes_error():
    problem = Problem.model_construct(
        direction="max",
        objective=[1.0, 2.0],
        constraints=[Constraint(id="bad", coefficients=[1.0, 2.0, 3.0], relation="<=", rhs=1.0)],
    )
    solution = solve(problem, "simplex")

    assert solution.status == "error"
    assert solution.steps == []
    assert solution.message == GENERIC_ERROR


def test_solve_values_accepts_plain_mappings():
    solution = solve_values(
        "simplex",
        "max",
        [3.0, 5.0],
        [
            {"id": "c1", "coefficients": [1.0, 0.0], "relation": "<=", "rhs": 4.0},
            {"id": "c2", "coefficients": [0.0, 2.0], "relation": "<=", "rhs": 12.0},
            {"id": "c3", "coefficients": [3.0, 2.0], "relation": "<=", "rhs": 18.0},
        ],
    )

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(36.0)


def test_solve_values_rejects_shape_mismatch():
    solution = solve_values(
        "big_m",
        "min",
        [1.0, 1.0],
        [{"id": "c1", "coefficients": [1.0], "relation": ">=", "rhs": 1.0}],
    )

    assert solution.status == "error"
    assert solution.steps == []


def test_negative_rhs_is_standardised():
    # x1 + x2 <= 5 and -x1 <= -2  (i.e. x1 >= 2); maximise x2
    problem = Problem(
        direction="max",
        objective=[0.0, 1.0],
        constraints=[
            Constraint(id="cap", coefficients=[1.0, 1.0], relation="<=", rhs=5.0),
            Constraint(id="floor", coefficients=[-1.0, 0.0], relation="<=", rhs=-2.0),
        ],
    )
    solution = solve(problem, "two_phase")

    assert solution.status == "optimal"
    assert solution.objective_value == pytest.approx(3.0)
    assert solution.values["x1"] == pytest.approx(2.0)


def test_feasible_basis_flag():
    assert solve(load_example("classic_max.json"), "simplex").feasible_basis
    assert solve(load_example("diet_min.json"), "big_m").feasible_basis
    assert not solve(load_example("infeasible.json"), "two_phase").feasible_basis
    assert not solve(load_example("infeasible.json"), "big_m").feasible_basis

    # two-phase proves feasibility before phase 2 finds the unbounded ray; Big-M cannot
    assert solve(make_unbounded(), "two_phase").feasible_basis
    assert not solve(make_unbounded(), "big_m").feasible_basis
