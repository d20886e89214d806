import logging
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..schemas import (
    ColumnRole,
    Constraint,
    Direction,
    Method,
    Problem,
    SolveOptions,
    SolveResult,
    TraceStep,
)
from .pivot import drive_out_artificials, run_pivots
from .tableau import Tableau, build_tableau, restore_objective

logger = logging.getLogger(__name__)

GENERIC_ERROR = "Internal calculation error."


def solve(problem: Problem, method: Method = "simplex", options: Optional[SolveOptions] = None) -> SolveResult:
    """
    Solve ``problem`` with the tableau simplex variant named by ``method``.

    Never raises: unexpected faults come back as status "error" with an empty
    trace.  Two-phase and Big-M treat an artificial still worth more than
    ``options.feasibility_tol`` as proof of infeasibility.
    """

    opts = options or SolveOptions()
    try:
        result = _solve(problem, method, opts)
    except Exception:
        logger.exception("Tableau solve failed (method=%s)", method)
        return SolveResult(status="error", steps=[], message=GENERIC_ERROR)

    logger.info(
        "Solved %s problem with %s: status=%s iterations=%d",
        problem.direction,
        method,
        result.status,
        result.iterations,
    )
    return result


def solve_values(
    method: Method,
    direction: Direction,
    objective: Sequence[float],
    constraints: Sequence[Constraint | Mapping[str, Any]],
    options: Optional[SolveOptions] = None,
) -> SolveResult:
    """Flat-argument form used by form front ends.  Shape errors become status "error"."""

    try:
        problem = Problem(direction=direction, objective=list(objective), constraints=list(constraints))
    except ValueError as exc:
        logger.warning("Rejected malformed problem: %s", exc)
        return SolveResult(status="error", steps=[], message=GENERIC_ERROR)
    return solve(problem, method, options)


def _solve(problem: Problem, method: Method, opts: SolveOptions) -> SolveResult:
    tableau = build_tableau(problem, method, opts)
    steps: List[TraceStep] = []
    iterations = 0

    if method == "two_phase" and tableau.artificial:
        phase1 = run_pivots(tableau, phase=1, opts=opts)
        steps.extend(phase1.steps)
        iterations += phase1.iterations
        if phase1.status != "optimal":
            return _halt("unbounded", steps, iterations, _unbounded_message(phase1.hit_limit, "Phase 1"))

        infeasibility = float(tableau.matrix[0, tableau.rhs_col])
        if abs(infeasibility) > opts.feasibility_tol:
            return _halt(
                "infeasible",
                steps,
                iterations,
                f"Infeasible: phase 1 optimum is {abs(infeasibility):.6g}, artificial variables cannot reach zero.",
            )

        tableau = restore_objective(drive_out_artificials(tableau, opts.tol), opts.tol)
        phase2 = run_pivots(
            tableau,
            phase=2,
            opts=opts,
            start_index=len(steps) + 1,
            blocked=tableau.artificial,
        )
        steps.extend(phase2.steps)
        iterations += phase2.iterations
        if phase2.status != "optimal":
            return _halt(
                phase2.status,
                steps,
                iterations,
                _unbounded_message(phase2.hit_limit, "Phase 2"),
                feasible_basis=True,
            )

    elif method == "big_m" and tableau.artificial:
        outcome = run_pivots(tableau, phase=0, opts=opts)
        steps.extend(outcome.steps)
        iterations += outcome.iterations
        if outcome.status != "optimal":
            return _halt(outcome.status, steps, iterations, _unbounded_message(outcome.hit_limit))

        residual = _basic_artificials(tableau, opts.feasibility_tol)
        if residual:
            return _halt(
                "infeasible",
                steps,
                iterations,
                f"Infeasible: artificial variable(s) {', '.join(residual)} remain positive in the basis.",
            )

    else:
        if tableau.artificial:
            logger.warning(
                "Standard simplex started with %d artificial column(s); result is not guaranteed feasible.",
                len(tableau.artificial),
            )
        outcome = run_pivots(tableau, phase=0, opts=opts)
        steps.extend(outcome.steps)
        iterations += outcome.iterations
        if outcome.status != "optimal":
            return _halt(
                outcome.status,
                steps,
                iterations,
                _unbounded_message(outcome.hit_limit),
                feasible_basis=not tableau.artificial,
            )

    values = _extract_values(tableau)
    objective = float(tableau.matrix[0, tableau.rhs_col])
    if problem.direction == "min":
        objective = -objective

    return SolveResult(
        status="optimal",
        steps=steps,
        values=values,
        objective_value=_clean(objective),
        iterations=iterations,
        message="",
        feasible_basis=not _basic_artificials(tableau, opts.feasibility_tol),
    )


def _extract_values(tableau: Tableau) -> Dict[str, float]:
    values: Dict[str, float] = {
        col.name: 0.0
        for col in tableau.columns
        if col.role not in (ColumnRole.OBJECTIVE, ColumnRole.RHS)
    }
    for row, col in enumerate(tableau.basis, start=1):
        values[tableau.columns[col].name] = _clean(float(tableau.matrix[row, tableau.rhs_col]))
    return values


def _basic_artificials(tableau: Tableau, feasibility_tol: float) -> List[str]:
    residual: List[str] = []
    for row, col in enumerate(tableau.basis, start=1):
        if tableau.columns[col].role is ColumnRole.ARTIFICIAL and tableau.matrix[row, tableau.rhs_col] > feasibility_tol:
            residual.append(tableau.columns[col].name)
    return residual


def _halt(
    status: str,
    steps: List[TraceStep],
    iterations: int,
    message: str,
    feasible_basis: bool = False,
) -> SolveResult:
    return SolveResult(
        status=status,
        steps=steps,
        values={},
        objective_value=None,
        iterations=iterations,
        message=message,
        feasible_basis=feasible_basis,
    )


def _unbounded_message(hit_limit: bool, phase: str = "") -> str:
    prefix = f"{phase}: " if phase else ""
    if hit_limit:
        return f"{prefix}iteration limit reached before convergence; treated as unbounded."
    return f"{prefix}objective can be improved without limit (unbounded)."


def _clean(value: float) -> float:
    if abs(value) < 1e-12:
        return 0.0
    return value
