import logging
from dataclasses import dataclass, field
from typing import Collection, List, Literal, Optional, Tuple

from ..schemas import SolveOptions, StepKind, TableauRow, TraceStep
from .tableau import OBJECTIVE_COL, Tableau

logger = logging.getLogger(__name__)

PivotStatus = Literal["optimal", "unbounded"]


@dataclass
class PivotOutcome:
    status: PivotStatus
    steps: List[TraceStep] = field(default_factory=list)
    iterations: int = 0
    hit_limit: bool = False


def run_pivots(
    tableau: Tableau,
    phase: int,
    opts: SolveOptions,
    start_index: int = 1,
    blocked: Optional[Collection[int]] = None,
) -> PivotOutcome:
    """
    Dantzig tableau simplex on ``tableau`` (mutated in place).
    Returns the recorded steps; the last one is always the single terminal step
    (optimal, unbounded or iteration limit).  Hitting ``opts.max_iters`` is
    reported as unbounded.  Columns in ``blocked`` never enter the basis.
    """

    blocked = set() if blocked is None else set(blocked)
    tol = opts.tol
    matrix = tableau.matrix
    steps: List[TraceStep] = []
    iterations = 0

    def record(kind: StepKind, description: str, rows: List[TableauRow], **extra) -> None:
        steps.append(
            TraceStep(
                step_index=start_index + len(steps),
                kind=kind,
                description=description,
                headers=tableau.headers,
                rows=rows,
                basic_vars=tableau.basic_names(),
                phase=phase,
                is_phase1=phase == 1,
                **extra,
            )
        )

    while iterations < opts.max_iters:
        rows = _snapshot(tableau, phase)

        entering = _select_entering(tableau, tol, blocked)
        if entering is None:
            label = f"Phase {phase}" if phase > 0 else "Final"
            record("optimal", f"Optimal solution found ({label}).", rows)
            logger.debug("Phase %d optimal after %d pivot(s)", phase, iterations)
            return PivotOutcome(status="optimal", steps=steps, iterations=iterations)

        entering_name = tableau.columns[entering].name
        leaving = _select_leaving(tableau, entering, tol)
        if leaving is None:
            record(
                "unbounded",
                f"Unbounded solution detected: entering variable {entering_name} has no positive pivot.",
                rows,
                pivot_col=entering,
                entering_var=entering_name,
            )
            logger.debug("Phase %d unbounded on column %s", phase, entering_name)
            return PivotOutcome(status="unbounded", steps=steps, iterations=iterations)

        leaving_name = tableau.columns[tableau.basis[leaving - 1]].name
        record(
            "iteration",
            f"Iteration {iterations + 1}: {entering_name} enters, {leaving_name} leaves. "
            f"Pivot at row {leaving}, column {entering}.",
            rows,
            pivot_row=leaving,
            pivot_col=entering,
            entering_var=entering_name,
            leaving_var=leaving_name,
        )
        logger.debug(
            "Phase %d pivot %d: %s enters, %s leaves (row %d, col %d, value %.6g)",
            phase,
            iterations + 1,
            entering_name,
            leaving_name,
            leaving,
            entering,
            matrix[leaving, entering],
        )

        pivot(tableau, leaving, entering, tol)
        iterations += 1

    record(
        "iteration_limit",
        f"Iteration limit of {opts.max_iters} reached without convergence; treated as unbounded.",
        _snapshot(tableau, phase),
    )
    logger.debug("Phase %d stopped at iteration limit %d", phase, opts.max_iters)
    return PivotOutcome(status="unbounded", steps=steps, iterations=iterations, hit_limit=True)


def pivot(tableau: Tableau, row: int, col: int, tol: float = 1e-9) -> None:
    """Row-reduce on cell (row, col) and make ``col`` basic in ``row``."""

    matrix = tableau.matrix
    pivot_value = matrix[row, col]
    if abs(pivot_value) <= tol:
        raise ZeroDivisionError(f"Pivot value {pivot_value!r} at ({row}, {col}) is numerically zero.")

    matrix[row] = matrix[row] / pivot_value
    for r in range(matrix.shape[0]):
        if r == row:
            continue
        factor = matrix[r, col]
        if abs(factor) > tol:
            matrix[r] -= factor * matrix[row]
    tableau.basis[row - 1] = col


def _select_entering(tableau: Tableau, tol: float, blocked: Collection[int]) -> Optional[int]:
    objective = tableau.matrix[0]
    best_value = -tol
    entering: Optional[int] = None
    for col in range(OBJECTIVE_COL + 1, tableau.rhs_col):
        if col in blocked:
            continue
        if objective[col] < best_value:
            best_value = objective[col]
            entering = col
    return entering


def _select_leaving(tableau: Tableau, entering: int, tol: float) -> Optional[int]:
    # First row wins on ties.
    matrix = tableau.matrix
    rhs_col = tableau.rhs_col
    best: Optional[Tuple[float, int]] = None
    for row in range(1, matrix.shape[0]):
        coef = matrix[row, entering]
        if coef > tol:
            ratio = matrix[row, rhs_col] / coef
            if best is None or ratio < best[0]:
                best = (ratio, row)
    return None if best is None else best[1]


def _snapshot(tableau: Tableau, phase: int) -> List[TableauRow]:
    objective_label = "W" if phase == 1 else "Z"
    rows: List[TableauRow] = []
    for r, values in enumerate(tableau.matrix):
        label = objective_label if r == 0 else tableau.columns[tableau.basis[r - 1]].name
        coefficients = [float(v) for v in values]
        rows.append(TableauRow(basic_var=label, coefficients=coefficients, rhs=coefficients[-1]))
    return rows


def drive_out_artificials(tableau: Tableau, tol: float = 1e-9) -> Tableau:
    """
    Copy of a finished phase-1 tableau with every artificial still basic at
    zero level swapped for a non-artificial column of its row.  Rows with no
    such column are redundant and keep their artificial.
    """

    result = tableau.copy()
    artificial = set(result.artificial)
    for row in range(1, result.matrix.shape[0]):
        if result.basis[row - 1] not in artificial:
            continue
        for col in range(OBJECTIVE_COL + 1, result.rhs_col):
            if col in artificial or abs(result.matrix[row, col]) <= tol:
                continue
            logger.debug(
                "Driving artificial %s out of row %d in favour of %s",
                result.columns[result.basis[row - 1]].name,
                row,
                result.columns[col].name,
            )
            pivot(result, row, col, tol)
            break
    return result
