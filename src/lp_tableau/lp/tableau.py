import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Tuple

import numpy as np

from ..schemas import Column, ColumnRole, Constraint, Method, Problem, SolveOptions

logger = logging.getLogger(__name__)

OBJECTIVE_COL = 0


@dataclass
class Tableau:
    """Working tableau: row 0 is the objective row, last column is the RHS."""

    matrix: np.ndarray
    columns: List[Column]
    basis: List[int]
    artificial: List[int] = field(default_factory=list)
    saved_objective: Optional[np.ndarray] = None

    @property
    def headers(self) -> List[str]:
        return [col.name for col in self.columns]

    @property
    def rhs_col(self) -> int:
        return len(self.columns) - 1

    def basic_names(self) -> List[str]:
        return [self.columns[idx].name for idx in self.basis]

    def copy(self) -> "Tableau":
        return Tableau(
            matrix=self.matrix.copy(),
            columns=list(self.columns),
            basis=list(self.basis),
            artificial=list(self.artificial),
            saved_objective=None if self.saved_objective is None else self.saved_objective.copy(),
        )


def build_tableau(problem: Problem, method: Method, opts: SolveOptions) -> Tableau:
    """
    Convert a Problem into an initial tableau in canonical form.
    Columns are laid out as Z, decision, slack, surplus, artificial, RHS and the
    solver always maximises: MIN problems keep their objective coefficients
    unchanged in row 0, MAX problems store them negated.

    Headers follow the standardised relations: a row with a negative RHS is
    negated first, so ``x1 - 2x2 <= -3`` gets surplus and artificial columns
    (``e1``, ``a1``) rather than a slack.
    """

    rows = [_standardise(cons) for cons in problem.constraints]
    n = problem.num_vars

    columns: List[Column] = [Column(name="Z", role=ColumnRole.OBJECTIVE)]
    columns.extend(Column(name=f"x{j + 1}", role=ColumnRole.DECISION) for j in range(n))

    slack_cols: List[Column] = []
    surplus_cols: List[Column] = []
    artificial_cols: List[Column] = []
    for idx, (_, relation, _) in enumerate(rows, start=1):
        if relation == "<=":
            slack_cols.append(Column(name=f"s{idx}", role=ColumnRole.SLACK))
        elif relation == ">=":
            surplus_cols.append(Column(name=f"e{idx}", role=ColumnRole.SURPLUS))
            artificial_cols.append(Column(name=f"a{idx}", role=ColumnRole.ARTIFICIAL))
        else:
            artificial_cols.append(Column(name=f"a{idx}", role=ColumnRole.ARTIFICIAL))

    columns.extend(slack_cols)
    columns.extend(surplus_cols)
    columns.extend(artificial_cols)
    columns.append(Column(name="RHS", role=ColumnRole.RHS))

    col_count = len(columns)
    rhs_col = col_count - 1
    matrix = np.zeros((len(rows) + 1, col_count), dtype=float)

    next_slack = 1 + n
    next_surplus = next_slack + len(slack_cols)
    next_artificial = next_surplus + len(surplus_cols)
    basis: List[int] = []
    artificial: List[int] = []

    for row_idx, (coefficients, relation, rhs) in enumerate(rows, start=1):
        matrix[row_idx, 1 : n + 1] = coefficients
        matrix[row_idx, rhs_col] = rhs
        if relation == "<=":
            matrix[row_idx, next_slack] = 1.0
            basis.append(next_slack)
            next_slack += 1
        elif relation == ">=":
            matrix[row_idx, next_surplus] = -1.0
            matrix[row_idx, next_artificial] = 1.0
            basis.append(next_artificial)
            artificial.append(next_artificial)
            next_surplus += 1
            next_artificial += 1
        else:
            matrix[row_idx, next_artificial] = 1.0
            basis.append(next_artificial)
            artificial.append(next_artificial)
            next_artificial += 1

    matrix[0, OBJECTIVE_COL] = 1.0
    objective = np.asarray(problem.objective, dtype=float)
    matrix[0, 1 : n + 1] = objective if problem.direction == "min" else -objective

    tableau = Tableau(matrix=matrix, columns=columns, basis=basis, artificial=artificial)
    if not artificial:
        return tableau

    if method == "big_m":
        _apply_big_m(tableau, big_m_value(problem, opts))
    elif method == "two_phase":
        _apply_phase_one(tableau)
    return tableau


def big_m_value(problem: Problem, opts: SolveOptions) -> float:
    """
    Penalty used for artificial columns.  An explicit ``opts.big_m`` wins;
    otherwise it scales with the largest absolute coefficient or RHS so the
    penalty dominates the objective without drowning the data in rounding error.
    """

    if opts.big_m is not None:
        if not math.isfinite(opts.big_m) or opts.big_m <= 0:
            raise ValueError("big_m must be a positive finite number.")
        return float(opts.big_m)

    magnitudes = [abs(v) for v in problem.objective]
    for cons in problem.constraints:
        magnitudes.extend(abs(v) for v in cons.coefficients)
        magnitudes.append(abs(cons.rhs))
    scale = max(magnitudes, default=1.0) or 1.0
    return max(opts.big_m_floor, opts.big_m_scale * scale)


def restore_objective(tableau: Tableau, tol: float = 1e-9) -> Tableau:
    """
    Derive the phase-2 tableau from a finished phase-1 tableau: put the saved
    objective back in row 0 and eliminate every basic column from it.
    The input tableau is left untouched.
    """

    if tableau.saved_objective is None:
        raise ValueError("Tableau carries no saved objective row.")

    result = tableau.copy()
    result.saved_objective = None
    matrix = result.matrix
    matrix[0] = tableau.saved_objective
    for row, col in enumerate(result.basis, start=1):
        coef = matrix[0, col]
        if abs(coef) > tol:
            matrix[0] -= coef * matrix[row]
    return result


def _apply_big_m(tableau: Tableau, penalty: float) -> None:
    matrix = tableau.matrix
    logger.debug("Big-M penalty %.6g on %d artificial column(s)", penalty, len(tableau.artificial))
    for col in tableau.artificial:
        matrix[0, col] = penalty
    for col in tableau.artificial:
        row = tableau.basis.index(col) + 1
        matrix[0] -= penalty * matrix[row]


def _apply_phase_one(tableau: Tableau) -> None:
    matrix = tableau.matrix
    tableau.saved_objective = matrix[0].copy()
    matrix[0] = 0.0
    matrix[0, OBJECTIVE_COL] = 1.0
    for col in tableau.artificial:
        matrix[0, col] = 1.0
    for col in tableau.artificial:
        row = tableau.basis.index(col) + 1
        matrix[0] -= matrix[row]


def _standardise(cons: Constraint) -> Tuple[List[float], str, float]:
    # Keep every RHS non-negative so the initial basis is feasible.
    coefficients = list(cons.coefficients)
    relation = cons.relation
    rhs = cons.rhs
    if rhs < 0:
        coefficients = [-v for v in coefficients]
        rhs = -rhs
        if relation == "<=":
            relation = ">="
        elif relation == ">=":
            relation = "<="
    return coefficients, relation, rhs
