from __future__ import annotations

from typing import Dict, List, Optional

import numpy as np
from pydantic import BaseModel
from scipy.optimize import linprog

from ..schemas import Problem, SolveResult, Status


class ReferenceSolution(BaseModel):
    status: Status
    objective_value: Optional[float]
    values: Dict[str, float] | None
    message: str = ""


def solve_reference(problem: Problem) -> ReferenceSolution:
    """Solve ``problem`` with SciPy's HiGHS backend, for cross-checking tableau results."""

    n = problem.num_vars
    c = np.asarray(problem.objective, dtype=float)
    A_ub: List[List[float]] = []
    b_ub: List[float] = []
    A_eq: List[List[float]] = []
    b_eq: List[float] = []

    for cons in problem.constraints:
        row = list(cons.coefficients)
        if cons.relation == "<=":
            A_ub.append(row)
            b_ub.append(cons.rhs)
        elif cons.relation == ">=":
            A_ub.append([-value for value in row])
            b_ub.append(-cons.rhs)
        else:
            A_eq.append(row)
            b_eq.append(cons.rhs)

    sense_factor = 1.0 if problem.direction == "min" else -1.0
    res = linprog(
        c * sense_factor,
        A_ub=np.array(A_ub, dtype=float) if A_ub else None,
        b_ub=np.array(b_ub, dtype=float) if b_ub else None,
        A_eq=np.array(A_eq, dtype=float) if A_eq else None,
        b_eq=np.array(b_eq, dtype=float) if b_eq else None,
        bounds=[(0.0, None)] * n,
        method="highs",
    )

    if not res.success:
        return ReferenceSolution(
            status=_map_status(res.status),
            objective_value=None,
            values=None,
            message=res.message,
        )

    return ReferenceSolution(
        status="optimal",
        objective_value=float(res.fun * sense_factor),
        values={f"x{j + 1}": float(v) for j, v in enumerate(res.x)},
        message=res.message or "",
    )


def compare_with_reference(result: SolveResult, reference: ReferenceSolution, tol: float = 1e-6) -> Dict[str, object]:
    """
    Check status and objective of a tableau result against the HiGHS reference.

    HiGHS presolve can answer "infeasible" for a problem that is only
    unbounded.  When the tableau run reached a feasible basis and then found
    an unbounded ray, that answer is left unconfirmed instead of counted as a
    disagreement.
    """

    agrees = result.status == reference.status
    confirmed = True
    gap: Optional[float] = None
    if agrees and result.status == "optimal":
        gap = abs((result.objective_value or 0.0) - (reference.objective_value or 0.0))
        agrees = gap <= tol * max(1.0, abs(reference.objective_value or 0.0))
    elif result.status == "unbounded" and reference.status == "infeasible" and result.feasible_basis:
        agrees = True
        confirmed = False
    return {
        "agrees": agrees,
        "confirmed": confirmed,
        "status": result.status,
        "reference_status": reference.status,
        "objective_gap": gap,
    }


def _map_status(code: int) -> Status:
    mapping = {
        0: "optimal",
        2: "infeasible",
        3: "unbounded",
    }
    return mapping.get(code, "error")  # type: ignore[return-value]
