from typing import Any, Dict, List

from ..schemas import Method, Problem, SolveOptions
from .simplex import solve


def analyze_infeasibility(problem: Problem, method: Method = "two_phase") -> Dict[str, Any]:
    """
    Very small IIS-style heuristic: drop each constraint and re-solve.

    ``method`` decides whether the problem is infeasible at all.  The relaxed
    re-solves always use two-phase, since Big-M reports an infeasible and
    unbounded relaxation as merely unbounded.
    """

    if method == "simplex":
        raise ValueError("Infeasibility analysis needs the big_m or two_phase method.")

    options = SolveOptions()
    solution = solve(problem, method, options)
    if solution.status != "infeasible":
        return {
            "status": solution.status,
            "message": solution.message or "Problem is not infeasible.",
            "conflicting_constraints": [],
            "suggestions": [],
        }

    conflicts: List[str] = []
    for idx, cons in enumerate(problem.constraints):
        relaxed = problem.model_copy(update={"constraints": problem.constraints[:idx] + problem.constraints[idx + 1 :]})
        if solve(relaxed, "two_phase", options).feasible_basis:
            conflicts.append(cons.id)

    suggestions = []
    if conflicts:
        suggestions.append("Relax or inspect the conflicting constraints above.")
    else:
        suggestions.append("No single constraint explains the conflict; check groups of constraints together.")

    return {
        "status": "infeasible",
        "message": "Detected infeasibility; listed constraints critical to infeasibility.",
        "conflicting_constraints": conflicts,
        "suggestions": suggestions,
    }
