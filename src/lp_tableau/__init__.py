"""lp-tableau: step-by-step tableau simplex (standard, Big-M, two-phase)."""

from .schemas import Constraint, Problem, SolveOptions, SolveResult, TraceStep
from .lp import solve, solve_values

__all__ = [
    "Constraint",
    "Problem",
    "SolveOptions",
    "SolveResult",
    "TraceStep",
    "solve",
    "solve_values",
]
