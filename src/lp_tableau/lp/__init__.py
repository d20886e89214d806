"""Tableau simplex solver: normaliser, pivot engine and orchestration."""

from .simplex import solve, solve_values
from .tableau import Tableau, big_m_value, build_tableau, restore_objective
from .pivot import PivotOutcome, drive_out_artificials, pivot, run_pivots
from .parser import parse_natural_language_spec
from .forms import FormLimits, blank_problem, problem_from_form

__all__ = [
    "solve",
    "solve_values",
    "Tableau",
    "big_m_value",
    "build_tableau",
    "restore_objective",
    "PivotOutcome",
    "drive_out_artificials",
    "pivot",
    "run_pivots",
    "parse_natural_language_spec",
    "FormLimits",
    "blank_problem",
    "problem_from_form",
]
