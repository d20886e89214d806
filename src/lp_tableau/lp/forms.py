import math
from typing import Any, List, Mapping, Sequence

from pydantic import BaseModel

from ..schemas import Constraint, Problem

_RELATIONS = {"<=": "<=", "=<": "<=", ">=": ">=", "=>": ">=", "=": "=", "==": "="}


class FormLimits(BaseModel):
    min_vars: int = 1
    max_vars: int = 10
    min_constraints: int = 1
    max_constraints: int = 10
    initial_vars: int = 2
    initial_constraints: int = 2


def coerce_number(value: Any) -> float:
    """Form-field policy: anything blank or unparseable counts as 0."""

    if isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.strip()
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(number):
        return 0.0
    return number


def blank_problem(num_vars: int, num_constraints: int, limits: FormLimits | None = None) -> Problem:
    """Zero-filled problem of the requested size, every constraint defaulting to '<='."""

    limits = limits or FormLimits()
    _check_size(num_vars, num_constraints, limits)
    return Problem(
        direction="max",
        objective=[0.0] * num_vars,
        constraints=[
            Constraint(id=f"c-{i}", coefficients=[0.0] * num_vars, relation="<=", rhs=0.0)
            for i in range(num_constraints)
        ],
    )


def problem_from_form(
    direction: str,
    objective: Sequence[Any],
    constraints: Sequence[Mapping[str, Any]],
    limits: FormLimits | None = None,
) -> Problem:
    """
    Build a Problem from raw form values.  Numbers are coerced with
    ``coerce_number``; sizes must sit within ``limits``.  Short coefficient rows
    are padded with zeros up to the objective length, long ones are rejected.
    """

    limits = limits or FormLimits()
    _check_size(len(objective), len(constraints), limits)

    direction_norm = str(direction).strip().lower()
    if direction_norm in ("max", "maximize", "maximise"):
        direction_norm = "max"
    elif direction_norm in ("min", "minimize", "minimise"):
        direction_norm = "min"
    else:
        raise ValueError(f"Unknown optimisation direction '{direction}'.")

    n = len(objective)
    rows: List[Constraint] = []
    for idx, raw in enumerate(constraints):
        coefficients = [coerce_number(v) for v in raw.get("coefficients", [])]
        if len(coefficients) > n:
            raise ValueError(f"Constraint {idx + 1} has more coefficients than decision variables.")
        coefficients.extend([0.0] * (n - len(coefficients)))

        relation = _RELATIONS.get(str(raw.get("relation", "<=")).strip())
        if relation is None:
            raise ValueError(f"Constraint {idx + 1} has unknown relation '{raw.get('relation')}'.")

        rows.append(
            Constraint(
                id=str(raw.get("id") or f"c-{idx}"),
                coefficients=coefficients,
                relation=relation,  # type: ignore[arg-type]
                rhs=coerce_number(raw.get("rhs", 0)),
            )
        )

    return Problem(
        direction=direction_norm,  # type: ignore[arg-type]
        objective=[coerce_number(v) for v in objective],
        constraints=rows,
    )


def _check_size(num_vars: int, num_constraints: int, limits: FormLimits) -> None:
    if not limits.min_vars <= num_vars <= limits.max_vars:
        raise ValueError(
            f"Number of variables must be between {limits.min_vars} and {limits.max_vars}, got {num_vars}."
        )
    if not limits.min_constraints <= num_constraints <= limits.max_constraints:
        raise ValueError(
            f"Number of constraints must be between {limits.min_constraints} and "
            f"{limits.max_constraints}, got {num_constraints}."
        )
