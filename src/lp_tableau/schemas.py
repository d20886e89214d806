from __future__ import annotations

from enum import Enum
from typing import Dict, List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

Direction = Literal["max", "min"]
Relation = Literal["<=", ">=", "="]
Method = Literal["simplex", "big_m", "two_phase"]
Status = Literal["optimal", "infeasible", "unbounded", "error"]
StepKind = Literal["iteration", "optimal", "unbounded", "iteration_limit"]

METHOD_LABELS: Dict[str, str] = {
    "simplex": "Standard Simplex",
    "big_m": "Big-M Method",
    "two_phase": "Two-Phase Method",
}


class ColumnRole(str, Enum):
    OBJECTIVE = "objective"
    DECISION = "decision"
    SLACK = "slack"
    SURPLUS = "surplus"
    ARTIFICIAL = "artificial"
    RHS = "rhs"


class Column(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str
    role: ColumnRole


class Constraint(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    coefficients: List[float]
    relation: Relation
    rhs: float = 0.0


class Problem(BaseModel):
    direction: Direction = "max"
    objective: List[float]
    constraints: List[Constraint] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_shapes(self) -> "Problem":
        n = len(self.objective)
        if n == 0:
            raise ValueError("Objective needs at least one decision variable.")
        for cons in self.constraints:
            if len(cons.coefficients) != n:
                raise ValueError(
                    f"Constraint '{cons.id}' has {len(cons.coefficients)} coefficients, expected {n}."
                )
        return self

    @property
    def num_vars(self) -> int:
        return len(self.objective)


class SolveOptions(BaseModel):
    """Solver knobs.

    ``tol`` guards entering/leaving selection and row elimination, while
    ``feasibility_tol`` decides whether a phase-1 optimum or a basic artificial
    still counts as zero. When ``big_m`` is left unset the penalty is derived
    from the problem data as ``max(big_m_floor, big_m_scale * max|coefficient|)``.
    """

    max_iters: int = Field(default=50, ge=1)
    tol: float = Field(default=1e-9, gt=0)
    feasibility_tol: float = Field(default=1e-5, gt=0)
    big_m: Optional[float] = None
    big_m_scale: float = Field(default=1e4, gt=0)
    big_m_floor: float = Field(default=1e5, gt=0)


class TableauRow(BaseModel):
    model_config = ConfigDict(frozen=True)

    basic_var: str
    coefficients: List[float]
    rhs: float


class TraceStep(BaseModel):
    model_config = ConfigDict(frozen=True)

    step_index: int
    kind: StepKind
    description: str
    headers: List[str]
    rows: List[TableauRow]
    basic_vars: List[str]
    pivot_row: Optional[int] = None
    pivot_col: Optional[int] = None
    entering_var: Optional[str] = None
    leaving_var: Optional[str] = None
    phase: int = 0
    is_phase1: bool = False

    @property
    def is_terminal(self) -> bool:
        return self.kind != "iteration"


class SolveResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    status: Status
    steps: List[TraceStep] = Field(default_factory=list)
    values: Dict[str, float] = Field(default_factory=dict)
    objective_value: Optional[float] = None
    iterations: int = 0
    message: str = ""
    # True once a basis with every artificial at zero was reached
    feasible_basis: bool = False
