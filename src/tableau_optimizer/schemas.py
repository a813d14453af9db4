from pydantic import BaseModel, Field, model_validator
from typing import Literal, List, Optional, Union

Sense = Literal["min", "max"]
Cmp = Literal["<=", ">=", "=="]

SolutionStatus = Literal[
    "optimal",
    "infeasible",
    "unbounded",
    "iteration_limit",
    "not_dual_feasible",
]

NodeStatus = Literal[
    "Infeasible",
    "Pruned (Bound)",
    "Integer Found",
    "Branched",
    "Unbounded",
    "Iteration Limit",
]

CutStatus = Literal["Applied", "Rejected (Too weak)", "Rejected (Numerical)", "Rejected (Mixed integer)"]


class CanonicalProblem(BaseModel):
    """min c^T x  subject to  A x <= b,  x >= 0."""

    c: List[float]
    A: List[List[float]] = Field(default_factory=list)
    b: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_shapes(self) -> "CanonicalProblem":
        if not self.c:
            raise ValueError("Objective vector c must have at least one coefficient.")
        if len(self.A) != len(self.b):
            raise ValueError(
                f"Constraint matrix has {len(self.A)} rows but rhs has {len(self.b)} entries."
            )
        n = len(self.c)
        for idx, row in enumerate(self.A):
            if len(row) != n:
                raise ValueError(f"Constraint row {idx} has {len(row)} columns, expected {n}.")
        return self

    @property
    def num_vars(self) -> int:
        return len(self.c)

    @property
    def num_constraints(self) -> int:
        return len(self.b)


class ConstraintRow(BaseModel):
    coefficients: List[float]
    cmp: Cmp = "<="
    rhs: float


class ProblemInput(BaseModel):
    """A small dense model as entered by a user, before canonicalisation."""

    name: str = "problem"
    sense: Sense = "min"
    objective: List[float]
    constraints: List[ConstraintRow] = Field(default_factory=list)
    integer: List[bool] = Field(default_factory=list)

    def integer_indices(self) -> List[int]:
        return [idx for idx, flag in enumerate(self.integer) if flag]


class SolveOptions(BaseModel):
    max_iters: int = 1000
    max_cuts_per_node: int = 5
    max_nodes: Optional[int] = None


class OptimizationResult(BaseModel):
    status: SolutionStatus
    objective_value: Optional[float]
    solution: List[float] = Field(default_factory=list)
    iterations: int = 0
    message: str = ""
    duals: List[float] | None = None


class GomoryCut(BaseModel):
    """Cut  sum(row[j] * x_j) <= rhs  over the decision variables."""

    row: List[float]
    rhs: float


class NodeRecord(BaseModel):
    id: int
    parent_id: int
    constraints: str
    objective_value: Union[float, str] = "N/A"
    status: NodeStatus = "Infeasible"
    solution: str = "N/A"


class BCNodeRecord(BaseModel):
    id: int
    parent_id: int
    depth: int
    constraints: str = "Root"
    status: NodeStatus = "Infeasible"
    objective_value: Union[float, str] = "N/A"
    solution: str = "N/A"
    cuts_applied: int = 0


class CutRecord(BaseModel):
    node_id: int
    iteration: int
    cut_type: Literal["Gomory"] = "Gomory"
    status: CutStatus
    generated_constraint: str = "N/A"


class BranchAndCutHistory(BaseModel):
    nodes: List[BCNodeRecord] = Field(default_factory=list)
    cuts: List[CutRecord] = Field(default_factory=list)
