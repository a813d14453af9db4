import math
from dataclasses import dataclass
from typing import List, Literal, Optional, Sequence, Tuple

from ..tolerances import DISPLAY_TOL, INTEGRALITY_TOL


@dataclass(frozen=True)
class BoundConstraint:
    """Single-variable branching bound  x_i <= value  or  x_i >= value."""

    var_index: int
    kind: Literal["<=", ">="]
    value: float

    def as_row(self, num_vars: int) -> Tuple[List[float], float]:
        """The bound as a "<=" row: x_i >= v is stored as -x_i <= -v."""
        row = [0.0] * num_vars
        if self.kind == "<=":
            row[self.var_index] = 1.0
            return row, float(self.value)
        row[self.var_index] = -1.0
        return row, -float(self.value)

    def __str__(self) -> str:
        return f"x{self.var_index} {self.kind} {format_number(self.value)}"


def validate_integer_indices(integer_indices: Sequence[int], num_vars: int) -> List[int]:
    indices = sorted({int(idx) for idx in integer_indices})
    if not indices:
        raise ValueError("At least one integer-restricted variable index is required.")
    bad = [idx for idx in indices if idx < 0 or idx >= num_vars]
    if bad:
        raise ValueError(f"Integer variable indices {bad} are outside [0, {num_vars}).")
    return indices


def fractional_indices(solution: Sequence[float], integer_indices: Sequence[int]) -> List[int]:
    return [
        idx for idx in integer_indices if abs(solution[idx] - round(solution[idx])) > INTEGRALITY_TOL
    ]


def is_integral(solution: Sequence[float], integer_indices: Sequence[int]) -> bool:
    return not fractional_indices(solution, integer_indices)


def branching_variable(solution: Sequence[float], integer_indices: Sequence[int]) -> Optional[int]:
    """Lowest-index fractional integer variable, or None."""
    candidates = fractional_indices(solution, integer_indices)
    return candidates[0] if candidates else None


def branch_bounds(var_index: int, value: float) -> Tuple[BoundConstraint, BoundConstraint]:
    """(x <= floor(value), x >= ceil(value))."""
    return (
        BoundConstraint(var_index, "<=", float(math.floor(value))),
        BoundConstraint(var_index, ">=", float(math.ceil(value))),
    )


def format_number(value: float, digits: int = 2) -> str:
    rounded = round(value, digits) + 0.0
    if rounded.is_integer():
        return str(int(rounded))
    return str(rounded)


def format_solution(solution: Sequence[float]) -> str:
    return "[" + ", ".join(format_number(v) for v in solution) + "]"


def format_bounds(bounds: Sequence[BoundConstraint]) -> str:
    if not bounds:
        return "Root"
    return ", ".join(str(bound) for bound in bounds)


def format_cut(row: Sequence[float], rhs: float) -> str:
    terms = [f"{coef:.2f}*x{idx}" for idx, coef in enumerate(row) if abs(coef) >= DISPLAY_TOL]
    lhs = " + ".join(terms) if terms else "0"
    return f"{lhs} <= {rhs:.2f}"


def rounded_objective(value: float) -> float:
    return round(value, 4) + 0.0


def truncation_message(iteration_limited: bool, hit_node_limit: bool) -> str:
    """Why a search ended before the whole tree was explored, or "" when it did not."""
    reasons = []
    if hit_node_limit:
        reasons.append("node limit reached")
    if iteration_limited:
        reasons.append("some relaxations hit the iteration limit")
    if not reasons:
        return ""
    return "Search truncated: " + " and ".join(reasons) + "."
