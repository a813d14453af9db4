import numpy as np
from typing import Any, Dict, List, Sequence, Tuple

from ..schemas import CanonicalProblem, OptimizationResult, ProblemInput, Sense
from ..tolerances import FEASIBILITY_TOL, RATIO_TOL


def to_problem(c: Sequence[float], A: Sequence[Sequence[float]], b: Sequence[float]) -> CanonicalProblem:
    """Validate dense inputs (lists or numpy arrays) into a CanonicalProblem."""

    return CanonicalProblem(
        c=np.asarray(c, dtype=float).ravel().tolist(),
        A=[np.asarray(row, dtype=float).ravel().tolist() for row in A],
        b=np.asarray(b, dtype=float).ravel().tolist(),
    )


def canonicalize(model: ProblemInput) -> CanonicalProblem:
    """
    Convert a user model to  min c^T x,  A x <= b.
    ">=" rows are negated, "==" rows become a "<=" and a negated ">=" pair,
    and a maximisation objective is negated.
    """

    rows: List[List[float]] = []
    rhs: List[float] = []
    for cons in model.constraints:
        coefs = [float(v) for v in cons.coefficients]
        if cons.cmp in ("<=", "=="):
            rows.append(coefs)
            rhs.append(float(cons.rhs))
        if cons.cmp in (">=", "=="):
            rows.append([-v for v in coefs])
            rhs.append(-float(cons.rhs))

    c = [float(v) for v in model.objective]
    if model.sense == "max":
        c = [-v for v in c]

    return CanonicalProblem(c=c, A=rows, b=rhs)


def restore_objective(result: OptimizationResult, sense: Sense) -> OptimizationResult:
    """Undo the objective negation applied by ``canonicalize`` for "max" models."""

    if sense != "max" or result.objective_value is None:
        return result
    return result.model_copy(update={"objective_value": -result.objective_value + 0.0})


def filter_linearly_independent_rows(
    A: Sequence[Sequence[float]], b: Sequence[float]
) -> Tuple[List[List[float]], List[float]]:
    """
    Keep only the rows of A that are linearly independent of the rows kept
    before them (Gram-Schmidt in row order), with the matching rhs entries.

    Standalone helper for equality systems. ``canonicalize`` does not call it:
    among "<=" rows a dependent row such as 2x <= 1 can still be the binding one.
    """

    if len(A) == 0:
        return [], []

    kept_rows: List[List[float]] = []
    kept_rhs: List[float] = []
    basis: List[np.ndarray] = []
    for row, rhs in zip(A, b):
        vector = np.asarray(row, dtype=float)
        projection = vector.copy()
        for direction in basis:
            projection -= float(vector @ direction) * direction
        norm = float(np.linalg.norm(projection))
        if norm > RATIO_TOL:
            kept_rows.append(vector.tolist())
            kept_rhs.append(float(rhs))
            basis.append(projection / norm)

    return kept_rows, kept_rhs


def max_violation(A: Sequence[Sequence[float]], b: Sequence[float], x: Sequence[float]) -> float:
    """Largest amount by which x violates A x <= b or x >= 0 (0.0 when feasible)."""

    x_arr = np.asarray(x, dtype=float)
    worst = float(max(0.0, -x_arr.min())) if x_arr.size else 0.0
    if len(A) == 0:
        return worst
    slack = np.asarray(b, dtype=float) - np.asarray(A, dtype=float) @ x_arr
    return max(worst, float(max(0.0, -slack.min())))


def is_feasible(A: Sequence[Sequence[float]], b: Sequence[float], x: Sequence[float]) -> bool:
    return max_violation(A, b, x) <= FEASIBILITY_TOL


def analyze_infeasibility(
    c: Sequence[float], A: Sequence[Sequence[float]], b: Sequence[float], max_iterations: int = 1000
) -> Dict[str, Any]:
    """Very small IIS-style heuristic: drop each row and re-solve."""

    from .dual_simplex import DualSimplexSolver  # local import to avoid cycle

    problem = to_problem(c, A, b)
    solution = DualSimplexSolver(problem.c, problem.A, problem.b, max_iterations).solve()
    if solution.status != "infeasible":
        return {
            "status": solution.status,
            "message": solution.message or "Problem is not infeasible.",
            "conflicting_constraints": [],
            "suggestions": [],
        }

    conflicts: List[int] = []
    for idx in range(problem.num_constraints):
        trimmed_A = problem.A[:idx] + problem.A[idx + 1 :]
        trimmed_b = problem.b[:idx] + problem.b[idx + 1 :]
        sub_solution = DualSimplexSolver(problem.c, trimmed_A, trimmed_b, max_iterations).solve()
        if sub_solution.status != "infeasible":
            conflicts.append(idx)

    suggestions = []
    if conflicts:
        suggestions.append("Relax or inspect the listed conflicting rows.")
    else:
        suggestions.append("Several rows conflict jointly; consider relaxing groups of rows.")

    return {
        "status": "infeasible",
        "message": "Detected infeasibility; listed rows whose removal restores feasibility.",
        "conflicting_constraints": conflicts,
        "suggestions": suggestions,
    }
