import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .utils import to_problem
from ..schemas import GomoryCut, OptimizationResult, SolutionStatus
from ..tolerances import CUT_COEF_TOL, FLOOR_GUARD, INTEGRALITY_TOL, PIVOT_TOL, RATIO_TOL

logger = logging.getLogger(__name__)

_MESSAGES = {
    "infeasible": "Infeasible.",
    "unbounded": "Unbounded.",
    "iteration_limit": "Hit iteration limit.",
    "not_dual_feasible": "Tableau has negative reduced costs; run solve() first.",
}


class DualSimplexSolver:
    """
    Dense-tableau dual simplex for  min c^T x  s.t.  A x <= b,  x >= 0.

    Tableau layout, (m+1) x (n+m+1):

        [ A | I | b  ]
        [ c | 0 | -Z ]

    The last row holds reduced costs. A primal pass first removes negative
    reduced costs, then the dual pass drives negative right-hand sides out of
    the basis while keeping the reduced costs non-negative.
    """

    def __init__(
        self,
        c: Sequence[float],
        A: Sequence[Sequence[float]],
        b: Sequence[float],
        max_iterations: int = 1000,
    ):
        self.problem = to_problem(c, A, b)
        self.max_iterations = max_iterations
        self.num_decision_vars = self.problem.num_vars
        self.tableau = np.zeros((0, 0))
        self.basic_vars: List[int] = []
        self._build_tableau()

    def _build_tableau(self) -> None:
        m = self.problem.num_constraints
        n = self.problem.num_vars
        A = np.array(self.problem.A, dtype=float).reshape(m, n)
        b = np.array(self.problem.b, dtype=float)

        body = np.hstack((A, np.eye(m), b.reshape(-1, 1)))
        objective = np.hstack((np.array(self.problem.c, dtype=float), np.zeros(m + 1)))
        self.tableau = np.vstack((body, objective))
        self.basic_vars = list(range(n, n + m))

    @property
    def num_constraints(self) -> int:
        return len(self.basic_vars)

    def get_tableau(self) -> np.ndarray:
        return self.tableau.copy()

    def get_basic_variables(self) -> List[int]:
        return self.basic_vars.copy()

    def is_dual_feasible(self, tol: float = PIVOT_TOL) -> bool:
        return not np.any(self.tableau[-1, :-1] < -tol)

    def solve(self) -> OptimizationResult:
        """Solve from the initial slack basis. Safe to call repeatedly."""
        self._build_tableau()

        primal_iterations = 0
        if not self.is_dual_feasible():
            status, primal_iterations = self._run_primal_phase()
            if status != "optimal":
                logger.info("Primal phase stopped with status %s after %d pivots", status, primal_iterations)
                return self._extract_solution(status, primal_iterations)

        result = self.run_dual_phase()
        result.iterations += primal_iterations
        logger.debug(
            "Solved %dx%d LP: status=%s objective=%.6g iterations=%d",
            self.num_constraints,
            self.num_decision_vars,
            result.status,
            result.objective_value,
            result.iterations,
        )
        return result

    def run_dual_phase(self) -> OptimizationResult:
        """
        Dual simplex on the current tableau.

        Requires non-negative reduced costs; otherwise returns
        ``not_dual_feasible`` without pivoting. Used by ``solve()`` and to
        re-optimise after ``add_constraint()``.
        """
        if not self.is_dual_feasible(tol=RATIO_TOL):
            return self._extract_solution("not_dual_feasible", 0)

        iterations = 0
        while True:
            row = self._dual_leaving_row()
            if row is None:
                return self._extract_solution("optimal", iterations)
            if iterations >= self.max_iterations:
                logger.warning("Dual phase hit iteration limit (%d)", self.max_iterations)
                return self._extract_solution("iteration_limit", iterations)

            col = self._dual_entering_column(row)
            if col is None:
                return self._extract_solution("infeasible", iterations)

            self._pivot(row, col)
            iterations += 1

    def _run_primal_phase(self) -> Tuple[SolutionStatus, int]:
        iterations = 0
        while True:
            col = self._primal_entering_column()
            if col is None:
                return "optimal", iterations
            if iterations >= self.max_iterations:
                logger.warning("Primal phase hit iteration limit (%d)", self.max_iterations)
                return "iteration_limit", iterations

            row = self._primal_leaving_row(col)
            if row is None:
                return "unbounded", iterations

            self._pivot(row, col)
            iterations += 1

    def _primal_entering_column(self) -> Optional[int]:
        costs = self.tableau[-1, :-1]
        col = int(np.argmin(costs))
        if costs[col] < -RATIO_TOL:
            return col
        return None

    def _primal_leaving_row(self, col: int) -> Optional[int]:
        m = self.num_constraints
        column = self.tableau[:m, col]
        eligible = column > RATIO_TOL
        if not np.any(eligible):
            return None
        ratios = np.full(m, np.inf)
        ratios[eligible] = self.tableau[:m, -1][eligible] / column[eligible]
        return int(np.argmin(ratios))

    def _dual_leaving_row(self) -> Optional[int]:
        m = self.num_constraints
        if m == 0:
            return None
        rhs = self.tableau[:m, -1]
        row = int(np.argmin(rhs))
        if rhs[row] < -PIVOT_TOL:
            return row
        return None

    def _dual_entering_column(self, row: int) -> Optional[int]:
        entries = self.tableau[row, :-1]
        eligible = entries < -PIVOT_TOL
        if not np.any(eligible):
            return None
        ratios = np.full(entries.shape, np.inf)
        ratios[eligible] = np.abs(self.tableau[-1, :-1][eligible] / entries[eligible])
        return int(np.argmin(ratios))

    def _pivot(self, row: int, col: int) -> None:
        self.tableau[row] = self.tableau[row] / self.tableau[row, col]

        factors = self.tableau[:, col].copy()
        factors[row] = 0.0
        mask = np.abs(factors) > PIVOT_TOL
        if np.any(mask):
            self.tableau[mask] -= np.outer(factors[mask], self.tableau[row])

        self.basic_vars[row] = col

    def _extract_solution(self, status: SolutionStatus, iterations: int) -> OptimizationResult:
        n = self.num_decision_vars
        solution = np.zeros(n)
        if status in ("optimal", "iteration_limit"):
            for row, var in enumerate(self.basic_vars):
                if var < n:
                    solution[var] = self.tableau[row, -1]

        # bottom-right cell stores -Z; adding 0.0 folds -0.0 into 0.0
        objective = -self.tableau[-1, -1] + 0.0

        return OptimizationResult(
            status=status,
            objective_value=float(objective),
            solution=[float(v) for v in solution],
            iterations=iterations,
            message=_MESSAGES.get(status, ""),
            duals=self.dual_values() if status == "optimal" else None,
        )

    def dual_values(self) -> List[float]:
        """dZ/db_i for every row, read from the slack columns of the objective row."""
        n = self.num_decision_vars
        m = self.num_constraints
        return [float(-v + 0.0) for v in self.tableau[-1, n : n + m]]

    def add_constraint(self, row: Sequence[float], rhs: float) -> None:
        """
        Append  row . x <= rhs  to the current tableau with a fresh slack.

        The new row is rewritten in terms of the current basis, so an optimal
        tableau stays dual-feasible and ``run_dual_phase()`` re-optimises it.
        The stored problem is extended too, so a later ``solve()`` sees the row.
        """
        n = self.num_decision_vars
        m = self.num_constraints
        coefs = np.array(row, dtype=float)
        if coefs.shape != (n,):
            raise ValueError(f"Constraint row has {coefs.size} columns, expected {n}.")

        new_row = np.zeros(n + m + 2)
        new_row[:n] = coefs
        new_row[n + m] = 1.0
        new_row[-1] = rhs

        widened = np.insert(self.tableau, n + m, 0.0, axis=1)
        for r, var in enumerate(self.basic_vars):
            factor = new_row[var]
            if abs(factor) > PIVOT_TOL:
                new_row -= factor * widened[r]

        self.tableau = np.insert(widened, m, new_row, axis=0)
        self.basic_vars.append(n + m)
        self.problem.A.append([float(v) for v in coefs])
        self.problem.b.append(float(rhs))

    def generate_gomory_cut(
        self,
        integer_indices: Sequence[int],
        A: Sequence[Sequence[float]],
        b: Sequence[float],
    ) -> Optional[GomoryCut]:
        """
        Gomory fractional cut from the most fractional integer basic row.

        Slack columns are substituted back through their defining rows
        (s_k = b_k - A_k x) so the cut is stated over the decision variables
        only. ``A``/``b`` must be the system this tableau was built from,
        including cuts added earlier, so that every slack maps to its row.
        """
        integer_set = set(integer_indices)
        best_row = -1
        best_frac = -1.0
        for r, var in enumerate(self.basic_vars):
            if var not in integer_set:
                continue
            value = self.tableau[r, -1]
            frac = value - math.floor(value + FLOOR_GUARD)
            if INTEGRALITY_TOL < frac < 1 - INTEGRALITY_TOL and frac > best_frac:
                best_frac = frac
                best_row = r

        if best_row == -1:
            return None

        n = self.num_decision_vars
        cut_row = np.zeros(n)
        cut_rhs = -best_frac
        for j in range(self.tableau.shape[1] - 1):
            a_ij = self.tableau[best_row, j]
            f_ij = a_ij - math.floor(a_ij + FLOOR_GUARD)
            if f_ij < CUT_COEF_TOL:
                continue

            if j < n:
                cut_row[j] -= f_ij
                continue

            k = j - n
            if k < len(A):
                cut_rhs += f_ij * b[k]
                cut_row += f_ij * np.asarray(A[k], dtype=float)

        return GomoryCut(row=[float(v) for v in cut_row], rhs=float(cut_rhs))
