import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

import numpy as np

from ..lp.dual_simplex import DualSimplexSolver
from ..lp.utils import to_problem
from ..schemas import (
    BCNodeRecord,
    BranchAndCutHistory,
    CutRecord,
    GomoryCut,
    OptimizationResult,
    SolveOptions,
)
from ..tolerances import CUT_COEF_TOL
from .utils import (
    BoundConstraint,
    branch_bounds,
    branching_variable,
    format_bounds,
    format_cut,
    format_solution,
    is_integral,
    rounded_objective,
    truncation_message,
    validate_integer_indices,
)

logger = logging.getLogger(__name__)


@dataclass
class BCNode:
    """Tree node owning a private copy of its (cut-augmented) constraint system."""

    id: int
    parent_id: int
    depth: int
    A: np.ndarray
    b: np.ndarray
    bounds: List[BoundConstraint] = field(default_factory=list)
    parent_objective: float = -math.inf

    def child(self, node_id: int, bound: BoundConstraint, parent_objective: float) -> "BCNode":
        row, rhs = bound.as_row(self.A.shape[1])
        return BCNode(
            id=node_id,
            parent_id=self.id,
            depth=self.depth + 1,
            A=np.vstack((self.A, row)),
            b=np.append(self.b, rhs),
            bounds=self.bounds + [bound],
            parent_objective=parent_objective,
        )


@dataclass
class _SearchState:
    best_objective: float = math.inf
    best_solution: Optional[List[float]] = None
    nodes: List[BCNodeRecord] = field(default_factory=list)
    cuts: List[CutRecord] = field(default_factory=list)
    last_id: int = 0
    nodes_explored: int = 0
    unbounded: bool = False
    iteration_limited: bool = False

    def next_id(self) -> int:
        self.last_id += 1
        return self.last_id


def _has_integral_data(A: Sequence[Sequence[float]], b: Sequence[float]) -> bool:
    values = [v for row in A for v in row] + list(b)
    return all(abs(v - round(v)) <= CUT_COEF_TOL for v in values)


def _is_numerically_usable(cut: GomoryCut) -> bool:
    # all-zero rows are kept: with a negative rhs they make the node infeasible
    return bool(np.all(np.isfinite(cut.row))) and math.isfinite(cut.rhs)


class BranchAndCutSolver:
    """
    Depth-first branch-and-cut with Gomory fractional cuts.

    Before branching, a fractional node asks its optimal tableau for up to
    ``options.max_cuts_per_node`` cuts, appending each one to the node's own
    A/b and re-solving. Children inherit copies of the cut-augmented system.
    Cuts are only generated for pure integer problems with integral A/b;
    otherwise every attempt is traced as rejected and the node branches.
    ``parent_objective`` is informational; nodes are pruned on their own
    relaxation value only.
    """

    def __init__(
        self,
        c: Sequence[float],
        A: Sequence[Sequence[float]],
        b: Sequence[float],
        integer_indices: Sequence[int],
        options: Optional[SolveOptions] = None,
    ):
        self.problem = to_problem(c, A, b)
        self.integer_indices = validate_integer_indices(integer_indices, self.problem.num_vars)
        self.options = options or SolveOptions()
        self.cuts_valid = _has_integral_data(self.problem.A, self.problem.b) and len(
            self.integer_indices
        ) == self.problem.num_vars
        self._history = BranchAndCutHistory()

    def solve(self) -> OptimizationResult:
        state = _SearchState()
        n = self.problem.num_vars
        root = BCNode(
            id=0,
            parent_id=-1,
            depth=0,
            A=np.array(self.problem.A, dtype=float).reshape(-1, n),
            b=np.array(self.problem.b, dtype=float),
        )
        stack: List[BCNode] = [root]
        max_nodes = self.options.max_nodes

        while stack:
            if max_nodes is not None and state.nodes_explored >= max_nodes:
                logger.warning("Branch-and-cut stopped at node limit (%d)", max_nodes)
                break
            node = stack.pop()
            state.nodes_explored += 1
            if not self._process_node(node, state, stack):
                break

        self._history = BranchAndCutHistory(nodes=state.nodes, cuts=state.cuts)
        result = self._final_result(state, hit_node_limit=bool(stack) and not state.unbounded)
        logger.info(
            "Branch-and-cut finished: status=%s nodes=%d cuts=%d objective=%s",
            result.status,
            state.nodes_explored,
            sum(1 for cut in state.cuts if cut.status == "Applied"),
            result.objective_value,
        )
        return result

    def _process_node(self, node: BCNode, state: _SearchState, stack: List[BCNode]) -> bool:
        """Cut loop for one node, then prune or branch. Returns False when the search must stop."""
        cuts_added = 0
        loop_iteration = 0

        while True:
            loop_iteration += 1
            solver = DualSimplexSolver(self.problem.c, node.A, node.b, self.options.max_iters)
            result = solver.solve()
            record = BCNodeRecord(
                id=node.id,
                parent_id=node.parent_id,
                depth=node.depth,
                constraints=format_bounds(node.bounds),
                cuts_applied=cuts_added,
            )

            if result.status == "unbounded":
                record.status = "Unbounded"
                state.nodes.append(record)
                state.unbounded = True
                return False
            if result.status == "iteration_limit":
                record.status = "Iteration Limit"
                state.nodes.append(record)
                state.iteration_limited = True
                return True
            if result.status != "optimal":
                record.status = "Infeasible"
                state.nodes.append(record)
                return True

            objective = result.objective_value
            record.objective_value = rounded_objective(objective)
            record.solution = format_solution(result.solution)

            if objective >= state.best_objective:
                record.status = "Pruned (Bound)"
                state.nodes.append(record)
                return True

            if is_integral(result.solution, self.integer_indices):
                state.best_objective = objective
                state.best_solution = result.solution
                record.status = "Integer Found"
                state.nodes.append(record)
                logger.debug("New incumbent %.6g at node %d after %d cuts", objective, node.id, cuts_added)
                return True

            if cuts_added < self.options.max_cuts_per_node:
                cut = self._request_cut(solver, node, loop_iteration, state)
                if cut is not None:
                    node.A = np.vstack((node.A, cut.row))
                    node.b = np.append(node.b, cut.rhs)
                    cuts_added += 1
                    logger.debug("Node %d: applied cut %d", node.id, cuts_added)
                    continue

            record.status = "Branched"
            state.nodes.append(record)
            self._branch(node, result.solution, objective, state, stack)
            return True

    def _request_cut(
        self,
        solver: DualSimplexSolver,
        node: BCNode,
        loop_iteration: int,
        state: _SearchState,
    ) -> Optional[GomoryCut]:
        """Ask the node's tableau for a Gomory cut and trace the attempt. Returns the cut to apply."""
        record = CutRecord(node_id=node.id, iteration=loop_iteration, status="Rejected (Too weak)")
        state.cuts.append(record)

        # fractional cuts are only valid when every variable and slack is integral
        if not self.cuts_valid:
            record.status = "Rejected (Mixed integer)"
            return None

        cut = solver.generate_gomory_cut(self.integer_indices, node.A, node.b)
        if cut is None:
            return None

        record.generated_constraint = format_cut(cut.row, cut.rhs)
        if not _is_numerically_usable(cut):
            record.status = "Rejected (Numerical)"
            return None

        record.status = "Applied"
        return cut

    def _branch(
        self,
        node: BCNode,
        solution: List[float],
        objective: float,
        state: _SearchState,
        stack: List[BCNode],
    ) -> None:
        var_index = branching_variable(solution, self.integer_indices)
        if var_index is None:
            return
        down, up = branch_bounds(var_index, solution[var_index])
        left = node.child(state.next_id(), down, objective)
        right = node.child(state.next_id(), up, objective)
        stack.append(right)
        stack.append(left)
        logger.debug("Node %d: branched on x%d -> nodes %d, %d", node.id, var_index, left.id, right.id)

    def _final_result(self, state: _SearchState, hit_node_limit: bool) -> OptimizationResult:
        if state.unbounded:
            return OptimizationResult(
                status="unbounded",
                objective_value=None,
                solution=[],
                iterations=state.nodes_explored,
                message="LP relaxation unbounded; MILP appears unbounded.",
            )

        truncated = truncation_message(state.iteration_limited, hit_node_limit)
        if state.best_solution is None:
            return OptimizationResult(
                status="iteration_limit" if truncated else "infeasible",
                objective_value=None,
                solution=[],
                iterations=state.nodes_explored,
                message=truncated or "No feasible integer assignment found.",
            )

        applied = sum(1 for cut in state.cuts if cut.status == "Applied")
        message = f"Explored nodes: {state.nodes_explored}, cuts applied: {applied}"
        return OptimizationResult(
            status="iteration_limit" if truncated else "optimal",
            objective_value=float(state.best_objective),
            solution=list(state.best_solution),
            iterations=state.nodes_explored,
            message=f"{message}. {truncated}" if truncated else message,
        )

    def get_history(self, sort_by_id: bool = True) -> BranchAndCutHistory:
        """
        Node and cut traces of the last ``solve()``. Nodes are sorted by id
        unless ``sort_by_id`` is False (visitation order); cuts stay in the
        order they were attempted.
        """
        history = self._history.model_copy(deep=True)
        if sort_by_id:
            history.nodes.sort(key=lambda record: record.id)
        return history
