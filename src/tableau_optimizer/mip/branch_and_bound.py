import logging
import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from ..lp.dual_simplex import DualSimplexSolver
from ..lp.utils import to_problem
from ..schemas import NodeRecord, OptimizationResult, SolveOptions
from .utils import (
    BoundConstraint,
    branch_bounds,
    branching_variable,
    format_bounds,
    format_solution,
    is_integral,
    rounded_objective,
    truncation_message,
    validate_integer_indices,
)

logger = logging.getLogger(__name__)


@dataclass
class BBNode:
    id: int
    parent_id: int
    bounds: List[BoundConstraint] = field(default_factory=list)
    parent_objective: float = -math.inf


@dataclass
class _SearchState:
    best_objective: float = math.inf
    best_solution: Optional[List[float]] = None
    history: List[NodeRecord] = field(default_factory=list)
    last_id: int = 1
    nodes_explored: int = 0
    unbounded: bool = False
    iteration_limited: bool = False

    def next_id(self) -> int:
        self.last_id += 1
        return self.last_id


class BranchAndBoundSolver:
    """
    Depth-first branch-and-bound over a shared base problem.

    Every node only carries its branching bounds; they are appended as extra
    rows to a copy of the base A/b when the node is solved, so the base
    system is never mutated. ``parent_objective`` is kept for logging only;
    pruning compares each node's own relaxation against the incumbent.
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
        self._history: List[NodeRecord] = []

    def solve_relaxation(self, bounds: Sequence[BoundConstraint] = ()) -> OptimizationResult:
        """LP relaxation of the base problem plus the given bounds."""
        A = [list(row) for row in self.problem.A]
        b = list(self.problem.b)
        for bound in bounds:
            row, rhs = bound.as_row(self.problem.num_vars)
            A.append(row)
            b.append(rhs)
        return DualSimplexSolver(self.problem.c, A, b, self.options.max_iters).solve()

    def solve(self) -> OptimizationResult:
        state = _SearchState()
        stack: List[BBNode] = [BBNode(id=1, parent_id=0)]
        max_nodes = self.options.max_nodes

        while stack:
            if max_nodes is not None and state.nodes_explored >= max_nodes:
                logger.warning("Branch-and-bound stopped at node limit (%d)", max_nodes)
                break
            node = stack.pop()
            state.nodes_explored += 1
            if not self._process_node(node, state, stack):
                break

        self._history = state.history
        result = self._final_result(state, hit_node_limit=bool(stack) and not state.unbounded)
        logger.info(
            "Branch-and-bound finished: status=%s nodes=%d objective=%s",
            result.status,
            state.nodes_explored,
            result.objective_value,
        )
        return result

    def _process_node(self, node: BBNode, state: _SearchState, stack: List[BBNode]) -> bool:
        """Solve, prune or branch one node. Returns False when the search must stop."""
        result = self.solve_relaxation(node.bounds)
        record = NodeRecord(id=node.id, parent_id=node.parent_id, constraints=format_bounds(node.bounds))
        logger.debug(
            "Node %d (parent %d, parent bound %.4f): %s", node.id, node.parent_id, node.parent_objective, result.status
        )

        if result.status in ("infeasible", "not_dual_feasible"):
            record.status = "Infeasible"
            state.history.append(record)
            return True
        if result.status == "unbounded":
            record.status = "Unbounded"
            state.history.append(record)
            state.unbounded = True
            return False
        if result.status == "iteration_limit":
            record.status = "Iteration Limit"
            state.history.append(record)
            state.iteration_limited = True
            return True

        objective = result.objective_value
        record.objective_value = rounded_objective(objective)
        record.solution = format_solution(result.solution)

        if objective >= state.best_objective:
            record.status = "Pruned (Bound)"
            state.history.append(record)
            return True

        if is_integral(result.solution, self.integer_indices):
            state.best_objective = objective
            state.best_solution = result.solution
            record.status = "Integer Found"
            state.history.append(record)
            logger.debug("New incumbent %.6g at node %d", objective, node.id)
            return True

        record.status = "Branched"
        state.history.append(record)

        var_index = branching_variable(result.solution, self.integer_indices)
        down, up = branch_bounds(var_index, result.solution[var_index])
        left = BBNode(
            id=state.next_id(),
            parent_id=node.id,
            bounds=node.bounds + [down],
            parent_objective=objective,
        )
        right = BBNode(
            id=state.next_id(),
            parent_id=node.id,
            bounds=node.bounds + [up],
            parent_objective=objective,
        )
        stack.append(right)
        stack.append(left)
        return True

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

        message = f"Explored nodes: {state.nodes_explored}"
        return OptimizationResult(
            status="iteration_limit" if truncated else "optimal",
            objective_value=float(state.best_objective),
            solution=list(state.best_solution),
            iterations=state.nodes_explored,
            message=f"{message}. {truncated}" if truncated else message,
        )

    def get_history(self, sort_by_id: bool = True) -> List[NodeRecord]:
        """Node trace of the last ``solve()``, sorted by id or in visitation order."""
        if sort_by_id:
            return sorted(self._history, key=lambda record: record.id)
        return list(self._history)
