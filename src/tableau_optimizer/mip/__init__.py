"""Mixed-integer tree search drivers for Tableau Optimizer."""

from .branch_and_bound import BranchAndBoundSolver
from .branch_and_cut import BranchAndCutSolver

__all__ = ["BranchAndBoundSolver", "BranchAndCutSolver"]
