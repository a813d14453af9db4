"""Linear programming core for Tableau Optimizer."""

from .dual_simplex import DualSimplexSolver
from .utils import analyze_infeasibility, canonicalize, filter_linearly_independent_rows, restore_objective

__all__ = [
    "DualSimplexSolver",
    "analyze_infeasibility",
    "canonicalize",
    "filter_linearly_independent_rows",
    "restore_objective",
]
