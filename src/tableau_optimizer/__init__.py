"""Dense-tableau dual simplex with branch-and-bound and branch-and-cut drivers."""

from .lp import DualSimplexSolver
from .mip import BranchAndBoundSolver, BranchAndCutSolver
from .schemas import (
    BCNodeRecord,
    BranchAndCutHistory,
    CanonicalProblem,
    CutRecord,
    NodeRecord,
    OptimizationResult,
    SolveOptions,
)

__all__ = [
    "DualSimplexSolver",
    "BranchAndBoundSolver",
    "BranchAndCutSolver",
    "BCNodeRecord",
    "BranchAndCutHistory",
    "CanonicalProblem",
    "CutRecord",
    "NodeRecord",
    "OptimizationResult",
    "SolveOptions",
]
