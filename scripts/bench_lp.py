#!/usr/bin/env python3
import time

from tableau_optimizer.lp.dual_simplex import DualSimplexSolver
from tableau_optimizer.lp.utils import canonicalize
from tableau_optimizer.mip.branch_and_bound import BranchAndBoundSolver
from tableau_optimizer.mip.branch_and_cut import BranchAndCutSolver
from tableau_optimizer.schemas import SolveOptions
from scripts.generate_instances import generate_random_milp


def main() -> None:
    opts = SolveOptions()
    cases = [(f"random-{seed}", generate_random_milp(4, 3, seed)) for seed in range(5)]

    print("name,method,status,objective,iterations,time_ms")
    for name, model in cases:
        problem = canonicalize(model)
        indices = model.integer_indices()
        runs = [
            ("lp", lambda: DualSimplexSolver(problem.c, problem.A, problem.b, opts.max_iters).solve()),
            ("bnb", lambda: BranchAndBoundSolver(problem.c, problem.A, problem.b, indices, opts).solve()),
            ("bnc", lambda: BranchAndCutSolver(problem.c, problem.A, problem.b, indices, opts).solve()),
        ]
        for method, run in runs:
            start = time.perf_counter()
            solution = run()
            elapsed_ms = (time.perf_counter() - start) * 1000
            objective = None if solution.objective_value is None else -solution.objective_value
            print(f"{name},{method},{solution.status},{objective},{solution.iterations},{elapsed_ms:.2f}")


if __name__ == "__main__":
    main()
