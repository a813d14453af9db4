from mcp.server.fastmcp import FastMCP
from .schemas import ProblemInput, SolveOptions
from .lp.dual_simplex import DualSimplexSolver
from .lp.utils import analyze_infeasibility, canonicalize, restore_objective
from .mip.branch_and_bound import BranchAndBoundSolver
from .mip.branch_and_cut import BranchAndCutSolver

mcp = FastMCP("Tableau Optimizer")


@mcp.tool()
def solve_linear_program(model: ProblemInput, options: SolveOptions | None = None) -> dict:
    "Solve the LP relaxation with the dense-tableau dual simplex and return the result dict."
    opts = options or SolveOptions()
    problem = canonicalize(model)
    result = DualSimplexSolver(problem.c, problem.A, problem.b, opts.max_iters).solve()
    return restore_objective(result, model.sense).model_dump()


@mcp.tool()
def solve_branch_and_bound(model: ProblemInput, options: SolveOptions | None = None) -> dict:
    "Solve a MILP by depth-first branch-and-bound; returns the result and the node trace."
    opts = options or SolveOptions()
    problem = canonicalize(model)
    solver = BranchAndBoundSolver(problem.c, problem.A, problem.b, model.integer_indices(), opts)
    result = restore_objective(solver.solve(), model.sense)
    return {
        "result": result.model_dump(),
        "nodes": [record.model_dump() for record in solver.get_history()],
    }


@mcp.tool()
def solve_branch_and_cut(model: ProblemInput, options: SolveOptions | None = None) -> dict:
    "Solve a MILP by branch-and-cut with Gomory cuts; returns the result, node trace and cut trace."
    opts = options or SolveOptions()
    problem = canonicalize(model)
    solver = BranchAndCutSolver(problem.c, problem.A, problem.b, model.integer_indices(), opts)
    result = restore_objective(solver.solve(), model.sense)
    return {"result": result.model_dump(), **solver.get_history().model_dump()}


@mcp.tool()
def diagnose_infeasibility(model: ProblemInput) -> dict:
    "Return drop-one infeasibility diagnostics over the canonical rows of the model."
    problem = canonicalize(model)
    return analyze_infeasibility(problem.c, problem.A, problem.b)


if __name__ == "__main__":
    mcp.run()
