import pytest

from tableau_optimizer.lp.utils import (
    analyze_infeasibility,
    canonicalize,
    filter_linearly_independent_rows,
    max_violation,
    restore_objective,
)
from tableau_optimizer.mip.utils import (
    BoundConstraint,
    branch_bounds,
    branching_variable,
    format_bounds,
    format_cut,
    format_solution,
    is_integral,
)
from tableau_optimizer.schemas import ConstraintRow, OptimizationResult, ProblemInput


def test_canonicalize_flips_senses_and_objective():
    model = ProblemInput(
        sense="max",
        objective=[3.0, 2.0],
        constraints=[
            ConstraintRow(coefficients=[1.0, 1.0], cmp="<=", rhs=4.0),
            ConstraintRow(coefficients=[1.0, 0.0], cmp=">=", rhs=1.0),
            ConstraintRow(coefficients=[0.0, 1.0], cmp="==", rhs=2.0),
        ],
    )
    problem = canonicalize(model)

    assert problem.c == [-3.0, -2.0]
    assert problem.A == [[1.0, 1.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0]]
    assert problem.b == [4.0, -1.0, 2.0, -2.0]


def test_canonicalize_rejects_ragged_rows():
    model = ProblemInput(objective=[1.0, 1.0], constraints=[ConstraintRow(coefficients=[1.0], rhs=1.0)])
    with pytest.raises(ValueError):
        canonicalize(model)


def test_restore_objective_only_for_max():
    result = OptimizationResult(status="optimal", objective_value=-36.0, solution=[2.0, 6.0])

    assert restore_objective(result, "max").objective_value == 36.0
    assert restore_objective(result, "min").objective_value == -36.0
    assert result.objective_value == -36.0

    missing = OptimizationResult(status="infeasible", objective_value=None)
    assert restore_objective(missing, "max").objective_value is None


def test_filter_linearly_independent_rows():
    A = [[1.0, 0.0], [2.0, 0.0], [0.0, 1.0], [1.0, 1.0]]
    b = [1.0, 2.0, 3.0, 4.0]

    rows, rhs = filter_linearly_independent_rows(A, b)

    assert rows == [[1.0, 0.0], [0.0, 1.0]]
    assert rhs == [1.0, 3.0]
    assert filter_linearly_independent_rows([], []) == ([], [])


def test_max_violation():
    A = [[1.0, 1.0]]
    b = [10.0]

    assert max_violation(A, b, [4.0, 6.0]) == 0.0
    assert max_violation(A, b, [6.0, 6.0]) == pytest.approx(2.0)
    assert max_violation(A, b, [-1.0, 0.0]) == pytest.approx(1.0)
    assert max_violation([], [], [1.0]) == 0.0


def test_analyze_infeasibility_lists_conflicting_rows():
    report = analyze_infeasibility([1.0, 1.0], [[1.0, 0.0], [-1.0, 0.0], [0.0, 1.0]], [1.0, -2.0, 5.0])

    assert report["status"] == "infeasible"
    assert report["conflicting_constraints"] == [0, 1]
    assert report["suggestions"]


def test_analyze_infeasibility_on_feasible_problem():
    report = analyze_infeasibility([1.0], [[1.0]], [3.0])

    assert report["status"] == "optimal"
    assert report["conflicting_constraints"] == []


def test_bound_rows():
    assert BoundConstraint(1, "<=", 2.0).as_row(3) == ([0.0, 1.0, 0.0], 2.0)
    assert BoundConstraint(0, ">=", 3.0).as_row(2) == ([-1.0, 0.0], -3.0)
    assert str(BoundConstraint(0, ">=", 3.0)) == "x0 >= 3"


def test_branch_bounds_use_floor_and_ceil():
    down, up = branch_bounds(2, 1.5)

    assert down == BoundConstraint(2, "<=", 1.0)
    assert up == BoundConstraint(2, ">=", 2.0)
    assert format_bounds([down, up]) == "x2 <= 1, x2 >= 2"
    assert format_bounds([]) == "Root"


def test_branching_variable_is_lowest_fractional_index():
    solution = [1.0, 2.5, 3.5, 0.2]

    assert branching_variable(solution, [0, 1, 2]) == 1
    assert branching_variable(solution, [0]) is None
    assert is_integral([1.0, 2.000001], [0, 1])
    assert not is_integral(solution, [2])


def test_trace_formatting():
    assert format_solution([3.0, 1.5, 2.0 / 3.0, -0.0]) == "[3, 1.5, 0.67, 0]"
    assert format_cut([1.0, 0.5, 0.00001], 2.0) == "1.00*x0 + 0.50*x1 <= 2.00"
    assert format_cut([0.0], -0.3) == "0 <= -0.30"


def test_canonicalize_keeps_dependent_inequality_rows():
    model = ProblemInput(
        objective=[-1.0, 0.0],
        constraints=[
            ConstraintRow(coefficients=[1.0, 0.0], rhs=1.0),
            ConstraintRow(coefficients=[2.0, 0.0], rhs=1.0),
        ],
    )
    problem = canonicalize(model)

    assert problem.A == [[1.0, 0.0], [2.0, 0.0]]
    assert filter_linearly_independent_rows(problem.A, problem.b) == ([[1.0, 0.0]], [1.0])
