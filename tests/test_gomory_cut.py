import itertools

import numpy as np
import pytest

from tableau_optimizer.lp.dual_simplex import DualSimplexSolver


def integer_points(A, b, upper=6):
    A = np.array(A)
    b = np.array(b)
    for point in itertools.product(range(upper + 1), repeat=A.shape[1]):
        x = np.array(point, dtype=float)
        if np.all(A @ x <= b + 1e-9):
            yield x


def test_cut_from_textbook_example_is_y_at_most_one():
    # max y  s.t.  3x + 2y <= 6,  -3x + 2y <= 0  -> LP optimum (1, 1.5)
    c, A, b = [0.0, -1.0], [[3.0, 2.0], [-3.0, 2.0]], [6.0, 0.0]
    solver = DualSimplexSolver(c, A, b)
    solution = solver.solve()
    assert solution.solution == pytest.approx([1.0, 1.5])

    cut = solver.generate_gomory_cut([0, 1], A, b)

    assert cut is not None
    assert cut.row == pytest.approx([0.0, 1.0])
    assert cut.rhs == pytest.approx(1.0)


def test_cut_separates_vertex_and_keeps_integer_points():
    # max 5x + 4y  s.t.  6x + 4y <= 24,  x + 2y <= 6  -> LP optimum (3, 1.5)
    c, A, b = [-5.0, -4.0], [[6.0, 4.0], [1.0, 2.0]], [24.0, 6.0]
    solver = DualSimplexSolver(c, A, b)
    vertex = np.array(solver.solve().solution)

    cut = solver.generate_gomory_cut([0, 1], A, b)
    row = np.array(cut.row)

    assert row @ vertex - cut.rhs == pytest.approx(0.5)
    for point in integer_points(A, b):
        assert row @ point <= cut.rhs + 1e-9


def test_no_cut_when_integer_variables_are_integral():
    solver = DualSimplexSolver([-1.0, -1.0], [[1.0, 1.0]], [10.0])
    solver.solve()

    assert solver.generate_gomory_cut([0, 1], [[1.0, 1.0]], [10.0]) is None


def test_no_cut_when_fractional_variable_is_not_integer_restricted():
    c, A, b = [0.0, -1.0], [[3.0, 2.0], [-3.0, 2.0]], [6.0, 0.0]
    solver = DualSimplexSolver(c, A, b)
    solver.solve()

    assert solver.generate_gomory_cut([0], A, b) is None


def test_cuts_compound_through_previous_cuts():
    c, A, b = [0.0, -1.0], [[3.0, 2.0], [-3.0, 2.0]], [6.0, 0.0]
    solver = DualSimplexSolver(c, A, b)
    solver.solve()
    first = solver.generate_gomory_cut([0, 1], A, b)

    A2 = A + [first.row]
    b2 = b + [first.rhs]
    solver = DualSimplexSolver(c, A2, b2)
    solution = solver.solve()
    assert solution.objective_value == pytest.approx(-1.0)

    second = solver.generate_gomory_cut([0, 1], A2, b2)
    row = np.array(second.row)

    assert row @ np.array(solution.solution) > second.rhs + 1e-6
    for point in integer_points(A, b):
        assert row @ point <= second.rhs + 1e-9
