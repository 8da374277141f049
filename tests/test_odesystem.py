import math

import numpy as np
import pytest

from odefit.config import GAArgument
from odefit.odesystem import (
    Expression,
    ExpressionError,
    OdeSystem,
    create_ode_system,
    save,
    solve,
)


def test_create_ode_system_parses_equations_and_terms():
    system = create_ode_system("y = k * x\nx = -k * x\n", [(" k ", 0.5)])
    assert sorted(system.equations) == ["x", "y"]
    assert system.context == {"k": 0.5}


def test_create_ode_system_ignores_malformed_lines():
    system = create_ode_system("no equation here\na = b = c\nz = 1", [])
    assert list(system.equations) == ["z"]


def test_create_ode_system_rejects_bad_expression():
    with pytest.raises(ExpressionError):
        create_ode_system("x = 2 * * x", [])


def test_expression_power_matches_product():
    square = Expression.parse("x ^ 2")
    product = Expression.parse("x * x")
    for value in (0.0, 1.5, -3.0):
        assert square.evaluate({"x": value}) == product.evaluate({"x": value})


def test_expression_unary_minus_binds_looser_than_power():
    neg = Expression.parse("-x^2")
    assert neg.evaluate({"x": 3.0}) == -Expression.parse("x^2").evaluate({"x": 3.0})


def test_expression_unknown_variable_raises():
    with pytest.raises(ExpressionError):
        Expression.parse("a + b").evaluate({"a": 1.0})


def test_expression_reports_variables():
    assert Expression.parse("sin(a) + b * a").variables == frozenset({"a", "b"})


def test_update_context_with_state_uses_name_order():
    system = create_ode_system("b = 1\na = 2", [])
    system.update_context_with_state([10.0, 20.0])
    assert system.context["a"] == 10.0
    assert system.context["b"] == 20.0


def test_derivatives_in_name_order_and_failures_give_zero():
    system = create_ode_system("b = a + missing\na = 2 * a", [])
    dydt = system.derivatives(0.0, [4.0, 1.0])
    assert dydt[0] == system.equations["a"].evaluate({"a": 4.0})
    assert dydt[1] == 0.0


def test_update_context_pairs_args_with_values():
    system = OdeSystem()
    system.set_context([GAArgument("k", 1.0), GAArgument("m", 2.0)])
    system.update_context([GAArgument("k", 0.0)], [7.0])
    assert system.context == {"k": 7.0, "m": 2.0}


def test_solve_exponential_decay():
    system = create_ode_system("x = -k * x", [])
    result = solve(system, [1.0], 0.0, 2.0, 0.5, [GAArgument("k", 0.0)], [0.3])
    assert len(result) == 5
    for step, state in enumerate(result):
        assert state[0] == pytest.approx(math.exp(-0.3 * 0.5 * step), rel=1e-6)


def test_solve_leaves_system_unchanged():
    system = create_ode_system("x = -k * x", [("k", 1.0)])
    solve(system, [1.0], 0.0, 1.0, 0.5, [GAArgument("k", 0.0)], [0.2])
    assert system.context == {"k": 1.0}


def test_solve_rejects_non_positive_step():
    system = create_ode_system("x = 1", [])
    with pytest.raises(ValueError):
        solve(system, [0.0], 0.0, 1.0, 0.0, [], [])


def test_save_writes_csv(tmp_path):
    path = tmp_path / "out.csv"
    save([0.0, 0.5], [np.array([1.0, 2.5]), np.array([3.0, 4.0])], path)
    assert path.read_text() == "0.000000, 1, 2.5\n0.500000, 3, 4\n"


def test_save_stops_at_shorter_input(tmp_path):
    path = tmp_path / "out.csv"
    save([0.0], [[1.0], [2.0], [3.0]], path)
    assert len(path.read_text().splitlines()) == 1