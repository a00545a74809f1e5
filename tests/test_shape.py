import math

import pytest

from hailstorm.shape import (
    SimulationError,
    costrapz,
    parse_shape_fun,
    rect,
    step,
    trapz,
    tri,
)


@pytest.mark.parametrize(
    "f_name",
    ["trapz(t,2,1)", "costrapz(t,2,1)", "tri(t)", "rect(t)", "step(t)"],
)
def test_trapz_parse(f_name):
    fun = parse_shape_fun(f_name)
    for x in range(513):
        y = fun(x / 256.0 - 1.0)
        assert 0.0 <= y <= 1.0


def test_rect_values():
    assert rect(0.0) == 1.0
    assert rect(0.5) == 0.5
    assert rect(-0.5) == 0.5
    assert rect(1.0) == 0.0


def test_tri_values():
    assert tri(0.0) == 1.0
    assert tri(0.5) == 0.5
    assert tri(2.0) == 0.0


def test_step_values():
    assert step(-1.0) == 0.0
    assert step(0.0) == 0.5
    assert step(1.0) == 1.0


def test_trapz_values():
    assert trapz(0.0, 2.0, 1.0) == 1.0
    assert trapz(2.0, 2.0, 1.0) == 0.0
    assert trapz(0.75, 2.0, 1.0) == pytest.approx(0.5)


def test_costrapz_edges():
    assert costrapz(0.0, 2.0, 1.0) == 1.0
    assert costrapz(0.5, 2.0, 1.0) == pytest.approx(1.0)
    assert costrapz(1.0, 2.0, 1.0) == pytest.approx(0.0, abs=1e-12)
    assert costrapz(3.0, 2.0, 1.0) == 0.0


def test_documented_example():
    fun = parse_shape_fun("rect(t) + tri(t - 1)")
    assert fun(0.5) == pytest.approx(1.0)


def test_arithmetic_precedence():
    assert parse_shape_fun("2 + 3 * t")(2) == 8.0
    assert parse_shape_fun("(2 + 3) * t")(2) == 10.0
    assert parse_shape_fun("2^3^2")(0) == 512.0
    assert parse_shape_fun("-2^2")(0) == -4.0
    assert parse_shape_fun("7 % 4")(0) == 3.0


def test_constants_and_builtins():
    assert parse_shape_fun("pi")(0) == pytest.approx(math.pi)
    assert parse_shape_fun("max(t, 3, 1)")(2) == 3.0
    assert parse_shape_fun("min(t, 3, 1)")(2) == 1.0
    assert parse_shape_fun("abs(t)")(-4) == 4.0
    assert parse_shape_fun("round(t)")(-2.5) == -3.0


def test_division_by_zero_is_infinite():
    assert parse_shape_fun("1 / t")(0) == math.inf
    assert math.isnan(parse_shape_fun("t / t")(0))


def test_shape_follows_time():
    fun = parse_shape_fun("10 * step(t - 5)")
    assert fun(4) == 0.0
    assert fun(5) == 5.0
    assert fun(6) == 10.0


@pytest.mark.parametrize(
    "expr",
    ["foo(t)", "x + 1", "1 +", "(1", "trapz(t, 1)", "", "t t", "max()"],
)
def test_bad_expressions(expr):
    with pytest.raises(SimulationError):
        parse_shape_fun(expr)


def test_error_message_prefix():
    with pytest.raises(SimulationError, match="^Bad Shape function - "):
        parse_shape_fun("unknown(t)")