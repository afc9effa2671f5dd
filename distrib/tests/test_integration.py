import math
import pytest
from distrib.numerics.integration import integral, expectation
from distrib.tools import isclose

def test_integral_polynomial_is_exact():
    assert isclose(integral(lambda x: 3*x*x, 0, 2), 8.0, rtol=1e-12)

def test_integral_sine():
    assert isclose(integral(math.sin, 0, math.pi), 2.0, rtol=1e-10)

def test_integral_bounds():
    assert integral(math.sin, 1.0, 1.0) == 0.0
    assert isclose(integral(math.sin, math.pi, 0), -2.0, rtol=1e-10)
    assert math.isnan(integral(math.exp, 0, float('inf')))
    assert math.isnan(integral(math.exp, float('-inf'), 0))

def test_integral_never_evaluates_bounds():
    calls = []
    def f(x):
        calls.append(x)
        return 1 / math.sqrt(x)
    assert isclose(integral(f, 0, 1, limit=500), 2.0, rtol=1e-5)
    assert min(calls) > 0

def test_integral_sharp_peak():
    width = 0.02
    f = lambda x: math.exp(-0.5 * (x / width)**2) / (width * math.sqrt(2 * math.pi))
    assert isclose(integral(f, -1, 1), 1.0, rtol=1e-7)

def test_expectation_right_semi_infinite():
    value = expectation(lambda x: x * math.exp(-x), 0.0, float('inf'))
    direct = integral(lambda x: x * math.exp(-x), 0.0, 50.0)
    assert isclose(value, 1.0, rtol=1e-8)
    assert isclose(value, direct, rtol=1e-8)

def test_expectation_shifted_lower_bound():
    value = expectation(lambda x: math.exp(-x), 2.0, float('inf'))
    assert isclose(value, math.exp(-2), rtol=1e-8)

def test_expectation_left_semi_infinite():
    value = expectation(lambda x: math.exp(x), float('-inf'), 1.0)
    assert isclose(value, math.e, rtol=1e-8)

@pytest.mark.parametrize("power, expected", [(0, 1.0), (2, 1.0), (4, 3.0)])
def test_expectation_infinite(power, expected):
    pdf = lambda x: math.exp(-0.5 * x * x) / math.sqrt(2 * math.pi)
    value = expectation(lambda x: x**power * pdf(x), float('-inf'), float('inf'))
    assert isclose(value, expected, rtol=1e-7)

def test_expectation_finite():
    assert isclose(expectation(lambda x: x, 0.0, 2.0), 2.0, rtol=1e-12)

def test_expectation_empty_range():
    assert expectation(lambda x: 1.0, 1.0, 1.0) == 0.0
    assert expectation(lambda x: 1.0, 2.0, 1.0) == 0.0

def test_expectation_zero_integrand():
    assert expectation(lambda x: 0.0, 0.0, float('inf')) == 0.0
