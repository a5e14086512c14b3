import math

import numpy as np
import pytest

from ucdim import UC, DimVar, umath
from ucdim.errors import UnitMismatchError


@pytest.mark.parametrize(
    "name, x0",
    [
        ("sin", 0.7),
        ("cos", 0.7),
        ("tan", 0.7),
        ("csc", 0.7),
        ("sec", 0.7),
        ("cot", 0.7),
        ("asin", 0.3),
        ("acos", 0.3),
        ("atan", 0.3),
        ("asec", 1.8),
        ("acsc", 1.8),
        ("acot", 1.8),
        ("sqrt", 2.5),
        ("exp", 0.4),
        ("log", 2.5),
        ("log10", 2.5),
        ("log2", 2.5),
    ],
)
def test_uncertainty_matches_numerical_derivative(name, x0):
    func = getattr(umath, name)
    sigma = 1e-3
    h = 1e-6
    slope = (func(x0 + h) - func(x0 - h)) / (2 * h)

    y = func(UC(x0, sigma, name="x"))
    assert y.value == pytest.approx(func(x0))
    assert y.err == pytest.approx(abs(slope) * sigma, rel=1e-5)
    assert dict(y.contributions) == {"x": 1.0}


def test_plain_numbers_and_arrays():
    assert umath.sqrt(4.0) == 2.0
    assert isinstance(umath.log(1.0), float)
    assert np.allclose(umath.exp(np.array([0.0, 1.0])), [1.0, math.e])
    assert umath.asec(2.0) == pytest.approx(math.acos(0.5))


def test_absolute_keeps_uncertainty():
    y = umath.absolute(UC(-2.0, 0.1))
    assert y.value == 2.0
    assert y.err == pytest.approx(0.1)


def test_dimvar_arguments():
    side = umath.sqrt(DimVar(9, "m^2"))
    assert side.value == pytest.approx(3.0)
    assert side.unit == "m"
    assert umath.cos(DimVar(0.0)).value == pytest.approx(1.0)
    with pytest.raises(UnitMismatchError):
        umath.exp(DimVar(1, "s"))
