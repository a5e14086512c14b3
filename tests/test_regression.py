import math

import numpy as np
import pytest

from ucdim import UC
from ucdim.errors import ShapeMismatchError
from ucdim.stats.regression import (
    linear_projection,
    linear_regression,
    project_uncertain,
)

X = np.array([0.0, 1.0, 2.0, 3.0])


def test_exact_fit_projects_exactly():
    zeros = np.zeros_like(X)
    result = linear_projection(X, X, zeros, zeros, 5.0)
    assert result.value == pytest.approx(5.0)
    assert result.err == pytest.approx(0.0, abs=1e-9)
    assert result.slope.value == pytest.approx(1.0)
    assert result.intercept.value == pytest.approx(0.0, abs=1e-12)
    assert result.n == 4
    assert result.r2 == pytest.approx(1.0)


def test_y_uncertainty_propagates_to_slope_and_intercept():
    y = 2.0 * X + 1.0
    sigma = 0.1
    result = linear_projection(X, y, np.zeros(4), np.full(4, sigma), 5.0)
    sxx = float(np.sum((X - X.mean()) ** 2))
    assert result.slope.err_proj == pytest.approx(sigma / math.sqrt(sxx))
    assert result.intercept.err_proj == pytest.approx(
        sigma * math.sqrt(np.sum(X**2) / (4 * sxx))
    )
    assert result.err_proj == pytest.approx(
        math.hypot(5.0 * result.slope.err_proj, result.intercept.err_proj)
    )
    assert result.err_stat == pytest.approx(0.0, abs=1e-9)


def test_x_uncertainty_scales_with_slope():
    y = 2.0 * X + 1.0
    result = linear_projection(X, y, np.full(4, 0.1), np.zeros(4), 0.0)
    sxx = float(np.sum((X - X.mean()) ** 2))
    assert result.slope.err_proj == pytest.approx(2.0 * 0.1 / math.sqrt(sxx))


def test_statistical_error_matches_prediction_interval():
    x = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
    y = np.array([2.1, 3.9, 6.2, 7.8, 10.1, 12.2])
    x0 = 8.0
    zeros = np.zeros_like(x)
    result = linear_projection(x, y, zeros, zeros, x0)
    fit = linear_regression(x, y)
    expected = math.sqrt(
        fit["mse"] * (1 + 1 / 6 + (x0 - fit["xbar"]) ** 2 / fit["ssxx"])
    )
    assert result.err_stat == pytest.approx(expected)
    assert result.err == pytest.approx(expected)
    assert result.slope.err_stat == pytest.approx(fit["se_m"])
    assert result.value == pytest.approx(fit["m"] * x0 + fit["b"])


def test_two_points_warn_and_have_no_statistical_error():
    x = np.array([0.0, 2.0])
    y = np.array([1.0, 5.0])
    with pytest.warns(RuntimeWarning):
        result = linear_projection(x, y, [0.0, 0.0], [0.1, 0.1], 1.0)
    assert result.value == pytest.approx(3.0)
    assert result.err_stat == 0.0
    assert result.err == pytest.approx(result.err_proj)
    assert result.err_proj > 0


def test_input_validation():
    with pytest.raises(ValueError):
        linear_projection([1.0], [1.0], [0.0], [0.0], 2.0)
    with pytest.raises(ShapeMismatchError):
        linear_projection(X, X[:3], np.zeros(4), np.zeros(4), 1.0)
    with pytest.raises(ShapeMismatchError):
        linear_projection(np.ones((2, 2)), np.ones((2, 2)), 0, 0, 1.0)
    with pytest.raises(ValueError):
        linear_projection([1.0, 1.0, 1.0], [1.0, 2.0, 3.0], [0, 0, 0], [0, 0, 0], 2.0)
    with pytest.raises(ValueError):
        linear_projection([0.0, np.nan, 2.0], [1.0, 2.0, 3.0], [0, 0, 0], [0, 0, 0], 2.0)


def test_project_uncertain_returns_leaf():
    x = UC([0.0, 1.0, 2.0, 3.0], 0.05, name="x")
    y = UC([1.0, 3.1, 4.9, 7.0], 0.1, name="y")
    result = project_uncertain(x, y, 4.0)
    reference = linear_projection(x.value, y.value, x.err, y.err, 4.0)
    assert isinstance(result, UC)
    assert result.name == "projection"
    assert result.value == pytest.approx(reference.value)
    assert result.err == pytest.approx(reference.err)
    assert dict(result.contributions) == {"projection": 1.0}


def test_linear_regression_diagnostics():
    x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
    y = np.array([1.1, 1.9, 3.2, 3.9, 5.1])
    fit = linear_regression(x, y)
    assert fit["n"] == 5
    assert fit["dof"] == 3
    assert 0.9 < fit["r2"] <= 1.0
    assert fit["ci95_m"] > fit["se_m"] > 0
    assert fit["p_m"] < 0.01


def test_linear_regression_requires_points_and_spread():
    with pytest.raises(ValueError):
        linear_regression([1.0, 2.0], [1.0, 2.0])
    with pytest.raises(ValueError):
        linear_regression([2.0, 2.0, 2.0], [1.0, 2.0, 3.0])
    fit = linear_regression([1.0, 2.0, 3.0, np.nan], [4.0, 4.0, 4.0, 1.0])
    assert fit["n"] == 3
    assert math.isnan(fit["r2"])
