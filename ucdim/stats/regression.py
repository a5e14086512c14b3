"""Straight-line fits and uncertainty of values projected from them.

This module supports:
- ordinary least-squares line fits with standard errors and confidence
  half-widths, and
- projection of a fitted line to a new abscissa, combining the statistical
  prediction error of the fit with the uncertainty propagated from per-point
  x and y uncertainties.
"""

from __future__ import annotations

import logging
import math
import warnings
from dataclasses import dataclass
from typing import Dict

import numpy as np
from scipy.stats import t as student_t

from ..errors import ShapeMismatchError

logger = logging.getLogger(__name__)


def linear_regression(
    x: np.ndarray, y: np.ndarray, min_points: int = 3
) -> Dict[str, float]:
    """Fit an ordinary least-squares straight line to finite data pairs.

    Args:
        x (numpy.ndarray): Independent variable array.
        y (numpy.ndarray): Dependent variable array.
        min_points (int, optional): Minimum number of finite paired
            observations required. Defaults to ``3``.

    Returns:
        dict[str, float]: Regression diagnostics with keys ``m`` (slope),
        ``b`` (intercept), ``r2`` (coefficient of determination), ``se_m``,
        ``se_b``, ``ci95_m``, ``ci95_b`` (95% half-widths), ``p_m``
        (p-value for slope), ``n``, ``dof``, ``mse``, ``ssxx`` and ``xbar``.

    Raises:
        ValueError: If there are insufficient valid points or no variance in
            ``x``.

    Note:
        ``r2`` is NaN when ``y`` is constant. Standard errors describe the
        scatter about the line only and are NaN without residual degrees of
        freedom (two points).
    """
    x_arr = np.asarray(x, dtype=float)
    y_arr = np.asarray(y, dtype=float)
    mask = np.isfinite(x_arr) & np.isfinite(y_arr)
    x_arr = x_arr[mask]
    y_arr = y_arr[mask]
    n = int(len(x_arr))
    if n < max(min_points, 2):
        raise ValueError("Insufficient valid data for regression.")

    xbar = float(np.mean(x_arr))
    ssxx = float(np.sum((x_arr - xbar) ** 2))
    if ssxx <= 0:
        raise ValueError("Insufficient x variance for regression.")

    m, b = np.polyfit(x_arr, y_arr, 1)
    yhat = m * x_arr + b
    resid = y_arr - yhat

    sse = float(np.sum(resid**2))
    sst = float(np.sum((y_arr - y_arr.mean()) ** 2))
    r2 = 1.0 - sse / sst if sst > 0 else math.nan

    dof = n - 2
    mse = sse / dof if dof > 0 else np.inf

    se_m = math.nan
    se_b = math.nan
    ci95_m = math.nan
    ci95_b = math.nan
    p_m = math.nan

    if dof > 0:
        se_m = float(np.sqrt(mse / ssxx))
        se_b = float(np.sqrt(mse * (1.0 / n + (xbar**2) / ssxx)))

        t_stat = m / se_m if se_m > 0 else np.inf
        p_m = float(2 * (1 - student_t.cdf(abs(t_stat), dof)))
        t_crit = float(student_t.ppf(0.975, dof))
        ci95_m = t_crit * se_m
        ci95_b = t_crit * se_b

    return {
        "m": float(m),
        "b": float(b),
        "r2": float(r2),
        "se_m": se_m,
        "se_b": se_b,
        "ci95_m": ci95_m,
        "ci95_b": ci95_b,
        "p_m": p_m,
        "n": n,
        "dof": dof,
        "mse": mse,
        "ssxx": ssxx,
        "xbar": xbar,
    }


@dataclass(frozen=True)
class FitParameter:
    """A fitted quantity with its statistical and propagated uncertainty."""

    value: float
    err: float
    err_stat: float
    err_proj: float


@dataclass(frozen=True)
class LinearProjection:
    """Value of a fitted line at ``x0`` and the fitted slope and intercept.

    Attributes:
        value: Projected ordinate ``m·x0 + b``.
        err: Total uncertainty, ``sqrt(err_stat² + err_proj²)``.
        err_stat: Prediction error from the fit residuals.
        err_proj: Uncertainty propagated from the input x/y uncertainties.
        slope: Fitted slope with the same error breakdown.
        intercept: Fitted intercept with the same error breakdown.
        n: Number of points used.
        r2: Coefficient of determination of the fit.
    """

    value: float
    err: float
    err_stat: float
    err_proj: float
    slope: FitParameter
    intercept: FitParameter
    n: int
    r2: float


def _propagated_fit_errors(x, y, e_x, e_y) -> tuple[float, float]:
    """Slope and intercept uncertainty from per-point x and y uncertainties.

    Differentiates the closed-form estimators
    ``m = (nΣxy - ΣxΣy) / (nΣx² - (Σx)²)`` and
    ``b = (ΣyΣx² - ΣxΣxy) / (nΣx² - (Σx)²)`` with respect to every ``x_i``
    and ``y_i`` and combines the terms in quadrature.
    """
    n = len(x)
    sx = np.sum(x)
    sy = np.sum(y)
    sxy = np.sum(x * y)
    sxx = np.sum(x**2)

    h = n * sxx - sx**2
    hp = 2 * n * x - 2 * sx

    # b = g / h
    g = sy * sxx - sx * sxy
    gp = 2 * sy * x - sxy - y * sx
    dbdy = (sxx - x * sx) / h
    dbdx = (h * gp - hp * g) / h**2

    # m = f / h
    f = n * sxy - sx * sy
    fp = n * y - sy
    dmdy = (n * x - sx) / h
    dmdx = (h * fp - hp * f) / h**2

    m_err = math.sqrt(np.sum((dmdy * e_y) ** 2) + np.sum((dmdx * e_x) ** 2))
    b_err = math.sqrt(np.sum((dbdy * e_y) ** 2) + np.sum((dbdx * e_x) ** 2))
    return m_err, b_err


def linear_projection(x, y, e_x, e_y, x0: float) -> LinearProjection:
    """Project a straight-line fit to ``x0`` with a full uncertainty budget.

    Args:
        x (array-like): Abscissae.
        y (array-like): Ordinates.
        e_x (array-like): Standard uncertainty of each ``x``.
        e_y (array-like): Standard uncertainty of each ``y``.
        x0 (float): Point to interpolate or extrapolate to.

    Returns:
        LinearProjection: Projected value, slope and intercept, each with the
        statistical fit error, the propagated input error and their
        quadrature sum (the two sources are treated as independent).

    Raises:
        ShapeMismatchError: If the inputs are not 1-D vectors of one length.
        ValueError: With fewer than two points, non-finite data or constant
            ``x``.

    Note:
        With exactly two points the line passes through both and there are
        no residual degrees of freedom; the statistical error is reported as
        zero and a ``RuntimeWarning`` is issued.
    """
    arrays = [np.asarray(v, dtype=float) for v in (x, y, e_x, e_y)]
    if any(arr.ndim != 1 for arr in arrays):
        raise ShapeMismatchError("All input vectors must be one-dimensional")
    x_arr, y_arr, ex_arr, ey_arr = arrays
    n = len(x_arr)
    if any(len(arr) != n for arr in arrays):
        raise ShapeMismatchError("All input vectors must be the same length")
    if n < 2:
        raise ValueError("A linear projection requires at least two points")
    if not (np.all(np.isfinite(x_arr)) and np.all(np.isfinite(y_arr))):
        raise ValueError("x and y must be finite")

    x0 = float(x0)
    fit = linear_regression(x_arr, y_arr, min_points=2)
    m, b = fit["m"], fit["b"]

    if fit["dof"] > 0:
        leverage = 1.0 + 1.0 / n + (x0 - fit["xbar"]) ** 2 / fit["ssxx"]
        err_stat = math.sqrt(fit["mse"] * leverage)
        m_stat, b_stat = fit["se_m"], fit["se_b"]
    else:
        warnings.warn(
            "Two-point fit has no residual degrees of freedom; "
            "statistical projection error set to zero.",
            RuntimeWarning,
            stacklevel=2,
        )
        err_stat = m_stat = b_stat = 0.0

    m_proj, b_proj = _propagated_fit_errors(x_arr, y_arr, ex_arr, ey_arr)
    err_proj = math.sqrt((x0 * m_proj) ** 2 + b_proj**2)

    logger.debug(
        "Projected %d points to x0=%g: stat=%g, propagated=%g",
        n,
        x0,
        err_stat,
        err_proj,
    )

    return LinearProjection(
        value=float(m * x0 + b),
        err=math.hypot(err_stat, err_proj),
        err_stat=err_stat,
        err_proj=err_proj,
        slope=FitParameter(m, math.hypot(m_stat, m_proj), m_stat, m_proj),
        intercept=FitParameter(b, math.hypot(b_stat, b_proj), b_stat, b_proj),
        n=n,
        r2=fit["r2"],
    )


def project_uncertain(x, y, x0: float, name: str = "projection"):
    """Project ``UC`` arrays (or plain arrays) and return the result as a ``UC``.

    The returned value is a new leaf named ``name``: the fit pools every
    point, so the individual points are not kept in its provenance ledger.
    """
    # Imported here: ucdim.uncertainty itself imports ucdim.stats.
    from ..uncertainty import UC

    x_uc = x if isinstance(x, UC) else UC(x)
    y_uc = y if isinstance(y, UC) else UC(y)
    result = linear_projection(x_uc.value, y_uc.value, x_uc.err, y_uc.err, x0)
    return UC(result.value, result.err, name=name)
