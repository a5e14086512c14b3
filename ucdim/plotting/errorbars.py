"""Error-bar plots of uncertain and dimensioned quantities."""

from __future__ import annotations

import logging

import matplotlib.pyplot as plt
import numpy as np
from matplotlib.axes import Axes

from ..errors import ShapeMismatchError
from ..reporting import split_uncertain
from ..stats.regression import LinearProjection, linear_projection
from ..stats.rounding import format_value_with_uncertainty
from .style import STYLE, axis_label, clean_axis

logger = logging.getLogger(__name__)


def _new_axes(ax: Axes | None) -> Axes:
    if ax is not None:
        return ax
    _, ax = plt.subplots(figsize=STYLE.FIGSIZE_SINGLE)
    return ax


def _flat(values: np.ndarray) -> np.ndarray:
    return np.atleast_1d(values).ravel()


def plot_with_errorbars(
    x,
    y,
    ax: Axes | None = None,
    *,
    label: str | None = None,
    xlabel: str | None = None,
    ylabel: str | None = None,
    fmt: str = "o",
    **kwargs,
) -> Axes:
    """Plot ``y`` against ``x`` with error bars on both axes where available.

    Args:
        x, y: ``UC``, ``DimVar``, or array-like values. Uncertainties of
            ``UC`` (or ``UC``-valued ``DimVar``) inputs become ``xerr`` and
            ``yerr``; plain inputs get no error bar on that axis.
        ax (matplotlib.axes.Axes, optional): Target axes; a new figure is
            created when omitted.
        label (str, optional): Legend label.
        xlabel, ylabel (str, optional): Axis names. The unit of a
            ``DimVar`` input is appended as ``"name / unit"``.
        fmt (str): Marker format passed to ``Axes.errorbar``.
        **kwargs: Forwarded to ``Axes.errorbar``.

    Returns:
        matplotlib.axes.Axes: The axes drawn on.

    Raises:
        ShapeMismatchError: If ``x`` and ``y`` have different sizes.
    """
    xv, xe, xunit = split_uncertain(x)
    yv, ye, yunit = split_uncertain(y)
    xv, yv = _flat(xv), _flat(yv)
    if xv.size != yv.size:
        raise ShapeMismatchError(
            f"x and y must have the same number of points ({xv.size} != {yv.size})"
        )

    ax = _new_axes(ax)
    ax.errorbar(
        xv,
        yv,
        xerr=None if xe is None else _flat(xe),
        yerr=None if ye is None else _flat(ye),
        fmt=fmt,
        label=label,
        markerfacecolor=kwargs.pop("markerfacecolor", "white"),
        ecolor=kwargs.pop("ecolor", "0.45"),
        elinewidth=kwargs.pop("elinewidth", 1.1),
        capsize=kwargs.pop("capsize", 3),
        **kwargs,
    )
    if xlabel is not None:
        ax.set_xlabel(axis_label(xlabel, xunit))
    if ylabel is not None:
        ax.set_ylabel(axis_label(ylabel, yunit))
    clean_axis(ax)
    if label is not None:
        ax.legend(loc="best")
    return ax


def plot_linear_projection(
    x,
    y,
    x0: float,
    ax: Axes | None = None,
    *,
    xlabel: str | None = None,
    ylabel: str | None = None,
) -> tuple[Axes, LinearProjection]:
    """Fit a line through uncertain points and mark its projection at ``x0``.

    The data are drawn with two-axis error bars, the fitted line is extended
    to cover ``x0`` and the projected value is drawn with its total
    uncertainty.

    Returns:
        tuple[matplotlib.axes.Axes, LinearProjection]: Axes and the fit result.
    """
    xv, xe, _ = split_uncertain(x)
    yv, ye, _ = split_uncertain(y)
    xv, yv = _flat(xv), _flat(yv)
    xe = np.zeros_like(xv) if xe is None else _flat(xe)
    ye = np.zeros_like(yv) if ye is None else _flat(ye)

    result = linear_projection(xv, yv, xe, ye, x0)
    logger.debug("Plotting projection to x0=%g from %d points", x0, result.n)

    ax = plot_with_errorbars(x, y, ax, label="data", xlabel=xlabel, ylabel=ylabel)
    grid = np.linspace(min(xv.min(), x0), max(xv.max(), x0), 200)
    ax.plot(
        grid,
        result.slope.value * grid + result.intercept.value,
        color="0.15",
        linewidth=STYLE.LINEWIDTH_THIN,
        label="fit",
    )
    ax.errorbar(
        [x0],
        [result.value],
        yerr=[result.err],
        fmt="s",
        color="C3",
        capsize=3,
        label=f"projection: {format_value_with_uncertainty(result.value, result.err)}",
    )
    ax.legend(loc="best")
    return ax, result
