"""Tabulate uncertain quantities and their uncertainty budgets with pandas.

This module is the boundary between the value types and human-readable
tables: it reads magnitudes, uncertainties, units and provenance ledgers and
never feeds anything back into a calculation.
"""

from __future__ import annotations

import math

import numpy as np
import pandas as pd

from .dimvar import DimVar
from .stats.rounding import format_value_with_uncertainty
from .uncertainty import UC


def split_uncertain(quantity) -> tuple[np.ndarray, np.ndarray | None, str]:
    """Split a quantity into magnitudes, uncertainties and a unit string.

    Args:
        quantity: ``UC``, ``DimVar`` (with a float, array or ``UC``
            magnitude), number or array-like.

    Returns:
        tuple: ``(values, errors, unit)`` where ``values`` is a float array,
        ``errors`` is a float array or ``None`` when the quantity carries no
        uncertainty, and ``unit`` is ``""`` for non-dimensioned input.
    """
    unit = ""
    magnitude = quantity
    if isinstance(quantity, DimVar):
        magnitude = quantity.magnitude
        unit = quantity.unit
    if isinstance(magnitude, UC):
        return (
            np.asarray(magnitude.value, dtype=float),
            np.asarray(magnitude.err, dtype=float),
            unit,
        )
    return np.asarray(magnitude, dtype=float), None, unit


def uncertainty_forms(value: float, uncertainty: float) -> tuple[float, float]:
    """Return fractional and percentage uncertainty forms.

    Args:
        value (float): Measured or calculated quantity (any unit).
        uncertainty (float): Absolute uncertainty associated with ``value`` in
            the same unit.

    Returns:
        tuple[float, float]: Pair ``(fractional_uncertainty,
        percentage_uncertainty)``.

    Note:
        Returns ``(nan, nan)`` when ``value`` is zero or either input is non-finite.
    """
    v = float(value)
    u = float(uncertainty)
    if not np.isfinite(v) or not np.isfinite(u) or v == 0:
        return np.nan, np.nan
    frac = abs(u / v)
    return float(frac), float(frac * 100.0)


def contribution_table(quantity: UC) -> pd.DataFrame:
    """Build the uncertainty budget of a scalar ``UC``.

    Args:
        quantity (UC): Result of a calculation (or a ``DimVar`` whose
            magnitude is a ``UC``).

    Returns:
        pandas.DataFrame: One row per leaf variable with columns
        ``Contributor``, ``Fraction`` (share of the output variance),
        ``Variance`` and ``Uncertainty`` (the part of the output uncertainty
        it accounts for, ``sqrt(Fraction)·σ``), sorted by decreasing
        ``Fraction``.

    Raises:
        TypeError: If ``quantity`` carries no ``UC``.
        ValueError: If ``quantity`` is array-shaped.
    """
    if isinstance(quantity, DimVar):
        quantity = quantity.value
    if not isinstance(quantity, UC):
        raise TypeError("contribution_table requires a UC quantity")
    if quantity.size != 1 or quantity.ndim != 0:
        raise ValueError("contribution_table requires a scalar UC; index it first")

    variance = float(quantity.err) ** 2
    rows = [
        {
            "Contributor": label,
            "Fraction": float(share),
            "Variance": float(share) * variance,
            "Uncertainty": math.sqrt(float(share) * variance),
        }
        for label, share in quantity.contributions.items()
    ]
    columns = ["Contributor", "Fraction", "Variance", "Uncertainty"]
    if not rows:
        return pd.DataFrame(columns=columns)
    return (
        pd.DataFrame(rows, columns=columns)
        .sort_values("Fraction", ascending=False, kind="stable")
        .reset_index(drop=True)
    )


def summary_frame(**quantities) -> pd.DataFrame:
    """Tabulate named quantities with value, uncertainty and unit columns.

    Args:
        **quantities: ``name=quantity`` pairs; quantities may be ``UC``,
            ``DimVar``, numbers or arrays. Array quantities contribute one row
            per element, named ``name[i]``.

    Returns:
        pandas.DataFrame: Columns ``Quantity``, ``Value``, ``Uncertainty``,
        ``Unit``, ``Reported``, ``Fractional uncertainty`` and
        ``Percentage uncertainty (%)``. ``Uncertainty`` is NaN for quantities
        without one.
    """
    rows = []
    for name, quantity in quantities.items():
        values, errs, unit = split_uncertain(quantity)
        flat_values = values.ravel()
        flat_errs = errs.ravel() if errs is not None else np.full(values.size, np.nan)
        for i, (v, u) in enumerate(zip(flat_values, flat_errs)):
            label = name if values.ndim == 0 else f"{name}[{i}]"
            frac, pct = uncertainty_forms(v, u)
            rows.append(
                {
                    "Quantity": label,
                    "Value": float(v),
                    "Uncertainty": float(u),
                    "Unit": unit,
                    "Reported": (
                        format_value_with_uncertainty(v, u, unit)
                        if np.isfinite(u)
                        else f"{v:.6g}" + (f" [{unit}]" if unit else "")
                    ),
                    "Fractional uncertainty": frac,
                    "Percentage uncertainty (%)": pct,
                }
            )
    return pd.DataFrame(
        rows,
        columns=[
            "Quantity",
            "Value",
            "Uncertainty",
            "Unit",
            "Reported",
            "Fractional uncertainty",
            "Percentage uncertainty (%)",
        ],
    )
