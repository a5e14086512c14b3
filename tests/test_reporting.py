"""Tests for uncertainty budgets and summary tables."""

import numpy as np
import pytest

from ucdim import UC, DimVar
from ucdim.reporting import (
    contribution_table,
    split_uncertain,
    summary_frame,
    uncertainty_forms,
)


def test_contribution_table_sorted_by_share():
    A = UC(10.0, 3.0, name="A")
    B = UC(1.0, 4.0, name="B")
    table = contribution_table(A + B)
    assert list(table.columns) == ["Contributor", "Fraction", "Variance", "Uncertainty"]
    assert list(table["Contributor"]) == ["B", "A"]
    assert table["Fraction"].sum() == pytest.approx(1.0)
    assert table.loc[0, "Variance"] == pytest.approx(16.0)
    assert table.loc[1, "Uncertainty"] == pytest.approx(3.0)


def test_contribution_table_accepts_dimvar_and_rejects_arrays():
    speed = DimVar(UC(30.0, 0.5, name="v"), "km/hr")
    table = contribution_table(speed)
    assert list(table["Contributor"]) == ["v"]
    with pytest.raises(ValueError):
        contribution_table(UC([1.0, 2.0], 0.1))
    with pytest.raises(TypeError):
        contribution_table(1.0)


def test_contribution_table_of_exact_value_is_empty():
    table = contribution_table(UC(1.0) * 2)
    assert table.empty


def test_split_uncertain():
    values, errs, unit = split_uncertain(DimVar(UC([1.0, 2.0], 0.1), "m"))
    assert np.allclose(values, [1.0, 2.0])
    assert np.allclose(errs, 0.1)
    assert unit == "m"
    values, errs, unit = split_uncertain([3.0, 4.0])
    assert errs is None
    assert unit == ""


def test_summary_frame_rows_and_formatting():
    table = summary_frame(
        g=UC(9.8132, 0.0234),
        length=DimVar(UC(2.0, 0.03), "m"),
        x=UC([1.0, 2.0], 0.5),
        count=3,
    )
    assert list(table["Quantity"]) == ["g", "length", "x[0]", "x[1]", "count"]
    g = table.iloc[0]
    assert g["Reported"] == "9.81 ± 0.02"
    assert g["Fractional uncertainty"] == pytest.approx(0.0234 / 9.8132)
    assert table.iloc[1]["Unit"] == "m"
    assert table.iloc[1]["Reported"] == "2.00 ± 0.03 [m]"
    assert np.isnan(table.iloc[4]["Uncertainty"])
    assert table.iloc[4]["Reported"] == "3"


def test_uncertainty_forms():
    frac, pct = uncertainty_forms(2.0, 0.1)
    assert frac == pytest.approx(0.05)
    assert pct == pytest.approx(5.0)
    assert all(np.isnan(uncertainty_forms(0.0, 0.1)))
