"""Tests for dimensioned values: conversion, unit checks and UC magnitudes."""

import math

import numpy as np
import pytest

from ucdim import UC, DimVar
from ucdim.errors import (
    NonDimensionlessExponentError,
    ShapeMismatchError,
    UnitMismatchError,
)


def test_unit_round_trip_atm_pa_atm():
    p = DimVar(1, "atm")
    in_pa = p.convert_to("Pa")
    assert in_pa.magnitude == pytest.approx(101325.0)
    assert in_pa.unit == "Pa"
    assert in_pa.convert_to("atm").magnitude == pytest.approx(1.0)
    assert p.unit == "kg/m-s^2"


def test_adding_length_and_time_raises():
    with pytest.raises(UnitMismatchError) as excinfo:
        DimVar(1, "m") + DimVar(1, "s")
    err = excinfo.value
    assert err.operator == "plus"
    assert (err.left, err.right) == ("m", "s")
    assert 'Unit mismatch in "plus" operator' in str(err)


def test_dimensioned_exponent_rejected():
    with pytest.raises(NonDimensionlessExponentError):
        DimVar(2, "m") ** DimVar(1, "m")


def test_temperature_difference_with_fahrenheit():
    dT = DimVar(300, "K") - DimVar(0, "F")
    assert dT.value == pytest.approx(44.628)
    assert dT.unit == "K"


def test_celsius_absolute_versus_relative():
    assert DimVar(10, "C").value == pytest.approx(283.15)
    assert DimVar(10, "C", relative=True).value == pytest.approx(10.0)
    assert DimVar(300, "K").magnitude_in("C") == pytest.approx(26.85)


def test_heat_conduction_in_mixed_units():
    k = DimVar(4, "BTU-in/hr-ft^2-F")
    L = DimVar(5, "mm")
    A = DimVar(10, "cm^2")
    dT = DimVar(500, "R") - DimVar(200, "K")
    Q = k * A / L * dT

    k_si = 4 * 1055.05585 * 0.0254 / (3600 * 0.3048**2 * (5 / 9))
    expected = k_si * 10e-4 / 5e-3 * (500 * 5 / 9 - 200)
    assert Q.unit == "kg-m^2/s^3"
    assert Q.convert_to("W").magnitude == pytest.approx(expected)
    assert math.isclose(Q.value, expected, rel_tol=1e-12)


def test_convert_to_other_dimension_raises():
    with pytest.raises(UnitMismatchError):
        DimVar(1, "m").convert_to("s")


def test_scalar_literals_are_dimensionless():
    length = DimVar(3, "m")
    assert (2 * length).value == pytest.approx(6.0)
    assert (2 * length).unit == "m"
    with pytest.raises(UnitMismatchError):
        length + 1
    assert (DimVar(2, "m") / DimVar(4, "m")).is_dimensionless


def test_power_sqrt_and_unit_exponents():
    area = DimVar(1, "ft^2")
    side = area.sqrt()
    assert side.unit_vector == (0.0, 1.0, 0.0, 0.0, 0.0)
    assert side.value == pytest.approx(0.3048)

    ratio = DimVar(5, "mm") / DimVar(1, "in")
    scaled = area ** ratio
    assert scaled.unit_vector[1] == pytest.approx(2 * 5 / 25.4)

    z = DimVar(1, "in") + area.sqrt()
    assert z.convert_to("in").magnitude == pytest.approx(13.0)


def test_array_exponent_on_dimensioned_base_raises():
    with pytest.raises(ShapeMismatchError):
        DimVar(2, "m") ** np.array([1.0, 2.0])
    powers = DimVar(2) ** np.array([1.0, 2.0])
    assert np.allclose(powers.value, [2.0, 4.0])


def test_functions_require_dimensionless_arguments():
    with pytest.raises(UnitMismatchError):
        DimVar(1, "m").apply("sin")
    angle = DimVar(math.pi / 2)
    assert angle.apply("sin").value == pytest.approx(1.0)
    assert abs(DimVar(-3, "s")).value == pytest.approx(3.0)
    assert abs(DimVar(-3, "s")).unit == "s"


def test_comparisons_check_units():
    assert DimVar(1, "ft") < DimVar(1, "m")
    assert DimVar(1, "m") >= DimVar(100, "cm")
    assert DimVar(1, "m") == DimVar(100, "cm")
    with pytest.raises(UnitMismatchError):
        DimVar(1, "ft") < DimVar(1, "s")


def test_array_pressures():
    P = DimVar(np.arange(0, 11), "bar")
    p0 = DimVar(1, "atm")
    Pr = P / p0
    assert Pr.is_dimensionless
    assert np.allclose(Pr.value, np.arange(0, 11) * 1e5 / 101325)
    assert len(P) == 11
    assert P[2].value == pytest.approx(2e5)
    dP = (P - p0).convert_to("bar")
    assert np.allclose(dP.magnitude, np.arange(0, 11) - 1.01325)


def test_shape_mismatch_between_arrays():
    with pytest.raises(ShapeMismatchError):
        DimVar([1.0, 2.0], "m") + DimVar([1.0, 2.0, 3.0], "m")


def test_single_element_array_replicates():
    total = DimVar([[1.0]], "m") + DimVar([1.0, 2.0, 3.0], "m")
    assert total.shape == (3,)
    assert np.allclose(total.value, [2.0, 3.0, 4.0])
    less = DimVar([[1.0]], "m") < DimVar([0.0, 2.0, 3.0], "m")
    assert less.tolist() == [False, True, True]


def test_exponent_vector_constructor():
    v = DimVar(2.0, (0, 1, -1, 0, 0))
    assert v.unit == "m/s"
    with pytest.raises(ValueError):
        DimVar(1.0, (1, 2))


def test_uc_magnitude_propagates_through_units():
    L = DimVar(UC(2.0, 0.1, name="L"), "cm")
    assert L.value.value == pytest.approx(0.02)
    assert L.value.err == pytest.approx(0.001)

    area = L * L
    assert area.unit == "m^2"
    assert area.value.value == pytest.approx(4e-4)
    # Same leaf on both sides: fully correlated.
    assert area.value.err == pytest.approx(2 * 0.02 * 0.001)
    assert dict(area.value.contributions) == {"L": pytest.approx(1.0)}

    in_cm2 = area.convert_to("cm^2").magnitude
    assert isinstance(in_cm2, UC)
    assert in_cm2.value == pytest.approx(4.0)
    assert in_cm2.err == pytest.approx(0.4)


def test_unit_scaling_keeps_uc_correlated():
    x = UC(2.0, 0.1, name="x")
    for unit in ("m", "cm", "in"):
        diff = DimVar(x, unit) - DimVar(x, unit)
        assert diff.value.value == pytest.approx(0.0)
        assert diff.value.err == pytest.approx(0.0, abs=1e-15)

    # Each read of a converted magnitude is the same quantity.
    length = DimVar(x, "cm").convert_to("mm")
    again = length.magnitude - length.magnitude
    assert again.err == pytest.approx(0.0, abs=1e-15)
    assert length.magnitude.name == "x"
    assert dict(length.magnitude.contributions) == {"x": 1.0}


def test_affine_conversion_of_uc_magnitude():
    t = DimVar(UC(20.0, 0.5, name="t"), "C")
    assert t.value.value == pytest.approx(293.15)
    assert t.value.err == pytest.approx(0.5)
    in_f = t.magnitude_in("F")
    assert in_f.value == pytest.approx(68.0, abs=1e-3)
    assert in_f.err == pytest.approx(0.9)
    assert (t - t).value.err == pytest.approx(0.0, abs=1e-15)


def test_str_uses_display_unit():
    assert str(DimVar(1.5, "m")) == "1.5 [m]"
    assert str(DimVar(1.5, "m").convert_to("cm")) == "150 [cm]"
    assert "DimVar" in repr(DimVar(1.5, "m"))


def test_negation_keeps_base_unit():
    neg = -DimVar(1, "C")
    assert neg.value == pytest.approx(-274.15)
    assert neg.unit == "K"
