"""Tests for unit-string parsing, unit tables and unit formatting."""

import math

import pytest

from ucdim.errors import InvalidExponentError, MalformedUnitError, UnknownUnitError
from ucdim.units import (
    DEFAULT_UNITS,
    UnitTableEntry,
    format_unit,
    parse_unit,
    same_dimension,
    valid_units,
)


def test_parse_simple_quotient_with_explicit_and_implicit_powers():
    explicit = parse_unit("m/s^2")
    implicit = parse_unit("m/s2")
    assert explicit.vector == (0.0, 1.0, -2.0, 0.0, 0.0)
    assert implicit.vector == explicit.vector
    assert explicit.scale == 1.0


def test_inverse_notations_agree():
    assert parse_unit("1/s").vector == parse_unit("s^-1").vector == (0, 0, -1, 0, 0)
    assert parse_unit("1/min").scale == pytest.approx(1 / 60)


def test_grouping_characters_are_ignored():
    assert parse_unit("(kg)-[m]/(s^2)").vector == parse_unit("kg-m/s^2").vector


def test_mixed_units_scale_and_dimension():
    parsed = parse_unit("BTU-in/hr-ft^2-F")
    expected_scale = 1055.05585 * 0.0254 / (3600 * 0.3048**2 * (5 / 9))
    assert parsed.vector == parse_unit("W/m-K").vector
    assert math.isclose(parsed.scale, expected_scale, rel_tol=1e-12)
    assert parsed.offset is None


def test_tokens_are_case_insensitive():
    assert parse_unit("PSI") == parse_unit("psi")
    assert parse_unit("Pa").scale == 1.0


@pytest.mark.parametrize("text", ["", "-", "1"])
def test_dimensionless_spellings(text):
    parsed = parse_unit(text)
    assert parsed.vector == (0.0,) * 5
    assert parsed.scale == 1.0
    assert parsed.offset is None


def test_affine_offset_only_for_lone_temperature():
    assert parse_unit("C").offset == pytest.approx(273.15)
    assert parse_unit("F").offset == pytest.approx(255.372)
    assert parse_unit("C^2").offset is None
    assert parse_unit("W/m-C").offset is None
    assert parse_unit("K").offset is None


def test_fahrenheit_round_trip_through_base_units():
    parsed = parse_unit("F")
    base = parsed.to_base(32.0)
    assert base == pytest.approx(273.15, abs=1e-3)
    assert parsed.from_base(base) == pytest.approx(32.0)
    assert parsed.to_base(18.0, relative=True) == pytest.approx(10.0)


def test_unknown_unit_reports_token():
    with pytest.raises(UnknownUnitError) as excinfo:
        parse_unit("kJ/kg")
    assert excinfo.value.token == "kJ"


def test_more_than_one_solidus_is_malformed():
    with pytest.raises(MalformedUnitError):
        parse_unit("m/s/s")


@pytest.mark.parametrize("text", ["m^x", "m^", "kg-m^2.5.1"])
def test_unreadable_power_raises(text):
    with pytest.raises(InvalidExponentError):
        parse_unit(text)


def test_missing_unit_name_is_malformed():
    with pytest.raises(MalformedUnitError):
        parse_unit("^2")


def test_invalid_exponent_is_a_malformed_unit():
    assert issubclass(InvalidExponentError, MalformedUnitError)
    assert issubclass(UnknownUnitError, ValueError)


def test_format_unit_canonical_strings():
    assert format_unit((1, 1, -2, 0, 0)) == "kg-m/s^2"
    assert format_unit((0, 0, -1, 0, 0)) == "1/s"
    assert format_unit((0, 0, 0, 0, 0)) == "-"
    assert format_unit((0, 0.5, 0, 0, 0)) == "m^0.5"
    assert format_unit((0, 1 / 3, 0, 0, 0)) == "m^0.3333"
    assert format_unit((1, 2, -3, -1, 0)) == "kg-m^2/s^3-K"


def test_extended_table_leaves_default_untouched():
    table = DEFAULT_UNITS.extended({"Mile": UnitTableEntry(1609.344, (0, 1, 0, 0, 0))})
    assert parse_unit("mile", table).scale == pytest.approx(1609.344)
    assert "mile" not in DEFAULT_UNITS
    with pytest.raises(UnknownUnitError):
        parse_unit("mile")


def test_same_dimension_and_valid_units():
    assert same_dimension(parse_unit("J").vector, parse_unit("N-m").vector)
    assert not same_dimension(parse_unit("J").vector, parse_unit("W").vector)
    units = valid_units()
    assert "atm" in units
    assert units == sorted(units)
