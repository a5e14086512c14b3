from ucdim.stats.rounding import format_value_with_uncertainty


def test_format_value_with_uncertainty():
    assert format_value_with_uncertainty(9.8132, 0.0234, "m/s^2") == "9.81 ± 0.02 [m/s^2]"
    assert format_value_with_uncertainty(12.345, 0.3) == "12.3 ± 0.3"
    assert format_value_with_uncertainty(1234.0, 56.0) == "1230 ± 60"
    assert format_value_with_uncertainty(2.0, 0.0) == "2 ± 0"


def test_leading_one_keeps_two_significant_figures():
    assert format_value_with_uncertainty(4.5678, 0.134) == "4.57 ± 0.13"
    assert format_value_with_uncertainty(4.5678, 0.02) == "4.57 ± 0.02"
