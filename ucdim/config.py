"""Package-wide settings and base-dimension definitions."""

from __future__ import annotations

from dataclasses import dataclass

# Mass, length, time, temperature, molar amount.
BASE_SYMBOLS: tuple[str, ...] = ("kg", "m", "s", "K", "kmol")
N_DIMENSIONS = len(BASE_SYMBOLS)
DIMENSIONLESS: tuple[float, ...] = (0.0,) * N_DIMENSIONS


@dataclass(frozen=True)
class Settings:
    """Container for numerical tolerances and display formats.

    Attributes:
        unit_atol: Absolute tolerance used when comparing unit exponent
            vectors. Exponents produced by fractional powers (for example
            ``(m^0.3)^(1/0.3)``) are not exact in floating point.

        label_format: Format spec used to render unnamed literal operands in
            expression labels, e.g. ``2`` or ``0.5``.

        display_format: Format spec used by ``str()`` for values and
            uncertainties.

        exponent_decimals: Maximum number of decimals shown for a
            non-integer unit exponent (``m^0.3937``).
    """

    unit_atol: float = 1e-9
    label_format: str = "g"
    display_format: str = ".6g"
    exponent_decimals: int = 4


SETTINGS = Settings()
