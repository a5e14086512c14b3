"""Unit table, unit-string parser and canonical unit formatting.

Units are described by an exponent vector over the five base dimensions
(kg, m, s, K, kmol) and a multiplicative factor to those base units. The
temperature scales Celsius and Fahrenheit additionally carry an additive
offset; they are the only affine units in the default table.

Rules for writing a unit string:
- a single solidus (``/``) separates numerator and denominator,
- hyphens (``-``) separate unit components,
- powers are written with or without ``^`` (``m^3`` or ``m3``),
- inverse units may be written as ``1/s`` or ``s^-1``,
- parentheses and brackets are ignored.
"""

from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterator, Optional, Sequence, Tuple

import numpy as np

from .config import BASE_SYMBOLS, DIMENSIONLESS, N_DIMENSIONS, SETTINGS
from .errors import InvalidExponentError, MalformedUnitError, UnknownUnitError
from .uncertainty import UC

logger = logging.getLogger(__name__)

Vector = Tuple[float, ...]

_GROUPING_CHARS = re.compile(r"[()\[\]\s]")
_COMPONENT_SEPARATOR = re.compile(r"(?<!\^)-")
_IMPLICIT_POWER = re.compile(r"^(?P<base>[^\d.]+?)(?P<power>[\d.]+)$")


@dataclass(frozen=True)
class UnitTableEntry:
    """Conversion of one unit token to base units.

    Attributes:
        scale: Multiplicative factor to the base units.
        vector: Exponents over (mass, length, time, temperature, molar amount).
        offset: Additive offset in base units for affine units, else ``None``.
    """

    scale: float
    vector: Vector
    offset: Optional[float] = None

    @property
    def is_affine(self) -> bool:
        return self.offset is not None


def _entry(scale: float, vector: Sequence[float], offset: float | None = None):
    if len(vector) != N_DIMENSIONS:
        raise ValueError(f"Unit vector must have {N_DIMENSIONS} entries")
    return UnitTableEntry(float(scale), tuple(float(v) for v in vector), offset)


class UnitTable(Mapping):
    """Read-only, case-insensitive mapping of unit tokens to table entries."""

    def __init__(self, entries: Mapping[str, UnitTableEntry]):
        self._entries = MappingProxyType(
            {str(token).lower(): entry for token, entry in entries.items()}
        )

    def __getitem__(self, token: str) -> UnitTableEntry:
        return self._entries[token.lower()]

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"UnitTable({len(self)} units)"

    def extended(self, entries: Mapping[str, UnitTableEntry]) -> "UnitTable":
        """Return a new table with ``entries`` added (or replaced).

        Args:
            entries (Mapping[str, UnitTableEntry]): Additional tokens, e.g.
                ``{"mile": UnitTableEntry(1609.344, (0, 1, 0, 0, 0))}``.

        Returns:
            UnitTable: A new table; ``self`` is left unchanged.
        """
        merged = dict(self._entries)
        merged.update({str(k).lower(): v for k, v in entries.items()})
        return UnitTable(merged)


DEFAULT_UNITS = UnitTable(
    {
        # Mass
        "kg": _entry(1, (1, 0, 0, 0, 0)),
        "g": _entry(1e-3, (1, 0, 0, 0, 0)),
        "mg": _entry(1e-6, (1, 0, 0, 0, 0)),
        "lbm": _entry(0.453592, (1, 0, 0, 0, 0)),
        "lb": _entry(0.453592, (1, 0, 0, 0, 0)),  # lb taken as mass
        # Length
        "km": _entry(1e3, (0, 1, 0, 0, 0)),
        "m": _entry(1, (0, 1, 0, 0, 0)),
        "cm": _entry(1e-2, (0, 1, 0, 0, 0)),
        "mm": _entry(1e-3, (0, 1, 0, 0, 0)),
        "ft": _entry(0.3048, (0, 1, 0, 0, 0)),
        "in": _entry(0.0254, (0, 1, 0, 0, 0)),
        # Time
        "s": _entry(1, (0, 0, 1, 0, 0)),
        "min": _entry(60, (0, 0, 1, 0, 0)),
        "hr": _entry(3600, (0, 0, 1, 0, 0)),
        # Temperature
        "k": _entry(1, (0, 0, 0, 1, 0)),
        "r": _entry(5 / 9, (0, 0, 0, 1, 0)),
        "c": _entry(1, (0, 0, 0, 1, 0), offset=273.15),
        "f": _entry(5 / 9, (0, 0, 0, 1, 0), offset=255.372),
        # Molar amount
        "kmol": _entry(1, (0, 0, 0, 0, 1)),
        "mol": _entry(1e-3, (0, 0, 0, 0, 1)),
        # Volume
        "l": _entry(1e-3, (0, 3, 0, 0, 0)),
        "ml": _entry(1e-6, (0, 3, 0, 0, 0)),
        "cc": _entry(1e-6, (0, 3, 0, 0, 0)),
        # Flow rate
        "gpm": _entry(1 / 15852, (0, 3, -1, 0, 0)),
        "cfm": _entry(1 / 2119, (0, 3, -1, 0, 0)),
        # Frequency
        "hz": _entry(1, (0, 0, -1, 0, 0)),
        "rpm": _entry(1 / 60, (0, 0, -1, 0, 0)),
        # Energy
        "j": _entry(1, (1, 2, -2, 0, 0)),
        "btu": _entry(1055.05585, (1, 2, -2, 0, 0)),
        "erg": _entry(1e-7, (1, 2, -2, 0, 0)),
        "cal": _entry(4.184, (1, 2, -2, 0, 0)),
        "kwh": _entry(3.6e6, (1, 2, -2, 0, 0)),
        # Power
        "w": _entry(1, (1, 2, -3, 0, 0)),
        # Force
        "n": _entry(1, (1, 1, -2, 0, 0)),
        "lbf": _entry(4.44822162, (1, 1, -2, 0, 0)),
        "dyne": _entry(1e-5, (1, 1, -2, 0, 0)),
        # Pressure
        "pa": _entry(1, (1, -1, -2, 0, 0)),
        "kpa": _entry(1e3, (1, -1, -2, 0, 0)),
        "mpa": _entry(1e6, (1, -1, -2, 0, 0)),
        "bar": _entry(1e5, (1, -1, -2, 0, 0)),
        "mbar": _entry(1e2, (1, -1, -2, 0, 0)),
        "torr": _entry(133.322368, (1, -1, -2, 0, 0)),
        "psi": _entry(6894.75729, (1, -1, -2, 0, 0)),
        "atm": _entry(101325, (1, -1, -2, 0, 0)),
        # Dynamic viscosity
        "p": _entry(0.1, (1, -1, -1, 0, 0)),
        "cp": _entry(0.001, (1, -1, -1, 0, 0)),
    }
)


@dataclass(frozen=True)
class ParsedUnit:
    """Result of parsing a unit string.

    Attributes:
        vector: Combined exponent vector over the base dimensions.
        scale: Factor converting a magnitude in this unit to base units.
        offset: Additive offset (base units) when the unit is affine.
    """

    vector: Vector
    scale: float
    offset: Optional[float] = None

    @property
    def is_affine(self) -> bool:
        return self.offset is not None

    def to_base(self, magnitude, relative: bool = False):
        """Express ``magnitude`` (in this unit) in base units."""
        offset = self.offset if self.is_affine and not relative else 0.0
        if isinstance(magnitude, UC):
            return magnitude.rescale(self.scale, offset)
        if self.scale != 1.0:
            magnitude = magnitude * self.scale
        if offset:
            return magnitude + offset
        return magnitude

    def from_base(self, magnitude, relative: bool = False):
        """Express a base-unit ``magnitude`` in this unit."""
        offset = self.offset if self.is_affine and not relative else 0.0
        if isinstance(magnitude, UC):
            return magnitude.rescale(1.0 / self.scale, -offset / self.scale)
        if offset:
            magnitude = magnitude - offset
        if self.scale != 1.0:
            magnitude = magnitude / self.scale
        return magnitude


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def _split_fraction(text: str) -> tuple[str, str]:
    parts = text.split("/")
    if len(parts) > 2:
        raise MalformedUnitError(
            f'Too many solidus lines in unit fraction "{text}"'
        )
    if len(parts) == 1:
        return ("" if _is_number(text) else text), ""
    num, den = parts
    if _is_number(num):
        num = ""
    return num, den


def _split_components(text: str) -> list[str]:
    return [part for part in _COMPONENT_SEPARATOR.split(text) if part]


def _read_unit_power(token: str, sign: int) -> tuple[str, float]:
    """Split ``m^3`` / ``m3`` / ``s^-1`` into a base token and a signed power."""
    if "^" in token:
        base, _, power_txt = token.partition("^")
        if not power_txt:
            raise InvalidExponentError(
                f'Unable to read numeric power from "{token}"'
            )
    else:
        match = _IMPLICIT_POWER.match(token)
        if match:
            base, power_txt = match.group("base"), match.group("power")
        else:
            base, power_txt = token, ""

    if not base:
        raise MalformedUnitError(f'Missing unit name in component "{token}"')
    if not power_txt:
        return base, float(sign)

    try:
        power = float(power_txt)
    except ValueError:
        raise InvalidExponentError(
            f'Unable to read numeric power from "{token}"'
        ) from None
    if not math.isfinite(power):
        raise InvalidExponentError(f'Unable to read numeric power from "{token}"')
    return base, power * sign


def parse_unit(unit: str, table: UnitTable | None = None) -> ParsedUnit:
    """Parse a free-form unit string into an exponent vector and factor.

    Args:
        unit (str): Unit string such as ``"BTU-in/hr-ft^2-F"`` or ``"m/s2"``.
            ``""``, ``"-"`` and ``"1"`` denote a dimensionless unit.
        table (UnitTable, optional): Unit table to resolve tokens against.
            Defaults to :data:`DEFAULT_UNITS`.

    Returns:
        ParsedUnit: Exponent vector, scale and (for a lone affine unit such as
        ``"C"``) the additive offset.

    Raises:
        MalformedUnitError: More than one ``/`` or a component without a unit
            name.
        InvalidExponentError: A power suffix that is not a number.
        UnknownUnitError: A token missing from ``table``.

    Note:
        The offset is only kept when exactly one affine token appears with
        power 1 and every other component cancels to a zero vector. In any
        product or quotient (``W/m-K``, ``BTU/hr-ft^2-F``) a temperature is a
        difference and only the scale applies.
    """
    table = DEFAULT_UNITS if table is None else table
    text = _GROUPING_CHARS.sub("", str(unit))

    num, den = _split_fraction(text)
    parts = [_read_unit_power(tok, 1) for tok in _split_components(num)]
    parts += [_read_unit_power(tok, -1) for tok in _split_components(den)]

    vector = np.zeros(N_DIMENSIONS)
    scale = 1.0
    affine: list[tuple[UnitTableEntry, float]] = []
    other_vector = np.zeros(N_DIMENSIONS)

    for base, power in parts:
        try:
            entry = table[base]
        except KeyError:
            raise UnknownUnitError(base) from None
        contribution = np.asarray(entry.vector) * power
        vector += contribution
        scale *= entry.scale**power
        if entry.is_affine:
            affine.append((entry, power))
        else:
            other_vector += contribution

    offset = None
    if (
        len(affine) == 1
        and affine[0][1] == 1.0
        and np.allclose(other_vector, 0.0, rtol=0.0, atol=SETTINGS.unit_atol)
    ):
        offset = affine[0][0].offset

    parsed = ParsedUnit(tuple(float(v) for v in vector), float(scale), offset)
    logger.debug(
        "Parsed unit %r -> vector=%s scale=%g offset=%s",
        unit,
        parsed.vector,
        parsed.scale,
        parsed.offset,
    )
    return parsed


def same_dimension(a: Sequence[float], b: Sequence[float]) -> bool:
    """Return ``True`` when two exponent vectors describe the same dimension."""
    return bool(
        np.allclose(
            np.asarray(a, dtype=float),
            np.asarray(b, dtype=float),
            rtol=0.0,
            atol=SETTINGS.unit_atol,
        )
    )


def _format_exponent(power: float) -> str:
    if abs(power - round(power)) <= SETTINGS.unit_atol:
        return str(int(round(power)))
    txt = f"{power:.{SETTINGS.exponent_decimals}f}".rstrip("0").rstrip(".")
    return txt


def _format_side(vector: Sequence[float], indices: list[int], sign: int) -> str:
    pieces = []
    for idx in indices:
        power = sign * vector[idx]
        if abs(power - 1.0) <= SETTINGS.unit_atol:
            pieces.append(BASE_SYMBOLS[idx])
        else:
            pieces.append(f"{BASE_SYMBOLS[idx]}^{_format_exponent(power)}")
    return "-".join(pieces)


def format_unit(vector: Sequence[float]) -> str:
    """Render an exponent vector as a canonical unit string.

    Args:
        vector (Sequence[float]): Exponents over (kg, m, s, K, kmol).

    Returns:
        str: For example ``"kg-m/s^2"``, ``"1/s"`` or ``"-"`` when
        dimensionless.
    """
    atol = SETTINGS.unit_atol
    num_ids = [i for i, p in enumerate(vector) if p > atol]
    den_ids = [i for i, p in enumerate(vector) if p < -atol]

    if not num_ids and not den_ids:
        return "-"

    text = _format_side(vector, num_ids, 1) if num_ids else "1"
    if den_ids:
        text += "/" + _format_side(vector, den_ids, -1)
    return text


def valid_units(table: UnitTable | None = None) -> list[str]:
    """List the unit tokens recognised by ``table`` (default table if omitted)."""
    table = DEFAULT_UNITS if table is None else table
    return sorted(table)


__all__ = [
    "DEFAULT_UNITS",
    "DIMENSIONLESS",
    "ParsedUnit",
    "UnitTable",
    "UnitTableEntry",
    "format_unit",
    "parse_unit",
    "same_dimension",
    "valid_units",
]
