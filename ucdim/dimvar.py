"""
Dimensioned quantities with unit checking and automatic conversion.

``DimVar`` stores its magnitude in base units (kg, m, s, K, kmol) together
with the exponent vector of its dimension. Mixed input units are converted on
construction, so quantities can be combined freely:

    k = DimVar(4, "BTU-in/hr-ft^2-F")
    L = DimVar(5, "mm")
    A = DimVar(10, "cm^2")
    dT = DimVar(500, "R") - DimVar(200, "K")
    Q = k * A / L * dT            # W

Addition, subtraction and comparisons require identical dimensions and raise
``UnitMismatchError`` otherwise (``k + L`` fails). Temperatures in C or F are
absolute unless ``relative=True``: ``DimVar(10, "C")`` is 283.15 K while
``DimVar(10, "C", relative=True)`` is a 10 K difference.

The magnitude may be a float, a numpy array or a ``UC``; uncertainty is then
propagated through every unit operation.
"""

from __future__ import annotations

import logging
import numbers
from typing import Optional, Sequence, Tuple

import numpy as np

from .config import DIMENSIONLESS, N_DIMENSIONS, SETTINGS
from .errors import NonDimensionlessExponentError, ShapeMismatchError, UnitMismatchError
from .uncertainty import ELEMENTARY_FUNCTIONS, UC, broadcast_shape
from .units import ParsedUnit, UnitTable, format_unit, parse_unit, same_dimension
from .units import valid_units as _valid_units

logger = logging.getLogger(__name__)

Vector = Tuple[float, ...]


def _magnitude(value):
    if isinstance(value, UC):
        return value
    if isinstance(value, DimVar):
        raise TypeError("DimVar magnitude cannot itself be a DimVar")
    if isinstance(value, numbers.Real):
        return float(value)
    arr = np.array(value, dtype=float)
    arr.setflags(write=False)
    return arr


def _shape(value) -> Tuple[int, ...]:
    return tuple(getattr(value, "shape", ()))


def _size(value) -> int:
    return int(getattr(value, "size", 1))


def _scalar(value) -> float:
    if isinstance(value, UC):
        return float(value)
    return float(np.asarray(value, dtype=float).reshape(()))


class DimVar:
    """A magnitude with physical units.

    Args:
        value: Magnitude in ``unit``; a number, array-like or ``UC``.
        unit: Unit string (see :mod:`ucdim.units`) or a 5-element exponent
            vector, in which case ``value`` is taken to be in base units.
            Defaults to dimensionless.
        relative: Treat an affine temperature unit (C, F) as a difference
            and skip its offset.
        table: Unit table used to parse ``unit``.

    Raises:
        UnknownUnitError, MalformedUnitError: From parsing ``unit``.
        ValueError: If an exponent vector does not have five entries.
    """

    __array_ufunc__ = None

    def __init__(
        self,
        value,
        unit: str | Sequence[float] = "-",
        relative: bool = False,
        table: Optional[UnitTable] = None,
    ):
        magnitude = _magnitude(value)
        if isinstance(unit, str):
            parsed = parse_unit(unit, table)
            self._value = parsed.to_base(magnitude, relative)
            self._vector = parsed.vector
        else:
            vector = tuple(float(u) for u in unit)
            if len(vector) != N_DIMENSIONS:
                raise ValueError("Invalid unit array")
            self._value = magnitude
            self._vector = vector
        self._display: Optional[Tuple[str, ParsedUnit, bool]] = None

    @classmethod
    def _make(cls, value, vector: Vector, display=None) -> "DimVar":
        obj = cls.__new__(cls)
        obj._value = _magnitude(value)
        obj._vector = tuple(float(v) for v in vector)
        obj._display = display
        return obj

    @staticmethod
    def valid_units(table: Optional[UnitTable] = None) -> list[str]:
        """List the unit tokens that can be used in unit strings."""
        return _valid_units(table)

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    @property
    def value(self):
        """Magnitude in base units (kg, m, s, K, kmol)."""
        return self._value

    @property
    def unit_vector(self) -> Vector:
        return self._vector

    @property
    def unit(self) -> str:
        """Display unit: the target of :meth:`convert_to`, else canonical."""
        if self._display is not None:
            return self._display[0]
        return format_unit(self._vector)

    @property
    def magnitude(self):
        """Magnitude expressed in :attr:`unit`."""
        if self._display is None:
            return self._value
        _, parsed, relative = self._display
        return parsed.from_base(self._value, relative)

    @property
    def is_dimensionless(self) -> bool:
        return same_dimension(self._vector, DIMENSIONLESS)

    @property
    def shape(self) -> Tuple[int, ...]:
        return _shape(self._value)

    def __len__(self) -> int:
        if not self.shape:
            raise TypeError("len() of unsized DimVar")
        return self.shape[0]

    def __getitem__(self, key) -> "DimVar":
        if not self.shape:
            raise TypeError("DimVar scalar is not subscriptable")
        return DimVar._make(self._value[key], self._vector, self._display)

    # ------------------------------------------------------------------
    # Conversion
    # ------------------------------------------------------------------
    def convert_to(
        self, unit: str, relative: bool = False, table: Optional[UnitTable] = None
    ) -> "DimVar":
        """Re-express this quantity in ``unit``.

        Args:
            unit (str): Target unit with the same dimension.
            relative (bool): Treat an affine target (C, F) as a difference.
            table (UnitTable, optional): Unit table used to parse ``unit``.

        Returns:
            DimVar: The same quantity whose :attr:`magnitude` and
            :attr:`unit` refer to ``unit``.

        Raises:
            UnitMismatchError: If ``unit`` has a different dimension.
        """
        parsed = parse_unit(unit, table)
        if not same_dimension(parsed.vector, self._vector):
            raise UnitMismatchError("convert to", self.unit, format_unit(parsed.vector))
        logger.debug("Converting [%s] to [%s]", self.unit, unit)
        return DimVar._make(self._value, self._vector, (str(unit), parsed, relative))

    def magnitude_in(
        self, unit: str, relative: bool = False, table: Optional[UnitTable] = None
    ):
        """Return the bare magnitude of this quantity expressed in ``unit``."""
        return self.convert_to(unit, relative, table).magnitude

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------
    def __add__(self, other):
        return _combine(self, other, "plus", _same_unit(lambda a, b: a + b))

    def __radd__(self, other):
        return _combine(other, self, "plus", _same_unit(lambda a, b: a + b))

    def __sub__(self, other):
        return _combine(self, other, "minus", _same_unit(lambda a, b: a - b))

    def __rsub__(self, other):
        return _combine(other, self, "minus", _same_unit(lambda a, b: a - b))

    def __mul__(self, other):
        return _combine(self, other, "times", _product)

    def __rmul__(self, other):
        return _combine(other, self, "times", _product)

    def __truediv__(self, other):
        return _combine(self, other, "divide", _quotient)

    def __rtruediv__(self, other):
        return _combine(other, self, "divide", _quotient)

    def __pow__(self, other, modulo=None):
        if modulo is not None:
            return NotImplemented
        return _combine(self, other, "power", _power)

    def __rpow__(self, other):
        return _combine(other, self, "power", _power)

    def __neg__(self) -> "DimVar":
        return DimVar._make(-self._value, self._vector)

    def __pos__(self) -> "DimVar":
        return self

    def __abs__(self) -> "DimVar":
        return self.apply("abs")

    def sqrt(self) -> "DimVar":
        """Square root; the unit exponents are halved."""
        return self.apply("sqrt")

    def apply(self, function: str) -> "DimVar":
        """Apply an elementary function to the magnitude.

        ``sqrt`` halves the unit exponents and ``abs`` keeps the unit; every
        other function requires a dimensionless argument.
        """
        if function not in ELEMENTARY_FUNCTIONS:
            raise ValueError(f"Unknown elementary function '{function}'")
        if function == "sqrt":
            vector = tuple(0.5 * v for v in self._vector)
        elif function == "abs":
            vector = self._vector
        elif self.is_dimensionless:
            vector = DIMENSIONLESS
        else:
            raise UnitMismatchError(function, self.unit, format_unit(DIMENSIONLESS))

        if isinstance(self._value, UC):
            value = self._value.apply(function)
        else:
            func = ELEMENTARY_FUNCTIONS[function][0]
            with np.errstate(divide="ignore", invalid="ignore"):
                value = func(np.asarray(self._value, dtype=float))
            if np.ndim(value) == 0:
                value = float(value)
        return DimVar._make(value, vector)

    # ------------------------------------------------------------------
    # Comparison (magnitudes, dimensions must agree)
    # ------------------------------------------------------------------
    def __lt__(self, other):
        return _combine(
            self, other, "less than", _same_unit(lambda a, b: a < b), wrap=False
        )

    def __gt__(self, other):
        return _combine(
            self, other, "greater than", _same_unit(lambda a, b: a > b), wrap=False
        )

    def __eq__(self, other):
        return _combine(
            self, other, "equal to", _same_unit(lambda a, b: a == b), wrap=False
        )

    def __le__(self, other):
        return _logical_not(self.__gt__(other))

    def __ge__(self, other):
        return _logical_not(self.__lt__(other))

    def __ne__(self, other):
        return _logical_not(self.__eq__(other))

    __hash__ = None

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------
    def __str__(self) -> str:
        magnitude = self.magnitude
        if isinstance(magnitude, UC):
            text = str(magnitude)
        else:
            text = ", ".join(
                format(float(v), SETTINGS.display_format)
                for v in np.ravel(np.asarray(magnitude, dtype=float))
            )
        return f"{text} [{self.unit}]"

    def __repr__(self) -> str:
        return f"DimVar({self.magnitude!r}, {self.unit!r})"


def _coerce(obj) -> Optional[DimVar]:
    if isinstance(obj, DimVar):
        return obj
    if isinstance(obj, (UC, numbers.Real, np.ndarray, list, tuple)):
        return DimVar(obj)
    return None


def _same_unit(op):
    def combine(a: DimVar, b: DimVar, op_name: str):
        if not same_dimension(a._vector, b._vector):
            raise UnitMismatchError(op_name, a.unit, b.unit)
        return op(a._value, b._value), a._vector

    return combine


def _product(a: DimVar, b: DimVar, op_name: str):
    vector = tuple(x + y for x, y in zip(a._vector, b._vector))
    return a._value * b._value, vector


def _quotient(a: DimVar, b: DimVar, op_name: str):
    vector = tuple(x - y for x, y in zip(a._vector, b._vector))
    return a._value / b._value, vector


def _power(a: DimVar, b: DimVar, op_name: str):
    if not b.is_dimensionless:
        raise NonDimensionlessExponentError(
            f"Exponent must be dimensionless, got [{b.unit}]"
        )
    if a.is_dimensionless:
        vector = DIMENSIONLESS
    else:
        if _size(b._value) != 1:
            raise ShapeMismatchError(
                "Exponent of a dimensioned base must be a scalar"
            )
        p = _scalar(b._value)
        vector = tuple(v * p for v in a._vector)
    return a._value**b._value, vector


def _conform(obj: DimVar, shape: Tuple[int, ...]) -> DimVar:
    # Plain size-1 magnitudes are replicated; UC magnitudes broadcast themselves.
    if isinstance(obj._value, UC) or obj.shape == shape:
        return obj
    arr = np.broadcast_to(np.asarray(obj._value, dtype=float).reshape(()), shape)
    return DimVar._make(arr, obj._vector, obj._display)


def _combine(a, b, op_name: str, rule, wrap: bool = True):
    a = _coerce(a)
    b = _coerce(b)
    if a is None or b is None:
        return NotImplemented
    shape = broadcast_shape(a.shape, b.shape)
    a = _conform(a, shape)
    b = _conform(b, shape)
    value, vector = rule(a, b, op_name)
    if not wrap:
        return value
    return DimVar._make(value, vector)


def _logical_not(result):
    if result is NotImplemented:
        return result
    if isinstance(result, (bool, np.bool_)):
        return not result
    return np.logical_not(result)


__all__ = ["DimVar"]
