"""Exception types raised by unit parsing, dimension checks and propagation.

Every error derives from ``ValueError`` and is raised on invalid caller input;
none of them is caught inside the package.
"""

from __future__ import annotations


class ShapeMismatchError(ValueError):
    """Operand shapes are different and neither operand is a scalar."""


class UnitMismatchError(ValueError):
    """Two dimensioned values were combined with different dimensions."""

    def __init__(self, operator: str, left: str, right: str):
        self.operator = operator
        self.left = left
        self.right = right
        super().__init__(
            f'Unit mismatch in "{operator}" operator, '
            f"attempting to combine {left} and {right}"
        )


class UnknownUnitError(ValueError):
    """A unit token is not present in the unit table."""

    def __init__(self, token: str):
        self.token = token
        super().__init__(f'Unrecognized unit "{token}"')


class MalformedUnitError(ValueError):
    """A unit string does not follow the unit grammar."""


class InvalidExponentError(MalformedUnitError):
    """The power attached to a unit token is not a number."""


class NonDimensionlessExponentError(ValueError):
    """An exponent carrying units was used in a power operation."""


__all__ = [
    "ShapeMismatchError",
    "UnitMismatchError",
    "UnknownUnitError",
    "MalformedUnitError",
    "InvalidExponentError",
    "NonDimensionlessExponentError",
]
