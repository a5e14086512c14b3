"""Elementary functions accepting ``UC``, ``DimVar`` or plain numbers.

``UC`` arguments propagate their uncertainty as ``σy = |f'(x)|·σx``;
``DimVar`` arguments must be dimensionless except for ``sqrt`` (exponents are
halved) and ``abs`` (unit kept). Numbers and arrays go straight to numpy.
"""

from __future__ import annotations

import numpy as np

from .dimvar import DimVar
from .uncertainty import ELEMENTARY_FUNCTIONS, UC


def _apply(function: str, x):
    if isinstance(x, (UC, DimVar)):
        return x.apply(function)
    func = ELEMENTARY_FUNCTIONS[function][0]
    with np.errstate(divide="ignore", invalid="ignore"):
        result = func(np.asarray(x, dtype=float))
    return float(result) if np.ndim(result) == 0 else result


def sin(x):
    return _apply("sin", x)


def cos(x):
    return _apply("cos", x)


def tan(x):
    return _apply("tan", x)


def csc(x):
    return _apply("csc", x)


def sec(x):
    return _apply("sec", x)


def cot(x):
    return _apply("cot", x)


def asin(x):
    return _apply("asin", x)


def acos(x):
    return _apply("acos", x)


def atan(x):
    return _apply("atan", x)


def asec(x):
    """Inverse secant, ``acos(1/x)``."""
    return _apply("asec", x)


def acsc(x):
    """Inverse cosecant, ``asin(1/x)``."""
    return _apply("acsc", x)


def acot(x):
    """Inverse cotangent, ``atan(1/x)``."""
    return _apply("acot", x)


def sqrt(x):
    return _apply("sqrt", x)


def exp(x):
    return _apply("exp", x)


def log(x):
    """Natural logarithm."""
    return _apply("log", x)


def log10(x):
    return _apply("log10", x)


def log2(x):
    return _apply("log2", x)


def absolute(x):
    """Absolute value; the same as the builtin ``abs``."""
    return _apply("abs", x)


__all__ = sorted(ELEMENTARY_FUNCTIONS.keys() - {"abs"}) + ["absolute"]
