"""
First-order uncertainty propagation with correlation detection and provenance.

A ``UC`` holds a value, its standard (1-sigma) uncertainty, an identity tag and
a provenance ledger. Arithmetic follows the linearised propagation rules:

- Addition:       σy² = σa² + σb² + 2ρ·σa·σb
- Subtraction:    σy² = σa² + σb² - 2ρ·σa·σb
- Multiplication: σy² = (b·σa)² + (a·σb)² + 2ρ·a·b·σa·σb
- Division:       σy² = (σa/b)² + (a/b²·σb)² - 2ρ·σa·σb/(a·b)
- Power (a^b):    σy² = (b·a^(b-1)·σa)² + (ln a·y·σb)² + 2ρ·b·a^(b(b-1))·ln a·σa·σb

where ρ is 1 when both operands carry the same identity and 0 otherwise.
Identities are random draws for leaf values; results combine the parent
identities with the same operator, so ``x - x`` and ``x * x`` are recognised as
correlated while two independently created values never are. This is a
heuristic, not covariance tracking.

The provenance ledger (``contributions``) maps each named leaf to its share of
the output variance. Each operation weights the operands' ledgers by their
partial-variance terms ``(∂y/∂a·σa)²`` and ``(∂y/∂b·σb)²`` normalised to sum
to one, then adds shares of identical leaf labels.

Array-shaped values are collections of independent scalars. A size-1 operand
is replicated against an array operand; any other shape difference raises
``ShapeMismatchError``.
"""

from __future__ import annotations

import logging
import math
import numbers
from types import MappingProxyType
from typing import Callable, Dict, Mapping, Optional, Sequence, Tuple

import numpy as np

from .config import SETTINGS
from .errors import ShapeMismatchError
from .stats.rounding import format_value_with_uncertainty

logger = logging.getLogger(__name__)

_EMPTY: Mapping[str, float] = MappingProxyType({})

_identity_stream = np.random.default_rng()


def seed_identities(seed: Optional[int] = None) -> None:
    """Reseed the generator that draws identities for new leaf values."""
    global _identity_stream
    _identity_stream = np.random.default_rng(seed)


def _fresh_identities(shape: Tuple[int, ...]) -> np.ndarray:
    count = int(np.prod(shape, dtype=int))
    return np.asarray(_identity_stream.random(count), dtype=float).reshape(shape)


def _frozen(arr: np.ndarray) -> np.ndarray:
    arr = np.array(arr, copy=True)
    arr.setflags(write=False)
    return arr


def _object_array(item, shape: Tuple[int, ...]) -> np.ndarray:
    if isinstance(item, np.ndarray) and item.dtype == object and item.shape == shape:
        return item
    out = np.empty((), dtype=object)
    out[()] = item
    return out


def broadcast_shape(sa: Tuple[int, ...], sb: Tuple[int, ...]) -> Tuple[int, ...]:
    """Result shape of combining two operands: equal shapes, or one scalar.

    When both operands hold a single element the shape with more dimensions
    wins, so ``UC([1.0]) + 2`` keeps its ``(1,)`` shape.
    """
    if sa == sb:
        return sa
    size_a = int(np.prod(sa, dtype=int))
    size_b = int(np.prod(sb, dtype=int))
    if size_a == 1 and size_b == 1:
        return sa if len(sa) >= len(sb) else sb
    if size_a == 1:
        return sb
    if size_b == 1:
        return sa
    raise ShapeMismatchError(
        f"Operand shapes {sa} and {sb} are not compatible; "
        "only equal shapes or a scalar operand are allowed"
    )


def _expand(arr: np.ndarray, shape: Tuple[int, ...]) -> np.ndarray:
    if arr.shape == shape:
        return arr
    return np.broadcast_to(arr.reshape(()), shape)


def _leaf_labels(value: np.ndarray, name: Optional[str]) -> np.ndarray:
    labels = np.empty(value.shape, dtype=object)
    for idx in np.ndindex(value.shape):
        if name is None:
            labels[idx] = format(float(value[idx]), SETTINGS.label_format)
        elif value.ndim == 0:
            labels[idx] = str(name)
        else:
            labels[idx] = f"{name}[{', '.join(str(i) for i in idx)}]"
    return labels


def merge_contributions(
    ledgers: Sequence[Mapping[str, float]], weights: Sequence[float]
) -> Mapping[str, float]:
    """Combine provenance ledgers weighted by partial variances.

    Args:
        ledgers (Sequence[Mapping[str, float]]): One ledger per operand.
        weights (Sequence[float]): Partial-variance term of each operand.

    Returns:
        Mapping[str, float]: Read-only ledger whose shares sum to one. Operands
        whose weight is zero or not finite are left out; a single remaining
        operand is passed through unchanged and an empty ledger is returned
        when no operand contributes.
    """
    active = [
        (ledger, float(w))
        for ledger, w in zip(ledgers, weights)
        if math.isfinite(w) and w > 0
    ]
    if not active:
        return _EMPTY
    if len(active) == 1:
        return active[0][0]

    total = sum(w for _, w in active)
    merged: Dict[str, float] = {}
    for ledger, w in active:
        frac = w / total
        for label, share in ledger.items():
            merged[label] = merged.get(label, 0.0) + frac * share
    return MappingProxyType(dict(sorted(merged.items())))


def _term(coef, sigma):
    # A zero uncertainty contributes nothing even where the derivative is
    # infinite or undefined (0**-0.5, log of a negative base).
    return np.where(sigma == 0, 0.0, (coef * sigma) ** 2)


def _cross(rho, coef):
    return np.where(rho, coef, 0.0)


def _propagate_add(a, sa, b, sb, rho):
    ta, tb = _term(1.0, sa), _term(1.0, sb)
    var = ta + tb + _cross(rho, 2 * sa * sb)
    return a + b, var, ta, tb


def _propagate_sub(a, sa, b, sb, rho):
    ta, tb = _term(1.0, sa), _term(1.0, sb)
    var = ta + tb - _cross(rho, 2 * sa * sb)
    return a - b, var, ta, tb


def _propagate_mul(a, sa, b, sb, rho):
    ta, tb = _term(b, sa), _term(a, sb)
    var = ta + tb + _cross(rho, 2 * a * b * sa * sb)
    return a * b, var, ta, tb


def _propagate_div(a, sa, b, sb, rho):
    ta, tb = _term(1.0 / b, sa), _term(a / b**2, sb)
    var = ta + tb - _cross(rho, 2 * sa * sb / (a * b))
    return a / b, var, ta, tb


def _propagate_pow(a, sa, b, sb, rho):
    y = a**b
    ta = _term(b * a ** (b - 1), sa)
    tb = _term(np.log(a) * y, sb)
    var = ta + tb + _cross(rho, 2 * b * a ** (b * (b - 1)) * np.log(a) * sa * sb)
    return y, var, ta, tb


_OPERATORS: Dict[str, Tuple[Callable, Callable]] = {
    "+": (_propagate_add, np.add),
    "-": (_propagate_sub, np.subtract),
    "*": (_propagate_mul, np.multiply),
    "/": (_propagate_div, np.divide),
    "^": (_propagate_pow, np.power),
}


def _inv(x):
    return 1.0 / x


ELEMENTARY_FUNCTIONS: Dict[str, Tuple[Callable, Callable]] = {
    "sin": (np.sin, np.cos),
    "cos": (np.cos, lambda x: -np.sin(x)),
    "tan": (np.tan, lambda x: 1.0 / np.cos(x) ** 2),
    "csc": (lambda x: 1.0 / np.sin(x), lambda x: -np.cos(x) / np.sin(x) ** 2),
    "sec": (lambda x: 1.0 / np.cos(x), lambda x: np.sin(x) / np.cos(x) ** 2),
    "cot": (lambda x: 1.0 / np.tan(x), lambda x: -1.0 / np.sin(x) ** 2),
    "asin": (np.arcsin, lambda x: 1.0 / np.sqrt(1.0 - x**2)),
    "acos": (np.arccos, lambda x: -1.0 / np.sqrt(1.0 - x**2)),
    "atan": (np.arctan, lambda x: 1.0 / (1.0 + x**2)),
    "asec": (
        lambda x: np.arccos(_inv(x)),
        lambda x: 1.0 / (np.abs(x) * np.sqrt(x**2 - 1.0)),
    ),
    "acsc": (
        lambda x: np.arcsin(_inv(x)),
        lambda x: -1.0 / (np.abs(x) * np.sqrt(x**2 - 1.0)),
    ),
    "acot": (lambda x: np.arctan(_inv(x)), lambda x: -1.0 / (1.0 + x**2)),
    "sqrt": (np.sqrt, lambda x: 0.5 / np.sqrt(x)),
    "exp": (np.exp, np.exp),
    "log": (np.log, lambda x: 1.0 / x),
    "log10": (np.log10, lambda x: 1.0 / (x * np.log(10.0))),
    "log2": (np.log2, lambda x: 1.0 / (x * np.log(2.0))),
    "abs": (np.abs, np.ones_like),
}


class UC:
    """A value (or array of values) with a propagated standard uncertainty.

    Args:
        value: Best estimate; a number or array-like.
        err: Standard uncertainty. A scalar is replicated to the shape of
            ``value``; otherwise the shapes must match.
        name: Label of this leaf in provenance ledgers; array elements get
            ``name[i]``. Unnamed values are labelled by their value in the
            short ``g`` format, so two unnamed leaves of equal magnitude share
            one ledger entry and large values are abbreviated
            (``1.23457e+06``). Name leaves whose budget matters.
        identity: Correlation tag. A fresh random tag is drawn per element
            unless given; passing one scalar tag for an array makes all of its
            elements fully correlated.

    Raises:
        ShapeMismatchError: If ``err`` or ``identity`` cannot be matched to
            the shape of ``value``.
        ValueError: If any uncertainty is negative.
    """

    # ndarray operands defer to the reflected operators below.
    __array_ufunc__ = None

    def __init__(self, value, err=0.0, name: Optional[str] = None, identity=None):
        value_arr = np.asarray(value, dtype=float)
        shape = value_arr.shape

        err_arr = np.asarray(err, dtype=float)
        if err_arr.shape != shape:
            if err_arr.size != 1:
                raise ShapeMismatchError("Value and Error must be the same size")
            err_arr = np.full(shape, float(err_arr.reshape(())))
        if np.any(err_arr < 0):
            raise ValueError("Uncertainty must be non-negative")

        if identity is None:
            ident = _fresh_identities(shape)
        else:
            ident = np.asarray(identity, dtype=float)
            if ident.shape != shape:
                if ident.size != 1:
                    raise ShapeMismatchError("Identity must be scalar or match value")
                ident = np.full(shape, float(ident.reshape(())))

        labels = _leaf_labels(value_arr, name)
        ledgers = np.empty(shape, dtype=object)
        for idx in np.ndindex(shape):
            ledgers[idx] = MappingProxyType({labels[idx]: 1.0})

        self._assign(value_arr, err_arr, ident, labels, ledgers)

    def _assign(self, value, err, identity, labels, ledgers) -> None:
        self._value = _frozen(np.asarray(value, dtype=float))
        self._err = _frozen(np.asarray(err, dtype=float))
        self._identity = _frozen(np.asarray(identity, dtype=float))
        self._labels = _frozen(labels)
        self._ledgers = _frozen(ledgers)

    @classmethod
    def _from_parts(cls, value, err, identity, labels, ledgers) -> "UC":
        obj = cls.__new__(cls)
        obj._assign(value, err, identity, labels, ledgers)
        return obj

    @classmethod
    def stack(cls, items: Sequence["UC"]) -> "UC":
        """Collect scalar ``UC`` values into a 1-D array, keeping provenance."""
        return cls._stack(list(items), (len(items),))

    @classmethod
    def _stack(cls, items: Sequence["UC"], shape: Tuple[int, ...]) -> "UC":
        items = [_coerce(item) for item in items]
        if any(item is None or item.size != 1 for item in items):
            raise ShapeMismatchError("Only scalar values can be stacked")
        labels = np.empty(len(items), dtype=object)
        ledgers = np.empty(len(items), dtype=object)
        for i, item in enumerate(items):
            labels[i] = item._labels.reshape(())[()]
            ledgers[i] = item._ledgers.reshape(())[()]
        return cls._from_parts(
            np.array([item._value.reshape(()) for item in items]).reshape(shape),
            np.array([item._err.reshape(()) for item in items]).reshape(shape),
            np.array([item._identity.reshape(()) for item in items]).reshape(shape),
            labels.reshape(shape),
            ledgers.reshape(shape),
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------
    def _unwrap(self, arr: np.ndarray):
        if arr.ndim == 0:
            item = arr[()]
            return float(item) if arr.dtype != object else item
        return arr

    @property
    def value(self):
        """Best estimate: ``float`` for scalars, read-only array otherwise."""
        return self._unwrap(self._value)

    @property
    def err(self):
        """Standard uncertainty, same shape as :attr:`value`."""
        return self._unwrap(self._err)

    @property
    def identity(self):
        return self._unwrap(self._identity)

    @property
    def name(self):
        """Expression label, e.g. ``"(x+y)"``; an object array for arrays."""
        return self._unwrap(self._labels)

    label = name

    @property
    def contributions(self):
        """Provenance ledger ``{leaf label: share of output variance}``.

        A read-only mapping for scalars; an object array of mappings for
        array-shaped values.
        """
        return self._unwrap(self._ledgers)

    @property
    def shape(self) -> Tuple[int, ...]:
        return self._value.shape

    @property
    def ndim(self) -> int:
        return self._value.ndim

    @property
    def size(self) -> int:
        return int(self._value.size)

    def __len__(self) -> int:
        if self.ndim == 0:
            raise TypeError("len() of unsized UC")
        return self.shape[0]

    def __iter__(self):
        for i in range(len(self)):
            yield self[i]

    def __getitem__(self, key) -> "UC":
        value = np.asarray(self._value[key])
        shape = value.shape
        return UC._from_parts(
            value,
            np.asarray(self._err[key]),
            np.asarray(self._identity[key]),
            _object_array(self._labels[key], shape),
            _object_array(self._ledgers[key], shape),
        )

    def __float__(self) -> float:
        if self.size != 1:
            raise TypeError("Only size-1 UC values can be converted to float")
        return float(self._value.reshape(()))

    # ------------------------------------------------------------------
    # Arithmetic
    # ------------------------------------------------------------------
    def __add__(self, other):
        return _binary(self, other, "+")

    def __radd__(self, other):
        return _binary(other, self, "+")

    def __sub__(self, other):
        return _binary(self, other, "-")

    def __rsub__(self, other):
        return _binary(other, self, "-")

    def __mul__(self, other):
        return _binary(self, other, "*")

    def __rmul__(self, other):
        return _binary(other, self, "*")

    def __truediv__(self, other):
        return _binary(self, other, "/")

    def __rtruediv__(self, other):
        return _binary(other, self, "/")

    def __pow__(self, other, modulo=None):
        if modulo is not None:
            return NotImplemented
        return _binary(self, other, "^")

    def __rpow__(self, other):
        return _binary(other, self, "^")

    def __matmul__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return _matmul(self, other)

    def __rmatmul__(self, other):
        other = _coerce(other)
        if other is None:
            return NotImplemented
        return _matmul(other, self)

    def __neg__(self) -> "UC":
        return UC._from_parts(
            -self._value, self._err, self._identity, self._labels, self._ledgers
        )

    def __pos__(self) -> "UC":
        return self

    def __abs__(self) -> "UC":
        return self.apply("abs")

    def apply(self, function: str) -> "UC":
        """Propagate through an elementary function: ``σy = |f'(x)|·σx``.

        Args:
            function (str): One of :data:`ELEMENTARY_FUNCTIONS`, e.g.
                ``"sin"``, ``"sqrt"`` or ``"log10"``.

        Returns:
            UC: Result carrying this value's identity, label and provenance
            ledger unchanged (scaling does not alter relative shares).
        """
        try:
            func, deriv = ELEMENTARY_FUNCTIONS[function]
        except KeyError:
            raise ValueError(f"Unknown elementary function '{function}'") from None

        with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
            y = func(self._value)
            err = np.where(self._err == 0, 0.0, np.abs(deriv(self._value)) * self._err)

        return UC._from_parts(y, err, self._identity, self._labels, self._ledgers)

    def rescale(self, scale: float, offset: float = 0.0) -> "UC":
        """Return ``scale * self + offset`` as the same quantity.

        Used for unit conversion: the value is scaled and shifted and the
        uncertainty scaled by ``|scale|``, while identity, label and ledger
        are kept, so a converted value stays correlated with its source.
        """
        scale = float(scale)
        return UC._from_parts(
            self._value * scale + float(offset),
            self._err * abs(scale),
            self._identity,
            self._labels,
            self._ledgers,
        )

    # ------------------------------------------------------------------
    # Comparison (values only, except equality)
    # ------------------------------------------------------------------
    def __lt__(self, other):
        return _compare(self, other, lambda av, ae, bv, be: av < bv)

    def __gt__(self, other):
        return _compare(self, other, lambda av, ae, bv, be: av > bv)

    def __le__(self, other):
        return _negate(self.__gt__(other))

    def __ge__(self, other):
        return _negate(self.__lt__(other))

    def __eq__(self, other):
        return _compare(
            self,
            other,
            lambda av, ae, bv, be: (av == bv) & (ae == be),
        )

    def __ne__(self, other):
        return _negate(self.__eq__(other))

    __hash__ = None

    # ------------------------------------------------------------------
    # Reductions
    # ------------------------------------------------------------------
    def _require_elements(self, what: str) -> None:
        if self.size == 0:
            raise ValueError(f"Cannot compute {what} of an empty UC")

    def _reduce(self, divisor: int, suffix: str) -> "UC":
        values = self._value.ravel()
        errs = self._err.ravel()
        labels = [str(label) for label in self._labels.ravel()]
        variance = errs**2

        value = float(np.sum(values)) / divisor
        err = float(np.sqrt(np.sum(variance))) / divisor
        identity = float(np.sum(self._identity)) / divisor
        label = labels[0] if len(labels) == 1 else "(" + "+".join(labels) + ")"
        ledger = merge_contributions(list(self._ledgers.ravel()), list(variance))

        return UC._from_parts(
            value,
            err,
            identity,
            _object_array(label + suffix, ()),
            _object_array(ledger, ()),
        )

    def sum(self) -> "UC":
        """Sum of all elements: ``(Σv, sqrt(Σσ²))``."""
        self._require_elements("sum")
        return self._reduce(1, "")

    def mean(self) -> "UC":
        """Mean of all elements: ``(mean v, sqrt(Σσ²)/n)``."""
        self._require_elements("mean")
        n = self.size
        return self._reduce(n, f"/{n}" if n > 1 else "")

    def _pick(self, flat_index: int) -> "UC":
        return self[np.unravel_index(flat_index, self.shape)]

    def min(self) -> "UC":
        """Element with the smallest value (the first one on ties)."""
        self._require_elements("min")
        return self._pick(int(np.argmin(self._value)))

    def max(self) -> "UC":
        """Element with the largest value (the first one on ties)."""
        self._require_elements("max")
        return self._pick(int(np.argmax(self._value)))

    # ------------------------------------------------------------------
    # Presentation
    # ------------------------------------------------------------------
    def format(self, unit: str = "") -> str:
        """Format with the uncertainty rounded to its significant figures.

        Scalars render as ``"2.03 ± 0.12 m"``; arrays join the elements with
        ``"; "``.
        """
        parts = [
            format_value_with_uncertainty(float(v), float(e), unit)
            for v, e in zip(self._value.ravel(), self._err.ravel())
        ]
        return "; ".join(parts)

    def __str__(self) -> str:
        fmt = SETTINGS.display_format
        values = ", ".join(format(float(v), fmt) for v in self._value.ravel())
        errs = ", ".join(format(float(e), fmt) for e in self._err.ravel())
        return f"{values} ± {errs}"

    def __repr__(self) -> str:
        if self.ndim == 0:
            return f"UC({self.value!r}, {self.err!r}, name={self.name!r})"
        return f"UC(shape={self.shape}, value={self._value!r}, err={self._err!r})"


def _coerce(obj) -> Optional[UC]:
    if isinstance(obj, UC):
        return obj
    if isinstance(obj, (numbers.Real, np.ndarray, list, tuple)):
        return UC(obj)
    return None


def _binary(a, b, symbol: str):
    a = _coerce(a)
    b = _coerce(b)
    if a is None or b is None:
        return NotImplemented

    shape = broadcast_shape(a.shape, b.shape)
    propagate, combine_identity = _OPERATORS[symbol]

    av, ae, ai = (_expand(arr, shape) for arr in (a._value, a._err, a._identity))
    bv, be, bi = (_expand(arr, shape) for arr in (b._value, b._err, b._identity))
    la, ca = _expand(a._labels, shape), _expand(a._ledgers, shape)
    lb, cb = _expand(b._labels, shape), _expand(b._ledgers, shape)

    rho = ai == bi
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        value, variance, ta, tb = propagate(av, ae, bv, be, rho)
        # Correlated cancellation can round a zero variance slightly negative.
        err = np.sqrt(np.maximum(variance, 0.0))
        identity = combine_identity(ai, bi)

    labels = np.empty(shape, dtype=object)
    ledgers = np.empty(shape, dtype=object)
    for idx in np.ndindex(shape):
        labels[idx] = f"({la[idx]}{symbol}{lb[idx]})"
        ledgers[idx] = merge_contributions((ca[idx], cb[idx]), (ta[idx], tb[idx]))

    if np.any(rho):
        logger.debug(
            "Correlated operands in '%s': %d of %d element(s)",
            symbol,
            int(np.count_nonzero(rho)),
            rho.size,
        )
    return UC._from_parts(value, err, identity, labels, ledgers)


def _compare(a, b, predicate):
    a = _coerce(a)
    b = _coerce(b)
    if a is None or b is None:
        return NotImplemented
    shape = broadcast_shape(a.shape, b.shape)
    result = predicate(
        _expand(a._value, shape),
        _expand(a._err, shape),
        _expand(b._value, shape),
        _expand(b._err, shape),
    )
    if np.ndim(result) == 0:
        return bool(result)
    return np.array(result, dtype=bool)


def _negate(result):
    if result is NotImplemented:
        return result
    if isinstance(result, bool):
        return not result
    return np.logical_not(result)


def _matmul(a: UC, b: UC) -> UC:
    """Row-by-column product accumulated with the pairwise ``*`` and ``+``."""
    if a.ndim not in (1, 2) or b.ndim not in (1, 2):
        raise ShapeMismatchError("Matrix product requires 1-D or 2-D operands")

    inner = a.shape[-1]
    if b.shape[0] != inner or inner == 0:
        raise ShapeMismatchError(
            f"Matrix product shapes {a.shape} and {b.shape} are not aligned"
        )
    rows = a.shape[0] if a.ndim == 2 else 1
    cols = b.shape[1] if b.ndim == 2 else 1

    def left(i, k):
        return a[i, k] if a.ndim == 2 else a[k]

    def right(k, j):
        return b[k, j] if b.ndim == 2 else b[k]

    elements = []
    for i in range(rows):
        for j in range(cols):
            acc = left(i, 0) * right(0, j)
            for k in range(1, inner):
                acc = acc + left(i, k) * right(k, j)
            elements.append(acc)

    shape: Tuple[int, ...] = ()
    if a.ndim == 2:
        shape += (rows,)
    if b.ndim == 2:
        shape += (cols,)
    return UC._stack(elements, shape)


__all__ = [
    "ELEMENTARY_FUNCTIONS",
    "broadcast_shape",
    "UC",
    "merge_contributions",
    "seed_identities",
]
