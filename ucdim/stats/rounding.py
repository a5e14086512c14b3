"""
Significant-figure rounding and "value ± uncertainty" formatting.

Conventions:
- the uncertainty is rounded to 1 significant figure, or 2 when its leading
  digit is 1,
- the value is rounded to the same decimal place as the uncertainty.
"""

from __future__ import annotations

import math
from typing import Tuple


def _round_uncertainty(u: float) -> Tuple[float, int]:
    """
    Returns:
      (rounded_uncertainty, ndigits_for_rounding_value)
    where ndigits may be negative (round to tens/hundreds/etc.).
    """
    if u <= 0 or not math.isfinite(u):
        return u, 0

    u = abs(float(u))
    exponent = math.floor(math.log10(u))
    leading = u / (10**exponent)

    sig_figs = 2 if 1.0 <= leading < 2.0 else 1
    ndigits = sig_figs - 1 - exponent

    ru = round(u, ndigits)

    if ru == 0:
        ndigits = sig_figs - exponent
        ru = round(u, ndigits)

    return float(ru), int(ndigits)


def _format_number_with_rounding(x: float, ndigits: int) -> str:
    xr = round(float(x), ndigits)
    if ndigits > 0:
        return f"{xr:.{ndigits}f}"
    return f"{xr:.0f}"


def format_value_with_uncertainty(
    value: float, uncertainty: float, unit: str = ""
) -> str:
    """Render ``value ± uncertainty [unit]`` at the precision of the uncertainty.

    Example: ``format_value_with_uncertainty(9.8132, 0.0234, "m/s^2")`` gives
    ``"9.81 ± 0.02 [m/s^2]"``.
    """
    suffix = f" [{unit}]" if unit else ""
    ru, ndigits = _round_uncertainty(abs(float(uncertainty)))
    if ru == 0 or not math.isfinite(ru):
        return f"{value:.6g} ± {uncertainty:.6g}{suffix}"

    v_str = _format_number_with_rounding(value, ndigits)
    u_str = _format_number_with_rounding(ru, ndigits)
    return f"{v_str} ± {u_str}{suffix}"
