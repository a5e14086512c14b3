"""
Statistical utilities for uncertain quantities.

This subpackage provides numerical routines for regression analysis and for
presenting values with their uncertainties. Functions operate on arrays and
primitive types.

Modules:
    regression:
        Linear regression with standard errors and confidence intervals, and
        projection of a fitted line with propagated input uncertainties.

    rounding:
        Significant-figure rounding and "value ± uncertainty" formatting.
"""

from .rounding import format_value_with_uncertainty
from .regression import (
    FitParameter,
    LinearProjection,
    linear_projection,
    linear_regression,
    project_uncertain,
)

__all__ = [
    "FitParameter",
    "LinearProjection",
    "format_value_with_uncertainty",
    "linear_projection",
    "linear_regression",
    "project_uncertain",
]
