"""Matplotlib helpers for uncertain and dimensioned quantities."""

from .errorbars import plot_linear_projection, plot_with_errorbars
from .style import (
    OUTPUT_FORMATS,
    STYLE,
    apply_global_style,
    axis_label,
    clean_axis,
    save_figure,
)

__all__ = [
    "OUTPUT_FORMATS",
    "STYLE",
    "apply_global_style",
    "axis_label",
    "clean_axis",
    "plot_linear_projection",
    "plot_with_errorbars",
    "save_figure",
]
