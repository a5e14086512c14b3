"""Shared plotting style, axis cleanup and multi-format save helpers."""

from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
from matplotlib.figure import Figure
from matplotlib.ticker import MaxNLocator

OUTPUT_FORMATS: tuple[str, ...] = ("png", "pdf", "svg")
FIGURE_DPI = 300


@dataclass(frozen=True)
class StyleConfig:
    BASE_FONTSIZE: float = 12.0
    TITLE_FONTSIZE: float = 14.0
    LABEL_FONTSIZE: float = 12.0
    TICK_FONTSIZE: float = 11.0
    LEGEND_FONTSIZE: float = 11.0
    LINEWIDTH: float = 2.0
    LINEWIDTH_THIN: float = 1.2
    MARKERSIZE: float = 6.0
    GRID_ALPHA: float = 0.20
    FIGSIZE_SINGLE: tuple[float, float] = (7.0, 4.2)


STYLE = StyleConfig()


def apply_global_style(font_scale: float = 1.0, context: str = "paper") -> None:
    """Apply the package Matplotlib style, scaled by context and font scale."""
    ctx_scale = {
        "paper": 1.0,
        "notebook": 1.05,
        "talk": 1.12,
        "poster": 1.22,
    }
    scale = float(font_scale) * ctx_scale.get(context, 1.0)
    plt.rcParams.update(
        {
            "font.size": STYLE.BASE_FONTSIZE * scale,
            "axes.titlesize": STYLE.TITLE_FONTSIZE * scale,
            "axes.labelsize": STYLE.LABEL_FONTSIZE * scale,
            "xtick.labelsize": STYLE.TICK_FONTSIZE * scale,
            "ytick.labelsize": STYLE.TICK_FONTSIZE * scale,
            "legend.fontsize": STYLE.LEGEND_FONTSIZE * scale,
            "mathtext.default": "regular",
            "axes.linewidth": STYLE.LINEWIDTH_THIN,
            "axes.spines.top": False,
            "axes.spines.right": False,
            "grid.alpha": STYLE.GRID_ALPHA,
            "grid.linestyle": ":",
            "legend.frameon": False,
            "lines.linewidth": STYLE.LINEWIDTH,
            "lines.markersize": STYLE.MARKERSIZE,
            "errorbar.capsize": 3.0,
            "savefig.dpi": FIGURE_DPI,
            "savefig.bbox": "tight",
        }
    )


def clean_axis(ax: Axes, *, grid_axis: str = "y", nbins: int = 6) -> None:
    """Apply consistent ticks, grid and spines to one axis."""
    ax.xaxis.set_major_locator(MaxNLocator(nbins=nbins, min_n_ticks=4))
    ax.yaxis.set_major_locator(MaxNLocator(nbins=nbins, min_n_ticks=4))
    ax.spines["top"].set_visible(False)
    ax.spines["right"].set_visible(False)
    ax.grid(False)
    if grid_axis in {"x", "y", "both"}:
        ax.grid(True, axis=grid_axis, alpha=STYLE.GRID_ALPHA, linestyle=":")


def axis_label(name: str, unit: str = "") -> str:
    """Return ``"name / unit"``, or ``name`` for dimensionless quantities."""
    if not unit or unit == "-":
        return name
    return f"{name} / {unit}"


def sanitize_filename(name: str) -> str:
    """Normalize a filename component into a filesystem-safe token."""
    text = re.sub(r"\s+", "_", str(name).strip())
    text = re.sub(r"[^A-Za-z0-9._-]+", "_", text)
    text = re.sub(r"_+", "_", text).strip("._")
    return text or "figure"


def save_figure(
    fig: Figure,
    savepath_base: str | Path,
    formats: Sequence[str] = OUTPUT_FORMATS,
    dpi: int = FIGURE_DPI,
) -> Path:
    """Save a figure to several formats from one extensionless base path.

    Returns:
        pathlib.Path: Path of the first format written.
    """
    if not formats:
        raise ValueError("At least one output format is required")
    base = Path(savepath_base)
    base = base.with_name(sanitize_filename(base.name))
    base.parent.mkdir(parents=True, exist_ok=True)
    written = []
    for ext in formats:
        target = base.with_suffix(f".{ext}")
        fig.savefig(str(target), dpi=dpi if ext == "png" else None, bbox_inches="tight")
        written.append(target)
    return written[0]
