"""
Climate Trend Visualization Module

Charts for the climate trend report. Every function consumes results that
were already computed by the aggregation and statistics modules; nothing here
fits a model or runs a test.
"""

from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Sequence, Tuple

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import seaborn as sns
from matplotlib.figure import Figure

logger = logging.getLogger(__name__)

# Plotting defaults
plt.style.use("default")
sns.set_palette("husl")

# ------------------------------------------------------------------------------
# Constants
# ------------------------------------------------------------------------------

COLOR_SCHEMES: Dict[str, Sequence[str]] = {
    "temperature": ["#FF6B6B", "#FF8E53", "#FF6B35", "#C44569"],
    "precipitation": ["#3498DB", "#2980B9", "#1ABC9C", "#16A085"],
    "extremes": ["#E74C3C", "#3F51B5", "#27AE60", "#F39C12"],
}

DEFAULT_FIGSIZE: Tuple[float, float] = (15.0, 10.0)
DPI: int = 150
FONT_SIZES: Dict[str, int] = {
    "title": 16,
    "subtitle": 13,
    "label": 11,
    "tick": 10,
    "legend": 9,
}

MONTH_LABELS = ["J", "F", "M", "A", "M", "J", "J", "A", "S", "O", "N", "D"]

__all__ = [
    "plot_metric_trends",
    "plot_seasonal_overlay",
    "plot_extreme_days",
]


def _save_plot(fig: Figure, filename: str, output_dir: str | Path) -> Path:
    """Save and close a figure with consistent settings."""
    output_path = Path(output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    full_path = output_path / filename
    fig.savefig(full_path, dpi=DPI, bbox_inches="tight", facecolor="white")
    plt.close(fig)
    logger.info(f"Saved: {full_path}")
    return full_path


def _panel_grid(n_panels: int, n_cols: int = 2) -> Tuple[Figure, np.ndarray]:
    """Figure with enough axes for n_panels; spare axes are hidden."""
    n_rows = max(1, math.ceil(n_panels / n_cols))
    fig, axes = plt.subplots(
        n_rows, n_cols, figsize=(DEFAULT_FIGSIZE[0], 4.5 * n_rows), squeeze=False
    )
    flat = axes.reshape(-1)
    for ax in flat[n_panels:]:
        ax.set_visible(False)
    return fig, flat


def _metric_color(metric: str, position: int) -> str:
    scheme = "precipitation" if "precip" in metric else "temperature"
    if metric.endswith("_days") or metric.endswith("_nights"):
        scheme = "extremes"
    colors = COLOR_SCHEMES[scheme]
    return colors[position % len(colors)]


# ------------------------------------------------------------------------------
# Trend panels
# ------------------------------------------------------------------------------


def plot_metric_trends(
    trend_results: Mapping[str, Dict[str, Any]],
    metric_info: Mapping[str, Mapping[str, str]],
    output_dir: str | Path,
    filename: str = "metric_trends.png",
    title: str = "Long-Term Trends",
) -> Optional[Path]:
    """Scatter of each yearly metric with its fitted line and confidence band

    Args:
        trend_results: Output of analyze_metric_trends (uses the trend_line
            frames and OLS results)
        metric_info: {metric: {"label": ..., "units": ...}} selecting and
            labelling the panels
        output_dir: Directory for the PNG
    """
    metrics = [
        m
        for m in metric_info
        if m in trend_results and trend_results[m].get("trend_line") is not None
    ]
    if not metrics:
        logger.info(f"No trend data to plot for {filename}; skipping")
        return None

    logger.info(f"Creating trend panels for {len(metrics)} metrics")
    fig, axes = _panel_grid(len(metrics))
    fig.suptitle(title, fontsize=FONT_SIZES["title"], fontweight="bold")

    for position, (ax, metric) in enumerate(zip(axes, metrics)):
        frame: pd.DataFrame = trend_results[metric]["trend_line"]
        ols = trend_results[metric]["ols"]
        mk = trend_results[metric]["mann_kendall"]
        info = metric_info[metric]
        color = _metric_color(metric, position)

        ax.scatter(frame["x"], frame["y"], s=18, alpha=0.7, color=color, label="Observed")
        ax.plot(
            frame["x"],
            frame["fitted"],
            "--",
            color="black",
            linewidth=1.8,
            label=f"OLS: {ols.slope_per_decade:+.2f} {info['units']}/decade",
        )
        ax.fill_between(
            frame["x"],
            frame["lower"],
            frame["upper"],
            color=color,
            alpha=0.2,
            label="95% Confidence",
        )
        ax.set_title(
            f"{info['label']}\nOLS p={ols.p_value:.3g}, Mann-Kendall p={mk.p_value:.3g}",
            fontsize=FONT_SIZES["subtitle"],
        )
        ax.set_xlabel("Year", fontsize=FONT_SIZES["label"])
        ax.set_ylabel(info["units"], fontsize=FONT_SIZES["label"])
        ax.legend(fontsize=FONT_SIZES["legend"], loc="best")
        ax.grid(True, alpha=0.3)

    fig.tight_layout()
    return _save_plot(fig, filename, output_dir)


# ------------------------------------------------------------------------------
# Seasonal overlay
# ------------------------------------------------------------------------------


def plot_seasonal_overlay(
    monthly: pd.DataFrame,
    climatology: pd.DataFrame,
    metric_info: Mapping[str, Mapping[str, str]],
    output_dir: str | Path,
    highlight_years: Optional[Sequence[int]] = None,
    filename: str = "seasonal_overlay.png",
) -> Optional[Path]:
    """Small multiples of every year's seasonal cycle

    Each panel draws all years in light grey, the long-run climatology in
    black and the highlighted years in colour.
    """
    metrics = [m for m in metric_info if m in monthly.columns]
    if not metrics or monthly.empty:
        logger.info("No monthly data for seasonal overlay; skipping")
        return None

    highlight_years = list(highlight_years or [])
    palette = sns.color_palette("husl", max(1, len(highlight_years)))

    logger.info(
        f"Creating seasonal overlay ({len(metrics)} panels, "
        f"highlighting {highlight_years})"
    )
    fig, axes = _panel_grid(len(metrics), n_cols=len(metrics) if len(metrics) < 3 else 3)
    fig.suptitle("Seasonal Cycle by Year", fontsize=FONT_SIZES["title"], fontweight="bold")

    for ax, metric in zip(axes, metrics):
        info = metric_info[metric]
        for _, year_data in monthly.groupby("year"):
            ax.plot(
                year_data["month"],
                year_data[metric],
                color="lightgray",
                linewidth=0.8,
                alpha=0.6,
            )

        if metric in climatology.columns:
            ax.plot(
                climatology["month"],
                climatology[metric],
                color="black",
                linewidth=2.5,
                label="Climatology",
            )

        for color, year in zip(palette, highlight_years):
            year_data = monthly[monthly["year"] == year]
            if year_data.empty:
                continue
            ax.plot(
                year_data["month"],
                year_data[metric],
                marker="o",
                markersize=3,
                linewidth=1.8,
                color=color,
                label=str(year),
            )

        ax.set_title(info["label"], fontsize=FONT_SIZES["subtitle"])
        ax.set_xticks(range(1, 13))
        ax.set_xticklabels(MONTH_LABELS, fontsize=FONT_SIZES["tick"])
        ax.set_ylabel(info["units"], fontsize=FONT_SIZES["label"])
        ax.grid(True, alpha=0.3)
        ax.legend(fontsize=FONT_SIZES["legend"], loc="best")

    fig.tight_layout()
    return _save_plot(fig, filename, output_dir)


# ------------------------------------------------------------------------------
# Extreme day counts
# ------------------------------------------------------------------------------


def plot_extreme_days(
    yearly: pd.DataFrame,
    metric_info: Mapping[str, Mapping[str, str]],
    output_dir: str | Path,
    filename: str = "extreme_days.png",
) -> Optional[Path]:
    """Bar chart of the yearly extreme-day counts"""
    metrics = [m for m in metric_info if m in yearly.columns]
    if not metrics or yearly.empty:
        logger.info("No extreme-day counts to plot; skipping")
        return None

    fig, axes = _panel_grid(len(metrics))
    fig.suptitle("Yearly Extreme Days", fontsize=FONT_SIZES["title"], fontweight="bold")

    for position, (ax, metric) in enumerate(zip(axes, metrics)):
        ax.bar(
            yearly["year"],
            yearly[metric],
            color=COLOR_SCHEMES["extremes"][position % len(COLOR_SCHEMES["extremes"])],
            alpha=0.8,
        )
        ax.set_title(metric_info[metric]["label"], fontsize=FONT_SIZES["subtitle"])
        ax.set_xlabel("Year", fontsize=FONT_SIZES["label"])
        ax.set_ylabel("Days", fontsize=FONT_SIZES["label"])
        ax.grid(True, alpha=0.3, axis="y")

    fig.tight_layout()
    return _save_plot(fig, filename, output_dir)
