"""
Trend Statistics Module

Ordinary least squares trend estimation and the Mann-Kendall monotonic trend
test, computed from their closed-form definitions. scipy is used only for the
t and normal distribution tails.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Mapping, Optional

import numpy as np
import pandas as pd
from scipy import stats

from .data_dictionary import (
    CONFIDENCE_LEVEL,
    MIN_TREND_POINTS,
    PRECIP_COLUMN,
    SIGNIFICANCE_LEVEL,
)
from .exceptions import InsufficientDataError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrendResult:
    """Linear fit of a metric against year."""

    metric: str
    slope: float  # units per year
    intercept: float
    p_value: float  # two-sided, H0: slope == 0
    r_squared: float
    std_err: float
    n: int

    @property
    def is_significant(self) -> bool:
        return self.p_value < SIGNIFICANCE_LEVEL

    @property
    def slope_per_decade(self) -> float:
        return self.slope * 10.0


@dataclass(frozen=True)
class MonotonicTestResult:
    """Mann-Kendall trend test of a time-ordered sequence."""

    metric: str
    p_value: float
    s: int
    variance: float
    z: float
    tau: float
    sen_slope: float
    n: int

    @property
    def is_significant(self) -> bool:
        return self.p_value < SIGNIFICANCE_LEVEL

    @property
    def trend(self) -> str:
        if not self.is_significant:
            return "no trend"
        return "increasing" if self.s > 0 else "decreasing"


def _as_float_array(values: Iterable[Any]) -> np.ndarray:
    """1D float ndarray from a Series/list/ndarray"""
    return np.asarray(values, dtype=float).reshape(-1)


def ols_trend(x: Iterable[Any], y: Iterable[Any], metric: str = "value") -> TrendResult:
    """Fit y = intercept + slope * x by ordinary least squares

    The p-value tests slope == 0 with the t statistic slope / se(slope) on
    n - 2 degrees of freedom.

    Raises:
        InsufficientDataError: fewer than 3 points, mismatched lengths or no
            spread in x
    """
    x_arr = _as_float_array(x)
    y_arr = _as_float_array(y)
    if len(x_arr) != len(y_arr):
        raise InsufficientDataError(
            f"{metric}: x and y lengths differ ({len(x_arr)} vs {len(y_arr)})"
        )

    n = len(x_arr)
    if n < MIN_TREND_POINTS:
        raise InsufficientDataError(
            f"{metric}: regression needs at least {MIN_TREND_POINTS} points, got {n}"
        )

    x_bar = x_arr.mean()
    y_bar = y_arr.mean()
    sxx = float(np.sum((x_arr - x_bar) ** 2))
    if sxx == 0.0:
        raise InsufficientDataError(f"{metric}: x values have no spread")
    sxy = float(np.sum((x_arr - x_bar) * (y_arr - y_bar)))
    syy = float(np.sum((y_arr - y_bar) ** 2))

    slope = sxy / sxx
    intercept = y_bar - slope * x_bar
    residuals = y_arr - (intercept + slope * x_arr)
    ssr = float(np.sum(residuals**2))
    dof = n - 2
    std_err = float(np.sqrt(ssr / dof / sxx))

    if std_err > 0.0:
        t_stat = slope / std_err
        p_value = float(2.0 * stats.t.sf(abs(t_stat), dof))
    else:
        # Exact fit: any non-zero slope is certain, a flat series has none
        p_value = 0.0 if slope != 0.0 else 1.0

    r_squared = 1.0 - ssr / syy if syy > 0.0 else 0.0

    return TrendResult(
        metric=metric,
        slope=float(slope),
        intercept=float(intercept),
        p_value=p_value,
        r_squared=float(r_squared),
        std_err=std_err,
        n=n,
    )


def trend_line_frame(
    x: Iterable[Any],
    y: Iterable[Any],
    result: TrendResult,
    confidence: float = CONFIDENCE_LEVEL,
) -> pd.DataFrame:
    """Fitted line and confidence band of the mean response for charting

    Returns:
        DataFrame with columns x, y, fitted, lower, upper
    """
    x_arr = _as_float_array(x)
    y_arr = _as_float_array(y)
    fitted = result.intercept + result.slope * x_arr

    n = len(x_arr)
    x_bar = x_arr.mean()
    sxx = float(np.sum((x_arr - x_bar) ** 2))
    mse = float(np.sum((y_arr - fitted) ** 2) / (n - 2))
    t_val = float(stats.t.ppf(0.5 + confidence / 2.0, n - 2))
    half_width = t_val * np.sqrt(mse * (1.0 / n + (x_arr - x_bar) ** 2 / sxx))

    return pd.DataFrame(
        {
            "x": x_arr,
            "y": y_arr,
            "fitted": fitted,
            "lower": fitted - half_width,
            "upper": fitted + half_width,
        }
    )


def sen_slope(values: Iterable[Any], x: Optional[Iterable[Any]] = None) -> float:
    """Median of the pairwise slopes (values[j] - values[i]) / (x[j] - x[i])"""
    y_arr = _as_float_array(values)
    x_arr = np.arange(len(y_arr), dtype=float) if x is None else _as_float_array(x)
    i, j = np.triu_indices(len(y_arr), k=1)
    dx = x_arr[j] - x_arr[i]
    valid = dx != 0
    if not valid.any():
        return float("nan")
    return float(np.median((y_arr[j] - y_arr[i])[valid] / dx[valid]))


def mann_kendall_test(
    values: Iterable[Any],
    metric: str = "value",
    x: Optional[Iterable[Any]] = None,
) -> MonotonicTestResult:
    """Mann-Kendall test for a monotonic trend in a time-ordered sequence

    S counts concordant minus discordant pairs over all i < j. Its variance
    under the null uses the tie correction
    [n(n-1)(2n+5) - sum t(t-1)(2t+5)] / 18 over groups of tied values, and the
    two-sided p-value comes from the continuity-corrected normal approximation.

    Args:
        values: Metric values in time order
        metric: Name recorded on the result
        x: Optional time coordinates used for Sen's slope (index when None)

    Raises:
        InsufficientDataError: fewer than 3 observations
    """
    y_arr = _as_float_array(values)
    n = len(y_arr)
    if n < MIN_TREND_POINTS:
        raise InsufficientDataError(
            f"{metric}: trend test needs at least {MIN_TREND_POINTS} observations, got {n}"
        )

    i, j = np.triu_indices(n, k=1)
    s = int(np.sign(y_arr[j] - y_arr[i]).sum())

    _, tie_counts = np.unique(y_arr, return_counts=True)
    ties = tie_counts[tie_counts > 1].astype(float)
    variance = (
        n * (n - 1) * (2 * n + 5) - float(np.sum(ties * (ties - 1) * (2 * ties + 5)))
    ) / 18.0

    if variance <= 0.0 or s == 0:
        z = 0.0
    elif s > 0:
        z = (s - 1) / np.sqrt(variance)
    else:
        z = (s + 1) / np.sqrt(variance)
    p_value = float(2.0 * stats.norm.sf(abs(z)))

    tau = s / (n * (n - 1) / 2.0)

    return MonotonicTestResult(
        metric=metric,
        p_value=min(p_value, 1.0),
        s=s,
        variance=float(variance),
        z=float(z),
        tau=float(tau),
        sen_slope=sen_slope(y_arr, x),
        n=n,
    )


def _empty_entry() -> Dict[str, Any]:
    return {"ols": None, "mann_kendall": None, "trend_line": None, "error": None}


def _analyze_series(metric: str, x: np.ndarray, y: np.ndarray) -> Dict[str, Any]:
    """OLS + Mann-Kendall for one series; InsufficientDataError is recorded"""
    entry = _empty_entry()
    try:
        ols = ols_trend(x, y, metric=metric)
        entry["ols"] = ols
        entry["mann_kendall"] = mann_kendall_test(y, metric=metric, x=x)
        entry["trend_line"] = trend_line_frame(x, y, ols)
    except InsufficientDataError as e:
        logger.warning(f"Trend analysis skipped: {e}")
        entry["error"] = str(e)
    return entry


def analyze_metric_trends(
    table: pd.DataFrame, metrics: Iterable[str], x_col: str = "year"
) -> Dict[str, Dict[str, Any]]:
    """Run OLS and Mann-Kendall on every metric column of a yearly table

    A metric with too little data is reported with its error message instead
    of aborting the remaining metrics.

    Returns:
        {metric: {"ols": TrendResult | None, "mann_kendall":
        MonotonicTestResult | None, "trend_line": DataFrame | None,
        "error": str | None}}
    """
    results: Dict[str, Dict[str, Any]] = {}
    ordered = table.sort_values(x_col)
    for metric in metrics:
        if metric not in ordered.columns:
            entry = _empty_entry()
            entry["error"] = f"{metric}: column not found"
            logger.warning(entry["error"])
            results[metric] = entry
            continue

        clean = ordered[[x_col, metric]].dropna()
        logger.info(f"Trend analysis: {metric} ({len(clean)} points)")
        results[metric] = _analyze_series(
            metric, _as_float_array(clean[x_col]), _as_float_array(clean[metric])
        )
    return results


def monthly_precipitation_trend(
    monthly: pd.DataFrame,
    years: Optional[List[int]] = None,
    metric: str = "monthly_precipitation",
) -> Dict[str, Any]:
    """Trend of the monthly precipitation totals against decimal year

    Args:
        monthly: Monthly bucket table
        years: Restrict to these (full) years when given
    """
    subset = monthly if years is None else monthly[monthly["year"].isin(years)]
    subset = subset.sort_values(["year", "month"])
    decimal_year = subset["year"] + (subset["month"] - 1) / 12.0
    logger.info(f"Trend analysis: {metric} ({len(subset)} months)")
    return _analyze_series(
        metric,
        _as_float_array(decimal_year),
        _as_float_array(subset[f"{PRECIP_COLUMN}_sum"]),
    )


def _slope_direction(slope: float) -> str:
    if slope > 0:
        return "increasing"
    if slope < 0:
        return "decreasing"
    return "flat"


def generate_statistical_insights(
    results: Mapping[str, Dict[str, Any]],
    labels: Optional[Mapping[str, str]] = None,
) -> List[str]:
    """Generate human-readable insights from trend results"""
    insights = []
    labels = labels or {}

    for metric, entry in results.items():
        label = labels.get(metric, metric)
        ols = entry.get("ols")
        mk = entry.get("mann_kendall")
        if entry.get("error") or ols is None or mk is None:
            insights.append(f"{label}: not enough data for a trend test")
            continue

        direction = _slope_direction(ols.slope)
        if ols.is_significant and mk.is_significant:
            insights.append(
                f"{label}: significant {direction} trend of "
                f"{ols.slope_per_decade:+.3f} per decade "
                f"(OLS p={ols.p_value:.3g}, Mann-Kendall p={mk.p_value:.3g})"
            )
        elif ols.is_significant or mk.is_significant:
            if ols.is_significant:
                test = "OLS"
            else:
                test = "Mann-Kendall"
                direction = mk.trend
            insights.append(
                f"{label}: {direction} trend of {ols.slope_per_decade:+.3f} per decade, "
                f"significant under {test} only"
            )
        else:
            insights.append(f"{label}: no significant trend")

    return insights
