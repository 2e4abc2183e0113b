"""
Time Aggregation Module

Groups daily records into monthly and yearly buckets. Every function returns
a new DataFrame and leaves its inputs untouched.
"""

import logging
from typing import List, Optional

import pandas as pd

from .data_dictionary import MAX_TEMP_COLUMN, MIN_TEMP_COLUMN, PRECIP_COLUMN

logger = logging.getLogger(__name__)

MONTHLY_AGGREGATIONS = {
    MAX_TEMP_COLUMN: ["mean", "max", "min"],
    MIN_TEMP_COLUMN: ["mean", "min"],
    PRECIP_COLUMN: ["mean", "sum"],
}

YEARLY_AGGREGATIONS = {
    MAX_TEMP_COLUMN: ["mean"],
    MIN_TEMP_COLUMN: ["mean"],
    PRECIP_COLUMN: ["mean", "sum"],
}


def _aggregate(daily: pd.DataFrame, keys: List[str], agg_functions) -> pd.DataFrame:
    """Group by keys and flatten the (column, function) names to column_function"""
    grouped = daily.groupby(keys, sort=True)
    stats = grouped.agg(agg_functions)
    stats.columns = [f"{col}_{func}" for col, func in stats.columns]
    stats["n_days"] = grouped.size()
    return stats.reset_index()


def full_years(
    daily: pd.DataFrame,
    exclude_boundary_years: bool = True,
    min_days_per_year: Optional[int] = None,
) -> List[int]:
    """Years whose coverage makes them comparable in yearly statistics

    The first and last calendar years of the range are partial-coverage
    boundary years and are dropped when exclude_boundary_years is set. When
    min_days_per_year is given, any other year with fewer records is dropped
    as well.
    """
    days_per_year = daily.groupby("year").size().sort_index()
    years = [int(y) for y in days_per_year.index]
    if not years:
        return []

    if exclude_boundary_years:
        first, last = years[0], years[-1]
        years = [y for y in years if y not in (first, last)]

    if min_days_per_year is not None:
        sparse = [y for y in years if days_per_year[y] < min_days_per_year]
        if sparse:
            logger.info(
                f"Excluding {len(sparse)} years with fewer than "
                f"{min_days_per_year} days: {sparse}"
            )
        years = [y for y in years if y not in sparse]

    return years


def aggregate_monthly(daily: pd.DataFrame) -> pd.DataFrame:
    """Monthly buckets for every (year, month) present in the daily records

    Columns: year, month, max_temp_mean, max_temp_max, max_temp_min,
    min_temp_mean, min_temp_min, precipitation_mean, precipitation_sum, n_days
    """
    monthly = _aggregate(daily, ["year", "month"], MONTHLY_AGGREGATIONS)
    logger.info(f"Aggregated {len(daily):,} daily records into {len(monthly)} months")
    return monthly


def aggregate_yearly(
    daily: pd.DataFrame,
    exclude_boundary_years: bool = True,
    min_days_per_year: Optional[int] = None,
) -> pd.DataFrame:
    """Yearly buckets for the full years of the daily records

    Columns: year, max_temp_mean, min_temp_mean, precipitation_mean,
    precipitation_sum, n_days
    """
    years = full_years(daily, exclude_boundary_years, min_days_per_year)
    subset = daily[daily["year"].isin(years)]
    if subset.empty:
        logger.warning("No full years available for yearly aggregation")
        columns = ["year"] + [
            f"{col}_{func}" for col, funcs in YEARLY_AGGREGATIONS.items() for func in funcs
        ]
        return pd.DataFrame(columns=columns + ["n_days"])

    yearly = _aggregate(subset, ["year"], YEARLY_AGGREGATIONS)
    logger.info(
        f"Aggregated {len(yearly)} full years "
        f"({yearly['year'].min()}-{yearly['year'].max()})"
    )
    return yearly


def combine_yearly(yearly: pd.DataFrame, extremes: pd.DataFrame) -> pd.DataFrame:
    """Attach the yearly extreme-day counts to the yearly buckets"""
    combined = pd.merge(yearly, extremes, on="year", how="left")
    count_cols = [c for c in extremes.columns if c != "year"]
    combined[count_cols] = combined[count_cols].fillna(0).astype(int)
    return combined.sort_values("year").reset_index(drop=True)


def monthly_climatology(
    monthly: pd.DataFrame, years: Optional[List[int]] = None
) -> pd.DataFrame:
    """Long-run mean of every monthly statistic per calendar month

    Args:
        monthly: Monthly bucket table
        years: Restrict the baseline to these years (all years when None)
    """
    subset = monthly if years is None else monthly[monthly["year"].isin(years)]
    value_cols = [c for c in subset.columns if c not in ("year", "month", "n_days")]
    climatology = subset.groupby("month")[value_cols].mean().reset_index()
    return climatology


def decadal_summary(yearly: pd.DataFrame) -> pd.DataFrame:
    """Mean of each yearly metric per decade, with the number of years used"""
    if yearly.empty:
        return pd.DataFrame(columns=["decade", "n_years"])

    df = yearly.assign(decade=(yearly["year"] // 10) * 10)
    value_cols = [c for c in yearly.columns if c not in ("year", "n_days")]
    grouped = df.groupby("decade")
    summary = grouped[value_cols].mean().round(2)
    summary.insert(0, "n_years", grouped.size())
    return summary.reset_index()
