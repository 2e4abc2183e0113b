"""
Extreme Day Counting Module

Flags threshold-crossing days at daily granularity and sums the flags per
year. Boundary years are excluded with the same rule as the yearly buckets.
"""

import logging
from typing import Optional

import pandas as pd

from .aggregation import full_years
from .data_dictionary import (
    DRY_DAY_THRESHOLD,
    FREEZING_THRESHOLD,
    HOT_DAY_THRESHOLD,
    MAX_TEMP_COLUMN,
    MIN_TEMP_COLUMN,
    PRECIP_COLUMN,
    WET_DAY_THRESHOLD,
)

logger = logging.getLogger(__name__)

# indicator column → yearly count column
EXTREME_COUNT_COLUMNS = {
    "is_hot_day": "hot_days",
    "is_freezing_night": "freezing_nights",
    "is_wet_day": "wet_days",
    "is_dry_day": "dry_days",
}


def flag_extreme_days(
    daily: pd.DataFrame,
    heat_threshold: float = HOT_DAY_THRESHOLD,
    freeze_threshold: float = FREEZING_THRESHOLD,
    wet_threshold: float = WET_DAY_THRESHOLD,
    dry_threshold: float = DRY_DAY_THRESHOLD,
) -> pd.DataFrame:
    """Return year plus one boolean indicator column per extreme-day type"""
    return pd.DataFrame(
        {
            "year": daily["year"],
            "is_hot_day": daily[MAX_TEMP_COLUMN] >= heat_threshold,
            "is_freezing_night": daily[MIN_TEMP_COLUMN] <= freeze_threshold,
            "is_wet_day": daily[PRECIP_COLUMN] >= wet_threshold,
            "is_dry_day": daily[PRECIP_COLUMN] < dry_threshold,
        },
        index=daily.index,
    )


def count_extreme_days(
    daily: pd.DataFrame,
    heat_threshold: float = HOT_DAY_THRESHOLD,
    freeze_threshold: float = FREEZING_THRESHOLD,
    wet_threshold: float = WET_DAY_THRESHOLD,
    dry_threshold: float = DRY_DAY_THRESHOLD,
    exclude_boundary_years: bool = True,
    min_days_per_year: Optional[int] = None,
) -> pd.DataFrame:
    """Yearly counts of hot days, freezing nights, wet days and dry days

    Args:
        daily: Daily record table
        heat_threshold: Hot day when max_temp >= this value (°F)
        freeze_threshold: Freezing night when min_temp <= this value (°F)
        wet_threshold: Wet day when precipitation >= this value (in)
        dry_threshold: Dry day when precipitation < this value (in)
        exclude_boundary_years: Drop the first and last calendar year
        min_days_per_year: Drop years with fewer daily records

    Returns:
        DataFrame with columns year, hot_days, freezing_nights, wet_days,
        dry_days (one row per full year, zero when no day qualifies)
    """
    logger.info(
        f"Counting extreme days (hot >= {heat_threshold}, "
        f"freezing <= {freeze_threshold}, wet >= {wet_threshold}, "
        f"dry < {dry_threshold})"
    )

    years = full_years(daily, exclude_boundary_years, min_days_per_year)
    flags = flag_extreme_days(
        daily[daily["year"].isin(years)],
        heat_threshold=heat_threshold,
        freeze_threshold=freeze_threshold,
        wet_threshold=wet_threshold,
        dry_threshold=dry_threshold,
    )

    counts = (
        flags.groupby("year")[list(EXTREME_COUNT_COLUMNS)]
        .sum()
        .astype(int)
        .rename(columns=EXTREME_COUNT_COLUMNS)
        .reindex(years, fill_value=0)
    )
    counts.index.name = "year"
    return counts.reset_index()
