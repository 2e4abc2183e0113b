"""
Daily Observation Loading Module

Reads daily weather observations (date, max/min temperature, precipitation)
from a tabular file, normalizes the column names, drops incomplete rows and
derives the calendar fields used by the aggregation stages.
"""

import logging
from pathlib import Path
from typing import Any, Dict, Union

import numpy as np
import pandas as pd

from .data_dictionary import (
    COLUMN_ALIASES,
    DATA_QUALITY,
    DATE_COLUMN,
    MAX_TEMP_COLUMN,
    MEASUREMENT_COLUMNS,
    MIN_TEMP_COLUMN,
    PRECIP_COLUMN,
    REQUIRED_COLUMNS,
)
from .exceptions import DataLoadError

logger = logging.getLogger(__name__)

DAILY_COLUMNS = REQUIRED_COLUMNS + ["year", "month"]


class DataValidator:
    """Data validation and quality assessment utilities"""

    @staticmethod
    def validate_file_path(file_path: Union[str, Path]) -> bool:
        """Validate file exists and is accessible"""
        path = Path(file_path)
        if not path.exists():
            logger.error(f"File not found: {file_path}")
            return False
        if not path.is_file():
            logger.error(f"Path is not a file: {file_path}")
            return False
        if path.stat().st_size == 0:
            logger.error(f"File is empty: {file_path}")
            return False
        return True

    @staticmethod
    def validate_daily_records(data: pd.DataFrame) -> Dict[str, Any]:
        """Report data quality issues without dropping any rows"""
        validation_results = {"valid": True, "issues": [], "stats": {}}

        missing = [c for c in MEASUREMENT_COLUMNS if c not in data.columns]
        if missing:
            validation_results["valid"] = False
            validation_results["issues"].append(f"Missing columns: {missing}")
            return validation_results

        t_min = DATA_QUALITY["min_valid_temperature"]
        t_max = DATA_QUALITY["max_valid_temperature"]
        for col in (MAX_TEMP_COLUMN, MIN_TEMP_COLUMN):
            out_of_range = ((data[col] < t_min) | (data[col] > t_max)).sum()
            if out_of_range:
                validation_results["issues"].append(
                    f"{out_of_range} {col} values outside {t_min}°F to {t_max}°F"
                )

        inverted = (data[MAX_TEMP_COLUMN] < data[MIN_TEMP_COLUMN]).sum()
        if inverted:
            validation_results["issues"].append(
                f"max_temp < min_temp in {inverted} records"
            )

        negative_precip = (data[PRECIP_COLUMN] < 0).sum()
        if negative_precip:
            validation_results["issues"].append(
                f"Found {negative_precip} negative precipitation values"
            )

        heavy_precip = (
            data[PRECIP_COLUMN] > DATA_QUALITY["max_daily_precipitation"]
        ).sum()
        if heavy_precip:
            validation_results["issues"].append(
                f"Found {heavy_precip} implausible daily precipitation totals"
            )

        validation_results["stats"] = {
            "records_validated": len(data),
            "max_temp_mean": float(data[MAX_TEMP_COLUMN].mean()),
            "min_temp_mean": float(data[MIN_TEMP_COLUMN].mean()),
            "precipitation_total": float(data[PRECIP_COLUMN].sum()),
        }

        logger.info(
            f"Daily record validation: {len(validation_results['issues'])} issues found"
        )
        return validation_results


def _normalize_column_names(df: pd.DataFrame) -> pd.DataFrame:
    """Map raw column names onto the canonical names.

    Unknown columns keep their (stripped, lower-cased) names so they can be
    discarded afterwards. When two raw columns map onto the same canonical
    name the first one wins.
    """
    normalized = df.columns.astype(str).str.strip().str.lower()
    df = df.copy()
    df.columns = [COLUMN_ALIASES.get(c, c) for c in normalized]
    return df.loc[:, ~df.columns.duplicated()]


def _read_table(path: Path) -> pd.DataFrame:
    """Read a CSV or Excel file into a DataFrame"""
    suffix = path.suffix.lower()
    if suffix in (".csv", ".txt"):
        return pd.read_csv(path, low_memory=False)
    if suffix == ".xlsx":
        return pd.read_excel(path)
    raise DataLoadError(f"Unsupported file format: {path}")


def load_daily_records(file_path: Union[str, Path]) -> pd.DataFrame:
    """Load daily observations and return the cleaned daily record table

    Args:
        file_path: Path to a CSV or .xlsx file with date, max temperature,
            min temperature and precipitation columns

    Returns:
        DataFrame with columns date, max_temp, min_temp, precipitation,
        year and month, strictly increasing by date

    Raises:
        DataLoadError: unreadable file, missing required columns or
            unparseable dates
    """
    logger.info(f"Loading daily observations from {file_path}")

    if not DataValidator.validate_file_path(file_path):
        raise DataLoadError(f"Cannot access file: {file_path}")

    path = Path(file_path)
    try:
        raw = _read_table(path)
    except DataLoadError:
        raise
    except Exception as e:
        logger.error(f"Failed to load data: {e}")
        raise DataLoadError(f"Failed to read {file_path}: {e}") from e

    logger.info(f"Loaded {len(raw):,} raw records")

    data = _normalize_column_names(raw)
    missing_cols = [col for col in REQUIRED_COLUMNS if col not in data.columns]
    if missing_cols:
        logger.error(f"Missing required columns: {missing_cols}")
        raise DataLoadError(f"Missing required columns: {missing_cols}")

    # Station, name and weather-type columns are not needed downstream
    dropped = [c for c in data.columns if c not in REQUIRED_COLUMNS]
    if dropped:
        logger.debug(f"Discarding auxiliary columns: {dropped}")
    data = data[REQUIRED_COLUMNS].copy()

    raw_dates = data[DATE_COLUMN]
    data[DATE_COLUMN] = pd.to_datetime(raw_dates, errors="coerce")
    bad_dates = data[DATE_COLUMN].isna() & raw_dates.notna()
    if bad_dates.any():
        examples = raw_dates[bad_dates].astype(str).head(3).tolist()
        raise DataLoadError(
            f"{int(bad_dates.sum())} unparseable dates in column "
            f"'{DATE_COLUMN}', e.g. {examples}"
        )

    for col in MEASUREMENT_COLUMNS:
        data[col] = pd.to_numeric(data[col], errors="coerce")

    # Incomplete rows are dropped, not reported as errors
    complete = data.dropna(subset=REQUIRED_COLUMNS)
    n_incomplete = len(data) - len(complete)
    if n_incomplete:
        logger.info(f"Dropped {n_incomplete:,} records with missing measurements")

    complete = complete.sort_values(DATE_COLUMN, kind="mergesort")
    duplicated = complete[DATE_COLUMN].duplicated(keep="first")
    if duplicated.any():
        logger.warning(
            f"Dropped {int(duplicated.sum())} records with duplicate dates"
        )
        complete = complete[~duplicated]

    if complete.empty:
        raise DataLoadError(f"No complete daily records found in {file_path}")

    complete = complete.reset_index(drop=True).copy()
    complete["year"] = complete[DATE_COLUMN].dt.year.astype(int)
    complete["month"] = complete[DATE_COLUMN].dt.month.astype(int)

    validation = DataValidator.validate_daily_records(complete)
    for issue in validation["issues"]:
        logger.warning(f"Data quality: {issue}")

    logger.info(
        f"Processed {len(complete):,} daily records "
        f"({complete['year'].min()}-{complete['year'].max()})"
    )
    return complete[DAILY_COLUMNS]


def get_dataset_summary(daily: pd.DataFrame) -> Dict[str, Any]:
    """Summarize coverage and measurement statistics of the daily records

    Args:
        daily: Daily record table from load_daily_records

    Returns:
        Dictionary with dataset info, per-year coverage and measurement stats
    """
    logger.info("Generating dataset summary...")

    days_per_year = daily.groupby("year").size()
    summary = {
        "dataset_info": {
            "total_records": len(daily),
            "total_years": int(daily["year"].nunique()),
            "time_range": {
                "start": daily[DATE_COLUMN].min(),
                "end": daily[DATE_COLUMN].max(),
                "duration_days": int(
                    (daily[DATE_COLUMN].max() - daily[DATE_COLUMN].min()).days
                ),
            },
        },
        "coverage": {
            "days_per_year": {int(y): int(n) for y, n in days_per_year.items()},
            "min_days": int(days_per_year.min()),
            "median_days": float(np.median(days_per_year.to_numpy())),
        },
        "measurements": {},
    }

    for col in MEASUREMENT_COLUMNS:
        series = daily[col]
        summary["measurements"][col] = {
            "mean": float(series.mean()),
            "std": float(series.std()),
            "min": float(series.min()),
            "max": float(series.max()),
        }

    return summary
