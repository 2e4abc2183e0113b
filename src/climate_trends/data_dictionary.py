"""
Data Dictionary for Climate Trend Analysis
==========================================

This module defines column mappings, thresholds, and validation rules
for the daily weather observations used by the climate trend report.

"""

# Canonical column names used throughout the package
DATE_COLUMN = "date"
MAX_TEMP_COLUMN = "max_temp"
MIN_TEMP_COLUMN = "min_temp"
PRECIP_COLUMN = "precipitation"
MEASUREMENT_COLUMNS = [MAX_TEMP_COLUMN, MIN_TEMP_COLUMN, PRECIP_COLUMN]
REQUIRED_COLUMNS = [DATE_COLUMN] + MEASUREMENT_COLUMNS

# Raw → canonical mapping (keys are compared lower-cased and stripped)
COLUMN_ALIASES = {
    "date": DATE_COLUMN,
    "day": DATE_COLUMN,
    "timestamp": DATE_COLUMN,
    "tmax": MAX_TEMP_COLUMN,
    "max_temp": MAX_TEMP_COLUMN,
    "max_temperature": MAX_TEMP_COLUMN,
    "temp_max_f": MAX_TEMP_COLUMN,
    "tmin": MIN_TEMP_COLUMN,
    "min_temp": MIN_TEMP_COLUMN,
    "min_temperature": MIN_TEMP_COLUMN,
    "temp_min_f": MIN_TEMP_COLUMN,
    "prcp": PRECIP_COLUMN,
    "precip": PRECIP_COLUMN,
    "precipitation": PRECIP_COLUMN,
    "precip_in": PRECIP_COLUMN,
}

# Extreme-day thresholds (°F for temperature, inches for precipitation)
HOT_DAY_THRESHOLD = 90.0  # max_temp >= threshold
FREEZING_THRESHOLD = 32.0  # min_temp <= threshold
WET_DAY_THRESHOLD = 1.0  # precipitation >= threshold
DRY_DAY_THRESHOLD = 0.1  # precipitation < threshold

# Statistical constants
SIGNIFICANCE_LEVEL = 0.05
MIN_TREND_POINTS = 3
CONFIDENCE_LEVEL = 0.95

# Data Quality Thresholds
DATA_QUALITY = {
    "min_valid_temperature": -80.0,  # °F
    "max_valid_temperature": 135.0,  # °F
    "max_daily_precipitation": 30.0,  # inches
    "min_days_per_year": 300,  # coverage floor applied by the report
}

# Metric catalogue for the report tables
CLIMATE_AVERAGE_METRICS = {
    "max_temp_mean": {"label": "Average max temperature", "units": "°F"},
    "min_temp_mean": {"label": "Average min temperature", "units": "°F"},
    "precipitation_sum": {"label": "Annual precipitation", "units": "in"},
    "monthly_precipitation": {"label": "Monthly precipitation", "units": "in"},
}

def make_extreme_metrics(heat_threshold=HOT_DAY_THRESHOLD):
    """Extreme-day metric catalogue with labels for the given heat threshold"""
    return {
        "hot_days": {
            "label": f"Hot days (max >= {heat_threshold:g}°F)",
            "units": "days",
        },
        "freezing_nights": {
            "label": f"Freezing nights (min <= {FREEZING_THRESHOLD:.0f}°F)",
            "units": "days",
        },
        "wet_days": {
            "label": f"Wet days (precip >= {WET_DAY_THRESHOLD:.1f} in)",
            "units": "days",
        },
        "dry_days": {
            "label": f"Dry days (precip < {DRY_DAY_THRESHOLD:.1f} in)",
            "units": "days",
        },
    }


CLIMATE_EXTREME_METRICS = make_extreme_metrics()

# Monthly metrics drawn in the seasonal overlay
SEASONAL_METRICS = {
    "max_temp_mean": {"label": "Mean max temperature", "units": "°F"},
    "min_temp_mean": {"label": "Mean min temperature", "units": "°F"},
    "precipitation_sum": {"label": "Monthly precipitation", "units": "in"},
}


def create_data_summary():
    """Create a printable summary of the data dictionary"""
    summary = f"""
    CLIMATE TREND DATA DICTIONARY
    =============================

    REQUIRED COLUMNS:
    • Date: {DATE_COLUMN} (ISO-8601 calendar date)
    • Maximum Temperature: {MAX_TEMP_COLUMN} (°F)
    • Minimum Temperature: {MIN_TEMP_COLUMN} (°F)
    • Precipitation: {PRECIP_COLUMN} (inches)

    EXTREME DAY DEFINITIONS:
    • Hot day: max temperature >= {HOT_DAY_THRESHOLD}°F
    • Freezing night: min temperature <= {FREEZING_THRESHOLD}°F
    • Wet day: precipitation >= {WET_DAY_THRESHOLD} in
    • Dry day: precipitation < {DRY_DAY_THRESHOLD} in

    TREND TESTS:
    • Ordinary least squares slope, two-sided t-test (n - 2 df)
    • Mann-Kendall monotonic trend test, normal approximation
    • Significance level: {SIGNIFICANCE_LEVEL}

    VALIDATION RULES:
    • Temperature range: {DATA_QUALITY['min_valid_temperature']}°F to {DATA_QUALITY['max_valid_temperature']}°F
    • Daily precipitation: 0 to {DATA_QUALITY['max_daily_precipitation']} in
    • First and last calendar years are excluded from yearly statistics
    • Years with fewer than {DATA_QUALITY['min_days_per_year']} days are excluded by the report
    """
    return summary


if __name__ == "__main__":
    print(create_data_summary())
