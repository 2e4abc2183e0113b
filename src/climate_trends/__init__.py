"""
Climate Trend Analysis Package

This package contains modules for long-run climate trend analysis of daily
weather observations, including data loading, aggregation, extreme-day
counting, trend statistics, and visualization.

Modules:
    data_dictionary: Column mappings, thresholds and validation rules
    data_loader: Daily observation loading and cleaning
    aggregation: Monthly and yearly buckets
    extremes: Yearly extreme-day counts
    statistical_analysis: OLS trends and Mann-Kendall tests
    visualization: Trend, seasonal and extreme-day charts
    report: End-to-end report pipeline
"""

__version__ = "1.0.0"
__author__ = "Climate Research Team"

from . import (
    aggregation,
    data_dictionary,
    data_loader,
    extremes,
    report,
    statistical_analysis,
    visualization,
)
from .exceptions import ClimateTrendError, DataLoadError, InsufficientDataError

# Available modules
__all__ = [
    "data_dictionary",
    "data_loader",
    "aggregation",
    "extremes",
    "statistical_analysis",
    "visualization",
    "report",
    "ClimateTrendError",
    "DataLoadError",
    "InsufficientDataError",
]
