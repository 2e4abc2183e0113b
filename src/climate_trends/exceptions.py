"""Exception types raised by the climate trend pipeline."""


class ClimateTrendError(Exception):
    """Base class for climate trend errors"""


class DataLoadError(ClimateTrendError, ValueError):
    """The input file is unreadable or lacks the required columns"""


class InsufficientDataError(ClimateTrendError, ValueError):
    """Too few points for a regression or trend test"""
