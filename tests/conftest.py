import matplotlib
import numpy as np
import pandas as pd
import pytest

matplotlib.use("Agg")


def _build_daily(start, end, seed=42, warming_per_year=0.05, max_temp=None, min_temp=None, precipitation=None):
    dates = pd.date_range(start, end, freq="D")
    rng = np.random.RandomState(seed)
    n = len(dates)
    years_since = dates.year - dates.year[0]
    season = -20.0 * np.cos(2 * np.pi * (dates.dayofyear - 15) / 365.25)

    if max_temp is None:
        max_temp = 65.0 + season + warming_per_year * years_since + rng.normal(0, 5, n)
    if min_temp is None:
        min_temp = np.asarray(max_temp, dtype=float) - 18.0 + rng.normal(0, 2, n)
    if precipitation is None:
        precipitation = np.where(rng.uniform(size=n) < 0.6, 0.0, rng.exponential(0.4, n))

    daily = pd.DataFrame(
        {
            "date": dates,
            "max_temp": np.broadcast_to(np.asarray(max_temp, dtype=float), (n,)).copy(),
            "min_temp": np.broadcast_to(np.asarray(min_temp, dtype=float), (n,)).copy(),
            "precipitation": np.broadcast_to(np.asarray(precipitation, dtype=float), (n,)).copy(),
        }
    )
    daily["year"] = daily["date"].dt.year.astype(int)
    daily["month"] = daily["date"].dt.month.astype(int)
    return daily


@pytest.fixture
def daily_factory():
    """Build a synthetic daily record table between two dates."""
    return _build_daily


@pytest.fixture
def synthetic_daily():
    """75 years of synthetic daily records (1948-2022) with a warming trend."""
    return _build_daily("1948-01-01", "2022-12-31")


def _to_ghcn_frame(daily):
    """Lay the daily records out like a NOAA GHCN-Daily CSV export."""
    return pd.DataFrame(
        {
            "STATION": "USW00024233",
            "NAME": "SEATTLE TACOMA AIRPORT, WA US",
            "DATE": daily["date"].dt.strftime("%Y-%m-%d"),
            "PRCP": daily["precipitation"].round(2),
            "SNOW": 0.0,
            "TMAX": daily["max_temp"].round(0),
            "TMIN": daily["min_temp"].round(0),
            "WT01": np.nan,
        }
    )


@pytest.fixture
def ghcn_csv(tmp_path, synthetic_daily):
    """Write the synthetic records to a GHCN-style CSV and return its path."""
    path = tmp_path / "station_daily.csv"
    _to_ghcn_frame(synthetic_daily).to_csv(path, index=False)
    return path


@pytest.fixture
def ghcn_frame_factory():
    return _to_ghcn_frame
