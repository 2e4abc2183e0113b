import numpy as np
import pandas as pd
import pytest
import statsmodels.api as sm

from climate_trends.exceptions import InsufficientDataError
from climate_trends.statistical_analysis import (
    MonotonicTestResult,
    TrendResult,
    analyze_metric_trends,
    generate_statistical_insights,
    mann_kendall_test,
    monthly_precipitation_trend,
    ols_trend,
    sen_slope,
    trend_line_frame,
)


class TestOLSTrend:
    """Test the closed-form least squares trend estimator."""

    def test_three_point_example(self):
        result = ols_trend([1, 2, 3], [50.0, 52.0, 54.0], metric="max_temp_mean")

        assert isinstance(result, TrendResult)
        assert result.metric == "max_temp_mean"
        assert result.slope == pytest.approx(2.0)
        assert result.intercept == pytest.approx(48.0)
        assert result.p_value < 0.05
        assert result.n == 3

    def test_strictly_increasing_years(self):
        years = np.arange(1950, 2001)
        result = ols_trend(years, years - 1900)

        assert result.slope == pytest.approx(1.0)
        assert result.p_value < 1e-10
        assert result.r_squared == pytest.approx(1.0)
        assert result.slope_per_decade == pytest.approx(10.0)

    def test_matches_statsmodels(self):
        rng = np.random.RandomState(7)
        years = np.arange(1949, 2022, dtype=float)
        values = 58.0 + 0.03 * (years - 1949) + rng.normal(0, 0.8, len(years))

        result = ols_trend(years, values)
        fit = sm.OLS(values, sm.add_constant(years)).fit()

        assert result.slope == pytest.approx(fit.params[1], rel=1e-6)
        assert result.intercept == pytest.approx(fit.params[0], rel=1e-6)
        assert result.p_value == pytest.approx(fit.pvalues[1], rel=1e-5)
        assert result.std_err == pytest.approx(fit.bse[1], rel=1e-6)
        assert result.r_squared == pytest.approx(fit.rsquared, rel=1e-6)

    def test_flat_series(self):
        result = ols_trend([2000, 2001, 2002, 2003], [5.0, 5.0, 5.0, 5.0])
        assert result.slope == 0.0
        assert result.p_value == 1.0
        assert not result.is_significant

    def test_too_few_points(self):
        with pytest.raises(InsufficientDataError):
            ols_trend([2000, 2001], [1.0, 2.0])

    def test_no_spread_in_x(self):
        with pytest.raises(InsufficientDataError):
            ols_trend([2000, 2000, 2000], [1.0, 2.0, 3.0])

    def test_mismatched_lengths(self):
        with pytest.raises(InsufficientDataError):
            ols_trend([2000, 2001, 2002], [1.0, 2.0])

    def test_idempotent(self):
        rng = np.random.RandomState(3)
        years = np.arange(1960, 2000)
        values = rng.normal(size=len(years))
        assert ols_trend(years, values) == ols_trend(years, values)

    def test_trend_line_frame(self):
        rng = np.random.RandomState(11)
        years = np.arange(1970, 2010, dtype=float)
        values = 0.1 * years + rng.normal(0, 1, len(years))
        result = ols_trend(years, values)

        frame = trend_line_frame(years, values, result)

        assert list(frame.columns) == ["x", "y", "fitted", "lower", "upper"]
        assert (frame["lower"] <= frame["fitted"]).all()
        assert (frame["fitted"] <= frame["upper"]).all()
        # the band is narrowest at the mean year
        width = frame["upper"] - frame["lower"]
        assert width.iloc[len(width) // 2] < width.iloc[0]
        assert width.iloc[len(width) // 2] < width.iloc[-1]


class TestMannKendall:
    """Test the rank-based monotonic trend test."""

    def test_monotonic_increasing(self):
        result = mann_kendall_test(np.arange(20, dtype=float), metric="hot_days")

        assert isinstance(result, MonotonicTestResult)
        assert result.s == 20 * 19 // 2
        assert result.tau == pytest.approx(1.0)
        assert result.p_value < 0.001
        assert result.trend == "increasing"

    def test_short_monotonic_sequence(self):
        result = mann_kendall_test([1.0, 2.0, 3.0, 4.0, 5.0])

        assert result.s == 10
        assert result.variance == pytest.approx(5 * 4 * 15 / 18.0)
        assert result.p_value == pytest.approx(0.0275, abs=1e-3)
        assert result.p_value < 0.05

    def test_monotonic_decreasing(self):
        result = mann_kendall_test(np.linspace(10, 0, 15))
        assert result.s < 0
        assert result.z < 0
        assert result.trend == "decreasing"

    def test_tie_correction(self):
        result = mann_kendall_test([1.0, 1.0, 2.0, 2.0, 3.0])

        assert result.s == 8
        assert result.variance == pytest.approx((300 - 36) / 18.0)

    def test_all_tied(self):
        result = mann_kendall_test([4.0] * 10)
        assert result.s == 0
        assert result.p_value == 1.0
        assert result.trend == "no trend"

    def test_shuffled_input_not_biased(self):
        rng = np.random.RandomState(0)
        p_values = [
            mann_kendall_test(rng.permutation(30).astype(float)).p_value
            for _ in range(300)
        ]
        rejection_rate = np.mean(np.array(p_values) < 0.05)

        assert rejection_rate < 0.12
        assert np.mean(p_values) > 0.35

    def test_too_few_observations(self):
        with pytest.raises(InsufficientDataError):
            mann_kendall_test([1.0, 2.0])

    def test_idempotent(self):
        values = [3.0, 1.0, 4.0, 1.0, 5.0, 9.0, 2.0, 6.0]
        assert mann_kendall_test(values) == mann_kendall_test(values)

    def test_sen_slope(self):
        assert sen_slope([1.0, 3.0, 5.0, 7.0]) == pytest.approx(2.0)
        assert sen_slope([1.0, 3.0, 5.0], x=[2000, 2010, 2020]) == pytest.approx(0.2)
        result = mann_kendall_test([10.0, 12.0, 14.0, 16.0], x=[1, 2, 3, 4])
        assert result.sen_slope == pytest.approx(2.0)


class TestTrendSuite:
    @pytest.fixture
    def yearly_table(self):
        rng = np.random.RandomState(5)
        years = np.arange(1949, 2022)
        return pd.DataFrame(
            {
                "year": years,
                "max_temp_mean": 60.0 + 0.04 * (years - 1949) + rng.normal(0, 0.3, len(years)),
                "dry_days": rng.randint(180, 220, len(years)),
            }
        )

    def test_results_per_metric(self, yearly_table):
        results = analyze_metric_trends(yearly_table, ["max_temp_mean", "dry_days"])

        warming = results["max_temp_mean"]
        assert warming["error"] is None
        assert warming["ols"].slope == pytest.approx(0.04, abs=0.01)
        assert warming["ols"].is_significant
        assert warming["mann_kendall"].is_significant
        assert len(warming["trend_line"]) == len(yearly_table)

    def test_insufficient_metric_does_not_abort(self, yearly_table):
        short = yearly_table.copy()
        short.loc[2:, "dry_days"] = np.nan

        results = analyze_metric_trends(short, ["dry_days", "max_temp_mean", "wet_days"])

        assert results["dry_days"]["ols"] is None
        assert "at least 3" in results["dry_days"]["error"]
        assert "not found" in results["wet_days"]["error"]
        assert results["max_temp_mean"]["ols"] is not None

    def test_monthly_precipitation_trend(self, synthetic_daily):
        from climate_trends.aggregation import aggregate_monthly

        monthly = aggregate_monthly(synthetic_daily)
        entry = monthly_precipitation_trend(monthly, years=list(range(1949, 2022)))

        assert entry["error"] is None
        assert entry["ols"].n == 73 * 12
        assert entry["mann_kendall"].n == 73 * 12
        assert entry["trend_line"]["x"].iloc[0] == pytest.approx(1949.0)

    def test_insights(self, yearly_table):
        results = analyze_metric_trends(yearly_table, ["max_temp_mean"])
        results["hot_days"] = {"ols": None, "mann_kendall": None, "error": "too short"}

        insights = generate_statistical_insights(
            results, {"max_temp_mean": "Average max temperature"}
        )

        assert insights[0].startswith("Average max temperature: significant increasing trend")
        assert insights[1] == "hot_days: not enough data for a trend test"

    def test_insight_direction_when_one_test_significant(self):
        flat_ols = TrendResult(
            metric="wet_days", slope=0.0, intercept=40.0, p_value=1.0,
            r_squared=0.0, std_err=0.1, n=30,
        )
        rising_mk = MonotonicTestResult(
            metric="wet_days", p_value=0.01, s=120, variance=3141.67,
            z=2.1, tau=0.28, sen_slope=0.2, n=30,
        )
        falling_ols = TrendResult(
            metric="dry_days", slope=-0.5, intercept=200.0, p_value=0.01,
            r_squared=0.3, std_err=0.1, n=30,
        )
        no_mk = MonotonicTestResult(
            metric="dry_days", p_value=0.2, s=-30, variance=3141.67,
            z=-0.5, tau=-0.07, sen_slope=-0.1, n=30,
        )
        results = {
            "wet_days": {"ols": flat_ols, "mann_kendall": rising_mk, "error": None},
            "dry_days": {"ols": falling_ols, "mann_kendall": no_mk, "error": None},
        }

        insights = generate_statistical_insights(results)

        assert insights[0].startswith("wet_days: increasing trend")
        assert insights[0].endswith("significant under Mann-Kendall only")
        assert insights[1].startswith("dry_days: decreasing trend")
        assert insights[1].endswith("significant under OLS only")
