"""
Climate Trend Report Pipeline
=============================

Runs the whole analysis once over a daily observation file:
load → monthly/yearly aggregation → extreme-day counts → OLS and
Mann-Kendall trend tests → charts, summary tables and a text report.
"""

import argparse
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Union

import matplotlib
import pandas as pd

from .aggregation import (
    aggregate_monthly,
    aggregate_yearly,
    combine_yearly,
    decadal_summary,
    full_years,
    monthly_climatology,
)
from .data_dictionary import (
    CLIMATE_AVERAGE_METRICS,
    DATA_QUALITY,
    HOT_DAY_THRESHOLD,
    SEASONAL_METRICS,
    SIGNIFICANCE_LEVEL,
    make_extreme_metrics,
)
from .data_loader import get_dataset_summary, load_daily_records
from .exceptions import DataLoadError
from .extremes import count_extreme_days
from .statistical_analysis import (
    analyze_metric_trends,
    generate_statistical_insights,
    monthly_precipitation_trend,
)
from .visualization import plot_extreme_days, plot_metric_trends, plot_seasonal_overlay

logger = logging.getLogger(__name__)

REPORT_FILENAME = "climate_trend_report.txt"


def _fmt_float(x, nd=3, default="N/A"):
    """Format floats safely; falls back to the default for missing values."""
    if x is None:
        return default
    try:
        return f"{float(x):,.{nd}f}"
    except (TypeError, ValueError):
        return str(x)


def _fmt_p(p, default="N/A"):
    if p is None or pd.isna(p):
        return default
    return f"{p:.4f}" if p >= 1e-4 else f"{p:.2e}"


def build_summary_table(
    results: Mapping[str, Dict[str, Any]],
    metric_info: Mapping[str, Mapping[str, str]],
) -> pd.DataFrame:
    """One row per metric: OLS slope per decade, OLS p-value, Mann-Kendall p-value

    Metrics whose trend tests failed carry the error text in the Note column.
    """
    rows = []
    for metric, info in metric_info.items():
        entry = results.get(metric, {})
        ols = entry.get("ols")
        mk = entry.get("mann_kendall")
        significant = None
        if ols is not None and mk is not None:
            significant = ols.is_significant and mk.is_significant
        rows.append(
            {
                "Metric": info["label"],
                "Units": info["units"],
                "OLS slope (per decade)": None if ols is None else round(ols.slope_per_decade, 4),
                "OLS p-value": None if ols is None else ols.p_value,
                "Mann-Kendall p-value": None if mk is None else mk.p_value,
                "Significant": significant,
                "Note": entry.get("error") or "",
            }
        )
    return pd.DataFrame(rows)


def _format_table(table: pd.DataFrame) -> str:
    """Render a summary table as fixed-width text"""
    display = table.copy()
    for col in ("OLS p-value", "Mann-Kendall p-value"):
        display[col] = display[col].map(_fmt_p)
    display["OLS slope (per decade)"] = display["OLS slope (per decade)"].map(
        lambda v: "N/A" if pd.isna(v) else f"{v:+.4f}"
    )
    display["Significant"] = display["Significant"].map(
        lambda v: "N/A" if v is None or pd.isna(v) else ("yes" if v else "no")
    )
    if not display["Note"].astype(bool).any():
        display = display.drop(columns="Note")
    return display.to_string(index=False)


class ClimateTrendReport:
    """
    Single-shot climate trend analysis over one station's daily history
    """

    def __init__(
        self,
        file_path: Union[str, Path],
        output_dir: Union[str, Path] = "report",
        heat_threshold: float = HOT_DAY_THRESHOLD,
        min_days_per_year: Optional[int] = DATA_QUALITY["min_days_per_year"],
        highlight_years: Optional[Sequence[int]] = None,
        render_charts: bool = True,
    ):
        self.file_path = Path(file_path)
        self.output_dir = Path(output_dir)
        self.heat_threshold = heat_threshold
        self.extreme_metrics = make_extreme_metrics(heat_threshold)
        self.min_days_per_year = min_days_per_year
        self.highlight_years = highlight_years
        self.render_charts = render_charts

        self.daily: Optional[pd.DataFrame] = None
        self.monthly: Optional[pd.DataFrame] = None
        self.yearly: Optional[pd.DataFrame] = None
        self.results: Dict[str, Any] = {}

    def load(self) -> pd.DataFrame:
        """Step 1: load the daily records"""
        logger.info("Step 1: Loading daily observations...")
        self.daily = load_daily_records(self.file_path)
        self.results["data"] = get_dataset_summary(self.daily)
        return self.daily

    def aggregate(self) -> pd.DataFrame:
        """Steps 2-3: monthly/yearly buckets and extreme-day counts"""
        logger.info("Step 2: Aggregating monthly and yearly buckets...")
        daily = self.daily
        self.monthly = aggregate_monthly(daily)
        yearly = aggregate_yearly(daily, min_days_per_year=self.min_days_per_year)

        logger.info("Step 3: Counting extreme days...")
        extremes = count_extreme_days(
            daily,
            heat_threshold=self.heat_threshold,
            min_days_per_year=self.min_days_per_year,
        )
        self.yearly = combine_yearly(yearly, extremes)
        self.results["years"] = full_years(daily, min_days_per_year=self.min_days_per_year)
        self.results["decades"] = decadal_summary(self.yearly)
        return self.yearly

    def analyze(self) -> Dict[str, Any]:
        """Step 4: OLS and Mann-Kendall trend tests for every report metric"""
        logger.info("Step 4: Running trend tests...")
        yearly_metrics = [m for m in CLIMATE_AVERAGE_METRICS if m != "monthly_precipitation"]
        averages = analyze_metric_trends(self.yearly, yearly_metrics)
        averages["monthly_precipitation"] = monthly_precipitation_trend(
            self.monthly, self.results["years"]
        )
        extremes = analyze_metric_trends(self.yearly, list(self.extreme_metrics))

        labels = {
            m: info["label"]
            for m, info in {**CLIMATE_AVERAGE_METRICS, **self.extreme_metrics}.items()
        }
        self.results["averages"] = averages
        self.results["extremes"] = extremes
        self.results["insights"] = generate_statistical_insights(
            {**averages, **extremes}, labels
        )
        self.results["averages_table"] = build_summary_table(averages, CLIMATE_AVERAGE_METRICS)
        self.results["extremes_table"] = build_summary_table(extremes, self.extreme_metrics)
        return self.results

    def _default_highlight_years(self) -> List[int]:
        """Earliest, latest and hottest full years"""
        if self.yearly is None or self.yearly.empty:
            return []
        years = self.yearly["year"]
        hottest = int(self.yearly.loc[self.yearly["max_temp_mean"].idxmax(), "year"])
        picks = [int(years.min()), hottest, int(years.max())]
        return list(dict.fromkeys(picks))

    def render(self) -> List[Path]:
        """Step 5: charts"""
        logger.info("Step 5: Rendering charts...")
        charts = []
        years = self.results["years"]
        monthly_full = self.monthly[self.monthly["year"].isin(years)]
        highlight = list(self.highlight_years or self._default_highlight_years())

        charts.append(
            plot_metric_trends(
                self.results["averages"],
                CLIMATE_AVERAGE_METRICS,
                self.output_dir,
                filename="climate_averages.png",
                title="Climate Averages: Long-Term Trends",
            )
        )
        charts.append(
            plot_metric_trends(
                self.results["extremes"],
                self.extreme_metrics,
                self.output_dir,
                filename="climate_extremes.png",
                title="Climate Extremes: Long-Term Trends",
            )
        )
        charts.append(
            plot_seasonal_overlay(
                monthly_full,
                monthly_climatology(monthly_full),
                SEASONAL_METRICS,
                self.output_dir,
                highlight_years=highlight,
            )
        )
        charts.append(plot_extreme_days(self.yearly, self.extreme_metrics, self.output_dir))
        return [c for c in charts if c is not None]

    def write_tables(self) -> None:
        """Save the summary tables and buckets as CSV"""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.results["averages_table"].to_csv(
            self.output_dir / "climate_averages.csv", index=False
        )
        self.results["extremes_table"].to_csv(
            self.output_dir / "climate_extremes.csv", index=False
        )
        self.yearly.to_csv(self.output_dir / "yearly_summary.csv", index=False)
        self.monthly.to_csv(self.output_dir / "monthly_summary.csv", index=False)

    def render_text_report(self) -> str:
        """Narrative report with the data summary and both trend tables"""
        data_info = self.results["data"]["dataset_info"]
        years = self.results["years"]

        report = []
        report.append("=" * 80)
        report.append("CLIMATE TREND REPORT")
        report.append("=" * 80)
        report.append("")
        report.append(f"Analysis Date: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        report.append(f"Source: {self.file_path}")
        report.append("")

        report.append("DATA SUMMARY")
        report.append("-" * 30)
        report.append(f"Daily records: {data_info['total_records']:,}")
        report.append(
            f"Date range: {data_info['time_range']['start'].date()} to "
            f"{data_info['time_range']['end'].date()}"
        )
        if years:
            report.append(
                f"Full years analysed: {len(years)} ({years[0]}-{years[-1]}); "
                "first/last calendar years and sparse years excluded"
            )
        for name, stats in self.results["data"]["measurements"].items():
            report.append(
                f"  {name}: mean {_fmt_float(stats['mean'], 2)}, "
                f"min {_fmt_float(stats['min'], 2)}, max {_fmt_float(stats['max'], 2)}"
            )
        report.append("")

        report.append("Trend tests: ordinary least squares slope (t-test, n-2 df) and")
        report.append(
            f"Mann-Kendall monotonic trend test; significant at p < {SIGNIFICANCE_LEVEL} "
            "under both tests."
        )
        report.append("")

        report.append("CLIMATE AVERAGES")
        report.append("-" * 30)
        report.append(_format_table(self.results["averages_table"]))
        report.append("")

        report.append("CLIMATE EXTREMES")
        report.append("-" * 30)
        report.append(_format_table(self.results["extremes_table"]))
        report.append("")

        decades = self.results.get("decades")
        if decades is not None and not decades.empty:
            report.append("DECADAL MEANS")
            report.append("-" * 30)
            report.append(decades.to_string(index=False))
            report.append("")

        report.append("KEY FINDINGS")
        report.append("-" * 30)
        for insight in self.results.get("insights", []):
            report.append(f"• {insight}")
        report.append("")
        report.append("=" * 80)

        full_report = "\n".join(report)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        report_path = self.output_dir / REPORT_FILENAME
        with open(report_path, "w", encoding="utf-8") as f:
            f.write(full_report)
        logger.info(f"Report saved: {report_path}")
        return full_report

    def run(self) -> Dict[str, Any]:
        """Run the complete pipeline once and return the results"""
        self.load()
        self.aggregate()
        self.analyze()
        if self.render_charts:
            self.results["charts"] = self.render()
        self.write_tables()
        self.results["report"] = self.render_text_report()
        return self.results


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Generate the climate trend report for one daily observation file"""
    parser = argparse.ArgumentParser(
        description="Climate trend report from daily weather observations"
    )
    parser.add_argument("file_path", help="CSV/Excel file with date, TMAX, TMIN, PRCP")
    parser.add_argument(
        "output_dir", nargs="?", default="report", help="Directory for report output"
    )
    parser.add_argument(
        "--heat-threshold",
        type=float,
        default=HOT_DAY_THRESHOLD,
        help="Daily max temperature (°F) counted as a hot day",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s"
    )
    # Charts are only written to files
    matplotlib.use("Agg")

    try:
        report = ClimateTrendReport(
            args.file_path, args.output_dir, heat_threshold=args.heat_threshold
        )
        report.run()
    except DataLoadError as e:
        logger.error(f"Data loading failed: {e}")
        return 1

    logger.info(f"Climate trend report completed; see {args.output_dir}/{REPORT_FILENAME}")
    return 0
