"""
Climate Trend Report
====================

Generates the climate trend report for a daily observation file:

    python main.py data/station_daily.csv [output_dir]

"""

import sys

from climate_trends.report import main

if __name__ == "__main__":
    sys.exit(main())
