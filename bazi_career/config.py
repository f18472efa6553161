import os
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# Swiss Ephemeris data directory; unset falls back to the built-in Moshier ephemeris
SWISSEPH_EPHE_PATH = os.getenv("SWISSEPH_EPHE_PATH")

# Where create_chart writes <name>.json
CHART_DATA_DIR = os.getenv("CHART_DATA_DIR", "chart_data")

# "en" or "zh"
SUMMARY_LANGUAGE = os.getenv("SUMMARY_LANGUAGE", "en")
