from __future__ import annotations

import os
from pathlib import Path

# ---------------------------------------------------------------------------
# Project paths
# ---------------------------------------------------------------------------

# Root of the project (repo root)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

# Data directories
DATA_DIR = PROJECT_ROOT / "data"
METADATA_DIR = DATA_DIR / "metadata"      # question definitions

# ---------------------------------------------------------------------------
# App identity
# ---------------------------------------------------------------------------

APP_NAME = "CPIA Dashboard"
APP_VERSION = "0.1.0"

LOG_LEVEL = os.getenv("CPIA_LOG_LEVEL", "INFO").strip().upper()

# ---------------------------------------------------------------------------
# Dataset sources
#
# Each source is either a local CSV path or an http(s) URL serving a CSV.
# Two country-level tables (standard + African Integrity Indicators) and
# their two group-average counterparts. All four are validated at startup.
# The data/ defaults are not shipped; set these variables to real sources.
# ---------------------------------------------------------------------------

CPIA_STANDARD_SOURCE = os.getenv(
    "CPIA_STANDARD_SOURCE", str(DATA_DIR / "standard_cpia.csv")
).strip()
CPIA_AFRICAII_SOURCE = os.getenv(
    "CPIA_AFRICAII_SOURCE", str(DATA_DIR / "africaii_cpia.csv")
).strip()
CPIA_GROUP_STANDARD_SOURCE = os.getenv(
    "CPIA_GROUP_STANDARD_SOURCE", str(DATA_DIR / "group_standard_cpia.csv")
).strip()
CPIA_GROUP_AFRICAII_SOURCE = os.getenv(
    "CPIA_GROUP_AFRICAII_SOURCE", str(DATA_DIR / "group_africaii_cpia.csv")
).strip()

# Question definitions (variable, subquestion)
CPIA_DEFNS_PATH = os.getenv(
    "CPIA_DEFNS_PATH", str(METADATA_DIR / "cpia_defns.csv")
).strip()

# Remote sources can be slow; keep the transport timeout generous.
HTTP_TIMEOUT_SECONDS = int(os.getenv("CPIA_HTTP_TIMEOUT_SECONDS", "60"))

# ---------------------------------------------------------------------------
# Display
# ---------------------------------------------------------------------------

# Wide table values are rounded to this many decimals
TABLE_DECIMALS = 1

# How many found columns a schema diagnostic shows
COLUMN_PREVIEW_LIMIT = 10
