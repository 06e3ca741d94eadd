# config.py
# Defaults, paths and Census API settings shared by the tract map modules

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

# ---------- Paths ----------
DATA_DIR = Path("data")
RAW_DIR = DATA_DIR / "raw"
OUT_DIR = DATA_DIR / "outputs"
FIG_DIR = Path("figures")

# ---------- Census API ----------
CENSUS_BASE = "https://api.census.gov/data"
DEFAULT_YEAR = 2022          # ACS 5-year release used for tracts + cartographic shapes
DEFAULT_DATASET = "acs/acs5"
TIMEOUT = 120

# B02001: Race (total + "alone" subgroups)
VAR_TOTAL_POP = "B02001_001E"
# B15003: Educational attainment for the population 25 years and over
VAR_OVER25 = "B15003_001E"
VAR_BACHELORS = "B15003_022E"

SUBGROUP_VARS = {
    "white": "B02001_002E",
    "black": "B02001_003E",
    "aian": "B02001_004E",
    "asian": "B02001_005E",
    "nhpi": "B02001_006E",
    "other": "B02001_007E",
    "two_or_more": "B02001_008E",
}
DEFAULT_SUBGROUP = "black"

# ---------- Classification ----------
DEFAULT_K = 3
DEFAULT_SCHEME = "quantile"


def get_api_key() -> str | None:
    return os.environ.get("CENSUS_API_KEY")


def ensure_dir(path) -> Path:
    p = Path(path)
    p.mkdir(parents=True, exist_ok=True)
    return p
