# acs.py
# ACS 5-year tract pulls: race subgroup + bachelor's attainment counts, and the two derived shares

from __future__ import annotations

from pathlib import Path
from typing import Dict, List

import numpy as np
import pandas as pd
import requests

from .config import (
    CENSUS_BASE,
    DEFAULT_DATASET,
    DEFAULT_SUBGROUP,
    DEFAULT_YEAR,
    SUBGROUP_VARS,
    TIMEOUT,
    VAR_BACHELORS,
    VAR_OVER25,
    VAR_TOTAL_POP,
    get_api_key,
)

COUNT_COLUMNS = ["population", "subgroup", "bachelors", "over25"]

# -----------------
# Helpers
# -----------------

def census_get(url: str, params: Dict[str, str | int | None]) -> List[List[str]]:
    """Generic GET to Census API; returns 2D array (rows) from JSON.
    Adds key if present in environment.
    """
    api_key = get_api_key()
    if api_key:
        params = {**params, "key": api_key}
    r = requests.get(url, params=params, timeout=TIMEOUT)
    r.raise_for_status()
    return r.json()


def rows_to_frame(rows: List[List[str]]) -> pd.DataFrame:
    header = rows[0]
    data = rows[1:]
    return pd.DataFrame(data, columns=header)


def _clean_counts(s: pd.Series) -> pd.Series:
    # ACS annotates suppressed/unavailable estimates with large negative sentinels (-666666666 etc.)
    s = pd.to_numeric(s, errors="coerce")
    return s.where(s >= 0)


# -----------------
# ACS 5-year tract counts
# -----------------

def fetch_tract_counts(state_fips: str, county_fips: str | None = None,
                       year: int = DEFAULT_YEAR, subgroup: str = DEFAULT_SUBGROUP,
                       out: str | Path | None = None) -> pd.DataFrame:
    """Fetch per-tract counts for one state (optionally one county).

    Columns: GEOID, NAME, population, subgroup, bachelors, over25.
    """
    if subgroup not in SUBGROUP_VARS:
        raise ValueError(f"Unknown subgroup {subgroup!r}; choose from {sorted(SUBGROUP_VARS)}")
    state_fips = str(state_fips).zfill(2)
    county = str(county_fips).zfill(3) if county_fips else "*"

    sub_var = SUBGROUP_VARS[subgroup]
    base = f"{CENSUS_BASE}/{year}/{DEFAULT_DATASET}"
    vars_str = f"NAME,{VAR_TOTAL_POP},{sub_var},{VAR_BACHELORS},{VAR_OVER25}"
    rows = census_get(base, {"get": vars_str, "for": "tract:*",
                             "in": f"state:{state_fips} county:{county}"})
    df = rows_to_frame(rows)

    df.rename(columns={
        VAR_TOTAL_POP: "population",
        sub_var: "subgroup",
        VAR_BACHELORS: "bachelors",
        VAR_OVER25: "over25",
    }, inplace=True)
    for c in COUNT_COLUMNS:
        df[c] = _clean_counts(df[c])
    df["GEOID"] = (df["state"].astype(str).str.zfill(2)
                   + df["county"].astype(str).str.zfill(3)
                   + df["tract"].astype(str).str.zfill(6))
    df = df[["GEOID", "NAME"] + COUNT_COLUMNS].reset_index(drop=True)

    if out is not None:
        out = Path(out)
        out.parent.mkdir(parents=True, exist_ok=True)
        df.to_csv(out, index=False)
        print(f"[ok] Wrote {out} (tracts={len(df):,})")
    return df


def _share(num: pd.Series, den: pd.Series) -> pd.Series:
    num = pd.to_numeric(num, errors="coerce").astype(float)
    den = pd.to_numeric(den, errors="coerce").astype(float)
    with np.errstate(divide="ignore", invalid="ignore"):
        share = num / den
    return share.replace([np.inf, -np.inf], np.nan)


def derive_shares(df: pd.DataFrame) -> pd.DataFrame:
    """Add pct_subgroup (subgroup / population) and pct_bachelors (bachelors / over25).

    Zero or missing denominators give NaN so those tracts stay unclassified downstream.
    """
    out = df.copy()
    out["pct_subgroup"] = _share(out["subgroup"], out["population"])
    out["pct_bachelors"] = _share(out["bachelors"], out["over25"])
    return out
