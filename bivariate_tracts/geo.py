# geo.py
# Census cartographic tract boundaries: download, read, join to the tract table

from __future__ import annotations

import zipfile
from pathlib import Path
from typing import Iterable, Optional

import geopandas as gpd
import pandas as pd
import requests
from shapely.geometry import box

from .config import DEFAULT_YEAR, RAW_DIR


def tract_shapefile_url(state_fips: str, year: int = DEFAULT_YEAR) -> str:
    state_fips = str(state_fips).zfill(2)
    return f"https://www2.census.gov/geo/tiger/GENZ{year}/shp/cb_{year}_{state_fips}_tract_500k.zip"


def download_tract_shapes(state_fips: str, year: int = DEFAULT_YEAR,
                          raw_dir: str | Path = RAW_DIR) -> Path | None:
    """Download Census cartographic tract shapes (500k) and return path to the extracted .shp."""
    state_fips = str(state_fips).zfill(2)
    raw_dir = Path(raw_dir)
    raw_dir.mkdir(parents=True, exist_ok=True)
    stem = f"cb_{year}_{state_fips}_tract_500k"
    zpath = raw_dir / f"{stem}.zip"
    shp_dir = raw_dir / stem
    shp_dir.mkdir(exist_ok=True)

    if not zpath.exists():
        url = tract_shapefile_url(state_fips, year)
        print(f"[dl] {url}")
        with requests.get(url, stream=True, timeout=600) as r:
            r.raise_for_status()
            with open(zpath, "wb") as f:
                for chunk in r.iter_content(chunk_size=1024 * 1024):
                    if chunk:
                        f.write(chunk)
    else:
        print(f"[skip] Found {zpath}")

    with zipfile.ZipFile(zpath) as zf:
        zf.extractall(shp_dir)

    for p in shp_dir.glob("*.shp"):
        if p.name.startswith(stem):
            return p
    return None


def load_tracts(shp_path: str | Path, county_fips: str | None = None) -> gpd.GeoDataFrame:
    gdf = gpd.read_file(shp_path)
    if "GEOID" not in gdf.columns:
        for c in ("GEOID20", "GEOID10", "AFFGEOID"):
            if c in gdf.columns:
                gdf["GEOID"] = gdf[c].astype(str).str[-11:]
                break
    gdf["GEOID"] = gdf["GEOID"].astype(str).str.zfill(11)
    if county_fips:
        gdf = gdf[gdf["GEOID"].str[2:5] == str(county_fips).zfill(3)].copy()
    return gdf


def join_tracts(shapes: gpd.GeoDataFrame, table: pd.DataFrame) -> gpd.GeoDataFrame:
    """Left-join the tract table onto the shapes by GEOID (shapes keep their geometry)."""
    t = table.copy()
    t["GEOID"] = t["GEOID"].astype(str).str.zfill(11)
    drop = [c for c in t.columns if c in shapes.columns and c != "GEOID"]
    m = shapes.merge(t.drop(columns=drop), on="GEOID", how="left", indicator=True)
    matched = int((m["_merge"] == "both").sum())
    m = m.drop(columns="_merge")
    if matched == 0:
        print("[warn] Join matched 0 tracts; check that GEOIDs in the table match the shapes.")
    return m


def clip_bbox(gdf: gpd.GeoDataFrame, bbox: Optional[Iterable[float]]) -> gpd.GeoDataFrame:
    if not bbox:
        return gdf
    minx, miny, maxx, maxy = map(float, bbox)
    return gpd.clip(gdf.to_crs(4326), box(minx, miny, maxx, maxy))
