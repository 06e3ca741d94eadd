"""
End-to-end tract map: ACS counts -> shares -> bivariate classes -> choropleth.

    from bivariate_tracts.pipeline import build_bivariate_map
    build_bivariate_map("36", county_fips="047", subgroup="black", html=True)

Outputs (default folder: figures/):
- bivariate_<state><county>_<year>.png
- bivariate_<state><county>_<year>.html   (html=True)
- data/outputs/bivariate_<state><county>_<year>.csv
"""
from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional, Tuple

import pandas as pd

from . import acs, geo, maps
from .classify import BivariateResult, classify_bivariate
from .config import (DEFAULT_K, DEFAULT_SCHEME, DEFAULT_SUBGROUP, DEFAULT_YEAR, FIG_DIR, OUT_DIR,
                     RAW_DIR, ensure_dir)


def classify_tracts(table: pd.DataFrame, k: int = DEFAULT_K, scheme: str = DEFAULT_SCHEME,
                    x_col: str = "pct_subgroup",
                    y_col: str = "pct_bachelors") -> Tuple[pd.DataFrame, BivariateResult]:
    """Return a copy of `table` with bin_x, bin_y, bi_class columns, plus the raw result."""
    result = classify_bivariate(table[x_col], table[y_col], k=k, scheme=scheme)
    out = table.copy()
    classes = result.to_frame(index=out.index)
    for c in classes.columns:
        out[c] = classes[c]
    return out, result


def build_bivariate_map(state_fips: str, county_fips: Optional[str] = None,
                        subgroup: str = DEFAULT_SUBGROUP, year: int = DEFAULT_YEAR,
                        k: int = DEFAULT_K, scheme: str = DEFAULT_SCHEME,
                        outdir: str | Path = FIG_DIR, html: bool = False,
                        show_missing: bool = True, title: Optional[str] = None) -> Dict[str, Path]:
    state_fips = str(state_fips).zfill(2)
    tag = f"{state_fips}{str(county_fips).zfill(3) if county_fips else ''}_{year}"

    counts = acs.fetch_tract_counts(state_fips, county_fips, year=year, subgroup=subgroup)
    table = acs.derive_shares(counts)

    shp = geo.download_tract_shapes(state_fips, year=year, raw_dir=RAW_DIR)
    if shp is None:
        raise FileNotFoundError(f"No tract shapefile found for state {state_fips} ({year})")
    shapes = geo.load_tracts(shp, county_fips=county_fips)
    gdf = geo.join_tracts(shapes, table)

    # classify on the joined frame so labels line up with the geometry rows
    gdf, result = classify_tracts(gdf, k=k, scheme=scheme)
    print(f"[ok] classified {len(result) - result.n_unclassified:,} tracts "
          f"({result.n_unclassified:,} unclassified; x breaks={list(result.x_breaks)}, "
          f"y breaks={list(result.y_breaks)})")

    paths: Dict[str, Path] = {}
    csv_path = OUT_DIR / f"bivariate_{tag}.csv"
    ensure_dir(csv_path.parent)
    gdf.drop(columns="geometry").to_csv(csv_path, index=False)
    print(f"[ok] Wrote {csv_path}")
    paths["csv"] = csv_path

    title = title or f"{subgroup.replace('_', ' ').title()} share vs. bachelor's attainment (ACS {year})"
    fig, ax = maps.plot_bivariate_map(
        gdf, result, title=title, show_missing=show_missing,
        legend_kwds={"x_label": f"% {subgroup.replace('_', ' ')}", "y_label": "% bachelor's"},
    )
    maps.add_caption(fig, f"Source: ACS 5-year {year} (B02001, B15003); {scheme} breaks, "
                          f"{k}x{k} classes. Gray = no population / no 25+ population.")
    paths["png"] = maps.save_fig(fig, Path(outdir) / f"bivariate_{tag}.png")

    if html:
        paths["html"] = maps.make_interactive_map(gdf, result, Path(outdir) / f"bivariate_{tag}.html",
                                                  title=title)
    return paths
