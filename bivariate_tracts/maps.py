# maps.py
# Bivariate choropleth (static PNG + interactive HTML) and the matching k x k legend

from __future__ import annotations

import warnings
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import folium
import geopandas as gpd
import matplotlib.pyplot as plt
from matplotlib.patches import Rectangle
from mpl_toolkits.axes_grid1.inset_locator import inset_axes

from .classify import UNCLASSIFIED, BivariateResult
from .palette import MISSING_COLOR, bivariate_palette, label_colors

# ---------- Matplotlib defaults ----------
plt.rcParams.update({
    "figure.dpi": 180,
    "axes.titlesize": 16,
    "axes.labelsize": 10,
    "xtick.labelsize": 8,
    "ytick.labelsize": 8,
})

# ----------------------
# Helpers
# ----------------------

def save_fig(fig, path: str | Path, dpi: int = 220) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(p, dpi=dpi, bbox_inches="tight")
    print(f"[ok] wrote {p}")
    plt.close(fig)
    return p


def add_caption(fig, caption: str):
    # small source/footnote line under the map
    fig.text(0.01, 0.01, caption, ha="left", va="top", fontsize=8)


def format_breaks(breaks: Iterable[float], fmt: str = "{:.0%}") -> list:
    return [fmt.format(b) for b in breaks]


def _check_aligned(gdf, result: BivariateResult):
    if len(gdf) != len(result):
        raise ValueError(f"GeoDataFrame has {len(gdf)} rows but result has {len(result)} labels")


# ----------------------
# Legend
# ----------------------

def draw_legend(ax, result: BivariateResult, palette: Optional[Dict[Tuple[int, int], str]] = None,
                x_label: str = "x", y_label: str = "y", fmt: str = "{:.0%}"):
    """Draw the k x k class grid on `ax`; ticks sit on the bin boundaries."""
    k = result.k
    palette = palette or bivariate_palette(k)
    for (i, j), color in sorted(palette.items()):
        ax.add_patch(Rectangle((i - 1, j - 1), 1, 1, facecolor=color, edgecolor="white", linewidth=0.8))
    ax.set_xlim(0, k)
    ax.set_ylim(0, k)
    ax.set_aspect("equal")
    ax.set_xticks(range(1, k))
    ax.set_yticks(range(1, k))
    ax.set_xticklabels(format_breaks(result.x_breaks, fmt))
    ax.set_yticklabels(format_breaks(result.y_breaks, fmt))
    ax.set_xlabel(f"{x_label} →")
    ax.set_ylabel(f"{y_label} →")
    ax.tick_params(length=0)
    for s in ax.spines.values():
        s.set_visible(False)
    return ax


def add_legend_inset(ax, result: BivariateResult, palette=None, width="26%", height="26%",
                     loc: str = "lower left", **legend_kwds):
    axins = inset_axes(ax, width=width, height=height, loc=loc, borderpad=3)
    draw_legend(axins, result, palette=palette, **legend_kwds)
    return axins


# ----------------------
# Static map
# ----------------------

def plot_bivariate_map(gdf: gpd.GeoDataFrame, result: BivariateResult, palette=None, ax=None,
                       title: Optional[str] = None, show_missing: bool = True,
                       missing_color: str = MISSING_COLOR, legend: bool = True,
                       legend_kwds: Optional[dict] = None):
    """Fill each tract with its class color. Rows of `gdf` must line up with `result.labels`."""
    _check_aligned(gdf, result)
    palette = palette or bivariate_palette(result.k)

    g = gdf.copy()
    g["_color"] = label_colors(result.labels, palette, missing_color=missing_color)
    if not show_missing:
        keep = [lab is not UNCLASSIFIED for lab in result.labels]
        g = g[keep]
    if g.crs is not None:
        g = g.to_crs(3857)

    if ax is None:
        fig, ax = plt.subplots(figsize=(8, 8))
    else:
        fig = ax.figure
    if len(g):
        g.plot(color=g["_color"].tolist(), ax=ax, linewidth=0.2, edgecolor="white")
    else:
        warnings.warn("No tracts to draw (all unclassified and show_missing=False)")
    ax.set_axis_off()
    if title:
        ax.set_title(title)
    if legend:
        add_legend_inset(ax, result, palette=palette, **(legend_kwds or {}))
    return fig, ax


# ----------------------
# Interactive HTML
# ----------------------

def _center_from_bounds(bounds: Iterable[float]) -> Tuple[float, float]:
    minx, miny, maxx, maxy = bounds
    return ((miny + maxy) / 2.0, (minx + maxx) / 2.0)


def make_interactive_map(gdf: gpd.GeoDataFrame, result: BivariateResult, out_html: str | Path,
                         palette=None, title: Optional[str] = None,
                         missing_color: str = MISSING_COLOR) -> Path:
    _check_aligned(gdf, result)
    palette = palette or bivariate_palette(result.k)

    g = gdf.copy()
    if g.crs is not None:
        g = g.to_crs(4326)
    g["bi_class"] = [c if c is not None else "unclassified" for c in result.codes]
    g["_color"] = label_colors(result.labels, palette, missing_color=missing_color)

    minx, miny, maxx, maxy = g.total_bounds
    fmap = folium.Map(location=_center_from_bounds([minx, miny, maxx, maxy]),
                      zoom_start=10, tiles="cartodbpositron")

    fields = [c for c in ["GEOID", "NAME", "pct_subgroup", "pct_bachelors", "bi_class"] if c in g.columns]
    aliases = {"GEOID": "Tract", "NAME": "Name", "pct_subgroup": "% subgroup",
               "pct_bachelors": "% bachelor's", "bi_class": "Class"}
    cols = fields + ["_color", "geometry"]
    gj = folium.GeoJson(
        g[cols].to_json(),
        style_function=lambda f: {
            "fillColor": f["properties"]["_color"],
            "color": "white",
            "weight": 0.3,
            "fillOpacity": 0.85,
        },
        tooltip=folium.GeoJsonTooltip(fields=fields, aliases=[aliases[c] for c in fields]),
    )
    gj.add_to(fmap)
    fmap.fit_bounds([[miny, minx], [maxy, maxx]])

    if title:
        title_html = f'''
        <div style="position: fixed; top: 10px; left: 50%; transform: translateX(-50%);
                    z-index: 9999; background: rgba(255,255,255,0.9); padding: 6px 10px;
                    border-radius: 6px; font-weight: 600; font-size: 16px;">
            {title}
        </div>'''
        fmap.get_root().html.add_child(folium.Element(title_html))

    out_html = Path(out_html)
    out_html.parent.mkdir(parents=True, exist_ok=True)
    fmap.save(str(out_html))
    print(f"[ok] wrote {out_html}")
    return out_html
