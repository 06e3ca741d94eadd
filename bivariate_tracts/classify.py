"""
Bivariate classification of two numeric series.

Each series is binned on its own into k classes, then every row gets the
pair (bin_x, bin_y). Rows where either value is missing or non-finite
(e.g. a 0/0 share for an empty tract) are left unclassified and reported
back to the caller instead of being pushed into a bin.

Bins are 1-based. A value equal to a break belongs to the lower bin:

    bin 1      v <= breaks[0]
    bin i      breaks[i-2] < v <= breaks[i-1]
    bin k      v > breaks[-1]
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

import mapclassify as mc
import numpy as np
import pandas as pd

from .config import DEFAULT_K, DEFAULT_SCHEME

# Sentinel for rows that could not be binned (bin index or joint label)
UNCLASSIFIED = None

SCHEME_ALIASES = {
    "quantile": "quantile",
    "quantiles": "quantile",
    "q": "quantile",
    "equal_interval": "equal_interval",
    "equalinterval": "equal_interval",
    "equal": "equal_interval",
    "fisher_jenks": "fisher_jenks",
    "fisherjenks": "fisher_jenks",
    "jenks": "fisher_jenks",
    "naturalbreaks": "fisher_jenks",
    "natural_breaks": "fisher_jenks",
}

Label = Optional[Tuple[int, int]]


class BivariateError(ValueError):
    """Base class for classification errors."""


class InsufficientData(BivariateError):
    """A series has fewer than k distinct finite values."""


class InvalidInput(BivariateError):
    """Inputs are malformed: non-numeric, wrong shape, mismatched lengths, bad k or scheme."""


# ----------------------
# Helpers
# ----------------------

def normalize_scheme(scheme: str) -> str:
    key = str(scheme).strip().lower().replace("-", "_").replace(" ", "_")
    if key not in SCHEME_ALIASES:
        raise InvalidInput(f"Unknown binning scheme {scheme!r}; "
                           f"expected one of {sorted(set(SCHEME_ALIASES.values()))}")
    return SCHEME_ALIASES[key]


def _check_k(k) -> int:
    if isinstance(k, bool) or not isinstance(k, (int, np.integer)) or k < 2:
        raise InvalidInput(f"k must be an integer >= 2 (got {k!r})")
    return int(k)


def _as_float_array(values, name: str = "values") -> np.ndarray:
    """Coerce a list/ndarray/Series to a 1-D float array; missing entries become NaN."""
    if not isinstance(values, pd.Series):
        raw = np.asarray(values, dtype=object)
        if raw.ndim != 1:
            raise InvalidInput(f"{name} must be a one-dimensional sequence (got shape {raw.shape})")
        values = pd.Series(raw, dtype=object)
    try:
        return values.to_numpy(dtype=float, na_value=np.nan)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"{name} must contain only numeric values: {e}") from e


def _check_breaks(breaks: Sequence[float]) -> np.ndarray:
    b = np.asarray(breaks, dtype=float)
    if b.ndim != 1 or len(b) == 0:
        raise InvalidInput("breaks must be a non-empty one-dimensional sequence")
    if not np.all(np.isfinite(b)) or np.any(np.diff(b) < 0):
        raise InvalidInput(f"breaks must be finite and non-decreasing (got {list(b)})")
    return b


def _spread_tied_breaks(breaks: np.ndarray, finite: np.ndarray) -> np.ndarray:
    """Move quantile cuts off ties so each one sits in its own gap between distinct values.

    Heavy ties (many tracts at 0%) push cuts onto the min or max, or onto each
    other, which leaves bins empty. When that happens every cut is replaced by
    the midpoint of a gap between consecutive distinct values, keeping each cut
    as close as possible to its original quantile. Needs at least
    len(breaks) + 1 distinct values.
    """
    u = np.unique(finite)
    lo, hi = u[0], u[-1]
    if np.all((breaks > lo) & (breaks < hi)) and np.all(np.diff(breaks) > 0):
        return breaks

    n_gaps = len(u) - 1
    gaps = np.clip(np.searchsorted(u, breaks, side="right") - 1, 0, n_gaps - 1)
    for i in range(1, len(gaps)):
        gaps[i] = max(gaps[i], gaps[i - 1] + 1)
    gaps[-1] = min(gaps[-1], n_gaps - 1)
    for i in range(len(gaps) - 2, -1, -1):
        gaps[i] = min(gaps[i], gaps[i + 1] - 1)
    return (u[gaps] + u[gaps + 1]) / 2.0


# ----------------------
# Boundaries
# ----------------------

def compute_breaks(values, k: int = DEFAULT_K, scheme: str = DEFAULT_SCHEME) -> List[float]:
    """Return the k-1 interior bin boundaries for one series.

    Non-finite and missing entries are dropped first. ``quantile`` cuts at
    i/k (i = 1..k-1) with linear interpolation between order statistics;
    cuts that land on the min, the max or on each other because of ties are
    moved to midpoints between distinct values (see _spread_tied_breaks).
    ``equal_interval`` and ``fisher_jenks`` go through mapclassify.
    """
    k = _check_k(k)
    scheme = normalize_scheme(scheme)
    arr = _as_float_array(values)
    finite = arr[np.isfinite(arr)]
    n_distinct = len(np.unique(finite))
    if n_distinct < k:
        raise InsufficientData(
            f"Need at least {k} distinct finite values for {k} bins; got {n_distinct}"
        )

    if scheme == "quantile":
        breaks = _spread_tied_breaks(np.quantile(finite, np.arange(1, k) / k), finite)
    elif scheme == "equal_interval":
        breaks = mc.EqualInterval(finite, k=k).bins[:-1]
    else:
        breaks = mc.FisherJenks(finite, k=k).bins[:-1]

    if len(breaks) != k - 1:
        # mapclassify collapses duplicate classes instead of failing
        raise InsufficientData(f"{scheme} produced {len(breaks) + 1} classes instead of {k}")
    return [float(b) for b in breaks]


# ----------------------
# Single-series classification
# ----------------------

def classify_value(v, breaks: Sequence[float]) -> Optional[int]:
    """Bin index in 1..len(breaks)+1 for one value, or UNCLASSIFIED."""
    b = _check_breaks(breaks)
    if v is None or v is pd.NA:
        return UNCLASSIFIED
    try:
        v = float(v)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"value must be numeric (got {v!r})") from e
    if not math.isfinite(v):
        return UNCLASSIFIED
    return int(np.searchsorted(b, v, side="left")) + 1


def classify_series(values, breaks: Sequence[float]) -> List[Optional[int]]:
    """Vectorised classify_value over a whole series, preserving order."""
    b = _check_breaks(breaks)
    arr = _as_float_array(values)
    bins = np.searchsorted(b, arr, side="left") + 1
    ok = np.isfinite(arr)
    return [int(i) if f else UNCLASSIFIED for i, f in zip(bins, ok)]


# ----------------------
# Joint classification
# ----------------------

@dataclass(frozen=True)
class BivariateResult:
    labels: Tuple[Label, ...]
    x_breaks: Tuple[float, ...]
    y_breaks: Tuple[float, ...]
    k: int
    scheme: str

    def __len__(self) -> int:
        return len(self.labels)

    @property
    def unclassified(self) -> List[int]:
        """Row positions whose label is UNCLASSIFIED."""
        return [i for i, lab in enumerate(self.labels) if lab is UNCLASSIFIED]

    @property
    def n_unclassified(self) -> int:
        return len(self.unclassified)

    @property
    def codes(self) -> List[Optional[str]]:
        # "bx-by" string keys, handy as a categorical fill column
        return [None if lab is UNCLASSIFIED else f"{lab[0]}-{lab[1]}" for lab in self.labels]

    def to_frame(self, index=None) -> pd.DataFrame:
        bin_x = [None if lab is UNCLASSIFIED else lab[0] for lab in self.labels]
        bin_y = [None if lab is UNCLASSIFIED else lab[1] for lab in self.labels]
        df = pd.DataFrame(
            {
                "bin_x": pd.array(bin_x, dtype="Int64"),
                "bin_y": pd.array(bin_y, dtype="Int64"),
            },
            index=index,
        )
        df["bi_class"] = pd.Series(self.codes, index=df.index, dtype=object)
        return df


def classify_bivariate(x, y, k: int = DEFAULT_K, scheme: str = DEFAULT_SCHEME) -> BivariateResult:
    """Label every (x[i], y[i]) row with its joint class.

    Breaks are computed for x and y independently, each over its own
    finite values. A row is UNCLASSIFIED if either coordinate is missing
    or non-finite. Raises InvalidInput on length mismatch and
    InsufficientData when either series cannot support k bins.
    """
    k = _check_k(k)
    scheme = normalize_scheme(scheme)
    xa = _as_float_array(x, "x")
    ya = _as_float_array(y, "y")
    if len(xa) != len(ya):
        raise InvalidInput(f"x and y must have the same length ({len(xa)} != {len(ya)})")

    x_breaks = compute_breaks(xa, k=k, scheme=scheme)
    y_breaks = compute_breaks(ya, k=k, scheme=scheme)
    bins_x = classify_series(xa, x_breaks)
    bins_y = classify_series(ya, y_breaks)

    labels = tuple(
        UNCLASSIFIED if bx is UNCLASSIFIED or by is UNCLASSIFIED else (bx, by)
        for bx, by in zip(bins_x, bins_y)
    )
    return BivariateResult(
        labels=labels,
        x_breaks=tuple(x_breaks),
        y_breaks=tuple(y_breaks),
        k=k,
        scheme=scheme,
    )
