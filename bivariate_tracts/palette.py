# palette.py
# k x k bivariate color grids and per-row color lookup

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
from matplotlib.colors import to_hex, to_rgb

from .classify import UNCLASSIFIED

MISSING_COLOR = "#d9d9d9"

# corners: low x/low y, high x/low y, low x/high y, high x/high y
DEFAULT_CORNERS = ("#e8e8e8", "#c85a5a", "#64acbe", "#574249")

# Stevens pink/blue 3x3, keyed (bin_x, bin_y)
DEFAULT_PALETTE_3X3 = {
    (1, 1): "#e8e8e8", (2, 1): "#e4acac", (3, 1): "#c85a5a",
    (1, 2): "#b0d5df", (2, 2): "#ad9ea5", (3, 2): "#985356",
    (1, 3): "#64acbe", (2, 3): "#627f8c", (3, 3): "#574249",
}


def bivariate_palette(k: int = 3, corners: Optional[Iterable[str]] = None) -> Dict[Tuple[int, int], str]:
    """Map every (bin_x, bin_y) in 1..k x 1..k to a hex color.

    Without custom corners, k=3 returns the stock Stevens grid; anything
    else is a bilinear blend of the four corner colors in RGB.
    """
    if k < 2:
        raise ValueError(f"k must be >= 2 (got {k})")
    if corners is None and k == 3:
        return dict(DEFAULT_PALETTE_3X3)
    c00, c10, c01, c11 = (np.array(to_rgb(c)) for c in (corners or DEFAULT_CORNERS))
    pal = {}
    for i in range(1, k + 1):
        tx = (i - 1) / (k - 1)
        for j in range(1, k + 1):
            ty = (j - 1) / (k - 1)
            rgb = ((1 - tx) * (1 - ty) * c00 + tx * (1 - ty) * c10
                   + (1 - tx) * ty * c01 + tx * ty * c11)
            pal[(i, j)] = to_hex(np.clip(rgb, 0, 1))
    return pal


def label_colors(labels, palette: Dict[Tuple[int, int], str],
                 missing_color: str = MISSING_COLOR) -> List[str]:
    return [missing_color if lab is UNCLASSIFIED else palette[tuple(lab)] for lab in labels]
