"""
bivariate-tracts
----------------
Classify census tracts on two ACS shares at once (k x k bivariate classes)
and map them as a choropleth with a matching legend.
"""
from .classify import (
    UNCLASSIFIED,
    BivariateError,
    BivariateResult,
    InsufficientData,
    InvalidInput,
    classify_bivariate,
    classify_series,
    classify_value,
    compute_breaks,
)

__version__ = "0.1.0"

__all__ = [
    "UNCLASSIFIED",
    "BivariateError",
    "BivariateResult",
    "InsufficientData",
    "InvalidInput",
    "classify_bivariate",
    "classify_series",
    "classify_value",
    "compute_breaks",
]
