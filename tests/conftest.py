# tests/conftest.py
import matplotlib

matplotlib.use("Agg")

import geopandas as gpd
import pytest
from shapely.geometry import box


class FakeResponse:
    def __init__(self, payload):
        self._payload = payload

    def raise_for_status(self):
        pass

    def json(self):
        return self._payload


@pytest.fixture
def sample_tract_json():
    """Sample Census API response for a tract pull (NAME, B02001_001E, B02001_003E, B15003_022E, B15003_001E)."""
    return [
        ["NAME", "B02001_001E", "B02001_003E", "B15003_022E", "B15003_001E", "state", "county", "tract"],
        ["Census Tract 1; Kings County; New York", "4000", "1000", "600", "3000", "36", "047", "000100"],
        ["Census Tract 2; Kings County; New York", "2500", "2000", "150", "1500", "36", "047", "000200"],
        ["Census Tract 3; Kings County; New York", "0", "0", "0", "0", "36", "047", "000300"],
        ["Census Tract 4; Kings County; New York", "3200", "-666666666", "900", "2000", "36", "047", "000400"],
    ]


@pytest.fixture
def fake_census(monkeypatch, sample_tract_json):
    """Patch requests.get to return the sample payload and record the calls."""
    calls = []

    def fake_get(url, params=None, timeout=None, **kwargs):
        calls.append({"url": url, "params": params, "timeout": timeout})
        return FakeResponse(sample_tract_json)

    monkeypatch.setattr("bivariate_tracts.acs.requests.get", fake_get)
    return calls


@pytest.fixture
def grid_tracts():
    """Five unit squares in lon/lat with 11-char GEOIDs and known shares."""
    geoids = [f"36047{str(i).zfill(6)}" for i in range(1, 6)]
    return gpd.GeoDataFrame(
        {
            "GEOID": geoids,
            "NAME": [f"Tract {i}" for i in range(1, 6)],
            "pct_subgroup": [0.0, 0.25, 0.5, 0.75, 1.0],
            "pct_bachelors": [1.0, 0.75, 0.5, 0.25, 0.0],
        },
        geometry=[box(-74.0 + 0.01 * i, 40.6, -73.99 + 0.01 * i, 40.61) for i in range(5)],
        crs=4326,
    )
