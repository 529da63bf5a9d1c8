import numpy as np
import pytest

from services.interpolator import RegionBounds


@pytest.fixture
def unit_square():
    """0..1 in both directions."""
    return RegionBounds(min_lat=0.0, max_lat=1.0, min_lon=0.0, max_lon=1.0)


@pytest.fixture
def texas():
    return RegionBounds(min_lat=25.8, max_lat=36.5, min_lon=-106.6, max_lon=-93.5)


@pytest.fixture
def scattered_texas_points(texas):
    """A few hundred AOD-like readings scattered over (and a bit beyond) Texas."""
    rng = np.random.default_rng(42)
    n = 300
    lats = rng.uniform(texas.min_lat - 1, texas.max_lat + 1, n)
    lons = rng.uniform(texas.min_lon - 1, texas.max_lon + 1, n)
    aod = rng.uniform(0.05, 0.45, n)
    return [
        {"latitude": float(a), "longitude": float(o), "AOD": float(v)}
        for a, o, v in zip(lats, lons, aod)
    ]


def _naive_idw(records, bounds, lats, lons, radius, epsilon, value_field="value"):
    """Straight double loop, used to check the indexed version."""
    pts = [
        (r["latitude"], r["longitude"], r[value_field]) for r in records
        if bounds.min_lat <= r["latitude"] <= bounds.max_lat
        and bounds.min_lon <= r["longitude"] <= bounds.max_lon
    ]
    out = np.full((len(lats), len(lons)), np.nan)
    for i, glat in enumerate(lats):
        for j, glon in enumerate(lons):
            num = den = 0.0
            for plat, plon, v in pts:
                d = np.sqrt((plat - glat) ** 2 + (plon - glon) ** 2)
                if d < radius:
                    w = 1 / (d + epsilon)
                    num += w * v
                    den += w
            if den > 0:
                out[i, j] = num / den
    return out


@pytest.fixture
def naive_idw():
    return _naive_idw
