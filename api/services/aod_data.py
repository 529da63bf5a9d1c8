# services/aod_data.py
# Loads the AOD point file and serves contour grids / point estimates over it

import json
import time
from typing import Any, Dict, List, Optional

import numpy as np
import pandas as pd
from pyproj import Geod
from shapely.geometry import box, mapping

from config import (AOD_DATA_PATH, AOD_VALUE_FIELD, REGION_BOUNDS,
                    GRID_RESOLUTION, INFLUENCE_RADIUS, IDW_EPSILON)
from services.interpolator import (RegionBounds, SampleIndex, filter_samples,
                                   interpolate, weighted_mean)


def load_aod_points(path: str, value_field: str = AOD_VALUE_FIELD) -> List[Dict[str, Any]]:
    """
    Read AOD_points.json into a list of {latitude, longitude, <value_field>} dicts.

    The file is usually {"points": [...]}, but a bare list works too.
    Anything non-numeric becomes NaN here; the interpolator skips those rows.
    """
    with open(path, "r", encoding="utf-8") as f:
        payload = json.load(f)

    records = (payload.get("points") if isinstance(payload, dict) else payload) or []
    df = pd.DataFrame.from_records(records)

    columns = ["latitude", "longitude", value_field]
    for col in columns:
        if col not in df.columns:
            df[col] = np.nan
        df[col] = pd.to_numeric(df[col], errors="coerce")

    return df[columns].to_dict("records")


class AODContourService:
    """
    Holds the AOD samples for the fixed region and turns them into contour data.

    Samples are loaded once. Each contour() call re-runs the interpolation
    from scratch, the point lookups share one prebuilt index.
    """

    def __init__(self, data_path: str = None, samples: Optional[List[Any]] = None,
                 bounds: RegionBounds = None, value_field: str = AOD_VALUE_FIELD):
        self.bounds = bounds or RegionBounds(**REGION_BOUNDS)
        self.bounds.validate()

        self.resolution = GRID_RESOLUTION
        self.influence_radius = INFLUENCE_RADIUS
        self.epsilon = IDW_EPSILON

        if samples is None:
            path = data_path or AOD_DATA_PATH
            print(f"Loading AOD points from {path}...")
            start = time.time()
            samples = load_aod_points(path, value_field)
            print(f"  Loaded {len(samples):,} records in {time.time() - start:.2f}s")

        self.record_count = len(samples)
        self.samples = filter_samples(samples, self.bounds, value_field)

        print("Building spatial index...")
        start = time.time()
        self.index = SampleIndex(self.samples)

        b = self.bounds
        print(f"  Indexed {len(self.samples):,} points in {time.time() - start:.2f}s")
        print(f"  Region: lat [{b.min_lat:.2f}, {b.max_lat:.2f}], lon [{b.min_lon:.2f}, {b.max_lon:.2f}]")

    def contour(self, resolution: int = None, influence_radius: float = None,
                epsilon: float = None) -> dict:
        """Interpolate onto the region grid. Overrides fall back to config."""
        resolution = self.resolution if resolution is None else resolution
        influence_radius = self.influence_radius if influence_radius is None else influence_radius
        epsilon = self.epsilon if epsilon is None else epsilon

        grid = interpolate(self.samples, self.bounds, resolution,
                           influence_radius, epsilon)

        defined = grid.values[grid.has_data]
        return {
            "lats": grid.lats.tolist(),
            "lons": grid.lons.tolist(),
            "values": grid.to_rows(),
            "point_count": grid.point_count,
            "resolution": resolution,
            "influence_radius": influence_radius,
            "epsilon": epsilon,
            "empty": grid.is_empty,
            "min_value": float(defined.min()) if defined.size else None,
            "max_value": float(defined.max()) if defined.size else None,
            "region": self.bounds.to_dict()
        }

    def get_value_at_coord(self, lat: float, lon: float) -> dict:
        """Query by coordinate. Handles bounds checking."""
        if not self.bounds.contains(lat, lon):
            return {"error": "Outside region"}

        dist, vals = self.index.contributions(lat, lon, self.influence_radius)
        value = weighted_mean(dist, vals, self.epsilon)

        return {
            "lat": lat,
            "lon": lon,
            "value": None if np.isnan(value) else round(value, 4),
            "contributors": int(dist.size)
        }

    def points(self, limit: int = 1000) -> dict:
        """In-region samples for drawing on a map."""
        return {
            "count": len(self.samples),
            "points": [
                {"latitude": s.latitude, "longitude": s.longitude, "value": s.value}
                for s in self.samples[:limit]
            ],
            "truncated": len(self.samples) > limit
        }

    def region_info(self) -> dict:
        """Bounds, GeoJSON outline and geodesic area of the region."""
        b = self.bounds
        geom = box(b.min_lon, b.min_lat, b.max_lon, b.max_lat)
        area, _ = Geod(ellps="WGS84").geometry_area_perimeter(geom)

        return {
            "bounds": b.to_dict(),
            "geometry": mapping(geom),
            "area_km2": round(abs(area) / 1_000_000, 2)
        }
