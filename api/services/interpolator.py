# services/interpolator.py
# Scatter-to-grid IDW interpolation with a hard cutoff radius, R-tree backed

import math
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Iterable, List, Optional

import numpy as np
from rtree import index


class InterpolationError(ValueError):
    """Base class for bad interpolation configuration."""


class InvalidRegion(InterpolationError):
    pass


class InvalidResolution(InterpolationError):
    pass


class InvalidParameter(InterpolationError):
    pass


@dataclass(frozen=True)
class Sample:
    latitude: float
    longitude: float
    value: float


@dataclass(frozen=True)
class RegionBounds:
    min_lat: float
    max_lat: float
    min_lon: float
    max_lon: float

    def validate(self):
        # NaN fails every comparison, so "not <" catches it too
        if not (self.min_lat < self.max_lat) or not (self.min_lon < self.max_lon):
            raise InvalidRegion(
                f"Region needs min_lat < max_lat and min_lon < max_lon, got {self}"
            )
        if not all(math.isfinite(v) for v in (self.min_lat, self.max_lat, self.min_lon, self.max_lon)):
            raise InvalidRegion(f"Region bounds must be finite, got {self}")

    def contains(self, lat: float, lon: float) -> bool:
        """Inclusive on all four edges."""
        return (self.min_lat <= lat <= self.max_lat and
                self.min_lon <= lon <= self.max_lon)

    def to_dict(self) -> dict:
        return {
            "min_lat": self.min_lat,
            "max_lat": self.max_lat,
            "min_lon": self.min_lon,
            "max_lon": self.max_lon,
        }


@dataclass
class Grid:
    """
    Result of one interpolation pass.

    values[i, j] belongs to (lats[i], lons[j]). NaN marks a node with
    no sample inside the influence radius.
    """
    lats: np.ndarray
    lons: np.ndarray
    values: np.ndarray
    point_count: int

    @property
    def node_count(self) -> int:
        return self.values.size

    @property
    def has_data(self) -> np.ndarray:
        return ~np.isnan(self.values)

    @property
    def is_empty(self) -> bool:
        """True when no sample survived filtering (every node is no data)."""
        return self.point_count == 0

    def to_rows(self) -> List[List[Optional[float]]]:
        """Nested lists for JSON, with None where there's no data."""
        return [
            [None if np.isnan(v) else float(v) for v in row]
            for row in self.values
        ]


def _field(record: Any, name: str) -> Any:
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)


def to_sample(record: Any, value_field: str = "value") -> Optional[Sample]:
    """
    Coerce a raw record (dict or object with attributes) into a Sample.

    Returns None for anything we can't use: missing fields, non-numeric
    strings, NaN or infinite numbers. Bools are rejected too.
    """
    if isinstance(record, Sample) and value_field == "value":
        parts = (record.latitude, record.longitude, record.value)
    else:
        parts = (_field(record, "latitude"), _field(record, "longitude"),
                 _field(record, value_field))

    coerced = []
    for raw in parts:
        if raw is None or isinstance(raw, bool):
            return None
        try:
            num = float(raw)
        except (TypeError, ValueError):
            return None
        if not math.isfinite(num):
            return None
        coerced.append(num)

    return Sample(*coerced)


def filter_samples(records: Iterable[Any], bounds: RegionBounds,
                   value_field: str = "value") -> List[Sample]:
    """Drop malformed records and anything outside the region."""
    result = []
    for record in records:
        sample = to_sample(record, value_field)
        if sample is None:
            continue
        if bounds.contains(sample.latitude, sample.longitude):
            result.append(sample)
    return result


def grid_axis(lo: float, hi: float, resolution: int) -> np.ndarray:
    """resolution + 1 evenly spaced coordinates from lo, stepping (hi - lo) / resolution."""
    step = (hi - lo) / resolution
    return lo + np.arange(resolution + 1) * step


def _check_resolution(resolution):
    if isinstance(resolution, bool) or not isinstance(resolution, (int, np.integer)):
        raise InvalidResolution(f"Resolution must be an integer, got {resolution!r}")
    if resolution < 1:
        raise InvalidResolution(f"Resolution must be >= 1, got {resolution}")


def _check_positive(name: str, value):
    try:
        ok = math.isfinite(value) and value > 0
    except TypeError:
        ok = False
    if not ok:
        raise InvalidParameter(f"{name} must be a positive number, got {value!r}")


def weighted_mean(dist: np.ndarray, vals: np.ndarray, epsilon: float) -> float:
    """Sum(w * v) / sum(w) with w = 1 / (d + epsilon). NaN for no contributors."""
    if dist.size == 0:
        return float("nan")

    weights = 1.0 / (dist + epsilon)
    return float(np.sum(weights * vals) / np.sum(weights))


class SampleIndex:
    """
    R-tree over a fixed set of samples.

    Points go in as degenerate boxes (lon, lat, lon, lat). A query pulls
    every candidate inside the square around the influence circle, then the
    exact planar distance decides who actually contributes.
    """

    def __init__(self, samples: List[Sample]):
        self.samples = list(samples)
        self.lats = np.array([s.latitude for s in self.samples], dtype=float)
        self.lons = np.array([s.longitude for s in self.samples], dtype=float)
        self.values = np.array([s.value for s in self.samples], dtype=float)

        self.rtree = index.Index()
        for i, s in enumerate(self.samples):
            self.rtree.insert(i, (s.longitude, s.latitude, s.longitude, s.latitude))

    def __len__(self):
        return len(self.samples)

    def candidates(self, lat: float, lon: float, radius: float) -> np.ndarray:
        # Pad the box a hair so float rounding on lon +/- radius never drops a point
        pad = radius * (1 + 1e-9)
        box = (lon - pad, lat - pad, lon + pad, lat + pad)
        return np.fromiter(self.rtree.intersection(box), dtype=np.int64)

    def contributions(self, lat: float, lon: float, radius: float):
        """(distances, values) of samples strictly inside the radius."""
        idx = self.candidates(lat, lon, radius)
        if idx.size == 0:
            return idx.astype(float), idx.astype(float)

        # Flat-earth distance on raw degrees. Don't swap in haversine here,
        # the contour image depends on this exact number.
        dist = np.sqrt((self.lats[idx] - lat) ** 2 + (self.lons[idx] - lon) ** 2)
        keep = dist < radius
        return dist[keep], self.values[idx][keep]

    def estimate(self, lat: float, lon: float, radius: float, epsilon: float) -> float:
        """IDW value at one coordinate, NaN when nothing is within reach."""
        dist, vals = self.contributions(lat, lon, radius)
        return weighted_mean(dist, vals, epsilon)


def interpolate(samples: Iterable[Any], bounds: RegionBounds, resolution: int,
                influence_radius: float, epsilon: float,
                value_field: str = "value") -> Grid:
    """
    Resample scattered point measurements onto a regular lat/lon grid.

    Every grid node takes the inverse-distance weighted mean of the samples
    closer than influence_radius, with weight 1 / (distance + epsilon).
    Nodes with no sample in range come back as NaN rather than zero.

    Config is checked before anything is computed. An empty sample set
    (after filtering) is fine and gives an all-NaN grid.
    """
    bounds.validate()
    _check_resolution(resolution)
    _check_positive("influence_radius", influence_radius)
    _check_positive("epsilon", epsilon)

    kept = filter_samples(samples, bounds, value_field)

    lats = grid_axis(bounds.min_lat, bounds.max_lat, resolution)
    lons = grid_axis(bounds.min_lon, bounds.max_lon, resolution)
    values = np.full((lats.size, lons.size), np.nan)

    if not kept:
        return Grid(lats=lats, lons=lons, values=values, point_count=0)

    idx = SampleIndex(kept)
    for i, lat in enumerate(lats):
        for j, lon in enumerate(lons):
            values[i, j] = idx.estimate(lat, lon, influence_radius, epsilon)

    return Grid(lats=lats, lons=lons, values=values, point_count=len(kept))
