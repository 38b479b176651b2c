"""Coordinate value types and geodetic bounding boxes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, NamedTuple

from shapely.geometry import MultiPoint
from shapely.geometry.base import BaseGeometry


class GeoPoint(NamedTuple):
    """Geodetic position in degrees."""

    lat: float
    lon: float


class PlanarPoint(NamedTuple):
    """Projected position; unit depends on the planar CRS."""

    east: float
    north: float


@dataclass(frozen=True)
class BBox:
    """Geodetic axis-aligned box (degrees)."""

    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float

    @classmethod
    def from_points(cls, points: Iterable[GeoPoint]) -> "BBox":
        pts = list(points)
        if not pts:
            raise ValueError("BBox needs at least one point")
        lats = [p.lat for p in pts]
        lons = [p.lon for p in pts]
        return cls(min(lats), min(lons), max(lats), max(lons))

    @classmethod
    def around(cls, point: GeoPoint) -> "BBox":
        """Zero-size box at a single point."""
        return cls(point.lat, point.lon, point.lat, point.lon)

    def to_shapely(self) -> BaseGeometry:
        """Envelope in lon/lat order; degenerates to a point or line for zero extents."""
        return MultiPoint([(self.min_lon, self.min_lat), (self.max_lon, self.max_lat)]).envelope
