"""Geodetic <-> planar conversion and great-circle metrics.

All metric geometry in this package runs on planar coordinates produced by
``Projector``. Distances reported to callers are always meters, measured on
the WGS 84 ellipsoid by ``Metrics``.
"""

from __future__ import annotations

import logging
import math

from pyproj import CRS, Geod, Transformer
from pyproj.exceptions import CRSError, ProjError

from mapassist.core.geometry.points import GeoPoint, PlanarPoint
from mapassist.core.issues import ProjectionError

logger = logging.getLogger(__name__)

_SCALE_PROBE_M = 10.0


class Metrics:
    """Distance, bearing and destination on the WGS 84 ellipsoid."""

    def __init__(self, ellps: str = "WGS84") -> None:
        self.geod = Geod(ellps=ellps)

    def great_circle_distance(self, a: GeoPoint, b: GeoPoint) -> float:
        _, _, dist = self.geod.inv(a.lon, a.lat, b.lon, b.lat)
        return dist

    def bearing(self, a: GeoPoint, b: GeoPoint) -> float:
        """Initial bearing from a to b in radians, clockwise from north, in [0, 2π)."""
        az12, _, _ = self.geod.inv(a.lon, a.lat, b.lon, b.lat)
        return math.radians(az12) % (2 * math.pi)

    def destination(self, origin: GeoPoint, bearing: float, meters: float) -> GeoPoint:
        lon, lat, _ = self.geod.fwd(origin.lon, origin.lat, math.degrees(bearing), meters)
        return GeoPoint(lat, lon)


class Projector:
    """Converts between a geodetic CRS and a projected planar CRS."""

    def __init__(
        self,
        source_crs: str = "EPSG:4326",
        planar_crs: str = "EPSG:3857",
        metrics: Metrics | None = None,
    ) -> None:
        try:
            planar = CRS.from_user_input(planar_crs)
        except CRSError as e:
            raise ValueError(f"Unknown planar CRS '{planar_crs}': {e}") from e
        if not planar.is_projected:
            raise ValueError(f"Planar CRS '{planar_crs}' is not a projected CRS")

        self.source_crs = source_crs
        self.planar_crs = planar_crs
        self._forward = Transformer.from_crs(source_crs, planar, always_xy=True)
        self._inverse = Transformer.from_crs(planar, source_crs, always_xy=True)
        self._unit_factor = planar.axis_info[0].unit_conversion_factor
        # (west, south, east, north) in degrees; west > east spans the antimeridian
        area = planar.area_of_use
        self.valid_area = area.bounds if area is not None else None
        self.metrics = metrics or Metrics()

    def covers(self, point: GeoPoint) -> bool:
        """True when ``point`` lies inside the planar CRS's area of use."""
        if self.valid_area is None:
            return math.isfinite(point.lat) and math.isfinite(point.lon)
        west, south, east, north = self.valid_area
        if not south <= point.lat <= north:
            return False
        if west <= east:
            return west <= point.lon <= east
        return point.lon >= west or point.lon <= east

    def to_planar(self, point: GeoPoint) -> PlanarPoint:
        if not self.covers(point):
            raise ProjectionError(tuple(point), f"outside the area of use of {self.planar_crs}")
        try:
            east, north = self._forward.transform(point.lon, point.lat, errcheck=True)
        except ProjError as e:
            raise ProjectionError(tuple(point), str(e)) from e
        if not (math.isfinite(east) and math.isfinite(north)):
            raise ProjectionError(tuple(point), "non-finite planar result")
        return PlanarPoint(east, north)

    def to_geodetic(self, point: PlanarPoint) -> GeoPoint:
        try:
            lon, lat = self._inverse.transform(point.east, point.north, errcheck=True)
        except ProjError as e:
            raise ProjectionError(tuple(point), str(e)) from e
        if not (math.isfinite(lat) and math.isfinite(lon)):
            raise ProjectionError(tuple(point), "non-finite geodetic result")
        return GeoPoint(lat, lon)

    def meters_per_unit(self) -> float:
        """Nominal size of one planar CRS unit in meters."""
        return self._unit_factor

    def units_per_meter(self, at: GeoPoint) -> float:
        """Planar units spanned by one ground meter near ``at``.

        Projected scale varies with position, and for Web Mercator applied to
        WGS 84 latitudes it also differs slightly between north and east.
        Both directions are measured with short geodesic steps and the larger
        factor is returned.
        """
        a = self.to_planar(at)
        scale = 0.0
        for bearing in (0.0, math.pi / 2):
            b = self.to_planar(self.metrics.destination(at, bearing, _SCALE_PROBE_M))
            scale = max(scale, math.hypot(b.east - a.east, b.north - a.north) / _SCALE_PROBE_M)
        if scale == 0:
            return 1.0 / self._unit_factor
        return scale
