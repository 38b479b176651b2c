"""Same-level named neighbor search.

Two strategies, tried in order:

1. LATERAL: an oriented corridor built from the reference polygon's own
   width/length axes (7x its width across, 1x its length deep). Picks up
   spaces in the same row before anything merely nearby.
2. CIRCULAR: an axis-aligned box of ``max_radius`` around the point, kept
   to candidates whose boundary lies within ``max_radius`` meters.

Distances are ground meters from the point to the candidate's boundary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from shapely.geometry import LineString, Point
from shapely.ops import nearest_points

from mapassist.core.geometry.oriented_box import SearchCorridor, build_oriented_box
from mapassist.core.geometry.points import BBox, GeoPoint, PlanarPoint
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.geometry.projection import Projector
from mapassist.core.geometry.validation import distinct_points
from mapassist.core.store.feature_store import FeatureStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class NeighborCandidate:
    polygon: MapPolygon
    distance_m: float

    @property
    def name(self) -> str:
        return self.polygon.name


class NeighborSearch:
    def __init__(
        self,
        projector: Projector,
        corridor_half_width_factor: float = 3.5,
        corridor_half_length_factor: float = 0.5,
    ) -> None:
        self.projector = projector
        self.metrics = projector.metrics
        self.width_factor = corridor_half_width_factor
        self.length_factor = corridor_half_length_factor

    def find_candidates(
        self,
        point: GeoPoint,
        exclude: MapPolygon | None,
        level: str | None,
        max_radius_m: float,
        store: FeatureStore,
        needed: int = 1,
    ) -> list[NeighborCandidate]:
        """Named same-level polygons near ``point``, nearest first.

        The circular search runs only when the lateral one is unavailable or
        yields fewer than ``needed`` candidates; its result is used unless it
        is smaller than what the corridor found.
        """
        if level is None:
            return []

        lateral: list[NeighborCandidate] = []
        box = build_oriented_box(exclude, self.projector) if exclude is not None else None
        if box is not None:
            corridor = box.corridor(self.width_factor, self.length_factor)
            lateral = self._lateral(point, corridor, exclude, level, store)
            if len(lateral) >= needed:
                return lateral
            logger.debug("Corridor found %d of %d needed, widening to radius", len(lateral), needed)

        circular = self._circular(point, exclude, level, max_radius_m, store)
        return circular if len(circular) >= len(lateral) else lateral

    def find_nearest(
        self,
        point: GeoPoint,
        exclude: MapPolygon | None,
        level: str | None,
        max_radius_m: float,
        store: FeatureStore,
    ) -> MapPolygon | None:
        found = self.find_candidates(point, exclude, level, max_radius_m, store, needed=1)
        return found[0].polygon if found else None

    # ── Strategies ─────────────────────────────────────────────────────

    def _lateral(
        self,
        point: GeoPoint,
        corridor: SearchCorridor,
        exclude: MapPolygon | None,
        level: str,
        store: FeatureStore,
    ) -> list[NeighborCandidate]:
        minx, miny, maxx, maxy = corridor.bounds
        bbox = BBox.from_points(self.projector.to_geodetic(PlanarPoint(x, y))
                                for x, y in ((minx, miny), (maxx, miny), (maxx, maxy), (minx, maxy)))
        queried = store.query_by_bbox(bbox)

        found = []
        for polygon in self._eligible(queried, exclude, level):
            center = polygon.centroid(self.projector)
            if center is None or not corridor.contains(center):
                continue
            distance = self.distance_to_polygon(point, polygon)
            if distance is not None:
                found.append(NeighborCandidate(polygon, distance))

        found.sort(key=lambda c: c.distance_m)
        logger.debug("Lateral search: %d queried, %d in corridor", len(queried), len(found))
        return found

    def _circular(
        self,
        point: GeoPoint,
        exclude: MapPolygon | None,
        level: str,
        max_radius_m: float,
        store: FeatureStore,
    ) -> list[NeighborCandidate]:
        center = self.projector.to_planar(point)
        r = max_radius_m * self.projector.units_per_meter(point)
        bbox = BBox.from_points(self.projector.to_geodetic(PlanarPoint(center.east + dx, center.north + dy))
                                for dx, dy in ((-r, -r), (r, -r), (r, r), (-r, r)))
        queried = store.query_by_bbox(bbox)

        found = []
        for polygon in self._eligible(queried, exclude, level):
            distance = self.distance_to_polygon(point, polygon)
            if distance is not None and distance <= max_radius_m:
                found.append(NeighborCandidate(polygon, distance))

        found.sort(key=lambda c: c.distance_m)
        logger.debug("Circular search (%.1f m): %d queried, %d within radius", max_radius_m, len(queried), len(found))
        return found

    @staticmethod
    def _eligible(polygons: list[MapPolygon], exclude: MapPolygon | None, level: str) -> list[MapPolygon]:
        exclude_id = exclude.id if exclude is not None else None
        return [
            p for p in polygons
            if p.id != exclude_id and p.level == level and p.has_name
        ]

    # ── Distance ───────────────────────────────────────────────────────

    def distance_to_polygon(self, point: GeoPoint, polygon: MapPolygon) -> float | None:
        """Meters from ``point`` to the nearest boundary segment of ``polygon``.

        Falls back to the nearest vertex when the boundary has fewer than two
        distinct points; None when the polygon has no nodes at all.
        """
        ring = distinct_points(polygon.planar_ring(self.projector))
        if len(ring) >= 2:
            boundary = LineString(ring + [ring[0]] if len(ring) >= 3 else ring)
            nearest = nearest_points(Point(self.projector.to_planar(point)), boundary)[1]
            foot = self.projector.to_geodetic(PlanarPoint(nearest.x, nearest.y))
            return self.metrics.great_circle_distance(point, foot)

        if not polygon.nodes:
            return None
        return min(self.metrics.great_circle_distance(point, n) for n in polygon.nodes)
