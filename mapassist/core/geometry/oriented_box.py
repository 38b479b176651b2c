"""Oriented boxes derived from rectangular polygons, and search corridors.

For parking-space-like rectangles the shorter of the first two edges is the
lateral dimension (width) and the longer the depth (length). Neighbor search
builds its corridor along these axes.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from mapassist.core.geometry.points import PlanarPoint
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.geometry.projection import Projector

_MIN_EDGE = 1e-9

Vector = tuple[float, float]


@dataclass(frozen=True)
class SearchCorridor:
    """Oriented rectangle used for lateral neighbor search."""

    center: PlanarPoint
    width_dir: Vector
    length_dir: Vector
    half_width: float
    half_length: float

    def local(self, point: tuple[float, float]) -> tuple[float, float]:
        """(width, length) coordinates of ``point`` relative to the center."""
        dx = point[0] - self.center.east
        dy = point[1] - self.center.north
        return (
            dx * self.width_dir[0] + dy * self.width_dir[1],
            dx * self.length_dir[0] + dy * self.length_dir[1],
        )

    def contains(self, point: tuple[float, float]) -> bool:
        w, l = self.local(point)
        return abs(w) <= self.half_width and abs(l) <= self.half_length

    def corners(self) -> list[PlanarPoint]:
        cx, cy = self.center
        wx, wy = self.width_dir
        lx, ly = self.length_dir
        hw, hl = self.half_width, self.half_length
        return [
            PlanarPoint(cx + sw * hw * wx + sl * hl * lx, cy + sw * hw * wy + sl * hl * ly)
            for sw, sl in ((-1, -1), (1, -1), (1, 1), (-1, 1))
        ]

    @property
    def bounds(self) -> tuple[float, float, float, float]:
        """Enclosing axis-aligned box (minx, miny, maxx, maxy)."""
        pts = self.corners()
        xs = [p.east for p in pts]
        ys = [p.north for p in pts]
        return (min(xs), min(ys), max(xs), max(ys))


@dataclass(frozen=True)
class OrientedBox:
    center: PlanarPoint
    width: float
    length: float
    width_dir: Vector
    length_dir: Vector

    def corridor(self, width_factor: float = 3.5, length_factor: float = 0.5) -> SearchCorridor:
        """Band of half-width ``width_factor * width`` and half-length
        ``length_factor * length`` centered on the box, along its own axes."""
        return SearchCorridor(
            center=self.center,
            width_dir=self.width_dir,
            length_dir=self.length_dir,
            half_width=width_factor * self.width,
            half_length=length_factor * self.length,
        )


def build_oriented_box(polygon: MapPolygon, projector: Projector) -> OrientedBox | None:
    """Derive width/length axes from the polygon's first two edges.

    Returns None for fewer than 4 ring points, a missing centroid, or a
    zero-length first or second edge.
    """
    ring = polygon.planar_ring(projector)
    if len(ring) < 4:
        return None

    center = polygon.centroid(projector)
    if center is None:
        return None

    p0, p1, p2 = ring[0], ring[1], ring[2]
    e1 = (p1.east - p0.east, p1.north - p0.north)
    e2 = (p2.east - p1.east, p2.north - p1.north)
    len1 = math.hypot(*e1)
    len2 = math.hypot(*e2)
    if len1 < _MIN_EDGE or len2 < _MIN_EDGE:
        return None

    d1 = (e1[0] / len1, e1[1] / len1)
    d2 = (e2[0] / len2, e2[1] / len2)
    if len1 <= len2:
        return OrientedBox(center, len1, len2, d1, d2)
    return OrientedBox(center, len2, len1, d2, d1)
