"""Minimal-area bounding rectangle for a pooled point set.

Two steps:

1. CONVEX HULL: Graham scan anchored at the lowest (then leftmost) point.
2. ROTATING CALIPERS: every hull edge is tried as a rectangle side; the
   rectangle with the smallest area wins.

Degenerate input (fewer than 3 hull points, or no usable edge) falls back to
the axis-aligned bounding box of all input points.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import Iterable, Sequence

from shapely.geometry import Polygon

from mapassist.core.geometry.points import GeoPoint, PlanarPoint
from mapassist.core.geometry.projection import Projector

logger = logging.getLogger(__name__)

_MIN_EDGE = 1e-10


@dataclass(frozen=True)
class Quadrilateral:
    """Four ordered corners, closed (first corner repeated at the end)."""

    corners: tuple[PlanarPoint, ...]
    axis_aligned_fallback: bool = False

    @property
    def area(self) -> float:
        return Polygon(self.corners).area

    def to_geodetic(self, projector: Projector) -> list[GeoPoint]:
        return [projector.to_geodetic(c) for c in self.corners]


# ── 1. Convex hull ─────────────────────────────────────────────────────

def cross(a: PlanarPoint, b: PlanarPoint, c: PlanarPoint) -> float:
    """Z of (b - a) x (c - a); positive for a left turn."""
    return (b[0] - a[0]) * (c[1] - a[1]) - (b[1] - a[1]) * (c[0] - a[0])


def convex_hull(points: Iterable[tuple[float, float]]) -> list[PlanarPoint]:
    """Graham scan. Collinear points are dropped (turns must be strictly left)."""
    pts = _unique(points)
    if len(pts) < 3:
        return pts

    anchor = min(pts, key=lambda p: (p.north, p.east))
    rest = [p for p in pts if p != anchor]
    rest.sort(key=lambda p: (
        math.atan2(p.north - anchor.north, p.east - anchor.east),
        math.hypot(p.east - anchor.east, p.north - anchor.north),
    ))

    hull: list[PlanarPoint] = [anchor]
    for p in rest:
        while len(hull) >= 2 and cross(hull[-2], hull[-1], p) <= 0:
            hull.pop()
        hull.append(p)
    return hull


# ── 2. Rotating calipers ───────────────────────────────────────────────

def minimal_rectangle(hull: Sequence[PlanarPoint]) -> list[PlanarPoint] | None:
    """Four corners of the minimum-area rectangle enclosing ``hull``."""
    n = len(hull)
    if n < 3:
        return None

    best_area = math.inf
    best: list[PlanarPoint] | None = None

    for i in range(n):
        p1 = hull[i]
        p2 = hull[(i + 1) % n]
        dx = p2.east - p1.east
        dy = p2.north - p1.north
        edge_len = math.hypot(dx, dy)
        if edge_len < _MIN_EDGE:
            continue

        ux, uy = dx / edge_len, dy / edge_len
        vx, vy = -uy, ux

        us = [(p.east - p1.east) * ux + (p.north - p1.north) * uy for p in hull]
        vs = [(p.east - p1.east) * vx + (p.north - p1.north) * vy for p in hull]
        min_u, max_u = min(us), max(us)
        min_v, max_v = min(vs), max(vs)

        area = (max_u - min_u) * (max_v - min_v)
        if area < best_area:
            best_area = area
            best = [
                PlanarPoint(p1.east + u * ux + v * vx, p1.north + u * uy + v * vy)
                for u, v in ((min_u, min_v), (max_u, min_v), (max_u, max_v), (min_u, max_v))
            ]

    return best


def axis_aligned_box(points: Iterable[tuple[float, float]]) -> list[PlanarPoint] | None:
    pts = list(points)
    if not pts:
        return None
    xs = [p[0] for p in pts]
    ys = [p[1] for p in pts]
    minx, maxx, miny, maxy = min(xs), max(xs), min(ys), max(ys)
    return [
        PlanarPoint(minx, miny),
        PlanarPoint(maxx, miny),
        PlanarPoint(maxx, maxy),
        PlanarPoint(minx, maxy),
    ]


# ── 3. Public entry points ─────────────────────────────────────────────

def fit_rectangle(points: Iterable[tuple[float, float]], min_points: int = 3) -> Quadrilateral | None:
    """Fit the minimal bounding rectangle around planar ``points``.

    Returns None when fewer than ``min_points`` distinct points are given.
    """
    pts = _unique(points)
    if len(pts) < min_points or not pts:
        logger.debug("Rectangle fit needs %d distinct points, got %d", min_points, len(pts))
        return None

    fallback = False
    hull = convex_hull(pts)
    corners = minimal_rectangle(hull) if len(hull) >= 3 else None
    if corners is None:
        logger.debug("Degenerate hull (%d points), using axis-aligned box", len(hull))
        corners = axis_aligned_box(pts)
        fallback = True

    return Quadrilateral(corners=tuple(corners) + (corners[0],), axis_aligned_fallback=fallback)


def fit_rectangle_geodetic(
    points: Iterable[GeoPoint],
    projector: Projector,
    min_points: int = 3,
) -> list[GeoPoint] | None:
    """Project, fit, and convert the closed corner ring back to geodetic."""
    quad = fit_rectangle((projector.to_planar(p) for p in points), min_points)
    if quad is None:
        return None
    return quad.to_geodetic(projector)


def _unique(points: Iterable[tuple[float, float]]) -> list[PlanarPoint]:
    seen: set[PlanarPoint] = set()
    result: list[PlanarPoint] = []
    for p in points:
        pp = PlanarPoint(float(p[0]), float(p[1]))
        if pp not in seen:
            seen.add(pp)
            result.append(pp)
    return result
