"""Pick the polygon a user pointed at."""

from __future__ import annotations

import logging
from typing import Iterable

from shapely.geometry import Point

from mapassist.core.geometry.points import GeoPoint
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.geometry.projection import Projector

logger = logging.getLogger(__name__)


class PolygonSelector:
    """Resolves a point to the closed area polygon containing it.

    When several polygons contain the point the one with the smallest
    bounding-envelope area wins; equal envelopes keep input order.
    """

    def __init__(self, projector: Projector) -> None:
        self.projector = projector

    def containing(self, point: GeoPoint, candidates: Iterable[MapPolygon]) -> list[MapPolygon]:
        """All closed area candidates whose boundary contains ``point``, in input order."""
        target = Point(self.projector.to_planar(point))
        hits = []
        for polygon in candidates:
            if not polygon.closed or not polygon.is_area:
                continue
            shape = polygon.to_shapely(self.projector)
            if shape is None:
                continue
            if not shape.is_valid:
                shape = shape.buffer(0)  # repair self-intersections
            if shape.contains(target):
                hits.append(polygon)
        return hits

    def select(self, point: GeoPoint, candidates: Iterable[MapPolygon]) -> MapPolygon | None:
        hits = self.containing(point, candidates)
        if not hits:
            logger.debug("No polygon contains %s", point)
            return None
        # min() keeps the first of equal keys, so ties resolve by input order
        winner = min(hits, key=lambda p: p.envelope_area(self.projector))
        logger.debug("Selected %s out of %d containing polygons", winner.id, len(hits))
        return winner
