"""Map polygon representation: geodetic ring plus tag map."""

from __future__ import annotations

from dataclasses import dataclass, field
from uuid import uuid4

from shapely.geometry import Polygon

from mapassist.core.geometry.points import BBox, GeoPoint, PlanarPoint
from mapassist.core.geometry.projection import Projector
from mapassist.core.geometry.validation import distinct_points, points_equal, validate_ring

NAME_KEY = "name"
LEVEL_KEY = "level"


@dataclass
class MapPolygon:
    """A closed or open way drawn on the map, owned by a feature store."""

    id: str | None = None
    nodes: list[GeoPoint] = field(default_factory=list)
    tags: dict[str, str] = field(default_factory=dict)
    is_area: bool = True
    version: int = 0  # bumped by the store on every mutation

    def __post_init__(self) -> None:
        if not self.id:
            self.id = uuid4().hex
        self.nodes = [GeoPoint(*n) for n in self.nodes]

    @property
    def closed(self) -> bool:
        return len(self.nodes) >= 4 and points_equal(self.nodes[0], self.nodes[-1])

    @property
    def name(self) -> str:
        return self.tags.get(NAME_KEY) or ""

    @property
    def has_name(self) -> bool:
        return bool(self.name)

    @property
    def level(self) -> str | None:
        """The ``level`` tag, or None when absent or empty."""
        return self.tags.get(LEVEL_KEY) or None

    @property
    def bbox(self) -> BBox:
        return BBox.from_points(self.nodes)

    def ring_points(self) -> list[GeoPoint]:
        """Boundary nodes without the closing repeat."""
        if self.closed:
            return list(self.nodes[:-1])
        return list(self.nodes)

    def planar_ring(self, projector: Projector) -> list[PlanarPoint]:
        return [projector.to_planar(p) for p in self.ring_points()]

    def to_shapely(self, projector: Projector) -> Polygon | None:
        """Planar Shapely polygon, or None if the ring is degenerate."""
        ring = self.planar_ring(projector)
        if validate_ring(ring):
            return None
        return Polygon(ring)

    def centroid(self, projector: Projector) -> PlanarPoint | None:
        poly = self.to_shapely(projector)
        if poly is None or poly.area <= 0:
            return None
        c = poly.centroid
        if c.is_empty:
            return None
        return PlanarPoint(c.x, c.y)

    def envelope_area(self, projector: Projector) -> float:
        """Area of the planar axis-aligned bounding envelope."""
        ring = distinct_points(self.planar_ring(projector))
        if not ring:
            return float("inf")
        easts = [p[0] for p in ring]
        norths = [p[1] for p in ring]
        return abs((max(easts) - min(easts)) * (max(norths) - min(norths)))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "nodes": [list(n) for n in self.nodes],
            "tags": dict(self.tags),
            "closed": self.closed,
            "is_area": self.is_area,
        }
