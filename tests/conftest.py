"""Shared fixtures: polygons laid out in planar offsets around a fixed origin."""

import math

import pytest

from mapassist.core.geometry.points import GeoPoint, PlanarPoint
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.geometry.projection import Projector

ORIGIN = GeoPoint(48.0, 11.0)


@pytest.fixture(scope="session")
def projector():
    return Projector("EPSG:4326", "EPSG:3857")


@pytest.fixture
def geo(projector):
    """Planar offset (east, north) from ORIGIN -> GeoPoint."""
    base = projector.to_planar(ORIGIN)

    def _geo(x, y):
        return projector.to_geodetic(PlanarPoint(base.east + x, base.north + y))

    return _geo


@pytest.fixture
def make_rect(geo):
    """Rectangle with its first corner at (x, y), first edge ``w`` long.

    ``angle`` rotates it (degrees, counter-clockwise) about the first corner.
    """

    def _make(x, y, w=2.5, h=5.0, name=None, level="1", angle=0.0, closed=True, **tags):
        a = math.radians(angle)
        ca, sa = math.cos(a), math.sin(a)
        local = [(0, 0), (w, 0), (w, h), (0, h)]
        nodes = [geo(x + dx * ca - dy * sa, y + dx * sa + dy * ca) for dx, dy in local]
        if closed:
            nodes.append(nodes[0])
        if name is not None:
            tags["name"] = name
        if level is not None:
            tags["level"] = level
        return MapPolygon(nodes=nodes, tags=tags)

    return _make


@pytest.fixture
def center_of(projector):
    def _center(polygon):
        return projector.to_geodetic(polygon.centroid(projector))

    return _center
