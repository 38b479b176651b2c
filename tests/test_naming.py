"""Tests for name parsing, neighbor search and sequence interpolation."""

import logging

import pytest

from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.issues import IssueKind
from mapassist.core.naming.interpolation import NameInterpolator, SpatialOrdering, spatial_ordering
from mapassist.core.naming.name_parts import NameParts
from mapassist.core.naming.neighbors import NeighborSearch
from mapassist.core.store.feature_store import InMemoryFeatureStore

RADIUS = 50.0


@pytest.fixture
def search(projector):
    return NeighborSearch(projector)


@pytest.fixture
def interpolator(projector, search):
    return NameInterpolator(projector, search)


@pytest.fixture
def explain(interpolator, center_of):
    """Run the interpolator for ``target`` over a store holding ``others``."""

    def _explain(target, *others, level="1"):
        store = InMemoryFeatureStore([target, *others], level=level)
        return interpolator.explain(target, center_of(target), level, store, RADIUS)

    return _explain


class TestNameParts:
    def test_padded(self):
        assert NameParts.parse("B3-023") == NameParts("B3-", 23, 3)

    def test_unpadded(self):
        assert NameParts.parse("C10") == NameParts("C", 10, 0)

    def test_digits_only(self):
        assert NameParts.parse("42") == NameParts("", 42, 0)

    def test_single_zero_is_not_padding(self):
        assert NameParts.parse("R0") == NameParts("R", 0, 0)

    def test_all_zero_run(self):
        assert NameParts.parse("X000") == NameParts("X", 0, 3)

    def test_inner_digits_stay_in_prefix(self):
        parts = NameParts.parse("L2-P15")
        assert parts.prefix == "L2-P"
        assert parts.number == 15

    def test_no_trailing_digits(self):
        assert NameParts.parse("Lobby") is None
        assert NameParts.parse("A1b") is None
        assert NameParts.parse("") is None

    def test_format_keeps_padding(self):
        assert NameParts("B3-", 23, 3).format(24) == "B3-024"

    def test_decrement_keeps_padding(self):
        assert NameParts.parse("B3-023").format(22) == "B3-022"

    def test_format_without_padding(self):
        assert NameParts("C", 10, 0).format(9) == "C9"

    def test_format_override_and_overflow(self):
        assert NameParts("P", 9, 0).format(8, 2) == "P08"
        assert NameParts("", 999, 3).format(1000) == "1000"


class TestSpatialOrdering:
    def test_before(self):
        r = spatial_ordering((-1, 0), (0, 0), (2, 0))
        assert r.ordering is SpatialOrdering.BEFORE
        assert r.t == pytest.approx(-0.5)

    def test_between_with_offset(self):
        r = spatial_ordering((1, 1), (0, 0), (2, 0))
        assert r.ordering is SpatialOrdering.BETWEEN
        assert r.t == pytest.approx(0.5)
        assert r.offset == pytest.approx(1.0)
        assert r.segment_length == pytest.approx(2.0)

    def test_after(self):
        assert spatial_ordering((3, 0), (0, 0), (2, 0)).ordering is SpatialOrdering.AFTER

    def test_endpoints_count_as_between(self):
        assert spatial_ordering((0, 0), (0, 0), (2, 0)).ordering is SpatialOrdering.BETWEEN
        assert spatial_ordering((2, 0), (0, 0), (2, 0)).ordering is SpatialOrdering.BETWEEN

    def test_coincident_references(self):
        assert spatial_ordering((1, 1), (0, 0), (0, 0)) is None


class TestNeighborSearch:
    def test_lateral_filters_and_sorts(self, make_rect, center_of, search):
        target = make_rect(0, 0)
        near = make_rect(2.5, 0, name="N1")
        farther = make_rect(5, 0, name="N2")
        other_level = make_rect(-2.5, 0, name="X1", level="2")
        unnamed = make_rect(-5, 0)
        store = InMemoryFeatureStore([target, farther, near, other_level, unnamed], level="1")

        found = search.find_candidates(center_of(target), target, "1", RADIUS, store)
        assert [c.name for c in found] == ["N1", "N2"]
        assert found[0].distance_m < found[1].distance_m

    def test_distance_in_meters(self, geo, make_rect, center_of, projector, search):
        target, near = make_rect(0, 0), make_rect(2.5, 0, name="N1")
        store = InMemoryFeatureStore([target, near], level="1")
        point = center_of(target)

        found = search.find_candidates(point, target, "1", RADIUS, store)
        expected = projector.metrics.great_circle_distance(point, geo(2.5, 2.5))
        assert found[0].distance_m == pytest.approx(expected, rel=1e-4)

    def test_no_level_means_no_candidates(self, make_rect, center_of, search):
        target, near = make_rect(0, 0), make_rect(2.5, 0, name="N1")
        store = InMemoryFeatureStore([target, near], level="1")
        assert search.find_candidates(center_of(target), target, None, RADIUS, store) == []

    def test_corridor_ignores_other_rows(self, make_rect, center_of, search):
        target = make_rect(0, 0)
        same_row = make_rect(2.5, 0, name="N1")
        next_row = make_rect(0, 20, name="N2")
        store = InMemoryFeatureStore([target, same_row, next_row], level="1")

        found = search.find_candidates(center_of(target), target, "1", RADIUS, store, needed=1)
        assert [c.name for c in found] == ["N1"]

    def test_circular_fallback_when_corridor_is_short(self, make_rect, center_of, search):
        target = make_rect(0, 0)
        same_row = make_rect(2.5, 0, name="N1")
        next_row = make_rect(0, 20, name="N2")
        store = InMemoryFeatureStore([target, same_row, next_row], level="1")

        found = search.find_candidates(center_of(target), target, "1", RADIUS, store, needed=2)
        assert [c.name for c in found] == ["N1", "N2"]

    def test_smaller_circular_result_keeps_corridor(self, make_rect, center_of, search):
        target = make_rect(0, 0)
        same_row = make_rect(2.5, 0, name="N1")
        store = InMemoryFeatureStore([target, same_row], level="1")

        found = search.find_candidates(center_of(target), target, "1", 0.5, store, needed=2)
        assert [c.name for c in found] == ["N1"]

    def test_radius_bounds_circular_search(self, make_rect, center_of, search):
        target = make_rect(0, 0)
        far = make_rect(0, 120, name="FAR")  # ~80 m north
        store = InMemoryFeatureStore([target, far], level="1")
        assert search.find_candidates(center_of(target), target, "1", RADIUS, store) == []

    def test_without_oriented_box_uses_circle(self, geo, make_rect, search):
        triangle = MapPolygon(nodes=[geo(0, 0), geo(2.5, 0), geo(0, 5), geo(0, 0)], tags={"level": "1"})
        near = make_rect(0, 20, name="N1")
        store = InMemoryFeatureStore([triangle, near], level="1")

        found = search.find_candidates(geo(0.8, 1.6), triangle, "1", RADIUS, store)
        assert [c.name for c in found] == ["N1"]

    def test_find_nearest(self, make_rect, center_of, search):
        target = make_rect(0, 0)
        a, b = make_rect(5, 0, name="FAR"), make_rect(2.5, 0, name="NEAR")
        store = InMemoryFeatureStore([target, a, b], level="1")
        assert search.find_nearest(center_of(target), target, "1", RADIUS, store) is b

    def test_find_nearest_none(self, make_rect, center_of, search):
        target = make_rect(0, 0)
        store = InMemoryFeatureStore([target], level="1")
        assert search.find_nearest(center_of(target), target, "1", RADIUS, store) is None

    def test_distance_to_open_way(self, geo, projector, search):
        way = MapPolygon(nodes=[geo(0, 0), geo(10, 0)])
        point = geo(5, 3)
        expected = projector.metrics.great_circle_distance(point, geo(5, 0))
        assert search.distance_to_polygon(point, way) == pytest.approx(expected, rel=1e-4)

    def test_distance_to_single_node(self, geo, projector, search):
        node = MapPolygon(nodes=[geo(3, 4)])
        point = geo(0, 0)
        expected = projector.metrics.great_circle_distance(point, geo(3, 4))
        assert search.distance_to_polygon(point, node) == pytest.approx(expected, rel=1e-4)

    def test_distance_without_nodes(self, geo, search):
        assert search.distance_to_polygon(geo(0, 0), MapPolygon()) is None

    def test_logs_strategy(self, make_rect, center_of, search, caplog):
        target = make_rect(0, 0)
        store = InMemoryFeatureStore([target, make_rect(2.5, 0, name="N1")], level="1")
        with caplog.at_level(logging.DEBUG, logger="mapassist"):
            search.find_candidates(center_of(target), target, "1", RADIUS, store, needed=2)
        assert "widening to radius" in caplog.text


class TestNameInterpolator:
    def test_between_consecutive_gap(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="A301"), make_rect(5, 0, name="A303"))
        assert r.name == "A302"
        assert r.ordering is SpatialOrdering.BETWEEN
        assert r.issues == []

    def test_order_of_neighbors_does_not_matter(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="A303"), make_rect(5, 0, name="A301"))
        assert r.name == "A302"

    def test_gap_of_two_outside_segment_fails(self, make_rect, explain):
        r = explain(make_rect(5, 0), make_rect(0, 0, name="A301"), make_rect(2.5, 0, name="A303"))
        assert r.name is None
        assert r.issues[0].code == "NOT_BETWEEN"
        assert r.issues[0].kind is IssueKind.PATTERN_REJECTED

    def test_gap_of_two_off_line_fails(self, make_rect, explain):
        r = explain(make_rect(2.5, 2), make_rect(0, 0, name="A301"), make_rect(5, 0, name="A303"))
        assert r.name is None
        assert r.issues[0].code == "OFF_LINE"

    def test_gap_of_two_slightly_off_line(self, make_rect, explain):
        r = explain(make_rect(2.5, 0.4), make_rect(0, 0, name="A301"), make_rect(5, 0, name="A303"))
        assert r.name == "A302"

    def test_zero_padding_preserved(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="B3-023"), make_rect(5, 0, name="B3-025"))
        assert r.name == "B3-024"

    def test_widest_padding_wins(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="P07"), make_rect(5, 0, name="P9"))
        assert r.name == "P08"

    def test_extend_after(self, make_rect, explain):
        r = explain(make_rect(5, 0), make_rect(0, 0, name="C10"), make_rect(2.5, 0, name="C11"))
        assert r.name == "C12"
        assert r.ordering is SpatialOrdering.AFTER

    def test_extend_before(self, make_rect, explain):
        r = explain(make_rect(-2.5, 0), make_rect(0, 0, name="C10"), make_rect(2.5, 0, name="C11"))
        assert r.name == "C9"
        assert r.ordering is SpatialOrdering.BEFORE

    def test_gap_of_one_between_fails(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="C10"), make_rect(5, 0, name="C11"))
        assert r.name is None
        assert r.issues[0].code == "NO_ROOM_BETWEEN"

    def test_before_must_stay_positive(self, make_rect, explain):
        r = explain(make_rect(-2.5, 0), make_rect(0, 0, name="D1"), make_rect(2.5, 0, name="D2"))
        assert r.name is None
        assert r.issues[0].code == "NON_POSITIVE"

    @pytest.mark.parametrize("low,high", [("A301", "A304"), ("A301", "A301")])
    def test_unsupported_gaps(self, make_rect, explain, low, high):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name=low), make_rect(5, 0, name=high))
        assert r.name is None
        assert r.issues[0].code == "UNSUPPORTED_GAP"

    def test_mismatched_prefixes(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="A301"), make_rect(5, 0, name="B301"))
        assert r.issues[0].code == "PREFIX_MISMATCH"

    def test_charset_rejected(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="A 301"), make_rect(5, 0, name="A303"))
        assert r.name is None
        assert r.issues[0].code == "CHARSET"

    def test_custom_charset(self, make_rect, center_of, projector, search):
        target = make_rect(2.5, 0)
        store = InMemoryFeatureStore(
            [target, make_rect(0, 0, name="B3-023"), make_rect(5, 0, name="B3-025")], level="1",
        )
        strict = NameInterpolator(projector, search, name_charset=r"[A-Z0-9]+")
        assert strict.interpolate(target, center_of(target), "1", store, RADIUS) is None

    def test_no_trailing_number(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="Lobby"), make_rect(5, 0, name="A303"))
        assert r.issues[0].code == "NO_TRAILING_NUMBER"

    def test_single_neighbor(self, make_rect, explain):
        r = explain(make_rect(2.5, 0), make_rect(0, 0, name="A301"))
        assert r.name is None
        assert r.issues[0].kind is IssueKind.NO_MATCH

    def test_only_two_nearest_used(self, make_rect, explain):
        r = explain(
            make_rect(2.5, 0),
            make_rect(0, 0, name="A301"),
            make_rect(5, 0, name="A303"),
            make_rect(10, 0, name="Z999"),
        )
        assert r.name == "A302"

    def test_other_levels_ignored(self, make_rect, explain):
        r = explain(
            make_rect(2.5, 0),
            make_rect(0, 0, name="A301"),
            make_rect(5, 0, name="A303", level="2"),
        )
        assert r.name is None

    def test_interpolate_returns_name_only(self, make_rect, center_of, interpolator):
        target = make_rect(2.5, 0)
        store = InMemoryFeatureStore(
            [target, make_rect(0, 0, name="A301"), make_rect(5, 0, name="A303")], level="1",
        )
        assert interpolator.interpolate(target, center_of(target), "1", store, RADIUS) == "A302"

    def test_rejection_logged(self, make_rect, explain, caplog):
        with caplog.at_level(logging.DEBUG, logger="mapassist"):
            explain(make_rect(2.5, 0), make_rect(0, 0, name="C10"), make_rect(5, 0, name="C11"))
        assert "NO_ROOM_BETWEEN" in caplog.text
