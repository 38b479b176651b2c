"""Infer a name for an unnamed polygon from a numeric sequence in its neighbors.

Given the two nearest same-level named neighbors A and B (after ordering so
that number(A) <= number(B)) the target's position along the line A->B
decides the outcome:

    diff == 2, target between A and B, close to the line  ->  A + 1
    diff == 1, target before A                            ->  A - 1 (> 0)
    diff == 1, target after B                             ->  B + 1

Everything else is ambiguous and yields no name; callers then fall back to
copying the nearest neighbor's name.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from enum import Enum

from mapassist.core.geometry.points import GeoPoint
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.geometry.projection import Projector
from mapassist.core.issues import AssistIssue, IssueKind
from mapassist.core.naming.name_parts import NameParts
from mapassist.core.naming.neighbors import NeighborSearch
from mapassist.core.store.feature_store import FeatureStore

logger = logging.getLogger(__name__)

_MIN_SEGMENT = 1e-9


class SpatialOrdering(Enum):
    BEFORE = "before"
    BETWEEN = "between"
    AFTER = "after"


@dataclass(frozen=True)
class OrderingResult:
    ordering: SpatialOrdering
    t: float
    offset: float         # perpendicular distance to the line A-B
    segment_length: float


def spatial_ordering(
    target: tuple[float, float],
    a: tuple[float, float],
    b: tuple[float, float],
) -> OrderingResult | None:
    """Classify ``target`` by its projection parameter t on the line A->B.

    t < 0 is before A, 0 <= t <= 1 between, t > 1 after B. Returns None
    when A and B coincide.
    """
    abx, aby = b[0] - a[0], b[1] - a[1]
    seg_len = math.hypot(abx, aby)
    if seg_len < _MIN_SEGMENT:
        return None

    atx, aty = target[0] - a[0], target[1] - a[1]
    t = (atx * abx + aty * aby) / (seg_len * seg_len)
    offset = abs(abx * aty - aby * atx) / seg_len

    if t < 0:
        ordering = SpatialOrdering.BEFORE
    elif t > 1:
        ordering = SpatialOrdering.AFTER
    else:
        ordering = SpatialOrdering.BETWEEN
    return OrderingResult(ordering, t, offset, seg_len)


@dataclass
class InterpolationResult:
    name: str | None = None
    issues: list[AssistIssue] = field(default_factory=list)
    ordering: SpatialOrdering | None = None

    @property
    def ok(self) -> bool:
        return self.name is not None

    def fail(self, kind: IssueKind, code: str, message: str) -> "InterpolationResult":
        self.issues.append(AssistIssue(kind, code, message))
        logger.debug("Interpolation rejected (%s): %s", code, message)
        return self


class NameInterpolator:
    def __init__(
        self,
        projector: Projector,
        neighbors: NeighborSearch,
        name_charset: str = r"[A-Za-z0-9-]+",
        collinearity_tolerance: float = 0.10,
    ) -> None:
        self.projector = projector
        self.neighbors = neighbors
        self.charset = re.compile(name_charset)
        self.collinearity_tolerance = collinearity_tolerance

    def interpolate(
        self,
        target: MapPolygon,
        target_point: GeoPoint,
        level: str | None,
        store: FeatureStore,
        max_radius_m: float,
    ) -> str | None:
        return self.explain(target, target_point, level, store, max_radius_m).name

    def explain(
        self,
        target: MapPolygon,
        target_point: GeoPoint,
        level: str | None,
        store: FeatureStore,
        max_radius_m: float,
    ) -> InterpolationResult:
        """Run the interpolation and report why it failed, if it did."""
        result = InterpolationResult()

        candidates = self.neighbors.find_candidates(
            target_point, target, level, max_radius_m, store, needed=2,
        )
        if len(candidates) < 2:
            return result.fail(IssueKind.NO_MATCH, "TOO_FEW_NEIGHBORS",
                               f"Need 2 named neighbors, found {len(candidates)}")

        a, b = candidates[0].polygon, candidates[1].polygon
        for neighbor in (a, b):
            if not self.charset.fullmatch(neighbor.name):
                return result.fail(IssueKind.PATTERN_REJECTED, "CHARSET",
                                   f"Name {neighbor.name!r} has characters outside {self.charset.pattern}")

        parts_a, parts_b = NameParts.parse(a.name), NameParts.parse(b.name)
        if parts_a is None or parts_b is None:
            return result.fail(IssueKind.PATTERN_REJECTED, "NO_TRAILING_NUMBER",
                               f"{a.name!r} / {b.name!r} lack a trailing number")
        if parts_a.prefix != parts_b.prefix:
            return result.fail(IssueKind.PATTERN_REJECTED, "PREFIX_MISMATCH",
                               f"Prefixes {parts_a.prefix!r} and {parts_b.prefix!r} differ")

        if parts_a.number > parts_b.number:
            a, b = b, a
            parts_a, parts_b = parts_b, parts_a

        center_a, center_b = a.centroid(self.projector), b.centroid(self.projector)
        if center_a is None or center_b is None:
            return result.fail(IssueKind.INPUT_INVALID, "NO_CENTROID",
                               "Neighbor geometry is degenerate")
        order = spatial_ordering(self.projector.to_planar(target_point), center_a, center_b)
        if order is None:
            return result.fail(IssueKind.INPUT_INVALID, "COINCIDENT_NEIGHBORS",
                               "Neighbors share a center")
        result.ordering = order.ordering

        number = self._decide(parts_a.number, parts_b.number, order, result)
        if number is None:
            return result

        padding = max(parts_a.padding_width, parts_b.padding_width)
        result.name = parts_a.format(number, padding)
        logger.debug("Interpolated %r from %r and %r (%s)", result.name, a.name, b.name, order.ordering.value)
        return result

    def _decide(
        self,
        low: int,
        high: int,
        order: OrderingResult,
        result: InterpolationResult,
    ) -> int | None:
        diff = high - low
        if diff == 2:
            if order.ordering is not SpatialOrdering.BETWEEN:
                result.fail(IssueKind.PATTERN_REJECTED, "NOT_BETWEEN",
                            f"Gap of 2 needs the target between neighbors, it is {order.ordering.value}")
                return None
            if order.offset > self.collinearity_tolerance * order.segment_length:
                result.fail(IssueKind.PATTERN_REJECTED, "OFF_LINE",
                            f"Target is {order.offset:.2f} off the neighbor line "
                            f"(limit {self.collinearity_tolerance * order.segment_length:.2f})")
                return None
            return (low + high) // 2

        if diff == 1:
            if order.ordering is SpatialOrdering.BETWEEN:
                result.fail(IssueKind.PATTERN_REJECTED, "NO_ROOM_BETWEEN",
                            "Consecutive neighbors leave no number between them")
                return None
            if order.ordering is SpatialOrdering.BEFORE:
                if low - 1 <= 0:
                    result.fail(IssueKind.PATTERN_REJECTED, "NON_POSITIVE",
                                f"Decrementing {low} would not stay positive")
                    return None
                return low - 1
            return high + 1

        result.fail(IssueKind.PATTERN_REJECTED, "UNSUPPORTED_GAP",
                    f"Numeric gap {diff} is ambiguous")
        return None
