"""Merge several polygons into their minimal bounding rectangle."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable

from mapassist.actions.context import AssistContext
from mapassist.core.geometry.points import GeoPoint
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.geometry.rectangle import fit_rectangle_geodetic
from mapassist.core.issues import AssistIssue, IssueKind, ProjectionError
from mapassist.core.store.commands import AddFeature, DeleteFeatures, Sequence
from mapassist.core.store.feature_store import FeatureSnapshot, is_current

logger = logging.getLogger(__name__)


@dataclass
class CombineResult:
    polygon: MapPolygon | None = None
    command: Sequence | None = None
    issues: list[AssistIssue] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.command is not None

    def fail(self, kind: IssueKind, code: str, message: str) -> "CombineResult":
        self.issues.append(AssistIssue(kind, code, message))
        return self


def reference_polygon(polygons: list[MapPolygon]) -> MapPolygon | None:
    """First polygon with a non-empty name, else the first one."""
    for p in polygons:
        if p.has_name:
            return p
    return polygons[0] if polygons else None


def pooled_nodes(polygons: Iterable[MapPolygon]) -> list[GeoPoint]:
    seen: set[GeoPoint] = set()
    nodes: list[GeoPoint] = []
    for p in polygons:
        for n in p.nodes:
            if n not in seen:
                seen.add(n)
                nodes.append(n)
    return nodes


def combine_polygons(ids: Iterable[str], ctx: AssistContext) -> CombineResult:
    """Replace the given polygons by one rectangle carrying the reference tags.

    The new polygon and the deletion of every source are submitted as a
    single Sequence; nothing is submitted when any step fails.
    """
    result = CombineResult()
    wanted = list(dict.fromkeys(ids))
    if not wanted:
        return result.fail(IssueKind.INPUT_INVALID, "EMPTY_SELECTION", "Select at least one polygon")

    sources = []
    for feature_id in wanted:
        polygon = ctx.store.get(feature_id)
        if polygon is None:
            return result.fail(IssueKind.INPUT_INVALID, "UNKNOWN_FEATURE", f"Feature {feature_id} not found")
        sources.append(polygon)
    snapshots = [FeatureSnapshot.of(p) for p in sources]

    nodes = pooled_nodes(sources)
    min_points = ctx.settings.min_rectangle_points
    if len(nodes) < min_points:
        return result.fail(IssueKind.INPUT_INVALID, "TOO_FEW_POINTS",
                           f"Selected polygons must contain at least {min_points} nodes, got {len(nodes)}")

    try:
        corners = fit_rectangle_geodetic(nodes, ctx.projector, min_points)
    except ProjectionError as e:
        logger.warning("Combine aborted, projection failed: %s", e)
        raise
    if corners is None:
        return result.fail(IssueKind.INPUT_INVALID, "NO_RECTANGLE", "Could not calculate bounding rectangle")

    reference = reference_polygon(sources)
    rectangle = MapPolygon(nodes=corners, tags=dict(reference.tags), is_area=True)
    command = Sequence(
        f"Combine {len(sources)} ways to rectangle",
        (AddFeature(rectangle), DeleteFeatures(tuple(p.id for p in sources))),
    )

    stale = [s.id for s in snapshots if not is_current(ctx.store, s)]
    if stale:
        logger.warning("Combine aborted, %d source(s) changed: %s", len(stale), ", ".join(stale))
        return result.fail(IssueKind.STALE_PRECONDITION, "SOURCE_CHANGED",
                           f"Changed since selection: {', '.join(stale)}")

    ctx.command_log.submit(command)
    result.polygon = rectangle
    result.command = command
    logger.info("Combined %d polygons into %s (tags from %s)", len(sources), rectangle.id, reference.id)
    return result
