"""Click-to-select with name suggestion.

A click in SELECT mode picks the innermost polygon under the cursor, makes it
the only selection, guarantees it carries a ``name`` tag and opens the tag
editor on that field. If the polygon is unnamed and a level is active, a
name is suggested: interpolated from the numbering of its neighbors, else
copied from the nearest named neighbor, else left empty.

The suggestion is only handed to the editor; the user confirms it there.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field

from mapassist.actions.context import AssistContext, EditorMode
from mapassist.core.geometry.points import BBox, GeoPoint
from mapassist.core.geometry.polygon import NAME_KEY, MapPolygon
from mapassist.core.issues import AssistIssue, IssueKind, ProjectionError
from mapassist.core.store.commands import SetTag
from mapassist.core.store.feature_store import FeatureSnapshot, is_current
from mapassist.models.schemas import ClickResponse

logger = logging.getLogger(__name__)

SOURCE_INTERPOLATED = "interpolated"
SOURCE_NEAREST = "nearest"


@dataclass
class ClickOutcome:
    polygon: MapPolygon
    suggested_name: str | None = None
    suggestion_source: str | None = None
    level: str | None = None
    issues: list[AssistIssue] = field(default_factory=list)

    def to_dict(self) -> dict:
        return ClickResponse(
            polygon_id=self.polygon.id,
            current_name=self.polygon.name,
            suggested_name=self.suggested_name,
            suggestion_source=self.suggestion_source,
            level=self.level,
        ).model_dump()


def handle_click(point: GeoPoint, ctx: AssistContext) -> ClickOutcome | None:
    """Resolve a click; None when the click is ignored or hits nothing."""
    if not ctx.enabled or ctx.mode is not EditorMode.SELECT:
        return None

    try:
        candidates = ctx.store.query_by_bbox(BBox.around(point))
        polygon = ctx.selector.select(point, candidates)
        if polygon is None:
            return None

        snapshot = FeatureSnapshot.of(polygon)
        outcome = ClickOutcome(polygon=polygon, level=ctx.store.current_level())
        if not polygon.has_name:
            _suggest_name(point, outcome, ctx)
    except ProjectionError as e:
        logger.warning("Click at %s aborted: %s", tuple(point), e)
        raise

    if not is_current(ctx.store, snapshot):
        logger.warning("Polygon %s changed before the click was applied; ignoring", polygon.id)
        return None

    if ctx.selection is not None:
        ctx.selection.replace_selection([polygon.id])
    if NAME_KEY not in polygon.tags:
        ctx.command_log.submit(SetTag((polygon.id,), NAME_KEY, ""))
        # the store may hold a different object than the query returned
        outcome.polygon = ctx.store.get(polygon.id) or polygon

    if ctx.tag_editor is not None:
        ctx.tag_editor.focus_field(NAME_KEY)
        if outcome.suggested_name:
            ctx.tag_editor.set_value(NAME_KEY, outcome.suggested_name)

    logger.info("Selected %s (suggestion: %s)", polygon.id, outcome.suggested_name or "none")
    return outcome


def _suggest_name(point: GeoPoint, outcome: ClickOutcome, ctx: AssistContext) -> None:
    level = outcome.level
    if level is None:
        outcome.issues.append(AssistIssue(IssueKind.NO_MATCH, "NO_LEVEL", "No active level; name search skipped"))
        logger.debug("No active level, skipping name search")
        return

    # search from the polygon center, not the click point
    center = outcome.polygon.centroid(ctx.projector)
    origin = ctx.projector.to_geodetic(center) if center is not None else point
    radius = ctx.settings.search_radius_m

    result = ctx.interpolator.explain(outcome.polygon, origin, level, ctx.store, radius)
    outcome.issues.extend(result.issues)
    if result.ok:
        outcome.suggested_name = result.name
        outcome.suggestion_source = SOURCE_INTERPOLATED
        return

    nearest = ctx.neighbors.find_nearest(origin, outcome.polygon, level, radius, ctx.store)
    if nearest is not None:
        outcome.suggested_name = nearest.name
        outcome.suggestion_source = SOURCE_NEAREST
        logger.debug("Copying name %r from nearest neighbor %s", nearest.name, nearest.id)
    else:
        outcome.issues.append(AssistIssue(IssueKind.NO_MATCH, "NO_NEIGHBOR",
                                          f"No named polygon on level {level!r} within {radius:g} m",
                                          location=tuple(origin)))
