"""Ring coordinate validation and cleanup.

Catches degenerate input BEFORE it reaches Shapely or the search code, so
callers can bail out with an issue code instead of a topology exception.
"""

from __future__ import annotations

import math
from typing import Sequence

from mapassist.core.issues import AssistIssue, IssueKind

Coord = tuple[float, float]


# ── 1. Coordinate-level validation ──────────────────────────────────────

def validate_ring(coords: Sequence[Coord], min_points: int = 3) -> list[AssistIssue]:
    """Check a ring's raw coordinates before any metric computation.

    ``min_points`` counts distinct points with the closing repeat removed;
    oriented boxes need 4, centroids and areas need 3.
    """
    issues: list[AssistIssue] = []

    if len(coords) < min_points:
        issues.append(AssistIssue(
            IssueKind.INPUT_INVALID,
            "TOO_FEW_POINTS",
            f"Need at least {min_points} points, got {len(coords)}",
        ))
        return issues

    for i, (x, y) in enumerate(coords):
        if not (math.isfinite(x) and math.isfinite(y)):
            issues.append(AssistIssue(
                IssueKind.INPUT_INVALID,
                "NON_FINITE_COORD",
                f"Point {i} has non-finite coordinate ({x}, {y})",
            ))
    if issues:
        return issues

    unique = distinct_points(coords)
    if len(unique) < min_points:
        issues.append(AssistIssue(
            IssueKind.INPUT_INVALID,
            "DEGENERATE_AFTER_DEDUP",
            f"Only {len(unique)} distinct points, need {min_points}",
        ))
        return issues

    if _all_collinear(unique):
        issues.append(AssistIssue(
            IssueKind.INPUT_INVALID,
            "ALL_COLLINEAR",
            "All points are collinear, ring has zero area",
        ))

    return issues


# ── 2. Ring cleanup ────────────────────────────────────────────────────

def distinct_points(coords: Sequence[Coord]) -> list[Coord]:
    """Drop consecutive duplicates and the closing repeat."""
    result = _deduplicate_consecutive(list(coords))
    if len(result) > 1 and points_equal(result[0], result[-1]):
        result = result[:-1]
    return result


# ── Helpers ─────────────────────────────────────────────────────────────

def points_equal(a: Coord, b: Coord, eps: float = 1e-9) -> bool:
    return abs(a[0] - b[0]) < eps and abs(a[1] - b[1]) < eps


def _deduplicate_consecutive(coords: list[Coord]) -> list[Coord]:
    if not coords:
        return []
    result = [coords[0]]
    for c in coords[1:]:
        if not points_equal(c, result[-1]):
            result.append(c)
    return result


def _all_collinear(points: list[Coord]) -> bool:
    """Check if all points lie on a single line using cross product."""
    if len(points) < 3:
        return True
    x0, y0 = points[0]
    x1, y1 = points[1]
    base = math.hypot(x1 - x0, y1 - y0)
    for x2, y2 in points[2:]:
        cross = (x1 - x0) * (y2 - y0) - (y1 - y0) * (x2 - x0)
        # relative to edge lengths so projected (large) coordinates behave
        if abs(cross) > 1e-9 * base * math.hypot(x2 - x0, y2 - y0):
            return False
    return True
