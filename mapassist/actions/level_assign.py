"""Tag newly drawn polygons with the active level once drawing ends.

The host reports additions, removals and tag changes as they happen. New
polygons without a ``level`` tag are remembered; when the editor leaves DRAW
mode (or the host otherwise signals that drawing has settled) every
remembered polygon that still exists, is unmodified and still lacks a level
is tagged in one command.
"""

from __future__ import annotations

import logging
from typing import Iterable

from mapassist.actions.context import AssistContext, EditorMode
from mapassist.core.geometry.polygon import LEVEL_KEY, MapPolygon
from mapassist.core.store.commands import Sequence, SetTag
from mapassist.core.store.feature_store import FeatureSnapshot, is_current

logger = logging.getLogger(__name__)


class LevelAssigner:
    def __init__(self, ctx: AssistContext) -> None:
        self.ctx = ctx
        self._pending: dict[str, FeatureSnapshot] = {}

    @property
    def pending_ids(self) -> list[str]:
        return list(self._pending)

    def features_added(self, polygons: Iterable[MapPolygon]) -> None:
        for p in polygons:
            if LEVEL_KEY not in p.tags and p.id not in self._pending:
                self._pending[p.id] = FeatureSnapshot.of(p)

    def features_removed(self, ids: Iterable[str]) -> None:
        for i in ids:
            self._pending.pop(i, None)

    def tags_changed(self, polygon: MapPolygon) -> None:
        if polygon.id not in self._pending:
            return
        if LEVEL_KEY in polygon.tags:
            del self._pending[polygon.id]
        else:
            # unrelated retag; keep tracking at the new version
            self._pending[polygon.id] = FeatureSnapshot.of(polygon)

    def mode_changed(self, old: EditorMode, new: EditorMode) -> Sequence | None:
        if old is EditorMode.DRAW and new is not EditorMode.DRAW:
            return self.settle()
        return None

    def settle(self) -> Sequence | None:
        """Assign the active level to every tracked polygon still eligible.

        Always clears the tracked set. Returns the submitted command, or None
        when nothing was tagged.
        """
        pending, self._pending = self._pending, {}
        if not self.ctx.enabled or not pending:
            return None

        level = self.ctx.store.current_level()
        if level is None:
            logger.debug("No active level, dropping %d tracked feature(s)", len(pending))
            return None

        ids = []
        for snapshot in pending.values():
            feature = self.ctx.store.get(snapshot.id)
            if feature is None or not is_current(self.ctx.store, snapshot) or LEVEL_KEY in feature.tags:
                logger.debug("Skipping %s, removed or modified since it was drawn", snapshot.id)
                continue
            ids.append(snapshot.id)
        if not ids:
            return None

        command = Sequence(f"Assign level {level}", (SetTag(tuple(ids), LEVEL_KEY, level),))
        self.ctx.command_log.submit(command)
        logger.info("Assigned level %r to %d feature(s)", level, len(ids))
        return command
