"""Map Assist: entry point for host editor integrations."""

from __future__ import annotations

import logging
from typing import Iterable

from mapassist.actions.click_select import ClickOutcome, handle_click
from mapassist.actions.combine import CombineResult, combine_polygons
from mapassist.actions.context import AssistContext, EditorMode, TagEditor
from mapassist.actions.level_assign import LevelAssigner
from mapassist.config import Settings, settings
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.geometry.projection import Projector
from mapassist.core.store.commands import CommandLog, Sequence
from mapassist.core.store.feature_store import FeatureStore, InMemoryFeatureStore, StoreCommandLog
from mapassist.models.schemas import CombineRequest, GeoPointInput
from mapassist.utils.units import from_meters, to_meters

logger = logging.getLogger(__name__)


class MapAssistant:
    """One assistant per editing session.

    The host forwards its events here: clicks, mode switches, and feature
    additions, removals and retags. All mutations go out through the
    command log the assistant was built with.
    """

    def __init__(
        self,
        store: FeatureStore,
        command_log: CommandLog | None = None,
        projector: Projector | None = None,
        tag_editor: TagEditor | None = None,
        cfg: Settings | None = None,
    ) -> None:
        cfg = cfg or settings
        if command_log is None:
            if not isinstance(store, InMemoryFeatureStore):
                raise ValueError("A command log is required for external feature stores")
            command_log = StoreCommandLog(store)
        self.ctx = AssistContext(
            store=store,
            command_log=command_log,
            projector=projector or Projector(cfg.source_crs, cfg.planar_crs),
            settings=cfg,
            tag_editor=tag_editor,
        )
        self.levels = LevelAssigner(self.ctx)
        logger.debug("%s ready (planar CRS %s)", cfg.app_name, cfg.planar_crs)

    @classmethod
    def in_memory(
        cls,
        features: Iterable[dict] = (),
        level: str | None = None,
        **kwargs,
    ) -> "MapAssistant":
        """Assistant over an in-memory store built from host payloads."""
        return cls(InMemoryFeatureStore.from_features(features, level=level), **kwargs)

    @property
    def store(self) -> FeatureStore:
        return self.ctx.store

    @property
    def enabled(self) -> bool:
        return bool(self.ctx.enabled)

    def set_enabled(self, enabled: bool) -> None:
        self.ctx.enabled = enabled
        logger.info("Assistant %s", "enabled" if enabled else "disabled")

    # ── Host events ────────────────────────────────────────────────────

    def click(self, lat: float, lon: float) -> ClickOutcome | None:
        point = GeoPointInput(lat=lat, lon=lon).to_point()
        return handle_click(point, self.ctx)

    def combine(self, ids: Iterable[str]) -> CombineResult:
        req = CombineRequest(ids=list(ids))
        return combine_polygons(req.ids, self.ctx)

    def set_mode(self, mode: EditorMode) -> Sequence | None:
        old, self.ctx.mode = self.ctx.mode, mode
        return self.levels.mode_changed(old, mode)

    def features_added(self, polygons: Iterable[MapPolygon]) -> None:
        self.levels.features_added(polygons)

    def features_removed(self, ids: Iterable[str]) -> None:
        self.levels.features_removed(ids)

    def tags_changed(self, polygon: MapPolygon) -> None:
        self.levels.tags_changed(polygon)

    # ── Settings ───────────────────────────────────────────────────────

    def search_radius(self, unit: str = "m") -> float:
        return from_meters(self.ctx.settings.search_radius_m, unit)

    def set_search_radius(self, value: float, unit: str = "m") -> None:
        meters = to_meters(value, unit)
        # re-validate through the settings model
        self.ctx.settings = Settings.model_validate(
            {**self.ctx.settings.model_dump(), "search_radius_m": meters}
        )
