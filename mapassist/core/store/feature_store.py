"""Feature store contract and an in-memory implementation.

The host editor owns the real feature collection; the engine only reads it
through ``FeatureStore`` and writes through commands. ``InMemoryFeatureStore``
backs tests and headless use: an STR-tree over node bounding boxes answers
range queries, and ``apply`` executes commands atomically.
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Iterable, Protocol

from shapely.strtree import STRtree

from mapassist.core.geometry.points import BBox
from mapassist.core.geometry.polygon import MapPolygon
from mapassist.core.store.commands import (
    AddFeature,
    Command,
    DeleteFeatures,
    Sequence,
    SetTag,
)

logger = logging.getLogger(__name__)


class CommandRejectedError(ValueError):
    """Raised when a command references features that are not in the store."""


@dataclass(frozen=True)
class FeatureSnapshot:
    """Identity plus version of a feature at the time it was read."""

    id: str
    version: int

    @classmethod
    def of(cls, polygon: MapPolygon) -> "FeatureSnapshot":
        return cls(polygon.id, polygon.version)


class FeatureStore(Protocol):
    def query_by_bbox(self, bbox: BBox) -> list[MapPolygon]: ...

    def all_polygons(self) -> list[MapPolygon]: ...

    def current_level(self) -> str | None: ...

    def get(self, feature_id: str) -> MapPolygon | None: ...


def is_current(store: FeatureStore, snapshot: FeatureSnapshot) -> bool:
    """True if the feature still exists and has not been modified since ``snapshot``."""
    feature = store.get(snapshot.id)
    return feature is not None and feature.version == snapshot.version


class InMemoryFeatureStore:
    def __init__(self, polygons: Iterable[MapPolygon] = (), level: str | None = None) -> None:
        self._features: dict[str, MapPolygon] = {}
        self._tree: STRtree | None = None
        self._tree_ids: list[str] = []
        self.level = level
        self.selected_ids: list[str] = []
        for p in polygons:
            self._features[p.id] = p

    @classmethod
    def from_features(cls, payloads: Iterable[dict], level: str | None = None) -> "InMemoryFeatureStore":
        """Build a store from host payloads validated by ``FeatureInput``."""
        from mapassist.models.schemas import FeatureInput

        return cls((FeatureInput.model_validate(p).to_polygon() for p in payloads), level=level)

    # ── Read side ──────────────────────────────────────────────────────

    def get(self, feature_id: str) -> MapPolygon | None:
        return self._features.get(feature_id)

    def all_polygons(self) -> list[MapPolygon]:
        return list(self._features.values())

    def current_level(self) -> str | None:
        return self.level or None

    def query_by_bbox(self, bbox: BBox) -> list[MapPolygon]:
        """Polygons whose node bounding box intersects ``bbox``, in insertion order."""
        tree = self._index()
        if tree is None:
            return []
        hits = set(int(i) for i in tree.query(bbox.to_shapely()))
        return [self._features[self._tree_ids[i]] for i in sorted(hits)]

    def _index(self) -> STRtree | None:
        if self._tree is None:
            indexed = [p for p in self._features.values() if p.nodes]
            if not indexed:
                return None
            self._tree_ids = [p.id for p in indexed]
            self._tree = STRtree([p.bbox.to_shapely() for p in indexed])
        return self._tree

    # ── Selection ──────────────────────────────────────────────────────

    def replace_selection(self, ids: Iterable[str]) -> None:
        self.selected_ids = [i for i in ids if i in self._features]

    # ── Write side ─────────────────────────────────────────────────────

    def apply(self, command: Command) -> None:
        """Apply ``command``; a Sequence is checked in full before any part runs."""
        leaves = command.flatten() if isinstance(command, Sequence) else [command]
        self._check(leaves)
        for leaf in leaves:
            self._apply_leaf(leaf)
        self._tree = None
        logger.debug("Applied %s", command.describe())

    def _check(self, leaves: list[Command]) -> None:
        present = set(self._features)
        for leaf in leaves:
            if isinstance(leaf, AddFeature):
                if leaf.polygon.id in present:
                    raise CommandRejectedError(f"Feature {leaf.polygon.id} already exists")
                present.add(leaf.polygon.id)
            elif isinstance(leaf, (DeleteFeatures, SetTag)):
                missing = [i for i in leaf.ids if i not in present]
                if missing:
                    raise CommandRejectedError(f"Unknown feature(s): {', '.join(missing)}")
                if isinstance(leaf, DeleteFeatures):
                    present.difference_update(leaf.ids)
            else:
                raise CommandRejectedError(f"Unsupported command {type(leaf).__name__}")

    def _apply_leaf(self, leaf: Command) -> None:
        if isinstance(leaf, AddFeature):
            # the store owns its copy; later edits to the command value do not leak in
            self._features[leaf.polygon.id] = copy.deepcopy(leaf.polygon)
        elif isinstance(leaf, DeleteFeatures):
            for i in leaf.ids:
                del self._features[i]
            self.selected_ids = [i for i in self.selected_ids if i in self._features]
        elif isinstance(leaf, SetTag):
            for i in leaf.ids:
                feature = self._features[i]
                feature.tags[leaf.key] = leaf.value
                feature.version += 1


class StoreCommandLog:
    """Command log that applies each submission to an in-memory store.

    Keeps the submitted commands in ``history``; undo/redo belongs to the host.
    """

    def __init__(self, store: InMemoryFeatureStore) -> None:
        self.store = store
        self.history: list[Command] = []

    def submit(self, command: Command) -> None:
        self.store.apply(command)
        self.history.append(command)
        logger.info("Submitted: %s", command.describe())
