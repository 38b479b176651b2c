"""State shared by the host-facing actions.

The host integration layer owns one ``AssistContext`` and passes it into
every action. The enabled flag and the editor mode live here rather than in
module globals, so two contexts never see each other's state.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Protocol

from mapassist.config import Settings
from mapassist.core.geometry.projection import Projector
from mapassist.core.geometry.selection import PolygonSelector
from mapassist.core.naming.interpolation import NameInterpolator
from mapassist.core.naming.neighbors import NeighborSearch
from mapassist.core.store.commands import CommandLog
from mapassist.core.store.feature_store import FeatureStore


class EditorMode(Enum):
    DRAW = "draw"
    SELECT = "select"
    OTHER = "other"


class TagEditor(Protocol):
    """Typed handle on the host's tag editing panel."""

    def focus_field(self, key: str) -> None: ...

    def set_value(self, key: str, value: str) -> None: ...


class SelectionSink(Protocol):
    def replace_selection(self, ids: Iterable[str]) -> None: ...


@dataclass
class AssistContext:
    store: FeatureStore
    command_log: CommandLog
    projector: Projector
    settings: Settings = field(default_factory=Settings)
    tag_editor: TagEditor | None = None
    selection: SelectionSink | None = None
    mode: EditorMode = EditorMode.OTHER
    enabled: bool | None = None  # None: take settings.enabled

    selector: PolygonSelector = field(init=False)
    neighbors: NeighborSearch = field(init=False)
    interpolator: NameInterpolator = field(init=False)

    def __post_init__(self) -> None:
        if self.enabled is None:
            self.enabled = self.settings.enabled
        if self.selection is None and hasattr(self.store, "replace_selection"):
            self.selection = self.store  # type: ignore[assignment]

        cfg = self.settings
        self.selector = PolygonSelector(self.projector)
        self.neighbors = NeighborSearch(
            self.projector,
            corridor_half_width_factor=cfg.corridor_half_width_factor,
            corridor_half_length_factor=cfg.corridor_half_length_factor,
        )
        self.interpolator = NameInterpolator(
            self.projector,
            self.neighbors,
            name_charset=cfg.name_charset,
            collinearity_tolerance=cfg.collinearity_tolerance,
        )
