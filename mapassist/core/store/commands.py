"""Mutation commands handed to the host's undo/redo log.

The engine never mutates features directly. Every change is one of the
values below, submitted through a ``CommandLog``; a ``Sequence`` must be
applied (and undone) as a single unit.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Protocol, Union

from mapassist.core.geometry.polygon import MapPolygon


@dataclass(frozen=True)
class AddFeature:
    polygon: MapPolygon

    def describe(self) -> str:
        return f"Add {self.polygon.id}"


@dataclass(frozen=True)
class DeleteFeatures:
    ids: tuple[str, ...]

    def describe(self) -> str:
        return f"Delete {len(self.ids)} feature(s)"


@dataclass(frozen=True)
class SetTag:
    ids: tuple[str, ...]
    key: str
    value: str

    def describe(self) -> str:
        return f"Set {self.key}={self.value!r} on {len(self.ids)} feature(s)"


@dataclass(frozen=True)
class Sequence:
    description: str
    commands: tuple["Command", ...] = field(default_factory=tuple)

    def describe(self) -> str:
        return self.description

    def flatten(self) -> list["Command"]:
        """Leaf commands in application order."""
        out: list[Command] = []
        for cmd in self.commands:
            if isinstance(cmd, Sequence):
                out.extend(cmd.flatten())
            else:
                out.append(cmd)
        return out


Command = Union[AddFeature, DeleteFeatures, SetTag, Sequence]


class CommandLog(Protocol):
    def submit(self, command: Command) -> None: ...
