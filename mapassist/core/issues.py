"""Failure taxonomy shared by the inference engine.

Components never raise for the conditions below; they return an empty
result and, where the caller asks for it, the list of issues explaining why.
Only a projection failure is raised, because it leaves no safe fallback.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, auto


class IssueKind(Enum):
    INPUT_INVALID = auto()       # degenerate geometry
    NO_MATCH = auto()            # nothing contains the point / no neighbor
    PATTERN_REJECTED = auto()    # charset, prefix or numeric gap
    STALE_PRECONDITION = auto()  # feature changed between query and mutation


@dataclass
class AssistIssue:
    kind: IssueKind
    code: str
    message: str
    location: tuple[float, float] | None = None


class ProjectionError(RuntimeError):
    """Raised when coordinates cannot be converted between CRSs."""

    def __init__(self, point: tuple[float, float], reason: str) -> None:
        super().__init__(f"Cannot project {point}: {reason}")
        self.point = point


def has_kind(issues: list[AssistIssue], kind: IssueKind) -> bool:
    return any(i.kind == kind for i in issues)
