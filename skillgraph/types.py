"""Immutable input records shared by the layout and interaction engine."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Dict, Literal, Mapping, Optional, Sequence, Tuple

Point = Tuple[float, float]
NodeId = str
TagName = str

DIFFICULTY_LEVELS: Tuple[str, ...] = ("Easy", "Medium", "Hard")

# Zoom selector / visibility key addressing nodes without any tag.
UNASSIGNED = "UNASSIGNED"

ZoomMode = Literal["overview", "zoomed", "unassigned"]


@dataclass(frozen=True)
class Node:
    """A skill as supplied by the data layer for one layout pass."""

    id: NodeId
    title: str = ""
    tags: Tuple[TagName, ...] = ()
    difficulty: str = "Easy"
    links: Tuple[NodeId, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "links", tuple(self.links))

    @property
    def primary_tag(self) -> Optional[TagName]:
        return self.tags[0] if self.tags else None

    @property
    def is_unassigned(self) -> bool:
        return not self.tags


@dataclass(frozen=True)
class Tag:
    name: TagName
    color: str = "#cbd5e1"


@dataclass(frozen=True)
class Viewport:
    width: float
    height: float

    @property
    def center(self) -> Point:
        return self.width / 2.0, self.height / 2.0

    @property
    def is_finite(self) -> bool:
        return math.isfinite(self.width) and math.isfinite(self.height)


@dataclass(frozen=True)
class LayoutInput:
    """Snapshot of everything a layout pass depends on.

    ``zoomed`` is ``None`` for the overview, a tag name when a single category
    is focused, or :data:`UNASSIGNED` to focus the outer ring.  ``visibility``
    maps tag names (and optionally :data:`UNASSIGNED`) to ``False`` to hide
    them; missing keys count as shown.
    """

    nodes: Tuple[Node, ...]
    tags: Tuple[Tag, ...]
    viewport: Viewport
    zoomed: Optional[str] = None
    show_difficulty: bool = True
    visibility: Mapping[str, bool] = field(default_factory=dict)
    difficulty_levels: Tuple[str, ...] = DIFFICULTY_LEVELS

    def __post_init__(self) -> None:
        object.__setattr__(self, "nodes", tuple(self.nodes))
        object.__setattr__(self, "tags", tuple(self.tags))
        object.__setattr__(self, "difficulty_levels", tuple(self.difficulty_levels))
        object.__setattr__(self, "visibility", dict(self.visibility))

    def __hash__(self) -> int:
        return hash(
            (
                self.nodes,
                self.tags,
                self.viewport,
                self.zoomed,
                self.show_difficulty,
                tuple(sorted(self.visibility.items())),
                self.difficulty_levels,
            )
        )

    @property
    def zoom_mode(self) -> ZoomMode:
        if self.zoomed is None:
            return "overview"
        if self.zoomed == UNASSIGNED:
            return "unassigned"
        return "zoomed"

    def is_visible(self, key: str) -> bool:
        return self.visibility.get(key, True) is not False

    def tag_names(self) -> Tuple[TagName, ...]:
        return tuple(tag.name for tag in self.tags)


def make_layout_input(
    nodes: Sequence[Node],
    tags: Sequence[Tag],
    width: float,
    height: float,
    *,
    zoomed: Optional[str] = None,
    show_difficulty: bool = True,
    visibility: Optional[Dict[str, bool]] = None,
    difficulty_levels: Sequence[str] = DIFFICULTY_LEVELS,
) -> LayoutInput:
    return LayoutInput(
        nodes=tuple(nodes),
        tags=tuple(tags),
        viewport=Viewport(float(width), float(height)),
        zoomed=zoomed,
        show_difficulty=show_difficulty,
        visibility=dict(visibility or {}),
        difficulty_levels=tuple(difficulty_levels),
    )


__all__ = [
    "DIFFICULTY_LEVELS",
    "LayoutInput",
    "Node",
    "NodeId",
    "Point",
    "Tag",
    "TagName",
    "UNASSIGNED",
    "Viewport",
    "ZoomMode",
    "make_layout_input",
]
