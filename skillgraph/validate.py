from typing import Set

from .types import UNASSIGNED, LayoutInput


class LayoutError(ValueError):
    pass


class SimulationStateError(RuntimeError):
    """Raised when a simulation is used after teardown or with an unknown node."""


def _ensure_viewport(layout: LayoutInput) -> None:
    vp = layout.viewport
    if not vp.is_finite:
        raise LayoutError(f'viewport must be finite (got {vp.width}x{vp.height})')
    if vp.width <= 0 or vp.height <= 0:
        raise LayoutError(f'viewport must be positive (got {vp.width}x{vp.height})')


def validate_layout_input(layout: LayoutInput) -> None:
    _ensure_viewport(layout)

    levels = layout.difficulty_levels
    if not levels:
        raise LayoutError('at least one difficulty level is required')
    if len(set(levels)) != len(levels):
        raise LayoutError(f'difficulty levels must be distinct (got {list(levels)})')

    seen_tags: Set[str] = set()
    for tag in layout.tags:
        if tag.name == UNASSIGNED:
            raise LayoutError(f'tag name "{UNASSIGNED}" is reserved')
        if tag.name in seen_tags:
            raise LayoutError(f'duplicate tag "{tag.name}"')
        seen_tags.add(tag.name)

    seen_nodes: Set[str] = set()
    for node in layout.nodes:
        if node.id in seen_nodes:
            raise LayoutError(f'duplicate node id "{node.id}"')
        seen_nodes.add(node.id)
        if node.difficulty not in levels:
            raise LayoutError(
                f'node "{node.id}" has difficulty "{node.difficulty}", expected one of {list(levels)}'
            )

    zoomed = layout.zoomed
    if zoomed is not None and zoomed != UNASSIGNED and zoomed not in seen_tags:
        raise LayoutError(f'cannot zoom into unknown tag "{zoomed}"')
