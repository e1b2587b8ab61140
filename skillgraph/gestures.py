"""Touch gesture state machine.

:func:`transition` is pure: given the current state, one pointer event and a
read-only :class:`GestureContext`, it returns the next state plus the effects
to perform.  :class:`GestureController` owns the live state and the view
transform and carries the effects out against a :class:`GestureHost`.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, Literal, Optional, Protocol, Tuple, Union

from .config import EngineConfig, get_engine_config
from .logging_utils import debug_log_call
from .transform import ViewTransform
from .types import UNASSIGNED, NodeId, Point, TagName, Viewport

logger = logging.getLogger(__name__)

EventKind = Literal["down", "move", "up", "cancel"]


# ----------------------------------------------------------------- states
@dataclass(frozen=True)
class Idle:
    """No gesture, or a single touch that has not yet moved past the tap threshold."""

    anchor: Optional[Point] = None
    baseline: Optional[ViewTransform] = None


@dataclass(frozen=True)
class Panning:
    anchor: Point
    baseline: ViewTransform


@dataclass(frozen=True)
class Pinching:
    reference_distance: float
    baseline: ViewTransform


@dataclass(frozen=True)
class DraggingNode:
    node_id: NodeId
    anchor: Point
    moved: bool = False


GestureState = Union[Idle, Panning, Pinching, DraggingNode]


# ----------------------------------------------------------------- events
@dataclass(frozen=True)
class PointerEvent:
    """``touches`` are the active touches after the event; ``location`` is the touch that changed."""

    kind: EventKind
    touches: Tuple[Point, ...] = ()
    location: Optional[Point] = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "touches", tuple(tuple(t) for t in self.touches))

    @property
    def point(self) -> Optional[Point]:
        if self.location is not None:
            return self.location
        return self.touches[0] if self.touches else None


def down(*touches: Point) -> PointerEvent:
    return PointerEvent("down", touches)


def move(*touches: Point) -> PointerEvent:
    return PointerEvent("move", touches)


def up(location: Point, *remaining: Point) -> PointerEvent:
    return PointerEvent("up", remaining, location)


def cancel() -> PointerEvent:
    return PointerEvent("cancel")


# ---------------------------------------------------------------- effects
@dataclass(frozen=True)
class SetTransform:
    transform: ViewTransform


@dataclass(frozen=True)
class PinNode:
    """Pin ``node_id`` at ``position`` in graph space (``None``: where it is now)."""

    node_id: NodeId
    position: Optional[Point] = None


@dataclass(frozen=True)
class ReleaseNode:
    node_id: NodeId


@dataclass(frozen=True)
class SetEnergy:
    target: float


@dataclass(frozen=True)
class NodeClicked:
    node_id: NodeId


@dataclass(frozen=True)
class SectorClicked:
    tag: TagName


@dataclass(frozen=True)
class BackgroundClicked:
    pass


Effect = Union[SetTransform, PinNode, ReleaseNode, SetEnergy, NodeClicked, SectorClicked, BackgroundClicked]
Effects = Tuple[Effect, ...]


@dataclass(frozen=True)
class GestureContext:
    transform: ViewTransform
    viewport: Viewport
    node_at: Callable[[Point], Optional[NodeId]]
    sector_at: Callable[[Point], Optional[TagName]]
    zoomed: Optional[str] = None
    config: EngineConfig = field(default_factory=get_engine_config)

    def to_graph(self, point: Point) -> Point:
        return self.transform.to_graph(point, self.viewport, min_scale=self.config.min_positive_scale)


def _distance(a: Point, b: Point) -> float:
    return math.hypot(a[0] - b[0], a[1] - b[1])


def _is_finite(point: Optional[Point]) -> bool:
    return point is None or (math.isfinite(point[0]) and math.isfinite(point[1]))


def _pinch_start(event: PointerEvent, ctx: GestureContext) -> Pinching:
    return Pinching(_distance(event.touches[0], event.touches[1]), ctx.transform)


def _resolve_tap(point: Point, ctx: GestureContext) -> Effects:
    tag = ctx.sector_at(point)
    focused = ctx.zoomed if ctx.zoomed not in (None, UNASSIGNED) else None
    if tag is not None and tag != focused:
        return (SectorClicked(tag),)
    return (BackgroundClicked(),)


def _on_down(state: GestureState, event: PointerEvent, ctx: GestureContext) -> Tuple[GestureState, Effects]:
    if isinstance(state, DraggingNode):
        return state, ()
    if len(event.touches) >= 2:
        return _pinch_start(event, ctx), ()
    point = event.point
    if point is None:
        return Idle(), ()
    node_id = ctx.node_at(point)
    if node_id is not None:
        return DraggingNode(node_id, point), (PinNode(node_id), SetEnergy(ctx.config.drag_alpha_target))
    return Idle(anchor=point, baseline=ctx.transform), ()


def _on_move(state: GestureState, event: PointerEvent, ctx: GestureContext) -> Tuple[GestureState, Effects]:
    cfg = ctx.config
    if isinstance(state, DraggingNode):
        point = event.point
        if point is None:
            return state, ()
        moved = state.moved or _distance(point, state.anchor) >= cfg.tap_threshold
        effects: Effects = (PinNode(state.node_id, ctx.to_graph(point)), SetEnergy(cfg.drag_alpha_target))
        return DraggingNode(state.node_id, state.anchor, moved), effects

    touches = event.touches
    if isinstance(state, Pinching):
        if len(touches) >= 2:
            if state.reference_distance <= 1e-9:
                return _pinch_start(event, ctx), ()
            ratio = _distance(touches[0], touches[1]) / state.reference_distance
            updated = ctx.transform.with_scale(state.baseline.scale * ratio, cfg.min_scale, cfg.max_scale)
            return state, (SetTransform(updated),)
        if len(touches) == 1:
            return Panning(touches[0], ctx.transform), ()
        return state, ()

    if len(touches) >= 2:
        # a second finger joined: re-baseline so the scale does not jump
        return _pinch_start(event, ctx), ()

    point = event.point
    if point is None:
        return state, ()

    if isinstance(state, Panning):
        dx, dy = point[0] - state.anchor[0], point[1] - state.anchor[1]
        return state, (SetTransform(state.baseline.panned(dx, dy)),)

    if state.anchor is None or state.baseline is None:
        # only a pointer-down starts a tap
        return state, ()
    if _distance(point, state.anchor) < cfg.tap_threshold:
        return state, ()
    dx, dy = point[0] - state.anchor[0], point[1] - state.anchor[1]
    return Panning(state.anchor, state.baseline), (SetTransform(state.baseline.panned(dx, dy)),)


def _on_up(state: GestureState, event: PointerEvent, ctx: GestureContext) -> Tuple[GestureState, Effects]:
    cfg = ctx.config
    if event.touches:
        # one finger of several lifted
        if isinstance(state, DraggingNode):
            return state, ()
        return Panning(event.touches[0], ctx.transform), ()

    if isinstance(state, DraggingNode):
        point = event.point or state.anchor
        effects: Effects = (ReleaseNode(state.node_id), SetEnergy(cfg.alpha_target))
        if not state.moved and _distance(point, state.anchor) < cfg.tap_threshold:
            effects += (NodeClicked(state.node_id),)
        return Idle(), effects

    if isinstance(state, Idle) and state.anchor is not None:
        point = event.point or state.anchor
        if _distance(point, state.anchor) < cfg.tap_threshold:
            return Idle(), _resolve_tap(point, ctx)
    return Idle(), ()


def _on_cancel(state: GestureState, ctx: GestureContext) -> Tuple[GestureState, Effects]:
    if isinstance(state, DraggingNode):
        return Idle(), (ReleaseNode(state.node_id), SetEnergy(ctx.config.alpha_target))
    return Idle(), ()


@debug_log_call(logger)
def transition(state: GestureState, event: PointerEvent, ctx: GestureContext) -> Tuple[GestureState, Effects]:
    if not (_is_finite(event.location) and all(_is_finite(t) for t in event.touches)):
        logger.debug("Dropping %s event with non-finite coordinates", event.kind)
        if event.kind == "up":
            # treated as a cancel
            return _on_cancel(state, ctx)
        return state, ()
    if event.kind == "down":
        return _on_down(state, event, ctx)
    if event.kind == "move":
        return _on_move(state, event, ctx)
    if event.kind == "up":
        return _on_up(state, event, ctx)
    if event.kind == "cancel":
        return _on_cancel(state, ctx)
    raise ValueError(f"unknown pointer event kind '{event.kind}'")


# ------------------------------------------------------------- controller
class GestureHost(Protocol):
    def node_at(self, point: Point, transform: ViewTransform) -> Optional[NodeId]: ...

    def sector_at(self, point: Point, transform: ViewTransform) -> Optional[TagName]: ...

    def pin_node(self, node_id: NodeId, position: Optional[Point]) -> None: ...

    def release_node(self, node_id: NodeId) -> None: ...

    def set_energy_target(self, value: float) -> None: ...


@dataclass
class GestureCallbacks:
    on_node_click: Optional[Callable[[NodeId], None]] = None
    on_sector_click: Optional[Callable[[TagName], None]] = None
    on_background_click: Optional[Callable[[], None]] = None


class GestureController:
    """Owns the gesture state and view transform for one graph view."""

    def __init__(
        self,
        host: GestureHost,
        viewport: Viewport,
        *,
        callbacks: Optional[GestureCallbacks] = None,
        transform: Optional[ViewTransform] = None,
        zoomed: Optional[str] = None,
        config: Optional[EngineConfig] = None,
    ):
        self.host = host
        self.viewport = viewport
        self.callbacks = callbacks or GestureCallbacks()
        self.transform = transform or ViewTransform()
        self.zoomed = zoomed
        self.config = config or get_engine_config()
        self.state: GestureState = Idle()

    @property
    def dragged_node(self) -> Optional[NodeId]:
        return self.state.node_id if isinstance(self.state, DraggingNode) else None

    def context(self) -> GestureContext:
        transform = self.transform
        return GestureContext(
            transform=transform,
            viewport=self.viewport,
            node_at=lambda point: self.host.node_at(point, transform),
            sector_at=lambda point: self.host.sector_at(point, transform),
            zoomed=self.zoomed,
            config=self.config,
        )

    def handle(self, event: PointerEvent) -> Effects:
        previous = self.state
        self.state, effects = transition(previous, event, self.context())
        if type(previous) is not type(self.state):
            logger.debug("Gesture %s -> %s on %s", type(previous).__name__, type(self.state).__name__, event.kind)
        # engine-side effects first so a raising callback cannot leave a node pinned
        for effect in effects:
            if isinstance(effect, SetTransform):
                self.transform = effect.transform
            elif isinstance(effect, PinNode):
                self.host.pin_node(effect.node_id, effect.position)
            elif isinstance(effect, ReleaseNode):
                self.host.release_node(effect.node_id)
            elif isinstance(effect, SetEnergy):
                self.host.set_energy_target(effect.target)
        for effect in effects:
            self._notify(effect)
        return effects

    def cancel(self) -> Effects:
        return self.handle(cancel())

    def reset_transform(self, transform: Optional[ViewTransform] = None) -> None:
        self.transform = transform or ViewTransform()

    def _notify(self, effect: Effect) -> None:
        cb = self.callbacks
        if isinstance(effect, NodeClicked):
            logger.info("Node clicked: %s", effect.node_id)
            if cb.on_node_click is not None:
                cb.on_node_click(effect.node_id)
        elif isinstance(effect, SectorClicked):
            logger.info("Sector clicked: %s", effect.tag)
            if cb.on_sector_click is not None:
                cb.on_sector_click(effect.tag)
        elif isinstance(effect, BackgroundClicked):
            logger.info("Background clicked")
            if cb.on_background_click is not None:
                cb.on_background_click()


__all__ = [
    "BackgroundClicked",
    "DraggingNode",
    "Effect",
    "Effects",
    "GestureCallbacks",
    "GestureContext",
    "GestureController",
    "GestureHost",
    "GestureState",
    "Idle",
    "NodeClicked",
    "Panning",
    "PinNode",
    "Pinching",
    "PointerEvent",
    "ReleaseNode",
    "SectorClicked",
    "SetEnergy",
    "SetTransform",
    "cancel",
    "down",
    "move",
    "transition",
    "up",
]
