"""Facade tying one layout pass, its simulation and the gesture controller together."""

from __future__ import annotations

import asyncio
import logging
from typing import Callable, List, Optional

import numpy as np

from .config import EngineConfig, get_engine_config
from .gestures import Effects, GestureCallbacks, GestureController, PointerEvent
from .hit_test import node_at as _node_at, sector_at as _sector_at
from .seed import LayoutSeed, seed_layout
from .simulation import ForceSimulation, PositionSnapshot, TickListener
from .transform import ViewTransform
from .types import LayoutInput, NodeId, Point, TagName
from .validate import SimulationStateError, validate_layout_input

logger = logging.getLogger(__name__)

if not logging.getLogger().handlers:  # pragma: no cover - depends on host application
    logging.basicConfig(level=logging.INFO)


class GraphEngine:
    """One graph view: relayouts on input change, ticks per frame, interprets touches.

    The engine owns a single :class:`ForceSimulation` at a time; a new layout
    pass closes the previous one before the replacement starts.  The view
    transform survives relayouts and is only reset by :meth:`reset_transform`.
    """

    def __init__(
        self,
        *,
        on_node_click: Optional[Callable[[NodeId], None]] = None,
        on_sector_click: Optional[Callable[[TagName], None]] = None,
        on_background_click: Optional[Callable[[], None]] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or get_engine_config()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.callbacks = GestureCallbacks(on_node_click, on_sector_click, on_background_click)
        self.layout: Optional[LayoutInput] = None
        self.seed: Optional[LayoutSeed] = None
        self.simulation: Optional[ForceSimulation] = None
        self.controller: Optional[GestureController] = None
        self._listeners: List[TickListener] = []
        self._closed = False

    # --------------------------------------------------------------- layout
    def update(self, layout: LayoutInput) -> bool:
        """Run a new layout pass if ``layout`` differs from the current one."""

        if self._closed:
            raise SimulationStateError("engine has been closed")
        if self.layout is not None and layout == self.layout:
            return False
        validate_layout_input(layout)

        previous = self.simulation
        dragged = self.controller.dragged_node if self.controller else None
        seed = seed_layout(layout, self.rng, config=self.config)
        simulation = ForceSimulation.from_seed(seed, config=self.config, rng=self.rng, previous=previous)
        if previous is not None:
            previous.close()

        self.layout = layout
        self.seed = seed
        self.simulation = simulation
        for listener in self._listeners:
            simulation.on_tick(listener)

        if self.controller is None:
            self.controller = GestureController(
                self, layout.viewport, callbacks=self.callbacks, zoomed=layout.zoomed, config=self.config
            )
        else:
            self.controller.viewport = layout.viewport
            self.controller.zoomed = layout.zoomed
            if dragged is not None:
                # the pin lived on the closed simulation; drop the drag entirely
                self.controller.cancel()

        simulation.start()
        logger.info(
            "Layout pass: %d nodes, %d sectors, mode=%s, running=%s",
            len(seed.nodes),
            len(seed.scale.angular),
            layout.zoom_mode,
            simulation.running,
        )
        return True

    # ------------------------------------------------------------- frames
    @property
    def snapshot(self) -> PositionSnapshot:
        if self.simulation is None:
            return PositionSnapshot.empty()
        return self.simulation.snapshot

    @property
    def running(self) -> bool:
        return self.simulation is not None and self.simulation.running

    def frame(self) -> Optional[PositionSnapshot]:
        """Advance one animation frame; ``None`` when idle."""

        if self.simulation is None:
            return None
        return self.simulation.step()

    async def animate(self, frame_interval: float = 1.0 / 60.0, *, max_frames: Optional[int] = None) -> int:
        """Tick once per ``frame_interval`` until idle; returns frames produced."""

        frames = 0
        while self.running and (max_frames is None or frames < max_frames):
            self.frame()
            frames += 1
            await asyncio.sleep(frame_interval)
        return frames

    def on_tick(self, listener: TickListener) -> None:
        """Subscribe to snapshots of the current and all future simulations."""

        self._listeners.append(listener)
        if self.simulation is not None:
            self.simulation.on_tick(listener)

    # ------------------------------------------------------------ gestures
    @property
    def transform(self) -> ViewTransform:
        return self.controller.transform if self.controller else ViewTransform()

    def reset_transform(self, transform: Optional[ViewTransform] = None) -> None:
        if self.controller is not None:
            self.controller.reset_transform(transform)

    def handle_event(self, event: PointerEvent) -> Effects:
        if self.controller is None:
            logger.debug("Ignoring %s event before first layout pass", event.kind)
            return ()
        return self.controller.handle(event)

    def cancel_gesture(self) -> Effects:
        if self.controller is None:
            return ()
        return self.controller.cancel()

    def screen_position(self, node_id: NodeId) -> Optional[Point]:
        """Where ``node_id`` is drawn under the current transform."""

        position = self.snapshot.position(node_id)
        if position is None or self.layout is None:
            return None
        return self.transform.to_screen(position, self.layout.viewport, min_scale=self.config.min_positive_scale)

    # GestureHost
    def node_at(self, point: Point, transform: Optional[ViewTransform] = None) -> Optional[NodeId]:
        if self.seed is None or self.layout is None:
            return None
        return _node_at(
            point,
            self.snapshot,
            transform or self.transform,
            self.layout.viewport,
            self.seed.metrics.hit_radius,
            min_scale=self.config.min_positive_scale,
        )

    def sector_at(self, point: Point, transform: Optional[ViewTransform] = None) -> Optional[TagName]:
        if self.seed is None or self.layout is None:
            return None
        return _sector_at(
            point,
            self.seed.scale,
            transform or self.transform,
            self.layout.viewport,
            min_scale=self.config.min_positive_scale,
        )

    def pin_node(self, node_id: NodeId, position: Optional[Point]) -> None:
        sim = self.simulation
        if sim is None or sim.closed or node_id not in sim.arena:
            logger.debug("Ignoring pin for absent node %s", node_id)
            return
        sim.fix_node(node_id, position)
        sim.start()

    def release_node(self, node_id: NodeId) -> None:
        sim = self.simulation
        if sim is None or sim.closed or node_id not in sim.arena:
            return
        sim.release_node(node_id)

    def set_energy_target(self, value: float) -> None:
        sim = self.simulation
        if sim is None or sim.closed:
            return
        sim.set_energy_target(value)
        if value > 0.0:
            sim.start()

    # ----------------------------------------------------------- teardown
    def close(self) -> None:
        """Stop the simulation and clear any pins; the engine cannot be reused."""

        if self.controller is not None:
            self.controller.cancel()
        if self.simulation is not None:
            self.simulation.close()
        self._listeners.clear()
        self._closed = True
        logger.info("Graph engine closed")


__all__ = ["GraphEngine"]
