"""Tick-driven force integrator with an explicit start/stop/reset lifecycle."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, Iterator, List, Optional, Tuple

import numpy as np

from ..config import EngineConfig, get_engine_config
from ..logging_utils import debug_log_call
from ..seed import LayoutSeed
from ..types import NodeId, Point
from ..validate import SimulationStateError
from .arena import NodeArena, SimulationNode
from .forces import CollideForce, Force, LinkForce, ManyBodyForce, PositionForce, RadialForce
from .snapshot import PositionSnapshot

logger = logging.getLogger(__name__)

TickListener = Callable[[PositionSnapshot], None]


class ForceSimulation:
    """Advances an arena one tick at a time under a set of named forces.

    ``energy`` (alpha) scales every force.  Each tick moves it toward
    ``energy_target`` by ``alpha_decay``; once it drops under ``alpha_min``
    the simulation goes idle until :meth:`start` or :meth:`reset`.
    """

    def __init__(
        self,
        arena: NodeArena,
        *,
        edges: Optional[np.ndarray] = None,
        config: Optional[EngineConfig] = None,
        rng: Optional[np.random.Generator] = None,
    ):
        self.config = config or get_engine_config()
        self.arena = arena
        self.edges = np.zeros((0, 2), dtype=int) if edges is None else np.asarray(edges, dtype=int).reshape(-1, 2)
        self.rng = rng if rng is not None else np.random.default_rng()
        self.energy = float(self.config.alpha)
        self.energy_target = float(self.config.alpha_target)
        self.tick_count = 0
        self._forces: Dict[str, Force] = {}
        self._listeners: List[TickListener] = []
        self._running = False
        self._closed = False
        self._lock = threading.RLock()
        self._snapshot = self._capture()

    # ------------------------------------------------------------------ setup
    @classmethod
    @debug_log_call(logger, name="ForceSimulation.from_seed", log_result=False)
    def from_seed(
        cls,
        seed: LayoutSeed,
        *,
        config: Optional[EngineConfig] = None,
        rng: Optional[np.random.Generator] = None,
        previous: Optional["ForceSimulation"] = None,
    ) -> "ForceSimulation":
        """Build the arena and force set for one layout pass."""

        cfg = config or get_engine_config()
        n = len(seed.nodes)
        positions = np.array([s.position for s in seed.nodes], dtype=float).reshape(n, 2)
        targets = np.array(
            [s.target if s.target is not None else (np.nan, np.nan) for s in seed.nodes], dtype=float
        ).reshape(n, 2)
        radial = np.array(
            [s.radial_target if s.radial_target is not None else np.nan for s in seed.nodes], dtype=float
        )
        arena = NodeArena(seed.ids, positions, targets, radial)
        if previous is not None and cfg.carry_over_positions and not previous.closed:
            kept = arena.carry_over(previous.arena)
            logger.debug("Carried over %d positions from previous pass", kept)

        edges = np.array([(arena.index[s], arena.index[t]) for s, t in seed.edges], dtype=int).reshape(-1, 2)
        sim = cls(arena, edges=edges, config=cfg, rng=rng)
        metrics = seed.metrics

        sim.force("link", LinkForce(edges, strength=cfg.link_strength, distance=cfg.link_distance))
        sim.force(
            "charge",
            ManyBodyForce(
                metrics.charge_strength,
                distance_min=cfg.charge_distance_min,
                distance_max=cfg.charge_distance_max,
            ),
        )
        sim.force(
            "collide",
            CollideForce(
                metrics.collision_radius,
                strength=cfg.collide_strength,
                iterations=cfg.collide_iterations,
            ),
        )

        if seed.zoomed:
            sim.force("radial", RadialForce(arena.radial_target, cfg.zoom_radial_strength))
        else:
            strength = cfg.position_strength if seed.layout.show_difficulty else cfg.collapsed_position_strength
            pull = np.where(arena.has_target, strength, 0.0)
            sim.force("x", PositionForce(0, arena.target[:, 0], pull))
            sim.force("y", PositionForce(1, arena.target[:, 1], pull))
            ring = np.array([s.on_ring for s in seed.nodes], dtype=bool)
            sim.force(
                "radial_unassigned",
                RadialForce(
                    np.where(ring, arena.radial_target, np.nan),
                    np.where(ring, cfg.unassigned_radial_strength, 0.0),
                ),
            )
        return sim

    def force(self, name: str, force: Optional[Force] = None) -> Optional[Force]:
        """Register ``force`` under ``name``; ``None`` removes it. Returns the force."""

        with self._lock:
            if force is None:
                return self._forces.pop(name, None)
            force.initialize(self.arena, self.rng)
            self._forces[name] = force
            return force

    @property
    def force_names(self) -> Tuple[str, ...]:
        return tuple(self._forces)

    def on_tick(self, listener: TickListener) -> Callable[[], None]:
        """Subscribe to per-tick snapshots; returns an unsubscribe callable."""

        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    # -------------------------------------------------------------- lifecycle
    @property
    def running(self) -> bool:
        return self._running

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def settled(self) -> bool:
        return self.energy < self.config.alpha_min and self.energy_target < self.config.alpha_min

    def start(self) -> None:
        self._ensure_open()
        if len(self.arena) == 0:
            return
        if not self._running:
            logger.debug("Simulation started at energy=%.4g target=%.4g", self.energy, self.energy_target)
        self._running = True

    def stop(self) -> None:
        self._running = False

    def reset(self, energy: Optional[float] = None) -> None:
        """Re-heat to ``energy`` (configured start value by default) and start."""

        self._ensure_open()
        self.energy = float(self.config.alpha if energy is None else energy)
        self.start()

    def close(self) -> None:
        """Stop permanently and release all pins, forces and listeners."""

        with self._lock:
            self._running = False
            self.energy_target = 0.0
            self.arena.unfix_all()
            self._forces.clear()
            self._listeners.clear()
            self._closed = True

    def set_energy_target(self, value: float) -> None:
        self.energy_target = max(float(value), 0.0)

    def _ensure_open(self) -> None:
        if self._closed:
            raise SimulationStateError("simulation has been closed")

    # ------------------------------------------------------------- stepping
    def tick(self, iterations: int = 1) -> PositionSnapshot:
        """Integrate ``iterations`` steps regardless of running state."""

        self._ensure_open()
        with self._lock:
            cfg = self.config
            arena = self.arena
            for _ in range(max(int(iterations), 1)):
                self.energy += (self.energy_target - self.energy) * cfg.alpha_decay
                for force in self._forces.values():
                    force.apply(self.energy)
                fixed = arena.fixed_mask
                arena.velocity *= 1.0 - cfg.velocity_decay
                arena.position[~fixed] += arena.velocity[~fixed]
                arena.position[fixed] = arena.fixed[fixed]
                arena.velocity[fixed] = 0.0
                self.tick_count += 1
            self._snapshot = self._capture()
            snapshot = self._snapshot
        if logger.isEnabledFor(logging.DEBUG):
            logger.debug("tick=%d energy=%.5f", self.tick_count, self.energy)
        for listener in list(self._listeners):
            listener(snapshot)
        return snapshot

    def step(self) -> Optional[PositionSnapshot]:
        """Advance one frame if running; goes idle once energy falls below the minimum."""

        if not self._running or self._closed:
            return None
        snapshot = self.tick()
        if self.energy < self.config.alpha_min:
            self._running = False
            logger.info("Simulation settled after %d ticks", self.tick_count)
        return snapshot

    def run(self, max_ticks: Optional[int] = None) -> Iterator[PositionSnapshot]:
        """Yield snapshots until the simulation idles or ``max_ticks`` is reached."""

        self.start()
        count = 0
        while max_ticks is None or count < max_ticks:
            snapshot = self.step()
            if snapshot is None:
                return
            count += 1
            yield snapshot

    def run_until_settled(self, max_ticks: int = 10_000) -> PositionSnapshot:
        for _ in self.run(max_ticks):
            pass
        return self._snapshot

    # ------------------------------------------------------- node overrides
    def fix_node(self, node_id: NodeId, position: Optional[Point] = None) -> Point:
        self._ensure_open()
        with self._lock:
            return self.arena.fix(node_id, position)

    def release_node(self, node_id: NodeId) -> None:
        self._ensure_open()
        with self._lock:
            self.arena.unfix(node_id)

    def node(self, node_id: NodeId) -> SimulationNode:
        with self._lock:
            return self.arena.node(node_id)

    # ------------------------------------------------------------ snapshots
    @property
    def snapshot(self) -> PositionSnapshot:
        return self._snapshot

    def _capture(self) -> PositionSnapshot:
        arena = self.arena
        fixed = tuple(node_id for node_id, pinned in zip(arena.ids, arena.fixed_mask) if pinned)
        return PositionSnapshot.capture(
            self.tick_count, self.energy, arena.ids, arena.position, self.edges, fixed
        )


__all__ = ["ForceSimulation", "TickListener"]
