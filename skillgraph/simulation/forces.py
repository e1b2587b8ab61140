"""Forces acting on a :class:`NodeArena`.

Every force adds a velocity delta scaled by the current ``alpha``; the
integrator in :mod:`skillgraph.simulation.engine` applies velocities to
positions once all forces have run.
"""

from __future__ import annotations

import math
from typing import Optional, Protocol, Sequence, Tuple, Union

import numpy as np
from scipy.spatial import cKDTree

from .arena import NodeArena

ArrayLike = Union[float, Sequence[float], np.ndarray]


class Force(Protocol):
    def initialize(self, arena: NodeArena, rng: np.random.Generator) -> None:
        """Bind the force to ``arena`` before the first tick."""

    def apply(self, alpha: float) -> None:
        """Accumulate velocity deltas for one tick."""


def _per_node(value: ArrayLike, n: int) -> np.ndarray:
    arr = np.asarray(value, dtype=float)
    if arr.ndim == 0:
        return np.full(n, float(arr))
    return arr.reshape(n).copy()


def _jiggle(rng: np.random.Generator, shape: Tuple[int, ...]) -> np.ndarray:
    return (rng.random(shape) - 0.5) * 1e-6


class ManyBodyForce:
    """Pairwise charge; negative strength repels.

    Exact all-pairs evaluation; velocity changes by ``delta * strength * alpha / d^2``
    per source, so the magnitude falls off as ``1/d``.
    """

    def __init__(
        self,
        strength: ArrayLike = -30.0,
        *,
        distance_min: float = 1.0,
        distance_max: float = math.inf,
    ):
        self.strength = strength
        self.distance_min2 = distance_min * distance_min
        self.distance_max2 = distance_max * distance_max
        self._arena: Optional[NodeArena] = None
        self._strengths = np.zeros(0)
        self._rng = np.random.default_rng()

    def initialize(self, arena: NodeArena, rng: np.random.Generator) -> None:
        self._arena = arena
        self._rng = rng
        self._strengths = _per_node(self.strength, len(arena))

    def apply(self, alpha: float) -> None:
        arena = self._arena
        if arena is None or len(arena) < 2:
            return
        pos = arena.position
        n = len(arena)
        delta = pos[np.newaxis, :, :] - pos[:, np.newaxis, :]
        off_diag = ~np.eye(n, dtype=bool)
        coincident = off_diag & (delta[..., 0] == 0.0) & (delta[..., 1] == 0.0)
        if coincident.any():
            delta[coincident] = _jiggle(self._rng, (int(coincident.sum()), 2))
        dist2 = np.einsum("ijk,ijk->ij", delta, delta)
        active = off_diag & (dist2 < self.distance_max2)
        dist2 = np.where(dist2 < self.distance_min2, np.sqrt(self.distance_min2 * dist2), dist2)
        with np.errstate(divide="ignore", invalid="ignore"):
            weight = np.where(active, self._strengths[np.newaxis, :] * alpha / dist2, 0.0)
        arena.velocity += np.einsum("ij,ijk->ik", weight, delta)


class CollideForce:
    """Keeps node circles of ``radius`` from overlapping.

    Candidate pairs come from a k-d tree over predicted positions
    (``position + velocity``); each overlapping pair is pushed apart along the
    connecting axis.
    """

    def __init__(self, radius: float, *, strength: float = 1.0, iterations: int = 1):
        self.radius = float(radius)
        self.strength = float(strength)
        self.iterations = max(int(iterations), 1)
        self._arena: Optional[NodeArena] = None
        self._rng = np.random.default_rng()

    def initialize(self, arena: NodeArena, rng: np.random.Generator) -> None:
        self._arena = arena
        self._rng = rng

    def apply(self, alpha: float) -> None:
        arena = self._arena
        if arena is None or len(arena) < 2 or self.radius <= 0.0:
            return
        reach = 2.0 * self.radius
        for _ in range(self.iterations):
            predicted = arena.position + arena.velocity
            pairs = cKDTree(predicted).query_pairs(reach, output_type="ndarray")
            if len(pairs) == 0:
                return
            i, j = pairs[:, 0], pairs[:, 1]
            delta = predicted[i] - predicted[j]
            dist2 = np.einsum("ij,ij->i", delta, delta)
            coincident = dist2 == 0.0
            if coincident.any():
                delta[coincident] = _jiggle(self._rng, (int(coincident.sum()), 2))
                dist2 = np.einsum("ij,ij->i", delta, delta)
            overlap = dist2 < reach * reach
            if not overlap.any():
                return
            i, j, delta, dist = i[overlap], j[overlap], delta[overlap], np.sqrt(dist2[overlap])
            push = delta * ((reach - dist) / dist * self.strength)[:, np.newaxis]
            # equal radii split the correction evenly
            np.add.at(arena.velocity, i, push * 0.5)
            np.add.at(arena.velocity, j, -push * 0.5)


class LinkForce:
    """Spring along edges. Zero strength makes edges purely decorative."""

    def __init__(
        self,
        edges: Sequence[Tuple[int, int]] = (),
        *,
        strength: Optional[float] = None,
        distance: float = 30.0,
        iterations: int = 1,
    ):
        self.edges = np.asarray(list(edges), dtype=int).reshape(-1, 2)
        self.strength = strength
        self.distance = float(distance)
        self.iterations = max(int(iterations), 1)
        self._arena: Optional[NodeArena] = None
        self._bias = np.zeros(0)
        self._strengths = np.zeros(0)
        self._rng = np.random.default_rng()

    @property
    def is_inert(self) -> bool:
        return len(self.edges) == 0 or self.strength == 0.0

    def initialize(self, arena: NodeArena, rng: np.random.Generator) -> None:
        self._arena = arena
        self._rng = rng
        if len(self.edges) == 0:
            return
        degree = np.bincount(self.edges.ravel(), minlength=len(arena)).astype(float)
        src, dst = self.edges[:, 0], self.edges[:, 1]
        self._bias = degree[src] / (degree[src] + degree[dst])
        if self.strength is None:
            self._strengths = 1.0 / np.minimum(degree[src], degree[dst])
        else:
            self._strengths = np.full(len(self.edges), float(self.strength))

    def apply(self, alpha: float) -> None:
        arena = self._arena
        if arena is None or self.is_inert:
            return
        src, dst = self.edges[:, 0], self.edges[:, 1]
        for _ in range(self.iterations):
            delta = (arena.position[dst] + arena.velocity[dst]) - (
                arena.position[src] + arena.velocity[src]
            )
            length = np.hypot(delta[:, 0], delta[:, 1])
            zero = length == 0.0
            if zero.any():
                delta[zero] = _jiggle(self._rng, (int(zero.sum()), 2))
                length = np.hypot(delta[:, 0], delta[:, 1])
            scale = (length - self.distance) / length * alpha * self._strengths
            step = delta * scale[:, np.newaxis]
            np.add.at(arena.velocity, dst, -step * self._bias[:, np.newaxis])
            np.add.at(arena.velocity, src, step * (1.0 - self._bias)[:, np.newaxis])


class PositionForce:
    """Spring pulling one coordinate axis toward a per-node target.

    Nodes with a ``nan`` target or zero strength are unaffected.
    """

    def __init__(self, axis: int, targets: ArrayLike, strength: ArrayLike = 0.1):
        if axis not in (0, 1):
            raise ValueError("axis must be 0 (x) or 1 (y)")
        self.axis = axis
        self.targets = targets
        self.strength = strength
        self._arena: Optional[NodeArena] = None
        self._targets = np.zeros(0)
        self._strengths = np.zeros(0)

    def initialize(self, arena: NodeArena, rng: np.random.Generator) -> None:
        self._arena = arena
        n = len(arena)
        targets = _per_node(self.targets, n)
        strengths = _per_node(self.strength, n)
        strengths[np.isnan(targets)] = 0.0
        self._targets = np.nan_to_num(targets)
        self._strengths = strengths

    def apply(self, alpha: float) -> None:
        arena = self._arena
        if arena is None or len(arena) == 0:
            return
        coord = arena.position[:, self.axis]
        arena.velocity[:, self.axis] += (self._targets - coord) * self._strengths * alpha


class RadialForce:
    """Spring pulling the distance from ``center`` toward a per-node radius."""

    def __init__(self, radii: ArrayLike, strength: ArrayLike = 0.1, center: Tuple[float, float] = (0.0, 0.0)):
        self.radii = radii
        self.strength = strength
        self.center = np.asarray(center, dtype=float)
        self._arena: Optional[NodeArena] = None
        self._radii = np.zeros(0)
        self._strengths = np.zeros(0)
        self._rng = np.random.default_rng()

    def initialize(self, arena: NodeArena, rng: np.random.Generator) -> None:
        self._arena = arena
        self._rng = rng
        n = len(arena)
        radii = _per_node(self.radii, n)
        strengths = _per_node(self.strength, n)
        strengths[np.isnan(radii)] = 0.0
        self._radii = np.nan_to_num(radii)
        self._strengths = strengths

    def apply(self, alpha: float) -> None:
        arena = self._arena
        if arena is None or len(arena) == 0:
            return
        delta = arena.position - self.center
        zero = (delta[:, 0] == 0.0) & (delta[:, 1] == 0.0)
        if zero.any():
            delta[zero] = _jiggle(self._rng, (int(zero.sum()), 2))
        dist = np.hypot(delta[:, 0], delta[:, 1])
        k = (self._radii - dist) * self._strengths * alpha / dist
        arena.velocity += delta * k[:, np.newaxis]


__all__ = [
    "CollideForce",
    "Force",
    "LinkForce",
    "ManyBodyForce",
    "PositionForce",
    "RadialForce",
]
