"""Arena of simulation nodes addressed by stable integer index."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

import numpy as np

from ..types import NodeId, Point
from ..validate import SimulationStateError


@dataclass(frozen=True)
class SimulationNode:
    """Read-only copy of one arena row."""

    id: NodeId
    index: int
    position: Point
    velocity: Point
    fixed_position: Optional[Point]
    target_position: Optional[Point]
    radial_target: Optional[float]


def _opt_point(row: np.ndarray) -> Optional[Point]:
    if np.isnan(row).any():
        return None
    return float(row[0]), float(row[1])


class NodeArena:
    """Column storage for per-node simulation state.

    Missing targets and free (unpinned) nodes are stored as ``nan``.
    """

    def __init__(
        self,
        ids: Sequence[NodeId],
        positions: np.ndarray,
        targets: Optional[np.ndarray] = None,
        radial_targets: Optional[np.ndarray] = None,
    ):
        self.ids: Tuple[NodeId, ...] = tuple(ids)
        n = len(self.ids)
        self.index: Dict[NodeId, int] = {node_id: idx for idx, node_id in enumerate(self.ids)}
        self.position = np.array(positions, dtype=float).reshape(n, 2)
        self.velocity = np.zeros((n, 2), dtype=float)
        self.fixed = np.full((n, 2), np.nan)
        if targets is None:
            targets = np.full((n, 2), np.nan)
        if radial_targets is None:
            radial_targets = np.full(n, np.nan)
        self.target = np.array(targets, dtype=float).reshape(n, 2)
        self.radial_target = np.array(radial_targets, dtype=float).reshape(n)

    def __len__(self) -> int:
        return len(self.ids)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self.index

    def index_of(self, node_id: NodeId) -> int:
        try:
            return self.index[node_id]
        except KeyError as exc:
            raise SimulationStateError(f"Unknown node '{node_id}' in simulation") from exc

    @property
    def fixed_mask(self) -> np.ndarray:
        return ~np.isnan(self.fixed).any(axis=1)

    @property
    def has_target(self) -> np.ndarray:
        return ~np.isnan(self.target[:, 0])

    def fix(self, node_id: NodeId, position: Optional[Point] = None) -> Point:
        """Pin ``node_id`` at ``position`` (its current position when omitted).

        A non-finite ``position`` leaves an existing pin where it is.
        """

        idx = self.index_of(node_id)
        if position is not None and np.isfinite(position).all():
            x, y = position
        elif self.fixed_mask[idx]:
            x, y = self.fixed[idx]
        else:
            x, y = self.position[idx]
        self.fixed[idx] = (x, y)
        return float(x), float(y)

    def unfix(self, node_id: NodeId) -> None:
        self.fixed[self.index_of(node_id)] = np.nan

    def unfix_all(self) -> None:
        self.fixed[:] = np.nan

    def node(self, node_id: NodeId) -> SimulationNode:
        idx = self.index_of(node_id)
        radial = self.radial_target[idx]
        return SimulationNode(
            id=node_id,
            index=idx,
            position=(float(self.position[idx, 0]), float(self.position[idx, 1])),
            velocity=(float(self.velocity[idx, 0]), float(self.velocity[idx, 1])),
            fixed_position=_opt_point(self.fixed[idx]),
            target_position=_opt_point(self.target[idx]),
            radial_target=None if np.isnan(radial) else float(radial),
        )

    def carry_over(self, previous: "NodeArena") -> int:
        """Copy positions of nodes that also exist in ``previous``; returns the count."""

        copied = 0
        for node_id, idx in self.index.items():
            old = previous.index.get(node_id)
            if old is None:
                continue
            self.position[idx] = previous.position[old]
            copied += 1
        return copied


__all__ = ["NodeArena", "SimulationNode"]
