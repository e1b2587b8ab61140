from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from ..types import NodeId, Point


def _frozen(values: np.ndarray) -> np.ndarray:
    out = np.array(values, copy=True)
    out.flags.writeable = False
    return out


@dataclass(frozen=True, eq=False)
class PositionSnapshot:
    """Immutable copy of node positions taken after one tick.

    ``positions`` rows follow ``ids`` (render order, back to front); ``edges``
    holds ``(source, target)`` row indices.  Both arrays are read-only.
    """

    tick: int
    energy: float
    ids: Tuple[NodeId, ...]
    positions: np.ndarray
    edges: np.ndarray
    fixed: Tuple[NodeId, ...] = ()

    @classmethod
    def capture(
        cls,
        tick: int,
        energy: float,
        ids: Sequence[NodeId],
        positions: np.ndarray,
        edges: np.ndarray,
        fixed: Sequence[NodeId] = (),
    ) -> "PositionSnapshot":
        return cls(
            tick=tick,
            energy=float(energy),
            ids=tuple(ids),
            positions=_frozen(np.asarray(positions, dtype=float).reshape(len(ids), 2)),
            edges=_frozen(np.asarray(edges, dtype=int).reshape(-1, 2)),
            fixed=tuple(fixed),
        )

    @classmethod
    def empty(cls) -> "PositionSnapshot":
        return cls.capture(0, 0.0, (), np.zeros((0, 2)), np.zeros((0, 2), dtype=int))

    def __len__(self) -> int:
        return len(self.ids)

    def index_of(self, node_id: NodeId) -> Optional[int]:
        try:
            return self.ids.index(node_id)
        except ValueError:
            return None

    def position(self, node_id: NodeId) -> Optional[Point]:
        idx = self.index_of(node_id)
        if idx is None:
            return None
        return float(self.positions[idx, 0]), float(self.positions[idx, 1])

    def as_dict(self) -> Dict[NodeId, Point]:
        return {
            node_id: (float(x), float(y)) for node_id, (x, y) in zip(self.ids, self.positions)
        }

    def edge_ids(self) -> List[Tuple[NodeId, NodeId]]:
        return [(self.ids[s], self.ids[t]) for s, t in self.edges]

    def edge_segments(self) -> List[Tuple[Point, Point]]:
        segments = []
        for s, t in self.edges:
            sx, sy = self.positions[s]
            tx, ty = self.positions[t]
            segments.append(((float(sx), float(sy)), (float(tx), float(ty))))
        return segments


__all__ = ["PositionSnapshot"]
