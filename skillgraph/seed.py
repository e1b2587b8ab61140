"""Initial placement of nodes for one layout pass."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set, Tuple

import numpy as np

from .config import EngineConfig, ViewportMetrics, get_engine_config
from .logging_utils import debug_log_call
from .scales import PolarScale, polar_to_cartesian
from .types import UNASSIGNED, LayoutInput, Node, NodeId, Point, TagName
from .validate import validate_layout_input

logger = logging.getLogger(__name__)

Edge = Tuple[NodeId, NodeId]


@dataclass(frozen=True)
class SeededNode:
    """Starting state of one node.

    ``target`` is the polar-mapped rest position used by the positional
    springs (``None`` for ring nodes and in zoomed mode); ``radial_target`` is
    the radius a radial spring pulls toward (``None`` when no radial force
    applies).
    """

    node: Node
    position: Point
    target: Optional[Point]
    radial_target: Optional[float]
    on_ring: bool = False

    @property
    def id(self) -> NodeId:
        return self.node.id


@dataclass
class LayoutSeed:
    layout: LayoutInput
    metrics: ViewportMetrics
    scale: PolarScale
    nodes: List[SeededNode]
    edges: List[Edge] = field(default_factory=list)

    @property
    def zoomed(self) -> bool:
        return self.layout.zoom_mode == "zoomed"

    @property
    def ids(self) -> Tuple[NodeId, ...]:
        return tuple(seeded.id for seeded in self.nodes)


def visible_categories(layout: LayoutInput) -> Tuple[TagName, ...]:
    """Tag names that own an angular band, in display order."""

    names = layout.tag_names()
    if layout.zoom_mode == "zoomed":
        names = tuple(name for name in names if name == layout.zoomed)
    return tuple(name for name in names if layout.is_visible(name))


def active_nodes(layout: LayoutInput) -> List[Node]:
    """Nodes taking part in the pass after zoom focus and visibility filters."""

    mode = layout.zoom_mode
    result: List[Node] = []
    for node in layout.nodes:
        if mode == "unassigned" and not node.is_unassigned:
            continue
        if mode == "zoomed" and layout.zoomed not in node.tags:
            continue
        if node.is_unassigned:
            if not layout.is_visible(UNASSIGNED):
                continue
        elif not layout.is_visible(node.primary_tag or ""):
            continue
        result.append(node)
    return result


def build_edges(nodes: Sequence[Node]) -> List[Edge]:
    """Directed edges among ``nodes``; dangling, self and repeated links are dropped."""

    present: Set[NodeId] = {node.id for node in nodes}
    edges: List[Edge] = []
    seen: Set[Edge] = set()
    dropped = 0
    for node in nodes:
        for target in node.links:
            edge = (node.id, target)
            if target not in present or target == node.id:
                dropped += 1
                continue
            if edge in seen:
                continue
            seen.add(edge)
            edges.append(edge)
    if dropped:
        logger.debug("Dropped %d links to absent or self targets", dropped)
    return edges


def _jitter(rng: np.random.Generator, span: float) -> Point:
    dx, dy = (rng.random(2) - 0.5) * span
    return float(dx), float(dy)


def _random_in_disk(rng: np.random.Generator, radius: float) -> Point:
    r = radius * math.sqrt(float(rng.random()))
    theta = float(rng.random()) * 2.0 * math.pi
    return r * math.cos(theta), r * math.sin(theta)


@debug_log_call(logger, log_result=False)
def seed_layout(
    layout: LayoutInput,
    rng: Optional[np.random.Generator] = None,
    *,
    config: Optional[EngineConfig] = None,
) -> LayoutSeed:
    """Compute starting and target positions for every active node."""

    validate_layout_input(layout)
    cfg = config or get_engine_config()
    rng = rng if rng is not None else np.random.default_rng()

    metrics = ViewportMetrics.from_viewport(layout.viewport, cfg)
    scale = PolarScale.build(
        visible_categories(layout),
        layout.difficulty_levels,
        metrics,
        show_difficulty=layout.show_difficulty,
        config=cfg,
    )
    nodes = active_nodes(layout)
    zoomed = layout.zoom_mode == "zoomed"

    def parked(node: Node) -> bool:
        if zoomed:
            return False
        return node.is_unassigned or node.primary_tag not in scale.angular

    ring_nodes = [node.id for node in nodes if parked(node)]
    ring_slot: Dict[NodeId, int] = {node_id: idx for idx, node_id in enumerate(ring_nodes)}
    ring_count = max(len(ring_nodes), 1)

    seeded: List[SeededNode] = []
    for node in nodes:
        if node.id in ring_slot:
            angle = 2.0 * math.pi * ring_slot[node.id] / ring_count
            base = polar_to_cartesian(scale.unassigned_radius, angle)
            dx, dy = _jitter(rng, cfg.unassigned_jitter)
            seeded.append(
                SeededNode(
                    node=node,
                    position=(base[0] + dx, base[1] + dy),
                    target=None,
                    radial_target=scale.unassigned_radius,
                    on_ring=True,
                )
            )
            continue

        if zoomed:
            radius = scale.level_radius(node.difficulty)
            seeded.append(
                SeededNode(
                    node=node,
                    position=_random_in_disk(rng, cfg.zoom_seed_radius),
                    target=None,
                    radial_target=radius,
                )
            )
            continue

        angle = scale.sector_angle(node.primary_tag or "")
        radius = scale.target_radius(node.difficulty)
        assert angle is not None and radius is not None
        target = polar_to_cartesian(radius, angle)
        dx, dy = _jitter(rng, cfg.seed_jitter)
        seeded.append(
            SeededNode(
                node=node,
                position=(target[0] + dx, target[1] + dy),
                target=target,
                radial_target=None,
            )
        )

    edges = build_edges(nodes)
    logger.info(
        "Seeded layout: %d active of %d nodes, %d sectors, %d on ring, %d edges, mode=%s",
        len(seeded),
        len(layout.nodes),
        len(scale.angular),
        len(ring_nodes),
        len(edges),
        layout.zoom_mode,
    )
    return LayoutSeed(layout=layout, metrics=metrics, scale=scale, nodes=seeded, edges=edges)


__all__ = [
    "Edge",
    "LayoutSeed",
    "SeededNode",
    "active_nodes",
    "build_edges",
    "seed_layout",
    "visible_categories",
]
