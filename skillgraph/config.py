"""Tunable constants for layout, simulation and gesture handling."""

from __future__ import annotations

import copy
import math
from dataclasses import dataclass
from typing import Optional

from .types import Point, Viewport


@dataclass
class EngineConfig:
    """Engine-wide knobs; defaults reproduce the shipped mobile/desktop look."""

    # viewport-dependent geometry (desktop / mobile)
    mobile_breakpoint: float = 640.0
    margin: float = 40.0
    mobile_margin: float = 25.0
    node_radius: float = 8.0
    mobile_node_radius: float = 6.0
    collision_radius: float = 14.0
    mobile_collision_radius: float = 10.0
    unassigned_offset: float = 80.0
    mobile_unassigned_offset: float = 60.0
    charge_strength: float = -20.0
    mobile_charge_strength: float = -10.0
    min_outer_radius: float = 1.0

    # polar mapping
    inner_radius_ratio: float = 0.2
    collapsed_radius_ratio: float = 0.6

    # forces
    position_strength: float = 0.2
    collapsed_position_strength: float = 0.05
    zoom_radial_strength: float = 0.8
    unassigned_radial_strength: float = 0.8
    link_strength: float = 0.0
    link_distance: float = 30.0
    charge_distance_min: float = 1.0
    charge_distance_max: float = math.inf
    collide_strength: float = 1.0
    collide_iterations: int = 1

    # integrator
    alpha: float = 1.0
    alpha_min: float = 0.001
    alpha_decay: float = 1.0 - 0.001 ** (1.0 / 300.0)
    alpha_target: float = 0.0
    velocity_decay: float = 0.4
    drag_alpha_target: float = 0.3
    carry_over_positions: bool = False

    # seeding
    seed_jitter: float = 10.0
    unassigned_jitter: float = 20.0
    zoom_seed_radius: float = 25.0

    # gestures / hit testing
    tap_threshold: float = 5.0
    min_scale: float = 0.5
    max_scale: float = 3.0
    min_positive_scale: float = 1e-6
    hit_radius_factor: float = 3.0


@dataclass(frozen=True)
class ViewportMetrics:
    """Geometry derived from a viewport; recomputed on every layout pass."""

    width: float
    height: float
    is_mobile: bool
    margin: float
    outer_radius: float
    inner_radius: float
    unassigned_radius: float
    node_radius: float
    collision_radius: float
    hit_radius: float
    charge_strength: float

    @property
    def center(self) -> Point:
        return self.width / 2.0, self.height / 2.0

    @classmethod
    def from_viewport(cls, viewport: Viewport, config: Optional[EngineConfig] = None) -> "ViewportMetrics":
        cfg = config or get_engine_config()
        mobile = viewport.width < cfg.mobile_breakpoint
        margin = cfg.mobile_margin if mobile else cfg.margin
        outer = max(min(viewport.width, viewport.height) / 2.0 - margin, cfg.min_outer_radius)
        node_radius = cfg.mobile_node_radius if mobile else cfg.node_radius
        offset = cfg.mobile_unassigned_offset if mobile else cfg.unassigned_offset
        return cls(
            width=float(viewport.width),
            height=float(viewport.height),
            is_mobile=mobile,
            margin=margin,
            outer_radius=outer,
            inner_radius=outer * cfg.inner_radius_ratio,
            unassigned_radius=outer + offset,
            node_radius=node_radius,
            collision_radius=cfg.mobile_collision_radius if mobile else cfg.collision_radius,
            hit_radius=node_radius * cfg.hit_radius_factor,
            charge_strength=cfg.mobile_charge_strength if mobile else cfg.charge_strength,
        )


_ENGINE_CONFIG = EngineConfig()


def get_engine_config() -> EngineConfig:
    return copy.deepcopy(_ENGINE_CONFIG)


def set_engine_config(config: EngineConfig) -> None:
    global _ENGINE_CONFIG
    _ENGINE_CONFIG = copy.deepcopy(config)


__all__ = [
    "EngineConfig",
    "ViewportMetrics",
    "get_engine_config",
    "set_engine_config",
]
