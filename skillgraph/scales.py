"""Polar scale mapping: category -> angular band, difficulty -> radial band.

Angles follow the sector convention used for drawing: ``0`` points at twelve
o'clock and angles grow clockwise in screen space (``y`` pointing down).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Dict, Iterable, Optional, Sequence, Tuple

from .config import EngineConfig, ViewportMetrics, get_engine_config
from .types import Point

TAU = 2.0 * math.pi
_EPS = 1e-12


def polar_to_cartesian(radius: float, angle: float) -> Point:
    return radius * math.cos(angle - math.pi / 2.0), radius * math.sin(angle - math.pi / 2.0)


def cartesian_to_polar(x: float, y: float) -> Tuple[float, float]:
    """Return ``(r, theta)`` with ``theta`` normalised into ``[0, 2*pi)``."""

    r = math.hypot(x, y)
    theta = math.atan2(y, x) + math.pi / 2.0
    if theta < 0.0:
        theta += TAU
    if theta >= TAU:
        theta -= TAU
    return r, theta


class BandScale:
    """Ordinal scale splitting ``[start, stop)`` into equal bands, one per key.

    Key order is preserved (first occurrence wins), so bands follow display
    order rather than sort order.
    """

    def __init__(self, domain: Iterable[str], range_: Tuple[float, float]):
        keys: Dict[str, int] = {}
        for key in domain:
            if key not in keys:
                keys[key] = len(keys)
        self._index = keys
        self.domain: Tuple[str, ...] = tuple(keys)
        self.start = float(range_[0])
        self.stop = float(range_[1])
        self.bandwidth = (self.stop - self.start) / len(keys) if keys else 0.0

    def __len__(self) -> int:
        return len(self.domain)

    def __contains__(self, key: object) -> bool:
        return key in self._index

    def __call__(self, key: str) -> Optional[float]:
        idx = self._index.get(key)
        if idx is None:
            return None
        return self.start + idx * self.bandwidth

    def __repr__(self) -> str:
        return f"BandScale(domain={self.domain!r}, range=({self.start:g}, {self.stop:g}))"

    def band(self, key: str) -> Optional[Tuple[float, float]]:
        start = self(key)
        if start is None:
            return None
        return start, start + self.bandwidth

    def midpoint(self, key: str) -> Optional[float]:
        start = self(key)
        if start is None:
            return None
        return start + self.bandwidth / 2.0

    def find(self, value: float) -> Optional[str]:
        """Return the key whose half-open band contains ``value``."""

        if not self.domain or self.bandwidth <= 0.0 or not math.isfinite(value):
            return None
        if value < self.start or value >= self.stop:
            return None
        idx = int((value - self.start) / self.bandwidth)
        idx = min(max(idx, 0), len(self.domain) - 1)
        # guard against rounding right at a band edge
        start = self.start + idx * self.bandwidth
        if value < start and idx > 0:
            idx -= 1
        elif value >= start + self.bandwidth and idx < len(self.domain) - 1:
            idx += 1
        return self.domain[idx]


@dataclass(frozen=True)
class PolarScale:
    angular: BandScale
    radial: BandScale
    outer_radius: float
    inner_radius: float
    unassigned_radius: float
    collapsed_radius: float
    show_difficulty: bool = True

    @classmethod
    def build(
        cls,
        categories: Sequence[str],
        levels: Sequence[str],
        metrics: ViewportMetrics,
        *,
        show_difficulty: bool = True,
        config: Optional[EngineConfig] = None,
    ) -> "PolarScale":
        cfg = config or get_engine_config()
        outer = metrics.outer_radius
        inner = outer * cfg.inner_radius_ratio
        return cls(
            angular=BandScale(categories, (0.0, TAU)),
            radial=BandScale(levels, (inner, outer)),
            outer_radius=outer,
            inner_radius=inner,
            unassigned_radius=metrics.unassigned_radius,
            collapsed_radius=outer * cfg.collapsed_radius_ratio,
            show_difficulty=show_difficulty,
        )

    @property
    def has_sectors(self) -> bool:
        return len(self.angular) > 0

    def sector_angle(self, category: str) -> Optional[float]:
        return self.angular.midpoint(category)

    def sector_bounds(self, category: str) -> Optional[Tuple[float, float]]:
        return self.angular.band(category)

    def level_radius(self, level: str) -> Optional[float]:
        return self.radial.midpoint(level)

    def target_radius(self, level: str) -> Optional[float]:
        """Rest radius for a node; a single shared ring when difficulty is hidden."""

        if not self.show_difficulty:
            return self.collapsed_radius
        return self.level_radius(level)

    def ring_radii(self) -> Tuple[Tuple[str, float], ...]:
        return tuple((level, self.radial.midpoint(level) or 0.0) for level in self.radial.domain)

    def label_position(self, category: str, pad: float = 0.0) -> Optional[Point]:
        angle = self.sector_angle(category)
        if angle is None:
            return None
        return polar_to_cartesian(self.outer_radius + pad, angle)

    def sector_at_polar(self, radius: float, theta: float) -> Optional[str]:
        if not self.has_sectors or not math.isfinite(radius):
            return None
        if radius > self.outer_radius + _EPS:
            return None
        return self.angular.find(theta)

    def sector_at(self, x: float, y: float) -> Optional[str]:
        r, theta = cartesian_to_polar(x, y)
        return self.sector_at_polar(r, theta)


__all__ = [
    "BandScale",
    "PolarScale",
    "TAU",
    "cartesian_to_polar",
    "polar_to_cartesian",
]
