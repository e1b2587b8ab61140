"""Pan/zoom view transform shared by rendering, hit testing and gestures."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Optional

from .types import Point, Viewport

MIN_POSITIVE_SCALE = 1e-6


@dataclass(frozen=True)
class ViewTransform:
    """Screen = viewport centre + offset + scale * graph."""

    offset_x: float = 0.0
    offset_y: float = 0.0
    scale: float = 1.0

    def safe_scale(self, minimum: float = MIN_POSITIVE_SCALE) -> float:
        k = self.scale
        if not math.isfinite(k) or k < minimum:
            return minimum
        return k

    def to_graph(self, point: Point, viewport: Viewport, *, min_scale: float = MIN_POSITIVE_SCALE) -> Point:
        cx, cy = viewport.center
        k = self.safe_scale(min_scale)
        return (point[0] - cx - self.offset_x) / k, (point[1] - cy - self.offset_y) / k

    def to_screen(self, point: Point, viewport: Viewport, *, min_scale: float = MIN_POSITIVE_SCALE) -> Point:
        cx, cy = viewport.center
        k = self.safe_scale(min_scale)
        return cx + self.offset_x + point[0] * k, cy + self.offset_y + point[1] * k

    def panned(self, dx: float, dy: float) -> "ViewTransform":
        if not (math.isfinite(dx) and math.isfinite(dy)):
            return self
        return replace(self, offset_x=self.offset_x + dx, offset_y=self.offset_y + dy)

    def with_scale(self, scale: float, lo: Optional[float] = None, hi: Optional[float] = None) -> "ViewTransform":
        if not math.isfinite(scale):
            scale = self.scale
        if lo is not None:
            scale = max(lo, scale)
        if hi is not None:
            scale = min(hi, scale)
        return replace(self, scale=max(scale, MIN_POSITIVE_SCALE))


__all__ = ["MIN_POSITIVE_SCALE", "ViewTransform"]
