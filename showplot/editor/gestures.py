"""Pointer geometry for the stage: two-finger pinch/rotate and drop placement."""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Sequence

from .nodes import MAX_SCALE, MIN_SCALE, clamp


@dataclass(frozen=True)
class Touch:
    x: float
    y: float


@dataclass(frozen=True)
class StageRect:
    """Viewport box of the stage element, with its CSS padding."""

    left: float
    top: float
    right: float
    bottom: float
    padding_left: float = 0
    padding_top: float = 0
    padding_right: float = 0
    padding_bottom: float = 0

    def content_box(self) -> tuple[float, float, float, float]:
        return (
            self.left + self.padding_left,
            self.top + self.padding_top,
            self.right - self.padding_right,
            self.bottom - self.padding_bottom,
        )


def _span(touches: Sequence[Touch]) -> tuple[float, float]:
    a, b = touches[0], touches[1]
    dx = b.x - a.x
    dy = b.y - a.y
    return math.hypot(dx, dy), math.atan2(dy, dx)


@dataclass
class PinchGesture:
    node_id: str
    start_dist: float
    start_angle: float
    start_scale: float
    start_rotation: float

    @classmethod
    def start(cls, touches: Sequence[Touch], node: Optional[dict]) -> Optional["PinchGesture"]:
        """Begin a pinch on the selected node; None without two touches or a selection."""
        if len(touches) < 2 or not node:
            return None
        dist, angle = _span(touches)
        if dist == 0:
            return None
        return cls(
            node_id=node["id"],
            start_dist=dist,
            start_angle=angle,
            start_scale=node.get("scale") or 1,
            start_rotation=node.get("rotation") or 0,
        )

    def update(self, touches: Sequence[Touch]) -> Optional[tuple[float, float]]:
        """Current (scale, rotation) for the node, or None if a finger lifted."""
        if len(touches) < 2:
            return None
        dist, angle = _span(touches)
        scale = clamp(self.start_scale * (dist / self.start_dist), MIN_SCALE, MAX_SCALE)
        rotation = self.start_rotation + math.degrees(angle - self.start_angle)
        return scale, rotation


def drop_point(rect: StageRect, client_x: float, client_y: float) -> Optional[tuple[float, float]]:
    """Map a viewport point to stage coordinates; None when it falls outside the content box."""
    left, top, right, bottom = rect.content_box()
    if not (left <= client_x <= right and top <= client_y <= bottom):
        return None
    return client_x - left, client_y - top
