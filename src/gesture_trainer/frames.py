"""Sensor frame model.

Frames arrive from a hand-tracking device (one per device tick). Each frame
lists the visible hands; each hand has a palm and a list of fingers. All
positions are millimetres and velocities millimetres per second in device
space. The device driver itself is not part of this package: an adapter
converts its frames into these dataclasses and feeds them to
``GestureController.on_frame``.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Optional

import numpy as np

Vector = tuple[float, float, float]

_ZERO: Vector = (0.0, 0.0, 0.0)


def _vec(value) -> Vector:
    x, y, z = (float(v) for v in value)
    return (x, y, z)


@dataclass
class Finger:
    tip_position: Vector = _ZERO
    tip_velocity: Vector = _ZERO
    direction: Vector = _ZERO
    length: float = 0.0
    stabilized_tip_position: Optional[Vector] = None

    def __post_init__(self):
        self.tip_position = _vec(self.tip_position)
        self.tip_velocity = _vec(self.tip_velocity)
        self.direction = _vec(self.direction)
        if self.stabilized_tip_position is None:
            self.stabilized_tip_position = self.tip_position
        else:
            self.stabilized_tip_position = _vec(self.stabilized_tip_position)

    def to_dict(self) -> dict:
        return {
            "tip_position": list(self.tip_position),
            "stabilized_tip_position": list(self.stabilized_tip_position),
            "tip_velocity": list(self.tip_velocity),
            "direction": list(self.direction),
            "length": self.length,
        }

    @classmethod
    def from_dict(cls, data: dict) -> Finger:
        return cls(
            tip_position=data.get("tip_position", _ZERO),
            stabilized_tip_position=data.get("stabilized_tip_position"),
            tip_velocity=data.get("tip_velocity", _ZERO),
            direction=data.get("direction", _ZERO),
            length=float(data.get("length", 0.0)),
        )


@dataclass
class Hand:
    palm_position: Vector = _ZERO
    palm_velocity: Vector = _ZERO
    palm_normal: Vector = (0.0, -1.0, 0.0)
    direction: Vector = (0.0, 0.0, -1.0)
    fingers: list[Finger] = field(default_factory=list)
    stabilized_palm_position: Optional[Vector] = None

    def __post_init__(self):
        self.palm_position = _vec(self.palm_position)
        self.palm_velocity = _vec(self.palm_velocity)
        self.palm_normal = _vec(self.palm_normal)
        self.direction = _vec(self.direction)
        if self.stabilized_palm_position is None:
            self.stabilized_palm_position = self.palm_position
        else:
            self.stabilized_palm_position = _vec(self.stabilized_palm_position)

    def to_dict(self) -> dict:
        return {
            "palm_position": list(self.palm_position),
            "stabilized_palm_position": list(self.stabilized_palm_position),
            "palm_velocity": list(self.palm_velocity),
            "palm_normal": list(self.palm_normal),
            "direction": list(self.direction),
            "fingers": [f.to_dict() for f in self.fingers],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Hand:
        return cls(
            palm_position=data.get("palm_position", _ZERO),
            stabilized_palm_position=data.get("stabilized_palm_position"),
            palm_velocity=data.get("palm_velocity", _ZERO),
            palm_normal=data.get("palm_normal", (0.0, -1.0, 0.0)),
            direction=data.get("direction", (0.0, 0.0, -1.0)),
            fingers=[Finger.from_dict(f) for f in data.get("fingers", [])],
        )


@dataclass
class Frame:
    """One device tick.

    ``timestamp`` is in seconds; segmentation timing (downtime) is derived
    from it, so replayed sessions behave exactly like live ones.
    """
    hands: list[Hand] = field(default_factory=list)
    timestamp: float = 0.0
    id: int = 0

    @property
    def valid(self) -> bool:
        return self.id >= 0

    @classmethod
    def invalid(cls) -> Frame:
        """Placeholder returned when history does not reach back far enough."""
        return cls(hands=[], timestamp=0.0, id=-1)

    def translation(self, since: Frame) -> Vector:
        """Mean palm displacement since an earlier frame."""
        if not self.hands or not since.hands:
            return _ZERO
        now = np.mean([h.palm_position for h in self.hands], axis=0)
        before = np.mean([h.palm_position for h in since.hands], axis=0)
        return _vec(now - before)

    def rotation_axis(self, since: Frame) -> Vector:
        """Unit axis the first hand's palm normal rotated about."""
        if not self.hands or not since.hands:
            return _ZERO
        axis = np.cross(since.hands[0].palm_normal, self.hands[0].palm_normal)
        norm = float(np.linalg.norm(axis))
        if norm < 1e-9:
            return _ZERO
        return _vec(axis / norm)

    def scale_factor(self, since: Frame) -> float:
        """Ratio of finger spread now to the spread in an earlier frame."""
        now = self._spread()
        before = since._spread()
        if now is None or before is None or before < 1e-9:
            return 1.0
        return now / before

    def _spread(self) -> Optional[float]:
        dists = [
            np.linalg.norm(np.subtract(f.tip_position, h.palm_position))
            for h in self.hands
            for f in h.fingers
        ]
        if not dists:
            return None
        return float(np.mean(dists))

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "timestamp": self.timestamp,
            "hands": [h.to_dict() for h in self.hands],
        }

    @classmethod
    def from_dict(cls, data: dict) -> Frame:
        return cls(
            hands=[Hand.from_dict(h) for h in data.get("hands", [])],
            timestamp=float(data.get("timestamp", 0.0)),
            id=int(data.get("id", 0)),
        )


class FrameHistory:
    """Rolling buffer of recent frames with device-style lookback.

    ``frame(0)`` is the current frame, ``frame(1)`` the one before it.
    """

    def __init__(self, max_frames: int = 60):
        self._frames: deque[Frame] = deque(maxlen=max_frames)

    def push(self, frame: Frame):
        self._frames.append(frame)

    def frame(self, n: int = 0) -> Frame:
        if n < 0 or n >= len(self._frames):
            return Frame.invalid()
        return self._frames[-1 - n]

    def clear(self):
        self._frames.clear()

    def __len__(self) -> int:
        return len(self._frames)
