"""3D point value type used by the template matcher."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

import numpy as np


@dataclass(frozen=True)
class Point3D:
    """A point on a gesture path.

    ``stroke`` groups points that belong to one continuous path. Only
    single-stroke gestures are recorded, so callers always pass 1.
    """
    x: float
    y: float
    z: float
    stroke: int = 1

    def distance_to(self, other: Point3D) -> float:
        dx = self.x - other.x
        dy = self.y - other.y
        dz = self.z - other.z
        return math.sqrt(dx * dx + dy * dy + dz * dz)

    def as_tuple(self) -> tuple[float, float, float]:
        return (self.x, self.y, self.z)


ORIGIN = Point3D(0.0, 0.0, 0.0, 0)


def points_from_flat(values: Sequence[float], stroke: int = 1) -> list[Point3D]:
    """Group a flat ``[x, y, z, x, y, z, ...]`` sequence into points.

    A trailing partial triple is dropped.
    """
    flat = np.asarray(values, dtype=np.float64).ravel()
    usable = len(flat) - len(flat) % 3
    return [
        Point3D(float(flat[i]), float(flat[i + 1]), float(flat[i + 2]), stroke)
        for i in range(0, usable, 3)
    ]


def points_to_array(points: Sequence[Point3D]) -> np.ndarray:
    """Stack points into an ``(N, 3)`` float64 array."""
    if not points:
        return np.zeros((0, 3), dtype=np.float64)
    return np.array([p.as_tuple() for p in points], dtype=np.float64)


def array_to_points(arr: np.ndarray, strokes: Sequence[int] | None = None) -> list[Point3D]:
    if strokes is None:
        strokes = [1] * len(arr)
    return [
        Point3D(float(row[0]), float(row[1]), float(row[2]), int(s))
        for row, s in zip(arr, strokes)
    ]
