"""Geometric template matching for 3D gesture paths.

A variant of the $P point-cloud recognizer extended to three dimensions.
Recorded gestures are resampled to a fixed number of points, scaled to a
unit bounding box and centered on the origin, then compared with a greedy
nearest-point alignment that is insensitive to small timing differences.

Usage:
    matcher = TemplateMatcher()
    template = matcher.process(training_values)
    candidate = matcher.process(recorded_values)
    distance = matcher.match(candidate, template)  # lower = closer
"""

from __future__ import annotations

import math
from typing import Optional, Sequence

import numpy as np

from gesture_trainer.geometry import (
    ORIGIN,
    Point3D,
    array_to_points,
    points_from_flat,
    points_to_array,
)


def _pairwise_distances(a: np.ndarray, b: np.ndarray) -> np.ndarray:
    """Euclidean distance matrix, shape (len(a), len(b)). Missing entries are inf."""
    dists = np.linalg.norm(a[:, None, :] - b[None, :, :], axis=2)
    return np.where(np.isnan(dists), np.inf, dists)


class TemplateMatcher:
    """Stateless resample/normalize/match pipeline.

    Args:
        point_count: Number of points every path is resampled to.
        origin: Point the normalized path's centroid is moved to.
        epsilon: Start-offset sampling exponent. ``match`` tries every
            ``floor(N ** (1 - epsilon))``-th start offset; ``None`` tries all.
    """

    def __init__(
        self,
        point_count: int = 25,
        origin: Point3D = ORIGIN,
        epsilon: Optional[float] = None,
    ):
        if point_count < 2:
            raise ValueError("point_count must be at least 2")
        self.point_count = point_count
        self.origin = origin
        self.epsilon = epsilon

    def process(self, values: Sequence[float]) -> np.ndarray:
        """Turn flat recorded values into a normalized ``(N, 3)`` path."""
        points = points_from_flat(values, stroke=1)
        resampled = self.resample(points, self.point_count)
        return points_to_array(self.translate_to(self.scale(resampled), self.origin))

    def match(self, candidate: np.ndarray, template: np.ndarray) -> float:
        """Symmetric greedy alignment distance between two normalized paths."""
        a = np.asarray(candidate, dtype=np.float64).reshape(-1, 3)
        b = np.asarray(template, dtype=np.float64).reshape(-1, 3)
        n = len(a)
        if n == 0 or len(b) == 0:
            return float("inf")

        if self.epsilon is None:
            step = 1
        else:
            step = max(1, int(math.floor(n ** (1 - self.epsilon))))

        best = float("inf")
        for start in range(0, n, step):
            best = min(
                best,
                self.gesture_distance(a, b, start),
                self.gesture_distance(b, a, start),
            )
        return best

    def gesture_distance(self, a: np.ndarray, b: np.ndarray, start: int) -> float:
        """Directional greedy matching distance from ``a`` onto ``b``.

        Walks ``a`` circularly from ``start``. Each point takes the nearest
        point of ``b`` not already taken; early points in the walk weigh more.
        """
        a = np.asarray(a, dtype=np.float64).reshape(-1, 3)
        b = np.asarray(b, dtype=np.float64).reshape(-1, 3)
        n = len(a)
        if n == 0:
            return float("inf")

        m = min(n, len(b))
        if m == 0:
            return float("inf")
        dists = _pairwise_distances(a, b[:m])
        matched = np.zeros(m, dtype=bool)
        start %= n

        total = 0.0
        for offset in range(n):
            i = (start + offset) % n
            row = np.where(matched, np.inf, dists[i])
            j = int(np.argmin(row))  # first index wins ties
            d = float(row[j])
            if not math.isfinite(d):
                # no partner left for this point
                return float("inf")
            matched[j] = True
            total += (1.0 - offset / n) * d
        return total

    def resample(self, points: Sequence[Point3D], n: int) -> list[Point3D]:
        """Resample a path to ``n`` points spaced evenly along its length.

        Paths of fewer than two points cannot be resampled and are returned
        unchanged.
        """
        if len(points) < 2:
            return list(points)

        interval = self.path_length(points) / (n - 1)
        if interval < 1e-12:
            return [points[0]] * n

        path = list(points)
        resampled = [path[0]]
        dist = 0.0
        i = 1
        while i < len(path):
            p, pp = path[i], path[i - 1]
            if p.stroke == pp.stroke:
                d = pp.distance_to(p)
                if dist + d >= interval:
                    t = (interval - dist) / d
                    q = Point3D(
                        pp.x + t * (p.x - pp.x),
                        pp.y + t * (p.y - pp.y),
                        pp.z + t * (p.z - pp.z),
                        p.stroke,
                    )
                    resampled.append(q)
                    # q starts the next segment
                    path.insert(i, q)
                    dist = 0.0
                else:
                    dist += d
            i += 1

        last = path[-1]
        while len(resampled) < n:
            resampled.append(Point3D(last.x, last.y, last.z, last.stroke))
        return resampled[:n]

    def scale(self, points: Sequence[Point3D]) -> list[Point3D]:
        """Scale uniformly so the largest bounding-box side is 1."""
        if not points:
            return []
        arr = points_to_array(points)
        mins = arr.min(axis=0)
        size = float((arr.max(axis=0) - mins).max())
        if size < 1e-12:
            size = 1.0
        return array_to_points((arr - mins) / size, [p.stroke for p in points])

    def translate_to(self, points: Sequence[Point3D], target: Point3D) -> list[Point3D]:
        """Move the path so its centroid sits on ``target``."""
        if not points:
            return []
        arr = points_to_array(points)
        shift = np.array(target.as_tuple()) - arr.mean(axis=0)
        return array_to_points(arr + shift, [p.stroke for p in points])

    @staticmethod
    def centroid(points: Sequence[Point3D]) -> Point3D:
        arr = points_to_array(points)
        c = arr.mean(axis=0)
        return Point3D(float(c[0]), float(c[1]), float(c[2]), 0)

    @staticmethod
    def path_length(points: Sequence[Point3D]) -> float:
        """Length of the path, counting only steps within one stroke."""
        total = 0.0
        for prev, cur in zip(points, points[1:]):
            if cur.stroke == prev.stroke:
                total += prev.distance_to(cur)
        return total
