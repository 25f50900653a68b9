"""Example strategy variant file: geometric matching with score logging.

Load it with:
    gesture-trainer --log-level info recognize session.json --strategies plugins --variant geometric-logged

Demonstrates:
- Subclassing a built-in recognition strategy
- Registering a variant with its own config defaults
"""

from __future__ import annotations

import logging
from collections import Counter

from gesture_trainer.recognition import GeometricTemplateRecognition
from gesture_trainer.recording import PositionRecording
from gesture_trainer.segmenter import VelocityTrigger
from gesture_trainer.strategies import StrategyVariant

logger = logging.getLogger("gesture_trainer.plugins.score_logger")


class LoggedGeometricRecognition(GeometricTemplateRecognition):
    """Geometric template matching that logs every score it computes."""

    name = "Geometric Template Matching (logged)"

    def __init__(self):
        super().__init__()
        self.counts: Counter = Counter()

    def correlate(self, candidate, samples):
        score = super().correlate(candidate, samples)
        bucket = "hit" if score >= 0.65 else "miss"
        self.counts[bucket] += 1
        logger.info("📏 score=%.2f (%s, totals: %s)", score, bucket, dict(self.counts))
        return score


variant = StrategyVariant(
    name="geometric-logged",
    recognition=LoggedGeometricRecognition,
    recording=PositionRecording,
    trigger=VelocityTrigger,
    config={"min_pose_frames": 0},
    description="Geometric matching that logs each score (poses disabled)",
)
