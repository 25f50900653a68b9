"""Recognition strategies and the recognizer that applies them.

The recognizer scores a completed segment against every stored gesture of
the same kind (pose or motion) and reports the best one if it clears the hit
threshold.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np

from gesture_trainer.config import TrainerConfig
from gesture_trainer.correlation import CrossCorrelationScorer
from gesture_trainer.events import (
    EventEmitter,
    EventKind,
    GestureMatched,
    GestureRecognized,
    GestureUnknown,
)
from gesture_trainer.geometry import points_from_flat, points_to_array
from gesture_trainer.matcher import TemplateMatcher
from gesture_trainer.store import GestureStore, GestureTemplate
from gesture_trainer.strategies import RecognitionStrategy

logger = logging.getLogger("gesture_trainer.recognition")

# Template distance at which the similarity score reaches zero
MAX_TEMPLATE_DISTANCE = 4.0


def template_score(distance: float) -> float:
    """Map a template-matching distance onto a [0, 1] similarity.

    Truncated to whole percent.
    """
    if not math.isfinite(distance):
        return 0.0
    percent = int(100 * (distance - MAX_TEMPLATE_DISTANCE) / -MAX_TEMPLATE_DISTANCE)
    return min(max(percent, 0), 100) / 100.0


class GeometricTemplateRecognition(RecognitionStrategy):
    """Nearest-template matching of normalized 3D point paths."""

    name = "Geometric Template Matching"

    def __init__(self, matcher: Optional[TemplateMatcher] = None):
        self.matcher = matcher or TemplateMatcher()

    def train(self, samples: list[np.ndarray]) -> list[np.ndarray]:
        return [self.matcher.process(s).ravel() for s in samples]

    def correlate(self, candidate: np.ndarray, samples: Sequence[np.ndarray]) -> float:
        points = points_from_flat(candidate)
        if len(points) < 2 or self.matcher.path_length(points) < 1e-12:
            return 0.0

        path = self.matcher.process(candidate)
        nearest = float("inf")
        for sample in samples:
            # trailing values that do not form a point are dropped
            template = points_to_array(points_from_flat(sample))
            nearest = min(nearest, self.matcher.match(path, template))
        return template_score(nearest)


class CrossCorrelationRecognition(RecognitionStrategy):
    """Mean correlation of the raw recorded values with each sample."""

    name = "Cross-Correlation"

    def __init__(self, scorer: Optional[CrossCorrelationScorer] = None):
        self.scorer = scorer or CrossCorrelationScorer()

    def correlate(self, candidate: np.ndarray, samples: Sequence[np.ndarray]) -> float:
        score = self.scorer.correlate(candidate, samples)
        if not math.isfinite(score):
            return 0.0
        return min(max(score, 0.0), 1.0)


@dataclass
class RecognitionResult:
    """Outcome of one recognition attempt. ``name`` is None when unknown."""
    name: Optional[str]
    score: float
    scores: dict[str, float] = field(default_factory=dict)
    is_pose_candidate: bool = False

    @property
    def recognized(self) -> bool:
        return self.name is not None


class Recognizer:
    """Scores segments against a gesture store and fires the outcome."""

    def __init__(
        self,
        store: GestureStore,
        strategy: RecognitionStrategy,
        config: TrainerConfig,
        emitter: Optional[EventEmitter] = None,
    ):
        self.store = store
        self.strategy = strategy
        self.config = config
        self._emitter = emitter or EventEmitter()

    def score(self, template: GestureTemplate, data: np.ndarray) -> float:
        """Similarity of ``data`` to one gesture; 0.0 for anything degenerate."""
        if not template.samples:
            return 0.0
        hit = float(self.strategy.correlate(data, template.samples))
        if not math.isfinite(hit):
            return 0.0
        return hit

    def recognize(self, data: np.ndarray, frame_count: int) -> RecognitionResult:
        """Classify a segment and fire ``gesture-recognized`` or ``gesture-unknown``.

        Single-frame segments are poses and are only compared with gestures
        trained as poses; longer segments only with motion gestures. On equal
        scores the gesture later in store order wins.
        """
        data = np.asarray(data, dtype=np.float64).ravel()
        recognizing_pose = frame_count == 1

        scores: dict[str, float] = {}
        best_score = 0.0
        best_name: Optional[str] = None

        for template in self.store:
            if template.is_pose != recognizing_pose:
                hit = 0.0
            else:
                hit = self.score(template, data)
            scores[template.name] = hit

            if best_name is None or hit >= best_score:
                best_score = hit
                best_name = template.name

        if best_name is not None and best_score >= self.config.hit_threshold:
            logger.info("Recognized %s (score=%.2f)", best_name, best_score)
            self._emitter.emit(
                EventKind.GESTURE_RECOGNIZED,
                GestureRecognized(score=best_score, name=best_name, scores=dict(scores)),
            )
            self._emitter.emit(best_name, GestureMatched(name=best_name, score=best_score))
            return RecognitionResult(best_name, best_score, scores, recognizing_pose)

        logger.debug("Unknown gesture (best=%s %.2f)", best_name, best_score)
        self._emitter.emit(EventKind.GESTURE_UNKNOWN, GestureUnknown(scores=dict(scores)))
        return RecognitionResult(None, best_score, scores, recognizing_pose)
