"""Gesture training: countdown, sample capture and sample distribution.

Training a gesture goes through a countdown (one ``training-countdown``
notification per second), then arms the gesture so the next completed
segments are stored as training samples instead of being recognized. Once
enough samples are in, extra synthetic samples are generated by jittering
the recorded ones, and the recognition strategy converts everything into
its stored form.
"""

from __future__ import annotations

import logging
import threading
from enum import Enum
from typing import Callable, Optional

import numpy as np

from gesture_trainer.config import TrainerConfig
from gesture_trainer.events import (
    EventEmitter,
    EventKind,
    GestureCreated,
    TrainingComplete,
    TrainingCountdown,
    TrainingGestureSaved,
    TrainingStarted,
)
from gesture_trainer.store import DuplicateGestureError, GestureStore, GestureTemplate
from gesture_trainer.strategies import RecognitionStrategy

logger = logging.getLogger("gesture_trainer.training")

Scheduler = Callable[[float, Callable[[], None]], None]


def thread_scheduler(delay: float, callback: Callable[[], None]):
    """Run ``callback`` after ``delay`` seconds on a daemon timer thread."""
    timer = threading.Timer(delay, callback)
    timer.daemon = True
    timer.start()


class TrainingPhase(Enum):
    IDLE = "idle"
    COUNTDOWN = "countdown"
    ARMED = "armed"


class TrainingCoordinator:
    """Creates gestures and turns recorded segments into stored samples."""

    def __init__(
        self,
        store: GestureStore,
        strategy: RecognitionStrategy,
        config: TrainerConfig,
        emitter: Optional[EventEmitter] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
        pause: Optional[Callable[[], None]] = None,
        resume: Optional[Callable[[], None]] = None,
    ):
        self.store = store
        self.strategy = strategy
        self.config = config
        self._emitter = emitter or EventEmitter()
        self._schedule = scheduler or thread_scheduler
        self._rng = rng or np.random.default_rng()
        self._pause = pause or (lambda: None)
        self._resume = resume or (lambda: None)

        self.training_gesture: Optional[str] = None
        self._countdown: Optional[tuple[str, int]] = None
        self._generation = 0

    @property
    def phase(self) -> TrainingPhase:
        if self.training_gesture is not None:
            return TrainingPhase.ARMED
        if self._countdown is not None:
            return TrainingPhase.COUNTDOWN
        return TrainingPhase.IDLE

    @property
    def is_training(self) -> bool:
        return self.training_gesture is not None

    def create(self, name: str, skip_training: bool = False) -> GestureTemplate:
        """Register a new, empty gesture and (unless skipped) start training it."""
        if name in self.store:
            raise DuplicateGestureError(f"Gesture '{name}' already exists")

        template = GestureTemplate(name=name)
        self.store.add(template)
        logger.info("Created gesture '%s'", name)
        self._emitter.emit(EventKind.GESTURE_CREATED, GestureCreated(name, skip_training))

        if not skip_training:
            self._pause()
            self.start_training(name, self.config.training_countdown)
        return template

    def start_training(self, name: str, countdown: int):
        """Count down ``countdown`` seconds, then arm ``name`` for training."""
        if countdown > 0:
            self._countdown = (name, countdown)
            self._emitter.emit(EventKind.TRAINING_COUNTDOWN, TrainingCountdown(name, countdown))
            generation = self._generation
            self._schedule(1.0, lambda: self._tick(generation, name, countdown - 1))
            return

        self._countdown = None
        self._resume()
        self.training_gesture = name
        logger.info("Training '%s' (%d sample(s))", name, self.config.training_gestures)
        self._emitter.emit(EventKind.TRAINING_STARTED, TrainingStarted(name))

    def _tick(self, generation: int, name: str, countdown: int):
        if generation != self._generation:
            # cancelled while this tick was pending
            return
        self.start_training(name, countdown)

    def cancel(self):
        """Abort any countdown in flight and disarm the gesture being trained."""
        self._generation += 1
        if self._countdown is not None or self.training_gesture is not None:
            logger.info("Training cancelled")
        self._countdown = None
        self.training_gesture = None

    def retrain(self, name: str) -> bool:
        """Discard a gesture's samples and train it again. False if unknown."""
        template = self.store.get(name)
        if template is None:
            return False

        template.samples.clear()
        self._pause()
        self.start_training(name, self.config.training_countdown)
        return True

    def save_sample(self, data: np.ndarray, is_pose: bool):
        """Store a completed segment for the gesture being trained."""
        name = self.training_gesture
        if name is None:
            raise RuntimeError("No gesture is being trained")

        template = self.store.get(name)
        if template is None:
            # removed while armed
            self.training_gesture = None
            return

        template.samples.append(np.array(data, dtype=np.float64))

        if len(template.samples) < self.config.training_gestures:
            logger.debug(
                "Saved sample %d/%d for '%s'",
                len(template.samples), self.config.training_gestures, name,
            )
            self._emitter.emit(
                EventKind.TRAINING_GESTURE_SAVED,
                TrainingGestureSaved(name, list(template.samples)),
            )
            return

        captured = [s.copy() for s in template.samples]
        distributed = self.distribute(list(template.samples))
        self.training_gesture = None
        template.samples = self.strategy.train(distributed)
        template.is_pose = is_pose

        logger.info(
            "Training complete for '%s': %d sample(s)%s",
            name, len(template.samples), " (pose)" if is_pose else "",
        )
        self._emitter.emit(
            EventKind.TRAINING_COMPLETE,
            TrainingComplete(
                name=name,
                captured=captured,
                samples=list(template.samples),
                is_pose=is_pose,
            ),
        )

    def distribute(self, samples: list[np.ndarray]) -> list[np.ndarray]:
        """Append ``convolution_factor`` jittered copies of every sample.

        Each value v becomes ``round(r1 + r2 + r3 * v * 200 + v * 10000) / 10000``
        with r1..r3 uniform in [-1, 1], so the jitter grows with magnitude.
        """
        factor = self.config.convolution_factor
        if factor == 0:
            return samples

        originals = list(samples)
        for _ in range(factor):
            for sample in originals:
                values = np.asarray(sample, dtype=np.float64)
                r1, r2, r3 = (self._rng.uniform(-1.0, 1.0, values.shape) for _ in range(3))
                scaled = values * 10000.0
                # half-up rounding
                generated = np.floor(r1 + r2 + r3 * (scaled / 50.0) + scaled + 0.5) / 10000.0
                samples.append(generated)
        return samples
