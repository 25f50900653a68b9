"""Tracking of a recognized pose while the user keeps holding it.

Experimental: thresholds here are provisional.
"""

from __future__ import annotations

import logging
from typing import Optional

import numpy as np

from gesture_trainer.config import TrainerConfig
from gesture_trainer.events import EventEmitter, EventKind, PoseEvent
from gesture_trainer.frames import Frame
from gesture_trainer.strategies import FrameRecordingStrategy, RecognitionStrategy

logger = logging.getLogger("gesture_trainer.poses")


class PoseHoldTracker:
    """Follows a recognized pose frame by frame.

    Each frame is compared with the frame the pose was recognized from.
    ``holding-pose`` fires once while the score stays above
    ``hit_threshold * pose_threshold_ratio``; ``released-pose`` fires when it
    drops below and tracking ends.
    """

    def __init__(
        self,
        recognition: RecognitionStrategy,
        recording: FrameRecordingStrategy,
        config: TrainerConfig,
        emitter: Optional[EventEmitter] = None,
    ):
        self.recognition = recognition
        self.recording = recording
        self.config = config
        self._emitter = emitter or EventEmitter()

        self.name: Optional[str] = None
        self._reference: list[np.ndarray] = []
        self._reference_frame = Frame.invalid()
        self._fired = False

    @property
    def active(self) -> bool:
        return self.name is not None

    def begin(self, name: str, data: np.ndarray, frame: Frame):
        """Start tracking ``name``, recognized from ``data`` recorded at ``frame``."""
        self.name = name
        self._reference = self.recognition.train([np.asarray(data, dtype=np.float64)])
        self._reference_frame = frame
        self._fired = False

    def update(self, frame: Frame) -> bool:
        """Check a frame against the held pose. Returns False once released."""
        if self.name is None:
            return False

        values = np.array(self.recording.record(frame, self._reference_frame), dtype=np.float64)
        values = np.nan_to_num(values, nan=0.0)
        hit = self.recognition.correlate(values, self._reference)
        threshold = self.config.hit_threshold * self.config.pose_threshold_ratio

        if hit > threshold:
            if not self._fired:
                self._fired = True
                self._emitter.emit(EventKind.HOLDING_POSE, PoseEvent(self.name))
            return True

        name = self.name
        self.cancel()
        logger.debug("Released pose '%s' (score=%.2f)", name, hit)
        self._emitter.emit(EventKind.RELEASED_POSE, PoseEvent(name))
        return False

    def cancel(self):
        self.name = None
        self._reference = []
        self._reference_frame = Frame.invalid()
        self._fired = False
