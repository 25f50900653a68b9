"""Frame-driven segmentation of continuous sensor input into gestures.

The segmenter sees every frame. Fast frames start and extend a recording;
the first frame that is not fast enough ends it. A hand held still for long
enough is captured as a single-frame pose instead. After each completed
segment, frames are ignored for a downtime window so one motion does not
trigger twice.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

import numpy as np

from gesture_trainer.config import TrainerConfig
from gesture_trainer.events import (
    EventEmitter,
    EventKind,
    RecordingStarted,
    RecordingStopped,
)
from gesture_trainer.frames import Frame
from gesture_trainer.strategies import (
    FrameActivity,
    FrameRecordingStrategy,
    RecordingTriggerStrategy,
)

logger = logging.getLogger("gesture_trainer.segmenter")


def _peak(vector) -> float:
    return max(abs(c) for c in vector)


class VelocityTrigger(RecordingTriggerStrategy):
    """Classifies frames by palm and fingertip speed.

    The speed of a palm or fingertip is its largest absolute velocity
    component. Any speed at or above ``min_velocity`` makes the frame MOVING.
    A still palm marks the frame STILL without looking at that hand's
    fingers; otherwise the first still fingertip does.
    """

    name = "Frame velocity"

    def classify(
        self, frame: Frame, min_velocity: float, max_velocity: float
    ) -> FrameActivity:
        still = False
        for hand in frame.hands:
            palm = _peak(hand.palm_velocity)
            if palm >= min_velocity:
                return FrameActivity.MOVING
            if palm <= max_velocity:
                still = True
                continue

            for finger in hand.fingers:
                tip = _peak(finger.tip_velocity)
                if tip >= min_velocity:
                    return FrameActivity.MOVING
                if tip <= max_velocity:
                    still = True
                    break

        return FrameActivity.STILL if still else FrameActivity.IDLE


class SegmenterPhase(Enum):
    IDLE = "idle"
    RECORDING = "recording"
    POSE_ACCUMULATING = "pose_accumulating"


@dataclass
class Segment:
    """A completed recording, ready for training or recognition."""
    data: np.ndarray  # flat recorded values
    frame_count: int
    is_pose: bool
    started_at: float
    ended_at: float
    renderable: list[list[dict]] = field(default_factory=list)


class Segmenter:
    """Per-frame segmentation state machine.

    Reads its thresholds from ``config`` on every frame, so option changes
    take effect immediately.
    """

    def __init__(
        self,
        config: TrainerConfig,
        trigger: RecordingTriggerStrategy,
        recording: FrameRecordingStrategy,
        emitter: Optional[EventEmitter] = None,
    ):
        self.config = config
        self.trigger = trigger
        self.recording_strategy = recording
        self._emitter = emitter or EventEmitter()

        self.recording = False
        self.frame_count = 0
        self.pose_frame_streak = 0
        self.last_hit: Optional[float] = None  # ms

        self._values: list[float] = []
        self._renderable: list[list[dict]] = []
        self._started_at = 0.0

    @property
    def phase(self) -> SegmenterPhase:
        if self.recording:
            return SegmenterPhase.RECORDING
        if self.pose_frame_streak > 0:
            return SegmenterPhase.POSE_ACCUMULATING
        return SegmenterPhase.IDLE

    def in_downtime(self, timestamp: float) -> bool:
        if self.last_hit is None:
            return False
        return timestamp * 1000.0 - self.last_hit < self.config.downtime

    def mark_hit(self, timestamp: float):
        """Start a downtime window at ``timestamp`` (seconds)."""
        self.last_hit = timestamp * 1000.0

    def feed(self, frame: Frame, last_frame: Frame) -> Optional[Segment]:
        """Process one frame. Returns a segment when one completes."""
        if self.in_downtime(frame.timestamp):
            return None

        cfg = self.config
        activity = self.trigger.classify(
            frame, cfg.min_recording_velocity, cfg.max_recording_velocity
        )

        if activity is FrameActivity.MOVING:
            self.pose_frame_streak = 0
            if not self.recording:
                self._start(frame.timestamp)
            self.frame_count += 1
            self._capture(frame, last_frame)
            return None

        if activity is FrameActivity.STILL:
            self.pose_frame_streak += 1
        else:
            self.pose_frame_streak = 0

        if self.recording:
            return self._stop(frame.timestamp)

        if cfg.min_pose_frames > 0 and self.pose_frame_streak >= cfg.min_pose_frames:
            return self._capture_pose(frame, last_frame)

        return None

    def reset(self):
        """Drop any recording in progress and forget the downtime window."""
        self.recording = False
        self.frame_count = 0
        self.pose_frame_streak = 0
        self.last_hit = None
        self._values = []
        self._renderable = []

    def _start(self, timestamp: float):
        self.recording = True
        self.frame_count = 0
        self._values = []
        self._renderable = []
        self._started_at = timestamp
        self._emitter.emit(EventKind.STARTED_RECORDING, RecordingStarted(timestamp))

    def _stop(self, timestamp: float) -> Optional[Segment]:
        self.recording = False
        frame_count = self.frame_count
        self._emitter.emit(
            EventKind.STOPPED_RECORDING, RecordingStopped(timestamp, frame_count)
        )
        self.mark_hit(timestamp)

        if frame_count < self.config.min_gesture_frames:
            logger.debug(
                "Discarded %d-frame recording (minimum %d)",
                frame_count, self.config.min_gesture_frames,
            )
            return None

        return Segment(
            data=np.array(self._values, dtype=np.float64),
            frame_count=frame_count,
            is_pose=False,
            started_at=self._started_at,
            ended_at=timestamp,
            renderable=self._renderable,
        )

    def _capture_pose(self, frame: Frame, last_frame: Frame) -> Segment:
        self._values = []
        self._renderable = []
        self._emitter.emit(EventKind.STARTED_RECORDING, RecordingStarted(frame.timestamp))
        self._capture(frame, last_frame)
        self._emitter.emit(EventKind.STOPPED_RECORDING, RecordingStopped(frame.timestamp, 1))
        self.pose_frame_streak = 0
        self.mark_hit(frame.timestamp)
        logger.debug("Captured pose after %d still frames", self.config.min_pose_frames)

        return Segment(
            data=np.array(self._values, dtype=np.float64),
            frame_count=1,
            is_pose=True,
            started_at=frame.timestamp,
            ended_at=frame.timestamp,
            renderable=self._renderable,
        )

    def _capture(self, frame: Frame, last_frame: Frame):
        values = self.recording_strategy.record(frame, last_frame)
        self._values.extend(0.0 if math.isnan(v) else float(v) for v in values)
        self._renderable.append([
            {
                "position": list(h.stabilized_palm_position),
                "direction": list(h.direction),
                "palm_normal": list(h.palm_normal),
                "fingers": [
                    {
                        "position": list(f.stabilized_tip_position),
                        "direction": list(f.direction),
                        "length": f.length,
                    }
                    for f in h.fingers
                ],
            }
            for h in frame.hands
        ])
