"""Tests for held-pose tracking."""

import numpy as np

from gesture_trainer.config import TrainerConfig
from gesture_trainer.events import EventEmitter, EventKind
from gesture_trainer.frames import Frame
from gesture_trainer.poses import PoseHoldTracker
from gesture_trainer.recording import PositionRecording
from gesture_trainer.strategies import RecognitionStrategy


class ScriptedScore(RecognitionStrategy):
    """Returns queued scores, one per frame."""

    name = "scripted"

    def __init__(self, scores):
        self.scores = list(scores)

    def correlate(self, candidate, samples):
        return self.scores.pop(0)


def make_tracker(scores, **options):
    emitter = EventEmitter()
    events = []
    emitter.on(EventKind.HOLDING_POSE, lambda e: events.append(("holding", e.name)))
    emitter.on(EventKind.RELEASED_POSE, lambda e: events.append(("released", e.name)))
    tracker = PoseHoldTracker(
        ScriptedScore(scores), PositionRecording(), TrainerConfig(**options), emitter
    )
    return tracker, events


class TestPoseHoldTracker:
    def test_inactive_until_begun(self):
        tracker, events = make_tracker([])
        assert not tracker.active
        assert tracker.update(Frame()) is False
        assert events == []

    def test_holding_fires_once(self):
        tracker, events = make_tracker([0.9, 0.8, 0.7])
        tracker.begin("FIST", np.zeros(3), Frame())
        assert tracker.update(Frame())
        assert tracker.update(Frame())
        assert tracker.update(Frame())
        assert events == [("holding", "FIST")]

    def test_release_below_ratio(self):
        # 0.65 * 0.73 = 0.4745
        tracker, events = make_tracker([0.9, 0.48, 0.47], hit_threshold=0.65)
        tracker.begin("FIST", np.zeros(3), Frame())
        assert tracker.update(Frame())
        assert tracker.update(Frame())
        assert not tracker.update(Frame())
        assert events == [("holding", "FIST"), ("released", "FIST")]
        assert not tracker.active

    def test_cancel(self):
        tracker, events = make_tracker([0.9])
        tracker.begin("FIST", np.zeros(3), Frame())
        tracker.cancel()
        assert not tracker.active
        assert events == []
