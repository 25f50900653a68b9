"""Tests for recognition strategies and the recognizer."""

import math

import numpy as np
import pytest

from gesture_trainer.config import TrainerConfig
from gesture_trainer.events import EventEmitter, EventKind
from gesture_trainer.recognition import (
    CrossCorrelationRecognition,
    GeometricTemplateRecognition,
    Recognizer,
    template_score,
)
from gesture_trainer.store import GestureStore, GestureTemplate
from gesture_trainer.strategies import RecognitionStrategy


class FirstValue(RecognitionStrategy):
    """Scores every candidate with the first value of the gesture's first sample."""

    name = "first value"

    def correlate(self, candidate, samples):
        return float(samples[0][0])


def make_recognizer(templates, **options):
    store = GestureStore()
    for t in templates:
        store.add(t)
    emitter = EventEmitter()
    events = []
    emitter.on(EventKind.GESTURE_RECOGNIZED, lambda e: events.append(("recognized", e)))
    emitter.on(EventKind.GESTURE_UNKNOWN, lambda e: events.append(("unknown", e)))
    for t in templates:
        emitter.on(t.name, lambda e: events.append(("named", e)))
    recognizer = Recognizer(store, FirstValue(), TrainerConfig(**options), emitter)
    return recognizer, events


def template(name, score, is_pose=False):
    return GestureTemplate(name=name, is_pose=is_pose, samples=[np.array([score])])


def arc(n=12, offset=(0.0, 0.0, 0.0)):
    t = np.linspace(0, math.pi, n)
    pts = np.column_stack([np.cos(t) * 100, np.sin(t) * 60, np.zeros(n)]) + offset
    return pts.ravel()


class TestTemplateScore:
    @pytest.mark.parametrize("distance,score", [
        (0.0, 1.0), (1.0, 0.75), (2.0, 0.5), (4.0, 0.0), (9.0, 0.0), (-1.0, 1.0),
    ])
    def test_scores(self, distance, score):
        assert template_score(distance) == pytest.approx(score)

    def test_truncated_to_percent(self):
        assert template_score(1.39) == 0.65

    def test_infinite(self):
        assert template_score(float("inf")) == 0.0


class TestGeometricTemplateRecognition:
    def test_train_normalizes(self):
        strategy = GeometricTemplateRecognition()
        trained = strategy.train([arc()])
        assert trained[0].shape == (75,)
        np.testing.assert_allclose(trained[0].reshape(-1, 3).mean(axis=0), 0, atol=1e-9)

    def test_self_match(self):
        strategy = GeometricTemplateRecognition()
        samples = strategy.train([arc()])
        assert strategy.correlate(arc(), samples) >= 0.99

    def test_translated_match(self):
        strategy = GeometricTemplateRecognition()
        samples = strategy.train([arc()])
        assert strategy.correlate(arc(offset=(50, -20, 10)), samples) >= 0.99

    def test_degenerate_candidates_score_zero(self):
        strategy = GeometricTemplateRecognition()
        samples = strategy.train([arc()])
        assert strategy.correlate(np.array([1.0, 2.0, 3.0]), samples) == 0.0
        assert strategy.correlate(np.tile([1.0, 2.0, 3.0], 10), samples) == 0.0
        assert strategy.correlate(np.array([]), samples) == 0.0

    def test_best_sample_wins(self):
        strategy = GeometricTemplateRecognition()
        line = np.column_stack([np.zeros(12), np.linspace(0, 100, 12), np.zeros(12)]).ravel()
        samples = strategy.train([line, arc()])
        assert strategy.correlate(arc(), samples) >= 0.99


class TestCrossCorrelationRecognition:
    def test_identical(self):
        strategy = CrossCorrelationRecognition()
        x = np.array([1.0, 3.0, 2.0, 5.0, 4.0])
        assert strategy.correlate(x, [x]) == pytest.approx(1.0)

    def test_negative_clamped(self):
        strategy = CrossCorrelationRecognition()
        x = np.array([1.0, 3.0, 2.0, 5.0, 4.0])
        assert strategy.correlate(x, [-x]) == 0.0

    def test_undefined_is_zero(self):
        strategy = CrossCorrelationRecognition()
        assert strategy.correlate(np.ones(4), [np.arange(4.0)]) == 0.0

    def test_train_is_identity(self):
        samples = [np.arange(3.0)]
        assert CrossCorrelationRecognition().train(samples) is samples


class TestRecognizer:
    def test_threshold_is_inclusive(self):
        recognizer, events = make_recognizer([template("SWIPE", 0.65)], hit_threshold=0.65)
        result = recognizer.recognize(np.zeros(30), frame_count=10)
        assert result.recognized
        assert result.name == "SWIPE"
        assert result.score == pytest.approx(0.65)
        assert [k for k, _ in events] == ["recognized", "named"]
        assert events[0][1].scores == {"SWIPE": pytest.approx(0.65)}
        assert events[1][1].name == "SWIPE"

    def test_below_threshold_is_unknown(self):
        recognizer, events = make_recognizer([template("SWIPE", 0.64)], hit_threshold=0.65)
        result = recognizer.recognize(np.zeros(30), frame_count=10)
        assert not result.recognized
        assert result.score == pytest.approx(0.64)
        assert [k for k, _ in events] == ["unknown"]
        assert events[0][1].scores == {"SWIPE": pytest.approx(0.64)}

    def test_best_score_wins(self):
        recognizer, _ = make_recognizer([template("A", 0.7), template("B", 0.9), template("C", 0.8)])
        assert recognizer.recognize(np.zeros(30), frame_count=10).name == "B"

    def test_ties_go_to_last(self):
        recognizer, _ = make_recognizer([template("A", 0.8), template("B", 0.8)])
        assert recognizer.recognize(np.zeros(30), frame_count=10).name == "B"

    def test_pose_only_matches_poses(self):
        recognizer, _ = make_recognizer([
            template("FIST", 0.9, is_pose=True),
            template("SWIPE", 0.7),
        ])
        motion = recognizer.recognize(np.zeros(30), frame_count=10)
        assert motion.name == "SWIPE"
        assert motion.scores["FIST"] == 0.0

        pose = recognizer.recognize(np.zeros(3), frame_count=1)
        assert pose.name == "FIST"
        assert pose.is_pose_candidate
        assert pose.scores["SWIPE"] == 0.0

    def test_nan_score_is_zero(self):
        recognizer, _ = make_recognizer([template("A", math.nan)], hit_threshold=0.0)
        result = recognizer.recognize(np.zeros(30), frame_count=10)
        assert result.scores["A"] == 0.0

    def test_untrained_gesture_scores_zero(self):
        recognizer, _ = make_recognizer([GestureTemplate(name="EMPTY")])
        result = recognizer.recognize(np.zeros(30), frame_count=10)
        assert result.scores == {"EMPTY": 0.0}
        assert not result.recognized

    def test_empty_store(self):
        recognizer, events = make_recognizer([])
        result = recognizer.recognize(np.zeros(30), frame_count=10)
        assert result.name is None
        assert result.score == 0.0
        assert result.scores == {}
        assert [k for k, _ in events] == ["unknown"]

    def test_threshold_read_live(self):
        recognizer, _ = make_recognizer([template("A", 0.5)])
        assert not recognizer.recognize(np.zeros(30), frame_count=10).recognized
        recognizer.config.hit_threshold = 0.5
        assert recognizer.recognize(np.zeros(30), frame_count=10).recognized


class TestMismatchedSamples:
    def test_sample_not_made_of_points(self):
        strategy = GeometricTemplateRecognition()
        # seven values per frame, as the delta recording stores them
        score = strategy.correlate(arc(), [np.full(70, 0.1)])
        assert 0.0 <= score <= 1.0

    def test_sample_too_short_for_a_point(self):
        strategy = GeometricTemplateRecognition()
        assert strategy.correlate(arc(), [np.array([0.1])]) == 0.0

    def test_imported_gesture_from_other_strategy(self):
        from gesture_trainer.controller import GestureController

        controller = GestureController()
        controller.import_json('{"name": "WAVE", "pose": false, "data": [[' + ", ".join(["0.1"] * 70) + "]]}")
        result = controller.recognize(np.arange(30.0), 10)
        assert "WAVE" in result.scores
        assert 0.0 <= result.scores["WAVE"] <= 1.0
