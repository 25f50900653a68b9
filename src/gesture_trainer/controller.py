"""The gesture controller: frames in, training and recognition events out.

Usage:
    controller = GestureController(hit_threshold=0.7, training_gestures=2)
    controller.on(EventKind.GESTURE_RECOGNIZED, lambda e: print(e.name, e.score))
    controller.create("SWIPE")   # countdown, then perform the gesture twice

    # From the device adapter, once per tick:
    controller.on_frame(frame)
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import numpy as np

from gesture_trainer.config import TrainerConfig
from gesture_trainer.events import (
    ConnectionChanged,
    EventEmitter,
    EventKey,
    EventKind,
    GestureDetected,
    Listener,
)
from gesture_trainer.frames import Frame, FrameHistory
from gesture_trainer.poses import PoseHoldTracker
from gesture_trainer.recognition import (
    GeometricTemplateRecognition,
    RecognitionResult,
    Recognizer,
)
from gesture_trainer.recording import PositionRecording
from gesture_trainer.segmenter import Segmenter, VelocityTrigger
from gesture_trainer.store import (
    DuplicateGestureError,
    GestureStore,
    GestureTemplate,
    parse_gesture,
)
from gesture_trainer.strategies import (
    FrameRecordingStrategy,
    RecognitionStrategy,
    RecordingTriggerStrategy,
    StrategyRegistry,
    StrategyVariant,
)
from gesture_trainer.training import Scheduler, TrainingCoordinator

logger = logging.getLogger("gesture_trainer.controller")


class GestureController:
    """Owns the gesture store and wires segmentation, training and recognition.

    Args:
        config: Full configuration. When omitted, the variant's defaults are
            used, overridden by ``options``.
        variant: Name of a registered strategy variant, or a variant object.
        registry: Registry to resolve ``variant`` names in.
        recognition, recording, trigger: Explicit strategy instances; these
            take precedence over the variant's.
        scheduler: Runs countdown ticks, ``scheduler(delay_seconds, callback)``.
        rng: Random generator used for sample distribution.
        **options: Individual config options (snake_case or camelCase).
    """

    def __init__(
        self,
        config: Optional[TrainerConfig] = None,
        variant: str | StrategyVariant | None = None,
        registry: Optional[StrategyRegistry] = None,
        recognition: Optional[RecognitionStrategy] = None,
        recording: Optional[FrameRecordingStrategy] = None,
        trigger: Optional[RecordingTriggerStrategy] = None,
        scheduler: Optional[Scheduler] = None,
        rng: Optional[np.random.Generator] = None,
        **options: Any,
    ):
        if not isinstance(variant, StrategyVariant):
            registry = registry or StrategyRegistry.with_defaults()
            variant = registry.get(variant or "geometric")
        self.variant = variant

        if config is None:
            config = TrainerConfig.from_dict({**variant.config, **options})
        elif options:
            config = config.with_overrides(**options)
        self.config = config

        self.recognition = recognition or (variant.recognition or GeometricTemplateRecognition)()
        self.recording = recording or (variant.recording or PositionRecording)()
        self.trigger = trigger or (variant.trigger or VelocityTrigger)()

        self.paused = False
        self.connected = False
        self.renderable_gesture: list[list[dict]] = []
        self._destroyed = False

        self._emitter = EventEmitter()
        self.store = GestureStore()
        self.history = FrameHistory()
        self.segmenter = Segmenter(self.config, self.trigger, self.recording, self._emitter)
        self.training = TrainingCoordinator(
            self.store,
            self.recognition,
            self.config,
            self._emitter,
            scheduler=scheduler,
            rng=rng,
            pause=self.pause,
            resume=self.resume,
        )
        self.recognizer = Recognizer(self.store, self.recognition, self.config, self._emitter)
        self.pose_tracker = PoseHoldTracker(
            self.recognition, self.recording, self.config, self._emitter
        )

    # Events

    def on(self, event: EventKey, listener: Listener) -> GestureController:
        self._emitter.on(event, listener)
        return self

    def off(self, event: Optional[EventKey], listener: Listener) -> GestureController:
        self._emitter.off(event, listener)
        return self

    # Frame input

    def on_frame(self, frame: Frame) -> Optional[RecognitionResult]:
        """Handle one sensor frame.

        Returns the recognition result when the frame completed a segment
        that was recognized (or not); None otherwise, including when the
        segment was used for training.
        """
        if self._destroyed:
            return None
        self.history.push(frame)
        if self.paused:
            return None

        if self.pose_tracker.active:
            if not self.pose_tracker.update(frame):
                self.segmenter.mark_hit(frame.timestamp)
            return None

        segment = self.segmenter.feed(frame, self.history.frame(1))
        if segment is None:
            return None

        self.renderable_gesture = segment.renderable
        self._emitter.emit(
            EventKind.GESTURE_DETECTED,
            GestureDetected(segment.data, segment.frame_count, segment.is_pose),
        )

        if self.training.is_training:
            self.training.save_sample(segment.data, segment.is_pose)
            return None

        result = self.recognizer.recognize(segment.data, segment.frame_count)
        if result.recognized and segment.is_pose and self.config.track_pose_hold:
            self.pose_tracker.begin(result.name, segment.data, frame)
        return result

    def connect(self):
        """Report that the device connected."""
        self.connected = True
        self._emitter.emit(EventKind.CONNECT, ConnectionChanged(True))

    def disconnect(self):
        """Report that the device went away. Any recording in progress is dropped."""
        self.connected = False
        self.segmenter.reset()
        self.pose_tracker.cancel()
        self._emitter.emit(EventKind.DISCONNECT, ConnectionChanged(False))

    def pause(self) -> GestureController:
        self.paused = True
        return self

    def resume(self) -> GestureController:
        self.paused = False
        return self

    def destroy(self):
        """Stop reacting to frames and drop all listeners.

        A training countdown still in flight is cancelled.
        """
        self._destroyed = True
        self.training.cancel()
        self.pose_tracker.cancel()
        self._emitter.clear()

    # Gestures

    def create(self, name: str, skip_training: bool = False) -> GestureTemplate:
        return self.training.create(name, skip_training)

    def retrain(self, name: str) -> bool:
        return self.training.retrain(name)

    def recognize(self, data: np.ndarray, frame_count: int) -> RecognitionResult:
        return self.recognizer.recognize(data, frame_count)

    def export(self, name: str) -> Optional[str]:
        """JSON for one gesture, or None if it does not exist."""
        exported = self.store.export(name)
        if exported is not None:
            logger.info("Exported gesture '%s'", name)
        return exported

    def import_json(self, text: str, replace: bool = False) -> GestureTemplate:
        """Install a gesture exported by ``export``.

        The JSON is validated before anything changes. An existing gesture of
        the same name is only replaced when ``replace`` is set.
        """
        imported = parse_gesture(text)
        if imported.name in self.store:
            if not replace:
                raise DuplicateGestureError(f"Gesture '{imported.name}' already exists")
            self.store.remove(imported.name)

        template = self.create(imported.name, skip_training=True)
        template.samples = imported.samples
        template.is_pose = imported.is_pose
        logger.info("Imported gesture '%s' (%d sample(s))", template.name, len(template.samples))
        return template

    @property
    def gestures(self) -> list[str]:
        return self.store.names

    def is_pose(self, name: str) -> bool:
        template = self.store.get(name)
        return bool(template and template.is_pose)

    # Strategy names, for display

    @property
    def recording_trigger_strategy(self) -> str:
        return self.trigger.name

    @property
    def frame_recording_strategy(self) -> str:
        return self.recording.name

    @property
    def recognition_strategy(self) -> str:
        return self.recognition.name
