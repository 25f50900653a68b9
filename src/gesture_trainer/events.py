"""Notifications fired by the gesture controller.

Every notification kind has a fixed payload dataclass. Listeners are plain
callables taking the payload:

    controller.on(EventKind.GESTURE_RECOGNIZED, lambda e: print(e.name, e.score))

Listeners can also subscribe to a gesture name (a plain string). They are
called with a ``GestureMatched`` payload whenever that gesture is recognized:

    controller.on("SWIPE", lambda e: print("swiped!"))
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

import numpy as np

logger = logging.getLogger("gesture_trainer.events")


class EventKind(Enum):
    GESTURE_CREATED = "gesture-created"
    TRAINING_COUNTDOWN = "training-countdown"
    TRAINING_STARTED = "training-started"
    TRAINING_GESTURE_SAVED = "training-gesture-saved"
    TRAINING_COMPLETE = "training-complete"
    STARTED_RECORDING = "started-recording"
    STOPPED_RECORDING = "stopped-recording"
    GESTURE_DETECTED = "gesture-detected"
    GESTURE_RECOGNIZED = "gesture-recognized"
    GESTURE_UNKNOWN = "gesture-unknown"
    HOLDING_POSE = "holding-pose"
    RELEASED_POSE = "released-pose"
    CONNECT = "connect"
    DISCONNECT = "disconnect"


@dataclass
class GestureCreated:
    name: str
    training_skipped: bool


@dataclass
class TrainingCountdown:
    name: str
    remaining: int  # seconds until training starts


@dataclass
class TrainingStarted:
    name: str


@dataclass
class TrainingGestureSaved:
    name: str
    samples: list[np.ndarray]  # raw samples captured so far


@dataclass
class TrainingComplete:
    name: str
    captured: list[np.ndarray]  # raw samples as recorded
    samples: list[np.ndarray]   # stored samples after distribution and training
    is_pose: bool


@dataclass
class RecordingStarted:
    timestamp: float


@dataclass
class RecordingStopped:
    timestamp: float
    frame_count: int


@dataclass
class GestureDetected:
    data: np.ndarray
    frame_count: int
    is_pose: bool = False


@dataclass
class GestureRecognized:
    score: float
    name: str
    scores: dict[str, float] = field(default_factory=dict)


@dataclass
class GestureUnknown:
    scores: dict[str, float] = field(default_factory=dict)


@dataclass
class GestureMatched:
    """Payload of the per-gesture-name notification."""
    name: str
    score: float


@dataclass
class PoseEvent:
    name: str


@dataclass
class ConnectionChanged:
    connected: bool


EventKey = Union[EventKind, str]
Listener = Callable[[Any], None]


class EventEmitter:
    """Keeps listener lists per event key and dispatches payloads to them."""

    def __init__(self):
        self._listeners: dict[EventKey, list[Listener]] = {}

    def on(self, event: EventKey, listener: Listener) -> EventEmitter:
        self._listeners.setdefault(event, []).append(listener)
        return self

    def off(self, event: Optional[EventKey], listener: Listener) -> EventEmitter:
        """Remove a listener, matched by identity. Unknown listeners are ignored."""
        if event is None:
            return self
        listening = self._listeners.get(event)
        if listening:
            for i, registered in enumerate(listening):
                if registered is listener:
                    del listening[i]
                    break
        return self

    def emit(self, event: EventKey, payload: Any = None):
        # Copy so listeners may unsubscribe while being called
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
            except Exception as e:
                logger.error("Listener for %s failed: %s", _key_name(event), e)

    def listeners(self, event: EventKey) -> list[Listener]:
        return list(self._listeners.get(event, []))

    def clear(self):
        self._listeners.clear()


def _key_name(event: EventKey) -> str:
    return event.value if isinstance(event, EventKind) else event
