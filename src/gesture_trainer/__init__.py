"""gesture_trainer - Train and recognize 3D hand-motion gestures."""

__version__ = "0.5.0"

from gesture_trainer.config import TrainerConfig
from gesture_trainer.controller import GestureController
from gesture_trainer.correlation import CrossCorrelationScorer
from gesture_trainer.events import EventEmitter, EventKind
from gesture_trainer.frames import Finger, Frame, FrameHistory, Hand
from gesture_trainer.geometry import Point3D
from gesture_trainer.matcher import TemplateMatcher
from gesture_trainer.recognition import (
    CrossCorrelationRecognition,
    GeometricTemplateRecognition,
    RecognitionResult,
    Recognizer,
)
from gesture_trainer.recorder import FramePlayer, FrameRecorder
from gesture_trainer.recording import DeltaRecording, HighResolutionRecording, PositionRecording
from gesture_trainer.segmenter import Segment, Segmenter, VelocityTrigger
from gesture_trainer.store import (
    DuplicateGestureError,
    GestureFormatError,
    GestureStore,
    GestureTemplate,
)
from gesture_trainer.strategies import StrategyRegistry, StrategyVariant
from gesture_trainer.training import TrainingCoordinator
