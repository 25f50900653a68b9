"""Strategy interfaces and the registry of named controller variants.

A controller is assembled from three strategies:

- ``RecordingTriggerStrategy`` decides whether a frame is moving, still or
  neither, which drives segmentation.
- ``FrameRecordingStrategy`` turns a frame into the numbers appended to the
  segment being recorded.
- ``RecognitionStrategy`` trains stored samples and scores a candidate
  segment against them.

A ``StrategyVariant`` bundles one of each with configuration defaults tuned
for that combination. Variants are kept in an ordered ``StrategyRegistry``.

Extra variants can be dropped into a directory as .py files, each defining a
module-level ``variant`` (a StrategyVariant) or ``variants`` (a list):

    from gesture_trainer.strategies import StrategyVariant

    variant = StrategyVariant(
        name="my-variant",
        recognition=MyRecognition,
    )
"""

from __future__ import annotations

import importlib.util
import logging
import sys
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Callable, Optional, Sequence

import numpy as np

from gesture_trainer.frames import Frame

logger = logging.getLogger("gesture_trainer.strategies")


class FrameActivity(Enum):
    """How a frame looks to the recording trigger."""
    MOVING = "moving"  # fast enough to record motion
    STILL = "still"    # slow enough to count towards a pose
    IDLE = "idle"      # neither, or no hands


class RecordingTriggerStrategy(ABC):
    name: str = "unnamed"

    @abstractmethod
    def classify(
        self, frame: Frame, min_velocity: float, max_velocity: float
    ) -> FrameActivity:
        """Classify a frame for segmentation against the velocity limits."""


class FrameRecordingStrategy(ABC):
    name: str = "unnamed"

    @abstractmethod
    def record(self, frame: Frame, last_frame: Frame) -> list[float]:
        """Return the values this frame contributes to the current segment."""


class RecognitionStrategy(ABC):
    name: str = "unnamed"

    def train(self, samples: list[np.ndarray]) -> list[np.ndarray]:
        """Convert raw training samples into their stored form."""
        return samples

    @abstractmethod
    def correlate(self, candidate: np.ndarray, samples: Sequence[np.ndarray]) -> float:
        """Similarity in [0, 1] between a candidate and a gesture's samples."""


@dataclass
class StrategyVariant:
    """A named combination of strategies plus config defaults.

    Strategy fields are factories (usually the classes themselves) so that
    every controller gets its own instances. ``None`` keeps the default
    strategy for that slot.
    """
    name: str
    recognition: Optional[Callable[[], RecognitionStrategy]] = None
    recording: Optional[Callable[[], FrameRecordingStrategy]] = None
    trigger: Optional[Callable[[], RecordingTriggerStrategy]] = None
    config: dict[str, Any] = field(default_factory=dict)
    description: str = ""


class StrategyRegistry:
    """Ordered registry of strategy variants, looked up by name."""

    def __init__(self):
        self._variants: dict[str, StrategyVariant] = {}

    def register(self, variant: StrategyVariant):
        if variant.name in self._variants:
            logger.warning("Variant '%s' already registered, replacing", variant.name)
        self._variants[variant.name] = variant
        logger.info("Registered strategy variant: %s", variant.name)

    def get(self, name: str) -> StrategyVariant:
        try:
            return self._variants[name]
        except KeyError:
            raise KeyError(
                f"Unknown strategy variant '{name}' (known: {', '.join(self._variants)})"
            ) from None

    def load_directory(self, path: str | Path) -> int:
        """Register variants defined in .py files under ``path``.

        Files starting with an underscore are skipped. A file that fails to
        import is logged and skipped. Returns the number of variants added.
        """
        path = Path(path)
        if not path.exists():
            logger.debug("Strategy directory %s does not exist", path)
            return 0

        loaded = 0
        for py_file in sorted(path.glob("*.py")):
            if py_file.name.startswith("_"):
                continue
            try:
                variants = self._load_variant_file(py_file)
            except Exception as e:
                logger.error("Failed to load strategy file %s: %s", py_file.name, e)
                continue
            for variant in variants:
                self.register(variant)
                loaded += 1
        return loaded

    def _load_variant_file(self, path: Path) -> list[StrategyVariant]:
        module_name = f"gesture_trainer_variant_{path.stem}"

        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            return []

        module = importlib.util.module_from_spec(spec)
        sys.modules[module_name] = module
        spec.loader.exec_module(module)

        found = []
        single = getattr(module, "variant", None)
        if isinstance(single, StrategyVariant):
            found.append(single)
        for item in getattr(module, "variants", []) or []:
            if isinstance(item, StrategyVariant):
                found.append(item)

        if not found:
            logger.warning("No StrategyVariant found in %s", path.name)
        return found

    @property
    def names(self) -> list[str]:
        return list(self._variants.keys())

    def __iter__(self):
        return iter(self._variants.values())

    def __len__(self) -> int:
        return len(self._variants)

    def __contains__(self, name: str) -> bool:
        return name in self._variants

    @classmethod
    def with_defaults(cls) -> StrategyRegistry:
        """Registry with the built-in geometric, cross-correlation and
        high-resolution variants, in that order."""
        from gesture_trainer.recognition import (
            CrossCorrelationRecognition,
            GeometricTemplateRecognition,
        )
        from gesture_trainer.recording import (
            DeltaRecording,
            HighResolutionRecording,
            PositionRecording,
        )
        from gesture_trainer.segmenter import VelocityTrigger

        registry = cls()

        registry.register(StrategyVariant(
            name="geometric",
            recognition=GeometricTemplateRecognition,
            recording=PositionRecording,
            trigger=VelocityTrigger,
            description="3D point-cloud template matching on palm and fingertip paths",
        ))

        registry.register(StrategyVariant(
            name="cross-correlation",
            recognition=CrossCorrelationRecognition,
            recording=DeltaRecording,
            trigger=VelocityTrigger,
            config={
                "training_gestures": 3,
                "hit_threshold": 0.6,
                "convolution_factor": 5,
            },
            description="Correlation of frame-to-frame motion deltas",
        ))

        registry.register(StrategyVariant(
            name="high-resolution",
            recognition=GeometricTemplateRecognition,
            recording=HighResolutionRecording,
            trigger=VelocityTrigger,
            config={"hit_threshold": 0.3},
            description="Template matching on sorted hand and finger velocities and directions",
        ))

        return registry
