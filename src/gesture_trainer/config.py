"""Trainer configuration.

Options can be given in snake_case or in the camelCase spelling used by
earlier releases and exported UI settings (``minRecordingVelocity``, ...).

Load from YAML:
    config = TrainerConfig.from_yaml("trainer.yml")

    # trainer.yml
    hit_threshold: 0.7
    training_gestures: 3
    convolution_factor: 2
"""

from __future__ import annotations

import re
from dataclasses import asdict, dataclass, fields, replace
from pathlib import Path
from typing import Any

import yaml


@dataclass
class TrainerConfig:
    # Any palm/fingertip velocity component at or above this starts or continues motion recording (mm/s)
    min_recording_velocity: float = 300.0
    # Velocities at or below this count towards pose recording (mm/s)
    max_recording_velocity: float = 30.0
    # Shorter recordings are discarded as noise
    min_gesture_frames: int = 5
    # Consecutive still frames before a pose is captured; 0 disables poses
    min_pose_frames: int = 75
    # Minimum score for a gesture to count as recognized
    hit_threshold: float = 0.65
    # Seconds of countdown before training starts
    training_countdown: int = 3
    # Samples recorded per gesture during training
    training_gestures: int = 1
    # Passes of synthetic sample generation after training
    convolution_factor: int = 0
    # Milliseconds after a completed segment during which frames are ignored
    downtime: float = 1000.0
    # Track a recognized pose until it is released
    track_pose_hold: bool = False
    # Share of hit_threshold a held pose must keep scoring
    pose_threshold_ratio: float = 0.73

    def __post_init__(self):
        self.validate()

    def validate(self):
        if self.min_gesture_frames < 1:
            raise ValueError("min_gesture_frames must be at least 1")
        if self.min_pose_frames < 0:
            raise ValueError("min_pose_frames must not be negative")
        if self.training_gestures < 1:
            raise ValueError("training_gestures must be at least 1")
        if self.convolution_factor < 0:
            raise ValueError("convolution_factor must not be negative")
        if self.training_countdown < 0:
            raise ValueError("training_countdown must not be negative")
        if self.downtime < 0:
            raise ValueError("downtime must not be negative")
        if not 0.0 <= self.hit_threshold <= 1.0:
            raise ValueError("hit_threshold must be within [0, 1]")

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    def with_overrides(self, **overrides) -> TrainerConfig:
        """Copy with some options changed (either spelling)."""
        return replace(self, **_normalize_keys(overrides))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> TrainerConfig:
        return cls(**_normalize_keys(data))

    @classmethod
    def from_yaml(cls, path: str | Path) -> TrainerConfig:
        with open(path) as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"{path}: expected a mapping of options")
        return cls.from_dict(data)

    def to_yaml(self, path: str | Path):
        with open(path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)


_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def _normalize_keys(data: dict[str, Any]) -> dict[str, Any]:
    known = {f.name for f in fields(TrainerConfig)}
    normalized = {}
    for key, value in data.items():
        name = _CAMEL_BOUNDARY.sub("_", key).lower()
        if name not in known:
            raise ValueError(f"Unknown trainer option: {key}")
        normalized[name] = value
    return normalized
