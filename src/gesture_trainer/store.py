"""Named gesture templates and their JSON exchange format.

Exported gestures look like:

    {"name": "SWIPE", "pose": false, "data": [[0.12, -0.4, ...], ...]}

``data`` holds the stored samples exactly as training left them (already
distributed and, for template matching, normalized).
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from numbers import Real
from pathlib import Path
from typing import Any, Iterator, Optional

import numpy as np

logger = logging.getLogger("gesture_trainer.store")


class DuplicateGestureError(ValueError):
    """A gesture with this name already exists."""


class GestureFormatError(ValueError):
    """Serialized gesture data is missing fields or has the wrong types."""


@dataclass
class GestureTemplate:
    """Stored reference data for one named gesture."""
    name: str
    is_pose: bool = False
    samples: list[np.ndarray] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "pose": bool(self.is_pose),
            "data": [np.asarray(s, dtype=np.float64).ravel().tolist() for s in self.samples],
        }

    @classmethod
    def from_dict(cls, data: Any) -> GestureTemplate:
        """Build a template from its exported form, validating every field."""
        if not isinstance(data, dict):
            raise GestureFormatError("Gesture must be a JSON object")

        missing = [k for k in ("name", "pose", "data") if k not in data]
        if missing:
            raise GestureFormatError(f"Gesture is missing field(s): {', '.join(missing)}")

        name = data["name"]
        if not isinstance(name, str) or not name:
            raise GestureFormatError("Gesture 'name' must be a non-empty string")
        if not isinstance(data["pose"], bool):
            raise GestureFormatError(f"Gesture '{name}': 'pose' must be a boolean")

        samples_in = data["data"]
        if not isinstance(samples_in, list):
            raise GestureFormatError(f"Gesture '{name}': 'data' must be a list of samples")

        samples = []
        for i, sample in enumerate(samples_in):
            if not isinstance(sample, list) or not all(
                isinstance(v, Real) and not isinstance(v, bool) for v in sample
            ):
                raise GestureFormatError(
                    f"Gesture '{name}': sample {i} must be a list of numbers"
                )
            samples.append(np.array(sample, dtype=np.float64))

        return cls(name=name, is_pose=data["pose"], samples=samples)


def parse_gesture(text: str) -> GestureTemplate:
    """Parse one exported gesture from a JSON string."""
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise GestureFormatError(f"Invalid gesture JSON: {e}") from e
    return GestureTemplate.from_dict(data)


class GestureStore:
    """Ordered mapping of gesture name to template."""

    def __init__(self):
        self._templates: dict[str, GestureTemplate] = {}

    def add(self, template: GestureTemplate, replace: bool = False):
        if template.name in self._templates and not replace:
            raise DuplicateGestureError(f"Gesture '{template.name}' already exists")
        self._templates[template.name] = template

    def get(self, name: str) -> Optional[GestureTemplate]:
        return self._templates.get(name)

    def remove(self, name: str) -> bool:
        return self._templates.pop(name, None) is not None

    def clear(self):
        self._templates.clear()

    def export(self, name: str) -> Optional[str]:
        """JSON for one gesture, or None if it does not exist."""
        template = self._templates.get(name)
        if template is None:
            return None
        return json.dumps(template.to_dict())

    def save_to_file(self, path: str | Path):
        """Save every gesture to a JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        data = {"gestures": [t.to_dict() for t in self._templates.values()]}
        with open(path, "w") as f:
            json.dump(data, f)
        logger.info("Saved %d gesture(s) to %s", len(self._templates), path)

    def load_from_file(self, path: str | Path, replace: bool = False) -> int:
        """Load gestures from a file written by ``save_to_file``.

        Every entry is validated before any is added. Returns the number of
        gestures loaded.
        """
        with open(path) as f:
            try:
                data = json.load(f)
            except json.JSONDecodeError as e:
                raise GestureFormatError(f"{path}: invalid JSON: {e}") from e

        if not isinstance(data, dict) or not isinstance(data.get("gestures"), list):
            raise GestureFormatError(f"{path}: expected an object with a 'gestures' list")

        templates = [GestureTemplate.from_dict(entry) for entry in data["gestures"]]
        if not replace:
            for template in templates:
                if template.name in self._templates:
                    raise DuplicateGestureError(f"Gesture '{template.name}' already exists")
        for template in templates:
            self.add(template, replace=replace)
        logger.info("Loaded %d gesture(s) from %s", len(templates), path)
        return len(templates)

    @property
    def names(self) -> list[str]:
        return list(self._templates.keys())

    def __contains__(self, name: str) -> bool:
        return name in self._templates

    def __iter__(self) -> Iterator[GestureTemplate]:
        return iter(list(self._templates.values()))

    def __len__(self) -> int:
        return len(self._templates)
