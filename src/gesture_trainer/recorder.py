"""Sensor session recording and replay.

Record real device sessions for:
- Training and recognizing gestures offline (see the CLI)
- Reproducible tests without a device attached
"""

from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Iterator, Optional

from gesture_trainer.frames import Frame


class FrameRecorder:
    """Collects sensor frames and writes them to a JSON session file.

    Usage:
        recorder = FrameRecorder()
        recorder.start()
        # In the device callback:
        recorder.add_frame(frame)
        # When done:
        recorder.save("session.json")
    """

    def __init__(self):
        self._frames: list[Frame] = []
        self._recording = False

    def start(self):
        """Begin a new recording session."""
        self._frames = []
        self._recording = True

    def stop(self) -> int:
        """Stop recording. Returns number of frames captured."""
        self._recording = False
        return len(self._frames)

    @property
    def is_recording(self) -> bool:
        return self._recording

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        """Seconds between the first and last frame."""
        if len(self._frames) < 2:
            return 0.0
        return self._frames[-1].timestamp - self._frames[0].timestamp

    def add_frame(self, frame: Frame):
        if not self._recording:
            return
        self._frames.append(frame)

    def save(self, path: str | Path):
        """Save recording to JSON file."""
        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)

        data = {
            "version": 1,
            "frame_count": len(self._frames),
            "duration": self.duration,
            "frames": [f.to_dict() for f in self._frames],
        }

        with open(path, "w") as f:
            json.dump(data, f)


class FramePlayer:
    """Replays a recorded session.

    Usage:
        player = FramePlayer.load("session.json")
        for frame in player.play():
            controller.on_frame(frame)
    """

    def __init__(self, frames: list[Frame]):
        self._frames = frames

    @classmethod
    def load(cls, path: str | Path) -> FramePlayer:
        with open(path) as f:
            data = json.load(f)
        return cls([Frame.from_dict(f) for f in data["frames"]])

    @property
    def frame_count(self) -> int:
        return len(self._frames)

    @property
    def duration(self) -> float:
        if len(self._frames) < 2:
            return 0.0
        return self._frames[-1].timestamp - self._frames[0].timestamp

    def play(self) -> Iterator[Frame]:
        """Iterate through all frames instantly (no timing)."""
        yield from self._frames

    def play_realtime(self, speed: float = 1.0) -> Iterator[Frame]:
        """Replay at original timing (or scaled by speed factor).

        Args:
            speed: Playback speed multiplier (2.0 = double speed).
        """
        if not self._frames:
            return

        first = self._frames[0].timestamp
        start = time.monotonic()

        for frame in self._frames:
            target_time = (frame.timestamp - first) / speed
            elapsed = time.monotonic() - start
            if target_time > elapsed:
                time.sleep(target_time - elapsed)
            yield frame

    def get_frame(self, index: int) -> Optional[Frame]:
        """Get a specific frame by index."""
        if 0 <= index < len(self._frames):
            return self._frames[index]
        return None
