"""Frame recording strategies: what numbers a frame adds to a segment."""

from __future__ import annotations

from gesture_trainer.frames import Frame
from gesture_trainer.strategies import FrameRecordingStrategy


class PositionRecording(FrameRecordingStrategy):
    """Stabilized palm position followed by each stabilized fingertip position.

    Every recorded triple is a point in space, which is what the geometric
    template matcher expects.
    """

    name = "3D Geometric Positioning"

    def record(self, frame: Frame, last_frame: Frame) -> list[float]:
        values: list[float] = []
        for hand in frame.hands:
            values.extend(hand.stabilized_palm_position)
            for finger in hand.fingers:
                values.extend(finger.stabilized_tip_position)
        return values


class DeltaRecording(FrameRecordingStrategy):
    """Frame-to-frame translation, rotation axis and scale factor.

    Seven values per frame regardless of how many hands are visible.
    """

    name = "Low-Resolution"

    def record(self, frame: Frame, last_frame: Frame) -> list[float]:
        values: list[float] = []
        values.extend(frame.translation(last_frame))
        values.extend(frame.rotation_axis(last_frame))
        values.append(frame.scale_factor(last_frame))
        return values


class HighResolutionRecording(FrameRecordingStrategy):
    """Palm velocity, normal and direction, then each finger's tip velocity
    and direction.

    Hands and fingers are sorted first so the value order does not depend on
    the order the device happened to report them in.
    """

    name = "High-Resolution"

    def record(self, frame: Frame, last_frame: Frame) -> list[float]:
        hands = sorted(
            frame.hands,
            key=lambda h: (*h.palm_normal, *h.direction, *h.palm_velocity),
        )
        values: list[float] = []
        for hand in hands:
            values.extend(hand.palm_velocity)
            values.extend(hand.palm_normal)
            values.extend(hand.direction)
            fingers = sorted(
                hand.fingers,
                key=lambda f: (*f.tip_velocity, *f.direction),
            )
            for finger in fingers:
                values.extend(finger.tip_velocity)
                values.extend(finger.direction)
        return values
