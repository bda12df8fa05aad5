from __future__ import annotations

from dataclasses import dataclass

from postureguard.types import CoordinateSpace, LandmarkSet, PostureState

BACK_ANGLE_THRESHOLD = 15.0
# Fraction of frame width; roughly 30 px on a 640 px frame.
NECK_FORWARD_THRESHOLD = 0.05


@dataclass(frozen=True)
class PostureThresholds:
    back_angle_degrees: float = BACK_ANGLE_THRESHOLD
    neck_forward_offset: float = NECK_FORWARD_THRESHOLD
    space: CoordinateSpace = CoordinateSpace.NORMALIZED


DEFAULT_THRESHOLDS = PostureThresholds()


def classify(
    landmarks: LandmarkSet,
    back_angle_degrees: float,
    neck_forward_offset: float,
    thresholds: PostureThresholds = DEFAULT_THRESHOLDS,
) -> PostureState:
    if not landmarks.has_torso:
        return PostureState.INITIALIZING

    if abs(back_angle_degrees) > thresholds.back_angle_degrees:
        return PostureState.BAD
    if neck_forward_offset > thresholds.neck_forward_offset:
        return PostureState.BAD
    return PostureState.GOOD
