from __future__ import annotations

import math

from postureguard.types import LandmarkSet, Point2D, PostureFeatures


def midpoint(a: Point2D | None, b: Point2D | None) -> Point2D | None:
    if a is None or b is None:
        return None
    return Point2D((a.x + b.x) / 2.0, (a.y + b.y) / 2.0)


def angle_from_vertical(top: Point2D, bottom: Point2D) -> float:
    """Signed angle in degrees of the bottom->top segment from vertical.

    0 means ``top`` sits straight above ``bottom``. Image y grows downward.
    """
    dx = top.x - bottom.x
    dy = bottom.y - top.y
    return math.degrees(math.atan2(dx, dy))


def compute_features(landmarks: LandmarkSet) -> PostureFeatures:
    shoulder_mid = midpoint(landmarks.left_shoulder, landmarks.right_shoulder)
    hip_mid = midpoint(landmarks.left_hip, landmarks.right_hip)

    back_angle = 0.0
    if shoulder_mid is not None and hip_mid is not None:
        back_angle = angle_from_vertical(shoulder_mid, hip_mid)

    neck_forward = 0.0
    if landmarks.nose is not None and shoulder_mid is not None:
        neck_forward = abs(landmarks.nose.x - shoulder_mid.x)

    return PostureFeatures(back_angle_degrees=back_angle, neck_forward_offset=neck_forward)
