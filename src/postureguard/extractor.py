from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from postureguard.types import (
    DetectedPose,
    Keypoint,
    KeypointId,
    LandmarkSet,
    Point2D,
)

MIN_KEYPOINT_CONFIDENCE = 0.3


@dataclass(frozen=True)
class LandmarkIds:
    """Engine-specific identifiers of the five tracked landmarks."""

    nose: KeypointId
    left_shoulder: KeypointId
    right_shoulder: KeypointId
    left_hip: KeypointId
    right_hip: KeypointId


# BlazePose 33-landmark topology.
MEDIAPIPE_LANDMARK_IDS = LandmarkIds(
    nose=0,
    left_shoulder=11,
    right_shoulder=12,
    left_hip=23,
    right_hip=24,
)

# COCO-17 keypoints used by YOLO pose models.
COCO_LANDMARK_IDS = LandmarkIds(
    nose=0,
    left_shoulder=5,
    right_shoulder=6,
    left_hip=11,
    right_hip=12,
)

# Named COCO keypoints (MoveNet and similar engines).
COCO_LANDMARK_NAMES = LandmarkIds(
    nose="nose",
    left_shoulder="left_shoulder",
    right_shoulder="right_shoulder",
    left_hip="left_hip",
    right_hip="right_hip",
)


class LandmarkExtractor:
    """Maps the primary detected pose onto a LandmarkSet.

    A landmark is kept only when the engine reported it and, if the engine
    reports confidences, its confidence is above ``min_confidence``. Missing
    landmarks are ``None``; nothing here raises for absent data.
    """

    def __init__(self, ids: LandmarkIds, min_confidence: float = MIN_KEYPOINT_CONFIDENCE) -> None:
        self.ids = ids
        self.min_confidence = min_confidence

    def extract(self, poses: Sequence[DetectedPose]) -> LandmarkSet:
        if not poses:
            return LandmarkSet()

        pose = poses[0]
        by_id = {kp.identifier: kp for kp in pose.keypoints}
        return LandmarkSet(
            nose=self._accept(by_id.get(self.ids.nose)),
            left_shoulder=self._accept(by_id.get(self.ids.left_shoulder)),
            right_shoulder=self._accept(by_id.get(self.ids.right_shoulder)),
            left_hip=self._accept(by_id.get(self.ids.left_hip)),
            right_hip=self._accept(by_id.get(self.ids.right_hip)),
            space=pose.space,
        )

    def _accept(self, kp: Keypoint | None) -> Point2D | None:
        if kp is None:
            return None
        if kp.confidence is not None and not kp.confidence > self.min_confidence:
            return None
        return Point2D(float(kp.x), float(kp.y))
