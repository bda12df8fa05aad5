from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Union

KeypointId = Union[int, str]


class CoordinateSpace(str, Enum):
    NORMALIZED = "normalized"
    PIXEL = "pixel"


class PostureState(str, Enum):
    INITIALIZING = "initializing"
    GOOD = "good"
    BAD = "bad"


class SessionState(str, Enum):
    LOADING = "loading"
    READY = "ready"
    ERROR = "error"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(frozen=True)
class Point2D:
    x: float
    y: float


@dataclass(frozen=True)
class Keypoint:
    identifier: KeypointId
    x: float
    y: float
    confidence: float | None = None


@dataclass(frozen=True)
class DetectedPose:
    """One person as reported by an inference engine."""

    keypoints: tuple[Keypoint, ...]
    score: float | None = None
    space: CoordinateSpace = CoordinateSpace.NORMALIZED


@dataclass(frozen=True)
class LandmarkSet:
    nose: Point2D | None = None
    left_shoulder: Point2D | None = None
    right_shoulder: Point2D | None = None
    left_hip: Point2D | None = None
    right_hip: Point2D | None = None
    space: CoordinateSpace = CoordinateSpace.NORMALIZED

    @property
    def has_torso(self) -> bool:
        return all(
            p is not None
            for p in (self.left_shoulder, self.right_shoulder, self.left_hip, self.right_hip)
        )

    def points(self) -> dict[str, Point2D | None]:
        return {
            "nose": self.nose,
            "left_shoulder": self.left_shoulder,
            "right_shoulder": self.right_shoulder,
            "left_hip": self.left_hip,
            "right_hip": self.right_hip,
        }

    def to_pixels(self, width: int, height: int) -> LandmarkSet:
        if self.space is CoordinateSpace.PIXEL:
            return self

        def scale(p: Point2D | None) -> Point2D | None:
            if p is None:
                return None
            return Point2D(p.x * width, p.y * height)

        return LandmarkSet(
            nose=scale(self.nose),
            left_shoulder=scale(self.left_shoulder),
            right_shoulder=scale(self.right_shoulder),
            left_hip=scale(self.left_hip),
            right_hip=scale(self.right_hip),
            space=CoordinateSpace.PIXEL,
        )


@dataclass(frozen=True)
class PostureFeatures:
    back_angle_degrees: float
    neck_forward_offset: float


@dataclass(frozen=True)
class PostureSnapshot:
    status: PostureState
    landmarks: LandmarkSet = field(default_factory=LandmarkSet)
    neck_angle: float = 0.0
    back_angle: float = 0.0
    confidence: float = 0.0

    def to_dict(self) -> dict:
        return {
            "status": self.status.value,
            "landmarks": {
                k: ([p.x, p.y] if p is not None else None) for k, p in self.landmarks.points().items()
            },
            "coordinate_space": self.landmarks.space.value,
            "neck_angle": self.neck_angle,
            "back_angle": self.back_angle,
            "confidence": self.confidence,
        }
