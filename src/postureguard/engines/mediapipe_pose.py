from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path

import cv2

# Prefer CPU execution for broader compatibility with local webcams.
os.environ.setdefault("MEDIAPIPE_DISABLE_GPU", "1")

import mediapipe as mp
import numpy as np

from postureguard.engines.base import BasePoseEngine
from postureguard.errors import EngineLoadError, InferenceError
from postureguard.extractor import MEDIAPIPE_LANDMARK_IDS
from postureguard.types import CoordinateSpace, DetectedPose, Keypoint

logger = logging.getLogger(__name__)

DEFAULT_TASK_MODEL_PATH = "models/mediapipe/pose_landmarker_lite.task"


class MediaPipePoseEngine(BasePoseEngine):
    name = "mediapipe"
    coordinate_space = CoordinateSpace.NORMALIZED
    landmark_ids = MEDIAPIPE_LANDMARK_IDS

    def __init__(
        self,
        min_detection_confidence: float = 0.5,
        min_tracking_confidence: float = 0.5,
        model_complexity: int = 1,
        task_model_path: str | None = None,
    ) -> None:
        self.min_detection_confidence = min_detection_confidence
        self.min_tracking_confidence = min_tracking_confidence
        self.model_complexity = model_complexity
        self.task_model_path = task_model_path
        self.backend: str | None = None
        self.pose = None

    async def initialize(self) -> None:
        try:
            await asyncio.to_thread(self._load)
        except EngineLoadError:
            raise
        except Exception as e:
            raise EngineLoadError(f"Failed to load MediaPipe pose model: {e}") from e
        logger.info("MediaPipe pose engine ready (backend=%s)", self.backend)

    def _load(self) -> None:
        if hasattr(mp, "solutions"):
            self.backend = "solutions"
            self.pose = mp.solutions.pose.Pose(
                static_image_mode=False,
                model_complexity=self.model_complexity,
                smooth_landmarks=True,
                min_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence,
            )
            return

        model_path = Path(self.task_model_path or DEFAULT_TASK_MODEL_PATH)
        if not model_path.exists():
            raise EngineLoadError(
                f"MediaPipe Tasks model not found at: {model_path}. "
                "Download it first with scripts/download_pose_landmarker.py."
            )

        try:
            from mediapipe.tasks import python as mp_python
            from mediapipe.tasks.python import vision
        except ImportError as e:
            raise EngineLoadError(
                "Installed mediapipe package does not provide either `solutions` or tasks vision APIs."
            ) from e

        options = vision.PoseLandmarkerOptions(
            base_options=mp_python.BaseOptions(
                model_asset_path=str(model_path),
                delegate=mp_python.BaseOptions.Delegate.CPU,
            ),
            running_mode=vision.RunningMode.IMAGE,
            num_poses=1,
            min_pose_detection_confidence=self.min_detection_confidence,
            min_pose_presence_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence,
        )
        self.backend = "tasks"
        self.pose = vision.PoseLandmarker.create_from_options(options)

    async def estimate(self, frame_bgr: np.ndarray) -> list[DetectedPose]:
        if self.pose is None:
            raise InferenceError("MediaPipe pose engine is not initialized")
        try:
            return await asyncio.to_thread(self._infer, frame_bgr)
        except Exception as e:
            raise InferenceError(f"MediaPipe inference failed: {e}") from e

    def _infer(self, frame_bgr: np.ndarray) -> list[DetectedPose]:
        frame_rgb = cv2.cvtColor(frame_bgr, cv2.COLOR_BGR2RGB)
        if self.backend == "solutions":
            results = self.pose.process(frame_rgb)
            if not results.pose_landmarks:
                return []
            landmark_lists = [results.pose_landmarks.landmark]
        else:
            mp_image = mp.Image(image_format=mp.ImageFormat.SRGB, data=frame_rgb)
            results = self.pose.detect(mp_image)
            if not results.pose_landmarks:
                return []
            landmark_lists = results.pose_landmarks

        return [self.to_pose(lm) for lm in landmark_lists]

    @staticmethod
    def to_pose(landmarks) -> DetectedPose:
        return DetectedPose(
            keypoints=tuple(
                Keypoint(
                    identifier=idx,
                    x=float(lm.x),
                    y=float(lm.y),
                    confidence=float(getattr(lm, "visibility", 1.0)),
                )
                for idx, lm in enumerate(landmarks)
            ),
            space=CoordinateSpace.NORMALIZED,
        )

    def dispose(self) -> None:
        pose, self.pose = self.pose, None
        if pose is not None and hasattr(pose, "close"):
            pose.close()
