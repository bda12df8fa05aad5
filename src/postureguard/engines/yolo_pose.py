from __future__ import annotations

import asyncio
import logging

import numpy as np

from postureguard.engines.base import BasePoseEngine
from postureguard.errors import EngineLoadError, InferenceError
from postureguard.extractor import COCO_LANDMARK_IDS
from postureguard.types import CoordinateSpace, DetectedPose, Keypoint

logger = logging.getLogger(__name__)


class YoloPoseEngine(BasePoseEngine):
    name = "yolo-pose"
    coordinate_space = CoordinateSpace.NORMALIZED
    landmark_ids = COCO_LANDMARK_IDS

    def __init__(
        self,
        model_path: str = "yolo11n-pose.pt",
        conf_threshold: float = 0.25,
        iou_threshold: float = 0.45,
        imgsz: int = 640,
        device: str = "cpu",
    ) -> None:
        self.model_path = model_path
        self.conf_threshold = conf_threshold
        self.iou_threshold = iou_threshold
        self.imgsz = imgsz
        self.device = device
        self.model = None

    async def initialize(self) -> None:
        try:
            from ultralytics import YOLO
        except ImportError as e:
            raise EngineLoadError(
                "YOLO-Pose backend requires ultralytics. Install with: pip install postureguard[yolo]"
            ) from e

        try:
            self.model = await asyncio.to_thread(YOLO, self.model_path)
        except Exception as e:
            raise EngineLoadError(f"Failed to load YOLO pose model {self.model_path!r}: {e}") from e
        logger.info("YOLO pose engine ready (model=%s, device=%s)", self.model_path, self.device)

    async def estimate(self, frame_bgr: np.ndarray) -> list[DetectedPose]:
        if self.model is None:
            raise InferenceError("YOLO pose engine is not initialized")
        try:
            return await asyncio.to_thread(self._infer, frame_bgr)
        except Exception as e:
            raise InferenceError(f"YOLO inference failed: {e}") from e

    def _infer(self, frame_bgr: np.ndarray) -> list[DetectedPose]:
        results = self.model.predict(
            source=frame_bgr,
            conf=self.conf_threshold,
            iou=self.iou_threshold,
            imgsz=self.imgsz,
            device=self.device,
            verbose=False,
        )
        if not results:
            return []
        h, w = frame_bgr.shape[:2]
        return self.to_poses(results[0], width=w, height=h)

    @staticmethod
    def to_poses(result, width: int, height: int) -> list[DetectedPose]:
        """Convert one ultralytics result into poses, most confident person first."""
        keypoints = result.keypoints
        if keypoints is None or keypoints.xy is None or len(keypoints.xy) == 0:
            return []

        kxy_all = keypoints.xy.cpu().numpy()
        kcf_all = keypoints.conf.cpu().numpy() if keypoints.conf is not None else None
        boxes = getattr(result, "boxes", None)
        box_conf = boxes.conf.cpu().numpy() if boxes is not None and boxes.conf is not None else None

        poses = []
        for i, kxy in enumerate(kxy_all):
            kps = tuple(
                Keypoint(
                    identifier=idx,
                    x=float(xy[0] / max(width, 1)),
                    y=float(xy[1] / max(height, 1)),
                    confidence=float(kcf_all[i][idx]) if kcf_all is not None else None,
                )
                for idx, xy in enumerate(kxy)
            )
            score = float(box_conf[i]) if box_conf is not None else None
            poses.append(DetectedPose(keypoints=kps, score=score, space=CoordinateSpace.NORMALIZED))

        poses.sort(key=lambda p: p.score if p.score is not None else 0.0, reverse=True)
        return poses

    def dispose(self) -> None:
        self.model = None
