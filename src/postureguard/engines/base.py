from __future__ import annotations

import numpy as np

from postureguard.extractor import LandmarkIds
from postureguard.types import CoordinateSpace, DetectedPose


class BasePoseEngine:
    """Asynchronous pose-estimation capability consumed by a DetectionSession.

    ``initialize`` raises EngineLoadError, ``estimate`` raises InferenceError.
    ``dispose`` must be safe to call more than once.
    """

    name = "base"
    coordinate_space = CoordinateSpace.NORMALIZED
    landmark_ids: LandmarkIds

    async def initialize(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    async def estimate(self, frame_bgr: np.ndarray) -> list[DetectedPose]:  # pragma: no cover - interface
        raise NotImplementedError

    def dispose(self) -> None:
        return None
