"""Scripted stand-ins for the engine, video source and observer."""
from __future__ import annotations

import asyncio

import numpy as np

from postureguard.engines.base import BasePoseEngine
from postureguard.extractor import COCO_LANDMARK_NAMES
from postureguard.session import PostureObserver
from postureguard.types import DetectedPose, Keypoint
from postureguard.video import VideoSource


def make_pose(points: dict, score: float | None = None, confidence: float | None = 0.9) -> DetectedPose:
    return DetectedPose(
        keypoints=tuple(Keypoint(name, x, y, confidence) for name, (x, y) in points.items()),
        score=score,
    )


UPRIGHT = {
    "nose": (0.4, 0.3),
    "left_shoulder": (0.3, 0.4),
    "right_shoulder": (0.5, 0.4),
    "left_hip": (0.35, 0.8),
    "right_hip": (0.45, 0.8),
}

LEANING = {
    "nose": (0.55, 0.3),
    "left_shoulder": (0.45, 0.4),
    "right_shoulder": (0.65, 0.4),
    "left_hip": (0.35, 0.8),
    "right_hip": (0.45, 0.8),
}

SHOULDERS_ONLY = {
    "nose": (0.4, 0.3),
    "left_shoulder": (0.3, 0.4),
    "right_shoulder": (0.5, 0.4),
}


class FakeEngine(BasePoseEngine):
    """Scripted engine: each estimate() pops the next queued result.

    A queued exception is raised. When ``gate`` is set, estimate() blocks
    until the test releases it; ``load_gate`` does the same for initialize().
    """

    name = "fake"
    landmark_ids = COCO_LANDMARK_NAMES

    def __init__(self, results=None, fail_load: Exception | None = None) -> None:
        self.results = list(results or [])
        self.fail_load = fail_load
        self.gate: asyncio.Event | None = None
        self.load_gate: asyncio.Event | None = None
        self.entered: asyncio.Event | None = None
        self.initialized = False
        self.disposed = 0
        self.calls = 0
        self.in_flight = 0
        self.max_in_flight = 0

    async def initialize(self) -> None:
        if self.load_gate is not None:
            await self.load_gate.wait()
        else:
            await asyncio.sleep(0)
        if self.fail_load is not None:
            raise self.fail_load
        self.initialized = True

    async def estimate(self, frame_bgr):
        if self.disposed:
            raise AssertionError("estimate() called on a disposed engine")
        self.calls += 1
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.entered is not None:
                self.entered.set()
            if self.gate is not None:
                await self.gate.wait()
            else:
                await asyncio.sleep(0)
            result = self.results.pop(0) if self.results else []
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1

    def dispose(self) -> None:
        self.disposed += 1


class FakeVideo(VideoSource):
    def __init__(self, frames: int | None = None, ready: bool = True) -> None:
        self._ready = ready
        self.remaining = frames
        self.closed = False

    @property
    def ready(self) -> bool:
        return self._ready

    @property
    def finished(self) -> bool:
        return self.remaining is not None and self.remaining <= 0

    def read_frame(self):
        if self.remaining is not None:
            self.remaining -= 1
        return np.zeros((48, 64, 3), dtype=np.uint8)

    def close(self) -> None:
        self.closed = True


class RecordingObserver(PostureObserver):
    def __init__(self) -> None:
        self.snapshots = []
        self.loading = []
        self.errors = []

    def on_snapshot(self, snapshot) -> None:
        self.snapshots.append(snapshot)

    def on_loading_changed(self, loading: bool) -> None:
        self.loading.append(loading)

    def on_error(self, message: str) -> None:
        self.errors.append(message)


