from __future__ import annotations

import asyncio
import logging
import time
from collections import Counter
from dataclasses import dataclass

import cv2

from postureguard.classifier import DEFAULT_THRESHOLDS, PostureThresholds
from postureguard.config import SessionSettings
from postureguard.engines.base import BasePoseEngine
from postureguard.errors import EngineLoadError
from postureguard.overlay import draw_skeleton
from postureguard.session import DetectionSession, PostureObserver
from postureguard.types import PostureSnapshot, PostureState, SessionState
from postureguard.video import VideoSource

logger = logging.getLogger(__name__)

WINDOW_NAME = "PostureGuard"


class PostureTally(PostureObserver):
    """Counts published snapshots per status for the end-of-run summary."""

    def __init__(self) -> None:
        self.counts: Counter[PostureState] = Counter()
        self.confidences: list[float] = []
        self.errors: list[str] = []

    def on_snapshot(self, snapshot: PostureSnapshot) -> None:
        self.counts[snapshot.status] += 1
        self.confidences.append(snapshot.confidence)

    def on_loading_changed(self, loading: bool) -> None:
        logger.info("Loading pose model..." if loading else "Pose model loaded")

    def on_error(self, message: str) -> None:
        self.errors.append(message)


@dataclass
class RunSummary:
    model_name: str
    duration_seconds: float
    processed_frames: int
    good_ratio: float
    bad_ratio: float
    initializing_ratio: float
    avg_confidence: float


class MonitorRunner:
    def __init__(
        self,
        engine: BasePoseEngine,
        video: VideoSource,
        model_name: str,
        thresholds: PostureThresholds = DEFAULT_THRESHOLDS,
        settings: SessionSettings | None = None,
        display: bool = False,
        duration_minutes: float | None = None,
    ) -> None:
        self.engine = engine
        self.video = video
        self.model_name = model_name
        self.thresholds = thresholds
        self.settings = settings or SessionSettings()
        self.display = display
        self.duration_minutes = duration_minutes

    def run(self) -> RunSummary:
        return asyncio.run(self.run_async())

    async def run_async(self) -> RunSummary:
        tally = PostureTally()
        session: DetectionSession | None = None
        start = time.time()
        try:
            session = DetectionSession(
                self.engine,
                thresholds=self.thresholds,
                observers=[tally],
                frame_interval_s=self.settings.frame_interval_s,
                default_confidence=self.settings.default_confidence,
                min_keypoint_confidence=self.settings.min_keypoint_confidence,
            )
            if not await session.load():
                raise EngineLoadError(session.error or "Failed to load pose detection model")

            session.start(self.video)
            await self._watch(session)
        finally:
            if session is not None:
                await session.close()
            self.video.close()
            if self.display:
                cv2.destroyAllWindows()

        return self._build_summary(tally, elapsed_s=max(time.time() - start, 1e-6))

    async def _watch(self, session: DetectionSession) -> None:
        deadline = None
        if self.duration_minutes is not None:
            deadline = time.monotonic() + self.duration_minutes * 60.0

        while session.state is SessionState.RUNNING:
            if deadline is not None and time.monotonic() >= deadline:
                break
            if self.display and self._show(session.snapshot):
                break
            await asyncio.sleep(max(self.settings.frame_interval_s, 0.01))

        session.stop()

    def _show(self, snapshot: PostureSnapshot) -> bool:
        frame = self.video.read_frame()
        if frame is None:
            return False
        draw_skeleton(frame, snapshot)
        cv2.imshow(WINDOW_NAME, frame)
        return cv2.waitKey(1) & 0xFF == ord("q")

    def _build_summary(self, tally: PostureTally, elapsed_s: float) -> RunSummary:
        processed = sum(tally.counts.values())

        def ratio(state: PostureState) -> float:
            return (tally.counts[state] / processed) if processed else 0.0

        return RunSummary(
            model_name=self.model_name,
            duration_seconds=elapsed_s,
            processed_frames=processed,
            good_ratio=ratio(PostureState.GOOD),
            bad_ratio=ratio(PostureState.BAD),
            initializing_ratio=ratio(PostureState.INITIALIZING),
            avg_confidence=(sum(tally.confidences) / processed) if processed else 0.0,
        )

