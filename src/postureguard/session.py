from __future__ import annotations

import asyncio
import logging
from typing import Iterable

from postureguard.classifier import DEFAULT_THRESHOLDS, PostureThresholds
from postureguard.engines.base import BasePoseEngine
from postureguard.errors import EngineLoadError, InferenceError, SessionStateError
from postureguard.extractor import MIN_KEYPOINT_CONFIDENCE, LandmarkExtractor
from postureguard.pipeline import evaluate_pose
from postureguard.types import PostureSnapshot, PostureState, SessionState
from postureguard.video import VideoSource

logger = logging.getLogger(__name__)

DEFAULT_FRAME_INTERVAL_S = 1.0 / 30.0
LOAD_ERROR_MESSAGE = "Failed to load pose detection model"


class PostureObserver:
    """Receives session events on the event loop thread.

    Implementations must return quickly and treat snapshots as read-only.
    """

    def on_snapshot(self, snapshot: PostureSnapshot) -> None:
        return None

    def on_loading_changed(self, loading: bool) -> None:
        return None

    def on_error(self, message: str) -> None:
        return None


class CancellationToken:
    def __init__(self) -> None:
        self._event = asyncio.Event()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self) -> None:
        self._event.set()

    async def sleep(self, seconds: float) -> None:
        """Sleep up to ``seconds``, waking early on cancellation."""
        try:
            await asyncio.wait_for(self._event.wait(), timeout=seconds)
        except asyncio.TimeoutError:
            pass


class DetectionSession:
    """Owns a pose engine and drives the per-frame posture pipeline.

    Lifecycle: LOADING -> READY -> RUNNING <-> STOPPED, or LOADING -> ERROR.
    At most one inference call is in flight at a time; results that arrive
    after ``stop()`` are dropped.
    """

    def __init__(
        self,
        engine: BasePoseEngine,
        thresholds: PostureThresholds = DEFAULT_THRESHOLDS,
        observers: Iterable[PostureObserver] = (),
        frame_interval_s: float = DEFAULT_FRAME_INTERVAL_S,
        default_confidence: float = 0.0,
        min_keypoint_confidence: float = MIN_KEYPOINT_CONFIDENCE,
    ) -> None:
        if engine.coordinate_space != thresholds.space:
            raise ValueError(
                f"Engine '{engine.name}' reports {engine.coordinate_space.value} coordinates "
                f"but thresholds are configured for {thresholds.space.value} coordinates."
            )

        self._engine = engine
        self._extractor = LandmarkExtractor(engine.landmark_ids, min_confidence=min_keypoint_confidence)
        self._thresholds = thresholds
        self._observers: list[PostureObserver] = list(observers)
        self._frame_interval_s = max(frame_interval_s, 0.0)
        self._default_confidence = default_confidence

        self._state = SessionState.LOADING
        self._error: str | None = None
        self._snapshot = PostureSnapshot(status=PostureState.INITIALIZING)
        self._video: VideoSource | None = None
        self._task: asyncio.Task | None = None
        self._token: CancellationToken | None = None
        self._closed = False

        self._notify_loading(True)

    @classmethod
    async def open(cls, engine: BasePoseEngine, **kwargs) -> DetectionSession:
        session = cls(engine, **kwargs)
        await session.load()
        return session

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def snapshot(self) -> PostureSnapshot:
        return self._snapshot

    @property
    def is_loading(self) -> bool:
        return self._state is SessionState.LOADING

    async def load(self) -> bool:
        if self._state is not SessionState.LOADING:
            raise SessionStateError(f"Cannot load a session in state {self._state.value}")

        try:
            await self._engine.initialize()
        except Exception as e:
            if not isinstance(e, EngineLoadError):
                logger.exception("Unexpected error while loading engine '%s'", self._engine.name)
            logger.error("Error loading model: %s", e)
            self._error = f"{LOAD_ERROR_MESSAGE}: {e}"
            self._state = SessionState.ERROR
            self._notify_loading(False)
            self._notify_error(self._error)
            return False

        if self._closed:
            # close() ran while the engine was loading.
            self._engine.dispose()
            self._state = SessionState.STOPPED
            self._notify_loading(False)
            return False

        self._state = SessionState.READY
        self._notify_loading(False)
        return True

    def start(self, video: VideoSource) -> None:
        if self._closed:
            raise SessionStateError("Session is closed; construct a new one")
        if self._state is SessionState.RUNNING:
            self._video = video
            return
        if self._state not in (SessionState.READY, SessionState.STOPPED):
            raise SessionStateError(f"Cannot start a session in state {self._state.value}")

        self._video = video
        previous = self._task
        self._token = CancellationToken()
        self._state = SessionState.RUNNING
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._token, previous),
            name=f"postureguard-{self._engine.name}",
        )

    def stop(self) -> None:
        if self._token is not None:
            self._token.cancel()
        if self._state is SessionState.RUNNING:
            self._state = SessionState.STOPPED
            logger.info("Detection stopped")

    async def wait_stopped(self) -> None:
        task = self._task
        if task is not None:
            await asyncio.gather(task, return_exceptions=True)

    async def close(self) -> None:
        """Stop sampling, wait for the loop to exit, then release the engine."""
        if self._closed:
            return
        self.stop()
        await self.wait_stopped()
        self._closed = True
        self._video = None
        self._engine.dispose()

    async def __aenter__(self) -> DetectionSession:
        if self._state is SessionState.LOADING:
            await self.load()
        return self

    async def __aexit__(self, *exc) -> None:
        await self.close()

    async def _run(
        self,
        token: CancellationToken,
        previous: asyncio.Task | None,
    ) -> None:
        if previous is not None and not previous.done():
            await asyncio.gather(previous, return_exceptions=True)

        logger.info("Detection started (engine=%s)", self._engine.name)
        while not token.cancelled:
            video = self._video
            if video is not None and video.finished:
                logger.info("Video source finished")
                self.stop()
                break

            frame = video.read_frame() if video is not None and video.ready else None
            if frame is not None:
                await self._process(frame, token)
            await token.sleep(self._frame_interval_s)

    async def _process(self, frame, token: CancellationToken) -> None:
        try:
            poses = await self._engine.estimate(frame)
        except InferenceError as e:
            logger.warning("Error processing frame: %s", e)
            return
        except Exception:
            logger.exception("Error processing frame")
            return

        if token.cancelled:
            return

        snapshot = evaluate_pose(
            poses,
            self._extractor,
            thresholds=self._thresholds,
            default_confidence=self._default_confidence,
        )
        if snapshot is None:
            return
        self._publish(snapshot)

    def _publish(self, snapshot: PostureSnapshot) -> None:
        previous = self._snapshot
        self._snapshot = snapshot
        if previous.status is not snapshot.status:
            logger.info("Posture %s -> %s", previous.status.value, snapshot.status.value)
        for observer in list(self._observers):
            try:
                observer.on_snapshot(snapshot)
            except Exception:
                logger.exception("Observer %r failed on snapshot", observer)

    def _notify_loading(self, loading: bool) -> None:
        for observer in list(self._observers):
            try:
                observer.on_loading_changed(loading)
            except Exception:
                logger.exception("Observer %r failed on loading change", observer)

    def _notify_error(self, message: str) -> None:
        for observer in list(self._observers):
            try:
                observer.on_error(message)
            except Exception:
                logger.exception("Observer %r failed on error", observer)
