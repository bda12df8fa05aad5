from __future__ import annotations

import logging
import platform
import threading
import time
from pathlib import Path

import cv2
import numpy as np

logger = logging.getLogger(__name__)


class VideoSource:
    """Frame provider bound to a DetectionSession.

    ``ready`` turns true once at least one decoded frame is available;
    ``finished`` turns true when no further frames will arrive.
    """

    @property
    def ready(self) -> bool:  # pragma: no cover - interface
        raise NotImplementedError

    @property
    def finished(self) -> bool:
        return False

    def read_frame(self) -> np.ndarray | None:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:
        return None


class OpenCVVideoSource(VideoSource):
    """Webcam index or video file read by a background thread.

    Only the latest decoded frame is kept; readers never see a backlog.
    """

    def __init__(self, source: int | str | Path, realtime: bool = True) -> None:
        self.source = source
        if isinstance(source, int):
            if platform.system() == "Darwin":
                cap = cv2.VideoCapture(source, cv2.CAP_AVFOUNDATION)
            else:
                cap = cv2.VideoCapture(source)
            self.is_file = False
        else:
            path = Path(source)
            if not path.exists():
                raise FileNotFoundError(f"Input video not found: {path}")
            cap = cv2.VideoCapture(str(path))
            self.is_file = True

        if not cap.isOpened():
            raise RuntimeError(f"Could not open video source {source!r}")

        self._cap = cap
        fps = float(cap.get(cv2.CAP_PROP_FPS) or 0.0)
        self._frame_period_s = (1.0 / fps) if (self.is_file and realtime and fps > 0) else 0.0

        self._lock = threading.Lock()
        self._frame: np.ndarray | None = None
        self._frames_read = 0
        self._finished = False
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._reader, name="postureguard-video", daemon=True)
        self._thread.start()

    def _reader(self) -> None:
        while not self._stop.is_set():
            t0 = time.perf_counter()
            ok, frame = self._cap.read()
            if not ok:
                if self.is_file:
                    logger.info("End of video after %d frames", self._frames_read)
                else:
                    logger.warning("Camera stopped delivering frames")
                with self._lock:
                    self._finished = True
                return

            with self._lock:
                self._frame = frame
                self._frames_read += 1

            if self._frame_period_s:
                remaining = self._frame_period_s - (time.perf_counter() - t0)
                if remaining > 0:
                    self._stop.wait(remaining)

    @property
    def ready(self) -> bool:
        with self._lock:
            return self._frame is not None

    @property
    def finished(self) -> bool:
        with self._lock:
            return self._finished

    def read_frame(self) -> np.ndarray | None:
        with self._lock:
            return None if self._frame is None else self._frame.copy()

    def close(self) -> None:
        self._stop.set()
        self._thread.join(timeout=1.0)
        self._cap.release()
