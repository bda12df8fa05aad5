from __future__ import annotations

import numpy as np
import pytest

from fakes import LEANING, SHOULDERS_ONLY, UPRIGHT, FakeEngine, FakeVideo, make_pose
from postureguard.classifier import PostureThresholds
from postureguard.config import SessionSettings
from postureguard.errors import EngineLoadError
from postureguard.extractor import COCO_LANDMARK_NAMES, LandmarkExtractor
from postureguard.overlay import draw_skeleton
from postureguard.pipeline import evaluate_pose
from postureguard.runner import MonitorRunner
from postureguard.types import CoordinateSpace, PostureSnapshot, PostureState

SETTINGS = SessionSettings(frame_interval_s=0.001)


def test_monitor_summarizes_run():
    results = [
        [make_pose(UPRIGHT, score=1.0)],
        [make_pose(UPRIGHT, score=1.0)],
        [make_pose(LEANING, score=0.5)],
        [make_pose(SHOULDERS_ONLY, score=0.5)],
    ]
    engine = FakeEngine(results)
    video = FakeVideo(frames=len(results))
    summary = MonitorRunner(engine, video, model_name="fake", settings=SETTINGS).run()

    assert summary.processed_frames == 4
    assert summary.good_ratio == pytest.approx(0.5)
    assert summary.bad_ratio == pytest.approx(0.25)
    assert summary.initializing_ratio == pytest.approx(0.25)
    assert summary.avg_confidence == pytest.approx(0.75)
    assert video.closed
    assert engine.disposed == 1


def test_monitor_raises_on_load_failure():
    engine = FakeEngine(fail_load=EngineLoadError("missing weights"))
    video = FakeVideo()
    with pytest.raises(EngineLoadError):
        MonitorRunner(engine, video, model_name="fake", settings=SETTINGS).run()
    assert video.closed


def test_monitor_closes_video_when_session_cannot_be_built():
    video = FakeVideo()
    runner = MonitorRunner(
        FakeEngine(),
        video,
        model_name="fake",
        thresholds=PostureThresholds(space=CoordinateSpace.PIXEL),
        settings=SETTINGS,
    )
    with pytest.raises(ValueError):
        runner.run()
    assert video.closed


def test_monitor_stops_after_duration():
    engine = FakeEngine()
    summary = MonitorRunner(
        engine,
        FakeVideo(),
        model_name="fake",
        settings=SETTINGS,
        duration_minutes=0.0005,
    ).run()
    assert summary.processed_frames == 0
    assert engine.calls > 0


def test_draw_skeleton_marks_frame():
    frame = np.zeros((480, 640, 3), dtype=np.uint8)
    snapshot = evaluate_pose([make_pose(UPRIGHT)], LandmarkExtractor(COCO_LANDMARK_NAMES))
    draw_skeleton(frame, snapshot)
    assert frame[int(0.4 * 480), int(0.3 * 640)].any()


def test_draw_skeleton_without_landmarks():
    frame = np.zeros((120, 160, 3), dtype=np.uint8)
    draw_skeleton(frame, PostureSnapshot(status=PostureState.INITIALIZING))
