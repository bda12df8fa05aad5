from __future__ import annotations

import asyncio

import numpy as np
import pytest

from postureguard.engines.yolo_pose import YoloPoseEngine
from postureguard.errors import InferenceError
from postureguard.extractor import LandmarkExtractor
from postureguard.types import CoordinateSpace


class _Tensor:
    def __init__(self, data) -> None:
        self.data = np.asarray(data, dtype=np.float32)

    def cpu(self):
        return self

    def numpy(self):
        return self.data

    def __len__(self) -> int:
        return len(self.data)


class _Keypoints:
    def __init__(self, xy, conf) -> None:
        self.xy = _Tensor(xy)
        self.conf = _Tensor(conf) if conf is not None else None


class _Boxes:
    def __init__(self, conf) -> None:
        self.conf = _Tensor(conf)


class _Result:
    def __init__(self, xy, conf, box_conf) -> None:
        self.keypoints = _Keypoints(xy, conf)
        self.boxes = _Boxes(box_conf)


def _person(shift: float) -> np.ndarray:
    xy = np.zeros((17, 2), dtype=np.float32)
    xy[0] = (320 + shift, 120)
    xy[5] = (256 + shift, 160)
    xy[6] = (384 + shift, 160)
    xy[11] = (288 + shift, 320)
    xy[12] = (352 + shift, 320)
    return xy


def test_yolo_result_is_normalized_and_sorted_by_confidence():
    conf = np.full((2, 17), 0.9, dtype=np.float32)
    conf[0, 0] = 0.1
    result = _Result([_person(0), _person(64)], conf, [0.4, 0.8])

    poses = YoloPoseEngine.to_poses(result, width=640, height=400)
    assert [p.score for p in poses] == pytest.approx([0.8, 0.4])
    assert all(p.space is CoordinateSpace.NORMALIZED for p in poses)

    lm = LandmarkExtractor(YoloPoseEngine.landmark_ids).extract(poses)
    assert lm.nose.x == pytest.approx(0.6)
    assert lm.nose.y == pytest.approx(0.3)
    assert lm.left_shoulder.x == pytest.approx(0.5)
    assert lm.left_hip.y == pytest.approx(0.8)


def test_yolo_low_confidence_keypoint_is_dropped():
    conf = np.full((1, 17), 0.9, dtype=np.float32)
    conf[0, 0] = 0.1
    poses = YoloPoseEngine.to_poses(_Result([_person(0)], conf, [0.7]), width=640, height=400)
    lm = LandmarkExtractor(YoloPoseEngine.landmark_ids).extract(poses)
    assert lm.nose is None
    assert lm.has_torso


def test_yolo_without_people():
    result = _Result(np.zeros((0, 17, 2)), None, [])
    assert YoloPoseEngine.to_poses(result, width=640, height=480) == []


def test_estimate_before_initialize_fails():
    engine = YoloPoseEngine()
    with pytest.raises(InferenceError):
        asyncio.run(engine.estimate(np.zeros((4, 4, 3), dtype=np.uint8)))
    engine.dispose()
    engine.dispose()
