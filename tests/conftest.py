from __future__ import annotations

import pytest

from fakes import UPRIGHT
from postureguard.types import LandmarkSet, Point2D


@pytest.fixture
def upright_landmarks() -> LandmarkSet:
    return LandmarkSet(**{k: Point2D(*v) for k, v in UPRIGHT.items()})
