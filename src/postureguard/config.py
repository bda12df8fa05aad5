from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

import yaml

from postureguard.classifier import BACK_ANGLE_THRESHOLD, NECK_FORWARD_THRESHOLD, PostureThresholds
from postureguard.extractor import MIN_KEYPOINT_CONFIDENCE
from postureguard.session import DEFAULT_FRAME_INTERVAL_S
from postureguard.types import CoordinateSpace


@dataclass
class SessionSettings:
    frame_interval_s: float = DEFAULT_FRAME_INTERVAL_S
    default_confidence: float = 0.0
    min_keypoint_confidence: float = MIN_KEYPOINT_CONFIDENCE


def _load_doc(config_path: Path) -> dict:
    if not config_path.exists():
        return {}

    with config_path.open("r", encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def load_model_config(config_path: Path, model_name: str) -> dict:
    models = _load_doc(config_path).get("models", {})
    return models.get(model_name, {}) or {}


def load_posture_thresholds(config_path: Path) -> PostureThresholds:
    posture = _load_doc(config_path).get("posture", {}) or {}
    return PostureThresholds(
        back_angle_degrees=float(posture.get("back_angle_degrees", BACK_ANGLE_THRESHOLD)),
        neck_forward_offset=float(posture.get("neck_forward_offset", NECK_FORWARD_THRESHOLD)),
        space=CoordinateSpace(posture.get("coordinate_space", CoordinateSpace.NORMALIZED.value)),
    )


def load_session_settings(config_path: Path) -> SessionSettings:
    doc = _load_doc(config_path)
    session = doc.get("session", {}) or {}
    posture = doc.get("posture", {}) or {}

    interval_ms = session.get("frame_interval_ms")
    return SessionSettings(
        frame_interval_s=(float(interval_ms) / 1000.0) if interval_ms is not None else DEFAULT_FRAME_INTERVAL_S,
        default_confidence=float(session.get("default_confidence", 0.0)),
        min_keypoint_confidence=float(posture.get("min_keypoint_confidence", MIN_KEYPOINT_CONFIDENCE)),
    )
