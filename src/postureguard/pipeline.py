from __future__ import annotations

from typing import Sequence

from postureguard.classifier import DEFAULT_THRESHOLDS, PostureThresholds, classify
from postureguard.extractor import LandmarkExtractor
from postureguard.geometry import compute_features
from postureguard.types import DetectedPose, PostureSnapshot


def evaluate_pose(
    poses: Sequence[DetectedPose],
    extractor: LandmarkExtractor,
    thresholds: PostureThresholds = DEFAULT_THRESHOLDS,
    default_confidence: float = 0.0,
) -> PostureSnapshot | None:
    """Run extraction, feature calculation and classification for one frame.

    Returns ``None`` when the engine found nobody, so callers can keep the
    previous snapshot.
    """
    if not poses:
        return None

    landmarks = extractor.extract(poses)
    features = compute_features(landmarks)
    status = classify(
        landmarks,
        features.back_angle_degrees,
        features.neck_forward_offset,
        thresholds,
    )
    score = poses[0].score
    return PostureSnapshot(
        status=status,
        landmarks=landmarks,
        neck_angle=features.neck_forward_offset,
        back_angle=features.back_angle_degrees,
        confidence=float(score) if score is not None else float(default_confidence),
    )
