from __future__ import annotations

import cv2
import numpy as np

from postureguard.geometry import midpoint
from postureguard.types import Point2D, PostureSnapshot, PostureState

# BGR
STATUS_COLORS = {
    PostureState.GOOD: (94, 197, 34),
    PostureState.BAD: (68, 68, 239),
    PostureState.INITIALIZING: (180, 180, 180),
}


def _px(p: Point2D) -> tuple[int, int]:
    return int(round(p.x)), int(round(p.y))


def draw_skeleton(frame: np.ndarray, snapshot: PostureSnapshot) -> None:
    """Draw the tracked torso landmarks and posture readout onto ``frame`` in place."""
    h, w = frame.shape[:2]
    lm = snapshot.landmarks.to_pixels(w, h)
    color = STATUS_COLORS[snapshot.status]

    segments = [
        (lm.left_shoulder, lm.right_shoulder),
        (lm.left_hip, lm.right_hip),
        (lm.left_shoulder, lm.left_hip),
        (lm.right_shoulder, lm.right_hip),
        (lm.nose, midpoint(lm.left_shoulder, lm.right_shoulder)),
    ]
    for a, b in segments:
        if a is not None and b is not None:
            cv2.line(frame, _px(a), _px(b), color, 3, cv2.LINE_AA)

    for name, p in lm.points().items():
        if p is None:
            continue
        cv2.circle(frame, _px(p), 10 if name == "nose" else 8, color, -1, cv2.LINE_AA)

    cv2.putText(
        frame,
        f"Posture: {snapshot.status.value} ({snapshot.confidence:.2f})",
        (16, 28),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.65,
        color,
        2,
    )
    cv2.putText(
        frame,
        f"Back:{snapshot.back_angle:.1f}deg Neck:{snapshot.neck_angle:.3f}",
        (16, 58),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.55,
        (120, 220, 255),
        2,
    )
    cv2.putText(
        frame,
        "Press q to stop",
        (16, 88),
        cv2.FONT_HERSHEY_SIMPLEX,
        0.6,
        (200, 200, 200),
        2,
    )
