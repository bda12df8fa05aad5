#!/usr/bin/env python3
"""Fetch the MediaPipe Tasks pose model used when `mediapipe.solutions` is unavailable."""
from __future__ import annotations

import argparse
import logging
import urllib.request
from pathlib import Path

logger = logging.getLogger("download_pose_landmarker")

MODEL_URLS = {
    variant: (
        "https://storage.googleapis.com/mediapipe-models/pose_landmarker/"
        f"pose_landmarker_{variant}/float16/latest/pose_landmarker_{variant}.task"
    )
    for variant in ("lite", "full", "heavy")
}


def main() -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--variant", choices=sorted(MODEL_URLS), default="lite")
    parser.add_argument("--out-dir", default="models/mediapipe", help="Directory to store the .task file")
    args = parser.parse_args()
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")

    out_path = Path(args.out_dir) / f"pose_landmarker_{args.variant}.task"
    if out_path.exists():
        logger.info("Model already present at %s", out_path)
        return 0

    out_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("Downloading %s pose model to %s ...", args.variant, out_path)
    urllib.request.urlretrieve(MODEL_URLS[args.variant], out_path)
    logger.info("Done.")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
