from __future__ import annotations

import argparse
import asyncio
import json
import logging
from pathlib import Path


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="PostureGuard CLI")
    parser.add_argument("--log-level", default="INFO", help="Logging level (DEBUG, INFO, WARNING, ...)")
    sub = parser.add_subparsers(dest="command", required=True)

    mon = sub.add_parser("monitor", help="Classify sitting posture live from a webcam or video file")
    mon.add_argument("--model", default="mediapipe", help="Model name (mediapipe or yolo-pose)")
    mon.add_argument("--source", default="0", help="Webcam device id or path to a video file")
    mon.add_argument("--duration-minutes", type=float, default=None, help="Stop automatically after N minutes")
    mon.add_argument("--display", action="store_true", help="Show skeleton overlay window")
    mon.add_argument("--config", default="configs/models.yaml", help="Model and threshold config YAML")

    check = sub.add_parser("check-image", help="Classify posture in a single image")
    check.add_argument("--model", default="mediapipe", help="Model name (mediapipe or yolo-pose)")
    check.add_argument("--image", required=True, help="Path to an image file")
    check.add_argument("--config", default="configs/models.yaml", help="Model and threshold config YAML")

    return parser.parse_args(argv)


def _parse_source(source: str) -> int | str:
    return int(source) if source.isdigit() else source


def monitor(args: argparse.Namespace) -> int:
    from postureguard.config import load_model_config, load_posture_thresholds, load_session_settings
    from postureguard.engines.factory import build_engine
    from postureguard.runner import MonitorRunner
    from postureguard.video import OpenCVVideoSource

    config_path = Path(args.config)
    engine = build_engine(args.model, model_cfg=load_model_config(config_path, args.model))
    video = OpenCVVideoSource(_parse_source(args.source))
    print(f"Using source={args.source}")

    runner = MonitorRunner(
        engine=engine,
        video=video,
        model_name=args.model,
        thresholds=load_posture_thresholds(config_path),
        settings=load_session_settings(config_path),
        display=args.display,
        duration_minutes=args.duration_minutes,
    )
    summary = runner.run()
    print("Session complete")
    print("Key metrics:")
    print(f"  processed frames: {summary.processed_frames}")
    print(f"  good ratio: {summary.good_ratio:.3f}")
    print(f"  bad ratio: {summary.bad_ratio:.3f}")
    print(f"  initializing ratio: {summary.initializing_ratio:.3f}")
    print(f"  avg confidence: {summary.avg_confidence:.3f}")
    return 0


async def _check_image(engine, frame, thresholds, settings):
    from postureguard.extractor import LandmarkExtractor
    from postureguard.pipeline import evaluate_pose

    await engine.initialize()
    try:
        poses = await engine.estimate(frame)
    finally:
        engine.dispose()
    extractor = LandmarkExtractor(engine.landmark_ids, min_confidence=settings.min_keypoint_confidence)
    return evaluate_pose(poses, extractor, thresholds=thresholds, default_confidence=settings.default_confidence)


def check_image(args: argparse.Namespace) -> int:
    import cv2

    from postureguard.config import load_model_config, load_posture_thresholds, load_session_settings
    from postureguard.engines.factory import build_engine

    config_path = Path(args.config)
    frame = cv2.imread(args.image)
    if frame is None:
        raise FileNotFoundError(f"Could not read image: {args.image}")

    engine = build_engine(args.model, model_cfg=load_model_config(config_path, args.model))
    snapshot = asyncio.run(
        _check_image(
            engine,
            frame,
            load_posture_thresholds(config_path),
            load_session_settings(config_path),
        )
    )
    if snapshot is None:
        print("No person detected.")
        return 1

    print(json.dumps(snapshot.to_dict(), indent=2))
    return 0


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if args.command == "monitor":
        return monitor(args)
    if args.command == "check-image":
        return check_image(args)
    raise ValueError(f"Unknown command: {args.command}")


if __name__ == "__main__":
    raise SystemExit(main())
