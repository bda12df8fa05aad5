from __future__ import annotations

from postureguard.engines.base import BasePoseEngine


def build_engine(model_name: str, model_cfg: dict | None = None) -> BasePoseEngine:
    cfg = model_cfg or {}
    key = model_name.lower()

    if key == "mediapipe":
        from postureguard.engines.mediapipe_pose import MediaPipePoseEngine

        return MediaPipePoseEngine(
            min_detection_confidence=float(cfg.get("min_detection_confidence", 0.5)),
            min_tracking_confidence=float(cfg.get("min_tracking_confidence", 0.5)),
            model_complexity=int(cfg.get("model_complexity", 1)),
            task_model_path=cfg.get("task_model_path"),
        )

    if key == "yolo-pose":
        from postureguard.engines.yolo_pose import YoloPoseEngine

        return YoloPoseEngine(
            model_path=str(cfg.get("model_path", "yolo11n-pose.pt")),
            conf_threshold=float(cfg.get("conf_threshold", 0.25)),
            iou_threshold=float(cfg.get("iou_threshold", 0.45)),
            imgsz=int(cfg.get("imgsz", 640)),
            device=str(cfg.get("device", "cpu")),
        )

    raise ValueError(f"Unsupported model: {model_name}")
