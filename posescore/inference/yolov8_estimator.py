"""YOLOv8-pose based keypoint estimation.

- Single Responsibility: this module handles YOLOv8 pose inference only.
"""

from __future__ import annotations

import threading
from typing import List, Optional

from .base import COCO_KEYPOINT_NAMES, PoseEstimator, mirror_keypoints
from .smoothing import KeypointSmoother
from ..types import Keypoint


def _to_torch_device(device: str | None) -> str:
    if not device:
        return "cpu"
    d = device.strip().lower()
    if d == "cpu" or d == "cuda" or d.startswith("cuda:") or d == "mps":
        return d
    if d == "gpu":
        try:
            import torch

            return "cuda" if torch.cuda.is_available() else "cpu"
        except ImportError:
            return "cpu"
    return "cpu"


class YoloV8PoseEstimator(PoseEstimator):
    """Single-person pose estimator backed by an Ultralytics checkpoint.

    The underlying model is not safe for concurrent calls, so inference is
    serialized with an instance lock.
    """

    def __init__(
        self,
        model_path: str,
        device: str | None = None,
        conf: float = 0.25,
        imgsz: int | None = None,
        enable_smoothing: bool = True,
        smoothing_alpha: float = 0.5,
    ) -> None:
        self.model_path = model_path
        self.device = _to_torch_device(device)
        self.conf = conf
        self.imgsz = 640 if imgsz is None else imgsz
        self.enable_smoothing = enable_smoothing
        self.smoothing_alpha = smoothing_alpha
        self._lock = threading.Lock()
        self.model = self._load_model(model_path, self.device)

    @staticmethod
    def _load_model(model_path: str, device: str):
        try:
            from ultralytics import YOLO
        except ImportError as e:  # pragma: no cover
            raise ImportError(
                "ultralytics is required for YOLOv8-pose. Install it with 'pip install ultralytics'."
            ) from e
        model = YOLO(model_path)
        model.to(device)
        return model

    def new_smoother(self) -> Optional[KeypointSmoother]:
        if not self.enable_smoothing:
            return None
        return KeypointSmoother(self.smoothing_alpha)

    def estimate(self, image, *, flip_horizontal: bool = False) -> Optional[List[Keypoint]]:
        import numpy as np

        infer_kwargs = {
            "verbose": False,
            "device": self.device,
            "conf": self.conf,
            "imgsz": int(self.imgsz),
        }
        with self._lock:
            results = self.model(image, **infer_kwargs)
        if not results:
            return None
        r = results[0]

        if r.keypoints is None or r.boxes is None or len(r.boxes) == 0:
            return None

        confs = r.boxes.conf.detach().cpu().numpy() if r.boxes.conf is not None else None
        idx = int(np.argmax(confs)) if confs is not None and len(confs) > 0 else 0

        xy = r.keypoints.xy[idx].detach().cpu().numpy()  # (17,2)
        kc = (
            r.keypoints.conf[idx].detach().cpu().numpy()
            if r.keypoints.conf is not None
            else np.ones((xy.shape[0],), dtype=float)
        )

        keypoints = [
            Keypoint(name, float(xy[i, 0]), float(xy[i, 1]), float(kc[i]))
            for i, name in enumerate(COCO_KEYPOINT_NAMES[: xy.shape[0]])
        ]
        if flip_horizontal:
            keypoints = mirror_keypoints(keypoints, float(image.shape[1]))
        return keypoints


__all__ = [
    "YoloV8PoseEstimator",
    "_to_torch_device",
]
