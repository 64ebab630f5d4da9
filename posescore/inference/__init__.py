"""Inference helpers for pose/keypoint estimation."""

from .base import COCO_KEYPOINT_NAMES, PoseEstimator, mirror_keypoints
from .smoothing import KeypointSmoother
from .yolov8_estimator import YoloV8PoseEstimator
from .facade import get_estimator, is_loaded, preload_estimator, reset_estimator, set_estimator

__all__ = [
    "COCO_KEYPOINT_NAMES",
    "KeypointSmoother",
    "PoseEstimator",
    "YoloV8PoseEstimator",
    "get_estimator",
    "is_loaded",
    "mirror_keypoints",
    "preload_estimator",
    "reset_estimator",
    "set_estimator",
]
