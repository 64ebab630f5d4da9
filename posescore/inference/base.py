"""Pose estimator interface and the keypoint topology it must produce.

Clients depend on ``PoseEstimator`` only, so the YOLOv8 backend can be
swapped for a fake in tests.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import List, Optional, Tuple

from ..types import Keypoint


# COCO-17 order; every estimator returns keypoints in exactly this order.
COCO_KEYPOINT_NAMES: Tuple[str, ...] = (
    "nose",
    "left_eye",
    "right_eye",
    "left_ear",
    "right_ear",
    "left_shoulder",
    "right_shoulder",
    "left_elbow",
    "right_elbow",
    "left_wrist",
    "right_wrist",
    "left_hip",
    "right_hip",
    "left_knee",
    "right_knee",
    "left_ankle",
    "right_ankle",
)


def mirror_keypoints(keypoints: List[Keypoint], width: float) -> List[Keypoint]:
    return [Keypoint(kp.name, width - kp.x, kp.y, kp.score) for kp in keypoints]


class PoseEstimator(ABC):
    @abstractmethod
    def estimate(self, image, *, flip_horizontal: bool = False) -> Optional[List[Keypoint]]:
        """Return the keypoints of the single detected person, or ``None``.

        ``image`` is a decoded 3-channel array (H, W, 3). An empty detection
        (no person) returns ``None``; a detected person always yields the full
        topology, whatever the per-keypoint confidence.
        """
        raise NotImplementedError

    def new_smoother(self):
        """Return a fresh temporal smoother for one sequence, or ``None``."""
        return None


__all__ = [
    "COCO_KEYPOINT_NAMES",
    "PoseEstimator",
    "mirror_keypoints",
]
