"""Turn sampled frame images into a pose sequence.

Frames are processed one after another so the output order always matches
the input order; the sequence never shrinks, because the scorer aligns the
two videos by index. A frame that cannot be decoded becomes an absent pose
and is recorded in the returned stats.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from ..errors import PoseEstimationFailed
from ..inference.base import PoseEstimator
from ..types import Keypoint, PoseFrame, PoseSequence, SequenceStats


logger = logging.getLogger(__name__)


class FrameDecodeError(Exception):
    def __init__(self, path) -> None:
        self.path = str(path)
        super().__init__(f"Could not decode frame image {self.path}")


def decode_image(path):
    import cv2

    image = cv2.imread(str(path), cv2.IMREAD_COLOR)
    if image is None:
        raise FrameDecodeError(path)
    return image


def filter_keypoints(keypoints: List[Keypoint], min_pose_score: float) -> List[Optional[Keypoint]]:
    return [kp if kp.score >= min_pose_score else None for kp in keypoints]


def estimate_frame(path, estimator: PoseEstimator, *, flip_horizontal: bool = False) -> Optional[List[Keypoint]]:
    """Decode one frame image and return the raw (unfiltered) keypoints."""
    image = decode_image(path)
    try:
        return estimator.estimate(image, flip_horizontal=flip_horizontal)
    finally:
        del image


async def build_sequence(
    frame_paths: Sequence[Path],
    estimator: PoseEstimator,
    min_pose_score: float,
    *,
    flip_horizontal: bool = False,
    video_path=None,
) -> Tuple[PoseSequence, SequenceStats]:
    stats = SequenceStats(video_path=str(video_path) if video_path is not None else None)
    smoother = estimator.new_smoother()
    sequence: PoseSequence = []

    for index, path in enumerate(frame_paths):
        try:
            raw = await asyncio.to_thread(
                estimate_frame, path, estimator, flip_horizontal=flip_horizontal
            )
        except FrameDecodeError as exc:
            logger.warning("Frame %d of %s is unreadable, treating as no pose: %s", index, video_path, exc)
            stats.decode_failures.append(index)
            if smoother is not None:
                smoother.reset()
            sequence.append(None)
            continue
        except Exception as exc:
            raise PoseEstimationFailed(video_path, index, str(exc)) from exc

        if smoother is not None:
            raw = smoother(raw)

        frame: PoseFrame = None
        if raw is not None:
            frame = filter_keypoints(raw, min_pose_score)
            stats.pose_frames += 1
        sequence.append(frame)

    stats.frame_count = len(sequence)
    logger.info(
        "Built pose sequence for %s: %d frame(s), %d with pose, %d unreadable",
        video_path,
        stats.frame_count,
        stats.pose_frames,
        len(stats.decode_failures),
    )
    return sequence, stats
