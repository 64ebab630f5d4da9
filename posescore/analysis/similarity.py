"""Index-aligned similarity between two normalized pose sequences.

Frame ``i`` of one sequence is compared with frame ``i`` of the other; there
is no temporal alignment, so trailing frames of the longer sequence are
ignored and a start offset shifts every pair.
"""

from __future__ import annotations

import math
from typing import List, Optional

import numpy as np

from ..types import PoseFrame, PoseSequence, SimilarityResult


MAX_DISTANCE = math.sqrt(2.0)


def keypoint_similarity(distance: float) -> float:
    return max(0.0, 1.0 - distance / MAX_DISTANCE)


def frame_similarity(frame_a: PoseFrame, frame_b: PoseFrame) -> Optional[float]:
    """Mean keypoint similarity over slots valid in both frames.

    Returns ``None`` when either frame is absent or no slot is valid on both
    sides, meaning the pair does not count at all.
    """
    if frame_a is None or frame_b is None:
        return None
    pairs = [
        (kp_a, kp_b)
        for kp_a, kp_b in zip(frame_a, frame_b)
        if kp_a is not None and kp_b is not None
    ]
    if not pairs:
        return None
    a = np.array([[kp.x, kp.y] for kp, _ in pairs], dtype=np.float64)
    b = np.array([[kp.x, kp.y] for _, kp in pairs], dtype=np.float64)
    distances = np.linalg.norm(a - b, axis=1)
    return float(np.mean([keypoint_similarity(float(d)) for d in distances]))


def score_sequences(normalized_a: PoseSequence, normalized_b: PoseSequence) -> SimilarityResult:
    compared = min(len(normalized_a), len(normalized_b))
    if compared == 0:
        return SimilarityResult(score=0.0, compared_frames=0, matched_frames=0)

    frame_scores: List[Optional[float]] = []
    total = 0.0
    matched = 0
    for i in range(compared):
        value = frame_similarity(normalized_a[i], normalized_b[i])
        frame_scores.append(value)
        if value is not None:
            total += value
            matched += 1

    score = (total / matched) * 100.0 if matched > 0 else 0.0
    return SimilarityResult(
        score=score,
        compared_frames=compared,
        matched_frames=matched,
        frame_scores=frame_scores,
    )
