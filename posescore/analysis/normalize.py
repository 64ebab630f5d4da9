from __future__ import annotations

from typing import Optional

from ..types import Bounds, Keypoint, PoseSequence


def compute_bounds(sequence: PoseSequence) -> Optional[Bounds]:
    """Bounding box of every valid keypoint in the sequence, or ``None``."""
    xs = []
    ys = []
    for frame in sequence:
        if frame is None:
            continue
        for kp in frame:
            if kp is None:
                continue
            xs.append(kp.x)
            ys.append(kp.y)
    if not xs:
        return None
    return Bounds(min(xs), max(xs), min(ys), max(ys))


def normalize_sequence(sequence: PoseSequence) -> PoseSequence:
    """Rescale coordinates relative to the whole sequence's bounding box.

    Divisors are floored at 1 so a zero-size box (e.g. a single valid
    keypoint) maps to the origin instead of dividing by zero.
    """
    bounds = compute_bounds(sequence)
    if bounds is None:
        return [None for _ in sequence]

    width = max(bounds.width, 1.0)
    height = max(bounds.height, 1.0)

    normalized: PoseSequence = []
    for frame in sequence:
        if frame is None:
            normalized.append(None)
            continue
        normalized.append(
            [
                None
                if kp is None
                else Keypoint(
                    kp.name,
                    (kp.x - bounds.x_min) / width,
                    (kp.y - bounds.y_min) / height,
                    kp.score,
                )
                for kp in frame
            ]
        )
    return normalized
