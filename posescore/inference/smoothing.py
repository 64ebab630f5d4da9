from __future__ import annotations

from typing import List, Optional

from ..types import Keypoint


class KeypointSmoother:
    """Exponential low-pass filter over keypoint positions of one sequence.

    ``alpha`` is the weight of the newest observation (1.0 disables
    smoothing). State is kept per landmark slot and cleared whenever a frame
    has no pose, so a new appearance of the subject starts unsmoothed.
    """

    def __init__(self, alpha: float = 0.5) -> None:
        if not 0.0 < alpha <= 1.0:
            raise ValueError("alpha must be in (0, 1]")
        self.alpha = alpha
        self._previous: List[Optional[Keypoint]] = []

    def reset(self) -> None:
        self._previous = []

    def __call__(self, keypoints: Optional[List[Keypoint]]) -> Optional[List[Keypoint]]:
        if keypoints is None:
            self.reset()
            return None
        if len(self._previous) != len(keypoints):
            self._previous = [None] * len(keypoints)

        a = self.alpha
        smoothed: List[Keypoint] = []
        for i, kp in enumerate(keypoints):
            prev = self._previous[i]
            if prev is not None:
                kp = Keypoint(
                    kp.name,
                    a * kp.x + (1.0 - a) * prev.x,
                    a * kp.y + (1.0 - a) * prev.y,
                    kp.score,
                )
            smoothed.append(kp)
        self._previous = list(smoothed)
        return smoothed
