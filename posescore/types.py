"""Data types shared by the pipeline stages.

A ``PoseFrame`` is either ``None`` (no person detected, or unusable frame)
or a list with one slot per landmark of the model topology; each slot holds a
``Keypoint`` or ``None`` when that landmark was filtered out. A
``PoseSequence`` is the chronological list of frames for one video.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import List, Optional


@dataclass(frozen=True)
class Keypoint:
    name: str
    x: float
    y: float
    score: float


KeypointSlot = Optional[Keypoint]
PoseFrame = Optional[List[KeypointSlot]]
PoseSequence = List[PoseFrame]


@dataclass(frozen=True)
class Bounds:
    x_min: float
    x_max: float
    y_min: float
    y_max: float

    @property
    def width(self) -> float:
        return self.x_max - self.x_min

    @property
    def height(self) -> float:
        return self.y_max - self.y_min


@dataclass
class SequenceStats:
    """Per-video diagnostics collected while building a pose sequence."""

    video_path: Optional[str] = None
    frame_count: int = 0
    pose_frames: int = 0
    decode_failures: List[int] = field(default_factory=list)


@dataclass
class SimilarityResult:
    score: float
    compared_frames: int
    matched_frames: int
    frame_rate: Optional[float] = None
    min_pose_score: Optional[float] = None
    frame_scores: List[Optional[float]] = field(default_factory=list)
    reference: Optional[SequenceStats] = None
    attempt: Optional[SequenceStats] = None

    def to_dict(self) -> dict:
        return asdict(self)


__all__ = [
    "Bounds",
    "Keypoint",
    "KeypointSlot",
    "PoseFrame",
    "PoseSequence",
    "SequenceStats",
    "SimilarityResult",
]
