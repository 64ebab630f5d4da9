"""Pose-based exercise video comparison.

Extracts frames from two videos, estimates body keypoints per frame and
scores how closely the attempt follows the reference (0-100).
"""

from .errors import (
    ComparisonTimeout,
    EstimatorUnavailable,
    ExtractionFailed,
    ExtractionTimeout,
    ExtractorMissing,
    InvalidConfiguration,
    PoseEstimationFailed,
    PoseScoreError,
    VideoUnreadable,
)
from .config import ComparisonConfig, DetectorOptions, Settings
from .types import Bounds, Keypoint, SequenceStats, SimilarityResult
from .services.comparison_service import (
    compare_videos,
    compare_videos_detailed,
    compare_videos_detailed_sync,
    compare_videos_sync,
)

__version__ = "0.1.0"

__all__ = [
    "Bounds",
    "ComparisonConfig",
    "ComparisonTimeout",
    "DetectorOptions",
    "EstimatorUnavailable",
    "ExtractionFailed",
    "ExtractionTimeout",
    "ExtractorMissing",
    "InvalidConfiguration",
    "Keypoint",
    "PoseEstimationFailed",
    "PoseScoreError",
    "SequenceStats",
    "Settings",
    "SimilarityResult",
    "VideoUnreadable",
    "compare_videos",
    "compare_videos_detailed",
    "compare_videos_detailed_sync",
    "compare_videos_sync",
]
