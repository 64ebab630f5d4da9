"""Analysis package: pose sequences, normalization and similarity scoring."""

from .sequence import build_sequence, decode_image, estimate_frame, filter_keypoints
from .normalize import compute_bounds, normalize_sequence
from .similarity import MAX_DISTANCE, frame_similarity, keypoint_similarity, score_sequences

__all__ = [
    "MAX_DISTANCE",
    "build_sequence",
    "compute_bounds",
    "decode_image",
    "estimate_frame",
    "filter_keypoints",
    "frame_similarity",
    "keypoint_similarity",
    "normalize_sequence",
    "score_sequences",
]
