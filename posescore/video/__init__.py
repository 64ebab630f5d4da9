"""Video decoding helpers (frame sampling through ffmpeg)."""

from .frames import FRAME_PATTERN, build_ffmpeg_args, extract_frames, extracted_frames

__all__ = [
    "FRAME_PATTERN",
    "build_ffmpeg_args",
    "extract_frames",
    "extracted_frames",
]
