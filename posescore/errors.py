"""Exceptions raised by the comparison pipeline.

Every error here is terminal for the comparison that raised it; callers
decide whether to retry or fall back to a default score.
"""

from __future__ import annotations

from typing import Optional


class PoseScoreError(Exception):
    """Base class for pipeline failures."""


class InvalidConfiguration(PoseScoreError, ValueError):
    pass


class VideoUnreadable(PoseScoreError):
    def __init__(self, video_path, reason: str = "") -> None:
        self.video_path = str(video_path)
        message = f"Cannot read video at {self.video_path}"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class ExtractorMissing(PoseScoreError):
    def __init__(self, ffmpeg_path: str) -> None:
        self.ffmpeg_path = ffmpeg_path
        super().__init__(
            f'ffmpeg not found at "{ffmpeg_path}". Install ffmpeg or set FFMPEG_PATH.'
        )


class ExtractionFailed(PoseScoreError):
    def __init__(self, video_path, output: str = "", returncode: Optional[int] = None) -> None:
        self.video_path = str(video_path)
        self.output = output
        self.returncode = returncode
        detail = output.strip().splitlines()[-1] if output.strip() else f"exit code {returncode}"
        super().__init__(f"ffmpeg failed to extract frames from {self.video_path}: {detail}")


class ExtractionTimeout(ExtractionFailed):
    def __init__(self, video_path, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(video_path, output=f"timed out after {timeout:g}s")


class PoseEstimationFailed(PoseScoreError):
    def __init__(self, video_path, frame_index: int, reason: str = "") -> None:
        self.video_path = str(video_path) if video_path is not None else None
        self.frame_index = frame_index
        super().__init__(
            f"Pose estimation failed on frame {frame_index} of {self.video_path}: {reason}"
        )


class EstimatorUnavailable(PoseScoreError):
    """The shared pose model could not be created."""

    def __init__(self, video_path, reason: str = "") -> None:
        self.video_path = str(video_path) if video_path is not None else None
        super().__init__(f"Pose model unavailable while processing {self.video_path}: {reason}")


class ComparisonTimeout(PoseScoreError, TimeoutError):
    def __init__(self, timeout: float) -> None:
        self.timeout = timeout
        super().__init__(f"Comparison did not finish within {timeout:g}s")
