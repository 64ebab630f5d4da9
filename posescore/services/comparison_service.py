from __future__ import annotations

import asyncio
import dataclasses
import logging
from pathlib import Path
from typing import Optional, Tuple

from posescore.analysis import build_sequence, normalize_sequence, score_sequences
from posescore.config import ComparisonConfig
from posescore.errors import ComparisonTimeout, EstimatorUnavailable
from posescore.inference import PoseEstimator, get_estimator
from posescore.types import PoseSequence, SequenceStats, SimilarityResult
from posescore.video import extracted_frames


logger = logging.getLogger("uvicorn.error")


def resolve_config(config: Optional[ComparisonConfig] = None, **options) -> ComparisonConfig:
    """Merge per-call options into ``config`` and validate before any I/O."""
    config = config or ComparisonConfig()
    if options:
        config = config.with_options(**options)
    return config.validate()


async def process_video(
    video_path,
    config: ComparisonConfig,
    estimator: Optional[PoseEstimator] = None,
) -> Tuple[PoseSequence, SequenceStats]:
    """Extract, estimate and normalize one video.

    Returns the normalized sequence plus the diagnostics gathered on the
    way. The frame directory is gone by the time this returns or raises.
    """
    async with extracted_frames(
        video_path,
        config.frame_rate,
        config.frame_cap,
        ffmpeg_path=config.ffmpeg_path,
        timeout=config.extract_timeout,
    ) as frame_paths:
        if estimator is None:
            try:
                estimator = await asyncio.to_thread(get_estimator, config.detector_options)
            except Exception as exc:
                raise EstimatorUnavailable(video_path, str(exc)) from exc
        sequence, stats = await build_sequence(
            frame_paths,
            estimator,
            config.min_pose_score,
            flip_horizontal=config.flip_horizontal,
            video_path=video_path,
        )
    return normalize_sequence(sequence), stats


async def _compare(
    video_a,
    video_b,
    config: ComparisonConfig,
    estimator: Optional[PoseEstimator],
) -> SimilarityResult:
    tasks = [
        asyncio.ensure_future(process_video(video_a, config, estimator)),
        asyncio.ensure_future(process_video(video_b, config, estimator)),
    ]
    try:
        (poses_a, stats_a), (poses_b, stats_b) = await asyncio.gather(*tasks)
    except BaseException:
        # Stop the sibling chain so its frames are removed before we return.
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        raise
    result = score_sequences(poses_a, poses_b)
    return dataclasses.replace(
        result,
        score=round(result.score, 2),
        frame_rate=config.frame_rate,
        min_pose_score=config.min_pose_score,
        reference=stats_a,
        attempt=stats_b,
    )


async def compare_videos_detailed(
    video_a,
    video_b,
    config: Optional[ComparisonConfig] = None,
    *,
    estimator: Optional[PoseEstimator] = None,
    **options,
) -> SimilarityResult:
    """Compare a reference video with an attempt and return full diagnostics.

    ``options`` override fields of ``config`` (``frame_rate``,
    ``max_frames``, ``min_pose_score``, ``detector_options``...). Both videos
    are processed concurrently. ``estimator`` bypasses the shared model.
    """
    config = resolve_config(config, **options)
    logger.info(
        "Comparing %s with %s (frame_rate=%g, max_frames=%s, min_pose_score=%g)",
        video_a,
        video_b,
        config.frame_rate,
        config.frame_cap,
        config.min_pose_score,
    )

    coro = _compare(video_a, video_b, config, estimator)
    if config.timeout is None:
        result = await coro
    else:
        try:
            result = await asyncio.wait_for(coro, timeout=config.timeout)
        except asyncio.TimeoutError as exc:
            raise ComparisonTimeout(config.timeout) from exc

    logger.info(
        "Similarity %.2f over %d/%d matched frame(s)",
        result.score,
        result.matched_frames,
        result.compared_frames,
    )
    return result


async def compare_videos(
    video_a,
    video_b,
    config: Optional[ComparisonConfig] = None,
    *,
    estimator: Optional[PoseEstimator] = None,
    **options,
) -> float:
    result = await compare_videos_detailed(video_a, video_b, config, estimator=estimator, **options)
    return result.score


def compare_videos_detailed_sync(video_a, video_b, config: Optional[ComparisonConfig] = None, **kwargs) -> SimilarityResult:
    return asyncio.run(compare_videos_detailed(video_a, video_b, config, **kwargs))


def compare_videos_sync(video_a, video_b, config: Optional[ComparisonConfig] = None, **kwargs) -> float:
    return asyncio.run(compare_videos(video_a, video_b, config, **kwargs))


class ComparisonService:
    """Holds the comparison defaults used by the HTTP app.

    - Single Responsibility: scoring only (no HTTP, no storage).
    """

    def __init__(
        self,
        config: Optional[ComparisonConfig] = None,
        estimator: Optional[PoseEstimator] = None,
    ) -> None:
        self.config = config or ComparisonConfig()
        self.estimator = estimator

    async def compare(self, reference: Path, attempt: Path, **options) -> SimilarityResult:
        return await compare_videos_detailed(
            reference,
            attempt,
            self.config,
            estimator=self.estimator,
            **options,
        )
