"""Sample a video into numbered PNG frames with ffmpeg.

Frames land in a fresh ``pose-frames-*`` temporary directory. The directory
belongs to the caller: ``extracted_frames`` removes it on every exit path,
``extract_frames`` removes it only when extraction itself fails.
"""

from __future__ import annotations

import asyncio
import logging
import os
import tempfile
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, List, Optional, Tuple

from ..errors import ExtractionFailed, ExtractionTimeout, ExtractorMissing, VideoUnreadable
from ..utils.files import remove_tree


logger = logging.getLogger(__name__)

FRAME_PATTERN = "frame_%06d.png"
TEMP_PREFIX = "pose-frames-"


def build_ffmpeg_args(
    video_path,
    output_pattern,
    frame_rate: float,
    max_frames: Optional[int] = None,
) -> List[str]:
    args = [
        "-hide_banner",
        "-loglevel",
        "error",
        "-y",
        "-i",
        str(video_path),
        "-vf",
        f"fps={frame_rate:g}",
    ]
    if max_frames is not None:
        args += ["-frames:v", str(int(max_frames))]
    args.append(str(output_pattern))
    return args


def _check_readable(video_path: Path) -> None:
    if not video_path.is_file():
        raise VideoUnreadable(video_path, "not a file")
    if not os.access(video_path, os.R_OK):
        raise VideoUnreadable(video_path, "permission denied")


def _kill(proc) -> None:
    try:
        proc.kill()
    except ProcessLookupError:
        pass


async def _run_ffmpeg(ffmpeg_path: str, args: List[str], video_path: Path, timeout: Optional[float]) -> None:
    try:
        proc = await asyncio.create_subprocess_exec(
            ffmpeg_path,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except (FileNotFoundError, PermissionError) as exc:
        raise ExtractorMissing(ffmpeg_path) from exc

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        _kill(proc)
        await proc.wait()
        raise ExtractionTimeout(video_path, timeout)
    except asyncio.CancelledError:
        _kill(proc)
        await asyncio.shield(proc.wait())
        raise

    if proc.returncode != 0:
        output = b"\n".join(part for part in (stderr, stdout) if part).decode("utf-8", "replace")
        raise ExtractionFailed(video_path, output=output, returncode=proc.returncode)


async def extract_frames(
    video_path,
    frame_rate: float,
    max_frames: Optional[int] = None,
    *,
    ffmpeg_path: str = "ffmpeg",
    timeout: Optional[float] = None,
) -> Tuple[Path, List[Path]]:
    """Sample ``video_path`` at ``frame_rate`` fps.

    Returns ``(frame_dir, frame_paths)`` with ``frame_paths`` in temporal
    order and at most ``max_frames`` long. On failure the temporary directory
    is removed before the error propagates.
    """
    video_path = Path(video_path)
    _check_readable(video_path)

    frame_dir = Path(tempfile.mkdtemp(prefix=TEMP_PREFIX))
    try:
        args = build_ffmpeg_args(video_path, frame_dir / FRAME_PATTERN, frame_rate, max_frames)
        logger.debug("Running %s %s", ffmpeg_path, " ".join(args))
        await _run_ffmpeg(ffmpeg_path, args, video_path, timeout)
        frames = sorted(p for p in frame_dir.iterdir() if p.suffix == ".png")
        if max_frames is not None:
            frames = frames[:max_frames]
    except BaseException:
        remove_tree(frame_dir)
        raise

    logger.info("Extracted %d frame(s) from %s at %g fps", len(frames), video_path, frame_rate)
    return frame_dir, frames


@asynccontextmanager
async def extracted_frames(
    video_path,
    frame_rate: float,
    max_frames: Optional[int] = None,
    *,
    ffmpeg_path: str = "ffmpeg",
    timeout: Optional[float] = None,
) -> AsyncIterator[List[Path]]:
    """Yield sampled frame paths; the frame directory is removed on exit."""
    frame_dir, frames = await extract_frames(
        video_path,
        frame_rate,
        max_frames,
        ffmpeg_path=ffmpeg_path,
        timeout=timeout,
    )
    try:
        yield frames
    finally:
        remove_tree(frame_dir)
