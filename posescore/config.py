from __future__ import annotations

import math
import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Optional

from .errors import InvalidConfiguration


def env_flag(name: str, default: str = "") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes"}


def env_str(name: str, default: str = "") -> str:
    return os.environ.get(name, default)


def env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _timeout_or_none(value: float) -> Optional[float]:
    return value if value > 0 else None


class Settings:
    """Process-wide defaults, read once from the environment.

    ``ComparisonConfig`` and ``DetectorOptions`` take their defaults from here
    so the CLI, the HTTP app and library callers agree on one source of truth.
    """

    DATA_DIR = Path(env_str("DATA_DIR", "data"))

    # External frame decoder
    FFMPEG_PATH = env_str("FFMPEG_PATH", "ffmpeg") or "ffmpeg"
    EXTRACT_TIMEOUT = _timeout_or_none(env_float("EXTRACT_TIMEOUT", 120.0))
    COMPARE_TIMEOUT = _timeout_or_none(env_float("COMPARE_TIMEOUT", 0.0))

    # Default YOLOv8 pose checkpoint (Ultralytics will auto-download if needed)
    POSE_MODEL = env_str("POSE_MODEL", "yolov8n-pose.pt") or "yolov8n-pose.pt"
    DEVICE = env_str("DEVICE", "CPU").upper() or "CPU"
    DETECTOR_CONF = env_float("DETECTOR_CONF", 0.25)
    DETECTOR_IMGSZ = int(env_float("DETECTOR_IMGSZ", 640))
    ENABLE_SMOOTHING = env_flag("ENABLE_SMOOTHING", "true")
    SMOOTHING_ALPHA = env_float("SMOOTHING_ALPHA", 0.5)
    PRELOAD_MODEL = env_flag("PRELOAD_MODEL", "false")

    # Sampling and filtering
    FRAME_RATE = env_float("FRAME_RATE", 4.0)
    MAX_FRAMES = env_float("MAX_FRAMES", 240)
    MIN_POSE_SCORE = env_float("MIN_POSE_SCORE", 0.3)


@dataclass(frozen=True)
class DetectorOptions:
    """Options for the first (and only) estimator initialization."""

    model_path: str = Settings.POSE_MODEL
    device: str = Settings.DEVICE
    conf: float = Settings.DETECTOR_CONF
    imgsz: int = Settings.DETECTOR_IMGSZ
    enable_smoothing: bool = Settings.ENABLE_SMOOTHING
    smoothing_alpha: float = Settings.SMOOTHING_ALPHA


def effective_max_frames(value) -> Optional[int]:
    """Return the frame cap, or ``None`` when ``value`` means unlimited."""
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number) or number <= 0:
        return None
    return max(1, int(math.floor(number)))


@dataclass(frozen=True)
class ComparisonConfig:
    frame_rate: float = Settings.FRAME_RATE
    max_frames: Optional[float] = Settings.MAX_FRAMES
    min_pose_score: float = Settings.MIN_POSE_SCORE
    detector_options: DetectorOptions = field(default_factory=DetectorOptions)
    ffmpeg_path: str = Settings.FFMPEG_PATH
    extract_timeout: Optional[float] = Settings.EXTRACT_TIMEOUT
    timeout: Optional[float] = Settings.COMPARE_TIMEOUT
    flip_horizontal: bool = False

    def with_options(self, **options) -> "ComparisonConfig":
        """Return a copy with per-call overrides applied.

        ``detector_options`` may be given as a mapping of ``DetectorOptions``
        fields.
        """
        known = {f.name for f in fields(self)}
        unknown = sorted(set(options) - known)
        if unknown:
            raise InvalidConfiguration(f"Unknown option(s): {', '.join(unknown)}")
        detector = options.get("detector_options")
        if isinstance(detector, dict):
            detector_known = {f.name for f in fields(DetectorOptions)}
            bad = sorted(set(detector) - detector_known)
            if bad:
                raise InvalidConfiguration(f"Unknown detector option(s): {', '.join(bad)}")
            options["detector_options"] = replace(self.detector_options, **detector)
        return replace(self, **options)

    @property
    def frame_cap(self) -> Optional[int]:
        return effective_max_frames(self.max_frames)

    def validate(self) -> "ComparisonConfig":
        rate = self.frame_rate
        if isinstance(rate, bool) or not isinstance(rate, (int, float)):
            raise InvalidConfiguration("frame_rate must be a positive number")
        if not math.isfinite(rate) or rate <= 0:
            raise InvalidConfiguration("frame_rate must be a positive number")
        score = self.min_pose_score
        if isinstance(score, bool) or not isinstance(score, (int, float)) or not 0.0 <= score <= 1.0:
            raise InvalidConfiguration("min_pose_score must be a number in [0, 1]")
        for name in ("extract_timeout", "timeout"):
            value = getattr(self, name)
            if value is not None and (not isinstance(value, (int, float)) or value <= 0):
                raise InvalidConfiguration(f"{name} must be a positive number of seconds or None")
        if not self.ffmpeg_path:
            raise InvalidConfiguration("ffmpeg_path must not be empty")
        return self
