"""Process-wide pose estimator lifecycle.

- Single Responsibility: creation and sharing of the default estimator.

The first caller builds the estimator; concurrent first callers wait on the
same lock and receive the same instance. Options passed after that are
ignored (with a warning), since the estimator is never rebuilt.
"""

from __future__ import annotations

import logging
import threading
from typing import Optional

from ..config import DetectorOptions
from .base import PoseEstimator
from .yolov8_estimator import YoloV8PoseEstimator


logger = logging.getLogger("uvicorn.error")

_DEFAULT_ESTIMATOR: PoseEstimator | None = None
_DEFAULT_OPTIONS: DetectorOptions | None = None
_LOCK = threading.Lock()


def _build_estimator(options: DetectorOptions) -> PoseEstimator:
    logger.info("Loading pose model %s on %s", options.model_path, options.device)
    return YoloV8PoseEstimator(
        options.model_path,
        device=options.device,
        conf=options.conf,
        imgsz=options.imgsz,
        enable_smoothing=options.enable_smoothing,
        smoothing_alpha=options.smoothing_alpha,
    )


def get_estimator(options: Optional[DetectorOptions] = None) -> PoseEstimator:
    """Return the shared estimator, creating it on first use."""
    global _DEFAULT_ESTIMATOR, _DEFAULT_OPTIONS
    estimator = _DEFAULT_ESTIMATOR
    if estimator is None:
        with _LOCK:
            if _DEFAULT_ESTIMATOR is None:
                opts = options or DetectorOptions()
                _DEFAULT_ESTIMATOR = _build_estimator(opts)
                _DEFAULT_OPTIONS = opts
                return _DEFAULT_ESTIMATOR
            estimator = _DEFAULT_ESTIMATOR
    if options is not None and _DEFAULT_OPTIONS is not None and options != _DEFAULT_OPTIONS:
        logger.warning(
            "Pose estimator already initialized with %s; ignoring detector options %s",
            _DEFAULT_OPTIONS,
            options,
        )
    return estimator


def preload_estimator(options: Optional[DetectorOptions] = None) -> None:
    get_estimator(options)


def is_loaded() -> bool:
    return _DEFAULT_ESTIMATOR is not None


def set_estimator(estimator: PoseEstimator, options: Optional[DetectorOptions] = None) -> None:
    """Install ``estimator`` as the shared instance (tests, custom backends)."""
    global _DEFAULT_ESTIMATOR, _DEFAULT_OPTIONS
    with _LOCK:
        _DEFAULT_ESTIMATOR = estimator
        _DEFAULT_OPTIONS = options


def reset_estimator() -> None:
    global _DEFAULT_ESTIMATOR, _DEFAULT_OPTIONS
    with _LOCK:
        _DEFAULT_ESTIMATOR = None
        _DEFAULT_OPTIONS = None


__all__ = [
    "get_estimator",
    "is_loaded",
    "preload_estimator",
    "reset_estimator",
    "set_estimator",
]
