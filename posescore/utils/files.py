from __future__ import annotations

import logging
import shutil
from pathlib import Path


logger = logging.getLogger(__name__)


def safe_filename(name: str, default: str = "video.mp4") -> str:
    """Return a filesystem-safe filename (basename, no path separators)."""
    base = Path(name or "").name
    cleaned = "".join(c for c in base if c.isalnum() or c in {"_", "-", ".", " "}).strip()
    if not cleaned.strip("."):
        return default
    return cleaned


def remove_tree(path) -> None:
    """Remove a temporary directory; failures are logged, never raised."""
    if path is None:
        return
    try:
        shutil.rmtree(path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        logger.warning("Could not remove temporary directory %s: %s", path, exc)
