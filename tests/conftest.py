import tempfile

import pytest

import posescore.video.frames as frames_module
from posescore.inference import reset_estimator

from .helpers import FakeFFmpeg


@pytest.fixture
def fake_ffmpeg(monkeypatch):
    fake = FakeFFmpeg()
    monkeypatch.setattr(frames_module.asyncio, "create_subprocess_exec", fake)
    return fake


@pytest.fixture
def temp_root(tmp_path, monkeypatch):
    """Redirect temporary directories so leftovers can be inspected."""
    root = tmp_path / "tmp"
    root.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(root))
    return root


@pytest.fixture(autouse=True)
def _reset_shared_estimator():
    reset_estimator()
    yield
    reset_estimator()
