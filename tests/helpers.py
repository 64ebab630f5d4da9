import asyncio
import json
from pathlib import Path

import cv2
import numpy as np

from posescore.inference import PoseEstimator
from posescore.inference.base import COCO_KEYPOINT_NAMES
from posescore.types import Keypoint


def kp(x, y, score=0.9, name="nose"):
    return Keypoint(name, float(x), float(y), float(score))


def pose(*points):
    """Build a raw pose from (x, y, score) tuples, named in COCO order."""
    return [
        Keypoint(COCO_KEYPOINT_NAMES[i], float(x), float(y), float(s))
        for i, (x, y, s) in enumerate(points)
    ]


def write_frame(path, value):
    """Write a tiny PNG filled with ``value``; ``None`` writes garbage bytes."""
    if value is None:
        Path(path).write_bytes(b"this is not a png")
        return
    cv2.imwrite(str(path), np.full((4, 4, 3), value, dtype=np.uint8))


def make_video(folder, name, values):
    """Create a stand-in video: a JSON list of per-frame pixel values."""
    path = folder / name
    path.write_text(json.dumps(values))
    return path


class FakeEstimator(PoseEstimator):
    """Looks up the pose by the frame's pixel value."""

    def __init__(self, poses=None, smoother_factory=None, fail_on=None):
        self.poses = poses or {}
        self.smoother_factory = smoother_factory
        self.fail_on = fail_on
        self.calls = 0

    def estimate(self, image, *, flip_horizontal=False):
        self.calls += 1
        value = int(image[0, 0, 0])
        if self.fail_on is not None and value == self.fail_on:
            raise RuntimeError("model exploded")
        return self.poses.get(value)

    def new_smoother(self):
        return self.smoother_factory() if self.smoother_factory else None


class FakeProcess:
    def __init__(self, returncode=0, stdout=b"", stderr=b"", delay=0.0):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        self.delay = delay
        self.killed = False
        self.waited = False

    async def communicate(self):
        if self.delay:
            await asyncio.sleep(self.delay)
        return self.stdout, self.stderr

    def kill(self):
        self.killed = True
        self.returncode = -9

    async def wait(self):
        self.waited = True
        return self.returncode


class FakeFFmpeg:
    """Replacement for ``asyncio.create_subprocess_exec`` running ffmpeg.

    Reads the JSON stand-in video and writes one PNG per listed value,
    honouring ``-frames:v``.
    """

    def __init__(self):
        self.calls = []
        self.processes = []
        self.missing = False
        self.returncode = 0
        self.stderr = b""
        self.delay = 0.0

    async def __call__(self, program, *args, **kwargs):
        self.calls.append([program, *args])
        if self.missing:
            raise FileNotFoundError(program)
        args = list(args)
        if self.returncode == 0:
            with open(args[args.index("-i") + 1]) as f:
                values = json.load(f)
            if "-frames:v" in args:
                values = values[: int(args[args.index("-frames:v") + 1])]
            pattern = args[-1]
            for i, value in enumerate(values, start=1):
                write_frame(pattern % i, value)
        proc = FakeProcess(returncode=self.returncode, stderr=self.stderr, delay=self.delay)
        self.processes.append(proc)
        return proc
