import asyncio

import pytest

from posescore.config import ComparisonConfig
from posescore.errors import (
    ComparisonTimeout,
    EstimatorUnavailable,
    ExtractionFailed,
    InvalidConfiguration,
    PoseScoreError,
    VideoUnreadable,
)
from posescore.inference import facade, set_estimator
from posescore.services.comparison_service import (
    ComparisonService,
    compare_videos,
    compare_videos_detailed,
    compare_videos_detailed_sync,
)

from .helpers import FakeEstimator, make_video, pose

TRIANGLE = pose((0, 0, 0.9), (1, 0, 0.9), (0, 1, 0.9))
FAINT_TRIANGLE = pose((0, 0, 0.1), (1, 0, 0.1), (0, 1, 0.1))


def test_identical_single_frame_videos(tmp_path, fake_ffmpeg, temp_root):
    a = make_video(tmp_path, "a.mp4", [10])
    b = make_video(tmp_path, "b.mp4", [20])
    estimator = FakeEstimator({10: TRIANGLE, 20: list(TRIANGLE)})

    result = compare_videos_detailed_sync(a, b, estimator=estimator)

    assert result.score == 100.00
    assert result.compared_frames == 1
    assert result.matched_frames == 1
    assert result.frame_rate == ComparisonConfig().frame_rate
    assert result.min_pose_score == 0.3
    assert result.reference.video_path == str(a)
    assert result.attempt.pose_frames == 1
    assert list(temp_root.iterdir()) == []


def test_low_confidence_attempt_scores_zero(tmp_path, fake_ffmpeg, temp_root):
    a = make_video(tmp_path, "a.mp4", [10])
    b = make_video(tmp_path, "b.mp4", [20])
    estimator = FakeEstimator({10: TRIANGLE, 20: FAINT_TRIANGLE})

    result = compare_videos_detailed_sync(a, b, estimator=estimator)

    assert result.compared_frames == 1
    assert result.matched_frames == 0
    assert result.score == 0


def test_unequal_lengths_compare_prefix(tmp_path, fake_ffmpeg, temp_root):
    a = make_video(tmp_path, "a.mp4", [10] * 3)
    b = make_video(tmp_path, "b.mp4", [10] * 7)
    estimator = FakeEstimator({10: TRIANGLE})

    result = compare_videos_detailed_sync(a, b, estimator=estimator)

    assert result.compared_frames == 3
    assert result.reference.frame_count == 3
    assert result.attempt.frame_count == 7


def test_max_frames_option_caps_each_video(tmp_path, fake_ffmpeg, temp_root):
    a = make_video(tmp_path, "a.mp4", [10] * 20)
    b = make_video(tmp_path, "b.mp4", [10] * 20)
    estimator = FakeEstimator({10: TRIANGLE})

    result = compare_videos_detailed_sync(a, b, estimator=estimator, max_frames=5)

    assert result.compared_frames == 5
    assert estimator.calls == 10


def test_score_is_rounded(tmp_path, fake_ffmpeg, temp_root):
    a = make_video(tmp_path, "a.mp4", [10])
    b = make_video(tmp_path, "b.mp4", [20])
    estimator = FakeEstimator({
        10: pose((0, 0, 0.9), (3, 0, 0.9), (0, 3, 0.9)),
        20: pose((0, 0, 0.9), (3, 0, 0.9), (1, 3, 0.9)),
    })

    result = compare_videos_detailed_sync(a, b, estimator=estimator)

    assert result.score == round(result.score, 2)
    assert 0 < result.score < 100


def test_compare_videos_returns_score(tmp_path, fake_ffmpeg, temp_root):
    a = make_video(tmp_path, "a.mp4", [10, 10])
    estimator = FakeEstimator({10: TRIANGLE})
    assert asyncio.run(compare_videos(a, a, estimator=estimator)) == 100.0


@pytest.mark.parametrize("rate", [0, -1, -0.5, float("nan"), None, "4"])
def test_invalid_frame_rate_fails_before_extraction(tmp_path, fake_ffmpeg, temp_root, rate):
    a = make_video(tmp_path, "a.mp4", [10])
    with pytest.raises(InvalidConfiguration):
        compare_videos_detailed_sync(a, a, estimator=FakeEstimator(), frame_rate=rate)
    assert fake_ffmpeg.calls == []


def test_invalid_config_object_fails_before_extraction(tmp_path, fake_ffmpeg, temp_root):
    a = make_video(tmp_path, "a.mp4", [10])
    with pytest.raises(InvalidConfiguration):
        compare_videos_detailed_sync(a, a, ComparisonConfig(frame_rate=0), estimator=FakeEstimator())
    assert fake_ffmpeg.calls == []


def test_unknown_option_is_rejected(tmp_path, fake_ffmpeg):
    a = make_video(tmp_path, "a.mp4", [10])
    with pytest.raises(InvalidConfiguration):
        compare_videos_detailed_sync(a, a, estimator=FakeEstimator(), fps=4)


def test_extraction_failure_propagates_and_cleans_up(tmp_path, fake_ffmpeg, temp_root):
    fake_ffmpeg.returncode = 1
    fake_ffmpeg.stderr = b"broken"
    a = make_video(tmp_path, "a.mp4", [10])
    with pytest.raises(ExtractionFailed):
        compare_videos_detailed_sync(a, a, estimator=FakeEstimator())
    assert list(temp_root.iterdir()) == []


def test_comparison_timeout(tmp_path, fake_ffmpeg, temp_root):
    fake_ffmpeg.delay = 5.0
    a = make_video(tmp_path, "a.mp4", [10])
    with pytest.raises(ComparisonTimeout):
        compare_videos_detailed_sync(a, a, estimator=FakeEstimator(), timeout=0.05)
    assert all(proc.killed for proc in fake_ffmpeg.processes)
    assert list(temp_root.iterdir()) == []


def test_uses_shared_estimator_when_none_given(tmp_path, fake_ffmpeg, temp_root):
    shared = FakeEstimator({10: TRIANGLE})
    set_estimator(shared)
    a = make_video(tmp_path, "a.mp4", [10])
    result = compare_videos_detailed_sync(a, a)
    assert result.score == 100.0
    assert shared.calls == 2


def test_service_applies_per_call_options(tmp_path, fake_ffmpeg, temp_root):
    service = ComparisonService(estimator=FakeEstimator({10: TRIANGLE}))
    a = make_video(tmp_path, "a.mp4", [10] * 4)
    result = asyncio.run(service.compare(a, a, frame_rate=2, max_frames=2))
    assert result.frame_rate == 2
    assert result.compared_frames == 2
    assert fake_ffmpeg.calls[0][fake_ffmpeg.calls[0].index("-vf") + 1] == "fps=2"


def test_videos_processed_concurrently(tmp_path, fake_ffmpeg, temp_root):
    fake_ffmpeg.delay = 0.5
    a = make_video(tmp_path, "a.mp4", [10])
    b = make_video(tmp_path, "b.mp4", [10])
    estimator = FakeEstimator({10: TRIANGLE})

    async def run():
        loop = asyncio.get_running_loop()
        start = loop.time()
        await compare_videos_detailed(a, b, estimator=estimator)
        return loop.time() - start

    assert asyncio.run(run()) < 0.9


def test_failure_in_one_video_cancels_the_other(tmp_path, fake_ffmpeg, temp_root):
    fake_ffmpeg.delay = 5.0
    a = make_video(tmp_path, "a.mp4", [10])

    async def run():
        with pytest.raises(VideoUnreadable):
            await compare_videos_detailed(a, tmp_path / "missing.mp4", estimator=FakeEstimator())
        # checked before the event loop shuts down
        return list(temp_root.iterdir())

    assert asyncio.run(run()) == []
    assert fake_ffmpeg.processes[0].killed
    assert fake_ffmpeg.processes[0].waited


def test_model_load_failure_is_wrapped(tmp_path, fake_ffmpeg, temp_root, monkeypatch):
    def broken(options):
        raise RuntimeError("checkpoint not found")

    monkeypatch.setattr(facade, "_build_estimator", broken)
    a = make_video(tmp_path, "a.mp4", [10])

    with pytest.raises(EstimatorUnavailable) as info:
        compare_videos_detailed_sync(a, a)

    assert isinstance(info.value, PoseScoreError)
    assert info.value.video_path == str(a)
    assert "checkpoint not found" in str(info.value)
    assert isinstance(info.value.__cause__, RuntimeError)
    assert list(temp_root.iterdir()) == []
