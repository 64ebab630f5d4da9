import argparse
import json
import logging
import sys

from posescore.config import ComparisonConfig, DetectorOptions, Settings
from posescore.errors import PoseScoreError
from posescore.services.comparison_service import compare_videos_detailed_sync


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Score an exercise video against a reference video")
    parser.add_argument("--reference", required=True, help="Reference (standard) video path")
    parser.add_argument("--test", required=True, help="Attempt video path")
    parser.add_argument(
        "--frame-rate",
        type=float,
        default=Settings.FRAME_RATE,
        help="Frames sampled per second of video",
    )
    parser.add_argument(
        "--max-frames",
        type=float,
        default=Settings.MAX_FRAMES,
        help="Frame cap per video (0 or negative for unlimited)",
    )
    parser.add_argument(
        "--min-pose-score",
        type=float,
        default=Settings.MIN_POSE_SCORE,
        help="Keypoints below this confidence are ignored",
    )
    parser.add_argument("--model", default=Settings.POSE_MODEL, help="YOLOv8 pose checkpoint")
    parser.add_argument("--device", default=Settings.DEVICE, help="Device name for inference")
    parser.add_argument("--ffmpeg", default=Settings.FFMPEG_PATH, help="ffmpeg executable")
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Abort the comparison after this many seconds",
    )
    parser.add_argument("--json", action="store_true", help="Print the full result as JSON")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging")
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    config = ComparisonConfig(
        frame_rate=args.frame_rate,
        max_frames=args.max_frames,
        min_pose_score=args.min_pose_score,
        detector_options=DetectorOptions(model_path=args.model, device=args.device),
        ffmpeg_path=args.ffmpeg,
        timeout=args.timeout if args.timeout and args.timeout > 0 else Settings.COMPARE_TIMEOUT,
    )

    try:
        result = compare_videos_detailed_sync(args.reference, args.test, config)
    except PoseScoreError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if args.json:
        print(json.dumps(result.to_dict(), indent=2))
    else:
        print(f"Score: {result.score:.2f}")
        print(f"Matched frames: {result.matched_frames}/{result.compared_frames}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
