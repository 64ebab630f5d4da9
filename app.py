import asyncio
import logging
import tempfile
from pathlib import Path
from typing import Optional

from fastapi import FastAPI, File, Form, UploadFile
from fastapi.responses import JSONResponse

from posescore.config import Settings
from posescore.errors import (
    ComparisonTimeout,
    EstimatorUnavailable,
    ExtractionFailed,
    ExtractionTimeout,
    ExtractorMissing,
    InvalidConfiguration,
    PoseScoreError,
    VideoUnreadable,
)
from posescore.inference import is_loaded, preload_estimator
from posescore.services.comparison_service import ComparisonService
from posescore.services.standards_service import StandardsService
from posescore.utils.files import remove_tree, safe_filename

app = FastAPI()

logger = logging.getLogger("uvicorn.error")

# Services and configuration
settings = Settings()
comparison = ComparisonService()
standards = StandardsService(settings.DATA_DIR)


@app.on_event("startup")
async def warm_model_background():
    """Kick off background warm-up of the pose model.

    The server is available immediately; the first comparison waits for the
    model only if the warm-up has not finished yet.
    """
    if not settings.PRELOAD_MODEL:
        return

    async def _warm_pose_model():
        try:
            await asyncio.to_thread(preload_estimator, comparison.config.detector_options)
            logger.info("Pose model preloaded in background")
        except Exception as exc:
            logger.warning("Pose model preload failed: %s", exc)

    # Keep a reference so the task isn't GC'd; not awaited.
    app.state.warmup_task = asyncio.create_task(_warm_pose_model())


def _error_response(exc: PoseScoreError) -> JSONResponse:
    if isinstance(exc, (InvalidConfiguration, VideoUnreadable)):
        status = 400
    elif isinstance(exc, (ExtractorMissing, EstimatorUnavailable)):
        status = 503
    elif isinstance(exc, (ExtractionTimeout, ComparisonTimeout)):
        status = 504
    elif isinstance(exc, ExtractionFailed):
        status = 422
    else:
        status = 500
    return JSONResponse({"error": str(exc), "type": type(exc).__name__}, status_code=status)


def _options(frame_rate: Optional[float], max_frames: Optional[float], min_pose_score: Optional[float]) -> dict:
    options = {"frame_rate": frame_rate, "max_frames": max_frames, "min_pose_score": min_pose_score}
    return {k: v for k, v in options.items() if v is not None}


async def _save_upload(upload: UploadFile, folder: Path, default: str) -> Path:
    dest = folder / safe_filename(upload.filename or default, default=default)
    with dest.open("wb") as f:
        f.write(await upload.read())
    return dest


@app.get("/health")
def health():
    return JSONResponse({"status": "ok", "model_loaded": is_loaded()})


@app.post("/compare")
async def compare(
    reference: UploadFile = File(...),
    attempt: UploadFile = File(...),
    frame_rate: Optional[float] = Form(None),
    max_frames: Optional[float] = Form(None),
    min_pose_score: Optional[float] = Form(None),
):
    """Score an uploaded attempt against an uploaded reference video."""
    workdir = Path(tempfile.mkdtemp(prefix="pose-upload-"))
    try:
        # Separate folders so identical upload names don't collide.
        (workdir / "reference").mkdir()
        (workdir / "attempt").mkdir()
        ref_path = await _save_upload(reference, workdir / "reference", "reference.mp4")
        att_path = await _save_upload(attempt, workdir / "attempt", "attempt.mp4")
        result = await comparison.compare(
            ref_path, att_path, **_options(frame_rate, max_frames, min_pose_score)
        )
    except PoseScoreError as exc:
        logger.warning("Comparison failed: %s", exc)
        return _error_response(exc)
    finally:
        remove_tree(workdir)
    return JSONResponse(result.to_dict())


@app.get("/standards")
def list_standards():
    """Return stored reference videos."""
    return JSONResponse({"standards": [r.to_dict() for r in standards.list_all()]})


@app.post("/standards")
async def upload_standard(file: UploadFile = File(...), name: str = Form(...)):
    """Store a reference video under a display name."""
    try:
        record = standards.add(name, file.filename or "standard.mp4", await file.read())
    except ValueError as exc:
        return JSONResponse({"error": str(exc)}, status_code=400)
    return JSONResponse({"id": record.id, "name": record.name, "message": "Standard uploaded"})


@app.post("/standards/{standard_id}/score")
async def score_against_standard(
    standard_id: str,
    file: UploadFile = File(...),
    frame_rate: Optional[float] = Form(None),
    max_frames: Optional[float] = Form(None),
    min_pose_score: Optional[float] = Form(None),
):
    """Score an uploaded attempt against a stored reference video."""
    try:
        record = standards.get(standard_id)
    except KeyError:
        return JSONResponse({"error": f"Unknown standard: {standard_id}"}, status_code=404)

    workdir = Path(tempfile.mkdtemp(prefix="pose-upload-"))
    try:
        att_path = await _save_upload(file, workdir, "attempt.mp4")
        result = await comparison.compare(
            standards.video_path(record),
            att_path,
            **_options(frame_rate, max_frames, min_pose_score),
        )
    except PoseScoreError as exc:
        logger.warning("Scoring against standard %s failed: %s", standard_id, exc)
        return _error_response(exc)
    finally:
        remove_tree(workdir)
    return JSONResponse(
        {"score": result.score, "standard_name": record.name, "result": result.to_dict()}
    )


if __name__ == "__main__":
    # Ensure required directories exist
    settings.DATA_DIR.mkdir(exist_ok=True)
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
