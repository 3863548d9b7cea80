from dataclasses import asdict
from fastapi import APIRouter, File, HTTPException, Query, Request, UploadFile
from fastapi.concurrency import run_in_threadpool
from pathlib import Path
from typing import Dict, List, Optional
import asyncio
import shutil
import structlog
import tempfile
import threading

from swingsense.config import settings
from swingsense.exceptions import (
    AnalysisCancelledError,
    NoSwingDetectedError,
    PoseModelError,
    VideoDecodeError,
)
from swingsense.rubric import DEFAULT_RUBRIC
from swingsense.schemas.analysis import (
    AnalysisResponse,
    BatSpeedOut,
    CoachingCardOut,
    ContributionOut,
    FrameIn,
    FramesAnalysisRequest,
    MetricsOut,
    PhaseOut,
    RubricResponse,
    ScoreRequest,
    ScoreResponse,
    SegmentRequest,
    SegmentResponse,
)
from swingsense.services.bat_speed import BatSpeedEstimator
from swingsense.services.coaching import evaluate_swing
from swingsense.services.landmarks import FrameSequence, frames_from_payload
from swingsense.services.metrics import METRIC_DISPLAY_NAMES, METRIC_UNITS
from swingsense.services.quality import assess_quality
from swingsense.services.scoring import MetricSpec
from swingsense.services.segmentation import segment_swing
from swingsense.services.swing_analyzer import SwingAnalyzer, SwingReport

logger = structlog.get_logger()
router = APIRouter(prefix="/analysis", tags=["analysis"])

DISCONNECT_POLL_SECONDS = 0.5


def _to_frames(frames: List[FrameIn]) -> FrameSequence:
    return frames_from_payload(frame.model_dump() for frame in frames)


def _report_response(report: SwingReport) -> AnalysisResponse:
    bat_speed = None
    if report.bat_speed is not None:
        bat_speed = BatSpeedOut(
            peak_speed_mph=report.bat_speed.peak_speed_mph,
            avg_speed_mph=report.bat_speed.avg_speed_mph,
            peak_wrist_speed_mph=report.bat_speed.peak_wrist_speed_mph,
            avg_wrist_speed_mph=report.bat_speed.avg_wrist_speed_mph,
            swing_duration_ms=report.bat_speed.swing_duration_ms,
            acceleration_phase_ms=report.bat_speed.acceleration_phase_ms,
            level=report.bat_speed.level,
            level_description=report.bat_speed.level_description,
            improvement_tips=BatSpeedEstimator.improvement_tips(report.bat_speed.level),
        )

    return AnalysisResponse(
        frame_count=report.frame_count,
        fps=report.fps,
        events=report.events.as_dict(),
        quality=report.quality,
        phases=[PhaseOut.model_validate(phase) for phase in report.phases],
        metrics=MetricsOut(
            values=report.metrics.metrics,
            units=METRIC_UNITS,
            display_names=METRIC_DISPLAY_NAMES,
            pixels_per_cm=report.metrics.pixels_per_cm,
            low_confidence=report.metrics.low_confidence,
            missing_events=report.metrics.missing_events,
        ),
        score=ScoreResponse(
            score=report.score.score,
            weakest=report.score.weakest,
            contributions=[ContributionOut.model_validate(c) for c in report.score.contributions],
            cards=[CoachingCardOut.model_validate(card) for card in report.cards],
        ),
        bat_speed=bat_speed,
    )


async def _cancel_on_disconnect(request: Request, cancel_event: threading.Event):
    """Set the cancel token once the client goes away."""
    while not cancel_event.is_set():
        if await request.is_disconnected():
            logger.info("Client disconnected, cancelling analysis", path=request.url.path)
            cancel_event.set()
            return
        await asyncio.sleep(DISCONNECT_POLL_SECONDS)


@router.get("/rubric", response_model=RubricResponse)
async def get_rubric():
    """Return the target bands and weights used for scoring."""
    return RubricResponse(rubric={name: asdict(spec) for name, spec in DEFAULT_RUBRIC.items()})


@router.post("/segment", response_model=SegmentResponse)
def segment(request: SegmentRequest):
    """
    Detect swing events and pose quality for a keypoint sequence.

    Args:
        request: Time-ordered frames with keypoints

    Returns:
        Detected event frame indices and the optional quality flag
    """
    try:
        frames = _to_frames(request.frames)
        events = segment_swing(frames, settings.smoothing_window)
        quality = assess_quality(frames)

        return SegmentResponse(
            events=events.as_dict(),
            quality=quality,
            frame_count=len(frames)
        )

    except Exception as e:
        logger.error("Failed to segment swing", error=str(e), frame_count=len(request.frames))
        raise HTTPException(
            status_code=500,
            detail=f"Failed to segment swing: {str(e)}"
        )


@router.post("/score", response_model=ScoreResponse)
async def score(request: ScoreRequest):
    """
    Score metric values against the rubric and attach coaching cards.

    Args:
        request: Metric values, optionally with a custom rubric

    Returns:
        Composite score, weakest metrics, contributions and coaching cards
    """
    try:
        rubric: Optional[Dict[str, MetricSpec]] = None
        if request.rubric is not None:
            rubric = {name: MetricSpec.from_dict(spec.model_dump()) for name, spec in request.rubric.items()}

        result = evaluate_swing(request.metrics, rubric)

        return ScoreResponse(
            score=result["score"],
            weakest=result["weakest"],
            contributions=[ContributionOut.model_validate(c) for c in result["contributions"]],
            cards=[CoachingCardOut.model_validate(card) for card in result["cards"]],
        )

    except Exception as e:
        logger.error("Failed to score swing", error=str(e))
        raise HTTPException(
            status_code=500,
            detail=f"Failed to score swing: {str(e)}"
        )


@router.post("/frames", response_model=AnalysisResponse)
def analyze_frames(request: FramesAnalysisRequest):
    """
    Full analysis of an already-extracted keypoint sequence.

    Args:
        request: Frames, optional sampling rate and the batter's recent stride lengths

    Returns:
        Events, quality, metrics, score, bat speed and coaching cards
    """
    frames = _to_frames(request.frames)
    if not frames:
        raise HTTPException(status_code=422, detail="No swing detected")

    try:
        report = SwingAnalyzer().analyze_frames(
            frames,
            fps=request.fps,
            recent_stride_lengths=request.recent_stride_lengths
        )
        return _report_response(report)

    except Exception as e:
        logger.error("Failed to analyze frames", error=str(e), frame_count=len(frames))
        raise HTTPException(
            status_code=500,
            detail=f"Failed to analyze swing: {str(e)}"
        )


@router.post("/video", response_model=AnalysisResponse)
async def analyze_video(
    request: Request,
    file: UploadFile = File(...),
    target_fps: Optional[int] = Query(default=None, gt=0, le=240)
):
    """
    Full analysis of an uploaded swing video.

    Args:
        file: The swing video
        target_fps: Frame sampling rate, defaults to the configured rate

    Returns:
        Events, quality, metrics, score, bat speed and coaching cards
    """
    try:
        with tempfile.TemporaryDirectory() as temp_dir:
            suffix = Path(file.filename or "swing.mp4").suffix or ".mp4"
            temp_video_path = Path(temp_dir) / f"swing_video{suffix}"

            with open(temp_video_path, "wb") as buffer:
                shutil.copyfileobj(file.file, buffer)

            size_mb = temp_video_path.stat().st_size / (1024 * 1024)
            if size_mb > settings.max_upload_mb:
                raise HTTPException(
                    status_code=413,
                    detail=f"Video exceeds {settings.max_upload_mb} MB"
                )

            logger.info(
                "Analyzing uploaded video",
                filename=file.filename,
                size_mb=round(size_mb, 2),
                target_fps=target_fps
            )

            analyzer = SwingAnalyzer()
            cancel_event = threading.Event()
            watcher = asyncio.create_task(_cancel_on_disconnect(request, cancel_event))
            try:
                report = await run_in_threadpool(
                    analyzer.analyze_video,
                    str(temp_video_path),
                    target_fps,
                    cancel_event=cancel_event
                )
            finally:
                watcher.cancel()

        return _report_response(report)

    except HTTPException:
        raise
    except VideoDecodeError as e:
        logger.warning("Video decode failed", error=str(e), filename=file.filename)
        raise HTTPException(status_code=400, detail=str(e))
    except NoSwingDetectedError as e:
        logger.warning("No swing detected", filename=file.filename)
        raise HTTPException(status_code=422, detail=str(e))
    except PoseModelError as e:
        logger.error("Pose model unavailable", error=str(e))
        raise HTTPException(status_code=503, detail=str(e))
    except AnalysisCancelledError as e:
        logger.info("Video analysis cancelled", filename=file.filename)
        raise HTTPException(status_code=409, detail=str(e))
    except Exception as e:
        logger.error("Failed to analyze video", error=str(e), filename=file.filename)
        raise HTTPException(
            status_code=500,
            detail=f"Failed to analyze video: {str(e)}"
        )
