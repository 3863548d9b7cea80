#!/usr/bin/env python3
"""
SwingSense Swing Analyzer

Complete swing analysis pipeline:

    video -> sampled frames -> pose keypoints -> swing events + quality
          -> biomechanical metrics -> score -> coaching cards

Each analysis opens its own pose model handle, so concurrent analyses never
share a model.
"""

import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Sequence

import structlog

from swingsense.config import settings
from swingsense.exceptions import AnalysisCancelledError, NoSwingDetectedError
from swingsense.services.bat_speed import BatSpeedEstimator, BatSpeedResult
from swingsense.services.coaching import CoachingCard, build_coaching_cards
from swingsense.services.landmarks import Frame, FrameSequence
from swingsense.services.metrics import MetricsResult, estimate_fps, extract_swing_metrics
from swingsense.services.pose_estimator import PoseEstimator, iter_video_frames
from swingsense.services.quality import assess_quality
from swingsense.services.scoring import MetricSpec, ScoreResult, score_metrics
from swingsense.services.segmentation import (
    EVENT_DESCRIPTIONS,
    EVENT_LABELS,
    SwingEvents,
    segment_swing,
)

logger = structlog.get_logger()

ProgressCallback = Callable[[str], None]


@dataclass
class SwingPhaseMarker:
    phase: str
    label: str
    frame_index: int
    timestamp_ms: float
    description: str


@dataclass
class SwingReport:
    """Everything one analysis produces"""
    frame_count: int
    fps: float
    events: SwingEvents
    quality: Optional[str]
    metrics: MetricsResult
    score: ScoreResult
    bat_speed: Optional[BatSpeedResult]
    cards: List[CoachingCard] = field(default_factory=list)
    phases: List[SwingPhaseMarker] = field(default_factory=list)


def build_phase_timeline(events: SwingEvents, frames: FrameSequence) -> List[SwingPhaseMarker]:
    """Detected events that fall inside ``frames``, ordered by frame index"""
    markers = [
        SwingPhaseMarker(
            phase=name,
            label=EVENT_LABELS[name],
            frame_index=index,
            timestamp_ms=frames[index].t,
            description=EVENT_DESCRIPTIONS[name],
        )
        for name, index in events.as_dict().items()
        if 0 <= index < len(frames)
    ]
    return sorted(markers, key=lambda m: m.frame_index)


class SwingAnalyzer:
    """Runs the analysis pipeline over a video or an extracted frame sequence."""

    def __init__(self,
                 estimator_factory: Callable[[], PoseEstimator] = PoseEstimator,
                 rubric: Optional[Dict[str, MetricSpec]] = None,
                 smoothing_window: Optional[int] = None):
        self.estimator_factory = estimator_factory
        self.rubric = rubric
        self.smoothing_window = settings.smoothing_window if smoothing_window is None else smoothing_window
        self.bat_speed_estimator = BatSpeedEstimator()

    def extract_frames(self,
                       video_path: str,
                       target_fps: Optional[int] = None,
                       on_progress: Optional[ProgressCallback] = None,
                       cancel_event: Optional[threading.Event] = None) -> FrameSequence:
        """
        Run the pose model over sampled video frames.

        Frames without a detected subject are dropped.

        Args:
            video_path: Path to the swing video
            target_fps: Sampling rate, defaults to settings.target_fps
            on_progress: Called with a human-readable progress message
            cancel_event: Set it to abandon the analysis between frames

        Returns:
            The keypoint frame sequence
        """
        target_fps = target_fps or settings.target_fps
        frames: FrameSequence = []
        sampled = 0

        logger.info("Starting keypoint extraction", video_path=str(video_path), target_fps=target_fps)

        with self.estimator_factory() as estimator:
            for t_ms, image in iter_video_frames(video_path, target_fps):
                if cancel_event is not None and cancel_event.is_set():
                    logger.info("Analysis cancelled", sampled_frames=sampled)
                    raise AnalysisCancelledError("Analysis cancelled")

                keypoints = estimator.estimate(image)
                sampled += 1

                if keypoints:
                    frames.append(Frame.from_keypoints(t_ms, keypoints))
                else:
                    logger.debug("No pose detected in frame", timestamp_ms=t_ms)

                if sampled % settings.progress_log_every == 0:
                    logger.info("Processing progress", sampled_frames=sampled, pose_frames=len(frames))
                    if on_progress:
                        on_progress(f"Processing frames: {sampled} sampled")

        logger.info(
            "Keypoint extraction completed",
            sampled_frames=sampled,
            pose_frames=len(frames),
            dropped_frames=sampled - len(frames)
        )

        return frames

    def analyze_frames(self,
                       frames: FrameSequence,
                       fps: Optional[float] = None,
                       recent_stride_lengths: Sequence[float] = (),
                       on_progress: Optional[ProgressCallback] = None) -> SwingReport:
        """Segment, assess, measure and score an extracted frame sequence."""
        if on_progress:
            on_progress("Analyzing swing phases...")

        if fps is None or fps <= 0:
            fps = estimate_fps(frames)

        events = segment_swing(frames, self.smoothing_window)
        quality = assess_quality(frames)
        metrics = extract_swing_metrics(frames, events, fps, recent_stride_lengths)
        score = score_metrics(metrics.metrics, self.rubric)
        bat_speed = self.bat_speed_estimator.calculate_bat_speed(frames, fps)
        cards = build_coaching_cards(score.weakest)

        if on_progress:
            on_progress("Analysis complete!")

        logger.info(
            "Swing analysis completed",
            total_frames=len(frames),
            events=events.as_dict(),
            quality=quality,
            score=score.score,
            weakest=score.weakest
        )

        return SwingReport(
            frame_count=len(frames),
            fps=fps,
            events=events,
            quality=quality,
            metrics=metrics,
            score=score,
            bat_speed=bat_speed,
            cards=cards,
            phases=build_phase_timeline(events, frames),
        )

    def analyze_video(self,
                      video_path: str,
                      target_fps: Optional[int] = None,
                      recent_stride_lengths: Sequence[float] = (),
                      on_progress: Optional[ProgressCallback] = None,
                      cancel_event: Optional[threading.Event] = None) -> SwingReport:
        """
        Complete swing analysis of a video file.

        Raises:
            VideoDecodeError: The video could not be read
            PoseModelError: The pose model could not be loaded
            NoSwingDetectedError: No frame contained a detectable batter
            AnalysisCancelledError: ``cancel_event`` was set
        """
        if on_progress:
            on_progress("Extracting frames from video...")

        frames = self.extract_frames(video_path, target_fps, on_progress, cancel_event)
        if not frames:
            raise NoSwingDetectedError()

        return self.analyze_frames(frames, recent_stride_lengths=recent_stride_lengths, on_progress=on_progress)
