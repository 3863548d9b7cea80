"""Pose detection quality assessment for a captured swing."""

from typing import Optional

import structlog

from swingsense.services.landmarks import KEY_LANDMARKS, Frame, FrameSequence

logger = structlog.get_logger()

LOW_CONFIDENCE = "low_confidence"

MIN_KEYPOINT_SCORE = 0.4
LOW_CONFIDENCE_PART_RATIO = 0.5
LOW_CONFIDENCE_FRAME_RATIO = 0.25


def is_low_confidence_frame(frame: Frame) -> bool:
    """At least half of the key landmarks are missing or below MIN_KEYPOINT_SCORE"""
    weak_parts = 0
    for name in KEY_LANDMARKS:
        keypoint = frame.get(name)
        if keypoint is None or keypoint.score < MIN_KEYPOINT_SCORE:
            weak_parts += 1

    return weak_parts >= len(KEY_LANDMARKS) * LOW_CONFIDENCE_PART_RATIO


def assess_quality(frames: FrameSequence) -> Optional[str]:
    """
    Flag a sequence whose pose detections are too unreliable to trust.

    Returns:
        "low_confidence" when more than a quarter of frames are low-confidence,
        otherwise None
    """
    if not frames:
        return None

    low_frames = sum(1 for frame in frames if is_low_confidence_frame(frame))
    ratio = low_frames / len(frames)

    if ratio > LOW_CONFIDENCE_FRAME_RATIO:
        logger.warning(
            "Low pose confidence",
            low_confidence_frames=low_frames,
            total_frames=len(frames),
            ratio=ratio
        )
        return LOW_CONFIDENCE

    return None
