#!/usr/bin/env python3
"""
SwingSense Swing Metrics

Bridges segmentation and scoring: turns detected swing events plus keypoint
trajectories into the named biomechanical metrics that the rubric scores.

Each metric is measured at the event where it matters (launch, contact or
finish). A metric whose event or landmarks are unavailable is reported as
None and is later skipped by the scorer.
"""

import math
import statistics
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Tuple

import structlog

from swingsense.config import settings
from swingsense.services.landmarks import BodyLandmark, Frame, FrameSequence, distance, midpoint
from swingsense.services.scoring import round_half_up
from swingsense.services.segmentation import SwingEvents

logger = structlog.get_logger()

ASSUMED_HIP_TO_ANKLE_CM = 102.0
TRAJECTORY_WINDOW_FRAMES = 3
HEAD_MIN_SCORE = 0.3
STRIDE_HISTORY = 3
REQUIRED_EVENTS = ("launch", "contact", "finish")
MAX_MISSING_METRIC_RATIO = 0.4

METRIC_UNITS = {
    "hip_shoulder_sep_deg": "deg",
    "attack_angle_deg": "deg",
    "head_drift_cm": "cm",
    "contact_timing_frames": "frames",
    "bat_lag_deg": "deg",
    "torso_tilt_deg": "deg",
    "stride_var_pct": "%",
    "finish_balance_idx": "index",
}

METRIC_DISPLAY_NAMES = {
    "hip_shoulder_sep_deg": "Hip-Shoulder Separation",
    "attack_angle_deg": "Attack Angle",
    "head_drift_cm": "Head Drift",
    "contact_timing_frames": "Contact Timing",
    "bat_lag_deg": "Bat Lag",
    "torso_tilt_deg": "Torso Tilt",
    "stride_var_pct": "Stride Variance",
    "finish_balance_idx": "Finish Balance",
}

Point = Tuple[float, float]


@dataclass
class MetricsResult:
    metrics: Dict[str, Optional[float]]
    pixels_per_cm: Optional[float] = None
    low_confidence: bool = False
    missing_events: List[str] = field(default_factory=list)


def _frame_at(frames: FrameSequence, index: Optional[int]) -> Optional[Frame]:
    if index is None or not 0 <= index < len(frames):
        return None
    return frames[index]


def _angle_between(v1: Point, v2: Point) -> float:
    """Unsigned angle between two vectors in degrees"""
    mag1 = math.hypot(*v1)
    mag2 = math.hypot(*v2)
    if mag1 == 0 or mag2 == 0:
        return 0.0

    cos_angle = (v1[0] * v2[0] + v1[1] * v2[1]) / (mag1 * mag2)
    cos_angle = max(-1.0, min(1.0, cos_angle))
    return abs(math.degrees(math.acos(cos_angle)))


def _angle_from_vertical(p1: Point, p2: Point) -> float:
    """Lean of p1 -> p2 away from image-up, positive = tilted right"""
    return math.degrees(math.atan2(p2[0] - p1[0], p1[1] - p2[1]))


def estimate_pixels_per_cm(frame: Frame) -> Optional[float]:
    """Scale from hip-centre to ankle-centre distance, assumed to be ~102 cm"""
    left_hip = frame.get(BodyLandmark.LEFT_HIP)
    right_hip = frame.get(BodyLandmark.RIGHT_HIP)
    left_ankle = frame.get(BodyLandmark.LEFT_ANKLE)
    right_ankle = frame.get(BodyLandmark.RIGHT_ANKLE)

    if not (left_hip and right_hip and left_ankle and right_ankle):
        return None

    hip_center = midpoint(left_hip, right_hip)
    ankle_center = midpoint(left_ankle, right_ankle)
    hip_to_ankle = math.hypot(ankle_center[0] - hip_center[0], ankle_center[1] - hip_center[1])

    return hip_to_ankle / ASSUMED_HIP_TO_ANKLE_CM if hip_to_ankle > 0 else None


def head_center(frame: Frame) -> Optional[Point]:
    points = [
        frame.get(name)
        for name in (BodyLandmark.NOSE, BodyLandmark.LEFT_EYE, BodyLandmark.RIGHT_EYE)
    ]
    valid = [p for p in points if p is not None and p.score > HEAD_MIN_SCORE]
    if not valid:
        return None

    return (
        sum(p.x for p in valid) / len(valid),
        sum(p.y for p in valid) / len(valid),
    )


def estimate_fps(frames: FrameSequence) -> float:
    """Sampling rate implied by the median frame interval"""
    intervals = [curr.t - prev.t for prev, curr in zip(frames, frames[1:]) if curr.t > prev.t]
    if not intervals:
        return float(settings.target_fps)
    return 1000.0 / statistics.median(intervals)


def hip_shoulder_separation(frame: Frame) -> Optional[float]:
    left_shoulder = frame.get(BodyLandmark.LEFT_SHOULDER)
    right_shoulder = frame.get(BodyLandmark.RIGHT_SHOULDER)
    left_hip = frame.get(BodyLandmark.LEFT_HIP)
    right_hip = frame.get(BodyLandmark.RIGHT_HIP)

    if not (left_shoulder and right_shoulder and left_hip and right_hip):
        return None

    shoulder_vector = (right_shoulder.x - left_shoulder.x, right_shoulder.y - left_shoulder.y)
    hip_vector = (right_hip.x - left_hip.x, right_hip.y - left_hip.y)
    return _angle_between(shoulder_vector, hip_vector)


def attack_angle(frames: FrameSequence, contact: int) -> Optional[float]:
    """Lead wrist trajectory angle over a small window around contact; up is positive"""
    start = frames[max(0, contact - TRAJECTORY_WINDOW_FRAMES)]
    end = frames[min(len(frames) - 1, contact + TRAJECTORY_WINDOW_FRAMES)]

    start_wrist = start.get(BodyLandmark.LEFT_WRIST)
    end_wrist = end.get(BodyLandmark.LEFT_WRIST)
    if not (start_wrist and end_wrist):
        return None

    angle = math.degrees(math.atan2(-(end_wrist.y - start_wrist.y), end_wrist.x - start_wrist.x))
    # No wrist travel at all reads as 0 and is treated as unmeasured
    return angle if angle != 0 else None


def bat_lag(frame: Frame) -> Optional[float]:
    """Angle between the lead forearm and a mid-elbows -> mid-wrists barrel proxy"""
    left_elbow = frame.get(BodyLandmark.LEFT_ELBOW)
    right_elbow = frame.get(BodyLandmark.RIGHT_ELBOW)
    left_wrist = frame.get(BodyLandmark.LEFT_WRIST)
    right_wrist = frame.get(BodyLandmark.RIGHT_WRIST)

    if not (left_elbow and right_elbow and left_wrist and right_wrist):
        return None

    forearm = (left_wrist.x - left_elbow.x, left_wrist.y - left_elbow.y)
    mid_elbows = midpoint(left_elbow, right_elbow)
    mid_wrists = midpoint(left_wrist, right_wrist)
    barrel = (mid_wrists[0] - mid_elbows[0], mid_wrists[1] - mid_elbows[1])
    return _angle_between(forearm, barrel)


def torso_tilt(frame: Frame) -> Optional[float]:
    left_shoulder = frame.get(BodyLandmark.LEFT_SHOULDER)
    right_shoulder = frame.get(BodyLandmark.RIGHT_SHOULDER)
    left_hip = frame.get(BodyLandmark.LEFT_HIP)
    right_hip = frame.get(BodyLandmark.RIGHT_HIP)

    if not (left_shoulder and right_shoulder and left_hip and right_hip):
        return None

    return abs(_angle_from_vertical(midpoint(left_hip, right_hip), midpoint(left_shoulder, right_shoulder)))


def stride_length(frames: FrameSequence, events: SwingEvents) -> Optional[float]:
    """Lead ankle displacement from stride plant to launch, in pixels"""
    stride_frame = _frame_at(frames, events.stride_plant)
    launch_frame = _frame_at(frames, events.launch)
    if stride_frame is None or launch_frame is None:
        return None

    stride_ankle = stride_frame.get(BodyLandmark.LEFT_ANKLE)
    launch_ankle = launch_frame.get(BodyLandmark.LEFT_ANKLE)
    if not (stride_ankle and launch_ankle):
        return None

    return distance(stride_ankle, launch_ankle)


def stride_variance(current: Optional[float], recent_stride_lengths: Sequence[float]) -> float:
    """Percent deviation from the mean of the last three strides; 0 without history"""
    if current is None or len(recent_stride_lengths) < STRIDE_HISTORY:
        return 0.0

    recent_mean = sum(recent_stride_lengths[-STRIDE_HISTORY:]) / STRIDE_HISTORY
    if recent_mean == 0:
        return 0.0

    return abs(current - recent_mean) / recent_mean * 100


def finish_balance(frame: Frame) -> Optional[float]:
    """Centre-of-mass offset from the feet centre, 0 = perfectly balanced, capped at 1"""
    left_hip = frame.get(BodyLandmark.LEFT_HIP)
    right_hip = frame.get(BodyLandmark.RIGHT_HIP)
    left_foot = frame.get(BodyLandmark.LEFT_ANKLE)
    right_foot = frame.get(BodyLandmark.RIGHT_ANKLE)

    if not (left_hip and right_hip and left_foot and right_foot):
        return None

    foot_span = abs(right_foot.x - left_foot.x)
    if foot_span == 0:
        return None

    com_x = (left_hip.x + right_hip.x) / 2
    foot_center = (left_foot.x + right_foot.x) / 2
    return min(1.0, abs(com_x - foot_center) / (foot_span / 2))


def extract_swing_metrics(frames: FrameSequence,
                          events: SwingEvents,
                          fps: Optional[float] = None,
                          recent_stride_lengths: Sequence[float] = ()) -> MetricsResult:
    """
    Measure the rubric metrics for one segmented swing.

    Args:
        frames: The frame sequence the events index into
        events: Detected swing events
        fps: Sampling rate; estimated from timestamps when omitted
        recent_stride_lengths: Stride lengths (px) of the batter's previous swings

    Returns:
        MetricsResult with every rubric metric (None when unmeasurable)
    """
    if fps is None or fps <= 0:
        fps = estimate_fps(frames)

    missing_events = [name for name in REQUIRED_EVENTS if getattr(events, name) is None]

    launch_frame = _frame_at(frames, events.launch)
    contact_frame = _frame_at(frames, events.contact)
    finish_frame = _frame_at(frames, events.finish)

    pixels_per_cm = estimate_pixels_per_cm(launch_frame) if launch_frame else None

    metrics: Dict[str, Optional[float]] = {
        "hip_shoulder_sep_deg": None,
        "attack_angle_deg": None,
        "head_drift_cm": None,
        "contact_timing_frames": None,
        "bat_lag_deg": None,
        "torso_tilt_deg": None,
        "stride_var_pct": None,
        "finish_balance_idx": None,
    }

    if launch_frame:
        metrics["hip_shoulder_sep_deg"] = hip_shoulder_separation(launch_frame)
        metrics["bat_lag_deg"] = bat_lag(launch_frame)
        metrics["torso_tilt_deg"] = torso_tilt(launch_frame)

    if contact_frame:
        metrics["attack_angle_deg"] = attack_angle(frames, events.contact)

    if launch_frame and contact_frame and pixels_per_cm:
        launch_head = head_center(launch_frame)
        contact_head = head_center(contact_frame)
        if launch_head and contact_head:
            drift_px = math.hypot(contact_head[0] - launch_head[0], contact_head[1] - launch_head[1])
            metrics["head_drift_cm"] = drift_px / pixels_per_cm

    if events.launch is not None and events.contact is not None:
        ideal_frames = round_half_up(settings.ideal_contact_delay_ms / 1000.0 * fps)
        metrics["contact_timing_frames"] = float(events.contact - (events.launch + ideal_frames))

    metrics["stride_var_pct"] = stride_variance(stride_length(frames, events), recent_stride_lengths)

    if finish_frame:
        metrics["finish_balance_idx"] = finish_balance(finish_frame)

    null_metrics = sum(1 for value in metrics.values() if value is None)
    low_confidence = (null_metrics / len(metrics)) > MAX_MISSING_METRIC_RATIO or len(missing_events) > 1

    logger.info(
        "Swing metrics extracted",
        measured=len(metrics) - null_metrics,
        missing=null_metrics,
        missing_events=missing_events,
        pixels_per_cm=pixels_per_cm,
        low_confidence=low_confidence
    )

    return MetricsResult(
        metrics=metrics,
        pixels_per_cm=pixels_per_cm,
        low_confidence=low_confidence,
        missing_events=missing_events,
    )
