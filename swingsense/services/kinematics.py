#!/usr/bin/env python3
"""
SwingSense Kinematic Signals

Per-frame-pair scalar time series derived from a keypoint sequence, plus the
centered moving-average smoother applied before event segmentation.

Every series has length N-1 for an N-frame sequence; series index ``i``
corresponds to frame index ``i + 1``. A missing landmark never raises, the
affected sample is simply 0.
"""

import math
from dataclasses import dataclass
import numpy as np
import structlog

from swingsense.services.landmarks import BodyLandmark, Frame, FrameSequence, distance

logger = structlog.get_logger()


@dataclass(frozen=True)
class KinematicSignals:
    """Index-aligned kinematic series for one swing"""
    pelvis_angular_velocity: np.ndarray  # rad/s, absolute
    lead_ankle_vertical_velocity: np.ndarray  # px/s, positive = moving down the image
    lead_hand_speed: np.ndarray  # px/s
    lead_arm_extension: np.ndarray  # ratio in (0, 1], 0 when unknown

    def __len__(self) -> int:
        return len(self.pelvis_angular_velocity)


def wrap_angle(angle: float) -> float:
    """Normalize an angle difference into (-pi, pi]"""
    while angle > math.pi:
        angle -= 2 * math.pi
    while angle <= -math.pi:
        angle += 2 * math.pi
    return angle


def pelvis_angular_velocity(prev: Frame, curr: Frame, dt: float) -> float:
    """Absolute rotation rate of the left-hip -> right-hip segment"""
    prev_left = prev.get(BodyLandmark.LEFT_HIP)
    prev_right = prev.get(BodyLandmark.RIGHT_HIP)
    curr_left = curr.get(BodyLandmark.LEFT_HIP)
    curr_right = curr.get(BodyLandmark.RIGHT_HIP)

    if not (prev_left and prev_right and curr_left and curr_right) or dt <= 0:
        return 0.0

    curr_angle = math.atan2(curr_right.y - curr_left.y, curr_right.x - curr_left.x)
    prev_angle = math.atan2(prev_right.y - prev_left.y, prev_right.x - prev_left.x)

    return abs(wrap_angle(curr_angle - prev_angle) / dt)


def lead_ankle_vertical_velocity(prev: Frame, curr: Frame, dt: float) -> float:
    prev_ankle = prev.get(BodyLandmark.LEFT_ANKLE)
    curr_ankle = curr.get(BodyLandmark.LEFT_ANKLE)

    if not (prev_ankle and curr_ankle) or dt <= 0:
        return 0.0

    return (curr_ankle.y - prev_ankle.y) / dt


def lead_hand_speed(prev: Frame, curr: Frame, dt: float) -> float:
    prev_wrist = prev.get(BodyLandmark.LEFT_WRIST)
    curr_wrist = curr.get(BodyLandmark.LEFT_WRIST)

    if not (prev_wrist and curr_wrist) or dt <= 0:
        return 0.0

    return distance(prev_wrist, curr_wrist) / dt


def lead_arm_extension(frame: Frame) -> float:
    """
    Straightness of the lead arm.

    shoulder-wrist over shoulder-elbow + elbow-wrist, so 1.0 is a fully
    extended arm. By the triangle inequality the ratio never exceeds 1.
    """
    shoulder = frame.get(BodyLandmark.LEFT_SHOULDER)
    elbow = frame.get(BodyLandmark.LEFT_ELBOW)
    wrist = frame.get(BodyLandmark.LEFT_WRIST)

    if not (shoulder and elbow and wrist):
        return 0.0

    arm_length = distance(shoulder, elbow) + distance(elbow, wrist)
    if arm_length == 0:
        return 0.0

    return min(1.0, distance(shoulder, wrist) / arm_length)


def extract_signals(frames: FrameSequence) -> KinematicSignals:
    """Compute raw kinematic series for every adjacent frame pair."""
    pelvis = []
    ankle = []
    hand = []
    extension = []

    for prev, curr in zip(frames, frames[1:]):
        dt = (curr.t - prev.t) / 1000.0

        pelvis.append(pelvis_angular_velocity(prev, curr, dt))
        ankle.append(lead_ankle_vertical_velocity(prev, curr, dt))
        hand.append(lead_hand_speed(prev, curr, dt))
        extension.append(lead_arm_extension(curr))

    logger.debug("Extracted kinematic signals", total_frames=len(frames), samples=len(pelvis))

    return KinematicSignals(
        pelvis_angular_velocity=np.asarray(pelvis, dtype=float),
        lead_ankle_vertical_velocity=np.asarray(ankle, dtype=float),
        lead_hand_speed=np.asarray(hand, dtype=float),
        lead_arm_extension=np.asarray(extension, dtype=float),
    )


def smooth(series, window: int = 5) -> np.ndarray:
    """
    Centered moving average whose window shrinks at the boundaries.

    Output length equals input length; no padding is introduced.
    """
    values = np.asarray(series, dtype=float)
    half_window = max(1, int(window)) // 2
    smoothed = np.empty_like(values)

    for i in range(len(values)):
        start = max(0, i - half_window)
        end = min(len(values), i + half_window + 1)
        # Left-to-right float sum, so a constant series can differ by one ulp at the edges
        smoothed[i] = sum(values[start:end].tolist()) / (end - start)

    return smoothed


def smooth_signals(signals: KinematicSignals, window: int = 5) -> KinematicSignals:
    """Smooth each series of ``signals`` independently."""
    return KinematicSignals(
        pelvis_angular_velocity=smooth(signals.pelvis_angular_velocity, window),
        lead_ankle_vertical_velocity=smooth(signals.lead_ankle_vertical_velocity, window),
        lead_hand_speed=smooth(signals.lead_hand_speed, window),
        lead_arm_extension=smooth(signals.lead_arm_extension, window),
    )
