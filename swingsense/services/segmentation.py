#!/usr/bin/env python3
"""
SwingSense Swing Event Segmenter

Splits a batting swing into six events using threshold and extremum
heuristics over the smoothed kinematic signals:

    load_start -> stride_plant -> launch -> contact -> extension -> finish

Each stage searches only at or after the most recent event found before it
(index 0 when nothing has been found yet), so present events are always in
non-decreasing order. A stage that finds nothing leaves its event absent and
the pipeline carries on.
"""

from dataclasses import asdict, dataclass, replace
from functools import reduce
from typing import Callable, Dict, List, Optional, Tuple

import structlog

from swingsense.services.kinematics import (
    KinematicSignals,
    extract_signals,
    smooth_signals,
)
from swingsense.services.landmarks import FrameSequence

logger = structlog.get_logger()

MIN_FRAMES = 10

LOAD_EDGE_SAMPLES = 5
LOAD_PELVIS_THRESHOLD = 0.1  # rad/s
STRIDE_SEARCH_OFFSET = 3
CONTACT_PEAK_RATIO = 0.8
FINISH_PELVIS_THRESHOLD = 0.05  # rad/s
FINISH_HAND_THRESHOLD = 10.0  # px/s
FINISH_SETTLE_SAMPLES = 8

EVENT_ORDER = ("load_start", "stride_plant", "launch", "contact", "extension", "finish")

EVENT_LABELS = {
    "load_start": "Load Start",
    "stride_plant": "Stride Plant",
    "launch": "Launch",
    "contact": "Contact",
    "extension": "Extension",
    "finish": "Finish",
}

EVENT_DESCRIPTIONS = {
    "load_start": "Batter begins loading weight and rotating hips",
    "stride_plant": "Lead foot makes contact with the ground",
    "launch": "Peak hip rotation - explosive power transfer begins",
    "contact": "Bat makes contact with the ball",
    "extension": "Maximum arm extension through the swing",
    "finish": "Follow-through complete, balanced finish position",
}


@dataclass(frozen=True)
class SwingEvents:
    """Frame indices of the detected swing events; None means not detected"""
    load_start: Optional[int] = None
    stride_plant: Optional[int] = None
    launch: Optional[int] = None
    contact: Optional[int] = None
    extension: Optional[int] = None
    finish: Optional[int] = None

    def as_dict(self) -> Dict[str, int]:
        """Only the events that were detected"""
        return {name: index for name, index in asdict(self).items() if index is not None}

    def anchor(self) -> int:
        """Index of the latest detected event, 0 when none were found"""
        found = [index for index in asdict(self).values() if index is not None]
        return found[-1] if found else 0


StageDetector = Callable[[KinematicSignals, int], Optional[int]]


def detect_load_start(signals: KinematicSignals, anchor: int) -> Optional[int]:
    """First rise of pelvis rotation above the load threshold, away from the edges"""
    pelvis = signals.pelvis_angular_velocity
    start = max(LOAD_EDGE_SAMPLES, anchor)

    for i in range(start, len(pelvis) - LOAD_EDGE_SAMPLES):
        if pelvis[i] > pelvis[i - 1] and pelvis[i] > LOAD_PELVIS_THRESHOLD:
            return i + 1

    return None


def detect_stride_plant(signals: KinematicSignals, anchor: int) -> Optional[int]:
    """Lead ankle vertical velocity crosses from positive (falling) to <= 0"""
    ankle = signals.lead_ankle_vertical_velocity

    for i in range(anchor + STRIDE_SEARCH_OFFSET, len(ankle)):
        if ankle[i - 1] > 0 and ankle[i] <= 0:
            return i + 1

    return None


def detect_launch(signals: KinematicSignals, anchor: int) -> Optional[int]:
    """Peak pelvis angular velocity"""
    pelvis = signals.pelvis_angular_velocity
    max_velocity = 0.0
    launch_idx = 0

    for i in range(anchor, len(pelvis)):
        if pelvis[i] > max_velocity:
            max_velocity = pelvis[i]
            launch_idx = i

    return launch_idx + 1 if launch_idx > 0 else None


def detect_contact(signals: KinematicSignals, anchor: int) -> Optional[int]:
    """Hand speed near its running peak, followed by two decelerating samples"""
    hand = signals.lead_hand_speed
    max_speed = 0.0

    for i in range(anchor, len(hand) - 3):
        if hand[i] > max_speed:
            max_speed = hand[i]

        if (hand[i] > max_speed * CONTACT_PEAK_RATIO and
                hand[i] > hand[i + 1] and
                hand[i + 1] > hand[i + 2]):
            return i + 1 if i > 0 else None

    return None


def detect_extension(signals: KinematicSignals, anchor: int) -> Optional[int]:
    """Maximum lead-arm extension"""
    extension = signals.lead_arm_extension
    max_extension = 0.0
    extension_idx = 0

    for i in range(anchor, len(extension)):
        if extension[i] > max_extension:
            max_extension = extension[i]
            extension_idx = i

    return extension_idx + 1 if extension_idx > 0 else None


def detect_finish(signals: KinematicSignals, anchor: int) -> Optional[int]:
    """Start of the first run where pelvis and hands have both settled"""
    pelvis = signals.pelvis_angular_velocity
    hand = signals.lead_hand_speed
    settle_count = 0

    for i in range(anchor, len(pelvis)):
        if pelvis[i] < FINISH_PELVIS_THRESHOLD and hand[i] < FINISH_HAND_THRESHOLD:
            settle_count += 1
            if settle_count >= FINISH_SETTLE_SAMPLES:
                return i - (FINISH_SETTLE_SAMPLES - 1)
        else:
            settle_count = 0

    return None


STAGES: List[Tuple[str, StageDetector]] = [
    ("load_start", detect_load_start),
    ("stride_plant", detect_stride_plant),
    ("launch", detect_launch),
    ("contact", detect_contact),
    ("extension", detect_extension),
    ("finish", detect_finish),
]


def segment_signals(smoothed: KinematicSignals) -> SwingEvents:
    """Run every stage detector in order over already-smoothed signals."""

    def run_stage(events: SwingEvents, stage: Tuple[str, StageDetector]) -> SwingEvents:
        name, detector = stage
        index = detector(smoothed, events.anchor())
        if index is None:
            return events
        return replace(events, **{name: int(index)})

    return reduce(run_stage, STAGES, SwingEvents())


def segment_swing(frames: FrameSequence, smoothing_window: int = 5) -> SwingEvents:
    """
    Detect the six swing events in a keypoint sequence.

    Args:
        frames: Complete, time-ordered frame sequence
        smoothing_window: Moving-average window applied to every signal

    Returns:
        SwingEvents with frame indices into ``frames``; empty for sequences
        shorter than MIN_FRAMES
    """
    if len(frames) < MIN_FRAMES:
        logger.info("Too few frames for swing segmentation", total_frames=len(frames))
        return SwingEvents()

    smoothed = smooth_signals(extract_signals(frames), smoothing_window)
    events = segment_signals(smoothed)

    logger.info(
        "Swing events detected",
        total_frames=len(frames),
        **events.as_dict()
    )

    return events
