#!/usr/bin/env python3
"""
SwingSense Bat Speed Estimator

Estimates bat speed from wrist travel. The pixel scale is calibrated from the
batter's apparent body height, and the bat tip is assumed to move 1.4x faster
than the hands.
"""

import math
import statistics
from dataclasses import dataclass, field
from typing import Dict, List, Optional

import structlog

from swingsense.services.landmarks import BodyLandmark, Frame, FrameSequence, Keypoint

logger = structlog.get_logger()

LEVEL_BANDS = [
    (40, "Youth", "Youth level (8-12 years)"),
    (55, "Developing", "Developing player (13-15 years)"),
    (70, "High School", "High school varsity level"),
    (80, "College", "College/elite amateur level"),
]
TOP_LEVEL = ("Professional", "Professional/elite level")

IMPROVEMENT_TIPS: Dict[str, List[str]] = {
    "Youth": [
        "Focus on proper swing mechanics before worrying about speed",
        "Build core strength with age-appropriate exercises",
        "Practice dry swings with a lighter bat to develop muscle memory",
        "Work on hip rotation and weight transfer",
    ],
    "Developing": [
        "Incorporate resistance training with bands or weighted bats",
        "Focus on explosive hip rotation drills",
        "Practice bat speed drills 3-4 times per week",
        "Work on lower body strength and flexibility",
    ],
    "High School": [
        "Add plyometric exercises to build explosive power",
        "Use overload/underload training (heavier and lighter bats)",
        "Focus on bat path efficiency and minimizing wasted movement",
        "Strengthen your core and rotational power",
    ],
    "College": [
        "Fine-tune your swing path for maximum efficiency",
        "Incorporate advanced strength training with Olympic lifts",
        "Work on bat speed maintenance throughout the season",
        "Study video to eliminate any unnecessary movements",
    ],
    "Professional": [
        "Continue optimizing swing mechanics for consistency",
        "Maintain peak physical condition year-round",
        "Focus on bat-to-ball skills while preserving speed",
        "Use technology to track and maintain your metrics",
    ],
}


@dataclass
class WristVelocity:
    frame: int
    mph: float
    timestamp: float


@dataclass
class BatSpeedResult:
    peak_speed_mph: float
    avg_speed_mph: float
    peak_wrist_speed_mph: float
    avg_wrist_speed_mph: float
    swing_duration_ms: float
    acceleration_phase_ms: float
    level: str
    level_description: str
    pixels_per_foot: float
    wrist_velocities: List[WristVelocity] = field(default_factory=list)


class BatSpeedEstimator:
    """Bat speed from lead/trail wrist motion across frames"""

    BAT_TIP_MULTIPLIER = 1.4
    MPH_PER_FPS = 0.681818  # feet per second -> mph
    AVERAGE_BODY_HEIGHT_FEET = 5.5
    NOSE_TO_ANKLE_HEIGHT_RATIO = 0.85
    CALIBRATION_MIN_SCORE = 0.4
    WRIST_MIN_SCORE = 0.3
    ACCELERATION_PEAK_RATIO = 0.8

    def calculate_bat_speed(self, frames: FrameSequence, fps: float) -> Optional[BatSpeedResult]:
        """
        Estimate bat speed for a swing.

        Args:
            frames: Frame sequence of the swing
            fps: Sampling rate of ``frames``

        Returns:
            BatSpeedResult, or None when there are too few frames, no usable
            scale or no usable wrist track
        """
        if len(frames) < 2 or fps <= 0:
            logger.warning("Not enough frames to calculate bat speed", total_frames=len(frames))
            return None

        pixels_per_foot = self.calibrate_scale(frames)
        if not pixels_per_foot:
            logger.warning("Could not calibrate scale from body height")
            return None

        wrist_velocities = self.calculate_wrist_velocities(frames, fps, pixels_per_foot)
        if not wrist_velocities:
            logger.warning("No valid wrist velocities calculated")
            return None

        speeds = [v.mph for v in wrist_velocities]
        peak_wrist_speed = max(speeds)
        avg_wrist_speed = sum(speeds) / len(speeds)

        acceleration_samples = 0
        for i, speed in enumerate(speeds):
            if speed >= peak_wrist_speed * self.ACCELERATION_PEAK_RATIO:
                acceleration_samples = i
                break

        peak_speed = peak_wrist_speed * self.BAT_TIP_MULTIPLIER
        level, level_description = self.categorize_level(peak_speed)

        result = BatSpeedResult(
            peak_speed_mph=peak_speed,
            avg_speed_mph=avg_wrist_speed * self.BAT_TIP_MULTIPLIER,
            peak_wrist_speed_mph=peak_wrist_speed,
            avg_wrist_speed_mph=avg_wrist_speed,
            swing_duration_ms=(len(frames) - 1) / fps * 1000,
            acceleration_phase_ms=acceleration_samples / fps * 1000,
            level=level,
            level_description=level_description,
            pixels_per_foot=pixels_per_foot,
            wrist_velocities=wrist_velocities,
        )

        logger.info(
            "Bat speed estimated",
            peak_speed_mph=round(peak_speed, 1),
            level=level,
            pixels_per_foot=round(pixels_per_foot, 2)
        )

        return result

    def calibrate_scale(self, frames: FrameSequence) -> Optional[float]:
        """Pixels per foot from the median nose-to-ankle height"""
        heights = []

        for frame in frames:
            nose = frame.get(BodyLandmark.NOSE)
            if nose is None or nose.score < self.CALIBRATION_MIN_SCORE:
                continue

            left_ankle = frame.get(BodyLandmark.LEFT_ANKLE)
            right_ankle = frame.get(BodyLandmark.RIGHT_ANKLE)
            left_score = left_ankle.score if left_ankle else 0.0
            right_score = right_ankle.score if right_ankle else 0.0
            ankle = left_ankle if left_score > right_score else right_ankle
            if ankle is None or ankle.score < self.CALIBRATION_MIN_SCORE:
                continue

            pixel_height = math.hypot(nose.x - ankle.x, nose.y - ankle.y)
            heights.append(pixel_height / self.NOSE_TO_ANKLE_HEIGHT_RATIO)

        if not heights:
            return None

        median_height = statistics.median_high(heights)
        if median_height <= 0:
            return None

        return median_height / self.AVERAGE_BODY_HEIGHT_FEET

    def _usable_wrist(self, frame: Frame, name: BodyLandmark) -> Optional[Keypoint]:
        wrist = frame.get(name)
        if wrist is None or wrist.score < self.WRIST_MIN_SCORE:
            return None
        return wrist

    def calculate_wrist_velocities(self, frames: FrameSequence, fps: float,
                                   pixels_per_foot: float) -> List[WristVelocity]:
        """Per-pair wrist speed in mph, right wrist first with a left-wrist fallback"""
        velocities = []
        time_per_frame = 1.0 / fps

        for i in range(1, len(frames)):
            prev_frame = frames[i - 1]
            curr_frame = frames[i]

            prev_wrist = self._usable_wrist(prev_frame, BodyLandmark.RIGHT_WRIST)
            curr_wrist = self._usable_wrist(curr_frame, BodyLandmark.RIGHT_WRIST)
            if prev_wrist is None or curr_wrist is None:
                prev_wrist = self._usable_wrist(prev_frame, BodyLandmark.LEFT_WRIST)
                curr_wrist = self._usable_wrist(curr_frame, BodyLandmark.LEFT_WRIST)
            if prev_wrist is None or curr_wrist is None:
                continue

            pixel_distance = math.hypot(curr_wrist.x - prev_wrist.x, curr_wrist.y - prev_wrist.y)
            feet_per_second = (pixel_distance / pixels_per_foot) / time_per_frame

            velocities.append(WristVelocity(
                frame=i,
                mph=feet_per_second * self.MPH_PER_FPS,
                timestamp=curr_frame.t,
            ))

        return velocities

    @staticmethod
    def categorize_level(speed_mph: float):
        for upper_bound, level, description in LEVEL_BANDS:
            if speed_mph < upper_bound:
                return level, description
        return TOP_LEVEL

    @staticmethod
    def improvement_tips(level: str) -> List[str]:
        return list(IMPROVEMENT_TIPS.get(level, []))
