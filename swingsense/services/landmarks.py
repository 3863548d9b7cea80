#!/usr/bin/env python3
"""
SwingSense Keypoint Frame Store

Canonical keypoint and frame types shared by every analysis stage. Raw pose
output from either upstream model shape (``name``/``part`` for the landmark,
``score``/``confidence`` for the confidence) is normalized here, at the
ingestion boundary, so the rest of the pipeline only ever sees ``Keypoint``.
"""

import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Mapping, Optional

import structlog

logger = structlog.get_logger()


class BodyLandmark(str, Enum):
    """The 17 body landmarks produced by a single-subject pose model."""
    NOSE = "nose"
    LEFT_EYE = "left_eye"
    RIGHT_EYE = "right_eye"
    LEFT_EAR = "left_ear"
    RIGHT_EAR = "right_ear"
    LEFT_SHOULDER = "left_shoulder"
    RIGHT_SHOULDER = "right_shoulder"
    LEFT_ELBOW = "left_elbow"
    RIGHT_ELBOW = "right_elbow"
    LEFT_WRIST = "left_wrist"
    RIGHT_WRIST = "right_wrist"
    LEFT_HIP = "left_hip"
    RIGHT_HIP = "right_hip"
    LEFT_KNEE = "left_knee"
    RIGHT_KNEE = "right_knee"
    LEFT_ANKLE = "left_ankle"
    RIGHT_ANKLE = "right_ankle"


# Landmarks whose dropout makes a frame unreliable for swing analysis
KEY_LANDMARKS = (
    BodyLandmark.LEFT_HIP, BodyLandmark.RIGHT_HIP,
    BodyLandmark.LEFT_SHOULDER, BodyLandmark.RIGHT_SHOULDER,
    BodyLandmark.LEFT_ANKLE, BodyLandmark.RIGHT_ANKLE,
    BodyLandmark.LEFT_WRIST, BodyLandmark.RIGHT_WRIST,
)


@dataclass(frozen=True)
class Keypoint:
    """A single landmark in source pixel space"""
    name: BodyLandmark
    x: float
    y: float
    score: float

    @classmethod
    def from_raw(cls, raw: Mapping[str, Any]) -> Optional["Keypoint"]:
        """Build a keypoint from a raw model dict, or None if the landmark is unknown."""
        label = raw.get("name") or raw.get("part")
        try:
            name = BodyLandmark(label)
        except ValueError:
            return None

        score = raw.get("score")
        if score is None:
            score = raw.get("confidence")

        return cls(
            name=name,
            x=float(raw["x"]),
            y=float(raw["y"]),
            score=float(score or 0.0),
        )


@dataclass(frozen=True)
class Frame:
    """One sampled video frame: timestamp in milliseconds plus its keypoints"""
    t: float
    keypoints: Dict[BodyLandmark, Keypoint] = field(default_factory=dict)

    def get(self, name: BodyLandmark) -> Optional[Keypoint]:
        return self.keypoints.get(name)

    @classmethod
    def from_keypoints(cls, t: float, keypoints: Iterable[Keypoint]) -> "Frame":
        """Build a frame, keeping the first keypoint seen for each landmark."""
        by_name: Dict[BodyLandmark, Keypoint] = {}
        for keypoint in keypoints:
            by_name.setdefault(keypoint.name, keypoint)
        return cls(t=float(t), keypoints=by_name)

    @classmethod
    def from_raw(cls, t: float, raw_keypoints: Iterable[Mapping[str, Any]]) -> "Frame":
        parsed = (Keypoint.from_raw(raw) for raw in raw_keypoints)
        return cls.from_keypoints(t, (kp for kp in parsed if kp is not None))


FrameSequence = List[Frame]


def frames_from_payload(payload: Iterable[Mapping[str, Any]]) -> FrameSequence:
    """
    Convert raw ``{"t": ..., "keypoints": [...]}`` records into a FrameSequence.

    Records with no recognised keypoints are dropped, the same way a frame
    without a detected subject never enters the sequence.
    """
    frames = []
    dropped = 0
    for record in payload:
        frame = Frame.from_raw(record["t"], record.get("keypoints") or [])
        if not frame.keypoints:
            dropped += 1
            continue
        frames.append(frame)

    if dropped:
        logger.info("Dropped frames without keypoints", dropped=dropped, kept=len(frames))

    return frames


def distance(p1: Keypoint, p2: Keypoint) -> float:
    """Euclidean distance between two keypoints"""
    return math.hypot(p2.x - p1.x, p2.y - p1.y)


def midpoint(p1: Keypoint, p2: Keypoint) -> tuple:
    return ((p1.x + p2.x) / 2, (p1.y + p2.y) / 2)
