#!/usr/bin/env python3
"""
SwingSense Pose Estimation

Frame sampling with OpenCV and single-subject pose estimation with MediaPipe
Pose. The model is held by a ``PoseEstimator`` handle with an explicit
open/close lifecycle; one handle serves one analysis at a time.
"""

import threading
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

import cv2
import numpy as np
import structlog

from swingsense.config import settings
from swingsense.exceptions import PoseModelError, VideoDecodeError
from swingsense.services.landmarks import BodyLandmark, Keypoint

logger = structlog.get_logger()

# MediaPipe Pose landmark index for each of our 17 body landmarks
MEDIAPIPE_LANDMARKS = {
    BodyLandmark.NOSE: 0,
    BodyLandmark.LEFT_EYE: 2,
    BodyLandmark.RIGHT_EYE: 5,
    BodyLandmark.LEFT_EAR: 7,
    BodyLandmark.RIGHT_EAR: 8,
    BodyLandmark.LEFT_SHOULDER: 11,
    BodyLandmark.RIGHT_SHOULDER: 12,
    BodyLandmark.LEFT_ELBOW: 13,
    BodyLandmark.RIGHT_ELBOW: 14,
    BodyLandmark.LEFT_WRIST: 15,
    BodyLandmark.RIGHT_WRIST: 16,
    BodyLandmark.LEFT_HIP: 23,
    BodyLandmark.RIGHT_HIP: 24,
    BodyLandmark.LEFT_KNEE: 25,
    BodyLandmark.RIGHT_KNEE: 26,
    BodyLandmark.LEFT_ANKLE: 27,
    BodyLandmark.RIGHT_ANKLE: 28,
}


def iter_video_frames(video_path: str, target_fps: int = 30) -> Iterator[Tuple[float, np.ndarray]]:
    """
    Sample RGB frames from a video at roughly ``target_fps``.

    Args:
        video_path: Path to the input video file
        target_fps: Desired sampling rate

    Yields:
        (timestamp in ms from video start, RGB frame)
    """
    video_path = Path(video_path)
    if not video_path.exists():
        raise VideoDecodeError(f"Video file not found: {video_path}")

    cap = cv2.VideoCapture(str(video_path))
    if not cap.isOpened():
        raise VideoDecodeError(f"Could not open video file: {video_path}")

    original_fps = cap.get(cv2.CAP_PROP_FPS) or 0.0
    total_frames = int(cap.get(cv2.CAP_PROP_FRAME_COUNT))
    if original_fps <= 0:
        original_fps = float(target_fps)

    frame_skip = max(1, int(original_fps / target_fps)) if target_fps > 0 else 1

    logger.info(
        "Video properties",
        original_fps=original_fps,
        total_frames=total_frames,
        duration=total_frames / original_fps,
        frame_skip=frame_skip
    )

    frame_index = 0
    try:
        while True:
            ret, frame = cap.read()
            if not ret:
                break

            if frame_index % frame_skip == 0:
                yield frame_index / original_fps * 1000.0, cv2.cvtColor(frame, cv2.COLOR_BGR2RGB)

            frame_index += 1
    finally:
        cap.release()


class PoseEstimator:
    """MediaPipe Pose handle producing canonical keypoints in pixel space."""

    def __init__(self,
                 min_detection_confidence: Optional[float] = None,
                 min_tracking_confidence: Optional[float] = None,
                 model_complexity: Optional[int] = None):
        self.min_detection_confidence = (
            settings.min_detection_confidence if min_detection_confidence is None else min_detection_confidence
        )
        self.min_tracking_confidence = (
            settings.min_tracking_confidence if min_tracking_confidence is None else min_tracking_confidence
        )
        self.model_complexity = settings.model_complexity if model_complexity is None else model_complexity

        self._pose = None
        self._busy = threading.Lock()

    @property
    def is_open(self) -> bool:
        return self._pose is not None

    def open(self) -> "PoseEstimator":
        """Load the pose model. Opening an open handle is a no-op."""
        if self._pose is not None:
            return self

        try:
            import mediapipe as mp

            self._pose = mp.solutions.pose.Pose(
                static_image_mode=False,
                model_complexity=self.model_complexity,
                smooth_landmarks=True,
                enable_segmentation=False,
                min_detection_confidence=self.min_detection_confidence,
                min_tracking_confidence=self.min_tracking_confidence
            )
        except Exception as e:
            logger.error("Failed to load pose model", error=str(e))
            raise PoseModelError(f"Failed to load pose model: {e}") from e

        logger.info(
            "PoseEstimator initialized",
            min_detection_confidence=self.min_detection_confidence,
            min_tracking_confidence=self.min_tracking_confidence,
            model_complexity=self.model_complexity
        )
        return self

    def close(self):
        if self._pose is not None:
            self._pose.close()
            self._pose = None
            logger.info("PoseEstimator disposed")

    def __enter__(self) -> "PoseEstimator":
        return self.open()

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def estimate(self, image: np.ndarray) -> List[Keypoint]:
        """
        Estimate the pose of the single subject in an RGB image.

        Returns:
            Keypoints for the 17 body landmarks, or an empty list when no
            subject was detected
        """
        if self._pose is None:
            raise PoseModelError("Pose model not initialized")

        if not self._busy.acquire(blocking=False):
            raise PoseModelError("Pose model is already processing a frame")

        try:
            results = self._pose.process(image)
        finally:
            self._busy.release()

        if not results.pose_landmarks:
            return []

        height, width = image.shape[:2]
        landmarks = results.pose_landmarks.landmark

        return [
            Keypoint(
                name=name,
                x=float(landmarks[index].x) * width,
                y=float(landmarks[index].y) * height,
                score=float(landmarks[index].visibility),
            )
            for name, index in MEDIAPIPE_LANDMARKS.items()
        ]
