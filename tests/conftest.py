import math
import pytest
from fastapi.testclient import TestClient
from swingsense.main import app
from swingsense.services.landmarks import BodyLandmark, Frame, Keypoint

FRAME_INTERVAL_MS = 1000.0 / 30

# Side-on batter in address position, pixel coordinates
STANCE = {
    BodyLandmark.NOSE: (300.0, 100.0),
    BodyLandmark.LEFT_EYE: (290.0, 90.0),
    BodyLandmark.RIGHT_EYE: (310.0, 90.0),
    BodyLandmark.LEFT_EAR: (280.0, 95.0),
    BodyLandmark.RIGHT_EAR: (320.0, 95.0),
    BodyLandmark.LEFT_SHOULDER: (250.0, 180.0),
    BodyLandmark.RIGHT_SHOULDER: (350.0, 180.0),
    BodyLandmark.LEFT_ELBOW: (230.0, 260.0),
    BodyLandmark.RIGHT_ELBOW: (370.0, 260.0),
    BodyLandmark.LEFT_WRIST: (240.0, 330.0),
    BodyLandmark.RIGHT_WRIST: (360.0, 330.0),
    BodyLandmark.LEFT_HIP: (260.0, 350.0),
    BodyLandmark.RIGHT_HIP: (340.0, 350.0),
    BodyLandmark.LEFT_KNEE: (260.0, 450.0),
    BodyLandmark.RIGHT_KNEE: (340.0, 450.0),
    BodyLandmark.LEFT_ANKLE: (250.0, 550.0),
    BodyLandmark.RIGHT_ANKLE: (350.0, 550.0),
}


def make_frame(t=0.0, score=0.9, scores=None, positions=None, omit=()):
    """Stance frame with optional per-landmark positions, scores and dropouts."""
    positions = positions or {}
    scores = scores or {}
    keypoints = []
    for name, (x, y) in STANCE.items():
        if name in omit:
            continue
        x, y = positions.get(name, (x, y))
        keypoints.append(Keypoint(name=name, x=x, y=y, score=scores.get(name, score)))
    return Frame.from_keypoints(t, keypoints)


# Collinear lead arm with integer segment lengths (80 + 70 = 150), extension exactly 1.0
STRAIGHT_LEAD_ARM = {
    BodyLandmark.LEFT_SHOULDER: (250.0, 180.0),
    BodyLandmark.LEFT_ELBOW: (250.0, 260.0),
    BodyLandmark.LEFT_WRIST: (250.0, 330.0),
}


def static_frames(count=20, positions=None):
    """Motionless batter; the straight lead arm keeps extension constant through smoothing."""
    positions = STRAIGHT_LEAD_ARM if positions is None else positions
    return [make_frame(t=i * FRAME_INTERVAL_MS, positions=positions) for i in range(count)]


def _ease(progress):
    """0 -> 1 with zero velocity at both ends"""
    progress = min(1.0, max(0.0, progress))
    return (1 - math.cos(math.pi * progress)) / 2


def swing_frames(count=50):
    """
    Synthetic swing: stride lift and plant, then hip rotation, then the lead
    hand accelerating through the zone, then a still finish.
    """
    frames = []
    hip_cx, hip_cy = 300.0, 350.0

    for i in range(count):
        # Lead ankle rises over frames 12-16 and plants by frame 20
        ankle_y = 550.0
        if 12 <= i <= 16:
            ankle_y -= 4.0 * (i - 12)
        elif 16 < i <= 20:
            ankle_y -= 4.0 * (20 - i)

        # Hips rotate 0.6 rad over frames 10-30
        theta = 0.6 * _ease((i - 10) / 20)
        dx, dy = 40.0 * math.cos(theta), 40.0 * math.sin(theta)

        # Lead wrist travels 200 px over frames 18-30
        wrist_x = 240.0 + 200.0 * _ease((i - 18) / 12)

        frames.append(make_frame(
            t=i * FRAME_INTERVAL_MS,
            positions={
                BodyLandmark.LEFT_ANKLE: (250.0, ankle_y),
                BodyLandmark.LEFT_HIP: (hip_cx - dx, hip_cy - dy),
                BodyLandmark.RIGHT_HIP: (hip_cx + dx, hip_cy + dy),
                BodyLandmark.LEFT_WRIST: (wrist_x, 330.0),
            },
        ))

    return frames


def frame_payload(frame):
    return {
        "t": frame.t,
        "keypoints": [
            {"name": kp.name.value, "x": kp.x, "y": kp.y, "score": kp.score}
            for kp in frame.keypoints.values()
        ],
    }


@pytest.fixture(scope="function")
def client():
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def stance_frame():
    return make_frame()


@pytest.fixture
def sample_swing():
    return swing_frames()


@pytest.fixture
def sample_metrics():
    return {
        "hip_shoulder_sep_deg": 50.0,
        "attack_angle_deg": 12.0,
        "head_drift_cm": 9.0,
        "contact_timing_frames": 1.0,
        "bat_lag_deg": 30.0,
        "torso_tilt_deg": 18.0,
        "stride_var_pct": 4.0,
        "finish_balance_idx": 0.1,
    }
