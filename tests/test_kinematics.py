import math
import numpy as np
import pytest
from conftest import make_frame, static_frames
from swingsense.services.kinematics import (
    extract_signals,
    lead_ankle_vertical_velocity,
    lead_arm_extension,
    lead_hand_speed,
    pelvis_angular_velocity,
    smooth,
    wrap_angle,
)
from swingsense.services.landmarks import BodyLandmark


def test_wrap_angle_into_half_open_range():
    """Test angle differences wrap into (-pi, pi]."""
    assert wrap_angle(3 * math.pi / 2) == pytest.approx(-math.pi / 2)
    assert wrap_angle(-3 * math.pi / 2) == pytest.approx(math.pi / 2)
    assert wrap_angle(math.pi) == pytest.approx(math.pi)
    assert wrap_angle(-math.pi) == pytest.approx(math.pi)
    assert wrap_angle(0.25) == pytest.approx(0.25)


def test_pelvis_rotation_across_the_branch_cut():
    """Test a small rotation through +/-pi is not read as a full turn."""
    prev = make_frame(positions={
        BodyLandmark.LEFT_HIP: (340.0, 350.0),
        BodyLandmark.RIGHT_HIP: (260.0, 351.0),
    })
    curr = make_frame(positions={
        BodyLandmark.LEFT_HIP: (340.0, 350.0),
        BodyLandmark.RIGHT_HIP: (260.0, 349.0),
    })

    velocity = pelvis_angular_velocity(prev, curr, 0.1)

    assert velocity < 1.0
    assert velocity > 0


def test_signals_zero_when_landmark_missing():
    """Test a missing landmark yields 0 rather than an error."""
    prev = make_frame(omit=(BodyLandmark.LEFT_HIP, BodyLandmark.LEFT_ANKLE, BodyLandmark.LEFT_WRIST))
    curr = make_frame(t=33.3)

    assert pelvis_angular_velocity(prev, curr, 0.033) == 0.0
    assert lead_ankle_vertical_velocity(prev, curr, 0.033) == 0.0
    assert lead_hand_speed(prev, curr, 0.033) == 0.0
    assert lead_arm_extension(make_frame(omit=(BodyLandmark.LEFT_ELBOW,))) == 0.0


def test_signals_zero_for_non_positive_dt():
    """Test duplicate timestamps do not divide by zero."""
    prev = make_frame()
    curr = make_frame(positions={BodyLandmark.LEFT_WRIST: (260.0, 330.0)})

    assert lead_hand_speed(prev, curr, 0.0) == 0.0
    assert lead_ankle_vertical_velocity(prev, curr, -0.01) == 0.0
    assert pelvis_angular_velocity(prev, curr, 0.0) == 0.0


def test_hand_speed_and_ankle_direction():
    """Test hand speed is a distance rate and ankle velocity is positive downward."""
    prev = make_frame()
    curr = make_frame(positions={
        BodyLandmark.LEFT_WRIST: (270.0, 370.0),
        BodyLandmark.LEFT_ANKLE: (250.0, 560.0),
    })

    assert lead_hand_speed(prev, curr, 0.5) == pytest.approx(100.0)
    assert lead_ankle_vertical_velocity(prev, curr, 0.5) == pytest.approx(20.0)


def test_straight_arm_extension_is_one():
    """Test a fully straight lead arm gives an extension ratio of 1."""
    frame = make_frame(positions={
        BodyLandmark.LEFT_SHOULDER: (200.0, 200.0),
        BodyLandmark.LEFT_ELBOW: (250.0, 200.0),
        BodyLandmark.LEFT_WRIST: (300.0, 200.0),
    })

    assert lead_arm_extension(frame) == pytest.approx(1.0)


def test_bent_arm_extension_below_one(stance_frame):
    """Test a bent lead arm stays inside (0, 1)."""
    ratio = lead_arm_extension(stance_frame)
    assert 0 < ratio < 1


def test_collapsed_arm_extension_is_zero():
    """Test coincident shoulder, elbow and wrist are treated as unknown."""
    frame = make_frame(positions={
        BodyLandmark.LEFT_SHOULDER: (200.0, 200.0),
        BodyLandmark.LEFT_ELBOW: (200.0, 200.0),
        BodyLandmark.LEFT_WRIST: (200.0, 200.0),
    })

    assert lead_arm_extension(frame) == 0.0


def test_extract_signals_lengths():
    """Test every series has one sample per adjacent frame pair."""
    signals = extract_signals(static_frames(12))

    assert len(signals) == 11
    assert len(signals.lead_hand_speed) == 11
    assert len(signals.lead_arm_extension) == 11
    assert np.all(signals.pelvis_angular_velocity == 0)


def test_extract_signals_empty_sequence():
    """Test an empty sequence produces empty series."""
    signals = extract_signals([])
    assert len(signals) == 0


def test_smooth_shrinks_window_at_edges():
    """Test the moving average uses only available samples near the boundaries."""
    smoothed = smooth([1, 2, 3, 4, 5], window=5)

    assert smoothed.tolist() == pytest.approx([2.0, 2.5, 3.0, 3.5, 4.0])


def test_smooth_preserves_length_and_constants():
    """Test smoothing keeps length and leaves a constant series untouched."""
    smoothed = smooth([7.0] * 9, window=5)

    assert len(smoothed) == 9
    assert smoothed.tolist() == pytest.approx([7.0] * 9)


def test_smooth_empty_series():
    assert len(smooth([], window=5)) == 0
