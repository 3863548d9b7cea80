"""
Target bands for the scored swing metrics.

Bands follow published MLB swing biomechanics (Driveline Baseball, Rockland
Peak Performance). Weights reflect how much each metric drives quality of
contact; rotational mechanics dominate.
"""

from swingsense.services.scoring import MetricSpec

DEFAULT_RUBRIC = {
    # Pros reach 45-60 deg of separation at launch
    "hip_shoulder_sep_deg": MetricSpec(target=(40, 60), weight=25),
    # Upward bat path through the contact zone
    "attack_angle_deg": MetricSpec(target=(5, 20), weight=20),
    # Head travel from launch to contact; smaller is better
    "head_drift_cm": MetricSpec(target=(0, 5), weight=15, invert=True),
    # Frames off an ideal 100 ms launch-to-contact delay
    "contact_timing_frames": MetricSpec(target=(-3, 3), weight=12, abs_window=True),
    # Forearm to barrel-proxy angle at launch
    "bat_lag_deg": MetricSpec(target=(50, 70), weight=10),
    # Forward lean at launch
    "torso_tilt_deg": MetricSpec(target=(10, 25), weight=15),
    # Stride length consistency swing to swing
    "stride_var_pct": MetricSpec(target=(0, 10), weight=3, invert=True),
    # 0 = centre of mass over the feet at finish
    "finish_balance_idx": MetricSpec(target=(0.0, 0.3), weight=10, invert=True),
}
