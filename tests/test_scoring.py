import math
import pytest
from swingsense.rubric import DEFAULT_RUBRIC
from swingsense.services.scoring import (
    MetricSpec,
    normalize,
    round_half_up,
    score_metric,
    score_metrics,
)

BAND = MetricSpec(target=(0, 10), weight=1)


def test_midpoint_scores_full():
    """Test a value inside the target band scores 1."""
    assert score_metric(5, BAND) == 1.0
    assert score_metric(0, BAND) == 1.0
    assert score_metric(10, BAND) == 1.0


def test_invert_flips_score():
    inverted = MetricSpec(target=(0, 10), weight=1, invert=True)

    assert score_metric(5, inverted) == 0.0
    assert score_metric(25, inverted) == 1.0


def test_linear_decay_outside_band():
    """Test scores fall off over one band width on either side."""
    assert normalize(15, 0, 10) == pytest.approx(0.5)
    assert normalize(-2, 0, 10) == pytest.approx(0.8)
    assert normalize(20, 0, 10) == 0.0
    assert normalize(100, 0, 10) == 0.0


def test_degenerate_band():
    assert normalize(3, 3, 3) == 1.0
    assert normalize(4, 3, 3) == 0.0


def test_abs_window_scores_distance_from_band():
    spec = MetricSpec(target=(-3, 3), weight=12, abs_window=True)

    assert score_metric(-2, spec) == 1.0
    assert score_metric(-5, spec) == pytest.approx(1 - 2 / 6)
    assert score_metric(6, spec) == pytest.approx(0.5)


def test_weighted_composite():
    """Test the composite is the weight-averaged score on a 0-100 scale."""
    rubric = {"a": BAND, "b": BAND}
    result = score_metrics({"a": 5, "b": 20}, rubric)

    assert result.score == 50


def test_weakest_metrics_ranked_lowest_first():
    rubric = {"a": BAND, "b": BAND, "c": BAND}
    result = score_metrics({"a": 11, "b": 18, "c": 14}, rubric)

    assert result.weakest == ["b", "c"]
    assert [c.metric for c in result.contributions] == ["a", "b", "c"]
    assert [c.score for c in result.contributions] == pytest.approx([0.9, 0.2, 0.6])


def test_ties_keep_rubric_order():
    rubric = {"a": BAND, "b": BAND, "c": BAND}
    result = score_metrics({"a": 30, "b": 30, "c": 30}, rubric)

    assert result.weakest == ["a", "b"]


def test_missing_and_nan_values_skipped():
    """Test None, NaN and absent metrics are left out of the composite."""
    rubric = {"a": BAND, "b": BAND, "c": BAND, "d": BAND}
    result = score_metrics({"a": 5, "b": None, "c": math.nan}, rubric)

    assert result.score == 100
    assert [c.metric for c in result.contributions] == ["a"]
    assert result.weakest == ["a"]


def test_no_scorable_metrics_scores_zero():
    result = score_metrics({}, {"a": BAND})

    assert result.score == 0
    assert result.weakest == []
    assert result.contributions == []


def test_metrics_outside_rubric_ignored():
    result = score_metrics({"a": 5, "unknown": 1000}, {"a": BAND})

    assert result.score == 100
    assert len(result.contributions) == 1


def test_round_half_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(0.5) == 1
    assert round_half_up(49.49) == 49
    assert round_half_up(-0.5) == 0


def test_default_rubric(sample_metrics):
    """Test the built-in rubric scores a realistic swing."""
    result = score_metrics(sample_metrics)

    assert result.score == 76
    assert result.weakest == ["bat_lag_deg", "stride_var_pct"]
    assert [c.metric for c in result.contributions] == list(DEFAULT_RUBRIC)


def test_metric_spec_from_dict():
    spec = MetricSpec.from_dict({"target": [40, 60], "weight": 25})

    assert spec == MetricSpec(target=(40.0, 60.0), weight=25.0)
    assert not spec.invert
    assert not spec.abs_window
