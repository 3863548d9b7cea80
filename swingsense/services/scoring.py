#!/usr/bin/env python3
"""
SwingSense Metric Scorer

Maps named biomechanical metric values onto per-metric scores in [0, 1]
against target bands, aggregates them into a weighted 0-100 composite and
ranks the weakest metrics.
"""

import math
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional, Tuple

import structlog

logger = structlog.get_logger()

WEAKEST_COUNT = 2


@dataclass(frozen=True)
class MetricSpec:
    """Target band and weighting for one metric"""
    target: Tuple[float, float]
    weight: float
    invert: bool = False
    abs_window: bool = False

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "MetricSpec":
        lo, hi = raw["target"]
        return cls(
            target=(float(lo), float(hi)),
            weight=float(raw["weight"]),
            invert=bool(raw.get("invert", False)),
            abs_window=bool(raw.get("abs_window", False)),
        )


@dataclass(frozen=True)
class Contribution:
    metric: str
    score: float
    weight: float


@dataclass(frozen=True)
class ScoreResult:
    score: int
    weakest: List[str] = field(default_factory=list)
    contributions: List[Contribution] = field(default_factory=list)


def _is_missing(value: Optional[float]) -> bool:
    if value is None:
        return True
    try:
        return math.isnan(value)
    except TypeError:
        return True


def widen_outside_band(raw: float, lo: float, hi: float) -> float:
    """Distance-preserving extrapolation used by ``abs_window`` metrics"""
    if raw < lo:
        return lo - abs(lo - raw)
    if raw > hi:
        return hi + abs(raw - hi)
    return raw


def normalize(value: float, lo: float, hi: float) -> float:
    """
    1.0 inside [lo, hi], decaying linearly to 0 over one band width outside it.

    A degenerate band (hi <= lo) only scores values exactly on it.
    """
    if lo <= value <= hi:
        return 1.0

    width = hi - lo
    if width <= 0:
        return 0.0

    if value < lo:
        return max(0.0, 1.0 - (lo - value) / width)
    return max(0.0, 1.0 - (value - hi) / width)


def score_metric(raw: float, spec: MetricSpec) -> float:
    """Final [0, 1] score for one metric value, inversion applied"""
    lo, hi = spec.target
    value = widen_outside_band(raw, lo, hi) if spec.abs_window else raw

    normalized = normalize(value, lo, hi)
    if spec.invert:
        normalized = 1.0 - normalized

    return normalized


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def score_metrics(values: Mapping[str, Optional[float]],
                  rubric: Optional[Mapping[str, MetricSpec]] = None) -> ScoreResult:
    """
    Score a swing's metric values against a rubric.

    Args:
        values: Metric name -> measured value; missing or NaN values are skipped
        rubric: Metric name -> MetricSpec, defaults to the built-in rubric

    Returns:
        ScoreResult with the 0-100 composite, the two weakest metrics and the
        per-metric contributions in rubric order
    """
    if rubric is None:
        from swingsense.rubric import DEFAULT_RUBRIC
        rubric = DEFAULT_RUBRIC

    contributions = []
    for metric, spec in rubric.items():
        raw = values.get(metric)
        if _is_missing(raw):
            continue

        contributions.append(Contribution(metric=metric, score=score_metric(float(raw), spec), weight=spec.weight))

    total_weight = sum(c.weight for c in contributions)
    if total_weight > 0:
        weighted = sum(c.score * c.weight for c in contributions)
        composite = round_half_up(100 * weighted / total_weight)
    else:
        composite = 0

    ranked = sorted(contributions, key=lambda c: c.score)
    weakest = [c.metric for c in ranked[:WEAKEST_COUNT]]

    logger.info(
        "Swing scored",
        score=composite,
        weakest=weakest,
        scored_metrics=len(contributions),
        skipped_metrics=len(rubric) - len(contributions)
    )

    return ScoreResult(score=composite, weakest=weakest, contributions=contributions)
