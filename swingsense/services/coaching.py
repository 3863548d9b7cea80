#!/usr/bin/env python3
"""
SwingSense Coaching Cards

Turns the weakest scored metrics into game-ready coaching cards: a one-line
cue, a short reason and a drill to work on.
"""

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence

import structlog

from swingsense.services.scoring import MetricSpec, ScoreResult, score_metrics

logger = structlog.get_logger()

MAX_CARDS = 2


@dataclass(frozen=True)
class Cue:
    cue: str
    why: str
    drill_name: str
    alt_drill_names: Sequence[str] = ()


@dataclass
class Drill:
    id: str
    name: str
    goal_metric: str
    purpose: str = ""
    steps: List[str] = field(default_factory=list)
    reps: str = ""
    focus_cues: List[str] = field(default_factory=list)
    equipment: List[str] = field(default_factory=list)


@dataclass
class CoachingCard:
    metric: str
    cue: str
    why: str
    drill: Drill


CUE_MAP: Dict[str, Cue] = {
    "head_drift_cm": Cue(
        cue="Quiet eyes; brace the front side.",
        why="Too much head travel hurts tracking & barrel control.",
        drill_name="Wall Head Check",
        alt_drill_names=("Balance Hold Drill", "Head Still Wall Drill"),
    ),
    "attack_angle_deg": Cue(
        cue="Turn the barrel later; stay through the line-drive window.",
        why="Downward path reduces solid contact for youth velo.",
        drill_name="PVC Tilt Ladder",
        alt_drill_names=("Tilt Ladder", "PVC Attack Angle"),
    ),
    "hip_shoulder_sep_deg": Cue(
        cue="Hold the load; fire hips first, hands last.",
        why="Better sequence transfers energy up the chain.",
        drill_name="Step-Behind Sequence",
        alt_drill_names=("Step-Behind Separation", "Hip-Lead Step-Behind"),
    ),
    "bat_lag_deg": Cue(
        cue="Knob leads; keep the barrel lagging behind.",
        why="Lag creates bat speed without casting.",
        drill_name="Over/Underload Swings",
        alt_drill_names=("Heavy-Game-Light", "Knob-Lead Ladder"),
    ),
    "torso_tilt_deg": Cue(
        cue="Keep an athletic hinge at launch.",
        why="Stable posture anchors the swing plane.",
        drill_name="PVC Posture Holds",
        alt_drill_names=("Posture Holds", "Hinge & Hold"),
    ),
    "stride_var_pct": Cue(
        cue="Repeat the same stride length every time.",
        why="Consistency = timing you can trust.",
        drill_name="Tape Ladder Strides",
        alt_drill_names=("Stride Ladder", "Stride Tape Drill"),
    ),
    "finish_balance_idx": Cue(
        cue="Stick the finish for 2 seconds.",
        why="Balanced finish = controlled swing path.",
        drill_name="Stick the Finish",
        alt_drill_names=("Freeze Finish", "Hold the Finish"),
    ),
    "contact_timing_frames": Cue(
        cue="Let the ball travel; match contact point.",
        why="Timing inside the window improves barrel quality.",
        drill_name="Contact Point Tee Ladder",
        alt_drill_names=("Tee Ladder", "Let-It-Travel Tee"),
    ),
}

DRILLS: List[Drill] = [
    Drill(
        id="wall-head-check",
        name="Wall Head Check",
        goal_metric="head_drift_cm",
        purpose="Keep your head locked in and reduce head drift for better tracking and consistency.",
        steps=[
            "Get into your stance with cap brim almost touching the wall",
            "Take slow-motion dry swings",
            "Focus on keeping your head still, don't let it move forward",
            "Feel the connection between head stability and balance",
        ],
        reps="3 sets x 8 swings",
        focus_cues=["Head stays centered", "Eyes track the ball location", "No forward drift at contact"],
        equipment=["Tee", "Wall"],
    ),
    Drill(
        id="balance-hold-drill",
        name="Balance Hold Drill",
        goal_metric="head_drift_cm",
        purpose="Eliminate head drift by training balance and stability through the finish.",
        steps=[
            "Take your swing off the tee",
            "At finish, freeze on your front leg",
            "Hold for 2 full seconds",
            "Check that your head stayed centered",
        ],
        reps="3 sets x 5 swings",
        focus_cues=["Head stays quiet", "Finish balanced on front leg"],
        equipment=["Tee"],
    ),
    Drill(
        id="pvc-tilt-ladder",
        name="PVC Tilt Ladder",
        goal_metric="attack_angle_deg",
        purpose="Master your attack angle by training different bat paths to match pitch locations.",
        steps=[
            "Hold PVC across shoulders in your stance",
            "Tilt forward to match low pitch plane (~20 deg)",
            "Rehearse swing path following that angle",
            "Adjust tilt for middle and high pitches",
        ],
        reps="3 sets at each angle",
        focus_cues=["Match your spine angle to pitch height", "Bat follows the tilt angle"],
        equipment=["PVC pipe", "Tee"],
    ),
    Drill(
        id="step-behind-sequence",
        name="Step-Behind Sequence",
        goal_metric="hip_shoulder_sep_deg",
        purpose="Build explosive hip-shoulder separation by feeling your hips fire first.",
        steps=[
            "Take a small step behind with your back foot",
            "Load into your back hip",
            "Hold the loaded position for 1 second",
            "Fire your hips open first and let shoulders follow",
        ],
        reps="3 sets x 5 swings",
        focus_cues=["Hips lead, shoulders follow", "Feel the coil in your core"],
        equipment=["Tee"],
    ),
    Drill(
        id="overunderload-swings",
        name="Over/Underload Swings",
        goal_metric="bat_lag_deg",
        purpose="Train elite bat lag and feel the knob lead your hands through the zone.",
        steps=[
            "Start with heavy bat: 3 controlled swings",
            "Switch to game bat: 3 aggressive swings",
            "Finish with light bat: 3 explosive swings",
        ],
        reps="3 rounds (heavy, game, light)",
        focus_cues=["Knob leads the barrel", "Feel the whip at contact", "Keep hands inside the ball"],
        equipment=["Over/underload bats", "Tee"],
    ),
    Drill(
        id="pvc-posture-holds",
        name="PVC Posture Holds",
        goal_metric="torso_tilt_deg",
        purpose="Lock in an athletic hinge so the swing plane starts from a stable posture.",
        steps=[
            "Place a PVC pipe along your spine, touching head and tailbone",
            "Hinge forward into your launch posture",
            "Hold for 5 seconds without losing contact with the pipe",
        ],
        reps="3 sets x 6 holds",
        focus_cues=["Hinge from the hips", "Chest over the plate"],
        equipment=["PVC pipe"],
    ),
    Drill(
        id="tape-ladder-strides",
        name="Tape Ladder Strides",
        goal_metric="stride_var_pct",
        purpose="Repeat the same stride length so timing becomes predictable.",
        steps=[
            "Lay tape marks at your ideal stride length",
            "Stride to the mark without swinging",
            "Add a swing once the stride lands on the mark every time",
        ],
        reps="3 sets x 8 strides",
        focus_cues=["Same landing spot every time", "Soft front foot"],
        equipment=["Tape", "Tee"],
    ),
    Drill(
        id="stick-the-finish",
        name="Stick the Finish",
        goal_metric="finish_balance_idx",
        purpose="Finish balanced over the front leg to keep the swing path under control.",
        steps=[
            "Take a full swing off the tee",
            "Freeze at the finish with weight on the front leg",
            "Hold for 2 seconds before resetting",
        ],
        reps="3 sets x 5 swings",
        focus_cues=["Belt buckle to the pitcher", "Back toe only on the ground"],
        equipment=["Tee"],
    ),
    Drill(
        id="contact-point-tee-ladder",
        name="Contact Point Tee Ladder",
        goal_metric="contact_timing_frames",
        purpose="Match contact point to pitch location by moving the tee through the zone.",
        steps=[
            "Set the tee out front for inside pitches",
            "Move it back toward the plate for away pitches",
            "Let the ball travel and match each contact point",
        ],
        reps="3 swings per tee position",
        focus_cues=["Let it travel", "Barrel meets ball at the tee"],
        equipment=["Tee"],
    ),
]

DrillLookup = Callable[[Sequence[str]], Optional[Drill]]


def find_drill(names: Sequence[str], catalog: Optional[List[Drill]] = None) -> Optional[Drill]:
    """First catalog drill matching the primary name, then any alternative"""
    catalog = DRILLS if catalog is None else catalog
    by_name = {drill.name: drill for drill in catalog}

    for name in names:
        if name in by_name:
            return by_name[name]

    return None


def fallback_drill(metric: str, cue: Cue) -> Drill:
    return Drill(
        id=cue.drill_name.lower().replace(" ", "-"),
        name=cue.drill_name,
        goal_metric=metric,
        purpose="See coach card",
        equipment=["Tee", "PVC"],
    )


def build_coaching_cards(weakest_metrics: Sequence[str],
                         lookup: DrillLookup = find_drill) -> List[CoachingCard]:
    """
    Build up to two coaching cards for the weakest metrics.

    Args:
        weakest_metrics: Metric names, weakest first
        lookup: Resolves a drill from [primary name, *alternatives]

    Returns:
        One card per known metric; metrics without a cue are skipped
    """
    cards = []

    for metric in list(weakest_metrics)[:MAX_CARDS]:
        cue = CUE_MAP.get(metric)
        if cue is None:
            logger.warning("No coaching cue for metric", metric=metric)
            continue

        drill = lookup([cue.drill_name, *cue.alt_drill_names])
        cards.append(CoachingCard(
            metric=metric,
            cue=cue.cue,
            why=cue.why,
            drill=drill if drill is not None else fallback_drill(metric, cue),
        ))

    return cards


def evaluate_swing(values: Mapping[str, Optional[float]],
                   rubric: Optional[Mapping[str, MetricSpec]] = None) -> Dict[str, object]:
    """Score metric values and attach coaching cards for the weakest ones"""
    result: ScoreResult = score_metrics(values, rubric)
    cards = build_coaching_cards(result.weakest)

    return {
        "score": result.score,
        "weakest": result.weakest,
        "contributions": result.contributions,
        "cards": cards,
    }
