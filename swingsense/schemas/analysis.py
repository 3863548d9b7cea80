from pydantic import BaseModel, Field
from typing import Dict, List, Optional, Tuple


class KeypointIn(BaseModel):
    # Pose models label landmarks as either "name" or "part"
    name: Optional[str] = None
    part: Optional[str] = None
    x: float
    y: float
    score: Optional[float] = None
    confidence: Optional[float] = None


class FrameIn(BaseModel):
    t: float  # milliseconds from video start
    keypoints: List[KeypointIn] = []


class SegmentRequest(BaseModel):
    frames: List[FrameIn]


class SegmentResponse(BaseModel):
    events: Dict[str, int]
    quality: Optional[str] = None
    frame_count: int


class MetricSpecIn(BaseModel):
    target: Tuple[float, float]
    weight: float = Field(gt=0)
    invert: bool = False
    abs_window: bool = False


class ScoreRequest(BaseModel):
    metrics: Dict[str, Optional[float]]
    rubric: Optional[Dict[str, MetricSpecIn]] = None


class ContributionOut(BaseModel):
    metric: str
    score: float
    weight: float

    class Config:
        from_attributes = True


class DrillOut(BaseModel):
    id: str
    name: str
    goal_metric: str
    purpose: str = ""
    steps: List[str] = []
    reps: str = ""
    focus_cues: List[str] = []
    equipment: List[str] = []

    class Config:
        from_attributes = True


class CoachingCardOut(BaseModel):
    metric: str
    cue: str
    why: str
    drill: DrillOut

    class Config:
        from_attributes = True


class ScoreResponse(BaseModel):
    score: int
    weakest: List[str]
    contributions: List[ContributionOut]
    cards: List[CoachingCardOut] = []


class FramesAnalysisRequest(BaseModel):
    frames: List[FrameIn]
    fps: Optional[float] = None
    recent_stride_lengths: List[float] = []


class PhaseOut(BaseModel):
    phase: str
    label: str
    frame_index: int
    timestamp_ms: float
    description: str

    class Config:
        from_attributes = True


class BatSpeedOut(BaseModel):
    peak_speed_mph: float
    avg_speed_mph: float
    peak_wrist_speed_mph: float
    avg_wrist_speed_mph: float
    swing_duration_ms: float
    acceleration_phase_ms: float
    level: str
    level_description: str
    improvement_tips: List[str] = []


class MetricsOut(BaseModel):
    values: Dict[str, Optional[float]]
    units: Dict[str, str]
    display_names: Dict[str, str]
    pixels_per_cm: Optional[float] = None
    low_confidence: bool
    missing_events: List[str]


class AnalysisResponse(BaseModel):
    frame_count: int
    fps: float
    events: Dict[str, int]
    quality: Optional[str] = None
    phases: List[PhaseOut]
    metrics: MetricsOut
    score: ScoreResponse
    bat_speed: Optional[BatSpeedOut] = None


class RubricResponse(BaseModel):
    rubric: Dict[str, MetricSpecIn]
