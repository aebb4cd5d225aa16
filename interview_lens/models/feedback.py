"""
Feedback and summary models for InterviewLens.

Defines live tips, retrospective recommendations, the score timeline
and the end-of-session summary.
"""

from datetime import datetime
from enum import Enum

from pydantic import Field

from interview_lens.models.analysis import AnalysisPoint, ScoreSnapshot
from interview_lens.models.base import WireModel


class Priority(str, Enum):
    """Urgency of a live recommendation or impact of a final one."""

    HIGH = "high"
    MEDIUM = "medium"


class LiveRecommendation(WireModel):
    """Actionable tip emitted with every analysis result."""

    type: str  # "eye_contact", "confidence", "expression", "engagement"
    priority: Priority
    message: str
    action: str


class FinalRecommendation(WireModel):
    """Retrospective recommendation included in the session summary."""

    category: str
    suggestion: str
    impact: Priority


class LiveScores(ScoreSnapshot):
    """Current smoothed scores plus the derived eye-contact percentage."""

    eye_contact: float = 0.0


class AnalysisUpdate(WireModel):
    """Everything produced by processing one facial telemetry message."""

    session_id: str
    analysis: AnalysisPoint
    current_scores: LiveScores
    recommendations: list[LiveRecommendation] = Field(default_factory=list)


class TimelineBucket(WireModel):
    """Mean scores over one fixed-width slice of the session."""

    timestamp: datetime  # Bucket start
    interval: int  # Seconds since the first analysis point
    scores: ScoreSnapshot
    point_count: int


class SessionSummary(WireModel):
    """Snapshot produced when a session ends."""

    session_id: str
    user_id: str
    duration: int  # Seconds
    eye_contact_percentage: int
    average_scores: ScoreSnapshot
    emotion_distribution: dict[str, int] = Field(default_factory=dict)
    total_analysis_points: int = 0
    recommendations: list[FinalRecommendation] = Field(default_factory=list)
    timeline: list[TimelineBucket] = Field(default_factory=list)
    ended_at: datetime
