"""
Session state models for InterviewLens
"""

from datetime import datetime
from enum import Enum

from pydantic import Field

from interview_lens.models.analysis import ScoreSnapshot
from interview_lens.models.base import WireModel, utcnow
from interview_lens.models.feedback import SessionSummary


class SessionStatus(str, Enum):
    """Session lifecycle states."""

    ACTIVE = "active"  # Receiving telemetry
    ENDED = "ended"  # Summary computed, purge pending


class ExpressionRecord(WireModel):
    """Dominant expression observed in one frame."""

    timestamp: datetime
    emotion: str | None
    confidence: float
    expressions: dict[str, float] = Field(default_factory=dict)


class SessionState(WireModel):
    """Running analytical state of one interview session."""

    # Identification
    session_id: str
    user_id: str

    # Lifecycle
    status: SessionStatus = SessionStatus.ACTIVE
    start_time: datetime = Field(default_factory=utcnow)
    last_analysis: datetime = Field(default_factory=utcnow)
    ended_at: datetime | None = None

    # Eye contact
    eye_contact_count: int = 0
    eye_contact_duration: int = 0  # Milliseconds

    # Observations
    facial_expressions: list[ExpressionRecord] = Field(default_factory=list)
    speech_chunk_count: int = 0

    # Smoothed scores (0-100)
    confidence_score: float = 0.0
    engagement_score: float = 0.0
    professionalism_score: float = 0.0

    # Cached on first end
    summary: SessionSummary | None = None

    @property
    def is_active(self) -> bool:
        return self.status == SessionStatus.ACTIVE

    def scores(self) -> ScoreSnapshot:
        """Snapshot of the current smoothed scores."""
        return ScoreSnapshot(
            confidence=self.confidence_score,
            engagement=self.engagement_score,
            professionalism=self.professionalism_score,
        )

    def elapsed_seconds(self, now: datetime) -> float:
        """Wall-clock seconds since the session started."""
        return (now - self.start_time).total_seconds()

    def eye_contact_percentage(self, now: datetime) -> float:
        """Share of elapsed wall-clock time credited as eye contact, capped at 100."""
        elapsed_ms = self.elapsed_seconds(now) * 1000
        if elapsed_ms <= 0:
            return 0.0
        return min(100.0, self.eye_contact_duration / elapsed_ms * 100)
