"""
Data models and schemas for InterviewLens

Contains Pydantic models for:
- Session state
- Per-frame analysis results and history points
- Recommendations, timeline and summaries
- Channel message envelopes
"""

from interview_lens.models.analysis import (
    AnalysisPoint,
    AnalysisType,
    EyeContactMethod,
    FaceBox,
    FacialAnalysisResult,
    ScoreSnapshot,
    SpeechAnalysisResult,
)
from interview_lens.models.feedback import (
    AnalysisUpdate,
    FinalRecommendation,
    LiveRecommendation,
    LiveScores,
    Priority,
    SessionSummary,
    TimelineBucket,
)
from interview_lens.models.messages import MessageKind
from interview_lens.models.session import ExpressionRecord, SessionState, SessionStatus

__all__ = [
    # Analysis
    "AnalysisPoint",
    "AnalysisType",
    "EyeContactMethod",
    "FaceBox",
    "FacialAnalysisResult",
    "ScoreSnapshot",
    "SpeechAnalysisResult",
    # Feedback
    "AnalysisUpdate",
    "FinalRecommendation",
    "LiveRecommendation",
    "LiveScores",
    "Priority",
    "SessionSummary",
    "TimelineBucket",
    # Messages
    "MessageKind",
    # Session
    "ExpressionRecord",
    "SessionState",
    "SessionStatus",
]
