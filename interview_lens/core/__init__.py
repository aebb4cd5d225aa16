"""
Core analysis modules for InterviewLens

Contains:
- Telemetry: data-URL decoding and frame/audio metadata
- Facial Feature Analyzer: per-frame gaze, emotion and indicators
- Score Aggregator: exponential smoothing of session scores
- Recommendation Engine: live and final feedback policies
- Timeline Builder: fixed-interval score timeline
- Session Registry: session state, history and deferred purge
- Analysis Engine: per-message coordinator
- Message Router: duplex channel multiplexer
"""

from interview_lens.core.analysis_engine import AnalysisEngine
from interview_lens.core.facial_analyzer import FacialFeatureAnalyzer
from interview_lens.core.message_router import Channel, ChannelState, MessageRouter
from interview_lens.core.recommendation_engine import RecommendationEngine
from interview_lens.core.score_aggregator import ScoreAggregator
from interview_lens.core.session_registry import DuplicateSessionError, SessionRegistry
from interview_lens.core.telemetry import InvalidTelemetryError, decode_data_url
from interview_lens.core.timeline_builder import TimelineBuilder

__all__ = [
    "AnalysisEngine",
    "FacialFeatureAnalyzer",
    "Channel",
    "ChannelState",
    "MessageRouter",
    "RecommendationEngine",
    "ScoreAggregator",
    "DuplicateSessionError",
    "SessionRegistry",
    "InvalidTelemetryError",
    "decode_data_url",
    "TimelineBuilder",
]
