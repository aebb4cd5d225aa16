"""
Analysis Engine - coordinator for real-time session analysis.

Runs the per-message control flow:

    Registry lookup → Facial Analyzer → Score Aggregator → Recommendation Engine

and the end-of-session flow that hands back the summary. Every call runs
to completion without suspending.
"""

import logging
from datetime import datetime
from typing import Any, Callable

from interview_lens.config.settings import Settings, get_settings
from interview_lens.core.facial_analyzer import FacialFeatureAnalyzer
from interview_lens.core.recommendation_engine import RecommendationEngine
from interview_lens.core.score_aggregator import ScoreAggregator
from interview_lens.core.session_registry import DuplicateSessionError, SessionRegistry
from interview_lens.core.telemetry import inspect_audio, inspect_frame
from interview_lens.core.timeline_builder import TimelineBuilder
from interview_lens.models.analysis import AnalysisPoint, AnalysisType
from interview_lens.models.base import utcnow
from interview_lens.models.feedback import AnalysisUpdate, LiveScores, SessionSummary
from interview_lens.models.session import ExpressionRecord, SessionState

logger = logging.getLogger(__name__)


class AnalysisEngine:
    """
    Central coordinator of session analysis.

    Owns no state of its own: sessions and history live in the registry,
    the analyzer is pure and the aggregator mutates only the session it
    is handed.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        registry: SessionRegistry | None = None,
        analyzer: FacialFeatureAnalyzer | None = None,
        aggregator: ScoreAggregator | None = None,
        recommendation_engine: RecommendationEngine | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the engine with component dependencies.

        Args:
            settings: Shared settings
            registry: Session store
            analyzer: Per-frame facial feature scoring
            aggregator: Smoothed score updates
            recommendation_engine: Live and final feedback policies
            clock: Source of the current time
        """
        self.settings = settings or get_settings()
        self.clock = clock
        self.recommendation_engine = recommendation_engine or RecommendationEngine(self.settings)
        self.registry = registry or SessionRegistry(
            settings=self.settings,
            timeline_builder=TimelineBuilder(self.settings),
            recommendation_engine=self.recommendation_engine,
            clock=clock,
        )
        self.analyzer = analyzer or FacialFeatureAnalyzer(self.settings)
        self.aggregator = aggregator or ScoreAggregator(self.settings)

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def join_session(self, session_id: str, user_id: str | None = None) -> tuple[SessionState, bool]:
        """
        Create a session, or resume it if it is already active.

        Returns:
            (session, resumed)
        """
        try:
            session = self.registry.create_session(
                session_id, user_id or self.settings.default_user_id
            )
            return session, False
        except DuplicateSessionError:
            logger.info(f"Resuming active session: {session_id}")
            return self.registry.get(session_id), True

    def get_session(self, session_id: str) -> SessionState | None:
        return self.registry.get(session_id)

    def get_active_session(self, session_id: str) -> SessionState | None:
        """Session that is still accepting telemetry."""
        session = self.registry.get(session_id)
        if session is None or not session.is_active:
            return None
        return session

    def end_session(self, session_id: str) -> SessionSummary | None:
        """End a session; None if it is unknown."""
        return self.registry.end(session_id)

    def get_summary(self, session_id: str) -> SessionSummary | None:
        return self.registry.get_summary(session_id)

    def current_scores(self, session: SessionState) -> LiveScores:
        return LiveScores(
            confidence=session.confidence_score,
            engagement=session.engagement_score,
            professionalism=session.professionalism_score,
            eye_contact=session.eye_contact_percentage(self.clock()),
        )

    def session_status(self, session_id: str) -> dict[str, Any] | None:
        """Live status snapshot for the HTTP layer."""
        session = self.registry.get(session_id)
        if session is None:
            return None
        return {
            "sessionId": session.session_id,
            "userId": session.user_id,
            "status": session.status.value,
            "elapsedSeconds": round(session.elapsed_seconds(self.clock()), 1),
            "eyeContactCount": session.eye_contact_count,
            "speechChunkCount": session.speech_chunk_count,
            "totalAnalysisPoints": len(self.registry.get_history(session_id)),
            "currentScores": self.current_scores(session).to_wire(),
        }

    # =========================================================================
    # TELEMETRY
    # =========================================================================

    def process_facial_data(self, session_id: str, face_data: Any) -> AnalysisUpdate | None:
        """
        Analyze one facial sample and fold it into the session.

        Invalid samples are recorded in the history but leave scores and
        eye-contact counters untouched; tips driven by session state still
        apply.

        Returns:
            AnalysisUpdate, or None if the session is unknown or ended
        """
        session = self.get_active_session(session_id)
        if session is None:
            return None

        now = self.clock()
        analysis = self.analyzer.analyze(face_data).model_copy(update={"timestamp": now})

        if analysis.valid:
            session.eye_contact_count += 1 if analysis.eye_contact else 0
            session.eye_contact_duration += analysis.eye_contact_duration
            session.facial_expressions.append(ExpressionRecord(
                timestamp=now,
                emotion=analysis.dominant_emotion,
                confidence=analysis.emotion_confidence,
                expressions=analysis.expressions,
            ))
            self.aggregator.update(session, analysis)
        else:
            logger.debug(f"Session {session_id}: {analysis.error}")

        point = AnalysisPoint(
            timestamp=now,
            type=AnalysisType.FACIAL,
            data=analysis,
            scores=session.scores(),
        )
        self.registry.append_point(session_id, point)
        session.last_analysis = now

        current_scores = self.current_scores(session)
        recommendations = self.recommendation_engine.live(
            session, analysis, current_scores.eye_contact
        )

        return AnalysisUpdate(
            session_id=session_id,
            analysis=point,
            current_scores=current_scores,
            recommendations=recommendations,
        )

    def process_audio_chunk(self, session_id: str, audio_data: bytes) -> AnalysisPoint | None:
        """Record a speech analysis point for a decoded audio chunk."""
        session = self.get_active_session(session_id)
        if session is None:
            return None

        now = self.clock()
        result = inspect_audio(audio_data).model_copy(update={"timestamp": now})
        if result.valid:
            session.speech_chunk_count += 1

        point = AnalysisPoint(
            timestamp=now,
            type=AnalysisType.SPEECH,
            data=result,
            scores=session.scores(),
        )
        self.registry.append_point(session_id, point)
        session.last_analysis = now
        return point

    def describe_frame(self, session_id: str, frame: bytes) -> dict[str, Any] | None:
        """Metadata for a decoded webcam frame plus the session's current scores."""
        session = self.get_active_session(session_id)
        if session is None:
            return None
        return {
            "sessionId": session_id,
            **inspect_frame(frame),
            "currentScores": self.current_scores(session).to_wire(),
            "processedAt": self.clock().isoformat(),
        }
