"""
Session Registry for InterviewLens

Owns every per-session state object and its analysis-point history.
Ended sessions stay retrievable for a grace period and are then purged
by a cancellable timer keyed by session id.
"""

import asyncio
import logging
import threading
from collections import Counter
from datetime import datetime
from typing import Callable, Protocol

from interview_lens.config.settings import Settings, get_settings
from interview_lens.core.recommendation_engine import RecommendationEngine
from interview_lens.core.timeline_builder import TimelineBuilder
from interview_lens.models.analysis import AnalysisPoint, AnalysisType
from interview_lens.models.base import utcnow
from interview_lens.models.feedback import SessionSummary
from interview_lens.models.session import SessionState, SessionStatus

logger = logging.getLogger(__name__)


class DuplicateSessionError(Exception):
    """Raised when creating a session whose id is still active."""
    pass


class _Cancellable(Protocol):
    def cancel(self) -> None: ...


class SessionRegistry:
    """
    In-memory store of session state and history.

    Lifecycle:
        create_session → (append_point)* → end → [grace period] → purge

    All mutations are serialised by a re-entrant lock so timer callbacks
    running on another thread cannot interleave with message handling.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        timeline_builder: TimelineBuilder | None = None,
        recommendation_engine: RecommendationEngine | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        """
        Initialize the registry.

        Args:
            settings: Grace period and summary settings
            timeline_builder: Builds the summary timeline
            recommendation_engine: Produces final recommendations
            clock: Source of the current time
        """
        self.settings = settings or get_settings()
        self.timeline_builder = timeline_builder or TimelineBuilder(self.settings)
        self.recommendation_engine = recommendation_engine or RecommendationEngine(self.settings)
        self.clock = clock

        self._lock = threading.RLock()
        self._sessions: dict[str, SessionState] = {}
        self._history: dict[str, list[AnalysisPoint]] = {}
        self._purge_handles: dict[str, _Cancellable] = {}

    # =========================================================================
    # SESSION MANAGEMENT
    # =========================================================================

    def create_session(self, session_id: str, user_id: str) -> SessionState:
        """
        Create fresh state for a session.

        An ended session awaiting purge is replaced and its pending purge
        cancelled.

        Raises:
            DuplicateSessionError: If the id belongs to an active session
        """
        with self._lock:
            existing = self._sessions.get(session_id)
            if existing is not None and existing.is_active:
                raise DuplicateSessionError(f"Session already active: {session_id}")

            self._cancel_purge(session_id)

            now = self.clock()
            session = SessionState(
                session_id=session_id,
                user_id=user_id,
                start_time=now,
                last_analysis=now,
            )
            self._sessions[session_id] = session
            self._history[session_id] = []

        logger.info(f"Analysis session initialized: {session_id} (user {user_id})")
        return session

    def get(self, session_id: str) -> SessionState | None:
        """Get a session by ID."""
        return self._sessions.get(session_id)

    def get_history(self, session_id: str) -> list[AnalysisPoint]:
        """Copy of a session's analysis points, oldest first."""
        with self._lock:
            return list(self._history.get(session_id, []))

    def append_point(self, session_id: str, point: AnalysisPoint) -> bool:
        """Append an analysis point; False if the session is unknown."""
        with self._lock:
            history = self._history.get(session_id)
            if history is None:
                return False
            history.append(point)
            return True

    def active_session_ids(self) -> list[str]:
        """IDs of sessions that have not ended."""
        with self._lock:
            return [sid for sid, s in self._sessions.items() if s.is_active]

    # =========================================================================
    # ENDING & PURGE
    # =========================================================================

    def end(self, session_id: str) -> SessionSummary | None:
        """
        End a session and return its summary.

        The purge is scheduled, not performed. Ending an already-ended
        session returns the cached summary without rescheduling.

        Returns:
            SessionSummary, or None if the session is unknown
        """
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                return None

            if session.status == SessionStatus.ENDED and session.summary is not None:
                logger.info(f"Session {session_id} already ended, returning cached summary")
                return session.summary

            summary = self._build_summary(session, self._history.get(session_id, []))
            session.status = SessionStatus.ENDED
            session.ended_at = summary.ended_at
            session.summary = summary
            self._schedule_purge(session)

        logger.info(
            f"Analysis session ended: {session_id} "
            f"({summary.total_analysis_points} points, {summary.duration}s)"
        )
        return summary

    def get_summary(self, session_id: str) -> SessionSummary | None:
        """Summary of an ended session still inside its grace period."""
        session = self._sessions.get(session_id)
        if session is None:
            return None
        return session.summary

    def purge(self, session_id: str) -> None:
        """Unconditionally remove a session and its history."""
        with self._lock:
            self._purge_handles.pop(session_id, None)
            removed = self._sessions.pop(session_id, None)
            self._history.pop(session_id, None)

        if removed is not None:
            logger.info(f"Purged session: {session_id}")

    def shutdown(self) -> None:
        """Cancel every pending purge timer."""
        with self._lock:
            for handle in self._purge_handles.values():
                handle.cancel()
            self._purge_handles.clear()

    def _expire(self, session_id: str, session: SessionState) -> None:
        """
        Timer callback: purge only if ``session`` is still the ended state
        stored under its id.

        A timer thread can fire and then wait on the lock while the id is
        reused, so a cancelled timer may still run.
        """
        with self._lock:
            current = self._sessions.get(session_id)
            if current is not session or current.is_active:
                logger.debug(f"Skipping stale purge for reused session id: {session_id}")
                return
            self.purge(session_id)

    def _schedule_purge(self, session: SessionState) -> None:
        session_id = session.session_id
        delay = self.settings.session_grace_period_seconds
        self._cancel_purge(session_id)

        try:
            loop = asyncio.get_running_loop()
            handle: _Cancellable = loop.call_later(delay, self._expire, session_id, session)
        except RuntimeError:
            # No event loop (direct synchronous use)
            timer = threading.Timer(delay, self._expire, args=(session_id, session))
            timer.daemon = True
            timer.start()
            handle = timer

        self._purge_handles[session_id] = handle
        logger.debug(f"Session {session_id} scheduled for purge in {delay}s")

    def _cancel_purge(self, session_id: str) -> None:
        handle = self._purge_handles.pop(session_id, None)
        if handle is not None:
            handle.cancel()
            logger.info(f"Cancelled pending purge for reused session id: {session_id}")

    # =========================================================================
    # SUMMARY
    # =========================================================================

    def _build_summary(self, session: SessionState, points: list[AnalysisPoint]) -> SessionSummary:
        now = self.clock()
        eye_contact_percent = session.eye_contact_percentage(now)
        scores = session.scores()

        return SessionSummary(
            session_id=session.session_id,
            user_id=session.user_id,
            duration=round(session.elapsed_seconds(now)),
            eye_contact_percentage=round(eye_contact_percent),
            average_scores=scores.model_copy(update={
                "confidence": round(scores.confidence),
                "engagement": round(scores.engagement),
                "professionalism": round(scores.professionalism),
            }),
            emotion_distribution=self.emotion_distribution(points),
            total_analysis_points=len(points),
            recommendations=self.recommendation_engine.final(session, eye_contact_percent),
            timeline=self.timeline_builder.build(points),
            ended_at=now,
        )

    @staticmethod
    def emotion_distribution(points: list[AnalysisPoint]) -> dict[str, int]:
        """Percentage of valid facial points per dominant emotion."""
        emotions = Counter(
            point.data.dominant_emotion
            for point in points
            if point.type == AnalysisType.FACIAL and point.data.valid
        )
        total = sum(emotions.values())
        return {
            emotion: round(count / total * 100)
            for emotion, count in emotions.items()
        }
