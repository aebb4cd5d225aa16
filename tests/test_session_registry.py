"""
Session registry tests.

Covers creation, ending, summary caching and the deferred purge timer.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import asyncio
import time
import unittest

from interview_lens.config.settings import Settings
from interview_lens.core.session_registry import DuplicateSessionError, SessionRegistry
from interview_lens.models.analysis import (
    AnalysisPoint,
    AnalysisType,
    FacialAnalysisResult,
    ScoreSnapshot,
    SpeechAnalysisResult,
)
from interview_lens.models.session import SessionStatus
from tests.fixtures.face_samples import FakeClock

GRACE = 0.05


def facial_point(clock: FakeClock, emotion: str | None, valid: bool = True) -> AnalysisPoint:
    return AnalysisPoint(
        timestamp=clock(),
        type=AnalysisType.FACIAL,
        data=FacialAnalysisResult(valid=valid, dominant_emotion=emotion),
        scores=ScoreSnapshot(confidence=50, engagement=60, professionalism=70),
    )


class TestRegistryLifecycle(unittest.TestCase):
    """Synchronous registry behaviour."""

    def setUp(self):
        self.clock = FakeClock()
        self.registry = SessionRegistry(Settings(session_grace_period_seconds=60), clock=self.clock)

    def tearDown(self):
        self.registry.shutdown()

    def test_create_initializes_counters(self):
        session = self.registry.create_session("s1", "user-1")
        self.assertEqual(session.session_id, "s1")
        self.assertEqual(session.user_id, "user-1")
        self.assertEqual(session.eye_contact_count, 0)
        self.assertEqual(session.eye_contact_duration, 0)
        self.assertEqual(session.facial_expressions, [])
        self.assertEqual(session.confidence_score, 0)
        self.assertEqual(session.start_time, self.clock())
        self.assertEqual(self.registry.get_history("s1"), [])
        self.assertIs(self.registry.get("s1"), session)

    def test_duplicate_active_session_rejected(self):
        self.registry.create_session("s1", "user-1")
        with self.assertRaises(DuplicateSessionError):
            self.registry.create_session("s1", "user-2")

    def test_unknown_session(self):
        self.assertIsNone(self.registry.get("missing"))
        self.assertIsNone(self.registry.end("missing"))
        self.assertIsNone(self.registry.get_summary("missing"))
        self.assertFalse(self.registry.append_point("missing", facial_point(self.clock, "happy")))

    def test_end_builds_summary_and_keeps_state(self):
        self.registry.create_session("s1", "user-1")
        self.clock.advance(12)
        self.registry.append_point("s1", facial_point(self.clock, "happy"))

        summary = self.registry.end("s1")

        self.assertEqual(summary.session_id, "s1")
        self.assertEqual(summary.duration, 12)
        self.assertEqual(summary.total_analysis_points, 1)
        self.assertEqual(len(summary.timeline), 1)
        self.assertEqual(self.registry.get("s1").status, SessionStatus.ENDED)
        self.assertIs(self.registry.get_summary("s1"), summary)
        self.assertNotIn("s1", self.registry.active_session_ids())

    def test_second_end_returns_cached_summary(self):
        self.registry.create_session("s1", "user-1")
        first = self.registry.end("s1")
        self.clock.advance(30)
        second = self.registry.end("s1")
        self.assertIs(first, second)

    def test_emotion_distribution_counts_valid_facial_points(self):
        self.registry.create_session("s1", "user-1")
        for emotion in ("happy", "happy", "happy", "neutral"):
            self.registry.append_point("s1", facial_point(self.clock, emotion))
        self.registry.append_point("s1", facial_point(self.clock, None, valid=False))
        self.registry.append_point("s1", AnalysisPoint(
            timestamp=self.clock(),
            type=AnalysisType.SPEECH,
            data=SpeechAnalysisResult(valid=True),
            scores=ScoreSnapshot(),
        ))

        summary = self.registry.end("s1")

        self.assertEqual(summary.emotion_distribution, {"happy": 75, "neutral": 25})
        self.assertEqual(summary.total_analysis_points, 6)

    def test_summary_of_session_without_points(self):
        self.registry.create_session("s1", "user-1")
        summary = self.registry.end("s1")
        self.assertEqual(summary.emotion_distribution, {})
        self.assertEqual(summary.timeline, [])
        self.assertEqual(summary.eye_contact_percentage, 0)
        self.assertEqual(
            [r.category for r in summary.recommendations],
            ["Confidence", "Eye Contact", "Engagement"],
        )

    def test_purge_is_unconditional(self):
        self.registry.create_session("s1", "user-1")
        self.registry.purge("s1")
        self.assertIsNone(self.registry.get("s1"))
        self.assertEqual(self.registry.get_history("s1"), [])

    def test_fired_timer_spares_reused_session(self):
        """A timer that already fired cannot remove a session created after it."""
        self.registry.create_session("s1", "user-1")
        self.registry.end("s1")
        timer = self.registry._purge_handles["s1"]

        fresh = self.registry.create_session("s1", "user-2")
        timer.function(*timer.args)

        self.assertIs(self.registry.get("s1"), fresh)
        self.assertTrue(fresh.is_active)

    def test_fired_timer_spares_reused_session_that_ended_again(self):
        self.registry.create_session("s1", "user-1")
        self.registry.end("s1")
        stale = self.registry._purge_handles["s1"]

        fresh = self.registry.create_session("s1", "user-2")
        self.registry.end("s1")
        stale.function(*stale.args)

        self.assertIs(self.registry.get("s1"), fresh)
        self.assertIn("s1", self.registry._purge_handles)

    def test_timer_callback_purges_its_own_session(self):
        self.registry.create_session("s1", "user-1")
        self.registry.end("s1")
        timer = self.registry._purge_handles["s1"]

        timer.function(*timer.args)

        self.assertIsNone(self.registry.get("s1"))

    def test_timer_purge_outside_event_loop(self):
        registry = SessionRegistry(Settings(session_grace_period_seconds=GRACE))
        registry.create_session("s1", "user-1")
        registry.end("s1")
        self.assertIsNotNone(registry.get("s1"))
        time.sleep(GRACE * 6)
        self.assertIsNone(registry.get("s1"))


class TestDeferredPurge(unittest.IsolatedAsyncioTestCase):
    """Grace-period purge on a running event loop."""

    def setUp(self):
        self.registry = SessionRegistry(Settings(session_grace_period_seconds=GRACE))

    def tearDown(self):
        self.registry.shutdown()

    async def test_summary_available_until_purge(self):
        self.registry.create_session("s1", "user-1")
        summary = self.registry.end("s1")

        self.assertIs(self.registry.get_summary("s1"), summary)

        await asyncio.sleep(GRACE * 4)
        self.assertIsNone(self.registry.get("s1"))
        self.assertIsNone(self.registry.get_summary("s1"))

    async def test_reused_id_cancels_pending_purge(self):
        self.registry.create_session("s1", "user-1")
        self.registry.end("s1")

        fresh = self.registry.create_session("s1", "user-2")

        await asyncio.sleep(GRACE * 4)
        self.assertIs(self.registry.get("s1"), fresh)
        self.assertTrue(fresh.is_active)

    async def test_shutdown_cancels_purges(self):
        self.registry.create_session("s1", "user-1")
        self.registry.end("s1")
        self.registry.shutdown()

        await asyncio.sleep(GRACE * 4)
        self.assertIsNotNone(self.registry.get("s1"))


if __name__ == "__main__":
    unittest.main()
