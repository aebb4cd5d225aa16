"""
Recommendation Engine for InterviewLens

Two independent policies:
- Live: actionable tips sent with every analysis result
- Final: coarse retrospective recommendations for the session summary

They use different thresholds and output shapes and share nothing.
"""

import logging

from interview_lens.config.settings import Settings, get_settings
from interview_lens.models.analysis import FacialAnalysisResult
from interview_lens.models.feedback import FinalRecommendation, LiveRecommendation, Priority
from interview_lens.models.session import SessionState

logger = logging.getLogger(__name__)


# Dominant emotions that trigger the live expression tip
NEGATIVE_EMOTIONS = {"fearful", "sad"}


class RecommendationEngine:
    """Threshold-based feedback generation."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()

    # =========================================================================
    # LIVE POLICY
    # =========================================================================

    def live(
        self,
        session: SessionState,
        analysis: FacialAnalysisResult,
        eye_contact_percentage: float,
    ) -> list[LiveRecommendation]:
        """
        Tips for the current moment of the session.

        Args:
            session: Session with freshly updated scores
            analysis: Analysis of the frame just processed
            eye_contact_percentage: Derived eye-contact share (0-100)
        """
        s = self.settings
        recommendations: list[LiveRecommendation] = []

        if eye_contact_percentage < s.live_eye_contact_threshold:
            recommendations.append(LiveRecommendation(
                type="eye_contact",
                priority=Priority.HIGH,
                message="Try to maintain more eye contact with the camera. Aim for 60-70% eye contact.",
                action="Look directly at the camera lens, not the screen.",
            ))

        if session.confidence_score < s.live_confidence_threshold:
            recommendations.append(LiveRecommendation(
                type="confidence",
                priority=Priority.MEDIUM,
                message="Show more confidence through your facial expressions.",
                action="Sit up straight, smile naturally, and speak with conviction.",
            ))

        if analysis.valid and analysis.dominant_emotion in NEGATIVE_EMOTIONS:
            recommendations.append(LiveRecommendation(
                type="expression",
                priority=Priority.MEDIUM,
                message="Try to relax and show more positive expressions.",
                action="Take a deep breath and think of positive aspects of the role.",
            ))

        if session.engagement_score < s.live_engagement_threshold:
            recommendations.append(LiveRecommendation(
                type="engagement",
                priority=Priority.HIGH,
                message="Show more engagement and interest in the conversation.",
                action="Nod appropriately, maintain eye contact, and use facial expressions to show understanding.",
            ))

        return recommendations

    # =========================================================================
    # FINAL POLICY
    # =========================================================================

    def final(
        self,
        session: SessionState,
        eye_contact_percentage: float,
    ) -> list[FinalRecommendation]:
        """Retrospective recommendations computed when the session ends."""
        s = self.settings
        recommendations: list[FinalRecommendation] = []

        if session.confidence_score < s.final_confidence_threshold:
            recommendations.append(FinalRecommendation(
                category="Confidence",
                suggestion="Work on building confidence through practice and preparation.",
                impact=Priority.HIGH,
            ))

        if eye_contact_percentage < s.final_eye_contact_threshold:
            recommendations.append(FinalRecommendation(
                category="Eye Contact",
                suggestion="Practice maintaining eye contact with the camera during mock interviews.",
                impact=Priority.HIGH,
            ))

        if session.engagement_score < s.final_engagement_threshold:
            recommendations.append(FinalRecommendation(
                category="Engagement",
                suggestion="Show more enthusiasm and interest through facial expressions and body language.",
                impact=Priority.MEDIUM,
            ))

        logger.debug(f"Session {session.session_id}: {len(recommendations)} final recommendations")
        return recommendations
