"""
Score Aggregator for InterviewLens

Maintains the three smoothed per-session scores (confidence, engagement,
professionalism) from facial analysis results using exponential smoothing:

    score = score * (1 - alpha) + sample * alpha
"""

import logging

from interview_lens.config.settings import Settings, get_settings
from interview_lens.models.analysis import FacialAnalysisResult, ScoreSnapshot
from interview_lens.models.session import SessionState

logger = logging.getLogger(__name__)


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    return max(low, min(high, value))


class ScoreAggregator:
    """
    Exponential-smoothing score updates.

    Only the confidence sample is clamped before smoothing unless
    ``clamp_all_samples`` is enabled.
    """

    EYE_CONTACT_CONFIDENCE_BONUS = 20
    NO_EYE_CONTACT_CONFIDENCE_PENALTY = -10
    EYE_CONTACT_ENGAGEMENT_BONUS = 30
    MAX_EXPRESSION_ACTIVITY = 50
    STABILITY_WEIGHT = 20

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.alpha = self.settings.smoothing_factor

    def samples(self, analysis: FacialAnalysisResult) -> ScoreSnapshot:
        """Compute the raw (pre-smoothing) samples for one valid analysis."""
        indicators = analysis.confidence_indicators
        metrics = analysis.professionalism_metrics

        eye_contact_adjustment = (
            self.EYE_CONTACT_CONFIDENCE_BONUS
            if analysis.eye_contact
            else self.NO_EYE_CONTACT_CONFIDENCE_PENALTY
        )
        confidence = clamp(
            (indicators.composure - indicators.nervousness) * 100 + eye_contact_adjustment
        )

        expression_activity = min(
            self.MAX_EXPRESSION_ACTIVITY,
            sum(analysis.expressions.values()) * 100,
        )
        engagement = (self.EYE_CONTACT_ENGAGEMENT_BONUS if analysis.eye_contact else 0) + expression_activity

        professionalism = (
            metrics.appropriate_expressions * 100
            + metrics.facial_stability * self.STABILITY_WEIGHT
        )

        if self.settings.clamp_all_samples:
            engagement = clamp(engagement)
            professionalism = clamp(professionalism)

        return ScoreSnapshot(
            confidence=confidence,
            engagement=engagement,
            professionalism=professionalism,
        )

    def smooth(self, current: float, sample: float) -> float:
        return current * (1 - self.alpha) + sample * self.alpha

    def update(self, session: SessionState, analysis: FacialAnalysisResult) -> bool:
        """
        Fold one analysis into the session's scores.

        Returns:
            False (and leaves the session untouched) when the analysis is invalid
        """
        if not analysis.valid:
            return False

        sample = self.samples(analysis)
        session.confidence_score = self.smooth(session.confidence_score, sample.confidence)
        session.engagement_score = self.smooth(session.engagement_score, sample.engagement)
        session.professionalism_score = self.smooth(
            session.professionalism_score, sample.professionalism
        )

        logger.debug(
            f"Session {session.session_id} scores: "
            f"confidence={session.confidence_score:.1f} "
            f"engagement={session.engagement_score:.1f} "
            f"professionalism={session.professionalism_score:.1f}"
        )
        return True
