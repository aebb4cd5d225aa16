"""
Timeline Builder for InterviewLens

Buckets a session's analysis history into fixed-width intervals for
visualization. Empty intervals are omitted.
"""

from datetime import timedelta
from typing import Sequence

from interview_lens.config.settings import Settings, get_settings
from interview_lens.models.analysis import AnalysisPoint, ScoreSnapshot
from interview_lens.models.feedback import TimelineBucket


def average_scores(points: Sequence[AnalysisPoint]) -> ScoreSnapshot:
    """Arithmetic mean of the score snapshots of ``points``."""
    if not points:
        return ScoreSnapshot()
    count = len(points)
    return ScoreSnapshot(
        confidence=round(sum(p.scores.confidence for p in points) / count, 2),
        engagement=round(sum(p.scores.engagement for p in points) / count, 2),
        professionalism=round(sum(p.scores.professionalism for p in points) / count, 2),
    )


class TimelineBuilder:
    """Sparse fixed-interval timeline over an ordered history."""

    def __init__(self, settings: Settings | None = None):
        self.settings = settings or get_settings()
        self.interval_seconds = self.settings.timeline_interval_seconds

    def build(self, points: Sequence[AnalysisPoint]) -> list[TimelineBucket]:
        """
        Partition ``[first, last]`` into buckets and summarise the non-empty ones.

        Args:
            points: Analysis points in append order

        Returns:
            Buckets in time order, one per interval holding at least one point
        """
        if not points:
            return []

        start = points[0].timestamp
        buckets: dict[int, list[AnalysisPoint]] = {}
        for point in points:
            offset = (point.timestamp - start).total_seconds()
            index = int(offset // self.interval_seconds)
            buckets.setdefault(index, []).append(point)

        timeline = []
        for index in sorted(buckets):
            bucket_offset = index * self.interval_seconds
            bucket_points = buckets[index]
            timeline.append(TimelineBucket(
                timestamp=start + timedelta(seconds=bucket_offset),
                interval=round(bucket_offset),
                scores=average_scores(bucket_points),
                point_count=len(bucket_points),
            ))
        return timeline
