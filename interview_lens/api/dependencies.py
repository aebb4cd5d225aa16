"""
API Dependencies

Composition root for the analysis core. Builds one message router (and
the engine behind it) per process and hands it to endpoints through
FastAPI dependency injection.
"""

from interview_lens.config.settings import Settings, get_settings
from interview_lens.core.analysis_engine import AnalysisEngine
from interview_lens.core.facial_analyzer import FacialFeatureAnalyzer
from interview_lens.core.message_router import MessageRouter
from interview_lens.core.recommendation_engine import RecommendationEngine
from interview_lens.core.score_aggregator import ScoreAggregator
from interview_lens.core.session_registry import SessionRegistry
from interview_lens.core.timeline_builder import TimelineBuilder


# ============================================================================
# PROCESS-SCOPED INSTANCES
# ============================================================================

_router: MessageRouter | None = None


def build_message_router(settings: Settings | None = None) -> MessageRouter:
    """Wire a fresh engine and router from settings."""
    settings = settings or get_settings()

    recommendation_engine = RecommendationEngine(settings)
    registry = SessionRegistry(
        settings=settings,
        timeline_builder=TimelineBuilder(settings),
        recommendation_engine=recommendation_engine,
    )
    engine = AnalysisEngine(
        settings=settings,
        registry=registry,
        analyzer=FacialFeatureAnalyzer(settings),
        aggregator=ScoreAggregator(settings),
        recommendation_engine=recommendation_engine,
    )
    return MessageRouter(engine)


def get_message_router() -> MessageRouter:
    """Get the process-wide message router, building it on first use."""
    global _router

    if _router is None:
        _router = build_message_router()

    return _router


async def cleanup():
    """Cancel pending purges and drop the process-wide instances on shutdown."""
    global _router

    if _router:
        _router.engine.registry.shutdown()

    _router = None
