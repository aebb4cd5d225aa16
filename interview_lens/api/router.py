"""
Main API router for InterviewLens

Aggregates all API routes and provides the main application router.
"""

from fastapi import APIRouter

from interview_lens.api.endpoints import analysis, realtime

api_router = APIRouter()

# Include all endpoint routers
api_router.include_router(
    analysis.router,
    prefix="/analysis",
    tags=["Analysis"]
)

api_router.include_router(
    realtime.router,
    prefix="/realtime",
    tags=["Realtime"]
)
