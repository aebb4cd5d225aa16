"""
API layer for InterviewLens

Contains FastAPI routers for:
- Session status, ending and summaries
- Frame uploads
- WebSocket real-time analysis channel
"""

from interview_lens.api.router import api_router

__all__ = ["api_router"]
