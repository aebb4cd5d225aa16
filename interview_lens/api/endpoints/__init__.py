"""
API endpoint modules for InterviewLens
"""

from interview_lens.api.endpoints import analysis, realtime

__all__ = ["analysis", "realtime"]
