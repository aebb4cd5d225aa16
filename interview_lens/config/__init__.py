"""
Configuration for InterviewLens
"""

from interview_lens.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
