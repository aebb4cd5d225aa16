"""
InterviewLens - Real-time behavioral analysis for mock interviews

Ingests per-frame facial telemetry from a remote participant, keeps
smoothed per-session scores, emits live feedback and produces a
post-session summary with a score timeline.
"""

__version__ = "0.1.0"
__author__ = "InterviewLens Team"
