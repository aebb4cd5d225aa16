"""
Channel message envelopes for InterviewLens.

Inbound envelopes are validated per message kind; outbound envelopes
always carry a ``type`` and a ``timestamp``.
"""

from enum import Enum
from typing import Any

from pydantic import Field, ValidationError

from interview_lens.models.base import WireModel, utcnow


class MessageKind(str, Enum):
    """Inbound message kinds understood by the router."""

    JOIN_SESSION = "join_session"
    FACIAL_ANALYSIS = "facial_analysis"
    WEBCAM_FRAME = "webcam_frame"
    AUDIO_CHUNK = "audio_chunk"
    END_SESSION = "end_session"
    PING = "ping"


class SessionMessage(WireModel):
    """Any inbound message addressed to a session."""

    session_id: str = Field(..., min_length=1)
    timestamp: Any = None  # Client clock, echoed back only


class JoinSessionMessage(SessionMessage):
    user_id: str | None = None


class FacialAnalysisMessage(SessionMessage):
    face_data: dict[str, Any]


class WebcamFrameMessage(SessionMessage):
    frame_data: str = Field(..., min_length=1)


class AudioChunkMessage(SessionMessage):
    audio_data: str = Field(..., min_length=1)


class EndSessionMessage(SessionMessage):
    pass


MESSAGE_MODELS: dict[MessageKind, type[SessionMessage]] = {
    MessageKind.JOIN_SESSION: JoinSessionMessage,
    MessageKind.FACIAL_ANALYSIS: FacialAnalysisMessage,
    MessageKind.WEBCAM_FRAME: WebcamFrameMessage,
    MessageKind.AUDIO_CHUNK: AudioChunkMessage,
    MessageKind.END_SESSION: EndSessionMessage,
}


def invalid_fields(error: ValidationError) -> list[str]:
    """Wire names of the fields that failed validation, in order."""
    names: list[str] = []
    for item in error.errors():
        name = ".".join(str(part) for part in item["loc"]) or "message"
        if name not in names:
            names.append(name)
    return names


def envelope(message_type: str, **fields: Any) -> dict[str, Any]:
    """Build an outbound envelope."""
    return {
        "type": message_type,
        **fields,
        "timestamp": utcnow().isoformat(),
    }


def error_envelope(message: str, **fields: Any) -> dict[str, Any]:
    """Build an outbound ``error`` envelope."""
    return envelope("error", message=message, **fields)
