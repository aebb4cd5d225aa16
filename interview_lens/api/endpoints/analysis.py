"""
Analysis API endpoints

Thin HTTP translation over the analysis core:
- Listing active sessions
- Live session status
- Ending sessions and retrieving summaries
- One-off frame and audio uploads pushed to a session's channel
"""

from typing import Any

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from interview_lens.api.dependencies import get_message_router
from interview_lens.core.message_router import MessageRouter
from interview_lens.core.telemetry import InvalidTelemetryError, decode_data_url, inspect_audio, inspect_frame
from interview_lens.models.messages import envelope

router = APIRouter()


# ============================================================================
# REQUEST/RESPONSE MODELS
# ============================================================================

class FrameRequest(BaseModel):
    """Request model for a single frame upload."""
    frameData: str
    sessionId: str | None = None


class FrameResponse(BaseModel):
    """Response after analysing an uploaded frame."""
    byteLength: int
    format: str
    sessionId: str | None = None
    delivered: bool = False


class AudioRequest(BaseModel):
    """Request model for a single audio chunk upload."""
    audioData: str
    sessionId: str | None = None


class AudioResponse(BaseModel):
    """Response after describing an uploaded audio chunk."""
    valid: bool
    error: str | None = None
    byteLength: int
    format: str
    durationSeconds: float | None = None
    sampleRate: int | None = None
    channels: int | None = None
    sessionId: str | None = None
    delivered: bool = False


class SessionListResponse(BaseModel):
    """Active sessions and connected channels."""
    sessions: list[str]
    connections: dict[str, Any]


# ============================================================================
# REST ENDPOINTS
# ============================================================================

@router.get("/sessions", response_model=SessionListResponse)
async def list_sessions(
    message_router: MessageRouter = Depends(get_message_router),
) -> SessionListResponse:
    """List active sessions and channel bindings."""
    return SessionListResponse(
        sessions=message_router.engine.registry.active_session_ids(),
        connections=message_router.active_connections(),
    )


@router.get("/sessions/{session_id}")
async def get_session_status(
    session_id: str,
    message_router: MessageRouter = Depends(get_message_router),
) -> dict[str, Any]:
    """Get the live scores and counters of a session."""
    status = message_router.engine.session_status(session_id)

    if status is None:
        raise HTTPException(status_code=404, detail="Session not found")

    return status


@router.post("/sessions/{session_id}/end")
async def end_session(
    session_id: str,
    message_router: MessageRouter = Depends(get_message_router),
) -> dict[str, Any]:
    """
    End a session and return its summary.

    The session's channel, if any, also receives a ``session_ended`` envelope.
    """
    summary = message_router.engine.end_session(session_id)

    if summary is None:
        raise HTTPException(status_code=404, detail="Session not found")

    payload = summary.to_wire()
    message_router.send_to_session(
        session_id,
        envelope("session_ended", sessionId=session_id, summary=payload),
    )
    return payload


@router.get("/sessions/{session_id}/summary")
async def get_session_summary(
    session_id: str,
    message_router: MessageRouter = Depends(get_message_router),
) -> dict[str, Any]:
    """Retrieve the summary of a recently ended session."""
    summary = message_router.engine.get_summary(session_id)

    if summary is None:
        raise HTTPException(status_code=404, detail="Summary not found")

    return summary.to_wire()


@router.post("/frame", response_model=FrameResponse)
async def analyze_frame(
    request: FrameRequest,
    message_router: MessageRouter = Depends(get_message_router),
) -> FrameResponse:
    """
    Decode a single webcam frame.

    When a session id is given and the session is active, a
    ``behavior_analysis`` envelope is pushed to its channel.
    """
    try:
        frame = decode_data_url(request.frameData)
    except InvalidTelemetryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    delivered = False
    if request.sessionId:
        data = message_router.engine.describe_frame(request.sessionId, frame)
        if data is None:
            raise HTTPException(status_code=404, detail="Session not found")
        delivered = message_router.send_to_session(
            request.sessionId,
            envelope("behavior_analysis", data=data),
        )
        return FrameResponse(
            byteLength=data["byteLength"],
            format=data["format"],
            sessionId=request.sessionId,
            delivered=delivered,
        )

    info = inspect_frame(frame)
    return FrameResponse(byteLength=info["byteLength"], format=info["format"])


@router.post("/audio", response_model=AudioResponse)
async def analyze_audio(
    request: AudioRequest,
    message_router: MessageRouter = Depends(get_message_router),
) -> AudioResponse:
    """
    Decode a single audio chunk.

    With an active session id the chunk is recorded as a speech analysis
    point and a ``speech_analysis`` envelope is pushed to its channel.
    """
    try:
        audio = decode_data_url(request.audioData)
    except InvalidTelemetryError as e:
        raise HTTPException(status_code=400, detail=str(e))

    if not request.sessionId:
        return AudioResponse(**inspect_audio(audio).to_wire())

    point = message_router.engine.process_audio_chunk(request.sessionId, audio)
    if point is None:
        raise HTTPException(status_code=404, detail="Session not found")

    delivered = message_router.send_to_session(
        request.sessionId,
        envelope("speech_analysis", sessionId=request.sessionId, data=point.to_wire()),
    )
    return AudioResponse(
        **point.data.to_wire(),
        sessionId=request.sessionId,
        delivered=delivered,
    )
