"""
Message Router for InterviewLens

Multiplexes duplex channels onto the analysis engine. Each channel walks

    CONNECTED → (join_session) → ACTIVE → (end_session) → CLOSED

and moves to CLOSED on transport disconnect from any state. Inbound
messages are dispatched synchronously; outbound envelopes are queued on
the addressed channel and written by the transport.
"""

import asyncio
import logging
import threading
from enum import Enum
from typing import Any, Callable
from uuid import uuid4

from pydantic import ValidationError

from interview_lens.core.analysis_engine import AnalysisEngine
from interview_lens.core.telemetry import InvalidTelemetryError, decode_data_url
from interview_lens.models.messages import (
    MESSAGE_MODELS,
    AudioChunkMessage,
    EndSessionMessage,
    FacialAnalysisMessage,
    JoinSessionMessage,
    MessageKind,
    SessionMessage,
    WebcamFrameMessage,
    envelope,
    error_envelope,
    invalid_fields,
)

logger = logging.getLogger(__name__)


class ChannelState(str, Enum):
    """Duplex channel states."""

    CONNECTED = "connected"
    ACTIVE = "active"
    CLOSED = "closed"


class Channel:
    """One duplex connection with its outbound queue."""

    def __init__(self, channel_id: str | None = None):
        self.channel_id = channel_id or str(uuid4())
        self.state = ChannelState.CONNECTED
        self.outbound: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self.session_ids: set[str] = set()

    @property
    def is_open(self) -> bool:
        return self.state != ChannelState.CLOSED

    def send(self, message: dict[str, Any]) -> bool:
        """Queue an outbound envelope without blocking; dropped once closed."""
        if not self.is_open:
            logger.warning(f"Dropped {message.get('type')} for closed channel {self.channel_id}")
            return False
        self.outbound.put_nowait(message)
        return True

    def __repr__(self) -> str:
        return f"Channel({self.channel_id!r}, {self.state.value})"


class MessageRouter:
    """
    Routes tagged channel messages to the analysis engine.

    The session → channel mapping is last-write-wins: joining a session
    from another channel silently re-points it.
    """

    def __init__(self, engine: AnalysisEngine):
        """
        Initialize the router.

        Args:
            engine: Analysis engine receiving the decoded calls
        """
        self.engine = engine

        self._lock = threading.RLock()
        self._channels: dict[str, Channel] = {}
        self._session_channels: dict[str, Channel] = {}
        self._user_sessions: dict[str, str] = {}

        self._handlers: dict[MessageKind, Callable[[Channel, Any], None]] = {
            MessageKind.JOIN_SESSION: self._handle_join_session,
            MessageKind.FACIAL_ANALYSIS: self._handle_facial_analysis,
            MessageKind.WEBCAM_FRAME: self._handle_webcam_frame,
            MessageKind.AUDIO_CHUNK: self._handle_audio_chunk,
            MessageKind.END_SESSION: self._handle_end_session,
        }

    # =========================================================================
    # CHANNEL LIFECYCLE
    # =========================================================================

    def open_channel(self, channel_id: str | None = None) -> Channel:
        """Register a new channel and greet it."""
        channel = Channel(channel_id)
        with self._lock:
            self._channels[channel.channel_id] = channel

        channel.send(envelope(
            "connection_established",
            message="WebSocket connected successfully",
        ))
        logger.info(f"Channel opened: {channel.channel_id}")
        return channel

    def close_channel(self, channel: Channel) -> None:
        """Transport-level disconnect: drop every mapping owned by the channel."""
        with self._lock:
            channel.state = ChannelState.CLOSED
            self._channels.pop(channel.channel_id, None)
            for session_id in list(channel.session_ids):
                if self._session_channels.get(session_id) is channel:
                    del self._session_channels[session_id]
                    self._forget_users(session_id)
                    logger.info(f"Session {session_id} disconnected")
            channel.session_ids.clear()
        logger.info(f"Channel closed: {channel.channel_id}")

    def _bind(self, session_id: str, channel: Channel) -> None:
        with self._lock:
            previous = self._session_channels.get(session_id)
            if previous is not None and previous is not channel:
                previous.session_ids.discard(session_id)
                logger.info(f"Session {session_id} moved from channel {previous.channel_id}")
            self._session_channels[session_id] = channel
            channel.session_ids.add(session_id)

    def _unbind(self, session_id: str, channel: Channel) -> None:
        with self._lock:
            if self._session_channels.get(session_id) is channel:
                del self._session_channels[session_id]
                self._forget_users(session_id)
            channel.session_ids.discard(session_id)

    def _forget_users(self, session_id: str) -> None:
        for user_id in [u for u, s in self._user_sessions.items() if s == session_id]:
            del self._user_sessions[user_id]

    # =========================================================================
    # DISPATCH
    # =========================================================================

    def dispatch(self, channel: Channel, message: Any) -> None:
        """
        Handle one inbound message and reply on the same channel.

        Protocol and processing errors produce an ``error`` envelope; the
        channel stays open.
        """
        if not channel.is_open:
            logger.warning(f"Ignoring message on closed channel {channel.channel_id}")
            return

        if not isinstance(message, dict):
            channel.send(error_envelope("Invalid message format"))
            return

        message_type = message.get("type")
        try:
            kind = MessageKind(message_type)
        except ValueError:
            logger.warning(f"Unknown message type: {message_type}")
            channel.send(error_envelope(f"Unknown message type: {message_type}"))
            return

        if kind == MessageKind.PING:
            channel.send(envelope("pong"))
            return

        model = MESSAGE_MODELS[kind]
        try:
            parsed = model.model_validate(message)
        except ValidationError as e:
            fields = invalid_fields(e)
            channel.send(error_envelope(
                f"Missing or invalid required field(s): {', '.join(fields)}",
                fields=fields,
            ))
            return

        try:
            self._handlers[kind](channel, parsed)
        except Exception as e:
            logger.exception(f"Failed to process {kind.value}: {e}")
            channel.send(error_envelope(f"Failed to process {kind.value}"))

    def _session_not_found(self, channel: Channel, message: SessionMessage) -> None:
        channel.send(error_envelope(
            f"Session not found or already ended: {message.session_id}",
            sessionId=message.session_id,
        ))

    def _handle_join_session(self, channel: Channel, message: JoinSessionMessage) -> None:
        session, resumed = self.engine.join_session(message.session_id, message.user_id)

        self._bind(message.session_id, channel)
        if message.user_id:
            with self._lock:
                self._user_sessions[message.user_id] = message.session_id
        channel.state = ChannelState.ACTIVE

        channel.send(envelope(
            "session_joined",
            sessionId=session.session_id,
            userId=session.user_id,
            resumed=resumed,
            message="Successfully joined session",
        ))
        logger.info(f"User joined session: {message.session_id}")

    def _handle_facial_analysis(self, channel: Channel, message: FacialAnalysisMessage) -> None:
        update = self.engine.process_facial_data(message.session_id, message.face_data)
        if update is None:
            self._session_not_found(channel, message)
            return

        channel.send(envelope("analysis_result", **update.to_wire()))

    def _handle_webcam_frame(self, channel: Channel, message: WebcamFrameMessage) -> None:
        try:
            frame = decode_data_url(message.frame_data)
        except InvalidTelemetryError as e:
            channel.send(error_envelope(f"Invalid frame data: {e}", sessionId=message.session_id))
            return

        data = self.engine.describe_frame(message.session_id, frame)
        if data is None:
            self._session_not_found(channel, message)
            return

        channel.send(envelope(
            "behavior_analysis",
            data={**data, "frameTimestamp": message.timestamp},
        ))

    def _handle_audio_chunk(self, channel: Channel, message: AudioChunkMessage) -> None:
        try:
            audio = decode_data_url(message.audio_data)
        except InvalidTelemetryError as e:
            channel.send(error_envelope(f"Invalid audio data: {e}", sessionId=message.session_id))
            return

        point = self.engine.process_audio_chunk(message.session_id, audio)
        if point is None:
            self._session_not_found(channel, message)
            return

        channel.send(envelope(
            "speech_analysis",
            sessionId=message.session_id,
            data={**point.to_wire(), "audioTimestamp": message.timestamp},
        ))

    def _handle_end_session(self, channel: Channel, message: EndSessionMessage) -> None:
        summary = self.engine.end_session(message.session_id)
        if summary is None:
            channel.send(error_envelope(
                f"Session not found: {message.session_id}",
                sessionId=message.session_id,
            ))
            return

        channel.send(envelope(
            "session_ended",
            sessionId=message.session_id,
            summary=summary.to_wire(),
        ))

        self._unbind(message.session_id, channel)
        if not channel.session_ids:
            channel.state = ChannelState.CLOSED
        logger.info(f"Session ended: {message.session_id}")

    # =========================================================================
    # ADDRESSED DELIVERY
    # =========================================================================

    def send_to_session(self, session_id: str, message: dict[str, Any]) -> bool:
        """Best-effort delivery to the channel currently bound to a session."""
        channel = self._session_channels.get(session_id)
        if channel is None:
            return False
        return channel.send(message)

    def send_to_user(self, user_id: str, message: dict[str, Any]) -> bool:
        """Deliver to the session most recently joined by a user."""
        session_id = self._user_sessions.get(user_id)
        if session_id is None:
            return False
        return self.send_to_session(session_id, message)

    def broadcast(self, message: dict[str, Any]) -> int:
        """Send to every open channel; returns the number reached."""
        with self._lock:
            channels = list(self._channels.values())
        return sum(1 for channel in channels if channel.send(message))

    def active_connections(self) -> dict[str, Any]:
        with self._lock:
            return {
                "total": len(self._session_channels),
                "channels": len(self._channels),
                "sessions": list(self._session_channels.keys()),
            }
