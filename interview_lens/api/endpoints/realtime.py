"""
Realtime WebSocket endpoint

Serves one duplex channel per connection. The receive loop is the single
consumer of inbound frames; a writer task drains the channel's outbound
queue onto the socket.
"""

import asyncio
import contextlib
import json
import logging

from fastapi import APIRouter, Depends, WebSocket, WebSocketDisconnect

from interview_lens.api.dependencies import get_message_router
from interview_lens.core.message_router import Channel, MessageRouter
from interview_lens.models.messages import error_envelope

logger = logging.getLogger(__name__)

router = APIRouter()

# Upper bound on flushing queued envelopes before closing an ended channel
FLUSH_TIMEOUT_SECONDS = 5.0


async def _write_outbound(websocket: WebSocket, channel: Channel) -> None:
    """Forward queued envelopes to the socket until cancelled."""
    while True:
        message = await channel.outbound.get()
        try:
            await websocket.send_json(message)
        except (WebSocketDisconnect, RuntimeError) as e:
            logger.warning(f"Send failed on channel {channel.channel_id}: {e}")
            return
        finally:
            channel.outbound.task_done()


@router.websocket("/ws")
async def websocket_channel(
    websocket: WebSocket,
    message_router: MessageRouter = Depends(get_message_router),
):
    """
    WebSocket endpoint for real-time session analysis.

    Client sends:
    - join_session, facial_analysis, webcam_frame, audio_chunk, end_session, ping

    Server sends:
    - connection_established, session_joined, analysis_result,
      behavior_analysis, speech_analysis, session_ended, pong, error
    """
    await websocket.accept()

    channel = message_router.open_channel()
    writer = asyncio.create_task(_write_outbound(websocket, channel))

    try:
        while channel.is_open:
            raw = await websocket.receive_text()
            try:
                data = json.loads(raw)
            except json.JSONDecodeError:
                channel.send(error_envelope("Invalid message format"))
                continue

            message_router.dispatch(channel, data)

        # Channel ended: deliver what is queued, then close
        await asyncio.wait_for(channel.outbound.join(), timeout=FLUSH_TIMEOUT_SECONDS)
        await websocket.close()

    except WebSocketDisconnect:
        logger.info(f"Client disconnected from channel {channel.channel_id}")
    except asyncio.TimeoutError:
        logger.warning(f"Timed out flushing channel {channel.channel_id}")
    finally:
        message_router.close_channel(channel)
        writer.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await writer
