"""
Telemetry decoding for InterviewLens.

Turns data-URL style strings (``data:image/jpeg;base64,...``) into raw
bytes and extracts lightweight metadata from decoded frames and audio
chunks. The analysis engine never sees encoded strings.
"""

import base64
import binascii
import io
import logging
import wave
from typing import Any

from interview_lens.models.analysis import SpeechAnalysisResult

logger = logging.getLogger(__name__)


class InvalidTelemetryError(ValueError):
    """Raised when an encoded frame or audio chunk cannot be decoded."""
    pass


# Leading magic bytes -> format name
IMAGE_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\xff\xd8\xff", "jpeg"),
    (b"\x89PNG\r\n\x1a\n", "png"),
    (b"GIF8", "gif"),
]

AUDIO_SIGNATURES: list[tuple[bytes, str]] = [
    (b"\x1aE\xdf\xa3", "webm"),
    (b"OggS", "ogg"),
    (b"ID3", "mp3"),
    (b"\xff\xfb", "mp3"),
]


def decode_data_url(value: str) -> bytes:
    """
    Decode the base64 payload of a data-URL style string.

    Everything after the first comma is treated as base64.

    Raises:
        InvalidTelemetryError: If there is no comma or the payload is not valid base64
    """
    if not isinstance(value, str) or "," not in value:
        raise InvalidTelemetryError("Encoded telemetry must contain a ',' separator")

    payload = value.split(",", 1)[1]
    try:
        return base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise InvalidTelemetryError(f"Invalid base64 payload: {e}") from e


def _sniff(data: bytes, signatures: list[tuple[bytes, str]]) -> str:
    for magic, name in signatures:
        if data.startswith(magic):
            return name
    return "unknown"


def inspect_frame(frame: bytes) -> dict[str, Any]:
    """Describe a decoded webcam frame."""
    image_format = _sniff(frame, IMAGE_SIGNATURES)
    if image_format == "unknown":
        logger.debug(f"Unrecognised frame format ({len(frame)} bytes)")
    return {
        "byteLength": len(frame),
        "format": image_format,
    }


def inspect_audio(audio_data: bytes) -> SpeechAnalysisResult:
    """
    Describe a decoded audio chunk.

    WAV chunks are opened to read duration, sample rate and channels;
    other containers are only identified by their signature.
    """
    if not audio_data:
        return SpeechAnalysisResult(valid=False, error="Empty audio chunk")

    if audio_data.startswith(b"RIFF") and audio_data[8:12] == b"WAVE":
        try:
            with io.BytesIO(audio_data) as audio_io:
                with wave.open(audio_io, "rb") as wav:
                    frames = wav.getnframes()
                    rate = wav.getframerate()
                    return SpeechAnalysisResult(
                        valid=True,
                        byte_length=len(audio_data),
                        format="wav",
                        duration_seconds=frames / float(rate) if rate else 0.0,
                        sample_rate=rate,
                        channels=wav.getnchannels(),
                    )
        except (wave.Error, EOFError) as e:
            return SpeechAnalysisResult(
                valid=False,
                error=f"Malformed WAV chunk: {e}",
                byte_length=len(audio_data),
                format="wav",
            )

    return SpeechAnalysisResult(
        valid=True,
        byte_length=len(audio_data),
        format=_sniff(audio_data, AUDIO_SIGNATURES),
    )
