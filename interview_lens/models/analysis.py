"""
Per-frame analysis models for InterviewLens.

Defines the transient analyzer output and the immutable analysis points
appended to each session's history.
"""

from datetime import datetime
from enum import Enum
from typing import Literal

from pydantic import ConfigDict, Field

from interview_lens.models.base import WireModel, utcnow


class EyeContactMethod(str, Enum):
    """How eye contact was estimated for a frame."""

    LANDMARKS = "landmarks"  # Eye/nose landmark offsets
    SIMPLIFIED = "simplified"  # Face box centering
    NONE = "none"  # No usable detection box


class AnalysisType(str, Enum):
    """Kind of telemetry an analysis point came from."""

    FACIAL = "facial"
    SPEECH = "speech"


class FaceBox(WireModel):
    """Detected face bounding box in frame pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def center(self) -> tuple[float, float]:
        return self.x + self.width / 2, self.y + self.height / 2


class ConfidenceIndicators(WireModel):
    """Expression-derived confidence signals."""

    nervousness: float = 0.0
    anxiety: float = 0.0
    composure: float = 0.0
    alertness: float = 0.0


class ProfessionalismMetrics(WireModel):
    """Expression-derived professionalism signals."""

    appropriate_expressions: float = 0.0
    facial_stability: float = 0.0
    attentiveness: float = 0.0


class EyeContactEstimate(WireModel):
    """Result of one gaze estimation pass."""

    is_looking_at_camera: bool = False
    direction: str = "unknown"
    duration: int = 0
    method: EyeContactMethod = EyeContactMethod.NONE

    # Landmark method offsets
    horizontal_gaze: float | None = None
    vertical_gaze: float | None = None

    # Simplified method distances
    horizontal_distance: float | None = None
    vertical_distance: float | None = None


class FacialAnalysisResult(WireModel):
    """Structured analysis of one facial telemetry sample."""

    kind: Literal["facial"] = "facial"
    valid: bool
    error: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)

    # Gaze
    eye_contact: bool = False
    eye_contact_duration: int = 0
    eye_contact_method: EyeContactMethod = EyeContactMethod.NONE
    gaze_direction: str = "unknown"
    horizontal_gaze: float | None = None
    vertical_gaze: float | None = None
    horizontal_distance: float | None = None
    vertical_distance: float | None = None

    # Expressions
    dominant_emotion: str | None = None
    emotion_confidence: float = 0.0
    expressions: dict[str, float] = Field(default_factory=dict)

    # Derived indicators
    confidence_indicators: ConfidenceIndicators = Field(default_factory=ConfidenceIndicators)
    professionalism_metrics: ProfessionalismMetrics = Field(default_factory=ProfessionalismMetrics)

    face_position: FaceBox | None = None

    @classmethod
    def invalid(cls, error: str) -> "FacialAnalysisResult":
        """Build a result for a sample with no usable face."""
        return cls(valid=False, error=error)


class SpeechAnalysisResult(WireModel):
    """Metadata extracted from one decoded audio chunk."""

    kind: Literal["speech"] = "speech"
    valid: bool
    error: str | None = None
    timestamp: datetime = Field(default_factory=utcnow)
    byte_length: int = 0
    format: str = "unknown"

    # Only known for WAV payloads
    duration_seconds: float | None = None
    sample_rate: int | None = None
    channels: int | None = None


class ScoreSnapshot(WireModel):
    """The three smoothed scores at one instant."""

    confidence: float = 0.0
    engagement: float = 0.0
    professionalism: float = 0.0


class AnalysisPoint(WireModel):
    """Immutable history entry produced by one telemetry message."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime
    type: AnalysisType
    data: FacialAnalysisResult | SpeechAnalysisResult = Field(discriminator="kind")
    scores: ScoreSnapshot
