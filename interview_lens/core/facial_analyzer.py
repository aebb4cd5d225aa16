"""
Facial Feature Analyzer for InterviewLens

Turns one pre-computed facial telemetry sample (detection box, optional
landmarks, expression confidence map) into a structured analysis record:
- Gaze / eye-contact estimation (landmarks, with a face-centering fallback)
- Dominant emotion
- Confidence and professionalism indicators

The analyzer is pure: it never touches session state and never raises on
malformed input.
"""

import logging
from typing import Any

from pydantic import ValidationError

from interview_lens.config.settings import Settings, get_settings
from interview_lens.models.analysis import (
    ConfidenceIndicators,
    EyeContactEstimate,
    EyeContactMethod,
    FaceBox,
    FacialAnalysisResult,
    ProfessionalismMetrics,
)

logger = logging.getLogger(__name__)


# ============================================================================
# SCORING POLICY
# ============================================================================

# Upstream detectors name the same category differently; the first
# non-zero alias wins.
EXPRESSION_ALIASES: dict[str, tuple[str, ...]] = {
    "neutral": ("neutral",),
    "happy": ("happy", "happiness"),
    "sad": ("sad", "sadness"),
    "fear": ("fearful", "fear"),
    "surprise": ("surprised", "surprise"),
    "angry": ("angry", "anger"),
    "disgust": ("disgusted", "disgust"),
    "confident": ("confident", "confidence"),
    "focused": ("focused", "focus"),
    "thoughtful": ("thoughtful",),
    "dull": ("dull", "bored"),
}

# Linear indicator weights over the canonical categories above
NERVOUSNESS_WEIGHTS = {"fear": 1.0, "surprise": 0.7}
ANXIETY_WEIGHTS = {"sad": 1.0, "fear": 1.0, "dull": 0.5}
COMPOSURE_WEIGHTS = {
    "neutral": 1.0,
    "happy": 1.0,
    "confident": 1.0,
    "thoughtful": 0.5,
    "dull": -0.3,
}
ALERTNESS_WEIGHTS = {
    "happy": 1.0,
    "surprise": 0.5,
    "focused": 1.0,
    "confident": 0.8,
    "dull": -0.6,
}
APPROPRIATE_EXPRESSION_WEIGHTS = {
    "neutral": 1.0,
    "happy": 0.8,
    "confident": 1.2,
    "focused": 1.1,
    "thoughtful": 0.9,
    "surprise": 0.3,
    "dull": -0.5,
}
INSTABILITY_WEIGHTS = {"angry": 1.0, "disgust": 1.0, "fear": 1.0, "dull": 0.3}
ATTENTIVENESS_WEIGHTS = {
    "neutral": 0.7,
    "happy": 0.9,
    "confident": 1.0,
    "focused": 1.2,
    "thoughtful": 0.8,
    "dull": -0.8,
}
ATTENTIVENESS_SURPRISE_CAP = 0.3

# Landmark indices (68-point layout, per-feature slices)
LEFT_EYE_POINT = 0
RIGHT_EYE_POINT = 3
NOSE_TIP_POINT = 6

# Offsets from the reference centre used only for the fallback direction label
SIMPLIFIED_DIRECTION_X_PX = 50
SIMPLIFIED_DIRECTION_Y_PX = 40


def read_expression(expressions: dict[str, float], category: str) -> float:
    """Read a canonical category through its alias list, defaulting to 0."""
    for alias in EXPRESSION_ALIASES.get(category, (category,)):
        value = expressions.get(alias)
        if value:
            return value
    return 0.0


def weighted_sum(expressions: dict[str, float], weights: dict[str, float]) -> float:
    """Linear combination of canonical categories."""
    return sum(read_expression(expressions, name) * w for name, w in weights.items())


def dominant_emotion(expressions: dict[str, float]) -> tuple[str, float]:
    """
    Pick the category with strictly the highest value.

    Starts from ``("neutral", 0)``; a later key with an equal value never
    replaces the current leader, so the first-seen key wins ties.
    """
    dominant, max_confidence = "neutral", 0.0
    for emotion, confidence in expressions.items():
        if confidence > max_confidence:
            dominant, max_confidence = emotion, confidence
    return dominant, max_confidence


def _sanitize_expressions(raw: Any) -> dict[str, float]:
    """Keep only numeric expression values."""
    if not isinstance(raw, dict):
        return {}
    return {
        str(name): float(value)
        for name, value in raw.items()
        if isinstance(value, (int, float)) and not isinstance(value, bool)
    }


def _gaze_direction(
    horizontal: float,
    vertical: float,
    horizontal_threshold: float,
    vertical_threshold: float,
) -> str:
    direction = "center"
    if horizontal > horizontal_threshold:
        direction = "right"
    elif horizontal < -horizontal_threshold:
        direction = "left"
    if vertical > vertical_threshold:
        direction += "_down"
    elif vertical < -vertical_threshold:
        direction += "_up"
    return direction


class FacialFeatureAnalyzer:
    """
    Stateless per-frame facial feature scoring.

    Eye contact is estimated from landmark offsets when eye and nose
    landmarks are supplied, otherwise from how centred the face box is in
    an assumed reference frame.
    """

    def __init__(self, settings: Settings | None = None):
        """
        Initialize the analyzer.

        Args:
            settings: Gaze thresholds and reference frame size
        """
        self.settings = settings or get_settings()

    def analyze(self, face_data: Any) -> FacialAnalysisResult:
        """
        Analyze one facial telemetry sample.

        Args:
            face_data: ``{detection: {box}, landmarks?, expressions?}``

        Returns:
            FacialAnalysisResult, with ``valid=False`` when no face detection is present
        """
        if not isinstance(face_data, dict) or not face_data.get("detection"):
            return FacialAnalysisResult.invalid("No face detected")

        detection = face_data["detection"]
        box = self._parse_box(detection)
        expressions = _sanitize_expressions(face_data.get("expressions"))

        eye_contact = self.analyze_eye_contact(face_data.get("landmarks"), box)
        emotion, emotion_confidence = dominant_emotion(expressions)

        logger.debug(
            f"Eye contact: looking={eye_contact.is_looking_at_camera} "
            f"method={eye_contact.method.value} direction={eye_contact.direction}; "
            f"emotion={emotion} ({round(emotion_confidence * 100)}%)"
        )

        return FacialAnalysisResult(
            valid=True,
            eye_contact=eye_contact.is_looking_at_camera,
            eye_contact_duration=eye_contact.duration,
            eye_contact_method=eye_contact.method,
            gaze_direction=eye_contact.direction,
            horizontal_gaze=eye_contact.horizontal_gaze,
            vertical_gaze=eye_contact.vertical_gaze,
            horizontal_distance=eye_contact.horizontal_distance,
            vertical_distance=eye_contact.vertical_distance,
            dominant_emotion=emotion,
            emotion_confidence=emotion_confidence,
            expressions=expressions,
            confidence_indicators=self.confidence_indicators(expressions),
            professionalism_metrics=self.professionalism_metrics(expressions),
            face_position=box,
        )

    # =========================================================================
    # EYE CONTACT
    # =========================================================================

    def analyze_eye_contact(self, landmarks: Any, box: FaceBox | None) -> EyeContactEstimate:
        """Estimate gaze, preferring landmarks and falling back to face centering."""
        if not self._has_landmarks(landmarks):
            return self.simplified_eye_contact(box)

        try:
            return self._landmark_eye_contact(landmarks, box)
        except (KeyError, IndexError, TypeError, ValueError, AttributeError) as e:
            logger.warning(f"Landmark-based eye contact analysis failed, using simplified method: {e}")
            return self.simplified_eye_contact(box)

    def _landmark_eye_contact(self, landmarks: dict[str, Any], box: FaceBox | None) -> EyeContactEstimate:
        if box is None:
            raise ValueError("Landmark gaze needs a detection box")

        left_eye = landmarks["leftEye"][LEFT_EYE_POINT]
        right_eye = landmarks["rightEye"][RIGHT_EYE_POINT]
        nose_tip = landmarks["nose"][NOSE_TIP_POINT]

        eye_center_x = (float(left_eye["x"]) + float(right_eye["x"])) / 2
        eye_center_y = (float(left_eye["y"]) + float(right_eye["y"])) / 2

        horizontal_gaze = eye_center_x - float(nose_tip["x"])
        vertical_gaze = eye_center_y - float(nose_tip["y"])

        horizontal_threshold = box.width * self.settings.landmark_gaze_threshold
        vertical_threshold = box.height * self.settings.landmark_gaze_threshold

        looking = abs(horizontal_gaze) < horizontal_threshold and abs(vertical_gaze) < vertical_threshold

        return EyeContactEstimate(
            is_looking_at_camera=looking,
            direction=_gaze_direction(
                horizontal_gaze, vertical_gaze, horizontal_threshold, vertical_threshold
            ),
            duration=self.settings.eye_contact_quantum_ms if looking else 0,
            method=EyeContactMethod.LANDMARKS,
            horizontal_gaze=horizontal_gaze,
            vertical_gaze=vertical_gaze,
        )

    def simplified_eye_contact(self, box: FaceBox | None) -> EyeContactEstimate:
        """Judge eye contact by how close the face box centre is to the frame centre."""
        if box is None:
            return EyeContactEstimate()

        face_center_x, face_center_y = box.center
        frame_center_x = self.settings.reference_frame_width / 2
        frame_center_y = self.settings.reference_frame_height / 2

        horizontal_distance = abs(face_center_x - frame_center_x)
        vertical_distance = abs(face_center_y - frame_center_y)

        looking = (
            horizontal_distance < self.settings.simplified_max_horizontal_px
            and vertical_distance < self.settings.simplified_max_vertical_px
        )

        return EyeContactEstimate(
            is_looking_at_camera=looking,
            direction=_gaze_direction(
                face_center_x - frame_center_x,
                face_center_y - frame_center_y,
                SIMPLIFIED_DIRECTION_X_PX,
                SIMPLIFIED_DIRECTION_Y_PX,
            ),
            duration=self.settings.eye_contact_quantum_ms if looking else 0,
            method=EyeContactMethod.SIMPLIFIED,
            horizontal_distance=horizontal_distance,
            vertical_distance=vertical_distance,
        )

    @staticmethod
    def _has_landmarks(landmarks: Any) -> bool:
        return isinstance(landmarks, dict) and all(
            landmarks.get(key) for key in ("leftEye", "rightEye", "nose")
        )

    @staticmethod
    def _parse_box(detection: Any) -> FaceBox | None:
        if not isinstance(detection, dict):
            return None
        try:
            return FaceBox.model_validate(detection.get("box"))
        except ValidationError:
            return None

    # =========================================================================
    # EXPRESSION INDICATORS
    # =========================================================================

    def confidence_indicators(self, expressions: dict[str, float]) -> ConfidenceIndicators:
        """Nervousness, anxiety, composure and alertness from the expression map."""
        return ConfidenceIndicators(
            nervousness=weighted_sum(expressions, NERVOUSNESS_WEIGHTS),
            anxiety=weighted_sum(expressions, ANXIETY_WEIGHTS),
            composure=weighted_sum(expressions, COMPOSURE_WEIGHTS),
            alertness=weighted_sum(expressions, ALERTNESS_WEIGHTS),
        )

    def professionalism_metrics(self, expressions: dict[str, float]) -> ProfessionalismMetrics:
        """Appropriateness, stability and attentiveness from the expression map."""
        surprise = read_expression(expressions, "surprise")
        return ProfessionalismMetrics(
            appropriate_expressions=weighted_sum(expressions, APPROPRIATE_EXPRESSION_WEIGHTS),
            facial_stability=1 - weighted_sum(expressions, INSTABILITY_WEIGHTS),
            attentiveness=(
                weighted_sum(expressions, ATTENTIVENESS_WEIGHTS)
                + min(surprise, ATTENTIVENESS_SURPRISE_CAP)
            ),
        )
