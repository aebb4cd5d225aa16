"""
Facial feature analyzer tests.

Uses synthetic faceData payloads to check gaze estimation, dominant
emotion selection and the expression indicator formulas.
"""

import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

import unittest

from interview_lens.config.settings import Settings
from interview_lens.core.facial_analyzer import FacialFeatureAnalyzer, dominant_emotion, read_expression
from interview_lens.models.analysis import EyeContactMethod
from tests.fixtures.face_samples import CORNER_BOX, face_sample, make_landmarks


def make_analyzer() -> FacialFeatureAnalyzer:
    return FacialFeatureAnalyzer(Settings())


class TestInputTolerance(unittest.TestCase):
    """Malformed samples never raise."""

    def test_missing_detection_is_invalid(self):
        result = make_analyzer().analyze({"expressions": {"happy": 1.0}})
        self.assertFalse(result.valid)
        self.assertEqual(result.error, "No face detected")

    def test_none_and_non_dict_are_invalid(self):
        analyzer = make_analyzer()
        self.assertFalse(analyzer.analyze(None).valid)
        self.assertFalse(analyzer.analyze("face").valid)

    def test_detection_without_box_uses_no_method(self):
        """A detection with no usable box yields method 'none' and no eye contact."""
        result = make_analyzer().analyze({"detection": {"score": 0.9}, "expressions": {"neutral": 1.0}})
        self.assertTrue(result.valid)
        self.assertEqual(result.eye_contact_method, EyeContactMethod.NONE)
        self.assertEqual(result.gaze_direction, "unknown")
        self.assertFalse(result.eye_contact)
        self.assertIsNone(result.face_position)

    def test_non_numeric_expressions_are_ignored(self):
        result = make_analyzer().analyze(face_sample(expressions={"happy": "lots", "sad": 0.4}))
        self.assertEqual(result.expressions, {"sad": 0.4})
        self.assertEqual(result.dominant_emotion, "sad")


class TestSimplifiedEyeContact(unittest.TestCase):
    """Face-centering fallback when landmarks are absent."""

    def test_centered_happy_face(self):
        """Centred box, no landmarks: happy, simplified method, eye contact."""
        result = make_analyzer().analyze(face_sample(expressions={"happy": 0.9, "neutral": 0.1}))
        self.assertTrue(result.valid)
        self.assertEqual(result.dominant_emotion, "happy")
        self.assertAlmostEqual(result.emotion_confidence, 0.9)
        self.assertEqual(result.eye_contact_method, EyeContactMethod.SIMPLIFIED)
        self.assertTrue(result.eye_contact)
        self.assertEqual(result.eye_contact_duration, 1000)
        self.assertEqual(result.gaze_direction, "center")

    def test_corner_face_has_no_eye_contact(self):
        result = make_analyzer().analyze(face_sample(box=CORNER_BOX))
        self.assertFalse(result.eye_contact)
        self.assertEqual(result.eye_contact_duration, 0)
        self.assertEqual(result.gaze_direction, "left_up")
        self.assertAlmostEqual(result.horizontal_distance, 270)
        self.assertAlmostEqual(result.vertical_distance, 190)

    def test_distance_thresholds(self):
        """Contact requires < 100px horizontal and < 80px vertical offset."""
        analyzer = make_analyzer()
        # Centre at (419, 240): 99px right
        near = analyzer.analyze(face_sample(box={"x": 319, "y": 140, "width": 200, "height": 200}))
        self.assertTrue(near.eye_contact)
        self.assertEqual(near.gaze_direction, "right")
        # Centre at (420, 240): exactly 100px
        edge = analyzer.analyze(face_sample(box={"x": 320, "y": 140, "width": 200, "height": 200}))
        self.assertFalse(edge.eye_contact)


class TestLandmarkEyeContact(unittest.TestCase):
    """Landmark-based gaze estimation."""

    def test_looking_at_camera(self):
        landmarks = make_landmarks(left_eye=(280, 200), right_eye=(360, 200), nose_tip=(320, 190))
        result = make_analyzer().analyze(face_sample(landmarks=landmarks))
        self.assertEqual(result.eye_contact_method, EyeContactMethod.LANDMARKS)
        self.assertTrue(result.eye_contact)
        self.assertEqual(result.gaze_direction, "center")
        self.assertAlmostEqual(result.horizontal_gaze, 0)
        self.assertAlmostEqual(result.vertical_gaze, 10)

    def test_looking_right(self):
        """Horizontal offset beyond 15% of box width breaks eye contact."""
        landmarks = make_landmarks(left_eye=(280, 200), right_eye=(360, 200), nose_tip=(280, 200))
        result = make_analyzer().analyze(face_sample(landmarks=landmarks))
        self.assertFalse(result.eye_contact)
        self.assertEqual(result.gaze_direction, "right")
        self.assertEqual(result.eye_contact_duration, 0)

    def test_looking_down_and_left(self):
        landmarks = make_landmarks(left_eye=(280, 200), right_eye=(360, 200), nose_tip=(360, 160))
        result = make_analyzer().analyze(face_sample(landmarks=landmarks))
        self.assertEqual(result.gaze_direction, "left_down")

    def test_vertical_only_offset_keeps_center_prefix(self):
        landmarks = make_landmarks(left_eye=(280, 200), right_eye=(360, 200), nose_tip=(320, 240))
        result = make_analyzer().analyze(face_sample(landmarks=landmarks))
        self.assertEqual(result.gaze_direction, "center_up")

    def test_malformed_landmarks_fall_back(self):
        """Too few landmark points falls back to the simplified method."""
        landmarks = {"leftEye": [{"x": 1, "y": 1}], "rightEye": [{"x": 1, "y": 1}], "nose": [{"x": 1, "y": 1}]}
        result = make_analyzer().analyze(face_sample(landmarks=landmarks))
        self.assertEqual(result.eye_contact_method, EyeContactMethod.SIMPLIFIED)
        self.assertTrue(result.eye_contact)

    def test_incomplete_landmark_set_uses_simplified(self):
        result = make_analyzer().analyze(face_sample(landmarks={"leftEye": [{"x": 1, "y": 1}]}))
        self.assertEqual(result.eye_contact_method, EyeContactMethod.SIMPLIFIED)


class TestDominantEmotion(unittest.TestCase):
    """Dominant emotion selection."""

    def test_strictly_highest_wins(self):
        self.assertEqual(dominant_emotion({"sad": 0.2, "happy": 0.7, "neutral": 0.1}), ("happy", 0.7))

    def test_first_seen_wins_ties(self):
        self.assertEqual(dominant_emotion({"sad": 0.5, "happy": 0.5})[0], "sad")
        self.assertEqual(dominant_emotion({"happy": 0.5, "sad": 0.5})[0], "happy")

    def test_empty_map_defaults_to_neutral(self):
        self.assertEqual(dominant_emotion({}), ("neutral", 0.0))


class TestIndicators(unittest.TestCase):
    """Confidence and professionalism formulas."""

    EXPRESSIONS = {
        "neutral": 0.3,
        "happy": 0.2,
        "sad": 0.05,
        "fearful": 0.1,
        "surprised": 0.1,
        "angry": 0.05,
        "disgusted": 0.02,
        "confident": 0.08,
        "focused": 0.04,
        "thoughtful": 0.03,
        "dull": 0.03,
    }

    def test_aliases(self):
        self.assertEqual(read_expression({"fear": 0.4}, "fear"), 0.4)
        self.assertEqual(read_expression({"fearful": 0.0, "fear": 0.3}, "fear"), 0.3)
        self.assertEqual(read_expression({"happiness": 0.6}, "happy"), 0.6)
        self.assertEqual(read_expression({"bored": 0.2}, "dull"), 0.2)
        self.assertEqual(read_expression({}, "focused"), 0.0)

    def test_confidence_indicators(self):
        e = self.EXPRESSIONS
        indicators = make_analyzer().confidence_indicators(e)
        self.assertAlmostEqual(indicators.nervousness, e["fearful"] + 0.7 * e["surprised"])
        self.assertAlmostEqual(indicators.anxiety, e["sad"] + e["fearful"] + 0.5 * e["dull"])
        self.assertAlmostEqual(
            indicators.composure,
            e["neutral"] + e["happy"] + e["confident"] + 0.5 * e["thoughtful"] - 0.3 * e["dull"],
        )
        self.assertAlmostEqual(
            indicators.alertness,
            e["happy"] + 0.5 * e["surprised"] + e["focused"] + 0.8 * e["confident"] - 0.6 * e["dull"],
        )

    def test_professionalism_metrics(self):
        e = self.EXPRESSIONS
        metrics = make_analyzer().professionalism_metrics(e)
        self.assertAlmostEqual(
            metrics.appropriate_expressions,
            1.0 * e["neutral"] + 0.8 * e["happy"] + 1.2 * e["confident"] + 1.1 * e["focused"]
            + 0.9 * e["thoughtful"] + 0.3 * e["surprised"] - 0.5 * e["dull"],
        )
        self.assertAlmostEqual(
            metrics.facial_stability,
            1 - (e["angry"] + e["disgusted"] + e["fearful"] + 0.3 * e["dull"]),
        )
        self.assertAlmostEqual(
            metrics.attentiveness,
            0.7 * e["neutral"] + 0.9 * e["happy"] + 1.0 * e["confident"] + 1.2 * e["focused"]
            + 0.8 * e["thoughtful"] + min(e["surprised"], 0.3) - 0.8 * e["dull"],
        )

    def test_attentiveness_caps_surprise(self):
        metrics = make_analyzer().professionalism_metrics({"surprise": 0.9})
        self.assertAlmostEqual(metrics.attentiveness, 0.3)

    def test_missing_expressions_give_neutral_indicators(self):
        result = make_analyzer().analyze(face_sample())
        self.assertEqual(result.dominant_emotion, "neutral")
        self.assertEqual(result.confidence_indicators.composure, 0)
        self.assertEqual(result.professionalism_metrics.facial_stability, 1)


if __name__ == "__main__":
    unittest.main()
