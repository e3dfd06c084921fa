import logging
import random

from polygraph.audio_worker.verbal_signals import detect_high_confidence_phrase, statement_seed
from polygraph.shared.numeric import clamp, round_half_up
from polygraph.shared.schemas import (
    AnalysisResult,
    Capabilities,
    DeviceInfo,
    SensorSnapshot,
    Verdict,
)

logger = logging.getLogger("polygraph-brain")

# Score band
BASE_SCORE = 82
SEED_SPREAD = 15          # base lands in 75..89
SEED_OFFSET = 7
MIN_SCORE = 25
MAX_SCORE = 94

TRUTH_THRESHOLD = 78
INCONCLUSIVE_THRESHOLD = 50

BASE_CONFIDENCE = 87
MAX_CONFIDENCE_BONUS = 10
PULSE_RESTING = 75


class DeceptionModel:
    def __init__(self, rng: random.Random = None):
        # Penalty per unit of reading. "active" weights apply when the
        # modality is really being sensed, "passive" when it's simulated.
        self.signal_weights = {
            "voice_active": 0.3,
            "voice_passive": 0.1,
            "touch_active": 0.15,
            "touch_passive": 0.05,
            "pulse_elevation": 0.5,
            "facial_stress": 0.2,
        }

        # Flat bonus just for having the modality switched on
        self.sensor_bonus_weights = {
            "microphone": 2,
            "touch": 1,
            "mobile": 1,
            "facial": 3,
        }

        # Only used on the flattery path (simulated touch reading)
        self.rng = rng or random.Random()

    def sensor_bonus(self, capabilities: Capabilities, facial_active: bool) -> int:
        w = self.sensor_bonus_weights
        return (
            (w["microphone"] if capabilities.has_microphone else 0)
            + (w["touch"] if capabilities.has_touch else 0)
            + (w["mobile"] if capabilities.is_mobile else 0)
            + (w["facial"] if facial_active else 0)
        )

    @staticmethod
    def sensors_used(capabilities: Capabilities, facial_active: bool) -> int:
        return (
            int(capabilities.has_microphone)
            + int(capabilities.has_touch)
            + int(capabilities.is_mobile)
            + int(facial_active)
        )

    @staticmethod
    def verdict_for(truth_probability: int) -> Verdict:
        if truth_probability >= TRUTH_THRESHOLD:
            return Verdict.TRUTH_DETECTED
        if truth_probability >= INCONCLUSIVE_THRESHOLD:
            return Verdict.INCONCLUSIVE
        return Verdict.DECEPTION_DETECTED

    def analyze(self, statement: str, snapshot: SensorSnapshot, capabilities: Capabilities,
                voice_detected: bool = False, facial_active: bool = False) -> AnalysisResult:
        """
        Scores one statement against a frozen sensor snapshot.
        Identical inputs give identical results (except the simulated touch
        reading on the flattery path, which comes from self.rng).
        """
        device_info = DeviceInfo(
            sensors_used=self.sensors_used(capabilities, facial_active),
            voice_detected=voice_detected,
            facial_analysis_used=facial_active,
        )

        # No microphone, no voice reading: the -1 placeholder is never scored
        if not capabilities.has_microphone:
            snapshot = snapshot.model_copy(update={"voice_level": 0.0})

        # 1. Flattery short-circuit
        if detect_high_confidence_phrase(statement):
            return self._high_confidence_result(statement, snapshot, capabilities, device_info)

        w = self.signal_weights

        # 2. Deterministic seed from the text
        seed = statement_seed(statement)

        # 3. Base score
        truth_score = BASE_SCORE + (seed % SEED_SPREAD) - SEED_OFFSET

        # 4. Voice (a -2 denied sentinel ends up *raising* the score)
        if capabilities.has_microphone and voice_detected:
            truth_score -= snapshot.voice_level * w["voice_active"]
        else:
            truth_score -= snapshot.voice_level * w["voice_passive"]

        # 5. Touch pressure
        if capabilities.touch_capable:
            truth_score -= snapshot.touch_pressure * w["touch_active"]
        else:
            truth_score -= snapshot.touch_pressure * w["touch_passive"]

        # 6. Pulse above resting
        truth_score -= max(0, snapshot.pulse_rate - PULSE_RESTING) * w["pulse_elevation"]

        # 7. Face
        if facial_active:
            truth_score -= snapshot.facial_stress * w["facial_stress"]

        # 8. Seeded jitter, -5..+5
        truth_score += ((seed * 7) % 11) - 5

        # 9. Modality bonus
        bonus = self.sensor_bonus(capabilities, facial_active)
        truth_score += bonus

        # 10. Round + clamp
        truth_probability = clamp(round_half_up(truth_score), MIN_SCORE, MAX_SCORE)

        # 11/12. Verdict + confidence (confidence is not clamped)
        verdict = self.verdict_for(truth_probability)
        confidence = round_half_up(BASE_CONFIDENCE + (seed % 8) + min(bonus, MAX_CONFIDENCE_BONUS))

        logger.info(
            f"🧠 Scored statement | seed: {seed} | truth: {truth_probability}% "
            f"| confidence: {confidence}% | {verdict.value}")

        # 13. Record with the scored readings
        return AnalysisResult(
            statement=statement,
            truth_probability=truth_probability,
            confidence=confidence,
            sensor_readings=snapshot,
            analysis=verdict,
            device_info=device_info,
        )

    def _high_confidence_result(self, statement, snapshot, capabilities, device_info):
        touch = snapshot.touch_pressure
        if not capabilities.touch_capable:
            touch = self.rng.random() * 30

        logger.info("🧠 High-confidence phrase detected, skipping scoring")
        return AnalysisResult(
            statement=statement,
            truth_probability=100,
            confidence=99,
            sensor_readings=snapshot.model_copy(update={"touch_pressure": touch}),
            analysis=Verdict.TRUTH_DETECTED,
            device_info=device_info,
        )
