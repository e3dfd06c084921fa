from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, ConfigDict

# Live readings go back to this after every session
BASELINE_PULSE = 80.0

# Sentinel voice levels
VOICE_SIMULATED = -1   # no microphone, simulated
VOICE_DENIED = -2      # microphone permission denied


class SessionState(str, Enum):
    IDLE = "idle"
    RECORDING = "recording"
    ANALYZING = "analyzing"
    RESULT = "result"


class InputMethod(str, Enum):
    VOICE = "voice"
    TEXT = "text"


class Verdict(str, Enum):
    TRUTH_DETECTED = "TRUTH DETECTED"
    INCONCLUSIVE = "INCONCLUSIVE"
    DECEPTION_DETECTED = "DECEPTION DETECTED"


class Capabilities(BaseModel):
    model_config = ConfigDict(frozen=True)

    has_microphone: bool = False
    has_camera: bool = False
    has_touch: bool = False
    is_mobile: bool = False

    @property
    def touch_capable(self) -> bool:
        """Touch pressure is only 'real' on touch screens and mobiles."""
        return self.has_touch or self.is_mobile


class SensorSnapshot(BaseModel):
    """Frozen copy of the live readings, handed to the deception model."""
    model_config = ConfigDict(frozen=True)

    voice_level: float = 0.0
    touch_pressure: float = 0.0
    pulse_rate: float = BASELINE_PULSE
    facial_stress: float = 0.0


class SensorReadings(BaseModel):
    """Live readings. Mutated by the simulators while a session runs."""
    voice_level: float = 0.0
    touch_pressure: float = 0.0
    pulse_rate: float = BASELINE_PULSE
    facial_stress: float = 0.0

    def freeze(self) -> SensorSnapshot:
        return SensorSnapshot(**self.model_dump())

    def reset(self):
        self.voice_level = 0.0
        self.touch_pressure = 0.0
        self.pulse_rate = BASELINE_PULSE
        self.facial_stress = 0.0


class DeviceInfo(BaseModel):
    model_config = ConfigDict(frozen=True)

    sensors_used: int
    voice_detected: bool
    facial_analysis_used: bool


class AnalysisResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    statement: str
    truth_probability: int
    confidence: int
    sensor_readings: SensorSnapshot
    analysis: Verdict
    device_info: DeviceInfo

    @property
    def tone(self) -> str:
        """Display colour band (75/45 split, not the 78/50 verdict split)."""
        if self.truth_probability > 75:
            return "green"
        if self.truth_probability > 45:
            return "yellow"
        return "red"


class SessionView(BaseModel):
    """Everything a renderer needs for one frame."""
    model_config = ConfigDict(frozen=True)

    state: SessionState
    input_method: InputMethod
    sensors: SensorSnapshot
    waveform: List[float]
    recording_status: str
    progress: float
    status_message: str
    voice_detected: bool
    voice_input_complete: bool
    use_facial_recognition: bool
    facial_analysis_active: bool
    sensors_active: int
    sensors_total: int
    result: Optional[AnalysisResult] = None
