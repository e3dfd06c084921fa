import os
from pydantic import BaseModel, ConfigDict, Field, field_validator

# --- CONFIG ---
# Every timing below is in seconds. Override with POLYGRAPH_<FIELD> env vars,
# e.g. POLYGRAPH_ANALYSIS_DELAY=2 for a quicker demo.
ENV_PREFIX = "POLYGRAPH_"
LOG_LEVEL = os.getenv("POLYGRAPH_LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(message)s"


def _env(name, default):
    raw = os.getenv(ENV_PREFIX + name.upper())
    if raw is None or not raw.strip():
        return default
    return type(default)(raw)


class PolygraphSettings(BaseModel):
    # env values arrive through default_factory, so validate them too
    model_config = ConfigDict(validate_default=True)

    # Simulators
    pulse_interval: float = Field(default_factory=lambda: _env("pulse_interval", 1.0))
    waveform_interval: float = Field(default_factory=lambda: _env("waveform_interval", 0.2))
    waveform_window: int = Field(default_factory=lambda: _env("waveform_window", 20))
    touch_release_delay: float = Field(default_factory=lambda: _env("touch_release_delay", 0.2))
    facial_interval: float = Field(default_factory=lambda: _env("facial_interval", 0.5))

    # Recording
    frame_interval: float = Field(default_factory=lambda: _env("frame_interval", 1 / 60))
    silence_timeout: float = Field(default_factory=lambda: _env("silence_timeout", 2.0))
    recording_timeout: float = Field(default_factory=lambda: _env("recording_timeout", 10.0))
    mic_denied_delay: float = Field(default_factory=lambda: _env("mic_denied_delay", 1.0))

    # Analysis
    progress_interval: float = Field(default_factory=lambda: _env("progress_interval", 0.4))
    analysis_delay: float = Field(default_factory=lambda: _env("analysis_delay", 6.0))
    publish_delay: float = Field(default_factory=lambda: _env("publish_delay", 1.0))

    @field_validator(
        'pulse_interval', 'waveform_interval', 'facial_interval',
        'frame_interval', 'progress_interval')
    def validate_interval(cls, v):
        # Zero would spin a repeating timer forever
        if v <= 0:
            raise ValueError(f"Repeating interval must be positive, got {v}")
        return v

    @field_validator(
        'touch_release_delay', 'silence_timeout', 'recording_timeout',
        'mic_denied_delay', 'analysis_delay', 'publish_delay')
    def validate_delay(cls, v):
        if v < 0:
            raise ValueError(f"Delay cannot be negative, got {v}")
        return v

    @field_validator('waveform_window')
    def validate_window(cls, v):
        if v < 1:
            raise ValueError("Waveform window needs at least one point")
        return v
