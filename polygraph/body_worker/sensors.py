import math
import random
from collections import deque
from typing import List, Optional

from polygraph.shared.numeric import clamp, round_half_up
from polygraph.shared.sensor_interface import SensorInterface

# --- Pulse ---
PULSE_BASE = 75
PULSE_SPREAD = 10
PULSE_ANALYZING_BONUS = 8

# --- Waveform ---
WAVE_BASE = 40
WAVE_AMPLITUDE = 20
WAVE_MIN = 10
WAVE_MAX = 90
WAVE_VARIATION_VOICE = 40
WAVE_VARIATION_QUIET = 20

# --- Touch ---
TOUCH_FALLBACK = (35, 60)      # synthesized when the screen reports no force
TOUCH_MIN = 15
TOUCH_MAX = 85
TOUCH_RELEASE_DECAY = 10


class PulseSensor(SensorInterface):
    """Heart rate in BPM. Runs hotter while the analysis is in progress."""
    interval = 1.0

    def __init__(self, rng=None, interval=None):
        super().__init__(rng, interval)
        self.analyzing = False

    def sample(self, timestamp: float) -> float:
        bonus = self.uniform(0, PULSE_ANALYZING_BONUS) if self.analyzing else 0
        return round_half_up(PULSE_BASE + self.uniform(0, PULSE_SPREAD) + bonus)


class PulseWaveformSensor(SensorInterface):
    """
    Sliding window of waveform heights for the pulse trace.
    The window is FIFO: once it holds `window` points the oldest drops off.
    """
    interval = 0.2

    def __init__(self, rng=None, interval=None, window=20):
        super().__init__(rng, interval)
        self.voice_detected = False
        self._points = deque(maxlen=window)

    @property
    def points(self) -> List[float]:
        return list(self._points)

    def clear(self):
        self._points.clear()

    def sample(self, timestamp: float) -> float:
        base = WAVE_BASE + math.sin(timestamp) * WAVE_AMPLITUDE
        spread = WAVE_VARIATION_VOICE if self.voice_detected else WAVE_VARIATION_QUIET
        point = clamp(base + self.uniform(0, spread), WAVE_MIN, WAVE_MAX)
        self._points.append(point)
        return point


class TouchPressureSensor:
    """
    Event driven, not timer driven: the session feeds touch start/end.
    The delayed reset to zero after release is scheduled by the session.
    """

    def __init__(self, rng=None):
        self.rng = rng or random.Random()

    def _uniform(self, low, high):
        return low + self.rng.random() * (high - low)

    def press(self, raw_force: Optional[float] = None) -> int:
        # 1. Real force if the screen exposes it, otherwise synthesize
        if raw_force is not None and raw_force > 0:
            normalized = min(raw_force * 100, 100)
        else:
            normalized = self._uniform(*TOUCH_FALLBACK)

        # 2. Clamp into the believable band
        return round_half_up(clamp(normalized, TOUCH_MIN, TOUCH_MAX))

    def release(self, current: float) -> float:
        """One immediate decay step on touch end."""
        return max(0, current - self._uniform(0, TOUCH_RELEASE_DECAY))
