import numpy as np
import logging

from polygraph.shared.numeric import round_half_up

logger = logging.getLogger("polygraph-audio")

# --- Detection thresholds ---
VOICE_THRESHOLD = 0.02     # combined level above this counts as voice
AVG_WEIGHT = 0.7
PEAK_WEIGHT = 0.3
SMOOTHING = 0.7            # weight kept from the previous level
SILENCE_DECAY = 5          # level drop per quiet frame

# Analyser-node defaults (dB range mapped onto 0..255)
FFT_SIZE = 256
MIN_DECIBELS = -100.0
MAX_DECIBELS = -30.0


def combined_level(frequency_data) -> float:
    """0.7 * normalized mean + 0.3 * normalized peak of the byte bins."""
    data = np.asarray(frequency_data, dtype=np.float64)
    if data.size == 0:
        return 0.0
    norm_avg = data.mean() / 255
    norm_max = data.max() / 255
    return norm_avg * AVG_WEIGHT + norm_max * PEAK_WEIGHT


def level_curve(combined: float) -> float:
    """Three-segment piecewise-linear map: quiet speech ~40, loud ~80."""
    if combined < 0.1:
        return 40 + (combined / 0.1) * 15
    if combined < 0.3:
        return 55 + ((combined - 0.1) / 0.2) * 15
    return 70 + min(((combined - 0.3) / 0.4) * 10, 10)


def to_byte_frequency_data(samples, fft_size=FFT_SIZE):
    """
    Raw float PCM -> uint8 frequency bins, the same shape an analyser node
    gives (fft_size / 2 bins). Lets a real microphone drive the estimator.
    """
    frame = np.zeros(fft_size, dtype=np.float64)
    chunk = np.asarray(samples, dtype=np.float64)[-fft_size:]
    frame[fft_size - chunk.size:] = chunk

    windowed = frame * np.blackman(fft_size)
    magnitude = np.abs(np.fft.rfft(windowed))[:fft_size // 2] / fft_size

    with np.errstate(divide="ignore"):
        decibels = 20 * np.log10(magnitude)
    scaled = (decibels - MIN_DECIBELS) / (MAX_DECIBELS - MIN_DECIBELS) * 255
    return np.clip(np.nan_to_num(scaled, neginf=0.0), 0, 255).astype(np.uint8)


class VoiceActivityEstimator:
    """
    Frame-by-frame voice level tracking.
    The silence / timeout timers belong to the session; this class only
    answers "was there voice in this frame?" and keeps the smoothed level.
    """

    def __init__(self):
        self.level = 0
        self.detected = False        # any voice since start()
        self.complete = False        # trailing silence observed
        self.frames = 0

    def start(self):
        self.level = 0
        self.detected = False
        self.complete = False
        self.frames = 0

    def process_frame(self, frequency_data) -> bool:
        """
        Updates the smoothed level. Returns True if this frame had voice
        (caller restarts its silence timer).
        """
        self.frames += 1
        combined = combined_level(frequency_data)

        if combined > VOICE_THRESHOLD:
            if not self.detected:
                logger.info(f"🎙️ Voice detected (combined={combined:.3f})")
            self.detected = True
            target = level_curve(combined)
            self.level = round_half_up(self.level * SMOOTHING + target * (1 - SMOOTHING))
            return True

        self.level = max(0, self.level - SILENCE_DECAY)
        return False

    def mark_complete(self):
        self.complete = True
