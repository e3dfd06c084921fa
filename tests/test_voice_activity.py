"""
Tests for the voice activity estimator and the PCM -> byte-bin helper.
"""

import numpy as np
import pytest

from polygraph.audio_worker.audio_processor import (
    FFT_SIZE,
    VoiceActivityEstimator,
    combined_level,
    level_curve,
    to_byte_frequency_data,
)
from polygraph.shared.media import FREQUENCY_BIN_COUNT


def bins(level):
    return np.full(FREQUENCY_BIN_COUNT, level, dtype=np.uint8)


@pytest.fixture
def estimator():
    vad = VoiceActivityEstimator()
    vad.start()
    return vad


# =============================================================================
# Level math
# =============================================================================

class TestLevelMath:

    def test_combined_level_full_scale(self):
        assert combined_level(bins(255)) == pytest.approx(1.0)

    def test_combined_level_weights_mean_and_peak(self):
        data = np.zeros(FREQUENCY_BIN_COUNT, dtype=np.uint8)
        data[0] = 255
        expected = (255 / FREQUENCY_BIN_COUNT / 255) * 0.7 + 1.0 * 0.3
        assert combined_level(data) == pytest.approx(expected)

    def test_combined_level_empty(self):
        assert combined_level([]) == 0.0

    @pytest.mark.parametrize("combined,expected", [
        (0.0, 40),
        (0.05, 47.5),
        (0.1, 55),
        (0.2, 62.5),
        (0.3, 70),
        (0.5, 75),
        (0.7, 80),
        (1.0, 80),
    ])
    def test_level_curve(self, combined, expected):
        assert level_curve(combined) == pytest.approx(expected)


# =============================================================================
# Frame processing
# =============================================================================

class TestVoiceActivityEstimator:

    def test_starts_quiet(self, estimator):
        assert estimator.level == 0
        assert not estimator.detected
        assert not estimator.complete

    def test_loud_frames_smooth_upwards(self, estimator):
        """target 80: 0*0.7 + 80*0.3 = 24, then 24*0.7 + 24 = 40.8 -> 41."""
        assert estimator.process_frame(bins(255)) is True
        assert estimator.level == 24
        estimator.process_frame(bins(255))
        assert estimator.level == 41
        assert estimator.detected

    def test_threshold(self, estimator):
        """5/255 = 0.0196 stays under 0.02; 6/255 = 0.0235 does not."""
        assert estimator.process_frame(bins(5)) is False
        assert not estimator.detected
        assert estimator.process_frame(bins(6)) is True
        assert estimator.detected

    def test_silence_decays_level(self, estimator):
        estimator.process_frame(bins(255))
        estimator.process_frame(bins(255))
        assert estimator.process_frame(bins(0)) is False
        assert estimator.level == 36

    def test_level_never_negative(self, estimator):
        estimator.process_frame(bins(255))
        for _ in range(20):
            estimator.process_frame(bins(0))
        assert estimator.level == 0

    def test_detected_sticks_after_silence(self, estimator):
        estimator.process_frame(bins(200))
        for _ in range(10):
            estimator.process_frame(bins(0))
        assert estimator.detected

    def test_level_bounded_under_sustained_voice(self, estimator):
        for _ in range(200):
            estimator.process_frame(bins(255))
        assert 0 <= estimator.level <= 80

    def test_start_clears_everything(self, estimator):
        estimator.process_frame(bins(255))
        estimator.mark_complete()
        estimator.start()
        assert estimator.level == 0
        assert estimator.frames == 0
        assert not estimator.detected
        assert not estimator.complete


# =============================================================================
# Raw PCM conversion
# =============================================================================

class TestByteFrequencyData:

    def test_shape_and_dtype(self):
        data = to_byte_frequency_data(np.zeros(FFT_SIZE))
        assert data.shape == (FFT_SIZE // 2,)
        assert data.dtype == np.uint8

    def test_silence_maps_to_zero(self):
        assert to_byte_frequency_data(np.zeros(1024)).max() == 0

    def test_loud_tone_saturates_its_bin(self):
        t = np.arange(FFT_SIZE)
        tone = np.sin(2 * np.pi * 16 * t / FFT_SIZE)
        data = to_byte_frequency_data(tone)
        assert data[16] == 255
        assert data[64] < 255

    def test_short_chunk_is_padded(self):
        data = to_byte_frequency_data(np.ones(10) * 0.5)
        assert data.shape == (FFT_SIZE // 2,)

    def test_tone_counts_as_voice(self, estimator):
        t = np.arange(FFT_SIZE)
        tone = 0.5 * np.sin(2 * np.pi * 16 * t / FFT_SIZE)
        assert estimator.process_frame(to_byte_frequency_data(tone)) is True
