"""
Tests for settings (env overrides + validation) and the display adapters.
"""

import pytest
from pydantic import ValidationError

from polygraph.config import PolygraphSettings
from polygraph.shared.adapter import SETUP_ADAPTER, active_sensor_count, describe_setup
from polygraph.shared.schemas import Capabilities

from tests.helpers import DESKTOP, FULL, MOBILE


class TestSettings:

    def test_defaults(self):
        settings = PolygraphSettings()
        assert settings.pulse_interval == 1.0
        assert settings.waveform_interval == 0.2
        assert settings.waveform_window == 20
        assert settings.silence_timeout == 2.0
        assert settings.recording_timeout == 10.0
        assert settings.analysis_delay == 6.0
        assert settings.publish_delay == 1.0

    def test_env_override(self, monkeypatch):
        monkeypatch.setenv("POLYGRAPH_ANALYSIS_DELAY", "2")
        monkeypatch.setenv("POLYGRAPH_WAVEFORM_WINDOW", "5")
        settings = PolygraphSettings()
        assert settings.analysis_delay == 2.0
        assert settings.waveform_window == 5

    def test_blank_env_uses_default(self, monkeypatch):
        monkeypatch.setenv("POLYGRAPH_SILENCE_TIMEOUT", "  ")
        assert PolygraphSettings().silence_timeout == 2.0

    def test_explicit_value_wins(self, monkeypatch):
        monkeypatch.setenv("POLYGRAPH_PUBLISH_DELAY", "3")
        assert PolygraphSettings(publish_delay=0.5).publish_delay == 0.5

    @pytest.mark.parametrize("field,value", [
        ("pulse_interval", 0),
        ("frame_interval", -0.1),
        ("analysis_delay", -1),
        ("waveform_window", 0),
    ])
    def test_rejects_bad_values(self, field, value):
        with pytest.raises(ValidationError):
            PolygraphSettings(**{field: value})

    def test_rejects_bad_env(self, monkeypatch):
        monkeypatch.setenv("POLYGRAPH_PROGRESS_INTERVAL", "0")
        with pytest.raises(ValidationError):
            PolygraphSettings()

    def test_zero_delay_allowed(self):
        assert PolygraphSettings(publish_delay=0).publish_delay == 0

    @pytest.mark.asyncio
    async def test_window_reaches_session(self, clock, make_session, monkeypatch):
        monkeypatch.setenv("POLYGRAPH_WAVEFORM_WINDOW", "5")
        session = make_session()
        session.select_input_method("text")
        session.set_statement("abc")
        await session.start_test()
        await clock.advance(3)
        assert len(session.view().waveform) == 5


class TestDescribeSetup:

    @pytest.mark.parametrize("caps,expected", [
        (MOBILE, SETUP_ADAPTER["optimal"]),
        (Capabilities(is_mobile=True, has_touch=True), SETUP_ADAPTER["good"]),
        (Capabilities(is_mobile=True, has_microphone=True), SETUP_ADAPTER["good"]),
        (DESKTOP, SETUP_ADAPTER["limited"]),
        (Capabilities(has_camera=True), SETUP_ADAPTER["limited"]),
        (Capabilities(has_microphone=True), "Partial Setup: 2/3 sensors active"),
        (Capabilities(has_microphone=True, has_touch=True), "Partial Setup: 3/3 sensors active"),
        (Capabilities(is_mobile=True), "Partial Setup: 1/3 sensors active"),
    ])
    def test_describe_setup(self, caps, expected):
        assert describe_setup(caps) == expected

    @pytest.mark.parametrize("caps,facial,expected", [
        (DESKTOP, False, (1, 3)),
        (MOBILE, False, (3, 3)),
        (FULL, True, (4, 4)),
    ])
    def test_active_sensor_count(self, caps, facial, expected):
        assert active_sensor_count(caps, facial) == expected
