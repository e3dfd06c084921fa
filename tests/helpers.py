"""Capability presets shared by the test modules."""

from polygraph.shared.schemas import Capabilities

DESKTOP = Capabilities()
DESKTOP_MIC = Capabilities(has_microphone=True)
DESKTOP_CAMERA = Capabilities(has_camera=True)
MOBILE = Capabilities(has_microphone=True, has_touch=True, is_mobile=True)
FULL = Capabilities(has_microphone=True, has_camera=True, has_touch=True, is_mobile=True)
