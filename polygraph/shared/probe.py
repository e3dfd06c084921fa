"""
Capability probing.

Answers one question once per run: which input modalities does this device
have? The answer is a frozen Capabilities value injected into the session;
nothing re-probes mid-session.
"""

import logging
import re
from abc import ABC, abstractmethod

from pydantic import BaseModel

from polygraph.shared.adapter import DEVICE_KIND_ADAPTER
from polygraph.shared.errors import DeviceUnavailable, EnumerationFailure, MediaError
from polygraph.shared.schemas import Capabilities

logger = logging.getLogger("polygraph-probe")

MOBILE_UA_PATTERN = re.compile(r"android|webos|iphone|ipad|ipod|blackberry|iemobile|opera mini", re.IGNORECASE)
MOBILE_MAX_SCREEN_WIDTH = 768


class PlatformInfo(BaseModel):
    """Host hints the UI layer can see (user agent, touch support, screen)."""
    user_agent: str = ""
    has_touch_events: bool = False
    max_touch_points: int = 0
    screen_width: int = 1920
    has_orientation: bool = False

    def is_mobile(self) -> bool:
        return bool(
            MOBILE_UA_PATTERN.search(self.user_agent)
            or self.has_touch_events
            or self.max_touch_points > 0
            or self.screen_width <= MOBILE_MAX_SCREEN_WIDTH
            or self.has_orientation
        )

    def has_touch(self) -> bool:
        return self.has_touch_events or self.max_touch_points > 0 or self.is_mobile()


class CapabilityProvider(ABC):

    @abstractmethod
    async def get_capabilities(self) -> Capabilities:
        ...


class StaticCapabilityProvider(CapabilityProvider):

    def __init__(self, capabilities: Capabilities):
        self.capabilities = capabilities

    async def get_capabilities(self):
        return self.capabilities


class DeviceCapabilityProvider(CapabilityProvider):
    """Probes media devices + platform hints on first call, then caches."""

    def __init__(self, media, platform: PlatformInfo = None):
        self.media = media
        self.platform = platform or PlatformInfo()
        self._cached = None

    async def get_capabilities(self):
        if self._cached is None:
            self._cached = await probe_capabilities(self.media, self.platform)
        return self._cached


async def _test_open(opener, name):
    """
    Open and immediately release a track. Only 'not found' clears the flag;
    a denied prompt still means the hardware exists.
    """
    try:
        track = await opener()
        track.stop()
        return True
    except DeviceUnavailable:
        logger.warning(f"⚠️ {name} listed but not found on open")
        return False
    except MediaError as e:
        logger.info(f"{name} access error: {type(e).__name__}")
        return True


async def probe_capabilities(media, platform: PlatformInfo) -> Capabilities:
    is_mobile = platform.is_mobile()
    has_touch = platform.has_touch()

    has_microphone = False
    has_camera = False
    try:
        devices = await media.enumerate_devices()
        # 'default' is an alias entry, not a device
        kinds = {DEVICE_KIND_ADAPTER.get(d.kind) for d in devices if d.device_id != "default"}
        has_microphone = "microphone" in kinds
        has_camera = "camera" in kinds

        if has_microphone:
            has_microphone = await _test_open(media.open_microphone, "Microphone")
        if has_camera:
            has_camera = await _test_open(media.open_camera, "Camera")
    except EnumerationFailure as e:
        logger.warning(f"⚠️ Device enumeration failed, assuming no devices: {e}")
        has_microphone = False
        has_camera = False

    caps = Capabilities(
        has_microphone=has_microphone,
        has_camera=has_camera,
        has_touch=has_touch,
        is_mobile=is_mobile,
    )
    logger.info(
        f"📊 Capabilities | mic: {caps.has_microphone} | camera: {caps.has_camera} "
        f"| touch: {caps.has_touch} | mobile: {caps.is_mobile}")
    return caps
