"""
Media device interface (microphone / camera capture).

Capture acquisition is async because a real backend waits on a permission
prompt. Failures are raised as the distinct MediaError subclasses in
shared.errors; callers decide how to degrade.
"""

import logging
from abc import ABC, abstractmethod
from typing import Callable, List, Optional

import numpy as np
from pydantic import BaseModel

from polygraph.shared.errors import DeviceUnavailable, EnumerationFailure, PermissionDenied

logger = logging.getLogger("polygraph-media")

FREQUENCY_BIN_COUNT = 128  # fftSize 256 / 2


class MediaDeviceInfo(BaseModel):
    kind: str  # 'audioinput' | 'videoinput' | 'audiooutput'
    device_id: str
    label: str = ""


class MediaTrack(ABC):
    """A live capture handle. stop() must release the underlying device."""

    def __init__(self):
        self.live = True

    def stop(self):
        self.live = False


class MicrophoneStream(MediaTrack):

    @abstractmethod
    def read_frequency_data(self) -> np.ndarray:
        """Latest frequency bins as uint8 (0..255), like an analyser node."""


class CameraStream(MediaTrack):
    """Facial stress is synthetic; only the open handle matters."""


class MediaDevices(ABC):

    @abstractmethod
    async def enumerate_devices(self) -> List[MediaDeviceInfo]:
        ...

    @abstractmethod
    async def open_microphone(self) -> MicrophoneStream:
        ...

    @abstractmethod
    async def open_camera(self) -> CameraStream:
        ...


# --- SIMULATED BACKEND ---

GRANTED = "granted"
DENIED = "denied"
MISSING = "missing"


class SimulatedMicrophone(MicrophoneStream):

    def __init__(self, frames: Callable[[float], np.ndarray], clock: Callable[[], float]):
        super().__init__()
        self._frames = frames
        self._clock = clock
        self._opened_at = clock()
        self.reads = 0

    def read_frequency_data(self) -> np.ndarray:
        if not self.live:
            raise RuntimeError("read from a stopped microphone")
        self.reads += 1
        return self._frames(self._clock() - self._opened_at)


class SimulatedCamera(CameraStream):
    pass


def silence(_elapsed=0.0) -> np.ndarray:
    return np.zeros(FREQUENCY_BIN_COUNT, dtype=np.uint8)


def constant_tone(level: int):
    """Frame source that returns every bin at the same byte level."""
    frame = np.full(FREQUENCY_BIN_COUNT, level, dtype=np.uint8)
    return lambda _elapsed: frame.copy()


def speech_burst(level: int, start: float, duration: float):
    """Tone at `level` between start and start+duration seconds, silence otherwise."""
    tone = constant_tone(level)

    def frames(elapsed):
        if start <= elapsed < start + duration:
            return tone(elapsed)
        return silence()
    return frames


class SimulatedMediaDevices(MediaDevices):
    """
    In-memory devices. Each of microphone/camera is 'granted', 'denied' or
    'missing'. Every opened track is kept so callers can verify release.
    """

    def __init__(self, microphone=GRANTED, camera=MISSING, frames=None,
                 clock: Optional[Callable[[], float]] = None, fail_enumeration=False):
        self.microphone = microphone
        self.camera = camera
        self.frames = frames or silence
        self.clock = clock or (lambda: 0.0)
        self.fail_enumeration = fail_enumeration
        self.opened: List[MediaTrack] = []

    async def enumerate_devices(self):
        if self.fail_enumeration:
            raise EnumerationFailure("device listing unavailable")
        devices = [MediaDeviceInfo(kind="audiooutput", device_id="default")]
        if self.microphone != MISSING:
            devices.append(MediaDeviceInfo(kind="audioinput", device_id="sim-mic-0", label="Simulated Mic"))
        if self.camera != MISSING:
            devices.append(MediaDeviceInfo(kind="videoinput", device_id="sim-cam-0", label="Simulated Camera"))
        return devices

    async def open_microphone(self):
        self._check(self.microphone, "microphone")
        track = SimulatedMicrophone(self.frames, self.clock)
        self.opened.append(track)
        return track

    async def open_camera(self):
        self._check(self.camera, "camera")
        track = SimulatedCamera()
        self.opened.append(track)
        return track

    @staticmethod
    def _check(status, name):
        if status == MISSING:
            raise DeviceUnavailable(f"no {name} found")
        if status == DENIED:
            raise PermissionDenied(f"{name} permission denied")

    @property
    def live_tracks(self):
        return [t for t in self.opened if t.live]
