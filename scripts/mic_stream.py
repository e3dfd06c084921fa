import asyncio
import logging
import sys

import numpy as np
import pyaudio

from polygraph.audio_worker.audio_processor import FFT_SIZE, to_byte_frequency_data
from polygraph.config import LOG_FORMAT, LOG_LEVEL
from polygraph.orchestrator.main import run_polygraph
from polygraph.shared.errors import DeviceUnavailable, EnumerationFailure
from polygraph.shared.media import MediaDeviceInfo, MediaDevices, MicrophoneStream

# Configuration
SAMPLE_RATE = 16000
CHUNK_SIZE = 1024

logger = logging.getLogger("polygraph-mic")


class PyAudioMicrophone(MicrophoneStream):
    """Keeps the latest chunk from the PortAudio callback thread."""

    def __init__(self, p, device_index=None):
        super().__init__()
        self._latest = np.zeros(FFT_SIZE, dtype=np.float32)
        self._stream = p.open(
            format=pyaudio.paFloat32,
            channels=1,
            rate=SAMPLE_RATE,
            input=True,
            input_device_index=device_index,
            frames_per_buffer=CHUNK_SIZE,
            stream_callback=self._on_audio,
        )

    def _on_audio(self, in_data, frame_count, time_info, status):
        # single reference swap, safe to read from the loop thread
        self._latest = np.frombuffer(in_data, dtype=np.float32)
        return (None, pyaudio.paContinue)

    def read_frequency_data(self):
        return to_byte_frequency_data(self._latest)

    def stop(self):
        if self.live:
            self._stream.stop_stream()
            self._stream.close()
        super().stop()


class PyAudioMediaDevices(MediaDevices):
    """Host microphones via PortAudio. No camera support."""

    def __init__(self, device_index=None):
        self.p = pyaudio.PyAudio()
        self.device_index = device_index

    async def enumerate_devices(self):
        try:
            info = self.p.get_host_api_info_by_index(0)
        except OSError as e:
            raise EnumerationFailure(str(e))

        devices = []
        for i in range(info.get('deviceCount', 0)):
            dev = self.p.get_device_info_by_host_api_device_index(0, i)
            if dev.get('maxInputChannels', 0) > 0:
                devices.append(MediaDeviceInfo(kind="audioinput", device_id=str(i), label=dev.get('name', "")))
        return devices

    async def open_microphone(self):
        try:
            return PyAudioMicrophone(self.p, self.device_index)
        except OSError as e:
            raise DeviceUnavailable(f"could not open input device: {e}")

    async def open_camera(self):
        raise DeviceUnavailable("camera capture not supported from the terminal")

    def close(self):
        self.p.terminate()


def main():
    logging.basicConfig(level=LOG_LEVEL, format=LOG_FORMAT)
    device_index = int(sys.argv[1]) if len(sys.argv) > 1 else None

    media = PyAudioMediaDevices(device_index)
    print("🎙️  Speak your statement after the prompt, then pause for 2 seconds.")
    try:
        result = asyncio.run(run_polygraph(media=media))
    except KeyboardInterrupt:
        print("\n🛑 Stopped.")
        return
    finally:
        media.close()

    if result is not None:
        print(f"\n{result.truth_probability}%  {result.analysis.value}")
        print(f"Confidence Level: {result.confidence}%")


if __name__ == "__main__":
    main()
