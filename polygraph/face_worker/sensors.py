import math
import logging

from polygraph.shared.errors import MediaError
from polygraph.shared.numeric import clamp, round_half_up
from polygraph.shared.sensor_interface import SensorInterface

logger = logging.getLogger("polygraph-face")

STRESS_BASE = 20
STRESS_SPREAD = 30
STRESS_SWING = 15       # slow sinusoidal drift, period ~12.5s


class FacialStressSensor(SensorInterface):
    """
    Facial stress 0..100. Needs an open camera handle to count as active,
    but the numbers themselves do not depend on frame content.
    """
    interval = 0.5

    def __init__(self, rng=None, interval=None):
        super().__init__(rng, interval)
        self.camera = None

    @property
    def active(self) -> bool:
        return self.camera is not None and self.camera.live

    async def start(self, media) -> bool:
        """Open the camera. Returns False (never raises) if it can't be had."""
        try:
            self.camera = await media.open_camera()
        except MediaError as e:
            logger.warning(f"⚠️ Facial analysis unavailable ({type(e).__name__}): {e}")
            self.camera = None
            return False
        logger.info("📷 Facial analysis camera opened")
        return True

    def stop(self):
        """Release the camera track, not just stop reading it."""
        if self.camera is not None:
            self.camera.stop()
            self.camera = None
            logger.info("📷 Facial analysis camera released")

    def sample(self, timestamp: float) -> float:
        stress = STRESS_BASE + self.uniform(0, STRESS_SPREAD) + math.sin(timestamp / 2) * STRESS_SWING
        return clamp(round_half_up(stress), 0, 100)
