from abc import ABC, abstractmethod
import random


class SensorInterface(ABC):
    """
    Abstract Base Class for all timer-driven simulated sensors.
    The session calls sample() once per `interval` seconds while the
    owning state is active.
    """

    interval: float = 1.0

    def __init__(self, rng: random.Random = None, interval: float = None):
        self.rng = rng or random.Random()
        if interval is not None:
            self.interval = interval

    def uniform(self, low: float, high: float) -> float:
        """U(low, high): uniform in [low, high)."""
        return low + self.rng.random() * (high - low)

    @abstractmethod
    def sample(self, timestamp: float) -> float:
        """
        Input: scheduler clock (seconds).
        Output: the new reading for this tick.
        """
        pass
