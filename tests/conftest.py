import random

import pytest

from polygraph.config import PolygraphSettings
from polygraph.orchestrator.session import PolygraphSession
from polygraph.shared.media import SimulatedMediaDevices
from polygraph.shared.scheduler import ManualScheduler
from tests.helpers import DESKTOP


@pytest.fixture
def clock():
    """Virtual clock; nothing fires until the test advances it."""
    return ManualScheduler()


@pytest.fixture
def make_session(clock):
    """Build a session on the virtual clock with simulated devices."""

    def factory(capabilities=DESKTOP, seed=7, **media_kwargs):
        media = SimulatedMediaDevices(clock=clock.time, **media_kwargs)
        return PolygraphSession(
            capabilities, media, clock,
            settings=PolygraphSettings(),
            rng=random.Random(seed),
        )

    return factory
