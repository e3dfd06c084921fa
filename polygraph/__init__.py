"""
Polygraph: a novelty lie detector core.

Simulated biometric sensors + a deterministic scoring model, driven by a
single-threaded session state machine.
"""

from polygraph.config import PolygraphSettings
from polygraph.orchestrator.deception_model import DeceptionModel
from polygraph.orchestrator.session import PolygraphSession
from polygraph.shared.schemas import (
    AnalysisResult,
    Capabilities,
    DeviceInfo,
    InputMethod,
    SensorSnapshot,
    SessionState,
    SessionView,
    Verdict,
)

__version__ = "0.1.0"

__all__ = [
    'AnalysisResult',
    'Capabilities',
    'DeceptionModel',
    'DeviceInfo',
    'InputMethod',
    'PolygraphSession',
    'PolygraphSettings',
    'SensorSnapshot',
    'SessionState',
    'SessionView',
    'Verdict',
]
