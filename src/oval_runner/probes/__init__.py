"""
Probe engines and the probe session driving them.
"""

from oval_runner.probes.engine import BaseProbeEngine, LocalProbeEngine, create_probe_engine
from oval_runner.probes.session import ProbeSession

__all__ = [
    "BaseProbeEngine",
    "LocalProbeEngine",
    "create_probe_engine",
    "ProbeSession",
]
