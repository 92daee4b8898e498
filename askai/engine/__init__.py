"""
Engine module.
Runs text operations against the provider chain and probes providers.
"""

from .invocation import InvocationEngine
from .prober import ConnectivityProber, PROBE_PROMPT

__all__ = [
    "InvocationEngine",
    "ConnectivityProber",
    "PROBE_PROMPT",
]
