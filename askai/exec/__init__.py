"""
Execution module.
Handles process launching, timeouts and fallback policy.
"""

from .launcher import ProcessLauncher, LaunchedProcess, SubprocessLauncher, RunningProcess
from .retry import FallbackPolicy

__all__ = [
    "ProcessLauncher",
    "LaunchedProcess",
    "SubprocessLauncher",
    "RunningProcess",
    "FallbackPolicy",
]
