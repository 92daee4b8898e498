"""
Provider management module.

Provides registry, executor, and types for managing and executing provider commands.
"""

from .types import (
    ProviderSpec,
    ProviderInvocation,
    InvocationResult,
    FailureKind,
)
from .registry import ProviderRegistry
from .executor import ProviderExecutor


__all__ = [
    "ProviderSpec",
    "ProviderInvocation",
    "InvocationResult",
    "FailureKind",
    "ProviderRegistry",
    "ProviderExecutor",
]
