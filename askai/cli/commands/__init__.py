"""CLI command handlers."""

from .run import run_operation, call_provider
from .probe import probe_providers, list_operations, list_providers

__all__ = ['run_operation', 'call_provider', 'probe_providers', 'list_operations', 'list_providers']
