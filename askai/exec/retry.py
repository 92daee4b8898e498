"""
Fallback policy helpers for provider chains.
Decides whether a failed attempt moves on to the next provider.
"""

import asyncio
from dataclasses import dataclass
from typing import Optional, Set

from ..providers.types import FailureKind


@dataclass
class FallbackPolicy:
    """
    Configuration for provider fallback behavior.

    Attributes:
        max_providers: Maximum number of providers tried per request (None = whole chain)
        delay_ms: Delay before trying the next provider in milliseconds
        retryable_kinds: Failure kinds that advance to the next provider
    """
    max_providers: Optional[int] = None
    delay_ms: int = 0
    retryable_kinds: Optional[Set[FailureKind]] = None

    def __post_init__(self):
        if self.retryable_kinds is None:
            # Per-provider failures are recovered by the next provider
            self.retryable_kinds = {
                FailureKind.TIMEOUT,
                FailureKind.PROCESS_ERROR,
                FailureKind.EMPTY_RESPONSE,
            }

    @classmethod
    def from_config(cls, max_providers: Optional[int] = None, delay_ms: int = 0) -> 'FallbackPolicy':
        return cls(max_providers=max_providers, delay_ms=delay_ms)

    def attempts_for(self, chain_length: int) -> int:
        """Number of chain entries that may be tried."""
        if self.max_providers is None:
            return chain_length
        return max(1, min(chain_length, self.max_providers))

    def should_fallback(self, kind: Optional[FailureKind], attempt: int, chain_length: int) -> bool:
        """
        Determine if the next provider should be tried.

        Args:
            kind: Failure kind of the last attempt
            attempt: Current attempt number (0-based)
            chain_length: Number of providers in the chain

        Returns:
            True if should fall back, False otherwise
        """
        if attempt + 1 >= self.attempts_for(chain_length):
            return False

        return kind in (self.retryable_kinds or set())

    async def wait(self):
        """Wait for the configured delay between providers."""
        if self.delay_ms > 0:
            await asyncio.sleep(self.delay_ms / 1000.0)
