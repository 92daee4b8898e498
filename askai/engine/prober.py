"""Connectivity checks for providers."""

import asyncio
import logging
from typing import Dict, Tuple

from .invocation import InvocationEngine


logger = logging.getLogger(__name__)

PROBE_PROMPT = "Reply with exactly OK and nothing else."


class ConnectivityProber:
    """Runs a minimal prompt against providers to check they are reachable."""

    def __init__(self, engine: InvocationEngine):
        self.engine = engine

    async def test(self, provider_id: str = "") -> Tuple[bool, str]:
        """
        Check one provider.

        Any non-empty reply counts as success; the exact wording is not checked.

        Args:
            provider_id: Provider to check (empty = default provider)

        Returns:
            (success, message)
        """
        provider_id = provider_id or self.engine.registry.default_provider
        success, response = await self.engine.call(
            provider_id,
            PROBE_PROMPT,
            timeout_sec=self.engine.config.probe_timeout_sec,
            fallback=False,
        )
        if success and response.strip():
            logger.info(f"Probe of {provider_id} answered: {response.strip()[:40]!r}")
            return True, f"{provider_id} is working correctly"
        return False, response

    async def test_all(self) -> Dict[str, Tuple[bool, str]]:
        """Check every enabled provider concurrently."""
        names = [spec.name for spec in self.engine.registry.enabled_providers()]
        outcomes = await asyncio.gather(*(self.test(name) for name in names))
        return dict(zip(names, outcomes))
