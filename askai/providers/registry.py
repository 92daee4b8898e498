"""
Provider registry for managing provider specs.

Implements provider storage, lookup, validation and fallback chain resolution.
"""

import logging
import shutil
from typing import Any, Dict, List, Optional, Tuple

from .types import ProviderSpec, FailureKind, make_error


logger = logging.getLogger(__name__)


def builtin_providers() -> Dict[str, ProviderSpec]:
    """
    Built-in provider specs.

    Returns:
        Dictionary of built-in provider specs, keyed by name
    """
    return {
        "gemini": ProviderSpec(
            name="gemini",
            command=("gemini", "-m", "gemini-2.5-flash", "-p", "${PROMPT}"),
            priority=1,
        ),
        "claude": ProviderSpec(
            name="claude",
            command=("claude", "-p", "${PROMPT}"),
            priority=2,
        ),
    }


class ProviderRegistry:
    """
    Registry for provider specs.

    Built-in specs for gemini and claude are always known; configured specs
    with the same name replace them.
    """

    def __init__(self, default_provider: str = "", fallback_provider: str = ""):
        """
        Initialize registry.

        Args:
            default_provider: Provider placed first when none is requested
            fallback_provider: Provider tried right after the first entry
        """
        self.default_provider = default_provider
        self.fallback_provider = fallback_provider
        self._providers: Dict[str, ProviderSpec] = {}
        self._builtin_providers = builtin_providers()

    def register(self, provider: ProviderSpec) -> None:
        """
        Register a provider spec.

        Args:
            provider: Provider spec to register

        Raises:
            ValueError: If provider is invalid
        """
        errors = provider.validate()
        if errors:
            raise ValueError(f"Invalid provider spec: {'; '.join(errors)}")

        self._providers[provider.name] = provider
        logger.debug(f"Registered provider: {provider.name}")

    def get(self, name: str) -> Optional[ProviderSpec]:
        """
        Get a provider spec by name.

        Args:
            name: Provider name

        Returns:
            Provider spec or None if not found
        """
        return self._providers.get(name) or self._builtin_providers.get(name)

    def exists(self, name: str) -> bool:
        return name in self._providers or name in self._builtin_providers

    def all_providers(self) -> List[ProviderSpec]:
        """All known specs, configured ones shadowing built-ins, in priority order."""
        merged = dict(self._builtin_providers)
        merged.update(self._providers)
        return sorted(merged.values(), key=lambda spec: (spec.priority, spec.name))

    def enabled_providers(self) -> List[ProviderSpec]:
        return [spec for spec in self.all_providers() if spec.enabled]

    def list_providers(self) -> List[Dict[str, Any]]:
        """
        Summaries for listing.

        Returns:
            One dict per provider with name, enabled, priority, default, fallback
        """
        return [
            {
                "name": spec.name,
                "enabled": spec.enabled,
                "priority": spec.priority,
                "command": list(spec.command),
                "default": spec.name == self.default_provider,
                "fallback": spec.name == self.fallback_provider,
            }
            for spec in self.all_providers()
        ]

    def resolve_chain(
        self,
        requested: str = ""
    ) -> Tuple[List[ProviderSpec], Optional[Dict[str, Any]]]:
        """
        Resolve the ordered provider chain for one request.

        Args:
            requested: Provider name, or empty to use the default provider

        Returns:
            Tuple of (chain, error_dict) - error_dict is None if successful
        """
        if requested:
            first = self.get(requested)
            if first is None or not first.enabled:
                # Disabled is reported exactly like unknown
                return [], make_error(
                    FailureKind.UNKNOWN_PROVIDER,
                    f"Unknown provider: {requested}",
                    provider=requested,
                )
        else:
            if not self.default_provider:
                return [], make_error(
                    FailureKind.NO_PROVIDER_CONFIGURED,
                    "No provider configured",
                )
            first = self.get(self.default_provider)
            if first is None or not first.enabled:
                return [], make_error(
                    FailureKind.NO_PROVIDER_CONFIGURED,
                    f"No provider configured: default provider "
                    f"'{self.default_provider}' is not enabled",
                    provider=self.default_provider,
                )

        chain = [first]
        fallback = self.get(self.fallback_provider) if self.fallback_provider else None
        if fallback is not None and fallback.enabled and fallback.name != first.name:
            chain.append(fallback)

        for spec in self.enabled_providers():
            if spec.name not in {entry.name for entry in chain}:
                chain.append(spec)

        logger.debug(f"Resolved provider chain: {[spec.name for spec in chain]}")
        return chain, None

    def validate(self) -> List[str]:
        """
        Check the registry for configuration problems.

        Returns:
            List of human-readable issues (empty if healthy)
        """
        issues = []
        enabled = self.enabled_providers()

        if not enabled:
            issues.append("No LLM providers are enabled")

        ranks: Dict[int, str] = {}
        for spec in enabled:
            if spec.priority in ranks:
                issues.append(
                    f"Providers {ranks[spec.priority]} and {spec.name} share priority {spec.priority}"
                )
            else:
                ranks[spec.priority] = spec.name

            if not spec.program:
                issues.append(f"Provider {spec.name} has no command specified")
            elif shutil.which(spec.program) is None:
                issues.append(f"Provider {spec.name}: command '{spec.program}' not found on PATH")

        if self.default_provider:
            default = self.get(self.default_provider)
            if default is None or not default.enabled:
                issues.append(f"Default provider {self.default_provider} is not enabled")
        else:
            issues.append("No default provider configured")

        if self.fallback_provider:
            fallback = self.get(self.fallback_provider)
            if fallback is None or not fallback.enabled:
                issues.append(f"Fallback provider {self.fallback_provider} is not enabled")

        return issues
