"""Resolved configuration passed explicitly to the engine."""

from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .prompts.library import Operation, PromptLibrary
from .providers.registry import ProviderRegistry
from .providers.types import ProviderSpec


DEFAULT_TIMEOUT_SEC = 30
DEFAULT_PROBE_TIMEOUT_SEC = 10


@dataclass
class AskAIConfig:
    """
    Engine configuration.

    Attributes:
        default_provider: Provider used when none is requested
        fallback_provider: Provider tried right after the first one
        providers: Configured provider specs (override built-ins by name)
        timeout_sec: Per-attempt timeout when a provider sets none
        probe_timeout_sec: Timeout for connectivity probes
        max_providers: Providers tried per request (None = all enabled)
        fallback_delay_ms: Pause before trying the next provider
        extra_paths: Directories prepended to PATH for provider commands
        operations: Configured operations (override built-ins by name)
    """
    default_provider: str = "gemini"
    fallback_provider: str = "claude"
    providers: Dict[str, ProviderSpec] = field(default_factory=dict)
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    probe_timeout_sec: float = DEFAULT_PROBE_TIMEOUT_SEC
    max_providers: Optional[int] = None
    fallback_delay_ms: int = 0
    extra_paths: List[str] = field(default_factory=list)
    operations: List[Operation] = field(default_factory=list)

    def build_registry(self) -> ProviderRegistry:
        registry = ProviderRegistry(
            default_provider=self.default_provider,
            fallback_provider=self.fallback_provider,
        )
        for spec in self.providers.values():
            registry.register(spec)
        return registry

    def build_library(self) -> PromptLibrary:
        return PromptLibrary(self.operations)
