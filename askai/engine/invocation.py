"""
Invocation engine.

Turns an operation plus input text into a rendered prompt, runs it against
the provider chain one attempt at a time and returns a single
(success, text) outcome.
"""

import asyncio
import logging
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Set, Tuple

from ..config import AskAIConfig
from ..exec.launcher import ProcessLauncher
from ..exec.retry import FallbackPolicy
from ..prompts.library import PromptLibrary
from ..providers.executor import ProviderExecutor
from ..providers.registry import ProviderRegistry
from ..providers.types import FailureKind, InvocationResult, ProviderSpec


logger = logging.getLogger(__name__)


class InvocationEngine:
    """
    Provider invocation and fallback engine.

    All collaborators are built from the injected configuration unless
    given explicitly; no module-level state is shared between engines.
    """

    def __init__(
        self,
        config: Optional[AskAIConfig] = None,
        launcher: Optional[ProcessLauncher] = None,
        registry: Optional[ProviderRegistry] = None,
        library: Optional[PromptLibrary] = None,
        executor: Optional[ProviderExecutor] = None,
        policy: Optional[FallbackPolicy] = None,
    ):
        """
        Initialize engine.

        Args:
            config: Resolved configuration (default: built-in defaults)
            launcher: Process launch capability handed to the executor
            registry: Provider registry (default: built from config)
            library: Prompt library (default: built from config)
            executor: Provider executor (default: built from launcher and config)
            policy: Fallback policy (default: built from config)
        """
        self.config = config or AskAIConfig()
        self.registry = registry or self.config.build_registry()
        self.library = library or self.config.build_library()
        self.executor = executor or ProviderExecutor(launcher, extra_paths=self.config.extra_paths)
        self.policy = policy or FallbackPolicy.from_config(
            max_providers=self.config.max_providers,
            delay_ms=self.config.fallback_delay_ms,
        )
        self._tasks: Set[asyncio.Task] = set()
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    async def call(
        self,
        provider_id: str,
        prompt: str,
        timeout_sec: Optional[float] = None,
        fallback: bool = True,
    ) -> Tuple[bool, str]:
        """
        Send a caller-supplied prompt verbatim.

        Args:
            provider_id: First provider to try (empty = default provider)
            prompt: Prompt text
            timeout_sec: Per-attempt timeout override
            fallback: Whether to continue with the rest of the chain

        Returns:
            (success, text) - on exhaustion text is '<provider>: <last failure>'
        """
        result = await self.call_result(provider_id, prompt, timeout_sec=timeout_sec, fallback=fallback)
        return result.as_tuple()

    async def call_result(
        self,
        provider_id: str,
        prompt: str,
        timeout_sec: Optional[float] = None,
        fallback: bool = True,
    ) -> InvocationResult:
        if self._closed:
            return self._closed_result()

        if not prompt or not prompt.strip():
            return InvocationResult.failure(FailureKind.NO_TEXT_PROVIDED, "No prompt provided")

        chain, error = self.registry.resolve_chain(provider_id)
        if error:
            return InvocationResult(success=False, provider=provider_id, error=error)

        if not fallback:
            chain = chain[:1]

        with self._track():
            return await self._run_chain(chain, prompt, timeout_sec)

    async def perform_operation(
        self,
        operation_id: str,
        text: str,
        params: Optional[Dict[str, Any]] = None,
        provider_id: str = "",
        timeout_sec: Optional[float] = None,
    ) -> Tuple[bool, str]:
        """
        Run a text operation.

        Args:
            operation_id: Operation identifier (e.g. 'improve')
            text: Input text
            params: Template parameters (e.g. {'language': 'French'})
            provider_id: First provider to try (empty = default provider)
            timeout_sec: Per-attempt timeout, overriding provider and config timeouts

        Returns:
            (success, text)
        """
        result = await self.perform_operation_result(
            operation_id, text, params, provider_id, timeout_sec=timeout_sec
        )
        return result.as_tuple()

    async def perform_operation_result(
        self,
        operation_id: str,
        text: str,
        params: Optional[Dict[str, Any]] = None,
        provider_id: str = "",
        timeout_sec: Optional[float] = None,
    ) -> InvocationResult:
        if self._closed:
            return self._closed_result()

        if not operation_id:
            return InvocationResult.failure(FailureKind.NO_OPERATION_SPECIFIED, "No operation specified")

        if not text or not text.strip():
            return InvocationResult.failure(FailureKind.NO_TEXT_PROVIDED, "No text provided")

        prompt, error = self.library.render(operation_id, text, params)
        if error:
            return InvocationResult(success=False, error=error)

        chain, error = self.registry.resolve_chain(provider_id)
        if error:
            return InvocationResult(success=False, provider=provider_id, error=error)

        logger.info(f"Running '{operation_id}' via {chain[0].name}")
        with self._track():
            result = await self._run_chain(chain, prompt, timeout_sec)

        if result.success:
            result.text = self.library.clean_response(operation_id, result.text)
        return result

    async def _run_chain(
        self,
        chain: List[ProviderSpec],
        prompt: str,
        timeout_sec: Optional[float] = None,
    ) -> InvocationResult:
        """Invoke providers in order until one succeeds or the chain is exhausted."""
        attempts = self.policy.attempts_for(len(chain))
        result = None

        for attempt, spec in enumerate(chain[:attempts]):
            if attempt > 0:
                await self.policy.wait()

            timeout = timeout_sec or spec.timeout_sec or self.config.timeout_sec
            result = await self.executor.invoke(spec, prompt, timeout)

            if result.success:
                if attempt > 0:
                    logger.info(f"Provider {spec.name} succeeded after {attempt} failed attempt(s)")
                return result

            logger.warning(
                f"Provider {spec.name} failed ({result.kind.value}) "
                f"after {result.duration_ms}ms: {result.message}"
            )
            if not self.policy.should_fallback(result.kind, attempt, len(chain)):
                break

        if result is None:
            return InvocationResult.failure(FailureKind.NO_PROVIDER_CONFIGURED, "No provider configured")

        logger.error(f"All providers failed; last was {result.provider}")
        result.error["message"] = f"{result.provider}: {result.message}"
        return result

    @contextmanager
    def _track(self):
        """Register the current task so shutdown() can cancel it."""
        task = asyncio.current_task()
        if task is not None:
            self._tasks.add(task)
        try:
            yield
        finally:
            if task is not None:
                self._tasks.discard(task)

    def _closed_result(self) -> InvocationResult:
        return InvocationResult.failure(FailureKind.CANCELLED, "Engine is shut down")

    async def shutdown(self) -> None:
        """
        Cancel outstanding calls and terminate their processes.

        Idempotent; calls made afterwards return (False, 'Engine is shut down').
        """
        if self._closed:
            return
        self._closed = True

        current = asyncio.current_task()
        pending = [task for task in self._tasks if task is not current and not task.done()]
        logger.info(f"Shutting down engine, cancelling {len(pending)} call(s)")

        # Cancel first so no attempt can report a result for a killed process
        for task in pending:
            task.cancel()
        await self.executor.terminate_all()
