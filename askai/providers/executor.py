"""
Provider executor for running provider commands.

Launches one provider command per attempt, enforces the timeout and
classifies the outcome into an InvocationResult.
"""

import asyncio
import logging
import os
from typing import Dict, List, Optional

from .types import ProviderSpec, ProviderInvocation, InvocationResult, FailureKind
from ..exec.launcher import ProcessLauncher, RunningProcess, SubprocessLauncher, TERMINATE_GRACE_SEC


logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SEC = 30
LONG_PROMPT_CHARS = 32000


def format_seconds(value: float) -> str:
    """Render a timeout as '30' or '0.5'."""
    return f"{value:g}"


class ProviderExecutor:
    """
    Executes provider commands through a process launcher.

    Every invoke() owns exactly one RunningProcess and never returns while
    that process is still alive.
    """

    def __init__(
        self,
        launcher: Optional[ProcessLauncher] = None,
        extra_paths: Optional[List[str]] = None,
        terminate_grace_sec: float = TERMINATE_GRACE_SEC,
    ):
        """
        Initialize provider executor.

        Args:
            launcher: Process launch capability (default: real subprocesses)
            extra_paths: Directories prepended to PATH for child processes
            terminate_grace_sec: Seconds between terminate and kill
        """
        self.launcher = launcher or SubprocessLauncher()
        self.extra_paths = list(extra_paths or [])
        self.terminate_grace_sec = terminate_grace_sec
        self._active: Dict[int, RunningProcess] = {}

    @property
    def active_count(self) -> int:
        return len(self._active)

    def prepare_invocation(
        self,
        provider: ProviderSpec,
        prompt: str,
        timeout_sec: Optional[float] = None,
    ) -> ProviderInvocation:
        """
        Build the argv and environment for one attempt.

        Args:
            provider: Provider spec
            prompt: Final prompt text, passed as a command argument
            timeout_sec: Execution timeout (default: provider override, then 30s)

        Returns:
            Resolved invocation
        """
        if len(prompt) > LONG_PROMPT_CHARS:
            logger.warning(
                f"Prompt is very long ({len(prompt)} chars), {provider.name} may reject it"
            )

        if timeout_sec is None:
            timeout_sec = provider.timeout_sec or DEFAULT_TIMEOUT_SEC

        return ProviderInvocation(
            provider=provider.name,
            argv=provider.build_argv(prompt),
            timeout_sec=timeout_sec,
            env=self._compose_env(),
        )

    def _compose_env(self) -> Optional[Dict[str, str]]:
        """Child environment with extra PATH entries, or None to inherit."""
        if not self.extra_paths:
            return None

        process_env = os.environ.copy()
        expanded = [os.path.expanduser(os.path.expandvars(path)) for path in self.extra_paths]
        current = process_env.get("PATH", "")
        process_env["PATH"] = os.pathsep.join(expanded + ([current] if current else []))
        return process_env

    async def invoke(
        self,
        provider: ProviderSpec,
        prompt: str,
        timeout_sec: Optional[float] = None,
    ) -> InvocationResult:
        """
        Run one provider attempt to completion.

        Args:
            provider: Provider spec
            prompt: Final prompt text
            timeout_sec: Execution timeout

        Returns:
            Success with trimmed stdout, or a Timeout/ProcessError/EmptyResponse failure
        """
        invocation = self.prepare_invocation(provider, prompt, timeout_sec)
        return await self.execute(invocation)

    async def execute(self, invocation: ProviderInvocation) -> InvocationResult:
        """
        Execute a prepared invocation.

        Raises:
            asyncio.CancelledError: If the caller is cancelled; the process is terminated first
        """
        name = invocation.provider
        program = invocation.argv[0]
        logger.debug(f"Executing {name}: {program} ({len(invocation.argv)} args)")

        try:
            process = await self.launcher.launch(invocation.argv, env=invocation.env)
        except FileNotFoundError:
            return InvocationResult.failure(
                FailureKind.PROCESS_ERROR,
                f"command not found: {program}",
                provider=name,
            )
        except OSError as e:
            return InvocationResult.failure(
                FailureKind.PROCESS_ERROR,
                f"failed to start {program}: {e}",
                provider=name,
            )
        except ValueError as e:
            # e.g. a NUL character in an argument
            return InvocationResult.failure(
                FailureKind.PROCESS_ERROR,
                f"invalid argument for {program}: {e}",
                provider=name,
            )

        running = RunningProcess.start(name, process, invocation.timeout_sec)
        self._active[id(running)] = running
        try:
            try:
                exit_code, stdout, stderr = await asyncio.wait_for(
                    process.wait(), timeout=invocation.timeout_sec
                )
            except asyncio.TimeoutError:
                await running.terminate(self.terminate_grace_sec)
                logger.debug(f"{name} timed out after {running.elapsed_ms}ms")
                return InvocationResult.failure(
                    FailureKind.TIMEOUT,
                    f"operation timed out after {format_seconds(invocation.timeout_sec)}s",
                    provider=name,
                    duration_ms=running.elapsed_ms,
                    timeout_sec=invocation.timeout_sec,
                )
            except Exception as e:
                logger.error(f"Error waiting for {name}: {e}", exc_info=True)
                return InvocationResult.failure(
                    FailureKind.PROCESS_ERROR,
                    f"failed to run {program}: {e}",
                    provider=name,
                    duration_ms=running.elapsed_ms,
                )

            if not running.complete(exit_code, stdout, stderr):
                # Terminated from outside (engine shutdown) while the exit was in flight
                return InvocationResult.failure(
                    FailureKind.CANCELLED,
                    "Operation cancelled",
                    provider=name,
                    duration_ms=running.elapsed_ms,
                )
            return self._classify(running)
        finally:
            # Covers cancellation and unexpected errors too
            await running.terminate(self.terminate_grace_sec)
            self._active.pop(id(running), None)

    def _classify(self, running: RunningProcess) -> InvocationResult:
        """Map exit code and output to a result."""
        name = running.provider
        duration_ms = running.elapsed_ms
        stdout = running.stdout.strip()
        stderr = running.stderr.strip()

        logger.debug(f"{name} exited with code {running.exit_code} in {duration_ms}ms")

        if running.exit_code == 0:
            if not stdout:
                return InvocationResult.failure(
                    FailureKind.EMPTY_RESPONSE,
                    stderr or "empty output",
                    provider=name,
                    duration_ms=duration_ms,
                )
            return InvocationResult.ok(stdout, provider=name, duration_ms=duration_ms)

        return InvocationResult.failure(
            FailureKind.PROCESS_ERROR,
            stderr or stdout or f"{name} exited with code {running.exit_code}",
            provider=name,
            duration_ms=duration_ms,
            exit_code=running.exit_code,
        )

    async def terminate_all(self) -> None:
        """Terminate every process still owned by an in-flight attempt."""
        for running in list(self._active.values()):
            await running.terminate(self.terminate_grace_sec)
