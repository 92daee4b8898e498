"""
Process launch capability.

Starts an external program with an argument list, reports
(exit_code, stdout, stderr) asynchronously and supports forced termination.
The engine only sees the abstract launcher so tests can substitute a fake.
"""

import asyncio
import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple


logger = logging.getLogger(__name__)

# Seconds between SIGTERM and SIGKILL
TERMINATE_GRACE_SEC = 2.0


class LaunchedProcess(ABC):
    """One started external process."""

    @property
    @abstractmethod
    def running(self) -> bool:
        """True until the process has exited and been reaped."""

    @abstractmethod
    async def wait(self) -> Tuple[int, str, str]:
        """Wait for exit and return (exit_code, stdout, stderr)."""

    @abstractmethod
    def terminate(self) -> None:
        """Ask the process to stop."""

    @abstractmethod
    def kill(self) -> None:
        """Stop the process unconditionally."""

    async def reap(self) -> None:
        """Wait for a stopped process to go away."""
        await self.wait()


class ProcessLauncher(ABC):
    """Factory for launched processes."""

    @abstractmethod
    async def launch(
        self,
        argv: List[str],
        env: Optional[Dict[str, str]] = None
    ) -> LaunchedProcess:
        """
        Start a program.

        Raises:
            FileNotFoundError: If the program cannot be found
            PermissionError: If the program cannot be executed
        """


class _AsyncioProcess(LaunchedProcess):
    """LaunchedProcess backed by asyncio.subprocess."""

    def __init__(self, proc: asyncio.subprocess.Process):
        self._proc = proc

    @property
    def pid(self) -> int:
        return self._proc.pid

    @property
    def running(self) -> bool:
        return self._proc.returncode is None

    async def wait(self) -> Tuple[int, str, str]:
        stdout, stderr = await self._proc.communicate()
        return (
            self._proc.returncode if self._proc.returncode is not None else -1,
            stdout.decode(errors="replace") if stdout else "",
            stderr.decode(errors="replace") if stderr else "",
        )

    def terminate(self) -> None:
        try:
            self._proc.terminate()
        except ProcessLookupError:
            pass

    def kill(self) -> None:
        try:
            self._proc.kill()
        except ProcessLookupError:
            pass

    async def reap(self) -> None:
        await self._proc.communicate()


class SubprocessLauncher(ProcessLauncher):
    """Launches real OS processes without a shell; stdin is closed."""

    async def launch(
        self,
        argv: List[str],
        env: Optional[Dict[str, str]] = None
    ) -> LaunchedProcess:
        proc = await asyncio.create_subprocess_exec(
            *argv,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            env=env,
        )
        logger.debug(f"Started {argv[0]} (pid {proc.pid})")
        return _AsyncioProcess(proc)


@dataclass
class RunningProcess:
    """
    Handle for one in-flight attempt.

    Owned by the executor for the duration of a single invocation and
    discarded as soon as the attempt resolves.
    """
    provider: str
    process: LaunchedProcess
    started_at: float
    deadline: float
    stdout: str = ""
    stderr: str = ""
    exit_code: Optional[int] = None
    completed: bool = False
    terminated: bool = False

    @classmethod
    def start(cls, provider: str, process: LaunchedProcess, timeout_sec: float) -> 'RunningProcess':
        now = time.monotonic()
        return cls(provider=provider, process=process, started_at=now, deadline=now + timeout_sec)

    @property
    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def complete(self, exit_code: int, stdout: str, stderr: str) -> bool:
        """
        Record the process outcome.

        Returns:
            False if the attempt already resolved (late completion is dropped)
        """
        if self.completed or self.terminated:
            return False
        self.completed = True
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        return True

    async def terminate(self, grace_sec: float = TERMINATE_GRACE_SEC) -> None:
        """Stop the process if it is still alive. Safe to call repeatedly."""
        if self.terminated:
            return
        self.terminated = True
        if not self.process.running:
            return

        logger.debug(f"Terminating {self.provider} process")
        self.process.terminate()
        try:
            await asyncio.wait_for(self.process.reap(), timeout=grace_sec)
        except asyncio.TimeoutError:
            logger.warning(f"{self.provider} process ignored SIGTERM, killing")
            self.process.kill()
            await self.process.reap()
