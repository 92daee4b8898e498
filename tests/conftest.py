"""Shared fixtures: a scripted in-memory process launcher."""

import asyncio
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Tuple, Union

import pytest

from askai.config import AskAIConfig
from askai.engine import InvocationEngine
from askai.exec.launcher import LaunchedProcess, ProcessLauncher
from askai.providers.executor import ProviderExecutor
from askai.providers.types import ProviderSpec


@dataclass
class FakeResponse:
    """Scripted outcome for one program."""
    exit_code: int = 0
    stdout: str = ""
    stderr: str = ""
    delay: float = 0.0
    ignore_terminate: bool = False


class FakeProcess(LaunchedProcess):
    """Process that exits after `delay` seconds unless stopped first."""

    def __init__(self, argv: List[str], response: FakeResponse):
        self.argv = argv
        self.response = response
        self.returncode: Optional[int] = None
        self.terminate_calls = 0
        self.kill_calls = 0
        self._stopped = asyncio.Event()

    @property
    def running(self) -> bool:
        return self.returncode is None

    async def wait(self) -> Tuple[int, str, str]:
        if self.returncode is None:
            if self.response.delay > 0:
                try:
                    await asyncio.wait_for(self._stopped.wait(), timeout=self.response.delay)
                except asyncio.TimeoutError:
                    pass
            if self.returncode is None:
                self.returncode = self.response.exit_code
                return self.returncode, self.response.stdout, self.response.stderr
        # Stopped by a signal: no output is delivered
        return self.returncode, "", ""

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.running and not self.response.ignore_terminate:
            self.returncode = -15
            self._stopped.set()

    def kill(self) -> None:
        self.kill_calls += 1
        if self.running:
            self.returncode = -9
            self._stopped.set()


Script = Union[FakeResponse, Callable[[List[str]], FakeResponse]]


class FakeLauncher(ProcessLauncher):
    """
    Launcher keyed by program name.

    Programs without a script raise FileNotFoundError, like a missing binary.
    """

    def __init__(self, scripts: Optional[Dict[str, Script]] = None):
        self.scripts: Dict[str, Script] = dict(scripts or {})
        self.launches: List[List[str]] = []
        self.envs: List[Optional[Dict[str, str]]] = []
        self.processes: List[FakeProcess] = []

    def script(self, program: str, response: Script) -> None:
        self.scripts[program] = response

    async def launch(self, argv, env=None) -> LaunchedProcess:
        program = argv[0]
        if program not in self.scripts:
            raise FileNotFoundError(program)
        script = self.scripts[program]
        response = script(list(argv)) if callable(script) else script
        self.launches.append(list(argv))
        self.envs.append(env)
        process = FakeProcess(list(argv), response)
        self.processes.append(process)
        return process

    @property
    def programs(self) -> List[str]:
        return [argv[0] for argv in self.launches]


def make_config(**overrides) -> AskAIConfig:
    """Two fake providers, 'alpha' (default, priority 1) and 'beta' (priority 2)."""
    providers = {
        "alpha": ProviderSpec(name="alpha", command=("alpha", "-p", "${PROMPT}"), priority=1),
        "beta": ProviderSpec(name="beta", command=("beta", "-p"), priority=2),
    }
    values = dict(
        default_provider="alpha",
        fallback_provider="",
        providers=providers,
        timeout_sec=5,
        probe_timeout_sec=5,
    )
    values.update(overrides)
    return AskAIConfig(**values)


def make_engine(launcher: FakeLauncher, config: Optional[AskAIConfig] = None) -> InvocationEngine:
    config = config or make_config()
    executor = ProviderExecutor(launcher, extra_paths=config.extra_paths, terminate_grace_sec=0.05)
    engine = InvocationEngine(config, executor=executor)
    # Keep the fake launcher's programs only; built-in gemini/claude are disabled
    for name in ("gemini", "claude"):
        if name not in config.providers:
            engine.registry.register(ProviderSpec(
                name=name, command=(name, "-p"), enabled=False, priority=99
            ))
    return engine


@pytest.fixture
def launcher():
    return FakeLauncher()


@pytest.fixture
def engine_factory():
    return make_engine


@pytest.fixture
def config_factory():
    return make_config
