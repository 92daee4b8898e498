"""Fixtures and utilities for E2E tests."""

import os
import shutil

import pytest

from askai.config import AskAIConfig
from askai.engine import InvocationEngine


def has_cli(command: str) -> bool:
    """Check if a CLI command is available."""
    return shutil.which(command) is not None


def skip_if_no_cli(command: str) -> None:
    """Skip test if CLI command is not available."""
    if not has_cli(command):
        pytest.skip(f"{command} CLI not available")


def skip_if_no_e2e() -> None:
    """Skip test if E2E tests are not enabled."""
    if not os.getenv("ASKAI_E2E"):
        pytest.skip("E2E tests disabled (set ASKAI_E2E to enable)")


@pytest.fixture
def real_engine():
    """Engine over the built-in gemini/claude providers with a generous timeout."""
    skip_if_no_e2e()
    return InvocationEngine(AskAIConfig(timeout_sec=120, probe_timeout_sec=60))
