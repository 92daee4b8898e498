"""test, operations and providers command implementations."""

import asyncio
import logging
from argparse import Namespace

from askai.engine import InvocationEngine, ConnectivityProber
from askai.exceptions import ConfigValidationError

from .common import setup_logging, load_config


logger = logging.getLogger(__name__)


def _engine_or_exit_code(args: Namespace):
    try:
        return InvocationEngine(load_config(args)), 0
    except ConfigValidationError as e:
        for error in e.errors:
            logger.error(error.describe())
        return None, e.exit_code
    except FileNotFoundError as e:
        logger.error(str(e))
        return None, 2


def probe_providers(args: Namespace) -> int:
    """
    Probe one provider, or every enabled provider when none is named.

    Configuration issues are reported before probing all providers.
    """
    setup_logging(args)
    engine, exit_code = _engine_or_exit_code(args)
    if engine is None:
        return exit_code

    prober = ConnectivityProber(engine)

    if args.provider:
        success, message = asyncio.run(prober.test(args.provider))
        print(f"{'ok' if success else 'FAIL'}  {message}")
        return 0 if success else 1

    for issue in engine.registry.validate():
        print(f"warning: {issue}")

    results = asyncio.run(prober.test_all())
    if not results:
        print("No enabled providers")
        return 1
    for name, (success, message) in results.items():
        print(f"{'ok' if success else 'FAIL'}  {name}: {message}")
    return 0 if all(success for success, _ in results.values()) else 1


def list_operations(args: Namespace) -> int:
    """Print the configured operations sorted by title."""
    setup_logging(args)
    engine, exit_code = _engine_or_exit_code(args)
    if engine is None:
        return exit_code

    for op in engine.library.list_operations():
        required = engine.library.required_parameters(op.name)
        suffix = f"  (requires: {', '.join(required)})" if required else ""
        print(f"{op.name:<20} {op.label} - {op.description}{suffix}")
    return 0


def list_providers(args: Namespace) -> int:
    """Print providers in priority order with their flags."""
    setup_logging(args)
    engine, exit_code = _engine_or_exit_code(args)
    if engine is None:
        return exit_code

    for entry in engine.registry.list_providers():
        flags = []
        if entry["default"]:
            flags.append("default")
        if entry["fallback"]:
            flags.append("fallback")
        if not entry["enabled"]:
            flags.append("disabled")
        label = f" [{', '.join(flags)}]" if flags else ""
        print(f"{entry['priority']:>3}  {entry['name']}{label}: {' '.join(entry['command'])}")
    return 0
