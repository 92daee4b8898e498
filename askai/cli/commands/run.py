"""run and call command implementations."""

import asyncio
import logging
import sys
from argparse import Namespace

from askai.engine import InvocationEngine
from askai.exceptions import ConfigValidationError
from askai.providers.types import InvocationResult

from .common import setup_logging, load_config, parse_params


logger = logging.getLogger(__name__)


def _read_text(args: Namespace) -> str:
    """Text argument, or stdin when omitted or '-'."""
    if args.text and args.text != '-':
        return args.text
    if sys.stdin.isatty():
        return ""
    return sys.stdin.read()


def _report(result: InvocationResult) -> int:
    if result.success:
        print(result.text)
        return 0
    print(f"Error: {result.message}", file=sys.stderr)
    return 1


def run_operation(args: Namespace) -> int:
    """
    Run a text operation against the provider chain.

    Exit codes: 0 success, 1 operation failure, 2 configuration error
    """
    setup_logging(args)

    try:
        config = load_config(args)
        params = parse_params(args.param)
    except ConfigValidationError as e:
        for error in e.errors:
            logger.error(error.describe())
        return e.exit_code
    except FileNotFoundError as e:
        logger.error(str(e))
        return 2
    except ValueError as e:
        logger.error(str(e))
        return 2

    text = _read_text(args)
    engine = InvocationEngine(config)
    result = asyncio.run(engine.perform_operation_result(
        args.operation,
        text,
        params,
        provider_id=args.provider or "",
        timeout_sec=args.timeout,
    ))
    return _report(result)


def call_provider(args: Namespace) -> int:
    """Send a raw prompt to a provider (falling back through the chain)."""
    setup_logging(args)

    try:
        config = load_config(args)
    except ConfigValidationError as e:
        for error in e.errors:
            logger.error(error.describe())
        return e.exit_code
    except FileNotFoundError as e:
        logger.error(str(e))
        return 2

    engine = InvocationEngine(config)
    result = asyncio.run(engine.call_result(
        args.provider,
        args.prompt,
        timeout_sec=args.timeout,
        fallback=not args.no_fallback,
    ))
    return _report(result)
