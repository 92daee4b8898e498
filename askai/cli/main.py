"""Main CLI entry point for askai."""

import argparse
import sys
from typing import Optional

from .commands import run_operation, call_provider, probe_providers, list_operations, list_providers


def _positive_seconds(value: str) -> float:
    seconds = float(value)
    if seconds <= 0:
        raise argparse.ArgumentTypeError(f"timeout must be positive: {value}")
    return seconds


def _add_common_arguments(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        '--config',
        type=str,
        help='Path to YAML config file (default: $ASKAI_CONFIG or ~/.config/askai/config.yaml)'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Enable debug logging'
    )
    parser.add_argument(
        '--quiet',
        action='store_true',
        help='Suppress non-error output'
    )
    parser.add_argument(
        '--log-level',
        choices=['debug', 'info', 'warning', 'error'],
        default='warning',
        help='Set log level'
    )


def create_parser() -> argparse.ArgumentParser:
    """Create the argument parser for the askai CLI."""
    parser = argparse.ArgumentParser(
        prog='askai',
        description='Run text operations through LLM command-line tools'
    )

    subparsers = parser.add_subparsers(dest='command', help='Commands')

    # Run command
    run_parser = subparsers.add_parser('run', help='Run a text operation')
    run_parser.add_argument(
        'operation',
        type=str,
        help='Operation name (see "askai operations")'
    )
    run_parser.add_argument(
        'text',
        nargs='?',
        type=str,
        help='Input text (read from stdin when omitted or "-")'
    )
    run_parser.add_argument(
        '--param',
        action='append',
        metavar='KEY=VALUE',
        help='Template parameter, e.g. language=French (repeatable)'
    )
    run_parser.add_argument(
        '--provider',
        type=str,
        help='Provider to try first (default: configured default)'
    )
    run_parser.add_argument(
        '--timeout',
        type=_positive_seconds,
        help='Per-provider timeout in seconds'
    )
    _add_common_arguments(run_parser)

    # Call command
    call_parser = subparsers.add_parser('call', help='Send a raw prompt to a provider')
    call_parser.add_argument(
        'provider',
        type=str,
        help='Provider to try first'
    )
    call_parser.add_argument(
        'prompt',
        type=str,
        help='Prompt text, sent verbatim'
    )
    call_parser.add_argument(
        '--no-fallback',
        action='store_true',
        help='Do not try other providers on failure'
    )
    call_parser.add_argument(
        '--timeout',
        type=_positive_seconds,
        help='Per-provider timeout in seconds'
    )
    _add_common_arguments(call_parser)

    # Test command
    test_parser = subparsers.add_parser('test', help='Check provider connectivity')
    test_parser.add_argument(
        'provider',
        nargs='?',
        type=str,
        help='Provider to check (default: all enabled providers)'
    )
    _add_common_arguments(test_parser)

    operations_parser = subparsers.add_parser('operations', help='List available operations')
    _add_common_arguments(operations_parser)

    providers_parser = subparsers.add_parser('providers', help='List configured providers')
    _add_common_arguments(providers_parser)

    return parser


def main(args: Optional[list] = None) -> int:
    """Main entry point for the CLI."""
    parser = create_parser()
    parsed_args = parser.parse_args(args)

    if not parsed_args.command:
        parser.print_help()
        return 1

    handlers = {
        'run': run_operation,
        'call': call_provider,
        'test': probe_providers,
        'operations': list_operations,
        'providers': list_providers,
    }
    handler = handlers.get(parsed_args.command)
    if handler is None:
        parser.print_help()
        return 1
    return handler(parsed_args)


if __name__ == '__main__':
    sys.exit(main())
