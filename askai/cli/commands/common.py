"""Helpers shared by CLI commands."""

import logging
import os
from argparse import Namespace
from pathlib import Path
from typing import Dict, List, Optional

from askai.config import AskAIConfig
from askai.loader import ConfigLoader


logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "ASKAI_CONFIG"
DEFAULT_CONFIG_PATH = Path("~/.config/askai/config.yaml")


def setup_logging(args: Namespace) -> None:
    """Configure root logging from --log-level/--debug/--quiet."""
    log_level = getattr(logging, args.log_level.upper())
    if args.debug:
        log_level = logging.DEBUG
    elif args.quiet:
        log_level = logging.ERROR

    logging.basicConfig(
        level=log_level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )


def resolve_config_path(explicit: Optional[str]) -> Optional[Path]:
    """
    Pick the config file: --config, then $ASKAI_CONFIG, then the default path if it exists.

    Raises:
        FileNotFoundError: If an explicitly named file does not exist
    """
    named = explicit or os.environ.get(CONFIG_ENV_VAR)
    if named:
        path = Path(named).expanduser()
        if not path.exists():
            raise FileNotFoundError(f"Config file not found: {path}")
        return path

    default = DEFAULT_CONFIG_PATH.expanduser()
    return default if default.exists() else None


def load_config(args: Namespace) -> AskAIConfig:
    """
    Load configuration for a command.

    Raises:
        FileNotFoundError: If --config names a missing file
        ConfigValidationError: If the file is invalid
    """
    path = resolve_config_path(getattr(args, 'config', None))
    if path is None:
        logger.debug("No config file, using built-in defaults")
    else:
        logger.info(f"Loading config: {path}")
    return ConfigLoader().load(path)


def parse_params(items: Optional[List[str]]) -> Dict[str, str]:
    """Parse KEY=VALUE operation parameters."""
    params = {}
    for item in items or []:
        if '=' not in item:
            raise ValueError(f"Invalid parameter format: {item}. Expected KEY=VALUE")
        key, value = item.split('=', 1)
        params[key] = value
    return params
