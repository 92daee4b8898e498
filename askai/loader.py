"""Configuration loader with strict validation."""

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Union
import yaml

from askai.config import AskAIConfig, DEFAULT_TIMEOUT_SEC, DEFAULT_PROBE_TIMEOUT_SEC
from askai.exceptions import ValidationError, ConfigValidationError
from askai.prompts.library import PromptLibrary
from askai.providers.registry import builtin_providers
from askai.providers.types import ProviderSpec


logger = logging.getLogger(__name__)


class PreservingLoader(yaml.SafeLoader):
    """Custom YAML loader that preserves strings like 'on'/'off'/'yes'/'no' instead of converting to bool."""
    pass


# Remove the implicit bool resolvers for 'on'/'off'/'yes'/'no'; true/false stay booleans
PreservingLoader.yaml_implicit_resolvers = dict(PreservingLoader.yaml_implicit_resolvers)
for first_char in 'oOyYnN':
    if first_char in PreservingLoader.yaml_implicit_resolvers:
        PreservingLoader.yaml_implicit_resolvers[first_char] = [
            (tag, regexp) for tag, regexp in PreservingLoader.yaml_implicit_resolvers[first_char]
            if tag != 'tag:yaml.org,2002:bool'
        ]


class ConfigLoader:
    """Loads and validates askai YAML configuration."""

    TOP_LEVEL_FIELDS = {'version', 'llm', 'environment', 'prompts'}
    LLM_FIELDS = {
        'default_provider', 'fallback_provider', 'timeout', 'probe_timeout',
        'max_providers', 'fallback_delay_ms', 'providers'
    }
    PROVIDER_FIELDS = {'command', 'args', 'enabled', 'priority', 'timeout'}
    PROMPT_FIELDS = {'template', 'title', 'description', 'category', 'defaults', 'strip_prefixes'}

    def __init__(self):
        self.errors: List[ValidationError] = []

    def load(self, config_path: Optional[Union[str, Path]] = None) -> AskAIConfig:
        """
        Load configuration from a YAML file.

        A missing path (None) yields the built-in defaults.

        Raises:
            ConfigValidationError: If the file cannot be read or is invalid
        """
        self.errors = []
        if config_path is None:
            return AskAIConfig()

        path = Path(config_path).expanduser()
        try:
            with open(path, 'r') as f:
                data = yaml.load(f, Loader=PreservingLoader)
        except Exception as e:
            self._add_error(f"Failed to load config: {e}")
            self._raise_validation_errors()

        logger.debug(f"Loaded config file {path}")
        return self.load_dict(data if data is not None else {})

    def load_dict(self, data: Any) -> AskAIConfig:
        """
        Validate a parsed configuration mapping.

        Raises:
            ConfigValidationError: If validation fails
        """
        self.errors = []
        if not isinstance(data, dict):
            self._add_error("Config must be a YAML object/dictionary")
            self._raise_validation_errors()

        for key in data.keys():
            if key not in self.TOP_LEVEL_FIELDS:
                self._add_error(f"Unknown field '{key}'")

        config = AskAIConfig()

        llm = data.get('llm') or {}
        if not isinstance(llm, dict):
            self._add_error("'llm' must be a dictionary", "llm")
        else:
            self._validate_llm(llm, config)

        environment = data.get('environment') or {}
        if not isinstance(environment, dict):
            self._add_error("'environment' must be a dictionary", "environment")
        else:
            paths = environment.get('paths', [])
            if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
                self._add_error("'paths' must be a list of strings", "environment.paths")
            else:
                config.extra_paths = list(paths)
            for key in environment.keys():
                if key != 'paths':
                    self._add_error(f"Unknown field '{key}'", "environment")

        prompts = data.get('prompts') or {}
        if not isinstance(prompts, dict):
            self._add_error("'prompts' must be a dictionary", "prompts")
        else:
            self._validate_prompts(prompts)
            if not self.errors:
                config.operations = PromptLibrary.parse_operations(prompts)

        if self.errors:
            self._raise_validation_errors()

        return config

    def _validate_llm(self, llm: Dict[str, Any], config: AskAIConfig):
        """Validate the llm section and copy values into config."""
        for key in llm.keys():
            if key not in self.LLM_FIELDS:
                self._add_error(f"Unknown field '{key}'", "llm")

        for field_name in ('default_provider', 'fallback_provider'):
            if field_name in llm:
                value = llm[field_name]
                if value is None:
                    value = ""
                if not isinstance(value, str):
                    self._add_error(f"'{field_name}' must be a string", f"llm.{field_name}")
                else:
                    setattr(config, field_name, value)

        config.timeout_sec = self._positive_number(llm, 'timeout', DEFAULT_TIMEOUT_SEC)
        config.probe_timeout_sec = self._positive_number(llm, 'probe_timeout', DEFAULT_PROBE_TIMEOUT_SEC)

        if llm.get('max_providers') is not None:
            value = llm['max_providers']
            if not isinstance(value, int) or isinstance(value, bool) or value < 1:
                self._add_error("'max_providers' must be a positive integer", "llm.max_providers")
            else:
                config.max_providers = value

        if 'fallback_delay_ms' in llm:
            value = llm['fallback_delay_ms']
            if not isinstance(value, int) or isinstance(value, bool) or value < 0:
                self._add_error("'fallback_delay_ms' must be a non-negative integer", "llm.fallback_delay_ms")
            else:
                config.fallback_delay_ms = value

        providers = llm.get('providers') or {}
        if not isinstance(providers, dict):
            self._add_error("'providers' must be a dictionary", "llm.providers")
            return

        builtins = builtin_providers()
        # Unranked providers are placed after the built-ins, in file order
        rank_base = max(spec.priority for spec in builtins.values())
        for index, (name, provider_config) in enumerate(providers.items(), start=1):
            spec = self._build_provider(str(name), provider_config, rank_base + index)
            if spec is not None:
                config.providers[spec.name] = spec

        merged = dict(builtins)
        merged.update(config.providers)
        self._validate_priorities(list(merged.values()))

    def _build_provider(self, name: str, provider_config: Any, default_rank: int) -> Optional[ProviderSpec]:
        """Turn one provider entry into a spec, recording errors."""
        path = f"llm.providers.{name}"
        if not isinstance(provider_config, dict):
            self._add_error(f"Provider '{name}' must be a dictionary", path)
            return None

        for key in provider_config.keys():
            if key not in self.PROVIDER_FIELDS:
                self._add_error(f"Unknown field '{key}'", path)

        command = provider_config.get('command')
        args = provider_config.get('args', [])
        if not isinstance(args, list):
            self._add_error(f"Provider '{name}' args must be a list", path)
            args = []

        if isinstance(command, str) and command:
            # "command: gemini" + "args: [-p]" form
            argv = [command] + [str(arg) for arg in args]
        elif isinstance(command, list) and command:
            if args:
                self._add_error(f"Provider '{name}': 'args' only allowed with a string command", path)
            argv = [str(token) for token in command]
        else:
            self._add_error(f"Provider '{name}' missing required 'command' field", path)
            return None

        enabled = provider_config.get('enabled', True)
        if not isinstance(enabled, bool):
            self._add_error(f"Provider '{name}' enabled must be a boolean", path)
            enabled = True

        priority = provider_config.get('priority', default_rank)
        if not isinstance(priority, int) or isinstance(priority, bool):
            self._add_error(f"Provider '{name}' priority must be an integer", path)
            priority = default_rank

        timeout = None
        if provider_config.get('timeout') is not None:
            timeout = self._positive_number(provider_config, 'timeout', None, path)

        spec = ProviderSpec(
            name=name,
            command=tuple(argv),
            enabled=enabled,
            priority=priority,
            timeout_sec=timeout,
        )
        for error in spec.validate():
            self._add_error(error, path)
        return spec

    def _validate_priorities(self, specs: List[ProviderSpec]):
        """Priority ranks must be unique among enabled providers, built-ins included."""
        seen: Dict[int, str] = {}
        for spec in specs:
            if not spec.enabled:
                continue
            if spec.priority in seen:
                self._add_error(
                    f"Providers '{seen[spec.priority]}' and '{spec.name}' share priority {spec.priority}",
                    "llm.providers"
                )
            else:
                seen[spec.priority] = spec.name

    def _validate_prompts(self, prompts: Dict[str, Any]):
        """Validate prompt templates."""
        for name, prompt_config in prompts.items():
            path = f"prompts.{name}"
            if not isinstance(prompt_config, dict):
                self._add_error(f"Prompt '{name}' must be a dictionary", path)
                continue

            for key in prompt_config.keys():
                if key not in self.PROMPT_FIELDS:
                    self._add_error(f"Unknown field '{key}'", path)

            template = prompt_config.get('template')
            if not isinstance(template, str) or not template.strip():
                self._add_error(f"Prompt '{name}' missing required 'template' field", path)

            defaults = prompt_config.get('defaults', {})
            if defaults is not None and not isinstance(defaults, dict):
                self._add_error(f"Prompt '{name}' defaults must be a dictionary", path)

            prefixes = prompt_config.get('strip_prefixes', [])
            if prefixes is not None and not isinstance(prefixes, list):
                self._add_error(f"Prompt '{name}' strip_prefixes must be a list", path)

    def _positive_number(self, section: Dict[str, Any], key: str, default: Any, path: str = "llm") -> Any:
        if section.get(key) is None:
            return default
        value = section[key]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value <= 0:
            self._add_error(f"'{key}' must be a positive number", f"{path}.{key}")
            return default
        return value

    def _add_error(self, message: str, path: str = ""):
        self.errors.append(ValidationError(message=message, path=path))

    def _raise_validation_errors(self):
        raise ConfigValidationError(self.errors)
