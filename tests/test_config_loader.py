"""
Tests for configuration loading and strict validation.
"""

import pytest

from askai.config import AskAIConfig, DEFAULT_TIMEOUT_SEC
from askai.exceptions import ConfigValidationError
from askai.loader import ConfigLoader


def write_config(tmp_path, text):
    path = tmp_path / "config.yaml"
    path.write_text(text)
    return path


class TestConfigLoading:
    """Test loading well-formed configuration."""

    def test_no_path_uses_defaults(self):
        config = ConfigLoader().load(None)

        assert isinstance(config, AskAIConfig)
        assert config.default_provider == "gemini"
        assert config.fallback_provider == "claude"
        assert config.timeout_sec == DEFAULT_TIMEOUT_SEC

    def test_empty_file_uses_defaults(self, tmp_path):
        config = ConfigLoader().load(write_config(tmp_path, ""))

        assert config.default_provider == "gemini"
        assert config.providers == {}

    def test_full_config(self, tmp_path):
        path = write_config(tmp_path, """
version: 1
llm:
  default_provider: claude
  fallback_provider: gemini
  timeout: 45
  probe_timeout: 5
  max_providers: 2
  fallback_delay_ms: 250
  providers:
    claude:
      command: [claude, -p, "${PROMPT}"]
      priority: 1
    gemini:
      command: gemini
      args: [-m, gemini-2.5-pro, -p]
      priority: 2
      timeout: 90
    ollama:
      command: [ollama, run, llama3]
      enabled: false
      priority: 3
environment:
  paths:
    - ~/.local/bin
    - /opt/homebrew/bin
prompts:
  haiku:
    title: Haiku
    template: "Write a haiku about:\\n\\n${text}"
    category: fun
""")

        config = ConfigLoader().load(path)

        assert config.default_provider == "claude"
        assert config.fallback_provider == "gemini"
        assert config.timeout_sec == 45
        assert config.probe_timeout_sec == 5
        assert config.max_providers == 2
        assert config.fallback_delay_ms == 250
        assert config.providers["claude"].command == ("claude", "-p", "${PROMPT}")
        assert config.providers["gemini"].command == ("gemini", "-m", "gemini-2.5-pro", "-p")
        assert config.providers["gemini"].timeout_sec == 90
        assert config.providers["ollama"].enabled is False
        assert config.extra_paths == ["~/.local/bin", "/opt/homebrew/bin"]
        assert [op.name for op in config.operations] == ["haiku"]

        registry = config.build_registry()
        chain, error = registry.resolve_chain()
        assert error is None
        assert [spec.name for spec in chain] == ["claude", "gemini"]

        library = config.build_library()
        assert library.get("haiku").category == "fun"
        assert library.exists("improve")

    def test_priority_defaults_to_position(self, tmp_path):
        path = write_config(tmp_path, """
llm:
  providers:
    first:
      command: [first]
    second:
      command: [second]
""")

        config = ConfigLoader().load(path)

        # Unranked providers follow the built-in gemini (1) and claude (2)
        assert config.providers["first"].priority == 3
        assert config.providers["second"].priority == 4

    def test_yes_no_strings_preserved(self, tmp_path):
        path = write_config(tmp_path, """
prompts:
  answer:
    template: "Answer ${text}"
    defaults:
      style: no
""")

        config = ConfigLoader().load(path)

        assert config.operations[0].defaults == {"style": "no"}

    def test_null_default_provider_means_none(self, tmp_path):
        path = write_config(tmp_path, """
llm:
  default_provider:
""")

        config = ConfigLoader().load(path)

        assert config.default_provider == ""


class TestConfigValidation:
    """Test rejection of invalid configuration."""

    def _errors(self, tmp_path, text):
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(write_config(tmp_path, text))
        assert exc_info.value.exit_code == 2
        return str(exc_info.value)

    def test_missing_file(self, tmp_path):
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(tmp_path / "absent.yaml")

        assert "Failed to load config" in str(exc_info.value)

    def test_malformed_yaml(self, tmp_path):
        message = self._errors(tmp_path, "llm: [unclosed")

        assert "Failed to load config" in message

    def test_not_a_mapping(self, tmp_path):
        message = self._errors(tmp_path, "- just\n- a list\n")

        assert "must be a YAML object" in message

    def test_unknown_top_level_field(self, tmp_path):
        message = self._errors(tmp_path, "llms: {}\n")

        assert "Unknown field 'llms'" in message

    def test_unknown_llm_field(self, tmp_path):
        message = self._errors(tmp_path, "llm:\n  timeout_seconds: 5\n")

        assert "Validation error at 'llm': Unknown field 'timeout_seconds'" in message

    def test_provider_without_command(self, tmp_path):
        message = self._errors(tmp_path, """
llm:
  providers:
    broken:
      enabled: true
""")

        assert "missing required 'command' field" in message
        assert "llm.providers.broken" in message

    def test_duplicate_placeholder(self, tmp_path):
        message = self._errors(tmp_path, """
llm:
  providers:
    twice:
      command: [x, "${PROMPT}", "${PROMPT}"]
""")

        assert "at most once" in message

    def test_args_with_list_command(self, tmp_path):
        message = self._errors(tmp_path, """
llm:
  providers:
    mixed:
      command: [x, -p]
      args: [--verbose]
""")

        assert "'args' only allowed with a string command" in message

    def test_duplicate_priorities(self, tmp_path):
        message = self._errors(tmp_path, """
llm:
  providers:
    one:
      command: [one]
      priority: 1
    two:
      command: [two]
      priority: 1
""")

        assert "share priority 1" in message

    def test_duplicate_priority_allowed_when_disabled(self, tmp_path):
        path = write_config(tmp_path, """
llm:
  providers:
    one:
      command: [one]
      priority: 5
    two:
      command: [two]
      priority: 5
      enabled: false
""")

        config = ConfigLoader().load(path)

        assert config.providers["two"].enabled is False

    def test_priority_collides_with_builtin(self, tmp_path):
        message = self._errors(tmp_path, """
llm:
  providers:
    openai:
      command: [openai, "${PROMPT}"]
      priority: 1
""")

        assert "Providers 'gemini' and 'openai' share priority 1" in message

    def test_unranked_providers_do_not_collide_with_builtins(self, tmp_path):
        path = write_config(tmp_path, """
llm:
  providers:
    openai:
      command: [openai]
    mistral:
      command: [mistral]
""")

        config = ConfigLoader().load(path)

        ranks = [spec.priority for spec in config.build_registry().enabled_providers()]
        assert ranks == [1, 2, 3, 4]

    def test_builtin_rank_free_once_disabled(self, tmp_path):
        path = write_config(tmp_path, """
llm:
  providers:
    gemini:
      command: [gemini]
      enabled: false
    openai:
      command: [openai]
      priority: 1
""")

        config = ConfigLoader().load(path)

        assert config.providers["openai"].priority == 1

    @pytest.mark.parametrize("value", ["0", "-5", "soon", "true"])
    def test_invalid_timeout(self, tmp_path, value):
        message = self._errors(tmp_path, f"llm:\n  timeout: {value}\n")

        assert "'timeout' must be a positive number" in message

    def test_invalid_max_providers(self, tmp_path):
        message = self._errors(tmp_path, "llm:\n  max_providers: 0\n")

        assert "'max_providers' must be a positive integer" in message

    def test_invalid_paths(self, tmp_path):
        message = self._errors(tmp_path, "environment:\n  paths: /usr/local/bin\n")

        assert "'paths' must be a list of strings" in message

    def test_prompt_without_template(self, tmp_path):
        message = self._errors(tmp_path, "prompts:\n  empty:\n    title: Empty\n")

        assert "missing required 'template' field" in message

    def test_all_errors_reported_together(self, tmp_path):
        with pytest.raises(ConfigValidationError) as exc_info:
            ConfigLoader().load(write_config(tmp_path, """
bogus: 1
llm:
  timeout: -1
prompts:
  x: {}
"""))

        assert len(exc_info.value.errors) == 3
