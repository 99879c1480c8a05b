"""Unit tests for configuration schema and YAML parser."""

import pytest

from gitwit.config import (
    ConfigurationError,
    ProviderName,
    ResilienceConfig,
    YAMLParser,
)
from gitwit.resilience import RetryConfig


class TestResilienceConfig:
    """Test schema defaults and validation."""

    def test_defaults(self):
        config = ResilienceConfig()

        assert config.retry.max_attempts == 3
        assert config.retry.base_delay == 1.0
        assert config.retry.max_jitter == 1.0
        assert config.breaker.failure_threshold == 3
        assert config.breaker.recovery_timeout == 60.0
        assert config.providers == []

    def test_to_runtime_configs(self):
        config = ResilienceConfig.model_validate({
            "retry": {"max_attempts": 5, "base_delay": 0.5},
            "breaker": {"failure_threshold": 2, "recovery_timeout": 30},
        })

        retry = config.retry.to_retry_config()
        assert isinstance(retry, RetryConfig)
        assert retry.max_attempts == 5
        assert retry.base_delay == 0.5

        breaker = config.breaker.to_breaker_config()
        assert breaker.failure_threshold == 2
        assert breaker.recovery_timeout == 30.0

    def test_rejects_invalid_values(self):
        with pytest.raises(ValueError):
            ResilienceConfig.model_validate({"retry": {"max_attempts": 0}})
        with pytest.raises(ValueError):
            ResilienceConfig.model_validate({"breaker": {"recovery_timeout": -5}})

    def test_provider_enabled_follows_api_key(self):
        config = ResilienceConfig.model_validate({
            "providers": [
                {"name": "gemini", "api_key": "secret"},
                {"name": "openai"},
                {"name": "anthropic", "api_key": "secret", "enabled": False},
            ]
        })

        assert [p.enabled for p in config.providers] == [True, False, False]
        assert [p.name for p in config.enabled_providers()] == [ProviderName.GEMINI]

    def test_duplicate_providers(self):
        with pytest.raises(ValueError, match="unique"):
            ResilienceConfig.model_validate({
                "providers": [{"name": "gemini"}, {"name": "gemini"}]
            })

    def test_unknown_provider(self):
        with pytest.raises(ValueError):
            ResilienceConfig.model_validate({"providers": [{"name": "cohere"}]})

    def test_build_registry_with_overrides(self):
        config = ResilienceConfig.model_validate({
            "breaker": {"failure_threshold": 3},
            "providers": [
                {"name": "gemini", "api_key": "k"},
                {"name": "openai", "api_key": "k", "breaker": {"failure_threshold": 1}},
            ],
        })

        registry = config.build_registry()
        registry.record_failure("gemini")
        registry.record_failure("openai")

        assert not registry.is_open("gemini")
        assert registry.is_open("openai")


class TestYAMLParser:
    """Test YAML parser functionality."""

    @pytest.fixture
    def parser(self):
        return YAMLParser()

    @pytest.fixture
    def sample_yaml(self):
        return """
resilience:
  retry:
    max_attempts: 4
    base_delay: 0.5
  breaker:
    failure_threshold: 5
    recovery_timeout: 120
  providers:
    - name: gemini
      model: gemini-2.5-flash
      api_key: ${GITWIT_TEST_GEMINI_KEY:-}
    - name: openai
      api_key: ${GITWIT_TEST_OPENAI_KEY}
"""

    def test_parse_valid_yaml(self, parser, sample_yaml, tmp_path, monkeypatch):
        monkeypatch.setenv("GITWIT_TEST_OPENAI_KEY", "sk-test")
        monkeypatch.delenv("GITWIT_TEST_GEMINI_KEY", raising=False)
        yaml_file = tmp_path / "resilience.yaml"
        yaml_file.write_text(sample_yaml)

        config = parser.parse_file(str(yaml_file))

        assert isinstance(config, ResilienceConfig)
        assert config.retry.max_attempts == 4
        assert config.breaker.recovery_timeout == 120.0
        gemini, openai = config.providers
        assert gemini.api_key is None
        assert gemini.enabled is False
        assert openai.api_key == "sk-test"
        assert openai.enabled is True

    def test_unset_variable_without_default_is_kept(self, parser, monkeypatch):
        monkeypatch.delenv("GITWIT_TEST_MISSING", raising=False)

        config = parser.parse_string("""
resilience:
  providers:
    - name: anthropic
      api_key: ${GITWIT_TEST_MISSING}
""")

        assert config.providers[0].api_key == "${GITWIT_TEST_MISSING}"

    def test_missing_top_level_key(self, parser):
        with pytest.raises(ConfigurationError, match="'resilience' top-level key"):
            parser.parse_string("retry:\n  max_attempts: 3\n")

    def test_validation_error(self, parser):
        with pytest.raises(ConfigurationError, match="validation failed"):
            parser.parse_string("resilience:\n  retry:\n    max_attempts: zero\n")

    def test_empty_section_uses_defaults(self, parser):
        config = parser.parse_string("resilience:\n")

        assert config.breaker.failure_threshold == 3

    def test_invalid_yaml_file(self, parser, tmp_path):
        yaml_file = tmp_path / "broken.yaml"
        yaml_file.write_text("resilience: [unclosed\n")

        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            parser.parse_file(str(yaml_file))

    def test_invalid_yaml_string(self, parser):
        with pytest.raises(ConfigurationError, match="Invalid YAML"):
            parser.parse_string("resilience: [unclosed")

    def test_imports_merge(self, parser, tmp_path):
        (tmp_path / "base.yaml").write_text("""
resilience:
  retry:
    max_attempts: 5
  breaker:
    failure_threshold: 4
  providers:
    - name: gemini
      model: gemini-1.5-flash
      api_key: base-key
""")
        (tmp_path / "main.yaml").write_text("""
imports:
  - base.yaml
resilience:
  breaker:
    failure_threshold: 2
  providers:
    - name: gemini
      model: gemini-2.5-flash
    - name: anthropic
      api_key: other-key
""")

        config = parser.parse_file(str(tmp_path / "main.yaml"))

        assert config.retry.max_attempts == 5
        assert config.breaker.failure_threshold == 2
        assert [p.name.value for p in config.providers] == ["gemini", "anthropic"]
        assert config.providers[0].model == "gemini-2.5-flash"
        assert config.providers[0].api_key == "base-key"

    def test_circular_import(self, parser, tmp_path):
        (tmp_path / "a.yaml").write_text("imports:\n  - b.yaml\nresilience: {}\n")
        (tmp_path / "b.yaml").write_text("imports:\n  - a.yaml\nresilience: {}\n")

        with pytest.raises(ConfigurationError, match="Circular import"):
            parser.parse_file(str(tmp_path / "a.yaml"))
