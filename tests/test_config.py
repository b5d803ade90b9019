"""Tests for application configuration."""

import os
from unittest.mock import patch

import pytest

from spatialdm.config import ProviderConfig, Settings, get_settings, parse_provider_config


class TestSettingsDefaults:
    """Tests for default configuration values."""

    def test_default_database_url(self):
        """Default database URL should be a local SQLite file."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.database_url == "sqlite:///spatialdm.db"

    def test_narration_defaults(self):
        """Narration uses 500 tokens at temperature 0.8."""
        settings = Settings(_env_file=None)
        assert settings.max_tokens_per_request == 500
        assert settings.narration_temperature == 0.8

    def test_context_limits(self):
        """Context assembly caps match the documented defaults."""
        settings = Settings(_env_file=None)
        assert settings.recent_message_limit == 5
        assert settings.knowledge_limit == 5
        assert settings.mechanics_limit == 3
        assert settings.auto_summarize_threshold == 15

    def test_spatial_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.default_movement_rate == 9.0
        assert settings.running_speed_multiplier == 2.0
        assert settings.max_reasonable_move == 50.0

    def test_default_debug_is_false(self):
        """Debug mode should be off by default."""
        settings = Settings(_env_file=None)
        assert settings.debug is False


class TestSettingsFromEnvironment:
    """Tests for environment overrides."""

    def test_env_overrides(self):
        env = {"NARRATOR": "anthropic:claude-3-5-haiku-20241022", "FEATURE_LIMIT": "2"}
        with patch.dict(os.environ, env, clear=False):
            settings = Settings(_env_file=None)

        assert settings.narrator_config == ProviderConfig(
            "anthropic", "claude-3-5-haiku-20241022"
        )
        assert settings.feature_limit == 2

    def test_get_settings_is_cached(self):
        assert get_settings() is get_settings()


class TestParseProviderConfig:
    """Tests for provider:model parsing."""

    @pytest.mark.parametrize(
        "value,expected",
        [
            ("openai:gpt-4o-mini", ProviderConfig("openai", "gpt-4o-mini")),
            ("anthropic:claude-3-5-haiku-20241022", ProviderConfig("anthropic", "claude-3-5-haiku-20241022")),
            ("gpt-4o", ProviderConfig("openai", "gpt-4o")),
            ("openai:ft:gpt-4o:org:abc", ProviderConfig("openai", "ft:gpt-4o:org:abc")),
            ("ollama:llama3", ProviderConfig("openai", "ollama:llama3")),
        ],
    )
    def test_parse(self, value, expected):
        assert parse_provider_config(value) == expected

    def test_custom_default_provider(self):
        assert parse_provider_config("claude-3-opus", "anthropic").provider == "anthropic"
