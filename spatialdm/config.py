"""Application configuration using pydantic-settings."""

from dataclasses import dataclass
from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings, SettingsConfigDict


ProviderType = Literal["anthropic", "openai"]


@dataclass
class ProviderConfig:
    """Parsed provider:model configuration."""

    provider: ProviderType
    model: str


def parse_provider_config(value: str, default_provider: ProviderType = "openai") -> ProviderConfig:
    """Parse 'provider:model' format into ProviderConfig.

    Args:
        value: String in format 'provider:model' or just 'model'.
        default_provider: Provider to use if only model is specified.

    Returns:
        ProviderConfig with provider and model.

    Examples:
        >>> parse_provider_config("openai:gpt-4o-mini")
        ProviderConfig(provider='openai', model='gpt-4o-mini')

        >>> parse_provider_config("anthropic:claude-3-5-haiku-20241022")
        ProviderConfig(provider='anthropic', model='claude-3-5-haiku-20241022')

        >>> parse_provider_config("gpt-4o")  # No provider prefix
        ProviderConfig(provider='openai', model='gpt-4o')
    """
    valid_providers = ("anthropic", "openai")

    if ":" in value:
        first_part = value.split(":")[0]
        if first_part in valid_providers:
            model = value[len(first_part) + 1 :]
            return ProviderConfig(provider=first_part, model=model)  # type: ignore

    return ProviderConfig(provider=default_provider, model=value)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # Database
    database_url: str = "sqlite:///spatialdm.db"

    # API Keys
    openai_api_key: str = ""
    openai_base_url: str | None = None  # Custom endpoint for OpenAI-compatible APIs
    anthropic_api_key: str = ""

    # ==========================================================================
    # LLM Configuration (provider:model format)
    # ==========================================================================
    #   NARRATOR=openai:gpt-4o-mini
    #   CHEAP=anthropic:claude-3-5-haiku-20241022

    narrator: str = "openai:gpt-4o-mini"  # Turn narration (JSON reply contract)
    cheap: str = "openai:gpt-4o-mini"  # Session summaries

    max_tokens_per_request: int = 500
    narration_temperature: float = 0.8
    summary_max_tokens: int = 300

    # ==========================================================================
    # Context Assembly Limits
    # ==========================================================================
    context_max_tokens: int = 1600
    recent_message_limit: int = 5
    recent_event_limit: int = 5
    knowledge_limit: int = 5
    mechanics_limit: int = 3
    feature_limit: int = 5
    action_limit: int = 5

    # ==========================================================================
    # Spatial Settings (units are the location's unit_type, meters by default)
    # ==========================================================================
    nearby_feature_radius: float = 30.0
    max_reasonable_move: float = 50.0
    default_movement_rate: float = 9.0  # Per turn
    running_speed_multiplier: float = 2.0

    # Summaries
    auto_summarize_threshold: int = 15

    # Debug
    debug: bool = False
    log_llm_calls: bool = False
    log_level: str = "INFO"

    @property
    def narrator_config(self) -> ProviderConfig:
        """Get parsed narrator provider config."""
        return parse_provider_config(self.narrator)

    @property
    def cheap_config(self) -> ProviderConfig:
        """Get parsed cheap provider config."""
        return parse_provider_config(self.cheap)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


# Convenience alias
settings = get_settings()
