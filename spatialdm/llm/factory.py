"""LLM provider factory.

Factory functions for creating provider instances from "provider:model"
configuration strings.
"""

from spatialdm.config import ProviderConfig, Settings, get_settings, parse_provider_config
from spatialdm.llm.anthropic_provider import AnthropicProvider
from spatialdm.llm.base import LLMProvider
from spatialdm.llm.exceptions import UnsupportedProviderError
from spatialdm.llm.logging_provider import LoggingProvider
from spatialdm.llm.openai_provider import OpenAIProvider


def create_provider(config: ProviderConfig, settings: Settings | None = None) -> LLMProvider:
    """Create an LLM provider from a ProviderConfig.

    Args:
        config: Parsed provider configuration with provider type and model.
        settings: Optional settings override (defaults to cached settings).

    Returns:
        Configured LLMProvider instance, wrapped in LoggingProvider when
        settings.log_llm_calls is set.

    Raises:
        UnsupportedProviderError: If provider type is not supported.
    """
    settings = settings or get_settings()

    if config.provider == "anthropic":
        provider: LLMProvider = AnthropicProvider(
            api_key=settings.anthropic_api_key or None,
            default_model=config.model,
        )
    elif config.provider == "openai":
        provider = OpenAIProvider(
            api_key=settings.openai_api_key or None,
            default_model=config.model,
            base_url=settings.openai_base_url,
        )
    else:
        raise UnsupportedProviderError(f"Provider '{config.provider}' is not supported")

    if settings.log_llm_calls:
        provider = LoggingProvider(provider)

    return provider


def get_provider(value: str, settings: Settings | None = None) -> LLMProvider:
    """Create a provider from a 'provider:model' string.

    Example:
        provider = get_provider("anthropic:claude-3-5-haiku-20241022")
    """
    return create_provider(parse_provider_config(value), settings)


def get_narrator_provider(settings: Settings | None = None) -> LLMProvider:
    """Get provider configured for turn narration.

    Uses the NARRATOR env var (format: provider:model).
    """
    settings = settings or get_settings()
    return create_provider(settings.narrator_config, settings)


def get_cheap_provider(settings: Settings | None = None) -> LLMProvider:
    """Get provider configured for cheap/fast operations such as summaries.

    Uses the CHEAP env var (format: provider:model).
    """
    settings = settings or get_settings()
    return create_provider(settings.cheap_config, settings)
