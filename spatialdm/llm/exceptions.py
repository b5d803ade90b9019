"""Failures of a narrator or summary model call.

Each provider's _handle_api_error maps its SDK errors here, so the
narration loop and the CLI handle one set of types whatever the backend.
A turn that fails with any of these saves no messages.
"""


class LLMError(Exception):
    """Base exception for model calls."""

    pass


class ProviderError(LLMError):
    """The provider rejected or failed the request.

    Attributes:
        is_retryable: True for rate limits and 5xx responses.
        status_code: HTTP status, when the SDK reported one.
    """

    def __init__(
        self,
        message: str,
        is_retryable: bool = False,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.is_retryable = is_retryable
        self.status_code = status_code


class RateLimitError(ProviderError):
    def __init__(self, message: str = "Rate limit exceeded") -> None:
        super().__init__(message, is_retryable=True, status_code=429)


class AuthenticationError(ProviderError):
    """The configured API key was refused."""

    def __init__(self, message: str = "Authentication failed") -> None:
        super().__init__(message, status_code=401)


class ContentPolicyError(ProviderError):
    """The provider refused the scene or the player's input."""

    def __init__(self, message: str = "Content policy violation") -> None:
        super().__init__(message)


class ContextLengthError(ProviderError):
    """Prompt plus history exceeded the model window; lower context_max_tokens."""

    def __init__(self, message: str = "Context length exceeded") -> None:
        super().__init__(message)


class UnsupportedProviderError(LLMError):
    """A provider name in settings is not openai or anthropic."""

    pass
