"""
AI Client

Abstract base class and implementations for AI providers.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from .models import AIResponse

logger = logging.getLogger(__name__)

# Try to import Anthropic at module level so the SDK class can be patched in tests
AnthropicSDK = None
try:
    from anthropic import Anthropic as AnthropicSDK  # type: ignore[no-redef,assignment]  # noqa: F401
except ImportError:
    pass


class AIClientError(Exception):
    """Base exception for AI client errors."""


class APIKeyMissingError(AIClientError):
    """Raised when API key is not configured or rejected by the provider."""


class RateLimitError(AIClientError):
    """Raised when rate limited by provider."""


class BackendTimeoutError(AIClientError):
    """Raised when the provider does not answer within the request timeout."""


class BackendConnectionError(AIClientError):
    """Raised when the provider cannot be reached."""


class AIProviderError(AIClientError):
    """Raised when AI provider returns an error."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_server_error(self) -> bool:
        """True for 5xx answers and failures that carried no status at all."""
        return self.status_code is None or self.status_code >= 500


def classify_provider_error(provider: str, exc: Exception) -> AIClientError:
    """
    Map an SDK exception to the client error hierarchy.

    SDKs differ in their exception classes, so classification works on the
    status code when one is present and falls back to the message text.

    Args:
        provider: Display name of the provider for the error message
        exc: Original exception raised by the SDK

    Returns:
        AIClientError subclass instance (not raised)
    """
    status = getattr(exc, "status_code", None) or getattr(exc, "code", None)
    error_str = str(exc).lower()
    type_name = type(exc).__name__.lower()

    if status == 429 or ("rate" in error_str and "limit" in error_str) or "quota" in error_str:
        return RateLimitError(f"Rate limited by {provider}: {exc}")
    if (
        status in (401, 403)
        or "api key" in error_str
        or "api_key_invalid" in error_str
        or "authentication" in error_str
    ):
        return APIKeyMissingError(f"API key error: {exc}")
    if "timeout" in type_name or "timed out" in error_str or "timeout" in error_str:
        return BackendTimeoutError(f"{provider} request timed out: {exc}")
    if "connection" in type_name or "connection" in error_str or "network" in error_str:
        return BackendConnectionError(f"Could not reach {provider}: {exc}")
    return AIProviderError(
        f"{provider} API error: {exc}", status_code=status if isinstance(status, int) else None
    )


class AIClient(ABC):
    """Abstract base class for AI clients."""

    @abstractmethod
    def chat_sync(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        **kwargs,
    ) -> AIResponse:
        """
        Send a chat request synchronously.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            system_prompt: Optional system prompt
            **kwargs: Additional provider-specific parameters (model, max_tokens, ...)

        Returns:
            AIResponse with content, model, and usage info
        """
        ...

    def close(self) -> None:
        """Release HTTP resources held by the underlying SDK, if any."""
        client = getattr(self, "_client", None)
        if client is not None and hasattr(client, "close"):
            client.close()
            self._client = None


class AnthropicClient(AIClient):
    """Anthropic Claude API client."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "claude-sonnet-4-20250514",
        max_tokens: int = 8192,
        temperature: float = 0.7,
        timeout: float = 120.0,
    ):
        """
        Initialize the Anthropic client.

        Args:
            api_key: Anthropic API key (required for actual API calls)
            model: Default model (overridable per request)
            max_tokens: Default max tokens for responses
            temperature: Sampling temperature
            timeout: Request timeout in seconds
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        """Lazy initialization of the Anthropic client."""
        if self._client is None:
            if not self.api_key:
                raise APIKeyMissingError(
                    "ANTHROPIC_API_KEY is not configured. "
                    "Set the environment variable or provide api_key parameter."
                )
            if AnthropicSDK is None:
                raise AIClientError(
                    "anthropic package not installed. "
                    "Install with: pip install anthropic"
                )
            # Retries are left to the caller
            self._client = AnthropicSDK(
                api_key=self.api_key, timeout=self.timeout, max_retries=0
            )
        return self._client

    def chat_sync(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        **kwargs,
    ) -> AIResponse:
        """
        Send a chat request synchronously.

        Args:
            messages: List of message dicts with 'role' and 'content' keys
            system_prompt: Optional system prompt
            **kwargs: Additional parameters (model, max_tokens, temperature)

        Returns:
            AIResponse with content, model, and usage info

        Raises:
            APIKeyMissingError: If API key is not configured
            RateLimitError: If rate limited by Anthropic
            BackendTimeoutError: If the request timed out
            AIProviderError: If Anthropic returns an error
        """
        model = kwargs.get("model") or self.model
        client = self.client

        try:
            response = client.messages.create(
                model=model,
                max_tokens=kwargs.get("max_tokens", self.max_tokens),
                temperature=kwargs.get("temperature", self.temperature),
                system=system_prompt or "",
                messages=messages,
            )
        except Exception as e:
            raise classify_provider_error("Anthropic", e) from e

        # Concatenate text blocks
        content = "".join(
            getattr(block, "text", "") or "" for block in (response.content or [])
        )

        return AIResponse(
            content=content,
            model=model,
            usage={
                "input": response.usage.input_tokens,
                "output": response.usage.output_tokens,
            },
        )


class MockAIClient(AIClient):
    """Mock AI client for testing."""

    def __init__(
        self,
        response_content: str = '<svg xmlns="http://www.w3.org/2000/svg"><circle r="4"/></svg>',
        model: str = "mock-model",
    ):
        """
        Initialize mock client.

        Args:
            response_content: Content to return in responses
            model: Model name reported when the request does not name one
        """
        self.response_content = response_content
        self.model = model
        self.call_history: list[dict] = []
        self.error: Exception | None = None
        self.closed = False

    def chat_sync(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        **kwargs,
    ) -> AIResponse:
        """Record call and return mock response (or raise the configured error)."""
        self.call_history.append(
            {
                "messages": messages,
                "system_prompt": system_prompt,
                "kwargs": kwargs,
            }
        )
        if self.error is not None:
            raise self.error
        return AIResponse(
            content=self.response_content,
            model=kwargs.get("model") or self.model,
            usage={"input": 10, "output": 20},
        )

    def close(self) -> None:
        self.closed = True
