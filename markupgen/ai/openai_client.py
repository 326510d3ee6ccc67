"""
OpenAI Client

Chat-completions client for OpenAI and OpenAI-compatible backends (DeepSeek).
"""

from __future__ import annotations

import logging

from .client import (
    AIClient,
    AIClientError,
    APIKeyMissingError,
    classify_provider_error,
)
from .models import AIResponse

logger = logging.getLogger(__name__)

# Imported at module level so tests can patch OpenAISDK
OpenAISDK = None
try:
    from openai import OpenAI as OpenAISDK  # type: ignore[no-redef,attr-defined]  # noqa: F401
except ImportError:
    pass


class OpenAIClient(AIClient):
    """Client for the OpenAI chat-completions API and compatible endpoints."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gpt-4o",
        max_tokens: int = 8192,
        base_url: str | None = None,
        temperature: float = 0.7,
        timeout: float = 120.0,
        display_name: str = "OpenAI",
    ):
        """
        Args:
            api_key: Backend API key; checked on first use
            model: Model used when a request does not name one
            max_tokens: Completion token cap
            base_url: Endpoint override (DeepSeek, proxies)
            temperature: Sampling temperature
            timeout: Request timeout in seconds
            display_name: Provider name used in error messages
        """
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.base_url = base_url
        self.temperature = temperature
        self.timeout = timeout
        self.display_name = display_name
        self._client = None

    @property
    def client(self):
        """SDK client, built on first access."""
        if self._client is None:
            if not self.api_key:
                raise APIKeyMissingError(
                    "API key is not configured. "
                    "Set the environment variable or provide api_key parameter."
                )
            if OpenAISDK is None:
                raise AIClientError(
                    "openai package not installed. " "Install with: pip install openai"
                )
            options = {"api_key": self.api_key, "timeout": self.timeout, "max_retries": 0}
            if self.base_url:
                options["base_url"] = self.base_url
            self._client = OpenAISDK(**options)
        return self._client

    def chat_sync(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        **kwargs,
    ) -> AIResponse:
        """
        Run one chat completion.

        The system prompt, when given, is sent as the first message.
        kwargs may override model, max_tokens and temperature.

        Raises:
            APIKeyMissingError: If API key is not configured
            RateLimitError: If rate limited by OpenAI
            BackendTimeoutError: If the request timed out
            AIProviderError: If OpenAI returns an error
        """
        model = kwargs.get("model") or self.model

        all_messages = []
        if system_prompt:
            all_messages.append({"role": "system", "content": system_prompt})
        all_messages.extend(messages)

        client = self.client

        try:
            response = client.chat.completions.create(
                model=model,
                messages=all_messages,
                max_tokens=kwargs.get("max_tokens", self.max_tokens),
                temperature=kwargs.get("temperature", self.temperature),
            )
        except Exception as e:
            raise classify_provider_error(self.display_name, e) from e

        content = ""
        if response.choices:
            content = response.choices[0].message.content or ""

        usage = {}
        if response.usage is not None:
            usage = {
                "input": response.usage.prompt_tokens,
                "output": response.usage.completion_tokens,
            }

        return AIResponse(content=content, model=model, usage=usage)
