"""
Gemini Client

Implementation of AIClient for Google's Gemini API (google-genai SDK).
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

# Module-level import so tests can patch the SDK
GeminiSDK = None
GeminiTypes = None
try:
    from google import genai as GeminiSDK  # type: ignore[no-redef,assignment]  # noqa: F401
    from google.genai import types as GeminiTypes  # type: ignore[no-redef,assignment]  # noqa: F401
except ImportError:
    pass


class GeminiClient(AIClient):
    """Google Gemini API client."""

    def __init__(
        self,
        api_key: str | None = None,
        model: str = "gemini-2.0-flash",
        max_tokens: int = 8192,
        temperature: float = 0.7,
        timeout: float = 120.0,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client = None

    @property
    def client(self):
        """Lazy initialization of the genai client."""
        if self._client is None:
            if not self.api_key:
                raise APIKeyMissingError(
                    "GOOGLE_AI_API_KEY is not configured. "
                    "Set the environment variable or provide api_key parameter."
                )
            if GeminiSDK is None or GeminiTypes is None:
                raise AIClientError(
                    "google-genai package not installed. "
                    "Install with: pip install google-genai"
                )
            # HttpOptions timeout is in milliseconds
            self._client = GeminiSDK.Client(
                api_key=self.api_key,
                http_options=GeminiTypes.HttpOptions(timeout=int(self.timeout * 1000)),
            )
        return self._client

    @staticmethod
    def _to_contents(messages: list[dict[str, str]]) -> list[dict]:
        """Convert role/content messages to Gemini contents."""
        return [
            {
                "role": "model" if message["role"] == "assistant" else "user",
                "parts": [{"text": message["content"]}],
            }
            for message in messages
        ]

    def chat_sync(
        self,
        messages: list[dict[str, str]],
        system_prompt: str | None = None,
        **kwargs,
    ) -> AIResponse:
        """
        Send a generate_content request synchronously.

        Raises:
            APIKeyMissingError: If API key is missing or rejected
            RateLimitError: If quota or rate limits are hit
            BackendTimeoutError: If the request timed out
            AIProviderError: If Gemini returns an error
        """
        model = kwargs.get("model") or self.model
        client = self.client

        config = GeminiTypes.GenerateContentConfig(
            system_instruction=system_prompt or None,
            max_output_tokens=kwargs.get("max_tokens", self.max_tokens),
            temperature=kwargs.get("temperature", self.temperature),
        )

        try:
            response = client.models.generate_content(
                model=model,
                contents=self._to_contents(messages),
                config=config,
            )
        except Exception as e:
            raise classify_provider_error("Gemini", e) from e

        usage = {}
        metadata = getattr(response, "usage_metadata", None)
        if metadata is not None:
            usage = {
                "input": metadata.prompt_token_count or 0,
                "output": metadata.candidates_token_count or 0,
            }

        return AIResponse(content=response.text or "", model=model, usage=usage)
