"""
AI Module

Backend clients for the supported AI providers and the registry that
allow-lists and caches them.

Usage:
    from markupgen.ai import ProviderRegistry, get_provider_registry

    registry = get_provider_registry()
    provider = registry.default_provider()
    client = registry.resolve(provider)
    response = client.chat_sync(
        [{"role": "user", "content": "Draw a circle"}],
        model=registry.resolve_model(provider),
    )
"""

from .client import (
    AIClient,
    AIClientError,
    AIProviderError,
    AnthropicClient,
    APIKeyMissingError,
    BackendConnectionError,
    BackendTimeoutError,
    MockAIClient,
    RateLimitError,
)
from .gemini_client import GeminiClient
from .models import AIResponse, ProviderDescriptor
from .openai_client import OpenAIClient
from .registry import (
    ModelNotAllowedError,
    ProviderRegistry,
    UnconfiguredProviderError,
    get_provider_registry,
    init_provider_registry,
)

__all__ = [
    # Models
    "AIResponse",
    "ProviderDescriptor",
    # Client classes
    "AIClient",
    "AnthropicClient",
    "GeminiClient",
    "MockAIClient",
    "OpenAIClient",
    # Exceptions
    "AIClientError",
    "APIKeyMissingError",
    "AIProviderError",
    "BackendConnectionError",
    "BackendTimeoutError",
    "ModelNotAllowedError",
    "RateLimitError",
    "UnconfiguredProviderError",
    # Registry
    "ProviderRegistry",
    "get_provider_registry",
    "init_provider_registry",
]
