"""
Provider Registry

Owns the allow-listed backend descriptors and one cached client per backend.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TYPE_CHECKING

from flask import current_app

from markupgen.config import ProviderSettings

from .client import AIClient, AIClientError, AnthropicClient, MockAIClient
from .gemini_client import GeminiClient
from .models import ProviderDescriptor
from .openai_client import OpenAIClient

if TYPE_CHECKING:
    from flask import Flask

logger = logging.getLogger(__name__)

ClientFactory = Callable[[str, ProviderSettings], AIClient]


class UnconfiguredProviderError(AIClientError):
    """Raised when a provider is not allow-listed or has no credential."""


class ModelNotAllowedError(AIClientError):
    """Raised when a model is not in the provider's allow-list."""


def default_client_factory(provider: str, settings: ProviderSettings) -> AIClient:
    """Build the SDK-backed client for a provider id."""
    api_key = settings.credentials.get(provider)
    models = settings.models_for(provider)
    options = {
        "max_tokens": settings.max_tokens,
        "temperature": settings.temperature,
        "timeout": settings.timeout,
    }
    if models:
        options["model"] = models[0]

    if provider == "anthropic":
        return AnthropicClient(api_key=api_key, **options)
    if provider == "openai":
        return OpenAIClient(
            api_key=api_key, base_url=settings.base_urls.get("openai"), **options
        )
    if provider == "deepseek":
        return OpenAIClient(
            api_key=api_key,
            base_url=settings.base_urls.get("deepseek", "https://api.deepseek.com"),
            display_name="Deepseek",
            **options,
        )
    if provider == "gemini":
        return GeminiClient(api_key=api_key, **options)
    raise UnconfiguredProviderError(f"Unsupported AI provider: {provider}")


def mock_client_factory(provider: str, settings: ProviderSettings) -> AIClient:
    """Client factory used by TESTING apps."""
    models = settings.models_for(provider)
    return MockAIClient(model=models[0] if models else "mock-model")


class ProviderRegistry:
    """
    Resolves backend ids to generation clients.

    The allow-list is computed once from ProviderSettings. Clients are created
    lazily on first resolve and cached for the lifetime of the registry.

    Usage:
        registry = ProviderRegistry(ProviderSettings.from_mapping(app.config))
        provider = registry.default_provider()
        client = registry.resolve(provider)
        model = registry.resolve_model(provider, None)
    """

    def __init__(
        self,
        settings: ProviderSettings,
        client_factory: ClientFactory | None = None,
    ):
        self.settings = settings
        self._client_factory = client_factory or default_client_factory
        self._allowed = settings.allowed_providers()
        self._clients: dict[str, AIClient] = {}
        self._lock = threading.Lock()

    def list_allowed(self) -> list[ProviderDescriptor]:
        """Descriptors for every usable provider, in allow-list order."""
        return [
            ProviderDescriptor(
                id=provider,
                configured=True,
                allowed_models=self.settings.models_for(provider),
            )
            for provider in self._allowed
        ]

    def is_allowed(self, provider: str) -> bool:
        return provider in self._allowed

    def default_provider(self) -> str | None:
        """Configured default if usable, else the first usable provider, else None."""
        configured = self.settings.default_provider
        if configured:
            if configured in self._allowed:
                return configured
            logger.warning(
                "AI_PROVIDER=%s is not usable (not enabled, no credential or no models); "
                "falling back to the first allow-listed provider",
                configured,
            )
        return self._allowed[0] if self._allowed else None

    def resolve(self, provider: str) -> AIClient:
        """
        Get the cached client for a provider, creating it on first use.

        Concurrent first calls may each build a candidate; exactly one is
        stored and the others are closed and discarded.

        Raises:
            UnconfiguredProviderError: If the provider is not usable
        """
        if provider not in self._allowed:
            raise UnconfiguredProviderError(
                f"AI provider {provider} is not enabled or has no credential"
            )

        client = self._clients.get(provider)
        if client is not None:
            return client

        candidate = self._client_factory(provider, self.settings)
        with self._lock:
            client = self._clients.setdefault(provider, candidate)

        if client is not candidate:
            candidate.close()
        else:
            logger.info(f"AI client initialized for provider {provider}")
        return client

    def resolve_model(self, provider: str, model: str | None = None) -> str:
        """
        Pick the model to use for a provider.

        Args:
            provider: Allow-listed provider id
            model: Requested model, or None for the provider's first model

        Raises:
            UnconfiguredProviderError: If the provider is not usable
            ModelNotAllowedError: If the requested model is not allow-listed
        """
        models = self.settings.models_for(provider)
        if not models:
            raise UnconfiguredProviderError(
                f"AI provider {provider} has no allow-listed models"
            )
        if not model:
            return models[0]
        if model not in models:
            raise ModelNotAllowedError(
                f"Model {model} is not enabled for provider {provider}"
            )
        return model

    def describe(self) -> dict:
        """Listing served by GET /api/providers."""
        return {
            "providers": [d.to_dict() for d in self.list_allowed()],
            "defaultProvider": self.default_provider(),
        }

    def close(self) -> None:
        """Close and forget every cached client."""
        with self._lock:
            clients = list(self._clients.values())
            self._clients.clear()
        for client in clients:
            client.close()


def init_provider_registry(app: Flask) -> ProviderRegistry:
    """
    Build the provider registry from Flask app config.

    In testing mode every allow-listed provider is backed by MockAIClient.
    """
    settings = ProviderSettings.from_mapping(app.config)
    factory = mock_client_factory if app.config.get("TESTING") else None
    registry = ProviderRegistry(settings, client_factory=factory)
    app.extensions["provider_registry"] = registry

    allowed = settings.allowed_providers()
    if allowed:
        logger.info(
            f"Provider registry initialized: providers={list(allowed)}, "
            f"default={registry.default_provider()}"
        )
    else:
        logger.warning("No AI provider is configured. Generation will be unavailable.")
    return registry


def get_provider_registry() -> ProviderRegistry:
    """Get the registry owned by the current app."""
    return current_app.extensions["provider_registry"]
