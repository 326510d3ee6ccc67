"""Application configuration."""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

logger = logging.getLogger(__name__)

# Backend ids in preference order (first credentialed one wins as default).
KNOWN_PROVIDERS = ("anthropic", "openai", "deepseek", "gemini")

CREDENTIAL_KEYS = {
    "anthropic": "ANTHROPIC_API_KEY",
    "openai": "OPENAI_API_KEY",
    "deepseek": "DEEPSEEK_API_KEY",
    "gemini": "GOOGLE_AI_API_KEY",
}

MODEL_LIST_KEYS = {
    "anthropic": "ANTHROPIC_MODELS",
    "openai": "OPENAI_MODELS",
    "deepseek": "DEEPSEEK_MODELS",
    "gemini": "GEMINI_MODELS",
}

BASE_URL_KEYS = {
    "openai": "OPENAI_BASE_URL",
    "deepseek": "DEEPSEEK_BASE_URL",
}


def _env_flag(name: str) -> bool | None:
    """Read a true/false environment variable, None when unset."""
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return None
    return raw.strip().lower() == "true"


def split_csv(value: Any) -> list[str]:
    """Split a comma-separated setting, dropping blanks."""
    if not value:
        return []
    if isinstance(value, (list, tuple)):
        items = value
    else:
        items = str(value).split(",")
    return [str(item).strip() for item in items if str(item).strip()]


class Config:
    """Base configuration."""

    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-key-change-in-production")
    DEBUG = False
    TESTING = False

    # Database
    SQLALCHEMY_DATABASE_URI = os.environ.get("DATABASE_URL", "sqlite:///app.db")
    # Fix for Railway PostgreSQL URL format
    if SQLALCHEMY_DATABASE_URI.startswith("postgres://"):
        SQLALCHEMY_DATABASE_URI = SQLALCHEMY_DATABASE_URI.replace(
            "postgres://", "postgresql://", 1
        )
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    # AI Provider allow-list and default override
    AI_PROVIDERS = os.environ.get("AI_PROVIDERS")
    AI_PROVIDER = os.environ.get("AI_PROVIDER")
    AI_MAX_TOKENS = int(os.environ.get("AI_MAX_TOKENS", "8192"))
    AI_TEMPERATURE = float(os.environ.get("AI_TEMPERATURE", "0.7"))
    AI_REQUEST_TIMEOUT = float(os.environ.get("AI_REQUEST_TIMEOUT", "120"))

    # Anthropic Configuration
    ANTHROPIC_API_KEY = os.environ.get("ANTHROPIC_API_KEY")
    ANTHROPIC_MODELS = os.environ.get("ANTHROPIC_MODELS")

    # OpenAI Configuration
    OPENAI_API_KEY = os.environ.get("OPENAI_API_KEY")
    OPENAI_MODELS = os.environ.get("OPENAI_MODELS")
    OPENAI_BASE_URL = os.environ.get("OPENAI_BASE_URL")

    # Deepseek Configuration (OpenAI-compatible)
    DEEPSEEK_API_KEY = os.environ.get("DEEPSEEK_API_KEY")
    DEEPSEEK_MODELS = os.environ.get("DEEPSEEK_MODELS")
    DEEPSEEK_BASE_URL = os.environ.get("DEEPSEEK_BASE_URL", "https://api.deepseek.com")

    # Google Gemini Configuration
    GOOGLE_AI_API_KEY = os.environ.get("GOOGLE_AI_API_KEY")
    GEMINI_MODELS = os.environ.get("GEMINI_MODELS")

    # Usage entitlement
    DEFAULT_MAX_USAGE = int(os.environ.get("DEFAULT_MAX_USAGE", "3"))
    ALLOW_ANONYMOUS = bool(_env_flag("ALLOW_ANONYMOUS"))

    # Admin endpoints are disabled unless a token is set
    ADMIN_TOKEN = os.environ.get("ADMIN_TOKEN")


class DevelopmentConfig(Config):
    """Development configuration."""

    DEBUG = True
    # Anonymous use defaults to on in development unless explicitly disabled
    ALLOW_ANONYMOUS = _env_flag("ALLOW_ANONYMOUS") is not False


class ProductionConfig(Config):
    """Production configuration."""

    DEBUG = False


class TestingConfig(Config):
    """Testing configuration."""

    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS: dict = {}
    # Providers are backed by MockAIClient in tests
    AI_PROVIDERS = "openai,anthropic"
    AI_PROVIDER = None
    OPENAI_API_KEY = "test-openai-key"
    OPENAI_MODELS = "gpt-4o,gpt-4o-mini"
    OPENAI_BASE_URL = None
    ANTHROPIC_API_KEY = "test-anthropic-key"
    ANTHROPIC_MODELS = "claude-sonnet-4-20250514"
    DEEPSEEK_API_KEY = None
    DEEPSEEK_MODELS = None
    GOOGLE_AI_API_KEY = None
    GEMINI_MODELS = None
    DEFAULT_MAX_USAGE = 3
    ALLOW_ANONYMOUS = True
    ADMIN_TOKEN = "test-admin-token"


@dataclass(frozen=True)
class ProviderSettings:
    """
    Validated provider configuration, parsed once at startup.

    A backend is usable only when it is enabled, has a credential and has a
    non-empty model allow-list.
    """

    enabled: tuple[str, ...] = ()
    credentials: Mapping[str, str] = field(default_factory=dict)
    models: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    base_urls: Mapping[str, str] = field(default_factory=dict)
    default_provider: str | None = None
    max_tokens: int = 8192
    temperature: float = 0.7
    timeout: float = 120.0

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any]) -> ProviderSettings:
        """
        Build settings from a Flask config (or any key/value mapping).

        Args:
            config: Mapping holding the AI_* and per-provider keys

        Returns:
            Immutable ProviderSettings
        """
        requested = split_csv(config.get("AI_PROVIDERS"))
        if requested:
            enabled = []
            for provider in requested:
                provider = provider.lower()
                if provider not in KNOWN_PROVIDERS:
                    logger.warning("Ignoring unknown AI provider in AI_PROVIDERS: %s", provider)
                    continue
                if provider not in enabled:
                    enabled.append(provider)
        else:
            enabled = list(KNOWN_PROVIDERS)

        credentials = {
            provider: str(config.get(key))
            for provider, key in CREDENTIAL_KEYS.items()
            if config.get(key)
        }
        models = {
            provider: tuple(split_csv(config.get(key)))
            for provider, key in MODEL_LIST_KEYS.items()
        }
        base_urls = {
            provider: str(config.get(key))
            for provider, key in BASE_URL_KEYS.items()
            if config.get(key)
        }

        default_provider = config.get("AI_PROVIDER")
        if default_provider:
            default_provider = str(default_provider).strip().lower() or None

        return cls(
            enabled=tuple(enabled),
            credentials=credentials,
            models=models,
            base_urls=base_urls,
            default_provider=default_provider,
            max_tokens=int(config.get("AI_MAX_TOKENS", 8192)),
            temperature=float(config.get("AI_TEMPERATURE", 0.7)),
            timeout=float(config.get("AI_REQUEST_TIMEOUT", 120)),
        )

    def allowed_providers(self) -> tuple[str, ...]:
        """Enabled ∩ credentialed ∩ non-empty model list, in enabled order."""
        credentialed = set(self.credentials)
        with_models = {p for p, models in self.models.items() if models}
        usable = set(self.enabled) & credentialed & with_models
        return tuple(p for p in self.enabled if p in usable)

    def models_for(self, provider: str) -> tuple[str, ...]:
        """Model allow-list for a provider (empty when the provider is not usable)."""
        if provider not in self.allowed_providers():
            return ()
        return tuple(self.models.get(provider, ()))
