"""Startup configuration audit and readiness checks."""

from __future__ import annotations

import os
from typing import Any

from flask import Flask
from sqlalchemy import text

from markupgen.config import CREDENTIAL_KEYS, MODEL_LIST_KEYS, ProviderSettings
from markupgen.models import db

_DEV_CONFIG_SENTINEL = "dev-" + "key-change-in-production"


def db_connectivity_check() -> dict[str, Any]:
    """Check that the app can execute a simple query."""
    try:
        db.session.execute(text("SELECT 1"))
        return {"ok": True}
    except Exception as exc:
        db.session.rollback()
        return {"ok": False, "detail": f"{type(exc).__name__}: {exc}"}


def _provider_warnings(settings: ProviderSettings) -> list[str]:
    warnings: list[str] = []
    for provider in settings.enabled:
        has_key = provider in settings.credentials
        has_models = bool(settings.models.get(provider))
        if has_key and not has_models:
            warnings.append(
                f"{CREDENTIAL_KEYS[provider]} is set but {MODEL_LIST_KEYS[provider]} "
                f"is empty; {provider} is disabled."
            )
        elif has_models and not has_key:
            warnings.append(
                f"{MODEL_LIST_KEYS[provider]} is set but {CREDENTIAL_KEYS[provider]} "
                f"is missing; {provider} is disabled."
            )
    if settings.default_provider and settings.default_provider not in settings.allowed_providers():
        warnings.append(
            f"AI_PROVIDER={settings.default_provider} is not usable; "
            "the first allow-listed provider will be used."
        )
    return warnings


def run_startup_config_audit(app: Flask) -> dict[str, list[str]]:
    """Audit critical startup settings and return warnings/errors."""
    warnings: list[str] = []
    errors: list[str] = []

    is_production = _is_production_context(app)
    secret_key = app.config.get("SECRET_KEY")
    if not secret_key or secret_key == _DEV_CONFIG_SENTINEL:  # noqa: S105
        message = "SECRET_KEY is using a development default."
        if is_production:
            errors.append(message)
        else:
            warnings.append(message)

    database_uri = app.config.get("SQLALCHEMY_DATABASE_URI", "")
    if is_production and str(database_uri).startswith("sqlite:///"):
        errors.append(
            "SQLALCHEMY_DATABASE_URI is using local sqlite in production context."
        )

    settings = ProviderSettings.from_mapping(app.config)
    warnings.extend(_provider_warnings(settings))
    if not settings.allowed_providers():
        message = (
            "No AI provider is usable: each needs to be enabled, have an API key "
            "and a non-empty model list."
        )
        if is_production:
            errors.append(message)
        else:
            warnings.append(message)

    if is_production and app.config.get("ALLOW_ANONYMOUS"):
        warnings.append("ALLOW_ANONYMOUS is enabled in production; usage is not metered.")

    return {"warnings": warnings, "errors": errors}


def build_readiness_report(
    app: Flask, config_audit: dict[str, list[str]]
) -> dict[str, Any]:
    """Build readiness state from DB, provider and startup audit checks."""
    registry = app.extensions.get("provider_registry")
    providers = [d.id for d in registry.list_allowed()] if registry else []

    checks = {
        "db_connectivity": db_connectivity_check(),
        "providers": {
            "ok": len(providers) > 0,
            "allowed": providers,
        },
        "startup_config": {
            "ok": len(config_audit.get("errors", [])) == 0,
            "warnings": list(config_audit.get("warnings", [])),
            "errors": list(config_audit.get("errors", [])),
        },
    }

    ready = all(check["ok"] for check in checks.values())
    return {
        "ready": ready,
        "status": "ready" if ready else "not_ready",
        "checks": checks,
    }


def should_fail_fast_on_config_audit(app: Flask) -> bool:
    """True when startup should fail on config audit errors."""
    return bool(app.config.get("STARTUP_CONFIG_AUDIT_FAIL_FAST", False))


def _is_production_context(app: Flask) -> bool:
    if app.config.get("TESTING"):
        return False
    if app.config.get("DEBUG"):
        return False

    explicit_env = os.getenv("FLASK_ENV") or os.getenv("APP_ENV") or ""
    return explicit_env.lower() == "production"
