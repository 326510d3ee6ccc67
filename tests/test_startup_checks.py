"""Tests for startup checks, health endpoints and the CLI."""

from flask import Flask

from markupgen.services.startup_checks import build_readiness_report, run_startup_config_audit


def _bare_app(**config):
    app = Flask(__name__)
    app.config["TESTING"] = False
    app.config["DEBUG"] = False
    app.config.update(config)
    return app


def test_startup_config_audit_flags_production_defaults(monkeypatch):
    app = _bare_app(
        SECRET_KEY="dev-key-change-in-production",  # noqa: S105
        SQLALCHEMY_DATABASE_URI="sqlite:///app.db",
        AI_PROVIDERS="anthropic",
        ANTHROPIC_API_KEY=None,
        ALLOW_ANONYMOUS=True,
    )

    monkeypatch.setenv("FLASK_ENV", "production")
    result = run_startup_config_audit(app)

    assert any("SECRET_KEY" in error for error in result["errors"])
    assert any("SQLALCHEMY_DATABASE_URI" in error for error in result["errors"])
    assert any("No AI provider is usable" in error for error in result["errors"])
    assert any("ALLOW_ANONYMOUS" in warning for warning in result["warnings"])


def test_audit_only_warns_outside_production(monkeypatch):
    monkeypatch.delenv("FLASK_ENV", raising=False)
    monkeypatch.delenv("APP_ENV", raising=False)
    app = _bare_app(SECRET_KEY="dev-key-change-in-production")  # noqa: S106

    result = run_startup_config_audit(app)

    assert result["errors"] == []
    assert any("SECRET_KEY" in warning for warning in result["warnings"])


def test_audit_explains_excluded_providers(monkeypatch):
    monkeypatch.delenv("FLASK_ENV", raising=False)
    app = _bare_app(
        SECRET_KEY="real-secret",  # noqa: S106
        AI_PROVIDERS="openai,gemini",
        OPENAI_API_KEY="sk-test",
        GEMINI_MODELS="gemini-2.0-flash",
        AI_PROVIDER="gemini",
    )

    warnings = run_startup_config_audit(app)["warnings"]

    assert any("OPENAI_MODELS is empty" in w for w in warnings)
    assert any("GOOGLE_AI_API_KEY is missing" in w for w in warnings)
    assert any("AI_PROVIDER=gemini" in w for w in warnings)


def test_readiness_report_fails_on_audit_errors(app):
    report = build_readiness_report(app, {"warnings": [], "errors": ["boom"]})

    assert report["ready"] is False
    assert report["checks"]["startup_config"]["ok"] is False
    assert report["checks"]["providers"]["allowed"] == ["openai", "anthropic"]


def test_health_endpoint(client):
    payload = client.get("/health").get_json()

    assert payload["status"] == "healthy"
    assert payload["providers"] == ["openai", "anthropic"]


def test_health_ready_endpoint_reports_ready(client):
    response = client.get("/health/ready")

    assert response.status_code == 200
    payload = response.get_json()
    assert payload["ready"] is True
    assert payload["checks"]["db_connectivity"]["ok"] is True
    assert payload["checks"]["providers"]["ok"] is True


def test_create_account_command(app, ledger):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-account", "cli-1", "--capacity", "7"])

    assert result.exit_code == 0
    assert "remaining=7" in result.output
    assert ledger.check("cli-1") == (True, 7)


def test_create_unlimited_account_command(app, ledger):
    runner = app.test_cli_runner()

    result = runner.invoke(args=["create-account", "cli-vip", "--unlimited"])

    assert result.exit_code == 0
    assert ledger.check("cli-vip") == (True, -1)
