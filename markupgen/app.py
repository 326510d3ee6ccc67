"""Main Flask application."""

import logging
import os

import click
from flask import Flask, jsonify

from markupgen.ai import init_provider_registry
from markupgen.auth import login_manager
from markupgen.blueprints import accounts_bp, assets_bp, generate_bp, providers_bp
from markupgen.config import Config
from markupgen.generation import init_generation_orchestrator, init_quota_ledger
from markupgen.models import db
from markupgen.services.startup_checks import (
    build_readiness_report,
    run_startup_config_audit,
    should_fail_fast_on_config_audit,
)

logger = logging.getLogger(__name__)


def create_app(config_class: type = Config) -> Flask:
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config.from_object(config_class)

    config_audit = run_startup_config_audit(app)
    app.extensions["startup_config_audit"] = config_audit

    for warning in config_audit.get("warnings", []):
        logger.warning("Startup config warning: %s", warning)
    for error in config_audit.get("errors", []):
        logger.error("Startup config issue: %s", error)
    if config_audit.get("errors") and should_fail_fast_on_config_audit(app):
        raise RuntimeError(
            "Startup config audit failed with errors: "
            + "; ".join(config_audit["errors"])
        )

    # Initialize extensions
    db.init_app(app)
    login_manager.init_app(app)

    # Keep bootstrap table creation for fresh ephemeral environments.
    with app.app_context():
        db.create_all()

    # Provider registry and quota ledger are owned by the app; the
    # orchestrator is wired to both
    init_provider_registry(app)
    init_quota_ledger(app)
    init_generation_orchestrator(app)

    # Register blueprints
    app.register_blueprint(generate_bp)
    app.register_blueprint(providers_bp)
    app.register_blueprint(accounts_bp)
    app.register_blueprint(assets_bp)

    @app.route("/health")
    def health_check():
        """Health check endpoint."""
        registry = app.extensions["provider_registry"]
        return jsonify(
            {
                "status": "healthy",
                "version": "0.1.0",
                "providers": [d.id for d in registry.list_allowed()],
            }
        )

    @app.route("/health/ready")
    def readiness_check():
        """Readiness endpoint that verifies DB, providers, and startup config."""
        report = build_readiness_report(
            app,
            app.extensions.get("startup_config_audit", {"warnings": [], "errors": []}),
        )
        return jsonify(report), (200 if report["ready"] else 503)

    @app.cli.command("create-account")
    @click.argument("account_id")
    @click.option("--capacity", type=int, default=None, help="Generations allowed.")
    @click.option("--unlimited", is_flag=True, help="Exempt the account from limits.")
    def create_account_command(account_id, capacity, unlimited):
        """Create an account with a usage entitlement."""
        ledger = app.extensions["quota_ledger"]
        account = ledger.ensure_account(account_id)
        if capacity is not None and capacity != account.capacity:
            ledger.set_capacity(account_id, capacity)
        if unlimited:
            ledger.set_unlimited(account_id, True)
        usage = ledger.usage(account_id)
        click.echo(
            f"Account {account_id}: {usage['usageCount']}/{usage['maxUsage']} used, "
            f"remaining={usage['remaining']}"
        )

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=os.environ.get("FLASK_DEBUG", "false").lower() == "true")
