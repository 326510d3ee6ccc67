"""Pytest configuration and shared fixtures."""

import pytest

VALID_SVG = '<svg xmlns="http://www.w3.org/2000/svg" viewBox="0 0 10 10"><circle r="4"/></svg>'


@pytest.fixture(scope="function")
def app():
    """Create test Flask app with proper context handling."""
    from markupgen.app import create_app
    from markupgen.config import TestingConfig

    app = create_app(TestingConfig)
    app.config["TESTING"] = True

    with app.app_context():
        from markupgen.models import db

        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture
def db(app):
    """Get database instance."""
    from markupgen.models import db as _db

    return _db


@pytest.fixture
def ledger(app):
    """Quota ledger owned by the test app."""
    return app.extensions["quota_ledger"]


@pytest.fixture
def registry(app):
    """Provider registry owned by the test app."""
    return app.extensions["provider_registry"]


@pytest.fixture
def mock_backend(registry):
    """MockAIClient behind the default (openai) provider."""
    backend = registry.resolve("openai")
    backend.response_content = VALID_SVG
    return backend


@pytest.fixture
def account(ledger):
    """Capped account with the default capacity of 3."""
    ledger.ensure_account("acc-1")
    return "acc-1"
