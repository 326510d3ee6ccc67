"""
Request identity helpers.

Login itself happens outside this app; callers forward the opaque account id
in the X-Account-Id header and Flask-Login loads the matching Account.
"""

import hmac
import logging
from functools import wraps

from flask import current_app, jsonify, request
from flask_login import LoginManager, current_user

from markupgen.models import Account, db

logger = logging.getLogger(__name__)

ACCOUNT_HEADER = "X-Account-Id"
ADMIN_HEADER = "X-Admin-Token"

login_manager = LoginManager()


@login_manager.request_loader
def load_account_from_request(req):
    """Load the account named by the X-Account-Id header."""
    account_id = (req.headers.get(ACCOUNT_HEADER) or "").strip()
    if not account_id:
        return None
    return db.session.get(Account, account_id)


@login_manager.unauthorized_handler
def unauthorized():
    """Handle unauthorized access."""
    return jsonify({"errorKind": "AuthenticationRequired", "message": "Authentication required"}), 401


def current_account_id(body: dict | None = None) -> str | None:
    """
    Account id for the current request.

    The X-Account-Id header wins; the JSON body's accountId is accepted for
    callers that cannot set headers.
    """
    if current_user.is_authenticated:
        return current_user.id
    header_id = (request.headers.get(ACCOUNT_HEADER) or "").strip()
    if header_id:
        # Header names an account the store does not know
        return header_id
    if body:
        account_id = body.get("accountId")
        if isinstance(account_id, str) and account_id.strip():
            return account_id.strip()
    return None


def admin_required(f):
    """Require the configured admin token. Admin routes are off without ADMIN_TOKEN."""

    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("ADMIN_TOKEN")
        if not expected:
            return jsonify({"errorKind": "Forbidden", "message": "Admin API is disabled"}), 403

        supplied = request.headers.get(ADMIN_HEADER) or ""
        if not hmac.compare_digest(supplied.encode(), str(expected).encode()):
            logger.warning("Rejected admin request with invalid token from %s", request.remote_addr)
            return jsonify({"errorKind": "Forbidden", "message": "Access denied"}), 403

        return f(*args, **kwargs)

    return decorated_function
