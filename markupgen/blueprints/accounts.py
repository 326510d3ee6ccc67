"""
Accounts Blueprint

Usage entitlement endpoints for the current account and administrators.

Endpoints:
- GET /api/user - Current account usage (remaining -1 = unlimited)
- GET /api/admin/accounts - List accounts
- POST /api/admin/accounts - Create an account
- PATCH /api/admin/accounts/<id> - Toggle unlimited, reset or raise usage
"""

import logging

from flask import Blueprint, jsonify, request

from markupgen.auth import admin_required, current_account_id
from markupgen.generation import GenerationError, ValidationError, get_quota_ledger
from markupgen.models import Account
from markupgen.utils import page_metadata, parse_int_query_arg

logger = logging.getLogger(__name__)

accounts_bp = Blueprint("accounts", __name__)


@accounts_bp.route("/api/user", methods=["GET"])
def api_current_user():
    """
    Get usage for the current account.

    Response:
        - accountId, usageCount, maxUsage, isPermanent
        - remaining: Generations left (-1 = unlimited)
    """
    account_id = current_account_id()
    if account_id is None:
        return jsonify({"errorKind": "AuthenticationRequired", "message": "Please sign in"}), 401

    usage = get_quota_ledger().usage(account_id)
    if usage is None:
        return jsonify({"errorKind": "AccountNotFound", "message": "Account not found"}), 404
    return jsonify(usage)


@accounts_bp.route("/api/admin/accounts", methods=["GET"])
@admin_required
def api_list_accounts():
    """
    List accounts, newest first.

    Query params:
        - page: Page number (default: 1)
        - per_page: Page size (default: 50, max: 200)
    """
    try:
        page = parse_int_query_arg("page", default=1, minimum=1)
        per_page = parse_int_query_arg("per_page", default=50, minimum=1, maximum=200)
    except ValueError as e:
        return jsonify({"errorKind": "ValidationError", "message": str(e)}), 400

    query = Account.query.order_by(Account.created_at.desc())
    total = query.count()
    accounts = query.offset((page - 1) * per_page).limit(per_page).all()

    return jsonify(
        {
            "accounts": [a.to_dict() for a in accounts],
            **page_metadata(page, per_page, total),
        }
    )


@accounts_bp.route("/api/admin/accounts", methods=["POST"])
@admin_required
def api_create_account():
    """
    Create an account (or return the existing one).

    Request (JSON):
        - accountId: Opaque id from the login flow (required)
    """
    data = request.get_json(silent=True) or {}
    account_id = data.get("accountId")
    if not isinstance(account_id, str) or not account_id.strip():
        return jsonify({"errorKind": "ValidationError", "message": "accountId is required"}), 400

    ledger = get_quota_ledger()
    ledger.ensure_account(account_id.strip())
    return jsonify(ledger.usage(account_id.strip())), 201


@accounts_bp.route("/api/admin/accounts/<account_id>", methods=["PATCH"])
@admin_required
def api_update_account(account_id):
    """
    Update an account's entitlement.

    Request (JSON):
        - unlimited: bool (optional)
        - resetUsage: bool (optional) - zero the usage counter
        - increaseUsage: int (optional) - add to capacity
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"errorKind": "ValidationError", "message": "JSON body required"}), 400

    ledger = get_quota_ledger()
    try:
        unlimited = data.get("unlimited", data.get("isPermanent"))
        if unlimited is not None:
            if not isinstance(unlimited, bool):
                raise ValidationError(
                    "unlimited is not a bool", user_message="unlimited must be a boolean"
                )
            ledger.set_unlimited(account_id, unlimited)

        if data.get("resetUsage"):
            ledger.reset(account_id)

        increase = data.get("increaseUsage")
        if increase is not None:
            ledger.grant(account_id, increase)

        usage = ledger.usage(account_id)
        if usage is None:
            return jsonify({"errorKind": "AccountNotFound", "message": "Account not found"}), 404
        return jsonify(usage)

    except GenerationError as e:
        return jsonify(e.to_dict()), e.status_code
