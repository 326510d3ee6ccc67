"""
Assets Blueprint

Browse stored generations.

Endpoints:
- GET /api/assets - Paginated list (own assets when identified)
- GET /api/assets/<id> - Single asset with code
"""

import logging

from flask import Blueprint, jsonify, request

from markupgen.auth import current_account_id
from markupgen.generation import ContentKind, ValidationError
from markupgen.models import Asset, db
from markupgen.utils import page_metadata, parse_int_query_arg

logger = logging.getLogger(__name__)

assets_bp = Blueprint("assets", __name__)


@assets_bp.route("/api/assets", methods=["GET"])
def api_list_assets():
    """
    List assets, newest first.

    Query params:
        - page: Page number (default: 1)
        - per_page: Page size (default: 20, max: 100)
        - type: "graphics" or "document" (optional)
    """
    try:
        page = parse_int_query_arg("page", default=1, minimum=1)
        per_page = parse_int_query_arg("per_page", default=20, minimum=1, maximum=100)
        kind_filter = request.args.get("type")
        kind = ContentKind.parse(kind_filter) if kind_filter else None
    except ValueError as e:
        return jsonify({"errorKind": "ValidationError", "message": str(e)}), 400
    except ValidationError as e:
        return jsonify(e.to_dict()), e.status_code

    query = Asset.query
    account_id = current_account_id()
    if account_id is not None:
        query = query.filter_by(account_id=account_id)
    if kind is not None:
        query = query.filter_by(content_kind=kind.value)

    query = query.order_by(Asset.created_at.desc())
    total = query.count()
    assets = query.offset((page - 1) * per_page).limit(per_page).all()

    return jsonify(
        {
            "assets": [a.to_dict(include_code=False) for a in assets],
            **page_metadata(page, per_page, total),
        }
    )


@assets_bp.route("/api/assets/<asset_id>", methods=["GET"])
def api_get_asset(asset_id):
    """Get a single asset including its markup."""
    asset = db.session.get(Asset, asset_id)
    if asset is None:
        return jsonify({"errorKind": "NotFound", "message": "Asset not found"}), 404
    return jsonify({"asset": asset.to_dict()})
