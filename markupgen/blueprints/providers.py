"""
Providers Blueprint

Endpoints:
- GET /api/providers - List allow-listed AI providers and their models
"""

import logging

from flask import Blueprint, jsonify

from markupgen.ai import get_provider_registry

logger = logging.getLogger(__name__)

providers_bp = Blueprint("providers", __name__)


@providers_bp.route("/api/providers", methods=["GET"])
def api_list_providers():
    """
    List usable providers.

    Response:
        - providers: [{name, configured, models}]
        - defaultProvider: Provider used when a request names none (or null)
    """
    try:
        return jsonify(get_provider_registry().describe())
    except Exception as e:
        logger.exception(f"Error listing providers: {e}")
        return (
            jsonify({"errorKind": "InternalError", "message": "Failed to list providers"}),
            500,
        )
