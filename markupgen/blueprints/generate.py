"""
Generate Blueprint

REST API endpoint for markup generation.

Endpoints:
- POST /api/generate - Generate (or modify) an SVG graphic or HTML document
"""

import logging

from flask import Blueprint, jsonify, request
from sqlalchemy.exc import SQLAlchemyError

from markupgen.auth import current_account_id
from markupgen.generation import (
    GenerationError,
    GenerationRequest,
    GenerationResult,
    ValidationError,
    get_generation_orchestrator,
)
from markupgen.models import Asset, db

logger = logging.getLogger(__name__)

generate_bp = Blueprint("generate", __name__)


def _load_prior_asset(data: dict) -> Asset | None:
    """Resolve priorAssetId into a stored asset, if given."""
    prior_asset_id = data.get("priorAssetId")
    if not prior_asset_id:
        return None
    if not isinstance(prior_asset_id, str):
        raise ValidationError(
            "priorAssetId is not a string", user_message="priorAssetId must be a string"
        )
    asset = db.session.get(Asset, prior_asset_id)
    if asset is None:
        raise ValidationError(
            f"Prior asset {prior_asset_id} not found",
            user_message="Prior asset not found",
        )
    return asset


def _store_asset(
    generation_request: GenerationRequest,
    result: GenerationResult,
    prior_asset: Asset | None,
) -> Asset:
    """Persist generated markup as an Asset row."""
    asset = Asset(
        account_id=generation_request.account_id,
        description=generation_request.description,
        code=result.artifact.markup,
        content_kind=result.artifact.content_kind.value,
        provider=result.artifact.provider_used,
        model=result.artifact.model_used,
        parent_id=prior_asset.id if prior_asset is not None else None,
    )
    db.session.add(asset)
    db.session.commit()
    return asset


@generate_bp.route("/api/generate", methods=["POST"])
def api_generate():
    """
    Generate markup from a description.

    Request (JSON):
        - description: What to draw or build (required)
        - contentKind: "graphics" (default) or "document"
        - provider: Backend id (optional, default provider otherwise)
        - model: Model name (optional, provider's first model otherwise)
        - priorOutput: Markup to modify (optional, switches to modify mode)
        - priorDescription: Description of priorOutput (optional)
        - priorAssetId: Stored asset to modify when priorOutput is absent
        - accountId: Account id when X-Account-Id is not sent (optional)

    Response:
        - markup, contentKind, providerUsed, modelUsed
        - remaining: Generations left (-1 = unlimited)
        - assetId: Id of the stored asset (null if storing it failed)
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify({"errorKind": "ValidationError", "message": "JSON body required"}), 400

    try:
        payload = dict(data)
        payload["accountId"] = current_account_id(data)

        prior_asset = _load_prior_asset(data)
        if prior_asset is not None and not payload.get("priorOutput"):
            payload["priorOutput"] = prior_asset.code
            payload["priorDescription"] = payload.get("priorDescription") or prior_asset.description
            if not payload.get("contentKind") and not payload.get("contentType"):
                payload["contentKind"] = prior_asset.content_kind

        generation_request = GenerationRequest.from_payload(payload)
        result = get_generation_orchestrator().generate(generation_request)

        response = result.to_dict()
        try:
            response["assetId"] = _store_asset(generation_request, result, prior_asset).id
        except SQLAlchemyError as e:
            # Quota is already spent, so the markup is still returned
            db.session.rollback()
            logger.error(
                f"Failed to store generated asset for account={generation_request.account_id} "
                f"(one generation already consumed, remaining={result.remaining}): {e}"
            )
            response["assetId"] = None
        return jsonify(response)

    except GenerationError as e:
        logger.info(f"Generation rejected: {e.error_kind}: {e}")
        return jsonify(e.to_dict()), e.status_code
    except Exception as e:
        db.session.rollback()
        logger.exception(f"Unexpected generation error: {e}")
        return (
            jsonify(
                {
                    "errorKind": "InternalError",
                    "message": "An error occurred processing your request",
                }
            ),
            500,
        )
