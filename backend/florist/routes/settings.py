# Overview: Flask API routes for card processor fee settings; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_admin
from ..error_reporting import log_unexpected
from ..services import fee_schedule_service
from ..validation import ConflictError, ValidationError


settings_bp = Blueprint("settings", __name__, url_prefix="/api/settings")


@settings_bp.get("/card-companies")
@require_admin
def list_card_companies_route():
    include_inactive = request.args.get("include_inactive", "").lower() == "true"
    rows = fee_schedule_service.list_card_companies(include_inactive=include_inactive)
    return jsonify({"items": [r.to_dict() for r in rows]}), 200


@settings_bp.post("/card-companies")
@require_admin
def create_card_company_route():
    data = request.get_json(silent=True) or {}
    try:
        row = fee_schedule_service.create_card_company(
            name=data.get("name"),
            fee_rate=data.get("fee_rate", fee_schedule_service.DEFAULT_FEE_RATE),
            deposit_days=data.get("deposit_days", fee_schedule_service.DEFAULT_DEPOSIT_DAYS),
        )
        return jsonify({"card_company": row.to_dict()}), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "create card company", request.url)
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.patch("/card-companies/<int:card_company_id>")
@require_admin
def update_card_company_route(card_company_id: int):
    data = request.get_json(silent=True) or {}
    try:
        row = fee_schedule_service.update_card_company(card_company_id, data)
        if not row:
            return jsonify({"error": "Not found"}), 404
        return jsonify({"card_company": row.to_dict()}), 200
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "update card company", request.url)
        return jsonify({"error": "Internal server error"}), 500


@settings_bp.delete("/card-companies/<int:card_company_id>")
@require_admin
def deactivate_card_company_route(card_company_id: int):
    row = fee_schedule_service.deactivate_card_company(card_company_id)
    if not row:
        return jsonify({"error": "Not found"}), 404
    return jsonify({"card_company": row.to_dict()}), 200


@settings_bp.put("/card-companies")
@require_admin
def save_card_companies_route():
    """Body: {"card_companies": [{"id": 1, "fee_rate": 2.1, "deposit_days": 3}, ...]}"""
    data = request.get_json(silent=True) or {}
    try:
        rows = fee_schedule_service.save_card_companies(data.get("card_companies"))
        return jsonify({"items": [r.to_dict() for r in rows]}), 200
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "save card companies", request.url)
        return jsonify({"error": "Internal server error"}), 500
