# Overview: Flask API routes for sales entry; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_admin
from ..error_reporting import log_unexpected
from ..services import sales_service
from ..validation import ValidationError, parse_month
from florist.time_utils import local_date, utcnow


sales_bp = Blueprint("sales", __name__, url_prefix="/api/sales")


@sales_bp.get("")
@require_admin
def list_sales_route():
    try:
        month = parse_month(request.args.get("month"))
        sales = sales_service.list_sales(month)
        return jsonify({"items": [s.to_dict() for s in sales]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "list sales", request.url)
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.post("")
@require_admin
def create_sale_route():
    """
    Record a sale.

    Card sales get fee / expected_deposit / expected_deposit_date from the
    current fee schedule; those values never change when the schedule does.
    """
    try:
        data = request.get_json(silent=True) or {}
        today = local_date(utcnow(), current_app.config["BUSINESS_TIMEZONE"])
        sale = sales_service.create_sale(data, today=today)
        return jsonify({"sale": sale.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "create sale", request.url)
        return jsonify({"error": "Internal server error"}), 500


@sales_bp.get("/<int:sale_id>")
@require_admin
def get_sale_route(sale_id: int):
    sale = sales_service.get_sale(sale_id)
    if not sale:
        return jsonify({"error": "Sale not found"}), 404
    return jsonify({"sale": sale.to_dict()}), 200


@sales_bp.patch("/<int:sale_id>")
@require_admin
def amend_sale_route(sale_id: int):
    try:
        data = request.get_json(silent=True) or {}
        sale = sales_service.amend_sale(sale_id, data)
        if not sale:
            return jsonify({"error": "Sale not found"}), 404
        return jsonify({"sale": sale.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "amend sale", request.url)
        return jsonify({"error": "Internal server error"}), 500
