# Overview: Flask API routes for card deposit reconciliation; parses input and returns JSON responses.

from flask import Blueprint, current_app, jsonify, request

from ..decorators import require_admin
from ..error_reporting import log_unexpected
from ..errors import StorageError
from ..services import deposit_ledger_service
from ..validation import ValidationError, parse_id_list, parse_month

"""
Deposit semantics:
- Only card sales are listed; month filter is YYYY-MM on the sale date.
- confirm is best-effort per id: the response lists confirmed and skipped ids.
- On a storage failure nothing is confirmed; the client should re-query.
"""

deposits_bp = Blueprint("deposits", __name__, url_prefix="/api/deposits")


def _sales_response(sales):
    return jsonify({"items": [s.to_dict() for s in sales], "count": len(sales)}), 200


@deposits_bp.get("")
@require_admin
def list_deposits_route():
    try:
        month = parse_month(request.args.get("month"))
        sales = deposit_ledger_service.list_deposits(
            month=month,
            status=request.args.get("status"),
            card_company=request.args.get("card_company"),
        )
        return _sales_response(sales)
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "list deposits", request.url)
        return jsonify({"error": "Internal server error"}), 500


@deposits_bp.get("/pending")
@require_admin
def list_pending_route():
    try:
        month = parse_month(request.args.get("month"))
        return _sales_response(deposit_ledger_service.list_pending(month))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@deposits_bp.get("/completed")
@require_admin
def list_completed_route():
    try:
        month = parse_month(request.args.get("month"))
        return _sales_response(deposit_ledger_service.list_completed(month))
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@deposits_bp.get("/summary")
@require_admin
def summary_route():
    try:
        month = parse_month(request.args.get("month"))
        return jsonify(deposit_ledger_service.deposits_summary(month)), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@deposits_bp.post("/confirm")
@require_admin
def confirm_deposits_route():
    """Body: {"ids": [1, 2, 3]}"""
    try:
        data = request.get_json(silent=True) or {}
        ids = parse_id_list(data.get("ids"))
        result = deposit_ledger_service.confirm_many(ids)
        return jsonify(result.to_dict()), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except StorageError as e:
        log_unexpected(e, "confirm deposits", request.url)
        return jsonify({"error": "Deposits could not be confirmed. Please reload and try again."}), 500


@deposits_bp.post("/<int:sale_id>/confirm")
@require_admin
def confirm_deposit_route(sale_id: int):
    try:
        result = deposit_ledger_service.confirm(sale_id)
        return jsonify(result.to_dict()), 200
    except StorageError as e:
        log_unexpected(e, "confirm deposit", request.url)
        return jsonify({"error": "Deposit could not be confirmed. Please reload and try again."}), 500


@deposits_bp.post("/<int:sale_id>/revert")
@require_admin
def revert_deposit_route(sale_id: int):
    try:
        sale = deposit_ledger_service.revert(sale_id)
        if not sale:
            return jsonify({"error": "Sale not found"}), 404
        current_app.logger.info("Deposit for sale %s reverted to %s", sale_id, sale.deposit_status)
        return jsonify({"sale": sale.to_dict()}), 200
    except StorageError as e:
        log_unexpected(e, "revert deposit", request.url)
        return jsonify({"error": "Deposit could not be reverted. Please reload and try again."}), 500
