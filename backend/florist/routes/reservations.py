# Overview: Flask API routes for calendar reservations; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_admin
from ..error_reporting import log_unexpected
from ..services import reservation_service
from ..validation import ConflictError, ValidationError, parse_month


reservations_bp = Blueprint("reservations", __name__, url_prefix="/api/reservations")


@reservations_bp.get("")
@require_admin
def list_reservations_route():
    try:
        month = parse_month(request.args.get("month"))
        if not month:
            return jsonify({"error": "month is required (YYYY-MM)"}), 400
        rows = reservation_service.list_reservations(month)
        return jsonify({"items": [r.to_dict() for r in rows]}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@reservations_bp.get("/<int:reservation_id>")
@require_admin
def get_reservation_route(reservation_id: int):
    reservation = reservation_service.get_reservation(reservation_id)
    if not reservation:
        return jsonify({"error": "Not found"}), 404
    return jsonify({"reservation": reservation.to_dict()}), 200


@reservations_bp.post("")
@require_admin
def create_reservation_route():
    data = request.get_json(silent=True) or {}
    try:
        reservation = reservation_service.create_reservation(data)
        return jsonify({"reservation": reservation.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "create reservation", request.url)
        return jsonify({"error": "Internal server error"}), 500


@reservations_bp.patch("/<int:reservation_id>")
@require_admin
def update_reservation_route(reservation_id: int):
    data = request.get_json(silent=True) or {}
    try:
        reservation = reservation_service.update_reservation(reservation_id, data)
        if not reservation:
            return jsonify({"error": "Not found"}), 404
        return jsonify({"reservation": reservation.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "update reservation", request.url)
        return jsonify({"error": "Internal server error"}), 500


@reservations_bp.post("/<int:reservation_id>/status")
@require_admin
def set_status_route(reservation_id: int):
    data = request.get_json(silent=True) or {}
    try:
        reservation = reservation_service.set_reservation_status(reservation_id, data.get("status"))
        if not reservation:
            return jsonify({"error": "Not found"}), 404
        return jsonify({"reservation": reservation.to_dict()}), 200
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400


@reservations_bp.delete("/<int:reservation_id>")
@require_admin
def delete_reservation_route(reservation_id: int):
    try:
        if not reservation_service.delete_reservation(reservation_id):
            return jsonify({"error": "Not found"}), 404
        return jsonify({"success": True}), 200
    except Exception as e:
        log_unexpected(e, "delete reservation", request.url)
        return jsonify({"error": "Internal server error"}), 500


@reservations_bp.post("/<int:reservation_id>/convert")
@require_admin
def convert_to_sale_route(reservation_id: int):
    """Body: sale fields (payment_method required); the rest default from the reservation."""
    data = request.get_json(silent=True) or {}
    try:
        converted = reservation_service.convert_to_sale(reservation_id, data)
        if not converted:
            return jsonify({"error": "Not found"}), 404
        reservation, sale = converted
        return jsonify({"reservation": reservation.to_dict(), "sale": sale.to_dict()}), 201
    except ConflictError as e:
        return jsonify({"error": str(e)}), 409
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "convert reservation to sale", request.url)
        return jsonify({"error": "Internal server error"}), 500
