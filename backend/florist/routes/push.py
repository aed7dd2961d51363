# Overview: Flask API routes for Web Push subscriptions; parses input and returns JSON responses.

from flask import Blueprint, jsonify, request

from ..decorators import require_admin
from ..error_reporting import log_unexpected
from ..errors import PushNotConfiguredError, StorageError
from ..extensions import push_transport
from ..services import notification_service
from ..validation import ValidationError


push_bp = Blueprint("push", __name__, url_prefix="/api/push")


@push_bp.get("/vapid-public-key")
def vapid_public_key_route():
    """Public key the browser needs for PushManager.subscribe()."""
    key = push_transport.public_key
    if not key:
        return jsonify({"error": "VAPID key not configured"}), 404
    return jsonify({"key": key}), 200


@push_bp.post("/subscribe")
@require_admin
def subscribe_route():
    """Body: {"endpoint": "...", "keys": {"p256dh": "...", "auth": "..."}}"""
    data = request.get_json(silent=True) or {}
    try:
        sub = notification_service.subscribe(
            endpoint=data.get("endpoint"),
            keys=data.get("keys"),
            user_agent=request.headers.get("User-Agent"),
        )
        return jsonify({"subscription": sub.to_dict()}), 201
    except ValidationError as e:
        return jsonify({"error": str(e)}), 400
    except Exception as e:
        log_unexpected(e, "subscribe to push", request.url)
        return jsonify({"error": "Internal server error"}), 500


@push_bp.post("/unsubscribe")
@require_admin
def unsubscribe_route():
    data = request.get_json(silent=True) or {}
    if not data.get("endpoint"):
        return jsonify({"error": "endpoint is required"}), 400
    try:
        found = notification_service.unsubscribe(data["endpoint"])
    except Exception as e:
        log_unexpected(e, "unsubscribe from push", request.url)
        return jsonify({"error": "Internal server error"}), 500
    if not found:
        return jsonify({"error": "Not found"}), 404
    return jsonify({"success": True}), 200


@push_bp.get("/status")
@require_admin
def status_route():
    try:
        return jsonify(notification_service.subscription_status()), 200
    except Exception as e:
        log_unexpected(e, "load push status", request.url)
        return jsonify({"error": "Internal server error"}), 500


@push_bp.post("/test")
@require_admin
def test_notification_route():
    try:
        result = notification_service.send_test_notification()
    except PushNotConfiguredError as e:
        log_unexpected(e, "send test notification", request.url)
        return jsonify({"success": False, "error": str(e)}), 500
    except StorageError as e:
        log_unexpected(e, "send test notification", request.url)
        return jsonify({"error": "Internal server error"}), 500
    if result.sent == 0:
        return jsonify({"success": False, "error": "No active subscriptions", "sent": 0, "failed": result.failed}), 200
    return jsonify({"success": True, "sent": result.sent, "failed": result.failed}), 200
