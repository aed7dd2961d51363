# Overview: Cron-triggered reminder sweep endpoints; authenticated with the shared cron secret.

"""
Trigger contract:
- GET /reminders/hourly  -> {message, reminders, sent, failed}
- GET /reminders/daily   -> {message, today_reservations, advance_reminders, sent, failed}
- 401 {error} on bad/missing bearer secret (checked before any query)
- 500 {error} when the database read/update fails; re-running is safe
- 500 {error} when Web Push is not configured; nothing is sent or cleared
"""

from flask import Blueprint, jsonify, request

from ..decorators import require_cron_secret
from ..error_reporting import log_unexpected
from ..errors import PushNotConfiguredError, StorageError
from ..services import reminder_service

reminders_bp = Blueprint("reminders", __name__, url_prefix="/reminders")


@reminders_bp.get("/hourly")
@require_cron_secret
def hourly_route():
    try:
        result = reminder_service.run_hourly_sweep()
        return jsonify(result.to_dict()), 200
    except (StorageError, PushNotConfiguredError) as e:
        log_unexpected(e, "run hourly reminder sweep", request.url)
        return jsonify({"error": str(e)}), 500
    except Exception as e:
        log_unexpected(e, "run hourly reminder sweep", request.url)
        return jsonify({"error": "Internal server error"}), 500


@reminders_bp.get("/daily")
@require_cron_secret
def daily_route():
    try:
        result = reminder_service.run_daily_sweep()
        return jsonify(result.to_dict()), 200
    except (StorageError, PushNotConfiguredError) as e:
        log_unexpected(e, "run daily reminder sweep", request.url)
        return jsonify({"error": str(e)}), 500
    except Exception as e:
        log_unexpected(e, "run daily reminder sweep", request.url)
        return jsonify({"error": "Internal server error"}), 500
