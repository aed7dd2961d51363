# backend/florist/routes/system.py
"""
System health endpoint.

Checks database connectivity and reports whether Web Push is configured.
"""

import time

from flask import Blueprint, current_app
from sqlalchemy import text

from ..extensions import db, push_transport
from ..models import PushSubscription, Reservation, Sale
from ..time_utils import to_utc_z, utcnow

system_bp = Blueprint("system", __name__)


def check_database_health() -> dict:
    start_time = time.time()
    try:
        db.session.execute(text("SELECT 1"))
        details = {
            "sales": db.session.query(Sale).count(),
            "reservations": db.session.query(Reservation).count(),
            "active_push_subscriptions": db.session.query(PushSubscription).filter_by(is_active=True).count(),
        }
        elapsed_ms = (time.time() - start_time) * 1000
        return {"status": "healthy", "latency_ms": round(elapsed_ms, 2), "details": details}
    except Exception:
        elapsed_ms = (time.time() - start_time) * 1000
        current_app.logger.exception("Database health check failed")
        return {"status": "unhealthy", "latency_ms": round(elapsed_ms, 2), "error": "Database error"}


def check_push_health() -> dict:
    # Missing VAPID keys only disables notifications; the dashboard still works
    if push_transport.is_configured:
        return {"status": "healthy"}
    return {"status": "degraded", "warning": "VAPID keys not configured"}


@system_bp.get("/health")
def health():
    """
    Returns:
    - 200: healthy or degraded
    - 503: database unreachable
    """
    start_time = time.time()

    database_health = check_database_health()
    push_health = check_push_health()

    all_checks = [database_health, push_health]
    if any(c["status"] == "unhealthy" for c in all_checks):
        overall_status, http_status = "unhealthy", 503
    elif any(c["status"] == "degraded" for c in all_checks):
        overall_status, http_status = "degraded", 200
    else:
        overall_status, http_status = "healthy", 200

    total_elapsed_ms = (time.time() - start_time) * 1000

    return {
        "status": overall_status,
        "timestamp": to_utc_z(utcnow()),
        "total_latency_ms": round(total_elapsed_ms, 2),
        "checks": {
            "database": database_health,
            "push": push_health,
        },
    }, http_status
