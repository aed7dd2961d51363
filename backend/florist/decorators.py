# Overview: Request authentication decorators for admin API routes and cron trigger routes.

import hmac
from functools import wraps
from flask import current_app, request, jsonify


def _bearer_token() -> str | None:
    auth_header = request.headers.get("Authorization")
    if not auth_header or not auth_header.startswith("Bearer "):
        return None
    return auth_header.split(" ", 1)[1].strip()


def _token_matches(presented: str | None, expected: str | None) -> bool:
    if not presented or not expected:
        return False
    return hmac.compare_digest(presented.encode(), expected.encode())


def require_admin(f):
    """
    Require the dashboard's admin API token.

    SECURITY: Returns 401 if:
    - No Authorization header
    - Token does not match ADMIN_API_TOKEN
    - ADMIN_API_TOKEN is not configured (admin API disabled)
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        token = _bearer_token()
        if not token:
            return jsonify({"error": "Authentication required"}), 401

        if not _token_matches(token, current_app.config.get("ADMIN_API_TOKEN")):
            current_app.logger.warning("Rejected admin API call to %s from %s", request.path, request.remote_addr)
            return jsonify({"error": "Invalid or expired token"}), 401

        return f(*args, **kwargs)

    return decorated_function


def require_cron_secret(f):
    """
    Require the shared cron secret before a reminder sweep runs.

    The check happens before any query. When CRON_SECRET is unset the
    endpoint is open only with ENV=development (local testing); otherwise
    it is closed.
    """
    @wraps(f)
    def decorated_function(*args, **kwargs):
        expected = current_app.config.get("CRON_SECRET")
        if not expected and current_app.config.get("ENV") == "development":
            return f(*args, **kwargs)

        if not _token_matches(_bearer_token(), expected):
            current_app.logger.warning("Rejected cron trigger for %s from %s", request.path, request.remote_addr)
            return jsonify({"error": "Unauthorized"}), 401

        return f(*args, **kwargs)

    return decorated_function
