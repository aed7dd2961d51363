# Overview: Web Push fan-out to every active subscription plus subscription management.

"""
Notification Dispatcher

WHY: Reminder sweeps broadcast to every device the shop has opted in. One dead
browser endpoint must not hold up or break delivery to the rest.

DELIVERY RULES:
- All sends are submitted to a thread pool before any is awaited
- The call returns only after every send has succeeded or failed
- Any exception from a send counts as a failure for that subscription only
- Failed endpoints are deactivated in ONE update after the fan-out
- No retries inside a call; the next sweep only sees still-active endpoints
- Missing VAPID keys abort the call before any send; nothing is deactivated
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor, wait
from dataclasses import dataclass

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from ..errors import PushNotConfiguredError, StorageError
from ..extensions import db, push_transport
from ..models import PushSubscription
from ..validation import ValidationError
from .push_transport import TransportError


logger = logging.getLogger(__name__)

DEFAULT_TAG = "florist"
DEFAULT_URL = "/"


@dataclass(frozen=True)
class DispatchResult:
    sent: int = 0
    failed: int = 0

    def __add__(self, other: "DispatchResult") -> "DispatchResult":
        return DispatchResult(sent=self.sent + other.sent, failed=self.failed + other.failed)


def build_payload(
    title: str,
    body: str,
    *,
    tag: str = DEFAULT_TAG,
    url: str = DEFAULT_URL,
    require_interaction: bool = False,
) -> str:
    """JSON body understood by the dashboard's service worker."""
    return json.dumps(
        {
            "title": title,
            "body": body,
            "tag": tag,
            "url": url,
            "requireInteraction": require_interaction,
        },
        ensure_ascii=False,
    )


def _deliver(endpoint: str, keys: dict, payload: str) -> None:
    push_transport.send(endpoint, keys, payload)


def _fan_out(targets: list[tuple[str, dict]], payload: str) -> list[str]:
    """Send to every (endpoint, keys) pair concurrently; returns failed endpoints."""
    max_workers = max(1, min(len(targets), current_app.config.get("PUSH_MAX_WORKERS", 10)))
    with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="push") as pool:
        futures = {
            pool.submit(_deliver, endpoint, keys, payload): endpoint
            for endpoint, keys in targets
        }
        done, _ = wait(futures)

    failed: list[str] = []
    for future in done:
        endpoint = futures[future]
        exc = future.exception()
        if exc is None:
            continue
        failed.append(endpoint)
        if isinstance(exc, TransportError):
            logger.warning("Push delivery rejected (status=%s): %s", exc.status_code, endpoint)
        else:
            logger.warning("Push delivery failed: %s", endpoint, exc_info=exc)
    return failed


def deactivate_endpoints(endpoints: list[str]) -> int:
    if not endpoints:
        return 0
    try:
        count = (
            db.session.query(PushSubscription)
            .filter(PushSubscription.endpoint.in_(endpoints))
            .update({PushSubscription.is_active: False}, synchronize_session=False)
        )
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError("Failed to deactivate push subscriptions", operation="deactivate_subscriptions") from exc
    return count


def ensure_push_configured() -> None:
    if not push_transport.is_configured:
        raise PushNotConfiguredError("Web Push is not configured (VAPID keys missing)")


def send_to_all_active(payload: str) -> DispatchResult:
    """Deliver ``payload`` to every active subscription."""
    ensure_push_configured()
    try:
        subscriptions = (
            db.session.query(PushSubscription)
            .filter(PushSubscription.is_active.is_(True))
            .order_by(PushSubscription.id)
            .all()
        )
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError("Failed to load push subscriptions", operation="load_subscriptions") from exc

    if not subscriptions:
        return DispatchResult()

    # Plain values only cross into worker threads
    targets = [(sub.endpoint, dict(sub.keys)) for sub in subscriptions]
    failed = _fan_out(targets, payload)
    if failed:
        deactivate_endpoints(failed)
        logger.info("Deactivated %d push subscription(s) after failed delivery", len(failed))

    return DispatchResult(sent=len(targets) - len(failed), failed=len(failed))


def subscribe(endpoint: str, keys: dict, user_agent: str | None = None) -> PushSubscription:
    """Register (or re-register) a device. Re-subscribing reactivates and replaces keys."""
    endpoint = (endpoint or "").strip()
    if not endpoint:
        raise ValidationError("endpoint is required")
    if not isinstance(keys, dict) or not keys.get("p256dh") or not keys.get("auth"):
        raise ValidationError("keys.p256dh and keys.auth are required")

    sub = db.session.query(PushSubscription).filter_by(endpoint=endpoint).first()
    if not sub:
        sub = PushSubscription(endpoint=endpoint)
        db.session.add(sub)
    sub.p256dh = keys["p256dh"]
    sub.auth = keys["auth"]
    sub.user_agent = (user_agent or "")[:255] or None
    sub.is_active = True
    db.session.commit()
    return sub


def unsubscribe(endpoint: str) -> bool:
    sub = db.session.query(PushSubscription).filter_by(endpoint=(endpoint or "").strip()).first()
    if not sub:
        return False
    sub.is_active = False
    db.session.commit()
    return True


def subscription_status() -> dict:
    active = db.session.query(PushSubscription).filter(PushSubscription.is_active.is_(True)).count()
    return {"is_subscribed": active > 0, "active_subscriptions": active}


def send_test_notification() -> DispatchResult:
    payload = build_payload(
        "Test notification",
        "Push notifications are working.",
        tag="test",
        url="/settings",
    )
    return send_to_all_active(payload)
