# Overview: Operator alerts for unexpected errors, posted to a chat webhook with duplicate throttling.

from __future__ import annotations

import logging
import re
import threading
import time
import traceback

import httpx
from flask import current_app, has_app_context


logger = logging.getLogger(__name__)

MAX_MESSAGE_LEN = 256
MAX_STACK_LEN = 1000
MAX_STACK_LINES = 20

_SANITIZE_PATTERNS = (
    (re.compile(r"/(Users|home)/[^/\s]+"), "/home/user"),
    (re.compile(r"[A-Za-z0-9_.+-]+@[A-Za-z0-9.-]+"), "[EMAIL]"),
    (re.compile(r"token[:=]\s*['\"]?[^\s'\"]+", re.IGNORECASE), "token=[REDACTED]"),
    (re.compile(r"password[:=]\s*['\"]?[^\s'\"]+", re.IGNORECASE), "password=[REDACTED]"),
    (re.compile(r"key[:=]\s*['\"]?[^\s'\"]{20,}", re.IGNORECASE), "key=[REDACTED]"),
)


class ErrorThrottle:
    """
    Bounded key -> last-sent map with time-based expiry.

    ``should_send`` returns False when the same key was sent within
    ``window_seconds``. Expired keys are evicted once the map grows past
    ``soft_limit``; if every key is still live the oldest are dropped so the
    map never exceeds ``hard_limit``.
    """

    def __init__(self, window_seconds: float = 300, soft_limit: int = 50, hard_limit: int = 500, clock=time.monotonic):
        self.window_seconds = window_seconds
        self.soft_limit = soft_limit
        self.hard_limit = hard_limit
        self._clock = clock
        self._seen: dict[str, float] = {}
        self._lock = threading.Lock()

    def should_send(self, key: str) -> bool:
        with self._lock:
            now = self._clock()
            last = self._seen.get(key)
            if last is not None and now - last < self.window_seconds:
                return False
            self._seen[key] = now
            if len(self._seen) > self.soft_limit:
                self._evict(now)
            return True

    def _evict(self, now: float) -> None:
        expired = [k for k, ts in self._seen.items() if now - ts >= self.window_seconds]
        for k in expired:
            del self._seen[k]
        overflow = len(self._seen) - self.hard_limit
        if overflow > 0:
            for k, _ in sorted(self._seen.items(), key=lambda item: item[1])[:overflow]:
                del self._seen[k]

    def __len__(self) -> int:
        with self._lock:
            return len(self._seen)


_throttle = ErrorThrottle()


def sanitize_stack(stack: str) -> str:
    for pattern, replacement in _SANITIZE_PATTERNS:
        stack = pattern.sub(replacement, stack)
    return "\n".join(stack.splitlines()[:MAX_STACK_LINES])


def truncate(value: str, limit: int) -> str:
    return value if len(value) <= limit else value[: limit - 3] + "..."


def build_alert(exc: BaseException, action: str | None, url: str | None = None) -> dict:
    fields = [
        {"name": "Error", "value": truncate(str(exc) or type(exc).__name__, MAX_MESSAGE_LEN), "inline": False},
        {"name": "Action", "value": action or "(unknown)", "inline": True},
    ]
    if url:
        fields.append({"name": "URL", "value": url, "inline": False})
    stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
    if stack:
        fields.append({
            "name": "Stack trace",
            "value": f"```\n{truncate(sanitize_stack(stack), MAX_STACK_LEN)}\n```",
            "inline": False,
        })
    return {"embeds": [{"title": "Operational error", "color": 0xE5614E, "fields": fields}]}


def report_error(exc: BaseException, action: str | None = None, url: str | None = None) -> bool:
    """
    Forward an unexpected error to ERROR_WEBHOOK_URL.

    Returns True when an alert was posted. Without a webhook (or outside an
    app context) the error is only logged.
    """
    webhook_url = current_app.config.get("ERROR_WEBHOOK_URL") if has_app_context() else None
    if not webhook_url:
        logger.error("Unreported error in %s: %s", action or "(unknown)", exc)
        return False

    _throttle.window_seconds = current_app.config.get("ERROR_DEDUP_WINDOW_SECONDS", 300)
    if not _throttle.should_send(f"{exc}:{action or ''}"):
        return False

    try:
        response = httpx.post(webhook_url, json=build_alert(exc, action, url), timeout=5.0)
        response.raise_for_status()
    except httpx.HTTPError:
        logger.exception("Failed to post error alert to webhook")
        return False
    return True


def log_unexpected(exc: BaseException, action: str, url: str | None = None) -> None:
    """Route-level catch-all: log with traceback, then alert the operator."""
    current_app.logger.exception("Failed to %s", action)
    report_error(exc, action=action, url=url)
