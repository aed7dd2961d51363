# Overview: Web Push transport wrapper; holds the process-wide VAPID identity and delivers single messages.

from __future__ import annotations

from pywebpush import WebPushException, webpush


class TransportError(Exception):
    """A push service rejected (or never accepted) a single delivery."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class PushTransport:
    """
    Flask extension around ``pywebpush``.

    VAPID keys and the contact claim are read from app config once in
    ``init_app`` and never change afterwards. ``send`` is safe to call from
    worker threads: it only reads the configured identity and builds a fresh
    claims dict per call (pywebpush mutates the dict it is given).
    """

    def __init__(self, app=None):
        self._public_key: str | None = None
        self._private_key: str | None = None
        self._contact: str | None = None
        self._ttl = 0
        self._timeout: int | None = None
        if app is not None:
            self.init_app(app)

    def init_app(self, app) -> None:
        self._public_key = app.config.get("VAPID_PUBLIC_KEY")
        self._private_key = app.config.get("VAPID_PRIVATE_KEY")
        self._contact = app.config.get("VAPID_CONTACT")
        self._ttl = int(app.config.get("PUSH_TTL_SECONDS") or 0)
        self._timeout = app.config.get("PUSH_TIMEOUT_SECONDS")
        app.extensions["push_transport"] = self

    @property
    def public_key(self) -> str | None:
        return self._public_key

    @property
    def is_configured(self) -> bool:
        return bool(self._public_key and self._private_key)

    def send(self, endpoint: str, keys: dict, payload: str) -> None:
        """Deliver ``payload`` to one endpoint or raise TransportError."""
        if not self.is_configured:
            raise TransportError("VAPID keys are not configured")

        subscription_info = {
            "endpoint": endpoint,
            "keys": {
                "p256dh": keys.get("p256dh") or "",
                "auth": keys.get("auth") or "",
            },
        }
        try:
            webpush(
                subscription_info=subscription_info,
                data=payload,
                vapid_private_key=self._private_key,
                vapid_claims={"sub": self._contact},
                ttl=self._ttl,
                timeout=self._timeout,
            )
        except WebPushException as exc:
            response = getattr(exc, "response", None)
            status_code = getattr(response, "status_code", None)
            raise TransportError(str(exc), status_code=status_code) from exc
