# Overview: Operation-level error types shared by services and routes.

from __future__ import annotations


class StorageError(Exception):
    """
    The database read or write behind an operation failed.

    Raised after the session has been rolled back; every id or row the
    operation touched must be treated as unchanged by the caller.
    """

    def __init__(self, message: str, *, operation: str | None = None):
        super().__init__(message)
        self.operation = operation


class PushNotConfiguredError(Exception):
    """
    Web Push cannot be attempted at all (VAPID keys missing).

    Raised before any send; no subscription or reminder is touched.
    """
