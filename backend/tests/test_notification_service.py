"""
Push dispatcher tests.

Verifies:
- Every active subscription is attempted even when some fail
- A failing endpoint is deactivated; healthy ones stay active
- Inactive subscriptions are never targeted
- Sends run concurrently on the worker pool
- Missing VAPID keys abort before any send and deactivate nothing
- Subscribe/unsubscribe lifecycle
"""

import json
import threading

import pytest

from florist.errors import PushNotConfiguredError
from florist.extensions import push_transport
from florist.models import PushSubscription
from florist.services import notification_service
from florist.validation import ValidationError


PAYLOAD = notification_service.build_payload("Hello", "World")


class TestSendToAllActive:
    def test_failure_is_isolated_to_one_subscription(self, db_session, outbox, make_subscription):
        for name in ("a", "b", "c"):
            make_subscription(f"https://push.example/{name}")
        outbox.failing.add("https://push.example/b")

        result = notification_service.send_to_all_active(PAYLOAD)

        assert result.sent == 2
        assert result.failed == 1
        assert sorted(outbox.endpoints()) == [
            "https://push.example/a",
            "https://push.example/b",
            "https://push.example/c",
        ]
        active = {
            s.endpoint: s.is_active
            for s in db_session.query(PushSubscription).all()
        }
        assert active == {
            "https://push.example/a": True,
            "https://push.example/b": False,
            "https://push.example/c": True,
        }

    def test_unexpected_exception_counts_as_failure(self, db_session, outbox, make_subscription):
        make_subscription("https://push.example/a")
        make_subscription("https://push.example/b")
        outbox.crashing.add("https://push.example/a")

        result = notification_service.send_to_all_active(PAYLOAD)

        assert (result.sent, result.failed) == (1, 1)
        assert db_session.query(PushSubscription).filter_by(is_active=False).count() == 1

    def test_inactive_subscriptions_are_skipped(self, db_session, outbox, make_subscription):
        make_subscription("https://push.example/live")
        make_subscription("https://push.example/dead", is_active=False)

        result = notification_service.send_to_all_active(PAYLOAD)

        assert (result.sent, result.failed) == (1, 0)
        assert outbox.endpoints() == ["https://push.example/live"]

    def test_no_subscriptions_sends_nothing(self, db_session, outbox):
        result = notification_service.send_to_all_active(PAYLOAD)

        assert (result.sent, result.failed) == (0, 0)
        assert outbox.sent == []

    def test_deactivated_endpoint_not_retried_next_call(self, db_session, outbox, make_subscription):
        make_subscription("https://push.example/a")
        outbox.failing.add("https://push.example/a")
        notification_service.send_to_all_active(PAYLOAD)

        result = notification_service.send_to_all_active(PAYLOAD)

        assert (result.sent, result.failed) == (0, 0)
        assert len(outbox.sent) == 1

    def test_sends_run_concurrently(self, app, db_session, monkeypatch, make_subscription):
        workers = app.config["PUSH_MAX_WORKERS"]
        for n in range(workers):
            make_subscription(f"https://push.example/{n}")
        # Every send blocks until all of them are in flight at once
        barrier = threading.Barrier(workers, timeout=5)

        def send(endpoint, keys, payload):
            barrier.wait()

        monkeypatch.setattr(push_transport, "send", send)

        result = notification_service.send_to_all_active(PAYLOAD)

        assert (result.sent, result.failed) == (workers, 0)
        assert db_session.query(PushSubscription).filter_by(is_active=True).count() == workers

    def test_unconfigured_push_aborts_before_sending(self, db_session, outbox, monkeypatch, make_subscription):
        make_subscription("https://push.example/a")
        make_subscription("https://push.example/b")
        monkeypatch.setattr(push_transport, "_private_key", None)

        with pytest.raises(PushNotConfiguredError):
            notification_service.send_to_all_active(PAYLOAD)

        assert outbox.sent == []
        assert db_session.query(PushSubscription).filter_by(is_active=False).count() == 0


class TestPayload:
    def test_payload_shape(self):
        payload = json.loads(
            notification_service.build_payload("Title", "Body", tag="t-1", url="/calendar", require_interaction=True)
        )
        assert payload == {
            "title": "Title",
            "body": "Body",
            "tag": "t-1",
            "url": "/calendar",
            "requireInteraction": True,
        }

    def test_dispatch_results_add_up(self):
        total = notification_service.DispatchResult(2, 1) + notification_service.DispatchResult(3, 0)
        assert (total.sent, total.failed) == (5, 1)


class TestSubscriptions:
    def test_subscribe_reactivates_and_replaces_keys(self, db_session, make_subscription):
        make_subscription("https://push.example/a", is_active=False)

        sub = notification_service.subscribe(
            "https://push.example/a",
            {"p256dh": "new-key", "auth": "new-auth"},
            user_agent="Mozilla/5.0",
        )

        assert sub.is_active
        assert sub.keys == {"p256dh": "new-key", "auth": "new-auth"}
        assert db_session.query(PushSubscription).count() == 1

    @pytest.mark.parametrize(
        "endpoint,keys",
        [
            ("", {"p256dh": "k", "auth": "a"}),
            ("https://push.example/a", {"p256dh": "k"}),
            ("https://push.example/a", None),
        ],
    )
    def test_subscribe_requires_endpoint_and_keys(self, db_session, endpoint, keys):
        with pytest.raises(ValidationError):
            notification_service.subscribe(endpoint, keys)

    def test_unsubscribe_and_status(self, db_session, make_subscription):
        make_subscription("https://push.example/a")
        assert notification_service.subscription_status() == {"is_subscribed": True, "active_subscriptions": 1}

        assert notification_service.unsubscribe("https://push.example/a") is True
        assert notification_service.unsubscribe("https://push.example/missing") is False
        assert notification_service.subscription_status() == {"is_subscribed": False, "active_subscriptions": 0}
