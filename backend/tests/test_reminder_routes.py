"""
Cron trigger endpoint tests.

Verifies:
- Missing/wrong secret returns 401 before any sweep runs
- Successful sweeps return the documented JSON keys
- Storage failures and missing VAPID keys surface as 500 with an error message
- Development mode without a configured secret is open
"""

from datetime import timedelta

import pytest

from florist.errors import StorageError
from florist.extensions import push_transport
from florist.services import reminder_service
from florist.time_utils import utcnow


ROUTES = ["/reminders/hourly", "/reminders/daily"]


class TestCronAuthentication:
    @pytest.mark.parametrize("path", ROUTES)
    def test_missing_secret_returns_401(self, client, db_session, path, monkeypatch):
        calls = []
        monkeypatch.setattr(reminder_service, "run_hourly_sweep", lambda: calls.append("hourly"))
        monkeypatch.setattr(reminder_service, "run_daily_sweep", lambda: calls.append("daily"))

        response = client.get(path)

        assert response.status_code == 401
        assert response.json == {"error": "Unauthorized"}
        assert calls == []

    @pytest.mark.parametrize("path", ROUTES)
    def test_wrong_secret_returns_401(self, client, db_session, path):
        response = client.get(path, headers={"Authorization": "Bearer nope"})
        assert response.status_code == 401

    def test_admin_token_is_not_a_cron_secret(self, client, db_session, admin_headers):
        response = client.get("/reminders/hourly", headers=admin_headers)
        assert response.status_code == 401

    def test_unset_secret_rejected_outside_development(self, app, client, db_session, monkeypatch):
        monkeypatch.setitem(app.config, "CRON_SECRET", None)

        response = client.get("/reminders/hourly")

        assert response.status_code == 401

    def test_unset_secret_open_in_development(self, app, client, db_session, outbox, monkeypatch):
        monkeypatch.setitem(app.config, "CRON_SECRET", None)
        monkeypatch.setitem(app.config, "ENV", "development")

        response = client.get("/reminders/hourly")

        assert response.status_code == 200


class TestCronSweeps:
    def test_hourly_response(self, client, db_session, outbox, cron_headers, make_subscription, make_reservation):
        make_subscription("https://push.example/a")
        reservation = make_reservation(reminder_at=utcnow() - timedelta(minutes=20))

        response = client.get("/reminders/hourly", headers=cron_headers)

        assert response.status_code == 200
        assert response.json == {
            "message": "Scheduled reminders sent",
            "reminders": 1,
            "sent": 1,
            "failed": 0,
        }
        db_session.expire_all()
        assert db_session.get(type(reservation), reservation.id).reminder_at is None

    def test_hourly_nothing_due(self, client, db_session, outbox, cron_headers):
        response = client.get("/reminders/hourly", headers=cron_headers)

        assert response.status_code == 200
        assert response.json["message"] == "No scheduled reminders"
        assert response.json["reminders"] == 0

    def test_daily_response_keys(self, client, db_session, outbox, cron_headers):
        response = client.get("/reminders/daily", headers=cron_headers)

        assert response.status_code == 200
        assert set(response.json) == {"message", "today_reservations", "advance_reminders", "sent", "failed"}

    @pytest.mark.parametrize("path,target", [
        ("/reminders/hourly", "find_hourly_candidates"),
        ("/reminders/daily", "find_today_reservations"),
    ])
    def test_storage_failure_returns_500(self, client, db_session, cron_headers, monkeypatch, path, target):
        def broken(*_):
            raise StorageError("Failed to load reservations", operation=target)

        monkeypatch.setattr(reminder_service, target, broken)

        response = client.get(path, headers=cron_headers)

        assert response.status_code == 500
        assert "error" in response.json

    def test_unconfigured_push_returns_500_and_keeps_reminder(self, client, db_session, outbox, cron_headers, monkeypatch, make_subscription, make_reservation):
        make_subscription("https://push.example/a")
        reservation = make_reservation(reminder_at=utcnow() - timedelta(minutes=20))
        monkeypatch.setattr(push_transport, "_private_key", None)

        response = client.get("/reminders/hourly", headers=cron_headers)

        assert response.status_code == 500
        assert "error" in response.json
        assert outbox.sent == []
        db_session.expire_all()
        assert db_session.get(type(reservation), reservation.id).reminder_at is not None
