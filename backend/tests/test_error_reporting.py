"""
Operator alert tests.

Verifies:
- Duplicate errors are throttled within the dedup window
- The throttle map stays bounded
- Alerts are posted only when a webhook is configured
"""

import httpx
import pytest

from florist import error_reporting
from florist.error_reporting import ErrorThrottle, build_alert, report_error, sanitize_stack


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestErrorThrottle:
    def test_duplicate_within_window_is_suppressed(self):
        clock = FakeClock()
        throttle = ErrorThrottle(window_seconds=300, clock=clock)

        assert throttle.should_send("db down:confirm deposits")
        clock.now = 299
        assert not throttle.should_send("db down:confirm deposits")
        clock.now = 300
        assert throttle.should_send("db down:confirm deposits")

    def test_different_keys_are_independent(self):
        throttle = ErrorThrottle(window_seconds=300, clock=FakeClock())
        assert throttle.should_send("a")
        assert throttle.should_send("b")

    def test_expired_keys_evicted_past_soft_limit(self):
        clock = FakeClock()
        throttle = ErrorThrottle(window_seconds=10, soft_limit=5, hard_limit=100, clock=clock)
        for i in range(5):
            throttle.should_send(f"old-{i}")

        clock.now = 20
        throttle.should_send("new")

        assert len(throttle) == 1

    def test_hard_limit_drops_oldest(self):
        clock = FakeClock()
        throttle = ErrorThrottle(window_seconds=1000, soft_limit=2, hard_limit=3, clock=clock)
        for i in range(6):
            clock.now = i
            throttle.should_send(f"key-{i}")

        assert len(throttle) == 3
        # newest keys survive and are still throttled
        assert not throttle.should_send("key-5")


class TestAlertPayload:
    def test_sanitize_removes_personal_data(self):
        stack = 'File "/home/alice/app.py"\nuser bob@example.com token=abc123'
        cleaned = sanitize_stack(stack)
        assert "alice" not in cleaned
        assert "bob@example.com" not in cleaned
        assert "abc123" not in cleaned

    def test_build_alert_fields(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError as exc:
            alert = build_alert(exc, "confirm deposits", "http://localhost/api/deposits/confirm")

        names = [f["name"] for f in alert["embeds"][0]["fields"]]
        assert names == ["Error", "Action", "URL", "Stack trace"]
        assert alert["embeds"][0]["fields"][0]["value"] == "boom"


class TestReportError:
    def test_without_webhook_only_logs(self, app, monkeypatch):
        posted = []
        monkeypatch.setitem(app.config, "ERROR_WEBHOOK_URL", None)
        monkeypatch.setattr(httpx, "post", lambda *a, **kw: posted.append(a))

        assert report_error(RuntimeError("boom"), "run hourly reminder sweep") is False
        assert posted == []

    def test_posts_once_per_window(self, app, monkeypatch):
        posted = []

        def fake_post(url, json=None, timeout=None):
            posted.append((url, json))
            return httpx.Response(204, request=httpx.Request("POST", url))

        monkeypatch.setitem(app.config, "ERROR_WEBHOOK_URL", "https://hooks.example/alert")
        monkeypatch.setattr(error_reporting, "_throttle", ErrorThrottle(clock=FakeClock()))
        monkeypatch.setattr(httpx, "post", fake_post)

        assert report_error(RuntimeError("db down"), "confirm deposits") is True
        assert report_error(RuntimeError("db down"), "confirm deposits") is False
        assert report_error(RuntimeError("db down"), "revert deposit") is True
        assert len(posted) == 2

    def test_webhook_failure_is_contained(self, app, monkeypatch):
        def failing_post(url, json=None, timeout=None):
            raise httpx.ConnectError("unreachable")

        monkeypatch.setitem(app.config, "ERROR_WEBHOOK_URL", "https://hooks.example/alert")
        monkeypatch.setattr(error_reporting, "_throttle", ErrorThrottle(clock=FakeClock()))
        monkeypatch.setattr(httpx, "post", failing_post)

        assert report_error(RuntimeError("db down"), "confirm deposits") is False
