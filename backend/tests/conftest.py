"""
Pytest fixtures for florist backend tests.

Provides test database setup, a recording push transport, and test client.
"""

import json
import threading
from datetime import date
from decimal import Decimal

import pytest
from florist import create_app
from florist.extensions import db, push_transport
from florist.models import CardCompanySetting, PushSubscription, Reservation, Sale
from florist.services.push_transport import TransportError


ADMIN_TOKEN = "test-admin-token"
CRON_SECRET = "test-cron-secret"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'ENV': 'production',
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'ADMIN_API_TOKEN': ADMIN_TOKEN,
        'CRON_SECRET': CRON_SECRET,
        'VAPID_PUBLIC_KEY': 'test-public-key',
        'VAPID_PRIVATE_KEY': 'test-private-key',
        'BUSINESS_TIMEZONE': 'Asia/Seoul',
        'ERROR_WEBHOOK_URL': None,
        'PUSH_MAX_WORKERS': 4,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


class RecordingTransport:
    """Stands in for PushTransport.send; endpoints in ``failing`` raise."""

    def __init__(self):
        self.sent = []
        self.failing = set()
        self.crashing = set()
        self._lock = threading.Lock()

    def send(self, endpoint, keys, payload):
        with self._lock:
            self.sent.append((endpoint, json.loads(payload)))
        if endpoint in self.crashing:
            raise RuntimeError("connection reset")
        if endpoint in self.failing:
            raise TransportError("Gone", status_code=410)

    def titles(self):
        return [payload["title"] for _, payload in self.sent]

    def endpoints(self):
        return [endpoint for endpoint, _ in self.sent]


@pytest.fixture(scope='function')
def outbox(monkeypatch):
    """Capture outgoing push messages instead of calling a push service."""
    transport = RecordingTransport()
    monkeypatch.setattr(push_transport, "send", transport.send)
    return transport


@pytest.fixture(scope='function')
def card_companies(db_session):
    """Shinhan 2.0% / 3 days, Samsung 1.5% / 2 days."""
    rows = [
        CardCompanySetting(name="Shinhan", fee_rate=Decimal("2.00"), deposit_days=3, is_active=True),
        CardCompanySetting(name="Samsung", fee_rate=Decimal("1.50"), deposit_days=2, is_active=True),
    ]
    db_session.add_all(rows)
    db_session.commit()
    return rows


@pytest.fixture(scope='function')
def make_subscription(db_session):
    """Factory for stored push subscriptions."""
    def _make(endpoint, is_active=True):
        sub = PushSubscription(endpoint=endpoint, p256dh="p256dh-key", auth="auth-secret", is_active=is_active)
        db_session.add(sub)
        db_session.commit()
        return sub
    return _make


@pytest.fixture(scope='function')
def make_reservation(db_session):
    """Factory for reservations; defaults to a pending booking on 2026-10-20 14:00."""
    def _make(**overrides):
        fields = {
            "date": date(2026, 10, 20),
            "time": "14:00",
            "title": "Wedding bouquet",
            "customer_name": "Kim",
            "estimated_amount": 150000,
            "status": "pending",
        }
        fields.update(overrides)
        reservation = Reservation(**fields)
        db_session.add(reservation)
        db_session.commit()
        return reservation
    return _make


@pytest.fixture(scope='function')
def make_card_sale(db_session):
    """Factory for sales; defaults to a pending 100,000 Shinhan card sale on Thu 2026-10-15."""
    def _make(**overrides):
        fields = {
            "date": date(2026, 10, 15),
            "product_name": "Rose bouquet",
            "amount": 100000,
            "payment_method": "card",
            "card_company": "Shinhan",
            "fee": 2000,
            "expected_deposit": 98000,
            "expected_deposit_date": date(2026, 10, 20),
            "deposit_status": "pending",
        }
        fields.update(overrides)
        sale = Sale(**fields)
        db_session.add(sale)
        db_session.commit()
        return sale
    return _make


@pytest.fixture(scope='function')
def admin_headers():
    """Authorization header carrying the admin API token."""
    return {'Authorization': f'Bearer {ADMIN_TOKEN}'}


@pytest.fixture(scope='function')
def cron_headers():
    """Authorization header carrying the cron secret."""
    return {'Authorization': f'Bearer {CRON_SECRET}'}
