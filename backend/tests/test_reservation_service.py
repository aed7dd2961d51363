"""
Reservation tests.

Verifies:
- Converting a reservation records a sale with its deposit snapshot
- A converted reservation is completed, linked, and out of the sweeps
- Deletion removes the reservation but keeps any linked sale
"""

from datetime import date, datetime, timedelta

import pytest

from florist.models import Reservation, Sale
from florist.services import reminder_service, reservation_service
from florist.validation import ConflictError, ValidationError


NOW = datetime(2026, 10, 19, 1, 0)


class TestConvertToSale:
    def test_card_conversion_snapshots_deposit(self, db_session, card_companies, make_reservation):
        reservation = make_reservation()

        reservation, sale = reservation_service.convert_to_sale(
            reservation.id, {"payment_method": "card", "card_company": "Shinhan"}
        )

        assert sale.date == date(2026, 10, 20)
        assert sale.product_name == "Wedding bouquet"
        assert sale.amount == 150000
        assert sale.customer_name == "Kim"
        assert sale.fee == 3000
        assert sale.expected_deposit == 147000
        assert sale.expected_deposit_date == date(2026, 10, 23)
        assert sale.deposit_status == "pending"
        assert reservation.status == "completed"
        assert reservation.sale_id == sale.id

    def test_sale_fields_override_reservation_defaults(self, db_session, card_companies, make_reservation):
        reservation = make_reservation()

        _, sale = reservation_service.convert_to_sale(
            reservation.id, {"payment_method": "cash", "amount": 120000, "date": "2026-10-21"}
        )

        assert sale.amount == 120000
        assert sale.date == date(2026, 10, 21)
        assert sale.deposit_status == "not_applicable"

    def test_converted_reservation_leaves_reminder_sweeps(self, db_session, outbox, card_companies, make_reservation, make_subscription):
        make_subscription("https://push.example/a")
        reservation = make_reservation(reminder_at=NOW - timedelta(minutes=20))

        reservation_service.convert_to_sale(reservation.id, {"payment_method": "cash"})

        assert reminder_service.run_hourly_sweep(now=NOW).reminders == 0
        assert outbox.sent == []

    def test_second_conversion_rejected(self, db_session, card_companies, make_reservation):
        reservation = make_reservation()
        reservation_service.convert_to_sale(reservation.id, {"payment_method": "cash"})

        with pytest.raises(ConflictError):
            reservation_service.convert_to_sale(reservation.id, {"payment_method": "cash"})
        assert db_session.query(Sale).count() == 1

    def test_cancelled_reservation_rejected(self, db_session, make_reservation):
        reservation = make_reservation(status="cancelled")

        with pytest.raises(ConflictError):
            reservation_service.convert_to_sale(reservation.id, {"payment_method": "cash"})

    def test_invalid_sale_leaves_reservation_untouched(self, db_session, make_reservation):
        reservation = make_reservation()

        with pytest.raises(ValidationError):
            reservation_service.convert_to_sale(reservation.id, {})

        db_session.expire_all()
        stored = db_session.get(Reservation, reservation.id)
        assert stored.status == "pending"
        assert stored.sale_id is None
        assert db_session.query(Sale).count() == 0

    def test_unknown_reservation(self, db_session):
        assert reservation_service.convert_to_sale(9999, {"payment_method": "cash"}) is None


class TestDeleteReservation:
    def test_delete(self, db_session, make_reservation):
        reservation = make_reservation()

        assert reservation_service.delete_reservation(reservation.id) is True
        assert db_session.get(Reservation, reservation.id) is None
        assert reservation_service.delete_reservation(reservation.id) is False

    def test_delete_keeps_linked_sale(self, db_session, card_companies, make_reservation):
        reservation = make_reservation()
        _, sale = reservation_service.convert_to_sale(reservation.id, {"payment_method": "cash"})

        reservation_service.delete_reservation(reservation.id)

        assert db_session.get(Sale, sale.id) is not None
