"""
Sales entry tests.

Verifies:
- Card sales snapshot fee / expected deposit from the active schedule
- Non-card sales drop the card company and are not reconciled
- Amendments recompute the snapshot only when a deposit input changes
"""

from datetime import date, datetime

import pytest

from florist.services import fee_schedule_service, sales_service
from florist.validation import ValidationError


def _card_payload(**overrides):
    payload = {
        "date": "2026-10-15",
        "product_name": "Rose bouquet",
        "amount": 100000,
        "payment_method": "card",
        "card_company": "Shinhan",
    }
    payload.update(overrides)
    return payload


class TestCreateSale:
    def test_card_sale_gets_deposit_snapshot(self, db_session, card_companies):
        sale = sales_service.create_sale(_card_payload())

        assert sale.fee == 2000
        assert sale.expected_deposit == 98000
        assert sale.expected_deposit_date == date(2026, 10, 20)
        assert sale.deposit_status == "pending"
        assert sale.deposited_at is None

    def test_non_card_sale_drops_card_company(self, db_session, card_companies):
        sale = sales_service.create_sale(_card_payload(payment_method="cash"))

        assert sale.card_company is None
        assert sale.fee == 0
        assert sale.expected_deposit == 100000
        assert sale.expected_deposit_date is None
        assert sale.deposit_status == "not_applicable"

    def test_missing_date_uses_business_today(self, db_session, card_companies):
        payload = _card_payload()
        del payload["date"]

        sale = sales_service.create_sale(payload, today=date(2026, 10, 16))

        assert sale.date == date(2026, 10, 16)
        assert sale.expected_deposit_date == date(2026, 10, 21)

    def test_inactive_processor_is_treated_as_unknown(self, db_session, card_companies):
        fee_schedule_service.deactivate_card_company(card_companies[1].id)

        sale = sales_service.create_sale(_card_payload(card_company="Samsung"))

        assert sale.fee == 0
        assert sale.expected_deposit_date == date(2026, 10, 15)
        assert sale.deposit_status == "pending"

    @pytest.mark.parametrize(
        "overrides",
        [
            {"amount": -1},
            {"amount": "12.5"},
            {"payment_method": "cheque"},
            {"product_name": ""},
            {"date": "15/10/2026"},
            {"fee": 0},
        ],
    )
    def test_invalid_payloads_rejected(self, db_session, card_companies, overrides):
        with pytest.raises(ValidationError):
            sales_service.create_sale(_card_payload(**overrides))


class TestAmendSale:
    def test_descriptive_edit_keeps_snapshot(self, db_session, card_companies):
        sale = sales_service.create_sale(_card_payload())
        fee_schedule_service.update_card_company(card_companies[0].id, {"fee_rate": "5.0"})

        sales_service.amend_sale(sale.id, {"note": "Ribbon: white", "customer_name": "Lee"})

        assert sale.note == "Ribbon: white"
        assert sale.fee == 2000
        assert sale.expected_deposit == 98000

    def test_amount_change_recomputes_snapshot(self, db_session, card_companies):
        sale = sales_service.create_sale(_card_payload())

        sales_service.amend_sale(sale.id, {"amount": 50000})

        assert sale.fee == 1000
        assert sale.expected_deposit == 49000

    def test_recompute_restarts_completed_deposit(self, db_session, card_companies):
        sale = sales_service.create_sale(_card_payload())
        sale.deposit_status = "completed"
        sale.deposited_at = datetime(2026, 10, 20, 3, 0)
        db_session.commit()

        sales_service.amend_sale(sale.id, {"card_company": "Samsung"})

        assert sale.fee == 1500
        assert sale.expected_deposit_date == date(2026, 10, 19)
        assert sale.deposit_status == "pending"
        assert sale.deposited_at is None

    def test_switch_to_cash_clears_card_fields(self, db_session, card_companies):
        sale = sales_service.create_sale(_card_payload())

        sales_service.amend_sale(sale.id, {"payment_method": "transfer"})

        assert sale.card_company is None
        assert sale.fee == 0
        assert sale.deposit_status == "not_applicable"
        assert sale.expected_deposit_date is None

    def test_unknown_sale_returns_none(self, db_session, card_companies):
        assert sales_service.amend_sale(9999, {"note": "x"}) is None


class TestListSales:
    def test_month_filter(self, db_session, card_companies):
        sales_service.create_sale(_card_payload(date="2026-09-30"))
        october = sales_service.create_sale(_card_payload(date="2026-10-01"))
        sales_service.create_sale(_card_payload(date="2026-11-01"))

        assert [s.id for s in sales_service.list_sales("2026-10")] == [october.id]
        assert len(sales_service.list_sales()) == 3
