"""
Sales Service - point-of-sale entry with deposit snapshot

WHY: A card sale has to carry the fee and expected deposit that were in force
when it was rung up. The fee schedule can change afterwards; the sale must not.
"""

from __future__ import annotations

from datetime import date

from ..extensions import db
from ..models import Sale
from ..validation import (
    PAYMENT_CARD,
    ModelValidationPolicy,
    enforce_rules_sale,
    validate_payload,
)
from florist.time_utils import month_date_range
from .deposit_service import compute_deposit
from .fee_schedule_service import get_active_schedule


SALE_POLICY = ModelValidationPolicy(
    writable_fields={
        "date",
        "product_name",
        "product_category",
        "amount",
        "payment_method",
        "card_company",
        "customer_name",
        "customer_phone",
        "note",
    },
    required_on_create={"product_name", "amount", "payment_method"},
)

# Changing any of these re-derives the deposit snapshot
DEPOSIT_INPUT_FIELDS = ("date", "amount", "payment_method", "card_company")


def _apply_deposit_snapshot(sale: Sale) -> None:
    computation = compute_deposit(
        amount=sale.amount,
        method=sale.payment_method,
        processor_name=sale.card_company,
        sale_date=sale.date,
        schedule=get_active_schedule(),
    )
    for key, value in computation.as_sale_fields().items():
        setattr(sale, key, value)
    sale.deposited_at = None


def create_sale(data: dict, today: date | None = None) -> Sale:
    """
    Record a sale and snapshot its deposit fields.

    ``today`` is the business-calendar date used when the payload has no date.
    """
    patch = validate_payload(model=Sale, payload=data, policy=SALE_POLICY, partial=False)
    enforce_rules_sale(patch)

    if patch.get("date") is None:
        patch["date"] = today or date.today()
    if patch["payment_method"] != PAYMENT_CARD:
        patch["card_company"] = None

    sale = Sale(**patch)
    _apply_deposit_snapshot(sale)

    db.session.add(sale)
    db.session.commit()
    return sale


def amend_sale(sale_id: int, data: dict) -> Sale | None:
    """
    Amend a recorded sale.

    Descriptive fields are patched in place. An amendment that touches the
    amount, tender, processor or date is treated as re-recording those facts:
    the deposit snapshot is recomputed from today's schedule and the deposit
    status restarts (a confirmed deposit has to be confirmed again).
    """
    sale = get_sale(sale_id)
    if not sale:
        return None

    patch = validate_payload(model=Sale, payload=data, policy=SALE_POLICY, partial=True)
    enforce_rules_sale(patch)

    deposit_inputs_changed = any(
        key in patch and patch[key] != getattr(sale, key) for key in DEPOSIT_INPUT_FIELDS
    )

    for key, value in patch.items():
        setattr(sale, key, value)
    if sale.payment_method != PAYMENT_CARD:
        sale.card_company = None

    if deposit_inputs_changed:
        _apply_deposit_snapshot(sale)

    db.session.commit()
    return sale


def get_sale(sale_id: int) -> Sale | None:
    return db.session.get(Sale, sale_id)


def list_sales(month: str | None = None) -> list[Sale]:
    q = db.session.query(Sale)
    if month:
        start, end = month_date_range(month)
        q = q.filter(Sale.date >= start, Sale.date <= end)
    return q.order_by(Sale.date.desc(), Sale.id.desc()).all()
