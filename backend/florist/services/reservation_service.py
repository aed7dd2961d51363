# Overview: Service-layer operations for calendar reservations and their reminder triggers.

from __future__ import annotations

from ..extensions import db
from ..models import Reservation, Sale
from ..validation import (
    ConflictError,
    ModelValidationPolicy,
    ValidationError,
    enforce_rules_reservation,
    validate_payload,
)
from florist.time_utils import month_date_range
from .sales_service import create_sale


RESERVATION_POLICY = ModelValidationPolicy(
    writable_fields={
        "date",
        "time",
        "title",
        "customer_name",
        "customer_phone",
        "description",
        "estimated_amount",
        "status",
        "reminder_at",
        "reminder_date",
    },
    required_on_create={"date", "title", "customer_name"},
)


def _clean(data: dict, *, partial: bool) -> dict:
    patch = validate_payload(model=Reservation, payload=data, policy=RESERVATION_POLICY, partial=partial)
    enforce_rules_reservation(patch)
    return patch


def list_reservations(month: str) -> list[Reservation]:
    start, end = month_date_range(month)
    return (
        db.session.query(Reservation)
        .filter(Reservation.date >= start, Reservation.date <= end)
        .order_by(Reservation.date, Reservation.time.asc().nulls_last(), Reservation.id)
        .all()
    )


def get_reservation(reservation_id: int) -> Reservation | None:
    return db.session.get(Reservation, reservation_id)


def create_reservation(data: dict) -> Reservation:
    patch = _clean(data, partial=False)
    patch.setdefault("status", "pending")
    if patch.get("estimated_amount") is None:
        patch["estimated_amount"] = 0

    reservation = Reservation(**patch)
    db.session.add(reservation)
    db.session.commit()
    return reservation


def update_reservation(reservation_id: int, data: dict) -> Reservation | None:
    """
    Patch a reservation. Setting reminder_at / reminder_date re-arms the
    corresponding sweep; sending null disarms it.
    """
    reservation = get_reservation(reservation_id)
    if not reservation:
        return None

    patch = _clean(data, partial=True)
    for key, value in patch.items():
        setattr(reservation, key, value)
    db.session.commit()
    return reservation


def set_reservation_status(reservation_id: int, status: str) -> Reservation | None:
    if not status:
        raise ValidationError("status is required")
    return update_reservation(reservation_id, {"status": status})


def delete_reservation(reservation_id: int) -> bool:
    """Hard delete. A sale created from the reservation is kept."""
    reservation = get_reservation(reservation_id)
    if not reservation:
        return False
    db.session.delete(reservation)
    db.session.commit()
    return True


def convert_to_sale(reservation_id: int, sale_data: dict | None = None) -> tuple[Reservation, Sale] | None:
    """
    Record the sale for a fulfilled reservation.

    The sale is prefilled from the reservation (date, title, estimated
    amount, customer) and goes through the normal sale path, so card sales
    get their deposit snapshot. The reservation is then marked completed
    and linked to the sale, which also takes it out of the reminder sweeps.
    Returns None for an unknown id.
    """
    reservation = get_reservation(reservation_id)
    if not reservation:
        return None
    if reservation.sale_id is not None:
        raise ConflictError("Reservation has already been converted to a sale")
    if reservation.status == "cancelled":
        raise ConflictError("A cancelled reservation cannot be converted to a sale")

    payload = {
        "date": reservation.date,
        "product_name": reservation.title,
        "amount": reservation.estimated_amount,
        "customer_name": reservation.customer_name,
        "customer_phone": reservation.customer_phone,
    }
    payload.update(sale_data or {})
    sale = create_sale(payload)

    reservation.status = "completed"
    reservation.sale_id = sale.id
    db.session.commit()
    return reservation, sale
