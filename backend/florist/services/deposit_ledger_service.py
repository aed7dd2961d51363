# Overview: Service-layer operations for card deposit reconciliation (pending/completed transitions).

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from ..extensions import db
from ..models import Sale
from ..models.sales import DEPOSIT_COMPLETED, DEPOSIT_PENDING, DEPOSIT_STATUSES
from ..validation import PAYMENT_CARD, ValidationError
from florist.time_utils import month_date_range, utcnow
"""
Deposit Ledger Invariants (authoritative)

- Only card sales take part in reconciliation.
- pending -> completed only through confirm; completed -> pending only through revert.
- deposit_status == completed  <=>  deposited_at is set.
- Confirm/revert never touch fee or expected_deposit.
- Unknown ids and sales not in the source state are skipped, not errors.
- A database failure rolls back the whole call; callers re-query for actual state.
"""


@dataclass
class ConfirmResult:
    confirmed: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "confirmed": self.confirmed,
            "skipped": self.skipped,
            "confirmed_count": len(self.confirmed),
            "requested_count": len(self.confirmed) + len(self.skipped),
        }


def _card_sales(month: str | None = None):
    q = db.session.query(Sale).filter(Sale.payment_method == PAYMENT_CARD)
    if month:
        start, end = month_date_range(month)
        q = q.filter(Sale.date >= start, Sale.date <= end)
    return q


def list_deposits(
    month: str | None = None,
    status: str | None = None,
    card_company: str | None = None,
) -> list[Sale]:
    q = _card_sales(month)
    if status and status != "all":
        if status not in DEPOSIT_STATUSES:
            raise ValidationError(f"status must be one of: {', '.join(DEPOSIT_STATUSES)}")
        q = q.filter(Sale.deposit_status == status)
    if card_company and card_company != "all":
        q = q.filter(Sale.card_company == card_company)
    return q.order_by(Sale.date.desc(), Sale.id.desc()).all()


def list_pending(month: str | None = None) -> list[Sale]:
    return list_deposits(month=month, status=DEPOSIT_PENDING)


def list_completed(month: str | None = None) -> list[Sale]:
    return list_deposits(month=month, status=DEPOSIT_COMPLETED)


def confirm_many(ids: list[int], now: datetime | None = None) -> ConfirmResult:
    """
    Mark pending card deposits as received.

    Idempotent: already-completed sales keep their original deposited_at.
    """
    deposited_at = now or utcnow()
    result = ConfirmResult()
    if not ids:
        return result

    try:
        rows = (
            _card_sales()
            .filter(Sale.id.in_(ids), Sale.deposit_status == DEPOSIT_PENDING)
            .all()
        )
        for sale in rows:
            sale.deposit_status = DEPOSIT_COMPLETED
            sale.deposited_at = deposited_at
        db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError("Failed to confirm deposits", operation="confirm_deposits") from exc

    confirmed_ids = {sale.id for sale in rows}
    for sale_id in ids:
        if sale_id in confirmed_ids:
            result.confirmed.append(sale_id)
        else:
            result.skipped.append(sale_id)
    return result


def confirm(sale_id: int, now: datetime | None = None) -> ConfirmResult:
    return confirm_many([sale_id], now=now)


def revert(sale_id: int) -> Sale | None:
    """
    Move a completed deposit back to pending.

    Reverting a pending (or non-card) sale leaves it untouched.
    Returns None for an unknown id.
    """
    try:
        sale = db.session.get(Sale, sale_id)
        if not sale:
            return None
        if sale.deposit_status == DEPOSIT_COMPLETED:
            sale.deposit_status = DEPOSIT_PENDING
            sale.deposited_at = None
            db.session.commit()
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError("Failed to revert deposit", operation="revert_deposit") from exc
    return sale


def deposits_summary(month: str | None = None) -> dict:
    summary = {
        "pending_count": 0,
        "pending_amount": 0,
        "completed_count": 0,
        "completed_amount": 0,
    }
    for sale in _card_sales(month).all():
        deposit_amount = sale.expected_deposit or sale.amount
        if sale.deposit_status == DEPOSIT_PENDING:
            summary["pending_count"] += 1
            summary["pending_amount"] += deposit_amount
        elif sale.deposit_status == DEPOSIT_COMPLETED:
            summary["completed_count"] += 1
            summary["completed_amount"] += deposit_amount
    return summary
