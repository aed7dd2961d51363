from __future__ import annotations

from ..extensions import db
from florist.time_utils import to_iso_date, to_utc_z


DEPOSIT_PENDING = "pending"
DEPOSIT_COMPLETED = "completed"
DEPOSIT_NOT_APPLICABLE = "not_applicable"
DEPOSIT_STATUSES = (DEPOSIT_PENDING, DEPOSIT_COMPLETED, DEPOSIT_NOT_APPLICABLE)


class Sale(db.Model):
    """
    Point-of-sale entry.

    Deposit fields (fee, expected_deposit, expected_deposit_date) are a
    snapshot taken when the sale is recorded; later fee schedule edits do not
    touch them. Sales are amended, never deleted.

    deposit_status == "completed" iff deposited_at is set.
    """
    __tablename__ = "sales"
    __table_args__ = (
        # Reconciliation screens filter card sales by month and status
        db.Index("ix_sales_method_status_date", "payment_method", "deposit_status", "date"),
        db.CheckConstraint("amount >= 0", name="ck_sales_amount_non_negative"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False, index=True)

    product_name = db.Column(db.String(255), nullable=False)
    product_category = db.Column(db.String(64), nullable=True)
    amount = db.Column(db.Integer, nullable=False)

    payment_method = db.Column(db.String(16), nullable=False)  # cash, card, transfer, naverpay, kakaopay
    card_company = db.Column(db.String(50), nullable=True)

    fee = db.Column(db.Integer, nullable=False, default=0)
    expected_deposit = db.Column(db.Integer, nullable=False, default=0)
    expected_deposit_date = db.Column(db.Date, nullable=True)
    deposit_status = db.Column(db.String(16), nullable=False, default=DEPOSIT_NOT_APPLICABLE, index=True)
    deposited_at = db.Column(db.DateTime(timezone=True), nullable=True)

    customer_name = db.Column(db.String(100), nullable=True)
    customer_phone = db.Column(db.String(32), nullable=True)
    note = db.Column(db.Text, nullable=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "product_name": self.product_name,
            "product_category": self.product_category,
            "amount": self.amount,
            "payment_method": self.payment_method,
            "card_company": self.card_company,
            "fee": self.fee,
            "expected_deposit": self.expected_deposit,
            "expected_deposit_date": to_iso_date(self.expected_deposit_date),
            "deposit_status": self.deposit_status,
            "deposited_at": to_utc_z(self.deposited_at),
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "note": self.note,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
