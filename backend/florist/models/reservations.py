from __future__ import annotations

from ..extensions import db
from florist.time_utils import to_iso_date, to_utc_z


class Reservation(db.Model):
    """
    Calendar reservation.

    Two independent reminder triggers:
    - reminder_at: absolute instant (UTC), picked up by the hourly sweep
    - reminder_date: calendar date, picked up by the daily 08:00 sweep
    Each is cleared once a dispatch has been attempted.
    """
    __tablename__ = "reservations"
    __table_args__ = (
        db.Index("ix_reservations_date_status", "date", "status"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    date = db.Column(db.Date, nullable=False)
    time = db.Column(db.String(8), nullable=True)  # HH:MM

    title = db.Column(db.String(255), nullable=False)
    customer_name = db.Column(db.String(100), nullable=False)
    customer_phone = db.Column(db.String(32), nullable=True)
    description = db.Column(db.Text, nullable=True)
    estimated_amount = db.Column(db.Integer, nullable=False, default=0)

    status = db.Column(db.String(16), nullable=False, default="pending", index=True)  # pending, confirmed, completed, cancelled

    # Set once the reservation has been turned into a sale
    sale_id = db.Column(db.Integer, db.ForeignKey("sales.id"), nullable=True, index=True)

    reminder_at = db.Column(db.DateTime(timezone=True), nullable=True, index=True)
    reminder_date = db.Column(db.Date, nullable=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "date": to_iso_date(self.date),
            "time": self.time,
            "title": self.title,
            "customer_name": self.customer_name,
            "customer_phone": self.customer_phone,
            "description": self.description,
            "estimated_amount": self.estimated_amount,
            "status": self.status,
            "sale_id": self.sale_id,
            "reminder_at": to_utc_z(self.reminder_at),
            "reminder_date": to_iso_date(self.reminder_date),
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
