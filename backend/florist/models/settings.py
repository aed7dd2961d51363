from __future__ import annotations

from ..extensions import db
from florist.time_utils import to_utc_z


class CardCompanySetting(db.Model):
    """
    Fee schedule entry for one card processor.

    fee_rate is a percentage (0-100); deposit_days counts business days
    between the sale date and the bank deposit. Entries are soft-disabled
    (is_active = False) so historic sales keep resolving their processor name.
    """
    __tablename__ = "card_company_settings"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(50), nullable=False, unique=True)
    fee_rate = db.Column(db.Numeric(5, 2), nullable=False, default=0)
    deposit_days = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "fee_rate": float(self.fee_rate) if self.fee_rate is not None else None,
            "deposit_days": self.deposit_days,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
