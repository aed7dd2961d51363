from __future__ import annotations

from ..extensions import db
from florist.time_utils import to_utc_z


class PushSubscription(db.Model):
    """
    Browser/device Web Push registration.

    Flipped to inactive the first time a delivery to it is rejected; only a
    fresh subscribe from the device makes it active again.
    """
    __tablename__ = "push_subscriptions"
    __table_args__ = {"sqlite_autoincrement": True}

    id = db.Column(db.Integer, primary_key=True)
    endpoint = db.Column(db.Text, nullable=False, unique=True)
    p256dh = db.Column(db.String(255), nullable=True)
    auth = db.Column(db.String(255), nullable=True)
    user_agent = db.Column(db.String(255), nullable=True)
    is_active = db.Column(db.Boolean, nullable=False, default=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    @property
    def keys(self) -> dict:
        return {"p256dh": self.p256dh, "auth": self.auth}

    def to_dict(self) -> dict:
        # Key material is never echoed back
        return {
            "id": self.id,
            "endpoint": self.endpoint,
            "user_agent": self.user_agent,
            "is_active": self.is_active,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
