"""ClientSubscription model.

The billing relationship of one client, keyed by email.

- trial_ends is always trial_started + TRIAL_DAYS (14 days, not configurable).
- payment_failed is written by the Stripe webhook only; nothing in the
  portal suspends a subscription because of it.
- effective_access_until records how long a cancelled subscription keeps
  access. has_access() in subscription_service reads it.
"""

import uuid

from sitewizard.extensions import db


class ClientSubscription(db.Model):
    __tablename__ = "client_subscriptions"

    # -- Valid statuses --
    STATUSES = ["trial", "active", "suspended", "cancelled"]
    TRIAL_DAYS = 14

    # -- Valid status transitions (enforced in subscription_service) --
    VALID_TRANSITIONS = {
        "trial": ["active", "cancelled"],
        "active": ["suspended", "cancelled"],
        "suspended": ["active", "cancelled"],
    }

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    client_email = db.Column(db.String(255), unique=True, nullable=False)
    package_id = db.Column(db.String(100), nullable=False)
    status = db.Column(
        db.String(50), default="trial", nullable=False
    )  # trial | active | suspended | cancelled
    trial_started = db.Column(db.DateTime(timezone=True), nullable=True)
    trial_ends = db.Column(db.DateTime(timezone=True), nullable=True)
    next_payment_date = db.Column(db.DateTime(timezone=True), nullable=True)
    payment_method_added = db.Column(db.Boolean, default=False)
    payment_failed = db.Column(db.Boolean, default=False)
    cancellation_date = db.Column(db.DateTime(timezone=True), nullable=True)
    effective_access_until = db.Column(
        db.DateTime(timezone=True), nullable=True
    )
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    def to_dict(self):
        def _iso(value):
            return value.isoformat() if value else None

        return {
            "id": self.id,
            "client_email": self.client_email,
            "package_id": self.package_id,
            "status": self.status,
            "trial_started": _iso(self.trial_started),
            "trial_ends": _iso(self.trial_ends),
            "next_payment_date": _iso(self.next_payment_date),
            "payment_method_added": bool(self.payment_method_added),
            "payment_failed": bool(self.payment_failed),
            "cancellation_date": _iso(self.cancellation_date),
            "effective_access_until": _iso(self.effective_access_until),
        }

    def __repr__(self):
        return f"<ClientSubscription {self.client_email} ({self.status})>"
