"""Processed Stripe webhook events.

One row per event id, written in the same commit as the event's effect on
the subscription. A redelivered event finds its row and is acknowledged
without touching payment_failed again.
"""

import uuid

from sitewizard.extensions import db


class StripeEvent(db.Model):
    __tablename__ = "stripe_events"

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    stripe_event_id = db.Column(db.String(255), unique=True, nullable=False)
    event_type = db.Column(db.String(255), nullable=False)  # "invoice.payment_failed", ...
    processed_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<StripeEvent {self.stripe_event_id} {self.event_type}>"
