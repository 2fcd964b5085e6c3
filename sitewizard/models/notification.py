"""Notification model (outbox).

Every outbound email is written here after the state change it reports
has been committed. Delivery is attempted right away; rows left "pending"
or "failed" are retried by ``flask deliver-notifications``. The body is
stored already rendered so a retry sends exactly what the first attempt
would have sent.
"""

import uuid

from sitewizard.extensions import db


class Notification(db.Model):
    __tablename__ = "notifications"

    STATUSES = ["pending", "sent", "failed"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    kind = db.Column(
        db.String(100), nullable=False
    )  # e.g. "intake.approved.admin"
    recipient = db.Column(db.String(255), nullable=False)
    subject = db.Column(db.String(500), nullable=False)
    body = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.String(20), default="pending", nullable=False, index=True
    )  # pending | sent | failed
    attempts = db.Column(db.Integer, default=0, nullable=False)
    last_error = db.Column(db.Text, nullable=True)
    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )

    def __repr__(self):
        return f"<Notification {self.kind} -> {self.recipient} ({self.status})>"
