"""WebsiteIntake model.

One row per client website project. ``client_email`` is the owner key:
only the user with that email may approve the project. ``website_status``
moves forward through STATUS_ORDER or sideways into "cancelled"; the
ordering is enforced in lifecycle_service, not here.
"""

import uuid

from sitewizard.extensions import db


class WebsiteIntake(db.Model):
    __tablename__ = "website_intakes"

    # -- Forward-only progression (cancelled sits outside it) --
    STATUS_ORDER = ["pending", "generating", "review", "approved", "live"]
    STATUSES = STATUS_ORDER + ["cancelled"]

    # -- Values offered by the intake form --
    STYLE_PREFERENCES = [
        "modern",
        "classic",
        "minimal",
        "bold",
        "playful",
        "corporate",
    ]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    subscription_id = db.Column(
        db.String(36), db.ForeignKey("client_subscriptions.id"), nullable=True
    )
    company_name = db.Column(db.String(255), nullable=False)
    contact_person = db.Column(db.String(255), nullable=True)
    client_email = db.Column(db.String(255), nullable=False, index=True)
    phone = db.Column(db.String(50), nullable=True)
    style_preference = db.Column(
        db.String(50), default="modern", nullable=True
    )
    business_goals = db.Column(db.JSON, default=list)  # ordered list of strings
    goal_description = db.Column(db.Text, nullable=True)
    website_status = db.Column(
        db.String(50), default="pending", nullable=False
    )  # pending | generating | review | approved | live | cancelled
    confirmed = db.Column(db.Boolean, default=False, nullable=False)
    staging_url = db.Column(db.String(500), nullable=True)
    live_url = db.Column(db.String(500), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    subscription = db.relationship("ClientSubscription")
    build_tasks = db.relationship(
        "BuildTask", back_populates="intake", lazy="dynamic"
    )
    modification_requests = db.relationship(
        "ModificationRequest", back_populates="project", lazy="dynamic"
    )

    def to_dict(self):
        return {
            "id": self.id,
            "company_name": self.company_name,
            "contact_person": self.contact_person,
            "client_email": self.client_email,
            "phone": self.phone,
            "style_preference": self.style_preference,
            "business_goals": list(self.business_goals or []),
            "goal_description": self.goal_description,
            "website_status": self.website_status,
            "confirmed": bool(self.confirmed),
            "staging_url": self.staging_url,
            "live_url": self.live_url,
            "subscription_id": self.subscription_id,
        }

    def __repr__(self):
        return f"<WebsiteIntake {self.company_name} ({self.website_status})>"
