"""ModificationRequest model.

A client-submitted change request against a live website. Clients create
them in "pending"; only admins move them on (see revision_service).
completed_date is set exactly when status == "completed".
"""

import uuid

from sitewizard.extensions import db


class ModificationRequest(db.Model):
    __tablename__ = "modification_requests"

    # -- Valid statuses --
    STATUSES = ["pending", "in_progress", "completed", "rejected"]

    # -- Statuses a request can never leave --
    TERMINAL_STATUSES = ["completed", "rejected"]

    # -- Valid request types --
    REQUEST_TYPES = [
        "content_change",
        "design_change",
        "functionality",
        "bug_fix",
        "other",
    ]

    # -- Valid priorities --
    PRIORITIES = ["low", "medium", "high", "urgent"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    project_id = db.Column(
        db.String(36), db.ForeignKey("website_intakes.id"), nullable=False
    )
    client_email = db.Column(db.String(255), nullable=False, index=True)
    request_type = db.Column(
        db.String(50), default="content_change", nullable=False
    )
    priority = db.Column(db.String(20), default="medium", nullable=False)
    description = db.Column(db.Text, nullable=False)
    status = db.Column(
        db.String(50), default="pending", nullable=False
    )  # pending | in_progress | completed | rejected
    admin_response = db.Column(db.Text, nullable=True)
    completed_date = db.Column(db.DateTime(timezone=True), nullable=True)
    created_at = db.Column(
        db.DateTime(timezone=True), server_default=db.func.now()
    )
    updated_at = db.Column(
        db.DateTime(timezone=True),
        server_default=db.func.now(),
        onupdate=db.func.now(),
    )

    # --- Relationships ---
    project = db.relationship(
        "WebsiteIntake", back_populates="modification_requests"
    )

    @property
    def request_type_label(self):
        """'content_change' -> 'content change' (used in email subjects)."""
        return (self.request_type or "").replace("_", " ")

    def to_dict(self):
        return {
            "id": self.id,
            "project_id": self.project_id,
            "client_email": self.client_email,
            "request_type": self.request_type,
            "priority": self.priority,
            "description": self.description,
            "status": self.status,
            "admin_response": self.admin_response,
            "completed_date": (
                self.completed_date.isoformat() if self.completed_date else None
            ),
        }

    def __repr__(self):
        return f"<ModificationRequest {self.request_type} ({self.status})>"
