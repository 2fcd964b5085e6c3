"""BuildTask model.

A tracked unit of admin work against one intake. At most one row exists
per (website_intake_id, task_type); the unique constraint is what makes
build_task_service.upsert_task atomic.
"""

import uuid

from sitewizard.extensions import db


class BuildTask(db.Model):
    __tablename__ = "build_tasks"
    __table_args__ = (
        db.UniqueConstraint(
            "website_intake_id", "task_type", name="uq_build_tasks_intake_type"
        ),
    )

    # -- Valid statuses --
    STATUSES = ["pending", "in_progress", "completed", "blocked"]

    # -- Task types and the display name a new row gets --
    TASK_NAMES = {
        "integrate_analytics": "Integrate Analytics",
        "optimize_images": "Optimize Images",
        "setup_seo": "Setup SEO",
        "configure_forms": "Configure Forms",
        "test_functionality": "Test Functionality",
        "deploy_staging": "Deploy to Staging",
        "final_review": "Final Review",
        "deploy_live": "Deploy Live",
    }
    TASK_TYPES = list(TASK_NAMES)

    PRIORITIES = ["medium", "high"]

    id = db.Column(
        db.String(36), primary_key=True, default=lambda: str(uuid.uuid4())
    )
    website_intake_id = db.Column(
        db.String(36), db.ForeignKey("website_intakes.id"), nullable=False
    )
    task_name = db.Column(db.String(255), nullable=False)
    task_type = db.Column(db.String(50), nullable=False)
    status = db.Column(
        db.String(50), default="pending", nullable=False
    )  # pending | in_progress | completed | blocked
    priority = db.Column(db.String(20), default="medium", nullable=False)
    assigned_to = db.Column(db.String(255), nullable=True)
    staging_url = db.Column(db.String(500), nullable=True)
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
    intake = db.relationship("WebsiteIntake", back_populates="build_tasks")

    def to_dict(self):
        return {
            "id": self.id,
            "website_intake_id": self.website_intake_id,
            "task_name": self.task_name,
            "task_type": self.task_type,
            "status": self.status,
            "priority": self.priority,
            "assigned_to": self.assigned_to,
            "staging_url": self.staging_url,
            "completed_date": (
                self.completed_date.isoformat() if self.completed_date else None
            ),
        }

    def __repr__(self):
        return f"<BuildTask {self.task_type} ({self.status})>"
