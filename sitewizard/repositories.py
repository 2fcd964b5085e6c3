"""Narrow read access per record kind.

Services look records up through these helpers instead of building ad-hoc
filters, so every lookup that can miss raises the same NotFoundError.
Writes stay in the services (they flush, the HTTP boundary commits).
"""

from sitewizard.errors import NotFoundError
from sitewizard.extensions import db
from sitewizard.models.build_task import BuildTask
from sitewizard.models.intake import WebsiteIntake
from sitewizard.models.revision import ModificationRequest
from sitewizard.models.subscription import ClientSubscription
from sitewizard.models.user import User


# ──────────────────────────────────────────────
# WebsiteIntake
# ──────────────────────────────────────────────

def get_intake(intake_id):
    """Return the intake or raise NotFoundError."""
    intake = db.session.get(WebsiteIntake, intake_id) if intake_id else None
    if intake is None:
        raise NotFoundError("Intake not found")
    return intake


def list_intakes(client_email=None, status=None):
    query = WebsiteIntake.query
    if client_email is not None:
        query = query.filter(
            db.func.lower(WebsiteIntake.client_email) == client_email.lower()
        )
    if status and status in WebsiteIntake.STATUSES:
        query = query.filter_by(website_status=status)
    return query.order_by(WebsiteIntake.created_at.desc()).all()


# ──────────────────────────────────────────────
# BuildTask
# ──────────────────────────────────────────────

def find_build_task(intake_id, task_type):
    """Return the task for (intake, type) or None."""
    return BuildTask.query.filter_by(
        website_intake_id=intake_id, task_type=task_type
    ).first()


def get_build_task(task_id):
    task = db.session.get(BuildTask, task_id) if task_id else None
    if task is None:
        raise NotFoundError("Build task not found")
    return task


def list_build_tasks(intake_id):
    return (
        BuildTask.query
        .filter_by(website_intake_id=intake_id)
        .order_by(BuildTask.created_at.asc())
        .all()
    )


# ──────────────────────────────────────────────
# ModificationRequest
# ──────────────────────────────────────────────

def get_revision(revision_id):
    revision = (
        db.session.get(ModificationRequest, revision_id) if revision_id else None
    )
    if revision is None:
        raise NotFoundError("Revision not found")
    return revision


def list_revisions(project_id=None, client_email=None, status=None):
    query = ModificationRequest.query
    if project_id is not None:
        query = query.filter_by(project_id=project_id)
    if client_email is not None:
        query = query.filter(
            db.func.lower(ModificationRequest.client_email) == client_email.lower()
        )
    if status and status in ModificationRequest.STATUSES:
        query = query.filter_by(status=status)
    return query.order_by(ModificationRequest.created_at.desc()).all()


# ──────────────────────────────────────────────
# ClientSubscription
# ──────────────────────────────────────────────

def get_subscription(subscription_id):
    subscription = (
        db.session.get(ClientSubscription, subscription_id)
        if subscription_id else None
    )
    if subscription is None:
        raise NotFoundError("Subscription not found")
    return subscription


def find_subscription_by_email(client_email):
    """Return the client's subscription or None."""
    if not client_email:
        return None
    return ClientSubscription.query.filter(
        db.func.lower(ClientSubscription.client_email) == client_email.lower()
    ).first()


# ──────────────────────────────────────────────
# Users
# ──────────────────────────────────────────────

def list_admin_users():
    """Active admins, the recipients of internal notifications."""
    return (
        User.query
        .filter_by(is_admin=True, is_active=True)
        .order_by(User.email.asc())
        .all()
    )


def find_user_by_email(email):
    if not email:
        return None
    return User.query.filter(db.func.lower(User.email) == email.lower()).first()
