"""Lifecycle service — website_status transitions for WebsiteIntake.

website_status moves forward through WebsiteIntake.STATUS_ORDER
(pending -> generating -> review -> approved -> live) or sideways into
"cancelled". Every transition goes through _check_transition(), so no
operation here can move a project backwards.

Functions flush but do NOT commit — the caller commits, then sends the
notifications (see notification_service).
"""

import logging
import re

from flask import current_app

from sitewizard import repositories
from sitewizard.decorators import ADMIN, OWNER_OF_RECORD, authorize
from sitewizard.errors import ValidationError
from sitewizard.extensions import db
from sitewizard.models.intake import WebsiteIntake
from sitewizard.services import build_task_service
from sitewizard.services.audit_service import log_event

logger = logging.getLogger(__name__)

_NON_ALNUM_RUN = re.compile(r"[^a-z0-9]+")

# Statuses from which a client may approve when APPROVAL_REQUIRES_REVIEW is off.
LENIENT_APPROVAL_FROM = ["pending", "generating", "review", "approved"]


# ──────────────────────────────────────────────
# Helpers
# ──────────────────────────────────────────────

def staging_slug(company_name):
    """'Joe's Pizza & Co.' -> 'joe-s-pizza-co-' (edge hyphens kept)."""
    return _NON_ALNUM_RUN.sub("-", (company_name or "").lower())


def staging_url_for(company_name):
    domain = current_app.config.get("STAGING_DOMAIN", "sitewizard.pro")
    return f"https://staging-{staging_slug(company_name)}.{domain}"


def _check_transition(intake, new_status):
    """Raise ValidationError unless ``new_status`` is forward or sideways.

    Re-setting the current status is always allowed (replays are no-ops).
    """
    if new_status not in WebsiteIntake.STATUSES:
        raise ValidationError(
            f"Invalid status '{new_status}'. "
            f"Must be one of: {', '.join(WebsiteIntake.STATUSES)}"
        )

    current = intake.website_status
    if new_status == current:
        return

    if current == "cancelled":
        raise ValidationError("This website project has been cancelled")

    if new_status == "cancelled":
        if current == "live":
            raise ValidationError("A live website cannot be cancelled")
        return

    order = WebsiteIntake.STATUS_ORDER
    if order.index(new_status) < order.index(current):
        raise ValidationError(
            f"Cannot move website status from '{current}' back to '{new_status}'"
        )


def advance_status(intake, new_status, actor=None):
    """Move ``intake`` to ``new_status`` after checking the ordering.

    Returns the intake. Logs an audit event when the status changes.
    """
    _check_transition(intake, new_status)

    old_status = intake.website_status
    if old_status == new_status:
        return intake

    intake.website_status = new_status
    db.session.flush()

    log_event(
        "intake.status_changed",
        actor=actor,
        intake_id=intake.id,
        old_status=old_status,
        new_status=new_status,
    )
    logger.info(f"Intake {intake.id}: {old_status} -> {new_status}")
    return intake


# ──────────────────────────────────────────────
# Operations
# ──────────────────────────────────────────────

def approve_website(intake_id, identity):
    """Client approval of their generated website.

    Sets confirmed=True and website_status="approved". By default the
    prior status is not required to be "review" (pending and generating
    are accepted as well); set APPROVAL_REQUIRES_REVIEW to make "review"
    a hard precondition.

    Raises:
        ValidationError: intake_id missing, or the status cannot move to approved.
        NotFoundError: No such intake.
        AuthorizationError: Caller does not own the intake.
    """
    if not intake_id:
        raise ValidationError("intake_id is required")

    intake = repositories.get_intake(intake_id)
    authorize(identity, OWNER_OF_RECORD, intake)

    if current_app.config.get("APPROVAL_REQUIRES_REVIEW"):
        allowed = ["review", "approved"]
    else:
        allowed = LENIENT_APPROVAL_FROM
    if intake.website_status not in allowed:
        raise ValidationError(
            f"Website cannot be approved while '{intake.website_status}'"
        )

    advance_status(intake, "approved", actor=identity)
    intake.confirmed = True
    db.session.flush()

    log_event("intake.approved", actor=identity, intake_id=intake.id)
    return intake


def mark_website_live(intake_id, live_url, identity):
    """Admin go-live. Replaying with the same live_url is a no-op in effect.

    Raises:
        ValidationError: intake_id or live_url missing, or the
                         project is cancelled.
        NotFoundError: No such intake.
        AuthorizationError: Caller is not an admin.
    """
    authorize(identity, ADMIN)

    live_url = (live_url or "").strip() if isinstance(live_url, str) else ""
    if not intake_id or not live_url:
        raise ValidationError("intake_id and live_url are required")

    intake = repositories.get_intake(intake_id)

    advance_status(intake, "live", actor=identity)
    intake.live_url = live_url
    db.session.flush()

    log_event("intake.live", actor=identity, intake_id=intake.id, live_url=live_url)
    return intake


def deploy_to_staging(intake_id, identity):
    """Record a staging deployment for an intake.

    Does not touch website_status. Computes the staging URL from the
    company name, stores it on the intake and upserts the
    "deploy_staging" BuildTask as completed.

    Returns:
        (intake, staging_url)
    """
    authorize(identity, ADMIN)

    if not intake_id:
        raise ValidationError("intake_id is required")

    intake = repositories.get_intake(intake_id)
    if intake.website_status == "cancelled":
        raise ValidationError("Cannot deploy a cancelled website project")

    staging_url = staging_url_for(intake.company_name)
    intake.staging_url = staging_url

    build_task_service.upsert_task(
        intake.id,
        "deploy_staging",
        status="completed",
        staging_url=staging_url,
    )

    log_event(
        "intake.deployed_to_staging",
        actor=identity,
        intake_id=intake.id,
        staging_url=staging_url,
    )
    return intake, staging_url


def cancel_website(intake_id, identity):
    """Admin cancellation. Allowed from any status except live."""
    authorize(identity, ADMIN)

    if not intake_id:
        raise ValidationError("intake_id is required")

    intake = repositories.get_intake(intake_id)
    return advance_status(intake, "cancelled", actor=identity)
