"""Revision service — client change requests against a live website.

State machine: pending -> in_progress -> completed | rejected.
Clients create requests (pending); only admins transition them.
completed_date is set when a request becomes "completed"; completed and
rejected are final, so nothing ever needs to clear it again.

Free text (description, admin_response) is sanitized with bleach.clean()
to strip HTML tags.

Functions flush but do NOT commit — the caller commits.
"""

import logging
from datetime import datetime, timezone

import bleach

from sitewizard import repositories
from sitewizard.decorators import ADMIN, ANY_AUTHENTICATED, OWNER_OF_RECORD, authorize
from sitewizard.errors import ValidationError
from sitewizard.extensions import db
from sitewizard.models.revision import ModificationRequest
from sitewizard.services.audit_service import log_event

logger = logging.getLogger(__name__)

MAX_DESCRIPTION_LENGTH = 5000


def _sanitize(text):
    """Strip all HTML tags from user input."""
    if text is None:
        return text
    return bleach.clean(text, tags=[], strip=True).strip()


def create_revision(identity, project_id, description, request_type="content_change",
                    priority="medium"):
    """Client submits a change request for their live website.

    Raises:
        ValidationError: Missing/invalid fields, or the website is not live.
        NotFoundError: No such project.
        AuthorizationError: Caller does not own the project.
    """
    if not project_id:
        raise ValidationError("project_id is required")

    intake = repositories.get_intake(project_id)
    authorize(identity, OWNER_OF_RECORD, intake)

    if intake.website_status != "live":
        raise ValidationError(
            "Revisions can only be requested once the website is live"
        )

    description = _sanitize(description if isinstance(description, str) else None)
    if not description:
        raise ValidationError("Description is required.")
    if len(description) > MAX_DESCRIPTION_LENGTH:
        raise ValidationError("Description is too long.")

    request_type = request_type or "content_change"
    if request_type not in ModificationRequest.REQUEST_TYPES:
        raise ValidationError(
            f"Invalid request type '{request_type}'. "
            f"Must be one of: {', '.join(ModificationRequest.REQUEST_TYPES)}"
        )

    priority = priority or "medium"
    if priority not in ModificationRequest.PRIORITIES:
        raise ValidationError(
            f"Invalid priority '{priority}'. "
            f"Must be one of: {', '.join(ModificationRequest.PRIORITIES)}"
        )

    revision = ModificationRequest(
        project_id=intake.id,
        client_email=intake.client_email,
        request_type=request_type,
        priority=priority,
        description=description,
        status="pending",
    )
    db.session.add(revision)
    db.session.flush()

    log_event(
        "revision.created",
        actor=identity,
        revision_id=revision.id,
        project_id=intake.id,
        request_type=request_type,
    )
    return revision


def transition_revision(revision_id, new_status, identity, admin_response=None):
    """Admin changes a revision's status.

    Args:
        revision_id: ModificationRequest UUID string.
        new_status: One of ModificationRequest.STATUSES.
        identity: Caller; must be an admin.
        admin_response: Optional reply shown to the client. When omitted the
                        previous response is kept.

    Returns:
        The updated ModificationRequest.

    Raises:
        ValidationError: Missing fields, unknown status, or the request is
                         already completed/rejected.
        NotFoundError: No such revision (nothing is written).
        AuthorizationError: Caller is not an admin.
    """
    authorize(identity, ADMIN)

    if not revision_id or not new_status:
        raise ValidationError("revision_id and status are required")

    if new_status not in ModificationRequest.STATUSES:
        raise ValidationError(
            f"Invalid status '{new_status}'. "
            f"Must be one of: {', '.join(ModificationRequest.STATUSES)}"
        )

    revision = repositories.get_revision(revision_id)

    old_status = revision.status
    if old_status in ModificationRequest.TERMINAL_STATUSES and new_status != old_status:
        raise ValidationError(
            f"Cannot transition from '{old_status}' to '{new_status}' "
            f"(terminal state)"
        )

    revision.status = new_status

    admin_response = _sanitize(admin_response) if isinstance(admin_response, str) else None
    if admin_response:
        revision.admin_response = admin_response

    if new_status == "completed":
        revision.completed_date = datetime.now(timezone.utc)

    revision.updated_at = datetime.now(timezone.utc)
    db.session.flush()

    log_event(
        "revision.status_changed",
        actor=identity,
        revision_id=revision.id,
        old_status=old_status,
        new_status=new_status,
    )
    logger.info(f"Revision {revision.id}: {old_status} -> {new_status}")
    return revision


def list_revisions_for(identity, project_id=None, status=None):
    """Admins see every revision; clients only their own."""
    if identity is not None and identity.is_admin:
        return repositories.list_revisions(project_id=project_id, status=status)

    if project_id:
        intake = repositories.get_intake(project_id)
        authorize(identity, OWNER_OF_RECORD, intake)
    else:
        authorize(identity, ANY_AUTHENTICATED)
    return repositories.list_revisions(
        project_id=project_id, client_email=identity.email, status=status
    )
