"""Intake service — creating and reading website projects.

The onboarding form creates one WebsiteIntake per project in "pending".
Generation progress (generating, review) is reported through
set_generation_status(); approval, go-live and cancellation have their
own operations in lifecycle_service.

Functions flush but do NOT commit — the caller commits.
"""

import logging
import re

import bleach

from sitewizard import repositories
from sitewizard.decorators import ANY_AUTHENTICATED, authorize, authorize_owner_or_admin
from sitewizard.errors import ValidationError
from sitewizard.extensions import db
from sitewizard.models.intake import WebsiteIntake
from sitewizard.services import lifecycle_service
from sitewizard.services.audit_service import log_event

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MAX_GOALS = 10

# Statuses reported by the generation step. Later statuses go through
# lifecycle_service.
GENERATION_STATUSES = ["generating", "review"]


def _clean(value, max_length=255):
    """Strip tags and whitespace; '' becomes None."""
    if not isinstance(value, str):
        return None
    value = bleach.clean(value, tags=[], strip=True).strip()
    return value[:max_length] or None


def create_intake(identity, data):
    """Create a pending WebsiteIntake from the onboarding form.

    Clients always own what they create. Admins may create on behalf of a
    client by passing ``client_email``.

    Raises:
        ValidationError: Missing company name, bad email or style, bad goals.
    """
    authorize(identity, ANY_AUTHENTICATED)

    company_name = _clean(data.get("company_name"))
    if not company_name:
        raise ValidationError("Company name is required.")

    if identity.is_admin and data.get("client_email"):
        client_email = str(data["client_email"]).strip().lower()
    else:
        client_email = identity.email.strip().lower()
    if not EMAIL_RE.match(client_email):
        raise ValidationError("A valid client email is required.")

    style = data.get("style_preference") or "modern"
    if style not in WebsiteIntake.STYLE_PREFERENCES:
        raise ValidationError(
            f"Invalid style '{style}'. "
            f"Must be one of: {', '.join(WebsiteIntake.STYLE_PREFERENCES)}"
        )

    goals = data.get("business_goals") or []
    if not isinstance(goals, list):
        raise ValidationError("business_goals must be a list of strings")
    goals = [g for g in (_clean(goal, 200) for goal in goals) if g][:MAX_GOALS]

    subscription = repositories.find_subscription_by_email(client_email)

    intake = WebsiteIntake(
        company_name=company_name,
        contact_person=_clean(data.get("contact_person")),
        client_email=client_email,
        phone=_clean(data.get("phone"), 50),
        style_preference=style,
        business_goals=goals,
        goal_description=_clean(data.get("goal_description"), 5000),
        website_status="pending",
        confirmed=False,
        subscription_id=subscription.id if subscription else None,
    )
    db.session.add(intake)
    db.session.flush()

    log_event(
        "intake.created",
        actor=identity,
        intake_id=intake.id,
        company_name=company_name,
    )
    logger.info(f"Intake {intake.id} created for {client_email}")
    return intake


def get_intake_for(identity, intake_id):
    intake = repositories.get_intake(intake_id)
    authorize_owner_or_admin(identity, intake)
    return intake


def list_intakes_for(identity, status=None):
    """Admins see every project; clients only their own."""
    authorize(identity, ANY_AUTHENTICATED)
    if identity.is_admin:
        return repositories.list_intakes(status=status)
    return repositories.list_intakes(client_email=identity.email, status=status)


def set_generation_status(intake_id, new_status, identity):
    """Report generation progress (pending -> generating -> review)."""
    if not intake_id or not new_status:
        raise ValidationError("intake_id and status are required")
    if new_status not in GENERATION_STATUSES:
        raise ValidationError(
            f"Status must be one of: {', '.join(GENERATION_STATUSES)}"
        )

    intake = repositories.get_intake(intake_id)
    authorize_owner_or_admin(identity, intake)
    return lifecycle_service.advance_status(intake, new_status, actor=identity)
