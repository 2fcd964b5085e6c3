"""Subscription service — trial / active / suspended / cancelled.

Responsible for:
- Starting the free trial at signup (trial_ends = trial_started + 14 days)
- Package changes (no proration, no status or date changes)
- Cancellation, recording how long access is kept (effective_access_until)
- Payment flags written by the Stripe webhook
- Deriving access from status (has_access)

Status transitions are enforced via ClientSubscription.VALID_TRANSITIONS.
Functions flush but do NOT commit — the caller commits.
"""

import logging
from datetime import datetime, timedelta, timezone

from sitewizard import repositories
from sitewizard.decorators import ADMIN, authorize, authorize_owner_or_admin
from sitewizard.errors import ValidationError
from sitewizard.extensions import db
from sitewizard.models.subscription import ClientSubscription
from sitewizard.services.audit_service import log_event

logger = logging.getLogger(__name__)

BILLING_PERIOD_DAYS = 30


def _as_utc(value):
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _set_status(subscription, new_status, actor=None):
    """Change status, enforcing valid transitions. Same-status is a no-op."""
    if new_status not in ClientSubscription.STATUSES:
        raise ValidationError(
            f"Invalid status '{new_status}'. "
            f"Must be one of: {', '.join(ClientSubscription.STATUSES)}"
        )

    old_status = subscription.status
    if old_status == new_status:
        return subscription

    allowed = ClientSubscription.VALID_TRANSITIONS.get(old_status, [])
    if new_status not in allowed:
        raise ValidationError(
            f"Cannot transition from '{old_status}' to '{new_status}'. "
            f"Allowed: {', '.join(allowed) if allowed else 'none (terminal state)'}"
        )

    subscription.status = new_status
    subscription.updated_at = datetime.now(timezone.utc)
    db.session.flush()

    log_event(
        "subscription.status_changed",
        actor=actor,
        subscription_id=subscription.id,
        old_status=old_status,
        new_status=new_status,
    )
    return subscription


# ──────────────────────────────────────────────
# Client / admin operations
# ──────────────────────────────────────────────

def start_trial(client_email, package_id, actor=None):
    """Create the client's subscription in "trial".

    Records intent only; no card is charged here.

    Raises:
        ValidationError: Missing fields or the client already has a subscription.
    """
    client_email = (client_email or "").strip().lower()
    package_id = (package_id or "").strip() if isinstance(package_id, str) else ""
    if not client_email or not package_id:
        raise ValidationError("client_email and package_id are required")

    if repositories.find_subscription_by_email(client_email) is not None:
        raise ValidationError("A subscription already exists for this client")

    now = datetime.now(timezone.utc)
    trial_ends = now + timedelta(days=ClientSubscription.TRIAL_DAYS)

    subscription = ClientSubscription(
        client_email=client_email,
        package_id=package_id,
        status="trial",
        trial_started=now,
        trial_ends=trial_ends,
        next_payment_date=trial_ends,
        payment_method_added=True,
        payment_failed=False,
    )
    db.session.add(subscription)
    db.session.flush()

    log_event(
        "subscription.trial_started",
        actor=actor,
        subscription_id=subscription.id,
        package_id=package_id,
    )
    logger.info(f"Trial started for {client_email} on package {package_id}")
    return subscription


def upgrade(subscription_id, new_package_id, identity):
    """Swap the package in place. Status and dates are left alone."""
    new_package_id = new_package_id.strip() if isinstance(new_package_id, str) else ""
    if not subscription_id or not new_package_id:
        raise ValidationError("subscription_id and package_id are required")

    subscription = repositories.get_subscription(subscription_id)
    authorize_owner_or_admin(identity, subscription)

    if subscription.status == "cancelled":
        raise ValidationError("Cannot change the package of a cancelled subscription")

    old_package = subscription.package_id
    subscription.package_id = new_package_id
    subscription.updated_at = datetime.now(timezone.utc)
    db.session.flush()

    log_event(
        "subscription.package_changed",
        actor=identity,
        subscription_id=subscription.id,
        old_package_id=old_package,
        new_package_id=new_package_id,
    )
    return subscription


def cancel(subscription_id, identity):
    """Cancel a subscription. Cancelling twice keeps the first dates.

    effective_access_until is the end of the period already granted:
    trial_ends for trials, next_payment_date for paid subscriptions,
    never earlier than the moment of cancellation.
    """
    if not subscription_id:
        raise ValidationError("subscription_id is required")

    subscription = repositories.get_subscription(subscription_id)
    authorize_owner_or_admin(identity, subscription)

    if subscription.status == "cancelled":
        return subscription

    now = datetime.now(timezone.utc)
    if subscription.status == "trial":
        paid_through = _as_utc(subscription.trial_ends)
    elif subscription.status == "active":
        paid_through = _as_utc(subscription.next_payment_date)
    else:
        paid_through = None

    _set_status(subscription, "cancelled", actor=identity)
    subscription.cancellation_date = now
    subscription.effective_access_until = (
        paid_through if paid_through and paid_through > now else now
    )
    db.session.flush()

    logger.info(
        f"Subscription {subscription.id} cancelled; access until "
        f"{subscription.effective_access_until.isoformat()}"
    )
    return subscription


def suspend(subscription_id, identity):
    """Admin-only: active -> suspended."""
    authorize(identity, ADMIN)
    subscription = repositories.get_subscription(subscription_id)
    return _set_status(subscription, "suspended", actor=identity)


def activate(subscription, actor=None):
    """trial/suspended -> active, starting a new billing period."""
    _set_status(subscription, "active", actor=actor)
    now = datetime.now(timezone.utc)
    next_payment = _as_utc(subscription.next_payment_date)
    if next_payment is None or next_payment <= now:
        subscription.next_payment_date = now + timedelta(days=BILLING_PERIOD_DAYS)
    db.session.flush()
    return subscription


# ──────────────────────────────────────────────
# Billing webhook hooks (system-initiated, no actor)
# ──────────────────────────────────────────────

def record_payment_failed(client_email):
    """Flag a failed charge. Deliberately does not suspend.

    Returns the subscription, or None if the email has none.
    """
    subscription = repositories.find_subscription_by_email(client_email)
    if subscription is None:
        logger.warning(f"Payment failure for unknown subscriber {client_email}")
        return None

    subscription.payment_failed = True
    db.session.flush()
    log_event("subscription.payment_failed", subscription_id=subscription.id)
    return subscription


def record_payment_succeeded(client_email):
    """Clear the failure flag; a trial becomes active on its first payment."""
    subscription = repositories.find_subscription_by_email(client_email)
    if subscription is None:
        logger.warning(f"Payment success for unknown subscriber {client_email}")
        return None

    subscription.payment_failed = False
    if subscription.status == "trial":
        activate(subscription)
    elif subscription.status == "active":
        subscription.next_payment_date = datetime.now(timezone.utc) + timedelta(
            days=BILLING_PERIOD_DAYS
        )
    db.session.flush()
    log_event("subscription.payment_succeeded", subscription_id=subscription.id)
    return subscription


# ──────────────────────────────────────────────
# Queries
# ──────────────────────────────────────────────

def has_access(subscription, now=None):
    """Whether the portal should treat this client as entitled.

    trial / active    -> True
    suspended         -> False
    cancelled         -> True until effective_access_until
    """
    if subscription is None:
        return False
    if subscription.status in ("trial", "active"):
        return True
    if subscription.status == "cancelled":
        now = now or datetime.now(timezone.utc)
        until = _as_utc(subscription.effective_access_until)
        return until is not None and now < until
    return False


def expired_trials(now=None):
    """Trials whose trial_ends has passed (reported, never auto-changed)."""
    now = now or datetime.now(timezone.utc)
    trials = ClientSubscription.query.filter_by(status="trial").all()
    return [s for s in trials if _as_utc(s.trial_ends) and _as_utc(s.trial_ends) <= now]
