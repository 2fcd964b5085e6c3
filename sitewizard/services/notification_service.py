"""Notification dispatcher — outbox writes, delivery, retries.

Callers invoke the notify_* helpers only AFTER the state change they
report has been committed. Each helper renders its template, writes a
Notification row, commits it, and attempts delivery once. A delivery
failure is stored on the row (status "failed", last_error) and logged;
it is never raised to the caller, so the operation that triggered the
email still reports success. ``deliver_pending`` retries the leftovers
and backs the ``flask deliver-notifications`` command.
"""

import logging
from datetime import datetime, timezone

from flask import current_app, render_template

from sitewizard import repositories
from sitewizard.extensions import db
from sitewizard.models.notification import Notification
from sitewizard.models.subscription import ClientSubscription
from sitewizard.services.email_service import send_email

logger = logging.getLogger(__name__)

# Client-facing phrase per revision status. Statuses missing here
# (e.g. "pending") send no email.
REVISION_STATUS_MESSAGES = {
    "in_progress": "is now being worked on",
    "completed": "has been completed",
    "rejected": "has been reviewed",
}


# ──────────────────────────────────────────────
# Outbox core
# ──────────────────────────────────────────────

def notify(kind, recipient, subject, template, context=None):
    """Queue one email and try to deliver it now.

    Returns the Notification row, or None if it could not even be queued.
    Never raises.
    """
    context = dict(context or {})
    context.setdefault("app_base_url", current_app.config["APP_BASE_URL"])

    try:
        body = render_template(template, **context)
        notification = Notification(
            kind=kind,
            recipient=recipient,
            subject=subject,
            body=body,
            status="pending",
            attempts=0,
        )
        db.session.add(notification)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to queue {kind} notification for {recipient}: {e}", exc_info=True)
        return None

    deliver(notification)
    return notification


def deliver(notification):
    """Attempt delivery of one queued notification and record the outcome.

    Returns True if the email was handed to the SMTP server.
    """
    notification.attempts = (notification.attempts or 0) + 1
    sent = False
    try:
        send_email(
            to=notification.recipient,
            subject=notification.subject,
            html_body=notification.body,
        )
    except Exception as e:
        notification.status = "failed"
        notification.last_error = str(e)[:1000]
        logger.warning(
            f"Notification {notification.id} ({notification.kind}) to "
            f"{notification.recipient} failed on attempt {notification.attempts}: {e}"
        )
    else:
        notification.status = "sent"
        notification.last_error = None
        notification.sent_at = datetime.now(timezone.utc)
        sent = True

    try:
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        logger.error(f"Failed to record delivery of notification {notification.id}: {e}")

    return sent


def deliver_pending(limit=50, max_attempts=None):
    """Retry notifications that are still pending or failed.

    Args:
        limit: Maximum number of rows to attempt in this run.
        max_attempts: Rows that already failed this many times are skipped.
                      Defaults to NOTIFICATION_MAX_ATTEMPTS.

    Returns:
        (sent_count, attempted_count)
    """
    if max_attempts is None:
        max_attempts = current_app.config.get("NOTIFICATION_MAX_ATTEMPTS", 5)

    rows = (
        Notification.query
        .filter(
            Notification.status.in_(["pending", "failed"]),
            Notification.attempts < max_attempts,
        )
        .order_by(Notification.created_at.asc())
        .limit(limit)
        .all()
    )

    sent = 0
    for notification in rows:
        if deliver(notification):
            sent += 1

    logger.info(f"Notification retry run: {sent}/{len(rows)} delivered")
    return sent, len(rows)


# ──────────────────────────────────────────────
# Website lifecycle
# ──────────────────────────────────────────────

def notify_website_approved(intake):
    """One email per admin, then one confirmation to the client."""
    admins = repositories.list_admin_users()
    for admin in admins:
        notify(
            kind="intake.approved.admin",
            recipient=admin.email,
            subject=f"New Website Approved - {intake.company_name}",
            template="emails/website_approved_admin.html",
            context={"intake": intake},
        )

    notify(
        kind="intake.approved.client",
        recipient=intake.client_email,
        subject=f"Website Approved - {intake.company_name}",
        template="emails/website_approved_client.html",
        context={"intake": intake},
    )
    logger.info(
        f"Approval notifications queued for intake {intake.id} "
        f"({len(admins)} admin(s) + client)"
    )


def notify_staging_ready(intake, staging_url):
    return notify(
        kind="intake.staging_ready",
        recipient=intake.client_email,
        subject=f"Your Website is Ready for Preview! - {intake.company_name}",
        template="emails/staging_ready.html",
        context={"intake": intake, "staging_url": staging_url},
    )


def notify_website_live(intake):
    return notify(
        kind="intake.live",
        recipient=intake.client_email,
        subject=f"Your Website is Live! - {intake.company_name}",
        template="emails/website_live.html",
        context={"intake": intake, "live_url": intake.live_url},
    )


# ──────────────────────────────────────────────
# Revisions
# ──────────────────────────────────────────────

def notify_revision_update(revision, new_status, admin_response=None):
    """Email the client about a revision status change.

    Returns None without sending when ``new_status`` has no entry in
    REVISION_STATUS_MESSAGES.
    """
    phrase = REVISION_STATUS_MESSAGES.get(new_status)
    if phrase is None:
        return None

    return notify(
        kind=f"revision.{new_status}",
        recipient=revision.client_email,
        subject=f"Revision Request Update - {revision.request_type_label}",
        template="emails/revision_update.html",
        context={
            "revision": revision,
            "status": new_status,
            "status_phrase": phrase,
            "admin_response": admin_response,
        },
    )


# ──────────────────────────────────────────────
# Subscriptions
# ──────────────────────────────────────────────

def notify_trial_started(subscription):
    return notify(
        kind="subscription.trial_started",
        recipient=subscription.client_email,
        subject=f"Your {ClientSubscription.TRIAL_DAYS}-day free trial has started",
        template="emails/trial_started.html",
        context={
            "subscription": subscription,
            "trial_days": ClientSubscription.TRIAL_DAYS,
        },
    )


def notify_subscription_cancelled(subscription):
    return notify(
        kind="subscription.cancelled",
        recipient=subscription.client_email,
        subject="Your subscription has been cancelled",
        template="emails/subscription_cancelled.html",
        context={"subscription": subscription},
    )
