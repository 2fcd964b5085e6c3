"""Stripe service — billing webhook intake.

Verifies the Stripe-Signature header, then routes invoice events to the
subscription state machine. Each event id is written to stripe_events in
the same commit as its effect, so a redelivered event is a no-op.

Invoices are matched to a ClientSubscription by the invoice's
customer_email. Only the payment flag and the trial -> active move are
driven from here; a failed payment never suspends anything.
"""

import logging

import stripe
from flask import current_app

from sitewizard.errors import UpstreamError, ValidationError
from sitewizard.extensions import db
from sitewizard.models.stripe_event import StripeEvent
from sitewizard.services import subscription_service

logger = logging.getLogger(__name__)


def verify_webhook_signature(payload, sig_header):
    """Return the verified event for ``payload``.

    Raises:
        ValidationError: Header missing, or the signature does not verify.
    """
    if not sig_header:
        raise ValidationError("Missing signature")

    try:
        return stripe.Webhook.construct_event(
            payload, sig_header, current_app.config["STRIPE_WEBHOOK_SECRET"]
        )
    except (ValueError, stripe.error.SignatureVerificationError) as e:
        logger.warning(f"Webhook signature verification failed: {e}")
        raise ValidationError("Invalid signature")


def handle_webhook_event(event):
    """Apply a verified event once.

    Returns "already_processed" for a redelivery, otherwise "processed"
    (event types without a handler are recorded and acknowledged).

    Raises:
        UpstreamError: The handler failed; nothing is recorded, so Stripe's
            retry gets another attempt.
    """
    event_id = event["id"]
    event_type = event["type"]

    if StripeEvent.query.filter_by(stripe_event_id=event_id).first():
        logger.info(f"Duplicate webhook event {event_id}, skipping")
        return "already_processed"

    handler = _HANDLERS.get(event_type)
    if handler is None:
        logger.info(f"No handler for webhook event type {event_type}")
    else:
        try:
            handler(event["data"]["object"])
        except Exception as e:
            db.session.rollback()
            logger.error(f"Error handling {event_type} ({event_id}): {e}", exc_info=True)
            raise UpstreamError("Webhook processing failed", details=str(e))

    db.session.add(StripeEvent(stripe_event_id=event_id, event_type=event_type))
    db.session.commit()
    return "processed"


# ──────────────────────────────────────────────
# Invoice handlers
# ──────────────────────────────────────────────

def _invoice_email(invoice):
    email = invoice.get("customer_email")
    if not email:
        details = invoice.get("customer_details") or {}
        email = details.get("email")
    return email


def _on_payment_failed(invoice):
    email = _invoice_email(invoice)
    if not email:
        logger.warning("invoice.payment_failed without customer_email")
        return
    subscription_service.record_payment_failed(email)


def _on_payment_succeeded(invoice):
    email = _invoice_email(invoice)
    if not email:
        logger.warning("invoice.payment_succeeded without customer_email")
        return
    subscription_service.record_payment_succeeded(email)


_HANDLERS = {
    "invoice.payment_failed": _on_payment_failed,
    "invoice.payment_succeeded": _on_payment_succeeded,
}
