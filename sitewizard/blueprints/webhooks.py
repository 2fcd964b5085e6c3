"""Webhooks blueprint — /stripe/webhooks

Public endpoint (no session); the Stripe signature is the only credential.
The raw body is read before anything parses it, since the signature is
computed over the exact bytes.
"""

import logging

from flask import Blueprint, jsonify, request

from sitewizard.decorators import api_operation
from sitewizard.services import stripe_service

logger = logging.getLogger(__name__)

webhooks_bp = Blueprint("webhooks", __name__, url_prefix="/stripe")


@webhooks_bp.route("/webhooks", methods=["POST"])
@api_operation("Webhook processing failed", capability=None)
def stripe_webhook(identity):
    event = stripe_service.verify_webhook_signature(
        request.get_data(as_text=True),
        request.headers.get("Stripe-Signature"),
    )
    status = stripe_service.handle_webhook_event(event)
    logger.info(f"Webhook {event['id']} ({event['type']}): {status}")
    return jsonify({"status": status}), 200
