"""Subscriptions blueprint — /api/subscriptions/*

Route Map:
  POST /api/subscriptions/trial          — Start the free trial
  GET  /api/subscriptions/me             — Own subscription + access flag
  POST /api/subscriptions/<id>/upgrade   — Change package (owner or admin)
  POST /api/subscriptions/<id>/cancel    — Cancel (owner or admin)
  POST /api/subscriptions/<id>/suspend   — Suspend (admin)
"""

import logging

from flask import Blueprint, jsonify

from sitewizard import repositories
from sitewizard.decorators import ADMIN, api_operation, json_body
from sitewizard.errors import NotFoundError
from sitewizard.extensions import db
from sitewizard.services import notification_service, subscription_service

logger = logging.getLogger(__name__)

subscriptions_bp = Blueprint(
    "subscriptions", __name__, url_prefix="/api/subscriptions"
)


def _subscription_body(subscription):
    body = subscription.to_dict()
    body["has_access"] = subscription_service.has_access(subscription)
    return body


@subscriptions_bp.route("/trial", methods=["POST"])
@api_operation("Failed to start trial")
def start_trial(identity):
    """Clients start their own trial; admins may pass client_email."""
    data = json_body()
    client_email = identity.email
    if identity.is_admin and data.get("client_email"):
        client_email = data["client_email"]

    subscription = subscription_service.start_trial(
        client_email, data.get("package_id"), actor=identity
    )
    db.session.commit()

    notification_service.notify_trial_started(subscription)

    return jsonify(_subscription_body(subscription)), 201


@subscriptions_bp.route("/me", methods=["GET"])
@api_operation("Failed to load subscription")
def my_subscription(identity):
    subscription = repositories.find_subscription_by_email(identity.email)
    if subscription is None:
        raise NotFoundError("Subscription not found")
    return jsonify(_subscription_body(subscription))


@subscriptions_bp.route("/<subscription_id>/upgrade", methods=["POST"])
@api_operation("Failed to change package")
def upgrade(subscription_id, identity):
    subscription = subscription_service.upgrade(
        subscription_id, json_body().get("package_id"), identity
    )
    db.session.commit()
    return jsonify(_subscription_body(subscription))


@subscriptions_bp.route("/<subscription_id>/cancel", methods=["POST"])
@api_operation("Failed to cancel subscription")
def cancel(subscription_id, identity):
    subscription = repositories.get_subscription(subscription_id)
    already_cancelled = subscription.status == "cancelled"

    subscription = subscription_service.cancel(subscription_id, identity)
    db.session.commit()

    if not already_cancelled:
        notification_service.notify_subscription_cancelled(subscription)

    return jsonify(_subscription_body(subscription))


@subscriptions_bp.route("/<subscription_id>/suspend", methods=["POST"])
@api_operation("Failed to suspend subscription", capability=ADMIN)
def suspend(subscription_id, identity):
    subscription = subscription_service.suspend(subscription_id, identity)
    db.session.commit()
    return jsonify(_subscription_body(subscription))
