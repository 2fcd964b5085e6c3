"""Intakes blueprint — /api/intakes/*

Website projects, their lifecycle transitions and their build tasks.
Every view commits once, then sends notifications; a notification failure
never changes the response.

Route Map:
  POST /api/intakes                                  — Create intake (client)
  GET  /api/intakes                                  — List own / all (admin)
  GET  /api/intakes/<id>                             — Intake detail
  POST /api/intakes/<id>/status                      — Generation progress
  POST /api/intakes/<id>/cancel                      — Cancel (admin)
  POST /api/intakes/approve                          — Client approval
  POST /api/intakes/deploy-staging                   — Staging deploy (admin)
  POST /api/intakes/mark-live                        — Go live (admin)
  GET  /api/intakes/<id>/tasks                       — Build tasks (admin)
  POST /api/intakes/<id>/tasks                       — Add build task (admin)
  POST /api/intakes/<id>/tasks/<task_id>/status      — Task status (admin)
"""

import logging

from flask import Blueprint, jsonify, request

from sitewizard import repositories
from sitewizard.decorators import ADMIN, api_operation, json_body
from sitewizard.errors import NotFoundError
from sitewizard.extensions import db
from sitewizard.services import (
    build_task_service,
    intake_service,
    lifecycle_service,
    notification_service,
)

logger = logging.getLogger(__name__)

intakes_bp = Blueprint("intakes", __name__, url_prefix="/api/intakes")


# ──────────────────────────────────────────────
# Intake records
# ──────────────────────────────────────────────

@intakes_bp.route("", methods=["POST"])
@api_operation("Failed to create intake")
def create_intake(identity):
    intake = intake_service.create_intake(identity, json_body())
    db.session.commit()
    return jsonify(intake.to_dict()), 201


@intakes_bp.route("", methods=["GET"])
@api_operation("Failed to load intakes")
def list_intakes(identity):
    intakes = intake_service.list_intakes_for(identity, status=request.args.get("status"))
    return jsonify([intake.to_dict() for intake in intakes])


@intakes_bp.route("/<intake_id>", methods=["GET"])
@api_operation("Failed to load intake")
def get_intake(intake_id, identity):
    intake = intake_service.get_intake_for(identity, intake_id)
    return jsonify(intake.to_dict())


@intakes_bp.route("/<intake_id>/status", methods=["POST"])
@api_operation("Failed to update website status")
def set_status(intake_id, identity):
    intake = intake_service.set_generation_status(
        intake_id, json_body().get("status"), identity
    )
    db.session.commit()
    return jsonify({"success": True, "website_status": intake.website_status})


@intakes_bp.route("/<intake_id>/cancel", methods=["POST"])
@api_operation("Failed to cancel website", capability=ADMIN)
def cancel_intake(intake_id, identity):
    intake = lifecycle_service.cancel_website(intake_id, identity)
    db.session.commit()
    return jsonify({"success": True, "website_status": intake.website_status})


# ──────────────────────────────────────────────
# POST /api/intakes/approve
# ──────────────────────────────────────────────

@intakes_bp.route("/approve", methods=["POST"])
@api_operation("Failed to process approval")
def approve(identity):
    """Client approves their generated website.

    Notifies every admin and the client once the approval is committed.
    """
    intake = lifecycle_service.approve_website(json_body().get("intake_id"), identity)
    db.session.commit()

    notification_service.notify_website_approved(intake)

    return jsonify({
        "success": True,
        "message": "Website approved and notifications sent",
    })


# ──────────────────────────────────────────────
# POST /api/intakes/deploy-staging
# ──────────────────────────────────────────────

@intakes_bp.route("/deploy-staging", methods=["POST"])
@api_operation("Failed to deploy to staging", capability=ADMIN)
def deploy_staging(identity):
    intake, staging_url = lifecycle_service.deploy_to_staging(
        json_body().get("intake_id"), identity
    )
    db.session.commit()

    notification_service.notify_staging_ready(intake, staging_url)

    return jsonify({
        "success": True,
        "staging_url": staging_url,
        "message": "Website deployed to staging environment",
    })


# ──────────────────────────────────────────────
# POST /api/intakes/mark-live
# ──────────────────────────────────────────────

@intakes_bp.route("/mark-live", methods=["POST"])
@api_operation("Failed to mark website as live", capability=ADMIN)
def mark_live(identity):
    data = json_body()
    intake = lifecycle_service.mark_website_live(
        data.get("intake_id"), data.get("live_url"), identity
    )
    db.session.commit()

    notification_service.notify_website_live(intake)

    return jsonify({
        "success": True,
        "live_url": intake.live_url,
        "message": "Website marked as live and client notified",
    })


# ──────────────────────────────────────────────
# Build tasks (admin)
# ──────────────────────────────────────────────

@intakes_bp.route("/<intake_id>/tasks", methods=["GET"])
@api_operation("Failed to load build tasks", capability=ADMIN)
def list_tasks(intake_id, identity):
    tasks = build_task_service.list_tasks(intake_id, identity)
    return jsonify([task.to_dict() for task in tasks])


@intakes_bp.route("/<intake_id>/tasks", methods=["POST"])
@api_operation("Failed to create build task", capability=ADMIN)
def create_task(intake_id, identity):
    data = json_body()
    task = build_task_service.create_task(
        intake_id, data.get("task_type"), identity, assigned_to=data.get("assigned_to")
    )
    db.session.commit()
    return jsonify(task.to_dict()), 201


@intakes_bp.route("/<intake_id>/tasks/<task_id>/status", methods=["POST"])
@api_operation("Failed to update build task", capability=ADMIN)
def update_task_status(intake_id, task_id, identity):
    task = repositories.get_build_task(task_id)
    if task.website_intake_id != intake_id:
        raise NotFoundError("Build task not found")

    task = build_task_service.update_task_status(
        task.id, json_body().get("status"), identity
    )
    db.session.commit()
    return jsonify(task.to_dict())
