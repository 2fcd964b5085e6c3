"""Revisions blueprint — /api/revisions/*

Client change requests against a live website.

Route Map:
  POST /api/revisions         — Submit a request (owner of a live project)
  GET  /api/revisions         — List own / all (admin); ?project_id=&status=
  POST /api/revisions/status  — Admin status change, emails the client
"""

import logging

from flask import Blueprint, jsonify, request

from sitewizard.decorators import ADMIN, api_operation, json_body
from sitewizard.extensions import db
from sitewizard.services import notification_service, revision_service

logger = logging.getLogger(__name__)

revisions_bp = Blueprint("revisions", __name__, url_prefix="/api/revisions")


@revisions_bp.route("", methods=["POST"])
@api_operation("Failed to submit revision request")
def create_revision(identity):
    data = json_body()
    revision = revision_service.create_revision(
        identity,
        data.get("project_id"),
        data.get("description"),
        request_type=data.get("request_type"),
        priority=data.get("priority"),
    )
    db.session.commit()
    return jsonify(revision.to_dict()), 201


@revisions_bp.route("", methods=["GET"])
@api_operation("Failed to load revision requests")
def list_revisions(identity):
    revisions = revision_service.list_revisions_for(
        identity,
        project_id=request.args.get("project_id"),
        status=request.args.get("status"),
    )
    return jsonify([revision.to_dict() for revision in revisions])


# ──────────────────────────────────────────────
# POST /api/revisions/status
# ──────────────────────────────────────────────

@revisions_bp.route("/status", methods=["POST"])
@api_operation("Failed to update revision status", capability=ADMIN)
def update_status(identity):
    """Admin moves a revision to in_progress / completed / rejected.

    The client email goes out after the commit. Unknown revisions 404
    before anything is written or sent.
    """
    data = json_body()
    new_status = data.get("status")
    revision = revision_service.transition_revision(
        data.get("revision_id"),
        new_status,
        identity,
        admin_response=data.get("admin_response"),
    )
    db.session.commit()

    notification_service.notify_revision_update(
        revision,
        new_status,
        admin_response=revision.admin_response if data.get("admin_response") else None,
    )

    return jsonify({
        "success": True,
        "message": "Revision status updated and client notified",
    })
