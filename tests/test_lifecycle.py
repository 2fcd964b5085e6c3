"""Tests for the website lifecycle operations.

Covers:
- approve: owner only, confirmed + approved, one email per admin + client
- approve: prior-status leniency and the APPROVAL_REQUIRES_REVIEW flag
- mark-live: admin only, live_url required/validated, idempotent replay
- deploy-staging: staging URL from company name, single deploy_staging
  task on replay, website_status untouched
- cancel: sideways into cancelled, never from live, final
- staging slug helper
- generation progress reported by the owner
"""

from unittest.mock import patch

import pytest
from werkzeug.security import generate_password_hash

from sitewizard.decorators import Identity
from sitewizard.errors import ValidationError
from sitewizard.extensions import db
from sitewizard.models.audit import AuditEvent
from sitewizard.models.build_task import BuildTask
from sitewizard.models.intake import WebsiteIntake
from sitewizard.models.notification import Notification
from sitewizard.models.user import User
from sitewizard.services import lifecycle_service


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _login_admin(client):
    return _login(client, "admin@sitewizard.local", "admin123")


def _login_owner(client):
    return _login(client, "joe@joespizza.com", "clientpass")


def _set_status(app, intake_id, status):
    with app.app_context():
        intake = db.session.get(WebsiteIntake, intake_id)
        intake.website_status = status
        db.session.commit()


# ─── Staging slug ──────────────────────────────────────────

class TestStagingSlug:

    @pytest.mark.parametrize("name, slug", [
        ("Joe's Pizza & Co.", "joe-s-pizza-co-"),
        ("ACME", "acme"),
        ("  Blue   Sky  Dental ", "-blue-sky-dental-"),
        ("Café 42", "caf-42"),
        ("!!!", "-"),
    ])
    def test_slug(self, name, slug):
        assert lifecycle_service.staging_slug(name) == slug

    def test_staging_url_uses_configured_domain(self, app):
        with app.app_context():
            url = lifecycle_service.staging_url_for("Joe's Pizza & Co.")
        assert url == "https://staging-joe-s-pizza-co-.sitewizard.pro"


# ─── Approve ───────────────────────────────────────────────

class TestApproveWebsite:
    """POST /api/intakes/approve"""

    @patch("sitewizard.services.notification_service.send_email")
    def test_owner_approves(self, mock_send, client, seed_data, app):
        with app.app_context():
            db.session.add(User(
                email="second-admin@sitewizard.local",
                password_hash=generate_password_hash("x"),
                is_admin=True,
            ))
            db.session.commit()

        _login_owner(client)
        resp = client.post("/api/intakes/approve", json={"intake_id": seed_data["intake_id"]})

        assert resp.status_code == 200
        assert resp.get_json() == {
            "success": True,
            "message": "Website approved and notifications sent",
        }

        with app.app_context():
            intake = db.session.get(WebsiteIntake, seed_data["intake_id"])
            assert intake.confirmed is True
            assert intake.website_status == "approved"

            admin_rows = Notification.query.filter_by(kind="intake.approved.admin").all()
            client_rows = Notification.query.filter_by(kind="intake.approved.client").all()
            assert sorted(n.recipient for n in admin_rows) == [
                "admin@sitewizard.local",
                "second-admin@sitewizard.local",
            ]
            assert [n.recipient for n in client_rows] == ["joe@joespizza.com"]
            assert AuditEvent.query.filter_by(action="intake.approved").count() == 1

        assert mock_send.call_count == 3

    @patch("sitewizard.services.notification_service.send_email")
    def test_stranger_forbidden(self, mock_send, client, seed_data, app):
        _login(client, "sam@otherbiz.com", "otherpass")
        resp = client.post("/api/intakes/approve", json={"intake_id": seed_data["intake_id"]})

        assert resp.status_code == 403
        mock_send.assert_not_called()
        with app.app_context():
            intake = db.session.get(WebsiteIntake, seed_data["intake_id"])
            assert intake.website_status == "review"
            assert intake.confirmed is False

    def test_admin_is_not_the_owner(self, client, seed_data):
        _login_admin(client)
        resp = client.post("/api/intakes/approve", json={"intake_id": seed_data["intake_id"]})
        assert resp.status_code == 403

    def test_missing_intake_id(self, client, seed_data):
        _login_owner(client)
        resp = client.post("/api/intakes/approve", json={})
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "intake_id is required"

    def test_unknown_intake(self, client, seed_data):
        _login_owner(client)
        resp = client.post("/api/intakes/approve", json={"intake_id": "does-not-exist"})
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Intake not found"

    @patch("sitewizard.services.notification_service.send_email")
    def test_lenient_from_pending(self, mock_send, client, seed_data, app):
        _set_status(app, seed_data["intake_id"], "pending")
        _login_owner(client)
        resp = client.post("/api/intakes/approve", json={"intake_id": seed_data["intake_id"]})
        assert resp.status_code == 200

    def test_strict_mode_requires_review(self, client, seed_data, app):
        _set_status(app, seed_data["intake_id"], "generating")
        _login_owner(client)
        app.config["APPROVAL_REQUIRES_REVIEW"] = True
        try:
            resp = client.post(
                "/api/intakes/approve", json={"intake_id": seed_data["intake_id"]}
            )
        finally:
            app.config["APPROVAL_REQUIRES_REVIEW"] = False
        assert resp.status_code == 400

    def test_cannot_approve_live_site(self, client, seed_data, app):
        _set_status(app, seed_data["intake_id"], "live")
        _login_owner(client)
        resp = client.post("/api/intakes/approve", json={"intake_id": seed_data["intake_id"]})
        assert resp.status_code == 400
        with app.app_context():
            intake = db.session.get(WebsiteIntake, seed_data["intake_id"])
            assert intake.website_status == "live"


# ─── Mark live ─────────────────────────────────────────────

class TestMarkWebsiteLive:
    """POST /api/intakes/mark-live"""

    @pytest.mark.parametrize("body", [
        {"intake_id": "ID"},
        {"intake_id": "ID", "live_url": ""},
        {"intake_id": "ID", "live_url": "   "},
        {"live_url": "https://joespizza.com"},
    ])
    def test_missing_fields(self, client, seed_data, body):
        if body.get("intake_id") == "ID":
            body = dict(body, intake_id=seed_data["intake_id"])
        _login_admin(client)
        resp = client.post("/api/intakes/mark-live", json=body)
        assert resp.status_code == 400
        assert resp.get_json()["error"] == "intake_id and live_url are required"

    @patch("sitewizard.services.notification_service.send_email")
    def test_scheme_less_url_goes_live(self, mock_send, client, seed_data, app):
        _set_status(app, seed_data["intake_id"], "approved")
        _login_admin(client)
        resp = client.post("/api/intakes/mark-live", json={
            "intake_id": seed_data["intake_id"], "live_url": "  www.joespizza.com ",
        })

        assert resp.status_code == 200
        assert resp.get_json()["live_url"] == "www.joespizza.com"
        with app.app_context():
            intake = db.session.get(WebsiteIntake, seed_data["intake_id"])
            assert intake.website_status == "live"
            assert intake.live_url == "www.joespizza.com"

    def test_unknown_intake(self, client, seed_data):
        _login_admin(client)
        resp = client.post("/api/intakes/mark-live", json={
            "intake_id": "nope", "live_url": "https://joespizza.com",
        })
        assert resp.status_code == 404

    @patch("sitewizard.services.notification_service.send_email")
    def test_mark_live_is_idempotent(self, mock_send, client, seed_data, app):
        _set_status(app, seed_data["intake_id"], "approved")
        _login_admin(client)
        body = {"intake_id": seed_data["intake_id"], "live_url": "https://joespizza.com"}

        first = client.post("/api/intakes/mark-live", json=body)
        with app.app_context():
            after_first = db.session.get(WebsiteIntake, seed_data["intake_id"]).to_dict()

        second = client.post("/api/intakes/mark-live", json=body)
        with app.app_context():
            after_second = db.session.get(WebsiteIntake, seed_data["intake_id"]).to_dict()

        assert first.status_code == second.status_code == 200
        assert first.get_json()["live_url"] == "https://joespizza.com"
        assert after_first == after_second
        assert after_second["website_status"] == "live"
        assert after_second["live_url"] == "https://joespizza.com"

        sent_to = {c.kwargs["to"] for c in mock_send.call_args_list}
        assert sent_to == {"joe@joespizza.com"}

    def test_cannot_go_live_from_cancelled(self, client, seed_data, app):
        _set_status(app, seed_data["intake_id"], "cancelled")
        _login_admin(client)
        resp = client.post("/api/intakes/mark-live", json={
            "intake_id": seed_data["intake_id"], "live_url": "https://joespizza.com",
        })
        assert resp.status_code == 400


# ─── Deploy to staging ─────────────────────────────────────

class TestDeployToStaging:
    """POST /api/intakes/deploy-staging"""

    @patch("sitewizard.services.notification_service.send_email")
    def test_deploy_twice_keeps_one_task(self, mock_send, client, seed_data, app):
        _login_admin(client)
        body = {"intake_id": seed_data["intake_id"]}

        first = client.post("/api/intakes/deploy-staging", json=body)
        second = client.post("/api/intakes/deploy-staging", json=body)

        assert first.status_code == second.status_code == 200
        data = second.get_json()
        assert data["staging_url"] == "https://staging-joe-s-pizza-co-.sitewizard.pro"
        assert data["message"] == "Website deployed to staging environment"

        with app.app_context():
            tasks = BuildTask.query.filter_by(
                website_intake_id=seed_data["intake_id"], task_type="deploy_staging"
            ).all()
            assert len(tasks) == 1
            assert tasks[0].status == "completed"
            assert tasks[0].completed_date is not None
            assert tasks[0].task_name == "Deploy to Staging"
            assert tasks[0].staging_url == data["staging_url"]

            intake = db.session.get(WebsiteIntake, seed_data["intake_id"])
            assert intake.website_status == "review"
            assert intake.staging_url == data["staging_url"]

            assert Notification.query.filter_by(kind="intake.staging_ready").count() == 2

    def test_missing_intake_id(self, client, seed_data):
        _login_admin(client)
        resp = client.post("/api/intakes/deploy-staging", json={})
        assert resp.status_code == 400

    def test_unknown_intake(self, client, seed_data):
        _login_admin(client)
        resp = client.post("/api/intakes/deploy-staging", json={"intake_id": "nope"})
        assert resp.status_code == 404
        assert resp.get_json()["error"] == "Intake not found"


# ─── Cancel + generation status ────────────────────────────

class TestStatusOrdering:

    def test_cancel_then_final(self, app, seed_data):
        admin = Identity(seed_data["admin_id"], "admin@sitewizard.local", "admin")
        with app.app_context():
            intake = lifecycle_service.cancel_website(seed_data["intake_id"], admin)
            db.session.commit()
            assert intake.website_status == "cancelled"

            with pytest.raises(ValidationError):
                lifecycle_service.advance_status(intake, "review", actor=admin)

    def test_live_cannot_be_cancelled(self, app, seed_data):
        _set_status(app, seed_data["intake_id"], "live")
        admin = Identity(seed_data["admin_id"], "admin@sitewizard.local", "admin")
        with app.app_context():
            with pytest.raises(ValidationError):
                lifecycle_service.cancel_website(seed_data["intake_id"], admin)

    def test_no_backwards_moves(self, app, seed_data):
        with app.app_context():
            intake = db.session.get(WebsiteIntake, seed_data["intake_id"])
            with pytest.raises(ValidationError):
                lifecycle_service.advance_status(intake, "generating")
            assert intake.website_status == "review"

    def test_owner_reports_generation_progress(self, client, seed_data, app):
        _set_status(app, seed_data["intake_id"], "pending")
        _login_owner(client)

        resp = client.post(
            f"/api/intakes/{seed_data['intake_id']}/status", json={"status": "generating"}
        )
        assert resp.status_code == 200
        assert resp.get_json()["website_status"] == "generating"

        resp = client.post(
            f"/api/intakes/{seed_data['intake_id']}/status", json={"status": "approved"}
        )
        assert resp.status_code == 400
