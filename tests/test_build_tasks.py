"""Tests for the build task synchronizer.

Covers:
- upsert creates once per (intake, task_type), then updates in place
- completed_date follows status
- losing the insert race updates the existing row instead of duplicating
- validation of task type, status and fields
- admin task routes
"""

from unittest.mock import patch

import pytest

from sitewizard import repositories
from sitewizard.decorators import Identity
from sitewizard.errors import AuthorizationError, ValidationError
from sitewizard.extensions import db
from sitewizard.models.build_task import BuildTask
from sitewizard.services import build_task_service


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _admin(seed_data):
    return Identity(seed_data["admin_id"], "admin@sitewizard.local", "admin")


class TestUpsertTask:

    def test_creates_then_updates(self, app, seed_data):
        with app.app_context():
            first = build_task_service.upsert_task(
                seed_data["intake_id"], "setup_seo", status="in_progress"
            )
            db.session.commit()
            second = build_task_service.upsert_task(
                seed_data["intake_id"], "setup_seo", status="blocked", assigned_to="dana"
            )
            db.session.commit()

            assert first.id == second.id
            assert second.task_name == "Setup SEO"
            assert second.status == "blocked"
            assert second.assigned_to == "dana"
            assert BuildTask.query.filter_by(task_type="setup_seo").count() == 1

    def test_completed_date_follows_status(self, app, seed_data):
        with app.app_context():
            task = build_task_service.upsert_task(
                seed_data["intake_id"], "final_review", status="completed"
            )
            db.session.commit()
            assert task.completed_date is not None

            task = build_task_service.upsert_task(
                seed_data["intake_id"], "final_review", status="in_progress"
            )
            db.session.commit()
            assert task.completed_date is None

    def test_deploy_live_defaults_to_high_priority(self, app, seed_data):
        with app.app_context():
            live = build_task_service.upsert_task(seed_data["intake_id"], "deploy_live")
            seo = build_task_service.upsert_task(seed_data["intake_id"], "setup_seo")
            db.session.commit()
            assert live.priority == "high"
            assert seo.priority == "medium"

    def test_lost_insert_race_updates_existing_row(self, app, seed_data):
        with app.app_context():
            existing = build_task_service.upsert_task(
                seed_data["intake_id"], "deploy_staging", status="pending"
            )
            db.session.commit()

            # First lookup misses (the other request has not committed yet
            # from our point of view); the insert then hits the unique
            # constraint and the second lookup finds the winner's row.
            with patch.object(
                repositories, "find_build_task", side_effect=[None, existing]
            ):
                task = build_task_service.upsert_task(
                    seed_data["intake_id"],
                    "deploy_staging",
                    status="completed",
                    staging_url="https://staging-x.sitewizard.pro",
                )
            db.session.commit()

            assert task.id == existing.id
            rows = BuildTask.query.filter_by(
                website_intake_id=seed_data["intake_id"], task_type="deploy_staging"
            ).all()
            assert len(rows) == 1
            assert rows[0].status == "completed"
            assert rows[0].staging_url == "https://staging-x.sitewizard.pro"

    @pytest.mark.parametrize("task_type, fields", [
        ("paint_fence", {}),
        ("setup_seo", {"status": "done"}),
        ("setup_seo", {"priority": "urgent"}),
        ("setup_seo", {"website_status": "live"}),
    ])
    def test_validation(self, app, seed_data, task_type, fields):
        with app.app_context():
            with pytest.raises(ValidationError):
                build_task_service.upsert_task(seed_data["intake_id"], task_type, **fields)


class TestTaskOperations:

    def test_create_task_rejects_duplicates(self, app, seed_data):
        admin = _admin(seed_data)
        with app.app_context():
            build_task_service.create_task(seed_data["intake_id"], "optimize_images", admin)
            db.session.commit()
            with pytest.raises(ValidationError):
                build_task_service.create_task(
                    seed_data["intake_id"], "optimize_images", admin
                )

    def test_clients_cannot_touch_tasks(self, app, seed_data):
        owner = Identity(seed_data["owner_id"], "joe@joespizza.com", "client")
        with app.app_context():
            with pytest.raises(AuthorizationError):
                build_task_service.list_tasks(seed_data["intake_id"], owner)
            with pytest.raises(AuthorizationError):
                build_task_service.create_task(seed_data["intake_id"], "setup_seo", owner)

    def test_task_routes(self, client, seed_data, app):
        _login(client, "admin@sitewizard.local", "admin123")
        intake_id = seed_data["intake_id"]

        resp = client.post(f"/api/intakes/{intake_id}/tasks", json={
            "task_type": "configure_forms", "assigned_to": "dana",
        })
        assert resp.status_code == 201
        task = resp.get_json()
        assert task["task_name"] == "Configure Forms"
        assert task["status"] == "pending"

        resp = client.post(
            f"/api/intakes/{intake_id}/tasks/{task['id']}/status",
            json={"status": "completed"},
        )
        assert resp.status_code == 200
        assert resp.get_json()["completed_date"] is not None

        resp = client.get(f"/api/intakes/{intake_id}/tasks")
        assert resp.status_code == 200
        assert [t["task_type"] for t in resp.get_json()] == ["configure_forms"]

    def test_task_status_route_checks_intake(self, client, seed_data, app):
        with app.app_context():
            task = build_task_service.upsert_task(seed_data["intake_id"], "setup_seo")
            db.session.commit()
            task_id = task.id

        _login(client, "admin@sitewizard.local", "admin123")
        resp = client.post(
            f"/api/intakes/some-other-intake/tasks/{task_id}/status",
            json={"status": "completed"},
        )
        assert resp.status_code == 404
